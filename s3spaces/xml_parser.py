"""ListBucketResult XML parsing.

Decodes the body of a bucket listing into a KeyList. Element names are
matched without their namespace, and elements the listing does not use
are ignored.

Providers disagree on the order of the children of a Contents entry:
some send Owner before StorageClass, others StorageClass before Owner.
Each entry is checked against both orderings in turn and is only
rejected if it matches neither.

Scalars are accepted either bare or quoted, so <Size>42</Size> and
<Size>"42"</Size> both decode to 42, and the same holds for the
IsTruncated boolean.
"""

import xml.etree.ElementTree as ET
from typing import NamedTuple, Optional, Union

from s3spaces.errors import MalformedXmlError, ParseError
from s3spaces.models import Key, KeyList, Owner

ROOT_TAG = "ListBucketResult"

S3_NAMESPACE = "http://s3.amazonaws.com/doc/2006-03-01/"


class ContentsOrdering(NamedTuple):
    """Expected relative order of the children of a Contents element."""

    name: str
    fields: tuple[str, ...]


OWNER_FIRST = ContentsOrdering(
    "owner-first",
    ("Key", "LastModified", "ETag", "Size", "Owner", "StorageClass"),
)

STORAGE_CLASS_FIRST = ContentsOrdering(
    "storage-class-first",
    ("Key", "LastModified", "ETag", "Size", "StorageClass", "Owner"),
)

CONTENTS_ORDERINGS = (OWNER_FIRST, STORAGE_CLASS_FIRST)

TRUE_VALUES = {"true", "1"}
FALSE_VALUES = {"false", "0"}


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _find(elem: ET.Element, name: str) -> Optional[ET.Element]:
    for child in elem:
        if _local_name(child.tag) == name:
            return child
    return None


def _find_all(elem: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in elem if _local_name(child.tag) == name]


def _unquote(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1].strip()
    return text


def _required(elem: ET.Element, name: str, path: str) -> ET.Element:
    child = _find(elem, name)
    if child is None:
        raise ParseError(f"missing required element <{name}>", path)
    return child


def _required_text(elem: ET.Element, name: str, path: str) -> str:
    return _required(elem, name, path).text or ""


def _optional_text(elem: ET.Element, name: str) -> Optional[str]:
    child = _find(elem, name)
    if child is None:
        return None
    return child.text or ""


def _parse_int(text: str, path: str) -> int:
    value = _unquote(text)
    # int() alone would accept signs, underscores and non-ASCII digits
    if not (value.isascii() and value.isdigit()):
        raise ParseError(f"expected a non-negative integer but got {text!r}", path)
    return int(value)


def _parse_bool(text: str, path: str) -> bool:
    value = _unquote(text).lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ParseError(f"expected a boolean but got {text!r}", path)


def _check_ordering(node: ET.Element, ordering: ContentsOrdering, path: str) -> None:
    last_index = -1
    for child in node:
        name = _local_name(child.tag)
        if name not in ordering.fields:
            continue
        index = ordering.fields.index(name)
        if index < last_index:
            raise ParseError(f"<{name}> is out of {ordering.name} order", path)
        last_index = index


def _decode_owner(node: ET.Element, path: str) -> Owner:
    return Owner(
        id=_required_text(node, "ID", path),
        display_name=_optional_text(node, "DisplayName"),
    )


def _decode_key(node: ET.Element, path: str) -> Key:
    return Key(
        key=_required_text(node, "Key", path),
        last_modified=_required_text(node, "LastModified", path),
        etag=_required_text(node, "ETag", path),
        size=_parse_int(_required_text(node, "Size", path), f"{path}/Size"),
        storage_class=_required_text(node, "StorageClass", path),
        owner=_decode_owner(_required(node, "Owner", path), f"{path}/Owner"),
    )


def _decode_contents(node: ET.Element, path: str) -> Key:
    failures = []
    for ordering in CONTENTS_ORDERINGS:
        try:
            _check_ordering(node, ordering, path)
        except ParseError as e:
            failures.append(e.detail)
            continue
        return _decode_key(node, path)
    raise ParseError("; ".join(failures), path)


def parse_list_bucket_result(document: Union[str, bytes]) -> KeyList:
    """Parse a ListBucketResult document.

    Args:
        document: XML text or bytes.

    Returns:
        The decoded KeyList.

    Raises:
        MalformedXmlError: If the document is not XML.
        ParseError: If a required element is missing or holds a value of
                   the wrong type. The error path locates the element.
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise MalformedXmlError(f"Response is not valid XML: {e}") from e

    if _local_name(root.tag) != ROOT_TAG:
        raise ParseError(
            f"expected <{ROOT_TAG}> root element but got <{_local_name(root.tag)}>"
        )

    path = ROOT_TAG
    keys = tuple(
        _decode_contents(node, f"{path}/Contents[{index}]")
        for index, node in enumerate(_find_all(root, "Contents"))
    )
    common_prefixes = tuple(
        _required_text(node, "Prefix", f"{path}/CommonPrefixes[{index}]")
        for index, node in enumerate(_find_all(root, "CommonPrefixes"))
    )

    return KeyList(
        name=_required_text(root, "Name", path),
        prefix=_optional_text(root, "Prefix"),
        marker=_optional_text(root, "Marker"),
        next_marker=_optional_text(root, "NextMarker"),
        max_keys=_parse_int(_required_text(root, "MaxKeys", path), f"{path}/MaxKeys"),
        delimiter=_optional_text(root, "Delimiter"),
        is_truncated=_parse_bool(
            _required_text(root, "IsTruncated", path), f"{path}/IsTruncated"
        ),
        keys=keys,
        common_prefixes=common_prefixes,
    )


def serialize_key_list(
    key_list: KeyList,
    ordering: ContentsOrdering = OWNER_FIRST,
    namespace: Optional[str] = S3_NAMESPACE,
) -> bytes:
    """Write a KeyList as a ListBucketResult document.

    Args:
        key_list: Listing to serialize.
        ordering: Child order used for each Contents element.
        namespace: Default namespace of the document, or None.

    Returns:
        UTF-8 encoded XML with a declaration.
    """
    root = ET.Element(ROOT_TAG, {"xmlns": namespace} if namespace else {})

    def add(parent: ET.Element, name: str, text: Optional[str]) -> None:
        if text is not None:
            ET.SubElement(parent, name).text = text

    add(root, "Name", key_list.name)
    add(root, "Prefix", key_list.prefix)
    add(root, "Marker", key_list.marker)
    add(root, "NextMarker", key_list.next_marker)
    add(root, "MaxKeys", str(key_list.max_keys))
    add(root, "Delimiter", key_list.delimiter)
    add(root, "IsTruncated", "true" if key_list.is_truncated else "false")

    for key in key_list.keys:
        contents = ET.SubElement(root, "Contents")
        for name in ordering.fields:
            if name == "Owner":
                owner = ET.SubElement(contents, "Owner")
                add(owner, "ID", key.owner.id)
                add(owner, "DisplayName", key.owner.display_name)
            else:
                add(contents, name, {
                    "Key": key.key,
                    "LastModified": key.last_modified,
                    "ETag": key.etag,
                    "Size": str(key.size),
                    "StorageClass": key.storage_class,
                }[name])

    for prefix in key_list.common_prefixes:
        add(ET.SubElement(root, "CommonPrefixes"), "Prefix", prefix)

    return ET.tostring(root, encoding="utf-8", xml_declaration=True)
