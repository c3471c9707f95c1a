"""Request construction for the supported S3 operations.

Each builder returns a Request: the method, path, query, headers and
body of one operation, plus the transform that turns the raw response
into the operation's result. Requests are immutable; add_query,
add_headers and with_acl return a new Request whose list is the old one
with the new entries appended. Nothing is deduplicated, so a key added
twice is sent twice.

Supported operations:
- list_keys: GET /{bucket}/ -> KeyList
- get_object / get_object_bytes: GET /{bucket}/{key} -> body
- get_object_with_headers: GET -> (body, headers)
- head_object: HEAD -> headers
- put_object (+ public/html variants): PUT -> None
- delete_object: DELETE -> None
"""

import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Generic, TypeVar, Union

from s3spaces.models import EMPTY_BODY, Body, KeyList, RawResponse
from s3spaces.xml_parser import parse_list_bucket_result

T = TypeVar("T")

Header = tuple[str, str]


class CannedAcl(Enum):
    """Predefined access-control keywords for the x-amz-acl header."""

    PRIVATE = "private"
    PUBLIC_READ = "public-read"
    PUBLIC_READ_WRITE = "public-read-write"
    AWS_EXEC_READ = "aws-exec-read"
    AUTHENTICATED_READ = "authenticated-read"
    BUCKET_OWNER_READ = "bucket-owner-read"
    BUCKET_OWNER_FULL_CONTROL = "bucket-owner-full-control"
    LOG_DELIVERY_WRITE = "log-delivery-write"


ACL_HEADER = "x-amz-acl"


# Query elements for bucket listings


@dataclass(frozen=True)
class Delimiter:
    value: str


@dataclass(frozen=True)
class Marker:
    value: str


@dataclass(frozen=True)
class MaxKeys:
    value: int


@dataclass(frozen=True)
class Prefix:
    value: str


@dataclass(frozen=True)
class AnyQuery:
    """Arbitrary query parameter, passed through unchanged."""

    key: str
    value: str


QueryElement = Union[Delimiter, Marker, MaxKeys, Prefix, AnyQuery, tuple]

QUERY_NAMES = {
    Delimiter: "delimiter",
    Marker: "marker",
    MaxKeys: "max-keys",
    Prefix: "prefix",
}


def query_pair(element: QueryElement) -> tuple[str, str]:
    """Translate a query element to its (name, value) pair."""
    if isinstance(element, AnyQuery):
        return element.key, element.value
    if isinstance(element, tuple):
        key, value = element
        return str(key), str(value)
    name = QUERY_NAMES.get(type(element))
    if name is None:
        raise TypeError(f"Unsupported query element: {element!r}")
    return name, str(element.value)


# Response transforms


def parse_key_list(response: RawResponse) -> KeyList:
    return parse_list_bucket_result(response.body)


def body_text(response: RawResponse) -> str:
    return response.text


def body_bytes(response: RawResponse) -> bytes:
    return response.body


def body_and_headers(response: RawResponse) -> tuple[str, list[Header]]:
    return response.text, list(response.headers)


def headers_only(response: RawResponse) -> list[Header]:
    return list(response.headers)


def discard(response: RawResponse) -> None:
    """Success is the 2xx status alone; the body is ignored."""
    return None


@dataclass(frozen=True)
class Request(Generic[T]):
    """Unsigned request descriptor with its response transform."""

    method: str
    path: str
    transform: Callable[[RawResponse], T]
    query: tuple[Header, ...] = ()
    headers: tuple[Header, ...] = ()
    body: Body = EMPTY_BODY

    def add_query(self, *elements: QueryElement) -> "Request[T]":
        """Return a copy with query elements appended."""
        return replace(
            self, query=self.query + tuple(query_pair(e) for e in elements)
        )

    def add_headers(self, *headers: Header) -> "Request[T]":
        """Return a copy with header pairs appended."""
        return replace(
            self, headers=self.headers + tuple((str(k), str(v)) for k, v in headers)
        )

    def with_acl(self, acl: Union[CannedAcl, str]) -> "Request[T]":
        """Return a copy carrying a canned ACL header."""
        value = acl.value if isinstance(acl, CannedAcl) else acl
        return self.add_headers((ACL_HEADER, value))


# Bodies


def empty_body() -> Body:
    return EMPTY_BODY


def bytes_body(content: bytes, mimetype: str = "application/octet-stream") -> Body:
    return Body(content=content, mimetype=mimetype)


def string_body(text: str, mimetype: str = "text/plain") -> Body:
    return Body(content=text.encode("utf-8"), mimetype=mimetype)


def html_body(html: str) -> Body:
    return string_body(html, mimetype="text/html")


def json_body(value: Any) -> Body:
    return Body(content=json.dumps(value).encode("utf-8"), mimetype="application/json")


# Operations


def object_path(bucket: str, key: str) -> str:
    return f"/{bucket}/{key}"


def list_keys(bucket: str, *elements: QueryElement) -> Request[KeyList]:
    """List the keys of a bucket.

    Args:
        bucket: Bucket name.
        *elements: Delimiter, Marker, MaxKeys, Prefix or AnyQuery
                   elements (or plain (name, value) tuples).
    """
    return Request("GET", f"/{bucket}/", parse_key_list).add_query(*elements)


def get_object(bucket: str, key: str) -> Request[str]:
    return Request("GET", object_path(bucket, key), body_text)


def get_object_bytes(bucket: str, key: str) -> Request[bytes]:
    return Request("GET", object_path(bucket, key), body_bytes)


def get_object_with_headers(
    bucket: str, key: str
) -> Request[tuple[str, list[Header]]]:
    return Request("GET", object_path(bucket, key), body_and_headers)


def head_object(bucket: str, key: str) -> Request[list[Header]]:
    return Request("HEAD", object_path(bucket, key), headers_only)


def put_object(
    bucket: str,
    key: str,
    body: Body,
    headers: tuple[Header, ...] = (),
) -> Request[None]:
    """Store an object.

    The body's mimetype is sent as Content-Type when the request is signed.
    """
    return Request(
        "PUT", object_path(bucket, key), discard, body=body
    ).add_headers(*headers)


def put_public_object(bucket: str, key: str, body: Body) -> Request[None]:
    """Store an object readable by anyone."""
    return put_object(bucket, key, body).with_acl(CannedAcl.PUBLIC_READ)


def put_html_object(bucket: str, key: str, html: str) -> Request[None]:
    """Store a publicly readable HTML page."""
    return put_public_object(bucket, key, html_body(html))


def delete_object(bucket: str, key: str) -> Request[None]:
    return Request("DELETE", object_path(bucket, key), discard)
