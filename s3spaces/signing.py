"""AWS Signature Version 4 request signing.

Turns an unsigned Request into the method, URL and header list that go
on the wire. The steps follow the SigV4 algorithm:

1. Hash the body (the empty-string hash for bodiless requests)
2. Build the canonical request
3. Build the string to sign from the timestamp, the credential scope
   and the hash of the canonical request
4. Derive the signing key by chained HMAC over the secret key
5. HMAC the string to sign and attach the Authorization header

Signing is a pure function of (request, account, endpoint, timestamp).
The Signer class only adds a clock so that the timestamp is captured at
sign time; tests inject a fixed clock to reproduce signatures.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional
from urllib.parse import quote

from s3spaces.endpoint import ServiceEndpoint
from s3spaces.models import Account
from s3spaces.request import Request

logger = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"

TERMINATOR = "aws4_request"

EMPTY_PAYLOAD_HASH = hashlib.sha256(b"").hexdigest()

AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
DATE_STAMP_FORMAT = "%Y%m%d"

# Headers the signer owns; caller-supplied copies are dropped
RESERVED_HEADERS = frozenset({
    "authorization",
    "host",
    "x-amz-content-sha256",
    "x-amz-date",
})

DOT_SEGMENTS = frozenset({".", ".."})


@dataclass(frozen=True)
class SignedRequest:
    """A request ready to be sent."""

    method: str
    url: str
    headers: list[tuple[str, str]]
    content: bytes
    amz_date: str
    signature: str
    canonical_request: str = field(default="", repr=False)

    def header(self, name: str) -> Optional[str]:
        """Return the first value of a header (case-insensitive), or None."""
        name = name.lower()
        for key, value in self.headers:
            if key.lower() == name:
                return value
        return None


def uri_encode(value: str, encode_slash: bool = True) -> str:
    """Percent-encode a value using the SigV4 rules.

    Unreserved characters (A-Z, a-z, 0-9, '-', '_', '.', '~') are kept;
    everything else is UTF-8 encoded as %XX with uppercase hex. Forward
    slashes are kept when encode_slash is False.
    """
    return quote(value, safe="" if encode_slash else "/")


def canonical_uri(path: str) -> str:
    """Encode a raw request path, preserving '/' separators.

    S3 paths are encoded once and are not normalized. Segments made only
    of dots ('.' and '..') are sent as %2E escapes, since HTTP clients
    remove literal dot segments from the URL before sending it.
    """
    if not path:
        return "/"
    return "/".join(
        "%2E" * len(segment) if segment in DOT_SEGMENTS else uri_encode(segment)
        for segment in path.split("/")
    )


def canonical_query_string(query: Iterable[tuple[str, str]]) -> str:
    """Encode query pairs and sort them by encoded key, then value.

    Duplicate keys are all kept.
    """
    encoded = sorted((uri_encode(k), uri_encode(v)) for k, v in query)
    return "&".join(f"{k}={v}" for k, v in encoded)


def canonical_headers(headers: Iterable[tuple[str, str]]) -> tuple[str, str]:
    """Build the canonical header block and the signed-headers list.

    Names are lower-cased and sorted. Values are trimmed with inner runs
    of whitespace collapsed; repeated names are joined with ','.

    Returns:
        Tuple of (canonical_headers, signed_headers).
    """
    grouped: dict[str, list[str]] = {}
    for name, value in headers:
        grouped.setdefault(name.lower(), []).append(" ".join(str(value).split()))

    names = sorted(grouped)
    block = "".join(f"{name}:{','.join(grouped[name])}\n" for name in names)
    return block, ";".join(names)


def payload_hash(content: bytes) -> str:
    """Hex SHA-256 of a request body."""
    if not content:
        return EMPTY_PAYLOAD_HASH
    return hashlib.sha256(content).hexdigest()


def build_canonical_request(
    method: str,
    path: str,
    query: Iterable[tuple[str, str]],
    headers: Iterable[tuple[str, str]],
    content_hash: str,
) -> str:
    """Build the canonical request string.

    Args:
        method: HTTP method (any case).
        path: Raw, unencoded request path.
        query: Query pairs in any order.
        headers: Header pairs to sign.
        content_hash: Hex SHA-256 of the body.

    Returns:
        The newline-joined canonical request.
    """
    header_block, signed_headers = canonical_headers(headers)
    return "\n".join([
        method.upper(),
        canonical_uri(path),
        canonical_query_string(query),
        header_block,
        signed_headers,
        content_hash,
    ])


def credential_scope(date_stamp: str, region: str, service: str) -> str:
    return f"{date_stamp}/{region}/{service}/{TERMINATOR}"


def build_string_to_sign(amz_date: str, scope: str, canonical_request: str) -> str:
    """Build the SigV4 string to sign."""
    return "\n".join([
        ALGORITHM,
        amz_date,
        scope,
        hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
    ])


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(
    secret_key: str, date_stamp: str, region: str, service: str
) -> bytes:
    """Derive the signing key from the secret key and credential scope."""
    k_date = _hmac_sha256(("AWS4" + secret_key).encode("utf-8"), date_stamp)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, TERMINATOR)


def compute_signature(signing_key: bytes, string_to_sign: str) -> str:
    """Hex HMAC-SHA256 of the string to sign under the derived key."""
    return hmac.new(
        signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def sign_request(
    request: Request,
    account: Account,
    endpoint: ServiceEndpoint,
    now: datetime,
) -> SignedRequest:
    """Sign a request with an account's credentials.

    Args:
        request: The unsigned request descriptor.
        account: Account supplying the access and secret keys.
        endpoint: Resolved endpoint supplying host, region and service.
        now: Signing timestamp. Naive datetimes are taken as UTC.

    Returns:
        SignedRequest carrying the full header list, including
        Authorization, and the URL to send it to.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    amz_date = now.strftime(AMZ_DATE_FORMAT)
    date_stamp = now.strftime(DATE_STAMP_FORMAT)

    content = request.body.content
    content_hash = payload_hash(content)

    headers = [
        (name, value)
        for name, value in request.headers
        if name.lower() not in RESERVED_HEADERS
    ]
    if request.body.mimetype and not any(
        name.lower() == "content-type" for name, _ in headers
    ):
        headers.append(("content-type", request.body.mimetype))
    headers.extend([
        ("host", endpoint.host),
        ("x-amz-content-sha256", content_hash),
        ("x-amz-date", amz_date),
    ])

    canonical_request = build_canonical_request(
        request.method, request.path, request.query, headers, content_hash
    )
    _, signed_headers = canonical_headers(headers)

    scope = credential_scope(
        date_stamp, endpoint.signing_region, endpoint.endpoint_prefix
    )
    string_to_sign = build_string_to_sign(amz_date, scope, canonical_request)
    signing_key = derive_signing_key(
        account.secret_key, date_stamp, endpoint.signing_region, endpoint.endpoint_prefix
    )
    signature = compute_signature(signing_key, string_to_sign)

    headers.append((
        "authorization",
        f"{ALGORITHM} Credential={account.access_key}/{scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}",
    ))

    return SignedRequest(
        method=request.method.upper(),
        url=endpoint.url(
            canonical_uri(request.path), canonical_query_string(request.query)
        ),
        headers=headers,
        content=content,
        amz_date=amz_date,
        signature=signature,
        canonical_request=canonical_request,
    )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Signer:
    """Signs requests, capturing the timestamp from a clock at sign time."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        """Initialize the signer.

        Args:
            clock: Zero-argument callable returning the current time.
        """
        self.clock = clock

    def sign(
        self,
        request: Request,
        account: Account,
        endpoint: ServiceEndpoint,
    ) -> SignedRequest:
        signed = sign_request(request, account, endpoint, self.clock())
        logger.debug(
            "Signed %s %s for account %r at %s",
            signed.method, signed.url, account.name, signed.amz_date,
        )
        return signed
