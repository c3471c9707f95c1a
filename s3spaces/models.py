"""Data models for the S3 / DigitalOcean Spaces client."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Provider(Enum):
    """Storage provider flavor of an account."""

    AMAZON = "amazon"
    DIGITAL_OCEAN = "digitalocean"


@dataclass(frozen=True)
class Account:
    """Credentials and endpoint metadata for one storage account.

    The access and secret keys are kept out of ``repr()`` so an account
    can be logged without leaking credentials.
    """

    name: str
    access_key: str = field(repr=False)
    secret_key: str = field(repr=False)
    region: Optional[str] = None
    provider: Provider = Provider.AMAZON
    buckets: tuple[str, ...] = ()

    @property
    def is_digital_ocean(self) -> bool:
        """Check if the account targets DigitalOcean Spaces."""
        return self.provider is Provider.DIGITAL_OCEAN


@dataclass(frozen=True)
class Owner:
    """Owner of a listed object."""

    id: str
    display_name: Optional[str] = None


@dataclass(frozen=True)
class Key:
    """One ``Contents`` entry of a bucket listing."""

    key: str
    last_modified: str
    etag: str
    size: int
    storage_class: str
    owner: Owner


@dataclass(frozen=True)
class KeyList:
    """Parsed ``ListBucketResult`` document."""

    name: str
    max_keys: int
    is_truncated: bool
    keys: tuple[Key, ...] = ()
    prefix: Optional[str] = None
    marker: Optional[str] = None
    next_marker: Optional[str] = None
    delimiter: Optional[str] = None
    common_prefixes: tuple[str, ...] = ()


@dataclass(frozen=True)
class Body:
    """Request body with its declared mimetype."""

    content: bytes = b""
    mimetype: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.content and self.mimetype is None


EMPTY_BODY = Body()


@dataclass(frozen=True)
class RawResponse:
    """Response as received from the wire, before post-processing."""

    status: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")
