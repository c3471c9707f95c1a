"""
S3 / DigitalOcean Spaces client.

Signs requests with AWS Signature Version 4, sends them over httpx and
parses bucket listings into typed results.
"""

import logging

__version__ = "1.0.0"

from s3spaces.config import decode_accounts, find_account, load_accounts
from s3spaces.dispatcher import Dispatcher
from s3spaces.endpoint import ServiceEndpoint, resolve_endpoint
from s3spaces.errors import (
    ConfigError,
    DecodeError,
    MalformedPayload,
    MalformedXmlError,
    ParseError,
    S3SpacesError,
    TransportError,
)
from s3spaces.models import Account, Body, Key, KeyList, Owner, Provider
from s3spaces.request import (
    AnyQuery,
    CannedAcl,
    Delimiter,
    Marker,
    MaxKeys,
    Prefix,
    Request,
    delete_object,
    get_object,
    get_object_bytes,
    get_object_with_headers,
    head_object,
    html_body,
    json_body,
    list_keys,
    put_html_object,
    put_object,
    put_public_object,
    string_body,
)
from s3spaces.signing import SignedRequest, Signer

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "Account",
    "AnyQuery",
    "Body",
    "CannedAcl",
    "ConfigError",
    "DecodeError",
    "Delimiter",
    "Dispatcher",
    "Key",
    "KeyList",
    "MalformedPayload",
    "MalformedXmlError",
    "Marker",
    "MaxKeys",
    "Owner",
    "ParseError",
    "Prefix",
    "Provider",
    "Request",
    "S3SpacesError",
    "ServiceEndpoint",
    "SignedRequest",
    "Signer",
    "TransportError",
    "decode_accounts",
    "delete_object",
    "find_account",
    "get_object",
    "get_object_bytes",
    "get_object_with_headers",
    "head_object",
    "html_body",
    "json_body",
    "list_keys",
    "load_accounts",
    "put_html_object",
    "put_object",
    "put_public_object",
    "resolve_endpoint",
    "string_body",
]
