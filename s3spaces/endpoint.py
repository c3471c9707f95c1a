"""Service endpoint resolution.

Maps an Account to the host, signing region and addressing style used
for its requests. Protocol metadata (endpoint prefix, API version, wire
protocol) comes from the S3 service model bundled with botocore.

The signature version is always 's3v4'; both Amazon S3 and DigitalOcean
Spaces accept SigV4 signed requests.
"""

import functools
from dataclasses import dataclass
from typing import Optional

import botocore.session

from s3spaces.models import Account, Provider

# Region used to sign requests against the global Amazon endpoint
DEFAULT_AMAZON_REGION = "us-east-1"

# Spaces has no global endpoint
DEFAULT_DIGITAL_OCEAN_REGION = "nyc3"

SIGNATURE_VERSION = "s3v4"


@dataclass(frozen=True)
class ServiceMetadata:
    """Protocol metadata shared by every S3 endpoint."""

    endpoint_prefix: str
    api_version: str
    protocol: str


@functools.lru_cache(maxsize=None)
def service_metadata() -> ServiceMetadata:
    """Load S3 protocol metadata from botocore's service model."""
    model = botocore.session.get_session().get_service_model("s3")
    return ServiceMetadata(
        endpoint_prefix=model.endpoint_prefix,
        api_version=model.api_version,
        protocol=model.protocol,
    )


@dataclass(frozen=True)
class ServiceEndpoint:
    """Where and how requests for one account are sent and signed."""

    host: str
    signing_region: str
    endpoint_prefix: str = "s3"
    api_version: str = "2006-03-01"
    protocol: str = "rest-xml"
    signature_version: str = SIGNATURE_VERSION
    scheme: str = "https"
    addressing_style: str = "path"

    def url(self, path: str, query_string: str = "") -> str:
        """Build a path-style URL; path and query must already be encoded."""
        url = f"{self.scheme}://{self.host}{path}"
        if query_string:
            url = f"{url}?{query_string}"
        return url


def host_for(provider: Provider, region: Optional[str]) -> str:
    """Return the endpoint host for a provider flavor and region."""
    if provider is Provider.DIGITAL_OCEAN:
        return f"{region or DEFAULT_DIGITAL_OCEAN_REGION}.digitaloceanspaces.com"
    if not region:
        return "s3.amazonaws.com"
    return f"s3.{region}.amazonaws.com"


def signing_region_for(provider: Provider, region: Optional[str]) -> str:
    """Return the region named in the credential scope."""
    if region:
        return region
    if provider is Provider.DIGITAL_OCEAN:
        return DEFAULT_DIGITAL_OCEAN_REGION
    return DEFAULT_AMAZON_REGION


def resolve_endpoint(account: Account) -> ServiceEndpoint:
    """Resolve the service endpoint for an account.

    Args:
        account: Account whose region and provider select the endpoint.

    Returns:
        A ServiceEndpoint. The same account always yields an equal value.
    """
    metadata = service_metadata()
    return ServiceEndpoint(
        host=host_for(account.provider, account.region),
        signing_region=signing_region_for(account.provider, account.region),
        endpoint_prefix=metadata.endpoint_prefix,
        api_version=metadata.api_version,
        protocol=metadata.protocol,
    )
