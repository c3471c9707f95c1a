"""Request dispatch.

Sends a Request for an Account and returns the operation's result:

    async with Dispatcher() as dispatcher:
        keys = await dispatcher.send(account, list_keys("b1", MaxKeys(100)))

Each send resolves the account's endpoint, signs the request with a fresh
timestamp, performs one HTTP exchange over httpx and hands the raw
response to the request's transform. Statuses outside 200-299 raise
TransportError carrying the status and body.

An exchange may instead raise MalformedPayload when it received a body
it would not deliver as a success. That body is recovered and treated as
the successful response, so it still flows through the transform and
can itself fail with MalformedXmlError or ParseError.

No retries, timeouts or cancellation are added here; callers wanting
them wrap send().
"""

import asyncio
import logging
from typing import Any, Iterable, Optional, TypeVar

import httpx

from s3spaces.endpoint import resolve_endpoint
from s3spaces.errors import MalformedPayload, TransportError
from s3spaces.models import Account, RawResponse
from s3spaces.request import Request
from s3spaces.signing import SignedRequest, Signer

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class Dispatcher:
    """Signs and sends requests, then post-processes their responses.

    Holds no per-request state, so concurrent sends are independent.
    Can be used as an async context manager to close an owned client.

    The built-in httpx exchange checks status codes itself and never
    raises MalformedPayload. Subclasses that override _exchange for a
    backend reporting good bodies as failures raise it to have the body
    recovered as a success.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        signer: Optional[Signer] = None,
    ):
        """Initialize the dispatcher.

        Args:
            client: httpx client to send with. If omitted, one is created
                    and closed by aclose().
            signer: Signer to use (inject a fixed clock for tests).
        """
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()
        self.signer = signer if signer is not None else Signer()

    async def send(self, account: Account, request: Request[T]) -> T:
        """Sign and send a request, returning its transformed result.

        Raises:
            TransportError: If the exchange fails or the status isn't 2xx.
            MalformedXmlError: If a listing body isn't XML.
            ParseError: If a listing body doesn't match the schema.
        """
        endpoint = resolve_endpoint(account)
        signed = self.signer.sign(request, account, endpoint)

        try:
            response = await self._exchange(signed)
        except MalformedPayload as e:
            logger.debug(
                "Recovered %d byte payload from %s %s",
                len(e.body or b""), signed.method, signed.url,
            )
            response = RawResponse(
                status=e.status or 200, headers=e.headers, body=e.body or b""
            )

        return request.transform(response)

    async def send_all(
        self, account: Account, requests: Iterable[Request[Any]]
    ) -> list[Any]:
        """Send independent requests concurrently.

        Returns:
            Results in the order of the requests. The first failure
            propagates; the other sends are not cancelled.
        """
        return list(await asyncio.gather(
            *(self.send(account, request) for request in requests)
        ))

    async def _exchange(self, signed: SignedRequest) -> RawResponse:
        """Perform the HTTP exchange for a signed request.

        Raises:
            TransportError: On network failure or a non-2xx status.
        """
        try:
            response = await self.client.request(
                signed.method,
                signed.url,
                headers=signed.headers,
                content=signed.content or None,
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", signed.method, signed.url, e)
            raise TransportError(f"{signed.method} {signed.url} failed: {e}") from e

        logger.debug(
            "%s %s -> %d", signed.method, signed.url, response.status_code
        )

        if not is_success(response.status_code):
            raise TransportError(
                f"{signed.method} {signed.url} returned HTTP {response.status_code}",
                status=response.status_code,
                body=response.content,
            )

        return RawResponse(
            status=response.status_code,
            headers=response.headers.multi_items(),
            body=response.content,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "Dispatcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.aclose()
        return False
