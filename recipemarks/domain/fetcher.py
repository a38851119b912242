import asyncio
import logging
from urllib.parse import urljoin
import zlib

import httpx

from recipemarks.domain.errors import (
    InvalidInput,
    NotHtml,
    PayloadTooLarge,
    Timeout,
    UpstreamStatus,
    UpstreamUnreachable,
)
from recipemarks.domain.models import FetchResult
from recipemarks.domain.policy import ExtractionPolicy
from recipemarks.domain.urls import validate


logger = logging.getLogger(__name__)


HTML_TYPES = frozenset({"text/html", "application/xhtml+xml"})


def media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def inflater(content_encoding: str):
    """zlib decoder for a compressed body, None for a plain one."""
    match content_encoding.strip().lower():
        case "" | "identity":
            return None
        case "gzip" | "x-gzip" | "deflate":
            # Accepts both gzip and zlib headers.
            return zlib.decompressobj(zlib.MAX_WBITS | 32)
        case other:
            raise UpstreamUnreachable(f"Unsupported content encoding {other!r}.")


class PageFetcher:
    """Single GET of an HTML page under a time budget and a byte budget.

    The time budget covers the whole call: connecting, every redirect hop,
    headers and body. A client is opened per call and closed before returning,
    also when the call is cancelled.

    The byte budget applies to the decoded body. Compressed bodies are
    inflated here in steps that never exceed the remaining budget.
    """

    def __init__(
        self,
        policy: ExtractionPolicy,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.policy = policy
        self.transport = transport

    def client(self, time_limit: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.transport,
            headers={
                "User-Agent": self.policy.user_agent,
                "Accept": "text/html,application/xhtml+xml",
                "Accept-Encoding": "gzip, deflate",
            },
            timeout=time_limit,
            follow_redirects=False,
        )

    async def fetch(
        self,
        url: str,
        *,
        time_limit: float | None = None,
        byte_limit: int | None = None,
    ) -> FetchResult:
        time_limit = self.policy.time_limit if time_limit is None else time_limit
        byte_limit = self.policy.byte_limit if byte_limit is None else byte_limit

        try:
            async with asyncio.timeout(time_limit):
                async with self.client(time_limit) as client:
                    return await self._follow(client, url, byte_limit)
        except (TimeoutError, httpx.TimeoutException) as e:
            raise Timeout(f"{url} did not answer within {time_limit}s.") from e
        except httpx.InvalidURL as e:
            raise InvalidInput(f"Cannot request {url}: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamUnreachable(f"Could not reach {url}: {e!r}") from e

    async def _follow(
        self,
        client: httpx.AsyncClient,
        url: str,
        byte_limit: int,
    ) -> FetchResult:
        # Every hop is screened again, a public page may redirect inwards.
        for _ in range(self.policy.max_redirects + 1):
            verdict = validate(url, self.policy)
            if not verdict.allowed:
                reason = verdict.reason.value if verdict.reason else "rejected"
                raise InvalidInput(f"Refusing to fetch {url} ({reason}).")

            response = await client.send(client.build_request("GET", url), stream=True)
            try:
                if response.is_redirect:
                    location = response.headers["location"]
                    try:
                        url = urljoin(str(response.url), location)
                    except ValueError as e:
                        raise InvalidInput(
                            f"{response.url} redirects to an unusable location {location!r}."
                        ) from e
                    logger.info("Redirected to %s", url)
                    continue
                return await self._read(response, byte_limit)
            finally:
                await response.aclose()

        raise UpstreamUnreachable(f"More than {self.policy.max_redirects} redirects.")

    async def _read(self, response: httpx.Response, byte_limit: int) -> FetchResult:
        url = str(response.url)
        if not response.is_success:
            raise UpstreamStatus(response.status_code)

        content_type = response.headers.get("content-type", "")
        if media_type(content_type) not in HTML_TYPES:
            raise NotHtml(f"{url} is {content_type or 'untyped'}, not HTML.")

        declared = response.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > byte_limit:
            raise PayloadTooLarge(f"{url} declares {declared} bytes.")

        inflate = inflater(response.headers.get("content-encoding", ""))
        body = bytearray()
        try:
            async for raw in response.aiter_raw():
                if inflate is None:
                    chunk = raw
                else:
                    # One byte past the budget is enough to know it is over.
                    chunk = inflate.decompress(raw, byte_limit + 1 - len(body))
                if len(body) + len(chunk) > byte_limit:
                    raise PayloadTooLarge(f"{url} is larger than {byte_limit} bytes.")
                body.extend(chunk)
            if inflate is not None:
                body.extend(inflate.flush())
        except zlib.error as e:
            raise UpstreamUnreachable(f"{url} sent a corrupt compressed body.") from e
        if len(body) > byte_limit:
            raise PayloadTooLarge(f"{url} is larger than {byte_limit} bytes.")

        logger.debug("Fetched %d bytes from %s", len(body), url)
        return FetchResult(
            url=url,
            status=response.status_code,
            content_type=content_type,
            body=bytes(body),
            encoding=response.charset_encoding or "utf-8",
        )
