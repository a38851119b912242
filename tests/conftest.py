import inspect
from typing import Any, Callable

import httpx
import pytest

from recipemarks.domain.extraction import MetadataExtractor
from recipemarks.domain.policy import ExtractionPolicy


type Handler = Callable[[httpx.Request], Any]


@pytest.fixture
def seen() -> list[httpx.Request]:
    """Every request that reached the fake network."""
    return []


@pytest.fixture
def transport(seen: list[httpx.Request]) -> Callable[[Handler], httpx.MockTransport]:
    def factory(handler: Handler) -> httpx.MockTransport:
        async def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            response = handler(request)
            if inspect.isawaitable(response):
                response = await response
            return response

        return httpx.MockTransport(recording)

    return factory


@pytest.fixture
def extractor(
    transport: Callable[[Handler], httpx.MockTransport],
) -> Callable[..., MetadataExtractor]:
    def factory(handler: Handler, **limits: Any) -> MetadataExtractor:
        return MetadataExtractor(ExtractionPolicy(**limits), transport=transport(handler))

    return factory
