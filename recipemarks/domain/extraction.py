import logging
from typing import Iterable

import httpx

from recipemarks.domain.errors import (
    ExtractionError,
    InvalidInput,
    NoMatch,
    UpstreamStatus,
)
from recipemarks.domain.fetcher import PageFetcher
from recipemarks.domain.metadata import (
    IMAGE_CANDIDATES,
    TITLE_CANDIDATES,
    Matcher,
    extract_field,
)
from recipemarks.domain.models import (
    NOTHING,
    ExtractionResult,
    FetchResult,
    MetaField,
)
from recipemarks.domain.policy import ExtractionPolicy
from recipemarks.domain.urls import hostname, is_allowed, resolve_image_url, validate


logger = logging.getLogger(__name__)


def find(page: FetchResult, candidates: Iterable[Matcher]) -> MetaField:
    found = extract_field(page.text(), candidates)
    if found is None:
        raise NoMatch(f"None of the expected tags are on {page.url}.")
    return found


class MetadataExtractor:
    """Preview image and title of a user-submitted page.

    Holds nothing but the policy and a transport, so one instance can serve
    any number of concurrent calls.
    """

    def __init__(
        self,
        policy: ExtractionPolicy | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.policy = ExtractionPolicy() if policy is None else policy
        self.fetcher = PageFetcher(self.policy, transport=transport)

    async def page(self, url: str) -> FetchResult:
        verdict = validate(url, self.policy)
        if not verdict.allowed:
            reason = verdict.reason.value if verdict.reason else "rejected"
            raise InvalidInput(f"Refusing to fetch {url!r} ({reason}).")
        return await self.fetcher.fetch(url)

    async def preview_image(self, url: str) -> ExtractionResult:
        """Best effort. Every failure is logged and comes back as no image."""
        try:
            page = await self.page(url)
            found = find(page, IMAGE_CANDIDATES)
        except ExtractionError as e:
            logger.warning("No preview image for %s (%s): %s", url, e.kind.value, e)
            return NOTHING

        # The page chose this address, so it is screened like user input.
        image = resolve_image_url(found.value, page.url)
        if not is_allowed(image, self.policy):
            logger.warning("Dropping %s %r found on %s", found.kind.value, image, url)
            return NOTHING

        return ExtractionResult(value=image, source=found.kind)

    async def title(self, url: str) -> ExtractionResult:
        """Page title, falling back to the host name.

        Raises:
            ExtractionError: the URL was refused or the page could not be
                retrieved within the policy's limits.
        """
        try:
            found = find(await self.page(url), TITLE_CANDIDATES)
        except (UpstreamStatus, NoMatch) as e:
            logger.info("Using host name as title for %s: %s", url, e)
            return ExtractionResult(value=hostname(url))
        return ExtractionResult(value=found.value, source=found.kind)


async def extract_preview_image(
    url: str,
    *,
    extractor: MetadataExtractor | None = None,
) -> str | None:
    extractor = MetadataExtractor() if extractor is None else extractor
    return (await extractor.preview_image(url)).value


async def extract_title(url: str, *, extractor: MetadataExtractor | None = None) -> str:
    extractor = MetadataExtractor() if extractor is None else extractor
    result = await extractor.title(url)
    return result.value or hostname(url)
