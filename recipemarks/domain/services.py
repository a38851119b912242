import logging
from typing import Any

from recipemarks.domain.extraction import MetadataExtractor
from recipemarks.domain.models import Recipe
from recipemarks.domain.repository import RecipeRepository


logger = logging.getLogger(__name__)


EDITABLE = frozenset({"title", "url", "text", "deleted"})


class InvalidUpdate(ValueError):
    pass


async def create_recipe(
    *,
    title: str | None,
    url: str | None,
    text: str | None,
    repository: RecipeRepository,
    extractor: MetadataExtractor,
) -> Recipe:
    image = None
    if url:
        try:
            image = (await extractor.preview_image(url)).value
        except Exception:
            # Enrichment only, the recipe is stored either way.
            logger.exception("Preview image extraction crashed for %s", url)

    recipe = Recipe.new(title=title, url=url, text=text, image=image)
    await repository.put(recipe)
    logger.info("Stored recipe %s", recipe.id)
    return recipe


async def list_recipes(*, repository: RecipeRepository) -> list[Recipe]:
    """Recipes that are not soft-deleted, newest first."""
    recipes = [r for r in await repository.list() if not r.deleted]
    return sorted(recipes, key=lambda r: r.created or "", reverse=True)


async def update_recipe(
    id: str,
    updates: dict[str, Any],
    *,
    repository: RecipeRepository,
) -> Recipe:
    if "deleted" in updates and not isinstance(updates["deleted"], bool):
        raise InvalidUpdate("deleted must be true or false.")

    recipe = await repository.get(id)
    for key, value in updates.items():
        if key in EDITABLE:
            setattr(recipe, key, value)
    await repository.put(recipe)
    return recipe
