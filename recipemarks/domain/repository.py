from typing import Any, Protocol

from recipemarks.domain.models import Recipe


class RecipeNotFound(Exception):
    pass


class RecipeRepository(Protocol):
    async def put(self, recipe: Recipe) -> None:
        ...

    async def get(self, id: str) -> Recipe:
        ...

    async def list(self) -> list[Recipe]:
        ...


class InMemoryRecipeRepository:
    """Key-value recipe store. Keys are recipe ids."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}

    async def put(self, recipe: Recipe) -> None:
        self.records[recipe.id] = recipe.to_dict()

    async def get(self, id: str) -> Recipe:
        try:
            record = self.records[id]
        except KeyError:
            raise RecipeNotFound(id) from None
        return Recipe(**record)

    async def list(self) -> list[Recipe]:
        return [Recipe(**r) for r in self.records.values()]
