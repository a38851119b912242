import contextlib
import functools
import hmac
import logging
from typing import Awaitable, Callable

from starlette.applications import Starlette
from starlette.datastructures import FormData
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from recipemarks import config
from recipemarks.domain.errors import ErrorKind, ExtractionError
from recipemarks.domain.extraction import MetadataExtractor, extract_title
from recipemarks.domain.repository import (
    InMemoryRecipeRepository,
    RecipeNotFound,
    RecipeRepository,
)
from recipemarks.domain.services import (
    InvalidUpdate,
    create_recipe,
    list_recipes,
    update_recipe,
)


logger = logging.getLogger(__name__)


ERROR_STATUS = {
    ErrorKind.invalid_input: 400,
    ErrorKind.upstream_unreachable: 502,
    ErrorKind.payload_too_large: 502,
    ErrorKind.not_html: 422,
    ErrorKind.timeout: 504,
}


type Endpoint = Callable[[Request], Awaitable[Response]]


def authorized(route: Endpoint) -> Endpoint:
    """Shared secret in the Authorization header, compared verbatim."""

    @functools.wraps(route)
    async def wrapper(request: Request) -> Response:
        secret: str = request.app.state.config.api_secret
        given = request.headers.get("authorization")
        if not (
            secret
            and given is not None
            and hmac.compare_digest(given.encode(), secret.encode())
        ):
            return PlainTextResponse("Unauthorized", status_code=401)
        return await route(request)

    return wrapper


def form_field(form: FormData, name: str) -> str | None:
    value = form.get(name)
    return value if isinstance(value, str) and value else None


@authorized
async def recipes(request: Request) -> Response:
    repo: RecipeRepository = request.app.state.repo
    match request.method.lower():
        case "get":
            found = await list_recipes(repository=repo)
            return JSONResponse([r.to_dict() for r in found])
        case "post":
            async with request.form() as form:
                title = form_field(form, "title")
                url = form_field(form, "url")
                text = form_field(form, "text")
            recipe = await create_recipe(
                title=title,
                url=url,
                text=text,
                repository=repo,
                extractor=request.app.state.extractor,
            )
            return JSONResponse(recipe.to_dict())
        case _:
            raise ValueError("Unsupported method.")


@authorized
async def recipe_detail(request: Request) -> Response:
    id = request.path_params["id"]
    try:
        updates = await request.json()
    except ValueError:
        return PlainTextResponse("Body must be JSON.", status_code=400)
    if not isinstance(updates, dict):
        return PlainTextResponse("Body must be a JSON object.", status_code=400)

    try:
        recipe = await update_recipe(id, updates, repository=request.app.state.repo)
    except RecipeNotFound:
        return PlainTextResponse("Recipe not found", status_code=404)
    except InvalidUpdate as e:
        return PlainTextResponse(str(e), status_code=400)
    return JSONResponse(recipe.to_dict())


@authorized
async def title_lookup(request: Request) -> Response:
    url = request.query_params.get("url", "").strip()
    if not url:
        return JSONResponse(
            {"error": ErrorKind.invalid_input.value, "detail": "Missing url."},
            status_code=ERROR_STATUS[ErrorKind.invalid_input],
        )

    try:
        title = await extract_title(url, extractor=request.app.state.extractor)
    except ExtractionError as e:
        logger.info("Title lookup for %s failed: %s", url, e)
        return JSONResponse(
            {"error": e.kind.value, "detail": str(e)},
            status_code=ERROR_STATUS[e.kind],
        )
    return JSONResponse({"title": title})


def create_app(
    cfg: config.Config | None = None,
    *,
    repository: RecipeRepository | None = None,
    extractor: MetadataExtractor | None = None,
) -> Starlette:
    cfg = config.Config() if cfg is None else cfg

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        logging.basicConfig(
            level=cfg.log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        logger.info("Starting in %s mode", cfg.env.value)
        yield

    app = Starlette(
        debug=cfg.env == config.Env.local,
        routes=[
            Route("/recipes", recipes, methods=["GET", "POST"]),
            Route("/recipes/{id:str}", recipe_detail, methods=["PATCH"]),
            Route("/extract-title", title_lookup, methods=["GET"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=cfg.cors_origins,
                allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
                allow_headers=["Content-Type", "Authorization"],
            )
        ],
        lifespan=lifespan,
    )

    app.state.config = cfg
    app.state.repo = InMemoryRecipeRepository() if repository is None else repository
    app.state.extractor = (
        MetadataExtractor(cfg.policy()) if extractor is None else extractor
    )
    return app


app = create_app()
