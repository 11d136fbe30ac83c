"""Widget engine API.

Compiles the application's widget definitions at startup and serves
them to clients:
- Table widgets from <WIDGET_APP_ROOT>/tables
- Form widgets from <WIDGET_APP_ROOT>/forms

Models, stores and processes belong to the host application, which
passes its catalogs to create_app().
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src import __version__, config
from src.api.routes import widgets
from src.widgets.binder import Binder
from src.widgets.catalog import Resolver
from src.widgets.errors import ClientError, LoadError
from src.widgets.loader import WidgetLoader
from src.widgets.localizer import LangPacks, Localizer
from src.widgets.registry import WidgetRegistry
from src.widgets.schemas import WidgetKind
from src.widgets.validator import Validator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

_KIND_DIRS = {
    WidgetKind.TABLE: config.TABLES_DIR,
    WidgetKind.FORM: config.FORMS_DIR,
}


def build_registries(
    models: Optional[Resolver] = None,
    stores: Optional[Resolver] = None,
    processes: Optional[Resolver] = None,
    components: Optional[Resolver] = None,
) -> dict[WidgetKind, WidgetRegistry]:
    """One registry per widget kind, wired from configuration."""
    binder = Binder(models=models, stores=stores, processes=processes, components=components)
    validator = Validator(processes=processes)
    localizer = Localizer(LangPacks(config.APP_ROOT, config.LOCALE, config.ID_PREFIX))

    registries = {}
    for kind, dirname in _KIND_DIRS.items():
        loader = WidgetLoader(
            binder=binder,
            validator=validator,
            localizer=localizer,
            kind=kind,
            api_namespace=config.API_NAMESPACE,
            workers=config.LOAD_WORKERS,
        )
        registries[kind] = WidgetRegistry(
            loader=loader,
            root=config.APP_ROOT / dirname,
            prefix=config.ID_PREFIX,
        )
    return registries


def create_app(
    models: Optional[Resolver] = None,
    stores: Optional[Resolver] = None,
    processes: Optional[Resolver] = None,
    components: Optional[Resolver] = None,
) -> FastAPI:
    """Create the API app around freshly built registries."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup: compile all widget definitions
        for kind, registry in app.state.registries.items():
            if not registry.root.exists():
                logger.warning(f"{kind.value} definitions directory not found: {registry.root}")
                continue
            logger.info(f"Loading {kind.value} definitions from {registry.root}...")
            try:
                registry.init()
            except LoadError as e:
                logger.error(f"{len(e.result.failures)} {kind.value} definitions failed to load")
            logger.info(f"Loaded {registry.count()} {kind.value} widgets")

        logger.info("Widget engine API ready")
        yield
        # Shutdown
        for registry in app.state.registries.values():
            registry.teardown()
        logger.info("Shutting down widget engine API")

    app = FastAPI(
        title="Widget Engine API",
        description="""
## Widget definitions service

Serves compiled CRUD screen definitions.

### Key Endpoints

- `GET /api/{namespace}/{kind}/{id}/setting` - Client setting of a widget
- `GET /v1/widgets` - List published widget IDs
- `GET /v1/widgets/{kind}/{id}` - Full compiled descriptor
- `POST /v1/widgets/reload` - Reload definitions from disk
""",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.registries = build_registries(models, stores, processes, components)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ClientError)
    async def client_error_handler(request: Request, exc: ClientError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.status_code, "message": exc.message},
        )

    app.include_router(widgets.router)
    app.include_router(widgets.admin_router, prefix="/v1")

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            **{
                f"{kind.value}s_loaded": registry.count()
                for kind, registry in app.state.registries.items()
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=5099,
        reload=True,
    )
