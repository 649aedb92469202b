import logging
import os
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from vintner.api.graphql import create_graphql_router
from vintner.core.dependencies import get_catalog
from vintner.domain.catalog import Catalog

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

_PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_PORT = 4000
PORT_ENV_VAR = "VINTNER_PORT"

# HTML templates (Jinja2)
templates = Jinja2Templates(directory=str(_PACKAGE_DIR / "templates"))


def create_app() -> FastAPI:
    """
    Build the FastAPI application.

    The catalog is loaded here rather than lazily on the first request, so a
    malformed data directory stops the service at startup.
    """
    catalog = get_catalog()
    config = catalog.config

    app = FastAPI(
        title=config.service_name,
        version="0.1.0",
        description=config.description,
    )

    # Static files (CSS)
    app.mount("/static", StaticFiles(directory=str(_PACKAGE_DIR / "static")), name="static")

    app.include_router(create_graphql_router(graphql_ide=config.graphql_ide), prefix="/graphql")

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request, catalog: Catalog = Depends(get_catalog)) -> HTMLResponse:
        """
        Landing page listing the catalog, so you can see something in a browser.
        """
        varietals = {v.id: v for v in catalog.list_varietals()}
        wineries = {w.id: w for w in catalog.list_wineries()}
        rows = [
            {
                "wine": wine,
                "varietal": varietals.get(wine.varietal_id),
                "winery": wineries.get(wine.winery_id),
            }
            for wine in catalog.list_wines()
        ]
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "title": catalog.config.service_name,
                "description": catalog.config.description,
                "rows": rows,
                "stats": catalog.get_stats(),
            },
        )

    @app.get("/health")
    async def health(catalog: Catalog = Depends(get_catalog)) -> dict:
        """
        Lightweight health check endpoint.
        """
        stats = catalog.get_stats()
        return {
            "status": "ok",
            "varietals": stats.varietal_count,
            "wineries": stats.winery_count,
            "wines": stats.wine_count,
        }

    logger.info(
        "%s ready (write_back=%s)", config.service_name, config.write_back
    )
    return app


if __name__ == "__main__":
    """
    Allow running `python -m vintner.main` to start the Uvicorn development server.
    """
    import uvicorn

    uvicorn.run(
        "vintner.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.environ.get(PORT_ENV_VAR, DEFAULT_PORT)),
        reload=True,
    )
