from __future__ import annotations

from fastapi import FastAPI

from tree_highlight.api.lifespan import lifespan
from tree_highlight.api.routes.health import router as health_router
from tree_highlight.api.routes.highlight import router as highlight_router
from tree_highlight.api.routes.languages import router as languages_router
from tree_highlight.api.routes.root import router as root_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="Tree Highlight API",
        description="Syntax highlighting spans from tree-sitter queries, with language injections.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(root_router, include_in_schema=False)
    app.include_router(health_router, include_in_schema=False)
    app.include_router(highlight_router)
    app.include_router(languages_router)

    return app
