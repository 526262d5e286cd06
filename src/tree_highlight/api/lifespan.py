from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tree_highlight.api.dependencies import get_registry
from tree_highlight.core.patterns import clear_pattern_cache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    logger.info("Serving %d languages", len(get_registry().names()))
    yield
    clear_pattern_cache()
