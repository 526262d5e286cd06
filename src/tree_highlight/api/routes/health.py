from fastapi import APIRouter, Depends, Response, status

from tree_highlight.api.dependencies import get_registry
from tree_highlight.api.schemas import HealthResponse, ReadinessResponse
from tree_highlight.core.errors import HighlightError
from tree_highlight.core.languages import LanguageRegistry
from tree_highlight.core.patterns import load_pattern_set

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


@router.get("/healthz/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness probe: is the process alive?"""
    return HealthResponse()


@router.get("/healthz/ready", response_model=ReadinessResponse)
def readiness(
    response: Response,
    registry: LanguageRegistry = Depends(get_registry),
) -> ReadinessResponse:
    """Readiness probe: can at least one language be highlighted?"""
    ready = 0
    for name in registry.names():
        try:
            load_pattern_set(name, "highlights", registry)
        except HighlightError:
            continue
        ready += 1
    if ready:
        return ReadinessResponse(status="ok", languages=ready)
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status="degraded", languages=0)
