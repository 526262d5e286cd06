import logging

from fastapi import APIRouter, Depends

from tree_highlight.api.dependencies import get_registry
from tree_highlight.api.schemas import HighlightRequest, HighlightResponse
from tree_highlight.core.errors import HighlightError
from tree_highlight.core.highlighter import highlight as _highlight
from tree_highlight.core.languages import LanguageRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["highlight"])


# Runs in Starlette's worker thread pool.
@router.post("/highlight", response_model=HighlightResponse)
def highlight(
    request: HighlightRequest,
    registry: LanguageRegistry = Depends(get_registry),
) -> HighlightResponse:
    source = request.code.encode("utf-8")
    language = registry.normalize(request.language)
    try:
        spans = _highlight(source, language, byte_range=request.byte_range(len(source)), registry=registry)
    except HighlightError as exc:
        logger.warning("Returning plain text for %s: %s", language, exc)
        return HighlightResponse(language=language, spans=[], degraded=True, detail=str(exc))
    return HighlightResponse(language=language, spans=spans)
