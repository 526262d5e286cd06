from fastapi import APIRouter, Depends

from tree_highlight.api.dependencies import get_registry
from tree_highlight.api.schemas import LanguageInfo
from tree_highlight.core.errors import HighlightError
from tree_highlight.core.injections import static_injection_languages
from tree_highlight.core.languages import LanguageRegistry
from tree_highlight.core.patterns import load_pattern_set

router = APIRouter(tags=["languages"])


@router.get("/languages", response_model=list[LanguageInfo])
def languages(registry: LanguageRegistry = Depends(get_registry)) -> list[LanguageInfo]:
    infos = []
    for name in registry.names():
        try:
            injects = static_injection_languages(load_pattern_set(name, "injections", registry))
        except HighlightError:
            infos.append(LanguageInfo(name=name, injects=[], available=False))
            continue
        infos.append(LanguageInfo(name=name, injects=injects))
    return infos
