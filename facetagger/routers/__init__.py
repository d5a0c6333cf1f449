from fastapi import APIRouter
import logging

from .gateway import router as gateway_router
from .health import router as health_router
from .images import router as images_router
from .telegram import router as telegram_router
from .triggers import router as triggers_router


def build_router() -> APIRouter:
    router = APIRouter()
    log = logging.getLogger("routers")

    for name, sub in (
        ("gateway", gateway_router),
        ("triggers", triggers_router),
        ("telegram", telegram_router),
        ("images", images_router),
        ("health", health_router),
    ):
        router.include_router(sub)
        log.info("Loaded router: %s", name)
    return router


# Export module-level router so facetagger.main can import it
router = build_router()
