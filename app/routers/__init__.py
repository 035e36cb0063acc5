from fastapi import APIRouter
import logging

log = logging.getLogger("routers")


def build_router() -> APIRouter:
    from .health import router as health_router
    from .images import router as images_router
    from .uploads import router as uploads_router

    router = APIRouter()
    for name, sub in (("health", health_router), ("images", images_router), ("uploads", uploads_router)):
        router.include_router(sub)
        log.info("Loaded router: %s", name)
    return router

# Export module-level router so app.main can import it
router = build_router()
