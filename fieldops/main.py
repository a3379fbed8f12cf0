from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fieldops.core.config import settings
from fieldops.core.feature_cache import FeatureFlagCache
from fieldops.core.logging_config import setup_logging
import fieldops.models  # noqa: F401  # force model registration

from fieldops.api.v1.access import router as access_router
from fieldops.api.v1.org_features import router as org_features_router
from fieldops.api.v1.preferences import router as preferences_router


def create_application() -> FastAPI:
    setup_logging(settings)

    app = FastAPI(title="FieldOps Access API")

    # One flag cache per process; routers reach it through app.state
    app.state.feature_cache = FeatureFlagCache(
        stale_after=settings.FEATURE_CACHE_STALE_SECONDS,
        expire_after=settings.FEATURE_CACHE_EXPIRE_SECONDS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"status": "ok", "service": "fieldops-access"}

    # Routers
    app.include_router(access_router, prefix="/api/v1")
    app.include_router(org_features_router, prefix="/api/v1")
    app.include_router(preferences_router, prefix="/api/v1")

    return app


app = create_application()
