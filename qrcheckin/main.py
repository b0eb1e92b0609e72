# =======================================================================================
# qrcheckin/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .config import Config, config as default_config
from .container import ServiceContainer
from .api.routes.tokens import router as tokens_router
from .api.routes.verification import router as verification_router
from .api.routes.scanner import router as scanner_router
from .models.schemas import HealthResponse

logger = logging.getLogger(__name__)


def configure_logging(settings: Config) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.API_DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Optional[Config] = None, services: Optional[ServiceContainer] = None) -> FastAPI:
    settings = settings or default_config
    configure_logging(settings)

    app = FastAPI(
        title="QR Check-In API",
        version="1.0.0",
        description="Registration QR token issuance and check-in verification",
        debug=settings.API_DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.services = services or ServiceContainer(settings)

    # Routers
    app.include_router(tokens_router, prefix="/api", tags=["tokens"])
    app.include_router(verification_router, prefix="/api", tags=["verification"])
    app.include_router(scanner_router, prefix="/api", tags=["scanner"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        db = app.state.services.db
        if db is None:
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        try:
            db.fetch_one("SELECT 1")
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except Exception as e:
            return HealthResponse(status="error", dataAvailable=False, message=str(e))

    @app.on_event("startup")
    def startup_event():
        app.state.services.startup()
        logger.info("QR Check-In API started")

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.services.shutdown()
        logger.info("QR Check-In API stopped")

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host=default_config.API_HOST, port=default_config.API_PORT)
