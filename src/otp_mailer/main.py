"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from otp_mailer.api.routes import router
from otp_mailer.config import Settings, settings as default_settings
from otp_mailer.dependencies import Services, build_services
from otp_mailer.errors import register_error_handlers

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level.upper(),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Create the app; *services* lets tests inject a prebuilt graph."""
    settings = settings or default_settings
    services = services or build_services(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup / shutdown lifecycle hook."""
        logger.info("Starting %s email service …", settings.app_name)
        await services.startup()
        yield
        logger.info("Shutting down %s email service …", settings.app_name)
        await services.shutdown()

    app = FastAPI(
        title=f"{settings.app_name} Email Service",
        description="One-time-password issuance and verification over email",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(router)
    return app


configure_logging(default_settings)

app = create_app()
