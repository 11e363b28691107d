import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from doc_vault.api.fastapi.middleware.errors.catchall import CatchAllExceptionMiddleware
from doc_vault.api.fastapi.middleware.errors.handlers import register_error_handlers
from doc_vault.api.fastapi.middleware.request_size_limit import RequestSizeLimitMiddleware
from doc_vault.api.fastapi.routers import register_all_routers
from doc_vault.api.fastapi.settings import ApiConfig
from doc_vault.app import CURRENT_ENVIRONMENT
from doc_vault.app.settings import StorageSettings, get_app_settings, get_storage_settings
from doc_vault.documents.service import DocumentService

logger = logging.getLogger(__name__)


def create_app(
        settings: StorageSettings | None = None,
        api_config: ApiConfig | None = None,
        service: DocumentService | None = None,
) -> FastAPI:
    """Build the HTTP app around a single ``DocumentService``.

    The service's storage directories are created on startup. Pass
    ``service`` to share one engine between several apps (tests do).
    """
    settings = settings or get_storage_settings()
    api_config = api_config or ApiConfig()
    service = service or DocumentService.from_settings(settings)
    app_settings = get_app_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service.initialize()
        logger.info(
            "%s %s serving documents from %s [env: %s]",
            app_settings.name,
            app_settings.version,
            settings.storage_dir,
            CURRENT_ENVIRONMENT,
        )
        yield
        logger.info("%s shutting down", app_settings.name)

    app = FastAPI(title=app_settings.name, version=app_settings.version, lifespan=lifespan)
    app.state.document_service = service
    app.state.storage_settings = settings

    origins = api_config.cors_origins or settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_bytes=settings.max_files_per_batch * settings.max_file_size
        + api_config.multipart_overhead_bytes,
    )
    app.add_middleware(CatchAllExceptionMiddleware)
    register_error_handlers(app)

    register_all_routers(app, prefix=api_config.base_prefix)
    return app
