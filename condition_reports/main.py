import logging
from contextlib import asynccontextmanager
from io import BytesIO

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from fastapi.staticfiles import StaticFiles

from .api import auth, catalog, media, pdf, properties, public, reports, system
from .config import Base, engine, settings
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .core.request_context import RequestContextMiddleware
from .core.security import SecurityHeadersMiddleware, log_security_warnings
from .services.heartbeat import Heartbeat
from .services.storage import StorageBackend, get_storage

logger = logging.getLogger(__name__)

configure_logging(settings.log_level, settings.log_format)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_security_warnings(settings.jwt_secret, settings.data_source, settings.public_base_url)
    if settings.data_source == "database":
        # In dev we make sure tables exist. Alembic migrations should be used for real schema evolution.
        Base.metadata.create_all(bind=engine)

    heartbeat = Heartbeat(settings.heartbeat_interval_seconds)
    app.state.heartbeat = heartbeat
    if settings.heartbeat_enabled:
        heartbeat.start()
    logger.info("Application started", extra={"data_source": settings.data_source})
    try:
        yield
    finally:
        await heartbeat.stop()


app = FastAPI(title=f"{settings.app_name} Condition Reports", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestContextMiddleware)

register_exception_handlers(app)

storage_service = get_storage()
uploads_route = "/" + settings.uploads_public_prefix.strip("/")
if storage_service.backend == StorageBackend.LOCAL:
    uploads_dir = settings.uploads_root_path
    uploads_dir.mkdir(parents=True, exist_ok=True)
    app.mount(uploads_route, StaticFiles(directory=str(uploads_dir)), name="uploads")
else:

    @app.get(f"{uploads_route}/{{path:path}}", include_in_schema=False)
    def proxy_uploads(path: str):
        file_data = storage_service.retrieve_file(path)
        return StreamingResponse(BytesIO(file_data.content), media_type=file_data.content_type)


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(properties.router, prefix="/properties", tags=["properties"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])
app.include_router(catalog.router, tags=["catalog"])
app.include_router(media.router, prefix="/media", tags=["media"])
app.include_router(public.router, prefix="/public", tags=["public"])
app.include_router(pdf.router, tags=["pdf"])
app.include_router(system.router, tags=["system"])
