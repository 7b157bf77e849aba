# kickstart/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from kickstart.api.routes import routers
from kickstart.core.exception_handlers import register_exception_handlers
from kickstart.core.logging_config import get_loggers
from kickstart.core.middleware import MaxBodySizeMiddleware
from kickstart.core.settings import get_settings
from kickstart.db.seed_indexes import ensure_indexes
from kickstart.services.storage.blob_store import mount_uploads

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- startup ---
    logger, logger_error, _ = get_loggers()
    try:
        await ensure_indexes()
    except PyMongoError as e:
        # l'API démarre quand même ; /health signalera la base indisponible
        logger_error.error(f"Index creation failed at startup: {e}")
    logger.info(f"{settings.app_name} API started ({settings.environment})")

    yield  # l'app tourne ici

    # --- shutdown ---
    # rien pour le moment


app = FastAPI(title=f"{settings.app_name} API", version=settings.api_version, lifespan=lifespan)
# ⚠️ Ordre des middlewares = ordre d’ajout.
# Mets la limite de taille tôt, avant (ou à côté de) CORS/GZip/etc.
app.add_middleware(
    MaxBodySizeMiddleware,
    max_body_size=settings.max_upload_bytes,
    exclude_paths=("/health",),
)
# Autorise le frontend à se connecter
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for r in routers:
    app.include_router(r)

mount_uploads(app, settings)
