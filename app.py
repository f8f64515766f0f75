from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dotenv import load_dotenv

from persistence import (
    IMAGE_SCHEMA,
    IMAGES,
    QUIZ_SCHEMA,
    QUIZZES,
    AsyncCollection,
    DocumentStore,
    NotFoundError,
    StorageCorruptError,
    StorageIOError,
    ValidationError,
)
from quiz_generator import QuizGenerator
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> DocumentStore:
    if settings.persist_to_disk:
        return DocumentStore(settings.data_dir)
    logger.warning("PERSISTENCE: PERSIST_TO_DISK is off; collections live in memory only")
    return DocumentStore.in_memory()


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return JSONResponse({"error": str(exc), "fields": list(exc.fields)}, status_code=422)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse({"error": "not found", "id": exc.record_id}, status_code=404)

    @app.exception_handler(StorageIOError)
    async def _storage_io(request: Request, exc: StorageIOError):
        logger.error("STORAGE: %s", exc)
        return JSONResponse({"error": "storage temporarily unavailable, please retry"}, status_code=503)

    @app.exception_handler(StorageCorruptError)
    async def _storage_corrupt(request: Request, exc: StorageCorruptError):
        logger.error("STORAGE: %s", exc)
        return JSONResponse({"error": "stored data is corrupt; operator action required"}, status_code=500)


def create_app(
    settings: Settings | None = None,
    *,
    store: DocumentStore | None = None,
    generator: QuizGenerator | None = None,
) -> FastAPI:
    load_dotenv("local.env")
    load_dotenv()

    from endpoints.catalog_endpoints import router as catalog_router
    from endpoints.generate_endpoints import router as generate_router

    settings = settings or get_settings()
    logging.getLogger().setLevel(settings.log_level)

    # Corrupt collection files fail startup here rather than being reset.
    store = store or build_store(settings)

    app = FastAPI()
    app.state.settings = settings
    app.state.store = store
    app.state.quizzes = AsyncCollection(store.open(QUIZZES, QUIZ_SCHEMA))
    app.state.images = AsyncCollection(store.open(IMAGES, IMAGE_SCHEMA))
    app.state.generator = generator or QuizGenerator(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _install_error_handlers(app)

    @app.get("/api/health")
    async def health():
        return {"ok": True}

    app.include_router(generate_router)
    app.include_router(catalog_router)

    return app
