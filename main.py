from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from fastapi.responses import JSONResponse
from flashdeck.core.config import settings
from flashdeck.core.errors import FlashdeckError
from flashdeck.core.logging import get_logger, setup_logging
from flashdeck.core.db.base import init_models
from flashdeck.apis.auth import router as auth_router
from flashdeck.apis.sets import router as sets_router
from flashdeck.apis.generation import router as generation_router
from flashdeck.apis.learning import router as learning_router
from flashdeck.modules.learning.state import session_registry

import uvicorn
from fastapi.middleware.cors import CORSMiddleware


setup_logging()
logger = get_logger("flashdeck")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.app.is_production:
        await init_models()
    session_registry.start_cleanup()
    try:
        yield
    finally:
        await session_registry.stop_cleanup()


async def handle_flashdeck_error(request: Request, exc: FlashdeckError) -> JSONResponse:
    if exc.log_as_error:
        logger.warning(
            f"{request.method} {request.url.path} -> {exc.status_code} "
            f"{type(exc).__name__}: {exc.message}"
        )
    else:
        logger.debug(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def _first_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    if err.get("type") == "json_invalid":
        return "Request body is not valid JSON"
    field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    return f"{field}: {err.get('msg')}" if field else str(err.get("msg"))


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = _first_error(exc)
    logger.debug(f"{request.method} {request.url.path} -> 400: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"error": message}
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app.name, version=settings.app.version, lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(FlashdeckError, handle_flashdeck_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

    app.include_router(auth_router)
    app.include_router(sets_router)
    app.include_router(generation_router)
    app.include_router(learning_router)

    @app.get("/")
    async def root():
        return {
            "status": "ok",
            "app": settings.app.name,
            "version": settings.app.version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    try:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.app.port,
            reload=not settings.app.is_production,
        )
    except Exception as e:
        logger.error(f"An error occurred when starting the server: {e}.")
