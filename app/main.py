from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings
from app.database import Base, create_db_engine, create_session_factory
from app.errors import RelayError, ValidationError
from app.logging_config import Events, configure_logging
from app.paypal_service import PayPalService
from app.routes import router
from app.store import TransactionStore

log = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = None
        app.state.store = None
        try:
            if settings.database_url:
                engine = create_db_engine(settings.database_url)
                Base.metadata.create_all(bind=engine)
                app.state.store = TransactionStore(create_session_factory(engine))
            app.state.paypal = PayPalService.from_settings(settings)
            log.info(
                "app.started",
                paypal_mode=settings.paypal_mode,
                capture_mode=settings.capture_mode.value,
                persistence=engine is not None,
            )
            yield
        finally:
            if engine is not None:
                engine.dispose()
                log.info("app.stopped")

    app = FastAPI(title="PayPal Relay", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        allow_credentials=True,
    )

    @app.middleware("http")
    async def log_api_entry(request: Request, call_next):
        response = await call_next(request)
        log.info(
            Events.API_REQUEST,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
        )
        return response

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        log.warning(
            Events.REQUEST_FAILED,
            path=request.url.path,
            error_type=exc.error_type,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        error = ValidationError(
            "Invalid request body",
            {"errors": [e.get("msg") for e in exc.errors()]},
        )
        return await relay_error_handler(request, error)

    app.include_router(router)
    return app


app = create_app()


def main():
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)


if __name__ == "__main__":
    main()
