from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from messaging_sync.application.exceptions import (
    AuthError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from messaging_sync.devserver.middleware import CorrelationIdMiddleware
from messaging_sync.devserver.routers import conversations, health, messages, users
from messaging_sync.devserver.seed import seed_demo
from messaging_sync.devserver.state import MessagingState

logger = logging.getLogger(__name__)


def create_app(state: MessagingState | None = None) -> FastAPI:
    """Development messaging API backed by in-memory state.

    Without an explicit ``state`` a small demo data set is seeded.
    """
    if state is None:
        state = MessagingState()
        seed_demo(state)
        logger.info("Seeded %d demo users", len(state.users))

    app = FastAPI(
        title="Messaging Dev Server",
        version="0.1.0",
    )
    app.state.messaging = state

    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)

    return app


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, exc.detail)

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return _error(403, exc.detail)

    @app.exception_handler(AuthError)
    async def _auth(_req: Request, exc: AuthError) -> JSONResponse:
        return _error(401, exc.detail)

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return _error(400, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def _bad_request(_req: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(422, "Invalid request body")
