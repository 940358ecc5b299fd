"""FastAPI application entry point."""

import logging

import structlog
import uvicorn
from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from word_practice.api.routes import router
from word_practice.api.websocket import handle_browser_websocket
from word_practice.config import Settings, get_settings

# Reachable without the app secret
_PUBLIC_PATHS = ("/", "/api/health", "/api/capabilities")


def configure_logging(production: bool) -> None:
    """JSON lines at INFO in production, coloured console output at DEBUG otherwise."""
    renderer = (
        structlog.processors.JSONRenderer() if production else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.INFO if production else logging.DEBUG
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _authorized(settings: Settings, provided: str) -> bool:
    return not settings.app_secret or provided == settings.app_secret


def create_app(settings: Settings) -> FastAPI:
    """Build the application: REST routes, practice socket and the frontend."""
    app = FastAPI(title="Word Practice", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    @app.middleware("http")
    async def auth_middleware(request: Request, call_next):
        """Require X-App-Secret on API calls when a secret is configured."""
        path = request.url.path
        if path in _PUBLIC_PATHS or not path.startswith("/api"):
            return await call_next(request)
        if not _authorized(settings, request.headers.get("X-App-Secret", "")):
            return JSONResponse({"error": "Unauthorized"}, status_code=401)
        return await call_next(request)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        if not _authorized(settings, websocket.headers.get("X-App-Secret", "")):
            await websocket.close(code=1008, reason="Unauthorized")
            return
        await handle_browser_websocket(websocket, settings)

    # Mounted last so it never shadows the API
    if settings.frontend_dir.exists():
        app.mount("/", StaticFiles(directory=str(settings.frontend_dir), html=True), name="frontend")

    return app


settings = get_settings()
configure_logging(settings.is_production)
app = create_app(settings)


def main() -> None:
    """Run the application."""
    uvicorn.run(
        "word_practice.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
