from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .errors import GameShelfError
from .images import ImageStore
from .repositories import GameRepository, JsonFileRepository
from .routers import games as games_router
from .settings import Settings, get_settings

logger = logging.getLogger("game_shelf.api")

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "games",
        "description": "CRUD operations for tracked games with cover image uploads.",
    },
]


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for running the service standalone."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _validation_body(errors: list) -> dict:
    return {
        "error": "ValidationError",
        "message": "Request validation failed",
        "detail": errors,
    }


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The repository is created here but only loads (or bootstraps) its data
    file when the application starts.
    """
    settings = settings or get_settings()
    images = ImageStore(settings.images_dir)
    repository = JsonFileRepository(
        settings.data_file,
        images,
        delete_replaced_images=settings.delete_replaced_images,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        images.root.mkdir(parents=True, exist_ok=True)
        repository.initialize()
        yield

    app = FastAPI(
        title="Game Shelf Backend",
        description="Backend API service for tracking played games with cover images.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.images = images
    app.state.repository = repository

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GameShelfError)
    async def game_shelf_exception_handler(request: Request, exc: GameShelfError) -> JSONResponse:
        """
        Map domain errors to `{"message": ...}` bodies with the error's status code.
        """
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return JSONResponse(status_code=400, content=_validation_body(jsonable_encoder(exc.errors())))

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check(repo: GameRepository = Depends(games_router.get_repository)) -> dict:
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the number of stored games.
        """
        return {"message": "Healthy", "games": len(repo.list())}

    # Include routers
    app.include_router(games_router.router)
    app.mount("/images", StaticFiles(directory=str(images.root), check_dir=False), name="images")
    return app


app = create_app()


# PUBLIC_INTERFACE
def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = app.state.settings
    configure_logging(settings.log_level)
    logger.info("Server is running on http://localhost:%d", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
