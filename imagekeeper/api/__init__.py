from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from imagekeeper.api.endpoints import get_endpoints_router
from imagekeeper.errors import StorageError
from imagekeeper.repository import Repository


def create_app(*, repository: Repository) -> FastAPI:
    """Create FastAPI app."""
    app = FastAPI(title="imagekeeper")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(f"Storage failure during {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})

    app.include_router(router=get_endpoints_router(repository=repository))

    return app
