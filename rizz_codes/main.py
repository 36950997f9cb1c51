"""
Rizz Codes Backend

FastAPI application serving the Rizz Codes IDE: project, file and chat
storage plus the OpenRouter proxy.
"""

import logging
from typing import Optional

from dotenv import load_dotenv

# Load environment variables before config is read
load_dotenv()

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import HOST, LOG_LEVEL, OPENROUTER_BASE_URL, PORT
from .models import ErrorResponse
from .openrouter_client import OpenRouterClient
from .routes import router
from .storage import MemStorage

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(
    storage: Optional[MemStorage] = None,
    openrouter: Optional[OpenRouterClient] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        storage: Entity store to serve; a fresh empty one if None
        openrouter: OpenRouter connector; a default client if None

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Rizz Codes",
        description="AI-assisted development workbench",
        version="1.0.0",
    )

    # CORS middleware for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.storage = storage if storage is not None else MemStorage()
    app.state.openrouter = openrouter if openrouter is not None else OpenRouterClient()

    app.include_router(router)

    @app.on_event("startup")
    async def startup_event():
        logger.info(f"Rizz Codes starting on {HOST}:{PORT}")
        logger.info(f"OpenRouter endpoint: {OPENROUTER_BASE_URL}")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Clean up services on shutdown."""
        await app.state.openrouter.close()
        logger.info("Rizz Codes shut down")

    # ========================================================================
    # Error Handlers
    # ========================================================================

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request, exc):
        """Render HTTP exceptions as {"error": ...}."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail)).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request, exc):
        """Malformed request bodies are client errors, reported as 400."""
        logger.warning(f"Request validation failed: {request.method} {request.url.path}")
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="Invalid request").model_dump(),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc):
        """Catch-all handler for unexpected errors."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Internal server error").model_dump(),
        )

    return app


app = create_app()


def main():
    import uvicorn

    uvicorn.run(
        "rizz_codes.main:app",
        host=HOST,
        port=PORT,
        log_level=LOG_LEVEL.lower(),
    )


# ============================================================================
# Development Server
# ============================================================================

if __name__ == "__main__":
    main()
