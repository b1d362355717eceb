"""
FastAPI application entry point.

Builds the app, registers routes and error handlers, and closes the
outbound clients on shutdown.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import router
from assembly.slide_renderer import SlideRenderer
from execution.asset_uploader import LivepeerAssetUploader
from execution.llm_client import BaseChatClient
from generation.image_client import LivepeerImageClient
from utils.logger import setup_logger

logger = setup_logger(__name__)

CLOSEABLE_STATE = ("llm_client", "image_client", "asset_uploader")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup")

    yield

    for name in CLOSEABLE_STATE:
        client = getattr(app.state, name, None)
        if client is not None:
            await client.aclose()
    logger.info("Application shutdown")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in errors
    )
    logger.warning(f"Rejected request to {request.url.path}: {detail}")
    return JSONResponse({"message": f"Invalid request: {detail}"}, status_code=400)


def create_app(
    llm_client: Optional[BaseChatClient] = None,
    image_client: Optional[LivepeerImageClient] = None,
    slide_renderer: Optional[SlideRenderer] = None,
    asset_uploader: Optional[LivepeerAssetUploader] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Collaborators left as None are built from config on first use.

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="StoryForge API",
        description="Character extraction and streamed story generation",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.llm_client = llm_client
    app.state.image_client = image_client
    app.state.slide_renderer = slide_renderer
    app.state.asset_uploader = asset_uploader

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)

    return app
