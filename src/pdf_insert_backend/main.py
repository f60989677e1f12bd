from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .configuration import AppConfig, config_to_dict, configure_logging, load_config
from .middleware import RequestLoggingMiddleware
from .models import ErrorResponse, HealthResponse
from .pdf_service import CompositionError, PdfComposer
from .uploads import ImageDecodeError, read_image_upload, read_image_uploads, read_pdf_upload
from .utils import attachment_disposition

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

router = APIRouter()


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_composer(request: Request) -> PdfComposer:
    return request.app.state.composer


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=PDF_MEDIA_TYPE,
        headers={"Content-Disposition": attachment_disposition(filename)},
    )


@router.get("/health", response_model=HealthResponse)
def healthcheck() -> HealthResponse:
    return HealthResponse(status="ok")


@router.post("/insert-image", responses=ERROR_RESPONSES)
async def insert_image(
    image: Optional[UploadFile] = File(None),
    config: AppConfig = Depends(get_config),
    composer: PdfComposer = Depends(get_composer),
) -> Response:
    if image is None:
        raise HTTPException(status_code=400, detail="No image provided")

    try:
        decoded = await read_image_upload(image, config.uploads)
        pdf_bytes = await run_in_threadpool(composer.insert_into_template, decoded)
    except (HTTPException, CompositionError, ImageDecodeError):
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to insert image into template")
        raise HTTPException(status_code=500, detail=str(exc) or "Failed to insert image into PDF") from exc

    return _pdf_response(pdf_bytes, "document.pdf")


@router.post("/images-to-pdf", responses=ERROR_RESPONSES)
async def images_to_pdf(
    images: Optional[List[UploadFile]] = File(None),
    config: AppConfig = Depends(get_config),
    composer: PdfComposer = Depends(get_composer),
) -> Response:
    if not images:
        raise HTTPException(status_code=400, detail="No images provided")

    try:
        decoded = await read_image_uploads(images, config.uploads)
        pdf_bytes = await run_in_threadpool(composer.images_to_pdf, decoded)
    except (HTTPException, CompositionError, ImageDecodeError):
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to create PDF from %d image(s)", len(images))
        raise HTTPException(status_code=500, detail=str(exc) or "Failed to create PDF") from exc

    return _pdf_response(pdf_bytes, "images.pdf")


@router.post("/add-to-existing-pdf", responses=ERROR_RESPONSES)
async def add_to_existing_pdf(
    pdf: Optional[UploadFile] = File(None),
    images: Optional[List[UploadFile]] = File(None),
    config: AppConfig = Depends(get_config),
    composer: PdfComposer = Depends(get_composer),
) -> Response:
    if pdf is None:
        raise HTTPException(status_code=400, detail="No PDF file provided")

    try:
        pdf_bytes = await read_pdf_upload(pdf, config.uploads)
        decoded = await read_image_uploads(images or [], config.uploads)
        result = await run_in_threadpool(composer.add_images_to_existing_pdf, pdf_bytes, decoded)
    except (HTTPException, CompositionError, ImageDecodeError):
        raise
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to add images to %s", pdf.filename)
        raise HTTPException(status_code=500, detail=str(exc) or "Failed to add images to PDF") from exc

    return _pdf_response(result, "document-with-images.pdf")


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}" for error in exc.errors()
    )
    return JSONResponse(status_code=422, content={"error": messages or "Invalid request"})


async def _composition_error_handler(request: Request, exc: CompositionError) -> JSONResponse:
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


async def _image_decode_error_handler(request: Request, exc: ImageDecodeError) -> JSONResponse:
    logger.warning("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


class SPAStaticFiles(StaticFiles):
    """Static files that fall back to index.html so client-side routes resolve."""

    async def get_response(self, path: str, scope):
        try:
            response = await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response("index.html", scope)
        if response.status_code == 404:
            return await super().get_response("index.html", scope)
        return response


def _mount_frontend(app: FastAPI, dist_dir: Optional[str], api_prefix: str = "") -> None:
    if not dist_dir:
        return
    path = Path(dist_dir).expanduser()
    if not path.is_dir():
        logger.warning("Frontend directory %s does not exist; not serving static files", path)
        return
    if not api_prefix:
        logger.warning("Serving the frontend with an empty api_prefix; the bundled UI posts to /api/...")
    # Registered after the API routes so they take precedence.
    app.mount("/", SPAStaticFiles(directory=path, html=True), name="frontend")


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    Build the FastAPI application around an explicit configuration.

    Args:
        config: Application configuration; loaded from config.yaml and the
            environment when omitted

    Returns:
        The configured FastAPI app with routes, middleware and error handlers
    """
    config = config or load_config()
    configure_logging(config)

    app = FastAPI(title="PDF Image Insert API", version="0.1.0")
    app.state.config = config
    app.state.composer = PdfComposer(config)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(CompositionError, _composition_error_handler)
    app.add_exception_handler(ImageDecodeError, _image_decode_error_handler)

    app.include_router(router, prefix=config.server.api_prefix)
    _mount_frontend(app, config.frontend.dist_dir, config.server.api_prefix)

    logger.debug("Loaded configuration: %s", config_to_dict(config))
    return app


app = create_app()


def run() -> None:
    import uvicorn

    config: AppConfig = app.state.config
    logger.info("Backend running at http://%s:%d", config.server.host, config.server.port)
    uvicorn.run(app, host=config.server.host, port=config.server.port, log_level=config.logging.level.lower())


if __name__ == "__main__":
    run()
