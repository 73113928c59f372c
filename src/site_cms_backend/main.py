from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import check_credentials, require_admin
from .configuration import Settings, get_settings
from .errors import CmsError, StoreUnavailableError, ValidationError
from .image_directory import ImageDirectory
from .image_pipeline import ImagePipeline
from .middleware import RequestLoggingMiddleware
from .models import (
    DeleteResponse,
    HealthStatus,
    ImageList,
    LoginRequest,
    LoginResponse,
    SaveResponse,
    UploadResponse,
    VerifyResponse,
)
from .page_store import PageDataStore
from .utils import ensure_directory, public_base_url

logger = logging.getLogger(__name__)

settings = get_settings()
settings.log_summary()

upload_root = ensure_directory(settings.upload_dir)
image_pipeline = ImagePipeline(upload_root)
image_directory = ImageDirectory(upload_root)


def get_page_store(request: Request) -> PageDataStore:
    store: Optional[PageDataStore] = getattr(request.app.state, "page_store", None)
    if store is None:
        raise StoreUnavailableError("MONGO_URI is not configured")
    return store


def get_image_pipeline() -> ImagePipeline:
    return image_pipeline


def get_image_directory() -> ImageDirectory:
    return image_directory


@asynccontextmanager
async def lifespan(application: FastAPI):
    if not settings.mongo_uri:
        logger.error("MONGO_URI is not configured; page-data routes will fail until it is set")
        yield
        return

    store = PageDataStore.from_uri(settings.mongo_uri, settings.mongo_db_name, settings.mongo_collection)
    try:
        store.ping()
    except StoreUnavailableError as exc:
        logger.error(f"Could not connect to the document store: {exc.message}")
        store.close()
        raise
    logger.info("Connected to the document store")

    application.state.page_store = store
    try:
        yield
    finally:
        application.state.page_store = None
        store.close()


app = FastAPI(title="Site CMS API", version="0.1.0", lifespan=lifespan)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/uploads", StaticFiles(directory=upload_root), name="uploads")


@app.exception_handler(CmsError)
async def cms_error_handler(_: Request, exc: CmsError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.post("/api/auth/login", response_model=LoginResponse)
def login(payload: LoginRequest, config: Settings = Depends(get_settings)) -> LoginResponse:
    token = check_credentials(payload.username, payload.password, config)
    return LoginResponse(token=token)


@app.get("/api/auth/verify", response_model=VerifyResponse)
def verify(user: Dict[str, Any] = Depends(require_admin)) -> VerifyResponse:
    return VerifyResponse(valid=True, user=user)


@app.post("/api/services/upload", response_model=UploadResponse)
async def upload_service_image(
    request: Request,
    image: Optional[UploadFile] = File(None),
    _: Dict[str, Any] = Depends(require_admin),
    pipeline: ImagePipeline = Depends(get_image_pipeline),
) -> UploadResponse:
    record = await pipeline.process(image, public_base_url(request, settings.public_base_url))
    return UploadResponse(
        filename=record.filename,
        url=record.url,
        size=record.size,
        width=record.width,
        height=record.height,
    )


@app.get("/api/services/images", response_model=ImageList)
def list_service_images(
    request: Request,
    _: Dict[str, Any] = Depends(require_admin),
    directory: ImageDirectory = Depends(get_image_directory),
) -> ImageList:
    return ImageList(images=directory.list_images(public_base_url(request, settings.public_base_url)))


@app.delete("/api/services/images/{filename:path}", response_model=DeleteResponse)
def delete_service_image(
    filename: str,
    _: Dict[str, Any] = Depends(require_admin),
    directory: ImageDirectory = Depends(get_image_directory),
) -> DeleteResponse:
    directory.delete_image(filename)
    return DeleteResponse(message="Image deleted")


@app.get("/api/content/page-data")
@app.get("/content/page-data")
def get_page_data(store: PageDataStore = Depends(get_page_store)) -> Dict[str, Any]:
    return store.fetch_or_create()


@app.post("/api/content/page-data", response_model=SaveResponse)
async def save_page_data(
    request: Request,
    _: Dict[str, Any] = Depends(require_admin),
    store: PageDataStore = Depends(get_page_store),
) -> SaveResponse:
    try:
        payload = await request.json()
    except json.JSONDecodeError as exc:  # noqa: BLE001
        raise ValidationError("Invalid JSON payload") from exc

    saved = store.save(payload)
    return SaveResponse(message="Data saved", data=saved)


@app.get("/api/health", response_model=HealthStatus)
def healthcheck() -> HealthStatus:
    return HealthStatus()


def run() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host=settings.host, port=settings.port)
