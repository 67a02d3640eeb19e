"""API route definitions."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from visionhelper.api.middleware import verify_api_key
from visionhelper.api.schemas import (
    CaptureResponse,
    ClassifyImageResponse,
    DeleteSelectedResponse,
    Detection,
    ErrorResponse,
    GalleryItemResponse,
    GalleryResponse,
    HealthResponse,
    ModelInfo,
    ModelsResponse,
    RankedDetection,
    ReportExportRequest,
    ReportExportResponse,
    SelectionModeRequest,
    SelectionResponse,
)
from visionhelper.formatting import box_label, format_results, gallery_caption, gallery_date, is_background
from visionhelper.gallery.filenames import encode_filename
from visionhelper.ml.image_classifier import ClassificationError
from visionhelper.ml.model_manager import MODEL_REGISTRY, get_model_spec
from visionhelper.ml.preprocessing import decode_image, encode_jpeg, to_tensor
from visionhelper.reports.metrics import export_report
from visionhelper.reports.report import build_report

if TYPE_CHECKING:
    from PIL import Image

    from visionhelper.config import Settings
    from visionhelper.gallery.collection import GalleryItem
    from visionhelper.gallery.session import GallerySession
    from visionhelper.gallery.storage import LocalGallery
    from visionhelper.ml.detection import DetectionResult, DetectionService
    from visionhelper.ml.inference import InferencePool
    from visionhelper.ml.model_manager import ModelManager
    from visionhelper.reports.metrics import PerformanceTracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", dependencies=[Depends(verify_api_key)])

UNKNOWN_CAPTURE_LABEL = "unknown"


# -- State accessors ----------------------------------------------------------


def _get_settings(request: Request) -> Settings:
    settings: Settings = request.app.state.settings
    return settings


def _get_inference_pool(request: Request) -> InferencePool:
    pool: InferencePool = request.app.state.inference_pool
    return pool


def _get_model_manager(request: Request) -> ModelManager:
    manager: ModelManager = request.app.state.model_manager
    return manager


def _get_detection_service(request: Request) -> DetectionService:
    service: DetectionService = request.app.state.detection_service
    return service


def _get_gallery(request: Request) -> LocalGallery:
    gallery: LocalGallery = request.app.state.gallery
    return gallery


def _get_gallery_session(request: Request) -> GallerySession:
    session: GallerySession = request.app.state.gallery_session
    return session


def _get_gallery_lock(request: Request) -> asyncio.Lock:
    """Serializes every read and mutation of the gallery session and its selection."""
    lock: asyncio.Lock = request.app.state.gallery_lock
    return lock


def _get_tracker(request: Request) -> PerformanceTracker:
    tracker: PerformanceTracker = request.app.state.tracker
    return tracker


# -- Helpers ------------------------------------------------------------------


async def _read_image(request: Request, file: UploadFile) -> Image.Image:
    settings = _get_settings(request)
    data = await file.read()
    if len(data) > settings.max_file_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {settings.max_file_size} bytes",
        )
    try:
        return await run_in_threadpool(decode_image, data, settings.max_image_pixels)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


async def _detect(request: Request, image: Image.Image) -> list[DetectionResult]:
    settings = _get_settings(request)
    service = _get_detection_service(request)
    input_size = get_model_spec(settings.classification_model).input_size
    tensor = await run_in_threadpool(to_tensor, image, input_size)
    try:
        return await _get_inference_pool(request).run(service.detect, tensor)
    except TimeoutError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Inference queue is full, try again later",
        ) from exc
    except ClassificationError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


def _classify_response(results: list[DetectionResult]) -> ClassifyImageResponse:
    formatted = format_results(results)
    return ClassifyImageResponse(
        summary=formatted.summary_text,
        top_label=formatted.top_label,
        box_label=box_label(formatted),
        ranked=[RankedDetection(label=e.label, confidence_text=e.confidence_text) for e in formatted.ranked_display],
        results=[Detection(label=r.label, confidence=min(max(r.confidence, 0.0), 1.0)) for r in results],
    )


def _item_response(item: GalleryItem) -> GalleryItemResponse:
    return GalleryItemResponse(
        filename=item.filename,
        detection_label=item.detection_label,
        caption=gallery_caption(item.detection_label),
        captured_at=item.captured_at,
        date_text=gallery_date(item.captured_at),
    )


def _selection_response(session: GallerySession) -> SelectionResponse:
    store = session.selection
    return SelectionResponse(
        selection_mode=store.selection_mode,
        count=store.count,
        selected=store.selected_indices(),
        size=store.size,
    )


def _capture_label(results: list[DetectionResult]) -> str:
    top = next((r for r in results if not is_background(r)), None)
    return top.label if top is not None else UNKNOWN_CAPTURE_LABEL


# -- Detection ----------------------------------------------------------------


@router.post(
    "/classify-image",
    response_model=ClassifyImageResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
    summary="Classify an image",
)
async def classify_image(request: Request, file: UploadFile) -> ClassifyImageResponse:
    """Classify an uploaded frame and return display-ready results."""
    image = await _read_image(request, file)
    results = await _detect(request, image)
    return _classify_response(results)


@router.post(
    "/captures",
    response_model=CaptureResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
    summary="Classify and save a capture to the gallery",
)
async def create_capture(request: Request, file: UploadFile) -> CaptureResponse:
    """Classify a frame and save it named after its top detection."""
    settings = _get_settings(request)
    gallery = _get_gallery(request)

    image = await _read_image(request, file)
    results = await _detect(request, image)

    label = _capture_label(results)
    captured_at = datetime.now().replace(microsecond=0)
    filename = encode_filename(label, captured_at)
    description = f"Object detected: {label}"
    jpeg = await run_in_threadpool(encode_jpeg, image, settings.jpeg_quality, description)
    saved = await run_in_threadpool(gallery.save, jpeg, filename, description)
    if not saved.saved or saved.identity is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save image")

    item = GalleryItemResponse(
        filename=filename,
        detection_label=label,
        caption=gallery_caption(label),
        captured_at=captured_at,
        date_text=gallery_date(captured_at),
    )
    return CaptureResponse(item=item, detection=_classify_response(results))


# -- Gallery ------------------------------------------------------------------


@router.get("/gallery", response_model=GalleryResponse, summary="List saved captures")
async def list_gallery(request: Request) -> GalleryResponse:
    """Return the current gallery snapshot, newest first."""
    async with _get_gallery_lock(request):
        items = _get_gallery_session(request).items
    return GalleryResponse(items=[_item_response(item) for item in items])


@router.post("/gallery/refresh", response_model=GalleryResponse, summary="Reload captures from storage")
async def refresh_gallery(request: Request) -> GalleryResponse:
    """Rescan the gallery directory. Clears any selection."""
    session = _get_gallery_session(request)
    async with _get_gallery_lock(request):
        items = await run_in_threadpool(session.refresh)
    return GalleryResponse(items=[_item_response(item) for item in items])


@router.get("/gallery/selection", response_model=SelectionResponse, summary="Current selection")
async def get_selection(request: Request) -> SelectionResponse:
    async with _get_gallery_lock(request):
        return _selection_response(_get_gallery_session(request))


@router.post("/gallery/selection/mode", response_model=SelectionResponse, summary="Enter or leave selection mode")
async def set_selection_mode(request: Request, body: SelectionModeRequest) -> SelectionResponse:
    session = _get_gallery_session(request)
    async with _get_gallery_lock(request):
        session.selection.set_selection_mode(body.active)
        return _selection_response(session)


@router.post(
    "/gallery/selection/toggle/{index}",
    response_model=SelectionResponse,
    summary="Toggle one gallery position",
)
async def toggle_selection(request: Request, index: int) -> SelectionResponse:
    """Toggle ``index``, entering selection mode first if needed."""
    session = _get_gallery_session(request)
    async with _get_gallery_lock(request):
        session.selection.set_selection_mode(True)
        session.selection.toggle(index)
        return _selection_response(session)


@router.post("/gallery/selection/all", response_model=SelectionResponse, summary="Select every capture")
async def select_all(request: Request) -> SelectionResponse:
    session = _get_gallery_session(request)
    async with _get_gallery_lock(request):
        session.selection.set_selection_mode(True)
        session.selection.select_all()
        return _selection_response(session)


@router.delete("/gallery/selection", response_model=SelectionResponse, summary="Clear the selection")
async def clear_selection(request: Request) -> SelectionResponse:
    session = _get_gallery_session(request)
    async with _get_gallery_lock(request):
        session.selection.clear()
        return _selection_response(session)


@router.post(
    "/gallery/selection/delete",
    response_model=DeleteSelectedResponse,
    summary="Delete every selected capture",
)
async def delete_selected(request: Request) -> DeleteSelectedResponse:
    session = _get_gallery_session(request)
    async with _get_gallery_lock(request):
        outcome = await run_in_threadpool(session.delete_selected)
    return DeleteSelectedResponse(deleted=outcome.deleted, failed=outcome.failed, message=outcome.message)


# Registered after the /gallery/selection routes so "selection" is not taken as a filename.
@router.delete(
    "/gallery/{filename}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
    summary="Delete a capture",
)
async def delete_capture(request: Request, filename: str) -> None:
    gallery = _get_gallery(request)
    session = _get_gallery_session(request)
    identity = gallery.find(filename)
    if identity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No capture named {filename}")
    async with _get_gallery_lock(request):
        deleted = await run_in_threadpool(session.delete_identity, identity)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No capture named {filename}")


# -- Performance report ---------------------------------------------------------


@router.get("/report", response_class=PlainTextResponse, summary="Render the performance report")
async def get_report(request: Request, notes: str = "") -> PlainTextResponse:
    metrics = _get_tracker(request).snapshot()
    return PlainTextResponse(build_report(metrics, notes))


@router.post(
    "/report/export",
    response_model=ReportExportResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
    summary="Write the performance report to the reports directory",
)
async def export_performance_report(request: Request, body: ReportExportRequest) -> ReportExportResponse:
    settings = _get_settings(request)
    content = build_report(_get_tracker(request).snapshot(), body.notes)
    path = await run_in_threadpool(export_report, content, settings.reports_dir)
    if path is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to export report")
    return ReportExportResponse(path=path)


# -- Service ------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health(request: Request) -> HealthResponse:
    """Return service health status."""
    settings = _get_settings(request)
    pool = _get_inference_pool(request)
    return HealthResponse(
        status="ok",
        gpu=settings.device == "cuda",
        models_loaded=_get_model_manager(request).get_loaded_models(),
        labels_loaded=_get_detection_service(request).label_count,
        concurrent_requests=pool.active_count,
        queue_depth=pool.queue_depth,
    )


@router.get(
    "/models",
    response_model=ModelsResponse,
    summary="List available models",
)
async def list_models(request: Request) -> ModelsResponse:
    """Return registered classifiers and which one is active."""
    settings = _get_settings(request)
    models = [
        ModelInfo(
            name=spec.name,
            input_size=spec.input_size,
            quantized=spec.quantized,
            status="active" if spec.name == settings.classification_model else "available",
            license=spec.license,
        )
        for spec in MODEL_REGISTRY.values()
    ]
    return ModelsResponse(models=models)
