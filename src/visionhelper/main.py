"""FastAPI application entry point."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from visionhelper.config import Settings
    from visionhelper.ml.labels import LabelTable

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from visionhelper.api.routes import router
from visionhelper.config import get_settings
from visionhelper.gallery.session import GallerySession
from visionhelper.gallery.storage import LocalGallery
from visionhelper.ml.detection import DetectionService
from visionhelper.ml.image_classifier import OnnxImageClassifier
from visionhelper.ml.inference import InferencePool
from visionhelper.ml.labels import load_hub_label_table, load_label_table
from visionhelper.ml.model_manager import OnnxModelManager, get_model_spec
from visionhelper.reports.metrics import PerformanceTracker

logger = logging.getLogger(__name__)


def init_app_state(app: FastAPI, settings: Settings) -> None:
    """Build the long-lived service objects and attach them to ``app.state``.

    Models are not loaded here; the first classification downloads and
    loads the configured model.
    """
    app.state.settings = settings

    tracker = PerformanceTracker(settings.classification_model, window=settings.fps_window)
    model_manager = OnnxModelManager(settings)
    labels = _load_labels(settings, model_manager)
    classifier = OnnxImageClassifier(
        model_manager,
        settings.classification_model,
        max_results=settings.max_results,
        score_threshold=settings.score_threshold,
    )

    app.state.tracker = tracker
    app.state.model_manager = model_manager
    app.state.inference_pool = InferencePool(settings, tracker=tracker)
    app.state.detection_service = DetectionService(classifier, labels)

    gallery = LocalGallery(settings.gallery_dir)
    session = GallerySession(gallery)
    session.refresh()
    app.state.gallery = gallery
    app.state.gallery_session = session
    app.state.gallery_lock = asyncio.Lock()


def _load_labels(settings: Settings, model_manager: OnnxModelManager) -> LabelTable:
    assets = Path(settings.assets_dir)
    labels = load_label_table(assets / settings.labels_file, assets / settings.fallback_labels_file)
    if not labels and settings.hub_labels:
        labels = load_hub_label_table(model_manager, settings.classification_model)

    expected = get_model_spec(settings.classification_model).num_classes
    if labels and len(labels) != expected:
        logger.warning(
            "Label table has %d entries but %s has %d classes",
            len(labels),
            settings.classification_model,
            expected,
        )
    return labels


async def _evict_idle_models(model_manager: OnnxModelManager, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        model_manager.unload_idle_models()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: initialize on startup, clean up on shutdown."""
    settings = get_settings()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    logger.info(
        "Starting VisionHelper (device=%s, max_concurrent=%s, model=%s, gallery=%s)",
        settings.device,
        settings.max_concurrent,
        settings.classification_model,
        settings.gallery_dir,
    )

    init_app_state(app, settings)
    eviction = None
    if settings.model_ttl > 0:
        eviction = asyncio.create_task(_evict_idle_models(app.state.model_manager, settings.model_ttl))
    logger.info("VisionHelper ready (%d labels)", app.state.detection_service.label_count)
    yield

    logger.info("Shutting down VisionHelper")
    if eviction is not None:
        eviction.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await eviction
    app.state.inference_pool.shutdown()
    app.state.model_manager.shutdown()
    logger.info("VisionHelper shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="VisionHelper",
        description="Object classification, capture gallery, and performance reporting",
        version="0.1.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve the app with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run("visionhelper.main:app", host=settings.host, port=settings.port)
