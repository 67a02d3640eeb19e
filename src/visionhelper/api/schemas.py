"""Pydantic request/response schemas for the VisionHelper API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Detection(BaseModel):
    """A resolved classifier result as returned by the model."""

    label: str
    confidence: float = Field(ge=0.0, le=1.0)


class RankedDetection(BaseModel):
    """A display row: title-cased label and percentage text."""

    label: str
    confidence_text: str = Field(description="Score as a percentage, e.g. '87.3%'")


class ClassifyImageResponse(BaseModel):
    """Response for the image classification endpoint."""

    summary: str
    top_label: str | None
    box_label: str | None = Field(description="Overlay caption such as 'Tabby Cat: 87%'")
    ranked: list[RankedDetection]
    results: list[Detection]


class GalleryItemResponse(BaseModel):
    """A saved capture."""

    filename: str
    detection_label: str
    caption: str
    captured_at: datetime
    date_text: str


class CaptureResponse(BaseModel):
    """Response for a saved capture."""

    item: GalleryItemResponse
    detection: ClassifyImageResponse


class GalleryResponse(BaseModel):
    items: list[GalleryItemResponse]


class SelectionModeRequest(BaseModel):
    active: bool


class SelectionResponse(BaseModel):
    """Current multi-select state over the gallery snapshot."""

    selection_mode: bool
    count: int
    selected: list[int]
    size: int


class DeleteSelectedResponse(BaseModel):
    deleted: int
    failed: int
    message: str


class ReportExportRequest(BaseModel):
    notes: str = ""


class ReportExportResponse(BaseModel):
    path: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    gpu: bool
    models_loaded: list[str]
    labels_loaded: int
    concurrent_requests: int
    queue_depth: int


class ModelInfo(BaseModel):
    """Information about an available model."""

    name: str
    input_size: int
    quantized: bool
    status: str = Field(description="Model status: 'active' or 'available'")
    license: str


class ModelsResponse(BaseModel):
    """Response for the models listing endpoint."""

    models: list[ModelInfo]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
