"""Diagram endpoints for the Examination Diagram Mapper.

Lists the diagram catalogue, classifies examination notes, serves
coordinate catalogs and builds complete overlays (classification,
catalog, findings and, when the display size is known, projections).
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from loguru import logger
from pydantic import BaseModel, Field

from src.classifier import classify
from src.diagrams import get_diagram_configs, parse_diagram_id
from src.export import legend_entries
from src.extractor import extract
from src.metrics import record_classification, record_findings
from src.models import (
    AnalysisResult,
    DiagramConfig,
    Dimensions,
    ExaminationInput,
    Finding,
    ProjectedFinding,
    ReferenceCoordinate,
    Sex,
)
from src.projector import project_findings, render_transform
from src.repository import CoordinateRepository

# =====================================================================
# Request / Response Models
# =====================================================================


class DiagramListResponse(BaseModel):
    """All diagram views for one sex."""
    sex: Sex
    diagrams: List[DiagramConfig]
    total: int


class CatalogResponse(BaseModel):
    """Coordinate catalog as served to the renderer."""
    requested_id: str
    diagram_id: str
    fallback: bool
    coordinates: Dict[str, ReferenceCoordinate]
    total: int


class OverlayRequest(BaseModel):
    """Examination notes plus the optional rendered image size."""
    examination: ExaminationInput
    display_width: Optional[float] = Field(None, gt=0, description="Rendered image width in pixels")
    display_height: Optional[float] = Field(None, gt=0, description="Rendered image height in pixels")
    view: Optional[str] = Field(None, description="Diagram id to use instead of the classifier's choice")


class OverlayResponse(BaseModel):
    """Selected diagram with its findings."""
    analysis: AnalysisResult
    requested_diagram: DiagramConfig
    diagram: DiagramConfig
    catalog_id: str
    fallback: bool
    findings: List[Finding]
    projected_findings: Optional[List[ProjectedFinding]] = None
    render_transform: Optional[str] = None
    legend: List[str] = []


# =====================================================================
# Router
# =====================================================================

router = APIRouter()


def _get_repository() -> CoordinateRepository:
    """Fetch the CoordinateRepository from application state."""
    from api.main import _state

    repository = _state.get("repository")
    if repository is None:
        raise HTTPException(status_code=503, detail="Coordinate repository not initialized.")
    return repository


def _resolve_diagram(diagram_id: str) -> DiagramConfig:
    try:
        return parse_diagram_id(diagram_id)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown diagram '{diagram_id}'")


# =====================================================================
# Endpoints
# =====================================================================


@router.get("/diagrams/{sex}", response_model=DiagramListResponse)
async def list_diagrams(sex: Sex):
    """List every diagram view available for a sex, in priority order."""
    diagrams = sorted(get_diagram_configs(sex).values(), key=lambda d: d.priority)
    return DiagramListResponse(sex=sex, diagrams=diagrams, total=len(diagrams))


@router.post("/classify", response_model=AnalysisResult)
async def classify_examination(examination: ExaminationInput):
    """Pick the primary diagram and alternates for examination notes."""
    result = classify(examination)
    record_classification(result.primary_diagram.view_type.value, result.confidence)
    return result


@router.get("/catalogs/{diagram_id}", response_model=CatalogResponse)
async def get_catalog(diagram_id: str):
    """Coordinate catalog for a diagram id such as `femaleleftside`.

    Falls back to the same-sex front catalog when the requested one is
    unavailable; `fallback` reports when that happened.
    """
    diagram = _resolve_diagram(diagram_id)
    catalog = await _get_repository().get(diagram)
    return CatalogResponse(
        requested_id=diagram.diagram_id,
        diagram_id=catalog.diagram_id,
        fallback=catalog.diagram_id != diagram.diagram_id,
        coordinates=catalog.coordinates,
        total=len(catalog),
    )


@router.post("/overlay", response_model=OverlayResponse)
async def build_overlay(request: OverlayRequest):
    """Classify, load the catalog, extract findings and project them.

    Projections are only returned when both display dimensions are given.
    When the requested catalog is missing, `diagram` is the fallback
    diagram whose coordinates were used.
    """
    repository = _get_repository()
    examination = request.examination

    analysis = classify(examination)
    record_classification(analysis.primary_diagram.view_type.value, analysis.confidence)
    requested = _resolve_diagram(request.view) if request.view else analysis.primary_diagram

    catalog = await repository.get(requested)
    diagram = requested
    if not catalog.is_empty and catalog.diagram_id != requested.diagram_id:
        diagram = parse_diagram_id(catalog.diagram_id)
    findings = extract(examination.combined_text(), catalog)
    record_findings(len(findings))

    display = None
    if request.display_width and request.display_height:
        display = Dimensions(width=request.display_width, height=request.display_height)

    logger.info(
        f"Overlay for {diagram.diagram_id}: {len(findings)} findings "
        f"(catalog {catalog.diagram_id}, confidence {analysis.confidence:.2f})"
    )

    return OverlayResponse(
        analysis=analysis,
        requested_diagram=requested,
        diagram=diagram,
        catalog_id=catalog.diagram_id,
        fallback=catalog.diagram_id != requested.diagram_id,
        findings=findings,
        projected_findings=project_findings(findings, diagram, display),
        render_transform=render_transform(diagram),
        legend=legend_entries(findings),
    )
