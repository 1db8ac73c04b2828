"""Overlay orchestrator: classify -> load catalog -> extract -> project.

Drives one diagram overlay through its states:

    uninitialized -> selecting -> catalog_loading -> ready -> rendering
                                       |               ^
                                       +-> errored ----+

Every pipeline run takes a new request id. Catalog lookups are the only
await point; a catalog that resolves after a newer run has started is
discarded, so the most recently requested diagram always wins.
"""

from typing import Callable, List, Optional

from loguru import logger

from src.classifier import classify
from src.extractor import extract
from src.metrics import record_classification, record_findings, record_stale_discard
from src.diagrams import parse_diagram_id
from src.models import (
    AnalysisResult,
    CoordinateCatalog,
    DiagramConfig,
    Dimensions,
    ExaminationInput,
    Finding,
    OverlaySnapshot,
    OverlayState,
    ProjectedFinding,
)
from src.projector import project_findings, render_transform
from src.repository import CoordinateRepository


class OverlayOrchestrator:
    """Keeps a diagram overlay in step with the examination notes.

    Args:
        repository: Source of coordinate catalogs.
        classifier: Callable mapping an ExaminationInput to an
            AnalysisResult. Defaults to src.classifier.classify.
    """

    def __init__(
        self,
        repository: CoordinateRepository,
        classifier: Callable[[ExaminationInput], AnalysisResult] = classify,
    ):
        self.repository = repository
        self.classifier = classifier

        self.state = OverlayState.UNINITIALIZED
        self.history: List[OverlayState] = [self.state]
        self._request_id = 0

        self._examination: Optional[ExaminationInput] = None
        self._analysis: Optional[AnalysisResult] = None
        self._requested: Optional[DiagramConfig] = None
        self._diagram: Optional[DiagramConfig] = None
        self._catalog: Optional[CoordinateCatalog] = None
        self._findings: List[Finding] = []
        self._display: Optional[Dimensions] = None
        # id of the diagram image _display was measured on
        self._display_id: Optional[str] = None
        self._projected: Optional[List[ProjectedFinding]] = None

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    @property
    def request_id(self) -> int:
        return self._request_id

    async def update(self, examination: ExaminationInput) -> OverlaySnapshot:
        """Feed new examination notes; reruns the pipeline when they changed."""
        if examination == self._examination and self.state != OverlayState.UNINITIALIZED:
            return self.snapshot()
        self._examination = examination
        return await self._run(examination)

    async def switch_view(self, diagram: DiagramConfig) -> OverlaySnapshot:
        """Show another diagram (e.g. an alternate) without reclassifying."""
        examination = self._examination or ExaminationInput(sex=diagram.sex)
        return await self._run(examination, diagram=diagram)

    async def reset(self) -> OverlaySnapshot:
        """Rerun the whole pipeline for the last input, or clear everything."""
        if self._examination is None:
            self._next_request()
            self._analysis = None
            self._set_diagram(None)
            self._transition(OverlayState.UNINITIALIZED)
            return self.snapshot()
        return await self._run(self._examination)

    def set_display_dimensions(self, dims: Optional[Dimensions]) -> OverlaySnapshot:
        """Image-ready signal: the rendered size of the current diagram.

        Findings are projected as soon as both the catalog and the
        display size are known.
        """
        self._display = dims
        self._display_id = self._diagram.diagram_id if self._diagram is not None else None
        self._project()
        return self.snapshot()

    def snapshot(self) -> OverlaySnapshot:
        return OverlaySnapshot(
            request_id=self._request_id,
            state=self.state,
            analysis=self._analysis,
            requested_diagram=self._requested,
            active_diagram=self._diagram,
            catalog_id=self._catalog.diagram_id if self._catalog is not None else None,
            findings=list(self._findings),
            projected_findings=list(self._projected) if self._projected is not None else None,
            render_transform=render_transform(self._diagram),
        )

    # -----------------------------------------------------------------
    # Pipeline
    # -----------------------------------------------------------------

    async def _run(
        self,
        examination: ExaminationInput,
        diagram: Optional[DiagramConfig] = None,
    ) -> OverlaySnapshot:
        request_id = self._next_request()

        if diagram is None:
            self._transition(OverlayState.SELECTING)
            self._analysis = self.classifier(examination)
            diagram = self._analysis.primary_diagram
            record_classification(diagram.view_type.value, self._analysis.confidence)

        self._set_diagram(diagram)
        self._transition(OverlayState.CATALOG_LOADING)

        catalog = await self.repository.get(diagram)
        if request_id != self._request_id:
            logger.debug(
                f"Discarding catalog {catalog.diagram_id} for request {request_id}; "
                f"request {self._request_id} is current"
            )
            record_stale_discard()
            return self.snapshot()

        if catalog.is_empty or catalog.diagram_id != diagram.diagram_id:
            self._transition(OverlayState.ERRORED)
        if not catalog.is_empty and catalog.diagram_id != diagram.diagram_id:
            # fallback coordinates belong to another image
            self._diagram = parse_diagram_id(catalog.diagram_id)

        self._catalog = catalog
        self._findings = extract(examination.combined_text(), catalog)
        record_findings(len(self._findings))
        self._transition(OverlayState.READY)
        self._project()
        return self.snapshot()

    def _next_request(self) -> int:
        self._request_id += 1
        return self._request_id

    def _set_diagram(self, diagram: Optional[DiagramConfig]) -> None:
        self._requested = diagram
        self._diagram = diagram
        self._catalog = None
        self._findings = []
        self._projected = None

    def _project(self) -> None:
        if self.state not in (OverlayState.READY, OverlayState.RENDERING) or self._diagram is None:
            return
        display = self._display if self._display_id == self._diagram.diagram_id else None
        self._projected = project_findings(self._findings, self._diagram, display)
        if self._projected is None:
            self._transition(OverlayState.READY)
        else:
            self._transition(OverlayState.RENDERING)

    def _transition(self, state: OverlayState) -> None:
        if state == self.state:
            return
        logger.debug(f"Overlay request {self._request_id}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)
