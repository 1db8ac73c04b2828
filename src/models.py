"""Pydantic data models for the Examination Diagram Mapper.

Covers the diagram catalogue, keyword rules, classification results,
coordinate catalogs, extracted findings and their projections onto the
displayed image.
"""

from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════


class Sex(str, Enum):
    """Patient sex; selects the sex-qualified diagram variant."""
    MALE = "male"
    FEMALE = "female"


class ViewType(str, Enum):
    """Anatomical diagram views.

    Declaration order is the classifier's tie-break order.
    """
    FRONT = "front"
    BACK = "back"
    LEFT_SIDE = "leftside"
    RIGHT_SIDE = "rightside"
    CARDIORESPIRATORY = "cardiorespi"
    ABDOMINAL_INGUINAL = "abdominallinguinal"


class KeywordCategory(str, Enum):
    """Categories of the keyword rule table."""
    CARDIOVASCULAR = "cardiovascular"
    RESPIRATORY = "respiratory"
    ABDOMINAL = "abdominal"
    BACK = "back"
    MUSCULOSKELETAL = "musculoskeletal"
    LATERALITY_LEFT = "laterality_left"
    LATERALITY_RIGHT = "laterality_right"


class RuleScoring(str, Enum):
    """How a keyword rule turns matches into score."""
    PER_MATCH = "per_match"  # count * weight
    PRESENCE = "presence"    # weight once, if anything matched


class OverlayState(str, Enum):
    """States of the overlay pipeline."""
    UNINITIALIZED = "uninitialized"
    SELECTING = "selecting"
    CATALOG_LOADING = "catalog_loading"
    ERRORED = "errored"
    READY = "ready"
    RENDERING = "rendering"


# ═══════════════════════════════════════════════════════════════════════
# GEOMETRY
# ═══════════════════════════════════════════════════════════════════════


class Dimensions(BaseModel):
    """Pixel size of a diagram image."""
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)

    model_config = {"frozen": True}


class ReferenceCoordinate(BaseModel):
    """A point in the fixed pixel space of a diagram's reference image."""
    x: float
    y: float

    model_config = {"frozen": True}


class DisplayPosition(BaseModel):
    """A point in the pixel space of the displayed image."""
    left: float
    top: float

    model_config = {"frozen": True}


# ═══════════════════════════════════════════════════════════════════════
# DIAGRAMS & RULES
# ═══════════════════════════════════════════════════════════════════════


class DiagramConfig(BaseModel):
    """One sex-qualified anatomical diagram.

    Built by src.diagrams.get_diagram_config(); never mutated.
    """
    view_type: ViewType
    sex: Sex
    image_path: str
    coordinate_key: str = Field(..., description="e.g. femalefront.png")
    priority: int = Field(..., ge=1)
    mirrored: bool = False
    reference_dimensions: Dimensions

    model_config = {"frozen": True}

    @property
    def diagram_id(self) -> str:
        return f"{self.sex.value}{self.view_type.value}"


class KeywordRule(BaseModel):
    """A row of the keyword rule table."""
    category: KeywordCategory
    label: str
    keywords: Tuple[str, ...] = Field(..., min_length=1)
    target_views: Tuple[ViewType, ...] = Field(..., min_length=1)
    weight: float = Field(..., gt=0)
    scoring: RuleScoring = RuleScoring.PER_MATCH

    model_config = {"frozen": True}


# ═══════════════════════════════════════════════════════════════════════
# CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════


class ExaminationInput(BaseModel):
    """The five free-text examination fields plus patient sex."""
    general: str = ""
    cardiovascular: str = ""
    respiratory: str = ""
    abdominal: str = ""
    other_systems: str = ""
    sex: Sex = Sex.MALE

    model_config = {"frozen": True}

    def fields(self) -> List[str]:
        return [
            self.general,
            self.cardiovascular,
            self.respiratory,
            self.abdominal,
            self.other_systems,
        ]

    def combined_text(self, separator: str = "\n") -> str:
        """Join the non-empty fields."""
        return separator.join(f for f in self.fields() if f and f.strip())

    def is_empty(self) -> bool:
        return not any(f.strip() for f in self.fields() if f)


class ScoredCandidate(BaseModel):
    """A diagram view with its accumulated score."""
    view_type: ViewType
    score: float = Field(0.0, ge=0.0)
    reasoning_factors: List[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Outcome of one classification call."""
    primary_diagram: DiagramConfig
    secondary_diagrams: List[DiagramConfig] = Field(default_factory=list, max_length=2)
    confidence: float = Field(..., ge=0.5, le=0.9)
    reasoning_factors: List[str] = Field(default_factory=list)
    candidates: List[ScoredCandidate] = Field(default_factory=list)

    model_config = {"frozen": True}


# ═══════════════════════════════════════════════════════════════════════
# CATALOGS & FINDINGS
# ═══════════════════════════════════════════════════════════════════════


class CoordinateCatalog(BaseModel):
    """Body-part key -> reference coordinate for one diagram."""
    diagram_id: str
    coordinates: Dict[str, ReferenceCoordinate] = Field(default_factory=dict)

    def __contains__(self, key: object) -> bool:
        return key in self.coordinates

    def __len__(self) -> int:
        return len(self.coordinates)

    def keys(self) -> Iterator[str]:
        return iter(self.coordinates)

    def get(self, key: str) -> Optional[ReferenceCoordinate]:
        return self.coordinates.get(key)

    @property
    def is_empty(self) -> bool:
        return not self.coordinates


class Finding(BaseModel):
    """A clinical observation tied to one catalog body part."""
    body_part_key: str
    description: str
    reference_coordinate: ReferenceCoordinate

    @property
    def label(self) -> str:
        return self.body_part_key.replace("_", " ").title()


class ProjectedFinding(BaseModel):
    """A finding placed on the displayed image."""
    display_position: DisplayPosition
    index: int = Field(..., ge=1)
    finding: Finding

    @property
    def label(self) -> str:
        return self.finding.label


class OverlaySnapshot(BaseModel):
    """Externally visible state of an overlay pipeline."""
    request_id: int = 0
    state: OverlayState = OverlayState.UNINITIALIZED
    analysis: Optional[AnalysisResult] = None
    requested_diagram: Optional[DiagramConfig] = None
    active_diagram: Optional[DiagramConfig] = None
    catalog_id: Optional[str] = None
    findings: List[Finding] = Field(default_factory=list)
    projected_findings: Optional[List[ProjectedFinding]] = None
    render_transform: Optional[str] = None
