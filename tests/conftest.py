"""Shared pytest fixtures for the Examination Diagram Mapper test suite.

Provides sample examination inputs, in-memory coordinate sources and
repositories so that tests run without touching data/coordinates/.
"""

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so ``from src...`` imports work
# regardless of how pytest is invoked.
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.models import ExaminationInput  # noqa: E402
from src.repository import CoordinateRepository, InMemoryCoordinateSource  # noqa: E402


# ===================================================================
# EXAMINATION INPUTS
# ===================================================================


@pytest.fixture
def empty_exam():
    return ExaminationInput()


@pytest.fixture
def cardio_exam():
    """Cardiovascular/respiratory-only notes."""
    return ExaminationInput(
        cardiovascular="Heart sounds S1 S2 normal, no murmurs. Lungs clear to auscultation.",
    )


@pytest.fixture
def abdominal_exam():
    return ExaminationInput(
        abdominal="Abdomen soft. Mild epigastric tenderness. No hepatomegaly or splenomegaly.",
    )


@pytest.fixture
def laterality_exam():
    """Musculoskeletal notes mentioning both sides."""
    return ExaminationInput(
        other_systems="Left knee swollen and warm. Right shoulder pain on abduction.",
    )


# ===================================================================
# COORDINATE CATALOGS
# ===================================================================


MALE_FRONT = {
    "head": (351.8, 59.3),
    "chest": (351.8, 288.4),
    "heart": (410.3, 313.5),
    "right_shoulder": (257.2, 234.8),
    "abdomen": (351.8, 450.0),
    "left_knee": (396.8, 764.9),
}

FEMALE_FRONT = {
    "head": (375.0, 60.0),
    "left_knee": (410.0, 770.0),
    "right_shoulder": (270.0, 240.0),
}

MALE_CARDIORESPI = {
    "mitral_area": (462.4, 717.6),
    "aortic_area": (336.0, 429.6),
    "lungs": (400.0, 500.0),
    "carotid_artery_left": (440.0, 120.0),
}

MALE_LEFTSIDE = {
    "left_knee": (380.0, 760.0),
    "left_shoulder": (360.0, 230.0),
}


@pytest.fixture
def catalogs():
    return {
        "malefront": MALE_FRONT,
        "femalefront": FEMALE_FRONT,
        "malecardiorespi": MALE_CARDIORESPI,
        "maleleftside": MALE_LEFTSIDE,
    }


@pytest.fixture
def memory_source(catalogs):
    return InMemoryCoordinateSource(catalogs)


@pytest.fixture
def repository(memory_source):
    return CoordinateRepository(memory_source)
