"""Tests for the FastAPI surface of the Examination Diagram Mapper."""

import pytest
from fastapi.testclient import TestClient

from api.main import _state, app
from src.classifier import classify
from src.models import ExaminationInput


@pytest.fixture
def client():
    """TestClient with the lifespan run (repository over data/coordinates/)."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def memory_client(client, repository):
    """Same app with the repository swapped for the in-memory one."""
    _state["repository"] = repository
    return client


CARDIO = {"cardiovascular": "Heart sounds S1 S2 normal, no murmurs. Lungs clear to auscultation."}
LATERAL = {"other_systems": "Left knee swollen and warm. Right shoulder pain on abduction."}


# ===================================================================
# CORE
# ===================================================================


class TestCore:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["coordinates_dir"].endswith("coordinates")

    def test_metrics(self, client):
        client.post("/classify", json=CARDIO)
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "diagram_mapper_classification_total" in resp.text

    def test_uninitialized_repository(self):
        _state.clear()
        resp = TestClient(app).get("/catalogs/malefront")
        assert resp.status_code == 503


# ===================================================================
# DIAGRAMS
# ===================================================================


class TestDiagrams:

    def test_list_female(self, client):
        data = client.get("/diagrams/female").json()
        assert data["total"] == 6
        assert data["diagrams"][0]["view_type"] == "front"
        assert data["diagrams"][0]["image_path"] == "/medical-images/femalefront.png"
        assert data["diagrams"][-1]["view_type"] == "abdominallinguinal"

    def test_invalid_sex(self, client):
        assert client.get("/diagrams/other").status_code == 422

    def test_classify_matches_library(self, client):
        resp = client.post("/classify", json=CARDIO)
        assert resp.status_code == 200
        expected = classify(ExaminationInput(**CARDIO)).model_dump(mode="json")
        assert resp.json() == expected
        assert resp.json()["primary_diagram"]["view_type"] == "cardiorespi"

    def test_classify_empty(self, client):
        data = client.post("/classify", json={"sex": "female"}).json()
        assert data["primary_diagram"]["coordinate_key"] == "femalefront.png"
        assert data["confidence"] == 0.5
        assert data["secondary_diagrams"] == []


# ===================================================================
# CATALOGS
# ===================================================================


class TestCatalogs:

    def test_shipped_catalog(self, client):
        data = client.get("/catalogs/malefront").json()
        assert data["diagram_id"] == "malefront"
        assert data["fallback"] is False
        assert data["coordinates"]["left_knee"] == {"x": 396.8, "y": 764.9}

    def test_unknown_id(self, client):
        assert client.get("/catalogs/alienfront").status_code == 404
        assert client.get("/catalogs/maletop").status_code == 404

    def test_fallback_reported(self, memory_client):
        data = memory_client.get("/catalogs/femaleabdominallinguinal").json()
        assert data["requested_id"] == "femaleabdominallinguinal"
        assert data["diagram_id"] == "femalefront"
        assert data["fallback"] is True


# ===================================================================
# OVERLAY
# ===================================================================


class TestOverlay:

    def test_overlay_without_display(self, memory_client):
        data = memory_client.post("/overlay", json={"examination": LATERAL}).json()
        assert data["diagram"]["view_type"] == "front"
        assert [f["body_part_key"] for f in data["findings"]] == ["right_shoulder", "left_knee"]
        assert data["projected_findings"] is None
        assert data["legend"][1] == "2. Left Knee: Left knee swollen and warm"

    def test_overlay_with_display(self, memory_client):
        body = {"examination": LATERAL, "display_width": 375, "display_height": 570}
        data = memory_client.post("/overlay", json=body).json()
        knee = data["projected_findings"][1]
        assert knee["index"] == 2
        assert knee["display_position"]["left"] == pytest.approx(198.4)

    def test_overlay_view_override(self, memory_client):
        body = {"examination": LATERAL, "view": "maleleftside"}
        data = memory_client.post("/overlay", json=body).json()
        assert data["diagram"]["mirrored"] is True
        assert data["render_transform"] == "scaleX(-1)"
        assert [f["body_part_key"] for f in data["findings"]] == ["left_knee"]

    def test_overlay_unknown_view(self, memory_client):
        body = {"examination": LATERAL, "view": "malenowhere"}
        assert memory_client.post("/overlay", json=body).status_code == 404

    def test_overlay_rejects_zero_display(self, memory_client):
        body = {"examination": LATERAL, "display_width": 0, "display_height": 570}
        assert memory_client.post("/overlay", json=body).status_code == 422

    def test_overlay_fallback_uses_fallback_diagram(self, memory_client):
        body = {
            "examination": {"abdominal": "Abdomen soft. Mild epigastric tenderness."},
            "display_width": 750,
            "display_height": 1140,
        }
        data = memory_client.post("/overlay", json=body).json()
        assert data["requested_diagram"]["diagram_id"] == "maleabdominallinguinal"
        assert data["diagram"]["diagram_id"] == "malefront"
        assert data["catalog_id"] == "malefront"
        assert data["fallback"] is True
        abdomen = data["projected_findings"][0]
        assert abdomen["finding"]["body_part_key"] == "abdomen"
        assert abdomen["display_position"]["left"] == pytest.approx(351.8)
