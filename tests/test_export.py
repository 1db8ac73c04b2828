"""Tests for overlay export functions and the legend.

Validates legend_entries(), export_markdown() and export_json() with
snapshots built by a real orchestrator over in-memory catalogs.
"""

import json

import pytest
import pytest_asyncio

from src.export import export_json, export_markdown, legend_entries, shorten
from src.models import Dimensions, Finding, OverlaySnapshot, ReferenceCoordinate
from src.orchestrator import OverlayOrchestrator


def _finding(key, description):
    return Finding(body_part_key=key, description=description, reference_coordinate=ReferenceCoordinate(x=1, y=1))


# ===================================================================
# FIXTURES
# ===================================================================


@pytest_asyncio.fixture
async def rendered_snapshot(repository, laterality_exam):
    orchestrator = OverlayOrchestrator(repository)
    await orchestrator.update(laterality_exam)
    return orchestrator.set_display_dimensions(Dimensions(width=375, height=570))


# ===================================================================
# LEGEND
# ===================================================================


class TestLegend:

    def test_shorten_keeps_short_text(self):
        assert shorten("Knee swollen", 30) == "Knee swollen"

    def test_shorten_cuts_long_text(self):
        assert shorten("a" * 40, 30) == "a" * 30 + "..."

    def test_entries_numbered(self):
        entries = legend_entries([_finding("left_knee", "Left knee swollen")])
        assert entries == ["1. Left Knee: Left knee swollen"]

    def test_long_description_cut(self):
        entries = legend_entries([_finding("heart", "Heart sounds dual, soft systolic murmur at apex")])
        assert entries == ["1. Heart: Heart sounds dual, soft systol..."]

    def test_more_findings_summary(self):
        findings = [_finding(f"part_{i}", f"finding {i}") for i in range(5)]
        entries = legend_entries(findings)
        assert len(entries) == 4
        assert entries[-1] == "+2 more findings"

    def test_exactly_three(self):
        findings = [_finding(f"part_{i}", f"finding {i}") for i in range(3)]
        assert len(legend_entries(findings)) == 3

    def test_empty(self):
        assert legend_entries([]) == []


# ===================================================================
# MARKDOWN
# ===================================================================


class TestExportMarkdown:

    def test_no_diagram(self):
        md = export_markdown(OverlaySnapshot())
        assert "No diagram selected" in md

    @pytest.mark.asyncio
    async def test_contains_diagram_and_findings(self, rendered_snapshot):
        md = export_markdown(rendered_snapshot)
        assert "# Examination Diagram Overlay" in md
        assert "malefront" in md
        assert "**Confidence:** 50%" in md
        assert "| 1 | Right Shoulder |" in md
        assert "| 2 | Left Knee | Left knee swollen and warm |" in md
        assert "## Legend" in md

    @pytest.mark.asyncio
    async def test_alternates_listed(self, rendered_snapshot):
        md = export_markdown(rendered_snapshot)
        assert "## Alternate Views" in md
        assert "- maleleftside" in md
        assert "- malerightside" in md

    @pytest.mark.asyncio
    async def test_fallback_noted(self, repository, abdominal_exam):
        orchestrator = OverlayOrchestrator(repository)
        snap = await orchestrator.update(abdominal_exam)
        md = export_markdown(snap)
        assert "**Coordinates:** malefront (fallback for maleabdominallinguinal)" in md


# ===================================================================
# JSON
# ===================================================================


class TestExportJson:

    @pytest.mark.asyncio
    async def test_valid_json(self, rendered_snapshot):
        data = json.loads(export_json(rendered_snapshot))
        assert data["state"] == "rendering"
        assert data["catalog_id"] == "malefront"
        assert len(data["projected_findings"]) == 2
        assert data["projected_findings"][0]["index"] == 1

    def test_empty_snapshot(self):
        data = json.loads(export_json(OverlaySnapshot()))
        assert data["state"] == "uninitialized"
        assert data["projected_findings"] is None
