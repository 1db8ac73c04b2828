"""Export overlay snapshots to Markdown and JSON, plus the diagram legend."""

from typing import List

from config.settings import settings
from src.models import Finding, OverlaySnapshot


def shorten(text: str, max_length: int) -> str:
    """Cut `text` to `max_length` characters, marking the cut with "..."."""
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}..."


def legend_entries(findings: List[Finding]) -> List[str]:
    """Numbered legend lines for the first few findings.

    Descriptions are cut to LEGEND_MAX_LENGTH; remaining findings are
    summarised as "+N more findings".
    """
    shown = findings[: settings.LEGEND_MAX_ITEMS]
    entries = [
        f"{i}. {f.label}: {shorten(f.description, settings.LEGEND_MAX_LENGTH)}"
        for i, f in enumerate(shown, start=1)
    ]
    remaining = len(findings) - len(shown)
    if remaining > 0:
        entries.append(f"+{remaining} more findings")
    return entries


def export_markdown(snapshot: OverlaySnapshot) -> str:
    """Export snapshot as Markdown string."""
    md = ["# Examination Diagram Overlay\n"]

    diagram = snapshot.active_diagram
    if diagram is None:
        md.append("\n*No diagram selected.*\n")
        return "".join(md)

    md.append(f"\n**Diagram:** {diagram.diagram_id} ({diagram.image_path})\n")
    md.append(f"\n**State:** {snapshot.state.value}\n")
    requested = snapshot.requested_diagram
    if requested is not None and requested.diagram_id != diagram.diagram_id:
        md.append(f"\n**Coordinates:** {diagram.diagram_id} (fallback for {requested.diagram_id})\n")
    if snapshot.render_transform:
        md.append(f"\n**Transform:** `{snapshot.render_transform}`\n")

    analysis = snapshot.analysis
    if analysis is not None:
        md.append(f"\n**Confidence:** {analysis.confidence:.0%}\n")
        if analysis.reasoning_factors:
            md.append("\n## Reasoning\n\n")
            for factor in analysis.reasoning_factors:
                md.append(f"- {factor}\n")
        if analysis.secondary_diagrams:
            md.append("\n## Alternate Views\n\n")
            for alt in analysis.secondary_diagrams:
                md.append(f"- {alt.diagram_id}\n")

    md.append(f"\n## Findings ({len(snapshot.findings)})\n\n")
    if snapshot.findings:
        positions = {}
        for pf in snapshot.projected_findings or []:
            positions[pf.finding.body_part_key] = pf.display_position

        md.append("| # | Body Part | Description | Position |\n")
        md.append("|---|-----------|-------------|----------|\n")
        for i, finding in enumerate(snapshot.findings, start=1):
            pos = positions.get(finding.body_part_key)
            where = f"{pos.left:.0f}, {pos.top:.0f}" if pos is not None else "-"
            description = finding.description.replace("|", "\\|")
            md.append(f"| {i} | {finding.label} | {description} | {where} |\n")

        md.append("\n## Legend\n\n")
        for entry in legend_entries(snapshot.findings):
            md.append(f"- {entry}\n")
    else:
        md.append("*No findings mapped to this diagram.*\n")

    md.append("\n---\n*Findings are matched lexically and require clinician review.*\n")
    return "".join(md)


def export_json(snapshot: OverlaySnapshot) -> str:
    """Export snapshot as JSON string."""
    return snapshot.model_dump_json(indent=2)
