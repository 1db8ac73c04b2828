"""Prometheus metrics for Examination Diagram Mapper monitoring.

Exposes counters, histograms, and gauges for classification outcomes,
coordinate catalog resolution, finding extraction and discarded stale
pipeline results. The helpers are no-ops when `settings.METRICS_ENABLED`
is off.
"""

from prometheus_client import Counter, Gauge, Histogram

from config.settings import settings


# ═══════════════════════════════════════════════════════════════════════
# METRIC DEFINITIONS
# ═══════════════════════════════════════════════════════════════════════

CLASSIFICATION_COUNT = Counter(
    "diagram_mapper_classification_total",
    "Total number of examination classifications",
    ["primary_view"],
)

CLASSIFICATION_CONFIDENCE = Histogram(
    "diagram_mapper_classification_confidence",
    "Confidence of the selected primary diagram",
    buckets=(0.5, 0.55, 0.6, 0.7, 0.8, 0.9),
)

CATALOG_LOAD_COUNT = Counter(
    "diagram_mapper_catalog_load_total",
    "Coordinate catalog resolutions by outcome",
    ["outcome"],
)

CACHED_CATALOGS = Gauge(
    "diagram_mapper_cached_catalogs",
    "Number of coordinate catalogs held in repository caches",
)

FINDINGS_EXTRACTED = Histogram(
    "diagram_mapper_findings_per_run",
    "Findings extracted per pipeline run",
    buckets=(0, 1, 2, 3, 5, 8, 13, 21),
)

STALE_DISCARD_COUNT = Counter(
    "diagram_mapper_stale_result_total",
    "Catalog results discarded because a newer request superseded them",
)

# Outcomes accepted by record_catalog_load
CATALOG_OUTCOMES = ("cache", "loaded", "fallback", "empty")


# ═══════════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════


def record_classification(primary_view: str, confidence: float) -> None:
    """Record a completed classification.

    Args:
        primary_view: ViewType value of the primary diagram (e.g. "front").
        confidence: Confidence of the result, in [0.5, 0.9].
    """
    if not settings.METRICS_ENABLED:
        return
    CLASSIFICATION_COUNT.labels(primary_view=primary_view).inc()
    CLASSIFICATION_CONFIDENCE.observe(confidence)


def record_catalog_load(outcome: str) -> None:
    """Record a catalog resolution.

    Args:
        outcome: One of "cache", "loaded", "fallback", "empty".
    """
    if outcome not in CATALOG_OUTCOMES:
        raise ValueError(f"Unknown catalog load outcome: {outcome}")
    if not settings.METRICS_ENABLED:
        return
    CATALOG_LOAD_COUNT.labels(outcome=outcome).inc()


def record_findings(count: int) -> None:
    if not settings.METRICS_ENABLED:
        return
    FINDINGS_EXTRACTED.observe(count)


def record_stale_discard() -> None:
    if settings.METRICS_ENABLED:
        STALE_DISCARD_COUNT.inc()


def record_cached_catalogs(delta: int) -> None:
    """Adjust the cached catalog gauge by `delta`.

    The gauge is shared by every repository in the process, so each one
    reports only its own additions and removals.
    """
    if settings.METRICS_ENABLED and delta:
        CACHED_CATALOGS.inc(delta)
