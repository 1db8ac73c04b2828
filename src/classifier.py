"""Content classifier: picks the diagram that best fits examination notes.

Pure and deterministic. All five examination fields are lowercased into
one search string, the keyword rule table is folded over it, and the
candidates are ranked by score with ViewType order breaking ties. The
front view carries a base score so it is always the floor.
"""

from typing import Dict, List, Optional, Union

from loguru import logger

from config.settings import settings
from src.diagrams import get_diagram_config, resolve_sex
from src.keyword_rules import apply_rules
from src.models import (
    AnalysisResult,
    DiagramConfig,
    ExaminationInput,
    ScoredCandidate,
    Sex,
    ViewType,
)

DEFAULT_VIEW_FACTOR = "Default view"
GENERAL_EXAM_FACTOR = "General examination documented"


def build_search_text(examination: ExaminationInput) -> str:
    """Lowercased concatenation of every examination field."""
    return " ".join(examination.fields()).lower()


def analyze_examination_content(examination: ExaminationInput) -> Dict[ViewType, ScoredCandidate]:
    """Score every view for the given examination.

    Returns a dict keyed by ViewType in declaration order, so iterating it
    yields the tie-break order.
    """
    candidates: Dict[ViewType, ScoredCandidate] = {
        view: ScoredCandidate(view_type=view) for view in ViewType
    }
    front = candidates[ViewType.FRONT]
    front.score = settings.FRONT_BASE_SCORE
    front.reasoning_factors.append(DEFAULT_VIEW_FACTOR)

    apply_rules(build_search_text(examination), candidates)

    if examination.general and examination.general.strip():
        front.score += settings.GENERAL_EXAM_BONUS
        front.reasoning_factors.append(GENERAL_EXAM_FACTOR)

    return candidates


def rank_candidates(candidates: Dict[ViewType, ScoredCandidate]) -> List[ScoredCandidate]:
    """Sort by score descending; sorted() is stable so ties keep ViewType order."""
    order = {view: i for i, view in enumerate(ViewType)}
    ordered = sorted(candidates.values(), key=lambda c: order[c.view_type])
    return sorted(ordered, key=lambda c: c.score, reverse=True)


def _evidence_score(candidate: ScoredCandidate) -> float:
    if candidate.view_type == ViewType.FRONT:
        return max(candidate.score - settings.FRONT_BASE_SCORE, 0.0)
    return candidate.score


def compute_confidence(ranked: List[ScoredCandidate]) -> float:
    """0.5 + margin/10, clamped to [floor, cap].

    The margin is how far the primary (ranked[0]) leads the runner-up
    (ranked[1]); a tied primary stays at the floor. An input with no
    evidence at all (only the front view's base score) also sits exactly
    at the floor.
    """
    if not ranked or not any(_evidence_score(c) > 0 for c in ranked):
        return settings.CONFIDENCE_FLOOR
    runner_up = ranked[1].score if len(ranked) > 1 else 0.0
    margin = ranked[0].score - runner_up
    confidence = settings.CONFIDENCE_FLOOR + margin / settings.CONFIDENCE_DIVISOR
    return max(settings.CONFIDENCE_FLOOR, min(settings.CONFIDENCE_CAP, confidence))


def classify(
    examination: ExaminationInput,
    sex: Optional[Union[Sex, str]] = None,
) -> AnalysisResult:
    """Select the primary diagram and up to two alternates.

    Args:
        examination: The five free-text examination fields.
        sex: Overrides examination.sex when given.

    Returns:
        AnalysisResult whose primary diagram is always defined.
    """
    sex = resolve_sex(sex if sex is not None else examination.sex)
    ranked = rank_candidates(analyze_examination_content(examination))

    primary = ranked[0]
    secondaries = [
        c for c in ranked[1:] if c.score > 0
    ][: settings.MAX_SECONDARY_DIAGRAMS]
    confidence = compute_confidence(ranked)

    logger.debug(
        f"Classified examination as {sex.value}{primary.view_type.value} "
        f"(score={primary.score:.1f}, confidence={confidence:.2f})"
    )

    return AnalysisResult(
        primary_diagram=get_diagram_config(sex, primary.view_type),
        secondary_diagrams=[get_diagram_config(sex, c.view_type) for c in secondaries],
        confidence=confidence,
        reasoning_factors=list(primary.reasoning_factors),
        candidates=ranked,
    )


def get_recommended_diagrams(
    examination: ExaminationInput,
    sex: Optional[Union[Sex, str]] = None,
    limit: int = 3,
) -> List[DiagramConfig]:
    """Primary diagram followed by its alternates, at most `limit` long."""
    result = classify(examination, sex)
    return [result.primary_diagram, *result.secondary_diagrams][:limit]


def get_all_relevant_diagrams(
    examination: ExaminationInput,
    sex: Optional[Union[Sex, str]] = None,
    min_score: float = 1.0,
) -> List[DiagramConfig]:
    """Every view scoring at least `min_score`, ranked.

    Falls back to the front view when nothing qualifies.
    """
    sex = resolve_sex(sex if sex is not None else examination.sex)
    ranked = rank_candidates(analyze_examination_content(examination))
    relevant = [get_diagram_config(sex, c.view_type) for c in ranked if c.score >= min_score]
    return relevant or [get_diagram_config(sex, ViewType.FRONT)]
