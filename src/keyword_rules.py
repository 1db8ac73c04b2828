"""Keyword rule table for examination content classification.

Seven rules map lexical evidence in examination notes onto diagram views.
Each rule is tagged with a category, its target views, a weight and a
scoring mode; `apply_rules` folds the whole table over a search string.
Matching is plain substring containment on lowercased text.
"""

from typing import Dict, List, Optional, Tuple

from src.models import KeywordCategory, KeywordRule, RuleScoring, ScoredCandidate, ViewType


# Matched keywords shown per reasoning factor
MAX_REASONING_KEYWORDS = 3


# ═══════════════════════════════════════════════════════════════════════
# KEYWORD LISTS
# ═══════════════════════════════════════════════════════════════════════

CARDIOVASCULAR_KEYWORDS = (
    "heart", "cardiac", "cardio", "chest pain", "palpitation", "murmur",
    "tachycardia", "bradycardia", "arrhythmia", "pulse", "blood pressure",
    "s1", "s2", "s3", "s4", "gallop", "rub", "apex", "precordium",
)

RESPIRATORY_KEYWORDS = (
    "lung", "breath", "cough", "wheeze", "stridor", "rale", "crackle",
    "dyspnea", "shortness of breath", "chest", "thorax", "respiratory",
    "pneumonia", "asthma", "copd", "pleural", "bronchi",
)

ABDOMINAL_KEYWORDS = (
    "abdomen", "stomach", "belly", "bowel", "liver", "spleen", "kidney",
    "pain abdomen", "abdominal pain", "nausea", "vomiting", "diarrhea",
    "constipation", "hepatomegaly", "splenomegaly", "ascites", "hernia",
    "inguinal", "umbilical", "epigastric", "hypogastric",
)

BACK_KEYWORDS = (
    "back pain", "spine", "vertebra", "lumbar", "thoracic", "cervical",
    "sciatica", "spinal", "kyphosis", "scoliosis", "lordosis", "disc",
)

MUSCULOSKELETAL_KEYWORDS = (
    "joint", "muscle", "bone", "fracture", "strain", "sprain", "arthritis",
    "swelling", "tender", "mobility", "range of motion", "stiffness",
)

LEFT_KEYWORDS = ("left", "sinister")

RIGHT_KEYWORDS = ("right", "dexter")


# ═══════════════════════════════════════════════════════════════════════
# RULE TABLE
# ═══════════════════════════════════════════════════════════════════════

RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(
        category=KeywordCategory.CARDIOVASCULAR,
        label="Cardiovascular findings",
        keywords=CARDIOVASCULAR_KEYWORDS,
        target_views=(ViewType.CARDIORESPIRATORY,),
        weight=2.0,
    ),
    KeywordRule(
        category=KeywordCategory.RESPIRATORY,
        label="Respiratory findings",
        keywords=RESPIRATORY_KEYWORDS,
        target_views=(ViewType.CARDIORESPIRATORY,),
        weight=2.0,
    ),
    KeywordRule(
        category=KeywordCategory.ABDOMINAL,
        label="Abdominal findings",
        keywords=ABDOMINAL_KEYWORDS,
        target_views=(ViewType.ABDOMINAL_INGUINAL,),
        weight=2.0,
    ),
    KeywordRule(
        category=KeywordCategory.BACK,
        label="Back/spine findings",
        keywords=BACK_KEYWORDS,
        target_views=(ViewType.BACK,),
        weight=1.5,
    ),
    KeywordRule(
        category=KeywordCategory.MUSCULOSKELETAL,
        label="Musculoskeletal findings",
        keywords=MUSCULOSKELETAL_KEYWORDS,
        target_views=(ViewType.FRONT,),
        weight=1.0,
    ),
    KeywordRule(
        category=KeywordCategory.LATERALITY_LEFT,
        label="Left-sided findings mentioned",
        keywords=LEFT_KEYWORDS,
        target_views=(ViewType.LEFT_SIDE,),
        weight=1.0,
        scoring=RuleScoring.PRESENCE,
    ),
    KeywordRule(
        category=KeywordCategory.LATERALITY_RIGHT,
        label="Right-sided findings mentioned",
        keywords=RIGHT_KEYWORDS,
        target_views=(ViewType.RIGHT_SIDE,),
        weight=1.0,
        scoring=RuleScoring.PRESENCE,
    ),
)


# ═══════════════════════════════════════════════════════════════════════
# EVALUATION
# ═══════════════════════════════════════════════════════════════════════


def matched_keywords(rule: KeywordRule, search_text: str) -> List[str]:
    """Keywords of `rule` contained in `search_text`, in table order."""
    return [kw for kw in rule.keywords if kw in search_text]


def count_matches(rule: KeywordRule, search_text: str) -> int:
    return len(matched_keywords(rule, search_text))


def rule_contribution(rule: KeywordRule, match_count: int) -> float:
    """Score a rule adds to each of its target views."""
    if match_count <= 0:
        return 0.0
    if rule.scoring == RuleScoring.PRESENCE:
        return rule.weight
    return match_count * rule.weight


def reasoning_factor(rule: KeywordRule, matches: List[str]) -> str:
    if rule.scoring == RuleScoring.PRESENCE:
        return rule.label
    return f"{rule.label}: {', '.join(matches[:MAX_REASONING_KEYWORDS])}"


def apply_rules(
    search_text: str,
    candidates: Dict[ViewType, ScoredCandidate],
    rules: Optional[Tuple[KeywordRule, ...]] = None,
) -> Dict[ViewType, ScoredCandidate]:
    """Fold the rule table over `search_text`, updating `candidates` in place.

    `search_text` is expected to be lowercased already. Views a rule
    targets that are missing from `candidates` are created at zero.
    Returns the same dict for chaining.
    """
    for rule in RULES if rules is None else rules:
        matches = matched_keywords(rule, search_text)
        if not matches:
            continue

        contribution = rule_contribution(rule, len(matches))
        factor = reasoning_factor(rule, matches)
        for view in rule.target_views:
            candidate = candidates.setdefault(view, ScoredCandidate(view_type=view))
            candidate.score += contribution
            candidate.reasoning_factors.append(factor)

    return candidates


def get_rule(category: KeywordCategory) -> KeywordRule:
    """Look up the rule for a category.

    Raises:
        KeyError: if the category has no rule in the table.
    """
    for rule in RULES:
        if rule.category == category:
            return rule
    raise KeyError(category)
