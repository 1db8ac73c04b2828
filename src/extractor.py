"""Finding extractor: ties sentences of examination text to catalog body parts.

Matching is lexical. For every catalog key a handful of spellings is
tried against the lowercased text; the first sentence mentioning the
body part becomes the finding's description.
"""

import re
from typing import List, Optional

from loguru import logger

from config.settings import settings
from src.models import CoordinateCatalog, Finding

SENTENCE_SPLIT = re.compile(r"[.!?\n\r]+")

LATERALITY_SUFFIXES = ("_left", "_right")


def key_variants(key: str) -> List[str]:
    """Spellings of a catalog key, in match priority order.

    `left_knee` -> ["left knee", "left_knee"]
    `carotid_artery_left` -> ["carotid artery left", "carotid_artery_left",
    "left carotid artery"]
    """
    key = key.lower()
    variants = [key.replace("_", " "), key]
    for suffix in LATERALITY_SUFFIXES:
        if key.endswith(suffix) and len(key) > len(suffix):
            side = suffix[1:]
            stem = key[: -len(suffix)].replace("_", " ")
            variants.append(f"{side} {stem}")
    # dedupe, keep order (single-word keys have identical first two forms)
    return list(dict.fromkeys(variants))


def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in SENTENCE_SPLIT.split(text) if s.strip()]


def find_description(text: str, key: str) -> Optional[str]:
    """First usable sentence mentioning `key`, or None."""
    lowered = text.lower()
    sentences = split_sentences(text)
    for variant in key_variants(key):
        if variant not in lowered:
            continue
        sentence = next((s for s in sentences if variant in s.lower()), None)
        if sentence is None or len(sentence) < settings.MIN_SENTENCE_LENGTH:
            continue
        return sentence
    return None


def extract(text: str, catalog: CoordinateCatalog) -> List[Finding]:
    """Extract at most one finding per catalog key.

    Args:
        text: Combined examination text.
        catalog: Catalog of the diagram being annotated.

    Returns:
        Findings in catalog key order; empty when nothing matches.
    """
    if not text or not text.strip() or catalog.is_empty:
        return []

    findings: List[Finding] = []
    for key in catalog.keys():
        description = find_description(text, key)
        if description is None:
            continue
        findings.append(
            Finding(
                body_part_key=key,
                description=description[: settings.DESCRIPTION_MAX_LENGTH],
                reference_coordinate=catalog.get(key),
            )
        )

    logger.debug(f"Extracted {len(findings)} findings against {catalog.diagram_id}")
    return findings
