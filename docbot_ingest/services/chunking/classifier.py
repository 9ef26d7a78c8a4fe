"""Structure classifier: decides the effective document type from a text sample.

Pure function of ``(sample_text, hint, total_pages)``; the same input always
yields the same :class:`~docbot_ingest.models.documents.EffectiveDocType`.

Decision order:

1. A ``faq`` hint re-runs the FAQ heuristic to separate true question/answer
   documents (``faq_qa``) from heading-style FAQs (``faq_glossary``).  A
   ``glossary`` or ``manual`` hint wins outright.
2. Without a hint: FAQ heuristic, then glossary heuristic, then the page
   count (``>= manual_min_pages`` pages is a manual, otherwise standard).
"""

from __future__ import annotations

import re

import structlog

from docbot_ingest.config.chunking import ClassifierThresholds
from docbot_ingest.models.documents import DocumentTypeHint, EffectiveDocType
from docbot_ingest.services.chunking.text_utils import split_paragraphs

logger = structlog.get_logger(logger_name=__name__)

# FAQ pattern families.  Matches are summed across families.
_FAQ_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\s*Question\s*:", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^\s*Q\s*[:.]\s+\S", re.MULTILINE),
    re.compile(r"^\s*\d+[.)]\s+[^\n]*\?\s*$", re.MULTILINE),
    re.compile(r"^\s*#{1,6}\s+[^\n]*\?\s*$", re.MULTILINE),
)


def count_faq_matches(sample_text: str) -> int:
    """Total matches of the four FAQ pattern families in *sample_text*."""
    return sum(len(pattern.findall(sample_text)) for pattern in _FAQ_PATTERNS)


def looks_like_glossary(sample_text: str, thresholds: ClassifierThresholds) -> bool:
    """Many short blank-line separated paragraphs."""
    paragraphs = split_paragraphs(sample_text)
    if len(paragraphs) < thresholds.glossary_min_paragraphs:
        return False
    average = sum(len(p) for p in paragraphs) / len(paragraphs)
    return average < thresholds.glossary_max_avg_paragraph


def classify(
    sample_text: str,
    hint: DocumentTypeHint | str | None = None,
    total_pages: int = 0,
    thresholds: ClassifierThresholds | None = None,
) -> EffectiveDocType:
    """Return the effective document type for *sample_text*.

    Parameters
    ----------
    sample_text:
        Leading portion of the extracted document text.
    hint:
        Optional ``faq`` / ``glossary`` / ``manual`` hint.  Unknown values
        are ignored.
    total_pages:
        Page count of the whole document, used by the final fallback.
    thresholds:
        Heuristic thresholds; defaults apply when omitted.
    """
    thresholds = thresholds or ClassifierThresholds()
    resolved_hint = _parse_hint(hint)

    if resolved_hint is DocumentTypeHint.FAQ:
        matches = count_faq_matches(sample_text)
        result = (
            EffectiveDocType.FAQ_QA
            if matches >= thresholds.faq_min_matches
            else EffectiveDocType.FAQ_GLOSSARY
        )
        logger.debug("classified_with_hint", hint="faq", faq_matches=matches, result=result.value)
        return result
    if resolved_hint is DocumentTypeHint.GLOSSARY:
        return EffectiveDocType.GLOSSARY
    if resolved_hint is DocumentTypeHint.MANUAL:
        return EffectiveDocType.MANUAL

    matches = count_faq_matches(sample_text)
    if matches >= thresholds.faq_min_matches:
        result = EffectiveDocType.FAQ_QA
    elif looks_like_glossary(sample_text, thresholds):
        result = EffectiveDocType.GLOSSARY
    elif total_pages >= thresholds.manual_min_pages:
        result = EffectiveDocType.MANUAL
    else:
        result = EffectiveDocType.STANDARD

    logger.debug(
        "classified",
        faq_matches=matches,
        total_pages=total_pages,
        result=result.value,
    )
    return result


def _parse_hint(hint: DocumentTypeHint | str | None) -> DocumentTypeHint | None:
    if hint is None or isinstance(hint, DocumentTypeHint):
        return hint
    try:
        return DocumentTypeHint(hint.strip().lower())
    except ValueError:
        return None
