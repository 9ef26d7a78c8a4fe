"""Text helpers shared by the chunking strategies and the metadata builder.

Paragraph and sentence splitting, link/contact extraction, keyword
extraction, content fingerprints and cap-respecting truncation.  All
functions are pure.
"""

from __future__ import annotations

import hashlib
import re

# Common abbreviations that should NOT trigger a sentence split.
# "Dr. Smith" should remain one sentence, not split at the period.
_ABBREVIATIONS = frozenset(
    {
        "Dr",
        "Mr",
        "Mrs",
        "Ms",
        "Prof",
        "Jr",
        "Sr",
        "St",
        "No",
        "vs",
        "etc",
        "approx",
        "dept",
        "e.g",
        "i.e",
        "inc",
        "ltd",
        "co",
        "Fig",
        "Sec",
    }
)

URL_RE = re.compile(r"https?://[^\s<>\"'\]\[)(]+", re.IGNORECASE)
EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RE = re.compile(
    r"(?<![\w/])(?:\+?\d{1,3}[\s.-]?)?(?:\(\d{2,4}\)|\d{2,4})[\s.-]\d{3,4}[\s.-]?\d{3,4}(?![\w/])"
)
BARE_WEBSITE_RE = re.compile(r"(?<![\w/@.])www\.[A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)+", re.IGNORECASE)

LIST_LINE_RE = re.compile(r"^\s*(?:[-*•▪●]|\d+[.)]|[a-z][.)])\s+\S", re.MULTILINE)
TABLE_RE = re.compile(r"(?:\|.*\|)|(?:\t\S+\t)|(?:^\s*[-+]{3,}\s*$)", re.MULTILINE)

_TRAILING_URL_PUNCT = ".,;:!?"
_SENTENCE_END_RE = re.compile(r"[.!?](?=\s|$)")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_KEYWORD_STRIP_RE = re.compile(r"[^\w\s-]")

STOP_WORDS = frozenset(
    {
        "about", "above", "after", "again", "against", "also", "been", "before",
        "being", "below", "between", "both", "cannot", "could", "does", "doing",
        "down", "during", "each", "from", "further", "have", "having", "here",
        "hers", "herself", "himself", "into", "itself", "just", "more", "most",
        "must", "myself", "once", "only", "other", "ours", "ourselves", "over",
        "same", "shall", "should", "some", "such", "than", "that", "their",
        "theirs", "them", "themselves", "then", "there", "these", "they", "this",
        "those", "through", "under", "until", "upon", "very", "were", "what",
        "when", "where", "which", "while", "whom", "will", "with", "within",
        "without", "would", "your", "yours", "yourself", "yourselves", "page",
        "please", "http", "https", "www",
    }
)


# ------------------------------------------------------------------
# Splitting
# ------------------------------------------------------------------

def split_paragraphs(text: str) -> list[str]:
    """Split *text* on blank lines, discarding empty paragraphs."""
    return [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(text) if p.strip()]


def split_sentences(text: str) -> list[str]:
    """Split *text* at sentence boundaries while respecting abbreviations.

    Handles ``.``, ``!``, ``?`` followed by whitespace or end-of-string.
    Periods after known abbreviations are masked with ``\\x00`` first (same
    length, so indices stay aligned with the original text).
    """
    masked = text
    for abbr in _ABBREVIATIONS:
        masked = masked.replace(f"{abbr}.", f"{abbr}\x00")

    sentences: list[str] = []
    last = 0
    for match in re.finditer(r"[.!?](?:\s|$)", masked):
        end = match.end()
        sentence = text[last:end].strip()
        if sentence:
            sentences.append(sentence)
        last = end

    remainder = text[last:].strip()
    if remainder:
        sentences.append(remainder)

    return sentences if sentences else [text]


def hard_wrap(text: str, limit: int) -> list[str]:
    """Cut *text* into pieces of at most *limit* chars, preferring word boundaries."""
    pieces: list[str] = []
    remaining = text.strip()
    while len(remaining) > limit:
        cut = remaining.rfind(" ", 0, limit + 1)
        if cut <= limit // 2:
            cut = limit
        pieces.append(remaining[:cut].strip())
        remaining = remaining[cut:].strip()
    if remaining:
        pieces.append(remaining)
    return pieces


# ------------------------------------------------------------------
# Truncation
# ------------------------------------------------------------------

def truncate_at_sentence(text: str, limit: int, min_fraction: float = 0.5) -> str:
    """Truncate *text* to at most *limit* characters.

    Cuts after the last sentence terminator inside the cap when that
    boundary lies at or past ``min_fraction * limit``; otherwise falls
    back to a hard character cut.
    """
    if len(text) <= limit:
        return text
    window = text[:limit]
    boundary = -1
    for match in _SENTENCE_END_RE.finditer(window):
        boundary = match.end()
    if boundary >= int(limit * min_fraction):
        return window[:boundary].rstrip()
    return window


# ------------------------------------------------------------------
# Extraction
# ------------------------------------------------------------------

def _unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def extract_links(text: str) -> list[str]:
    """Return unique http(s) URLs in order of first appearance."""
    return _unique([m.group(0).rstrip(_TRAILING_URL_PUNCT) for m in URL_RE.finditer(text)])


def extract_emails(text: str) -> list[str]:
    return _unique(EMAIL_RE.findall(text))


def extract_phones(text: str) -> list[str]:
    # URLs carry long digit runs (ids, dates) that look like numbers.
    stripped = URL_RE.sub(" ", text)
    return _unique([m.group(0).strip() for m in PHONE_RE.finditer(stripped)])


def extract_websites(text: str) -> list[str]:
    """Return unique host names from links plus bare ``www.`` mentions."""
    hosts = [re.sub(r"^https?://", "", link, flags=re.IGNORECASE).split("/")[0].lower()
             for link in extract_links(text)]
    bare = [m.group(0).lower() for m in BARE_WEBSITE_RE.finditer(URL_RE.sub(" ", text))]
    return _unique(hosts + bare)


def extract_keywords(text: str, limit: int = 10) -> list[str]:
    """Lowercased, punctuation-stripped tokens longer than 3 chars.

    Stop words and pure numbers are skipped; order is first occurrence.
    """
    cleaned = _KEYWORD_STRIP_RE.sub(" ", URL_RE.sub(" ", text.lower()))
    keywords: list[str] = []
    seen: set[str] = set()
    for token in cleaned.split():
        token = token.strip("-_")
        if len(token) <= 3 or token in STOP_WORDS or token.isdigit() or token in seen:
            continue
        seen.add(token)
        keywords.append(token)
        if len(keywords) >= limit:
            break
    return keywords


# ------------------------------------------------------------------
# Structural checks
# ------------------------------------------------------------------

def has_list(text: str) -> bool:
    return bool(LIST_LINE_RE.search(text))


def has_table(text: str) -> bool:
    return bool(TABLE_RE.search(text))


def is_url_only(text: str) -> bool:
    """True when *text* is nothing but URLs plus an optional short label."""
    stripped = text.strip()
    if not stripped or not URL_RE.search(stripped):
        return False
    remainder = URL_RE.sub("", stripped).strip(" \t\n:-–")
    return len(remainder) <= 40 and "\n\n" not in remainder


def content_hash(text: str) -> str:
    """First 16 hex chars of the SHA-256 of the normalised chunk text."""
    normalised = " ".join(text.split())
    return hashlib.sha256(normalised.encode("utf-8")).hexdigest()[:16]
