"""Render question/answer pairs as a downloadable DOCX with python-docx.

The document holds a bold title followed by a numbered, bold question and
a plain answer paragraph per entry.  Entries missing either half are
skipped, but numbering follows the input position so the numbers match
whatever list the caller showed the user.
"""

from __future__ import annotations

import io
import re
from collections.abc import Sequence

import docx
import structlog
from docx.shared import Pt

from docbot_ingest.utils.errors import InputValidationError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TITLE = "Generated FAQ"
_FALLBACK_FILENAME = "docbot_faq"
_MAX_FILENAME_CHARS = 60


def safe_filename(title: str) -> str:
    """Reduce *title* to ``[A-Za-z0-9_]`` for use as an attachment name."""
    name = re.sub(r"[^a-z0-9]", "_", title, flags=re.IGNORECASE)
    name = re.sub(r"_{2,}", "_", name).strip("_")
    return name[:_MAX_FILENAME_CHARS] or _FALLBACK_FILENAME


def build_faq_docx(
    faqs: Sequence[tuple[str, str]], title: str | None = None
) -> tuple[str, bytes]:
    """Return ``(file_name, docx_bytes)`` for the given ``(question, answer)`` pairs.

    Raises
    ------
    InputValidationError
        When *faqs* is empty.
    """
    if not faqs:
        raise InputValidationError(message="No FAQ entries provided.")

    doc_title = (title or "").strip() or DEFAULT_TITLE
    document = docx.Document()

    heading = document.add_paragraph()
    heading.paragraph_format.space_after = Pt(15)
    run = heading.add_run(doc_title)
    run.bold = True
    run.font.size = Pt(16)

    written = 0
    for number, (question, answer) in enumerate(faqs, start=1):
        if not question or not answer:
            continue
        q_para = document.add_paragraph()
        q_para.paragraph_format.space_before = Pt(10)
        q_para.paragraph_format.space_after = Pt(5)
        q_run = q_para.add_run(f"{number}. {question}")
        q_run.bold = True
        q_run.font.size = Pt(13)

        a_para = document.add_paragraph()
        a_para.paragraph_format.space_after = Pt(10)
        a_para.add_run(answer).font.size = Pt(12)
        written += 1

    buffer = io.BytesIO()
    document.save(buffer)
    logger.info("faq_docx_built", title=doc_title, entries=written, skipped=len(faqs) - written)
    return f"{safe_filename(doc_title)}.docx", buffer.getvalue()
