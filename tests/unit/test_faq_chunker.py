"""Unit tests for the FAQ pairer."""

from __future__ import annotations

from docbot_ingest.models.chunks import FAQChunkType
from docbot_ingest.models.documents import PageBlock
from docbot_ingest.services.chunking.faq_chunker import FAQChunker, extract_pairs


def _blocks(text: str) -> list[PageBlock]:
    return [PageBlock(text=text, page_start=1, page_end=1)]


class TestExtractPairs:
    def test_labelled_pairs(self) -> None:
        text = "Question: What is X?\nAnswer: X is Y.\n\nQuestion: What is Z?\nAnswer: Z is W."
        assert extract_pairs(text) == [("What is X?", "X is Y."), ("What is Z?", "Z is W.")]

    def test_short_labels(self) -> None:
        text = "Q: Where is HR?\nA: Second floor.\nQ: When is payday?\nA: The 25th."
        assert extract_pairs(text) == [
            ("Where is HR?", "Second floor."),
            ("When is payday?", "The 25th."),
        ]

    def test_multiline_answers_are_kept_whole(self) -> None:
        text = (
            "Question: How do I enrol?\n"
            "Answer: Log in to the portal.\nThen pick a plan.\n\n"
            "Question: Who can enrol?\n"
            "Answer: Everyone."
        )
        pairs = extract_pairs(text)
        assert pairs[0] == ("How do I enrol?", "Log in to the portal.\nThen pick a plan.")
        assert pairs[1] == ("Who can enrol?", "Everyone.")

    def test_split_fallback_without_answer_labels(self) -> None:
        text = (
            "Question: Can I work remotely? Yes, two days a week.\n\n"
            "Question: Is parking free\nOnly for staff with permits."
        )
        assert extract_pairs(text) == [
            ("Can I work remotely?", "Yes, two days a week."),
            ("Is parking free", "Only for staff with permits."),
        ]

    def test_question_without_answer_is_dropped(self) -> None:
        assert extract_pairs("Question: Orphan?") == []

    def test_unanswered_question_does_not_swallow_the_next(self) -> None:
        text = (
            "Question: What is A?\n\n"
            "Question: What is B?\nAnswer: B is b.\n\n"
            "Question: What is C?\nAnswer: C is c."
        )
        assert extract_pairs(text) == [("What is B?", "B is b."), ("What is C?", "C is c.")]

    def test_unanswered_short_question_does_not_swallow_the_next(self) -> None:
        text = "Q: Who signs off?\nQ: Where is HR?\nA: Second floor.\nQ: When is payday?\nA: The 25th."
        assert extract_pairs(text) == [
            ("Where is HR?", "Second floor."),
            ("When is payday?", "The 25th."),
        ]


class TestFAQChunker:
    def test_spec_scenario(self) -> None:
        text = "Question: What is X?\nAnswer: X is Y.\n\nQuestion: What is Z?\nAnswer: Z is W."
        chunks = FAQChunker().chunk(_blocks(text))

        assert [(c.question, c.answer) for c in chunks] == [
            ("What is X?", "X is Y."),
            ("What is Z?", "Z is W."),
        ]
        assert chunks[0].text == "Question: What is X?\nAnswer: X is Y."
        assert all(c.chunk_type is FAQChunkType.COMPLETE_FAQ for c in chunks)
        assert [c.chunk_index for c in chunks] == [0, 1]

    def test_n_pairs_give_n_chunks(self) -> None:
        text = "\n\n".join(
            f"Question: How do I file claim {i}?\nAnswer: Use form {i}." for i in range(25)
        )
        chunks = FAQChunker().chunk(_blocks(text))
        assert len(chunks) == 25
        assert all(c.question and c.answer for c in chunks)

    def test_embedding_text_is_question(self) -> None:
        text = "Question: What is X?\nAnswer: X is Y.\n\nQuestion: What is Z?\nAnswer: Z is W."
        chunk = FAQChunker().chunk(_blocks(text))[0]
        assert chunk.embedding_text == "What is X?"

    def test_links_and_details(self) -> None:
        text = (
            "Question: Where is the form?\n"
            "Answer: Download it here. Details: https://hr.test/forms/leave.\n\n"
            "Question: Who approves it?\nAnswer: Your manager."
        )
        chunk = FAQChunker().chunk(_blocks(text))[0]
        assert chunk.links == ["https://hr.test/forms/leave"]
        assert chunk.details_links == ["https://hr.test/forms/leave"]

    def test_pairs_span_blocks(self) -> None:
        blocks = [
            PageBlock(text="Question: First?\nAnswer: One.", page_start=1, page_end=5),
            PageBlock(text="Question: Second?\nAnswer: Two.", page_start=6, page_end=10),
        ]
        assert len(FAQChunker().chunk(blocks)) == 2

    def test_min_chunk_size_filters_tiny_pairs(self) -> None:
        text = "Question: A?\nAnswer: B.\n\nQuestion: A much longer question?\nAnswer: Longer."
        chunks = FAQChunker(min_chunk_size=30).chunk(_blocks(text))
        assert [c.question for c in chunks] == ["A much longer question?"]
