"""
Pytest configuration and shared fixtures for corpusstats tests.

This module provides shared test fixtures, utilities, and configuration
for the corpusstats test suite.
"""

import pytest
import polars as pl

import corpusstats as cs
from corpusstats.processors import Tokenizer


ANDRESEN = "AndresenRuth_1stInterview_transcript.txt"
BAKER = "BakerTom_2ndInterview_transcript.txt"
CARLSON = "CarlsonEva_fieldnotes.txt"


@pytest.fixture(scope="session")
def tokenizer():
    """Build the blank spaCy tokenizer once per test session."""
    return Tokenizer()


@pytest.fixture(scope="session")
def simple_corpus():
    """The two-document corpus used for the tf-idf scenarios."""
    return {"A": "the cat sat", "B": "the dog sat"}


@pytest.fixture(scope="session")
def simple_config():
    """Exclude only 'the' and derive no names."""
    return cs.PipelineConfig(
        split_front_matter=False, stopwords={"the"}, derive_names=False
    )


@pytest.fixture(scope="session")
def simple_counts(tokenizer, simple_corpus, simple_config):
    """Term counts for the two-document corpus."""
    processor = cs.CorpusProcessor(simple_config, tokenizer=tokenizer)
    return cs.term_counts(processor.tokens(simple_corpus))


@pytest.fixture(scope="session")
def interview_corpus():
    """A small corpus of interview transcripts with front matter."""
    return pl.DataFrame(
        {
            "doc_id": [ANDRESEN, BAKER, CARLSON],
            "text": [
                "Prairie Voices Oral History\n\n"
                "Interviewer: Jane Smith\nDate: 1978\n\n"
                "INTERVIEW\nRuth: We planted wheat every spring.\n\n"
                "Andresen farm had cattle and wheat.",
                "Prairie Voices Oral History\n\n"
                "Interviewer: Jane Smith\n\n"
                "INTERVIEW\nTom: The wheat failed in the drought. Cattle died.",
                "Notes\n\nNone\n\nFieldwork notes only.",
            ],
        }
    )


@pytest.fixture(scope="session")
def interview_config():
    """Options used to analyse the interview transcripts."""
    return cs.PipelineConfig(
        strip_literals=("INTERVIEW",),
        excluded_document_ids={CARLSON},
    )


@pytest.fixture
def invalid_corpus_data():
    """Create various invalid corpus formats for error testing."""
    return {
        "missing_doc_id": pl.DataFrame({"text": ["Some text without doc_id"]}),
        "missing_text": pl.DataFrame({"doc_id": ["doc1.txt"]}),
        "wrong_types": pl.DataFrame(
            {
                "doc_id": ["doc1.txt", "doc2.txt"],
                "text": [1, 2],  # Should be strings
            }
        ),
        "duplicate_ids": pl.DataFrame(
            {
                "doc_id": ["doc1.txt", "doc1.txt", "doc2.txt"],
                "text": ["text1", "text2", "text3"],
            }
        ),
        "empty_ids": pl.DataFrame(
            {"doc_id": ["", "doc2.txt"], "text": ["text1", "text2"]}
        ),
        "null_values": pl.DataFrame(
            {"doc_id": ["doc1.txt", None, "doc3.txt"], "text": ["text1", "text2", None]}
        ),
    }


# Test utilities
def assert_dataframe_structure(
    df: pl.DataFrame, expected_columns: list, min_rows: int = 0
):
    """Assert that a DataFrame has the expected structure."""
    assert isinstance(df, pl.DataFrame), "Result should be a polars DataFrame"
    assert df.height >= min_rows, f"DataFrame should have at least {min_rows} rows"

    for col in expected_columns:
        assert col in df.columns, f"Column '{col}' should be present"


def assert_statistics_valid(stats: pl.DataFrame):
    """Assert that corpus statistics records respect their value ranges."""
    required_columns = ["doc_id", "term", "n", "tf", "df", "idf", "tf_idf"]
    assert_dataframe_structure(stats, required_columns)

    if stats.height > 0:
        assert (stats["n"] >= 1).all(), "Zero counts should never be materialised"
        assert ((stats["tf"] > 0) & (stats["tf"] <= 1)).all(), "tf should be in (0, 1]"
        assert ((stats["df"] > 0) & (stats["df"] <= 1)).all(), "df should be in (0, 1]"
        assert (stats["tf_idf"] >= 0).all(), "tf_idf should be non-negative"
