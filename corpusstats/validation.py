"""
Error handling and validation utilities for corpusstats.

This module provides the error classes, validation functions,
and user-friendly error messages with actionable suggestions for common
corpus preparation issues.

Exception Classes:
    CorpusStatsError: Base exception for all corpusstats errors
    InvalidConfiguration: Malformed options and tokenization parameters
    InvalidInput: Corpus, token and count table validation
    ValidationWarning: Non-fatal validation warnings
    PerformanceWarning: Performance-related warnings

Validation Functions:
    validate_corpus_dataframe: Validate corpus DataFrame structure
    validate_tokens_dataframe: Validate tokenized output structure
    validate_term_counts: Validate term count records
    validate_tokenize_mode: Validate tokenization modes
    validate_ngram_n: Validate n-gram sizes
    validate_separator: Validate front matter separators
    validate_rank_column: Validate ranking statistics
    warn_about_dropped_documents: Report documents without surviving tokens

Example:
    Using validation functions::

        import polars as pl
        from corpusstats.validation import validate_corpus_dataframe

        corpus = pl.DataFrame({
            'doc_id': ['doc1', 'doc2'],
            'text': ['First text', 'Second text']
        })

        try:
            validate_corpus_dataframe(corpus)
            print("Corpus is valid!")
        except InvalidInput as e:
            print(f"Validation failed: {e}")

.. codeauthor:: David Brown <dwb2@andrew.cmu.edu>
"""

import warnings
from typing import Iterable, List
import polars as pl


class CorpusStatsError(Exception):
    """
    Base exception class for all corpusstats errors.

    This is the parent class for all custom exceptions in the corpusstats
    package. It allows for catching all corpusstats-specific errors with
    a single except clause.

    Example:
        Catch all corpusstats errors::

            from corpusstats.validation import CorpusStatsError

            try:
                stats = cs.corpus_statistics(corpus)
            except CorpusStatsError as e:
                print(f"Corpus statistics failed: {e}")
    """

    pass


class InvalidConfiguration(CorpusStatsError):
    """
    Raised when processing options are malformed.

    Common causes:
        - Unknown tokenization mode
        - N-gram size smaller than 1
        - Empty front matter separator
        - Unknown stopword lexicon or weighting scheme
    """

    pass


class InvalidInput(CorpusStatsError):
    """
    Raised when corpus, token or count data fails validation.

    Common causes:
        - Missing required columns ('doc_id', 'text')
        - Empty or null document IDs
        - Duplicate document IDs
        - Text that is not a string

    Example:
        >>> from corpusstats.validation import validate_corpus_dataframe
        >>> validate_corpus_dataframe(pl.DataFrame({'doc_id': ['', 'b'],
        ...                                         'text': ['x', 'y']}))
        InvalidInput: Found 1 rows with an empty doc_id ...
    """

    pass


class ValidationWarning(UserWarning):
    """Warning for potentially problematic but non-fatal issues."""

    pass


class PerformanceWarning(UserWarning):
    """Warning for performance-related issues."""

    pass


TOKENIZE_MODES = ["word", "sentence", "ngram"]


def validate_corpus_dataframe(corp: pl.DataFrame, context: str = "") -> None:
    """
    Comprehensive validation of a corpus DataFrame.

    Accepts both raw corpora ('doc_id', 'text') and split corpora
    ('doc_id', 'series_title', 'front_matter', 'body').

    :param corp: DataFrame to validate
    :param context: Context for error messages (e.g., "in tokenize")
    """
    from .config import CONFIG

    if corp is None:
        raise InvalidInput(
            f"Corpus DataFrame is None {context}. "
            "Please provide a valid DataFrame with 'doc_id' and 'text' "
            "columns."
        )

    if not isinstance(corp, pl.DataFrame):
        raise InvalidInput(
            f"Expected a polars DataFrame {context}, "
            f"got {type(corp).__name__}. "
            "Use as_corpus_frame() to convert a mapping of doc_id to text."
        )

    text_col = "body" if "body" in corp.columns else "text"
    missing_cols = {"doc_id", text_col} - set(corp.columns)
    if missing_cols:
        raise InvalidInput(
            f"Invalid corpus DataFrame schema {context}.\n"
            f"Missing columns: {', '.join(sorted(missing_cols))}\n"
            "Expected schema: doc_id (String), text (String)"
        )

    schema = corp.collect_schema()
    wrong_types = [
        col for col in ("doc_id", text_col)
        if schema[col] not in (pl.String, pl.Null)
    ]
    if wrong_types:
        error_msg = f"Incorrect column types {context}:\n"
        for col in wrong_types:
            error_msg += f"  {col}: expected String, got {schema[col]}\n"
        raise InvalidInput(error_msg)

    null_doc_ids = corp.filter(pl.col("doc_id").is_null()).height
    if null_doc_ids > 0:
        raise InvalidInput(
            f"Found {null_doc_ids} rows with null doc_id {context}. "
            "All documents must have a valid document ID."
        )

    empty_doc_ids = corp.filter(pl.col("doc_id").str.strip_chars() == "").height
    if empty_doc_ids > 0:
        raise InvalidInput(
            f"Found {empty_doc_ids} rows with an empty doc_id {context}. "
            "All documents must have a non-empty document ID."
        )

    duplicate_ids = corp.group_by("doc_id").len().filter(pl.col("len") > 1)
    if duplicate_ids.height > 0:
        duplicates = sorted(duplicate_ids.get_column("doc_id").to_list())[:5]
        error_msg = f"Found duplicate document IDs {context}: {', '.join(duplicates)}"
        if duplicate_ids.height > 5:
            error_msg += "... (and more)"
        error_msg += "\nEach document must have a unique ID."
        raise InvalidInput(error_msg)

    null_texts = corp.filter(pl.col(text_col).is_null()).height
    if null_texts > 0:
        raise InvalidInput(
            f"Found {null_texts} documents with null {text_col} {context}. "
            "Every document must carry string text; drop or fill them first."
        )

    if corp.height > CONFIG.LARGE_CORPUS_THRESHOLD:
        warnings.warn(
            f"Large corpus detected ({corp.height:,} documents) {context}. "
            "Consider filtering the corpus before tokenizing.",
            PerformanceWarning,
            stacklevel=2,
        )


def validate_tokens_dataframe(tokens_table: pl.DataFrame, context: str = "") -> None:
    """
    Validation of a tokens DataFrame.

    :param tokens_table: DataFrame to validate
    :param context: Context for error messages
    """
    if tokens_table is None:
        raise InvalidInput(
            f"Tokens DataFrame is None {context}. "
            "Expected a DataFrame produced by tokenize()."
        )

    expected_cols = ["doc_id", "token"]
    missing_cols = [c for c in expected_cols if c not in tokens_table.columns]

    if missing_cols:
        error_msg = f"Invalid tokens DataFrame schema {context}.\n"
        error_msg += f"Missing columns: {', '.join(missing_cols)}\n"
        error_msg += (
            "Expected a DataFrame produced by tokenize() with columns: "
            "doc_id, token, position"
        )
        if "text" in tokens_table.columns:
            error_msg += "\n\nTip: If you have a raw text corpus, use tokenize() first."  # noqa: E501
        raise InvalidInput(error_msg)

    null_doc_ids = tokens_table.filter(
        pl.col("doc_id").is_null() | (pl.col("doc_id") == "")
    ).height
    if null_doc_ids > 0:
        raise InvalidInput(
            f"Found {null_doc_ids} tokens without a document ID {context}."
        )


def validate_term_counts(counts: pl.DataFrame, context: str = "") -> None:
    """
    Validation of term count records.

    :param counts: DataFrame to validate
    :param context: Context for error messages
    """
    if counts is None:
        raise InvalidInput(
            f"Term counts are None {context}. "
            "Expected a DataFrame produced by term_counts()."
        )

    expected_cols = {"doc_id", "term", "n"}
    missing_cols = expected_cols - set(counts.columns)
    if missing_cols:
        raise InvalidInput(
            f"Term counts missing columns {context}: {', '.join(sorted(missing_cols))}\n"  # noqa: E501
            "Please use term_counts() to generate the table."
        )

    if counts.filter(pl.col("n") < 1).height > 0:
        raise InvalidInput(
            f"Term counts contain zero or negative counts {context}. "
            "Zero counts are never materialised by term_counts()."
        )

    duplicated = counts.select(["doc_id", "term"]).is_duplicated().any()
    if duplicated:
        raise InvalidInput(
            f"Term counts contain duplicate (doc_id, term) pairs {context}. "
            "Each document and term must appear at most once."
        )


def validate_tokenize_mode(mode: str, context: str = "") -> None:
    """
    Validate the tokenization mode with helpful suggestions.

    :param mode: Parameter value to validate
    :param context: Context for error messages
    """
    if mode not in TOKENIZE_MODES:
        suggestions = []
        if isinstance(mode, str):
            suggestions = [
                v for v in TOKENIZE_MODES
                if v.lower() == mode.lower() or mode.lower().startswith(v[:2])
            ]

        error_msg = f"Invalid tokenize mode {context}: '{mode}'\n"
        error_msg += f"Valid options are: {', '.join(TOKENIZE_MODES)}"

        if suggestions:
            error_msg += f"\nDid you mean: {', '.join(suggestions)}?"

        raise InvalidConfiguration(error_msg)


def validate_ngram_n(n: int, context: str = "") -> None:
    """
    Validate the n-gram size.

    :param n: Number of consecutive words per n-gram
    :param context: Context for error messages
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidConfiguration(
            f"N-gram size must be an integer {context}, got {type(n).__name__}: {n}"
        )

    if n < 1:
        raise InvalidConfiguration(
            f"N-gram size must be at least 1 {context}, got {n}. "
            "Use n=2 for bigrams, n=3 for trigrams, etc."
        )


def validate_separator(separator: str, context: str = "") -> None:
    """Validate a front matter separator."""
    if not isinstance(separator, str) or separator == "":
        raise InvalidConfiguration(
            f"Front matter separator must be a non-empty string {context}, "
            f"got {separator!r}."
        )


def validate_rank_column(by: str, valid_columns: List[str], context: str = "") -> None:
    """Validate the statistic used to rank terms."""
    if by not in valid_columns:
        raise InvalidConfiguration(
            f"Cannot rank by '{by}' {context}. "
            f"Valid options are: {', '.join(valid_columns)}"
        )


def warn_about_dropped_documents(
    dropped: Iterable[str], context: str = ""
) -> None:
    """Warn about documents that contribute no term frequency records."""
    dropped = sorted(dropped)
    if not dropped:
        return

    shown = ", ".join(dropped[:5])
    if len(dropped) > 5:
        shown += "... (and more)"
    warnings.warn(
        f"{len(dropped)} documents have no surviving tokens {context} "
        f"and are omitted from frequency output: {shown}",
        ValidationWarning,
        stacklevel=3,
    )
