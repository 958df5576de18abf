"""
Analyzer classes for corpus frequency statistics.

This module provides analyzer classes that turn filtered tokens into
term counts, term frequencies, document frequencies and tf-idf scores,
along with document-level metadata. Each analyzer validates its input and
returns plain polars DataFrames that downstream plotting or modeling code
can consume directly.

Classes:
    FrequencyAnalyzer: Term counts, tf, df, tf-idf and frequency tables
    DocumentAnalyzer: Document-level counts of words, characters, sentences

Example:
    Basic frequency analysis::

        import polars as pl
        from corpusstats.analyzers import FrequencyAnalyzer

        tokens = pl.DataFrame({
            'doc_id': ['A', 'A', 'B', 'B'],
            'token': ['cat', 'sat', 'dog', 'sat'],
        })

        analyzer = FrequencyAnalyzer()
        counts = analyzer.term_counts(tokens)
        stats = analyzer.tf_idf(counts)

        # the most distinctive terms of each document
        top = analyzer.top_terms(stats, n=5)

.. codeauthor:: David Brown <dwb2d@andrew.cmu.edu>
"""

from typing import Iterable, Optional
import polars as pl

from .config import CONFIG
from .corpus_utils import as_corpus_frame, text_column
from .processors import Tokenizer
from .validation import (
    InvalidConfiguration,
    validate_corpus_dataframe,
    validate_rank_column,
    validate_term_counts,
    validate_tokens_dataframe,
    warn_about_dropped_documents,
)

RANKABLE_COLUMNS = ["n", "tf", "df", "idf", "tf_idf"]


class FrequencyAnalyzer:
    """
    Handles term counting and frequency statistics.

    The statistics are computed in stages, each returning a DataFrame:

    1. term_counts: one record per (doc_id, term) with raw count n >= 1
    2. term_frequency: adds the document total and tf = n / total
    3. document_frequency: per term, n_docs, df = n_docs / N and
       idf = ln(N / n_docs)
    4. tf_idf: term frequency joined with document frequency,
       tf_idf = tf * idf

    N is the number of documents present in the term counts. Documents
    without surviving tokens have no records and are dropped rather than
    reported with a frequency of zero.

    Example:
        Concrete scenario::

            tokens = pl.DataFrame({
                'doc_id': ['A', 'A', 'B', 'B'],
                'token': ['cat', 'sat', 'dog', 'sat'],
            })
            stats = analyzer.tf_idf(analyzer.term_counts(tokens))
            # 'sat' appears in every document: idf == 0 and tf_idf == 0
            # 'cat' appears in A only:         tf_idf == 0.5 * ln(2)
    """

    @staticmethod
    def _validate_tokens_table(tokens_table: pl.DataFrame) -> None:
        """Validate tokens table schema."""
        validate_tokens_dataframe(tokens_table, "in FrequencyAnalyzer")

    @staticmethod
    def _validate_counts(counts: pl.DataFrame) -> None:
        """Validate term count records."""
        validate_term_counts(counts, "in FrequencyAnalyzer")

    @staticmethod
    def _check_dropped(counts: pl.DataFrame, doc_ids: Optional[Iterable[str]]) -> None:
        if doc_ids is None:
            return
        counted = set(counts.get_column("doc_id").unique().to_list())
        warn_about_dropped_documents(
            set(doc_ids) - counted, "in FrequencyAnalyzer"
        )

    def term_counts(self, tokens_table: pl.DataFrame) -> pl.DataFrame:
        """
        Count each distinct term per document.

        :param tokens_table: A polars DataFrame of tokens ('doc_id', 'token').
        :return: A polars DataFrame with 'doc_id', 'term' and 'n', sorted
            by document, descending count and term.
        """
        self._validate_tokens_table(tokens_table)

        return (
            tokens_table.group_by(["doc_id", "token"])
            .len()
            .rename({"token": "term", "len": "n"})
            .with_columns(pl.col("n").cast(pl.UInt32))
            .sort(["doc_id", "n", "term"], descending=[False, True, False])
        )

    def term_frequency(
        self, counts: pl.DataFrame, doc_ids: Optional[Iterable[str]] = None
    ) -> pl.DataFrame:
        """
        Add document totals and term frequencies to term counts.

        :param counts: A DataFrame produced by term_counts().
        :param doc_ids: Optional identifiers of every document in the corpus;
            documents without counts are reported with a ValidationWarning.
        :return: The counts with 'total' and 'tf' columns.
        """
        self._validate_counts(counts)
        self._check_dropped(counts, doc_ids)

        return (
            counts.with_columns(
                pl.col("n").cast(pl.UInt64).sum().over("doc_id").alias("total")
            )
            .with_columns(pl.col("n").truediv(pl.col("total")).alias("tf"))
        )

    def document_frequency(self, counts: pl.DataFrame) -> pl.DataFrame:
        """
        Compute the document frequency of every term.

        :param counts: A DataFrame produced by term_counts().
        :return: A polars DataFrame with 'term', 'n_docs', 'df' and 'idf',
            sorted by descending n_docs and term.
        """
        self._validate_counts(counts)

        n_docs = counts.get_column("doc_id").n_unique()

        return (
            counts.group_by("term")
            .agg(pl.col("doc_id").n_unique().cast(pl.UInt32).alias("n_docs"))
            .with_columns(
                pl.col("n_docs").truediv(n_docs).alias("df"),
                # N / n_docs is exactly 1.0 for terms in every document
                pl.lit(n_docs, dtype=pl.Float64)
                .truediv(pl.col("n_docs"))
                .log()
                .alias("idf"),
            )
            .sort(["n_docs", "term"], descending=[True, False])
        )

    def tf_idf(
        self, counts: pl.DataFrame, doc_ids: Optional[Iterable[str]] = None
    ) -> pl.DataFrame:
        """
        Compute corpus statistics records.

        :param counts: A DataFrame produced by term_counts().
        :param doc_ids: Optional identifiers of every document in the corpus.
        :return: A polars DataFrame with 'doc_id', 'term', 'n', 'total', 'tf',
            'df', 'idf' and 'tf_idf', sorted by document, descending tf_idf
            and term.
        """
        tf = self.term_frequency(counts, doc_ids)
        doc_freq = self.document_frequency(counts).select(["term", "df", "idf"])

        return (
            tf.join(doc_freq, on="term", how="left")
            .with_columns(pl.col("tf").mul(pl.col("idf")).alias("tf_idf"))
            .select(["doc_id", "term", "n", "total", "tf", "df", "idf", "tf_idf"])
            .sort(["doc_id", "tf_idf", "term"], descending=[False, True, False])
        )

    def frequency_table(self, counts: pl.DataFrame) -> pl.DataFrame:
        """
        Generate a corpus-wide frequency table.

        :param counts: A DataFrame produced by term_counts().
        :return: A polars DataFrame with columns:
            - Term: The term
            - AF: Absolute frequency (raw count)
            - RF: Relative frequency (per million tokens)
            - Range: Percentage of documents containing this term
        """
        self._validate_counts(counts)

        n_docs = counts.get_column("doc_id").n_unique()
        n_tokens = counts.get_column("n").cast(pl.UInt64).sum()

        return (
            counts.group_by("term")
            .agg(
                pl.col("n").cast(pl.UInt64).sum().alias("AF"),
                pl.col("doc_id").n_unique().alias("Range"),
            )
            # calculate relative frequency
            .with_columns(
                pl.col("AF")
                .truediv(n_tokens)
                .mul(CONFIG.FREQUENCY_NORMALIZATION_FACTOR)
                .alias("RF")
            )
            # normalize over total documents in corpus
            .with_columns(pl.col("Range").truediv(n_docs).mul(100))
            .rename({"term": "Term"})
            .select(["Term", "AF", "RF", "Range"])
            .sort(["AF", "Term"], descending=[True, False])
        )

    def top_terms(
        self,
        stats: pl.DataFrame,
        n: int = CONFIG.DEFAULT_TOP_N,
        by: str = "tf_idf",
        per_document: bool = True,
    ) -> pl.DataFrame:
        """
        Select the highest scoring terms.

        Scores are sorted in descending order and ties are broken by
        lexicographic term order, so results are deterministic.

        :param stats: A DataFrame produced by tf_idf() (or term_counts()
            when ranking by 'n').
        :param n: Number of terms to keep (per document when per_document).
        :param by: The statistic to rank by.
        :param per_document: Rank within each document rather than overall.
        :return: The top rows of stats.
        """
        validate_rank_column(
            by, [c for c in RANKABLE_COLUMNS if c in stats.columns], "in top_terms"
        )
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise InvalidConfiguration(f"n must be a positive integer, got {n!r}")

        if per_document:
            return (
                stats.sort(["doc_id", by, "term"], descending=[False, True, False])
                .group_by("doc_id", maintain_order=True)
                .head(n)
            )

        return stats.sort(
            [by, "term", "doc_id"], descending=[True, False, False]
        ).head(n)


class DocumentAnalyzer:
    """Handles document-level metadata."""

    def __init__(self, tokenizer: Optional[Tokenizer] = None):
        self.tokenizer = tokenizer

    def document_metadata(self, corp) -> pl.DataFrame:
        """
        Count words, characters and sentences for every document.

        :param corp: A corpus DataFrame ('doc_id' with 'body' or 'text'),
            or a mapping of doc_id to text.
        :return: A polars DataFrame with 'doc_id', 'n_words', 'n_chars'
            and 'n_sentences'.
        """
        corp = as_corpus_frame(corp)
        validate_corpus_dataframe(corp, "in DocumentAnalyzer")

        if self.tokenizer is None:
            self.tokenizer = Tokenizer()

        col = text_column(corp)
        rows = [
            {"doc_id": doc_id, **self.tokenizer.count_units(text)}
            for doc_id, text in zip(
                corp.get_column("doc_id").to_list(), corp.get_column(col).to_list()
            )
        ]
        return pl.DataFrame(
            rows,
            schema={
                "doc_id": pl.String,
                "n_words": pl.UInt32,
                "n_chars": pl.UInt32,
                "n_sentences": pl.UInt32,
            },
        )
