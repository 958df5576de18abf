"""
Misc. utility functions for corpus processing and document-term matrices.

.. codeauthor:: David Brown <dwb2@andrew.cmu.edu>
"""

from collections.abc import Mapping
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import polars as pl
from scipy.sparse import coo_matrix, csr_matrix

from .validation import (
    InvalidConfiguration,
    InvalidInput,
    validate_term_counts,
)


def as_corpus_frame(corpus) -> pl.DataFrame:
    """
    Coerce a corpus into a polars DataFrame with 'doc_id' and 'text' columns.

    :param corpus: A polars DataFrame, or a mapping of document identifier
        to raw text.
    :return: A polars DataFrame.
    """
    if isinstance(corpus, pl.DataFrame):
        return corpus

    if isinstance(corpus, Mapping):
        bad_ids = [k for k in corpus.keys() if not isinstance(k, str)]
        if bad_ids:
            raise InvalidInput(
                f"Document IDs must be strings, got: {bad_ids[:5]}"
            )
        bad_texts = [k for k, v in corpus.items() if not isinstance(v, str)]
        if bad_texts:
            raise InvalidInput(
                "Document text must be a string for documents: "
                f"{', '.join(bad_texts[:5])}"
            )
        return pl.DataFrame(
            {"doc_id": list(corpus.keys()), "text": list(corpus.values())},
            schema={"doc_id": pl.String, "text": pl.String},
        )

    raise InvalidInput(
        f"Expected a polars DataFrame or a mapping of doc_id to text, "
        f"got {type(corpus).__name__}."
    )


def text_column(corp: pl.DataFrame) -> str:
    """Name of the column holding the text to analyse ('body' or 'text')."""
    return "body" if "body" in corp.columns else "text"


class DocumentTermMatrix:
    """
    A sparse document x term matrix of raw counts.

    Rows are documents and columns are terms; absent entries are zero. The
    matrix is stored in compressed sparse row format and is read-only once
    built.

    Example:
        >>> dtm = DocumentTermMatrix.from_counts(counts)
        >>> dtm.get("A", "cat")
        1
        >>> coo, docs, vocab = dtm.to_coo()
    """

    def __init__(
        self,
        matrix,
        doc_ids: Iterable[str],
        terms: Iterable[str],
    ):
        self._doc_ids = tuple(doc_ids)
        self._terms = tuple(terms)
        matrix = csr_matrix(matrix, copy=True)

        if matrix.shape != (len(self._doc_ids), len(self._terms)):
            raise InvalidInput(
                f"Matrix shape {matrix.shape} does not match "
                f"{len(self._doc_ids)} documents and {len(self._terms)} terms."
            )
        if len(set(self._doc_ids)) != len(self._doc_ids):
            raise InvalidInput("Document-term matrix rows must be unique doc_ids.")
        if len(set(self._terms)) != len(self._terms):
            raise InvalidInput("Document-term matrix columns must be unique terms.")

        self._matrix = matrix
        self._doc_index = {doc_id: i for i, doc_id in enumerate(self._doc_ids)}
        self._term_index = {term: j for j, term in enumerate(self._terms)}

    @classmethod
    def from_counts(
        cls, counts: pl.DataFrame, doc_ids: Optional[Iterable[str]] = None
    ) -> "DocumentTermMatrix":
        """
        Pivot term count records into a sparse matrix.

        :param counts: A DataFrame of term counts ('doc_id', 'term', 'n').
        :param doc_ids: Optional row order. Documents listed here without
            counts become empty rows. Defaults to the sorted documents
            present in counts.
        :return: A DocumentTermMatrix.
        """
        validate_term_counts(counts, "in DocumentTermMatrix")

        counted = sorted(counts.get_column("doc_id").unique().to_list())
        if doc_ids is None:
            doc_ids = counted
        else:
            doc_ids = list(doc_ids)
            unknown = sorted(set(counted) - set(doc_ids))
            if unknown:
                raise InvalidInput(
                    "Term counts reference documents missing from doc_ids: "
                    f"{', '.join(unknown[:5])}"
                )
        terms = sorted(counts.get_column("term").unique().to_list())

        rows = pl.DataFrame(
            {"doc_id": doc_ids, "row": range(len(doc_ids))},
            schema={"doc_id": pl.String, "row": pl.Int64},
        )
        cols = pl.DataFrame(
            {"term": terms, "col": range(len(terms))},
            schema={"term": pl.String, "col": pl.Int64},
        )
        cells = counts.join(rows, on="doc_id").join(cols, on="term")

        matrix = coo_matrix(
            (
                cells.get_column("n").cast(pl.Int64).to_numpy(),
                (
                    cells.get_column("row").to_numpy(),
                    cells.get_column("col").to_numpy(),
                ),
            ),
            shape=(len(doc_ids), len(terms)),
            dtype=np.int64,
        )
        return cls(matrix, doc_ids, terms)

    @property
    def matrix(self) -> csr_matrix:
        """A copy of the underlying sparse matrix."""
        return self._matrix.copy()

    @property
    def doc_ids(self) -> Tuple[str, ...]:
        return self._doc_ids

    @property
    def terms(self) -> Tuple[str, ...]:
        return self._terms

    @property
    def shape(self) -> Tuple[int, int]:
        return self._matrix.shape

    @property
    def nnz(self) -> int:
        return self._matrix.nnz

    def __len__(self) -> int:
        return len(self._doc_ids)

    def __repr__(self) -> str:
        return (
            f"DocumentTermMatrix(documents={self.shape[0]}, "
            f"terms={self.shape[1]}, nonzero={self.nnz})"
        )

    def get(self, doc_id: str, term: str) -> int:
        """Count of a term in a document; zero when absent."""
        i = self._doc_index.get(doc_id)
        j = self._term_index.get(term)
        if i is None or j is None:
            return 0
        return int(self._matrix[i, j])

    def row(self, doc_id: str) -> Dict[str, int]:
        """Nonzero counts of a single document as a term -> count dict."""
        if doc_id not in self._doc_index:
            raise InvalidInput(f"Unknown document: '{doc_id}'")
        i = self._doc_index[doc_id]
        start, end = self._matrix.indptr[i], self._matrix.indptr[i + 1]
        return {
            self._terms[j]: int(v)
            for j, v in zip(
                self._matrix.indices[start:end], self._matrix.data[start:end]
            )
        }

    def doc_lengths(self) -> Dict[str, int]:
        """Total count per document."""
        totals = np.asarray(self._matrix.sum(axis=1)).ravel()
        return {doc_id: int(t) for doc_id, t in zip(self._doc_ids, totals)}

    def _long(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        coo = self._matrix.tocoo()
        return coo.row, coo.col, coo.data

    def to_frame(self) -> pl.DataFrame:
        """Long-format counts ('doc_id', 'term', 'n') of the nonzero cells."""
        row, col, data = self._long()
        return (
            pl.DataFrame(
                {
                    "doc_id": [self._doc_ids[i] for i in row],
                    "term": [self._terms[j] for j in col],
                    "n": data.astype(np.uint32),
                },
                schema={"doc_id": pl.String, "term": pl.String, "n": pl.UInt32},
            )
            .sort(["doc_id", "term"])
        )

    def term_frequency(self) -> pl.DataFrame:
        """Long-format term frequencies ('doc_id', 'term', 'tf')."""
        row, col, data = self._long()
        totals = np.asarray(self._matrix.sum(axis=1)).ravel()
        tf = data.astype(np.float64) / totals[row].astype(np.float64)
        return (
            pl.DataFrame(
                {
                    "doc_id": [self._doc_ids[i] for i in row],
                    "term": [self._terms[j] for j in col],
                    "tf": tf,
                },
                schema={"doc_id": pl.String, "term": pl.String, "tf": pl.Float64},
            )
            .sort(["doc_id", "term"])
        )

    def to_coo(self) -> Tuple[coo_matrix, List[str], List[str]]:
        """
        Convert to COOrdinate format for topic-modeling libraries.

        :return: A COOrdinate format matrix, a list of document ids,
            and a list of terms.
        """
        return self._matrix.tocoo(copy=True), list(self._doc_ids), list(self._terms)


def document_term_matrix(
    counts: pl.DataFrame, doc_ids: Optional[Iterable[str]] = None
) -> DocumentTermMatrix:
    """
    Build a document-term matrix from term count records.

    :param counts: A DataFrame produced by term_counts().
    :param doc_ids: Optional row order; listed documents without counts
        become empty rows.
    :return: A DocumentTermMatrix.
    """
    return DocumentTermMatrix.from_counts(counts, doc_ids)


def dtm_to_coo(dtm: DocumentTermMatrix) -> Tuple[coo_matrix, List[str], List[str]]:
    """
    A function for converting a dtm to a COOrdinate format.

    :param dtm: A DocumentTermMatrix.
    :return: A COOrdinate format matrix, \
        a list of document ids, \
            and a list of terms.
    """
    return dtm.to_coo()


def dtm_weight(dtm: DocumentTermMatrix, scheme: str = "prop") -> csr_matrix:
    """
    A function for weighting a document-term-matrix.

    Rows and columns keep the order of dtm.doc_ids and dtm.terms.

    :param dtm: A DocumentTermMatrix.
    :param scheme: One of 'prop' (normalized by totals per document) \
        or 'tfidf' (term-frequency-inverse-document-frequency).
    :return: A weighted sparse matrix of floats.
    """
    scheme_types = ["prop", "tfidf"]
    if scheme not in scheme_types:
        raise InvalidConfiguration(
            f"Invalid scheme type: '{scheme}'. Expected one of: {scheme_types}"
        )

    counts = dtm.matrix.astype(np.float64).tocsr()
    totals = np.asarray(counts.sum(axis=1)).ravel()
    row_lengths = np.diff(counts.indptr)
    weighted = csr_matrix(
        (
            counts.data / np.repeat(totals, row_lengths),
            counts.indices.copy(),
            counts.indptr.copy(),
        ),
        shape=counts.shape,
    )

    if scheme == "prop":
        return weighted

    # documents without any counts do not enter the document total
    n_docs = int(np.count_nonzero(row_lengths))
    doc_freq = np.bincount(counts.indices, minlength=counts.shape[1])
    with np.errstate(divide="ignore"):
        idf = np.where(doc_freq > 0, np.log(n_docs / np.maximum(doc_freq, 1)), 0.0)
    weighted.data = weighted.data * idf[weighted.indices]
    return weighted
