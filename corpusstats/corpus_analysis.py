"""
Functions for preparing a corpus and computing its frequency statistics.

This module provides the main API functions for corpus statistics, serving
as convenient wrappers around the processor and analyzer classes.

Main Functions:
    prepare_corpus: Exclude documents, split front matter, strip literals
    split_front_matter: Split one document into title, front matter, body
    tokenize: Tokenize a corpus into words, sentences or n-grams
    count_units: Count words, characters and sentences of a text
    document_metadata: Per-document word, character and sentence counts
    derive_name_components: Name components of one document identifier
    build_exclusion_set: Combine stopwords and derived names
    remove_stopwords: Remove excluded tokens
    term_counts: Count terms per document
    term_frequency: Add term frequencies to term counts
    document_frequency: Document frequency and idf of every term
    tf_idf: Full corpus statistics records
    frequency_table: Corpus-wide absolute/relative frequencies and range
    top_terms: Highest scoring terms with deterministic tie-breaks
    corpus_statistics: Run the whole pipeline from raw corpus to tf-idf
    corpus_dtm: Run the whole pipeline from raw corpus to a sparse matrix

Example:
    Basic corpus statistics workflow::

        import corpusstats as cs

        corpus = {
            'A': 'the cat sat',
            'B': 'the dog sat',
        }

        config = cs.PipelineConfig(
            split_front_matter=False, stopwords={'the'}, derive_names=False
        )
        stats = cs.corpus_statistics(corpus, config)

        # Most distinctive terms per document
        top = cs.top_terms(stats, n=5)

        # Sparse matrix for a topic model
        dtm = cs.corpus_dtm(corpus, config)
        coo, docs, vocab = dtm.to_coo()

.. codeauthor:: David Brown <dwb2d@andrew.cmu.edu>
"""

from typing import Dict, Iterable, Optional, Tuple
import polars as pl
from spacy.language import Language

from .config import CONFIG, PipelineConfig
from .corpus_utils import DocumentTermMatrix, as_corpus_frame, document_term_matrix
from .processors import (
    CorpusProcessor,
    ExclusionFilter,
    FrontMatterSplitter,
    Tokenizer,
)
from .analyzers import FrequencyAnalyzer, DocumentAnalyzer

# Initialize analyzer instances for use in wrapper functions
_freq_analyzer = FrequencyAnalyzer()
_exclusion_filter = ExclusionFilter()
_tokenizer = None


def _default_tokenizer() -> Tokenizer:
    global _tokenizer
    if _tokenizer is None:
        _tokenizer = Tokenizer()
    return _tokenizer


def prepare_corpus(corp, config: Optional[PipelineConfig] = None) -> pl.DataFrame:
    """
    Exclude documents, split front matter and strip literal markers.

    :param corp: A polars DataFrame containing 'doc_id' and 'text' columns,
        or a mapping of doc_id to text.
    :param config: Pipeline options.
    :return: A polars DataFrame with 'doc_id', 'series_title',
        'front_matter' and 'body' columns.
    """
    return CorpusProcessor(config, tokenizer=_default_tokenizer()).prepare(corp)


def split_front_matter(
    text: str, separator: str = CONFIG.DEFAULT_SEPARATOR
) -> Tuple[str, str, str]:
    """
    Split raw text into series title, front matter and body.

    :param text: Raw document text.
    :param separator: Literal separating the parts.
    :return: A (series_title, front_matter, body) tuple.
    """
    return FrontMatterSplitter.split_text(text, separator)


def tokenize(
    corp,
    mode: str = "word",
    n: int = 2,
    lowercase: bool = True,
    strip_punctuation: bool = True,
    nlp_model: Optional[Language] = None,
) -> pl.DataFrame:
    """
    Tokenize a corpus.

    :param corp: A corpus DataFrame ('doc_id' with 'body' or 'text'),
        or a mapping of doc_id to text.
    :param mode: One of 'word', 'sentence' or 'ngram'.
    :param n: Words per n-gram in 'ngram' mode.
    :param lowercase: Fold case of word and n-gram tokens.
    :param strip_punctuation: Drop punctuation-only tokens.
    :param nlp_model: An optional spaCy pipeline to tokenize with.
    :return: A polars DataFrame with 'doc_id', 'token' and 'position'.
    """
    tokenizer = Tokenizer(nlp_model) if nlp_model is not None else _default_tokenizer()
    return tokenizer.tokenize_corpus(
        as_corpus_frame(corp),
        mode=mode,
        n=n,
        lowercase=lowercase,
        strip_punctuation=strip_punctuation,
    )


def count_units(text: str) -> Dict[str, int]:
    """
    Count words, characters and sentences of a text.

    :param text: Document text.
    :return: A dict with 'n_words', 'n_chars' and 'n_sentences'.
    """
    return _default_tokenizer().count_units(text)


def document_metadata(corp) -> pl.DataFrame:
    """
    Count words, characters and sentences for every document.

    :param corp: A corpus DataFrame or a mapping of doc_id to text.
    :return: A polars DataFrame with 'doc_id', 'n_words', 'n_chars'
        and 'n_sentences'.
    """
    return DocumentAnalyzer(_default_tokenizer()).document_metadata(corp)


def derive_name_components(doc_id: str) -> Tuple[str, ...]:
    """
    Derive case-folded name components from a document identifier.

    :param doc_id: An identifier such as 'LastFirst_descriptor.txt'.
    :return: At most two case-folded name components.
    """
    return ExclusionFilter.derive_name_components(doc_id)


def build_exclusion_set(
    doc_ids: Iterable[str] = (),
    stopwords: Optional[Iterable[str]] = None,
    extra: Iterable[str] = (),
    derive_names: bool = True,
) -> frozenset:
    """
    Combine generic stopwords with names derived from document identifiers.

    :param doc_ids: Identifiers of every document in the corpus.
    :param stopwords: Generic stopwords; None loads the default lexicon.
    :param extra: Additional terms to exclude.
    :param derive_names: Add names derived from the identifiers.
    :return: A case-folded frozenset.
    """
    return _exclusion_filter.build_exclusion_set(
        doc_ids, stopwords=stopwords, extra=extra, derive_names=derive_names
    )


def remove_stopwords(
    tokens_table: pl.DataFrame,
    exclusions: Iterable[str],
    match_ngram_parts: bool = False,
) -> pl.DataFrame:
    """
    Remove tokens whose case-folded form is in the exclusion set.

    :param tokens_table: A polars DataFrame as generated by tokenize.
    :param exclusions: Terms to remove.
    :param match_ngram_parts: Remove n-grams containing any excluded word.
    :return: The surviving tokens, in their original order.
    """
    return ExclusionFilter.filter_tokens(
        tokens_table, exclusions, match_ngram_parts=match_ngram_parts
    )


def term_counts(tokens_table: pl.DataFrame) -> pl.DataFrame:
    """
    Count each distinct term per document.

    :param tokens_table: A polars DataFrame as generated by tokenize.
    :return: A polars DataFrame with 'doc_id', 'term' and 'n'.
    """
    return _freq_analyzer.term_counts(tokens_table)


def term_frequency(
    counts: pl.DataFrame, doc_ids: Optional[Iterable[str]] = None
) -> pl.DataFrame:
    """
    Add document totals and term frequencies to term counts.

    :param counts: A polars DataFrame as generated by term_counts.
    :param doc_ids: Optional identifiers of every document in the corpus.
    :return: The counts with 'total' and 'tf' columns.
    """
    return _freq_analyzer.term_frequency(counts, doc_ids)


def document_frequency(counts: pl.DataFrame) -> pl.DataFrame:
    """
    Compute the document frequency and idf of every term.

    :param counts: A polars DataFrame as generated by term_counts.
    :return: A polars DataFrame with 'term', 'n_docs', 'df' and 'idf'.
    """
    return _freq_analyzer.document_frequency(counts)


def tf_idf(
    counts: pl.DataFrame, doc_ids: Optional[Iterable[str]] = None
) -> pl.DataFrame:
    """
    Compute term frequency, document frequency and tf-idf.

    :param counts: A polars DataFrame as generated by term_counts.
    :param doc_ids: Optional identifiers of every document in the corpus.
    :return: A polars DataFrame of corpus statistics records.
    """
    return _freq_analyzer.tf_idf(counts, doc_ids)


def frequency_table(counts: pl.DataFrame) -> pl.DataFrame:
    """
    Generate a corpus-wide frequency table.

    :param counts: A polars DataFrame as generated by term_counts.
    :return: A polars DataFrame with 'Term', 'AF', 'RF' and 'Range'.
    """
    return _freq_analyzer.frequency_table(counts)


def top_terms(
    stats: pl.DataFrame,
    n: int = CONFIG.DEFAULT_TOP_N,
    by: str = "tf_idf",
    per_document: bool = True,
) -> pl.DataFrame:
    """
    Select the highest scoring terms, ties broken by term.

    :param stats: A polars DataFrame as generated by tf_idf.
    :param n: Number of terms to keep.
    :param by: One of 'n', 'tf', 'df', 'idf' or 'tf_idf'.
    :param per_document: Rank within each document rather than overall.
    :return: The top rows of stats.
    """
    return _freq_analyzer.top_terms(stats, n=n, by=by, per_document=per_document)


def corpus_statistics(
    corp, config: Optional[PipelineConfig] = None
) -> pl.DataFrame:
    """
    Run the complete pipeline from a raw corpus to corpus statistics records.

    :param corp: A polars DataFrame containing 'doc_id' and 'text' columns,
        or a mapping of doc_id to text.
    :param config: Pipeline options.
    :return: A polars DataFrame of corpus statistics records.
    """
    processor = CorpusProcessor(config, tokenizer=_default_tokenizer())
    prepared = processor.prepare(corp)
    tokens_table = processor.tokens_from_prepared(prepared)
    counts = _freq_analyzer.term_counts(tokens_table)
    return _freq_analyzer.tf_idf(counts, prepared.get_column("doc_id").to_list())


def corpus_dtm(
    corp,
    config: Optional[PipelineConfig] = None,
    keep_empty: bool = False,
) -> DocumentTermMatrix:
    """
    Run the complete pipeline from a raw corpus to a document-term matrix.

    :param corp: A polars DataFrame containing 'doc_id' and 'text' columns,
        or a mapping of doc_id to text.
    :param config: Pipeline options.
    :param keep_empty: Keep documents without surviving tokens as empty rows.
    :return: A DocumentTermMatrix.
    """
    processor = CorpusProcessor(config, tokenizer=_default_tokenizer())
    prepared = processor.prepare(corp)
    tokens_table = processor.tokens_from_prepared(prepared)
    counts = _freq_analyzer.term_counts(tokens_table)

    doc_ids = None
    if keep_empty:
        doc_ids = sorted(prepared.get_column("doc_id").to_list())
    return document_term_matrix(counts, doc_ids)
