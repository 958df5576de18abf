"""
corpusstats: Text preparation and frequency statistics for small corpora.

This package provides tools for splitting documents into front matter and
body, tokenizing them with spaCy, removing stopwords and names, and
computing term counts, term frequencies, document frequencies, tf-idf
scores and sparse document-term matrices as polars DataFrames.
"""

# Core analysis functions
from .corpus_analysis import (
    prepare_corpus,
    split_front_matter,
    tokenize,
    count_units,
    document_metadata,
    derive_name_components,
    build_exclusion_set,
    remove_stopwords,
    term_counts,
    term_frequency,
    document_frequency,
    tf_idf,
    frequency_table,
    top_terms,
    corpus_statistics,
    corpus_dtm,
)

# Utility functions
from .corpus_utils import (
    as_corpus_frame,
    DocumentTermMatrix,
    document_term_matrix,
    dtm_to_coo,
    dtm_weight,
)

# Analyzers and processors
from .analyzers import (
    FrequencyAnalyzer,
    DocumentAnalyzer,
)

from .processors import (
    Token,
    CorpusValidator,
    FrontMatterSplitter,
    TextPreprocessor,
    Tokenizer,
    ExclusionFilter,
    CorpusProcessor,
)

# Configuration
from .config import ProcessingConfig, RegexPatterns, PipelineConfig

# Validation and error handling
from .validation import (
    # Exception classes
    CorpusStatsError,
    InvalidConfiguration,
    InvalidInput,
    ValidationWarning,
    PerformanceWarning,
    # Validation functions
    validate_corpus_dataframe,
    validate_tokens_dataframe,
    validate_term_counts,
    validate_tokenize_mode,
    validate_ngram_n,
)

# Package metadata
__version__ = "0.1.0"
__author__ = "David Brown"
__email__ = "dwb2@andrew.cmu.edu"

# Public API - define what gets imported with "from corpusstats import *"
__all__ = [
    # Core analysis functions
    "prepare_corpus",
    "split_front_matter",
    "tokenize",
    "count_units",
    "document_metadata",
    "derive_name_components",
    "build_exclusion_set",
    "remove_stopwords",
    "term_counts",
    "term_frequency",
    "document_frequency",
    "tf_idf",
    "frequency_table",
    "top_terms",
    "corpus_statistics",
    "corpus_dtm",
    # Utility functions
    "as_corpus_frame",
    "DocumentTermMatrix",
    "document_term_matrix",
    "dtm_to_coo",
    "dtm_weight",
    # Analyzers and processors
    "FrequencyAnalyzer",
    "DocumentAnalyzer",
    "Token",
    "CorpusValidator",
    "FrontMatterSplitter",
    "TextPreprocessor",
    "Tokenizer",
    "ExclusionFilter",
    "CorpusProcessor",
    # Configuration
    "ProcessingConfig",
    "RegexPatterns",
    "PipelineConfig",
    # Validation and error handling
    "CorpusStatsError",
    "InvalidConfiguration",
    "InvalidInput",
    "ValidationWarning",
    "PerformanceWarning",
    "validate_corpus_dataframe",
    "validate_tokens_dataframe",
    "validate_term_counts",
    "validate_tokenize_mode",
    "validate_ngram_n",
]
