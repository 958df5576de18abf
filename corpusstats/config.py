"""
Configuration constants and pipeline options for corpusstats.

.. codeauthor:: David Brown <dwb2@andrew.cmu.edu>
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Tuple
import re


@dataclass
class ProcessingConfig:
    """Configuration constants for corpus processing."""

    # Front matter
    DEFAULT_SEPARATOR: str = "\n\n"

    # Name derivation from document ids
    NAME_BLOCK_SEPARATOR: str = "_"
    MAX_NAME_COMPONENTS: int = 2

    # spaCy processing defaults
    SPACY_LANGUAGE: str = "en"
    DEFAULT_BATCH_SIZE: int = 25

    # Stopwords
    DEFAULT_STOPWORD_LEXICON: str = "snowball"

    # Normalization factors
    FREQUENCY_NORMALIZATION_FACTOR: int = 1000000

    # Ranking
    DEFAULT_TOP_N: int = 10

    # Validation
    LARGE_CORPUS_THRESHOLD: int = 10000  # documents


@dataclass
class RegexPatterns:
    """Compiled regex patterns for text processing."""

    PUNCTUATION_ONLY = re.compile(r"^[!-/:-@\[-`{-~‘-‟…]+$")
    UPPERCASE_BOUNDARY = re.compile(r"(?=[A-Z])")
    WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class PipelineConfig:
    """
    User-facing options for preparing, tokenizing and filtering a corpus.

    Values are validated on construction; malformed options raise
    :class:`~corpusstats.validation.InvalidConfiguration`.

    :param split_front_matter: Split each text into title, front matter
        and body; when false the whole text is the body.
    :param front_matter_separator: Literal separating title, front matter
        and body.
    :param strip_literals: Literal substrings removed from every body.
    :param excluded_document_ids: Documents dropped before any processing.
    :param tokenize_mode: One of 'word', 'sentence' or 'ngram'.
    :param ngram_n: Words per n-gram when tokenize_mode is 'ngram'.
    :param lowercase: Fold case of word and n-gram tokens.
    :param strip_punctuation: Drop tokens made only of punctuation.
    :param stopwords: Generic stopwords; None loads the default lexicon.
    :param extra_exclusions: Additional terms to exclude.
    :param derive_names: Exclude names derived from document ids.
    :param match_ngram_parts: Drop an n-gram when any of its words
        is excluded.
    """

    split_front_matter: bool = True
    front_matter_separator: str = ProcessingConfig.DEFAULT_SEPARATOR
    strip_literals: Tuple[str, ...] = ()
    excluded_document_ids: FrozenSet[str] = frozenset()
    tokenize_mode: str = "word"
    ngram_n: int = 2
    lowercase: bool = True
    strip_punctuation: bool = True
    stopwords: Optional[FrozenSet[str]] = None
    extra_exclusions: FrozenSet[str] = frozenset()
    derive_names: bool = True
    match_ngram_parts: bool = False

    def __post_init__(self):
        from .validation import (
            InvalidConfiguration,
            validate_ngram_n,
            validate_separator,
            validate_tokenize_mode,
        )

        validate_separator(self.front_matter_separator, "in PipelineConfig")
        validate_tokenize_mode(self.tokenize_mode, "in PipelineConfig")
        if self.tokenize_mode == "ngram":
            validate_ngram_n(self.ngram_n, "in PipelineConfig")

        for name in ("strip_literals", "excluded_document_ids", "extra_exclusions"):
            value = getattr(self, name)
            if isinstance(value, str):
                raise InvalidConfiguration(
                    f"'{name}' must be a collection of strings, not a single "
                    f"string: {value!r}"
                )

        # normalise collections so the config stays hashable
        object.__setattr__(self, "strip_literals", _as_tuple(self.strip_literals))
        object.__setattr__(
            self, "excluded_document_ids", frozenset(self.excluded_document_ids)
        )
        object.__setattr__(self, "extra_exclusions", frozenset(self.extra_exclusions))
        if self.stopwords is not None:
            if isinstance(self.stopwords, str):
                raise InvalidConfiguration(
                    "'stopwords' must be a collection of strings; use "
                    "corpusstats.data.stopwords(lexicon) to load a lexicon."
                )
            object.__setattr__(self, "stopwords", frozenset(self.stopwords))

        if any(lit == "" for lit in self.strip_literals):
            raise InvalidConfiguration(
                "'strip_literals' cannot contain an empty string."
            )


def _as_tuple(values: Iterable[str]) -> Tuple[str, ...]:
    # keep caller order but drop repeats
    return tuple(dict.fromkeys(values))


# Global configuration instance
CONFIG = ProcessingConfig()
PATTERNS = RegexPatterns()
