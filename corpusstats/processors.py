"""
Core processing classes for preparing a corpus for frequency analysis.

This module provides the text-preparation pipeline for a corpus, from
validation and front matter splitting through spaCy tokenization to
stopword and name filtering. The classes are designed to work together
as a cohesive pipeline while also being usable independently.

Classes:
    CorpusValidator: Validates corpus and token data
    FrontMatterSplitter: Separates title, front matter and body text
    TextPreprocessor: Drops excluded documents and strips literal markers
    Tokenizer: Turns text into word, sentence or n-gram tokens with spaCy
    ExclusionFilter: Builds exclusion sets and removes excluded tokens
    CorpusProcessor: Main orchestrator for the complete pipeline

Example:
    Basic usage with the main processor::

        import polars as pl
        from corpusstats.config import PipelineConfig
        from corpusstats.processors import CorpusProcessor

        corpus = pl.DataFrame({
            'doc_id': ['AndresenRuth_1stInterview_transcript.txt'],
            'text': ['Oral History\\n\\nInterviewer: J. Doe\\n\\nINTERVIEW We farmed.']
        })

        config = PipelineConfig(strip_literals=('INTERVIEW',))
        processor = CorpusProcessor(config)
        tokens = processor.tokens(corpus)

.. codeauthor:: David Brown <dwb2@andrew.cmu.edu>
"""

import warnings
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

import polars as pl
import spacy
from spacy.language import Language
from spacy.tokens import Doc
from spacy.pipeline import Sentencizer

from .config import CONFIG, PATTERNS, PipelineConfig
from .corpus_utils import as_corpus_frame, text_column
from .data import stopwords as load_stopwords
from .validation import (
    InvalidInput,
    ValidationWarning,
    validate_corpus_dataframe,
    validate_ngram_n,
    validate_separator,
    validate_tokenize_mode,
    validate_tokens_dataframe,
)

TOKENS_SCHEMA = {"doc_id": pl.String, "token": pl.String, "position": pl.UInt32}


class Token(NamedTuple):
    """A single emitted unit of a document."""

    doc_id: str
    token: str
    position: int


class CorpusValidator:
    """
    Validates corpus and token data before processing.

    Example:
        Validate a corpus before processing::

            import polars as pl
            from corpusstats.processors import CorpusValidator

            corpus = pl.DataFrame({
                'doc_id': ['doc1.txt', 'doc2.txt'],
                'text': ['First document.', 'Second document.']
            })

            # This will raise an exception if validation fails
            CorpusValidator.validate_corpus_schema(corpus)
    """

    @staticmethod
    def validate_corpus_schema(corp: pl.DataFrame) -> None:
        """
        Validate that corpus has expected schema.

        Args:
            corp: A polars DataFrame that should contain 'doc_id' and 'text'
                (or 'body') columns.

        Raises:
            InvalidInput: If the corpus doesn't meet validation requirements.
        """
        validate_corpus_dataframe(corp, "in CorpusProcessor")

    @staticmethod
    def validate_tokens_schema(tokens_table: pl.DataFrame) -> None:
        """
        Validate that tokens table has expected schema.

        Args:
            tokens_table: A polars DataFrame containing tokens.

        Raises:
            InvalidInput: If the tokens table doesn't meet validation requirements.
        """
        validate_tokens_dataframe(tokens_table, "in CorpusProcessor")


class FrontMatterSplitter:
    """
    Separates a document's leading metadata from its body text.

    Documents are split on a literal separator (a blank line by default)
    into exactly three parts: series title, front matter and body. Any
    further separators belong to the body, which is kept verbatim.

    Example:
        Split a single document::

            >>> FrontMatterSplitter.split_text("Title\\n\\nMeta\\n\\nBody\\n\\nMore")
            ('Title', 'Meta', 'Body\\n\\nMore')

        A document without front matter::

            >>> FrontMatterSplitter.split_text("Only a title")
            ('Only a title', '', '')
    """

    PARTS = ["series_title", "front_matter", "body"]

    @staticmethod
    def split_text(
        text: str, separator: str = CONFIG.DEFAULT_SEPARATOR
    ) -> Tuple[str, str, str]:
        """
        Split raw text into series title, front matter and body.

        Args:
            text: The raw document text.
            separator: Literal separating the three parts.

        Returns:
            A (series_title, front_matter, body) tuple. Missing parts are
            empty strings, filled in that order.

        Raises:
            InvalidInput: If text is not a string.
        """
        if not isinstance(text, str):
            raise InvalidInput(
                f"Document text must be a string, got {type(text).__name__}."
            )
        validate_separator(separator, "in split_text")

        parts = text.split(separator, 2)
        parts += [""] * (3 - len(parts))
        return parts[0], parts[1], parts[2]

    def split_corpus(
        self, corp: pl.DataFrame, separator: str = CONFIG.DEFAULT_SEPARATOR
    ) -> pl.DataFrame:
        """
        Apply split_text to every document of a corpus.

        Args:
            corp: A polars DataFrame with 'doc_id' and 'text' columns.
            separator: Literal separating the three parts.

        Returns:
            The corpus with 'text' replaced by 'series_title',
            'front_matter' and 'body' columns.
        """
        validate_separator(separator, "in split_corpus")
        if "text" not in corp.columns:
            raise InvalidInput(
                "Cannot split front matter: corpus has no 'text' column. "
                "Has it already been split?"
            )

        return (
            corp.with_columns(
                pl.col("text")
                .str.splitn(separator, 3)
                .struct.rename_fields(self.PARTS)
                .alias("parts")
            )
            .drop("text")
            .unnest("parts")
            .with_columns(pl.col(self.PARTS).fill_null(""))
        )


class TextPreprocessor:
    """
    Handles document exclusion and literal clean-up before tokenization.

    Example:
        Remove a transcript marker from every body::

            preprocessor = TextPreprocessor()
            clean = preprocessor.strip_literals(split_corpus, ["INTERVIEW"])
    """

    @staticmethod
    def exclude_documents(
        corp: pl.DataFrame, excluded_ids: Iterable[str]
    ) -> pl.DataFrame:
        """
        Drop documents by identifier.

        Args:
            corp: A corpus DataFrame with a 'doc_id' column.
            excluded_ids: Identifiers of documents to drop.

        Returns:
            The corpus without the excluded documents.
        """
        excluded_ids = sorted(set(excluded_ids))
        if not excluded_ids:
            return corp

        present = set(corp.get_column("doc_id").to_list())
        missing = [doc_id for doc_id in excluded_ids if doc_id not in present]
        if missing:
            warnings.warn(
                f"Excluded document IDs not found in corpus: {', '.join(missing[:5])}",
                ValidationWarning,
                stacklevel=2,
            )

        return corp.filter(~pl.col("doc_id").is_in(excluded_ids))

    @staticmethod
    def strip_literals(
        corp: pl.DataFrame, literals: Iterable[str], column: str = "body"
    ) -> pl.DataFrame:
        """
        Remove every occurrence of each literal substring from a text column.

        Args:
            corp: A corpus DataFrame.
            literals: Literal strings (not patterns) to remove.
            column: The text column to clean.

        Returns:
            The corpus with cleaned text.
        """
        expr = pl.col(column)
        for literal in literals:
            expr = expr.str.replace_all(literal, "", literal=True)
        return corp.with_columns(expr)


class Tokenizer:
    """
    Tokenizes document text using a spaCy pipeline.

    By default a blank English pipeline with a rule-based sentencizer is
    used, so no trained model needs to be installed. Its tokenizer has no
    special-case rules: 'cannot' and 'gonna' stay single words and
    contractions such as "don't" are kept whole, while the possessive "'s"
    is still split off. Tokens are produced lazily, one document at a time.

    A caller-supplied pipeline is used as is and never modified. When it
    has no sentence boundary component, a standalone sentencizer is
    applied to its output in sentence mode.

    Modes:
        word: spaCy word tokens, whitespace never emitted.
        sentence: sentence spans, never case-folded.
        ngram: overlapping runs of n word tokens joined by a single space.

    Example:
        >>> tokenizer = Tokenizer()
        >>> [t.token for t in tokenizer.iter_tokens("A", "The cat sat.")]
        ['the', 'cat', 'sat']
        >>> [t.token for t in tokenizer.iter_tokens("A", "the cat sat",
        ...                                         mode="ngram", n=2)]
        ['the cat', 'cat sat']
    """

    def __init__(
        self,
        nlp_model: Optional[Language] = None,
        batch_size: int = CONFIG.DEFAULT_BATCH_SIZE,
    ):
        if nlp_model is None:
            nlp_model = self.blank_pipeline()
        self.nlp = nlp_model
        self.batch_size = batch_size

        self._sentencizer = None
        if not any(
            name in nlp_model.pipe_names for name in ("sentencizer", "senter", "parser")
        ):
            self._sentencizer = Sentencizer()

    @staticmethod
    def blank_pipeline(lang: str = CONFIG.SPACY_LANGUAGE) -> Language:
        """
        Build a blank spaCy pipeline with a sentencizer and no tokenizer
        special cases, so 'cannot', 'gonna' and "don't" stay single tokens.
        """
        nlp = spacy.blank(lang)
        nlp.tokenizer.rules = {}
        nlp.add_pipe("sentencizer")
        return nlp

    def _sentencize(self, doc: Doc) -> Doc:
        if self._sentencizer is None:
            return doc
        return self._sentencizer(doc)

    @staticmethod
    def is_punctuation(text: str) -> bool:
        """Whether a token consists solely of punctuation characters."""
        return bool(PATTERNS.PUNCTUATION_ONLY.match(text))

    def _words(
        self, doc: Doc, lowercase: bool, strip_punctuation: bool
    ) -> Iterator[str]:
        for token in doc:
            if token.is_space:
                continue
            text = token.text
            if strip_punctuation and (token.is_punct or self.is_punctuation(text)):
                continue
            yield text.lower() if lowercase else text

    def _sentences(self, doc: Doc, strip_punctuation: bool) -> Iterator[str]:
        if len(doc) == 0:
            return
        for sent in doc.sents:
            text = sent.text.strip()
            if not text:
                continue
            if strip_punctuation and self.is_punctuation(
                PATTERNS.WHITESPACE.sub("", text)
            ):
                continue
            yield text

    def _units(
        self,
        doc: Doc,
        mode: str,
        n: int,
        lowercase: bool,
        strip_punctuation: bool,
    ) -> Iterator[str]:
        if mode == "sentence":
            return self._sentences(doc, strip_punctuation)

        words = self._words(doc, lowercase, strip_punctuation)
        if mode == "word" or n == 1:
            return words

        words = list(words)
        return (
            " ".join(words[i: i + n]) for i in range(len(words) - n + 1)
        )

    def _make_doc(self, text: str, mode: str) -> Doc:
        # the sentencizer only matters for sentence mode
        if mode == "sentence":
            return self._sentencize(self.nlp(text))
        return self.nlp.make_doc(text)

    @staticmethod
    def _validate(mode: str, n: int) -> None:
        validate_tokenize_mode(mode, "in Tokenizer")
        if mode == "ngram":
            validate_ngram_n(n, "in Tokenizer")

    def iter_tokens(
        self,
        doc_id: str,
        text: str,
        mode: str = "word",
        n: int = 2,
        lowercase: bool = True,
        strip_punctuation: bool = True,
    ) -> Iterator[Token]:
        """
        Lazily tokenize a single document.

        Args:
            doc_id: Identifier attached to every token.
            text: Document body.
            mode: One of 'word', 'sentence' or 'ngram'.
            n: Words per n-gram in 'ngram' mode.
            lowercase: Fold case of word and n-gram tokens.
            strip_punctuation: Drop punctuation-only tokens.

        Returns:
            An iterator of Token tuples with 0-based positions.

        Raises:
            InvalidConfiguration: For an unknown mode or n < 1 in 'ngram' mode.
            InvalidInput: If text is not a string.
        """
        self._validate(mode, n)
        if not isinstance(text, str):
            raise InvalidInput(
                f"Document text must be a string, got {type(text).__name__} "
                f"for document '{doc_id}'."
            )

        doc = self._make_doc(text, mode)
        units = self._units(doc, mode, n, lowercase, strip_punctuation)
        return (Token(doc_id, unit, i) for i, unit in enumerate(units))

    def iter_corpus(
        self,
        corp: pl.DataFrame,
        mode: str = "word",
        n: int = 2,
        lowercase: bool = True,
        strip_punctuation: bool = True,
    ) -> Iterator[Token]:
        """
        Lazily tokenize every document of a corpus.

        Documents are streamed through spaCy in batches. The 'body' column of
        a split corpus is used when present, otherwise 'text'.
        """
        self._validate(mode, n)
        validate_corpus_dataframe(corp, "in Tokenizer")

        col = text_column(corp)
        doc_ids = corp.get_column("doc_id").to_list()
        texts = corp.get_column(col).to_list()

        if mode == "sentence":
            docs = map(
                self._sentencize,
                self.nlp.pipe(texts, batch_size=self.batch_size),
            )
        else:
            docs = self.nlp.tokenizer.pipe(texts, batch_size=self.batch_size)

        for doc_id, doc in zip(doc_ids, docs):
            units = self._units(doc, mode, n, lowercase, strip_punctuation)
            for i, unit in enumerate(units):
                yield Token(doc_id, unit, i)

    def tokenize_corpus(
        self,
        corp: pl.DataFrame,
        mode: str = "word",
        n: int = 2,
        lowercase: bool = True,
        strip_punctuation: bool = True,
    ) -> pl.DataFrame:
        """
        Tokenize a corpus into a DataFrame of doc_id, token and position.

        :param corp: A corpus DataFrame ('doc_id' with 'body' or 'text').
        :param mode: One of 'word', 'sentence' or 'ngram'.
        :param n: Words per n-gram in 'ngram' mode.
        :param lowercase: Fold case of word and n-gram tokens.
        :param strip_punctuation: Drop punctuation-only tokens.
        :return: A polars DataFrame with one row per token.
        """
        rows = list(
            self.iter_corpus(
                corp,
                mode=mode,
                n=n,
                lowercase=lowercase,
                strip_punctuation=strip_punctuation,
            )
        )
        return pl.DataFrame(rows, schema=TOKENS_SCHEMA, orient="row")

    def count_units(self, text: str) -> Dict[str, int]:
        """
        Count words, characters and sentences without materialising tokens.

        n_words equals the length of the default 'word' token sequence.

        Args:
            text: Document text.

        Returns:
            A dict with 'n_words', 'n_chars' and 'n_sentences'.
        """
        if not isinstance(text, str):
            raise InvalidInput(
                f"Document text must be a string, got {type(text).__name__}."
            )

        doc = self._sentencize(self.nlp(text))
        n_words = sum(
            1 for token in doc
            if not token.is_space
            and not (token.is_punct or self.is_punctuation(token.text))
        )
        n_sentences = sum(1 for _ in self._sentences(doc, strip_punctuation=True))
        return {"n_words": n_words, "n_chars": len(text), "n_sentences": n_sentences}


class ExclusionFilter:
    """
    Builds exclusion sets and removes excluded tokens.

    The exclusion set combines a generic stopword lexicon with names
    derived from the document identifiers of the whole corpus. Identifiers
    are expected to look like 'LastFirst_descriptor.ext'.

    Example:
        >>> ExclusionFilter.derive_name_components(
        ...     "AndresenRuth_1stInterview_transcript.txt")
        ('andresen', 'ruth')
    """

    @staticmethod
    def derive_name_components(doc_id: str) -> Tuple[str, ...]:
        """
        Derive case-folded name components from a document identifier.

        The name block is the text before the first separator. It is split
        at uppercase letters into at most two components; any remainder is
        merged into the second. An identifier without a separator is kept
        whole as a single component.

        Args:
            doc_id: A document identifier.

        Returns:
            A tuple of zero to two case-folded components.
        """
        if not isinstance(doc_id, str):
            raise InvalidInput(
                f"Document ID must be a string, got {type(doc_id).__name__}."
            )

        sep = CONFIG.NAME_BLOCK_SEPARATOR
        if sep not in doc_id:
            block = doc_id.strip()
            return (block.lower(),) if block else ()

        block = doc_id.split(sep, 1)[0]
        parts = [p.strip() for p in PATTERNS.UPPERCASE_BOUNDARY.split(block)]
        parts = [p for p in parts if p]
        if not parts:
            return ()

        limit = CONFIG.MAX_NAME_COMPONENTS
        components = parts[: limit - 1]
        if parts[limit - 1:]:
            components.append(" ".join(parts[limit - 1:]))
        return tuple(c.lower() for c in components)

    def derive_name_exclusions(self, doc_ids: Iterable[str]) -> frozenset:
        """
        Union the name components of every document identifier.

        A merged component such as 'der berg anna' is added both whole and
        word by word so it also matches word tokens.
        """
        names = set()
        for doc_id in doc_ids:
            for component in self.derive_name_components(doc_id):
                names.add(component)
                names.update(component.split())
        return frozenset(names)

    def build_exclusion_set(
        self,
        doc_ids: Iterable[str] = (),
        stopwords: Optional[Iterable[str]] = None,
        extra: Iterable[str] = (),
        derive_names: bool = True,
    ) -> frozenset:
        """
        Build the corpus-wide exclusion set.

        :param doc_ids: Identifiers of every document in the corpus.
        :param stopwords: Generic stopwords; None loads the default lexicon.
        :param extra: Additional terms to exclude.
        :param derive_names: Add names derived from the identifiers.
        :return: A case-folded frozenset of excluded terms.
        """
        if stopwords is None:
            stopwords = load_stopwords(CONFIG.DEFAULT_STOPWORD_LEXICON)

        exclusions = {w.lower() for w in stopwords}
        exclusions.update(w.lower() for w in extra)
        if derive_names:
            exclusions.update(self.derive_name_exclusions(doc_ids))
        return frozenset(exclusions)

    @staticmethod
    def filter_tokens(
        tokens_table: pl.DataFrame,
        exclusions: Iterable[str],
        match_ngram_parts: bool = False,
    ) -> pl.DataFrame:
        """
        Remove tokens whose case-folded form is in the exclusion set.

        The filter preserves token order and is idempotent.

        :param tokens_table: A tokens DataFrame.
        :param exclusions: Case-folded terms to remove.
        :param match_ngram_parts: Remove an n-gram when any of its
            space-separated words is excluded.
        :return: The surviving tokens.
        """
        validate_tokens_dataframe(tokens_table, "in ExclusionFilter")

        excluded = sorted({w.lower().replace("\u2019", "'") for w in exclusions})
        if not excluded:
            return tokens_table

        # curly and straight apostrophes compare equal
        folded = (
            pl.col("token")
            .str.to_lowercase()
            .str.replace_all("\u2019", "'", literal=True)
        )
        if match_ngram_parts:
            is_excluded = (
                folded.str.split(" ")
                .list.eval(pl.element().is_in(excluded))
                .list.any()
            )
        else:
            is_excluded = folded.is_in(excluded)

        return tokens_table.filter(~is_excluded)


class CorpusProcessor:
    """
    Main class that orchestrates the text-preparation pipeline.

    The stages run strictly forward: validate, exclude documents, split
    front matter, strip literals, tokenize, build the exclusion set once
    over the surviving documents, and filter.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        tokenizer: Optional[Tokenizer] = None,
    ):
        self.config = config if config is not None else PipelineConfig()
        self.validator = CorpusValidator()
        self.splitter = FrontMatterSplitter()
        self.preprocessor = TextPreprocessor()
        self.tokenizer = tokenizer if tokenizer is not None else Tokenizer()
        self.exclusion_filter = ExclusionFilter()

    def prepare(self, corp) -> pl.DataFrame:
        """
        Validate, exclude, split and clean a corpus.

        :param corp: A polars DataFrame with 'doc_id' and 'text' columns,
            or a mapping of doc_id to text.
        :return: A DataFrame with 'doc_id', 'series_title', 'front_matter'
            and 'body' columns.
        """
        corp = as_corpus_frame(corp)
        self.validator.validate_corpus_schema(corp)

        corp = self.preprocessor.exclude_documents(
            corp, self.config.excluded_document_ids
        )
        if self.config.split_front_matter:
            corp = self.splitter.split_corpus(
                corp, self.config.front_matter_separator
            )
        else:
            corp = corp.select(
                "doc_id",
                pl.lit("").alias("series_title"),
                pl.lit("").alias("front_matter"),
                pl.col(text_column(corp)).alias("body"),
            )
        return self.preprocessor.strip_literals(corp, self.config.strip_literals)

    def exclusion_set(self, doc_ids: Iterable[str]) -> frozenset:
        """Build the exclusion set for the given corpus document ids."""
        return self.exclusion_filter.build_exclusion_set(
            doc_ids,
            stopwords=self.config.stopwords,
            extra=self.config.extra_exclusions,
            derive_names=self.config.derive_names,
        )

    def tokens(self, corp) -> pl.DataFrame:
        """
        Run the complete pipeline and return the filtered tokens.

        :param corp: A polars DataFrame with 'doc_id' and 'text' columns,
            or a mapping of doc_id to text.
        :return: A polars DataFrame with 'doc_id', 'token' and 'position'.
        """
        prepared = self.prepare(corp)
        return self.tokens_from_prepared(prepared)

    def tokens_from_prepared(self, prepared: pl.DataFrame) -> pl.DataFrame:
        """Tokenize and filter a corpus that has already been prepared."""
        cfg = self.config
        tokens_table = self.tokenizer.tokenize_corpus(
            prepared,
            mode=cfg.tokenize_mode,
            n=cfg.ngram_n,
            lowercase=cfg.lowercase,
            strip_punctuation=cfg.strip_punctuation,
        )
        exclusions = self.exclusion_set(prepared.get_column("doc_id").to_list())
        return self.exclusion_filter.filter_tokens(
            tokens_table, exclusions, match_ngram_parts=cfg.match_ngram_parts
        )

    def document_ids(self, corp) -> List[str]:
        """Identifiers of the documents that survive exclusion."""
        prepared = self.prepare(corp)
        return prepared.get_column("doc_id").to_list()
