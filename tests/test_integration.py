"""
Integration tests for corpusstats focusing on error handling and consistency.

This module contains integration tests that run the whole pipeline, from
raw interview transcripts to corpus statistics and document-term matrices,
and verify the warnings and errors raised along the way.
"""

import math
import warnings

import numpy as np
import pytest
import polars as pl

import corpusstats as cs
from corpusstats.processors import TextPreprocessor
from corpusstats.validation import (
    CorpusStatsError,
    InvalidConfiguration,
    InvalidInput,
    ValidationWarning,
)

from conftest import (
    ANDRESEN,
    BAKER,
    CARLSON,
    assert_dataframe_structure,
    assert_statistics_valid,
)


def _terms(stats, doc_id):
    return {
        row["term"]: row for row in stats.filter(pl.col("doc_id") == doc_id).to_dicts()
    }


class TestInterviewPipeline:
    """Run the complete pipeline over a small interview corpus."""

    @pytest.fixture(scope="class")
    def stats(self, interview_corpus, interview_config):
        return cs.corpus_statistics(interview_corpus, interview_config)

    def test_prepared_corpus(self, interview_corpus, interview_config):
        prepared = cs.prepare_corpus(interview_corpus, interview_config)
        assert_dataframe_structure(
            prepared, ["doc_id", "series_title", "front_matter", "body"], min_rows=2
        )
        assert prepared["doc_id"].to_list() == [ANDRESEN, BAKER]
        assert prepared["series_title"].to_list() == ["Prairie Voices Oral History"] * 2
        assert prepared["front_matter"][0] == "Interviewer: Jane Smith\nDate: 1978"
        # blank lines after the second separator stay in the body
        assert prepared["body"][0] == (
            "\nRuth: We planted wheat every spring.\n\n"
            "Andresen farm had cattle and wheat."
        )

    def test_excluded_document_is_absent(self, stats):
        assert set(stats["doc_id"].to_list()) == {ANDRESEN, BAKER}
        assert CARLSON not in stats["doc_id"].to_list()

    def test_statistics_ranges(self, stats):
        assert_statistics_valid(stats)

    def test_surviving_terms(self, stats):
        andresen = _terms(stats, ANDRESEN)
        baker = _terms(stats, BAKER)
        assert set(andresen) == {"planted", "wheat", "every", "spring", "farm", "cattle"}
        assert set(baker) == {"wheat", "failed", "drought", "cattle", "died"}

    def test_front_matter_names_and_markers_removed(self, stats):
        terms = set(stats["term"].to_list())
        for removed in ("interview", "ruth", "tom", "andresen", "baker",
                        "jane", "smith", "prairie", "1978", "the", "we"):
            assert removed not in terms

    def test_counts_and_totals(self, stats):
        andresen = _terms(stats, ANDRESEN)
        assert andresen["wheat"]["n"] == 2
        assert andresen["wheat"]["total"] == 7
        assert andresen["wheat"]["tf"] == 2 / 7
        assert _terms(stats, BAKER)["died"]["total"] == 5

    def test_shared_terms_have_zero_tf_idf(self, stats):
        for doc_id in (ANDRESEN, BAKER):
            terms = _terms(stats, doc_id)
            assert terms["wheat"]["tf_idf"] == 0.0
            assert terms["cattle"]["tf_idf"] == 0.0

    def test_distinct_terms_weighted(self, stats):
        farm = _terms(stats, ANDRESEN)["farm"]
        assert farm["df"] == 0.5
        assert farm["tf_idf"] == pytest.approx(math.log(2) / 7)

    def test_positions_assigned_before_filtering(
        self, interview_corpus, interview_config
    ):
        tokens = cs.CorpusProcessor(interview_config).tokens(interview_corpus)
        andresen = tokens.filter(pl.col("doc_id") == ANDRESEN)
        assert andresen["token"].to_list() == [
            "planted", "wheat", "every", "spring", "farm", "cattle", "wheat",
        ]
        assert andresen["position"].to_list() == [2, 3, 4, 5, 7, 9, 11]

    def test_top_terms(self, stats):
        top = cs.top_terms(stats, n=1)
        assert top.rows(named=True)[0]["doc_id"] == ANDRESEN
        assert top.height == 2
        # ties on tf_idf are broken alphabetically
        assert top["term"].to_list() == ["every", "died"]

    def test_dtm_matches_statistics(self, interview_corpus, interview_config, stats):
        dtm = cs.corpus_dtm(interview_corpus, interview_config)
        assert dtm.doc_ids == (ANDRESEN, BAKER)
        assert dtm.get(ANDRESEN, "wheat") == 2
        assert dtm.get(BAKER, "farm") == 0
        assert dtm.doc_lengths() == {ANDRESEN: 7, BAKER: 5}
        assert dtm.nnz == stats.height


class TestPipelineWarnings:
    """Non-fatal conditions are reported as ValidationWarning."""

    def test_missing_excluded_document(self, simple_corpus):
        config = cs.PipelineConfig(
            split_front_matter=False,
            stopwords={"the"},
            excluded_document_ids={"Z"},
        )
        with pytest.warns(ValidationWarning, match="Z"):
            stats = cs.corpus_statistics(simple_corpus, config)
        assert stats.height == 4

    def test_document_with_only_stopwords_is_dropped(self, simple_config):
        corpus = {"A": "the cat sat", "B": "the dog sat", "C": "the the"}
        with pytest.warns(ValidationWarning, match="C"):
            stats = cs.corpus_statistics(corpus, simple_config)
        assert "C" not in stats["doc_id"].to_list()
        # N counts only documents with surviving tokens
        assert _terms(stats, "A")["sat"]["idf"] == 0.0

    def test_no_warning_for_clean_run(self, simple_corpus, simple_config):
        with warnings.catch_warnings():
            warnings.simplefilter("error", ValidationWarning)
            cs.corpus_statistics(simple_corpus, simple_config)


class TestErrorHandling:
    """Malformed input and options fail with descriptive errors."""

    @pytest.mark.parametrize(
        "case",
        [
            "missing_doc_id",
            "missing_text",
            "wrong_types",
            "duplicate_ids",
            "empty_ids",
            "null_values",
        ],
    )
    def test_invalid_corpus(self, invalid_corpus_data, case):
        with pytest.raises(InvalidInput):
            cs.prepare_corpus(invalid_corpus_data[case])

    def test_errors_share_a_base_class(self, invalid_corpus_data):
        with pytest.raises(CorpusStatsError):
            cs.corpus_statistics(invalid_corpus_data["duplicate_ids"])

    def test_non_string_mapping_value(self):
        with pytest.raises(InvalidInput):
            cs.corpus_statistics({"A": 12})

    def test_unsupported_corpus_type(self):
        with pytest.raises(InvalidInput):
            cs.corpus_statistics(["the cat sat"])

    def test_split_text_requires_string(self):
        with pytest.raises(InvalidInput):
            cs.split_front_matter(None)

    def test_unknown_mode(self):
        with pytest.raises(InvalidConfiguration, match="Did you mean"):
            cs.PipelineConfig(tokenize_mode="words")

    @pytest.mark.parametrize("n", [0, -1, True, 2.0])
    def test_invalid_ngram_size(self, n):
        with pytest.raises(InvalidConfiguration):
            cs.PipelineConfig(tokenize_mode="ngram", ngram_n=n)

    def test_empty_separator(self):
        with pytest.raises(InvalidConfiguration):
            cs.PipelineConfig(front_matter_separator="")

    def test_single_string_literal_list(self):
        with pytest.raises(InvalidConfiguration):
            cs.PipelineConfig(strip_literals="INTERVIEW")

    def test_top_terms_unknown_column(self, simple_counts):
        stats = cs.tf_idf(simple_counts)
        with pytest.raises(InvalidConfiguration):
            cs.top_terms(stats, by="bogus")

    def test_top_terms_invalid_n(self, simple_counts):
        stats = cs.tf_idf(simple_counts)
        with pytest.raises(InvalidConfiguration):
            cs.top_terms(stats, n=0)


class TestTokenizationModes:
    """The configuration surface of the tokenizer."""

    def test_sentence_mode_keeps_case(self, tokenizer):
        corpus = cs.as_corpus_frame({"A": "The cat sat. The dog ran!"})
        tokens = tokenizer.tokenize_corpus(corpus, mode="sentence")
        assert tokens["token"].to_list() == ["The cat sat.", "The dog ran!"]
        assert tokens["position"].to_list() == [0, 1]

    def test_ngram_pipeline(self, simple_corpus):
        config = cs.PipelineConfig(
            split_front_matter=False,
            tokenize_mode="ngram",
            ngram_n=2,
            stopwords=(),
            derive_names=False,
        )
        stats = cs.corpus_statistics(simple_corpus, config)
        assert set(_terms(stats, "A")) == {"the cat", "cat sat"}

    def test_ngram_longer_than_document(self, tokenizer):
        corpus = cs.as_corpus_frame({"A": "two words"})
        tokens = tokenizer.tokenize_corpus(corpus, mode="ngram", n=3)
        assert tokens.height == 0
        assert tokens.columns == ["doc_id", "token", "position"]

    def test_count_units(self):
        assert cs.count_units("Rain fell. It stopped.") == {
            "n_words": 4,
            "n_chars": 22,
            "n_sentences": 2,
        }

    def test_custom_nlp_model(self):
        import spacy

        nlp = spacy.blank("en")
        tokens = cs.tokenize({"A": "Cats sat"}, nlp_model=nlp)
        assert tokens["token"].to_list() == ["cats", "sat"]

    def test_custom_nlp_model_is_not_modified(self):
        import spacy

        nlp = spacy.blank("en")
        tokens = cs.tokenize(
            {"A": "Rain fell. It stopped."}, mode="sentence", nlp_model=nlp
        )
        assert tokens["token"].to_list() == ["Rain fell.", "It stopped."]
        assert nlp.pipe_names == []


class TestLiteralStripping:
    """Every configured literal marker is removed from the body."""

    def test_several_literals(self):
        config = cs.PipelineConfig(
            split_front_matter=False,
            strip_literals=("INTERVIEW", "[inaudible]", "(laughs)"),
            stopwords=(),
            derive_names=False,
        )
        corpus = {"A": "INTERVIEW We planted [inaudible] wheat (laughs) INTERVIEW"}
        prepared = cs.prepare_corpus(corpus, config)
        assert prepared["body"][0] == " We planted  wheat  "

        tokens = cs.CorpusProcessor(config).tokens(corpus)
        assert tokens["token"].to_list() == ["we", "planted", "wheat"]

    def test_literals_are_not_patterns(self):
        corpus = pl.DataFrame({"doc_id": ["A"], "body": ["a.b a+b"]})
        cleaned = TextPreprocessor.strip_literals(corpus, [".", "+"])
        assert cleaned["body"][0] == "ab ab"

    def test_literals_only_touch_the_body(self, interview_corpus):
        config = cs.PipelineConfig(strip_literals=("Prairie", "INTERVIEW"))
        prepared = cs.prepare_corpus(interview_corpus, config)
        assert prepared["series_title"][0] == "Prairie Voices Oral History"
        assert "INTERVIEW" not in prepared["body"][1]


class TestDocumentTermMatrix:
    """The sparse matrix handed to topic-modeling consumers."""

    @pytest.fixture
    def dtm(self, simple_counts):
        return cs.document_term_matrix(simple_counts)

    def test_layout(self, dtm):
        assert dtm.doc_ids == ("A", "B")
        assert dtm.terms == ("cat", "dog", "sat")
        assert dtm.shape == (2, 3)
        assert len(dtm) == 2
        assert dtm.matrix.toarray().tolist() == [[1, 0, 1], [0, 1, 1]]

    def test_row_and_get(self, dtm):
        assert dtm.row("A") == {"cat": 1, "sat": 1}
        assert dtm.get("A", "dog") == 0
        assert dtm.get("Z", "cat") == 0
        with pytest.raises(InvalidInput):
            dtm.row("Z")

    def test_matrix_is_read_only(self, dtm):
        copy = dtm.matrix
        copy.data[:] = 99
        assert dtm.get("A", "cat") == 1

    def test_to_coo(self, dtm):
        coo, docs, vocab = cs.dtm_to_coo(dtm)
        assert coo.format == "coo"
        assert docs == ["A", "B"]
        assert vocab == ["cat", "dog", "sat"]
        assert coo.sum() == 4

    def test_weight_prop(self, dtm):
        weighted = cs.dtm_weight(dtm, scheme="prop").toarray()
        np.testing.assert_allclose(weighted, [[0.5, 0, 0.5], [0, 0.5, 0.5]])

    def test_weight_tfidf(self, dtm):
        weighted = cs.dtm_weight(dtm, scheme="tfidf").toarray()
        assert weighted[0, 2] == 0.0
        assert weighted[0, 0] == pytest.approx(0.5 * math.log(2))

    def test_weight_unknown_scheme(self, dtm):
        with pytest.raises(InvalidConfiguration):
            cs.dtm_weight(dtm, scheme="bm25")

    def test_keep_empty_rows(self, simple_config):
        corpus = {"A": "the cat sat", "B": "the dog sat", "C": "the the"}
        assert cs.corpus_dtm(corpus, simple_config).doc_ids == ("A", "B")

        dtm = cs.corpus_dtm(corpus, simple_config, keep_empty=True)
        assert dtm.doc_ids == ("A", "B", "C")
        assert dtm.row("C") == {}
        assert dtm.doc_lengths()["C"] == 0
        # empty rows do not enter the idf document total
        weighted = cs.dtm_weight(dtm, scheme="tfidf").toarray()
        assert weighted[0, 0] == pytest.approx(0.5 * math.log(2))

    def test_counts_for_unknown_rows(self, simple_counts):
        with pytest.raises(InvalidInput):
            cs.document_term_matrix(simple_counts, doc_ids=["A"])


class TestDocumentMetadata:
    def test_metadata_per_document(self, interview_corpus, interview_config):
        prepared = cs.prepare_corpus(interview_corpus, interview_config)
        meta = cs.document_metadata(prepared)
        assert_dataframe_structure(
            meta, ["doc_id", "n_words", "n_chars", "n_sentences"], min_rows=2
        )
        assert meta["doc_id"].to_list() == [ANDRESEN, BAKER]
        assert (meta["n_words"] > 0).all()
