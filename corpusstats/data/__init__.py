from functools import lru_cache

from importlib_resources import files as _files

sources = {
    "snowball": _files("corpusstats") / "data/snowball.txt",
}

lexicons = ["snowball", "spacy"]


@lru_cache(maxsize=None)
def stopwords(lexicon: str = "snowball") -> frozenset:
    """
    Load a generic English stopword lexicon as a case-folded frozenset.

    :param lexicon: One of 'snowball' (bundled with corpusstats) or
        'spacy' (the list shipped with spaCy's English language data).
    :return: A frozenset of stopwords.
    """
    if lexicon == "spacy":
        from spacy.lang.en.stop_words import STOP_WORDS

        return frozenset(w.lower() for w in STOP_WORDS)

    if lexicon not in sources:
        from ..validation import InvalidConfiguration

        raise InvalidConfiguration(
            f"Unknown stopword lexicon: '{lexicon}'. "
            f"Valid options are: {', '.join(lexicons)}"
        )

    text = sources[lexicon].read_text(encoding="utf-8")
    return frozenset(
        line.strip().lower() for line in text.splitlines() if line.strip()
    )


def __dir__():
    return list(lexicons) + ["stopwords", "sources", "lexicons"]


def __getattr__(k):
    if k not in lexicons:
        raise AttributeError(f"module {__name__!r} has no attribute {k!r}")

    return stopwords(k)
