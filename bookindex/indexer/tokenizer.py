"""Tokenizer

Turns raw document text into a lazy stream of normalized terms:

    0. the text is NFC-normalized so decomposed accents join their letters;
    1. every character that is not a word character (Unicode letter, digit,
       underscore) and not whitespace becomes a single space;
    2. the text is split on whitespace runs;
    3. each token is trimmed and lower-cased, empty tokens are dropped;
    4. tokens in the stop-word set are dropped.

The stop-word set is handed in at construction; there is no module-level
mutable state.
"""

import re
import unicodedata
from typing import Iterable, Iterator, Union

from bookindex.pipeline.errors import TokenizationError

NON_WORD_RE = re.compile(r"[^\w\s]")  # punctuation and symbols


def decode_text(raw: Union[str, bytes]) -> str:
    """Return `raw` as text. Undecodable bytes become U+FFFD, a non-word char."""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    raise TokenizationError(f"Cannot tokenize object of type {type(raw).__name__}")


class Tokenizer:
    """Normalizes text and filters stop words."""

    def __init__(self, stop_words: Iterable[str] = ()):
        self.stop_words = frozenset(word.lower() for word in stop_words)

    def tokenize(self, raw_text: Union[str, bytes]) -> Iterator[str]:
        """Yield surviving terms of `raw_text` in order.

        Unsupported input raises TokenizationError here, not on first iteration.
        """
        text = unicodedata.normalize("NFC", decode_text(raw_text))  # compose decomposed accents
        return self._iter_terms(text)

    def _iter_terms(self, text: str) -> Iterator[str]:
        cleaned = NON_WORD_RE.sub(" ", text)
        for token in cleaned.split():
            term = token.strip().lower()
            if term and term not in self.stop_words:
                yield term

    def is_stop_word(self, word: str) -> bool:
        return word.lower() in self.stop_words


def tokenize(text: Union[str, bytes], stop_words: Iterable[str] = ()) -> Iterator[str]:
    """Shortcut for one-off calls: ``Tokenizer(stop_words).tokenize(text)``."""
    return Tokenizer(stop_words).tokenize(text)
