"""Noun tags for enriching cached destinations."""
from __future__ import annotations

import logging
import os
from typing import Any, Callable, Iterable, List, Set

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIP_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

STOP_WORDS: frozenset[str] = frozenset(
    {
        "the",
        "and",
        "its",
        "a",
        "an",
        "of",
        "to",
        "in",
        "for",
        "with",
        "on",
        "at",
        "by",
        "from",
    }
)

NounExtractor = Callable[[str], Iterable[str]]


class SpacyNounExtractor:
    """Yield noun phrases and nouns found by a spaCy pipeline.

    The pipeline is loaded on first use so importing this module stays cheap.
    """

    def __init__(self, model: str | None = None):
        self.model = model or os.getenv("SPACY_MODEL") or "en_core_web_sm"
        self._nlp: Any = None

    def _pipeline(self) -> Any:
        if self._nlp is None:
            import spacy

            logger.info("Loading spaCy pipeline %s", self.model)
            self._nlp = spacy.load(self.model)
        return self._nlp

    def __call__(self, text: str) -> List[str]:
        doc = self._pipeline()(text)
        nouns: List[str] = [chunk.text.strip() for chunk in doc.noun_chunks]
        nouns += [token.text for token in doc if token.pos_ in ("NOUN", "PROPN")]
        return nouns


class TagExtractor:
    def __init__(self, noun_extractor: NounExtractor | None = None):
        self.noun_extractor = noun_extractor or SpacyNounExtractor()

    def extract(self, notes: str | None) -> Set[str]:
        if not notes or not notes.strip():
            return set()
        tags: Set[str] = set()
        for noun in self.noun_extractor(notes):
            cleaned = " ".join(noun.split())
            if not cleaned or cleaned.lower() in STOP_WORDS:
                continue
            tags.add(cleaned)
        return tags
