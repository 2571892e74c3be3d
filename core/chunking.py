# core/chunking.py
from functools import lru_cache
from typing import List, Sequence
from nltk.tokenize.punkt import PunktParameters, PunktSentenceTokenizer
from config.settings import settings
from core.entities import Passage
from model.source import Source
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _load_segmenter() -> PunktSentenceTokenizer:
    """
    Punkt tokenizer seeded with a fixed abbreviation list, so "Mr.", "U.S.A." and
    "Inc." stay inside their sentence. No corpus download is needed.
    """
    params = PunktParameters()
    params.abbrev_types = {a.lower().rstrip(".") for a in settings.SENTENCE_ABBREVIATIONS}
    return PunktSentenceTokenizer(params)


def split_sentences(text: str) -> List[str]:
    if not text or not text.strip():
        return []
    return [s.strip() for s in _load_segmenter().tokenize(text) if s.strip()]


def _windows(sentences: Sequence[str]) -> List[str]:
    out: List[str] = []
    for j in range(len(sentences)):
        for size in settings.PASSAGE_WINDOW_SIZES:
            if j + size <= len(sentences):
                out.append(" ".join(sentences[j : j + size]))
    return out


def chunk_sources_into_passages(sources: Sequence[Source]) -> List[Passage]:
    """
    Split each source into overlapping 1/2/3-sentence passages.

    sourceIndex is 1-based and follows the order of `sources`, matching the [n]
    citation numbering of the answer. Sentences shorter than MIN_PASSAGE_LENGTH are
    dropped; a source whose sentences are all too short but whose snippet is long
    enough becomes a single whole-snippet passage.
    """
    passages: List[Passage] = []
    min_len = settings.MIN_PASSAGE_LENGTH

    with timed(logger, "chunk.sources", sources=len(sources)):
        for i, source in enumerate(sources):
            source_index = i + 1
            snippet = (source.snippet or "")[: settings.MAX_SOURCE_CHARS].strip()
            if not snippet:
                continue

            sentences = [s for s in split_sentences(snippet) if len(s) >= min_len]

            if not sentences:
                if len(snippet) >= min_len:
                    passages.append(
                        Passage(
                            text=snippet,
                            source_id=source.id,
                            source_index=source_index,
                            source_title=source.title,
                        )
                    )
                continue

            for text in _windows(sentences):
                passages.append(
                    Passage(
                        text=text,
                        source_id=source.id,
                        source_index=source_index,
                        source_title=source.title,
                    )
                )

    logger.info("chunk.passages count=%d", len(passages))
    return passages
