"""
Sentence-level evidence items and the seeded PRNG used to vary study content.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, TypeVar

from askmynotes.rag.retriever import RetrievedChunk
from askmynotes.rag.utils import pick_keyword, sentence_split, truncate

T = TypeVar("T")

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_DEFAULT_SEED = 123456789
_MASK32 = 0xFFFFFFFF


@dataclass(frozen=True)
class SourceItem:
    """One evidence sentence, the chunk it came from and its keyword."""

    sentence: str
    chunk: RetrievedChunk
    keyword: str


def hash_seed(value: str) -> int:
    """32-bit FNV-1a over UTF-16 code units."""
    data = value.encode("utf-16-le")
    h = FNV_OFFSET_BASIS
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = (h * FNV_PRIME) & _MASK32
    return h


class SeededRandom:
    """Linear congruential generator over 32-bit state, floats in [0, 1)."""

    def __init__(self, seed: int) -> None:
        self.state = (seed & _MASK32) or LCG_DEFAULT_SEED

    @classmethod
    def from_key(cls, key: str) -> "SeededRandom":
        return cls(hash_seed(key))

    def random(self) -> float:
        self.state = (LCG_MULTIPLIER * self.state + LCG_INCREMENT) & _MASK32
        return self.state / 0x100000000

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Fisher-Yates on a copy."""
        output = list(items)
        for i in range(len(output) - 1, 0, -1):
            j = int(self.random() * (i + 1))
            output[i], output[j] = output[j], output[i]
        return output

    def pick(self, templates: Sequence[T], index: int) -> T:
        """Shuffle the templates, then take position index (mod len)."""
        shuffled = self.shuffle(templates)
        return shuffled[index % len(shuffled)]


def collect_source_items(
    chunks: Iterable[RetrievedChunk],
    *,
    min_chars: int,
    max_chars: int,
    limit: int,
) -> List[SourceItem]:
    """
    Sentences of at least `min_chars`, best chunk score first, then longest first.
    """
    items: List[SourceItem] = []
    for chunk in chunks:
        for sentence in sentence_split(chunk.text):
            if len(sentence) < min_chars:
                continue
            items.append(
                SourceItem(
                    sentence=truncate(sentence, max_chars),
                    chunk=chunk,
                    keyword=pick_keyword(sentence),
                )
            )
    items.sort(key=lambda item: (-item.chunk.score, -len(item.sentence)))
    return items[:limit]


def expand_items(items: Sequence[T], target: int) -> List[T]:
    """Exactly `target` items, repeating from the start when there are too few."""
    if not items:
        return []
    if len(items) >= target:
        return list(items[:target])
    return [items[i % len(items)] for i in range(target)]


def build_numbered_context(items: Sequence[SourceItem]) -> str:
    """'1. sentence' lines; the numbers are what `sourceIndex` refers to."""
    return "\n".join(f"{i}. {item.sentence}" for i, item in enumerate(items, start=1))
