"""
Lexical and embedding relevance scoring for (query, chunk) pairs.
"""

from __future__ import annotations

from typing import FrozenSet, List, Sequence

from .embeddings import cosine_similarity
from .utils import sentence_split, tokenize

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "the", "and", "for", "with", "from", "your", "this", "that", "what", "when",
        "where", "which", "about", "into", "does", "have", "will", "would", "there", "their",
    }
)


def query_terms(query: str) -> List[str]:
    """Query tokens with stop words removed (duplicates kept)."""
    return [tok for tok in tokenize(query) if tok not in STOP_WORDS]


def overlap_count(query: str, text: str) -> int:
    """How many query terms occur in the text's token set."""
    terms = query_terms(query)
    if not terms:
        return 0
    token_set = set(tokenize(text))
    return sum(1 for term in terms if term in token_set)


def lexical_similarity(query: str, text: str) -> float:
    terms = query_terms(query)
    if not terms:
        return 0.0
    return overlap_count(query, text) / len(terms)


def has_direct_snippet(query: str, text: str) -> bool:
    """True when a single sentence holds at least min(2, #terms) query terms."""
    terms = query_terms(query)
    if not terms:
        return False
    min_matches = min(2, len(terms))
    return any(overlap_count(query, sentence) >= min_matches for sentence in sentence_split(text))


def jaccard_similarity(a: str, b: str) -> float:
    """Jaccard index of the two token sets; 0.0 if either side is empty."""
    a_set = set(tokenize(a))
    b_set = set(tokenize(b))
    if not a_set or not b_set:
        return 0.0
    return len(a_set & b_set) / len(a_set | b_set)


def score_chunk(
    query: str,
    text: str,
    query_embedding: Sequence[float],
    chunk_embedding: Sequence[float],
) -> float:
    """max(cosine, lexical overlap); cosine only counts when dimensions match."""
    lexical = lexical_similarity(query, text)
    can_use_cosine = (
        len(query_embedding) > 0
        and len(chunk_embedding) > 0
        and len(query_embedding) == len(chunk_embedding)
    )
    cosine = cosine_similarity(query_embedding, chunk_embedding) if can_use_cosine else 0.0
    return max(cosine, lexical)
