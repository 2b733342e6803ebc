from __future__ import annotations

import dataclasses
import datetime as dt
from dataclasses import dataclass
from typing import Dict, Literal, Optional

from askmynotes.rag.utils import round_half_up

ReviewRating = Literal["again", "hard", "good", "easy"]

RATING_QUALITY: Dict[str, int] = {"again": 1, "hard": 3, "good": 4, "easy": 5}
INTERVAL_MULTIPLIER: Dict[str, float] = {"hard": 0.8, "good": 1.0, "easy": 1.3}


@dataclass(frozen=True)
class ReviewCardState:
    """Scheduling state of one review card."""

    repetitions: int = 0
    interval_days: int = 0
    ease_factor: float = 2.5
    lapses: int = 0
    due_at: Optional[dt.datetime] = None
    last_rating: Optional[ReviewRating] = None
    review_count: int = 0
    last_reviewed_at: Optional[dt.datetime] = None


@dataclass
class SM2Config:
    """Config values for the SM-2 scheduler."""

    min_ease_factor: float = 1.3
    max_ease_factor: float = 3.2
    initial_ease_factor: float = 2.5
    relearn_minutes: int = 10


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


class SM2Scheduler:
    """
    Simplified SM-2 scheduler over four ratings.

        - "again" is a lapse: repetitions and interval reset, the card comes
          back after a few minutes in the same session
        - hard/good/easy map to quality 3/4/5 and grow the interval
          1 -> 6 -> interval * ease, shortened for hard and stretched for easy
        - the ease factor is kept within [min_ease_factor, max_ease_factor]
    """

    def __init__(self, config: Optional[SM2Config] = None) -> None:
        self.config = config or SM2Config()

    def _next_interval(self, rating: str, repetitions: int, interval_days: int, ease: float) -> int:
        if repetitions <= 0:
            return 2 if rating == "easy" else 1
        if repetitions == 1:
            return {"hard": 3, "easy": 8}.get(rating, 6)
        base = max(1, interval_days or 1)
        return max(1, int(round_half_up(base * ease * INTERVAL_MULTIPLIER[rating])))

    def compute_next(
        self,
        state: ReviewCardState,
        rating: str,
        *,
        now: Optional[dt.datetime] = None,
    ) -> ReviewCardState:
        """
        Return the state after one rating; `state` itself is left untouched.
        """
        if rating not in RATING_QUALITY:
            raise ValueError("Invalid rating. Use again, hard, good, or easy.")

        cfg = self.config
        now = now or dt.datetime.now(dt.timezone.utc)

        repetitions = max(0, int(state.repetitions or 0))
        interval_days = max(0, int(state.interval_days or 0))
        ease = _clamp(state.ease_factor or cfg.initial_ease_factor, cfg.min_ease_factor, cfg.max_ease_factor)
        lapses = max(0, int(state.lapses or 0))

        if rating == "again":
            lapses += 1
            repetitions = 0
            interval_days = 0
            ease = _clamp(ease - 0.2, cfg.min_ease_factor, cfg.max_ease_factor)
            due_at = now + dt.timedelta(minutes=cfg.relearn_minutes)
        else:
            interval_days = self._next_interval(rating, repetitions, interval_days, ease)
            repetitions += 1
            q_delta = 5 - RATING_QUALITY[rating]
            ease = _clamp(ease + (0.1 - q_delta * (0.08 + q_delta * 0.02)), cfg.min_ease_factor, cfg.max_ease_factor)
            due_at = now + dt.timedelta(days=interval_days)

        return dataclasses.replace(
            state,
            repetitions=repetitions,
            interval_days=interval_days,
            ease_factor=ease,
            lapses=lapses,
            due_at=due_at,
            last_rating=rating,
            review_count=max(0, int(state.review_count or 0)) + 1,
            last_reviewed_at=now,
        )


def schedule_next_review(
    state: ReviewCardState,
    rating: str,
    now: Optional[dt.datetime] = None,
) -> ReviewCardState:
    return SM2Scheduler().compute_next(state, rating, now=now)
