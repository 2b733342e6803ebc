from __future__ import annotations

import datetime as dt

import pytest

from askmynotes.skills.scheduler import ReviewCardState, SM2Config, SM2Scheduler, schedule_next_review


def _make_state(**overrides) -> ReviewCardState:
    values = dict(repetitions=0, interval_days=0, ease_factor=2.5, lapses=0)
    values.update(overrides)
    return ReviewCardState(**values)


NOW = dt.datetime(2026, 1, 1, tzinfo=dt.timezone.utc)


def test_repeated_good_ratings_promote_interval():
    first = schedule_next_review(_make_state(), "good", NOW)
    second = schedule_next_review(first, "good", NOW)

    assert first.repetitions == 1
    assert first.interval_days == 1
    assert second.repetitions == 2
    assert second.interval_days == 6
    assert second.due_at == NOW + dt.timedelta(days=6)


def test_again_resets_and_counts_lapse():
    result = schedule_next_review(
        _make_state(repetitions=3, interval_days=10, ease_factor=2.6, lapses=1),
        "again",
        NOW,
    )

    assert result.repetitions == 0
    assert result.interval_days == 0
    assert result.lapses == 2
    assert result.ease_factor == pytest.approx(2.4)
    assert result.due_at == NOW + dt.timedelta(minutes=10)
    assert result.due_at.isoformat() == "2026-01-01T00:10:00+00:00"


def test_first_reviews_depend_on_rating():
    scheduler = SM2Scheduler()

    assert scheduler.compute_next(_make_state(), "easy", now=NOW).interval_days == 2
    assert scheduler.compute_next(_make_state(), "hard", now=NOW).interval_days == 1
    assert scheduler.compute_next(_make_state(repetitions=1, interval_days=1), "hard", now=NOW).interval_days == 3
    assert scheduler.compute_next(_make_state(repetitions=1, interval_days=1), "easy", now=NOW).interval_days == 8


def test_mature_interval_uses_ease_and_multiplier():
    scheduler = SM2Scheduler()
    state = _make_state(repetitions=2, interval_days=6, ease_factor=2.5)

    assert scheduler.compute_next(state, "good", now=NOW).interval_days == 15
    assert scheduler.compute_next(state, "hard", now=NOW).interval_days == 12
    assert scheduler.compute_next(state, "easy", now=NOW).interval_days == 20


def test_ease_factor_is_clamped():
    scheduler = SM2Scheduler()

    low = scheduler.compute_next(_make_state(ease_factor=1.35), "again", now=NOW)
    high = scheduler.compute_next(_make_state(ease_factor=3.2), "easy", now=NOW)

    assert low.ease_factor == pytest.approx(1.3)
    assert high.ease_factor == pytest.approx(3.2)


def test_ease_changes_by_rating():
    scheduler = SM2Scheduler()

    assert scheduler.compute_next(_make_state(), "good", now=NOW).ease_factor == pytest.approx(2.5)
    assert scheduler.compute_next(_make_state(), "easy", now=NOW).ease_factor == pytest.approx(2.6)
    assert scheduler.compute_next(_make_state(), "hard", now=NOW).ease_factor == pytest.approx(2.36)


def test_rating_records_review_metadata_and_keeps_input():
    state = _make_state(review_count=4)

    updated = SM2Scheduler().compute_next(state, "hard", now=NOW)

    assert updated.review_count == 5
    assert updated.last_rating == "hard"
    assert updated.last_reviewed_at == NOW
    assert state.review_count == 4
    assert state.last_rating is None


def test_custom_relearn_delay():
    scheduler = SM2Scheduler(SM2Config(relearn_minutes=3))

    result = scheduler.compute_next(_make_state(), "again", now=NOW)

    assert result.due_at == NOW + dt.timedelta(minutes=3)


def test_invalid_rating_raises():
    with pytest.raises(ValueError, match="Invalid rating"):
        SM2Scheduler().compute_next(_make_state(), "perfect", now=NOW)
