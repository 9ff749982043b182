from __future__ import annotations
from typing import Iterable, Protocol, Sequence, TypeVar
from pixelpost.services.errors import ValidationError

WINNER_SLOTS = 3
MIN_SCORE = 1
MAX_SCORE = 10
SCORE_MESSAGE = "Score must be an integer between 1 and 10"


class _Scored(Protocol):
    score: int


class _Ranked(Protocol):
    relevancy_score: float


R = TypeVar("R", bound=_Ranked)


def compute_relevancy(voters: Iterable[_Scored]) -> float:
    """Arithmetic mean of the voters' scores, 0 when nobody voted. Not rounded."""
    scores = [v.score for v in voters]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def validate_score(score) -> int:
    """Accept integers 1..10 (integral floats such as 8.0 included); bools and anything else fail."""
    if isinstance(score, bool) or score is None:
        raise ValidationError(SCORE_MESSAGE)
    if isinstance(score, float):
        if not score.is_integer():
            raise ValidationError(SCORE_MESSAGE)
        score = int(score)
    if not isinstance(score, int) or not MIN_SCORE <= score <= MAX_SCORE:
        raise ValidationError(SCORE_MESSAGE)
    return score


def rank_entries(entries: Sequence[R], limit: int | None = None) -> list[R]:
    """
    Entries by relevancy score, highest first.

    `sorted` is stable, so entries with equal scores keep their submission
    order. The input sequence is not modified.
    """
    ranked = sorted(entries, key=lambda e: e.relevancy_score, reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


def top_entries(entries: Sequence[R]) -> list[R]:
    return rank_entries(entries, WINNER_SLOTS)


def leaderboard_rows(entries: Sequence[R]) -> list[tuple[int, R]]:
    return [(i + 1, e) for i, e in enumerate(rank_entries(entries))]
