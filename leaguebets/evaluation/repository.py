"""Persistence boundary of the evaluation core."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from .types import EventSnapshot, EvaluatorEntity


class EvaluationRepository(ABC):
    """Reads events and writes scores for the orchestrators.

    Implementations are bound to one unit of work (a session or transaction
    handle) supplied by the caller; the orchestrators never open or commit
    transactions themselves.
    """

    @abstractmethod
    def load_event(
        self,
        entity: EvaluatorEntity,
        event_id: int,
        *,
        user_id: Optional[int] = None,
        league_match_id: Optional[int] = None,
    ) -> EventSnapshot:
        """Return the event, its evaluators and its outstanding bets.

        ``user_id`` restricts the bets to one user while
        ``EventSnapshot.cohort_values`` still covers every bet.
        ``league_match_id`` is required for matches, which belong to a league
        only through their fixture row.

        Raises
        ------
        EventNotFoundError
            If the event (or fixture) does not exist or is soft-deleted.
        """

    @abstractmethod
    def scorer_rankings_at(self, league_id: int, at: Optional[datetime]) -> dict[int, int]:
        """Return ``player_id -> ranking`` for the league as of ``at``."""

    @abstractmethod
    def save_bet_points(self, entity: EvaluatorEntity, bet_id: int, points: int) -> None:
        """Persist the computed total on one prediction."""

    @abstractmethod
    def mark_evaluated(
        self,
        entity: EvaluatorEntity,
        event_id: int,
        *,
        league_match_id: Optional[int] = None,
    ) -> None:
        """Flag the event as evaluated for its whole cohort.

        Matches are flagged per league fixture, so ``league_match_id`` is
        required for them.
        """


__all__ = ["EvaluationRepository"]
