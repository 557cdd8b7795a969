"""Dictionary-backed repository for tests and dry runs."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Dict, Mapping, Optional, Tuple

from .errors import EventNotFoundError
from .repository import EvaluationRepository
from .types import EventSnapshot, EvaluatorEntity

_Key = Tuple[EvaluatorEntity, int]


class InMemoryEvaluationRepository(EvaluationRepository):
    """Holds snapshots in memory and records every write.

    Attributes
    ----------
    points : dict[tuple[EvaluatorEntity, int], int]
        ``(entity, bet_id) -> total_points`` written by orchestrators.
    ranking_lookups : int
        Number of :meth:`scorer_rankings_at` calls, so tests can assert the
        lookup happens once per event.
    """

    def __init__(
        self,
        events: Optional[Mapping[_Key, EventSnapshot]] = None,
        rankings: Optional[Mapping[int, Mapping[int, int]]] = None,
    ) -> None:
        self._events: Dict[_Key, EventSnapshot] = dict(events or {})
        self._rankings: Dict[int, Dict[int, int]] = {
            league_id: dict(ranks) for league_id, ranks in (rankings or {}).items()
        }
        self._evaluated: set[_Key] = {
            key for key, snapshot in self._events.items() if snapshot.is_evaluated
        }
        self.points: Dict[_Key, int] = {}
        self.ranking_lookups = 0

    def add_event(self, snapshot: EventSnapshot) -> None:
        key = (snapshot.entity, snapshot.event_id)
        self._events[key] = snapshot
        if snapshot.is_evaluated:
            self._evaluated.add(key)
        else:
            self._evaluated.discard(key)

    def set_rankings(self, league_id: int, rankings: Mapping[int, int]) -> None:
        self._rankings[league_id] = dict(rankings)

    def is_evaluated(self, entity: EvaluatorEntity, event_id: int) -> bool:
        return (entity, event_id) in self._evaluated

    def load_event(self, entity, event_id, *, user_id=None, league_match_id=None):
        entity = EvaluatorEntity(entity)
        snapshot = self._events.get((entity, event_id))
        if snapshot is None:
            raise EventNotFoundError(f"{entity.label.capitalize()} {event_id} not found")
        bets = snapshot.bets
        if user_id is not None:
            bets = tuple(b for b in bets if b.user_id == user_id)
        return replace(
            snapshot,
            bets=bets,
            is_evaluated=(entity, event_id) in self._evaluated,
        )

    def scorer_rankings_at(self, league_id: int, at: Optional[datetime]) -> dict[int, int]:
        self.ranking_lookups += 1
        return dict(self._rankings.get(league_id, {}))

    def save_bet_points(self, entity, bet_id, points):
        self.points[(EvaluatorEntity(entity), bet_id)] = points

    def mark_evaluated(self, entity, event_id, *, league_match_id=None):
        self._evaluated.add((EvaluatorEntity(entity), event_id))


__all__ = ["InMemoryEvaluationRepository"]
