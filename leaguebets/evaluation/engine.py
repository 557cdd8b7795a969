"""Orchestrators that score every outstanding prediction of one event."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .config import EvaluatorConfig, RankedScorerConfig, parse_config
from .context import build_context
from .errors import (
    EvaluationConflictError,
    InvalidEvaluatorConfigError,
    MissingResultError,
    NoEvaluatorsError,
)
from .exclusions import apply_exclusions
from .registry import DEFAULT_EVALUATOR_REGISTRY, EvaluatorDefinition, EvaluatorRegistry
from .repository import EvaluationRepository
from .types import (
    EvaluationOutcome,
    EvaluationResult,
    EvaluatorEntity,
    EvaluatorKind,
    EvaluatorRecord,
    EventSnapshot,
)

logger = logging.getLogger(__name__)

DOUBLED_MULTIPLIER = 2


@dataclass(frozen=True)
class PreparedEvaluator:
    """An evaluator row resolved to its definition and parsed config."""

    record: EvaluatorRecord
    definition: EvaluatorDefinition
    config: EvaluatorConfig


class EvaluationEngine:
    """Run scoring rules over an event's cohort through a repository."""

    def __init__(
        self,
        repository: EvaluationRepository,
        *,
        registry: Optional[EvaluatorRegistry] = None,
    ) -> None:
        """Create an engine bound to ``repository``.

        Parameters
        ----------
        repository : EvaluationRepository
            Source of event snapshots and sink for computed points.
        registry : Optional[EvaluatorRegistry], default: None
            Custom registry of scoring rules. Typically omitted, in which
            case :data:`DEFAULT_EVALUATOR_REGISTRY` is used.
        """
        self._repository = repository
        self._registry = registry or DEFAULT_EVALUATOR_REGISTRY

    def evaluate(
        self,
        entity: EvaluatorEntity,
        event_id: int,
        *,
        user_id: Optional[int] = None,
        league_match_id: Optional[int] = None,
    ) -> EvaluationOutcome:
        """Score the event's predictions and persist their totals.

        Parameters
        ----------
        entity : EvaluatorEntity
            Event class to evaluate.
        event_id : int
            Identifier of the match, series, special bet or question.
        user_id : Optional[int], default: None
            Restrict scoring to one user's prediction. Such partial runs never
            mark the event evaluated.
        league_match_id : Optional[int], default: None
            Fixture row; required for matches.

        Returns
        -------
        EvaluationOutcome
            Per-user results and totals.

        Notes
        -----
        The process is:

        1. Load the event snapshot. The evaluated flag is read here, within
           the caller's transaction, so a concurrent full run is caught.
        2. Check the result is entered and at least one evaluator exists.
        3. Resolve definitions and configs once, skipping unknown kinds and
           malformed configs.
        4. Fetch scorer rankings once for the whole cohort when needed.
        5. For each bet run every rule, apply exclusions, sum, double when
           the event is doubled, and save.
        6. Mark the event evaluated when the full cohort was scored.

        Raises
        ------
        EventNotFoundError
            If the event does not exist.
        EvaluationConflictError
            If a full-cohort run targets an already evaluated event.
        MissingResultError
            If the actual result is not fully entered.
        NoEvaluatorsError
            If the league has no evaluators for this entity.
        """
        entity = EvaluatorEntity(entity)
        full_cohort = user_id is None
        snapshot = self._repository.load_event(
            entity, event_id, user_id=user_id, league_match_id=league_match_id
        )

        if full_cohort and snapshot.is_evaluated:
            raise EvaluationConflictError(
                f"{entity.label.capitalize()} {event_id} has already been evaluated"
            )
        if not snapshot.result.is_complete:
            raise MissingResultError(f"Cannot evaluate {entity.label} without results")
        if not snapshot.evaluators:
            raise NoEvaluatorsError("No evaluators configured for this league")

        prepared = self._prepare(snapshot)
        rankings = self._rankings_for(snapshot, prepared)
        multiplier = DOUBLED_MULTIPLIER if snapshot.is_doubled else 1

        results = []
        for bet in snapshot.bets:
            context = build_context(snapshot, bet, scorer_rankings=rankings)
            raw = [
                item.definition.evaluate(
                    context,
                    points=item.record.points,
                    config=item.config,
                    name=item.record.display_name,
                )
                for item in prepared
            ]
            final = apply_exclusions(raw, entity)
            total = sum(r.points for r in final) * multiplier
            self._repository.save_bet_points(entity, bet.id, total)
            logger.debug(
                "Scored %s %s bet %s for user %s: %s points",
                entity.value, event_id, bet.id, bet.user_id, total,
            )
            results.append(
                EvaluationResult(
                    user_id=bet.user_id,
                    bet_id=bet.id,
                    total_points=total,
                    evaluator_results=tuple(final),
                )
            )

        if full_cohort:
            self._repository.mark_evaluated(
                entity, event_id, league_match_id=league_match_id
            )

        outcome = EvaluationOutcome(
            entity=entity,
            event_id=event_id,
            league_id=snapshot.league_id,
            results=tuple(results),
            full_cohort=full_cohort,
        )
        logger.info(
            "Evaluated %s %s in league %s: %s",
            entity.value, event_id, snapshot.league_id, outcome.summary,
        )
        return outcome

    def _prepare(self, snapshot: EventSnapshot) -> list[PreparedEvaluator]:
        prepared = []
        for record in snapshot.evaluators:
            definition = self._registry.lookup(record.kind)
            if definition is None:
                logger.warning(
                    "Skipping evaluator %s: unknown type '%s'", record.id, record.kind
                )
                continue
            if definition.entity is not snapshot.entity or record.entity != snapshot.entity.value:
                logger.warning(
                    "Skipping evaluator %s: type '%s' does not apply to %s",
                    record.id, record.kind, snapshot.entity.label,
                )
                continue
            try:
                config = parse_config(definition.kind, record.config)
            except InvalidEvaluatorConfigError as exc:
                logger.error(
                    "Skipping evaluator %s (%s): malformed config: %s",
                    record.id, record.kind, exc.message,
                )
                continue
            prepared.append(PreparedEvaluator(record, definition, config))
        return prepared

    def _rankings_for(
        self, snapshot: EventSnapshot, prepared: list[PreparedEvaluator]
    ) -> dict[int, int]:
        needs_rankings = any(
            item.definition.kind is EvaluatorKind.SCORER
            and isinstance(item.config, RankedScorerConfig)
            for item in prepared
        )
        if not needs_rankings or not snapshot.bets:
            return {}
        return self._repository.scorer_rankings_at(snapshot.league_id, snapshot.starts_at)


def evaluate_event(
    repository: EvaluationRepository,
    entity: EvaluatorEntity,
    event_id: int,
    *,
    user_id: Optional[int] = None,
    league_match_id: Optional[int] = None,
    registry: Optional[EvaluatorRegistry] = None,
) -> EvaluationOutcome:
    """Convenience wrapper around :meth:`EvaluationEngine.evaluate`."""
    engine = EvaluationEngine(repository, registry=registry)
    return engine.evaluate(
        entity, event_id, user_id=user_id, league_match_id=league_match_id
    )


def evaluate_match(
    repository: EvaluationRepository,
    match_id: int,
    league_match_id: int,
    user_id: Optional[int] = None,
    *,
    registry: Optional[EvaluatorRegistry] = None,
) -> list[EvaluationResult]:
    """Score a league fixture's bets; returns per-user results."""
    outcome = evaluate_event(
        repository,
        EvaluatorEntity.MATCH,
        match_id,
        user_id=user_id,
        league_match_id=league_match_id,
        registry=registry,
    )
    return list(outcome.results)


def evaluate_series(
    repository: EvaluationRepository,
    series_id: int,
    user_id: Optional[int] = None,
    *,
    registry: Optional[EvaluatorRegistry] = None,
) -> list[EvaluationResult]:
    outcome = evaluate_event(
        repository, EvaluatorEntity.SERIES, series_id, user_id=user_id, registry=registry
    )
    return list(outcome.results)


def evaluate_special_bet(
    repository: EvaluationRepository,
    special_bet_id: int,
    user_id: Optional[int] = None,
    *,
    registry: Optional[EvaluatorRegistry] = None,
) -> list[EvaluationResult]:
    """Score a special bet.

    Closest-value scoring always compares against the whole cohort, including
    when ``user_id`` restricts the run to one prediction.
    """
    outcome = evaluate_event(
        repository, EvaluatorEntity.SPECIAL, special_bet_id, user_id=user_id, registry=registry
    )
    return list(outcome.results)


def evaluate_special_bet_summary(
    repository: EvaluationRepository,
    special_bet_id: int,
    *,
    registry: Optional[EvaluatorRegistry] = None,
) -> dict[str, int]:
    """Score a special bet's full cohort and return ``{"evaluatedBets": n}``."""
    results = evaluate_special_bet(repository, special_bet_id, registry=registry)
    return {"evaluatedBets": len(results)}


def evaluate_question(
    repository: EvaluationRepository,
    question_id: int,
    user_id: Optional[int] = None,
    *,
    registry: Optional[EvaluatorRegistry] = None,
) -> list[EvaluationResult]:
    outcome = evaluate_event(
        repository, EvaluatorEntity.QUESTION, question_id, user_id=user_id, registry=registry
    )
    return list(outcome.results)


__all__ = [
    "EvaluationEngine",
    "evaluate_event",
    "evaluate_match",
    "evaluate_question",
    "evaluate_series",
    "evaluate_special_bet",
    "evaluate_special_bet_summary",
]
