"""Orchestrator runs wrapped in one SERIALIZABLE transaction each."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import sessionmaker

from ..db.transaction import SerializationConflict, serializable_transaction
from .engine import EvaluationEngine
from .errors import EvaluationConflictError
from .registry import EvaluatorRegistry
from .sqlalchemy_repository import SqlAlchemyEvaluationRepository
from .types import EvaluationOutcome, EvaluatorEntity


def evaluate_atomic(
    session_factory: sessionmaker,
    entity: EvaluatorEntity,
    event_id: int,
    *,
    user_id: Optional[int] = None,
    league_match_id: Optional[int] = None,
    registry: Optional[EvaluatorRegistry] = None,
) -> EvaluationOutcome:
    """Evaluate one event so that all of its bets commit together or not at all.

    The already-evaluated check runs on data read inside the transaction. A
    concurrent run that commits first makes this one fail with
    :class:`~leaguebets.evaluation.errors.EvaluationConflictError`.
    """
    try:
        with serializable_transaction(session_factory) as session:
            engine = EvaluationEngine(SqlAlchemyEvaluationRepository(session), registry=registry)
            return engine.evaluate(
                entity, event_id, user_id=user_id, league_match_id=league_match_id
            )
    except SerializationConflict as exc:
        raise EvaluationConflictError(
            "Concurrent evaluation detected, please retry"
        ) from exc


def evaluate_match_atomic(
    session_factory: sessionmaker,
    match_id: int,
    league_match_id: int,
    user_id: Optional[int] = None,
    *,
    registry: Optional[EvaluatorRegistry] = None,
) -> EvaluationOutcome:
    return evaluate_atomic(
        session_factory,
        EvaluatorEntity.MATCH,
        match_id,
        user_id=user_id,
        league_match_id=league_match_id,
        registry=registry,
    )


def evaluate_series_atomic(
    session_factory: sessionmaker,
    series_id: int,
    user_id: Optional[int] = None,
    *,
    registry: Optional[EvaluatorRegistry] = None,
) -> EvaluationOutcome:
    return evaluate_atomic(
        session_factory, EvaluatorEntity.SERIES, series_id, user_id=user_id, registry=registry
    )


def evaluate_special_bet_atomic(
    session_factory: sessionmaker,
    special_bet_id: int,
    user_id: Optional[int] = None,
    *,
    registry: Optional[EvaluatorRegistry] = None,
) -> EvaluationOutcome:
    return evaluate_atomic(
        session_factory,
        EvaluatorEntity.SPECIAL,
        special_bet_id,
        user_id=user_id,
        registry=registry,
    )


def evaluate_question_atomic(
    session_factory: sessionmaker,
    question_id: int,
    user_id: Optional[int] = None,
    *,
    registry: Optional[EvaluatorRegistry] = None,
) -> EvaluationOutcome:
    return evaluate_atomic(
        session_factory,
        EvaluatorEntity.QUESTION,
        question_id,
        user_id=user_id,
        registry=registry,
    )


__all__ = [
    "evaluate_atomic",
    "evaluate_match_atomic",
    "evaluate_question_atomic",
    "evaluate_series_atomic",
    "evaluate_special_bet_atomic",
]
