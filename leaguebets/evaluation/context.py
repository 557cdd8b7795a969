"""Builders assembling the prediction context for one (bet, event) pair."""

from __future__ import annotations

from typing import Mapping, Optional

from .types import (
    BetRecord,
    EventSnapshot,
    EvaluatorEntity,
    MatchBetContext,
    MatchPrediction,
    MatchResult,
    PredictionContext,
    QuestionContext,
    QuestionPrediction,
    QuestionResult,
    SeriesBetContext,
    SeriesPrediction,
    SeriesResult,
    SpecialBetContext,
    SpecialPrediction,
    SpecialResult,
)


def build_match_context(
    prediction: MatchPrediction,
    actual: MatchResult,
    scorer_rankings: Mapping[int, int],
) -> MatchBetContext:
    # Rankings are fetched once per event and shared between bets; freeze a copy.
    return MatchBetContext(
        prediction=prediction,
        actual=actual,
        scorer_rankings=dict(scorer_rankings),
    )


def build_series_context(
    prediction: SeriesPrediction, actual: SeriesResult
) -> SeriesBetContext:
    return SeriesBetContext(prediction=prediction, actual=actual)


def build_special_context(
    prediction: SpecialPrediction,
    actual: SpecialResult,
    cohort_values: tuple[float, ...],
) -> SpecialBetContext:
    return SpecialBetContext(
        prediction=prediction, actual=actual, cohort_values=tuple(cohort_values)
    )


def build_question_context(
    prediction: QuestionPrediction, actual: QuestionResult
) -> QuestionContext:
    return QuestionContext(prediction=prediction, actual=actual)


def build_context(
    snapshot: EventSnapshot,
    bet: BetRecord,
    *,
    scorer_rankings: Optional[Mapping[int, int]] = None,
) -> PredictionContext:
    """Dispatch to the builder for ``snapshot.entity``.

    Raises
    ------
    TypeError
        If the bet's prediction or the snapshot's result has the wrong type
        for the entity.
    """
    entity = snapshot.entity
    prediction, actual = bet.prediction, snapshot.result

    if entity is EvaluatorEntity.MATCH:
        _expect(prediction, MatchPrediction, actual, MatchResult)
        return build_match_context(prediction, actual, scorer_rankings or {})
    if entity is EvaluatorEntity.SERIES:
        _expect(prediction, SeriesPrediction, actual, SeriesResult)
        return build_series_context(prediction, actual)
    if entity is EvaluatorEntity.SPECIAL:
        _expect(prediction, SpecialPrediction, actual, SpecialResult)
        return build_special_context(prediction, actual, snapshot.cohort_values)
    if entity is EvaluatorEntity.QUESTION:
        _expect(prediction, QuestionPrediction, actual, QuestionResult)
        return build_question_context(prediction, actual)
    raise ValueError(f"Unsupported entity {entity!r}")


def _expect(prediction, prediction_type, actual, result_type) -> None:
    if not isinstance(prediction, prediction_type):
        raise TypeError(
            f"Expected {prediction_type.__name__}, got {type(prediction).__name__}"
        )
    if not isinstance(actual, result_type):
        raise TypeError(f"Expected {result_type.__name__}, got {type(actual).__name__}")


__all__ = [
    "build_context",
    "build_match_context",
    "build_question_context",
    "build_series_context",
    "build_special_context",
]
