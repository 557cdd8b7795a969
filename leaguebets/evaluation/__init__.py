"""Evaluation core: scoring rules, exclusions and per-event orchestrators."""

from .atomic import (
    evaluate_atomic,
    evaluate_match_atomic,
    evaluate_question_atomic,
    evaluate_series_atomic,
    evaluate_special_bet_atomic,
)
from .config import (
    GroupStageConfig,
    NoConfig,
    PositionFilterConfig,
    RankedScorerConfig,
    parse_config,
)
from .engine import (
    EvaluationEngine,
    evaluate_event,
    evaluate_match,
    evaluate_question,
    evaluate_series,
    evaluate_special_bet,
    evaluate_special_bet_summary,
)
from .errors import (
    EvaluationConflictError,
    EvaluationError,
    EventNotFoundError,
    InvalidEvaluatorConfigError,
    MissingResultError,
    NoEvaluatorsError,
)
from .exclusions import EXCLUSION_TABLE, apply_exclusions, exclusions_for
from .memory_repository import InMemoryEvaluationRepository
from .registry import DEFAULT_EVALUATOR_REGISTRY, EvaluatorDefinition, EvaluatorRegistry
from .repository import EvaluationRepository
from .sqlalchemy_repository import SqlAlchemyEvaluationRepository
from .types import (
    EvaluationOutcome,
    EvaluationResult,
    EvaluatorEntity,
    EvaluatorKind,
    EvaluatorResult,
)

__all__ = [
    "DEFAULT_EVALUATOR_REGISTRY",
    "EXCLUSION_TABLE",
    "EvaluationConflictError",
    "EvaluationEngine",
    "EvaluationError",
    "EvaluationOutcome",
    "EvaluationRepository",
    "EvaluationResult",
    "EvaluatorDefinition",
    "EvaluatorEntity",
    "EvaluatorKind",
    "EvaluatorRegistry",
    "EvaluatorResult",
    "EventNotFoundError",
    "GroupStageConfig",
    "InMemoryEvaluationRepository",
    "InvalidEvaluatorConfigError",
    "MissingResultError",
    "NoConfig",
    "NoEvaluatorsError",
    "PositionFilterConfig",
    "RankedScorerConfig",
    "SqlAlchemyEvaluationRepository",
    "apply_exclusions",
    "evaluate_atomic",
    "evaluate_event",
    "evaluate_match",
    "evaluate_match_atomic",
    "evaluate_question",
    "evaluate_question_atomic",
    "evaluate_series",
    "evaluate_series_atomic",
    "evaluate_special_bet",
    "evaluate_special_bet_atomic",
    "evaluate_special_bet_summary",
    "exclusions_for",
    "parse_config",
]
