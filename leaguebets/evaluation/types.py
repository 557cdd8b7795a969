"""Value objects shared by the evaluation core.

Predictions and results are frozen snapshots decoupled from the ORM so the
scoring functions stay pure and the orchestrators can run against any
:class:`~leaguebets.evaluation.repository.EvaluationRepository`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Union


class EvaluatorEntity(str, Enum):
    """Event class an evaluator applies to."""

    MATCH = "match"
    SERIES = "series"
    SPECIAL = "special"
    QUESTION = "question"

    @property
    def label(self) -> str:
        """Human readable name used in error messages."""
        return "special bet" if self is EvaluatorEntity.SPECIAL else self.value


class EvaluatorKind(str, Enum):
    """Closed set of scoring rules known to the core."""

    EXACT_SCORE = "exact_score"
    SCORE_DIFFERENCE = "score_difference"
    ONE_TEAM_SCORE = "one_team_score"
    WINNER = "winner"
    DRAW = "draw"
    SCORER = "scorer"
    SOCCER_PLAYOFF_ADVANCE = "soccer_playoff_advance"
    SERIES_EXACT = "series_exact"
    SERIES_WINNER = "series_winner"
    EXACT_TEAM = "exact_team"
    EXACT_PLAYER = "exact_player"
    EXACT_VALUE = "exact_value"
    CLOSEST_VALUE = "closest_value"
    GROUP_STAGE_TEAM = "group_stage_team"
    GROUP_STAGE_ADVANCE = "group_stage_advance"
    QUESTION = "question"

    @classmethod
    def parse(cls, value: Union[str, "EvaluatorKind"]) -> Optional["EvaluatorKind"]:
        """Return the member for ``value`` or ``None`` when it is unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


# ── match ──


@dataclass(frozen=True)
class MatchPrediction:
    home_score: Optional[int]
    away_score: Optional[int]
    scorer_id: Optional[int] = None
    no_scorer: Optional[bool] = None
    home_advanced: Optional[bool] = None
    overtime: bool = False


@dataclass(frozen=True)
class MatchResult:
    home_regular_score: Optional[int]
    away_regular_score: Optional[int]
    home_final_score: Optional[int] = None
    away_final_score: Optional[int] = None
    scorer_ids: tuple[int, ...] = ()
    is_overtime: Optional[bool] = None
    is_shootout: Optional[bool] = None
    is_playoff_game: bool = False
    home_advanced: Optional[bool] = None

    @property
    def is_complete(self) -> bool:
        return self.home_regular_score is not None and self.away_regular_score is not None


@dataclass(frozen=True)
class MatchBetContext:
    prediction: MatchPrediction
    actual: MatchResult
    scorer_rankings: Mapping[int, int] = field(default_factory=dict)
    """``player_id -> ranking`` as of the match start."""


# ── series ──


@dataclass(frozen=True)
class SeriesPrediction:
    home_team_score: Optional[int]
    away_team_score: Optional[int]


@dataclass(frozen=True)
class SeriesResult:
    home_team_score: Optional[int]
    away_team_score: Optional[int]

    @property
    def is_complete(self) -> bool:
        return self.home_team_score is not None and self.away_team_score is not None


@dataclass(frozen=True)
class SeriesBetContext:
    prediction: SeriesPrediction
    actual: SeriesResult


# ── special ──


@dataclass(frozen=True)
class SpecialPrediction:
    team_result_id: Optional[int] = None
    player_result_id: Optional[int] = None
    value: Optional[float] = None


@dataclass(frozen=True)
class SpecialResult:
    team_result_id: Optional[int] = None
    player_result_id: Optional[int] = None
    value: Optional[float] = None
    advanced_team_ids: tuple[int, ...] = ()
    """Teams that advanced from a group; may include the group winner."""

    @property
    def is_complete(self) -> bool:
        return (
            self.team_result_id is not None
            or self.player_result_id is not None
            or self.value is not None
        )


@dataclass(frozen=True)
class SpecialBetContext:
    prediction: SpecialPrediction
    actual: SpecialResult
    cohort_values: tuple[float, ...] = ()
    """Every user's predicted value for the same bet (closest-value scoring)."""


# ── question ──


@dataclass(frozen=True)
class QuestionPrediction:
    answer: Optional[bool]


@dataclass(frozen=True)
class QuestionResult:
    result: Optional[bool]

    @property
    def is_complete(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class QuestionContext:
    prediction: QuestionPrediction
    actual: QuestionResult


Prediction = Union[MatchPrediction, SeriesPrediction, SpecialPrediction, QuestionPrediction]
Result = Union[MatchResult, SeriesResult, SpecialResult, QuestionResult]
PredictionContext = Union[MatchBetContext, SeriesBetContext, SpecialBetContext, QuestionContext]


# ── persistence snapshots ──


@dataclass(frozen=True)
class EvaluatorRecord:
    """An evaluator row as loaded for one evaluation run."""

    id: int
    kind: str
    entity: str
    points: int
    name: Optional[str] = None
    config: Optional[Mapping[str, Any]] = None

    @property
    def display_name(self) -> str:
        return self.name or self.kind


@dataclass(frozen=True)
class BetRecord:
    """One user's outstanding prediction for the event."""

    id: int
    user_id: int
    prediction: Prediction


@dataclass(frozen=True)
class EventSnapshot:
    """Everything an orchestrator needs about one event, read in one go."""

    entity: EvaluatorEntity
    event_id: int
    league_id: int
    starts_at: Optional[datetime]
    result: Result
    evaluators: tuple[EvaluatorRecord, ...]
    bets: tuple[BetRecord, ...]
    is_doubled: bool = False
    is_evaluated: bool = False
    cohort_values: tuple[float, ...] = ()
    """Predicted values of the full cohort, independent of any user filter."""


# ── results ──


@dataclass(frozen=True)
class EvaluatorResult:
    evaluator_name: str
    kind: str
    awarded: bool
    points: int
    excluded: bool = False
    """Raw-awarded but voided by a stronger rule for the same bet."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "evaluatorName": self.evaluator_name,
            "awarded": self.awarded,
            "points": self.points,
        }


@dataclass(frozen=True)
class EvaluationResult:
    """Per-user summary returned by an orchestrator call."""

    user_id: int
    bet_id: int
    total_points: int
    evaluator_results: tuple[EvaluatorResult, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "totalPoints": self.total_points,
            "evaluatorResults": [r.to_dict() for r in self.evaluator_results],
        }


@dataclass(frozen=True)
class EvaluationOutcome:
    """Result of one atomic evaluation run."""

    entity: EvaluatorEntity
    event_id: int
    league_id: int
    results: tuple[EvaluationResult, ...]
    full_cohort: bool

    @property
    def total_users_evaluated(self) -> int:
        return len(self.results)

    @property
    def total_points(self) -> int:
        return sum(r.total_points for r in self.results)

    @property
    def summary(self) -> str:
        return (
            f"{self.total_users_evaluated} users evaluated, "
            f"{self.total_points} total points awarded"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "results": [r.to_dict() for r in self.results],
            "totalUsersEvaluated": self.total_users_evaluated,
        }
