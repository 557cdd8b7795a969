"""Pure scoring functions, one per rule.

Boolean rules take a context and answer "awarded?"; the caller multiplies by
the evaluator's flat points. Value rules take ``(context, config, points)``
and return the points themselves. No function raises for well-formed input:
missing prediction or result fields simply mean "not awarded".

Rules report their raw condition only. Overlap between rules (an exact score
also matching the goal difference, for instance) is resolved afterwards by
:mod:`leaguebets.evaluation.exclusions`.
"""

from __future__ import annotations

from typing import Optional, Union

from .config import EvaluatorConfig, GroupStageConfig, RankedScorerConfig
from .types import (
    MatchBetContext,
    QuestionContext,
    SeriesBetContext,
    SpecialBetContext,
)

HOME = "home"
AWAY = "away"
DRAW = "draw"


def outcome_side(home: Optional[int], away: Optional[int]) -> Optional[str]:
    """Return ``"home"``, ``"away"`` or ``"draw"``; ``None`` if a score is missing."""
    if home is None or away is None:
        return None
    if home > away:
        return HOME
    if away > home:
        return AWAY
    return DRAW


# ── match rules ──


def exact_score(context: MatchBetContext) -> bool:
    """Predicted regulation score equals the actual one on both sides."""
    p, a = context.prediction, context.actual
    if None in (p.home_score, p.away_score, a.home_regular_score, a.away_regular_score):
        return False
    return p.home_score == a.home_regular_score and p.away_score == a.away_regular_score


def score_difference(context: MatchBetContext) -> bool:
    """Predicted goal differential (home minus away) equals the actual one."""
    p, a = context.prediction, context.actual
    if None in (p.home_score, p.away_score, a.home_regular_score, a.away_regular_score):
        return False
    return (p.home_score - p.away_score) == (a.home_regular_score - a.away_regular_score)


def one_team_score(context: MatchBetContext) -> bool:
    """At least one side's predicted score equals that side's actual score."""
    p, a = context.prediction, context.actual
    home_hit = p.home_score is not None and p.home_score == a.home_regular_score
    away_hit = p.away_score is not None and p.away_score == a.away_regular_score
    return home_hit or away_hit


def winner(context: MatchBetContext) -> bool:
    """Predicted winning side (or draw) matches the side that actually won.

    The final score decides when present, so overtime and shootout wins count.
    """
    p, a = context.prediction, context.actual
    predicted = outcome_side(p.home_score, p.away_score)
    if a.home_final_score is not None and a.away_final_score is not None:
        actual = outcome_side(a.home_final_score, a.away_final_score)
    else:
        actual = outcome_side(a.home_regular_score, a.away_regular_score)
    return predicted is not None and predicted == actual


def draw(context: MatchBetContext) -> bool:
    """Both the prediction and the regulation result are draws."""
    p, a = context.prediction, context.actual
    return (
        outcome_side(p.home_score, p.away_score) == DRAW
        and outcome_side(a.home_regular_score, a.away_regular_score) == DRAW
    )


def soccer_playoff_advance(context: MatchBetContext) -> bool:
    """In a playoff game, the predicted advancing side is the one that advanced."""
    p, a = context.prediction, context.actual
    if not a.is_playoff_game:
        return False
    if p.home_advanced is None or a.home_advanced is None:
        return False
    return p.home_advanced == a.home_advanced


def scorer(
    context: MatchBetContext, config: EvaluatorConfig, points: int
) -> Union[bool, int]:
    """Score a scorer pick.

    Without a :class:`RankedScorerConfig` this is a membership test and returns
    a boolean. With one, a correct pick pays ``rankedPoints[rank]`` for the
    scorer's ranking at match time, falling back to ``unrankedPoints``; a
    wrong pick pays 0 whatever the rank. A "nobody scores" pick is correct
    when the scorer list is empty and pays ``unrankedPoints`` in ranked mode.
    """
    p, a = context.prediction, context.actual
    ranked = config if isinstance(config, RankedScorerConfig) else None

    if p.no_scorer:
        correct = len(a.scorer_ids) == 0
        if ranked is not None:
            return ranked.unranked_points if correct else 0
        return correct

    if p.scorer_id is None or p.scorer_id not in a.scorer_ids:
        return 0 if ranked is not None else False

    if ranked is None:
        return True
    return ranked.points_for(context.scorer_rankings.get(p.scorer_id))


# ── series rules ──


def series_exact(context: SeriesBetContext) -> bool:
    p, a = context.prediction, context.actual
    if None in (p.home_team_score, p.away_team_score, a.home_team_score, a.away_team_score):
        return False
    return p.home_team_score == a.home_team_score and p.away_team_score == a.away_team_score


def series_winner(context: SeriesBetContext) -> bool:
    p, a = context.prediction, context.actual
    predicted = outcome_side(p.home_team_score, p.away_team_score)
    return predicted is not None and predicted == outcome_side(
        a.home_team_score, a.away_team_score
    )


# ── special bet rules ──


def exact_team(context: SpecialBetContext) -> bool:
    predicted = context.prediction.team_result_id
    return predicted is not None and predicted == context.actual.team_result_id


def exact_player(context: SpecialBetContext) -> bool:
    predicted = context.prediction.player_result_id
    return predicted is not None and predicted == context.actual.player_result_id


def exact_value(context: SpecialBetContext) -> bool:
    predicted = context.prediction.value
    return predicted is not None and predicted == context.actual.value


def closest_value(
    context: SpecialBetContext, config: EvaluatorConfig, points: int
) -> int:
    """Pay ``points`` when the prediction is (one of) the closest in the cohort.

    Distances are absolute differences to the actual value; every prediction
    at the minimal distance wins, so ties all score.
    """
    predicted, actual = context.prediction.value, context.actual.value
    if predicted is None or actual is None or not context.cohort_values:
        return 0
    distance = abs(predicted - actual)
    best = min(abs(value - actual) for value in context.cohort_values)
    return points if distance == best else 0


def group_stage_team(
    context: SpecialBetContext, config: EvaluatorConfig, points: int
) -> int:
    """Group winner pays ``winnerPoints``, another advancing team ``advancePoints``."""
    if not isinstance(config, GroupStageConfig):
        return 0
    team = context.prediction.team_result_id
    if team is None:
        return 0
    if team == context.actual.team_result_id:
        return config.winner_points
    if team in context.actual.advanced_team_ids:
        return config.advance_points
    return 0


def group_stage_advance(context: SpecialBetContext) -> bool:
    """The predicted team got out of the group, as winner or otherwise."""
    team = context.prediction.team_result_id
    if team is None:
        return False
    return team == context.actual.team_result_id or team in context.actual.advanced_team_ids


# ── questions ──


def question(context: QuestionContext, config: EvaluatorConfig, points: int) -> int:
    """Correct answer pays ``points``, a wrong one costs half (rounded down)."""
    answer, correct = context.prediction.answer, context.actual.result
    if answer is None or correct is None:
        return 0
    if answer == correct:
        return points
    return -(points // 2)


__all__ = [
    "closest_value",
    "draw",
    "exact_player",
    "exact_score",
    "exact_team",
    "exact_value",
    "group_stage_advance",
    "group_stage_team",
    "one_team_score",
    "outcome_side",
    "question",
    "score_difference",
    "scorer",
    "series_exact",
    "series_winner",
    "soccer_playoff_advance",
    "winner",
]
