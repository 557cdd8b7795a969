"""Admin operations around the evaluation core.

These helpers flush but never commit; the caller owns the transaction. The
one exception is :func:`evaluate_and_log`, which opens its own transactions
through a session factory.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime
from typing import Callable, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .evaluation.atomic import evaluate_atomic
from .evaluation.config import parse_config
from .evaluation.errors import EvaluationError, InvalidEvaluatorConfigError
from .evaluation.registry import DEFAULT_EVALUATOR_REGISTRY, EvaluatorRegistry
from .evaluation.types import EvaluationOutcome, EvaluatorEntity
from .models import (
    AuditLog,
    Evaluator,
    League,
    LeagueMatch,
    Match,
    MatchScorer,
    Question,
    ScorerRankingVersion,
    SpecialBet,
    SpecialBetAdvancedTeam,
    SpecialBetSeries,
    UserBet,
    UserQuestionBet,
    UserSpecialBet,
    UserSpecialBetSeries,
)
from .models.utils import utcnow

logger = logging.getLogger(__name__)

_SUBJECT_TABLES = {
    EvaluatorEntity.MATCH: Match.__tablename__,
    EvaluatorEntity.SERIES: SpecialBetSeries.__tablename__,
    EvaluatorEntity.SPECIAL: SpecialBet.__tablename__,
    EvaluatorEntity.QUESTION: Question.__tablename__,
}


def create_evaluator(
    session: Session,
    league: League,
    kind: str,
    points: int,
    *,
    name: Optional[str] = None,
    config: Optional[dict] = None,
    registry: Optional[EvaluatorRegistry] = None,
) -> Evaluator:
    """Attach a scoring rule to ``league`` after validating its config.

    The entity class is derived from ``kind``. Configs are validated here so
    that evaluation never has to reject a league's setup.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    league : League
        Persisted league receiving the rule.
    kind : str
        Rule name, e.g. ``"exact_score"``.
    points : int
        Flat points; ignored by value rules that define their own payouts.
    name : Optional[str], default: None
        Admin label. Defaults to ``kind``.
    config : Optional[dict], default: None
        JSON config in its wire shape.
    registry : Optional[EvaluatorRegistry], default: None
        Registry used to resolve ``kind``.

    Returns
    -------
    Evaluator
        The flushed evaluator row.

    Raises
    ------
    InvalidEvaluatorConfigError
        If ``kind`` is unknown or ``config`` does not match it.
    ValueError
        If ``league`` is not persisted or ``points`` is negative.
    """
    if league.id is None:
        raise ValueError("League must be persisted before adding evaluators")
    if isinstance(points, bool) or not isinstance(points, int) or points < 0:
        raise ValueError("points must be a non-negative integer")

    definition = (registry or DEFAULT_EVALUATOR_REGISTRY).lookup(kind)
    if definition is None:
        raise InvalidEvaluatorConfigError(f"Unknown evaluator type '{kind}'")
    parsed = parse_config(definition.kind, config)

    evaluator = Evaluator(
        league=league,
        kind=definition.kind.value,
        entity=definition.entity.value,
        points=points,
        name=name,
        config=parsed.to_json(),
    )
    session.add(evaluator)
    session.flush()
    logger.info(
        "Created evaluator %s (%s/%s) for league %s",
        evaluator.id, evaluator.entity, evaluator.kind, league.id,
    )
    return evaluator


# ── result entry ──


def _zero_bets(session: Session, model, *criteria) -> None:
    session.execute(
        update(model).where(*criteria).values(total_points=0),
        execution_options={"synchronize_session": "fetch"},
    )


def _reset_evaluation(event) -> bool:
    """Clear ``is_evaluated``; returns whether the flag was set."""
    was_evaluated = bool(event.is_evaluated)
    event.is_evaluated = False
    return was_evaluated


def enter_match_result(
    session: Session,
    match: Match,
    *,
    home_regular_score: int,
    away_regular_score: int,
    home_final_score: Optional[int] = None,
    away_final_score: Optional[int] = None,
    scorer_ids: Iterable[int] = (),
    is_overtime: Optional[bool] = None,
    is_shootout: Optional[bool] = None,
    home_advanced: Optional[bool] = None,
) -> Match:
    """Record a match result.

    Any change to the result zeroes the stored points of every bet on the
    match in every league, including totals left by single-user runs, and
    puts every fixture back into the "result entered" state.
    """
    new_scorers = set(scorer_ids)
    old_scorers = {s.player_id for s in match.scorers}
    values = {
        "home_regular_score": home_regular_score,
        "away_regular_score": away_regular_score,
        "home_final_score": home_final_score,
        "away_final_score": away_final_score,
        "is_overtime": is_overtime,
        "is_shootout": is_shootout,
        "home_advanced": home_advanced,
    }
    changed = new_scorers != old_scorers or any(
        getattr(match, attr) != value for attr, value in values.items()
    )
    for attr, value in values.items():
        setattr(match, attr, value)

    for scorer in list(match.scorers):
        if scorer.player_id not in new_scorers:
            match.scorers.remove(scorer)
    for player_id in sorted(new_scorers - old_scorers):
        match.scorers.append(MatchScorer(player_id=player_id))

    if changed:
        was_evaluated = _reset_evaluation(match)
        session.execute(
            update(LeagueMatch)
            .where(LeagueMatch.match_id == match.id)
            .values(is_evaluated=False),
            execution_options={"synchronize_session": "fetch"},
        )
        fixtures = select(LeagueMatch.id).where(LeagueMatch.match_id == match.id)
        _zero_bets(session, UserBet, UserBet.league_match_id.in_(fixtures))
        if was_evaluated:
            logger.info("Match %s result corrected; evaluation reset", match.id)
    session.flush()
    return match


def enter_series_result(
    session: Session,
    series: SpecialBetSeries,
    home_team_score: int,
    away_team_score: int,
) -> SpecialBetSeries:
    changed = (series.home_team_score, series.away_team_score) != (
        home_team_score,
        away_team_score,
    )
    series.home_team_score = home_team_score
    series.away_team_score = away_team_score
    if changed:
        _zero_bets(session, UserSpecialBetSeries, UserSpecialBetSeries.series_id == series.id)
    if changed and _reset_evaluation(series):
        logger.info("Series %s result corrected; evaluation reset", series.id)
    session.flush()
    return series


def enter_special_bet_result(
    session: Session,
    special_bet: SpecialBet,
    *,
    team_result_id: Optional[int] = None,
    player_result_id: Optional[int] = None,
    value_result: Optional[float] = None,
    advanced_team_ids: Optional[Iterable[int]] = None,
) -> SpecialBet:
    """Record the outcome of a special bet.

    ``advanced_team_ids`` replaces the advancing teams of a group-stage bet;
    leave it ``None`` to keep the current list.
    """
    changed = (
        special_bet.team_result_id,
        special_bet.player_result_id,
        special_bet.value_result,
    ) != (team_result_id, player_result_id, value_result)
    special_bet.team_result_id = team_result_id
    special_bet.player_result_id = player_result_id
    special_bet.value_result = value_result

    if advanced_team_ids is not None:
        wanted = set(advanced_team_ids)
        current = {t.team_id for t in special_bet.advanced_teams}
        changed = changed or wanted != current
        for team in list(special_bet.advanced_teams):
            if team.team_id not in wanted:
                special_bet.advanced_teams.remove(team)
        for team_id in sorted(wanted - current):
            special_bet.advanced_teams.append(SpecialBetAdvancedTeam(team_id=team_id))

    if changed:
        _zero_bets(session, UserSpecialBet, UserSpecialBet.special_bet_id == special_bet.id)
    if changed and _reset_evaluation(special_bet):
        logger.info("Special bet %s result corrected; evaluation reset", special_bet.id)
    session.flush()
    return special_bet


def enter_question_result(session: Session, question: Question, result: bool) -> Question:
    changed = question.result != result
    question.result = result
    if changed:
        _zero_bets(session, UserQuestionBet, UserQuestionBet.question_id == question.id)
    if changed and _reset_evaluation(question):
        logger.info("Question %s result corrected; evaluation reset", question.id)
    session.flush()
    return question


def record_scorer_ranking(
    session: Session,
    league_id: int,
    player_id: int,
    ranking: int,
    effective_from: datetime,
    *,
    created_by_user_id: Optional[int] = None,
) -> ScorerRankingVersion:
    """Open a new ranking version for ``player_id``, closing the current one.

    Earlier matches keep resolving the ranking that was active at their
    start time.
    """
    if isinstance(ranking, bool) or not isinstance(ranking, int) or ranking < 1:
        raise ValueError("ranking must be a positive integer")

    current = ScorerRankingVersion.open_version(session, league_id, player_id)
    if current is not None:
        current.effective_to = effective_from

    version = ScorerRankingVersion(
        league_id=league_id,
        player_id=player_id,
        ranking=ranking,
        effective_from=effective_from,
        created_by_user_id=created_by_user_id,
    )
    session.add(version)
    session.flush()
    return version


# ── evaluation trigger ──


def _write_audit_log(
    session_factory: sessionmaker,
    *,
    admin_user_id: Optional[int],
    outcome: EvaluationOutcome,
    league_match_id: Optional[int],
    user_id: Optional[int],
    duration_ms: int,
) -> None:
    details = {
        "leagueId": outcome.league_id,
        "leagueMatchId": league_match_id,
        "userId": user_id,
        "fullCohort": outcome.full_cohort,
        "totalUsersEvaluated": outcome.total_users_evaluated,
        "totalPoints": outcome.total_points,
    }
    try:
        with session_factory.begin() as session:
            session.add(
                AuditLog(
                    actor_type="admin" if admin_user_id is not None else "system",
                    actor_user_id=admin_user_id,
                    action=f"evaluate_{outcome.entity.value}",
                    subject_table=_SUBJECT_TABLES[outcome.entity],
                    subject_id=outcome.event_id,
                    details_json=json.dumps(details, sort_keys=True),
                    duration_ms=duration_ms,
                    occurred_at=utcnow(),
                )
            )
    except SQLAlchemyError:
        logger.exception(
            "Failed to write audit log for %s %s", outcome.entity.value, outcome.event_id
        )


def evaluate_and_log(
    session_factory: sessionmaker,
    entity: EvaluatorEntity,
    event_id: int,
    *,
    admin_user_id: Optional[int] = None,
    user_id: Optional[int] = None,
    league_match_id: Optional[int] = None,
    invalidate: Optional[Callable[[str], None]] = None,
    registry: Optional[EvaluatorRegistry] = None,
) -> EvaluationOutcome:
    """Evaluate an event atomically, then audit it and signal cache refresh.

    The audit row is written in its own transaction after the evaluation
    committed; a failure there is logged and does not undo the scores.
    ``invalidate`` receives the tag ``"leaderboard:<league_id>"``.

    Raises
    ------
    EvaluationError
        Any precondition or conflict failure of the evaluation itself.
    """
    entity = EvaluatorEntity(entity)
    started = time.perf_counter()
    try:
        outcome = evaluate_atomic(
            session_factory,
            entity,
            event_id,
            user_id=user_id,
            league_match_id=league_match_id,
            registry=registry,
        )
    except EvaluationError as exc:
        logger.warning(
            "Evaluation of %s %s failed (%s): %s", entity.value, event_id, exc.code, exc.message
        )
        raise
    duration_ms = int((time.perf_counter() - started) * 1000)

    _write_audit_log(
        session_factory,
        admin_user_id=admin_user_id,
        outcome=outcome,
        league_match_id=league_match_id,
        user_id=user_id,
        duration_ms=duration_ms,
    )
    if invalidate is not None:
        invalidate(f"leaderboard:{outcome.league_id}")
    return outcome


__all__ = [
    "create_evaluator",
    "enter_match_result",
    "enter_question_result",
    "enter_series_result",
    "enter_special_bet_result",
    "evaluate_and_log",
    "record_scorer_ranking",
]
