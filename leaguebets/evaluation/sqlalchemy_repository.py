"""SQLAlchemy implementation of :class:`EvaluationRepository`."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import (
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
from .errors import EventNotFoundError
from .repository import EvaluationRepository
from .types import (
    BetRecord,
    EventSnapshot,
    EvaluatorEntity,
    EvaluatorRecord,
    MatchPrediction,
    MatchResult,
    QuestionPrediction,
    QuestionResult,
    SeriesPrediction,
    SeriesResult,
    SpecialPrediction,
    SpecialResult,
)

_EVENT_MODELS: dict[EvaluatorEntity, Any] = {
    EvaluatorEntity.MATCH: Match,
    EvaluatorEntity.SERIES: SpecialBetSeries,
    EvaluatorEntity.SPECIAL: SpecialBet,
    EvaluatorEntity.QUESTION: Question,
}

_BET_MODELS: dict[EvaluatorEntity, Any] = {
    EvaluatorEntity.MATCH: UserBet,
    EvaluatorEntity.SERIES: UserSpecialBetSeries,
    EvaluatorEntity.SPECIAL: UserSpecialBet,
    EvaluatorEntity.QUESTION: UserQuestionBet,
}


def _evaluator_record(evaluator: Evaluator) -> EvaluatorRecord:
    return EvaluatorRecord(
        id=evaluator.id,
        kind=evaluator.kind,
        entity=evaluator.entity,
        points=evaluator.points,
        name=evaluator.name,
        config=evaluator.config,
    )


class SqlAlchemyEvaluationRepository(EvaluationRepository):
    """Repository bound to one SQLAlchemy session.

    Every read and write goes through ``session``, so the caller's transaction
    scope decides atomicity.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ── reads ──

    def load_event(self, entity, event_id, *, user_id=None, league_match_id=None):
        entity = EvaluatorEntity(entity)
        if entity is EvaluatorEntity.MATCH:
            return self._load_match(event_id, league_match_id, user_id)
        if entity is EvaluatorEntity.SERIES:
            return self._load_series(event_id, user_id)
        if entity is EvaluatorEntity.SPECIAL:
            return self._load_special_bet(event_id, user_id)
        return self._load_question(event_id, user_id)

    def scorer_rankings_at(self, league_id: int, at: Optional[datetime]) -> dict[int, int]:
        if at is None:
            return {}
        return ScorerRankingVersion.rankings_at(self._session, league_id, at)

    def _league_evaluators(self, league_id: int, entity: EvaluatorEntity) -> tuple[EvaluatorRecord, ...]:
        league = self._session.get(League, league_id)
        if league is None:
            return ()
        return tuple(
            _evaluator_record(e) for e in league.active_evaluators(self._session, entity.value)
        )

    def _bets(self, model, fk_column, event_id: int, user_id: Optional[int]) -> list:
        stmt = select(model).where(fk_column == event_id, model.deleted_at.is_(None))
        if user_id is not None:
            stmt = stmt.where(model.user_id == user_id)
        return list(self._session.scalars(stmt.order_by(model.id)).all())

    def _load_match(
        self, match_id: int, league_match_id: Optional[int], user_id: Optional[int]
    ) -> EventSnapshot:
        if league_match_id is None:
            raise EventNotFoundError("League match is required to evaluate a match")
        league_match = self._session.get(LeagueMatch, league_match_id)
        if (
            league_match is None
            or league_match.deleted_at is not None
            or league_match.match_id != match_id
        ):
            raise EventNotFoundError(f"League match {league_match_id} not found")
        match = self._session.get(Match, match_id)
        if match is None:
            raise EventNotFoundError(f"Match {match_id} not found")

        scorer_ids = tuple(
            self._session.scalars(
                select(MatchScorer.player_id)
                .where(MatchScorer.match_id == match.id)
                .order_by(MatchScorer.player_id)
            ).all()
        )
        result = MatchResult(
            home_regular_score=match.home_regular_score,
            away_regular_score=match.away_regular_score,
            home_final_score=match.home_final_score,
            away_final_score=match.away_final_score,
            scorer_ids=scorer_ids,
            is_overtime=match.is_overtime,
            is_shootout=match.is_shootout,
            is_playoff_game=bool(match.is_playoff_game),
            home_advanced=match.home_advanced,
        )
        bets = tuple(
            BetRecord(
                id=bet.id,
                user_id=bet.user_id,
                prediction=MatchPrediction(
                    home_score=bet.home_score,
                    away_score=bet.away_score,
                    scorer_id=bet.scorer_id,
                    no_scorer=bet.no_scorer,
                    home_advanced=bet.home_advanced,
                    overtime=bool(bet.overtime),
                ),
            )
            for bet in UserBet.for_league_match(self._session, league_match.id, user_id)
        )
        return EventSnapshot(
            entity=EvaluatorEntity.MATCH,
            event_id=match.id,
            league_id=league_match.league_id,
            starts_at=match.starts_at,
            result=result,
            evaluators=self._league_evaluators(league_match.league_id, EvaluatorEntity.MATCH),
            bets=bets,
            is_doubled=bool(league_match.is_doubled),
            is_evaluated=bool(league_match.is_evaluated),
        )

    def _load_series(self, series_id: int, user_id: Optional[int]) -> EventSnapshot:
        series = self._session.get(SpecialBetSeries, series_id)
        if series is None or series.deleted_at is not None:
            raise EventNotFoundError(f"Series {series_id} not found")
        bets = tuple(
            BetRecord(
                id=bet.id,
                user_id=bet.user_id,
                prediction=SeriesPrediction(
                    home_team_score=bet.home_team_score,
                    away_team_score=bet.away_team_score,
                ),
            )
            for bet in self._bets(
                UserSpecialBetSeries, UserSpecialBetSeries.series_id, series.id, user_id
            )
        )
        return EventSnapshot(
            entity=EvaluatorEntity.SERIES,
            event_id=series.id,
            league_id=series.league_id,
            starts_at=series.starts_at,
            result=SeriesResult(
                home_team_score=series.home_team_score,
                away_team_score=series.away_team_score,
            ),
            evaluators=self._league_evaluators(series.league_id, EvaluatorEntity.SERIES),
            bets=bets,
            is_doubled=bool(series.is_doubled),
            is_evaluated=bool(series.is_evaluated),
        )

    def _load_special_bet(self, special_bet_id: int, user_id: Optional[int]) -> EventSnapshot:
        special_bet = self._session.get(SpecialBet, special_bet_id)
        if special_bet is None or special_bet.deleted_at is not None:
            raise EventNotFoundError(f"Special bet {special_bet_id} not found")

        # A dedicated evaluator replaces the league-wide special rules.
        dedicated = special_bet.evaluator
        if dedicated is not None and dedicated.deleted_at is None:
            evaluators: tuple[EvaluatorRecord, ...] = (_evaluator_record(dedicated),)
        else:
            evaluators = self._league_evaluators(special_bet.league_id, EvaluatorEntity.SPECIAL)

        advanced = tuple(
            self._session.scalars(
                select(SpecialBetAdvancedTeam.team_id)
                .where(
                    SpecialBetAdvancedTeam.special_bet_id == special_bet.id,
                    SpecialBetAdvancedTeam.deleted_at.is_(None),
                )
                .order_by(SpecialBetAdvancedTeam.team_id)
            ).all()
        )
        cohort = self._bets(
            UserSpecialBet, UserSpecialBet.special_bet_id, special_bet.id, None
        )
        selected = cohort if user_id is None else [b for b in cohort if b.user_id == user_id]
        bets = tuple(
            BetRecord(
                id=bet.id,
                user_id=bet.user_id,
                prediction=SpecialPrediction(
                    team_result_id=bet.team_result_id,
                    player_result_id=bet.player_result_id,
                    value=bet.value,
                ),
            )
            for bet in selected
        )
        return EventSnapshot(
            entity=EvaluatorEntity.SPECIAL,
            event_id=special_bet.id,
            league_id=special_bet.league_id,
            starts_at=special_bet.starts_at,
            result=SpecialResult(
                team_result_id=special_bet.team_result_id,
                player_result_id=special_bet.player_result_id,
                value=special_bet.value_result,
                advanced_team_ids=advanced,
            ),
            evaluators=evaluators,
            bets=bets,
            is_doubled=bool(special_bet.is_doubled),
            is_evaluated=bool(special_bet.is_evaluated),
            cohort_values=tuple(b.value for b in cohort if b.value is not None),
        )

    def _load_question(self, question_id: int, user_id: Optional[int]) -> EventSnapshot:
        question = self._session.get(Question, question_id)
        if question is None or question.deleted_at is not None:
            raise EventNotFoundError(f"Question {question_id} not found")
        bets = tuple(
            BetRecord(
                id=bet.id,
                user_id=bet.user_id,
                prediction=QuestionPrediction(answer=bet.answer),
            )
            for bet in self._bets(
                UserQuestionBet, UserQuestionBet.question_id, question.id, user_id
            )
        )
        return EventSnapshot(
            entity=EvaluatorEntity.QUESTION,
            event_id=question.id,
            league_id=question.league_id,
            starts_at=question.starts_at,
            result=QuestionResult(result=question.result),
            evaluators=self._league_evaluators(question.league_id, EvaluatorEntity.QUESTION),
            bets=bets,
            is_evaluated=bool(question.is_evaluated),
        )

    # ── writes ──

    def save_bet_points(self, entity, bet_id, points):
        model = _BET_MODELS[EvaluatorEntity(entity)]
        bet = self._session.get(model, bet_id)
        if bet is None:
            raise EventNotFoundError(f"Bet {bet_id} not found")
        bet.total_points = points

    def mark_evaluated(self, entity, event_id, *, league_match_id=None):
        entity = EvaluatorEntity(entity)
        if entity is EvaluatorEntity.MATCH:
            self._mark_fixture_evaluated(event_id, league_match_id)
            return
        event = self._session.get(_EVENT_MODELS[entity], event_id)
        if event is None:
            raise EventNotFoundError(f"{entity.label.capitalize()} {event_id} not found")
        event.is_evaluated = True
        self._session.flush()

    def _mark_fixture_evaluated(self, match_id: int, league_match_id: Optional[int]) -> None:
        league_match = (
            self._session.get(LeagueMatch, league_match_id)
            if league_match_id is not None
            else None
        )
        if league_match is None or league_match.match_id != match_id:
            raise EventNotFoundError(f"League match {league_match_id} not found")
        league_match.is_evaluated = True
        self._session.flush()

        # The match itself counts as evaluated once no live fixture is pending.
        pending = self._session.scalar(
            select(LeagueMatch.id)
            .where(
                LeagueMatch.match_id == match_id,
                LeagueMatch.deleted_at.is_(None),
                LeagueMatch.is_evaluated.is_(False),
            )
            .limit(1)
        )
        if pending is None:
            match = self._session.get(Match, match_id)
            if match is not None:
                match.is_evaluated = True
                self._session.flush()


__all__ = ["SqlAlchemyEvaluationRepository"]
