"""Matches, their league fixtures and the users' match predictions."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import ID_TYPE, Base
from .utils import utcnow

if TYPE_CHECKING:
    from .league import League
    from .user import User


class Match(Base):
    """A real-world game and its entered result."""

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    home_team_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)
    away_team_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    """Kick-off time; scorer rankings are resolved as of this instant."""

    home_regular_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    away_regular_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    home_final_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Score after overtime/shootout; ``None`` when identical to regulation."""
    away_final_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_overtime: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    is_shootout: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    is_playoff_game: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    home_advanced: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    """For playoff games: whether the home side advanced."""

    is_evaluated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Set once every live league fixture of the match has been evaluated."""
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    scorers: Mapped[list["MatchScorer"]] = relationship(
        back_populates="match", cascade="all, delete-orphan"
    )
    league_matches: Mapped[list["LeagueMatch"]] = relationship(back_populates="match")

    @property
    def has_result(self) -> bool:
        """Whether the regulation-time score has been entered."""
        return self.home_regular_score is not None and self.away_regular_score is not None

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Match(id={id}, {home}-{away}, evaluated={ev})>".format(
            id=self.id,
            home=self.home_regular_score,
            away=self.away_regular_score,
            ev=self.is_evaluated,
        )


class MatchScorer(Base):
    """A player who scored in a match."""

    __tablename__ = "match_scorers"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    match_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    player_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)
    number_of_goals: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    match: Mapped["Match"] = relationship(back_populates="scorers")

    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_match_scorer_player"),
    )


class LeagueMatch(Base):
    """A match offered for prediction inside one league."""

    __tablename__ = "league_matches"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    league_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    match_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_doubled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Bonus fixture: all awarded points are multiplied by two."""
    is_evaluated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """The fixture's full cohort has been scored."""
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    league: Mapped["League"] = relationship()
    match: Mapped["Match"] = relationship(back_populates="league_matches")
    bets: Mapped[list["UserBet"]] = relationship(back_populates="league_match")

    __table_args__ = (
        UniqueConstraint("league_id", "match_id", name="uq_league_match"),
    )


class UserBet(Base):
    """One user's prediction for a league match."""

    __tablename__ = "user_bets"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    league_match_id: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("league_matches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    home_score: Mapped[int] = mapped_column(Integer, nullable=False)
    away_score: Mapped[int] = mapped_column(Integer, nullable=False)
    scorer_id: Mapped[Optional[int]] = mapped_column(ID_TYPE, nullable=True)
    no_scorer: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    """The user predicts that nobody scores."""
    overtime: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    home_advanced: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Written only by the evaluation core."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    league_match: Mapped["LeagueMatch"] = relationship(back_populates="bets")
    user: Mapped["User"] = relationship(back_populates="bets")

    __table_args__ = (
        UniqueConstraint("league_match_id", "user_id", name="uq_user_bet_per_match"),
    )

    @classmethod
    def for_league_match(
        cls, session: Session, league_match_id: int, user_id: Optional[int] = None
    ) -> list["UserBet"]:
        """Return non-deleted bets for a fixture, optionally for one user."""

        stmt = select(cls).where(
            cls.league_match_id == league_match_id, cls.deleted_at.is_(None)
        )
        if user_id is not None:
            stmt = stmt.where(cls.user_id == user_id)
        return list(session.scalars(stmt.order_by(cls.id)).all())


__all__ = ["Match", "MatchScorer", "LeagueMatch", "UserBet"]
