"""Series and single special bets with their user predictions."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import ID_TYPE, Base
from .utils import utcnow

if TYPE_CHECKING:
    from .league import Evaluator, League
    from .user import User


class SpecialBetSeries(Base):
    """A best-of-N series between two teams, predicted as a series score."""

    __tablename__ = "special_bet_series"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    league_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    home_team_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)
    away_team_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    home_team_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Games won by the home team."""
    away_team_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_doubled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_evaluated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    league: Mapped["League"] = relationship()
    bets: Mapped[list["UserSpecialBetSeries"]] = relationship(back_populates="series")

    @property
    def has_result(self) -> bool:
        return self.home_team_score is not None and self.away_team_score is not None


class UserSpecialBetSeries(Base):
    """One user's predicted series score."""

    __tablename__ = "user_special_bet_series"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    series_id: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("special_bet_series.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    home_team_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    away_team_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    series: Mapped["SpecialBetSeries"] = relationship(back_populates="bets")
    user: Mapped["User"] = relationship(back_populates="series_bets")

    __table_args__ = (
        UniqueConstraint("series_id", "user_id", name="uq_user_series_bet"),
    )


class SpecialBet(Base):
    """A single long-term bet: a team, a player or a numeric value."""

    __tablename__ = "special_bets"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    league_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    evaluator_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("evaluators.id", ondelete="SET NULL"), nullable=True
    )
    """Dedicated scoring rule; when unset every league ``special`` rule applies."""
    group_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Group label for group-stage bets (e.g. ``"A"``)."""
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    team_result_id: Mapped[Optional[int]] = mapped_column(ID_TYPE, nullable=True)
    """Winning team; for group-stage bets the group winner."""
    player_result_id: Mapped[Optional[int]] = mapped_column(ID_TYPE, nullable=True)
    value_result: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    is_doubled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_evaluated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    league: Mapped["League"] = relationship()
    evaluator: Mapped[Optional["Evaluator"]] = relationship()
    advanced_teams: Mapped[list["SpecialBetAdvancedTeam"]] = relationship(
        back_populates="special_bet", cascade="all, delete-orphan"
    )
    bets: Mapped[list["UserSpecialBet"]] = relationship(back_populates="special_bet")

    @property
    def has_result(self) -> bool:
        return (
            self.team_result_id is not None
            or self.player_result_id is not None
            or self.value_result is not None
        )


class SpecialBetAdvancedTeam(Base):
    """A team that advanced out of a group-stage special bet."""

    __tablename__ = "special_bet_advanced_teams"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    special_bet_id: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("special_bets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    team_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    special_bet: Mapped["SpecialBet"] = relationship(back_populates="advanced_teams")

    __table_args__ = (
        UniqueConstraint("special_bet_id", "team_id", name="uq_special_bet_advanced_team"),
    )


class UserSpecialBet(Base):
    """One user's prediction for a single special bet."""

    __tablename__ = "user_special_bets"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    special_bet_id: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("special_bets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_result_id: Mapped[Optional[int]] = mapped_column(ID_TYPE, nullable=True)
    player_result_id: Mapped[Optional[int]] = mapped_column(ID_TYPE, nullable=True)
    value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    special_bet: Mapped["SpecialBet"] = relationship(back_populates="bets")
    user: Mapped["User"] = relationship(back_populates="special_bets")

    __table_args__ = (
        UniqueConstraint("special_bet_id", "user_id", name="uq_user_special_bet"),
    )


__all__ = [
    "SpecialBetSeries",
    "UserSpecialBetSeries",
    "SpecialBet",
    "SpecialBetAdvancedTeam",
    "UserSpecialBet",
]
