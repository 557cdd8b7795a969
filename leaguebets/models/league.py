"""League configuration: scoring evaluators and scorer ranking history."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    or_,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import ID_TYPE, Base
from .utils import utcnow


class League(Base):
    """A competition whose users predict matches, series and special bets."""

    __tablename__ = "leagues"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    season_from: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    season_to: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    evaluators: Mapped[list["Evaluator"]] = relationship(
        back_populates="league",
        cascade="all, delete-orphan",
    )
    """Scoring rules configured for this league (including soft-deleted rows)."""

    def active_evaluators(
        self, session: Session, entity: Optional[str] = None
    ) -> list["Evaluator"]:
        """Return non-deleted evaluators, optionally restricted to ``entity``."""

        stmt = select(Evaluator).where(
            Evaluator.league_id == self.id,
            Evaluator.deleted_at.is_(None),
        )
        if entity is not None:
            stmt = stmt.where(Evaluator.entity == entity)
        return list(session.scalars(stmt.order_by(Evaluator.kind, Evaluator.id)).all())

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<League(id={self.id}, name={self.name})>"


class Evaluator(Base):
    """A scoring rule instance attached to a league."""

    __tablename__ = "evaluators"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    league_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    """League that owns this rule."""

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    """Admin-facing label."""

    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    """Rule name such as ``exact_score``. Stored as text so rows written by
    newer or older deployments still load; unknown kinds are skipped at
    evaluation time."""

    entity: Mapped[str] = mapped_column(String(20), nullable=False)
    """Event class the rule applies to: match, series, special or question."""

    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    """Flat points awarded by boolean rules."""

    config: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    """Kind-specific JSON config, validated when the evaluator is created."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    league: Mapped["League"] = relationship(back_populates="evaluators")

    __table_args__ = (Index("ix_evaluators_league_entity", "league_id", "entity"),)

    def __init__(
        self,
        *,
        kind: str,
        entity: str,
        points: int = 0,
        name: Optional[str] = None,
        config: Optional[dict[str, Any]] = None,
        league: Optional["League"] = None,
        league_id: Optional[int] = None,
        deleted_at: Optional[datetime] = None,
    ) -> None:
        self.kind = kind
        self.entity = entity
        self.points = points
        self.name = name or kind
        self.config = config
        if league is not None:
            self.league = league
        if league_id is not None:
            self.league_id = league_id
        self.deleted_at = deleted_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Evaluator(id={id}, league_id={league}, kind={kind}, entity={entity}, points={points})>".format(
            id=self.id,
            league=self.league_id,
            kind=self.kind,
            entity=self.entity,
            points=self.points,
        )


class ScorerRankingVersion(Base):
    """Time-bounded ranking of a player in the league's top-scorer table.

    A version is active for ``effective_from <= t < effective_to``; an open
    version has ``effective_to`` set to ``None``.
    """

    __tablename__ = "scorer_ranking_versions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    league_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[int] = mapped_column(ID_TYPE, nullable=False)
    ranking: Mapped[int] = mapped_column(Integer, nullable=False)
    effective_from: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    effective_to: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    created_by_user_id: Mapped[Optional[int]] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        Index("ix_scorer_ranking_versions_league_from", "league_id", "effective_from"),
        Index("ix_scorer_ranking_versions_player_from", "player_id", "effective_from"),
    )

    @classmethod
    def rankings_at(
        cls, session: Session, league_id: int, at: datetime
    ) -> dict[int, int]:
        """Return ``player_id -> ranking`` for every version active at ``at``.

        When several versions of the same player overlap ``at`` the one with
        the latest ``effective_from`` wins.
        """

        stmt = (
            select(cls)
            .where(
                cls.league_id == league_id,
                cls.effective_from <= at,
                or_(cls.effective_to.is_(None), cls.effective_to > at),
            )
            .order_by(cls.effective_from.desc(), cls.id.desc())
        )
        rankings: dict[int, int] = {}
        for version in session.scalars(stmt):
            rankings.setdefault(version.player_id, version.ranking)
        return rankings

    @classmethod
    def open_version(
        cls, session: Session, league_id: int, player_id: int
    ) -> Optional["ScorerRankingVersion"]:
        """Return the currently open version for ``player_id``, if any."""

        return session.scalar(
            select(cls).where(
                cls.league_id == league_id,
                cls.player_id == player_id,
                cls.effective_to.is_(None),
            )
        )


__all__ = ["League", "Evaluator", "ScorerRankingVersion"]
