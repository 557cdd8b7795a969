"""Yes/no trivia questions."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import ID_TYPE, Base
from .utils import utcnow

if TYPE_CHECKING:
    from .league import League
    from .user import User


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    league_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    result: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    is_evaluated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    league: Mapped["League"] = relationship()
    bets: Mapped[list["UserQuestionBet"]] = relationship(back_populates="question")


class UserQuestionBet(Base):
    __tablename__ = "user_question_bets"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    question_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    answer: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    """``None`` when the user did not pick an answer."""
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    question: Mapped["Question"] = relationship(back_populates="bets")
    user: Mapped["User"] = relationship(back_populates="question_bets")

    __table_args__ = (
        UniqueConstraint("question_id", "user_id", name="uq_user_question_bet"),
    )


__all__ = ["Question", "UserQuestionBet"]
