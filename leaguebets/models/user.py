from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import ID_TYPE, Base
from .utils import utcnow

if TYPE_CHECKING:
    from .match import UserBet
    from .question import UserQuestionBet
    from .special_bet import UserSpecialBet, UserSpecialBetSeries


class User(Base):
    """A league participant who submits predictions."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_admin: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    bets: Mapped[list["UserBet"]] = relationship(back_populates="user")
    series_bets: Mapped[list["UserSpecialBetSeries"]] = relationship(
        back_populates="user"
    )
    special_bets: Mapped[list["UserSpecialBet"]] = relationship(back_populates="user")
    question_bets: Mapped[list["UserQuestionBet"]] = relationship(
        back_populates="user"
    )

    @validates("email")
    def _normalize_email(self, _key: str, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        normalized = value.strip().lower()
        return normalized or None

    @classmethod
    def get_by_username(cls, session: Session, username: str) -> Optional["User"]:
        """Get a user by their username."""
        return session.scalar(select(cls).where(cls.username == username))

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<User(id={self.id}, username={self.username})>"
