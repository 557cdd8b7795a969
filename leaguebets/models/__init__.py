from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .user import User  # noqa: F401
from .league import Evaluator, League, ScorerRankingVersion  # noqa: F401
from .match import LeagueMatch, Match, MatchScorer, UserBet  # noqa: F401
from .special_bet import (  # noqa: F401
    SpecialBet,
    SpecialBetAdvancedTeam,
    SpecialBetSeries,
    UserSpecialBet,
    UserSpecialBetSeries,
)
from .question import Question, UserQuestionBet  # noqa: F401
from .audit import AuditLog  # noqa: F401

__all__ = [
    "Base",
    "User",
    "League",
    "Evaluator",
    "ScorerRankingVersion",
    "Match",
    "MatchScorer",
    "LeagueMatch",
    "UserBet",
    "SpecialBetSeries",
    "UserSpecialBetSeries",
    "SpecialBet",
    "SpecialBetAdvancedTeam",
    "UserSpecialBet",
    "Question",
    "UserQuestionBet",
    "AuditLog",
]
