"""Typed evaluator configuration variants and their JSON wire shapes.

Wire shapes (stored on ``Evaluator.config``)::

    {"rankedPoints": {"1": 2, "2": 4}, "unrankedPoints": 8}   # ranked scorer
    {"positions": ["G", "D"]}                                 # player filter
    {"winnerPoints": 10, "advancePoints": 5}                  # group stage
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    StringConstraints,
    ValidationError,
    model_validator,
)

from .errors import InvalidEvaluatorConfigError
from .types import EvaluatorKind

# JSON booleans are not points.
Points = Annotated[int, Field(strict=True, ge=0)]
PositionCode = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _ConfigModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    def to_json(self) -> Optional[dict[str, Any]]:
        return self.model_dump(mode="json", by_alias=True)


class NoConfig(_ConfigModel):
    """The evaluator is fully described by its flat ``points``."""

    def to_json(self) -> None:
        return None


class RankedScorerConfig(_ConfigModel):
    """Points for a correctly predicted scorer depend on their ranking."""

    ranked_points: Dict[PositiveInt, Points] = Field(alias="rankedPoints")
    unranked_points: Points = Field(alias="unrankedPoints")

    def points_for(self, ranking: Optional[int]) -> int:
        """Return the payout for a scorer holding ``ranking`` (``None`` = unranked)."""
        if ranking is not None and ranking in self.ranked_points:
            return self.ranked_points[ranking]
        return self.unranked_points

    def to_json(self) -> dict[str, Any]:
        return {
            "rankedPoints": {str(rank): pts for rank, pts in sorted(self.ranked_points.items())},
            "unrankedPoints": self.unranked_points,
        }


class PositionFilterConfig(_ConfigModel):
    """Restricts which players may be picked; ``None`` allows every position.

    Selection filtering happens when bets are placed, scoring ignores it.
    """

    positions: Optional[Annotated[Tuple[PositionCode, ...], Field(min_length=1)]] = None


class GroupStageConfig(_ConfigModel):
    """Tiered team scoring: group winner beats a team that merely advanced."""

    winner_points: Points = Field(alias="winnerPoints")
    advance_points: Points = Field(alias="advancePoints")

    @model_validator(mode="after")
    def _winner_above_advance(self) -> "GroupStageConfig":
        if self.winner_points <= self.advance_points:
            raise ValueError("winnerPoints must be greater than advancePoints")
        return self


EvaluatorConfig = Union[NoConfig, RankedScorerConfig, PositionFilterConfig, GroupStageConfig]

NO_CONFIG = NoConfig()

# Variant accepted for each kind when a non-empty config is supplied.
_CONFIG_VARIANTS: dict[EvaluatorKind, type[_ConfigModel]] = {
    EvaluatorKind.SCORER: RankedScorerConfig,
    EvaluatorKind.EXACT_PLAYER: PositionFilterConfig,
    EvaluatorKind.GROUP_STAGE_TEAM: GroupStageConfig,
}

_CONFIG_REQUIRED = frozenset({EvaluatorKind.GROUP_STAGE_TEAM})


def parse_config(
    kind: Union[EvaluatorKind, str], raw: Optional[Mapping[str, Any]]
) -> EvaluatorConfig:
    """Validate ``raw`` against the shape expected for ``kind``.

    Parameters
    ----------
    kind : EvaluatorKind | str
        Evaluator kind the config belongs to.
    raw : Optional[Mapping[str, Any]]
        Decoded JSON blob; ``None`` or ``{}`` means "no config".

    Returns
    -------
    EvaluatorConfig
        The typed variant for ``kind``.

    Raises
    ------
    InvalidEvaluatorConfigError
        If the kind is unknown, a required config is missing, or the blob
        does not match the expected shape.
    """

    parsed_kind = EvaluatorKind.parse(kind)
    if parsed_kind is None:
        raise InvalidEvaluatorConfigError(f"Unknown evaluator type '{kind}'")

    if raw is None or (isinstance(raw, Mapping) and not raw):
        if parsed_kind in _CONFIG_REQUIRED:
            raise InvalidEvaluatorConfigError(
                f"Evaluator type '{parsed_kind.value}' requires a config"
            )
        return NO_CONFIG

    if not isinstance(raw, Mapping):
        raise InvalidEvaluatorConfigError("config must be a JSON object")

    variant = _CONFIG_VARIANTS.get(parsed_kind)
    if variant is None:
        raise InvalidEvaluatorConfigError(
            f"Evaluator type '{parsed_kind.value}' does not accept a config"
        )
    try:
        return variant.model_validate(dict(raw))
    except ValidationError as exc:
        raise InvalidEvaluatorConfigError(_describe(parsed_kind, exc)) from exc


def _describe(kind: EvaluatorKind, exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return f"Invalid config for '{kind.value}': " + "; ".join(problems)


__all__ = [
    "EvaluatorConfig",
    "GroupStageConfig",
    "NO_CONFIG",
    "NoConfig",
    "PositionFilterConfig",
    "RankedScorerConfig",
    "parse_config",
]
