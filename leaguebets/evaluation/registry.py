"""Registry mapping evaluator kinds to their scoring functions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from . import evaluators as rules
from .config import (
    EvaluatorConfig,
    GroupStageConfig,
    NO_CONFIG,
    NoConfig,
    PositionFilterConfig,
    RankedScorerConfig,
)
from .types import EvaluatorEntity, EvaluatorKind, EvaluatorResult, PredictionContext


@dataclass(frozen=True)
class EvaluatorDefinition:
    """Definition of a scoring rule.

    Attributes
    ----------
    kind : EvaluatorKind
        Registry key. Matches ``Evaluator.kind`` stored in the database.
    entity : EvaluatorEntity
        Event class the rule applies to. Evaluators whose stored entity
        differs are skipped by the orchestrators.
    function : Callable
        Pure scoring function. Boolean rules take only the context; value
        rules (``returns_points=True``) take ``(context, config, points)``
        and return the points to award.
    returns_points : bool
        Whether ``function`` returns points rather than an awarded flag.
    config_types : tuple[type, ...]
        Config variants the rule understands.
    description : Optional[str]
        Human-readable summary of the rule.
    """

    kind: EvaluatorKind
    entity: EvaluatorEntity
    function: Callable[..., Union[bool, int]]
    returns_points: bool = False
    config_types: tuple[type, ...] = (NoConfig,)
    description: Optional[str] = None

    def evaluate(
        self,
        context: PredictionContext,
        *,
        points: int,
        config: EvaluatorConfig = NO_CONFIG,
        name: Optional[str] = None,
    ) -> EvaluatorResult:
        """Run the rule against ``context`` and return its raw result.

        Parameters
        ----------
        context : PredictionContext
            Prediction, actual result and auxiliary data for one bet.
        points : int
            Flat points configured on the evaluator.
        config : EvaluatorConfig, default: NO_CONFIG
            Parsed config variant.
        name : Optional[str], default: None
            Display name reported in the result; defaults to the kind.

        Returns
        -------
        EvaluatorResult
            ``awarded`` and ``points`` before exclusions and doubling.
        """
        if self.returns_points:
            value = self.function(context, config, points)
        else:
            value = self.function(context)

        # A scorer in simple mode is a value rule that answers with a bool.
        if isinstance(value, bool):
            awarded = value
            earned = points if value else 0
        else:
            earned = int(value)
            awarded = earned > 0
        return EvaluatorResult(
            evaluator_name=name or self.kind.value,
            kind=self.kind.value,
            awarded=awarded,
            points=earned,
        )


class EvaluatorRegistry:
    """Mutable registry mapping evaluator kinds to definitions."""

    def __init__(self) -> None:
        self._definitions: Dict[EvaluatorKind, EvaluatorDefinition] = {}

    def register(self, definition: EvaluatorDefinition, *, replace: bool = False) -> None:
        """Register ``definition`` under its kind.

        Raises :class:`ValueError` on a duplicate unless ``replace`` is set.
        """
        if not replace and definition.kind in self._definitions:
            raise ValueError(f"Evaluator '{definition.kind.value}' is already registered")
        self._definitions[definition.kind] = definition

    def get(self, kind: Union[EvaluatorKind, str]) -> EvaluatorDefinition:
        """Return the definition registered under ``kind``."""
        definition = self.lookup(kind)
        if definition is None:
            raise KeyError(f"Unknown evaluator type '{kind}'")
        return definition

    def lookup(self, kind: Union[EvaluatorKind, str]) -> Optional[EvaluatorDefinition]:
        """Like :meth:`get` but returns ``None`` for unknown kinds."""
        parsed = EvaluatorKind.parse(kind)
        if parsed is None:
            return None
        return self._definitions.get(parsed)

    def for_entity(self, entity: EvaluatorEntity) -> Dict[EvaluatorKind, EvaluatorDefinition]:
        return {k: d for k, d in self._definitions.items() if d.entity is entity}

    def available(self) -> Dict[EvaluatorKind, EvaluatorDefinition]:
        """Return a copy of the registered definitions keyed by kind."""
        return dict(self._definitions)


def _build_default_registry() -> EvaluatorRegistry:
    registry = EvaluatorRegistry()
    match, series = EvaluatorEntity.MATCH, EvaluatorEntity.SERIES
    special, question = EvaluatorEntity.SPECIAL, EvaluatorEntity.QUESTION
    definitions = [
        EvaluatorDefinition(
            EvaluatorKind.EXACT_SCORE, match, rules.exact_score,
            description="Predicted regulation score matches exactly.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.SCORE_DIFFERENCE, match, rules.score_difference,
            description="Predicted goal differential matches.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.ONE_TEAM_SCORE, match, rules.one_team_score,
            description="One side's goal count matches.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.WINNER, match, rules.winner,
            description="Predicted winner (or draw) matches, final score first.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.DRAW, match, rules.draw,
            description="Predicted a draw and the match was drawn.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.SCORER, match, rules.scorer,
            returns_points=True,
            config_types=(NoConfig, RankedScorerConfig),
            description="Picked player scored; rank-based payout when configured.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.SOCCER_PLAYOFF_ADVANCE, match, rules.soccer_playoff_advance,
            description="Picked the side that advanced from a playoff game.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.SERIES_EXACT, series, rules.series_exact,
            description="Predicted series result matches exactly.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.SERIES_WINNER, series, rules.series_winner,
            description="Predicted series winner matches.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.EXACT_TEAM, special, rules.exact_team,
            description="Predicted team is the result team.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.EXACT_PLAYER, special, rules.exact_player,
            config_types=(NoConfig, PositionFilterConfig),
            description="Predicted player is the result player.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.EXACT_VALUE, special, rules.exact_value,
            description="Predicted value equals the result value.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.CLOSEST_VALUE, special, rules.closest_value,
            returns_points=True,
            description="Prediction is among the closest in the cohort.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.GROUP_STAGE_TEAM, special, rules.group_stage_team,
            returns_points=True,
            config_types=(GroupStageConfig,),
            description="Group winner or advancing team, tiered points.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.GROUP_STAGE_ADVANCE, special, rules.group_stage_advance,
            description="Predicted team advanced from the group.",
        ),
        EvaluatorDefinition(
            EvaluatorKind.QUESTION, question, rules.question,
            returns_points=True,
            description="Correct answer earns points, a wrong one costs half.",
        ),
    ]
    for definition in definitions:
        registry.register(definition)
    return registry


DEFAULT_EVALUATOR_REGISTRY = _build_default_registry()

__all__ = [
    "DEFAULT_EVALUATOR_REGISTRY",
    "EvaluatorDefinition",
    "EvaluatorRegistry",
]
