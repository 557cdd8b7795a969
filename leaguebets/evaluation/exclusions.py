"""Suppression of weaker rules when a stronger overlapping rule awarded.

The table is a code-level contract: admin tooling may display it but leagues
cannot change it.
"""

from __future__ import annotations

from dataclasses import replace
from types import MappingProxyType
from typing import Iterable, Mapping

from .types import EvaluatorEntity, EvaluatorKind, EvaluatorResult

K = EvaluatorKind

# weaker kind -> stronger kinds that void it when raw-awarded for the same bet
EXCLUSION_TABLE: Mapping[EvaluatorEntity, Mapping[str, frozenset[str]]] = MappingProxyType(
    {
        EvaluatorEntity.MATCH: MappingProxyType(
            {
                K.SCORE_DIFFERENCE.value: frozenset({K.EXACT_SCORE.value}),
                K.ONE_TEAM_SCORE.value: frozenset(
                    {K.EXACT_SCORE.value, K.SCORE_DIFFERENCE.value}
                ),
                K.DRAW.value: frozenset({K.EXACT_SCORE.value}),
            }
        ),
        EvaluatorEntity.SERIES: MappingProxyType(
            {K.SERIES_WINNER.value: frozenset({K.SERIES_EXACT.value})}
        ),
        EvaluatorEntity.SPECIAL: MappingProxyType(
            {K.CLOSEST_VALUE.value: frozenset({K.EXACT_VALUE.value})}
        ),
        EvaluatorEntity.QUESTION: MappingProxyType({}),
    }
)


def exclusions_for(entity: EvaluatorEntity) -> Mapping[str, frozenset[str]]:
    """Return the read-only exclusion mapping for ``entity``."""
    return EXCLUSION_TABLE.get(EvaluatorEntity(entity), MappingProxyType({}))


def apply_exclusions(
    raw_results: Iterable[EvaluatorResult], entity: EvaluatorEntity
) -> list[EvaluatorResult]:
    """Zero every raw result whose stronger rules awarded.

    All rules are evaluated before this pass, and the awarded set is taken
    from the raw results only, so the outcome does not depend on the order
    the rules ran in. Input order is preserved in the output.

    Parameters
    ----------
    raw_results : Iterable[EvaluatorResult]
        Results of every rule for one bet, before suppression.
    entity : EvaluatorEntity
        Event class selecting the exclusion mapping.

    Returns
    -------
    list[EvaluatorResult]
        Same results, with suppressed entries marked ``excluded`` and
        carrying no award and zero points.
    """
    results = list(raw_results)
    table = exclusions_for(entity)
    awarded = {r.kind for r in results if r.points > 0}

    final = []
    for result in results:
        stronger = table.get(result.kind)
        if result.points > 0 and stronger and stronger & awarded:
            final.append(replace(result, awarded=False, points=0, excluded=True))
        else:
            final.append(result)
    return final


__all__ = ["EXCLUSION_TABLE", "apply_exclusions", "exclusions_for"]
