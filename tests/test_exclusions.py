import itertools
import unittest

from leaguebets.evaluation.exclusions import (
    EXCLUSION_TABLE,
    apply_exclusions,
    exclusions_for,
)
from leaguebets.evaluation.types import EvaluatorEntity, EvaluatorResult


def raw(kind, points):
    return EvaluatorResult(evaluator_name=kind, kind=kind, awarded=points > 0, points=points)


class TestExclusionTable(unittest.TestCase):
    def test_match_entries(self):
        table = exclusions_for(EvaluatorEntity.MATCH)
        self.assertEqual(table["score_difference"], frozenset({"exact_score"}))
        self.assertEqual(
            table["one_team_score"], frozenset({"exact_score", "score_difference"})
        )
        self.assertEqual(table["draw"], frozenset({"exact_score"}))
        self.assertNotIn("winner", table)

    def test_other_entities(self):
        self.assertEqual(
            exclusions_for(EvaluatorEntity.SERIES)["series_winner"],
            frozenset({"series_exact"}),
        )
        self.assertEqual(
            exclusions_for(EvaluatorEntity.SPECIAL)["closest_value"],
            frozenset({"exact_value"}),
        )
        self.assertEqual(dict(exclusions_for(EvaluatorEntity.QUESTION)), {})

    def test_table_is_read_only(self):
        with self.assertRaises(TypeError):
            EXCLUSION_TABLE[EvaluatorEntity.MATCH]["winner"] = frozenset()  # type: ignore[index]
        with self.assertRaises(TypeError):
            EXCLUSION_TABLE[EvaluatorEntity.QUESTION] = {}  # type: ignore[index]


class TestApplyExclusions(unittest.TestCase):
    def test_exact_score_suppresses_weaker_rules(self):
        results = [
            raw("exact_score", 5),
            raw("score_difference", 3),
            raw("one_team_score", 1),
            raw("winner", 2),
        ]
        final = {r.kind: r for r in apply_exclusions(results, EvaluatorEntity.MATCH)}
        self.assertEqual(final["exact_score"].points, 5)
        self.assertEqual(final["winner"].points, 2)
        for kind in ("score_difference", "one_team_score"):
            self.assertEqual(final[kind].points, 0)
            self.assertFalse(final[kind].awarded)
            self.assertTrue(final[kind].excluded)

    def test_score_difference_suppresses_one_team_score(self):
        results = [raw("exact_score", 0), raw("score_difference", 3), raw("one_team_score", 1)]
        final = {r.kind: r for r in apply_exclusions(results, EvaluatorEntity.MATCH)}
        self.assertEqual(final["score_difference"].points, 3)
        self.assertEqual(final["one_team_score"].points, 0)

    def test_unawarded_rules_are_not_marked_excluded(self):
        results = [raw("exact_score", 5), raw("score_difference", 0)]
        final = apply_exclusions(results, EvaluatorEntity.MATCH)
        self.assertFalse(final[1].excluded)

    def test_order_independence(self):
        results = [
            raw("exact_score", 5),
            raw("score_difference", 3),
            raw("one_team_score", 1),
            raw("draw", 2),
            raw("winner", 2),
        ]
        expected = sum(r.points for r in apply_exclusions(results, EvaluatorEntity.MATCH))
        self.assertEqual(expected, 7)
        for perm in itertools.permutations(results):
            final = apply_exclusions(perm, EvaluatorEntity.MATCH)
            self.assertEqual(sum(r.points for r in final), expected)
            self.assertEqual([r.kind for r in final], [r.kind for r in perm])

    def test_series_and_special(self):
        series = apply_exclusions(
            [raw("series_winner", 2), raw("series_exact", 5)], EvaluatorEntity.SERIES
        )
        self.assertEqual([r.points for r in series], [0, 5])
        special = apply_exclusions(
            [raw("closest_value", 3), raw("exact_value", 6)], EvaluatorEntity.SPECIAL
        )
        self.assertEqual([r.points for r in special], [0, 6])


if __name__ == "__main__":
    unittest.main()
