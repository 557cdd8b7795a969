import unittest

from pydantic import ValidationError

from leaguebets.evaluation.config import (
    GroupStageConfig,
    NO_CONFIG,
    PositionFilterConfig,
    RankedScorerConfig,
    parse_config,
)
from leaguebets.evaluation.errors import InvalidEvaluatorConfigError
from leaguebets.evaluation.types import EvaluatorKind


class TestParseConfig(unittest.TestCase):
    def test_empty_config_is_no_config(self):
        self.assertIs(parse_config("exact_score", None), NO_CONFIG)
        self.assertIs(parse_config(EvaluatorKind.WINNER, {}), NO_CONFIG)
        self.assertIs(parse_config("scorer", None), NO_CONFIG)

    def test_ranked_scorer_shape(self):
        config = parse_config(
            "scorer", {"rankedPoints": {"1": 2, "2": 4}, "unrankedPoints": 8}
        )
        self.assertIsInstance(config, RankedScorerConfig)
        self.assertEqual(config.points_for(1), 2)
        self.assertEqual(config.points_for(2), 4)
        self.assertEqual(config.points_for(7), 8)
        self.assertEqual(config.points_for(None), 8)
        self.assertEqual(
            config.to_json(),
            {"rankedPoints": {"1": 2, "2": 4}, "unrankedPoints": 8},
        )

    def test_ranked_scorer_rejects_bad_values(self):
        bad = [
            {"rankedPoints": {"0": 2}, "unrankedPoints": 1},
            {"rankedPoints": {"first": 2}, "unrankedPoints": 1},
            {"rankedPoints": {"1": -1}, "unrankedPoints": 1},
            {"rankedPoints": {"1": True}, "unrankedPoints": 1},
            {"rankedPoints": {"1": 2}},
            {"rankedPoints": [2, 4], "unrankedPoints": 1},
            {"rankedPoints": {"1": 2}, "unrankedPoints": 1, "extra": 3},
        ]
        for raw in bad:
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidEvaluatorConfigError):
                    parse_config("scorer", raw)

    def test_position_filter(self):
        config = parse_config("exact_player", {"positions": ["G", " D "]})
        self.assertIsInstance(config, PositionFilterConfig)
        self.assertEqual(config.positions, ("G", "D"))
        self.assertEqual(config.to_json(), {"positions": ["G", "D"]})

        open_filter = parse_config("exact_player", {"positions": None})
        self.assertIsNone(open_filter.positions)
        self.assertEqual(open_filter.to_json(), {"positions": None})

        with self.assertRaises(InvalidEvaluatorConfigError):
            parse_config("exact_player", {"positions": []})
        with self.assertRaises(InvalidEvaluatorConfigError):
            parse_config("exact_player", {"positions": ["G", ""]})

    def test_group_stage_requires_winner_above_advance(self):
        config = parse_config("group_stage_team", {"winnerPoints": 10, "advancePoints": 5})
        self.assertEqual(config, GroupStageConfig(winner_points=10, advance_points=5))

        with self.assertRaises(InvalidEvaluatorConfigError):
            parse_config("group_stage_team", {"winnerPoints": 5, "advancePoints": 5})
        with self.assertRaises(InvalidEvaluatorConfigError):
            parse_config("group_stage_team", None)

    def test_error_names_offending_field(self):
        with self.assertRaises(InvalidEvaluatorConfigError) as ctx:
            parse_config("scorer", {"rankedPoints": {"1": 2}, "unrankedPoints": -3})
        self.assertIn("unrankedPoints", ctx.exception.message)
        self.assertIsInstance(ctx.exception.__cause__, ValidationError)

        with self.assertRaises(InvalidEvaluatorConfigError) as ctx:
            parse_config("group_stage_team", {"winnerPoints": 2, "advancePoints": 5})
        self.assertIn("greater than advancePoints", ctx.exception.message)

    def test_kind_without_variant_rejects_config(self):
        with self.assertRaises(InvalidEvaluatorConfigError):
            parse_config("exact_score", {"positions": ["G"]})

    def test_unknown_kind(self):
        with self.assertRaises(InvalidEvaluatorConfigError) as ctx:
            parse_config("lucky_guess", None)
        self.assertEqual(ctx.exception.code, "INVALID_CONFIG")
        self.assertIsInstance(ctx.exception, ValueError)

    def test_non_mapping_config(self):
        with self.assertRaises(InvalidEvaluatorConfigError):
            parse_config("scorer", ["rankedPoints"])


if __name__ == "__main__":
    unittest.main()
