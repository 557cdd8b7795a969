import unittest
from dataclasses import replace
from datetime import datetime, timezone

from leaguebets.evaluation import evaluators as rules
from leaguebets.evaluation.engine import (
    EvaluationEngine,
    evaluate_match,
    evaluate_question,
    evaluate_series,
    evaluate_special_bet,
    evaluate_special_bet_summary,
)
from leaguebets.evaluation.errors import (
    EvaluationConflictError,
    EventNotFoundError,
    MissingResultError,
    NoEvaluatorsError,
)
from leaguebets.evaluation.memory_repository import InMemoryEvaluationRepository
from leaguebets.evaluation.types import (
    BetRecord,
    EvaluatorEntity,
    EvaluatorRecord,
    EventSnapshot,
    MatchPrediction,
    MatchResult,
    QuestionPrediction,
    QuestionResult,
    SeriesPrediction,
    SeriesResult,
    SpecialPrediction,
    SpecialResult,
)

KICKOFF = datetime(2025, 3, 1, 18, 0, tzinfo=timezone.utc)
RANKED_SCORER = {"rankedPoints": {"1": 2, "2": 4}, "unrankedPoints": 8}


def evaluator(id, kind, points, entity="match", config=None, name=None):
    return EvaluatorRecord(
        id=id, kind=kind, entity=entity, points=points, name=name, config=config
    )


MATCH_EVALUATORS = (
    evaluator(1, "exact_score", 5),
    evaluator(2, "score_difference", 3),
    evaluator(3, "one_team_score", 1),
    evaluator(4, "winner", 2),
    evaluator(5, "scorer", 0, config=RANKED_SCORER),
)


def match_snapshot(*, bets, evaluators=MATCH_EVALUATORS, doubled=False, result=None, **kw):
    return EventSnapshot(
        entity=EvaluatorEntity.MATCH,
        event_id=10,
        league_id=1,
        starts_at=KICKOFF,
        result=result or MatchResult(2, 1, scorer_ids=(101, 102)),
        evaluators=tuple(evaluators),
        bets=tuple(bets),
        is_doubled=doubled,
        **kw,
    )


def match_bet(id, user_id, home, away, scorer_id=None):
    return BetRecord(id=id, user_id=user_id, prediction=MatchPrediction(home, away, scorer_id=scorer_id))


class MatchEngineTests(unittest.TestCase):
    def setUp(self):
        self.repo = InMemoryEvaluationRepository(rankings={1: {101: 1, 102: 2}})

    def test_exact_prediction_excludes_weaker_rules(self):
        self.repo.add_event(match_snapshot(bets=[match_bet(100, 1, 2, 1)]))
        [result] = evaluate_match(self.repo, 10, 500)

        by_kind = {r.kind: r for r in result.evaluator_results}
        self.assertTrue(by_kind["exact_score"].awarded)
        self.assertEqual(by_kind["score_difference"].points, 0)
        self.assertEqual(by_kind["one_team_score"].points, 0)
        self.assertTrue(by_kind["score_difference"].excluded)
        self.assertEqual(result.total_points, 5 + 2)
        self.assertEqual(self.repo.points[(EvaluatorEntity.MATCH, 100)], 7)

    def test_ranked_scorer_uses_rankings_once(self):
        result = MatchResult(2, 1, scorer_ids=(101, 102, 103))
        snapshot = match_snapshot(
            bets=[
                match_bet(100, 1, 0, 3, scorer_id=102),  # ranked #2
                match_bet(101, 2, 0, 3, scorer_id=101),  # ranked #1
                match_bet(102, 3, 0, 3, scorer_id=555),  # did not score
            ],
            result=result,
        )
        self.repo.add_event(snapshot)
        self.repo.add_event(
            replace(snapshot, event_id=11, bets=(match_bet(103, 4, 0, 3, scorer_id=103),))
        )

        results = evaluate_match(self.repo, 10, 500)
        self.assertEqual([r.total_points for r in results], [4, 2, 0])
        self.assertEqual(self.repo.ranking_lookups, 1)

        [unranked] = evaluate_match(self.repo, 11, 501)
        self.assertEqual(unranked.total_points, 8)

    def test_doubling_yields_twice_the_total(self):
        bets = [match_bet(100, 1, 2, 0, scorer_id=102), match_bet(101, 2, 2, 1, scorer_id=101)]
        plain = InMemoryEvaluationRepository(rankings={1: {101: 1, 102: 2}})
        plain.add_event(match_snapshot(bets=bets))
        doubled = InMemoryEvaluationRepository(rankings={1: {101: 1, 102: 2}})
        doubled.add_event(match_snapshot(bets=bets, doubled=True))

        base = [r.total_points for r in evaluate_match(plain, 10, 500)]
        twice = [r.total_points for r in evaluate_match(doubled, 10, 500)]
        self.assertTrue(all(t > 0 for t in base))
        self.assertEqual(twice, [2 * t for t in base])

    def test_second_full_run_conflicts(self):
        self.repo.add_event(match_snapshot(bets=[match_bet(100, 1, 2, 1)]))
        evaluate_match(self.repo, 10, 500)
        self.assertTrue(self.repo.is_evaluated(EvaluatorEntity.MATCH, 10))

        self.repo.points.clear()
        with self.assertRaises(EvaluationConflictError) as ctx:
            evaluate_match(self.repo, 10, 500)
        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(self.repo.points, {})

    def test_partial_run_leaves_event_unevaluated(self):
        self.repo.add_event(
            match_snapshot(bets=[match_bet(100, 1, 2, 1), match_bet(101, 2, 0, 0)])
        )
        results = evaluate_match(self.repo, 10, 500, user_id=2)
        self.assertEqual([r.user_id for r in results], [2])
        self.assertFalse(self.repo.is_evaluated(EvaluatorEntity.MATCH, 10))
        self.assertNotIn((EvaluatorEntity.MATCH, 100), self.repo.points)

        evaluate_match(self.repo, 10, 500)
        self.assertTrue(self.repo.is_evaluated(EvaluatorEntity.MATCH, 10))

    def test_missing_result(self):
        self.repo.add_event(
            match_snapshot(bets=[match_bet(100, 1, 2, 1)], result=MatchResult(2, None))
        )
        with self.assertRaises(MissingResultError) as ctx:
            evaluate_match(self.repo, 10, 500)
        self.assertEqual(ctx.exception.message, "Cannot evaluate match without results")
        self.assertEqual(ctx.exception.to_dict()["code"], "MISSING_RESULT")

    def test_no_evaluators(self):
        self.repo.add_event(match_snapshot(bets=[match_bet(100, 1, 2, 1)], evaluators=()))
        with self.assertRaises(NoEvaluatorsError) as ctx:
            evaluate_match(self.repo, 10, 500)
        self.assertEqual(ctx.exception.message, "No evaluators configured for this league")

    def test_unknown_event(self):
        with self.assertRaises(EventNotFoundError):
            evaluate_match(self.repo, 99, 500)

    def test_unknown_type_is_skipped_with_warning(self):
        evaluators = (evaluator(1, "exact_score", 5), evaluator(9, "lucky_guess", 50))
        self.repo.add_event(match_snapshot(bets=[match_bet(100, 1, 2, 1)], evaluators=evaluators))
        with self.assertLogs("leaguebets.evaluation.engine", level="WARNING") as logs:
            [result] = evaluate_match(self.repo, 10, 500)
        self.assertEqual(result.total_points, 5)
        self.assertEqual(len(result.evaluator_results), 1)
        self.assertTrue(any("lucky_guess" in line for line in logs.output))

    def test_wrong_entity_evaluator_is_skipped(self):
        evaluators = (
            evaluator(1, "exact_score", 5),
            evaluator(2, "series_exact", 5, entity="series"),
        )
        self.repo.add_event(match_snapshot(bets=[match_bet(100, 1, 2, 1)], evaluators=evaluators))
        with self.assertLogs("leaguebets.evaluation.engine", level="WARNING"):
            [result] = evaluate_match(self.repo, 10, 500)
        self.assertEqual(result.total_points, 5)

    def test_malformed_config_is_skipped_with_error(self):
        evaluators = (
            evaluator(1, "exact_score", 5),
            evaluator(5, "scorer", 0, config={"rankedPoints": "bad"}),
        )
        self.repo.add_event(
            match_snapshot(bets=[match_bet(100, 1, 2, 1, scorer_id=101)], evaluators=evaluators)
        )
        with self.assertLogs("leaguebets.evaluation.engine", level="ERROR") as logs:
            [result] = evaluate_match(self.repo, 10, 500)
        self.assertEqual(result.total_points, 5)
        self.assertTrue(any("malformed config" in line for line in logs.output))
        self.assertEqual(self.repo.ranking_lookups, 0)

    def test_custom_registry(self):
        from leaguebets.evaluation.registry import EvaluatorDefinition, EvaluatorRegistry
        from leaguebets.evaluation.types import EvaluatorKind

        registry = EvaluatorRegistry()
        registry.register(
            EvaluatorDefinition(EvaluatorKind.WINNER, EvaluatorEntity.MATCH, rules.winner)
        )
        self.repo.add_event(match_snapshot(bets=[match_bet(100, 1, 2, 1)]))
        with self.assertLogs("leaguebets.evaluation.engine", level="WARNING"):
            outcome = EvaluationEngine(self.repo, registry=registry).evaluate(
                EvaluatorEntity.MATCH, 10, league_match_id=500
            )
        self.assertEqual(outcome.total_points, 2)
        self.assertEqual(outcome.summary, "1 users evaluated, 2 total points awarded")
        self.assertEqual(
            outcome.to_dict(),
            {
                "success": True,
                "results": [
                    {
                        "userId": 1,
                        "totalPoints": 2,
                        "evaluatorResults": [
                            {"evaluatorName": "winner", "awarded": True, "points": 2}
                        ],
                    }
                ],
                "totalUsersEvaluated": 1,
            },
        )


class OtherEntityEngineTests(unittest.TestCase):
    def setUp(self):
        self.repo = InMemoryEvaluationRepository()

    def test_series(self):
        self.repo.add_event(
            EventSnapshot(
                entity=EvaluatorEntity.SERIES,
                event_id=20,
                league_id=1,
                starts_at=KICKOFF,
                result=SeriesResult(4, 2),
                evaluators=(
                    evaluator(1, "series_exact", 6, entity="series"),
                    evaluator(2, "series_winner", 2, entity="series"),
                ),
                bets=(
                    BetRecord(1, 1, SeriesPrediction(4, 2)),
                    BetRecord(2, 2, SeriesPrediction(4, 0)),
                    BetRecord(3, 3, SeriesPrediction(1, 4)),
                ),
                is_doubled=True,
            )
        )
        results = evaluate_series(self.repo, 20)
        self.assertEqual([r.total_points for r in results], [12, 4, 0])
        self.assertTrue(self.repo.is_evaluated(EvaluatorEntity.SERIES, 20))

    def _special(self, values, *, evaluators=None, actual=5.0):
        bets = tuple(
            BetRecord(i + 1, i + 1, SpecialPrediction(value=v)) for i, v in enumerate(values)
        )
        self.repo.add_event(
            EventSnapshot(
                entity=EvaluatorEntity.SPECIAL,
                event_id=30,
                league_id=1,
                starts_at=KICKOFF,
                result=SpecialResult(value=actual),
                evaluators=evaluators
                or (
                    evaluator(1, "exact_value", 10, entity="special"),
                    evaluator(2, "closest_value", 4, entity="special"),
                ),
                bets=bets,
                cohort_values=tuple(v for v in values if v is not None),
            )
        )

    def test_closest_value_cohort(self):
        self._special([3, 5, 5, 9], evaluators=(evaluator(2, "closest_value", 4, entity="special"),))
        results = evaluate_special_bet(self.repo, 30)
        self.assertEqual([r.total_points for r in results], [0, 4, 4, 0])

    def test_exact_value_excludes_closest_value(self):
        self._special([3, 5, 9])
        results = evaluate_special_bet(self.repo, 30)
        self.assertEqual([r.total_points for r in results], [0, 10, 0])

    def test_single_user_still_scans_full_cohort(self):
        self._special([2, 8, 20], evaluators=(evaluator(2, "closest_value", 4, entity="special"),))
        [result] = evaluate_special_bet(self.repo, 30, user_id=2)
        self.assertEqual(result.total_points, 4)
        [far] = evaluate_special_bet(self.repo, 30, user_id=3)
        self.assertEqual(far.total_points, 0)
        self.assertFalse(self.repo.is_evaluated(EvaluatorEntity.SPECIAL, 30))

    def test_special_summary(self):
        self._special([3, None, 9])
        self.assertEqual(evaluate_special_bet_summary(self.repo, 30), {"evaluatedBets": 3})

    def test_special_without_result(self):
        self._special([3], actual=None)
        with self.assertRaises(MissingResultError) as ctx:
            evaluate_special_bet(self.repo, 30)
        self.assertEqual(ctx.exception.message, "Cannot evaluate special bet without results")

    def test_question_penalty(self):
        self.repo.add_event(
            EventSnapshot(
                entity=EvaluatorEntity.QUESTION,
                event_id=40,
                league_id=1,
                starts_at=KICKOFF,
                result=QuestionResult(True),
                evaluators=(evaluator(1, "question", 6, entity="question"),),
                bets=(
                    BetRecord(1, 1, QuestionPrediction(True)),
                    BetRecord(2, 2, QuestionPrediction(False)),
                    BetRecord(3, 3, QuestionPrediction(None)),
                ),
            )
        )
        results = evaluate_question(self.repo, 40)
        self.assertEqual([r.total_points for r in results], [6, -3, 0])


if __name__ == "__main__":
    unittest.main()
