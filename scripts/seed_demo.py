import logging
from datetime import datetime, timedelta, timezone

from leaguebets.db.engine import get_sessionmaker, make_engine
from leaguebets.evaluation import EvaluatorEntity
from leaguebets.models import (
    Base,
    League,
    LeagueMatch,
    Match,
    User,
    UserBet,
)
from leaguebets.workflows import (
    create_evaluator,
    enter_match_result,
    evaluate_and_log,
    record_scorer_ranking,
)


def main() -> None:
    """Seed a demo league, score one match and print the leaderboard."""
    logging.basicConfig(level=logging.INFO)
    engine = make_engine()

    # SQLite struggles with cyclic foreign keys during DROP.
    with engine.connect() as conn:
        if conn.dialect.name == "sqlite":
            conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        if conn.dialect.name == "sqlite":
            conn.exec_driver_sql("PRAGMA foreign_keys=ON")
        conn.commit()

    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    now = datetime.now(timezone.utc)
    kickoff = now - timedelta(hours=3)

    with Session.begin() as session:
        admin = User(username="admin", email="Admin@Example.com", is_admin=True)
        alice = User(username="alice", email="alice@example.com")
        bob = User(username="bob", email="bob@example.com")
        session.add_all([admin, alice, bob])

        league = League(name="Demo League", season_from=2025, season_to=2026)
        session.add(league)
        session.flush()

        create_evaluator(session, league, "exact_score", 5)
        create_evaluator(session, league, "score_difference", 3)
        create_evaluator(session, league, "one_team_score", 1)
        create_evaluator(session, league, "winner", 2)
        create_evaluator(
            session,
            league,
            "scorer",
            0,
            config={"rankedPoints": {"1": 2, "2": 4}, "unrankedPoints": 8},
        )

        record_scorer_ranking(session, league.id, 101, 1, kickoff - timedelta(days=7))
        record_scorer_ranking(session, league.id, 102, 2, kickoff - timedelta(days=7))

        match = Match(home_team_id=1, away_team_id=2, starts_at=kickoff)
        session.add(match)
        session.flush()
        fixture = LeagueMatch(league_id=league.id, match_id=match.id, is_doubled=False)
        session.add(fixture)
        session.flush()

        session.add_all(
            [
                UserBet(
                    league_match_id=fixture.id,
                    user_id=alice.id,
                    home_score=2,
                    away_score=1,
                    scorer_id=102,
                ),
                UserBet(
                    league_match_id=fixture.id,
                    user_id=bob.id,
                    home_score=3,
                    away_score=2,
                    scorer_id=999,
                ),
            ]
        )
        enter_match_result(
            session,
            match,
            home_regular_score=2,
            away_regular_score=1,
            scorer_ids=[101, 102],
        )
        match_id, fixture_id, admin_id = match.id, fixture.id, admin.id

    outcome = evaluate_and_log(
        Session,
        EvaluatorEntity.MATCH,
        match_id,
        league_match_id=fixture_id,
        admin_user_id=admin_id,
        invalidate=lambda tag: print(f"Invalidated cache tag {tag}"),
    )
    for result in outcome.results:
        print(f"user {result.user_id}: {result.total_points} points")
    print(outcome.summary)


if __name__ == "__main__":
    main()
