from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from leaguebets.db.engine import make_engine
from leaguebets.models import Base

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _has_revisions() -> bool:
    versions = PROJECT_ROOT / "alembic" / "versions"
    return versions.is_dir() and any(versions.glob("*.py"))


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def create_schema() -> None:
    """Create every table directly from the models (no migration history yet)."""
    engine = make_engine()
    Base.metadata.create_all(engine)
    engine.dispose()


def print_tables() -> None:
    """Inspect the configured database and print all table names."""
    engine = make_engine()
    insp = inspect(engine)
    print("Current tables:", ", ".join(sorted(insp.get_table_names())))
    engine.dispose()


def main() -> None:
    """Bring the schema up to date and report the resulting tables."""
    if _has_revisions():
        upgrade_db()
    else:
        create_schema()
    print_tables()


if __name__ == "__main__":
    main()
