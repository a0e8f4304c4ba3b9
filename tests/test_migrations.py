from pathlib import Path

from alembic import command
from alembic.config import Config
import condition_reports.config as app_config
from condition_reports.models.models import InspectionItem, Report
import sqlalchemy as sa

ROOT = Path(__file__).resolve().parents[1]


def test_initial_migration_matches_models(tmp_path, monkeypatch):
    db_path = tmp_path / "migrations.db"
    db_url = f"sqlite:///{db_path}"
    monkeypatch.setattr(app_config.settings, "database_url", db_url, raising=False)

    config = Config(str(ROOT / "condition_reports" / "alembic.ini"))
    config.set_main_option("script_location", str(ROOT / "condition_reports" / "migrations"))
    command.upgrade(config, "head")

    engine = sa.create_engine(db_url)
    try:
        inspector = sa.inspect(engine)
        tables = set(inspector.get_table_names())
        assert {"users", "properties", "reports", "rooms", "inspection_items", "activity_logs"} <= tables

        report_columns = {column["name"] for column in inspector.get_columns("reports")}
        assert {"status", "payment_status", "pdf_url", "finalized_at"} <= report_columns

        with sa.orm.Session(engine) as session:
            session.query(Report).all()
            session.query(InspectionItem).all()
    finally:
        engine.dispose()
