import importlib
import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from alembic import command
from alembic.config import Config

ALEMBIC_INI = Path(__file__).resolve().parents[1] / "alembic.ini"


def _setup_app(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    os.environ["SECRET_KEY"] = "test-secret"

    import app.comptoir.core.config as config
    import app.comptoir.db.session as session
    import app.main as main

    importlib.reload(config)
    importlib.reload(session)
    importlib.reload(main)

    return main.create_app(), session


def run_migrations(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


@pytest.fixture()
def client(tmp_path: Path):
    database_url = f"sqlite+pysqlite:///{tmp_path / 'test.db'}"
    run_migrations(database_url)
    app, session = _setup_app(database_url)

    with TestClient(app) as client:
        yield client

    session.engine.dispose()


@pytest.fixture()
def db_session(client):
    from app.comptoir.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
