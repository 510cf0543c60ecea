import pytest
from sqlalchemy import inspect
from sqlalchemy.orm import sessionmaker

from app.database import init_database, make_engine, session_scope
from app.models import User


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    init_database(engine)
    yield engine
    engine.dispose()


def test_init_database_creates_tables(engine):
    tables = set(inspect(engine).get_table_names())

    assert {
        "users",
        "user_questionnaires",
        "user_meal_plans",
        "meal_templates",
        "meal_plan_schedules",
        "shopping_lists",
        "user_meal_preferences",
    } <= tables


def test_init_database_is_idempotent(engine):
    init_database(engine)


def test_session_scope_commits(engine):
    factory = sessionmaker(bind=engine)

    with session_scope(factory) as session:
        session.add(User(user_id="u1", email="u1@example.com"))

    with session_scope(factory) as session:
        assert session.get(User, "u1").email == "u1@example.com"


def test_session_scope_rolls_back_on_error(engine):
    factory = sessionmaker(bind=engine)

    with pytest.raises(RuntimeError):
        with session_scope(factory) as session:
            session.add(User(user_id="u2", email="u2@example.com"))
            session.flush()
            raise RuntimeError("boom")

    with session_scope(factory) as session:
        assert session.get(User, "u2") is None
