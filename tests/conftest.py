"""Pytest configuration and fixtures."""

# Tests never get a real OpenAI key: app.config ignores it when pytest is detected

from unittest.mock import MagicMock, Mock

import pytest
from sqlalchemy.orm import sessionmaker

from app.database import init_database, make_engine
from app.meal_analyzer import Configured, MealAnalyzer
from app.models import MealPlanSchedule, MealTemplate, User, UserMealPlan, UserQuestionnaire


def make_completion(content):
    """Build a fake chat completion response carrying ``content``."""
    message = Mock()
    message.content = content
    choice = Mock()
    choice.message = message
    response = Mock()
    response.choices = [choice]
    return response


def create_test_analyzer(content=None, side_effect=None, surface_provider_errors=False):
    """Helper to create a MealAnalyzer whose OpenAI client is a mock."""
    client = MagicMock()
    if side_effect is not None:
        client.chat.completions.create.side_effect = side_effect
    else:
        client.chat.completions.create.return_value = make_completion(content)
    analyzer = MealAnalyzer(
        Configured(client=client, model="gpt-4o"),
        surface_provider_errors=surface_provider_errors,
    )
    return analyzer, client


def create_test_template(
    name: str = "Chicken Bowl",
    calories: float = 500,
    protein_g: float = 35,
    ingredients: list | None = None,
    meal_timing: str = "LUNCH",
) -> MealTemplate:
    """Helper to create a MealTemplate with sensible defaults."""
    return MealTemplate(
        name=name,
        description=f"{name} description",
        meal_timing=meal_timing,
        dietary_category="BALANCED",
        prep_time_minutes=20,
        difficulty_level=2,
        calories=calories,
        protein_g=protein_g,
        carbs_g=40,
        fats_g=15,
        fiber_g=6,
        sugar_g=5,
        sodium_mg=450,
        ingredients_json=ingredients if ingredients is not None else [],
        instructions_json=["Cook", "Serve"],
        allergens_json=[],
        image_url=None,
    )


@pytest.fixture
def db_session():
    """Fresh in-memory database per test."""
    engine = make_engine("sqlite://")
    init_database(engine)
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def user(db_session):
    user = User(user_id="user-1", email="user1@example.com")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def questionnaire(db_session, user):
    questionnaire = UserQuestionnaire(user_id=user.user_id, dietary_style="balanced")
    db_session.add(questionnaire)
    db_session.commit()
    return questionnaire


@pytest.fixture
def plan_with_meals(db_session, user):
    """A plan with three scheduled meals sharing some ingredients."""
    plan = UserMealPlan(plan_id="plan-1", user_id=user.user_id, name="Week 1", is_active=False)
    bowl = create_test_template(
        name="Chicken Bowl",
        ingredients=[
            {"name": "Chicken", "quantity": 200, "unit": "g", "category": "protein"},
            {"name": "Rice", "quantity": 100, "unit": "g", "category": "grains"},
        ],
    )
    salad = create_test_template(
        name="Garden Salad",
        ingredients=[
            {"name": "rice", "quantity": 50, "unit": "g", "category": "grains"},
            {"name": "Tomato"},
        ],
    )
    db_session.add_all([plan, bowl, salad])
    db_session.flush()
    plan.schedules = [
        MealPlanSchedule(template_id=bowl.template_id, day_of_week=1, meal_timing="LUNCH", meal_order=1),
        MealPlanSchedule(template_id=salad.template_id, day_of_week=1, meal_timing="DINNER", meal_order=1),
        MealPlanSchedule(template_id=bowl.template_id, day_of_week=2, meal_timing="LUNCH", meal_order=1),
    ]
    db_session.commit()
    return plan
