"""
Meal plan, template, shopping list and preference models.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Application user; only the fields the meal-plan service touches."""

    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True)
    active_meal_plan_id = Column(String(36), nullable=True)

    meal_plans = relationship("UserMealPlan", back_populates="user")


class UserQuestionnaire(Base):
    """Onboarding questionnaire answers used to personalise plans"""

    __tablename__ = "user_questionnaires"

    questionnaire_id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    date_completed = Column(DateTime(timezone=True), default=_utcnow)
    dietary_style = Column(Text)
    allergies = Column(Text)
    answers_json = Column(JSON)


class UserMealPlan(Base):
    """A user's meal plan and its configuration"""

    __tablename__ = "user_meal_plans"

    plan_id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    plan_type = Column(String(32))
    meals_per_day = Column(Integer)
    snacks_per_day = Column(Integer)
    rotation_frequency_days = Column(Integer)
    include_leftovers = Column(Boolean, default=False)
    fixed_meal_times = Column(Boolean, default=False)
    dietary_preferences = Column(Text)  # comma-separated
    excluded_ingredients = Column(Text)  # comma-separated
    start_date = Column(DateTime(timezone=True))
    is_active = Column(Boolean, default=True)
    completed_at = Column(DateTime(timezone=True))
    rating = Column(Integer)
    feedback_liked = Column(Text)
    feedback_disliked = Column(Text)
    feedback_suggestions = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    user = relationship("User", back_populates="meal_plans")
    schedules = relationship(
        "MealPlanSchedule", back_populates="plan", cascade="all, delete-orphan"
    )


class MealTemplate(Base):
    """A reusable meal with nutrition, ingredients and instructions"""

    __tablename__ = "meal_templates"

    template_id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    description = Column(Text)
    meal_timing = Column(String(32))  # BREAKFAST, LUNCH, DINNER, SNACK...
    dietary_category = Column(String(32))
    prep_time_minutes = Column(Integer)
    difficulty_level = Column(Integer)
    calories = Column(Float)
    protein_g = Column(Float)
    carbs_g = Column(Float)
    fats_g = Column(Float)
    fiber_g = Column(Float)
    sugar_g = Column(Float)
    sodium_mg = Column(Float)
    ingredients_json = Column(JSON)  # [{"name", "quantity", "unit", "category"}]
    instructions_json = Column(JSON)
    allergens_json = Column(JSON)
    image_url = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class MealPlanSchedule(Base):
    """A template placed in a plan's day/meal slot"""

    __tablename__ = "meal_plan_schedules"

    schedule_id = Column(String(36), primary_key=True, default=_new_id)
    plan_id = Column(String(36), ForeignKey("user_meal_plans.plan_id", ondelete="CASCADE"), nullable=False)
    template_id = Column(String(36), ForeignKey("meal_templates.template_id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    meal_timing = Column(String(32), nullable=False)
    meal_order = Column(Integer, default=1)
    portion_multiplier = Column(Float, default=1.0)
    is_optional = Column(Boolean, default=False)

    plan = relationship("UserMealPlan", back_populates="schedules")
    template = relationship("MealTemplate")


class ShoppingList(Base):
    """Shopping lists generated from meal plans"""

    __tablename__ = "shopping_lists"

    list_id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    plan_id = Column(String(36), ForeignKey("user_meal_plans.plan_id", ondelete="SET NULL"))
    name = Column(Text, nullable=False)
    week_start_date = Column(DateTime(timezone=True))
    items_json = Column(JSON)
    total_estimated_cost = Column(Float, default=0)
    is_completed = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class UserMealPreference(Base):
    """A user's like/dislike/favourite mark on a meal template"""

    __tablename__ = "user_meal_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "template_id", "preference_type", name="uq_user_template_preference"),
    )

    preference_id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    template_id = Column(String(36), ForeignKey("meal_templates.template_id", ondelete="CASCADE"), nullable=False)
    preference_type = Column(String(32), nullable=False)  # favorite, dislike, rating...
    rating = Column(Integer)
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
