"""Meal plan creation, meal replacement, shopping lists and plan bookkeeping."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.models import (
    MealPlanSchedule,
    MealTemplate,
    ShoppingList,
    User,
    UserMealPlan,
    UserMealPreference,
    UserQuestionnaire,
)
from app.shopping_list import aggregate_ingredients

logger = logging.getLogger(__name__)


class MealPlanError(Exception):
    """Base class for meal plan service errors."""
    pass


class QuestionnaireNotFoundError(MealPlanError):
    """Raised when a user has not completed the questionnaire."""
    pass


class MealPlanNotFoundError(MealPlanError):
    """Raised when a plan does not exist or belongs to another user."""
    pass


class ScheduleNotFoundError(MealPlanError):
    """Raised when no meal is scheduled in the requested slot."""
    pass


class UserNotFoundError(MealPlanError):
    """Raised when the user row does not exist."""
    pass


@dataclass
class UserMealPlanConfig:
    name: str
    plan_type: str = "WEEKLY"
    meals_per_day: int = 3
    snacks_per_day: int = 0
    rotation_frequency_days: int = 7
    include_leftovers: bool = False
    fixed_meal_times: bool = False
    dietary_preferences: list[str] = field(default_factory=list)
    excluded_ingredients: list[str] = field(default_factory=list)


@dataclass
class PlanFeedback:
    rating: int | None = None
    liked: str | None = None
    disliked: str | None = None
    suggestions: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_week_start(week_start_date: str | date | datetime) -> datetime:
    if isinstance(week_start_date, datetime):
        return week_start_date
    if isinstance(week_start_date, date):
        return datetime(week_start_date.year, week_start_date.month, week_start_date.day)
    return datetime.fromisoformat(week_start_date)


class MealPlanService:
    """Meal plan operations on top of a SQLAlchemy session.

    The service flushes and commits through the session it is given; callers
    own the session's lifetime (see `app.database.session_scope`).
    """

    def __init__(self, session: Session):
        self.session = session

    def create_user_meal_plan(self, user_id: str, plan_config: UserMealPlanConfig) -> UserMealPlan:
        """Create an active meal plan for a user who completed the questionnaire.

        Raises:
            QuestionnaireNotFoundError: If the user has no questionnaire
        """
        logger.info("Creating meal plan", extra={"user_id": user_id, "plan_name": plan_config.name})

        questionnaire = self.session.scalars(
            select(UserQuestionnaire)
            .where(UserQuestionnaire.user_id == user_id)
            .order_by(UserQuestionnaire.date_completed.desc())
            .limit(1)
        ).first()
        if questionnaire is None:
            raise QuestionnaireNotFoundError(
                "User questionnaire not found. Please complete the questionnaire first."
            )

        plan = UserMealPlan(
            user_id=user_id,
            name=plan_config.name,
            plan_type=plan_config.plan_type,
            meals_per_day=plan_config.meals_per_day,
            snacks_per_day=plan_config.snacks_per_day,
            rotation_frequency_days=plan_config.rotation_frequency_days,
            include_leftovers=plan_config.include_leftovers,
            fixed_meal_times=plan_config.fixed_meal_times,
            dietary_preferences=", ".join(plan_config.dietary_preferences),
            excluded_ingredients=", ".join(plan_config.excluded_ingredients),
            start_date=_utcnow(),
            is_active=True,
        )
        self._commit(plan, action="create meal plan")
        logger.info("Meal plan created", extra={"plan_id": plan.plan_id})
        return plan

    def replace_meal_in_plan(
        self,
        user_id: str,
        plan_id: str,
        day_of_week: int,
        meal_timing: str,
        meal_order: int,
        preferences: dict[str, Any] | None = None,
    ) -> MealPlanSchedule:
        """Swap the meal in one slot for an alternative copy of its template.

        Raises:
            ScheduleNotFoundError: If nothing is scheduled in the slot
        """
        logger.info(
            "Replacing meal in plan",
            extra={
                "plan_id": plan_id,
                "day_of_week": day_of_week,
                "meal_timing": meal_timing,
                "meal_order": meal_order,
            },
        )

        schedule = self.session.scalars(
            select(MealPlanSchedule)
            .options(selectinload(MealPlanSchedule.template))
            .where(
                MealPlanSchedule.plan_id == plan_id,
                MealPlanSchedule.day_of_week == day_of_week,
                MealPlanSchedule.meal_timing == meal_timing,
                MealPlanSchedule.meal_order == meal_order,
            )
        ).first()
        if schedule is None:
            raise ScheduleNotFoundError("Meal schedule not found")

        new_template = self._replacement_template(schedule.template, preferences or {})
        schedule.template = new_template
        self._commit(schedule, action="replace meal")

        logger.info(
            "Meal replaced",
            extra={"schedule_id": schedule.schedule_id, "template_id": new_template.template_id},
        )
        return schedule

    def generate_shopping_list(
        self,
        user_id: str,
        plan_id: str,
        week_start_date: str | date | datetime,
    ) -> ShoppingList:
        """Aggregate every scheduled meal's ingredients into a saved shopping list.

        Raises:
            MealPlanNotFoundError: If the plan is missing or not the user's
        """
        logger.info("Generating shopping list", extra={"plan_id": plan_id})

        plan = self.session.scalars(
            select(UserMealPlan)
            .options(selectinload(UserMealPlan.schedules).selectinload(MealPlanSchedule.template))
            .where(UserMealPlan.plan_id == plan_id, UserMealPlan.user_id == user_id)
        ).first()
        if plan is None:
            raise MealPlanNotFoundError("Meal plan not found")

        aggregated = aggregate_ingredients(
            schedule.template.ingredients_json for schedule in plan.schedules
        )

        shopping_list = ShoppingList(
            user_id=user_id,
            plan_id=plan_id,
            name=f"Shopping List - {plan.name}",
            week_start_date=_parse_week_start(week_start_date),
            items_json=aggregated.to_json(),
            total_estimated_cost=aggregated.total_estimated_cost,
        )
        self._commit(shopping_list, action="generate shopping list")
        logger.info(
            "Shopping list generated",
            extra={"list_id": shopping_list.list_id, "item_count": len(aggregated.items)},
        )
        return shopping_list

    def save_meal_preference(
        self,
        user_id: str,
        template_id: str,
        preference_type: str,
        rating: int | None = None,
        notes: str | None = None,
    ) -> UserMealPreference:
        """Create or update the user's preference of this type for a template."""
        preference = self.session.scalars(
            select(UserMealPreference).where(
                UserMealPreference.user_id == user_id,
                UserMealPreference.template_id == template_id,
                UserMealPreference.preference_type == preference_type,
            )
        ).first()

        if preference is None:
            preference = UserMealPreference(
                user_id=user_id,
                template_id=template_id,
                preference_type=preference_type,
            )
        preference.rating = rating
        preference.notes = notes

        self._commit(preference, action="save meal preference")
        return preference

    def activate_plan(self, user_id: str, plan_id: str) -> UserMealPlan:
        """Mark a plan active and make it the user's current plan.

        Raises:
            MealPlanNotFoundError: If the plan does not exist
        """
        plan = self.session.get(UserMealPlan, plan_id)
        if plan is None:
            raise MealPlanNotFoundError("Meal plan not found")

        plan.is_active = True
        self._user(user_id).active_meal_plan_id = plan_id
        self._commit(plan, action="activate plan")
        logger.info("Meal plan activated", extra={"user_id": user_id, "plan_id": plan_id})
        return plan

    def deactivate_user_plans(self, user_id: str) -> None:
        """Deactivate all of a user's plans and clear their current plan."""
        user = self._user(user_id)
        self.session.execute(
            update(UserMealPlan).where(UserMealPlan.user_id == user_id).values(is_active=False)
        )
        user.active_meal_plan_id = None
        self._commit(action="deactivate user plans")

    def complete_plan(self, user_id: str, plan_id: str, feedback: PlanFeedback) -> dict[str, str]:
        """Close a plan and record the user's feedback on it.

        Raises:
            MealPlanNotFoundError: If the plan does not exist
        """
        plan = self.session.get(UserMealPlan, plan_id)
        if plan is None:
            raise MealPlanNotFoundError("Meal plan not found")

        plan.completed_at = _utcnow()
        plan.rating = feedback.rating
        plan.feedback_liked = feedback.liked
        plan.feedback_disliked = feedback.disliked
        plan.feedback_suggestions = feedback.suggestions
        plan.is_active = False
        self._commit(plan, action="complete plan")

        return {"message": "Plan completed successfully"}

    def save_plan_feedback(
        self,
        user_id: str,
        plan_id: str,
        rating: int | None = None,
        liked: str | None = None,
        disliked: str | None = None,
        suggestions: str | None = None,
    ) -> None:
        self.session.execute(
            update(UserMealPlan)
            .where(UserMealPlan.plan_id == plan_id, UserMealPlan.user_id == user_id)
            .values(
                rating=rating,
                feedback_liked=liked,
                feedback_disliked=disliked,
                feedback_suggestions=suggestions,
            )
        )
        self._commit(action="save plan feedback")

    def deactivate_meal_plan(self, user_id: str, plan_id: str) -> None:
        """Deactivate one plan, clearing the user's current plan if it was this one."""
        self.session.execute(
            update(UserMealPlan)
            .where(UserMealPlan.plan_id == plan_id, UserMealPlan.user_id == user_id)
            .values(is_active=False)
        )

        user = self.session.get(User, user_id)
        if user is not None and user.active_meal_plan_id == plan_id:
            user.active_meal_plan_id = None
        self._commit(action="deactivate meal plan")

    def _replacement_template(self, current: MealTemplate, preferences: dict[str, Any]) -> MealTemplate:
        """Copy ``current`` as a new "(Alternative)" template."""
        logger.debug(
            "Creating replacement template",
            extra={"template_id": current.template_id, "preferences": preferences},
        )
        template = MealTemplate(
            name=f"{current.name} (Alternative)",
            description=current.description,
            meal_timing=current.meal_timing,
            dietary_category=current.dietary_category,
            prep_time_minutes=current.prep_time_minutes,
            difficulty_level=current.difficulty_level,
            calories=current.calories,
            protein_g=current.protein_g,
            carbs_g=current.carbs_g,
            fats_g=current.fats_g,
            fiber_g=current.fiber_g,
            sugar_g=current.sugar_g,
            sodium_mg=current.sodium_mg,
            ingredients_json=current.ingredients_json,
            instructions_json=current.instructions_json,
            allergens_json=current.allergens_json,
            image_url=current.image_url,
            is_active=True,
        )
        self.session.add(template)
        return template

    def _user(self, user_id: str) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(f"User not found: {user_id}")
        return user

    def _commit(self, entity: Any = None, action: str = "") -> None:
        try:
            if entity is not None:
                self.session.add(entity)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Database error", extra={"action": action})
            raise
        if entity is not None:
            self.session.refresh(entity)
