import json
import logging
import os

import google.generativeai as genai

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-2.5-pro'

try:
    genai.configure(api_key=os.getenv("GOOGLE_API_KEY"))
except Exception as e:
    logger.error(f"Error configuring Google AI: {e}")


class MealPlanFormatError(ValueError):
    """The model returned JSON that is not shaped like a meal plan."""


def _join_or_none(values):
    return ', '.join(values) if values else 'None'


def _whole_number(value):
    """Accepts ints and digit strings; rejects booleans and fractional numbers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def check_plan_request(family_size, days, meals):
    """Validates the user's plan request before any model call is made."""
    family_size, days = _whole_number(family_size), _whole_number(days)
    if family_size is None or days is None:
        raise ValueError("Family size and days must be whole numbers")
    if not 1 <= family_size <= 20:
        raise ValueError("Family size must be between 1 and 20")
    if not 1 <= days <= 7:
        raise ValueError("Days must be between 1 and 7")
    if not meals or not isinstance(meals, list):
        raise ValueError("At least one meal type required")
    return family_size, days, [str(m).lower() for m in meals]


def build_meal_plan_prompt(family_size, days, meals, allergies=None, exclusions=None, preferred_proteins=None,
                           dietary=None):
    slots = json.dumps(meals)
    return f"""
        You are an experienced home cook focused on practical, budget-friendly and delicious meals.
        Create a {days}-day meal plan with full recipes for a household of {family_size}.
        Meal types to include each day: {', '.join(meals)}.
        Protein preferences: {_join_or_none(preferred_proteins)}.
        Allergies (never use): {_join_or_none(allergies)}.
        Foods to exclude: {_join_or_none(exclusions)}.
        Dietary restrictions: {_join_or_none(dietary)}.

        Share ingredients across meals to reduce cost and use common pantry staples.
        Quantities must cover the whole household. Write every amount as a number
        followed by a unit, e.g. "8 oz", "1/2 cup", "2 cloves".

        Your output must be a single, valid JSON object with the following keys:
        - "title": A short title for the plan.
        - "description": One or two sentences describing the plan.
        - "days": An array of {days} objects, each with:
            - "day": A label such as "Day 1 - Monday".
            - "meals": An object whose keys are exactly {slots}. Each value is an object with
              "name", "description", "prep_time_minutes", "cook_time_minutes", "servings",
              "ingredients" (an array of objects with "item", "amount" and optional "note")
              and "instructions" (an array of step strings).
    """


def validate_meal_plan(data):
    """
    Checks that a decoded model reply is shaped like a meal plan.

    Only what the grocery aggregation reads is enforced: days, their meals and
    each meal's ingredient lines. Raises MealPlanFormatError on the first
    problem found and returns the plan unchanged otherwise.
    """
    if not isinstance(data, dict):
        raise MealPlanFormatError("Meal plan must be a JSON object")
    days = data.get('days')
    if not isinstance(days, list) or not days:
        raise MealPlanFormatError("Meal plan must contain a non-empty 'days' list")

    for day_index, day in enumerate(days):
        if not isinstance(day, dict):
            raise MealPlanFormatError(f"Day {day_index + 1} is not an object")
        meals = day.get('meals')
        if isinstance(meals, dict):
            meal_entries = meals.items()
        elif isinstance(meals, list):
            meal_entries = enumerate(meals)
        else:
            raise MealPlanFormatError(f"Day {day_index + 1} has no 'meals'")

        for slot, meal in meal_entries:
            if meal is None:
                continue
            if not isinstance(meal, dict):
                raise MealPlanFormatError(f"Meal '{slot}' on day {day_index + 1} is not an object")
            ingredients = meal.get('ingredients')
            if not isinstance(ingredients, list):
                raise MealPlanFormatError(f"Meal '{slot}' on day {day_index + 1} has no ingredient list")
            for line in ingredients:
                if not isinstance(line, dict) or not isinstance(line.get('item'), str) \
                        or not isinstance(line.get('amount'), str):
                    raise MealPlanFormatError(
                        f"Meal '{slot}' on day {day_index + 1} has an ingredient without 'item' and 'amount'")
    return data


def generate_meal_plan(family_size, days, meals, allergies=None, exclusions=None,
                       preferred_proteins=None, dietary=None, model_name=None):
    """Asks Gemini for a meal plan and returns the validated plan dict."""
    family_size, days, meals = check_plan_request(family_size, days, meals)
    prompt = build_meal_plan_prompt(family_size, days, meals, allergies, exclusions,
                                    preferred_proteins, dietary)

    model = genai.GenerativeModel(model_name or DEFAULT_MODEL)
    response = model.generate_content(
        prompt,
        generation_config=genai.types.GenerationConfig(
            response_mime_type="application/json"
        ),
        request_options={"timeout": 60}
    )
    try:
        plan_data = json.loads(response.text.strip())
    except json.JSONDecodeError as e:
        raise MealPlanFormatError(f"Model reply is not valid JSON: {e}") from e
    return validate_meal_plan(plan_data)
