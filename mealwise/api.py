from datetime import date, datetime
from flask import Blueprint, jsonify, request, current_app, Response
from flask_login import current_user, login_required

from . import db, DEFAULT_SPICES
from .ai import MealPlanFormatError, check_plan_request, generate_meal_plan, validate_meal_plan
from .grocery import aggregate_grocery_list, grocery_list_to_text
from .models import (DietProfile, MealPlan, Recipe, ScheduledMeal, ShoppingList,
                     ShoppingListItem, Spice)

api = Blueprint('api', __name__)

def _get_plan_or_404(plan_id):
    return MealPlan.query.filter_by(id=plan_id, user_id=current_user.id).first_or_404()

def _plan_grocery_list(plan):
    """Returns the stored grocery list for a plan, aggregating and storing it on first use."""
    if plan.grocery_list is None:
        plan.grocery_list = aggregate_grocery_list(plan.plan)
        db.session.commit()
    return plan.grocery_list

def _new_meal_plan(plan_data, **fields):
    plan = MealPlan(
        user_id=current_user.id,
        title=fields.get('title') or plan_data.get('title') or 'Meal Plan',
        description=fields.get('description') or plan_data.get('description'),
        people=fields.get('people'),
        days=len(plan_data['days']),
        meals_per_day=fields.get('meals_per_day'),
        plan=plan_data,
        grocery_list=aggregate_grocery_list(plan_data),
    )
    db.session.add(plan)
    db.session.commit()
    return plan

# --- Meal plans ---

@api.route('/meal-plans/generate', methods=['POST'])
@login_required
def generate_plan():
    data = request.get_json(silent=True) or {}
    try:
        family_size, days, meals = check_plan_request(data.get('familySize'), data.get('days'), data.get('meals'))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    # The saved diet profile fills in whatever the request leaves out.
    profile = current_user.diet_profile
    try:
        plan_data = generate_meal_plan(
            family_size, days, meals,
            allergies=data.get('allergies') or [],
            exclusions=data.get('exclusions') or (profile.disliked_ingredients if profile else []),
            preferred_proteins=data.get('preferredProteins') or (profile.protein_preferences if profile else []),
            dietary=profile.dietary_restrictions if profile else [],
            model_name=current_app.config.get('GEMINI_MODEL'),
        )
        plan = _new_meal_plan(plan_data, people=family_size, meals_per_day=len(meals))
        return jsonify(plan.to_dict()), 201
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Meal plan generation failed for user {current_user.email}. Error: {e}", exc_info=True)
        return jsonify({'error': 'Failed to generate meal plan'}), 502

@api.route('/meal-plans', methods=['GET'])
@login_required
def list_plans():
    plans = MealPlan.query.filter_by(user_id=current_user.id).order_by(MealPlan.created_at.desc(), MealPlan.id.desc()).all()
    return jsonify([p.to_dict() for p in plans])

@api.route('/meal-plans', methods=['POST'])
@login_required
def save_plan():
    data = request.get_json(silent=True) or {}
    try:
        plan_data = validate_meal_plan(data.get('plan'))
    except MealPlanFormatError as e:
        return jsonify({'error': str(e)}), 400

    try:
        plan = _new_meal_plan(plan_data, title=data.get('title'), description=data.get('description'),
                              people=data.get('people'), meals_per_day=data.get('meals_per_day'))
        return jsonify(plan.to_dict()), 201
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Saving meal plan failed. Error: {e}", exc_info=True)
        return jsonify({'error': 'An error occurred while saving.'}), 500

@api.route('/meal-plans/<int:plan_id>', methods=['GET'])
@login_required
def get_plan(plan_id):
    return jsonify(_get_plan_or_404(plan_id).to_dict())

@api.route('/meal-plans/<int:plan_id>', methods=['DELETE'])
@login_required
def delete_plan(plan_id):
    plan = _get_plan_or_404(plan_id)
    ScheduledMeal.query.filter_by(meal_plan_id=plan.id).update({'meal_plan_id': None})
    db.session.delete(plan)
    db.session.commit()
    return jsonify({'success': True})

@api.route('/meal-plans/<int:plan_id>/grocery-list', methods=['GET'])
@login_required
def plan_grocery_list(plan_id):
    return jsonify(_plan_grocery_list(_get_plan_or_404(plan_id)))

@api.route('/meal-plans/<int:plan_id>/grocery-list.txt', methods=['GET'])
@login_required
def plan_grocery_list_text(plan_id):
    text = grocery_list_to_text(_plan_grocery_list(_get_plan_or_404(plan_id)))
    return Response(text, mimetype='text/plain',
                    headers={'Content-Disposition': 'attachment; filename=grocery-list.txt'})

# --- Shopping list ---

def _default_shopping_list():
    shopping_list = ShoppingList.query.filter_by(user_id=current_user.id)\
        .order_by(ShoppingList.updated_at.desc(), ShoppingList.id.desc()).first()
    if not shopping_list:
        shopping_list = ShoppingList(user_id=current_user.id, name='My Shopping List')
        db.session.add(shopping_list)
        db.session.flush()
    return shopping_list

def _get_item_or_404(item_id):
    return ShoppingListItem.query.join(ShoppingList)\
        .filter(ShoppingListItem.id == item_id, ShoppingList.user_id == current_user.id).first_or_404()

@api.route('/shopping-list', methods=['GET'])
@login_required
def get_shopping_list():
    shopping_list = _default_shopping_list()
    db.session.commit()
    return jsonify(shopping_list.to_dict())

@api.route('/shopping-list/items', methods=['POST'])
@login_required
def add_shopping_items():
    data = request.get_json(silent=True) or {}
    items = data.get('items')
    if not items or not isinstance(items, list):
        return jsonify({'error': 'Items required'}), 400

    try:
        shopping_list = _default_shopping_list()
        existing_names = {i.item.lower() for i in shopping_list.items}
        added = skipped = 0
        for item_data in items:
            name = item_data.get('item') if isinstance(item_data, dict) else None
            name = name.strip() if isinstance(name, str) else ''
            if not name or name.lower() in existing_names:
                skipped += 1
                continue
            existing_names.add(name.lower())
            amount, category = item_data.get('amount'), item_data.get('category')
            shopping_list.items.append(ShoppingListItem(
                item=name,
                amount=str(amount) if amount is not None else '',
                category=category if isinstance(category, str) and category else 'Other',
                source_id=str(data['source_id']) if data.get('source_id') is not None else None,
                source_type=data.get('source_type'),
            ))
            added += 1

        shopping_list.updated_at = datetime.utcnow()
        db.session.commit()
        return jsonify({'list': shopping_list.to_dict(), 'added': added, 'skipped': skipped})
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Adding shopping list items failed. Error: {e}", exc_info=True)
        return jsonify({'error': 'An error occurred while updating the list.'}), 500

@api.route('/shopping-list/items/<int:item_id>', methods=['PATCH'])
@login_required
def update_shopping_item(item_id):
    item = _get_item_or_404(item_id)
    data = request.get_json(silent=True) or {}
    checked = data.get('checked')
    item.checked = (not item.checked) if checked is None else bool(checked)
    item.shopping_list.updated_at = datetime.utcnow()
    db.session.commit()
    return jsonify(item.to_dict())

@api.route('/shopping-list/items/<int:item_id>', methods=['DELETE'])
@login_required
def delete_shopping_item(item_id):
    item = _get_item_or_404(item_id)
    db.session.delete(item)
    db.session.commit()
    return jsonify({'success': True})

@api.route('/shopping-list/checked', methods=['DELETE'])
@login_required
def clear_checked_items():
    shopping_list = _default_shopping_list()
    removed = 0
    for item in list(shopping_list.items):
        if item.checked:
            db.session.delete(item)
            removed += 1
    db.session.commit()
    return jsonify({'success': True, 'removed': removed})

# --- Saved recipes ---

DIFFICULTIES = ('easy', 'medium', 'hard')

def _optional_int(data, key):
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{key}' must be a whole number")
    return value

def _string_list(data, key):
    value = data.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return value

def _get_recipe_or_404(recipe_id):
    return Recipe.query.filter_by(id=recipe_id, user_id=current_user.id).first_or_404()

@api.route('/recipes', methods=['GET'])
@login_required
def list_recipes():
    recipes = Recipe.query.filter_by(user_id=current_user.id).order_by(Recipe.created_at.desc(), Recipe.id.desc()).all()
    return jsonify([r.to_dict() for r in recipes])

@api.route('/recipes', methods=['POST'])
@login_required
def save_recipe():
    data = request.get_json(silent=True) or {}
    title = data.get('title')
    if not isinstance(title, str) or not title.strip():
        return jsonify({'error': 'Recipe title is required.'}), 400

    ingredients = data.get('ingredients') or []
    if not isinstance(ingredients, list) or not all(
            isinstance(i, dict) and isinstance(i.get('item'), str) and isinstance(i.get('amount'), str)
            for i in ingredients):
        return jsonify({'error': "Ingredients must be a list of objects with 'item' and 'amount'."}), 400

    difficulty = data.get('difficulty')
    if difficulty is not None and difficulty not in DIFFICULTIES:
        return jsonify({'error': f"Difficulty must be one of {', '.join(DIFFICULTIES)}."}), 400

    try:
        recipe = Recipe(
            user_id=current_user.id,
            title=title.strip(),
            description=data.get('description'),
            ingredients=ingredients,
            instructions=_string_list(data, 'instructions'),
            ingredients_input=_string_list(data, 'ingredients_input'),
            spices_used=_string_list(data, 'spices_used'),
            prep_time_minutes=_optional_int(data, 'prep_time_minutes'),
            cook_time_minutes=_optional_int(data, 'cook_time_minutes'),
            servings=_optional_int(data, 'servings'),
            difficulty=difficulty,
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    db.session.add(recipe)
    db.session.commit()
    return jsonify(recipe.to_dict()), 201

@api.route('/recipes/<int:recipe_id>', methods=['GET'])
@login_required
def get_recipe(recipe_id):
    return jsonify(_get_recipe_or_404(recipe_id).to_dict())

@api.route('/recipes/<int:recipe_id>', methods=['DELETE'])
@login_required
def delete_recipe(recipe_id):
    recipe = _get_recipe_or_404(recipe_id)
    ScheduledMeal.query.filter_by(recipe_id=recipe.id).update({'recipe_id': None})
    db.session.delete(recipe)
    db.session.commit()
    return jsonify({'success': True})

@api.route('/recipes/<int:recipe_id>/favorite', methods=['POST'])
@login_required
def toggle_favorite(recipe_id):
    recipe = _get_recipe_or_404(recipe_id)
    data = request.get_json(silent=True) or {}
    if data.get('family'):
        recipe.is_family_favorite = not recipe.is_family_favorite
    else:
        recipe.is_favorite = not recipe.is_favorite
    db.session.commit()
    return jsonify({'is_favorite': recipe.is_favorite, 'is_family_favorite': recipe.is_family_favorite})

@api.route('/recipes/<int:recipe_id>/grocery-list', methods=['GET'])
@login_required
def recipe_grocery_list(recipe_id):
    recipe = _get_recipe_or_404(recipe_id)
    plan = {'days': [{'day': recipe.title, 'meals': [{'name': recipe.title, 'ingredients': recipe.ingredients}]}]}
    return jsonify(aggregate_grocery_list(plan))

# --- Calendar ---

MEAL_TYPES = ('breakfast', 'lunch', 'dinner', 'snack')

def _parse_date(value, field):
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{field}' must be a date in YYYY-MM-DD format")

def _owned_id(model, data, key):
    """Returns the id in data[key] after checking the row belongs to the current user."""
    row_id = _optional_int(data, key)
    if row_id and not model.query.filter_by(id=row_id, user_id=current_user.id).first():
        raise ValueError(f"'{key}' does not match any of your saved items")
    return row_id or None

def _apply_schedule_fields(meal, data):
    """Copies the fields present in `data` onto a scheduled meal, validating each one."""
    if 'date' in data:
        meal.date = _parse_date(data['date'], 'date')
    if 'meal_type' in data:
        if data['meal_type'] not in MEAL_TYPES:
            raise ValueError(f"'meal_type' must be one of {', '.join(MEAL_TYPES)}")
        meal.meal_type = data['meal_type']
    if 'recipe_id' in data:
        meal.recipe_id = _owned_id(Recipe, data, 'recipe_id')
    if 'meal_plan_id' in data:
        meal.meal_plan_id = _owned_id(MealPlan, data, 'meal_plan_id')
    if 'custom_meal' in data:
        custom_meal = data['custom_meal']
        if custom_meal is not None and not isinstance(custom_meal, str):
            raise ValueError("'custom_meal' must be text")
        meal.custom_meal = custom_meal or None

@api.route('/scheduled-meals', methods=['GET'])
@login_required
def list_scheduled_meals():
    query = ScheduledMeal.query.filter_by(user_id=current_user.id)
    try:
        if request.args.get('start'):
            query = query.filter(ScheduledMeal.date >= _parse_date(request.args['start'], 'start'))
        if request.args.get('end'):
            query = query.filter(ScheduledMeal.date <= _parse_date(request.args['end'], 'end'))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    meals = query.order_by(ScheduledMeal.date, ScheduledMeal.id).all()
    return jsonify([m.to_dict() for m in meals])

@api.route('/scheduled-meals', methods=['POST'])
@login_required
def schedule_meal():
    data = request.get_json(silent=True) or {}
    if not data.get('date') or not data.get('meal_type'):
        return jsonify({'error': 'Date and meal_type required'}), 400

    meal = ScheduledMeal(user_id=current_user.id)
    try:
        _apply_schedule_fields(meal, data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    db.session.add(meal)
    db.session.commit()
    return jsonify(meal.to_dict()), 201

@api.route('/scheduled-meals/<int:meal_id>', methods=['PATCH'])
@login_required
def update_scheduled_meal(meal_id):
    meal = ScheduledMeal.query.filter_by(id=meal_id, user_id=current_user.id).first_or_404()
    try:
        _apply_schedule_fields(meal, request.get_json(silent=True) or {})
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    db.session.commit()
    return jsonify(meal.to_dict())

@api.route('/scheduled-meals/<int:meal_id>', methods=['DELETE'])
@login_required
def delete_scheduled_meal(meal_id):
    meal = ScheduledMeal.query.filter_by(id=meal_id, user_id=current_user.id).first_or_404()
    db.session.delete(meal)
    db.session.commit()
    return jsonify({'success': True})

# --- Diet profile ---

@api.route('/diet-profile', methods=['GET'])
@login_required
def get_diet_profile():
    profile = current_user.diet_profile
    return jsonify(profile.to_dict() if profile else DietProfile.defaults(current_user.id))

@api.route('/diet-profile', methods=['POST'])
@login_required
def save_diet_profile():
    data = request.get_json(silent=True) or {}
    try:
        fields = {field: _string_list(data, field) for field in DietProfile.LIST_FIELDS}
        fields['calorie_target'] = _optional_int(data, 'calorie_target') or None
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    fields['budget_mode'] = bool(data.get('budget_mode'))

    profile = current_user.diet_profile or DietProfile(user_id=current_user.id)
    for field, value in fields.items():
        setattr(profile, field, value)
    profile.updated_at = datetime.utcnow()
    db.session.add(profile)
    db.session.commit()
    return jsonify(profile.to_dict())

# --- Spices ---

@api.route('/spices', methods=['GET'])
def list_spices():
    spices = Spice.query.order_by(Spice.category, Spice.name).all()
    if not spices:
        return jsonify(DEFAULT_SPICES)
    return jsonify([s.to_dict() for s in spices])
