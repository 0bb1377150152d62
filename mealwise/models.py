from . import db
from flask_login import UserMixin
from datetime import datetime

class User(db.Model, UserMixin):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(150), unique=True, nullable=False)
    password = db.Column(db.String(150), nullable=False)
    display_name = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    meal_plans = db.relationship('MealPlan', backref='user', lazy=True, cascade="all, delete-orphan")
    shopping_lists = db.relationship('ShoppingList', backref='user', lazy=True, cascade="all, delete-orphan")
    recipes = db.relationship('Recipe', backref='user', lazy=True, cascade="all, delete-orphan")
    scheduled_meals = db.relationship('ScheduledMeal', backref='user', lazy=True, cascade="all, delete-orphan")
    diet_profile = db.relationship('DietProfile', backref='user', uselist=False, cascade="all, delete-orphan")

class MealPlan(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False, default='Meal Plan')
    description = db.Column(db.Text, nullable=True)
    people = db.Column(db.Integer, nullable=True)
    days = db.Column(db.Integer, nullable=True)
    meals_per_day = db.Column(db.Integer, nullable=True)
    plan = db.Column(db.JSON, nullable=False)
    # Aggregated once from `plan`; plans are never edited in place.
    grocery_list = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'people': self.people,
            'days': self.days,
            'meals_per_day': self.meals_per_day,
            'plan': self.plan,
            'grocery_list': self.grocery_list,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

class ShoppingList(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    name = db.Column(db.String(100), nullable=False, default='My Shopping List')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    items = db.relationship('ShoppingListItem', backref='shopping_list', lazy=True,
                            cascade="all, delete-orphan", order_by='ShoppingListItem.id')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'items': [item.to_dict() for item in self.items],
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

class ShoppingListItem(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    shopping_list_id = db.Column(db.Integer, db.ForeignKey('shopping_list.id'), nullable=False)
    item = db.Column(db.String(150), nullable=False)
    amount = db.Column(db.String(100), nullable=False, default='')
    category = db.Column(db.String(100), nullable=False, default='Other')
    checked = db.Column(db.Boolean, nullable=False, default=False)
    source_id = db.Column(db.String(64), nullable=True)
    source_type = db.Column(db.String(20), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'item': self.item,
            'amount': self.amount,
            'category': self.category,
            'checked': self.checked,
            'source_id': self.source_id,
            'source_type': self.source_type,
        }

class Recipe(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    ingredients = db.Column(db.JSON, nullable=False, default=list)
    instructions = db.Column(db.JSON, nullable=False, default=list)
    ingredients_input = db.Column(db.JSON, nullable=False, default=list)
    spices_used = db.Column(db.JSON, nullable=False, default=list)
    prep_time_minutes = db.Column(db.Integer, nullable=True)
    cook_time_minutes = db.Column(db.Integer, nullable=True)
    servings = db.Column(db.Integer, nullable=True)
    difficulty = db.Column(db.String(20), nullable=True)
    is_favorite = db.Column(db.Boolean, default=False, nullable=False)
    is_family_favorite = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def summary(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'prep_time_minutes': self.prep_time_minutes,
            'cook_time_minutes': self.cook_time_minutes,
            'servings': self.servings,
            'difficulty': self.difficulty,
        }

    def to_dict(self):
        data = self.summary()
        data.update({
            'ingredients': self.ingredients,
            'instructions': self.instructions,
            'ingredients_input': self.ingredients_input,
            'spices_used': self.spices_used,
            'is_favorite': self.is_favorite,
            'is_family_favorite': self.is_family_favorite,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        })
        return data

class ScheduledMeal(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    date = db.Column(db.Date, nullable=False)
    meal_type = db.Column(db.String(20), nullable=False)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id'), nullable=True)
    meal_plan_id = db.Column(db.Integer, db.ForeignKey('meal_plan.id'), nullable=True)
    custom_meal = db.Column(db.String(200), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    recipe = db.relationship('Recipe')

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'meal_type': self.meal_type,
            'recipe_id': self.recipe_id,
            'meal_plan_id': self.meal_plan_id,
            'custom_meal': self.custom_meal,
            'recipe': self.recipe.summary() if self.recipe else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

class DietProfile(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, unique=True)
    dietary_restrictions = db.Column(db.JSON, nullable=False, default=list)
    cuisine_preferences = db.Column(db.JSON, nullable=False, default=list)
    protein_preferences = db.Column(db.JSON, nullable=False, default=list)
    disliked_ingredients = db.Column(db.JSON, nullable=False, default=list)
    calorie_target = db.Column(db.Integer, nullable=True)
    kitchen_equipment = db.Column(db.JSON, nullable=False, default=list)
    budget_mode = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    LIST_FIELDS = ('dietary_restrictions', 'cuisine_preferences', 'protein_preferences',
                   'disliked_ingredients', 'kitchen_equipment')

    @classmethod
    def defaults(cls, user_id):
        data = {field: [] for field in cls.LIST_FIELDS}
        data.update({'user_id': user_id, 'calorie_target': None, 'budget_mode': False})
        return data

    def to_dict(self):
        data = {field: getattr(self, field) or [] for field in self.LIST_FIELDS}
        data.update({
            'id': self.id,
            'user_id': self.user_id,
            'calorie_target': self.calorie_target,
            'budget_mode': self.budget_mode,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        })
        return data

class Spice(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    category = db.Column(db.String(50), nullable=False, default='Basic')
    is_common = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'category': self.category, 'is_common': self.is_common}
