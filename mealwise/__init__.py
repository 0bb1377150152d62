import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_migrate import Migrate
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Initialize extensions
db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()

# Served by /api/spices until the spice table has been seeded
DEFAULT_SPICES = [
    {'id': 1, 'name': 'Salt', 'category': 'Basic', 'is_common': True},
    {'id': 2, 'name': 'Black Pepper', 'category': 'Basic', 'is_common': True},
    {'id': 3, 'name': 'Garlic Powder', 'category': 'Basic', 'is_common': True},
    {'id': 4, 'name': 'Onion Powder', 'category': 'Basic', 'is_common': True},
    {'id': 5, 'name': 'Paprika', 'category': 'Warm', 'is_common': True},
    {'id': 6, 'name': 'Cumin', 'category': 'Warm', 'is_common': True},
    {'id': 7, 'name': 'Chili Powder', 'category': 'Warm', 'is_common': True},
    {'id': 8, 'name': 'Cayenne', 'category': 'Warm', 'is_common': True},
    {'id': 9, 'name': 'Oregano', 'category': 'Herbs', 'is_common': True},
    {'id': 10, 'name': 'Basil', 'category': 'Herbs', 'is_common': True},
    {'id': 11, 'name': 'Thyme', 'category': 'Herbs', 'is_common': True},
    {'id': 12, 'name': 'Rosemary', 'category': 'Herbs', 'is_common': True},
    {'id': 13, 'name': 'Cinnamon', 'category': 'Sweet', 'is_common': True},
    {'id': 14, 'name': 'Nutmeg', 'category': 'Sweet', 'is_common': True},
    {'id': 15, 'name': 'Ginger', 'category': 'Asian', 'is_common': True},
    {'id': 16, 'name': 'Turmeric', 'category': 'Asian', 'is_common': True},
    {'id': 17, 'name': 'Curry Powder', 'category': 'Asian', 'is_common': True},
    {'id': 18, 'name': 'Italian Seasoning', 'category': 'Blends', 'is_common': True},
    {'id': 19, 'name': 'Taco Seasoning', 'category': 'Blends', 'is_common': True},
    {'id': 20, 'name': 'Everything Bagel', 'category': 'Blends', 'is_common': True},
]

def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__)

    # --- CONFIGURATION ---
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'a_default_secret_key_for_development')
    app.config['GEMINI_MODEL'] = os.getenv('GEMINI_MODEL', 'gemini-2.5-pro')

    database_url = os.getenv("DATABASE_URL")
    if database_url and database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    app.config['SQLALCHEMY_DATABASE_URI'] = database_url or 'sqlite:///mealwise.db'
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    if test_config:
        app.config.update(test_config)

    # --- INITIALIZE EXTENSIONS ---
    db.init_app(app)
    bcrypt.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    # --- BLUEPRINTS ---
    with app.app_context():
        # Import models here to avoid circular imports
        from . import models

        @login_manager.user_loader
        def load_user(user_id):
            return db.session.get(models.User, int(user_id))

        @login_manager.unauthorized_handler
        def unauthorized():
            return jsonify({'error': 'Unauthorized'}), 401

        # Import and register blueprints
        from .auth import auth as auth_blueprint
        app.register_blueprint(auth_blueprint, url_prefix='/auth')

        from .api import api as api_blueprint
        app.register_blueprint(api_blueprint, url_prefix='/api')

        from .commands import init_db_command, init_spices_command, grocery_list_command
        app.cli.add_command(init_db_command)
        app.cli.add_command(init_spices_command)
        app.cli.add_command(grocery_list_command)

        return app
