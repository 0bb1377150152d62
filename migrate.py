import sys
import os

print("--- Starting migration script ---")

# Make the project root importable regardless of the working directory.
project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, project_root)

from mealwise import create_app
from flask_migrate import upgrade

app = create_app()

with app.app_context():
    print("Applying database migrations...")
    upgrade()
    print("--- Migration script finished ---")
