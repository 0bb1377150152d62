import json
import click
from flask.cli import with_appcontext
from . import db, DEFAULT_SPICES
from .ai import MealPlanFormatError, validate_meal_plan
from .grocery import aggregate_grocery_list, grocery_list_to_text
from .models import Spice

@click.command('init-db')
@with_appcontext
def init_db_command():
    """Creates all database tables that do not exist yet."""
    db.create_all()
    click.echo("Database tables are up-to-date.")

@click.command('init-spices')
@with_appcontext
def init_spices_command():
    """Seeds the spice table with the common spices offered to users."""
    existing = {spice.name for spice in Spice.query.all()}

    added = 0
    for spice_data in DEFAULT_SPICES:
        if spice_data['name'] not in existing:
            db.session.add(Spice(name=spice_data['name'], category=spice_data['category'],
                                 is_common=spice_data['is_common']))
            added += 1

    if added > 0:
        db.session.commit()
        click.echo(f"Successfully added {added} new spices to the database.")
    else:
        click.echo("Spices are already up-to-date.")

@click.command('grocery-list')
@click.argument('plan_file', type=click.File('r'))
@click.option('--text/--json', 'as_text', default=True, help='Print a checklist (default) or the raw JSON list.')
def grocery_list_command(plan_file, as_text):
    """Aggregates the meal plan in PLAN_FILE into a grocery list."""
    try:
        plan = validate_meal_plan(json.load(plan_file))
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{plan_file.name} is not valid JSON: {e}")
    except MealPlanFormatError as e:
        raise click.ClickException(f"{plan_file.name} is not a meal plan: {e}")

    grocery_list = aggregate_grocery_list(plan)
    if as_text:
        click.echo(grocery_list_to_text(grocery_list), nl=False)
    else:
        click.echo(json.dumps(grocery_list, indent=2))
