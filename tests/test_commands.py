"""
Tests for the flask CLI commands.
"""

import json

from tests.conftest import make_plan


def test_grocery_list_prints_checklist(app, tmp_path):
    plan_file = tmp_path / 'plan.json'
    plan_file.write_text(json.dumps(make_plan(
        [('lunch', [('Chicken Breast', '8 oz')]), ('dinner', [('chicken breast', '8 oz')])],
    )))

    result = app.test_cli_runner().invoke(args=['grocery-list', str(plan_file)])

    assert result.exit_code == 0
    assert 'PROTEINS' in result.output
    assert '[ ] 16 oz Chicken breast' in result.output


def test_grocery_list_json_output(app, tmp_path):
    plan_file = tmp_path / 'plan.json'
    plan_file.write_text(json.dumps(make_plan([('dinner', [('butter', '1/2 cup')])])))

    result = app.test_cli_runner().invoke(args=['grocery-list', '--json', str(plan_file)])

    assert result.exit_code == 0
    assert json.loads(result.output) == {'categories': [
        {'name': 'Dairy', 'items': [{'item': 'Butter', 'amount': '0.5 cup', 'category': 'Dairy'}]},
    ]}


def test_grocery_list_rejects_bad_json(app, tmp_path):
    plan_file = tmp_path / 'plan.json'
    plan_file.write_text('{not json')

    result = app.test_cli_runner().invoke(args=['grocery-list', str(plan_file)])

    assert result.exit_code != 0
    assert 'not valid JSON' in result.output


def test_init_db(app):
    result = app.test_cli_runner().invoke(args=['init-db'])

    assert result.exit_code == 0
    assert 'up-to-date' in result.output


def test_grocery_list_rejects_malformed_plan(app, tmp_path):
    plan_file = tmp_path / 'plan.json'
    plan_file.write_text(json.dumps({'days': [1]}))

    result = app.test_cli_runner().invoke(args=['grocery-list', str(plan_file)])

    assert result.exit_code == 1
    assert 'is not a meal plan' in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)


def test_init_spices_seeds_once(app):
    from mealwise.models import Spice

    first = app.test_cli_runner().invoke(args=['init-spices'])
    assert first.exit_code == 0
    assert 'added 20 new spices' in first.output
    assert Spice.query.count() == 20

    second = app.test_cli_runner().invoke(args=['init-spices'])
    assert 'already up-to-date' in second.output
    assert Spice.query.count() == 20
