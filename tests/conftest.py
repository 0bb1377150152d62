"""
Pytest configuration and shared fixtures.
"""

import pytest

from mealwise import create_app, db


@pytest.fixture
def app():
    """A fresh application backed by an in-memory SQLite database."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test_secret_key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'BCRYPT_LOG_ROUNDS': 4,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    """Client with a signed-up and logged-in user."""
    client.post('/auth/signup', json={'email': 'cook@example.com', 'password': 'secret'})
    response = client.post('/auth/login', json={'email': 'cook@example.com', 'password': 'secret'})
    assert response.status_code == 200
    return client


def make_plan(*days):
    """Builds a plan dict from lists of (slot, [(item, amount), ...]) tuples per day."""
    return {
        'title': 'Test Plan',
        'days': [
            {
                'day': f'Day {index + 1}',
                'meals': {
                    slot: {
                        'name': f'{slot} meal',
                        'ingredients': [{'item': item, 'amount': amount} for item, amount in lines],
                        'instructions': ['Cook it'],
                    }
                    for slot, lines in meals
                },
            }
            for index, meals in enumerate(days)
        ],
    }


@pytest.fixture
def sample_plan():
    return make_plan(
        [('breakfast', [('Eggs', '4'), ('Butter', '1/2 cup')]),
         ('dinner', [('Chicken Breast', '8 oz'), ('Olive Oil', '2 tbsp')])],
        [('lunch', [('chicken breast', '8 oz'), ('Flour', '1 cup')]),
         ('dinner', [('flour', '200 g'), ('Salt', 'to taste')])],
    )
