"""
Integration tests for the JSON API using the Flask test client.
"""

import pytest

from mealwise import api as api_module, db
from mealwise.ai import MealPlanFormatError
from mealwise.models import MealPlan, User
from tests.conftest import make_plan


class TestAuth:

    def test_signup_and_login(self, client):
        response = client.post('/auth/signup', json={'email': 'Cook@Example.com', 'password': 'pw'})
        assert response.status_code == 201
        assert response.get_json()['email'] == 'cook@example.com'

        response = client.post('/auth/login', json={'email': 'cook@example.com', 'password': 'pw'})
        assert response.status_code == 200

        response = client.get('/auth/me')
        assert response.get_json()['email'] == 'cook@example.com'

    def test_duplicate_signup(self, client):
        client.post('/auth/signup', json={'email': 'a@example.com', 'password': 'pw'})
        response = client.post('/auth/signup', json={'email': 'a@example.com', 'password': 'pw'})
        assert response.status_code == 409

    def test_signup_requires_fields(self, client):
        assert client.post('/auth/signup', json={'email': 'a@example.com'}).status_code == 400

    def test_bad_password(self, client):
        client.post('/auth/signup', json={'email': 'a@example.com', 'password': 'pw'})
        response = client.post('/auth/login', json={'email': 'a@example.com', 'password': 'nope'})
        assert response.status_code == 401

    def test_api_requires_login(self, client):
        response = client.get('/api/meal-plans')
        assert response.status_code == 401
        assert response.get_json() == {'error': 'Unauthorized'}

    def test_logout(self, auth_client):
        assert auth_client.post('/auth/logout').status_code == 200
        assert auth_client.get('/api/meal-plans').status_code == 401


class TestMealPlans:

    def test_save_plan_stores_grocery_list(self, auth_client, sample_plan):
        response = auth_client.post('/api/meal-plans', json={'plan': sample_plan, 'people': 2})

        assert response.status_code == 201
        body = response.get_json()
        assert body['title'] == 'Test Plan'
        assert body['days'] == 2
        proteins = next(c for c in body['grocery_list']['categories'] if c['name'] == 'Proteins')
        assert {'item': 'Chicken breast', 'amount': '16 oz', 'category': 'Proteins'} in proteins['items']

    def test_save_rejects_malformed_plan(self, auth_client):
        response = auth_client.post('/api/meal-plans', json={'plan': {'days': []}})
        assert response.status_code == 400

    def test_list_get_and_delete(self, auth_client, sample_plan):
        plan_id = auth_client.post('/api/meal-plans', json={'plan': sample_plan}).get_json()['id']

        assert [p['id'] for p in auth_client.get('/api/meal-plans').get_json()] == [plan_id]
        assert auth_client.get(f'/api/meal-plans/{plan_id}').status_code == 200
        assert auth_client.delete(f'/api/meal-plans/{plan_id}').status_code == 200
        assert auth_client.get(f'/api/meal-plans/{plan_id}').status_code == 404

    def test_other_users_plans_are_hidden(self, app, auth_client, sample_plan):
        other = User(email='other@example.com', password='x')
        db.session.add(other)
        db.session.flush()
        plan = MealPlan(user_id=other.id, title='Theirs', plan=sample_plan)
        db.session.add(plan)
        db.session.commit()

        assert auth_client.get(f'/api/meal-plans/{plan.id}').status_code == 404
        assert auth_client.get(f'/api/meal-plans/{plan.id}/grocery-list').status_code == 404
        assert auth_client.get('/api/meal-plans').get_json() == []


class TestGeneratePlan:

    def test_generate_stores_plan(self, auth_client, monkeypatch, sample_plan):
        calls = []

        def fake_generate(family_size, days, meals, **kwargs):
            calls.append((family_size, days, meals, kwargs))
            return sample_plan

        monkeypatch.setattr(api_module, 'generate_meal_plan', fake_generate)
        response = auth_client.post('/api/meal-plans/generate', json={
            'familySize': 4, 'days': 2, 'meals': ['breakfast', 'lunch', 'dinner'],
            'allergies': ['peanuts'],
        })

        assert response.status_code == 201
        body = response.get_json()
        assert body['people'] == 4
        assert body['meals_per_day'] == 3
        assert body['grocery_list']['categories']
        assert calls[0][:3] == (4, 2, ['breakfast', 'lunch', 'dinner'])
        assert calls[0][3]['allergies'] == ['peanuts']

    @pytest.mark.parametrize('payload', [
        {'familySize': 0, 'days': 2, 'meals': ['dinner']},
        {'familySize': 2, 'days': 9, 'meals': ['dinner']},
        {'familySize': 2, 'days': 2, 'meals': []},
        {},
    ])
    def test_generate_validates_input(self, auth_client, payload):
        assert auth_client.post('/api/meal-plans/generate', json=payload).status_code == 400

    def test_generate_model_failure(self, auth_client, monkeypatch):
        def broken(*args, **kwargs):
            raise MealPlanFormatError("Model reply is not valid JSON")

        monkeypatch.setattr(api_module, 'generate_meal_plan', broken)
        response = auth_client.post('/api/meal-plans/generate',
                                    json={'familySize': 2, 'days': 2, 'meals': ['dinner']})

        assert response.status_code == 502
        assert MealPlan.query.count() == 0


class TestGroceryListEndpoint:

    def _store_plan(self, grocery_list=None):
        user = User.query.filter_by(email='cook@example.com').one()
        plan = MealPlan(user_id=user.id, title='Stored',
                        plan=make_plan([('dinner', [('butter', '1/2 cup')])]),
                        grocery_list=grocery_list)
        db.session.add(plan)
        db.session.commit()
        return plan.id

    def test_returns_cached_list(self, auth_client):
        cached = {'categories': [{'name': 'Cached', 'items': [
            {'item': 'Thing', 'amount': '1', 'category': 'Cached'}]}]}
        plan_id = self._store_plan(grocery_list=cached)

        assert auth_client.get(f'/api/meal-plans/{plan_id}/grocery-list').get_json() == cached

    def test_computes_and_stores_missing_list(self, auth_client):
        plan_id = self._store_plan()
        expected = {'categories': [{'name': 'Dairy', 'items': [
            {'item': 'Butter', 'amount': '0.5 cup', 'category': 'Dairy'}]}]}

        assert auth_client.get(f'/api/meal-plans/{plan_id}/grocery-list').get_json() == expected
        assert db.session.get(MealPlan, plan_id).grocery_list == expected

    def test_text_export(self, auth_client):
        plan_id = self._store_plan()
        response = auth_client.get(f'/api/meal-plans/{plan_id}/grocery-list.txt')

        assert response.status_code == 200
        assert response.mimetype == 'text/plain'
        assert 'grocery-list.txt' in response.headers['Content-Disposition']
        assert '[ ] 0.5 cup Butter' in response.get_data(as_text=True)


class TestShoppingList:

    def test_default_list_is_created_on_demand(self, auth_client):
        body = auth_client.get('/api/shopping-list').get_json()
        assert body['name'] == 'My Shopping List'
        assert body['items'] == []

    def test_add_items_skips_duplicates(self, auth_client):
        first = auth_client.post('/api/shopping-list/items', json={
            'items': [{'item': 'Butter', 'amount': '0.5 cup', 'category': 'Dairy'},
                      {'item': 'Lime', 'amount': '2'}],
            'source_id': 7, 'source_type': 'meal_plan',
        }).get_json()
        assert first['added'] == 2
        assert first['skipped'] == 0

        second = auth_client.post('/api/shopping-list/items', json={
            'items': [{'item': 'butter', 'amount': '1 cup'}, {'item': 'Rice', 'amount': '1 cup'}],
        }).get_json()
        assert second['added'] == 1
        assert second['skipped'] == 1

        items = {i['item']: i for i in second['list']['items']}
        assert set(items) == {'Butter', 'Lime', 'Rice'}
        assert items['Butter']['amount'] == '0.5 cup'
        assert items['Lime']['category'] == 'Other'
        assert items['Lime']['source_id'] == '7'
        assert items['Lime']['source_type'] == 'meal_plan'

    def test_add_items_skips_entries_without_a_text_name(self, auth_client):
        response = auth_client.post('/api/shopping-list/items', json={
            'items': [{'item': 5, 'amount': '1'}, 'Butter', {'amount': '2'},
                      {'item': 'Lime', 'amount': 2, 'category': 7}],
        })

        assert response.status_code == 200
        body = response.get_json()
        assert body['added'] == 1
        assert body['skipped'] == 3
        assert body['list']['items'][0]['item'] == 'Lime'
        assert body['list']['items'][0]['amount'] == '2'
        assert body['list']['items'][0]['category'] == 'Other'

    def test_add_items_requires_items(self, auth_client):
        assert auth_client.post('/api/shopping-list/items', json={'items': []}).status_code == 400
        assert auth_client.post('/api/shopping-list/items', json={}).status_code == 400

    def test_check_delete_and_clear(self, auth_client):
        items = auth_client.post('/api/shopping-list/items', json={
            'items': [{'item': 'Butter', 'amount': '1'}, {'item': 'Lime', 'amount': '2'},
                      {'item': 'Rice', 'amount': '3'}],
        }).get_json()['list']['items']
        butter, lime, rice = (i['id'] for i in items)

        assert auth_client.patch(f'/api/shopping-list/items/{butter}', json={}).get_json()['checked'] is True
        assert auth_client.patch(f'/api/shopping-list/items/{lime}', json={'checked': True}).get_json()['checked'] is True
        assert auth_client.delete(f'/api/shopping-list/items/{rice}').status_code == 200

        assert auth_client.delete('/api/shopping-list/checked').get_json()['removed'] == 2
        assert auth_client.get('/api/shopping-list').get_json()['items'] == []

    def test_missing_item(self, auth_client):
        assert auth_client.patch('/api/shopping-list/items/999', json={}).status_code == 404
