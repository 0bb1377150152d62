from flask import Blueprint, jsonify, request, current_app
from flask_login import login_user, logout_user, login_required, current_user
from . import db, bcrypt
from .models import User

auth = Blueprint('auth', __name__)

def _credentials():
    data = request.get_json(silent=True) or {}
    return (data.get('email') or '').strip().lower(), data.get('password') or ''

@auth.route('/signup', methods=['POST'])
def signup():
    email, password = _credentials()
    if not email or not password:
        return jsonify({'error': 'Email and password are required.'}), 400
    if User.query.filter_by(email=email).first():
        return jsonify({'error': 'Email address already in use.'}), 409

    hashed_password = bcrypt.generate_password_hash(password).decode('utf-8')
    user = User(email=email, password=hashed_password, display_name=email.split('@')[0])
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"New account created for {email}")
    return jsonify({'id': user.id, 'email': user.email}), 201

@auth.route('/login', methods=['POST'])
def login():
    email, password = _credentials()
    user = User.query.filter_by(email=email).first()
    if user and bcrypt.check_password_hash(user.password, password):
        login_user(user, remember=True)
        return jsonify({'id': user.id, 'email': user.email})
    return jsonify({'error': 'Login unsuccessful. Please check email and password.'}), 401

@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})

@auth.route('/me')
@login_required
def me():
    return jsonify({'id': current_user.id, 'email': current_user.email, 'display_name': current_user.display_name})
