from flask import Blueprint, current_app, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from gamenight import db
from gamenight.models import User

main = Blueprint('main', __name__)


@main.route('/')
def index():
    cfg = current_app.config
    # Devices read their polling cadence and retry budget from here
    return jsonify({
        'message': 'Welcome to the Game Night server!',
        'client': {
            'hostPollIntervalSec': cfg.get('HOST_POLL_INTERVAL_SEC', 2),
            'gamePollIntervalSec': cfg.get('GAME_POLL_INTERVAL_SEC', 1),
            'roundIntroDelaySec': cfg.get('ROUND_INTRO_DELAY_SEC', 5),
            'staleWriteRetries': cfg.get('STALE_WRITE_RETRIES', 3),
        },
    })


@main.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    if not data.get('username') or not data.get('password'):
        return jsonify({'error': 'Missing username or password'}), 400

    if User.query.filter_by(username=data['username']).first():
        return jsonify({'error': 'Username already exists'}), 400

    user = User(username=data['username'])
    user.set_password(data['password'])
    db.session.add(user)
    db.session.commit()
    login_user(user, remember=True)

    return jsonify({'message': 'User created successfully', 'user': user.to_dict()}), 201


@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = User.query.filter_by(username=data.get('username')).first()
    if user and user.check_password(data.get('password') or ''):
        login_user(user, remember=True)
        return jsonify({'message': 'Logged in successfully.', 'user': user.to_dict()})
    return jsonify({'error': 'Invalid username or password'}), 401


@main.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({'user': current_user.to_dict()})


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})
