from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from gamenight.services import sessions as svc
from gamenight.services.dispatcher import apply_action

sessions = Blueprint('sessions', __name__)


def _body():
    return request.get_json(silent=True) or {}


@sessions.route('/create', methods=['POST'])
@login_required
def create_session():
    session = svc.create_session(current_user)
    return jsonify(session.to_dict()), 201


@sessions.route('/<int:session_id>', methods=['GET'])
def get_session(session_id):
    # Polled by every device; read-only
    return jsonify(svc.get_session(session_id).to_dict())


@sessions.route('/code/<string:code>', methods=['GET'])
def get_session_by_code(code):
    return jsonify(svc.get_session_by_code(code).to_dict())


@sessions.route('/user/<int:user_id>', methods=['GET'])
def get_sessions_by_user(user_id):
    return jsonify([s.to_dict() for s in svc.sessions_for_host(user_id)])


@sessions.route('/<int:session_id>', methods=['DELETE'])
@login_required
def delete_session(session_id):
    svc.delete_session(session_id, current_user)
    return jsonify({'message': 'Session deleted'})


@sessions.route('/join', methods=['POST'])
def join_session():
    data = _body()
    session = svc.join_session(
        data.get('code'),
        data.get('name'),
        user_id=data.get('userId'),
        un_id=data.get('unId'),
    )
    return jsonify(session.to_dict())


@sessions.route('/<int:session_id>/leave', methods=['POST'])
def leave_session(session_id):
    session = svc.leave_session(session_id, _body().get('playerName'))
    return jsonify(session.to_dict())


@sessions.route('/<int:session_id>/disconnect', methods=['POST'])
def disconnect_player(session_id):
    session = svc.disconnect_player(session_id, _body().get('playerName'))
    return jsonify(session.to_dict())


@sessions.route('/<int:session_id>/remove-player', methods=['POST'])
@login_required
def remove_player(session_id):
    session = svc.remove_player(session_id, _body().get('playerName'), current_user)
    return jsonify(session.to_dict())


@sessions.route('/<int:session_id>/update-player-name', methods=['POST'])
def update_player_name(session_id):
    data = _body()
    session = svc.rename_player(session_id, data.get('oldName'), data.get('newName'))
    return jsonify(session.to_dict())


@sessions.route('/<int:session_id>/status', methods=['POST'])
@login_required
def set_status(session_id):
    session = svc.set_status(session_id, _body().get('status'), current_user)
    return jsonify(session.to_dict())


@sessions.route('/<int:session_id>/select-game', methods=['POST'])
@login_required
def select_game(session_id):
    session = svc.select_game(session_id, _body().get('gameId'), current_user)
    return jsonify(session.to_dict())


@sessions.route('/<int:session_id>/start', methods=['POST'])
@login_required
def start_game(session_id):
    return jsonify(svc.start_game(session_id, current_user).to_dict())


@sessions.route('/<int:session_id>/end-game', methods=['POST'])
@login_required
def end_game(session_id):
    return jsonify(svc.end_game(session_id, current_user).to_dict())


@sessions.route('/<int:session_id>/game-action', methods=['POST'])
def game_action(session_id):
    data = _body()
    session = apply_action(
        session_id,
        data.get('action'),
        data.get('payload'),
        user=current_user,
        actor_id=data.get('actorId'),
        base_version=data.get('baseVersion'),
    )
    return jsonify(session.to_dict())
