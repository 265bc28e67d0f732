from flask import Blueprint, jsonify

from gamenight import db
from gamenight.errors import NotFound
from gamenight.models import Game

games = Blueprint('games', __name__)


@games.route('/', methods=['GET'])
def list_games():
    """Active catalogue entries a host can pick from."""
    rows = Game.query.filter_by(is_active=True).order_by(Game.name).all()
    return jsonify([g.to_dict() for g in rows])


@games.route('/<int:game_id>', methods=['GET'])
def get_game(game_id):
    game = db.session.get(Game, game_id)
    if not game:
        raise NotFound('Game not found')
    return jsonify(game.to_dict())
