from gamenight import db, bcrypt
from flask import current_app
from flask_login import UserMixin
from datetime import datetime, timezone
import copy
import string
import random

SESSION_STATUSES = ('lobby', 'selectGame', 'settings', 'playing', 'ended')
CODE_ALPHABET = string.ascii_uppercase + string.digits


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Game(db.Model):
    """Catalogue entry for a game a session can select."""
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    min_players = db.Column(db.Integer, nullable=False, default=1)
    max_players = db.Column(db.Integer, nullable=False, default=10)
    image = db.Column(db.String(256), nullable=True)
    # {"initialState": {...}, "initialPhase": "..."}
    config = db.Column(db.JSON, nullable=False, default=dict)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self):
        return {
            'id': self.id,
            'slug': self.slug,
            'name': self.name,
            'description': self.description,
            'minPlayers': self.min_players,
            'maxPlayers': self.max_players,
            'image': self.image,
            'config': self.config or {},
            'isActive': self.is_active,
        }


def generate_session_code(length=None, attempts=None):
    """Generate a short join code not used by any other session."""
    length = length or int(current_app.config.get('SESSION_CODE_LENGTH', 4))
    attempts = attempts or int(current_app.config.get('SESSION_CODE_ATTEMPTS', 10))
    for _ in range(attempts):
        code = ''.join(random.choices(CODE_ALPHABET, k=length))
        if not GameSession.query.filter_by(code=code).first():
            return code
    raise RuntimeError(f'No free session code after {attempts} attempts')


def player_identity(player):
    """The id a player is known by inside game payloads."""
    return player.get('userId') or player.get('unId')


class GameSession(db.Model):
    """The shared session document every host and player device polls."""
    __tablename__ = 'game_session'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(8), unique=True, nullable=False, index=True)
    host_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default='lobby')
    # Ordered list of {userId?, unId?, name, connected, joinedAt}; order is join order
    players = db.Column(db.JSON, nullable=False, default=list)
    selected_game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=True)
    # {type, data, round, scores, phase}; present iff selected_game_id is set
    game_state = db.Column(db.JSON, nullable=True)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    selected_game = db.relationship('Game')

    # Every UPDATE is guarded by and bumps the version column
    __mapper_args__ = {'version_id_col': version}

    def __init__(self, **kwargs):
        super(GameSession, self).__init__(**kwargs)
        if not self.code:
            self.code = generate_session_code()
        if self.players is None:
            self.players = []

    def player_list(self):
        """A private copy of the players list, safe to mutate and reassign."""
        return copy.deepcopy(self.players or [])

    def game_state_copy(self):
        return copy.deepcopy(self.game_state) if self.game_state is not None else None

    def touch(self):
        # Forces an UPDATE (and a version bump) even when the JSON is unchanged
        self.updated_at = _utcnow()

    def player_ids(self):
        return [player_identity(p) for p in (self.players or [])]

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'hostId': str(self.host_id),
            'status': self.status,
            'players': self.player_list(),
            'selectedGameId': self.selected_game_id,
            'gameState': self.game_state_copy(),
            'version': self.version,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


def seed_game_catalogue():
    """Create or refresh one catalogue row per registered game."""
    from gamenight.games import registered_games
    rows = []
    for module in registered_games():
        entry = module.catalogue_entry()
        row = Game.query.filter_by(slug=entry['slug']).first() or Game(slug=entry['slug'])
        row.name = entry['name']
        row.description = entry['description']
        row.min_players = entry['minPlayers']
        row.max_players = entry['maxPlayers']
        row.config = entry['config']
        row.is_active = True
        db.session.add(row)
        rows.append(row)
    return rows
