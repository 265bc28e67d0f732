"""Session document lifecycle: create, join, leave, rename, select and start.

Every function loads the session, validates, mutates a private copy of the
embedded JSON, reassigns it and commits once. Validation failures raise from
``gamenight.errors`` before anything is written.
"""

import copy
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from gamenight import db
from gamenight.errors import Forbidden, NotFound, StaleWrite, ValidationConflict
from gamenight.models import SESSION_STATUSES, Game, GameSession, player_identity

NAVIGABLE_STATUSES = ('lobby', 'selectGame', 'settings')


def get_session(session_id) -> GameSession:
    session = db.session.get(GameSession, session_id)
    if not session:
        raise NotFound('Session not found')
    return session


def get_session_by_code(code: str) -> GameSession:
    session = GameSession.query.filter_by(code=(code or '').strip().upper()).first()
    if not session:
        raise NotFound('Session not found')
    return session


def sessions_for_host(user_id: int):
    return GameSession.query.filter_by(host_id=user_id).order_by(GameSession.created_at.desc()).all()


def is_host(session: GameSession, user) -> bool:
    return bool(user is not None and getattr(user, 'is_authenticated', False) and user.id == session.host_id)


def require_host(session: GameSession, user) -> None:
    if not current_app.config.get('ENFORCE_ROLES', True):
        return
    if not is_host(session, user):
        raise Forbidden('Only the session host may do that')


def commit(session: GameSession) -> GameSession:
    """Flush a mutated session; a concurrent writer surfaces as StaleWrite."""
    session.touch()
    db.session.add(session)
    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        current_app.logger.info(f"[stale-write] session={session.id} concurrent update lost the race")
        raise StaleWrite()
    return session


def _name_taken(players, name, ignore_index=None):
    lowered = name.lower()
    return any(
        p['name'].lower() == lowered
        for i, p in enumerate(players)
        if i != ignore_index
    )


def create_session(host) -> GameSession:
    session = GameSession(host_id=host.id)
    db.session.add(session)
    db.session.commit()
    current_app.logger.info(f"[session-create] session={session.id} code={session.code} host={host.id}")
    return session


def join_session(code, name, user_id=None, un_id=None) -> GameSession:
    name = (name or '').strip()
    if not name or not (user_id or un_id):
        raise ValidationConflict('Name and a player identity are required')
    session = get_session_by_code(code)
    if session.status == 'ended':
        raise ValidationConflict('This session has ended')

    user_id = str(user_id) if user_id else None
    players = session.player_list()
    existing = None
    for index, p in enumerate(players):
        if (user_id and p.get('userId') == user_id) or (un_id and p.get('unId') == un_id):
            existing = index
            break

    if existing is not None:
        # Rejoin: same slot, possibly a new display name
        if _name_taken(players, name, ignore_index=existing):
            raise ValidationConflict('Name already taken in this session')
        players[existing]['name'] = name
        players[existing]['connected'] = True
        current_app.logger.info(f"[rejoin] session={session.id} player={player_identity(players[existing])}")
    else:
        if _name_taken(players, name):
            raise ValidationConflict('Name already taken in this session')
        player = {
            'name': name,
            'connected': True,
            'joinedAt': datetime.now(timezone.utc).isoformat(),
        }
        if user_id:
            player['userId'] = user_id
        if un_id:
            player['unId'] = un_id
        players.append(player)
        current_app.logger.info(f"[join] session={session.id} player={player_identity(player)} count={len(players)}")

    session.players = players
    return commit(session)


def _drop_player(session: GameSession, player_name: str) -> GameSession:
    players = session.player_list()
    remaining = [p for p in players if p['name'] != player_name]
    if len(remaining) == len(players):
        raise NotFound('Player not found')
    session.players = remaining
    return commit(session)


def leave_session(session_id, player_name) -> GameSession:
    session = get_session(session_id)
    current_app.logger.info(f"[leave] session={session.id} name={player_name}")
    return _drop_player(session, player_name)


def remove_player(session_id, player_name, user) -> GameSession:
    session = get_session(session_id)
    require_host(session, user)
    current_app.logger.info(f"[remove-player] session={session.id} name={player_name}")
    return _drop_player(session, player_name)


def disconnect_player(session_id, player_name) -> GameSession:
    session = get_session(session_id)
    players = session.player_list()
    for p in players:
        if p['name'] == player_name:
            p['connected'] = False
            break
    else:
        raise NotFound('Player not found')
    session.players = players
    return commit(session)


def rename_player(session_id, old_name, new_name) -> GameSession:
    new_name = (new_name or '').strip()
    if not new_name:
        raise ValidationConflict('A new name is required')
    session = get_session(session_id)
    players = session.player_list()
    index = next((i for i, p in enumerate(players) if p['name'] == old_name), None)
    if index is None:
        raise NotFound('Player not found')
    if _name_taken(players, new_name, ignore_index=index):
        raise ValidationConflict('Name already taken in this session')
    players[index]['name'] = new_name
    session.players = players
    return commit(session)


def set_status(session_id, status, user) -> GameSession:
    session = get_session(session_id)
    require_host(session, user)
    if status not in SESSION_STATUSES:
        raise ValidationConflict(f'Unknown status {status!r}')
    if status not in NAVIGABLE_STATUSES:
        raise ValidationConflict(f'Use start or end-game to move a session to {status!r}')
    session.status = status
    return commit(session)


def select_game(session_id, game_id, user) -> GameSession:
    session = get_session(session_id)
    require_host(session, user)
    try:
        game = db.session.get(Game, int(game_id))
    except (TypeError, ValueError):
        game = None
    if not game or not game.is_active:
        raise NotFound('Game not found')

    connected = [p for p in (session.players or []) if p.get('connected', True)]
    if not game.min_players <= len(connected) <= game.max_players:
        raise ValidationConflict(
            f'{game.name} needs between {game.min_players} and {game.max_players} players '
            f'({len(connected)} connected)'
        )

    config = game.config or {}
    session.selected_game_id = game.id
    session.game_state = {
        'type': game.slug,
        'data': copy.deepcopy(config.get('initialState') or {}),
        'round': 0,
        'scores': {},
        'phase': config.get('initialPhase'),
    }
    session.status = 'settings'
    current_app.logger.info(f"[select-game] session={session.id} game={game.slug}")
    return commit(session)


def start_game(session_id, user) -> GameSession:
    session = get_session(session_id)
    require_host(session, user)
    if not session.selected_game_id or session.game_state is None:
        raise ValidationConflict('Select a game before starting')
    session.status = 'playing'
    current_app.logger.info(f"[start] session={session.id} game={session.game_state.get('type')}")
    return commit(session)


def end_game(session_id, user) -> GameSession:
    session = get_session(session_id)
    require_host(session, user)
    session.status = 'ended'
    current_app.logger.info(f"[end] session={session.id}")
    return commit(session)


def delete_session(session_id, user) -> None:
    session = get_session(session_id)
    require_host(session, user)
    db.session.delete(session)
    db.session.commit()
    current_app.logger.info(f"[session-delete] session={session_id}")
