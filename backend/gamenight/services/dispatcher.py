"""The single mutation path for an initialized game state.

``apply_action`` understands four verbs and nothing else. It never looks
inside ``gameState.data``; the game modules own that shape.
"""

from flask import current_app

from gamenight.errors import Forbidden, InvalidAction, NotFound, StaleWrite, ValidationConflict
from gamenight.services.sessions import commit, get_session, is_host

ACTIONS = ('updatePhase', 'updateScore', 'incrementRound', 'updateData')
HOST_ONLY_ACTIONS = ('updatePhase', 'updateScore', 'incrementRound')


def _update_phase(state: dict, payload: dict) -> None:
    state['phase'] = payload.get('phase')


def _update_score(state: dict, payload: dict) -> None:
    player_id = payload.get('playerId')
    if player_id is None:
        raise ValidationConflict('updateScore needs a playerId')
    scores = state.get('scores') or {}
    scores[str(player_id)] = payload.get('score')
    state['scores'] = scores


def _increment_round(state: dict, payload: dict) -> None:
    state['round'] = (state.get('round') or 0) + 1


def _update_data(state: dict, payload: dict) -> None:
    data = payload.get('data')
    if data is not None:
        if not isinstance(data, dict):
            raise ValidationConflict('updateData expects an object under "data"')
        merged = dict(state.get('data') or {})
        # Shallow: a key that is present replaces the stored value wholesale
        merged.update(data)
        state['data'] = merged
    if 'scores' in payload and payload['scores'] is not None:
        state['scores'] = dict(payload['scores'])


_HANDLERS = {
    'updatePhase': _update_phase,
    'updateScore': _update_score,
    'incrementRound': _increment_round,
    'updateData': _update_data,
}


def _authorize(session, action: str, payload: dict, user, actor_id) -> None:
    if not current_app.config.get('ENFORCE_ROLES', True):
        return
    host = is_host(session, user)
    if action in HOST_ONLY_ACTIONS or payload.get('scores') is not None:
        if not host:
            raise Forbidden(f'Only the session host may {action}' + (' with scores' if action == 'updateData' else ''))
        return
    if host:
        return
    actor = actor_id
    if actor is None and user is not None and getattr(user, 'is_authenticated', False):
        actor = str(user.id)
    if actor is None or str(actor) not in {str(pid) for pid in session.player_ids() if pid}:
        raise Forbidden('Only players of this session may change its game')


def apply_action(session_id, action, payload=None, user=None, actor_id=None, base_version=None):
    """Apply one action to the session's game state and persist the session.

    ``base_version`` is the session version the caller computed its payload
    from. When given and no longer current, nothing is applied and
    ``StaleWrite`` is raised so the caller can refetch and recompute.
    """
    payload = payload or {}
    session = get_session(session_id)
    if session.game_state is None:
        raise NotFound('Game not started')
    handler = _HANDLERS.get(action)
    if handler is None:
        raise InvalidAction(f'Invalid action {action!r}')
    if not isinstance(payload, dict):
        raise ValidationConflict('Action payload must be an object')
    _authorize(session, action, payload, user, actor_id)

    if base_version is not None:
        try:
            base_version = int(base_version)
        except (TypeError, ValueError):
            raise ValidationConflict('baseVersion must be an integer')
    if base_version is not None and base_version != session.version:
        current_app.logger.info(
            f"[stale-write] session={session.id} action={action} base={base_version} current={session.version}"
        )
        raise StaleWrite(f'Session is at version {session.version}, payload was computed at {base_version}')

    state = session.game_state_copy()
    handler(state, payload)
    session.game_state = state
    commit(session)
    current_app.logger.info(f"[action] session={session.id} action={action} version={session.version}")
    return session
