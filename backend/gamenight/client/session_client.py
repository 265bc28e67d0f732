import logging
from typing import Optional

import requests

from gamenight.errors import error_from_response

logger = logging.getLogger(__name__)


class SessionClient:
    """Thin HTTP wrapper over the session endpoints.

    ``http`` is anything with a ``requests.Session``-style ``request`` method;
    cookies set by ``login`` stay on it, which is how a host proves its role.
    Error responses are raised as the matching ``gamenight.errors`` class.
    """

    def __init__(self, base_url: str = '', http=None, timeout: float = 5.0):
        self.base_url = base_url.rstrip('/')
        self.http = http or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, body: Optional[dict] = None):
        response = self.http.request(method, f'{self.base_url}{path}', json=body, timeout=self.timeout)
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if response.status_code >= 400:
            raise error_from_response(response.status_code, payload)
        return payload

    def server_settings(self) -> dict:
        """Poll intervals, intro delay and stale-write retry budget the server hands out."""
        return self._request('GET', '/')['client']

    # --- identity -------------------------------------------------------

    def register(self, username: str, password: str) -> dict:
        return self._request('POST', '/register', {'username': username, 'password': password})['user']

    def login(self, username: str, password: str) -> dict:
        return self._request('POST', '/login', {'username': username, 'password': password})['user']

    def logout(self) -> None:
        self._request('POST', '/logout')

    # --- sessions -------------------------------------------------------

    def create_session(self) -> dict:
        return self._request('POST', '/api/sessions/create')

    def get_session(self, session_id) -> dict:
        return self._request('GET', f'/api/sessions/{session_id}')

    def get_session_by_code(self, code: str) -> dict:
        return self._request('GET', f'/api/sessions/code/{code}')

    def delete_session(self, session_id) -> None:
        self._request('DELETE', f'/api/sessions/{session_id}')

    def join(self, code: str, name: str, user_id=None, un_id=None) -> dict:
        body = {'code': code, 'name': name}
        if user_id:
            body['userId'] = user_id
        if un_id:
            body['unId'] = un_id
        return self._request('POST', '/api/sessions/join', body)

    def leave(self, session_id, player_name: str) -> dict:
        return self._request('POST', f'/api/sessions/{session_id}/leave', {'playerName': player_name})

    def disconnect(self, session_id, player_name: str) -> dict:
        return self._request('POST', f'/api/sessions/{session_id}/disconnect', {'playerName': player_name})

    def remove_player(self, session_id, player_name: str) -> dict:
        return self._request('POST', f'/api/sessions/{session_id}/remove-player', {'playerName': player_name})

    def rename_player(self, session_id, old_name: str, new_name: str) -> dict:
        return self._request('POST', f'/api/sessions/{session_id}/update-player-name',
                             {'oldName': old_name, 'newName': new_name})

    def set_status(self, session_id, status: str) -> dict:
        return self._request('POST', f'/api/sessions/{session_id}/status', {'status': status})

    def select_game(self, session_id, game_id) -> dict:
        return self._request('POST', f'/api/sessions/{session_id}/select-game', {'gameId': game_id})

    def start_game(self, session_id) -> dict:
        return self._request('POST', f'/api/sessions/{session_id}/start')

    def end_game(self, session_id) -> dict:
        return self._request('POST', f'/api/sessions/{session_id}/end-game')

    def list_games(self) -> list:
        return self._request('GET', '/api/games/')

    def game_action(self, session_id, action: str, payload: Optional[dict] = None,
                    base_version: Optional[int] = None, actor_id: Optional[str] = None) -> dict:
        body = {'action': action, 'payload': payload or {}}
        if base_version is not None:
            body['baseVersion'] = base_version
        if actor_id is not None:
            body['actorId'] = actor_id
        logger.debug('game-action session=%s action=%s base=%s', session_id, action, base_version)
        return self._request('POST', f'/api/sessions/{session_id}/game-action', body)
