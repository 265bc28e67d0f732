import logging
import time
from typing import Callable, Optional

from gamenight.errors import StaleWrite

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class GameController:
    """Base for the host and player drivers of a game.

    Writes follow refetch-before-mutate: read the freshest session, compute an
    ``updateData`` payload from it, submit it tagged with the version it was
    computed from. A ``StaleWrite`` means someone else wrote first; the payload
    is recomputed against the new state. A compute function returning ``None``
    means the transition no longer applies and nothing is sent.
    """

    def __init__(self, client, session_id, actor_id: Optional[str] = None,
                 clock: Optional[Callable[[], int]] = None, max_retries: int = 3):
        self.client = client
        self.session_id = session_id
        self.actor_id = actor_id
        self.clock = clock or now_ms
        self.max_retries = max_retries
        self.session: Optional[dict] = None
        self._fired = set()

    def now(self) -> int:
        return self.clock()

    def refetch(self) -> dict:
        self.session = self.client.get_session(self.session_id)
        return self.session

    @staticmethod
    def data_of(session: dict) -> dict:
        return ((session or {}).get('gameState') or {}).get('data') or {}

    @staticmethod
    def scores_of(session: dict) -> dict:
        return ((session or {}).get('gameState') or {}).get('scores') or {}

    @staticmethod
    def player_ids_of(session: dict) -> list:
        return [p.get('userId') or p.get('unId') for p in (session or {}).get('players', [])]

    def submit(self, compute: Callable[..., Optional[dict]], *args, **kwargs) -> Optional[dict]:
        for attempt in range(self.max_retries + 1):
            session = self.refetch()
            delta = compute(session, *args, **kwargs)
            if delta is None:
                logger.debug('session %s: %s not applicable, skipped', self.session_id, compute.__name__)
                return None
            try:
                self.session = self.client.game_action(
                    self.session_id, 'updateData', delta,
                    base_version=session.get('version'), actor_id=self.actor_id,
                )
                return self.session
            except StaleWrite:
                logger.info('session %s: stale write on %s (attempt %d), recomputing',
                            self.session_id, compute.__name__, attempt + 1)
        raise StaleWrite(f'Gave up on {compute.__name__} after {self.max_retries + 1} attempts')

    def once(self, key) -> bool:
        """True the first time ``key`` is seen by this controller, False after."""
        if key in self._fired:
            return False
        self._fired.add(key)
        return True

    def reset_guards(self) -> None:
        self._fired.clear()
