import logging
import threading
from typing import Callable, Optional

import requests

from gamenight.errors import NotFound, SessionError

logger = logging.getLogger(__name__)


class SessionPoller:
    """Re-reads one session document at a fixed interval.

    ``on_change`` is called with the new document whenever it differs from the
    previous poll. Network failures are logged and retried on the next tick;
    a session that no longer exists stops the loop.
    """

    def __init__(self, client, session_id, interval: float = 1.0,
                 on_change: Optional[Callable[[dict], None]] = None):
        self.client = client
        self.session_id = session_id
        self.interval = interval
        self.on_change = on_change
        self.latest: Optional[dict] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def poll_once(self) -> Optional[dict]:
        try:
            session = self.client.get_session(self.session_id)
        except requests.RequestException as exc:
            logger.warning('poll failed for session %s: %s', self.session_id, exc)
            return None
        except NotFound:
            raise
        except SessionError as exc:
            # 5xx from the server or a proxy; try again next tick
            logger.warning('poll rejected for session %s: %s', self.session_id, exc)
            return None
        if session != self.latest:
            self.latest = session
            if self.on_change:
                self.on_change(session)
        return session

    def _run(self):
        while not self._stop.is_set():
            try:
                self.poll_once()
            except NotFound:
                logger.info('session %s is gone, polling stopped', self.session_id)
                return
            self._stop.wait(self.interval)

    def start(self) -> 'SessionPoller':
        if self._thread and self._thread.is_alive():
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=f'poll-{self.session_id}', daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
