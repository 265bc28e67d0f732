"""Polling sync client used by host and player devices."""

from gamenight.client.controller import GameController, now_ms
from gamenight.client.poller import SessionPoller
from gamenight.client.session_client import SessionClient

__all__ = ['GameController', 'SessionClient', 'SessionPoller', 'now_ms']
