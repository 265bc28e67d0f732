"""Phase state machines for the shipped games.

Importing this package registers every game module.
"""

from gamenight.games.base import GameModule, get_game_module, register, registered_games

from gamenight.games import fishbowl, liars_dice, music_quiz  # noqa: F401,E402

__all__ = ['GameModule', 'get_game_module', 'register', 'registered_games']
