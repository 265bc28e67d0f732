"""Capability interface every game module implements, and the lookup table.

The server stays payload-agnostic: it only ever sees a game's catalogue entry
(name, player bounds, a placeholder initial state). Everything that reads or
writes ``gameState.data`` lives in the game's own module.
"""

from typing import Dict, Iterable, Optional, Tuple

from gamenight.errors import NotFound, ValidationConflict

_REGISTRY: Dict[str, 'GameModule'] = {}


class GameModule:
    slug: str = ''
    name: str = ''
    description: str = ''
    min_players: int = 1
    max_players: int = 10
    initial_phase: Optional[str] = None
    # key -> default value; ints listed in settings_bounds are range checked
    default_settings: dict = {}
    settings_bounds: Dict[str, Tuple[int, int]] = {}

    host_controller = None
    player_controller = None

    def validate_settings(self, settings: Optional[dict]) -> dict:
        merged = dict(self.default_settings)
        merged.update({k: v for k, v in (settings or {}).items() if v is not None})
        for key, (low, high) in self.settings_bounds.items():
            try:
                value = int(merged[key])
            except (TypeError, ValueError):
                raise ValidationConflict(f'{key} must be a number')
            if not low <= value <= high:
                raise ValidationConflict(f'{key} must be between {low} and {high}')
            merged[key] = value
        return merged

    def initial_state(self, settings: dict, **context) -> dict:
        """Full ``gameState.data`` for a freshly configured game."""
        raise NotImplementedError

    def placeholder_state(self) -> dict:
        """What the server copies into ``gameState.data`` on game selection."""
        return {'phase': self.initial_phase, 'settings': dict(self.default_settings)}

    def catalogue_entry(self) -> dict:
        return {
            'slug': self.slug,
            'name': self.name,
            'description': self.description,
            'minPlayers': self.min_players,
            'maxPlayers': self.max_players,
            'config': {
                'initialState': self.placeholder_state(),
                'initialPhase': self.initial_phase,
            },
        }


def register(cls):
    """Class decorator adding a game module to the lookup table."""
    module = cls()
    if not module.slug:
        raise ValueError(f'{cls.__name__} has no slug')
    _REGISTRY[module.slug] = module
    return cls


def get_game_module(slug: str) -> GameModule:
    try:
        return _REGISTRY[slug]
    except KeyError:
        raise NotFound(f'No game registered as {slug!r}')


def registered_games() -> Iterable[GameModule]:
    return list(_REGISTRY.values())
