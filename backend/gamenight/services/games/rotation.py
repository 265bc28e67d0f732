import math
import random
from typing import List, Optional, Sequence, Tuple

TEAMS = ('team1', 'team2')


def shuffle(items: Sequence, rng: Optional[random.Random] = None) -> list:
    """Return a Fisher-Yates shuffled copy of ``items``."""
    rng = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def assign_teams(player_ids: Sequence[str], rng: Optional[random.Random] = None) -> Tuple[List[str], List[str]]:
    """Shuffle players and split them; team1 gets the extra player on odd counts."""
    shuffled = shuffle(player_ids, rng)
    midpoint = math.ceil(len(shuffled) / 2)
    return shuffled[:midpoint], shuffled[midpoint:]


def next_player_in_team(team_players: Sequence[str], current: Optional[str]) -> Optional[str]:
    if not team_players:
        return None
    index = team_players.index(current) if current in team_players else -1
    return team_players[(index + 1) % len(team_players)]


def next_team(current: str) -> str:
    return 'team2' if current == 'team1' else 'team1'


def next_turn_player(active_ids: Sequence[str], current: Optional[str]) -> Optional[str]:
    """Next id after ``current`` among active (non-eliminated) players, wrapping."""
    if not active_ids:
        return None
    index = active_ids.index(current) if current in active_ids else -1
    return active_ids[(index + 1) % len(active_ids)]
