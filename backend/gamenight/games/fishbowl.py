"""Fishbowl: everyone drops words in a bowl, two teams race to guess them.

Three rounds over the same bowl (describe it, act it out, one word). Phases::

    word-submission -> team-assignment -> round-intro -> playing <-> turn-end
                                   round-end <-/                   \\-> finished
"""

import logging
import random
from typing import Dict, List, Optional, TypedDict

from gamenight.client.controller import GameController
from gamenight.errors import ValidationConflict
from gamenight.games.base import GameModule, register
from gamenight.services.games import rotation

logger = logging.getLogger(__name__)

ROUND_COUNT = 3
ROUND_NAMES = ('Describe It', 'Act It Out', 'One Word')


class Word(TypedDict, total=False):
    text: str
    submittedBy: str
    guessedInRound: int


class Team(TypedDict):
    name: str
    players: List[str]


class FishbowlData(TypedDict, total=False):
    phase: str
    teams: Dict[str, Team]
    fishbowl: List[Word]
    remainingWords: List[Word]
    currentWord: Optional[Word]
    currentTeam: str
    currentPlayer: Optional[str]
    lastPlayers: Dict[str, Optional[str]]
    turnStartTime: Optional[int]
    roundIntroStartTime: Optional[int]
    scores: Dict[str, int]
    wordsGuessedThisTurn: List[Word]
    wordsSkippedThisTurn: List[Word]
    wordsSubmitted: Dict[str, List[str]]
    currentRound: int
    roundHistory: List[dict]
    settings: dict


def round_name(round_index: int) -> str:
    return ROUND_NAMES[round_index] if 0 <= round_index < len(ROUND_NAMES) else 'Unknown Round'


def initial_state(settings: dict) -> FishbowlData:
    return {
        'phase': 'word-submission',
        'teams': {
            'team1': {'name': 'Team 1', 'players': []},
            'team2': {'name': 'Team 2', 'players': []},
        },
        'fishbowl': [],
        'remainingWords': [],
        'currentWord': None,
        'currentTeam': 'team1',
        'currentPlayer': None,
        'lastPlayers': {'team1': None, 'team2': None},
        'turnStartTime': None,
        'roundIntroStartTime': None,
        'scores': {'team1': 0, 'team2': 0},
        'wordsGuessedThisTurn': [],
        'wordsSkippedThisTurn': [],
        'wordsSubmitted': {},
        'currentRound': 0,
        'roundHistory': [],
        'settings': dict(settings),
    }


def _settings(data: FishbowlData) -> dict:
    return data.get('settings') or FishbowlGame.default_settings


def _delta(**changes) -> dict:
    return {'data': changes}


def _plain(word: Word) -> Word:
    return {'text': word['text'], 'submittedBy': word['submittedBy']}


def _same_word(a: Optional[Word], b: Optional[Word]) -> bool:
    return bool(a and b and a.get('text') == b.get('text') and a.get('submittedBy') == b.get('submittedBy'))


def _without(words: List[Word], word: Word) -> List[Word]:
    """Copy of ``words`` minus the first entry equal to ``word``."""
    remaining = list(words)
    for i, w in enumerate(remaining):
        if _same_word(w, word):
            del remaining[i]
            break
    return remaining


# --- word submission -------------------------------------------------------

def words_submitted_count(data: FishbowlData, player_id: str) -> int:
    return len((data.get('wordsSubmitted') or {}).get(player_id) or [])


def all_words_submitted(data: FishbowlData, player_ids: List[str]) -> bool:
    quota = int(_settings(data)['wordsPerPlayer'])
    return bool(player_ids) and all(words_submitted_count(data, pid) >= quota for pid in player_ids)


def submit_words(data: FishbowlData, player_id: str, words: List[str]) -> Optional[dict]:
    if data.get('phase') != 'word-submission':
        return None
    quota = int(_settings(data)['wordsPerPlayer'])
    valid = [w.strip() for w in words if w and w.strip()]
    if words_submitted_count(data, player_id) >= quota:
        raise ValidationConflict('Words already submitted')
    if len(valid) < quota:
        raise ValidationConflict(f'Please enter all {quota} words')
    valid = valid[:quota]
    submitted = dict(data.get('wordsSubmitted') or {})
    submitted[player_id] = valid
    bowl = list(data.get('fishbowl') or [])
    bowl.extend({'text': w, 'submittedBy': player_id} for w in valid)
    return _delta(wordsSubmitted=submitted, fishbowl=bowl)


# --- host transitions ------------------------------------------------------

def assign_teams(data: FishbowlData, player_ids: List[str], rng: Optional[random.Random] = None) -> Optional[dict]:
    if data.get('phase') != 'word-submission':
        return None
    if not all_words_submitted(data, player_ids):
        raise ValidationConflict('Waiting for every player to submit their words')
    team1, team2 = rotation.assign_teams(player_ids, rng)
    return _delta(
        phase='team-assignment',
        teams={
            'team1': {'name': 'Team 1', 'players': team1},
            'team2': {'name': 'Team 2', 'players': team2},
        },
    )


def start_round(data: FishbowlData, now: int, rng: Optional[random.Random] = None) -> Optional[dict]:
    phase = data.get('phase')
    if phase not in ('team-assignment', 'round-end'):
        return None
    team = 'team1' if phase == 'team-assignment' else rotation.next_team(data.get('currentTeam', 'team2'))
    last_players = dict(data.get('lastPlayers') or {})
    player = rotation.next_player_in_team(data['teams'][team]['players'], last_players.get(team))
    last_players[team] = player
    return _delta(
        phase='round-intro',
        remainingWords=rotation.shuffle([_plain(w) for w in data.get('fishbowl') or []], rng),
        currentWord=None,
        currentTeam=team,
        currentPlayer=player,
        lastPlayers=last_players,
        wordsGuessedThisTurn=[],
        wordsSkippedThisTurn=[],
        turnStartTime=None,
        roundIntroStartTime=now,
    )


def intro_finished(data: FishbowlData, now: int, delay_sec: int) -> bool:
    started = data.get('roundIntroStartTime')
    return data.get('phase') == 'round-intro' and started is not None and now - started >= delay_sec * 1000


def begin_play(data: FishbowlData, now: int) -> Optional[dict]:
    if data.get('phase') != 'round-intro':
        return None
    remaining = data.get('remainingWords') or []
    return _delta(
        phase='playing',
        turnStartTime=now,
        currentWord=remaining[0] if remaining else None,
    )


def remaining_seconds(data: FishbowlData, now: int) -> int:
    started = data.get('turnStartTime')
    if data.get('phase') != 'playing' or started is None:
        return 0
    return max(0, int(_settings(data)['turnDuration']) - (now - started) // 1000)


def turn_expired(data: FishbowlData, now: int) -> bool:
    return data.get('phase') == 'playing' and data.get('turnStartTime') is not None \
        and remaining_seconds(data, now) == 0


def end_turn(data: FishbowlData) -> Optional[dict]:
    if data.get('phase') != 'playing':
        return None
    return _delta(phase='turn-end', turnStartTime=None)


def next_turn(data: FishbowlData, now: int) -> Optional[dict]:
    if data.get('phase') != 'turn-end':
        return None
    remaining = data.get('remainingWords') or []
    if remaining:
        team = rotation.next_team(data.get('currentTeam', 'team1'))
        last_players = dict(data.get('lastPlayers') or {})
        player = rotation.next_player_in_team(data['teams'][team]['players'], last_players.get(team))
        last_players[team] = player
        return _delta(
            phase='playing',
            currentTeam=team,
            currentPlayer=player,
            lastPlayers=last_players,
            turnStartTime=now,
            wordsGuessedThisTurn=[],
            wordsSkippedThisTurn=[],
            currentWord=remaining[0],
        )

    current_round = int(data.get('currentRound') or 0)
    scores = data.get('scores') or {}
    history = list(data.get('roundHistory') or [])
    history.append({
        'round': current_round,
        'team1Score': scores.get('team1', 0),
        'team2Score': scores.get('team2', 0),
        'wordsGuessed': len(data.get('fishbowl') or []),
    })
    next_round = current_round + 1
    if next_round >= ROUND_COUNT:
        return _delta(phase='finished', roundHistory=history, currentWord=None)
    return _delta(phase='round-end', currentRound=next_round, roundHistory=history, currentWord=None)


# --- guessing --------------------------------------------------------------

def correct_guess(data: FishbowlData, word_text: Optional[str] = None) -> Optional[dict]:
    current = data.get('currentWord')
    if data.get('phase') != 'playing' or not current:
        return None
    if word_text is not None and current.get('text') != word_text:
        # The word on screen was already resolved by someone else
        return None
    remaining = _without(data.get('remainingWords') or [], current)
    guessed = list(data.get('wordsGuessedThisTurn') or [])
    guessed.append(dict(current, guessedInRound=int(data.get('currentRound') or 0)))
    scores = dict(data.get('scores') or {})
    team = data.get('currentTeam', 'team1')
    scores[team] = scores.get(team, 0) + 1
    return _delta(
        remainingWords=remaining,
        currentWord=remaining[0] if remaining else None,
        wordsGuessedThisTurn=guessed,
        scores=scores,
    )


def skip_word(data: FishbowlData, word_text: Optional[str] = None) -> Optional[dict]:
    current = data.get('currentWord')
    if data.get('phase') != 'playing' or not current:
        return None
    if not _settings(data).get('allowSkips', True):
        raise ValidationConflict('Skipping is turned off for this game')
    if word_text is not None and current.get('text') != word_text:
        return None
    remaining = _without(data.get('remainingWords') or [], current)
    remaining.append(current)
    skipped = list(data.get('wordsSkippedThisTurn') or [])
    skipped.append(current)
    return _delta(
        remainingWords=remaining,
        currentWord=remaining[0],
        wordsSkippedThisTurn=skipped,
    )


def winner(data: FishbowlData) -> Optional[str]:
    scores = data.get('scores') or {}
    team1, team2 = scores.get('team1', 0), scores.get('team2', 0)
    if team1 == team2:
        return None
    return 'team1' if team1 > team2 else 'team2'


# --- drivers ---------------------------------------------------------------

class FishbowlHost(GameController):
    def __init__(self, client, session_id, intro_delay_sec: int = 5, rng: Optional[random.Random] = None, **kwargs):
        super().__init__(client, session_id, **kwargs)
        self.intro_delay_sec = intro_delay_sec
        self.rng = rng

    def setup(self, settings: Optional[dict] = None) -> dict:
        validated = FishbowlGame().validate_settings(settings)

        def configure(session):
            return {'data': initial_state(validated)}
        return self.submit(configure)

    def assign_teams(self):
        def compute(session):
            return assign_teams(self.data_of(session), self.player_ids_of(session), self.rng)
        return self.submit(compute)

    def start_round(self):
        def compute(session):
            return start_round(self.data_of(session), self.now(), self.rng)
        return self.submit(compute)

    def next_turn(self):
        def compute(session):
            return next_turn(self.data_of(session), self.now())
        return self.submit(compute)

    def begin_play(self):
        def compute(session):
            return begin_play(self.data_of(session), self.now())
        return self.submit(compute)

    def end_turn(self):
        def compute(session):
            return end_turn(self.data_of(session))
        return self.submit(compute)

    def tick(self) -> dict:
        """One host render tick: fire time-driven transitions at most once each."""
        session = self.refetch()
        data = self.data_of(session)
        now = self.now()
        if intro_finished(data, now, self.intro_delay_sec) and self.once(('begin', data.get('roundIntroStartTime'))):
            logger.info('session %s: round %s begins', self.session_id, data.get('currentRound'))
            session = self.begin_play() or session
        elif data.get('phase') == 'playing' and (turn_expired(data, now) or not data.get('remainingWords')) \
                and self.once(('end', data.get('turnStartTime'))):
            logger.info('session %s: turn over for %s', self.session_id, data.get('currentPlayer'))
            session = self.end_turn() or session
        return session


class FishbowlPlayer(GameController):
    def submit_words(self, words: List[str]):
        def compute(session):
            return submit_words(self.data_of(session), self.actor_id, words)
        return self.submit(compute)

    def correct(self, word_text: Optional[str] = None):
        def compute(session):
            return correct_guess(self.data_of(session), word_text)
        return self.submit(compute)

    def skip(self, word_text: Optional[str] = None):
        def compute(session):
            return skip_word(self.data_of(session), word_text)
        return self.submit(compute)


@register
class FishbowlGame(GameModule):
    slug = 'fishbowl'
    name = 'Fishbowl'
    description = 'Fill the bowl with words, then describe, act and one-word them to your team.'
    min_players = 4
    max_players = 12
    initial_phase = 'word-submission'
    default_settings = {'wordsPerPlayer': 3, 'turnDuration': 60, 'allowSkips': True}
    settings_bounds = {'wordsPerPlayer': (1, 10), 'turnDuration': (15, 180)}
    host_controller = FishbowlHost
    player_controller = FishbowlPlayer

    def initial_state(self, settings: dict, **context) -> dict:
        return initial_state(self.validate_settings(settings))

    def placeholder_state(self) -> dict:
        # Word submission needs no host input, so the default game is playable as-is
        return initial_state(self.default_settings)
