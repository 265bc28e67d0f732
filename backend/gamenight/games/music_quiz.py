"""Music quiz: a clip plays, everyone guesses title and artist against the clock.

Phases: ``settings -> playing <-> revealing -> finished``. Points are kept in
the session-level ``gameState.scores`` so they survive between tracks.
"""

import logging
import random
from typing import List, Optional, TypedDict

from gamenight.client.controller import GameController
from gamenight.errors import ValidationConflict
from gamenight.games.base import GameModule, register
from gamenight.services.games import rotation, scoring

logger = logging.getLogger(__name__)


class Track(TypedDict, total=False):
    id: str
    name: str
    artist: str
    previewUrl: str
    albumArt: str


class Submission(TypedDict, total=False):
    playerId: str
    playerName: str
    trackGuess: str
    artistGuess: str
    submittedAt: int
    trackCorrect: bool
    artistCorrect: bool
    points: int


class RevealedAnswer(TypedDict):
    track: Track
    submissions: List[Submission]


class MusicQuizData(TypedDict, total=False):
    phase: str
    round: int
    tracks: List[Track]
    currentTrack: Optional[Track]
    roundStartTime: Optional[int]
    submissions: List[Submission]
    revealedAnswer: Optional[RevealedAnswer]
    readyPlayers: List[str]
    settings: dict


def initial_state(settings: dict, tracks: List[Track], now: int,
                  rng: Optional[random.Random] = None) -> MusicQuizData:
    """Game data for a configured quiz; ``rng`` shuffles the track order."""
    if not tracks:
        raise ValidationConflict('Add at least one track before starting')
    playlist = rotation.shuffle(tracks, rng) if rng else list(tracks)
    playlist = playlist[:int(settings['trackCount'])]
    return {
        'phase': 'playing',
        'round': 0,
        'tracks': playlist,
        'currentTrack': playlist[0],
        'roundStartTime': now,
        'submissions': [],
        'revealedAnswer': None,
        'readyPlayers': [],
        'settings': dict(settings, trackCount=len(playlist)),
    }


def has_submitted(data: MusicQuizData, player_id: str) -> bool:
    return any(s.get('playerId') == player_id for s in data.get('submissions') or [])


def submit_guess(data: MusicQuizData, player_id: str, player_name: str,
                 track_guess: str, artist_guess: str, now: int) -> Optional[dict]:
    if data.get('phase') != 'playing':
        return None
    track_guess = (track_guess or '').strip()
    artist_guess = (artist_guess or '').strip()
    if not track_guess and not artist_guess:
        raise ValidationConflict('Enter a title or an artist')
    if has_submitted(data, player_id):
        raise ValidationConflict('Guess already submitted')
    submissions = list(data.get('submissions') or [])
    submissions.append({
        'playerId': player_id,
        'playerName': player_name,
        'trackGuess': track_guess,
        'artistGuess': artist_guess,
        'submittedAt': now,
    })
    return {'data': {'submissions': submissions}}


def all_submitted(data: MusicQuizData, player_ids: List[str]) -> bool:
    return bool(player_ids) and all(has_submitted(data, pid) for pid in player_ids)


def remaining_seconds(data: MusicQuizData, now: int) -> int:
    started = data.get('roundStartTime')
    if data.get('phase') != 'playing' or started is None:
        return 0
    duration = int((data.get('settings') or {}).get('roundDuration', 30))
    return max(0, duration - (now - started) // 1000)


def round_expired(data: MusicQuizData, now: int) -> bool:
    return data.get('phase') == 'playing' and data.get('roundStartTime') is not None \
        and remaining_seconds(data, now) == 0


def reveal(data: MusicQuizData, scores: Optional[dict]) -> Optional[dict]:
    track = data.get('currentTrack')
    if data.get('phase') != 'playing' or not track:
        return None
    guess_artist = (data.get('settings') or {}).get('guessArtist', True)
    processed = scoring.process_submissions(
        data.get('submissions') or [], track.get('name'), track.get('artist'), guess_artist)
    return {
        'data': {
            'phase': 'revealing',
            'revealedAnswer': {'track': track, 'submissions': processed},
            'readyPlayers': [],
        },
        'scores': scoring.accumulate_scores(scores, processed),
    }


def mark_ready(data: MusicQuizData, player_id: str) -> Optional[dict]:
    ready = list(data.get('readyPlayers') or [])
    if data.get('phase') != 'revealing' or player_id in ready:
        return None
    ready.append(player_id)
    return {'data': {'readyPlayers': ready}}


def next_track(data: MusicQuizData, now: int) -> Optional[dict]:
    if data.get('phase') != 'revealing':
        return None
    tracks = data.get('tracks') or []
    next_round = int(data.get('round') or 0) + 1
    if next_round >= len(tracks):
        return {'data': {'phase': 'finished', 'roundStartTime': None}}
    return {
        'data': {
            'phase': 'playing',
            'round': next_round,
            'currentTrack': tracks[next_round],
            'roundStartTime': now,
            'submissions': [],
            'revealedAnswer': None,
            'readyPlayers': [],
        }
    }


def leaderboard(scores: dict, players: List[dict]) -> List[dict]:
    """Players with their totals, best first."""
    rows = []
    for player in players:
        pid = str(player.get('userId') or player.get('unId'))
        rows.append({'playerId': pid, 'playerName': player.get('name'), 'score': scores.get(pid, 0)})
    return sorted(rows, key=lambda row: -row['score'])


class MusicQuizHost(GameController):
    def __init__(self, client, session_id, rng: Optional[random.Random] = None, **kwargs):
        super().__init__(client, session_id, **kwargs)
        self.rng = rng

    def setup(self, tracks: List[Track], settings: Optional[dict] = None):
        validated = MusicQuizGame().validate_settings(settings)

        def configure(session):
            return {'data': initial_state(validated, tracks, self.now(), self.rng), 'scores': {}}
        return self.submit(configure)

    def reveal(self):
        def compute(session):
            return reveal(self.data_of(session), self.scores_of(session))
        return self.submit(compute)

    def next_track(self):
        def compute(session):
            return next_track(self.data_of(session), self.now())
        return self.submit(compute)

    def tick(self) -> dict:
        session = self.refetch()
        data = self.data_of(session)
        if data.get('phase') != 'playing':
            return session
        done = round_expired(data, self.now()) or all_submitted(data, self.player_ids_of(session))
        if done and self.once(('reveal', data.get('round'), data.get('roundStartTime'))):
            logger.info('session %s: revealing track %s', self.session_id, data.get('round'))
            session = self.reveal() or session
        return session


class MusicQuizPlayer(GameController):
    def __init__(self, client, session_id, player_name: str = '', **kwargs):
        super().__init__(client, session_id, **kwargs)
        self.player_name = player_name

    def guess(self, track_guess: str, artist_guess: str = ''):
        def compute(session):
            return submit_guess(self.data_of(session), self.actor_id, self.player_name,
                                track_guess, artist_guess, self.now())
        return self.submit(compute)

    def ready(self):
        def compute(session):
            return mark_ready(self.data_of(session), self.actor_id)
        return self.submit(compute)


@register
class MusicQuizGame(GameModule):
    slug = 'music-quiz'
    name = 'Music Quiz'
    description = 'Name that tune, and the artist, faster than everyone else.'
    min_players = 1
    max_players = 20
    initial_phase = 'settings'
    default_settings = {'trackCount': 20, 'roundDuration': 30, 'guessArtist': True}
    settings_bounds = {'trackCount': (1, 200), 'roundDuration': (10, 120)}
    host_controller = MusicQuizHost
    player_controller = MusicQuizPlayer

    def initial_state(self, settings: dict, **context) -> dict:
        return initial_state(self.validate_settings(settings), context.get('tracks') or [],
                             context['now'], context.get('rng'))
