import pytest

from gamenight.errors import ValidationConflict
from gamenight.games import get_game_module, music_quiz

TRACKS = [
    {'id': 't1', 'name': 'Hey Jude - Remastered 2015', 'artist': 'The Beatles'},
    {'id': 't2', 'name': 'Levitating (feat. DaBaby)', 'artist': 'Dua Lipa'},
    {'id': 't3', 'name': 'Bohemian Rhapsody', 'artist': 'Queen'},
]


def apply(data, delta):
    merged = dict(data)
    merged.update(delta['data'])
    return merged


def fresh(settings=None, now=0):
    return get_game_module('music-quiz').initial_state(settings or {}, tracks=TRACKS, now=now)


def test_initial_state():
    data = fresh({'trackCount': 2, 'roundDuration': 20}, now=1234)
    assert data['phase'] == 'playing'
    assert data['round'] == 0
    assert [t['id'] for t in data['tracks']] == ['t1', 't2']
    assert data['currentTrack']['id'] == 't1'
    assert data['roundStartTime'] == 1234
    assert data['settings']['trackCount'] == 2
    assert data['settings']['guessArtist'] is True

    # trackCount is capped by what was supplied
    assert fresh({'trackCount': 50})['settings']['trackCount'] == 3
    with pytest.raises(ValidationConflict):
        music_quiz.initial_state({'trackCount': 5}, [], 0)


def test_catalogue_entry_waits_for_settings():
    entry = get_game_module('music-quiz').catalogue_entry()
    assert entry['config']['initialPhase'] == 'settings'
    assert entry['minPlayers'] == 1


def test_submit_guess():
    data = fresh()
    with pytest.raises(ValidationConflict):
        music_quiz.submit_guess(data, 'p1', 'Ann', '  ', '', 10)

    data = apply(data, music_quiz.submit_guess(data, 'p1', 'Ann', ' hey jude ', 'beatles', 10))
    assert data['submissions'] == [{
        'playerId': 'p1', 'playerName': 'Ann', 'trackGuess': 'hey jude',
        'artistGuess': 'beatles', 'submittedAt': 10,
    }]
    with pytest.raises(ValidationConflict):
        music_quiz.submit_guess(data, 'p1', 'Ann', 'again', '', 20)
    assert not music_quiz.all_submitted(data, ['p1', 'p2'])

    data = apply(data, music_quiz.submit_guess(data, 'p2', 'Ben', '', 'Beatles', 20))
    assert music_quiz.all_submitted(data, ['p1', 'p2'])


def test_round_timer():
    data = fresh({'roundDuration': 30}, now=1000)
    assert music_quiz.remaining_seconds(data, 1000) == 30
    assert not music_quiz.round_expired(data, 30_999)
    assert music_quiz.round_expired(data, 31_000)


def test_reveal_accumulates_scores():
    data = fresh()
    data = apply(data, music_quiz.submit_guess(data, 'p1', 'Ann', 'Hey Jude', 'The Beatles', 2000))
    data = apply(data, music_quiz.submit_guess(data, 'p2', 'Ben', 'hey jude', '', 1000))
    data = apply(data, music_quiz.submit_guess(data, 'p3', 'Cat', 'Yesterday', '', 500))

    delta = music_quiz.reveal(data, {'p1': 100})
    assert delta['scores'] == {'p1': 100 + 1000 + 400, 'p2': 500 + 500, 'p3': 0}
    data = apply(data, delta)
    assert data['phase'] == 'revealing'
    assert data['revealedAnswer']['track']['id'] == 't1'
    assert [s['points'] for s in data['revealedAnswer']['submissions']] == [1400, 1000, 0]
    # Only once per track
    assert music_quiz.reveal(data, delta['scores']) is None


def test_ready_players():
    data = fresh()
    assert music_quiz.mark_ready(data, 'p1') is None
    data = apply(data, music_quiz.reveal(data, {}))
    data = apply(data, music_quiz.mark_ready(data, 'p1'))
    assert data['readyPlayers'] == ['p1']
    assert music_quiz.mark_ready(data, 'p1') is None


def test_next_track_and_finish():
    data = fresh()
    assert music_quiz.next_track(data, 0) is None
    for expected_round in (1, 2):
        data = apply(data, music_quiz.reveal(data, {}))
        data = apply(data, music_quiz.next_track(data, 9000))
        assert data['phase'] == 'playing'
        assert data['round'] == expected_round
        assert data['currentTrack'] == TRACKS[expected_round]
        assert data['submissions'] == []
        assert data['revealedAnswer'] is None
        assert data['roundStartTime'] == 9000

    data = apply(data, music_quiz.reveal(data, {}))
    data = apply(data, music_quiz.next_track(data, 9000))
    assert data['phase'] == 'finished'


def test_leaderboard():
    players = [{'name': 'Ann', 'unId': 'p1'}, {'name': 'Ben', 'userId': '7'}]
    rows = music_quiz.leaderboard({'7': 900, 'p1': 300}, players)
    assert [(r['playerName'], r['score']) for r in rows] == [('Ben', 900), ('Ann', 300)]
