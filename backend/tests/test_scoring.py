import pytest

from gamenight.services.games import scoring


@pytest.mark.parametrize('raw, expected', [
    ('Levitating (feat. DaBaby)', 'levitating'),
    ('Help! - 2009 Remaster', 'help'),
    ('Hey Jude [Remastered 2015]', 'hey jude'),
    ('Stay ft. Justin Bieber', 'stay'),
    ("  Don't   Stop  Me Now ", 'dont stop me now'),
    ('Song 2 (Live)', 'song 2'),
    (None, ''),
])
def test_normalize(raw, expected):
    assert scoring.normalize(raw) == expected


def test_levenshtein():
    assert scoring.levenshtein('kitten', 'sitting') == 3
    assert scoring.levenshtein('', 'abc') == 3
    assert scoring.levenshtein('same', 'same') == 0


def test_check_answer():
    assert scoring.check_answer('bohemian rapsody', 'Bohemian Rhapsody')
    assert scoring.check_answer('Levitating', 'Levitating (feat. DaBaby)')
    assert scoring.check_answer('beatles', 'The Beatles')
    assert not scoring.check_answer('hello', 'Help!')
    assert not scoring.check_answer('Yesterday', 'Tomorrow Never Knows')
    assert not scoring.check_answer('', 'Anything')
    assert not scoring.check_answer('!!!', 'Anything')


def test_base_points():
    assert scoring.base_points(True, True) == 1000
    assert scoring.base_points(True, False) == 500
    assert scoring.base_points(False, True) == 500
    assert scoring.base_points(False, False) == 0
    assert scoring.base_points(True, False, guess_artist=False) == 1000
    assert scoring.base_points(False, True, guess_artist=False) == 0


def test_speed_bonus_table():
    assert [scoring.speed_bonus(r) for r in range(7)] == [500, 400, 300, 200, 100, 0, 0]


def test_process_submissions_ranks_correct_answers_by_time():
    subs = [
        {'playerId': 'a', 'trackGuess': 'Hey Jude', 'artistGuess': 'Beatles', 'submittedAt': 3000},
        {'playerId': 'b', 'trackGuess': 'hey jude', 'artistGuess': 'Stones', 'submittedAt': 1000},
        {'playerId': 'c', 'trackGuess': 'Let It Be', 'artistGuess': 'Oasis', 'submittedAt': 500},
        {'playerId': 'd', 'trackGuess': 'Hey Jude', 'artistGuess': 'The Beatles', 'submittedAt': 1000},
    ]
    processed = scoring.process_submissions(subs, 'Hey Jude - Remastered 2015', 'The Beatles')
    points = {s['playerId']: s['points'] for s in processed}
    # c was fastest but wrong, so b (tie broken by submission order) ranks first
    assert points == {'b': 1000, 'd': 1400, 'a': 1300, 'c': 0}
    assert processed[1]['trackCorrect'] is True
    assert processed[1]['artistCorrect'] is False
    assert 'points' not in subs[0]


def test_calculate_score_and_accumulate():
    subs = [
        {'playerId': 'a', 'trackGuess': 'Hey Jude', 'artistGuess': '', 'submittedAt': 1},
        {'playerId': 'b', 'trackGuess': 'nope', 'artistGuess': '', 'submittedAt': 2},
    ]
    assert scoring.calculate_score(subs[0], 'Hey Jude', 'The Beatles', subs) == 1000
    assert scoring.calculate_score(subs[0], 'Hey Jude', 'The Beatles', subs, guess_artist=False) == 1500

    processed = scoring.process_submissions(subs, 'Hey Jude', 'The Beatles')
    totals = scoring.accumulate_scores({'a': 200, 'z': 50}, processed)
    assert totals == {'a': 1200, 'b': 0, 'z': 50}
