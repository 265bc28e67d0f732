import random

import pytest

from gamenight.errors import ValidationConflict
from gamenight.games import get_game_module, liars_dice

PLAYERS = [
    {'name': 'Ann', 'unId': 'p1'},
    {'name': 'Ben', 'unId': 'p2'},
    {'name': 'Cat', 'userId': '3'},
    {'name': 'Dev', 'unId': 'p4'},
]


def apply(data, delta):
    merged = dict(data)
    merged.update(delta['data'])
    return merged


def cup(player_id, name, values):
    return {
        'playerId': player_id,
        'playerName': name,
        'dice': [{'value': v, 'id': f'{player_id}-die-{i}'} for i, v in enumerate(values)],
        'diceCount': len(values),
    }


def table(ones_are_wild=True):
    data = liars_dice.initial_state({'startingDice': 5, 'onesAreWild': ones_are_wild}, PLAYERS, random.Random(1))
    data['playerDice'] = [
        cup('p1', 'Ann', [4, 4, 2, 3, 5]),
        cup('p2', 'Ben', [1, 6, 6, 2, 3]),
        cup('3', 'Cat', [1, 2, 3, 5, 6]),
        cup('p4', 'Dev', [4, 1, 2, 3, 5]),
    ]
    return data


def test_roll_and_deal():
    dice = liars_dice.roll_dice('p1', 5, random.Random(4))
    assert [d['id'] for d in dice] == [f'p1-die-{i}' for i in range(5)]
    assert all(1 <= d['value'] <= 6 for d in dice)

    data = get_game_module('liars-dice').initial_state({}, players=PLAYERS, rng=random.Random(2))
    assert data['phase'] == 'playing'
    assert data['round'] == 1
    assert data['currentTurnPlayerId'] == 'p1'
    assert [pd['playerId'] for pd in data['playerDice']] == ['p1', 'p2', '3', 'p4']
    assert all(pd['diceCount'] == 5 and len(pd['dice']) == 5 for pd in data['playerDice'])
    assert data['eliminatedPlayers'] == []

    with pytest.raises(ValidationConflict):
        liars_dice.initial_state({'startingDice': 5}, PLAYERS[:1])
    with pytest.raises(ValidationConflict):
        get_game_module('liars-dice').validate_settings({'startingDice': 2})


@pytest.mark.parametrize('bid, quantity, face, valid', [
    (None, 1, 1, True),
    (None, 0, 3, False),
    (None, 2, 7, False),
    ({'quantity': 3, 'faceValue': 4}, 4, 2, True),
    ({'quantity': 3, 'faceValue': 4}, 3, 5, True),
    ({'quantity': 3, 'faceValue': 4}, 3, 4, False),
    ({'quantity': 3, 'faceValue': 4}, 2, 6, False),
])
def test_is_valid_raise(bid, quantity, face, valid):
    assert liars_dice.is_valid_raise(bid, quantity, face) is valid


def test_place_bid_moves_turn():
    data = table()
    with pytest.raises(ValidationConflict):
        liars_dice.place_bid(data, 'p2', 'Ben', 2, 3, 100)

    data = apply(data, liars_dice.place_bid(data, 'p1', 'Ann', 2, 3, 100))
    assert data['currentBid'] == {'playerId': 'p1', 'playerName': 'Ann', 'quantity': 2, 'faceValue': 3, 'timestamp': 100}
    assert data['currentTurnPlayerId'] == 'p2'
    assert len(data['biddingHistory']) == 1

    with pytest.raises(ValidationConflict):
        liars_dice.place_bid(data, 'p2', 'Ben', 2, 2, 200)


def test_turn_skips_eliminated_players():
    data = table()
    data['eliminatedPlayers'] = ['p2']
    data = apply(data, liars_dice.place_bid(data, 'p1', 'Ann', 1, 5, 0))
    assert data['currentTurnPlayerId'] == '3'


def test_count_matching_with_wild_ones():
    data = table()
    assert liars_dice.count_matching(data, 4) == 6
    assert liars_dice.count_matching(data, 1) == 3
    assert liars_dice.count_matching(table(ones_are_wild=False), 4) == 3

    data['eliminatedPlayers'] = ['p4']
    assert liars_dice.count_matching(data, 4) == 4


def test_correct_bid_challenged_costs_the_challenger():
    data = table()
    data['currentBid'] = {'playerId': 'p1', 'playerName': 'Ann', 'quantity': 6, 'faceValue': 4, 'timestamp': 0}
    data['currentTurnPlayerId'] = 'p2'
    data = apply(data, liars_dice.call_bluff(data, 'p2', 'Ben'))
    result = data['roundResult']
    assert data['phase'] == 'revealing'
    assert result['actualCount'] == 6
    assert result['wasCorrect'] is True
    assert (result['loser'], result['loserName']) == ('p2', 'Ben')
    assert (result['bidder'], result['challenger']) == ('p1', 'p2')
    assert len(result['allPlayerDice']) == 4


def test_false_bid_costs_the_bidder():
    data = table(ones_are_wild=False)
    data['currentBid'] = {'playerId': 'p1', 'playerName': 'Ann', 'quantity': 6, 'faceValue': 4, 'timestamp': 0}
    data['currentTurnPlayerId'] = 'p2'
    result = apply(data, liars_dice.call_bluff(data, 'p2'))['roundResult']
    assert result['wasCorrect'] is False
    assert result['loser'] == 'p1'
    assert result['challengerName'] == 'Ben'


def test_call_bluff_guards():
    data = table()
    with pytest.raises(ValidationConflict):
        liars_dice.call_bluff(data, 'p2', 'Ben')
    data['currentBid'] = {'playerId': 'p1', 'playerName': 'Ann', 'quantity': 1, 'faceValue': 2, 'timestamp': 0}
    with pytest.raises(ValidationConflict):
        liars_dice.call_bluff(data, 'p1', 'Ann')

    # Only the player whose turn it is may call
    data['currentTurnPlayerId'] = 'p2'
    with pytest.raises(ValidationConflict):
        liars_dice.call_bluff(data, '3', 'Cat')
    assert apply(data, liars_dice.call_bluff(data, 'p2', 'Ben'))['phase'] == 'revealing'


def _reveal(data, loser_is_challenger, challenger='p2'):
    bidder = 'p1' if challenger != 'p1' else '3'
    quantity = 1 if loser_is_challenger else 99
    data['currentBid'] = {'playerId': bidder, 'playerName': '', 'quantity': quantity, 'faceValue': 6, 'timestamp': 0}
    data['currentTurnPlayerId'] = challenger
    return apply(data, liars_dice.call_bluff(data, challenger))


def test_next_round_loser_loses_a_die_and_starts():
    data = _reveal(table(), loser_is_challenger=True)
    data = apply(data, liars_dice.next_round(data, random.Random(5)))
    assert data['phase'] == 'playing'
    assert data['round'] == 2
    assert data['currentBid'] is None
    assert data['biddingHistory'] == []
    assert data['roundResult'] is None
    assert data['currentTurnPlayerId'] == 'p2'
    counts = {pd['playerId']: (pd['diceCount'], len(pd['dice'])) for pd in data['playerDice']}
    assert counts == {'p1': (5, 5), 'p2': (4, 4), '3': (5, 5), 'p4': (5, 5)}
    assert liars_dice.next_round(data) is None


def test_loser_out_of_dice_is_eliminated():
    data = table()
    data['playerDice'][1] = cup('p2', 'Ben', [6])
    data = _reveal(data, loser_is_challenger=True)
    data = apply(data, liars_dice.next_round(data, random.Random(5)))
    assert data['eliminatedPlayers'] == ['p2']
    assert data['currentTurnPlayerId'] == '3'
    assert liars_dice.active_player_ids(data) == ['p1', '3', 'p4']


def test_last_player_standing_wins():
    data = liars_dice.initial_state({'startingDice': 3, 'onesAreWild': True}, PLAYERS[:2], random.Random(1))
    data['playerDice'] = [cup('p1', 'Ann', [2, 2, 2]), cup('p2', 'Ben', [6])]
    data = _reveal(data, loser_is_challenger=True)
    data = apply(data, liars_dice.next_round(data, random.Random(5)))
    assert data['phase'] == 'gameOver'
    assert data['winner'] == {'playerId': 'p1', 'playerName': 'Ann'}
    assert data['eliminatedPlayers'] == ['p2']
