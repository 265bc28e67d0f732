"""Liar's dice: hidden cups, rising bids, and a call of "liar" to settle it.

Phases: ``settings -> playing <-> revealing -> gameOver``.
"""

import logging
import random
from typing import List, Optional, TypedDict

from gamenight.client.controller import GameController
from gamenight.errors import ValidationConflict
from gamenight.games.base import GameModule, register
from gamenight.services.games import rotation

logger = logging.getLogger(__name__)

FACES = range(1, 7)


class Die(TypedDict):
    value: int
    id: str


class PlayerDice(TypedDict):
    playerId: str
    playerName: str
    dice: List[Die]
    diceCount: int


class Bid(TypedDict):
    playerId: str
    playerName: str
    quantity: int
    faceValue: int
    timestamp: int


class RoundResult(TypedDict):
    challenger: str
    challengerName: str
    bidder: str
    bidderName: str
    bid: Bid
    actualCount: int
    wasCorrect: bool
    loser: str
    loserName: str
    allPlayerDice: List[PlayerDice]


class LiarsDiceData(TypedDict, total=False):
    phase: str
    round: int
    playerDice: List[PlayerDice]
    currentBid: Optional[Bid]
    currentTurnPlayerId: Optional[str]
    biddingHistory: List[Bid]
    roundResult: Optional[RoundResult]
    eliminatedPlayers: List[str]
    winner: Optional[dict]
    settings: dict


def roll_dice(player_id: str, count: int, rng: Optional[random.Random] = None) -> List[Die]:
    rng = rng or random
    return [{'value': rng.randint(1, 6), 'id': f'{player_id}-die-{i}'} for i in range(count)]


def initial_state(settings: dict, players: List[dict], rng: Optional[random.Random] = None) -> LiarsDiceData:
    """Deal every player a full cup. ``players`` are session player dicts, in join order."""
    count = int(settings['startingDice'])
    cups = []
    for player in players:
        pid = str(player.get('userId') or player.get('unId'))
        cups.append({
            'playerId': pid,
            'playerName': player.get('name', ''),
            'dice': roll_dice(pid, count, rng),
            'diceCount': count,
        })
    if len(cups) < 2:
        raise ValidationConflict("Liar's dice needs at least 2 players")
    return {
        'phase': 'playing',
        'round': 1,
        'playerDice': cups,
        'currentBid': None,
        'currentTurnPlayerId': cups[0]['playerId'],
        'biddingHistory': [],
        'roundResult': None,
        'eliminatedPlayers': [],
        'winner': None,
        'settings': dict(settings),
    }


def active_player_ids(data: LiarsDiceData) -> List[str]:
    eliminated = set(data.get('eliminatedPlayers') or [])
    return [pd['playerId'] for pd in data.get('playerDice') or [] if pd['playerId'] not in eliminated]


def total_dice(data: LiarsDiceData) -> int:
    return sum(pd['diceCount'] for pd in data.get('playerDice') or [])


def is_valid_raise(current_bid: Optional[dict], quantity: int, face: int) -> bool:
    if face not in FACES or quantity < 1:
        return False
    if not current_bid:
        return True
    if quantity > current_bid['quantity']:
        return True
    return quantity == current_bid['quantity'] and face > current_bid['faceValue']


def place_bid(data: LiarsDiceData, player_id: str, player_name: str,
              quantity: int, face: int, now: int) -> Optional[dict]:
    if data.get('phase') != 'playing':
        return None
    if data.get('currentTurnPlayerId') != player_id:
        raise ValidationConflict('Not your turn')
    if not is_valid_raise(data.get('currentBid'), quantity, face):
        raise ValidationConflict('Bid must raise the quantity, or keep it and raise the face')
    bid = {
        'playerId': player_id,
        'playerName': player_name,
        'quantity': quantity,
        'faceValue': face,
        'timestamp': now,
    }
    history = list(data.get('biddingHistory') or [])
    history.append(bid)
    return {
        'data': {
            'currentBid': bid,
            'currentTurnPlayerId': rotation.next_turn_player(active_player_ids(data), player_id),
            'biddingHistory': history,
        }
    }


def count_matching(data: LiarsDiceData, face: int) -> int:
    wild = (data.get('settings') or {}).get('onesAreWild', True) and face != 1
    eliminated = set(data.get('eliminatedPlayers') or [])
    count = 0
    for pd in data.get('playerDice') or []:
        if pd['playerId'] in eliminated:
            continue
        count += sum(1 for die in pd['dice'] if die['value'] == face or (wild and die['value'] == 1))
    return count


def _name_of(data: LiarsDiceData, player_id: str) -> str:
    for pd in data.get('playerDice') or []:
        if pd['playerId'] == player_id:
            return pd['playerName']
    return ''


def call_bluff(data: LiarsDiceData, challenger_id: str, challenger_name: Optional[str] = None) -> Optional[dict]:
    if data.get('phase') != 'playing':
        return None
    bid = data.get('currentBid')
    if not bid:
        raise ValidationConflict('There is no bid to challenge')
    if bid['playerId'] == challenger_id:
        raise ValidationConflict('You cannot challenge your own bid')
    if data.get('currentTurnPlayerId') != challenger_id:
        raise ValidationConflict('Not your turn')
    if challenger_id not in active_player_ids(data):
        raise ValidationConflict('Eliminated players cannot challenge')

    actual = count_matching(data, bid['faceValue'])
    was_correct = actual >= bid['quantity']
    loser = challenger_id if was_correct else bid['playerId']
    challenger_name = challenger_name or _name_of(data, challenger_id)
    return {
        'data': {
            'phase': 'revealing',
            'roundResult': {
                'challenger': challenger_id,
                'challengerName': challenger_name,
                'bidder': bid['playerId'],
                'bidderName': bid['playerName'],
                'bid': bid,
                'actualCount': actual,
                'wasCorrect': was_correct,
                'loser': loser,
                'loserName': challenger_name if loser == challenger_id else bid['playerName'],
                'allPlayerDice': data.get('playerDice') or [],
            },
        }
    }


def next_round(data: LiarsDiceData, rng: Optional[random.Random] = None) -> Optional[dict]:
    result = data.get('roundResult')
    if data.get('phase') != 'revealing' or not result:
        return None
    loser = result['loser']
    eliminated = list(data.get('eliminatedPlayers') or [])
    cups = []
    for pd in data.get('playerDice') or []:
        count = pd['diceCount'] - 1 if pd['playerId'] == loser else pd['diceCount']
        count = max(count, 0)
        if count == 0 and pd['playerId'] not in eliminated:
            eliminated.append(pd['playerId'])
        cups.append(dict(pd, diceCount=count, dice=roll_dice(pd['playerId'], count, rng)))

    order = [pd['playerId'] for pd in cups]
    survivors = [pid for pid in order if pid not in eliminated]
    if len(survivors) <= 1:
        winner = survivors[0] if survivors else None
        return {
            'data': {
                'phase': 'gameOver',
                'playerDice': cups,
                'eliminatedPlayers': eliminated,
                'currentBid': None,
                'winner': {'playerId': winner, 'playerName': _name_of(data, winner)} if winner else None,
            }
        }

    starter = loser
    if starter in eliminated:
        # first survivor seated after the knocked-out loser
        index = order.index(loser)
        starter = next(order[(index + i) % len(order)] for i in range(1, len(order) + 1)
                       if order[(index + i) % len(order)] in survivors)
    return {
        'data': {
            'phase': 'playing',
            'round': int(data.get('round') or 1) + 1,
            'playerDice': cups,
            'eliminatedPlayers': eliminated,
            'currentBid': None,
            'currentTurnPlayerId': starter,
            'biddingHistory': [],
            'roundResult': None,
        }
    }


def dice_for(data: LiarsDiceData, player_id: str) -> List[Die]:
    for pd in data.get('playerDice') or []:
        if pd['playerId'] == player_id:
            return pd['dice']
    return []


class LiarsDiceHost(GameController):
    def __init__(self, client, session_id, rng: Optional[random.Random] = None, **kwargs):
        super().__init__(client, session_id, **kwargs)
        self.rng = rng

    def setup(self, settings: Optional[dict] = None):
        validated = LiarsDiceGame().validate_settings(settings)

        def deal(session):
            return {'data': initial_state(validated, session.get('players') or [], self.rng)}
        return self.submit(deal)

    def next_round(self):
        def compute(session):
            return next_round(self.data_of(session), self.rng)
        return self.submit(compute)


class LiarsDicePlayer(GameController):
    def __init__(self, client, session_id, player_name: str = '', **kwargs):
        super().__init__(client, session_id, **kwargs)
        self.player_name = player_name

    def bid(self, quantity: int, face: int):
        def compute(session):
            return place_bid(self.data_of(session), self.actor_id, self.player_name, quantity, face, self.now())
        return self.submit(compute)

    def call_bluff(self):
        def compute(session):
            return call_bluff(self.data_of(session), self.actor_id, self.player_name)
        return self.submit(compute)

    def my_dice(self) -> List[Die]:
        return dice_for(self.data_of(self.session or self.refetch()), self.actor_id)


@register
class LiarsDiceGame(GameModule):
    slug = 'liars-dice'
    name = "Liar's Dice"
    description = 'Bid on the dice under every cup. Call a liar, or be caught as one.'
    min_players = 2
    max_players = 10
    initial_phase = 'settings'
    default_settings = {'startingDice': 5, 'onesAreWild': True}
    settings_bounds = {'startingDice': (3, 10)}
    host_controller = LiarsDiceHost
    player_controller = LiarsDicePlayer

    def initial_state(self, settings: dict, **context) -> dict:
        return initial_state(self.validate_settings(settings), context.get('players') or [], context.get('rng'))
