import re
from typing import List, Optional


BOTH_CORRECT_POINTS = 1000
ONE_CORRECT_POINTS = 500
# Bonus for the 1st, 2nd, ... correct submission; nothing after the last entry
SPEED_BONUSES = (500, 400, 300, 200, 100)

_QUALIFIERS = (
    r'feat|ft|featuring|with|remaster(?:ed)?|version|edit|mix|remix|mono|stereo'
    r'|live|radio|deluxe|explicit|acoustic|bonus|demo'
)
_BRACKETED_QUALIFIER = re.compile(r'[\(\[][^\)\]]*\b(?:' + _QUALIFIERS + r')\b[^\)\]]*[\)\]]', re.IGNORECASE)
_DASH_QUALIFIER = re.compile(r'\s+-\s+[^-]*\b(?:' + _QUALIFIERS + r')\b.*$', re.IGNORECASE)
_TRAILING_FEATURE = re.compile(r'\s+(?:feat\.?|ft\.?|featuring)\s+.*$', re.IGNORECASE)
_PUNCTUATION = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')


def normalize(text: Optional[str]) -> str:
    """Reduce a title/artist string to the form guesses are compared in.

    "Levitating (feat. DaBaby)" -> "levitating",
    "Help! - 2009 Remaster" -> "help".
    """
    if not text:
        return ''
    text = _BRACKETED_QUALIFIER.sub(' ', text)
    text = _DASH_QUALIFIER.sub('', text)
    text = _TRAILING_FEATURE.sub('', text)
    text = _PUNCTUATION.sub('', text.lower())
    return _WHITESPACE.sub(' ', text).strip()


def levenshtein(a: str, b: str) -> int:
    """Classic dynamic-programming edit distance over characters."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def check_answer(guess: Optional[str], answer: Optional[str]) -> bool:
    g = normalize(guess)
    a = normalize(answer)
    if not g or not a:
        return False
    if g == a or g in a or a in g:
        return True
    return levenshtein(g, a) <= len(a) // 3


def base_points(track_correct: bool, artist_correct: bool, guess_artist: bool = True) -> int:
    if not guess_artist:
        return BOTH_CORRECT_POINTS if track_correct else 0
    if track_correct and artist_correct:
        return BOTH_CORRECT_POINTS
    if track_correct or artist_correct:
        return ONE_CORRECT_POINTS
    return 0


def speed_bonus(rank: int) -> int:
    """Bonus for the ``rank``-th (0 based) correct submission."""
    return SPEED_BONUSES[rank] if 0 <= rank < len(SPEED_BONUSES) else 0


def process_submissions(submissions: List[dict], correct_track: str, correct_artist: str,
                        guess_artist: bool = True) -> List[dict]:
    """Annotate each submission with trackCorrect, artistCorrect and points.

    Speed bonus ranks only the submissions that earned base points, ordered by
    ``submittedAt``; equal timestamps keep their submission order. Input dicts
    are not modified.
    """
    processed = []
    for sub in submissions:
        track_ok = check_answer(sub.get('trackGuess'), correct_track)
        artist_ok = check_answer(sub.get('artistGuess'), correct_artist) if guess_artist else False
        entry = dict(sub)
        entry['trackCorrect'] = track_ok
        entry['artistCorrect'] = artist_ok
        entry['points'] = base_points(track_ok, artist_ok, guess_artist)
        processed.append(entry)

    correct = sorted(
        (i for i, entry in enumerate(processed) if entry['points'] > 0),
        key=lambda i: (processed[i].get('submittedAt') or 0, i),
    )
    for rank, index in enumerate(correct):
        processed[index]['points'] += speed_bonus(rank)
    return processed


def calculate_score(submission: dict, correct_track: str, correct_artist: str,
                    all_submissions: List[dict], guess_artist: bool = True) -> int:
    """Points one submission earns within its round."""
    processed = process_submissions(all_submissions, correct_track, correct_artist, guess_artist)
    for original, entry in zip(all_submissions, processed):
        if original is submission or original.get('playerId') == submission.get('playerId'):
            return entry['points']
    return 0


def accumulate_scores(scores: Optional[dict], processed: List[dict]) -> dict:
    """Add each processed submission's points to a copy of the running totals."""
    totals = dict(scores or {})
    for entry in processed:
        pid = str(entry['playerId'])
        totals[pid] = totals.get(pid, 0) + entry.get('points', 0)
    return totals
