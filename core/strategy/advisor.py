"""Pattern heuristics over the outcome history (streaks, ping-pong, doubles)."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from core.hand import Winner


class PatternRule(Enum):
    """Which heuristic produced a suggestion."""

    WAITING = "waiting"
    DRAGON = "dragon"
    PING_PONG = "ping_pong"
    DOUBLE = "double"
    TREND = "trend"
    NO_PATTERN = "no_pattern"


@dataclass(frozen=True)
class Suggestion:
    """A heuristic pick for the next hand."""

    next_move: Winner | None
    rule: PatternRule
    confidence: int  # 0-100


def _opposite(winner: Winner) -> Winner:
    return Winner.BANKER if winner == Winner.PLAYER else Winner.PLAYER


def suggest_next(history: Iterable[Winner | str]) -> Suggestion:
    """
    Suggest the next side from the recent shape of the history.

    Ties are ignored when matching patterns. Rules are tried in order:
    a streak of 4+ is followed, three alternating hands are switched,
    a PPBB-style double is switched, and a lopsided last six is followed.
    """
    results = [Winner(r) for r in history]
    if len(results) < 3:
        return Suggestion(None, PatternRule.WAITING, 0)

    clean = [r for r in results if r != Winner.TIE]
    if len(clean) < 3:
        return Suggestion(None, PatternRule.NO_PATTERN, 20)

    last, last2, last3 = clean[-1], clean[-2], clean[-3]

    streak = 0
    for result in reversed(clean):
        if result != last:
            break
        streak += 1

    if streak >= 4:
        return Suggestion(last, PatternRule.DRAGON, 85)

    if last != last2 and last2 != last3:
        return Suggestion(_opposite(last), PatternRule.PING_PONG, 75)

    if len(clean) >= 4:
        last4 = clean[-4]
        if last == last2 and last3 == last4 and last != last3:
            return Suggestion(_opposite(last), PatternRule.DOUBLE, 60)

    recent = clean[-6:]
    player = recent.count(Winner.PLAYER)
    banker = recent.count(Winner.BANKER)
    if abs(player - banker) >= 2:
        majority = Winner.PLAYER if player > banker else Winner.BANKER
        return Suggestion(majority, PatternRule.TREND, 50)

    return Suggestion(None, PatternRule.NO_PATTERN, 20)
