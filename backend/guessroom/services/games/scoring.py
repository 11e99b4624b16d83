import math
from typing import Optional

CORRECT_GUESS_BONUS = 50


def normalize_guess(text: str) -> str:
    return (text or '').strip().lower()


def is_correct_guess(guess: str, word: str) -> bool:
    return normalize_guess(guess) == normalize_guess(word)


def points_for_guess(is_correct: bool, time_remaining: float, round_time: Optional[int] = None) -> int:
    """Points for a single guess.

    A correct guess earns the fixed bonus plus half the remaining seconds,
    rounded up. ``time_remaining`` is clamped to ``[0, round_time]``.
    Incorrect guesses earn nothing.
    """
    if not is_correct:
        return 0
    remaining = max(0.0, float(time_remaining or 0))
    if round_time is not None:
        remaining = min(remaining, float(round_time))
    return math.ceil(remaining / 2) + CORRECT_GUESS_BONUS


def time_remaining(round_time: int, elapsed: float) -> int:
    return max(0, math.ceil(round_time - elapsed))


def revealed_hints(round_, remaining: int, hint1_at: int, hint2_at: int) -> dict:
    """Hints visible with ``remaining`` seconds left; all of them once the round is over."""
    over = round_.is_over
    return {
        'hint1': round_.hint1 if over or remaining <= hint1_at else None,
        'hint2': round_.hint2 if over or remaining <= hint2_at else None,
    }
