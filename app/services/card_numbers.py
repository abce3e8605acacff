"""
Membership card number candidates.

A card number is a 2-digit prefix followed by 10 random digits. The prefix
moves to the next value in the 10..99 series after every
CARD_NUMBER_ROTATE_EVERY collisions. Uniqueness itself is enforced by the
unique index on subscriptions.card_number; this class only proposes candidates.
"""
import secrets
from typing import Callable, Optional

from app.core.config import CARD_NUMBER_PREFIX, CARD_NUMBER_ROTATE_EVERY

PREFIX_MIN = 10
PREFIX_MAX = 99
RANDOM_DIGITS = 10


def _random_digits() -> str:
    return f"{secrets.randbelow(10 ** RANDOM_DIGITS):0{RANDOM_DIGITS}d}"


class CardNumberGenerator:
    """Proposes 12-digit card numbers and rotates the prefix on repeated collisions."""

    def __init__(
        self,
        prefix: int = CARD_NUMBER_PREFIX,
        rotate_every: int = CARD_NUMBER_ROTATE_EVERY,
        random_digits: Optional[Callable[[], str]] = None,
    ):
        if not PREFIX_MIN <= prefix <= PREFIX_MAX:
            raise ValueError(f"Card number prefix must be two digits, got {prefix}")
        self.prefix = prefix
        self.rotate_every = max(1, rotate_every)
        self.collisions = 0
        self._random_digits = random_digits or _random_digits

    def candidate(self) -> str:
        digits = self._random_digits()
        if len(digits) != RANDOM_DIGITS or not digits.isdigit():
            raise ValueError(f"Expected {RANDOM_DIGITS} digits, got {digits!r}")
        return f"{self.prefix:02d}{digits}"

    def record_collision(self) -> None:
        self.collisions += 1
        if self.collisions % self.rotate_every == 0:
            self.prefix = PREFIX_MIN if self.prefix >= PREFIX_MAX else self.prefix + 1
