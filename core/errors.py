"""Exceptions raised by the baccarat core."""


class BaccaratError(Exception):
    """Base class for table engine errors."""


class ShoeExhausted(BaccaratError):
    """The cut card has been reached; the shoe must be replaced before dealing."""

    def __init__(self, cards_remaining: int) -> None:
        super().__init__(f"Shoe exhausted with {cards_remaining} cards remaining")
        self.cards_remaining = cards_remaining


class InvalidManualHand(BaccaratError, ValueError):
    """A manually entered hand breaks the natural or third-card rules."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
