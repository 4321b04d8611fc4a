"""Table state enumeration."""

from enum import Enum, auto


class TableState(Enum):
    """
    Table state machine states.

    Flow: READY → (cut card reached) → SHOE_EXHAUSTED → (new shoe) → READY
    """

    # Hands may be dealt from the live shoe
    READY = auto()

    # Cut card reached; only a new shoe resumes dealing
    SHOE_EXHAUSTED = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()
