"""Label update actions."""

from __future__ import annotations

from enum import Enum


class LabelAction(Enum):
    """
    Label operation of a Jira partial issue update.

    The value is the operation key sent in the update body; ``verb`` and
    ``preposition`` only shape log messages ("added to", "removed from").
    """

    ADD = ("add", "added", "to")
    REMOVE = ("remove", "removed", "from")

    def __init__(self, key: str, verb: str, preposition: str) -> None:
        self.key = key
        self.verb = verb
        self.preposition = preposition

    def __str__(self) -> str:
        return self.key

    @classmethod
    def parse(cls, value: str) -> "LabelAction":
        """Look up an action by its operation key ("add" / "remove"), case-insensitive."""
        for action in cls:
            if action.key == value.lower():
                return action
        raise ValueError(f"Unknown label action '{value}'. Valid: {[a.key for a in cls]}")
