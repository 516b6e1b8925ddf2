"""What to do with a typed name once the user has seen the duplicate warning."""

from __future__ import annotations

import enum

from .types import DuplicateCandidate


class ResolutionChoice(str, enum.Enum):
    KEEP = "keep"
    REPLACE = "replace"
    CANCEL = "cancel"


class SaveCancelled(Exception):
    """Raised when the user backs out of a save from the duplicate prompt."""

    def __init__(self, input_name: str) -> None:
        super().__init__(f"Save cancelled at duplicate check for {input_name!r}")
        self.input_name = input_name


class InvalidResolution(ValueError):
    pass


def choice_for(candidate: DuplicateCandidate, chosen_name: str | None) -> ResolutionChoice:
    if chosen_name is None:
        return ResolutionChoice.CANCEL
    if chosen_name == candidate.input_name:
        return ResolutionChoice.KEEP
    return ResolutionChoice.REPLACE


def resolve_duplicate(
    candidate: DuplicateCandidate,
    choice: ResolutionChoice | str,
    selected_name: str | None = None,
) -> str:
    """Return the name to persist for ``candidate``.

    ``replace`` only accepts one of the names that were offered.
    """
    choice = ResolutionChoice(choice)
    if choice is ResolutionChoice.CANCEL:
        raise SaveCancelled(candidate.input_name)
    if choice is ResolutionChoice.KEEP:
        return candidate.input_name

    offered = {item.name for item in candidate.similar_items}
    if selected_name not in offered:
        raise InvalidResolution(
            f"{selected_name!r} is not one of the similar names offered for {candidate.input_name!r}"
        )
    return selected_name
