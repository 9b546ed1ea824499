from __future__ import annotations

from typing import Optional


class FoodDetailsError(Exception):
    """Base class for every error raised by the composition core."""


class FoodLookupError(FoodDetailsError, LookupError):
    """The food could not be loaded: backend unreachable, bad payload or no such food."""

    def __init__(self, message: str, food_id: Optional[int] = None, not_found: bool = False) -> None:
        super().__init__(message)
        self.food_id = food_id
        self.not_found = not_found


class SubmissionError(FoodDetailsError):
    """
    One order call failed during confirmation.

    `submitted` is how many orders went through before the failure and
    `failed_order` is the 1-based position of the order that failed. Earlier
    orders are not rolled back and later ones are never attempted.
    """

    def __init__(self, message: str, submitted: int = 0, failed_order: Optional[int] = None) -> None:
        super().__init__(message)
        self.submitted = submitted
        self.failed_order = failed_order


class CompositionStateError(FoodDetailsError):
    """An operation was attempted in a lifecycle state that does not allow it."""
