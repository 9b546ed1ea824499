from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class CatalogExtra(BaseModel):
    """An extra as listed in the food catalog. Any server-side quantity is dropped."""

    id: int
    name: str
    value: float = Field(ge=0)


class Extra(CatalogExtra):
    quantity: int = Field(default=0, ge=0)


class Food(BaseModel):
    """Food as returned by the lookup endpoint. Unknown fields are ignored."""

    id: int
    name: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    image_url: Optional[str] = None
    extras: List[CatalogExtra] = Field(default_factory=list)

    @field_validator("extras")
    @classmethod
    def _unique_extra_ids(cls, extras: List[CatalogExtra]) -> List[CatalogExtra]:
        seen = set()
        for extra in extras:
            if extra.id in seen:
                raise ValueError(f"duplicate extra id {extra.id}")
            seen.add(extra.id)
        return extras


class Order(BaseModel):
    """One order record; a confirmation sends one of these per unit of food quantity."""

    id: int
    name: str
    description: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    extras: List[Extra] = Field(default_factory=list)


class CompositionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    SUBMISSION_FAILED = "submission_failed"


class CompositionSnapshot(BaseModel):
    status: CompositionStatus
    food: Optional[Food] = None
    extras: List[Extra] = Field(default_factory=list)
    food_quantity: int = 1
    total: Optional[float] = None
