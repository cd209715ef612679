from __future__ import annotations

from enum import Enum

from src.domain.errors import InvalidStageError


class Stage(str, Enum):
    """Review stages a picture moves through. Each stage has its own store."""

    PENDING = "pending"
    VALIDATED = "validated"
    PUBLISHED = "published"
    BLOCKED = "blocked"

    @classmethod
    def parse(cls, value: str | Stage) -> Stage:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as exc:
            raise InvalidStageError(str(value)) from exc

    @property
    def is_review(self) -> bool:
        return self is not Stage.BLOCKED
