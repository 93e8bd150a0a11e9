"""Exceptions raised while validating and assembling a pipeline graph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List


@dataclass(frozen=True)
class FieldError:
    """A single configuration problem attributed to one field."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ConfigValidationError(ValueError):
    """Raised when a configuration fails pre-flight validation.

    Carries every violation found in one pass so callers can fix them all at
    once.
    """

    def __init__(self, errors: Iterable[FieldError]) -> None:
        self.errors: List[FieldError] = list(errors)
        summary = "; ".join(str(err) for err in self.errors)
        super().__init__(f"Invalid pipeline configuration ({len(self.errors)} error(s)): {summary}")

    @property
    def fields(self) -> List[str]:
        return [err.field for err in self.errors]


class ResolutionError(RuntimeError):
    """A reference points at a node that cannot exist for this configuration.

    This is a defect in the presence table or the wiring code, never a user
    error.
    """
