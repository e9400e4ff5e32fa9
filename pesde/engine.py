"""Supported engines: the package manager itself and the Lune runtime."""

from __future__ import annotations

from enum import Enum


class EngineKindError(ValueError):
    """Raised when a string does not name a known engine."""

    def __init__(self, value: str) -> None:
        super().__init__(f"unknown engine kind {value}")
        self.value = value


class EngineKind(Enum):
    """All supported engines."""

    PESDE = "pesde"
    LUNE = "lune"

    @classmethod
    def parse(cls, s: str) -> EngineKind:
        """Parse an engine name, ignoring case."""
        try:
            return cls(s.lower())
        except ValueError:
            raise EngineKindError(s) from None

    def __str__(self) -> str:
        return self.value