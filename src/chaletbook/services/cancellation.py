from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GenerationToken:
    """Handle of one started operation; stale once a newer one starts."""

    counter: "GenerationCounter"
    value: int

    @property
    def is_current(self) -> bool:
        return self.counter.current == self.value

    @property
    def is_superseded(self) -> bool:
        return not self.is_current


class GenerationCounter:
    """
    Orders asynchronous operations of one kind. Each ``start`` supersedes every
    token handed out before; results are applied only while their token is
    current.
    """

    def __init__(self) -> None:
        self.current = 0

    def start(self) -> GenerationToken:
        self.current += 1
        return GenerationToken(self, self.current)

    def invalidate(self) -> None:
        """Supersedes everything in flight without starting anything new."""
        self.current += 1
