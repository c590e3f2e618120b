from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class FlaggedDeclaration:
    path: Path
    line: int
    name: str
    receiver: str | None
    arity: int
    reason: str
    source: str


@dataclass
class ArityTally:
    """Per-run counts of declarations by result arity."""

    counts: dict[int, int] = field(default_factory=dict)
    error_shaped: int = 0
    flagged: list[FlaggedDeclaration] = field(default_factory=list)

    def increment(self, arity: int) -> None:
        self.counts[arity] = self.counts.get(arity, 0) + 1

    def record_error_shaped(self) -> None:
        self.error_shaped += 1

    def record_flagged(self, declaration: FlaggedDeclaration) -> None:
        self.flagged.append(declaration)

    @property
    def declarations(self) -> int:
        return sum(self.counts.values())
