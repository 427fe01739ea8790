from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Verdict(Enum):
    passing = 1
    failing = 2
    # every evaluation still pending, or no evaluations at all
    undetermined = 3


@dataclass(frozen=True)
class EvaluationStatus:
    queued: bool
    failed: bool
    matched: int = 0

    @property
    def settled(self) -> bool:
        return not self.queued
