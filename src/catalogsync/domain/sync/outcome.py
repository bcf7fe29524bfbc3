"""Typed results of pipeline steps, aggregated per item."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from catalogsync.domain.model import StepStatus

if TYPE_CHECKING:
    from catalogsync.domain.model import ItemStatus, PipelineKind


@dataclass(slots=True, frozen=True)
class StepResult:
    name: str
    status: StepStatus
    message: str | None = None

    @classmethod
    def success(cls, name: str, message: str | None = None) -> StepResult:
        return cls(name, StepStatus.SUCCESS, message)

    @classmethod
    def skipped(cls, name: str, message: str | None = None) -> StepResult:
        return cls(name, StepStatus.SKIPPED, message)

    @classmethod
    def degraded(cls, name: str, message: str) -> StepResult:
        return cls(name, StepStatus.DEGRADED, message)

    @classmethod
    def fatal(cls, name: str, message: str) -> StepResult:
        return cls(name, StepStatus.FATAL, message)


@dataclass(slots=True)
class ItemOutcome:
    """What a pipeline did to one item.

    ``status`` is the item status after the pipeline ran; ``steps`` records
    every step in order so partial failures can be asserted on directly.
    """

    tag_number: str
    kind: PipelineKind
    status: ItemStatus | None = None
    platform_id: str | None = None
    steps: list[StepResult] = field(default_factory=list)
    error: str | None = None

    def record(self, step: StepResult) -> StepResult:
        self.steps.append(step)
        return step

    def step(self, name: str) -> StepResult | None:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    @property
    def succeeded(self) -> bool:
        return self.error is None and not any(s.status is StepStatus.FATAL for s in self.steps)

    @property
    def degraded(self) -> bool:
        return any(step.status is StepStatus.DEGRADED for step in self.steps)

    @property
    def degraded_steps(self) -> list[StepResult]:
        return [step for step in self.steps if step.status is StepStatus.DEGRADED]
