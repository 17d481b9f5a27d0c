# This file is part of ctrl_jsl.
#
# Developed for the LSST Data Management System.
# This product includes software developed by the LSST Project
# (https://www.lsst.org).
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# This software is dual licensed under the GNU General Public License and also
# under a 3-clause BSD license. Recipients may choose which of these licenses
# to use; please see the files gpl-3.0.txt and/or bsd_license.txt,
# respectively.  If you choose the GPL option then the following text applies
# (but note that there is still no warranty even if you opt for BSD instead):
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Class definitions for the in-memory description of a JSR-352 batch job."""

__all__ = [
    "BatchletStep",
    "CheckpointConfig",
    "CheckpointPolicy",
    "ChunkStep",
    "DecisionStep",
    "ExceptionClassFilter",
    "FlowStep",
    "JobModel",
    "JobParameter",
    "JobRestartConfig",
    "PartitionConfig",
    "Property",
    "SplitStep",
    "StepDefinition",
    "StepKind",
    "StepNode",
    "StepRestartConfig",
    "Transition",
    "TransitionAction",
    "iter_steps",
]

import dataclasses
from collections.abc import Iterable, Iterator
from enum import Enum, IntEnum, auto
from typing import TypeAlias


class StepKind(IntEnum):
    """Kinds of execution elements a job can contain."""

    BATCHLET = auto()
    """Step running a single batchlet."""

    CHUNK = auto()
    """Step running read-process-write cycles (optionally partitioned)."""

    DECISION = auto()
    """Decision picking the next element from a decider's exit status."""

    SPLIT = auto()
    """Flows running in parallel."""

    FLOW = auto()
    """Steps running sequentially as a unit."""


class TransitionAction(str, Enum):
    """What happens when a transition matches an exit status."""

    NEXT = "next"
    FAIL = "fail"
    STOP = "stop"
    END = "end"


class CheckpointPolicy(str, Enum):
    """Basis on which a chunk step commits its progress."""

    ITEM = "item"
    TIME = "time"
    CUSTOM = "custom"


@dataclasses.dataclass(frozen=True, slots=True)
class Property:
    """A key/value pair rendered as a ``<property>`` element."""

    key: str
    """Name of the property."""

    value: str = ""
    """Value of the property."""

    type: str = "String"
    """Type hint kept for editors. Never written to the descriptor."""


@dataclasses.dataclass(frozen=True, slots=True)
class Transition:
    """Rule mapping an exit status to the next action."""

    on: str
    """Exit status (pattern) the transition matches."""

    action: TransitionAction
    """Action to take on match."""

    to: str | None = None
    """Display name of the target element (``next`` transitions only)."""

    exit_status: str | None = None
    """Exit status to set for ``fail``, ``stop`` and ``end`` transitions."""

    restart: str | None = None
    """Name of the element to restart from (``stop`` transitions only)."""


@dataclasses.dataclass(frozen=True, slots=True)
class CheckpointConfig:
    """Checkpointing of a chunk step."""

    enabled: bool = False
    item_count: int | None = None
    time_limit: int | None = None  # seconds
    custom_policy: str | None = None
    """Class of a custom checkpoint algorithm."""

    custom_policy_properties: tuple[Property, ...] = ()

    @property
    def policy(self) -> CheckpointPolicy | None:
        """Checkpoint policy implied by the configuration
        (`CheckpointPolicy` or `None` when checkpointing is disabled).
        """
        if not self.enabled:
            return None
        if self.custom_policy:
            return CheckpointPolicy.CUSTOM
        if self.time_limit is not None and self.item_count is None:
            return CheckpointPolicy.TIME
        return CheckpointPolicy.ITEM


@dataclasses.dataclass(frozen=True, slots=True)
class PartitionConfig:
    """Partitioning of a chunk step."""

    enabled: bool = False
    mapper_class: str | None = None
    partition_count: int | None = None
    """Fixed number of partitions, used when there is no mapper."""

    collector_class: str | None = None
    analyzer_class: str | None = None
    reducer_class: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ExceptionClassFilter:
    """Exception classes to include in (and exclude from) a chunk's
    skip, retry or no-rollback handling.
    """

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.include or self.exclude)


@dataclasses.dataclass(frozen=True, slots=True)
class StepRestartConfig:
    """Restart defaults applied to every step of a job."""

    allow_start_if_complete: bool = False
    start_limit: int = 0
    restartable: bool = True


@dataclasses.dataclass(frozen=True, slots=True)
class JobRestartConfig:
    """Restart behavior of a job and the defaults for its steps."""

    restartable: bool = True
    step_defaults: StepRestartConfig = dataclasses.field(default_factory=StepRestartConfig)


@dataclasses.dataclass(frozen=True, slots=True)
class JobParameter:
    """Parameter the job expects at launch time."""

    name: str
    type: str = "String"
    required: bool = False
    default_value: str | None = None
    description: str = ""
    enabled: bool = True


@dataclasses.dataclass(frozen=True, slots=True, kw_only=True)
class StepNode:
    """Base class for execution elements of a job."""

    id: str
    """Stable identifier. Must be unique within the job, including steps
    nested in flows.
    """

    name: str
    """Display name, used as the element id in the descriptor. Must be
    unique within the job.
    """

    parent_flow_id: str | None = None
    """Identifier of the flow or split owning this element when the element
    is kept in the job's flat step list.
    """

    @property
    def kind(self) -> StepKind:
        """Kind of execution element."""
        raise NotImplementedError(f"{type(self).__name__} needs to override kind.")


@dataclasses.dataclass(frozen=True, slots=True, kw_only=True)
class BatchletStep(StepNode):
    """Step running a batchlet."""

    batchlet_class: str = ""
    properties: tuple[Property, ...] = ()
    listeners: tuple[str, ...] = ()
    transitions: tuple[Transition, ...] = ()

    @property
    def kind(self) -> StepKind:
        return StepKind.BATCHLET


@dataclasses.dataclass(frozen=True, slots=True, kw_only=True)
class ChunkStep(StepNode):
    """Step running read-process-write cycles, partitioned when
    ``partition.enabled`` is set.
    """

    reader_class: str = ""
    processor_class: str | None = None
    writer_class: str = ""
    checkpoint: CheckpointConfig = dataclasses.field(default_factory=CheckpointConfig)
    partition: PartitionConfig = dataclasses.field(default_factory=PartitionConfig)
    skippable_exceptions: ExceptionClassFilter = dataclasses.field(default_factory=ExceptionClassFilter)
    retryable_exceptions: ExceptionClassFilter = dataclasses.field(default_factory=ExceptionClassFilter)
    no_rollback_exceptions: ExceptionClassFilter = dataclasses.field(default_factory=ExceptionClassFilter)
    skip_limit: int | None = None
    retry_limit: int | None = None
    properties: tuple[Property, ...] = ()
    listeners: tuple[str, ...] = ()
    transitions: tuple[Transition, ...] = ()

    @property
    def kind(self) -> StepKind:
        return StepKind.CHUNK

    @property
    def is_partitioned(self) -> bool:
        """Whether the chunk runs partitioned (`bool`)."""
        return self.partition.enabled


@dataclasses.dataclass(frozen=True, slots=True, kw_only=True)
class DecisionStep(StepNode):
    """Decision choosing where execution continues."""

    decider_class: str = ""
    transitions: tuple[Transition, ...] = ()
    properties: tuple[Property, ...] = ()

    @property
    def kind(self) -> StepKind:
        return StepKind.DECISION


@dataclasses.dataclass(frozen=True, slots=True, kw_only=True)
class FlowStep(StepNode):
    """Sequence of steps executed as a unit."""

    steps: tuple["StepDefinition", ...] = ()
    next_step: str | None = None
    properties: tuple[Property, ...] = ()
    transitions: tuple[Transition, ...] = ()

    @property
    def kind(self) -> StepKind:
        return StepKind.FLOW


@dataclasses.dataclass(frozen=True, slots=True, kw_only=True)
class SplitStep(StepNode):
    """Flows executed in parallel."""

    flows: tuple[FlowStep, ...] = ()
    flow_ids: tuple[str, ...] = ()
    """Identifiers of flows kept elsewhere in the job's flat step list."""

    next_step: str | None = None

    @property
    def kind(self) -> StepKind:
        return StepKind.SPLIT


StepDefinition: TypeAlias = BatchletStep | ChunkStep | DecisionStep | SplitStep | FlowStep


@dataclasses.dataclass(frozen=True, slots=True)
class JobModel:
    """Everything needed to write a job descriptor.

    Instances are treated as immutable; the normalizer returns new ones.
    """

    batch_name: str
    """Job id written to the descriptor."""

    functional_area: str | None = None
    frequency: str | None = None
    package_name: str | None = None
    parameters: tuple[JobParameter, ...] = ()
    properties: tuple[Property, ...] = ()
    listeners: tuple[str, ...] = ()
    restart: JobRestartConfig | None = None
    steps: tuple[StepDefinition, ...] = ()


def iter_steps(steps: Iterable[StepDefinition]) -> Iterator[StepDefinition]:
    """Iterate depth-first over steps and everything nested in them.

    Parameters
    ----------
    steps : `~collections.abc.Iterable` [`StepDefinition`]
        Steps to walk.

    Yields
    ------
    step : `StepDefinition`
        Each step, followed by the steps nested inside it.
    """
    for step in steps:
        yield step
        match step:
            case FlowStep():
                yield from iter_steps(step.steps)
            case SplitStep():
                yield from iter_steps(step.flows)
