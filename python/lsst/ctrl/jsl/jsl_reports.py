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

"""Classes used in reporting validation results and job contents."""

__all__ = [
    "BaseReport",
    "IssueReport",
    "StepSummaryReport",
]

import abc

from astropy.table import Table

from .job_model import (
    BatchletStep,
    ChunkStep,
    DecisionStep,
    FlowStep,
    JobModel,
    SplitStep,
    StepDefinition,
    TransitionAction,
)
from .validator import ValidationResult


class BaseReport(abc.ABC):
    """The base class representing a tabular report.

    Parameters
    ----------
    fields : `list` [ `tuple` [ `str`, `str`]]
        The list of column specification, fields, to include in the report.
        Each field has a name and a type.
    """

    def __init__(self, fields):
        self._table = Table(dtype=fields)
        self._msg = None

    def __len__(self):
        """Return the number of rows in the report."""
        return len(self._table)

    def __str__(self):
        lines = list(self._table.pformat(max_lines=-1, max_width=-1, align="<"))
        return "\n".join(lines)

    @property
    def message(self):
        """Extra information a method need to pass to its caller (`str`)."""
        return self._msg

    @abc.abstractmethod
    def add(self, source):
        """Add the entries describing a single source to the report.

        Parameters
        ----------
        source : `~typing.Any`
            Object to report on.
        """


class IssueReport(BaseReport):
    """A report listing validation errors followed by warnings."""

    FIELDS = [("SEVERITY", "U"), ("KIND", "U"), ("ELEMENT", "U"), ("MESSAGE", "U")]

    def __init__(self, fields=None):
        super().__init__(self.FIELDS if fields is None else fields)

    def add(self, source: ValidationResult) -> None:
        # Docstring inherited from the base class.
        for error in source.errors:
            self._table.add_row(["ERROR", error.kind.value, error.element or "", error.message])
        for warning in source.warnings:
            self._table.add_row(["WARNING", warning.kind.value, warning.element or "", warning.message])
        if not source.errors and not source.warnings:
            self._msg = "No problems found."


class StepSummaryReport(BaseReport):
    """A report with one row per execution element of a job."""

    FIELDS = [("NAME", "U"), ("KIND", "U"), ("PARENT", "U"), ("CLASSES", "U"), ("TRANSITIONS", "U")]

    def __init__(self, fields=None):
        super().__init__(self.FIELDS if fields is None else fields)

    def add(self, source: JobModel) -> None:
        # Docstring inherited from the base class.
        if not source.steps:
            self._msg = f"WARNING: Job '{source.batch_name}' has no steps."
        for step in source.steps:
            self._add_step(step, "")

    def _add_step(self, step: StepDefinition, parent: str) -> None:
        classes: list[str] = []
        transitions: list[str] = []
        children: tuple[StepDefinition, ...] = ()
        match step:
            case BatchletStep():
                classes = [step.batchlet_class]
                transitions = _describe_transitions(step)
            case ChunkStep():
                classes = [ref for ref in (step.reader_class, step.processor_class, step.writer_class) if ref]
                transitions = _describe_transitions(step)
            case DecisionStep():
                classes = [step.decider_class]
                transitions = _describe_transitions(step)
            case FlowStep():
                transitions = _describe_transitions(step)
                if step.next_step:
                    transitions.append(f"*->{step.next_step}")
                children = step.steps
            case SplitStep():
                if step.next_step:
                    transitions.append(f"*->{step.next_step}")
                children = step.flows

        kind = step.kind.name.lower()
        if isinstance(step, ChunkStep) and step.is_partitioned:
            kind += " (partitioned)"
        self._table.add_row([step.name, kind, parent, ", ".join(classes), ", ".join(transitions)])
        for child in children:
            self._add_step(child, step.name)


def _describe_transitions(step: BatchletStep | ChunkStep | DecisionStep | FlowStep) -> list[str]:
    described = []
    for transition in step.transitions:
        if transition.action == TransitionAction.NEXT:
            described.append(f"{transition.on}->{transition.to}")
        else:
            described.append(f"{transition.on}:{transition.action.value}")
    return described
