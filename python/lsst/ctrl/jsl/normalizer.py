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

"""Reshape a job model's flat step list into the tree the serializer walks.
"""

__all__ = ["normalize_job", "normalize_steps"]

import dataclasses
import logging
from collections import Counter
from collections.abc import Iterable

from networkx import DiGraph
from networkx.algorithms.cycles import find_cycle
from networkx.algorithms.dag import is_directed_acyclic_graph

from .errors import ModelError
from .job_model import (
    BatchletStep,
    ChunkStep,
    DecisionStep,
    FlowStep,
    JobModel,
    SplitStep,
    StepDefinition,
    Transition,
    TransitionAction,
    iter_steps,
)

_LOG = logging.getLogger(__name__)


def normalize_job(model: JobModel) -> JobModel:
    """Return a copy of the model whose steps are nested into their owning
    flows and splits.

    Parameters
    ----------
    model : `lsst.ctrl.jsl.JobModel`
        Job model as assembled by its supplier. It is not modified.

    Returns
    -------
    normalized : `lsst.ctrl.jsl.JobModel`
        Job model whose ``steps`` are the top-level elements only, with no
        remaining ``parent_flow_id`` or ``flow_ids`` references.

    Raises
    ------
    lsst.ctrl.jsl.ModelError
        Raised if identifiers or display names are not unique, a flow
        reference cannot be resolved, or a transition points at an unknown
        step.
    """
    return dataclasses.replace(model, steps=tuple(normalize_steps(model)))


def normalize_steps(model: JobModel) -> list[StepDefinition]:
    """Nest the model's steps and return the top-level ones in order.

    Parameters
    ----------
    model : `lsst.ctrl.jsl.JobModel`
        Job model to normalize.

    Returns
    -------
    steps : `list` [`lsst.ctrl.jsl.StepDefinition`]
        Top-level steps in insertion order, each with its flow and split
        children attached.

    Raises
    ------
    lsst.ctrl.jsl.ModelError
        Raised if the model cannot be reshaped (see `normalize_job`).
    """
    graph = _build_ownership_graph(model.steps)

    top_level = [step_id for step_id in graph if graph.in_degree(step_id) == 0]
    steps = [_attach_children(graph, step_id) for step_id in top_level]
    _LOG.debug("Normalized %d step(s) into %d top-level element(s)", len(graph), len(steps))

    _check_names(steps)
    _check_targets(steps)
    return steps


def _build_ownership_graph(steps: Iterable[StepDefinition]) -> DiGraph:
    """Create a graph with an edge from every container to each element it
    owns.

    Edges are added in the order children must appear: steps nested inline
    first, then flows a split references by id, then elements pointing back
    at their owner through ``parent_flow_id``.
    """
    graph = DiGraph()
    for step in iter_steps(steps):
        if step.id in graph:
            raise ModelError(f"Duplicate step identifier '{step.id}'")
        graph.add_node(step.id, data=step)
    for step in iter_steps(steps):
        match step:
            case FlowStep():
                for child in step.steps:
                    _add_owner(graph, step.id, child.id)
            case SplitStep():
                for child in step.flows:
                    _add_owner(graph, step.id, child.id)

    for step in iter_steps(steps):
        if isinstance(step, SplitStep):
            for flow_id in step.flow_ids:
                if flow_id not in graph:
                    raise ModelError(f"Split '{step.name}' references unknown flow '{flow_id}'")
                _add_owner(graph, step.id, flow_id)

    for step in iter_steps(steps):
        if step.parent_flow_id is not None:
            if step.parent_flow_id not in graph:
                raise ModelError(
                    f"Step '{step.name}' belongs to unknown flow '{step.parent_flow_id}'"
                )
            _add_owner(graph, step.parent_flow_id, step.id)

    if not is_directed_acyclic_graph(graph):
        cycle = [edge[0] for edge in find_cycle(graph)]
        raise ModelError(f"Flows contain each other: {' -> '.join(cycle)}")
    return graph


def _add_owner(graph: DiGraph, owner_id: str, member_id: str) -> None:
    owner = graph.nodes[owner_id]["data"]
    member = graph.nodes[member_id]["data"]
    if not isinstance(owner, FlowStep | SplitStep):
        raise ModelError(f"'{member.name}' cannot belong to '{owner.name}' which is not a flow or split")
    if isinstance(owner, SplitStep) and not isinstance(member, FlowStep):
        raise ModelError(f"Split '{owner.name}' can only contain flows, not '{member.name}'")
    if graph.has_edge(owner_id, member_id):
        return
    if graph.in_degree(member_id):
        current = graph.nodes[next(iter(graph.predecessors(member_id)))]["data"]
        raise ModelError(f"'{member.name}' is claimed by both '{current.name}' and '{owner.name}'")
    graph.add_edge(owner_id, member_id)


def _attach_children(graph: DiGraph, step_id: str) -> StepDefinition:
    step = graph.nodes[step_id]["data"]
    children = [_attach_children(graph, child_id) for child_id in graph.successors(step_id)]
    match step:
        case FlowStep():
            return dataclasses.replace(step, steps=tuple(children), parent_flow_id=None)
        case SplitStep():
            return dataclasses.replace(step, flows=tuple(children), flow_ids=(), parent_flow_id=None)
        case BatchletStep() | ChunkStep() | DecisionStep():
            return dataclasses.replace(step, parent_flow_id=None)
        case _:
            raise ModelError(f"Unsupported step type {type(step).__name__} for '{step_id}'")


def _check_names(steps: list[StepDefinition]) -> None:
    counts = Counter(step.name for step in iter_steps(steps))
    if "" in counts:
        raise ModelError("Every step needs a non-empty name")
    dupes = sorted(name for name, count in counts.items() if count > 1)
    if dupes:
        raise ModelError(f"Duplicate step names found: {dupes}")


def _check_targets(steps: list[StepDefinition]) -> None:
    names = {step.name for step in iter_steps(steps)}
    for step in iter_steps(steps):
        targets: list[str] = []
        match step:
            case SplitStep():
                if step.next_step:
                    targets.append(step.next_step)
            case FlowStep():
                if step.next_step:
                    targets.append(step.next_step)
                targets.extend(_next_targets(step, step.transitions))
            case BatchletStep() | ChunkStep() | DecisionStep():
                targets.extend(_next_targets(step, step.transitions))
        for target in targets:
            if target not in names:
                raise ModelError(
                    f"Step '{step.name}' continues to unknown step '{target}'. Known steps: {sorted(names)}"
                )


def _next_targets(step: StepDefinition, transitions: Iterable[Transition]) -> list[str]:
    targets = []
    for transition in transitions:
        if transition.action == TransitionAction.NEXT:
            if not transition.to:
                raise ModelError(f"Transition on '{transition.on}' of step '{step.name}' has no target")
            targets.append(transition.to)
    return targets
