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

"""Write a job model as a JSR-352 job descriptor.

The output is a pure function of the model: attribute and element order
follow the Job Specification Language grammar and nothing depends on the
time, locale or dictionary iteration of the caller.
"""

__all__ = ["escape_attribute", "generate_job_xml", "serialize_job"]

import io
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TextIO, assert_never
from xml.sax.saxutils import escape

from lsst.utils.logging import VERBOSE

from .constants import JSL_NAMESPACE, JSL_VERSION
from .errors import SerializationError
from .job_model import (
    BatchletStep,
    CheckpointPolicy,
    ChunkStep,
    DecisionStep,
    ExceptionClassFilter,
    FlowStep,
    JobModel,
    JobRestartConfig,
    Property,
    SplitStep,
    StepDefinition,
    Transition,
    TransitionAction,
    iter_steps,
)
from .normalizer import normalize_job

_LOG = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

_INDENT = "  "

# Quotes plus the whitespace characters an XML parser would otherwise
# normalize to spaces inside attribute values.
_ATTRIBUTE_ENTITIES = {'"': "&quot;", "'": "&apos;", "\n": "&#10;", "\r": "&#13;", "\t": "&#9;"}


def escape_attribute(value: Any) -> str:
    """Escape a value for use inside a double-quoted XML attribute.

    Parameters
    ----------
    value : `~typing.Any`
        Value to escape. Booleans are written as ``true``/``false``, other
        non-string values through `str`.

    Returns
    -------
    escaped : `str`
        Value with ``&``, ``<``, ``>``, quotes and whitespace control
        characters replaced by entities.
    """
    if isinstance(value, bool):
        value = "true" if value else "false"
    return escape(str(value), _ATTRIBUTE_ENTITIES)


def generate_job_xml(model: JobModel) -> str:
    """Normalize a job model and write it as a job descriptor.

    Parameters
    ----------
    model : `lsst.ctrl.jsl.JobModel`
        Job model, possibly with flow membership given by back-references.

    Returns
    -------
    xml : `str`
        Job descriptor text.

    Raises
    ------
    lsst.ctrl.jsl.ModelError
        Raised if the model cannot be normalized.
    lsst.ctrl.jsl.SerializationError
        Raised if a step is missing a required class reference.
    """
    return serialize_job(normalize_job(model))


def serialize_job(model: JobModel) -> str:
    """Write a normalized job model as a job descriptor.

    Parameters
    ----------
    model : `lsst.ctrl.jsl.JobModel`
        Normalized job model (see `lsst.ctrl.jsl.normalize_job`).

    Returns
    -------
    xml : `str`
        Job descriptor text, starting with the XML declaration.

    Raises
    ------
    lsst.ctrl.jsl.SerializationError
        Raised if the model has no batch name, still holds flow
        back-references, or a step is missing something its kind requires.
    """
    if not model.batch_name:
        raise SerializationError("Job has no batch name")
    for step in iter_steps(model.steps):
        if step.parent_flow_id is not None or (isinstance(step, SplitStep) and step.flow_ids):
            raise SerializationError(
                f"Step '{step.name}' still refers to its flow by identifier; normalize the job first"
            )

    stream = io.StringIO()
    print(XML_DECLARATION, file=stream)

    attrs: dict[str, Any] = {"id": model.batch_name, "xmlns": JSL_NAMESPACE, "version": JSL_VERSION}
    if model.restart is not None:
        attrs["restartable"] = model.restart.restartable
    print(f"<job{_format_attributes(attrs)}>", file=stream)

    _write_properties(stream, 1, _job_properties(model))
    _write_listeners(stream, 1, model.listeners)
    for step in model.steps:
        _write_step(stream, 1, step, model.restart)

    print("</job>", file=stream)
    _LOG.debug("Serialized job '%s' (%d top-level element(s))", model.batch_name, len(model.steps))
    return stream.getvalue()


def _job_properties(model: JobModel) -> list[Property]:
    """Return explicit job properties followed by one property per enabled
    job parameter that the explicit ones do not already define.
    """
    properties = list(model.properties)
    names = {prop.key for prop in properties}
    for param in model.parameters:
        if not param.enabled or param.name in names:
            continue
        value = f"#{{jobParameters['{param.name}']}}"
        if param.default_value:
            value += f"?:{param.default_value};"
        properties.append(Property(param.name, value))
        names.add(param.name)
    return properties


def _format_attributes(attrs: Mapping[str, Any]) -> str:
    return "".join(f' {key}="{escape_attribute(value)}"' for key, value in attrs.items() if value is not None)


def _write_empty(stream: TextIO, depth: int, tag: str, attrs: Mapping[str, Any]) -> None:
    print(f"{_INDENT * depth}<{tag}{_format_attributes(attrs)}/>", file=stream)


def _write_element(
    stream: TextIO,
    depth: int,
    tag: str,
    attrs: Mapping[str, Any],
    write_body: Callable[[TextIO, int], None],
) -> None:
    """Write an element whose children come from ``write_body``, collapsing
    it to an empty element when the body writes nothing.
    """
    body = io.StringIO()
    write_body(body, depth + 1)
    if not body.getvalue():
        _write_empty(stream, depth, tag, attrs)
        return
    print(f"{_INDENT * depth}<{tag}{_format_attributes(attrs)}>", file=stream)
    stream.write(body.getvalue())
    print(f"{_INDENT * depth}</{tag}>", file=stream)


def _write_properties(stream: TextIO, depth: int, properties: Iterable[Property]) -> None:
    properties = list(properties)
    if not properties:
        return
    print(f"{_INDENT * depth}<properties>", file=stream)
    for prop in properties:
        _write_empty(stream, depth + 1, "property", {"name": prop.key, "value": prop.value})
    print(f"{_INDENT * depth}</properties>", file=stream)


def _write_listeners(stream: TextIO, depth: int, listeners: Iterable[str]) -> None:
    listeners = list(listeners)
    if not listeners:
        return
    if not all(listeners):
        raise SerializationError("Every listener needs a class reference")
    print(f"{_INDENT * depth}<listeners>", file=stream)
    for listener in listeners:
        _write_empty(stream, depth + 1, "listener", {"ref": listener})
    print(f"{_INDENT * depth}</listeners>", file=stream)


def _write_transitions(
    stream: TextIO, depth: int, step: StepDefinition, transitions: Iterable[Transition]
) -> None:
    for transition in transitions:
        if not transition.on:
            raise SerializationError(f"A transition of step '{step.name}' has no exit status to match")
        match transition.action:
            case TransitionAction.NEXT:
                if not transition.to:
                    raise SerializationError(
                        f"Transition on '{transition.on}' of step '{step.name}' has no target step"
                    )
                _write_empty(stream, depth, "next", {"on": transition.on, "to": transition.to})
            case TransitionAction.FAIL:
                _write_empty(
                    stream, depth, "fail", {"on": transition.on, "exit-status": transition.exit_status}
                )
            case TransitionAction.STOP:
                _write_empty(
                    stream,
                    depth,
                    "stop",
                    {
                        "on": transition.on,
                        "exit-status": transition.exit_status,
                        "restart": transition.restart,
                    },
                )
            case TransitionAction.END:
                _write_empty(
                    stream, depth, "end", {"on": transition.on, "exit-status": transition.exit_status}
                )
            case _:
                raise SerializationError(f"Unknown transition action {transition.action!r} in '{step.name}'")


def _step_attributes(step: StepDefinition, restart: JobRestartConfig | None) -> dict[str, Any]:
    attrs: dict[str, Any] = {"id": step.name}
    if restart is not None:
        attrs["start-limit"] = restart.step_defaults.start_limit
        attrs["allow-start-if-complete"] = restart.step_defaults.allow_start_if_complete
    return attrs


def _write_step(stream: TextIO, depth: int, step: StepDefinition, restart: JobRestartConfig | None) -> None:
    _LOG.log(VERBOSE, "Writing %s '%s'", step.kind.name.lower(), step.name)
    match step:
        case BatchletStep():
            _write_batchlet_step(stream, depth, step, restart)
        case ChunkStep():
            _write_chunk_step(stream, depth, step, restart)
        case DecisionStep():
            _write_decision(stream, depth, step)
        case SplitStep():
            _write_split(stream, depth, step, restart)
        case FlowStep():
            _write_flow(stream, depth, step, restart)
        case _:
            assert_never(step)


def _write_batchlet_step(
    stream: TextIO, depth: int, step: BatchletStep, restart: JobRestartConfig | None
) -> None:
    if not step.batchlet_class:
        raise SerializationError(f"Batchlet step '{step.name}' has no batchlet class")

    def body(out: TextIO, level: int) -> None:
        _write_properties(out, level, step.properties)
        _write_listeners(out, level, step.listeners)
        _write_empty(out, level, "batchlet", {"ref": step.batchlet_class})
        _write_transitions(out, level, step, step.transitions)

    _write_element(stream, depth, "step", _step_attributes(step, restart), body)


def _chunk_attributes(step: ChunkStep) -> dict[str, Any]:
    checkpoint = step.checkpoint
    attrs: dict[str, Any] = {}
    match checkpoint.policy:
        case None:
            pass
        case CheckpointPolicy.CUSTOM:
            attrs["checkpoint-policy"] = CheckpointPolicy.CUSTOM.value
            attrs["item-count"] = checkpoint.item_count
            attrs["time-limit"] = checkpoint.time_limit
        case CheckpointPolicy.TIME:
            attrs["checkpoint-policy"] = CheckpointPolicy.TIME.value
            attrs["time-limit"] = checkpoint.time_limit
        case CheckpointPolicy.ITEM:
            attrs["checkpoint-policy"] = CheckpointPolicy.ITEM.value
            attrs["item-count"] = checkpoint.item_count
            attrs["time-limit"] = checkpoint.time_limit
    attrs["skip-limit"] = step.skip_limit
    attrs["retry-limit"] = step.retry_limit
    return attrs


def _write_exception_classes(stream: TextIO, depth: int, tag: str, classes: ExceptionClassFilter) -> None:
    if not classes:
        return
    print(f"{_INDENT * depth}<{tag}>", file=stream)
    for name in classes.include:
        _write_empty(stream, depth + 1, "include", {"class": name})
    for name in classes.exclude:
        _write_empty(stream, depth + 1, "exclude", {"class": name})
    print(f"{_INDENT * depth}</{tag}>", file=stream)


def _write_chunk(stream: TextIO, depth: int, step: ChunkStep) -> None:
    def body(out: TextIO, level: int) -> None:
        _write_empty(out, level, "reader", {"ref": step.reader_class})
        if step.processor_class:
            _write_empty(out, level, "processor", {"ref": step.processor_class})
        _write_empty(out, level, "writer", {"ref": step.writer_class})
        checkpoint = step.checkpoint
        if checkpoint.policy == CheckpointPolicy.CUSTOM:
            _write_element(
                out,
                level,
                "checkpoint-algorithm",
                {"ref": checkpoint.custom_policy},
                lambda inner, inner_level: _write_properties(
                    inner, inner_level, checkpoint.custom_policy_properties
                ),
            )
        _write_exception_classes(out, level, "skippable-exception-classes", step.skippable_exceptions)
        _write_exception_classes(out, level, "retryable-exception-classes", step.retryable_exceptions)
        _write_exception_classes(out, level, "no-rollback-exception-classes", step.no_rollback_exceptions)

    _write_element(stream, depth, "chunk", _chunk_attributes(step), body)


def _write_partition(stream: TextIO, depth: int, step: ChunkStep) -> None:
    partition = step.partition
    if partition.mapper_class:
        first = ("mapper", {"ref": partition.mapper_class})
    elif partition.partition_count:
        first = ("plan", {"partitions": partition.partition_count})
    else:
        raise SerializationError(f"Partitioned step '{step.name}' needs a mapper class or a partition count")

    print(f"{_INDENT * depth}<partition>", file=stream)
    _write_empty(stream, depth + 1, *first)
    for tag, ref in (
        ("collector", partition.collector_class),
        ("analyzer", partition.analyzer_class),
        ("reducer", partition.reducer_class),
    ):
        if ref:
            _write_empty(stream, depth + 1, tag, {"ref": ref})
    print(f"{_INDENT * depth}</partition>", file=stream)


def _write_chunk_step(
    stream: TextIO, depth: int, step: ChunkStep, restart: JobRestartConfig | None
) -> None:
    missing = [
        label for label, ref in (("reader", step.reader_class), ("writer", step.writer_class)) if not ref
    ]
    if missing:
        raise SerializationError(f"Chunk step '{step.name}' has no {' or '.join(missing)} class")

    def body(out: TextIO, level: int) -> None:
        _write_properties(out, level, step.properties)
        _write_listeners(out, level, step.listeners)
        _write_chunk(out, level, step)
        if step.is_partitioned:
            _write_partition(out, level, step)
        _write_transitions(out, level, step, step.transitions)

    _write_element(stream, depth, "step", _step_attributes(step, restart), body)


def _write_decision(stream: TextIO, depth: int, step: DecisionStep) -> None:
    if not step.decider_class:
        raise SerializationError(f"Decision '{step.name}' has no decider class")
    if not step.transitions:
        raise SerializationError(f"Decision '{step.name}' needs at least one transition")

    def body(out: TextIO, level: int) -> None:
        _write_properties(out, level, step.properties)
        _write_transitions(out, level, step, step.transitions)

    _write_element(stream, depth, "decision", {"id": step.name, "ref": step.decider_class}, body)


def _write_flow(stream: TextIO, depth: int, step: FlowStep, restart: JobRestartConfig | None) -> None:
    def body(out: TextIO, level: int) -> None:
        _write_properties(out, level, step.properties)
        for child in step.steps:
            _write_step(out, level, child, restart)
        _write_transitions(out, level, step, step.transitions)

    _write_element(stream, depth, "flow", {"id": step.name, "next": step.next_step}, body)


def _write_split(stream: TextIO, depth: int, step: SplitStep, restart: JobRestartConfig | None) -> None:
    def body(out: TextIO, level: int) -> None:
        for flow in step.flows:
            _write_flow(out, level, flow, restart)

    _write_element(stream, depth, "split", {"id": step.name, "next": step.next_step}, body)
