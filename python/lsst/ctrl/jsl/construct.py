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

"""Driver for constructing a job model from a job description."""

__all__ = ["construct_job_model", "construct_step"]

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from lsst.daf.butler import Config

from .errors import ModelError
from .jsl_config import JslConfig
from .jsl_utils import to_bool
from .job_model import (
    BatchletStep,
    CheckpointConfig,
    ChunkStep,
    DecisionStep,
    ExceptionClassFilter,
    FlowStep,
    JobModel,
    JobParameter,
    JobRestartConfig,
    PartitionConfig,
    Property,
    SplitStep,
    StepDefinition,
    StepRestartConfig,
    Transition,
    TransitionAction,
)

_LOG = logging.getLogger(__name__)

# Predefined entries of the jobParameters mapping, in output order.
_NAMED_PARAMETERS = ("asOfDate", "chunkSize", "dataSource")


def construct_job_model(config: JslConfig) -> JobModel:
    """Create a job model from a job description.

    Parameters
    ----------
    config : `lsst.ctrl.jsl.JslConfig`
        Job description, e.g. loaded from a YAML file.

    Returns
    -------
    model : `lsst.ctrl.jsl.JobModel`
        Job model in its flat form, i.e. not normalized yet.

    Raises
    ------
    lsst.ctrl.jsl.ModelError
        Raised if the description contains entries that cannot be turned
        into a job model.
    KeyError
        Raised if the batch name is not specified.
    """
    _, batch_name = config.search("batchName", opt={"required": True})
    restart = None
    found, value = config.search("jobRestartConfig")
    if found:
        restart = _make_restart(_as_dict(value, "jobRestartConfig"))

    model = JobModel(
        batch_name=str(batch_name),
        functional_area=config.get("functionalAreaCd", None),
        frequency=config.get("frequency", None),
        package_name=config.get("packageName", None),
        parameters=tuple(_make_parameters(config.get("jobParameters", None))),
        properties=_make_properties(config.get("batchProperties", None)),
        listeners=_make_listeners(config.get("batchListeners", None)),
        restart=restart,
        steps=tuple(construct_step(item) for item in _as_list(config.get("stepItems", None), "stepItems")),
    )
    _LOG.debug("Constructed job '%s' with %d top-level step item(s)", model.batch_name, len(model.steps))
    return model


def construct_step(item: Mapping[str, Any]) -> StepDefinition:
    """Create a step from a single ``stepItems`` entry.

    Parameters
    ----------
    item : `~collections.abc.Mapping` [`str`, `~typing.Any`]
        Step description using the same field names as the job description
        (``type``, ``stepName``, ``batchletClass``, ...).

    Returns
    -------
    step : `lsst.ctrl.jsl.StepDefinition`
        The step.

    Raises
    ------
    lsst.ctrl.jsl.ModelError
        Raised if the step type is missing or unknown.
    """
    item = _as_dict(item, "stepItems")
    step_type = str(item.get("type", "")).upper()
    common = _common_fields(item)
    name = common["name"]
    match step_type:
        case "A":
            return BatchletStep(
                **common,
                batchlet_class=item.get("batchletClass", ""),
                properties=_make_properties(item.get("stepProperties")),
                listeners=_make_listeners(item.get("listeners")),
                transitions=_make_transitions(item.get("transitions")),
            )
        case "B" | "C":
            return _make_chunk(item, common, partitioned=step_type == "C")
        case "DECISION":
            return DecisionStep(
                **common,
                decider_class=item.get("deciderClass", ""),
                properties=_make_properties(item.get("stepProperties")),
                transitions=_make_transitions(item.get("transitions")),
            )
        case "FLOW":
            return _make_flow(item, common)
        case "SPLIT":
            return SplitStep(
                **common,
                flows=tuple(
                    _make_flow(flow, _common_fields(flow))
                    for flow in (_as_dict(entry, "flows") for entry in _as_list(item.get("flows"), "flows"))
                ),
                flow_ids=tuple(str(flow_id) for flow_id in _as_list(item.get("flowIds"), "flowIds")),
                next_step=item.get("nextStep") or None,
            )
        case _:
            raise ModelError(f"Step '{name}' has unknown type '{item.get('type')}'")


def _common_fields(item: dict[str, Any]) -> dict[str, Any]:
    name = item.get("stepName") or item.get("flowName") or ""
    return {"id": str(item.get("id") or name), "name": name, "parent_flow_id": item.get("parentFlowId")}


def _make_chunk(item: dict[str, Any], common: dict[str, Any], partitioned: bool) -> ChunkStep:
    processor = item.get("processorClass") or None
    if not _as_bool(item.get("addProcessor", True), "addProcessor"):
        processor = None
    return ChunkStep(
        **common,
        reader_class=item.get("readerClass", ""),
        processor_class=processor,
        writer_class=item.get("writerClass", ""),
        checkpoint=_make_checkpoint(item.get("checkpointConfig")),
        partition=_make_partition(item, partitioned),
        skippable_exceptions=ExceptionClassFilter(
            include=_as_names(item.get("skipExceptionClasses")),
            exclude=_as_names(item.get("skipExcludeClasses")),
        ),
        retryable_exceptions=ExceptionClassFilter(
            include=_as_names(item.get("retryExceptionClasses")),
            exclude=_as_names(item.get("retryExcludeClasses")),
        ),
        no_rollback_exceptions=ExceptionClassFilter(
            include=_as_names(item.get("noRollbackExceptionClasses")),
        ),
        skip_limit=_as_int(item.get("skipLimit"), "skipLimit"),
        retry_limit=_as_int(item.get("retryLimit"), "retryLimit"),
        properties=_make_properties(item.get("stepProperties")),
        listeners=_make_listeners(item.get("listeners")),
        transitions=_make_transitions(item.get("transitions")),
    )


def _make_flow(item: dict[str, Any], common: dict[str, Any]) -> FlowStep:
    return FlowStep(
        **common,
        steps=tuple(construct_step(child) for child in _as_list(item.get("steps"), "steps")),
        next_step=item.get("nextStep") or None,
        properties=_make_properties(item.get("stepProperties")),
        transitions=_make_transitions(item.get("transitions")),
    )


def _make_checkpoint(value: Any) -> CheckpointConfig:
    if value is None:
        return CheckpointConfig()
    settings = _as_dict(value, "checkpointConfig")
    return CheckpointConfig(
        enabled=_as_bool(settings.get("enabled", False), "enabled"),
        item_count=_as_int(settings.get("itemCount"), "itemCount"),
        time_limit=_as_int(settings.get("timeLimit"), "timeLimit"),
        custom_policy=settings.get("customPolicy") or None,
        custom_policy_properties=_make_properties(settings.get("customPolicyProperties")),
    )


def _make_partition(item: dict[str, Any], partitioned: bool) -> PartitionConfig:
    settings = _as_dict(item.get("advancedPartitionConfig") or {}, "advancedPartitionConfig")
    if not settings and not partitioned:
        return PartitionConfig()
    return PartitionConfig(
        enabled=_as_bool(settings.get("enabled", partitioned), "enabled"),
        mapper_class=settings.get("mapperClass") or item.get("partitionerClass") or None,
        partition_count=_as_int(settings.get("partitionCount"), "partitionCount"),
        collector_class=settings.get("collectorClass") or None,
        analyzer_class=settings.get("analyzerClass") or None,
        reducer_class=settings.get("reducerClass") or None,
    )


def _make_restart(settings: dict[str, Any]) -> JobRestartConfig:
    step_settings = _as_dict(settings.get("stepRestartConfig") or {}, "stepRestartConfig")
    return JobRestartConfig(
        restartable=_as_bool(settings.get("restartable", True), "restartable"),
        step_defaults=StepRestartConfig(
            allow_start_if_complete=_as_bool(
                step_settings.get("allowStartIfComplete", False), "allowStartIfComplete"
            ),
            start_limit=_as_int(step_settings.get("startLimit"), "startLimit") or 0,
            restartable=_as_bool(step_settings.get("restartable", True), "restartable"),
        ),
    )


def _make_parameters(value: Any) -> list[JobParameter]:
    """Flatten ``jobParameters`` which is either a list of parameters or a
    mapping with predefined entries and a ``customParameters`` list.
    """
    if value is None:
        return []
    if isinstance(value, Config | Mapping):
        settings = _as_dict(value, "jobParameters")
        entries = [
            {"name": key} | _as_dict(settings[key], key) for key in _NAMED_PARAMETERS if key in settings
        ]
        entries.extend(_as_list(settings.get("customParameters"), "customParameters"))
    else:
        entries = _as_list(value, "jobParameters")

    parameters = []
    for entry in entries:
        entry = _as_dict(entry, "jobParameters")
        if not entry.get("name"):
            raise ModelError("Every job parameter needs a name")
        default = entry.get("defaultValue")
        parameters.append(
            JobParameter(
                name=entry["name"],
                type=entry.get("type", "String"),
                required=_as_bool(entry.get("required", False), "required"),
                default_value=None if default is None or default == "" else str(default),
                description=entry.get("description", ""),
                enabled=_as_bool(entry.get("enabled", True), "enabled"),
            )
        )
    return parameters


def _make_properties(value: Any) -> tuple[Property, ...]:
    properties = []
    for entry in _as_list(value, "properties"):
        entry = _as_dict(entry, "properties")
        key = entry.get("key") or entry.get("name")
        if not key:
            raise ModelError(f"Property without a name: {entry}")
        value = entry.get("value", "")
        if isinstance(value, bool):
            value = str(value).lower()
        properties.append(Property(key=key, value=str(value), type=entry.get("type", "String")))
    return tuple(properties)


def _make_listeners(value: Any) -> tuple[str, ...]:
    listeners = []
    for entry in _as_list(value, "listeners"):
        if isinstance(entry, str):
            name = entry
        else:
            entry = _as_dict(entry, "listeners")
            name = entry.get("listenerName") or entry.get("name")
        if not name:
            raise ModelError(f"Listener without a class name: {entry!r}")
        listeners.append(name)
    return tuple(listeners)


def _make_transitions(value: Any) -> tuple[Transition, ...]:
    transitions = []
    for entry in _as_list(value, "transitions"):
        entry = _as_dict(entry, "transitions")
        try:
            action = TransitionAction(str(entry.get("action", "")).lower())
        except ValueError:
            raise ModelError(f"Unknown transition action '{entry.get('action')}'") from None
        transitions.append(
            Transition(
                on=str(entry.get("on", "")),
                action=action,
                to=entry.get("to") or None,
                exit_status=entry.get("exitStatus") or None,
                restart=entry.get("restart") or None,
            )
        )
    return tuple(transitions)


def _as_dict(value: Any, field: str) -> dict[str, Any]:
    if isinstance(value, Config):
        return value.toDict()
    if isinstance(value, Mapping):
        return dict(value)
    raise ModelError(f"Expected a mapping for '{field}', got {value!r}")


def _as_list(value: Any, field: str) -> list[Any]:
    if value is None or value == "":
        return []
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise ModelError(f"Expected a list for '{field}', got {value!r}")
    return list(value)


def _as_names(value: Any) -> tuple[str, ...]:
    return tuple(str(name) for name in _as_list(value, "exception classes") if name)


def _as_bool(value: Any, field: str) -> bool:
    try:
        return to_bool(value)
    except ValueError:
        raise ModelError(f"Expected a boolean for '{field}', got {value!r}") from None


def _as_int(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ModelError(f"Expected an integer for '{field}', got {value!r}") from None
