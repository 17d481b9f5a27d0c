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

"""Structural and semantic checks of JSR-352 job descriptors.

Every check runs on every document so one call reports all problems found;
problems are returned as data and never raised.
"""

__all__ = [
    "ErrorKind",
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "WarningKind",
    "validate_job_xml",
]

import dataclasses
import logging
import re
from collections import Counter
from collections.abc import Callable, Iterator
from enum import Enum
from xml.etree import ElementTree

from .constants import CHECKPOINT_POLICIES, JSL_NAMESPACE, JSL_VERSION

_LOG = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Categories of validation errors."""

    STRUCTURE = "structure"
    CONTENT = "content"
    ATTRIBUTE = "attribute"
    NAMESPACE = "namespace"


class WarningKind(str, Enum):
    """Categories of validation warnings."""

    BEST_PRACTICE = "best-practice"
    PERFORMANCE = "performance"
    COMPATIBILITY = "compatibility"


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationError:
    """A problem that makes the descriptor invalid."""

    kind: ErrorKind
    message: str
    element: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationWarning:
    """A deviation from recommended practice. Never affects validity."""

    kind: WarningKind
    message: str
    element: str | None = None


@dataclasses.dataclass(slots=True)
class ValidationResult:
    """Errors and warnings found in a descriptor."""

    errors: list[ValidationError] = dataclasses.field(default_factory=list)
    warnings: list[ValidationWarning] = dataclasses.field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Whether no errors were found (`bool`)."""
        return not self.errors

    def add_error(self, kind: ErrorKind, message: str, element: str | None = None) -> None:
        """Record an error.

        Parameters
        ----------
        kind : `ErrorKind`
            Category of the error.
        message : `str`
            Description of the problem.
        element : `str`, optional
            Name of the element the problem was found on.
        """
        self.errors.append(ValidationError(kind, message, element))

    def add_warning(self, kind: WarningKind, message: str, element: str | None = None) -> None:
        """Record a warning.

        Parameters
        ----------
        kind : `WarningKind`
            Category of the warning.
        message : `str`
            Description of the deviation.
        element : `str`, optional
            Name of the element the deviation was found on.
        """
        self.warnings.append(ValidationWarning(kind, message, element))


JOB_CHILDREN = frozenset({"properties", "listeners", "step", "decision", "flow", "split"})
EXECUTION_ELEMENTS = ("step", "decision", "split", "flow")
TRANSITION_ELEMENTS = ("next", "fail", "stop", "end")
REF_ELEMENTS = (
    "batchlet",
    "decision",
    "reader",
    "processor",
    "writer",
    "listener",
    "mapper",
    "collector",
    "analyzer",
    "reducer",
    "checkpoint-algorithm",
)
BOOLEAN_ATTRIBUTES = ("restartable", "abstract", "allow-start-if-complete")
# Smallest value accepted for each integer attribute.
NUMERIC_ATTRIBUTES = {
    "item-count": 1,
    "partitions": 1,
    "time-limit": 0,
    "start-limit": 0,
    "skip-limit": 0,
    "retry-limit": 0,
}

_JAVA_CLASS_NAME = re.compile(r"^([a-z_][a-z0-9_]*\.)+[A-Z][A-Za-z0-9_$]*$")


def validate_job_xml(xml: str | bytes) -> ValidationResult:
    """Check that text is a well-formed, sensible JSR-352 job descriptor.

    Parameters
    ----------
    xml : `str` or `bytes`
        Descriptor text. It does not need to come from
        `lsst.ctrl.jsl.serialize_job`.

    Returns
    -------
    result : `ValidationResult`
        Errors and warnings found. If the text cannot be parsed, the result
        holds that single error.
    """
    result = ValidationResult()
    try:
        root = ElementTree.fromstring(xml)
    except (ElementTree.ParseError, UnicodeError) as exc:
        result.add_error(ErrorKind.STRUCTURE, f"Invalid XML structure: {exc}")
        return result

    for check in _CHECKS:
        check(root, result)
    _LOG.debug(
        "Validation found %d error(s) and %d warning(s)", len(result.errors), len(result.warnings)
    )
    return result


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _namespace(tag: str) -> str | None:
    if tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return None


def _iter_named(root: ElementTree.Element, *names: str) -> Iterator[ElementTree.Element]:
    for element in root.iter():
        if _local_name(element.tag) in names:
            yield element


def _children_named(element: ElementTree.Element, *names: str) -> list[ElementTree.Element]:
    return [child for child in element if _local_name(child.tag) in names]


def _is_expression(value: str) -> bool:
    """Whether an attribute value uses JSL property substitution."""
    return "#{" in value


def _describe(element: ElementTree.Element) -> str:
    name = _local_name(element.tag)
    element_id = element.get("id")
    return f"<{name} id=\"{element_id}\">" if element_id else f"<{name}>"


def _check_root(root: ElementTree.Element, result: ValidationResult) -> None:
    name = _local_name(root.tag)
    if name != "job":
        result.add_error(ErrorKind.STRUCTURE, f"Root element must be <job>, found <{name}>", name)


def _check_namespace(root: ElementTree.Element, result: ValidationResult) -> None:
    namespace = _namespace(root.tag)
    if namespace != JSL_NAMESPACE:
        result.add_error(
            ErrorKind.NAMESPACE,
            f"Invalid or missing JSR-352 namespace (expected '{JSL_NAMESPACE}', found '{namespace or ''}')",
            _local_name(root.tag),
        )


def _check_job_attributes(root: ElementTree.Element, result: ValidationResult) -> None:
    name = _local_name(root.tag)
    if not root.get("id"):
        result.add_error(ErrorKind.ATTRIBUTE, 'Job element must have an "id" attribute', name)
    version = root.get("version")
    if version is not None and version != JSL_VERSION:
        result.add_error(
            ErrorKind.ATTRIBUTE, f'JSR-352 version must be "{JSL_VERSION}", found "{version}"', name
        )


def _check_job_children(root: ElementTree.Element, result: ValidationResult) -> None:
    for child in root:
        name = _local_name(child.tag)
        if name not in JOB_CHILDREN:
            result.add_error(ErrorKind.STRUCTURE, f"Invalid child element <{name}> in <job>", name)


def _check_ids(root: ElementTree.Element, result: ValidationResult) -> None:
    ids: Counter[str] = Counter()
    for element in _iter_named(root, *EXECUTION_ELEMENTS):
        name = _local_name(element.tag)
        element_id = element.get("id", "").strip()
        if not element_id:
            result.add_error(ErrorKind.ATTRIBUTE, f'<{name}> element must have an "id" attribute', name)
            continue
        ids[element_id] += 1
        if ids[element_id] == 2:
            result.add_error(ErrorKind.CONTENT, f'Duplicate ID "{element_id}" found', name)


def _check_steps(root: ElementTree.Element, result: ValidationResult) -> None:
    for step in _iter_named(root, "step"):
        implementations = _children_named(step, "batchlet", "chunk")
        if not implementations:
            result.add_error(
                ErrorKind.CONTENT, f"Step {_describe(step)} must contain either <batchlet> or <chunk>", "step"
            )
        elif len(implementations) > 1:
            result.add_error(
                ErrorKind.CONTENT,
                f"Step {_describe(step)} must contain only one <batchlet> or <chunk> element",
                "step",
            )


def _check_chunks(root: ElementTree.Element, result: ValidationResult) -> None:
    for chunk in _iter_named(root, "chunk"):
        for required in ("reader", "writer"):
            if not _children_named(chunk, required):
                result.add_error(ErrorKind.CONTENT, f"Chunk must contain a <{required}> element", "chunk")

        policy = chunk.get("checkpoint-policy")
        if policy is None or _is_expression(policy):
            continue
        if policy not in CHECKPOINT_POLICIES:
            result.add_error(
                ErrorKind.ATTRIBUTE,
                f"Invalid checkpoint-policy \"{policy}\". Must be one of {', '.join(CHECKPOINT_POLICIES)}",
                "chunk",
            )
        elif policy == "custom" and not _children_named(chunk, "checkpoint-algorithm"):
            result.add_error(
                ErrorKind.CONTENT,
                'A chunk with checkpoint-policy="custom" must contain a <checkpoint-algorithm> element',
                "chunk",
            )


def _check_refs(root: ElementTree.Element, result: ValidationResult) -> None:
    for element in _iter_named(root, *REF_ELEMENTS):
        name = _local_name(element.tag)
        ref = element.get("ref", "").strip()
        if not ref:
            result.add_error(
                ErrorKind.ATTRIBUTE, f'<{name}> element must have a non-empty "ref" attribute', name
            )
        elif not _is_expression(ref) and not _JAVA_CLASS_NAME.match(ref):
            result.add_warning(
                WarningKind.COMPATIBILITY,
                f'Reference "{ref}" is not a fully qualified Java class name'
                " and must resolve to a named bean",
                name,
            )


def _check_transitions(root: ElementTree.Element, result: ValidationResult) -> None:
    ids = {element.get("id") for element in _iter_named(root, *EXECUTION_ELEMENTS) if element.get("id")}
    for transition in _iter_named(root, *TRANSITION_ELEMENTS):
        name = _local_name(transition.tag)
        if not transition.get("on"):
            result.add_error(ErrorKind.ATTRIBUTE, f'<{name}> element must have an "on" attribute', name)
        if name == "next":
            target = transition.get("to")
            if not target:
                result.add_error(ErrorKind.ATTRIBUTE, '<next> element must have a "to" attribute', name)
            elif target not in ids:
                result.add_error(ErrorKind.CONTENT, f'Transition target "{target}" does not exist', name)
    for element in _iter_named(root, *EXECUTION_ELEMENTS):
        target = element.get("next")
        if target is not None and target not in ids:
            result.add_error(
                ErrorKind.CONTENT,
                f'{_describe(element)} continues to "{target}" which does not exist',
                _local_name(element.tag),
            )


def _check_attribute_values(root: ElementTree.Element, result: ValidationResult) -> None:
    for element in root.iter():
        name = _local_name(element.tag)
        for attr in BOOLEAN_ATTRIBUTES:
            value = element.get(attr)
            if value is not None and not _is_expression(value) and value not in ("true", "false"):
                result.add_error(
                    ErrorKind.ATTRIBUTE,
                    f'Attribute "{attr}" must be "true" or "false", found "{value}"',
                    name,
                )
        for attr, minimum in NUMERIC_ATTRIBUTES.items():
            value = element.get(attr)
            if value is None or _is_expression(value):
                continue
            try:
                valid = int(value) >= minimum
            except ValueError:
                valid = False
            if not valid:
                qualifier = "positive" if minimum else "non-negative"
                result.add_error(
                    ErrorKind.ATTRIBUTE,
                    f'Attribute "{attr}" must be a {qualifier} integer, found "{value}"',
                    name,
                )


def _check_best_practices(root: ElementTree.Element, result: ValidationResult) -> None:
    job = _local_name(root.tag)
    if not _children_named(root, "properties"):
        result.add_warning(
            WarningKind.BEST_PRACTICE,
            "Consider adding job-level properties for configuration flexibility",
            job,
        )
    if not _children_named(root, "listeners"):
        result.add_warning(
            WarningKind.BEST_PRACTICE, "Consider adding job listeners for monitoring and logging", job
        )

    for step in _iter_named(root, "step"):
        for chunk in _children_named(step, "chunk"):
            if chunk.get("checkpoint-policy") is None:
                result.add_warning(
                    WarningKind.PERFORMANCE,
                    f"Step {_describe(step)} has no checkpoint policy; consider configuring one for better "
                    "performance and restart capability",
                    "chunk",
                )
            if _children_named(chunk, "processor") and not _children_named(
                chunk, "skippable-exception-classes", "retryable-exception-classes"
            ):
                result.add_warning(
                    WarningKind.BEST_PRACTICE,
                    f"Step {_describe(step)} processes items without exception handling; consider adding "
                    "skippable or retryable exception classes",
                    "chunk",
                )


_CHECKS: tuple[Callable[[ElementTree.Element, ValidationResult], None], ...] = (
    _check_root,
    _check_namespace,
    _check_job_attributes,
    _check_job_children,
    _check_ids,
    _check_steps,
    _check_chunks,
    _check_refs,
    _check_transitions,
    _check_attribute_values,
    _check_best_practices,
)
