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

"""Supporting functions for displaying validation results and job
contents.
"""

__all__ = [
    "INVALID_BANNER",
    "VALID_BANNER",
    "display_job_summary",
    "display_validation_report",
    "format_validation_result",
]

import logging
import sys
from typing import TextIO

from .jsl_reports import IssueReport, StepSummaryReport
from .job_model import JobModel
from .validator import ValidationResult

_LOG = logging.getLogger(__name__)

VALID_BANNER = "XML is valid JSR-352 format"
INVALID_BANNER = "XML validation failed"


def format_validation_result(result: ValidationResult) -> str:
    """Render a validation result as a plain-text report.

    Parameters
    ----------
    result : `lsst.ctrl.jsl.ValidationResult`
        Result to render.

    Returns
    -------
    report : `str`
        A banner stating whether the descriptor is valid, followed by an
        ``ERRORS:`` section and a ``WARNINGS:`` section when there are any,
        each with one numbered line per entry in the order received.
    """
    lines = [VALID_BANNER if result.is_valid else INVALID_BANNER, ""]
    for title, issues in (("ERRORS:", result.errors), ("WARNINGS:", result.warnings)):
        if not issues:
            continue
        lines.append(title)
        for index, issue in enumerate(issues, start=1):
            line = f"{index}. [{issue.kind.value.upper()}] {issue.message}"
            if issue.element:
                line += f" ({issue.element})"
            lines.append(line)
        lines.append("")
    return "\n".join(lines)


def display_validation_report(
    result: ValidationResult, is_table: bool = False, file: TextIO = sys.stdout
) -> None:
    """Print out the outcome of validating a job descriptor.

    Parameters
    ----------
    result : `lsst.ctrl.jsl.ValidationResult`
        Result to display.
    is_table : `bool`, optional
        If set, list the errors and warnings as a table instead of numbered
        sections.
    file : TextIO
        File or file-like object to write the output to.
    """
    if not is_table:
        print(format_validation_result(result), end="", file=file)
        return

    report = IssueReport()
    report.add(result)
    print(INVALID_BANNER if not result.is_valid else VALID_BANNER, file=file)
    print("", file=file)
    if len(report):
        print(report, file=file)
    if report.message:
        print(report.message, file=file)


def display_job_summary(model: JobModel, file: TextIO = sys.stdout) -> None:
    """Print out a table of the execution elements of a job.

    Parameters
    ----------
    model : `lsst.ctrl.jsl.JobModel`
        Normalized job model.
    file : TextIO
        File or file-like object to write the output to.
    """
    print(f"Job: {model.batch_name}", file=file)
    details = [
        f"{label}: {value}"
        for label, value in (
            ("Functional area", model.functional_area),
            ("Frequency", model.frequency),
            ("Package", model.package_name),
        )
        if value
    ]
    if details:
        print("\n".join(details), file=file)
    print("", file=file)

    report = StepSummaryReport()
    report.add(model)
    print(report, file=file)
    if report.message:
        _LOG.warning(report.message)
