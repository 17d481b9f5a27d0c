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

"""Driver functions for each subcommand.

Driver functions ensure that all setup work is done before running
the subcommand method.
"""

__all__ = [
    "describe_driver",
    "generate_driver",
    "validate_driver",
]


import logging
import sys

from lsst.utils.timer import time_this
from lsst.utils.usage import get_peak_mem_usage

from .constants import DEFAULT_MEM_FMT, DEFAULT_MEM_UNIT
from .construct import construct_job_model
from .errors import SerializationError
from .initialize import batch_name_validator, init_generation, step_items_validator
from .jsl_config import JslConfig
from .jsl_utils import read_job_xml, to_bool, write_job_xml
from .normalizer import normalize_job
from .report import display_job_summary, display_validation_report
from .serializer import serialize_job
from .validator import ValidationResult, validate_job_xml

_LOG = logging.getLogger(__name__)


def _init_generation_driver(config_file: str, **kwargs) -> JslConfig:
    """Initialize runtime environment.

    Parameters
    ----------
    config_file : `str`
        Name of the configuration file.
    **kwargs : `~typing.Any`
        Additional modifiers to the configuration.

    Returns
    -------
    config : `lsst.ctrl.jsl.JslConfig`
        Job configuration.
    """
    validators = [batch_name_validator, step_items_validator]
    _LOG.info("Initializing job configuration")
    with time_this(
        log=_LOG,
        level=logging.INFO,
        prefix=None,
        msg="Job configuration initialized",
        mem_usage=True,
        mem_unit=DEFAULT_MEM_UNIT,
        mem_fmt=DEFAULT_MEM_FMT,
    ):
        config = init_generation(config_file, validators=validators, **kwargs)
    return config


def generate_driver(config_file: str, is_table: bool = False, **kwargs) -> ValidationResult | None:
    """Generate a job descriptor from a job configuration.

    Parameters
    ----------
    config_file : `str`
        Name of the configuration file.
    is_table : `bool`, optional
        If set, validation problems are listed as a table.
    **kwargs : `~typing.Any`
        Additional modifiers to the configuration.

    Returns
    -------
    result : `lsst.ctrl.jsl.ValidationResult` or None
        Outcome of checking the generated descriptor, None if it was not
        checked.

    Raises
    ------
    lsst.ctrl.jsl.SerializationError
        Raised if the generated descriptor did not pass validation. Nothing
        is written in that case.
    """
    config = _init_generation_driver(config_file, **kwargs)

    _LOG.info("Starting generation of job descriptor '%s'", config["batchName"])
    with time_this(
        log=_LOG,
        level=logging.INFO,
        prefix=None,
        msg="Job descriptor generated",
        mem_usage=True,
        mem_unit=DEFAULT_MEM_UNIT,
        mem_fmt=DEFAULT_MEM_FMT,
    ):
        model = normalize_job(construct_job_model(config))
        xml = serialize_job(model)

    _, output_path = config.search("outputPath", opt={"default": None})

    # Keep stdout for the descriptor itself if no file was requested.
    stream = sys.stdout if output_path else sys.stderr

    result = None
    if to_bool(config.get("validateOutput", True)):
        result = validate_job_xml(xml)
        shown = result
        if not to_bool(config.get("reportWarnings", True)):
            shown = ValidationResult(errors=list(result.errors))
        display_validation_report(shown, is_table=is_table, file=stream)
        if not result.is_valid:
            raise SerializationError(
                f"Generated descriptor for '{model.batch_name}' is not valid ({len(result.errors)} error(s))"
            )

    if output_path:
        path = write_job_xml(xml, output_path)
        print(f"Job descriptor: {path}")
    else:
        print(xml, end="")
    _log_mem_usage()
    return result


def validate_driver(xml_file: str, is_table: bool = False) -> bool:
    """Check a job descriptor and print the outcome.

    Parameters
    ----------
    xml_file : `str`
        Location of the descriptor.
    is_table : `bool`, optional
        If set, the problems are listed as a table.

    Returns
    -------
    is_valid : `bool`
        Whether the descriptor is valid.
    """
    xml = read_job_xml(xml_file)
    with time_this(log=_LOG, level=logging.DEBUG, prefix=None, msg="Job descriptor validated"):
        result = validate_job_xml(xml)
    display_validation_report(result, is_table=is_table, file=sys.stdout)
    return result.is_valid


def describe_driver(config_file: str, **kwargs) -> None:
    """Print out the execution elements of a job.

    Parameters
    ----------
    config_file : `str`
        Name of the configuration file.
    **kwargs : `~typing.Any`
        Additional modifiers to the configuration.
    """
    config = _init_generation_driver(config_file, **kwargs)
    model = normalize_job(construct_job_model(config))
    display_job_summary(model, file=sys.stdout)


def _log_mem_usage() -> None:
    """Log memory usage."""
    if _LOG.isEnabledFor(logging.INFO):
        _LOG.info(
            "Peak memory usage for jsl process %s (main), %s (largest child process)",
            *tuple(f"{val.to(DEFAULT_MEM_UNIT):{DEFAULT_MEM_FMT}}" for val in get_peak_mem_usage()),
        )
