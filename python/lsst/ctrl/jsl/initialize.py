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

"""Driver for initializing the generation of a job descriptor."""

__all__ = [
    "batch_name_validator",
    "init_generation",
    "step_items_validator",
]

import logging
import re
from collections.abc import Callable, Iterable

from .errors import ModelError
from .jsl_config import JSL_DEFAULTS, JSL_SEARCH_ORDER, JslConfig

_LOG = logging.getLogger(__name__)


def init_generation(
    config_file: str, validators: Iterable[Callable[[JslConfig], None]] = (), **kwargs
) -> JslConfig:
    """Initialize the configuration describing a batch job.

    Parameters
    ----------
    config_file : `str`
        Name of the configuration file.
    validators : `Iterable[Callable[[JslConfig], None]]`, optional
        A list of functions performing checks on the given configuration.
        Each function should take a single argument, a JslConfig object, and
        raise if the check fails. By default, no checks are performed.
    **kwargs : `~typing.Any`
        Additional modifiers to the configuration.

    Returns
    -------
    config : `lsst.ctrl.jsl.JslConfig`
        Job configuration.
    """
    config = JslConfig(config_file, search_order=JSL_SEARCH_ORDER, defaults=JSL_DEFAULTS)

    # Override config with command-line values.
    translation = {
        "output": "outputPath",
        "validate": "validateOutput",
    }
    for key, value in kwargs.items():
        # Don't want to override config with unset values, but an explicit
        # False has to get through.
        if value is None or value == "":
            continue
        new_key = translation.get(key, re.sub(r"_(\S)", lambda match: match.group(1).upper(), key))
        config[f".jsl_cmdline.{new_key}"] = value

    # Run validation tests on the given config if any.
    for validator in validators:
        validator(config)

    config[".jsl_defined.configFile"] = str(config_file)
    if "uniqProcName" not in config:
        config[".jsl_defined.uniqProcName"] = re.sub(r"[^\w.-]+", "_", str(config["batchName"]))
    _LOG.debug("Job configuration initialized from %s", config_file)
    return config


def batch_name_validator(config: JslConfig) -> None:
    """Check if 'batchName' is specified in the job configuration.

    Parameters
    ----------
    config : `JslConfig`
        Job configuration that needs to be validated.

    Raises
    ------
    lsst.ctrl.jsl.ModelError
        Raised if 'batchName' is missing or empty.
    """
    if not config.get("batchName", None):
        raise ModelError("Must specify the job name using 'batchName'")


def step_items_validator(config: JslConfig) -> None:
    """Check if the job configuration defines at least one step.

    Parameters
    ----------
    config : `JslConfig`
        Job configuration that needs to be validated.

    Raises
    ------
    lsst.ctrl.jsl.ModelError
        Raised if 'stepItems' is missing, empty, or not a list.
    """
    items = config.get("stepItems", None)
    if not items:
        raise ModelError("Must specify at least one step using 'stepItems'")
    if not isinstance(items, list):
        raise ModelError(f"'stepItems' must be a list, got {type(items).__name__}")
