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

"""Misc supporting functions for job descriptors."""

__all__ = [
    "read_job_xml",
    "to_bool",
    "write_job_xml",
]

import logging
from typing import Any

from lsst.resources import ResourcePath, ResourcePathExpression

_LOG = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"true", "yes", "on", "1"})
_FALSE_VALUES = frozenset({"false", "no", "off", "0"})


def read_job_xml(uri: ResourcePathExpression) -> bytes:
    """Read a job descriptor.

    Parameters
    ----------
    uri : `lsst.resources.ResourcePathExpression`
        Location of the descriptor.

    Returns
    -------
    xml : `bytes`
        Raw contents of the descriptor. Decoding is left to the XML parser
        so that the encoding declaration is honored.
    """
    path = ResourcePath(uri)
    _LOG.debug("Reading job descriptor from %s", path)
    return path.read()


def write_job_xml(xml: str, uri: ResourcePathExpression) -> ResourcePath:
    """Write a job descriptor, replacing any existing file.

    Parameters
    ----------
    xml : `str`
        Descriptor to save.
    uri : `lsst.resources.ResourcePathExpression`
        Location to write it to.

    Returns
    -------
    path : `lsst.resources.ResourcePath`
        Where the descriptor was written.
    """
    path = ResourcePath(uri, forceDirectory=False)
    path.write(xml.encode("utf-8"), overwrite=True)
    _LOG.info("Job descriptor written to %s", path)
    return path


def to_bool(value: Any) -> bool:
    """Interpret a configuration value as a boolean.

    Parameters
    ----------
    value : `~typing.Any`
        A `bool`, a number, or one of the usual spellings of true or false.

    Returns
    -------
    flag : `bool`
        Interpreted value.

    Raises
    ------
    ValueError
        Raised if the value cannot be interpreted.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot interpret '{value}' as a boolean")
