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

"""Command line arguments for the ``jsl`` subcommands."""

__all__ = ["config_file_argument", "xml_file_argument"]

import click

from lsst.daf.butler.cli.utils import MWArgumentDecorator

config_file_argument = MWArgumentDecorator(
    "config_file",
    help="CONFIG_FILE is the name of the YAML file describing the job.",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, writable=False),
)
xml_file_argument = MWArgumentDecorator(
    "xml_file",
    help="XML_FILE is the location (path or URI) of the job descriptor to check.",
)
