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

"""Command line options for the ``jsl`` subcommands."""

__all__ = [
    "batch_name_option",
    "output_option",
    "table_option",
    "validate_option",
]

from lsst.daf.butler.cli.utils import MWOptionDecorator

output_option = MWOptionDecorator(
    "-o",
    "--output",
    "output",
    help="Location (path or URI) to write the job descriptor to. "
    "Value determined by following order: command-line argument, "
    "'outputPath' in config file, standard output.",
)
batch_name_option = MWOptionDecorator(
    "--batch-name",
    "batch_name",
    help="Job name overriding 'batchName' in config file.",
)
validate_option = MWOptionDecorator(
    "--validate/--no-validate",
    "validate",
    default=None,
    help="Check the generated descriptor before writing it. "
    "Defaults to 'validateOutput' in config file (true if unset).",
)
table_option = MWOptionDecorator(
    "--table",
    "is_table",
    default=False,
    is_flag=True,
    help="List validation errors and warnings as a table.",
)
