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

"""Option groups for the ``jsl`` subcommands."""

__all__ = ["generation_options"]

from lsst.daf.butler.cli.utils import OptionGroup, option_section

from .options import batch_name_option, output_option, validate_option


# Using snake_case for an option group (a class) to keep the naming
# convention consistent with other options or option groups in other Middleware
# packages (e.g daf_butler, ctrl_mpexec).
class generation_options(OptionGroup):  # noqa: N801
    """Decorator to add options to a command function generating a job
    descriptor.
    """

    def __init__(self):
        self.decorators = [
            option_section(sectionText="Generation options:"),
            output_option(),
            batch_name_option(),
            validate_option(),
        ]
