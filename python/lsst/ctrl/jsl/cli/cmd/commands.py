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

"""Subcommands of the ``jsl`` command."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import click

from lsst.daf.butler.cli.utils import MWCommand
from lsst.utils.timer import time_this

from ...constants import DEFAULT_MEM_FMT, DEFAULT_MEM_UNIT
from ...drivers import describe_driver, generate_driver, validate_driver
from ...errors import JslError
from .. import opt

_LOG = logging.getLogger(__name__)


@contextmanager
def catch_errors() -> Iterator[None]:
    """Handle errors that occurred during command execution.

    Returns
    -------
    context : `contextlib.AbstractContextManager` [ `None` ]
        A context manager that does not return a value when entered.

    Notes
    -----
    Problems with the job description or the descriptor are reported without
    a traceback and make the command exit with status 1. Any other exception
    is propagated.
    """
    try:
        yield None
    except JslError as e:
        click.echo(f"Error: {e}", err=True)
        click.get_current_context().exit(1)


class JslCommand(MWCommand):
    """Command subclass with jsl-command specific overrides."""

    extra_epilog = "See 'jsl --help' for more options."


@click.command(cls=JslCommand)
@opt.config_file_argument(required=True)
@opt.generation_options()
@opt.table_option()
def generate(*args, **kwargs):
    """Generate a JSR-352 job descriptor from a job description."""
    with time_this(
        log=_LOG,
        level=logging.INFO,
        prefix=None,
        msg="Generate process completed",
        mem_usage=True,
        mem_child=True,
        mem_unit=DEFAULT_MEM_UNIT,
        mem_fmt=DEFAULT_MEM_FMT,
    ):
        with catch_errors():
            generate_driver(*args, **kwargs)


@click.command(cls=JslCommand)
@opt.xml_file_argument(required=True)
@opt.table_option()
def validate(*args, **kwargs):
    """Check a JSR-352 job descriptor.

    Exits with status 0 if the descriptor is valid, 1 otherwise.
    """
    with catch_errors():
        is_valid = validate_driver(*args, **kwargs)
    # Note: Using return statement doesn't actually return the value
    # to the shell.  Using click function instead.
    click.get_current_context().exit(0 if is_valid else 1)


@click.command(cls=JslCommand)
@opt.config_file_argument(required=True)
@opt.batch_name_option()
def describe(*args, **kwargs):
    """List the steps, decisions, flows, and splits of a job."""
    with catch_errors():
        describe_driver(*args, **kwargs)
