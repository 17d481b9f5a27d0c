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

"""Layered job configuration with ordered section lookup and variable
substitution.
"""

__all__ = ["JSL_DEFAULTS", "JSL_SEARCH_ORDER", "JslConfig", "JslFormatter"]


import copy
import logging
import re
import string
from os.path import expandvars

from lsst.daf.butler import Config
from lsst.resources import ResourcePath

_LOG = logging.getLogger(__name__)

# Loaded through Config so that includes in the defaults file are honored.
JSL_DEFAULTS = Config(ResourcePath("resource://lsst.ctrl.jsl/etc/jsl_defaults.yaml")).toDict()

JSL_SEARCH_ORDER = ["jsl_cmdline", "jsl_defined"]

# Marks "no default given"; None is a legitimate default.
_NO_SEARCH_DEFAULT_VALUE = "__NO_SEARCH_DEFAULT_VALUE__"


class JslFormatter(string.Formatter):
    """Formatter resolving ``{name}`` fields with `JslConfig.search`."""

    def get_field(self, field_name, args, kwargs):
        _, val = args[0].search(field_name, opt=args[1])
        return val, field_name

    def get_value(self, key, args, kwargs):
        _, val = args[0].search(key, opt=args[1])
        return val


class JslConfig(Config):
    """Job description plus the settings controlling descriptor generation.

    Parameters
    ----------
    other : `str`, `dict`, `~lsst.daf.butler.Config`, `JslConfig`
        YAML file name, or mapping whose contents are copied.
    search_order : `list` [`str`], optional
        Sections consulted, in order, before the root. Defaults to
        `JSL_SEARCH_ORDER` (or to the order of ``other`` if it is a
        `JslConfig`).
    defaults : `str`, `dict`, `~lsst.daf.butler.Config`, optional
        Settings loaded first and overridden by ``other``.

    Raises
    ------
    ValueError
        Raised if ``other`` cannot be turned into a configuration.
    """

    def __init__(self, other, search_order=None, defaults=None):
        # __getitem__ and __contains__ go through search(), which the base
        # class constructor cannot use, so the data is filled in by update().
        super().__init__()

        try:
            other_config = Config(other)
        except Exception as exc:
            raise ValueError(f"A JslConfig could not be loaded from other: {other}") from exc

        config = Config()
        if defaults:
            config.update(defaults)
        config.update(other_config)
        self.update(config)

        if isinstance(other, JslConfig):
            self.formatter = copy.deepcopy(other.formatter)
            self.search_order = copy.deepcopy(other.search_order) if search_order is None else search_order
        else:
            self.formatter = JslFormatter()
            self.search_order = JSL_SEARCH_ORDER if search_order is None else search_order

        for key in self.search_order:
            if not Config.__contains__(self, key):
                self[key] = {}

    def copy(self):
        """Return an independent copy (`JslConfig`)."""
        return JslConfig(self)

    def get(self, key, default=""):
        """Look up a setting, falling back to a default.

        Parameters
        ----------
        key : `str`
            Setting name.
        default : `~typing.Any`, optional
            Returned when the setting is absent. An empty string unless
            given.

        Returns
        -------
        val : `~typing.Any`
            Setting value or ``default``.
        """
        _, val = self.search(key, opt={"default": default})
        return val

    def __getitem__(self, name):
        _, val = self.search(name, {})
        return val

    def __contains__(self, name):
        found, _ = self.search(name, {})
        return found

    def search(self, key, opt=None):
        """Find a setting in the search-order sections, then in the root.

        String values have environment variables expanded and ``{name}``
        fields replaced by other settings.

        Parameters
        ----------
        key : `str`
            Setting name.
        opt : `dict` [`str`, `~typing.Any`], optional
            Lookup options:

            ``"default"``
                Value used when the setting is absent.
            ``"required"``
                Raise if the setting is absent and there is no default
                (`bool`, False if not given).
            ``"expandEnvVars"``
                Expand ``$VAR`` in string values (`bool`, True if not
                given).
            ``"replaceVars"``
                Replace ``{name}`` fields in string values (`bool`, True if
                not given).

        Returns
        -------
        found : `bool`
            Whether the setting (or a default) was found.
        value : `str`, `int`, `lsst.ctrl.jsl.JslConfig`, ...
            Setting value, an empty string if not found. Sections are
            returned as a `JslConfig` with an empty search order.

        Raises
        ------
        KeyError
            Raised if a required setting is absent.
        """
        _LOG.debug("search: key='%s', opt=%s", key, opt)
        if opt is None:
            opt = {}

        found = False
        value = ""
        for sect in self.search_order:
            if not Config.__contains__(self, sect):
                _LOG.debug("Section '%s' missing while searching for '%s'", sect, key)
                continue
            section = Config.__getitem__(self, sect)
            if Config.__contains__(section, key):
                _LOG.debug("Found '%s' in section '%s'", key, sect)
                found = True
                value = Config.__getitem__(section, key)
                break

        if not found and Config.__contains__(self, key):
            found = True
            value = Config.__getitem__(self, key)
            _LOG.debug("Found '%s' at root: %s", key, value)

        if not found and "default" in opt:
            value = opt["default"]
            found = True

        if not found and opt.get("required", False):
            raise KeyError(f"Missing required configuration setting '{key}'")

        if found and isinstance(value, str):
            if opt.get("expandEnvVars", True):
                value = expandvars(value)

            if opt.get("replaceVars", True):
                # The default belongs to the outer key, not to the fields.
                default = opt.pop("default", _NO_SEARCH_DEFAULT_VALUE)

                # Shield unexpanded ${VAR} from the formatter.
                value = re.sub(r"\${([^}]+)}", r"<JSLTMP:\1>", value)
                value = self.formatter.format(value, self, opt)
                value = re.sub(r"<JSLTMP:([^>]+)>", r"${\1}", value)

                if default != _NO_SEARCH_DEFAULT_VALUE:
                    opt["default"] = default
            _LOG.debug("Formatted '%s': %s", key, value)

        if found and isinstance(value, Config):
            value = JslConfig(value, search_order=[])

        return found, value
