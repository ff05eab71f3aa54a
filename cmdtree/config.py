"""
cmdtree.config
~~~~~~~~~~~~~~

The configuration store: the help-screen templates shared by every scope.

Keys (fixed, enumerated)
- text_help: label of the synthesized --help option; None removes the option.
- text_required: suffix appended to descriptions of required options.
- text_header_usage: usage template; %0 (program name), %command (joined command
  path) and %params (parameter hint) are substituted.
- text_header_subcommands: section title listing children of a non-root command.
- text_header_topcommands: section title listing children of the root command.
- text_header_options: section title in front of the option listing.
- text_param_subcommand: parameter hint forced on commands that have children.

Assigning any other key fails immediately with ConfigurationError and leaves the
store untouched.
"""
import logging
from types import MappingProxyType

from .faults import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULTS = MappingProxyType({
    "text_help": "Show this message",
    "text_required": " (required)",
    "text_header_usage": "Usage: %0 %command %params",
    "text_header_subcommands": "Subcommands:",
    "text_header_topcommands": "Commands:",
    "text_header_options": "Options:",
    "text_param_subcommand": "<command>",
})


class Configuration:
    """
    mapping-like store restricted to the keys of DEFAULTS.

    read access goes through item lookup (config["text_help"]); writes only
    through configure(**assignments), which validates every key first.
    """
    __slots__ = ("_values",)

    def __init__(self, **assignments):
        self._values = dict(DEFAULTS)
        self.configure(**assignments)

    def __getitem__(self, key):
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return f"configuration({', '.join(f'{key}={value!r}' for key, value in self._values.items())})"

    def configure(self, **assignments):
        """
        assign one or more template keys.

        parameters
        - **assignments: key=value pairs; keys must belong to DEFAULTS, values must be
          strings (text_help also accepts None to disable the help option).

        raises
        - ConfigurationError on an unknown key or a non-string value; nothing is
          assigned in that case.
        """
        for key, value in assignments.items():
            if key not in DEFAULTS:
                raise ConfigurationError(f"unknown configuration key {key!r}")
            if not isinstance(value, str) and not (key == "text_help" and value is None):
                raise ConfigurationError(f"configuration key {key!r} must be a string")
        self._values.update(assignments)
        if assignments:
            logger.debug("configured %s", ", ".join(sorted(assignments)))
        return self

    def reset(self):
        """restore every key to its default."""
        self._values = dict(DEFAULTS)
        return self


__all__ = (
    "DEFAULTS",
    "Configuration",
)
