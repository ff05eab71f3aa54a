"""
cmdtree faults (definition errors, validation errors, the help signal) and rendering.

Scope
- Definition errors: plain exceptions raised at the call site when a command tree,
  an option declaration, or the configuration is wrong. They indicate a programming
  mistake and are never translated into user-facing output.
  • ConfigurationError, UnknownActionError, OptionDefinitionError
  • ScopeError (invocation against a scope that was never declared)
  • DispatchError (a leaf command without an exec handler)
- Validation errors: CommandException subclasses raised by the option parser when
  the command line itself is wrong. They carry a stable FaultCode and know how to
  render themselves with rich ("Error: <message>." + a hint line).
- HelpNeeded: the help-requested signal. Trigger, filter and exec handlers raise it
  to ask for the help screen; the pipeline turns it into a HelpRequested outcome.
- trigger(): surface a validation fault (print + exit in shell mode, raise otherwise).

Styling
- Colours are only applied when the fault is triggered with colorful=True.
- The host application can override the palette through a __styles__ mapping in __main__.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes for command-line validation errors (stable identifiers).

    grouping
    - tokens (1111x): MALFORMED_TOKEN, UNKNOWN_SWITCH, DUPLICATED_SWITCH
    - values (1112x): OPTION_VALUE_REQUIRED, INVALID_VALUE
    - constraints (1113x): MISSING_OPTION, UNMET_DEPENDENCY, CONFLICTING_SWITCHES
    """
    # --- token errors (1111x) ---
    MALFORMED_TOKEN       = 11111
    UNKNOWN_SWITCH        = 11112
    DUPLICATED_SWITCH     = 11115

    # --- value errors (1112x) ---
    OPTION_VALUE_REQUIRED = 11121
    INVALID_VALUE         = 11123

    # --- constraint errors (1113x) ---
    MISSING_OPTION        = 11131
    UNMET_DEPENDENCY      = 11132
    CONFLICTING_SWITCHES  = 11133

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to override
        numeric ids with friendlier labels; otherwise the numeric value is used.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


# --- definition errors ---------------------------------------------------------------

class ConfigurationError(ValueError):
    """A command tree, an option or the configuration store was declared incorrectly."""


class UnknownActionError(ConfigurationError, AttributeError):
    """A builder action or parser directive outside the recognized vocabulary."""

    def __init__(self, action):
        super().__init__(f"unknown action {action!r}")
        self.action = action


class OptionDefinitionError(ConfigurationError):
    """An option declaration the parser cannot accept (type, spelling, duplicates, targets)."""


class ScopeError(LookupError):
    def __init__(self, scope):
        super().__init__(f"scope {scope!r} is not defined")
        self.scope = scope

    def __str__(self):
        return self.args[0]


class DispatchError(RuntimeError):
    def __init__(self, path):
        super().__init__(f"command {' '.join(path)!r} has no exec handler")
        self.path = tuple(path)


class HelpNeeded(Exception):
    """
    help-requested signal.

    raise it from a trigger, filter or exec handler to abort the current run and
    show the help screen of the resolved command instead.
    """


# --- validation errors -----------------------------------------------------------------

class CommandException(Exception):
    """
    base class for command-line validation errors.

    parameters
    - message: str (positional-only)
      one-sentence description, without a trailing period.
    - **options: rendering/context options (code, hint, input, shell, colorful, console...).
    """
    code = None

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": type(self).code} | options)

    def __str__(self):
        return self.message

    def __rich__(self):
        styles = defaultdict(str, {
            "error-label": "bold #FF4DA6",  # friendly pinky label
            "error-message": "#C8C8D0",  # soft light gray message
            "code": "dim #00E5FF",  # neon cyan fault code
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if self.options.get("colorful") else ""

        message = Text.assemble(
            Text("Error:", styler("error-label")),
            " ",
            Text(f"{self.message}.", styler("error-message")),
        )
        if self.options.get("colorful") and self.options.get("code") is not None:
            message.append(f" [{self.options['code'].normalize()}]", styler("code"))
        hint = Text(self.options.get("hint", "Try --help for help."), styler("hint"))
        return Group(message, hint)

    def __trigger__(self) -> None:
        if not self.options.get("shell"):
            raise self from None
        self.options.get("console", console).print(self, highlight=False)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MalformedTokenError(CommandException):
    code = FaultCode.MALFORMED_TOKEN


class UnknownSwitchError(CommandException):
    code = FaultCode.UNKNOWN_SWITCH


class DuplicatedSwitchError(CommandException):
    code = FaultCode.DUPLICATED_SWITCH


class OptionValueRequiredError(CommandException):
    code = FaultCode.OPTION_VALUE_REQUIRED


class InvalidValueError(CommandException):
    code = FaultCode.INVALID_VALUE


class MissingOptionError(CommandException):
    code = FaultCode.MISSING_OPTION


class DependencyError(CommandException):
    code = FaultCode.UNMET_DEPENDENCY


class ConflictError(CommandException):
    code = FaultCode.CONFLICTING_SWITCHES


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode the fault is printed to stderr and the process exits with status 1;
      otherwise the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "ConfigurationError",
    "UnknownActionError",
    "OptionDefinitionError",
    "ScopeError",
    "DispatchError",
    "HelpNeeded",
    "CommandException",
    "MalformedTokenError",
    "UnknownSwitchError",
    "DuplicatedSwitchError",
    "OptionValueRequiredError",
    "InvalidValueError",
    "MissingOptionError",
    "DependencyError",
    "ConflictError",
    "trigger",
)
