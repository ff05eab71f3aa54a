r"""
cmdtree option parser: declared option specs + raw argv → validated values.

What this module provides
- Parser: receives an ordered stream of directives (nowrap/banner/opt/depends/conflicts),
  parses an argument vector against the declared options and renders the help screen.
- Switch: one declared option (name, long/short spellings, type, default, flags).
- Options: the parse result, a dict of name → value with a `given` set.
- ParseResult: (options, leftovers, fired, help) returned by Parser.parse().
- Call: (action, args, kwargs), one directive as recorded by the command builder.

Types
- flag (boolean), int, ints, float, floats, string, strings, date, dates, io, ios.
- Spellings accepted in declarations: "boolean"/"bool", "integer"/"int",
  "integers"/"ints", "double"/"float", "doubles"/"floats", "string", "strings",
  "date", "dates", "io", "ios", or the Python classes bool, int, float, str,
  datetime.date and io.IOBase (and subclasses).
- Without an explicit type, the type is inferred from the default; list defaults
  infer the list type from their first element.

Parsing order
1. tokenize: '--' terminates, '--name=value', '--name v1 v2', bundled '-abc',
   '--no-name' negates flags, anything else is a leftover positional argument.
2. help: a given help option short-circuits (ParseResult.help).
3. triggers: the first trigger whose key set intersects the given options is called
   and short-circuits the remaining steps (no further validation).
4. constraints (depends/conflicts), then required options.
5. parameter conversion.

Help rendering
- Each option renders as "  <left>:   <description>", where <left> is right-aligned to
  the widest entry and reads "--long[, --no-long][, -s][ <type-label>]".
- Truthy defaults are appended to the description as "(default: X)".
"""
import io
import logging
import re
import sys
from collections import namedtuple
from datetime import date

from rich.console import Console
from rich.text import Text

from .faults import *
from .internals import Unset, nullify, present

logger = logging.getLogger(__name__)

TYPES = ("flag", "int", "ints", "float", "floats", "string", "strings", "date", "dates", "io", "ios")
SINGLE_TYPES = ("int", "float", "string", "date", "io")
MULTI_TYPES = ("ints", "floats", "strings", "dates", "ios")

DIRECTIVES = ("nowrap", "banner", "text", "opt", "depends", "conflicts")

_ALIASES = {
    "boolean": "flag",
    "bool": "flag",
    "integer": "int",
    "integers": "ints",
    "double": "float",
    "doubles": "floats",
}

_LABELS = {
    "flag": "",
    "int": " <i>",
    "ints": " <i+>",
    "float": " <f>",
    "floats": " <f+>",
    "string": " <s>",
    "strings": " <s+>",
    "date": " <date>",
    "dates": " <date+>",
    "io": " <filename/uri>",
    "ios": " <filename/uri+>",
}

# A token that looks like an option (and therefore ends a parameter run).
_PARAMETER_END = re.compile(r"-(-|\.$|[^\d.])")
_INTEGER = re.compile(r"-?[\d_]+")
_FLOAT = re.compile(r"-?((\d+(\.\d+)?)|(\.\d+))([eE][-+]?\d+)?")
_INVALID_SHORT = re.compile(r"[\d-]")

ParseResult = namedtuple("ParseResult", ("options", "leftovers", "fired", "help"))

# One parser directive: Call("opt", ("debug", "Enable debugging"), {"default": False}).
Call = namedtuple("Call", ("action", "args", "kwargs"))


class Options(dict):
    """
    parsed option values keyed by option name.

    every declared option is present (defaults fill the gaps); `given` holds the
    names that actually appeared on the command line.
    """

    def __init__(self, values=(), /, given=()):
        super().__init__(values)
        self.given = frozenset(given)

    def __repr__(self):
        return f"options({dict.__repr__(self)}, given={sorted(self.given)!r})"


class Switch:
    """
    one declared option, after normalization by Parser.opt().
    """
    __slots__ = ("name", "descr", "type", "default", "required", "multi", "long", "short")

    def __init__(self, name, descr, type, default, required, multi, long, short):
        self.name = name
        self.descr = descr
        self.type = type
        self.default = default
        self.required = required
        self.multi = multi
        self.long = long
        self.short = short

    def __repr__(self):
        return "switch(%s)" % ", ".join(f"{name}={getattr(self, name)!r}" for name in self.__slots__)

    @property
    def label(self):
        """
        left-column text of this option in the help screen.
        """
        return "".join((
            f"--{self.long}",
            f", --no-{self.long}" if self.type == "flag" and self.default else "",
            f", -{self.short}" if self.short else "",
            _LABELS[self.type],
        ))


def _typeof_class(x):
    # Python classes accepted as explicit types; bool before int (bool subclasses int).
    if issubclass(x, bool):
        return "flag"
    if issubclass(x, str):
        return "string"
    if issubclass(x, int):
        return "int"
    if issubclass(x, float):
        return "float"
    if issubclass(x, io.IOBase):
        return "io"
    if issubclass(x, date):
        return "date"
    raise OptionDefinitionError(f"unsupported argument type {x.__name__!r}")


def _normalize_type(x):
    """
    map an explicit type declaration onto TYPES (None when not declared).
    """
    if x is Unset or x is None:
        return None
    if isinstance(x, type):
        return _typeof_class(x)
    if isinstance(x, str):
        x = _ALIASES.get(x, x)
        if x in TYPES:
            return x
        raise OptionDefinitionError(f"unsupported argument type {x!r}")
    raise OptionDefinitionError(f"unsupported argument type {type(x).__name__!r}")


def _typeof_value(x):
    """
    infer a type from a default value (None when there is no default).
    """
    match x:
        case None:
            return None
        case bool():
            return "flag"
        case int():
            return "int"
        case float():
            return "float"
        case str():
            return "string"
        case io.IOBase():
            return "io"
        case date():
            return "date"
        case list() | tuple():
            if not x:
                raise OptionDefinitionError("multiple argument type cannot be deduced from an empty list")
            match x[0]:
                case bool():
                    pass
                case int():
                    return "ints"
                case float():
                    return "floats"
                case str():
                    return "strings"
                case io.IOBase():
                    return "ios"
                case date():
                    return "dates"
            raise OptionDefinitionError(f"unsupported multiple argument type {type(x[0]).__name__!r}")
    raise OptionDefinitionError(f"unsupported argument type {type(x).__name__!r}")


def _format_default(x):
    match x:
        case list() | tuple():
            return ", ".join(map(_format_default, x))
        case io.IOBase() if x is sys.stdin:
            return "<stdin>"
        case io.IOBase():
            return str(getattr(x, "name", x))
        case date():
            return x.isoformat()
    return str(x)


_measure = Console(width=80)


def _wrap(text, width):
    """
    wrap text to the given width with rich; returns a list of plain lines.
    """
    if width < 10 or (len(text) <= width and "\n" not in text):
        return text.split("\n")
    lines = Text(text).wrap(_measure, width)
    return [line.plain.rstrip() for line in lines] or [""]


class Parser:
    """
    option parser fed with directives.

    Directives (see DIRECTIVES)
    - nowrap(text): a help-screen line emitted verbatim.
    - banner(text) / text(text): a help-screen line.
    - opt(name, descr="", **attributes): declare an option.
    - depends(*names): if any of the names is given, all of them must be.
    - conflicts(*names): at most one of the names may be given.

    apply(action, *args, **kwargs) dispatches a directive by name and rejects
    anything outside the vocabulary with UnknownActionError.
    """

    def __init__(self):
        self._switches = {}
        self._long = {}
        self._short = {}
        self._order = []
        self._constraints = []

    @property
    def switches(self):
        return dict(self._switches)

    def apply(self, action, /, *args, **kwargs):
        if action not in DIRECTIVES:
            raise UnknownActionError(action)
        return getattr(self, action)(*args, **kwargs)

    def nowrap(self, text, /):
        self._order.append(("nowrap", str(text)))

    def banner(self, text, /):
        self._order.append(("text", str(text)))

    text = banner

    def opt(
            self,
            name,
            descr="",
            /,
            *,
            type=Unset,
            default=Unset,
            required=False,
            multi=False,
            long=Unset,
            short=Unset,
    ):
        """
        declare an option.

        parameters
        - name: str, unique within the parser (the key in the parsed Options).
        - descr: str, help-screen description.
        - type: explicit type (see module docs); inferred from default when Unset.
        - default: default value; flags default to False.
        - required: bool, the option must be given.
        - multi: bool, the option may be given several times (values are collected).
        - long: long spelling ("name" or "--name"); defaults to name with '_' → '-'.
        - short: short spelling ("x" or "-x"); None/False disables; auto-assigned when Unset.
          Auto-assignment hands -h to the help option before any other option.

        raises
        - OptionDefinitionError for duplicates, unsupported types, mismatching defaults,
          and invalid or already-taken spellings.
        """
        if not isinstance(name, str) or not name:
            raise OptionDefinitionError("option name must be a non-empty string")
        if name in self._switches:
            raise OptionDefinitionError(f"you already have an argument named {name!r}")

        declared = _normalize_type(type)
        default = nullify(default, None)

        # With multi, a list default describes the occurrences, not a list type.
        if multi and isinstance(default, list | tuple) and declared is None:
            inferred = _typeof_value(default[0] if default else None)
        else:
            inferred = _typeof_value(default)

        if declared and inferred and declared != inferred:
            raise OptionDefinitionError(
                f"type specification and default type don't match (default type is {inferred})"
            )
        kind = declared or inferred or "flag"

        long = str(nullify(long, name.replace("_", "-")))
        if match := re.fullmatch(r"--([^-].*)", long):
            long = match[1]
        elif not re.match(r"[^-]", long):
            raise OptionDefinitionError(f"invalid long option name {long!r}")
        if long in self._long:
            raise OptionDefinitionError(
                f"long option name {long!r} is already taken; please specify a (different) long"
            )

        if short is Unset:
            short = None
        elif short is None or short is False:
            short = False
        elif match := re.fullmatch(r"-?(.)", str(short)):
            short = match[1]
        else:
            raise OptionDefinitionError(f"invalid short option name {short!r}")
        if short:
            if short in self._short:
                raise OptionDefinitionError(
                    f"short option name {short!r} is already taken; please specify a (different) short"
                )
            if _INVALID_SHORT.fullmatch(short):
                raise OptionDefinitionError("a short option name can't be a number or a dash")

        if kind == "flag" and default is None:
            default = False
        if default is not None and multi and not isinstance(default, list | tuple):
            default = [default]
        if multi and isinstance(default, tuple):
            default = list(default)

        switch = Switch(name, str(descr), kind, default, bool(required), bool(multi), long, short)
        self._switches[name] = switch
        self._long[long] = name
        if short:
            self._short[short] = name
        self._order.append(("opt", name))
        return switch

    def depends(self, *names):
        for name in names:
            if name not in self._switches:
                raise OptionDefinitionError(f"unknown option {name!r}")
        self._constraints.append(("depends", names))

    def conflicts(self, *names):
        for name in names:
            if name not in self._switches:
                raise OptionDefinitionError(f"unknown option {name!r}")
        self._constraints.append(("conflicts", names))

    def _resolve_shorts(self):
        # Auto-assign the first unused letter of the long name. The help switch goes
        # first so it keeps -h; the others follow in declaration order.
        for switch in sorted(self._switches.values(), key=lambda switch: switch.name != "help"):
            if switch.short is not None:
                continue
            for letter in switch.long:
                if not _INVALID_SHORT.fullmatch(letter) and letter not in self._short:
                    switch.short = letter
                    self._short[letter] = switch.name
                    break
            else:
                switch.short = False

    def _each(self, argv, take):
        """
        walk argv, hand every switch (and its trailing parameters) to `take`.

        `take(token, params)` returns how many of `params` it consumed; params is None
        when the switch is followed by nothing parameter-like. Returns the leftovers.
        """
        leftovers = []
        index = 0

        def collect(start):
            params = []
            for token in argv[start:]:
                if _PARAMETER_END.match(token):
                    break
                params.append(token)
            return params

        while index < len(argv):
            token = argv[index]
            if token == "--":
                return leftovers + argv[index + 1:]
            if match := re.fullmatch(r"--(\S+?)=(.*)", token):
                take(f"--{match[1]}", [match[2]])
                index += 1
            elif re.fullmatch(r"--\S+", token):
                if params := collect(index + 1):
                    index += 1 + take(token, params)
                else:
                    take(token, None)
                    index += 1
            elif match := re.fullmatch(r"-(\S+)", token):
                letters = match[1]
                for position, letter in enumerate(letters):
                    if position < len(letters) - 1:
                        take(f"-{letter}", None)
                    elif params := collect(index + 1):
                        index += 1 + take(f"-{letter}", params)
                    else:
                        take(f"-{letter}", None)
                        index += 1
            else:
                leftovers.append(token)
                index += 1
        return leftovers

    def _convert(self, switch, token, param):
        match switch.type:
            case "int" | "ints":
                if not _INTEGER.fullmatch(param):
                    raise InvalidValueError(f"option {token!r} needs an integer", input=token, value=param)
                try:
                    return int(param)
                except ValueError:
                    raise InvalidValueError(f"option {token!r} needs an integer", input=token, value=param) from None
            case "float" | "floats":
                if not _FLOAT.fullmatch(param):
                    raise InvalidValueError(f"option {token!r} needs a floating-point number", input=token, value=param)
                return float(param)
            case "date" | "dates":
                try:
                    return date.fromisoformat(param)
                except ValueError:
                    raise InvalidValueError(f"option {token!r} needs a date", input=token, value=param) from None
            case "io" | "ios":
                if param == "-":
                    return sys.stdin
                try:
                    return open(param)
                except OSError as error:
                    raise InvalidValueError(
                        f"file for option {token!r} cannot be opened: {error.strerror}",
                        input=token,
                        value=param,
                    ) from None
        return param

    def parse(self, argv, triggers=None, /):
        """
        parse argv against the declared options.

        parameters
        - argv: Sequence[str], the arguments left after command-path resolution.
        - triggers: Mapping[str | Iterable[str], Callable[[Options, list[str]], object]] | None
          key sets (a single option name or several) bound to handlers. A trigger fires
          when any of its names is given; its handler receives the partially-parsed
          options (defaults plus given flags) and the leftovers.

        returns
        - ParseResult(options, leftovers, fired, help):
          • help is True when the help option was given (nothing else is validated).
          • fired is the key set of the trigger that fired (nothing else is validated).
          • otherwise options holds the validated values.

        raises
        - CommandException subclasses for invalid command lines.
        """
        argv = list(argv)
        triggers = triggers or {}
        self._resolve_shorts()

        given = {}

        def take(token, params):
            negative = False
            if match := re.fullmatch(r"--no-([^-]\S*)", token):
                token, negative = f"--{match[1]}", True

            if match := re.fullmatch(r"-([^-])", token):
                name = self._short.get(match[1])
            elif match := re.fullmatch(r"--([^-]\S*)", token):
                name = self._long.get(match[1]) or self._long.get(f"no-{match[1]}")
            else:
                raise MalformedTokenError(f"invalid argument syntax: {token!r}", input=token)

            if token.startswith("--no-"):
                name = None  # --no-no-name

            if name is None:
                raise UnknownSwitchError(f"unknown argument {token!r}", input=token)
            switch = self._switches[name]

            if name in given and not switch.multi:
                raise DuplicatedSwitchError(f"option {token!r} specified multiple times", input=token)

            entry = given.setdefault(name, {"token": token, "params": []})
            entry["token"] = token
            entry["negative"] = negative

            if params is None:
                return 0
            if switch.type in SINGLE_TYPES:
                entry["params"].append(params[:1])
                return 1
            if switch.type in MULTI_TYPES:
                entry["params"].append(params)
                return len(params)
            return 0

        leftovers = self._each(argv, take)

        values = {}
        for name, switch in self._switches.items():
            if isinstance(switch.default, list):
                values[name] = list(switch.default)
            else:
                values[name] = [] if switch.multi and switch.default is None else switch.default

        if "help" in given:
            return ParseResult(Options(values, given), leftovers, None, True)

        for keys, handler in triggers.items():
            names = (keys,) if isinstance(keys, str) else tuple(keys)
            if any(name in given for name in names):
                partial = dict(values)
                for name in given:
                    if self._switches[name].type == "flag":
                        partial[name] = not given[name]["negative"]
                logger.debug("trigger %r fired", keys)
                handler(Options(partial, given), list(leftovers))
                return ParseResult(Options(partial, given), leftovers, keys, False)

        for kind, names in self._constraints:
            first = next((name for name in names if name in given), None)
            if first is None:
                continue
            for name in names:
                if kind == "depends" and name not in given:
                    raise DependencyError(
                        f"--{self._switches[first].long} requires --{self._switches[name].long}",
                        input=first,
                    )
                if kind == "conflicts" and name in given and name != first:
                    raise ConflictError(
                        f"--{self._switches[first].long} conflicts with --{self._switches[name].long}",
                        input=first,
                    )

        for name, switch in self._switches.items():
            if switch.required and name not in given:
                raise MissingOptionError(f"option --{switch.long} must be specified", input=name)

        for name, entry in given.items():
            switch = self._switches[name]
            token = entry["token"]
            params = entry["params"]

            if switch.type == "flag":
                values[name] = entry["negative"] if name.startswith("no_") else not entry["negative"]
                continue
            if not params:
                raise OptionValueRequiredError(f"option {token!r} needs a parameter", input=token)

            converted = [[self._convert(switch, token, param) for param in group] for group in params]
            if switch.type in SINGLE_TYPES:
                values[name] = [group[0] for group in converted] if switch.multi else converted[0][0]
            elif not switch.multi:
                values[name] = converted[0]
            else:
                values[name] = converted

        return ParseResult(Options(values, given), leftovers, None, False)

    def educate(self, width=80):
        """
        render the help screen as a string.

        every directive contributes one entry in declaration order; like a line
        printer, an entry that does not end with a newline gets one.
        """
        self._resolve_shorts()
        labels = {name: switch.label for name, switch in self._switches.items()}
        column = max(map(len, labels.values()), default=0)
        start = column + 6

        entries = []
        for kind, value in self._order:
            if kind != "opt":
                entries.append(value)
                continue
            switch = self._switches[value]
            descr = switch.descr
            if present(switch.default):
                suffix = "Default" if descr.endswith(".") else "default"
                descr += f" ({suffix}: {_format_default(switch.default)})"
            lines = _wrap(descr, width - start - 1)
            entry = "  %s:   %s" % (labels[value].rjust(column), lines[0])
            entries.append("\n".join([entry, *(" " * start + line for line in lines[1:])]))

        return "".join(entry if entry.endswith("\n") else entry + "\n" for entry in entries)


__all__ = (
    "TYPES",
    "DIRECTIVES",
    "Options",
    "Switch",
    "ParseResult",
    "Call",
    "Parser",
)
