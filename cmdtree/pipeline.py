"""
cmdtree invocation pipeline.

Stages (one run per invoke() call)
    resolve → build parser → parse (help option, triggers, validation)
            → subcommand guard → filters → dispatch

- resolve: ScopeError when the scope was never declared.
- build parser: the assembled directive stream is applied to a fresh Parser; bad
  option declarations raise OptionDefinitionError / UnknownActionError.
- parse: the help option yields HelpRequested; a firing trigger runs its handler and
  yields Triggered; a rejected command line yields ValidationFailed.
- subcommand guard: a command with children always yields HelpRequested, even when it
  declares an exec handler.
- filters: inherited filters run root → leaf with (path, options, argv).
- dispatch: the exec handler runs with (path, options, argv); a missing handler raises
  DispatchError.

Any handler may raise HelpNeeded to turn the run into HelpRequested. Every other
exception raised by user code propagates unchanged.

invoke() has no process effects. run() performs them: help on stdout with exit
status 0, diagnostics on stderr with exit status 1.
"""
import logging
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console

from .faults import CommandException, DispatchError, HelpNeeded, MalformedTokenError, trigger
from .helptext import assemble
from .internals import Unset, nullify, rename
from .outcomes import *
from .parser import Parser
from .resolver import resolve

logger = logging.getLogger(__name__)


def tokens(argv=Unset, /):
    """
    normalize an argument vector.

    - Unset: sys.argv[1:].
    - str: split like a shell would (shlex.split); unbalanced quotes raise
      MalformedTokenError.
    - Iterable[str]: used as is.
    """
    if argv is Unset:
        return sys.argv[1:]
    if isinstance(argv, str):
        try:
            return shlex.split(argv)
        except ValueError as error:
            raise MalformedTokenError(f"invalid argument syntax: {str(error).lower()}", input=argv) from None
    if isinstance(argv, Iterable):
        argv = list(argv)
        if not all(isinstance(item, str) for item in argv):
            raise TypeError("argv must be a string or an iterable of strings")
        return argv
    raise TypeError("argv must be a string or an iterable of strings")


def build(resolution, config):
    """apply the assembled directive stream of `resolution` to a new Parser."""
    parser = Parser()
    for call in assemble(resolution, config):
        parser.apply(call.action, *call.args, **call.kwargs)
    return parser


def invoke(registry, argv=Unset, scope=Unset, /, *, prog=Unset, width=80):
    """
    run the command selected by `argv` in `scope` and report what happened.

    parameters
    - registry: cmdtree.commands.Registry
    - argv: Unset | str | Iterable[str] (see tokens()).
    - scope: scope identifier; the registry's default scope when Unset.
    - prog: program name used in the usage line.
    - width: help screen width.

    returns
    - Outcome: Dispatched | Triggered | HelpRequested | ValidationFailed

    raises
    - ScopeError, OptionDefinitionError, UnknownActionError, DispatchError
    - any exception raised by a trigger, filter or exec handler other than HelpNeeded
    """
    tree = registry.tree() if scope is Unset else registry.tree(scope)
    try:
        argv = tokens(argv)
    except MalformedTokenError as fault:
        # Nothing to resolve; the failure is reported against the root screen.
        logger.debug("command line rejected: %s", fault)
        failure, argv = fault, []
    else:
        failure = None
    resolution = resolve(tree, argv, registry.config, prog=prog)
    path = list(resolution.path)
    parser = build(resolution, registry.config)

    def screen():
        return parser.educate(width)

    if failure is not None:
        return ValidationFailed(path, failure, screen())

    def bind(keys, handler):
        @rename("trigger")
        def wrapper(options, argv):
            logger.debug("running trigger %s on %r", sorted(keys), " ".join(path))
            return handler(list(path), options, argv)
        return wrapper

    triggers = {keys: bind(keys, handler) for keys, handler in resolution.triggers.items()}

    try:
        result = parser.parse(resolution.argv, triggers)
    except CommandException as fault:
        logger.debug("command line rejected: %s", fault)
        return ValidationFailed(path, fault, screen())
    except HelpNeeded:
        return HelpRequested(path, screen())

    if result.help:
        return HelpRequested(path, screen())
    if result.fired is not None:
        return Triggered(result.fired, path, result.options, result.leftovers)

    if resolution.subcommands:
        logger.debug("%r has subcommands, showing help", " ".join(path))
        return HelpRequested(path, screen())

    try:
        for handler in resolution.filters:
            handler(list(path), result.options, result.leftovers)
        if resolution.node.handler is None:
            raise DispatchError(path)
        logger.debug("dispatching %r with %r", " ".join(path), result.leftovers)
        value = resolution.node.handler(list(path), result.options, result.leftovers)
    except HelpNeeded:
        return HelpRequested(path, screen())
    return Dispatched(path, result.options, result.leftovers, value)


def run(registry, argv=Unset, scope=Unset, /, *, prog=Unset, width=Unset, colorful=False, stdout=Unset, stderr=Unset):
    """
    invoke() and turn the outcome into process effects.

    - HelpRequested: the screen is written to stdout, exit status 0.
    - ValidationFailed: "Error: <message>." and a hint are written to stderr, exit status 1.
    - Dispatched / Triggered: returned to the caller.

    stdout/stderr accept rich Consoles (useful for capturing output).
    """
    stdout = Console(highlight=False) if stdout is Unset else stdout
    stderr = Console(stderr=True, highlight=False) if stderr is Unset else stderr
    outcome = invoke(registry, argv, scope, prog=prog, width=nullify(width, stdout.width))

    match outcome:
        case HelpRequested(screen=screen):
            stdout.out(screen, end="", highlight=False)
            sys.exit(0)
        case ValidationFailed(fault=fault):
            trigger(fault, shell=True, colorful=colorful, console=stderr)
    return outcome


__all__ = (
    "tokens",
    "build",
    "invoke",
    "run",
)
