"""
cmdtree invocation outcomes.

invoke() never prints and never exits; it returns exactly one of these values
(fatal definition errors are raised instead):

- Dispatched(path, options, argv, result): the exec handler ran and returned `result`.
- Triggered(keys, path, options, argv): a trigger fired and short-circuited the run.
- HelpRequested(path, screen): the help screen should be shown (help option, subcommand
  guard, or a HelpNeeded signal from a handler).
- ValidationFailed(path, fault, screen): the command line was rejected; `fault` is the
  CommandException describing why.
"""
from collections import namedtuple

Dispatched = namedtuple("Dispatched", ("path", "options", "argv", "result"))
Triggered = namedtuple("Triggered", ("keys", "path", "options", "argv"))
HelpRequested = namedtuple("HelpRequested", ("path", "screen"))
ValidationFailed = namedtuple("ValidationFailed", ("path", "fault", "screen"))

Outcome = Dispatched | Triggered | HelpRequested | ValidationFailed

__all__ = (
    "Dispatched",
    "Triggered",
    "HelpRequested",
    "ValidationFailed",
    "Outcome",
)
