"""
cmdtree path resolution: argv + a scope's tree → the command to run and everything it inherits.

resolve() walks the tree from the root, consuming leading argv elements while they
name a child of the current node. Every visited node contributes its parser calls,
filters and triggers (root first); the walk stops at the first element that is not a
child name, or when argv is exhausted. Nothing past that point is consumed.
"""
import logging
import os
import re
import sys
from collections import namedtuple

from .internals import Unset, nullify

logger = logging.getLogger(__name__)

Resolution = namedtuple("Resolution", (
    "node",
    "path",
    "argv",
    "calls",
    "filters",
    "triggers",
    "texts",
    "subcommands",
    "params",
    "header",
))
Resolution.__doc__ = """
resolved invocation context.

fields
- node: the terminal CommandNode.
- path: tuple[str, ...], the consumed command path.
- argv: list[str], the arguments left for the option parser.
- calls: tuple[Call, ...], parser calls of every visited node, root → leaf.
- filters: tuple[Callable, ...], root → leaf, declaration order within a node.
- triggers: dict[frozenset[str], Callable], deeper declarations replace same key sets.
- texts: tuple[str, ...], free-form help text of every visited node that declared one.
- subcommands: tuple[str, ...], child names of the terminal node.
- params: str, the effective parameter hint.
- header: str, the substituted usage line.
"""


def program():
    """the program name shown in usage lines (basename of sys.argv[0])."""
    return os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "python"


def substitute(template, prog, path, params):
    """
    fill a usage template.

    %0 → program name, %command → space-joined path, %params → parameter hint;
    runs of spaces are then collapsed into one.
    """
    text = template.replace("%0", prog).replace("%command", " ".join(path)).replace("%params", params)
    return re.sub(" +", " ", text)


def resolve(tree, argv, config, *, prog=Unset):
    """
    resolve `argv` against the root node `tree`.

    parameters
    - tree: CommandNode, the root of a scope.
    - argv: Sequence[str], raw arguments (not including the program name).
    - config: Configuration, supplies the usage template and subcommand placeholder.
    - prog: str, program name substituted for %0 (defaults to program()).

    returns
    - Resolution
    """
    raw = tuple(argv)
    argv = list(argv)
    node = tree
    visited = [node]
    while argv and argv[0] in node.children:
        node = node.children[argv.pop(0)]
        visited.append(node)

    calls = []
    filters = []
    triggers = {}
    for each in visited:
        calls.extend(each.calls)
        filters.extend(each.filters)
        triggers.update(each.triggers)

    subcommands = tuple(node.children)
    if subcommands:
        params = config["text_param_subcommand"]
    else:
        params = node.params or ""

    template = next((each.header for each in reversed(visited) if each.header), config["text_header_usage"])
    header = substitute(template, nullify(prog, None) or program(), node.path, params)

    logger.debug(
        "resolved %r to %r (%d call(s), %d filter(s), %d trigger(s), remaining %r)",
        raw, " ".join(node.path), len(calls), len(filters), len(triggers), argv,
    )
    return Resolution(
        node,
        node.path,
        argv,
        tuple(calls),
        tuple(filters),
        triggers,
        tuple(each.text for each in visited if each.text),
        subcommands,
        params,
        header,
    )


__all__ = (
    "Resolution",
    "program",
    "substitute",
    "resolve",
)
