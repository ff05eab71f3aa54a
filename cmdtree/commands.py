"""
cmdtree command layer: declare command trees and run them.

What this module provides
- CommandNode: one vertex of a command tree (its calls, filters, triggers, help
  metadata, exec handler, and children keyed by path segment).
- Builder: the closed vocabulary of declaration actions bound to one node.
- Registry: scope → tree mapping with lazy creation, reset, configuration and the
  invoke()/run() entry points.
- Module-level shortcuts on a process-wide default registry:
  command(), parent(), configure(), invoke(), run(), reset().

Quick start
    from cmdtree import command, run

    @command()
    def root(cmd):
        cmd.text("Kitchen-sink multi-tool.")
        cmd.opt("debug", "Enable debugging", default=False)

    @command("calc add")
    def add(cmd):
        cmd.desc("Add some numbers").params("<int> <int> [int] ...")

        @cmd.exec
        def handler(path, opts, argv):
            print(sum(map(int, argv)))

    if __name__ == "__main__":
        run()

Declaration rules
- A path is a whitespace-separated string ("file move") or a sequence of segments;
  None or "" is the root. Intermediate nodes are created on demand.
- Declaring the same path again is additive: calls, filters and triggers append,
  text accumulates (newline-separated); desc/params/header/exec are last write wins.
- Options with a present default drop `required`; required options get the
  configured required marker appended to their description.

Threading
- A registry is shared mutable state without locking. Declaration and invocation
  must be serialized by the embedding application (one thread at a time).
"""
import logging
from collections.abc import Iterable

from . import pipeline
from .config import Configuration
from .faults import OptionDefinitionError, ScopeError, UnknownActionError
from .internals import Unset, present, rename, view
from .parser import Call

logger = logging.getLogger(__name__)

DEFAULT_SCOPE = "default"

ACTIONS = (
    "opt",
    "banner",
    "depends",
    "conflicts",
    "desc",
    "text",
    "params",
    "header",
    "filter",
    "trigger",
    "exec",
)

OPTION_ATTRIBUTES = ("type", "default", "required", "multi", "long", "short")


def _segments(path):
    if path is None:
        return ()
    if isinstance(path, str):
        return tuple(path.split())
    if isinstance(path, Iterable):
        segments = tuple(path)
        if not all(isinstance(segment, str) and segment for segment in segments):
            raise TypeError("command path segments must be non-empty strings")
        return segments
    raise TypeError("command path must be a string or an iterable of strings")


class CommandNode:
    """
    one vertex of a command tree.

    Attributes (read-only views)
    - path: tuple[str, ...], segments from the root (empty for the root).
    - children: Mapping[str, CommandNode], in declaration order.
    - calls: tuple[Call, ...], parser directives declared here (options, banners, constraints).
    - filters: tuple[Callable, ...], in declaration order.
    - triggers: Mapping[frozenset[str], Callable].
    - description: str | None, one-liner shown in the parent's command listing.
    - text: str | None, free-form help text.
    - params: str | None, parameter hint for the usage line.
    - header: str | None, usage template overriding the configured one.
    - handler: Callable | None, the exec handler.
    """
    __introspectable__ = (
        "path",
        "children",
        "calls",
        "filters",
        "triggers",
        "description",
        "text",
        "params",
        "header",
        "handler",
    )

    def __init__(self, path=()):
        self._path = tuple(path)
        self._children = {}
        self._calls = []
        self._filters = []
        self._triggers = {}
        self._description = None
        self._text = None
        self._params = None
        self._header = None
        self._handler = None

    for _name in __introspectable__:
        locals()[_name] = view(_name)
    del _name

    def __repr__(self):
        return "command-node(path=%r, children=%r, calls=%d)" % (
            " ".join(self._path),
            tuple(self._children),
            len(self._calls),
        )

    def child(self, segment, /):
        """
        return the child at `segment`, creating it when missing.
        """
        try:
            return self._children[segment]
        except KeyError:
            node = self._children[segment] = CommandNode(self._path + (segment,))
            logger.debug("created command node %r", " ".join(node.path))
            return node


class Builder:
    """
    declaration actions bound to one CommandNode.

    Actions (see ACTIONS)
    - opt(name, descr="", **attributes), banner(text), depends(*names), conflicts(*names):
      parser directives inherited by every descendant.
    - desc(text), text(text), params(text), header(template): help metadata.
    - filter(handler), trigger(keys)(handler), exec(handler): handlers; usable as decorators.

    Every action except the handler decorators returns the builder, so declarations
    chain: registry.command("file move").desc("Move a file").params("<src> <dst>").

    A builder is also a decorator for declaration blocks: the decorated function is
    called with the builder and returned unchanged.

    Any other attribute fails with UnknownActionError naming the action.
    """
    __slots__ = ("_node", "_config")

    def __init__(self, node, config):
        self._node = node
        self._config = config

    def __getattr__(self, name):
        raise UnknownActionError(name)

    def __call__(self, block, /):
        if not callable(block):
            raise TypeError("command() must decorate a callable")
        block(self)
        return block

    def __repr__(self):
        return f"builder(path={' '.join(self._node.path)!r})"

    @property
    def node(self):
        return self._node

    def call(self, action, /, *args, **kwargs):
        """
        run an action by name; names outside ACTIONS raise UnknownActionError.
        """
        if action not in ACTIONS:
            raise UnknownActionError(action)
        return getattr(self, action)(*args, **kwargs)

    def _push(self, action, args, kwargs=None):
        self._node._calls.append(Call(action, tuple(args), dict(kwargs or {})))
        return self

    def opt(self, name, descr="", /, **attributes):
        """
        declare an option (see cmdtree.parser.Parser.opt for attributes).

        a present default drops `required`; a required option gets the configured
        required marker appended to its description.
        attributes outside OPTION_ATTRIBUTES raise OptionDefinitionError.
        """
        for key in attributes:
            if key not in OPTION_ATTRIBUTES:
                raise OptionDefinitionError(f"unknown option attribute {key!r} for {name!r}")
        if present(attributes.get("default")):
            attributes.pop("required", None)
        if attributes.get("required"):
            descr += self._config["text_required"]
        return self._push("opt", (name, descr), attributes)

    def banner(self, text, /):
        return self._push("banner", (text,))

    def depends(self, *names):
        return self._push("depends", names)

    def conflicts(self, *names):
        return self._push("conflicts", names)

    def desc(self, text, /):
        self._node._description = str(text)
        return self

    def text(self, text, /):
        if self._node._text:
            self._node._text += "\n" + str(text)
        else:
            self._node._text = str(text)
        return self

    def params(self, text, /):
        self._node._params = str(text)
        return self

    def header(self, template, /):
        self._node._header = str(template)
        return self

    def filter(self, handler, /):
        if not callable(handler):
            raise TypeError("filter handler must be callable")
        self._node._filters.append(handler)
        return handler

    def trigger(self, keys, handler=Unset, /):
        """
        bind a handler to one option name or a set of names.

        used directly (cmd.trigger("version", handler)) or as a decorator
        (@cmd.trigger(["version", "v"])). A later trigger on the same key set
        replaces the earlier one.
        """
        keyset = frozenset((keys,) if isinstance(keys, str) else keys)
        if not keyset:
            raise ValueError("trigger keys cannot be empty")

        @rename("trigger")
        def decorator(handler, /):
            if not callable(handler):
                raise TypeError("trigger handler must be callable")
            self._node._triggers[keyset] = handler
            return handler

        return decorator if handler is Unset else decorator(handler)

    def exec(self, handler, /):
        if not callable(handler):
            raise TypeError("exec handler must be callable")
        self._node._handler = handler
        return handler


class Registry:
    """
    scope → command tree mapping plus the configuration store.

    Lifecycle
    - trees are created lazily on first declaration in a scope;
    - reset_scope(scope) drops one tree, reset() drops all trees and restores the
      configuration defaults (test isolation, re-registration in long-lived processes).

    Entry points
    - command(path, scope) → Builder
    - parent(path, labels, scope) → label every prefix of a path
    - invoke(argv, scope) → Outcome (no process effects)
    - run(argv, scope) → Outcome, or prints help / diagnostics and exits
    """

    def __init__(self, config=Unset):
        self._trees = {}
        self.config = Configuration() if config is Unset else config

    def __repr__(self):
        return f"registry(scopes={tuple(self._trees)!r})"

    @property
    def scopes(self):
        return tuple(self._trees)

    def tree(self, scope=DEFAULT_SCOPE, /):
        """
        return the root node of `scope`; ScopeError when it was never declared.
        """
        try:
            return self._trees[scope]
        except KeyError:
            raise ScopeError(scope) from None

    def node(self, path=None, scope=DEFAULT_SCOPE):
        """
        return the node at `path` in `scope`, creating the tree and intermediate nodes.
        """
        try:
            node = self._trees[scope]
        except KeyError:
            node = self._trees[scope] = CommandNode()
            logger.debug("created scope %r", scope)
        for segment in _segments(path):
            node = node.child(segment)
        return node

    def command(self, path=None, scope=DEFAULT_SCOPE):
        return Builder(self.node(path, scope), self.config)

    def parent(self, path, labels=(), scope=DEFAULT_SCOPE):
        """
        create every prefix of `path` and describe them with `labels`.

            registry.parent("foo bar", ["desc for foo", "desc for bar"])

        a single string labels the first prefix only.
        """
        if isinstance(labels, str):
            labels = [labels]
        segments = _segments(path)
        for index, label in enumerate(labels[:len(segments)]):
            self.command(segments[:index + 1], scope).desc(label)
        return self.node(segments, scope)

    def configure(self, **assignments):
        self.config.configure(**assignments)
        return self.config

    def reset_scope(self, scope=DEFAULT_SCOPE, /):
        self._trees.pop(scope, None)

    def reset(self):
        self._trees.clear()
        self.config.reset()

    def invoke(self, argv=Unset, scope=DEFAULT_SCOPE, /, **options):
        return pipeline.invoke(self, argv, scope, **options)

    def run(self, argv=Unset, scope=DEFAULT_SCOPE, /, **options):
        return pipeline.run(self, argv, scope, **options)


# Process-wide default registry used by the module-level shortcuts.
registry = Registry()


def command(path=None, scope=DEFAULT_SCOPE):
    """
    declare (or extend) the command at `path` on the default registry.

    returns a Builder, usable fluently or as a decorator for a declaration block.
    """
    return registry.command(path, scope)


def parent(path, labels=(), scope=DEFAULT_SCOPE):
    return registry.parent(path, labels, scope)


def configure(**assignments):
    return registry.configure(**assignments)


def invoke(argv=Unset, scope=DEFAULT_SCOPE, /, **options):
    return registry.invoke(argv, scope, **options)


def run(argv=Unset, scope=DEFAULT_SCOPE, /, **options):
    return registry.run(argv, scope, **options)


def reset():
    registry.reset()


__all__ = (
    "DEFAULT_SCOPE",
    "ACTIONS",
    "OPTION_ATTRIBUTES",
    "Call",
    "CommandNode",
    "Builder",
    "Registry",
    "registry",
    "command",
    "parent",
    "configure",
    "invoke",
    "run",
    "reset",
)
