"""
cmdtree.internals
~~~~~~~~~~~~~~~~~

Small building blocks shared by the registry, the resolver and the parser.

What this module provides
- UnsetType / Unset: falsy singleton used where None is a legitimate value
  (e.g., an option default of None vs. no default declared at all).
- nullify(object, default): materialize Unset into a concrete default.
- present(default): whether an option default counts as declared.
- rename(callable, name) / @rename("name"): stable names for generated callables.
- view("field"): read-only property over a private backing field ("_field").

These helpers are importable, but intended for internal API use only.
"""
import functools
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    "argument not given" marker, distinct from None.

    Unset is the only instance; it is falsy, prints as "Unset" and cannot be subclassed.
    """
    __slots__ = ()

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def nullify(object, default=None, /):
    """
    swap Unset for `default`; any other value (None, 0, "" included) passes through.
    """
    return default if object is Unset else object


def present(default, /):
    """
    whether an option default counts as declared.

    None, False and empty strings/lists count as "no default"; everything else
    (including 0) is shown in help and overrides a `required` declaration.
    """
    return default is not None and default is not False and default != [] and default != ""


def rename(x, /, name=None):
    """
    give a generated callable a readable name.

    rename(function, name="x") renames in place and returns the function;
    rename("x") returns a decorator doing the same.
    """
    if isinstance(x, str):
        return functools.partial(rename, name=x)
    if not isinstance(name, str):
        raise TypeError("callable name must be a string")
    x.__name__ = x.__qualname__ = name
    return x


def _frozen(value):
    match value:
        case str() | bytes():
            return value
        case Mapping():
            return MappingProxyType(value)
        case Set():
            return frozenset(value)
        case Sequence():
            return tuple(value)
    return value


def view(name):
    """
    read-only property exposing the backing field "_" + name.

    containers come back frozen (tuple, mappingproxy or frozenset) so callers
    cannot mutate a node behind the builder's back.
    """
    return property(rename(lambda self: _frozen(getattr(self, "_" + name)), name=name))


__all__ = (
    "UnsetType",
    "Unset",
    "nullify",
    "present",
    "rename",
    "view",
)
