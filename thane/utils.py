"""
Thane utilities shared by the declaration, dispatch and help layers.

- Unset: the "not given" marker for parameters where None is a real value.
- coalesce(value, default): Unset -> default, anything else passes through.
- rename(fn, name) / @rename(name): give generated stand-ins a readable name.
- mirror(name): read-only property over "_name"; containers come back as copies.
- ordinal(n): "first" ... "tenth", then "11th", "21st", ...
- IntrospectableType: metaclass for declaration records (see its docstring).

    >>> coalesce(Unset, "help")
    'help'
    >>> ordinal(2)
    'second'
"""
import builtins
import functools
import re
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """type of the Unset marker; one instance per process, always falsy."""

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    # registries are deep-copied for derived command sets
    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self


Unset = UnsetType()


def coalesce(value, default=None, /):
    """`default` when `value` is Unset; None, 0 and "" are kept."""
    return default if value is Unset else value


def rename(*parameters):
    """
    rename(fn, name) sets fn.__name__/__qualname__ and returns fn;
    rename(name) returns a decorator doing the same.
    """
    if len(parameters) == 1:
        name, = parameters
        if not isinstance(name, str):
            raise TypeError("@rename() argument must be a string")
        return lambda callback: rename(callback, name)
    if len(parameters) != 2:
        raise TypeError(f"rename() takes 1 or 2 arguments ({len(parameters)} given)")

    callback, name = parameters
    if not builtins.callable(callback) or not isinstance(name, str):
        raise TypeError("rename() expects a callable and a string")
    callback.__name__ = callback.__qualname__ = name
    return callback


def _detached(value):
    match value:
        case str():
            return value
        case Mapping():
            return {key: _detached(item) for key, item in value.items()}
        case Set():
            return {_detached(item) for item in value}
        case Sequence():
            return [_detached(item) for item in value]
    return value


def mirror(name, /):
    """read-only property for "_<name>"; edits go through the owner's methods."""
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")
    return property(rename(lambda self: _detached(getattr(self, "_" + name)), name))


_ORDINALS = (
    "zeroth", "first", "second", "third", "fourth", "fifth",
    "sixth", "seventh", "eighth", "ninth", "tenth",
)


def ordinal(number, /):
    """English ordinal of a token position, used in splitter messages."""
    if not isinstance(number, int) or isinstance(number, bool):
        raise TypeError("ordinal() argument must be an integer")
    if 0 <= number < len(_ORDINALS):
        return _ORDINALS[number]
    if 10 <= number % 100 <= 20:
        return f"{number}th"
    return f"{number}{ {1: 'st', 2: 'nd', 3: 'rd'}.get(number % 10, 'th') }"


class IntrospectableType(type):
    """
    Metaclass for declaration records (options, tasks, registries, command sets).

    - every name in __introspectable__ becomes a mirror() property; a class that
      also defines one of those names itself is rejected (TypeError).
    - __typename__ is the hyphenated lowercase class name ("TaskRegistry" ->
      "task-registry") used in messages.
    - __repr__/__rich_repr__ list __displayable__ when set, else __introspectable__.
    """
    __introspectable__ = ()
    __displayable__ = None

    def __new__(cls, name, bases, namespace, **options):
        fields = namespace.get("__introspectable__", ())
        if clashes := sorted(set(fields) & set(namespace)):
            raise TypeError(f"{name} defines {', '.join(clashes)} and also lists them in __introspectable__")

        namespace = dict(namespace)
        namespace["__typename__"] = re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()
        namespace.update((field, mirror(field)) for field in fields)
        self = super().__new__(cls, name, bases, namespace, **options)

        def __rich_repr__(self):
            for field in type(self).__displayable__ or type(self).__introspectable__:
                yield field, getattr(self, field)

        def __repr__(self):
            fields = ", ".join(f"{field}={value!r}" for field, value in self.__rich_repr__())
            return f"{type(self).__typename__}({fields})"

        self.__rich_repr__ = __rich_repr__
        self.__repr__ = __repr__
        return self


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "ordinal",
    "UnsetType",
    "IntrospectableType",
    "Unset",
)
