"""
Thane task records and resolution outcomes.

- Task: the declared metadata of one command (name, usage, description,
  long description, option table, hidden flag).
- Implementation: the callable registered for a name plus its visibility.
  Only public implementations are dispatchable; private ones are helpers.
- Resolved / Dynamic / Missing: what TaskRegistry.resolve() found for a token
  stream. Each carries the remaining (or original) argument list.
"""
from typing import NamedTuple, Any

from .options import Option
from .utils import Unset, coalesce, IntrospectableType


class Task(metaclass=IntrospectableType):
    """
    Declared metadata of a task.

    Tasks are owned by a TaskRegistry. Redefinitions (desc/long_desc/method_option
    with for_=...) patch the record in place through redefine() and add_option(),
    so a task name always maps to exactly one record.
    """
    __introspectable__ = (
        "name",
        "description",
        "long_description",
        "usage",
        "options",
        "hidden",
    )
    __displayable__ = ("name", "usage", "description", "hidden")

    def __init__(self, name, description, long_description=None, usage=Unset, options=(), *, hidden=False):
        if not isinstance(name, str) or not name:
            raise TypeError("task name must be a non-empty string")
        self._name = name
        self._description = Unset
        self._long_description = None
        self._usage = Unset
        self._hidden = False
        self._options = {}
        self.redefine(
            usage=coalesce(usage, name),
            description=description,
            long_description=long_description,
            hidden=hidden,
        )
        for option in options:
            self.add_option(option)

    def redefine(self, *, usage=Unset, description=Unset, long_description=Unset, hidden=Unset):
        """patch metadata in place; Unset fields are left untouched."""
        for field, value in (("usage", usage), ("description", description)):
            if value is Unset:
                continue
            if not isinstance(value, str) or not value.strip():
                raise TypeError(f"task {field} must be a non-empty string")
            setattr(self, "_" + field, value)
        if long_description is not Unset:
            if long_description is not None and not isinstance(long_description, str):
                raise TypeError("task long description must be a string")
            self._long_description = long_description
        if hidden is not Unset:
            self._hidden = bool(hidden)
        return self

    def add_option(self, option, /):
        """add or replace (by name) an option in the task's table."""
        if not isinstance(option, Option):
            raise TypeError("task options must be Option instances")
        self._options[option.name] = option
        return self

    def option(self, name, /):
        """return the option called `name` (KeyError when undeclared)."""
        return self._options[name]

    @property
    def required_options(self):
        """usages of required options, sorted and space-joined (used in formatted usage)."""
        return " ".join(sorted(option.usage for option in self._options.values() if option.required))

    @classmethod
    def dynamic(cls, name, /):
        """a stand-in record for names dispatched without declared metadata."""
        return cls(name, "A dynamically-generated task", usage=name)


class Implementation(NamedTuple):
    """a registered callable and its visibility tag."""
    callback: Any
    public: bool


class Resolved(NamedTuple):
    """the token stream named a declared task."""
    task: Task
    args: list


class Dynamic(NamedTuple):
    """a name was given but no task of that name is declared."""
    name: str
    args: list


class Missing(NamedTuple):
    """no name was given and no default task is declared."""
    args: list


__all__ = (
    "Task",
    "Implementation",
    "Resolved",
    "Dynamic",
    "Missing",
)
