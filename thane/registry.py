"""
Thane task registry.

Scope
- Declaration: the pending usage/description/long description/options that the
  next registered implementation will be committed with.
- TaskRegistry: ordered tasks, alias map, default task, implementations with
  their visibility tag, and the name resolver.
- UnknownOptionPolicy: which tasks reject unknown switches.

Declaration protocol
    registry.begin("deploy ENV", "deploy the app to ENV")   # usage + description
    registry.declare(Option("force", "boolean"))            # any number of options
    registry.describe("long text ...")                      # optional
    registry.commit("deploy", deploy)                       # creates the Task

commit() creates a task only when both usage and description are pending; the
pending state is cleared right after. Otherwise the callable is stored as a
private helper and an UndeclaredTaskWarning is issued, except when:
- a task of that name already exists (its metadata is kept, its
  implementation replaced),
- the name is the reserved fallback ("method_missing"),
- the registration happens inside registry.quiet().

Resolution (resolve(args))
1. no args: the default task.
2. first token is an alias: consume it, use the alias target.
3. first token does not start with "-": consume it as the task name.
4. otherwise (a switch): the default task, nothing consumed.
5. "-" is normalized to "_" in the name.
6. an unknown name falls back to the default task with the original args when
   the default task was declared with swallow=True.
7. otherwise Dynamic(name, args); Missing(args) only when no token named a task
   and there is no default task. An empty token ("") is a name like any other.
"""
import contextlib
import copy
import logging
from typing import NamedTuple

from .faults import UndefinedTaskError, UndeclaredTaskWarning, trigger
from .options import Option
from .tasks import Task, Implementation, Resolved, Dynamic, Missing
from .utils import Unset, coalesce, IntrospectableType

logger = logging.getLogger(__name__)

HELP_MAPPINGS = ("-h", "-?", "--help", "-D")
FALLBACK = "method_missing"


class Declaration(metaclass=IntrospectableType):
    """pending task metadata; consumed by the next committed implementation."""
    __introspectable__ = ("usage", "description", "long_description", "options", "hidden")

    def __init__(self):
        self.clear()

    def begin(self, usage, description, /, *, hide=False):
        if not isinstance(usage, str) or not usage.strip():
            raise TypeError("task usage must be a non-empty string")
        if not isinstance(description, str) or not description.strip():
            raise TypeError("task description must be a non-empty string")
        self._usage = usage
        self._description = description
        self._hidden = bool(hide)

    def describe(self, text, /):
        if not isinstance(text, str):
            raise TypeError("task long description must be a string")
        self._long_description = text

    def declare(self, option, /):
        if not isinstance(option, Option):
            raise TypeError("declare() argument must be an Option")
        self._options[option.name] = option

    @property
    def ready(self):
        return bool(self._usage and self._description)

    def clear(self):
        self._usage = None
        self._description = None
        self._long_description = None
        self._options = {}
        self._hidden = False


class UnknownOptionPolicy(NamedTuple):
    """
    unknown-switch policy of a command set.

    modes
    - "all"    : every task rejects unknown switches.
    - "only"   : only the listed tasks reject them.
    - "except" : every task but the listed ones rejects them.
    """
    mode: str = "all"
    tasks: frozenset = frozenset()

    def checks(self, name, /):
        match self.mode:
            case "all":
                return True
            case "only":
                return name in self.tasks
            case "except":
                return name not in self.tasks
        raise RuntimeError("unreachable")


def _normalize(name):
    return str(name).replace("-", "_")


class TaskRegistry(metaclass=IntrospectableType):
    """
    Ordered task table plus implementations, aliases and the default task.

    Registries are never shared between command sets: derived sets receive
    copy(), and mutating the copy leaves the original untouched.
    """
    __introspectable__ = ("tasks", "aliases", "default_task", "swallow", "inherited")
    __displayable__ = ("tasks", "aliases", "default_task", "swallow")

    def __init__(self):
        self._tasks = {}
        self._aliases = {}
        self._default_task = None
        self._swallow = False
        self._implementations = {}
        self._inherited = set()
        self._pending = Declaration()
        self._quiet = 0

    # -- declaration -----------------------------------------------------

    @property
    def pending(self):
        return self._pending

    def begin(self, usage, description, /, *, hide=False):
        self._pending.begin(usage, description, hide=hide)

    def describe(self, text, /):
        self._pending.describe(text)

    def declare(self, option, /):
        self._pending.declare(option)

    @contextlib.contextmanager
    def quiet(self):
        """register helpers without UndeclaredTaskWarning inside this block."""
        self._quiet += 1
        try:
            yield self
        finally:
            self._quiet -= 1

    def commit(self, name, callback, /, *, public=Unset):
        """
        register `callback` under `name` (RegisterImplementation).

        Returns
        - True when `name` is (or remains) a task, False when it became a helper.
        """
        if not isinstance(name, str) or not name:
            raise TypeError("implementation name must be a non-empty string")
        if not callable(callback):
            raise TypeError("implementation must be callable")

        pending = self._pending
        if pending.ready:
            self._tasks[name] = Task(
                name,
                pending.description,
                pending.long_description,
                pending.usage,
                pending.options.values(),
                hidden=pending.hidden,
            )
            self._inherited.discard(name)
            pending.clear()
            self._implementations[name] = Implementation(callback, bool(coalesce(public, True)))
            logger.debug("committed task %r", name)
            return True

        if name in self._tasks:
            self._implementations[name] = Implementation(callback, bool(coalesce(public, True)))
            logger.debug("replaced implementation of task %r", name)
            return True

        self._implementations[name] = Implementation(callback, bool(coalesce(public, False)))
        if name != FALLBACK and not self._quiet:
            trigger(
                UndeclaredTaskWarning(
                    f"{name!r} was registered without usage and description and will not be available as a task",
                    hint="declare it with desc(usage, description) first, or register it inside no_tasks()",
                ),
                stacklevel=5,
            )
        logger.debug("registered helper %r", name)
        return False

    def refresh(self, name, /):
        """
        return the task named `name` for an in-place redefinition (for_=...).

        Raises UndefinedTaskError when no such task exists.
        """
        if (task := self._tasks.get(_normalize(name))) is None:
            trigger(UndefinedTaskError(
                f"you supplied for_={name!r}, but the task {name!r} could not be found",
                hint="declare the task before redefining it",
            ))
        self._inherited.discard(task.name)
        return task

    def alias(self, mapping, /):
        """map alias tokens to task names; keys may be strings or sequences of strings."""
        for keys, name in mapping.items():
            if isinstance(keys, str):
                keys = (keys,)
            for key in keys:
                if not isinstance(key, str) or not key:
                    raise TypeError("alias tokens must be non-empty strings")
                self._aliases[key] = _normalize(name)

    def set_default(self, name, /, *, swallow=False):
        """set (or clear, with None) the default task and its re-resolution policy."""
        self._default_task = None if name is None else _normalize(name)
        self._swallow = bool(swallow)

    def adopt(self, other, /):
        """
        copy task metadata from `other` for names not declared here yet.

        implementations are not copied; adopted tasks resolve but have nothing to run
        until an implementation is registered for them.
        """
        for name, task in other._tasks.items():
            if name not in self._tasks:
                self._tasks[name] = copy.deepcopy(task)
                self._inherited.add(name)

    def copy(self):
        """
        independent copy for a derived command set.

        task metadata is deep-copied; implementations are shared (callbacks are
        often bound methods whose owners cannot be copied). Pending state is not
        carried over.
        """
        clone = TaskRegistry()
        clone._tasks = copy.deepcopy(self._tasks)
        clone._aliases = dict(self._aliases)
        clone._default_task = self._default_task
        clone._swallow = self._swallow
        clone._implementations = dict(self._implementations)
        clone._inherited = set(self._tasks)
        return clone

    # -- lookup ----------------------------------------------------------

    def implementation(self, name, /):
        return self._implementations.get(name)

    @property
    def fallback(self):
        return self._implementations.get(FALLBACK)

    def find(self, name, /):
        """the task for a name or alias token, or None."""
        name = self._aliases.get(name, name)
        return self._tasks.get(_normalize(name))

    def own(self):
        """tasks declared (or redefined) on this registry, in declaration order."""
        return [task for name, task in self._tasks.items() if name not in self._inherited]

    def __contains__(self, name):
        return _normalize(name) in self._tasks

    def __iter__(self):
        return iter(list(self._tasks.values()))

    def __len__(self):
        return len(self._tasks)

    # -- resolution ------------------------------------------------------

    def resolve(self, args, /):
        """resolve a token list into Resolved, Dynamic or Missing (see module docs)."""
        original = list(args)
        args = list(args)
        name = Unset

        if args:
            first = args[0]
            if first in self._aliases:
                args.pop(0)
                name = self._aliases[first]
            elif not first.startswith("-"):
                name = args.pop(0)

        if name is Unset and not self._default_task:
            return Missing(args)
        name = _normalize(coalesce(name, self._default_task))

        if (task := self._tasks.get(name)) is not None:
            return Resolved(task, args)
        if self._swallow and self._default_task in self._tasks:
            logger.debug("unknown task %r, re-resolving with the default task %r", name, self._default_task)
            return Resolved(self._tasks[self._default_task], original)
        return Dynamic(name, args)


__all__ = (
    "HELP_MAPPINGS",
    "FALLBACK",
    "Declaration",
    "UnknownOptionPolicy",
    "TaskRegistry",
)
