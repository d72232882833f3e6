"""
Thane command sets: declarative task definition, composition and entry points.

Overview
- CommandSet is the unit a program declares tasks on. It owns a TaskRegistry,
  class-level options and arguments, the unknown-option policy, and its
  composition links (subcommands, composed sets, parent chain).
- Tasks are declared with a pending description followed by a registration:

      app = CommandSet("app", banner="app - deploy things")

      app.desc("deploy ENV", "deploy the app to ENV")
      app.method_option("force", type="boolean", aliases="-f", desc="overwrite")
      @app.register
      def deploy(context, env):
          ...

  or, in one step, with the decorator sugar (options keep their source order):

      @app.task("deploy ENV", "deploy the app to ENV")
      @app.option("force", type="boolean", aliases="-f")
      def deploy(context, env):
          ...

- Implementations receive a Context first (options, arguments, shell, task),
  then the trailing positional arguments.
- Every command set ships a "help [TASK]" task (aliases -h, -?, --help, -D),
  which is also the default task until default_task() says otherwise.

Composition
- CommandSet(name, base=other): derive from a deep copy of other's declarations.
- subcommand(name, child) / mount(child, name, usage, description): nest a set
  under a task token; the child renders its usages with the parent tokens.
- compose(*others): list other sets' tasks in help as "namespace:task" and
  route such tokens to them.
- thane.wrapper.Wrapper: a command set bound to an external executable.

Entry points
- commands.start(prompt=Unset) / invoke(commands, prompt=Unset): normalize the
  prompt (sys.argv[1:], a shell-like string, or an iterable of strings) and
  dispatch it. The result is the task's return value or a falsy Failure.
"""
import functools
import shlex
import sys
from collections.abc import Iterable

from . import config
from .dispatch import Dispatcher
from .faults import CommandFault
from .help import HELP_TASK, class_help, formatted_usage, printable_tasks, task_banner, task_help
from .options import Option, Argument, build_options
from .registry import FALLBACK, HELP_MAPPINGS, TaskRegistry, UnknownOptionPolicy
from .utils import Unset, coalesce, rename, IntrospectableType


@rename(HELP_TASK)
def _help(context, task=None, *tasks):
    """built-in help task: class help, one task's help, or a subcommand task's help."""
    commands = context.commands
    try:
        if task is None:
            return commands.help(context.shell, subcommand=commands.is_subcommand)
        if tasks and (child := commands.children.get(task.replace("-", "_"))) is not None:
            return child.task_help(context.shell, tasks[0])
        return commands.task_help(context.shell, task)
    except CommandFault as fault:
        return context.fail(fault)


class CommandSet(metaclass=IntrospectableType):
    """
    A named set of tasks plus the metadata shared by all of them.

    Parameters
    - name: identifier of the set (default "default"); also the default namespace.
    - base: another CommandSet to derive from (deep copy of its declarations).
    - namespace: prefix used when the set is composed into another set's help
      ("default" is never printed).
    - banner: text printed above the task list in the class help.
    - basename: program name in banners (default: __main__.__prog__ or argv[0]).
    - debugging: raise dispatch faults instead of reporting them
      (default: the base's flag, else THANE_DEBUG).
    - colorful: style help and faults (default: the base's flag, else True).
    """
    __introspectable__ = (
        "name",
        "namespace",
        "banner",
        "parent_commands",
        "subcommands",
        "composed",
        "class_options",
        "arguments",
        "debugging",
        "colorful",
    )
    __displayable__ = ("name", "namespace", "banner", "parent_commands", "subcommands")

    def __init__(
            self,
            name="default",
            /,
            base=Unset,
            *,
            namespace=Unset,
            banner=Unset,
            basename=Unset,
            debugging=Unset,
            colorful=Unset
    ):
        if not isinstance(name, str) or not name:
            raise TypeError("command set name must be a non-empty string")
        if base is not Unset and not isinstance(base, CommandSet):
            raise TypeError("command set base must be a CommandSet")
        if banner is not Unset and banner is not None and not isinstance(banner, str):
            raise TypeError("command set banner must be a string")

        self._name = name
        self._namespace = coalesce(namespace, name)
        self._banner = coalesce(banner)
        self._basename = basename
        self._composed = []
        self._subcommand_root = False

        if base is Unset:
            self._registry = TaskRegistry()
            self._class_options = []
            self._arguments = []
            self._parent_commands = []
            self._subcommands = []
            self._passthrough = []
            self._children = {}
            self._policy = UnknownOptionPolicy()
            self._debugging = bool(coalesce(debugging, config.debugging()))
            self._colorful = bool(coalesce(colorful, True))
            self._install_help()
        else:
            self._registry = base._registry.copy()
            self._class_options = list(base._class_options)
            self._arguments = list(base._arguments)
            self._parent_commands = list(base._parent_commands)
            self._subcommands = list(base._subcommands)
            self._passthrough = list(base._passthrough)
            self._children = dict(base._children)
            self._policy = base._policy
            self._subcommand_root = base._subcommand_root
            self._debugging = bool(coalesce(debugging, base._debugging))
            self._colorful = bool(coalesce(colorful, base._colorful))
            self._basename = coalesce(basename, base._basename)

    def _install_help(self):
        self.desc("help [TASK]", "Describe available tasks or one specific task")
        self.register(_help, name=HELP_TASK)
        self.map({HELP_MAPPINGS: HELP_TASK})
        self.default_task(HELP_TASK)

    # -- introspection ---------------------------------------------------

    @property
    def registry(self):
        return self._registry

    @property
    def policy(self):
        """the UnknownOptionPolicy applied when splitting task arguments."""
        return self._policy

    @property
    def basename(self):
        return coalesce(self._basename, config.prog())

    @property
    def tasks(self):
        """declared tasks keyed by name, in declaration order."""
        return {task.name: task for task in self._registry}

    @property
    def children(self):
        """subcommand sets keyed by task name."""
        return dict(self._children)

    @property
    def passthrough(self):
        """task names whose tokens reach the implementation unsplit (subcommands, delegates)."""
        return tuple(self._passthrough)

    @property
    def is_subcommand(self):
        return self._subcommand_root

    # -- declaration -----------------------------------------------------

    def desc(self, usage, description, /, *, hide=False, for_=Unset):
        """
        declare usage and description for the next registered implementation,
        or patch them on an existing task with for_=<task name>.
        """
        if for_ is not Unset:
            self._registry.refresh(for_).redefine(
                usage=usage,
                description=description,
                hidden=hide if hide else Unset,
            )
            return
        self._registry.begin(usage, description, hide=hide)

    def long_desc(self, text, /, *, for_=Unset):
        if for_ is not Unset:
            self._registry.refresh(for_).redefine(long_description=text)
            return
        self._registry.describe(text)

    def method_option(self, name, /, type=Unset, *, for_=Unset, **spec):
        """declare an option for the next task (or add it to an existing one with for_)."""
        option = name if isinstance(name, Option) else Option(name, type, **spec)
        if for_ is not Unset:
            self._registry.refresh(for_).add_option(option)
        else:
            self._registry.declare(option)
        return option

    def method_options(self, mapping, /, *, for_=Unset):
        """compact form: {name: type-name-or-default} (see thane.options.build_options)."""
        return [self.method_option(option, for_=for_) for option in build_options(mapping)]

    def class_option(self, name, /, type=Unset, **spec):
        """declare an option shared by every task of this set."""
        option = name if isinstance(name, Option) else Option(name, type, **spec)
        self._class_options = [other for other in self._class_options if other.name != option.name]
        self._class_options.append(option)
        return option

    def class_options_from(self, mapping, /):
        """compact form of class_option(), see method_options()."""
        return [self.class_option(option) for option in build_options(mapping)]

    def argument(self, name, /, type=Unset, **spec):
        """declare a class-level positional argument, bound before each task's own arguments."""
        argument = Argument(name, type, **spec)
        if any(other.name == argument.name for other in self._arguments):
            raise ValueError(f"argument {argument.name!r} is already declared")
        if argument.required and any(not other.required for other in self._arguments):
            raise ValueError(f"required argument {argument.name!r} cannot follow optional arguments")
        self._arguments.append(argument)
        return argument

    def map(self, mapping, /):
        """alias tokens to task names: map({("-T", "ls"): "list"})."""
        self._registry.alias(mapping)

    def default_task(self, name=Unset, /, *, args=False):
        """
        get or set the default task.

        `args=True` lets the default task receive the original arguments when
        the first token names no task (instead of failing as undefined).
        """
        if name is Unset:
            return self._registry.default_task
        self._registry.set_default(name, swallow=args)

    def register(self, callback=Unset, /, name=Unset, *, public=Unset):
        """
        register an implementation; usable directly, as @register or as @register("name").

        The pending description (desc/long_desc/method_option) turns it into a
        task; without one it becomes a private helper and warns.
        """
        if callback is Unset:
            return functools.partial(self.register, name=name, public=public)
        if isinstance(callback, str):
            return functools.partial(self.register, name=callback, public=public)
        self._registry.commit(coalesce(name, callback.__name__), callback, public=public)
        return callback

    def option(self, name, /, type=Unset, **spec):
        """decorator: attach an option to a function declared with @task."""
        option = Option(name, type, **spec)

        def decorator(callback):
            callback.__thane_options__ = [option, *getattr(callback, "__thane_options__", ())]
            return callback

        return decorator

    def task(self, usage, description, /, *, hide=False, long_desc=Unset, name=Unset):
        """decorator: declare and register a task in one step."""

        def decorator(callback):
            self._registry.begin(usage, description, hide=hide)
            for option in getattr(callback, "__thane_options__", ()):
                self._registry.declare(option)
            if long_desc is not Unset:
                self._registry.describe(long_desc)
            return self.register(callback, name=name, public=True)

        return decorator

    def no_tasks(self):
        """context manager: register helpers without warnings."""
        return self._registry.quiet()

    def fallback(self, callback, /):
        """register the catch-all called as fallback(context, name, *args) for undeclared names."""
        with self._registry.quiet():
            self._registry.commit(FALLBACK, callback, public=False)
        return callback

    def check_unknown_options(self, *, only=Unset, exclude=Unset):
        """
        reject unknown switches for every task, only some tasks, or all but some.

        subcommand tasks are always exempt: their tokens belong to the child set.
        """
        if only is not Unset and exclude is not Unset:
            raise TypeError("check_unknown_options() accepts either 'only' or 'exclude', not both")
        if only is not Unset:
            self._policy = UnknownOptionPolicy("only", frozenset(name.replace("-", "_") for name in only))
        elif exclude is not Unset:
            self._policy = UnknownOptionPolicy("except", frozenset(name.replace("-", "_") for name in exclude))
        else:
            self._policy = UnknownOptionPolicy()

    def allow_unknown_options(self):
        """keep unknown switches as positional arguments for every task."""
        self._policy = UnknownOptionPolicy("only", frozenset())

    # -- composition -----------------------------------------------------

    def subcommand(self, name, child, /, usage=Unset, description=Unset, *, hide=False):
        """
        nest `child` under the task token `name`.

        Any pending desc() is used for the parent-side task; otherwise usage and
        description default to "<name> COMMAND" and the child's banner.
        """
        if not isinstance(child, CommandSet):
            raise TypeError("subcommand() child must be a CommandSet")
        if child is self or child._reaches(self):
            raise ValueError("a command set cannot be its own subcommand")
        key = name.replace("-", "_")
        if usage is not Unset or description is not Unset or not self._registry.pending.ready:
            self.desc(
                coalesce(usage, f"{name} COMMAND"),
                coalesce(description, child.banner or f"Manage {name} commands"),
                hide=hide,
            )

        @rename(key)
        def forward(context, *args):
            return child.dispatch(args, shell=context.shell)

        self._registry.commit(key, forward, public=True)
        if key not in self._subcommands:
            self._subcommands.append(key)
        if key not in self._passthrough:
            self._passthrough.append(key)
        self._children[key] = child

        child._parent_commands = [*self._parent_commands, name]
        child._basename = self._basename
        child._subcommand_root = True
        child._reparent()
        if HELP_TASK in child.registry:
            child.desc("help [COMMAND]", "Describe subcommands or one specific subcommand", for_=HELP_TASK)
        return child

    def _reaches(self, other):
        return any(child is other or child._reaches(other) for child in self._children.values())

    def _reparent(self):
        # nested sets mounted before this one carry a stale chain
        for child in self._children.values():
            child._parent_commands = [*self._parent_commands, child._parent_commands[-1]]
            child._basename = self._basename
            child._reparent()

    def mount(self, child, name, usage, description, /, *, hide=False):
        """desc + subcommand in one call, with the child first."""
        return self.subcommand(name, child, usage, description, hide=hide)

    def compose(self, *others):
        """list the own tasks of `others` in this set's help and route "ns:task" tokens to them."""
        for other in others:
            if not isinstance(other, CommandSet):
                raise TypeError("compose() arguments must be CommandSet instances")
            if other.namespace == "default":
                raise ValueError("composed command sets need a namespace other than 'default'")
            if other not in self._composed:
                other._basename = coalesce(other._basename, self._basename)
                self._composed.append(other)
        return self

    # -- help ------------------------------------------------------------

    def help(self, shell, /, subcommand=False):
        class_help(shell, self, subcommand=subcommand)

    def task_help(self, shell, name, /):
        task_help(shell, self, name)

    def printable_tasks(self, all=True, subcommand=False):
        return printable_tasks(self, all=all, subcommand=subcommand)

    def formatted_usage(self, task, /, include_namespace=False, subcommand=False):
        return formatted_usage(self._resolve_task(task), self, include_namespace, subcommand)

    def task_banner(self, task, /, include_namespace=False, subcommand=False):
        return task_banner(self._resolve_task(task), self, include_namespace, subcommand)

    def _resolve_task(self, task):
        if isinstance(task, str):
            if (found := self._registry.find(task)) is None:
                raise KeyError(task)
            return found
        return task

    # -- dispatch --------------------------------------------------------

    def dispatch(self, tokens=(), /, *, shell=Unset):
        """dispatch pre-tokenized arguments; returns the task result or a Failure."""
        tokens = list(tokens)
        if tokens and not tokens[0].startswith("-") and ":" in tokens[0]:
            namespace, _, name = tokens[0].rpartition(":")
            for other in self._composed:
                if other.namespace == namespace:
                    return other.dispatch([name, *tokens[1:]] if name else tokens[1:], shell=shell)
        return Dispatcher(self, shell).dispatch(tokens)

    def start(self, prompt=Unset, /, *, shell=Unset):
        """
        dispatch a prompt.

        - Unset: sys.argv[1:]
        - str: split with shlex.split
        - Iterable[str]: used as-is (each item must be a string)
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("start() argument must be a string or an iterable of strings")
        else:
            raise TypeError("start() argument must be a string or an iterable of strings")
        return self.dispatch(tokens, shell=shell)

    __invoke__ = start


def command_set(source=Unset, /, name=Unset, **options):
    """
    Build a CommandSet from a declaring function, or derive one from a template.

    Modes
    - Decorator:
        @command_set(banner="app - deploy things")
        def app(commands):
            commands.desc(...)
      The function receives the new set and its name becomes the set's name.
    - Direct callback: command_set(declare, name="app", ...)
    - Template: command_set(other, name="child") derives from `other`.
    """
    if source is Unset:
        return functools.partial(command_set, name=name, **options)
    if isinstance(source, CommandSet):
        return CommandSet(coalesce(name, source.name), source, **options)
    if not callable(source):
        raise TypeError("command_set() argument must be a callable or a CommandSet")
    commands = CommandSet(coalesce(name, source.__name__), **options)
    source(commands)
    return commands


def invoke(commands, prompt=Unset, /, **options):
    """
    Convenience runner: commands.__invoke__(prompt, **options).

    Raises TypeError when `commands` does not implement __invoke__.
    """
    if hasattr(commands, "__invoke__") and callable(commands.__invoke__):
        return commands.__invoke__(prompt, **options)
    raise TypeError("invoke() first argument must implement __invoke__ method")


__all__ = (
    "CommandSet",
    "command_set",
    "invoke",
)
