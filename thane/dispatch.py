"""
Thane dispatcher.

One dispatch walks a fixed sequence of states:

    resolve name -> split args -> validate -> bind -> execute
                                     \\-> classify -> report (on a dispatch fault)

- resolve: TaskRegistry.resolve() yields Resolved, Dynamic or Missing.
- split: thane.splitter.split() with class options merged under task options;
  the unknown-switch check follows the command set's UnknownOptionPolicy.
  Passthrough tasks (subcommands, wrapper delegates) skip splitting and
  receive their raw tokens.
- validate: required options (splitter), class-level arguments, and an
  explicit arity check binding the trailing positionals against the
  implementation's signature.
- bind: a Context carrying the command set, task, options, arguments, the
  positional arguments and the shell.
- execute: call the implementation with the context and trailing arguments.
  Whatever the implementation raises propagates untouched.

Dispatch faults (CommandFault) raised before execution are rendered on the
shell's error stream and returned as a falsy Failure. In debugging mode the
arity check is skipped (so the implementation's own TypeError surfaces) and
faults are raised instead of reported.
"""
import inspect
import logging
from typing import NamedTuple, Any

from .faults import (
    ArityMismatchError,
    CommandFault,
    OptionTypeError,
    RequiredArgumentMissingError,
    UndefinedTaskError,
)
from .help import HELP_TASK, task_banner, undefined_task
from .options import coerce_numeric
from .shell import Shell
from .splitter import split
from .tasks import Task, Resolved, Dynamic, Missing
from .utils import Unset, coalesce, IntrospectableType

logger = logging.getLogger(__name__)


class Failure:
    """
    result of a dispatch whose fault was reported.

    falsy, never raised; `fault` is the reported CommandFault and `status` the
    exit status a console entry point should use.
    """
    status = 1

    def __init__(self, fault, /):
        self.fault = fault

    def __bool__(self):
        return False

    def __repr__(self):
        return f"Failure({type(self.fault).__name__}: {self.fault.message!r})"


class Context(metaclass=IntrospectableType):
    """
    what an implementation receives as its first argument.

    - commands : the command set the task was dispatched through
    - task     : the Task record (a dynamic stand-in for dynamic dispatch)
    - options  : option values keyed by option name (defaults included)
    - arguments: class-level argument values keyed by argument name
    - args     : every positional token left after option splitting
    - shell    : the output sink
    """
    __introspectable__ = ("commands", "task", "options", "arguments", "args", "shell")
    __displayable__ = ("task", "options", "arguments", "args")

    def __init__(self, dispatcher, task, options, arguments, args):
        self._dispatcher = dispatcher
        self._commands = dispatcher.commands
        self._shell = dispatcher.shell
        self._task = task
        self._options = dict(options)
        self._arguments = dict(arguments)
        self._args = list(args)

    def say(self, line="", /, **options):
        self._shell.say(line, **options)

    def invoke(self, name, /, *args):
        """dispatch another task of the same command set through the same shell."""
        return self._commands.dispatch([name, *args], shell=self._shell)

    def fail(self, fault, /):
        """report `fault` like a dispatch fault and return the Failure."""
        return self._dispatcher.report(fault)


class Invocation(NamedTuple):
    callback: Any
    context: Context
    args: tuple


class Dispatcher:
    """
    runs dispatches for one command set.

    Parameters
    - commands: the CommandSet to dispatch through.
    - shell: output sink (default: a Shell honouring the set's colorful flag).
    - debugging: override the set's debugging flag.
    """

    def __init__(self, commands, shell=Unset, /, *, debugging=Unset):
        self.commands = commands
        self.shell = Shell(colorful=commands.colorful) if shell is Unset else shell
        self.debugging = bool(coalesce(debugging, commands.debugging))

    def dispatch(self, tokens, /):
        tokens = list(tokens)
        logger.debug("dispatching %r through %r", tokens, self.commands.name)
        try:
            invocation = self._prepare(self.commands.registry.resolve(tokens))
        except CommandFault as fault:
            return self.report(fault)
        logger.debug(
            "executing %r with %d trailing argument(s)",
            invocation.context.task.name,
            len(invocation.args),
        )
        return invocation.callback(invocation.context, *invocation.args)

    def report(self, fault, /):
        if self.debugging:
            raise fault
        fault = fault.replace(prog=self.commands.basename, colorful=self.shell.colorful)
        logger.info("recovered %s: %s", type(fault).__name__, fault.message)
        self.shell.say(fault, stderr=True)
        return Failure(fault)

    def _prepare(self, resolution):
        match resolution:
            case Resolved(task, args):
                logger.debug("resolved task %r", task.name)
                return self._prepare_task(task, args)
            case Dynamic(name, args):
                logger.debug("resolved dynamic name %r", name)
                return self._prepare_dynamic(name, args)
            case Missing():
                raise UndefinedTaskError(
                    "no task given and no default task is declared",
                    hint=f"run '{self.commands.basename} {HELP_TASK}' to list available tasks",
                )
        raise RuntimeError("unreachable")

    def _context(self, task, options, arguments, args):
        return Context(self, task, options, arguments, args)

    def _prepare_task(self, task, args):
        commands = self.commands
        implementation = commands.registry.implementation(task.name)
        if implementation is None or not implementation.public:
            raise UndefinedTaskError(
                f"task {task.name!r} is declared but has nothing to run",
                hint="register a public implementation for it",
            )

        if task.name in commands.passthrough:
            return Invocation(implementation.callback, self._context(task, {}, {}, args), tuple(args))

        options = {option.name: option for option in commands.class_options} | task.options
        try:
            positional, values = split(args, options, check_unknown=commands.policy.checks(task.name))
            arguments, trailing = self._bind_arguments(task, positional)
        except CommandFault as fault:
            if fault.options.get("hint"):
                raise
            raise fault.replace(hint=f"call as '{task_banner(task, commands)}'") from None

        context = self._context(task, values, arguments, positional)
        self._check_arity(task, implementation.callback, context, trailing)
        return Invocation(implementation.callback, context, tuple(trailing))

    def _bind_arguments(self, task, positional):
        arguments = {}
        remaining = list(positional)
        if task.name == HELP_TASK:
            return arguments, remaining
        for argument in self.commands.arguments:
            if not remaining:
                if argument.required:
                    raise RequiredArgumentMissingError(
                        f"no value provided for required argument {argument.banner!r}"
                    )
                arguments[argument.name] = coalesce(argument.default)
                continue
            value = remaining.pop(0)
            if argument.type == "numeric":
                if (number := coerce_numeric(value)) is Unset:
                    raise OptionTypeError(f"expected numeric value for argument {argument.banner!r}, got {value!r}")
                value = number
            arguments[argument.name] = value
        return arguments, remaining

    def _check_arity(self, task, callback, context, trailing):
        if self.debugging:
            return
        try:
            signature = inspect.signature(callback)
        except (TypeError, ValueError):
            return
        try:
            signature.bind(context, *trailing)
        except TypeError as error:
            raise ArityMismatchError(
                f"{task.name!r} was called incorrectly with {len(trailing)} argument(s)",
                hint=f"call as '{task_banner(task, self.commands)}'",
            ) from error

    def _prepare_dynamic(self, name, args):
        registry = self.commands.registry
        implementation = registry.implementation(name)
        if implementation is not None and implementation.public:
            task = Task.dynamic(name)
            context = self._context(task, {}, {}, args)
            self._check_arity(task, implementation.callback, context, args)
            return Invocation(implementation.callback, context, tuple(args))
        if implementation is None and (fallback := registry.fallback) is not None:
            context = self._context(Task.dynamic(name), {}, {}, args)
            return Invocation(fallback.callback, context, (name, *args))
        raise undefined_task(self.commands, name)


__all__ = (
    "Failure",
    "Context",
    "Dispatcher",
)
