"""
Thane wrappers: command sets bound to an external executable.

A Wrapper resolves its target executable on the search path when it is
declared (WrapperTargetNotFoundError when missing) and offers two ways to run it:
- wrap(arguments): run it, capture its standard output as text (exit status ignored).
- forward(arguments): run it attached to the current standard streams and
  return its exit status.

Task surface
- Tasks declared on the wrapper win over same-named tasks of the wrapped set
  (`base`), whose metadata is adopted for help but not their implementations.
- A wrapped task without a stand-in resolves, then fails as undefined; use
  delegate(*names) to register stand-ins that forward the task name and its
  arguments to the executable.
"""
import logging
import os
import shlex
import shutil
import subprocess
from typing import NamedTuple

from .commands import CommandSet
from .faults import WrapperTargetNotFoundError, trigger
from .utils import Unset, coalesce, rename

logger = logging.getLogger(__name__)


class WrapperBinding(NamedTuple):
    """the wrapped command's name and the resolved path of its executable."""
    parent_name: str
    parent_executable_path: str


def _arguments(arguments):
    if isinstance(arguments, str):
        return shlex.split(arguments)
    arguments = list(arguments)
    if not all(isinstance(argument, str) for argument in arguments):
        raise TypeError("wrapper arguments must be a string or an iterable of strings")
    return arguments


class Wrapper(CommandSet):
    """
    CommandSet wrapping the executable `target`.

    Parameters
    - name: command set name (see CommandSet).
    - target: executable name (or path) to resolve with shutil.which().
    - base: CommandSet describing the wrapped command; its task metadata is
      listed and resolvable, but nothing runs until a stand-in is registered.
    - path: search path override (default: the PATH environment variable).
    - any other CommandSet keyword.
    """

    def __init__(self, name, target, /, base=Unset, *, path=Unset, **options):
        if not isinstance(target, str) or not target:
            raise TypeError("wrapper target must be a non-empty string")
        if base is not Unset and not isinstance(base, CommandSet):
            raise TypeError("wrapper base must be a CommandSet")

        executable = shutil.which(target, path=coalesce(path, None))
        if executable is None:
            trigger(WrapperTargetNotFoundError(
                f"could not find executable {target!r} on the search path",
                hint="install it or adjust PATH before declaring the wrapper",
            ))
        self._binding = WrapperBinding(target, os.path.abspath(executable))
        logger.debug("wrapper %r bound to %r", name, self._binding.parent_executable_path)

        super().__init__(name, **options)
        if base is not Unset:
            self._registry.adopt(base.registry)

    @property
    def binding(self):
        return self._binding

    def wrap(self, arguments="", /):
        """run the target and return its standard output as text."""
        command = [self._binding.parent_executable_path, *_arguments(arguments)]
        logger.debug("wrapping %r", command)
        return subprocess.run(command, stdout=subprocess.PIPE, text=True, check=False).stdout

    def forward(self, arguments="", /):
        """run the target on the current standard streams and return its exit status."""
        command = [self._binding.parent_executable_path, *_arguments(arguments)]
        logger.debug("forwarding %r", command)
        return subprocess.run(command, check=False).returncode

    def delegate(self, *names, capture=False):
        """
        register stand-ins for the named tasks.

        Each stand-in runs the target with the task name followed by the task's
        arguments, untouched by option parsing: forward() by default, wrap() when
        capture is True. Names that are not declared yet get a generic description.
        """
        for name in names:
            key = name.replace("-", "_")

            def standin(context, *args, _token=name):
                arguments = [_token, *args]
                return self.wrap(arguments) if capture else self.forward(arguments)

            rename(standin, key)
            if key not in self._registry:
                self.desc(name, f"Run '{self._binding.parent_name} {name}'")
            self._registry.commit(key, standin, public=True)
            if key not in self._passthrough:
                self._passthrough.append(key)
        return self


__all__ = (
    "WrapperBinding",
    "Wrapper",
)
