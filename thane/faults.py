"""
Thane faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue
  raised while declaring or dispatching tasks.
- CommandFault / CommandWarning: base types that carry message + options and
  know how to render themselves (rich) in a short, actionable way.
- trigger(): raise a fault or issue a warning after merging runtime options.

Classification
- Declaration-time faults (unknown `for_` targets, missing wrapper executables)
  are triggered immediately and abort construction of the command set.
- Dispatch-time faults (undefined task, arity mismatch, option problems) are
  caught by the dispatcher, rendered through the shell, and turned into a
  Failure result. They propagate only in debugging mode.
- Anything raised by a task body is not a fault and is never classified.

Rendering
    [ prog — 11101 | Undefined Task ]
    could not find task 'dpeloy'
     → did you mean 'deploy'? run 'prog help' to list available tasks

Styles can be overridden through __styles__ in __main__ (see thane.config.palette).
"""
import warnings
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from . import config
from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNDEFINED_TASK
    - options (1111x)
      • UNKNOWN_OPTION, OPTION_TYPE, REQUIRED_OPTION_MISSING
    - positionals (1112x)
      • REQUIRED_ARGUMENT_MISSING, ARITY_MISMATCH
    - composition (1120x)
      • WRAPPER_TARGET_NOT_FOUND
    - warnings (12xxx)
      • UNDECLARED_TASK
    """
    # --- routing errors ---
    UNDEFINED_TASK              = 11101

    # --- option errors ---
    UNKNOWN_OPTION              = 11112
    OPTION_TYPE                 = 11113
    REQUIRED_OPTION_MISSING     = 11117

    # --- positional errors ---
    REQUIRED_ARGUMENT_MISSING   = 11121
    ARITY_MISMATCH              = 11122

    # --- composition errors ---
    WRAPPER_TARGET_NOT_FOUND    = 11201

    # --- warnings ---
    UNDECLARED_TASK             = 12111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(config.codes().get(self, self.value))


_DEFAULT_STYLES = {
    # header parts
    "prog-name": "bold #E6E6F0",
    "code": "bold #00E5FF",
    "error-title": "bold #FF4DA6",
    "warning-code": "bold #FFB400",
    "warning-title": "bold #FFC2E0",

    # body
    "error-message": "#C8C8D0",
    "warning-message": "#D6D6DE",
    "hint-arrow": "#9CE19C dim",
    "hint": "italic #9CE19C",
}


class _Renderable:
    """
    shared rendering and option plumbing for faults and warnings.

    options understood by the renderer
    - prog: program name in the header (default: thane.config.prog()).
    - colorful: apply styles (default True).
    - title / hint / code: override the class-level defaults.
    """
    code = Unset
    title = Unset
    hint = ""
    _kind = "error"

    def _setup(self, message, options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        styles = config.palette(_DEFAULT_STYLES)
        colorful = self.options.get("colorful", True)

        def text(fragment, style):
            return Text(str(fragment), styles[style] if colorful else "")

        code = self.options.get("code", self.code)
        prog = self.options.get("prog") or config.prog()
        title = str(self.options.get("title", self.title)).replace("-", " ").title()
        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(code.normalize(), "code" if self._kind == "error" else "warning-code"),
            " | ",
            text(title, f"{self._kind}-title"),
            " ]",
        )
        parts = [header, text(self.message, f"{self._kind}-message")]
        if hint := self.options.get("hint", self.hint):
            parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
        return Group(*parts)

    def replace(self, **overrides):
        """return a copy of this fault with `overrides` merged into its options."""
        replaced = type(self)(self.message, **{**self.options, **overrides})
        replaced.__cause__ = self.__cause__
        return replaced


class CommandFault(_Renderable, Exception):
    """
    base class for every thane error.

    carries a lowercase, one-sentence message plus read-only options used when
    rendering (prog, colorful, hint, ...). str(fault) is the message.
    """

    def __init__(self, message, /, **options):
        super().__init__(message)
        self._setup(message, options)

    def __trigger__(self):
        raise self


class UndefinedTaskError(CommandFault):
    code = FaultCode.UNDEFINED_TASK
    title = "undefined task"


class ArityMismatchError(CommandFault):
    code = FaultCode.ARITY_MISMATCH
    title = "arity mismatch"


class RequiredOptionMissingError(CommandFault):
    code = FaultCode.REQUIRED_OPTION_MISSING
    title = "required option missing"


class RequiredArgumentMissingError(CommandFault):
    code = FaultCode.REQUIRED_ARGUMENT_MISSING
    title = "required argument missing"


class OptionTypeError(CommandFault):
    code = FaultCode.OPTION_TYPE
    title = "malformed option value"


class UnknownOptionError(CommandFault):
    code = FaultCode.UNKNOWN_OPTION
    title = "unknown option"


class WrapperTargetNotFoundError(CommandFault):
    code = FaultCode.WRAPPER_TARGET_NOT_FOUND
    title = "wrapper target not found"


class CommandWarning(_Renderable, Warning):
    """
    base class for thane warnings; issued through the warnings module.
    """
    _kind = "warning"

    def __init__(self, message, /, **options):
        super().__init__(message)
        self._setup(message, options)

    def __trigger__(self):
        warnings.warn(self, stacklevel=self.options.get("stacklevel", 4))


class UndeclaredTaskWarning(CommandWarning):
    code = FaultCode.UNDECLARED_TASK
    title = "undeclared task"


def trigger(fault, /, **options):
    """
    surface a fault with the given options merged in.

    - CommandFault subclasses are raised.
    - CommandWarning subclasses are issued through warnings.warn().
    """
    if not isinstance(fault, CommandFault | CommandWarning):
        raise TypeError("trigger() argument must be a command fault or warning")
    fault.replace(**options).__trigger__()


__all__ = (
    "FaultCode",
    "CommandFault",
    "UndefinedTaskError",
    "ArityMismatchError",
    "RequiredOptionMissingError",
    "RequiredArgumentMissingError",
    "OptionTypeError",
    "UnknownOptionError",
    "WrapperTargetNotFoundError",
    "CommandWarning",
    "UndeclaredTaskWarning",
    "trigger",
)
