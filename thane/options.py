"""
Thane option and argument declarations.

Scope
- Option: a named, typed switch attached to a task (or shared by every task of a
  command set as a class option).
- Argument: a named, class-level positional bound before the task's own
  positional arguments.
- build_options(): expand the compact mapping form {name: type-or-default}.

Types
- "string"  : exactly one value (a bare switch falls back to the default, then to the option name).
- "numeric" : exactly one value matching -?(\\d*\\.\\d+|\\d+), coerced to int or float.
- "boolean" : no value; --name is True, --no-name / --skip-name are False,
              an immediately following "true"/"false" token is consumed.
- "array"   : every following token up to the next switch.
- "map"     : every following key:value token up to the next switch (alias "hash").
- "required": shorthand for a required string.

When the type is omitted it is inferred from the default value:
bool -> boolean, int/float -> numeric, list/tuple -> array, dict -> map,
str or no default -> string.

Rules enforced at declaration time
- required options cannot declare a default (ValueError).
- defaults must match the declared type (TypeError).
- choices must be a non-empty iterable of unique values; only string, numeric
  and array options accept them.

Rendering (help/usage)
- switch: "--" + name with underscores shown as dashes.
- usage : "--name=BANNER" ("--name" for booleans), wrapped in brackets unless
          required, prefixed with aliases: "-f, [--force]".
"""
import re

from .utils import Unset, coalesce, IntrospectableType

TYPES = ("string", "array", "map", "boolean", "numeric")

_ALIASES = {"hash": "map", "required": "string"}

_NAME = re.compile(r"-{0,2}(?P<name>[^\W\d][\w-]*)")

NUMERIC = re.compile(r"-?(\d*\.\d+|\d+)")


def _infer_type(default):
    match default:
        case bool():
            return "boolean"
        case int() | float():
            return "numeric"
        case list() | tuple():
            return "array"
        case dict():
            return "map"
        case _:
            return "string"


def _matches(type, value):
    match type:
        case "boolean":
            return isinstance(value, bool)
        case "numeric":
            return isinstance(value, int | float) and not isinstance(value, bool)
        case "array":
            return isinstance(value, list | tuple)
        case "map":
            return isinstance(value, dict)
        case "string":
            return isinstance(value, str)
    raise RuntimeError("unreachable")


def _sanitize_name(cls, name, /):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} name must be a string")
    if not (match := _NAME.fullmatch(name.strip())):
        raise ValueError(f"{cls.__typename__} name {name!r} is not a valid identifier")
    return match["name"].replace("-", "_")


def _sanitize_common(cls, metadata, /):
    """
    normalize shared metadata: name, type, default/required, banner, desc.
    """
    metadata["name"] = _sanitize_name(cls, metadata["name"])

    type = metadata["type"]
    if type is Unset:
        type = _infer_type(metadata["default"])
    elif not isinstance(type, str):
        raise TypeError(f"{cls.__typename__} 'type' must be a string")
    elif type == "required":
        metadata["required"] = True
    type = _ALIASES.get(type, type)
    if type not in cls.__types__:
        raise ValueError(f"{cls.__typename__} 'type' must be one of {', '.join(map(repr, cls.__types__))}")
    metadata["type"] = type

    if metadata["required"] and metadata["default"] is not Unset:
        raise ValueError(f"{cls.__typename__} {metadata['name']!r} cannot be required and have a default")
    if metadata["default"] is not Unset and metadata["default"] is not None:
        if not _matches(type, metadata["default"]):
            raise TypeError(f"{cls.__typename__} {metadata['name']!r} default does not match type {type!r}")
        if type == "array":
            metadata["default"] = list(metadata["default"])

    for field in ("banner", "desc"):
        value = metadata[field]
        if value is not Unset and not isinstance(value, str):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string")

    choices = metadata.get("choices", ())
    if choices:
        if type in ("boolean", "map"):
            raise TypeError(f"{type} {cls.__typename__} cannot declare 'choices'")
        choices = tuple(choices)
        if len(set(choices)) != len(choices):
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        metadata["choices"] = choices


class Option(metaclass=IntrospectableType):
    """
    Named option specification.

    Properties
    - name, type, default, required, aliases, banner, desc, group, choices, hide
      are exposed read-only.
    - switch/usage/show_default are derived for the parser and help renderer.
    """
    __types__ = TYPES
    __introspectable__ = (
        "name",
        "type",
        "default",
        "required",
        "aliases",
        "banner",
        "desc",
        "group",
        "choices",
        "hide",
    )
    __displayable__ = ("name", "type", "default", "required", "aliases")

    def __init__(
            self,
            name,
            /,
            type=Unset,
            *,
            default=Unset,
            required=False,
            aliases=(),
            banner=Unset,
            desc=Unset,
            group=Unset,
            choices=(),
            hide=False
    ):
        metadata = {
            "name": name,
            "type": type,
            "default": default,
            "required": bool(required),
            "banner": banner,
            "desc": desc,
            "choices": choices,
        }
        _sanitize_common(Option, metadata)

        if isinstance(aliases, str):
            aliases = (aliases,)
        normalized = []
        for alias in aliases:
            if not isinstance(alias, str) or not alias.strip("-"):
                raise ValueError(f"option alias {alias!r} must be a non-empty string")
            if not alias.startswith("-"):
                alias = ("-" if len(alias) == 1 else "--") + alias
            if alias not in normalized:
                normalized.append(alias)

        if group is not Unset and not isinstance(group, str):
            raise TypeError("option 'group' must be a string")

        self._name = metadata["name"]
        self._type = metadata["type"]
        self._default = metadata["default"]
        self._required = metadata["required"]
        self._aliases = tuple(normalized)
        self._banner = coalesce(metadata["banner"], self._default_banner())
        self._desc = coalesce(metadata["desc"])
        self._group = coalesce(group)
        self._choices = metadata["choices"]
        self._hide = bool(hide)

    def _default_banner(self):
        match self._type:
            case "boolean":
                return None
            case "string":
                return self._name.upper()
            case "numeric":
                return "N"
            case "array":
                return "one two three"
            case "map":
                return "key:value"
        raise RuntimeError("unreachable")

    @property
    def switch(self):
        """the long switch, e.g. "--dry-run" for name "dry_run"."""
        return "--" + self._name.replace("_", "-")

    @property
    def human_name(self):
        return self._name.replace("_", "-")

    @property
    def usage(self):
        if self._banner:
            sample = f"{self.switch}={self._banner}"
        else:
            sample = self.switch
        if not self._required:
            sample = f"[{sample}]"
        if self._aliases:
            return f"{', '.join(self._aliases)}, {sample}"
        return sample

    @property
    def show_default(self):
        """True when the default is worth printing in help ("# Default: ...")."""
        default = self._default
        if default is Unset or default is None:
            return False
        if isinstance(default, bool):
            return default
        if isinstance(default, str | list | dict):
            return bool(default)
        return True

    def is_boolean(self):
        return self._type == "boolean"


class Argument(metaclass=IntrospectableType):
    """
    Class-level positional argument.

    Arguments are bound, in declaration order, from the front of the positional
    tokens before a task receives its own trailing arguments. Only "string" and
    "numeric" types are accepted.
    """
    __types__ = ("string", "numeric")
    __introspectable__ = ("name", "type", "default", "required", "banner", "desc")

    def __init__(self, name, /, type=Unset, *, default=Unset, required=Unset, banner=Unset, desc=Unset):
        # Arguments are required unless they declare a default.
        required = coalesce(required, default is Unset)
        metadata = {
            "name": name,
            "type": type,
            "default": default,
            "required": bool(required),
            "banner": banner,
            "desc": desc,
        }
        _sanitize_common(Argument, metadata)

        self._name = metadata["name"]
        self._type = metadata["type"]
        self._default = metadata["default"]
        self._required = metadata["required"]
        self._banner = coalesce(metadata["banner"], self._name.upper())
        self._desc = coalesce(metadata["desc"])

    @property
    def usage(self):
        return self._banner if self._required else f"[{self._banner}]"


def build_options(mapping, /):
    """
    build Option objects from the compact form used by method_options().

    values are either a type name ("string", "boolean", "required", ...) or a
    default value whose Python type selects the option type:

        build_options({"force": False, "count": 1, "name": "required"})
    """
    options = []
    for name, spec in mapping.items():
        if isinstance(spec, Option):
            options.append(spec)
        elif isinstance(spec, str) and _ALIASES.get(spec, spec) in TYPES:
            options.append(Option(name, spec))
        else:
            options.append(Option(name, default=spec))
    return options


def coerce_numeric(text, /):
    """
    parse `text` as an int or float; return Unset when it is not numeric.
    """
    if not isinstance(text, str) or not NUMERIC.fullmatch(text):
        return Unset
    return float(text) if "." in text else int(text)


__all__ = (
    "TYPES",
    "Option",
    "Argument",
    "build_options",
    "coerce_numeric",
)
