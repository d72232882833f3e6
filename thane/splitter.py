"""
Thane argument splitter.

split(tokens, options, check_unknown=True) -> (positional, values)

Walks the tokens left to right:
- "--" ends switch scanning; every remaining token is positional.
- a token shaped like a switch (-x, --name, --name=value) is looked up by its
  long switch or one of its aliases, then consumes values according to the
  option type (see thane.options).
- any other token is positional and keeps its relative order.

After the walk, defaults are filled in for options that were not given, and
every required option still missing is reported at once.

Unknown switches raise UnknownOptionError when `check_unknown` is set (with a
close-match suggestion); otherwise they are kept verbatim as positionals.
"""
import difflib
import logging
import re
from collections import deque

from .faults import OptionTypeError, RequiredOptionMissingError, UnknownOptionError
from .options import coerce_numeric
from .utils import Unset, ordinal

logger = logging.getLogger(__name__)

_SWITCH = re.compile(r"(?P<switch>--?[^\W\d][\w-]*)(?:=(?P<value>.*))?", re.DOTALL)

_BOOLEANS = {"true": True, "false": False}


def is_switch(token, /):
    """True for tokens shaped like -x, --name or --name=value (negative numbers are not switches)."""
    return isinstance(token, str) and _SWITCH.fullmatch(token) is not None


def _lookup(options):
    table = {}
    for option in options.values():
        table[option.switch] = option
        for alias in option.aliases:
            table[alias] = option
    return table


def _negated(table, switch):
    for prefix in ("--no-", "--skip-"):
        if switch.startswith(prefix):
            option = table.get("--" + switch.removeprefix(prefix))
            if option is not None and option.is_boolean():
                return option
    return None


def _check_choices(option, switch, value, position):
    if option.choices and value not in option.choices:
        raise OptionTypeError(
            f"expected one of {', '.join(map(repr, option.choices))} for option {switch!r} "
            f"at {ordinal(position)} position, got {value!r}",
            hint=f"valid values: {', '.join(map(str, option.choices))}"
        )


def _consume(option, switch, inline, stream, position):
    """
    consume the values for `option` from `stream` (a deque of remaining tokens).
    """
    match option.type:
        case "boolean":
            if inline is not None:
                if inline.lower() not in _BOOLEANS:
                    raise OptionTypeError(
                        f"expected 'true' or 'false' for option {switch!r} at {ordinal(position)} position, "
                        f"got {inline!r}"
                    )
                return _BOOLEANS[inline.lower()]
            if stream and stream[0] in _BOOLEANS:
                return _BOOLEANS[stream.popleft()]
            return True

        case "string":
            if inline is not None:
                value = inline
            elif stream and not is_switch(stream[0]) and stream[0] != "--":
                value = stream.popleft()
            elif option.required:
                raise OptionTypeError(
                    f"no value provided for option {switch!r} at {ordinal(position)} position",
                    hint=f"call as '{option.switch}={option.banner}'"
                )
            else:
                return option.default if option.default not in (Unset, None) else option.human_name
            _check_choices(option, switch, value, position)
            return value

        case "numeric":
            if inline is not None:
                value = inline
            elif stream and not is_switch(stream[0]) and stream[0] != "--":
                value = stream.popleft()
            else:
                raise OptionTypeError(
                    f"no value provided for option {switch!r} at {ordinal(position)} position",
                    hint=f"call as '{option.switch}={option.banner}'"
                )
            number = coerce_numeric(value)
            if number is Unset:
                raise OptionTypeError(
                    f"expected numeric value for option {switch!r} at {ordinal(position)} position, got {value!r}",
                    hint=f"call as '{option.switch}={option.banner}'"
                )
            _check_choices(option, switch, number, position)
            return number

        case "array":
            values = [] if inline is None else [inline]
            while stream and not is_switch(stream[0]) and stream[0] != "--":
                values.append(stream.popleft())
            for value in values:
                _check_choices(option, switch, value, position)
            return values

        case "map":
            pairs = [] if inline is None else [inline]
            while stream and not is_switch(stream[0]) and ":" in stream[0]:
                pairs.append(stream.popleft())
            values = {}
            for pair in pairs:
                key, separator, value = pair.partition(":")
                if not separator or not key:
                    raise OptionTypeError(
                        f"expected key:value pair for option {switch!r} at {ordinal(position)} position, "
                        f"got {pair!r}"
                    )
                values[key] = value
            return values

    raise RuntimeError("unreachable")


def split(tokens, options, /, *, check_unknown=True):
    """
    split raw tokens into positional arguments and option values.

    Parameters
    - tokens: iterable of str
    - options: mapping of option name -> Option (class options merged with task options)
    - check_unknown: raise UnknownOptionError for unknown switches instead of
      keeping them as positionals

    Returns
    - (positional, values): a list of str and a dict keyed by option name.

    Raises
    - UnknownOptionError, OptionTypeError, RequiredOptionMissingError
    """
    table = _lookup(options)
    tokens = list(tokens)
    stream = deque(tokens)
    positional = []
    values = {}

    while stream:
        token = stream.popleft()
        position = len(tokens) - len(stream)

        if token == "--":
            positional.extend(stream)
            stream.clear()
            break

        if not (match := _SWITCH.fullmatch(token)):
            positional.append(token)
            continue

        switch, inline = match["switch"], match["value"]
        normalized = switch.replace("_", "-") if switch.startswith("--") else switch

        if (option := table.get(normalized)) is not None:
            values[option.name] = _consume(option, switch, inline, stream, position)
        elif (option := _negated(table, normalized)) is not None:
            if inline is not None:
                raise OptionTypeError(
                    f"negated option {switch!r} at {ordinal(position)} position does not take a value"
                )
            values[option.name] = False
        elif check_unknown:
            suggestions = difflib.get_close_matches(normalized, table, n=1)
            raise UnknownOptionError(
                f"unknown option {switch!r} at {ordinal(position)} position",
                hint=f"did you mean {suggestions[0]!r}?" if suggestions else "remove it or declare the option"
            )
        else:
            positional.append(token)

    missing = []
    for option in options.values():
        if option.name in values:
            continue
        if option.required:
            missing.append(option.switch)
        elif option.default is not Unset:
            values[option.name] = option.default

    if missing:
        raise RequiredOptionMissingError(
            f"no value provided for required {'option' if len(missing) == 1 else 'options'} "
            f"{', '.join(map(repr, missing))}"
        )

    logger.debug("split %d token(s) into %r and %r", len(tokens), positional, values)
    return positional, values


__all__ = (
    "is_switch",
    "split",
)
