"""
Helmsman helpers shared by the pattern pipeline and the router.

Contents
- Unset / UnsetType: the "argument not given" marker, for parameters where
  None is itself a meaningful value (Router.invoke(argv), converter names).
- coalesce(value, default): swap Unset for a default and nothing else.
- rename(...): give generated converters and decorators readable names.
- ordinal(n): "first", "second", ..., "11th", "22nd" for fault messages.
- identifier(text): binding-name syntax check used by validation.
- snakecase(text): binding name of a flag ("dry-run" -> "dry_run").

    >>> coalesce(Unset, 8)
    8
    >>> ordinal(2)
    'second'
"""
import builtins
import functools
import re
from typing import final

_WORDS = ("first", "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth", "ninth", "tenth")
_IDENTIFIER = re.compile(r"[^\W\d_]\w*")


@final
class UnsetType:
    """
    Type of the Unset marker.

    - one instance per process; calling UnsetType() returns it again
    - falsy, yet never equal to None, 0 or ""
    - survives copy, deepcopy and pickle as the same object
    - usable in annotations and isinstance checks as `str | Unset`
    - sealed against subclassing
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType is final and cannot be subclassed")

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self


def coalesce(object, default=None, /):
    """object unless it is Unset, in which case default (falsy values are kept)."""
    return default if object is Unset else object


def rename(*parameters):
    """
    Overwrite __name__ and __qualname__ of a callable.

    - rename(function, "name") renames now and returns the function
    - @rename("name") renames the decorated function
    """
    if len(parameters) == 1:
        name, = parameters
        if not isinstance(name, str):
            raise TypeError("@rename() expects a string name")
        return functools.partial(_rename, name=name)
    if len(parameters) == 2:
        function, name = parameters
        return _rename(function, name=name)
    raise TypeError("rename() takes 1 or 2 arguments (%d given)" % len(parameters))


def _rename(function, /, name):
    if not builtins.callable(function):
        raise TypeError("rename() target must be callable")
    if not isinstance(name, str):
        raise TypeError("rename() name must be a string")
    try:
        function.__name__ = function.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError("cannot rename %r" % function) from None
    return function


@functools.cache
def ordinal(number, /):
    """1-based position as a word up to ten, then as "11th", "21st", "102nd"."""
    if 1 <= number <= len(_WORDS):
        return _WORDS[number - 1]
    if number % 100 in (11, 12, 13):
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return "%d%s" % (number, suffix)


def identifier(text, /):
    return isinstance(text, str) and _IDENTIFIER.fullmatch(text) is not None


@functools.cache
def snakecase(text, /):
    if not isinstance(text, str):
        raise TypeError("snakecase() expects a string, not %s" % type(text).__name__)
    return text.lower().replace("-", "_")


Unset = UnsetType()


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "ordinal",
    "identifier",
    "snakecase",
)
