"""
Helmsman type conversion registry.

A ConverterRegistry maps a type-constraint name ("int", "DateTime", "Color")
to a converter: a callable taking the raw string and returning the typed
value, raising ValueError/TypeError (or ArithmeticError) when it cannot.

Lookups are purely by name, so registering a name that already exists
shadows the previous converter. That is a supported extension point.

Built-ins
- text:        string, str, char
- integers:    sbyte, byte, short, ushort, int, uint, long, ulong (range-checked)
- real:        float, double, decimal
- logic:       bool ("true"/"false", case-insensitive)
- time:        DateTime/datetime, DateOnly/date, TimeOnly/time, TimeSpan/timedelta
- identity:    Guid/guid/uuid
- network:     Uri/uri/url, IPAddress/ipaddress/ip
- filesystem:  FileInfo/fileinfo/path, DirectoryInfo/directoryinfo
- enumerations by name via register_enum()

Usage::

    registry = ConverterRegistry.defaults()

    @registry.register("Color")
    def color(value):
        return Color[value.upper()]

    registry.convert("42", "int")          # 42
    registry.attempt("x", "int")           # (None, ConversionError(...))

Lifecycle
- Build phase: register()/register_enum() from a single thread.
- freeze(): afterwards the registry is read-only and safe to share
  between threads without locking.
"""
import datetime
import decimal
import ipaddress
import logging
import pathlib
import re
import urllib.parse
import uuid
from types import MappingProxyType

from .faults import *
from .utils import Unset, rename

logger = logging.getLogger("helmsman.converters")


def _integer(name, low, high, /):
    @rename(name)
    def converter(value):
        if not re.fullmatch(r"[+-]?[0-9]+", value):
            raise ValueError("%r is not an integer" % value)
        number = int(value)
        if not low <= number <= high:
            raise ValueError("%r is out of range for %s [%d, %d]" % (value, name, low, high))
        return number
    return converter


def _ascii_number(value):
    # float() and Decimal() also take "1_000" and non-ASCII digits
    if not value.strip() or "_" in value or not value.isascii():
        raise ValueError("%r is not a plain ASCII number" % value)


def _real(value):
    _ascii_number(value)
    return float(value)


def _decimal(value):
    _ascii_number(value)
    try:
        return decimal.Decimal(value.strip())
    except decimal.InvalidOperation:
        raise ValueError("%r is not a decimal number" % value) from None


def _string(value):
    return value


def _char(value):
    if len(value) != 1:
        raise ValueError("%r is not a single character" % value)
    return value


def _boolean(value):
    match value.lower():
        case "true":
            return True
        case "false":
            return False
        case _:
            raise ValueError("%r is not a boolean (expected true or false)" % value)


def _datetime(value):
    return datetime.datetime.fromisoformat(value)


def _date(value):
    return datetime.date.fromisoformat(value)


def _time(value):
    return datetime.time.fromisoformat(value)


_TIMESPAN = re.compile(
    r"(?P<sign>-)?"
    r"(?:(?P<days>[0-9]+)[.:](?=[0-9]+:))?"
    r"(?P<hours>[0-9]+):(?P<minutes>[0-9]+)"
    r"(?::(?P<seconds>[0-9]+(?:\.[0-9]+)?))?"
)


def _timedelta(value):
    """
    parse "[-][d.]hh:mm[:ss[.fffffff]]" or a bare number of days ("5").
    """
    if re.fullmatch(r"-?[0-9]+", value):
        return datetime.timedelta(days=int(value))
    match = _TIMESPAN.fullmatch(value)
    if match is None:
        raise ValueError("%r is not a time span (expected [d.]hh:mm[:ss])" % value)
    hours, minutes = int(match["hours"]), int(match["minutes"])
    seconds = float(match["seconds"] or 0)
    if hours > 23 or minutes > 59 or seconds >= 60:
        raise ValueError("%r has an out-of-range component" % value)
    span = datetime.timedelta(days=int(match["days"] or 0), hours=hours, minutes=minutes, seconds=seconds)
    return -span if match["sign"] else span


def _uuid(value):
    return uuid.UUID(value)


def _uri(value):
    if not value or any(char.isspace() for char in value):
        raise ValueError("%r is not a uri" % value)
    uri = urllib.parse.urlsplit(value)
    # port is validated lazily by urllib; force it
    uri.port
    return uri


def _ip(value):
    return ipaddress.ip_address(value)


def _path(value):
    if not value or "\0" in value:
        raise ValueError("%r is not a valid path" % value)
    return pathlib.Path(value)


_BUILTINS = {
    "string": _string,
    "str": _string,
    "char": _char,
    "sbyte": _integer("sbyte", -2 ** 7, 2 ** 7 - 1),
    "byte": _integer("byte", 0, 2 ** 8 - 1),
    "short": _integer("short", -2 ** 15, 2 ** 15 - 1),
    "ushort": _integer("ushort", 0, 2 ** 16 - 1),
    "int": _integer("int", -2 ** 31, 2 ** 31 - 1),
    "uint": _integer("uint", 0, 2 ** 32 - 1),
    "long": _integer("long", -2 ** 63, 2 ** 63 - 1),
    "ulong": _integer("ulong", 0, 2 ** 64 - 1),
    "float": _real,
    "double": _real,
    "decimal": _decimal,
    "bool": _boolean,
    "DateTime": _datetime,
    "datetime": _datetime,
    "DateOnly": _date,
    "date": _date,
    "TimeOnly": _time,
    "time": _time,
    "TimeSpan": _timedelta,
    "timedelta": _timedelta,
    "Guid": _uuid,
    "guid": _uuid,
    "uuid": _uuid,
    "Uri": _uri,
    "uri": _uri,
    "url": _uri,
    "IPAddress": _ip,
    "ipaddress": _ip,
    "ip": _ip,
    "FileInfo": _path,
    "fileinfo": _path,
    "path": _path,
    "DirectoryInfo": _path,
    "directoryinfo": _path,
}


class ConverterRegistry:
    """
    String-keyed registry of converters.

    - register(name, converter) / @register(name): add or shadow a converter.
    - register_enum(enum, name=...): convert by member name (case-insensitive).
    - convert(value, name): typed value or ConversionError.
    - attempt(value, name): (value, None) or (None, ConversionError); never raises
      for bad input.
    - freeze(): forbid further registrations.
    """

    __slots__ = ("_converters", "_frozen")

    def __init__(self, converters=(), /):
        self._converters = dict(converters)
        self._frozen = False

    @classmethod
    def defaults(cls):
        """a fresh, mutable registry holding the built-in converters."""
        return cls(_BUILTINS)

    @property
    def names(self):
        return frozenset(self._converters)

    @property
    def converters(self):
        return MappingProxyType(self._converters)

    @property
    def frozen(self):
        return self._frozen

    def __contains__(self, name, /):
        return name in self._converters

    def __iter__(self):
        return iter(self._converters)

    def __len__(self):
        return len(self._converters)

    def __repr__(self):
        return "%s(%d converters%s)" % (type(self).__name__, len(self), ", frozen" * self._frozen)

    def copy(self):
        """an unfrozen copy (registrations on the copy never leak back)."""
        return type(self)(self._converters)

    def freeze(self):
        self._frozen = True
        return self

    def register(self, name, converter=Unset, /):
        """
        register a converter under a type-constraint name.

        forms
        - registry.register("Color", to_color)
        - @registry.register("Color")
        """
        if self._frozen:
            raise RuntimeError("cannot register converters on a frozen registry")
        if not isinstance(name, str) or not name:
            raise TypeError("converter name must be a non-empty string")

        if converter is Unset:
            def wrapper(converter):
                return self.register(name, converter)
            return rename(wrapper, "register")

        if not callable(converter):
            raise TypeError("converter for %r must be callable" % name)
        if name in self._converters:
            logger.debug("converter %r shadows a previous registration", name)
        self._converters[name] = converter
        return converter

    def register_enum(self, enum, /, name=Unset):
        """
        register an enumeration: values convert by member name, case-insensitively.
        """
        members = {member.lower(): value for member, value in enum.__members__.items()}

        @rename(enum.__name__)
        def converter(value):
            try:
                return members[value.lower()]
            except KeyError:
                raise ValueError("%r is not one of %s" % (value, ", ".join(enum.__members__))) from None

        return self.register(name if name is not Unset else enum.__name__, converter)

    def lookup(self, name, /):
        try:
            return self._converters[name]
        except KeyError:
            raise UnknownConverterError(
                "no converter is registered for type %r" % name,
                title="unknown converter",
                code=FaultCode.UNKNOWN_CONVERTER,
                hint="register one with registry.register(%r, converter)" % name,
                constraint=name,
            ) from None

    def convert(self, value, name, /):
        """
        convert a raw string; raise ConversionError when it cannot.

        a None name (untyped parameter) returns the raw string unchanged.
        """
        if name is None:
            return value
        converter = self.lookup(name)
        try:
            return converter(value)
        except (ValueError, TypeError, ArithmeticError) as error:
            raise ConversionError(
                "cannot convert %r to %s: %s" % (value, name, error),
                title="conversion failed",
                code=FaultCode.CONVERSION_FAILED,
                hint="pass a valid %s value" % name,
                value=value,
                constraint=name,
            ) from error

    def attempt(self, value, name, /):
        """
        result-style conversion: (value, None) on success, (None, error) on failure.
        """
        try:
            return self.convert(value, name), None
        except ConversionError as error:
            return None, error


DEFAULTS = ConverterRegistry.defaults().freeze()
"""
Read-only registry of the built-in converters, used when no registry is given.
"""


__all__ = (
    "ConverterRegistry",
    "DEFAULTS",
)
