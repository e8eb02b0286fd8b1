"""
Helmsman faults (errors and warnings) and rendering.

Contents
- FaultCode: stable numeric ids for every reportable problem, one block of
  a hundred per stage (lexing, syntax, semantics, conversion, dispatch, warnings).
- PatternException / PatternWarning: compile-time faults raised while lexing,
  parsing or validating a route pattern. Each carries the pattern, the 0-based
  character offset and length of the offending span, and knows how to render
  itself (with a caret line under the span) through rich.
- ConversionError: a raw value could not be turned into its type constraint.
  The resolver treats it as a rejection of one candidate route, never as a crash.
- NoMatchError: raised only at the dispatch boundary (Router.invoke) when no
  route matches an invocation.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): host-provided documentation for a code, if any.

Surfacing
- The lexer, parser and validator build faults with the offending span and a
  single actionable hint; compile() raises the first one.
- In non-shell mode, exceptions are raised and warnings are emitted via
  warnings.warn; in shell mode, they are rendered via rich to stderr.
- The host application may expose __styles__, __codes__, __docs__ and __prog__
  in __main__ to restyle, relabel, document and brand rendered faults.
"""
import copy
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the package (stable identifiers).

    grouping (by high-level domain)
    - lexing (211xx)
      • INVALID_CHARACTER, ANGLE_BRACKET_PARAMETER, MALFORMED_IDENTIFIER
    - syntax (212xx)
      • UNEXPECTED_TOKEN, UNTERMINATED_PARAMETER, CATCH_ALL_OPTION_VALUE,
        INVALID_MODIFIER_COMBINATION, INVALID_OPTION_FORMAT
    - semantics (213xx)
      • DUPLICATE_CATCH_ALL, MISPLACED_CATCH_ALL, INVALID_IDENTIFIER,
        UNKNOWN_TYPE_CONSTRAINT, MISSING_OPTION_FORM, OPTIONAL_BEFORE_REQUIRED,
        DUPLICATE_PARAMETER, DUPLICATE_OPTION_FORM, OPTION_AFTER_SEPARATOR,
        DUPLICATE_SEPARATOR
    - conversion (214xx)
      • CONVERSION_FAILED, UNKNOWN_CONVERTER
    - dispatch (215xx)
      • NO_MATCH
    - warnings (22xxx)
      • AMBIGUOUS_ROUTE

    codes are normalized to a string via normalize() so hosts can remap them.
    """
    # --- lexing errors (211xx) ---
    INVALID_CHARACTER            = 21101
    ANGLE_BRACKET_PARAMETER      = 21102
    MALFORMED_IDENTIFIER         = 21103

    # --- syntax errors (212xx) ---
    UNEXPECTED_TOKEN             = 21201
    UNTERMINATED_PARAMETER       = 21202
    CATCH_ALL_OPTION_VALUE       = 21203
    INVALID_MODIFIER_COMBINATION = 21204
    INVALID_OPTION_FORMAT        = 21205

    # --- semantic errors (213xx) ---
    DUPLICATE_CATCH_ALL          = 21301
    MISPLACED_CATCH_ALL          = 21302
    INVALID_IDENTIFIER           = 21303
    UNKNOWN_TYPE_CONSTRAINT      = 21304
    MISSING_OPTION_FORM          = 21305
    OPTIONAL_BEFORE_REQUIRED     = 21306
    DUPLICATE_PARAMETER          = 21307
    DUPLICATE_OPTION_FORM        = 21308
    OPTION_AFTER_SEPARATOR       = 21309
    DUPLICATE_SEPARATOR          = 21310

    # --- conversion errors (214xx) ---
    CONVERSION_FAILED            = 21401
    UNKNOWN_CONVERTER            = 21402

    # --- dispatch errors (215xx) ---
    NO_MATCH                     = 21501

    # --- warnings (22xxx) ---
    AMBIGUOUS_ROUTE              = 22101

    def normalize(self):
        """the label shown for this code: __main__.__codes__[self] when defined, else the number."""
        labels = getattr(__import__("__main__"), "__codes__", {})
        return str(labels.get(self, self.value))


_ERROR_PALETTE = {
    "prog-name": "bold #E6E6F0",
    "code": "bold #00E5FF",
    "title": "bold #FF4DA6",
    "message": "#C8C8D0",
    "pattern": "bold #E6E6F0",
    "caret": "bold #FF4DA6",
    "hint-arrow": "#9CE19C dim",
    "hint": "italic #9CE19C",
}

_WARNING_PALETTE = {
    "prog-name": "bold #E6E6F0",
    "code": "bold #FFB400",
    "title": "bold #FFC2E0",
    "message": "#D6D6DE",
    "pattern": "bold #E6E6F0",
    "caret": "bold #FFB400",
    "hint-arrow": "#B8EFAF dim",
    "hint": "italic #B8EFAF",
}


class Fault:
    """
    Shared behavior of every helmsman fault: message + read-only options,
    rich rendering, copy.replace support.

    Recognized options
    - code: FaultCode
    - title: short lowercase title shown in the header
    - hint: one actionable sentence
    - pattern, position, length: the offending pattern and span (compile faults)
    - prog: program name shown in the header (overridden by __main__.__prog__)
    - shell, fancy, colorful: surfacing policy (see trigger())
    """
    __palette__ = _ERROR_PALETTE

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def pattern(self):
        return self.options.get("pattern")

    @property
    def position(self):
        return self.options.get("position")

    @property
    def length(self):
        return self.options.get("length", 1)

    def __str__(self):
        if self.message is Unset:
            return ""
        if self.position is None:
            return self.message
        return "%s (at offset %d)" % (self.message, self.position)

    def __rich__(self):
        main = __import__("__main__")
        palette = defaultdict(str, type(self).__palette__ | getattr(main, "__styles__", {}))
        colorful = self.options.get("colorful", False)

        def styled(fragment, key, /):
            return Text(str(fragment or ""), palette[key] if colorful else "")

        label = self.code.normalize() if self.code is not None else "?"
        header = Text.assemble(
            "[ ",
            styled(getattr(main, "__prog__", self.options.get("prog", "helmsman")), "prog-name"),
            " · ",
            styled(label, "code"),
            " | ",
            styled(str(self.options.get("title", "fault")).title(), "title"),
            " ]",
        )
        lines = [styled(coalesce(self.message, ""), "message")]

        if self.pattern is not None and self.position is not None:
            lines.append(Text.assemble("  ", styled(self.pattern, "pattern")))
            lines.append(Text.assemble("  " + " " * self.position, styled("^" * max(self.length, 1), "caret")))

        if hint := self.options.get("hint"):
            lines.append(Text.assemble(styled(" → ", "hint-arrow"), styled(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*lines), title=header, title_align="left")
        return Group(header, *lines)

    def __replace__(self, *positional, **changes):
        assert not positional, "copy.replace() takes keyword arguments only"
        return type(self)(self.message, **self.options | changes)


class PatternException(Fault, Exception):
    """Base type of every compile-time (lex, parse, validation) failure."""

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)


class LexError(PatternException): ...
class InvalidCharacterError(LexError): ...
class AngleBracketParameterError(LexError): ...
class MalformedIdentifierError(LexError): ...

class ParseError(PatternException): ...
class UnexpectedTokenError(ParseError): ...
class UnterminatedParameterError(ParseError): ...
class CatchAllOptionValueError(ParseError): ...
class InvalidModifierCombinationError(ParseError): ...
class InvalidOptionFormatError(ParseError): ...

class ValidationError(PatternException): ...
class DuplicateCatchAllError(ValidationError): ...
class MisplacedCatchAllError(ValidationError): ...
class InvalidIdentifierError(ValidationError): ...
class UnknownTypeConstraintError(ValidationError): ...
class MissingOptionFormError(ValidationError): ...
class OptionalBeforeRequiredError(ValidationError): ...
class DuplicateParameterError(ValidationError): ...
class DuplicateOptionFormError(ValidationError): ...
class OptionAfterSeparatorError(ValidationError): ...
class DuplicateSeparatorError(ValidationError): ...


class PatternWarning(Fault, Warning):
    __palette__ = _WARNING_PALETTE

    def __trigger__(self) -> None:
        if self.options.get("shell", False):
            console.print(self)
        else:
            warnings.warn(self, stacklevel=len(inspect.stack()))


class AmbiguousRouteWarning(PatternWarning): ...


class ConversionError(Fault, ValueError):
    """
    A raw string could not be converted to its type constraint.

    Options
    - value: the raw string
    - constraint: the type-constraint name
    - target: the parameter/option binding name (when known)
    """

    @property
    def value(self):
        return self.options.get("value")

    @property
    def constraint(self):
        return self.options.get("constraint")

    def __trigger__(self) -> None:
        raise self from None


class UnknownConverterError(ConversionError): ...


class NoMatchError(Fault, LookupError):
    """No registered route matched an invocation (dispatch boundary only)."""

    __trigger__ = PatternException.__trigger__


def trigger(fault, /, **options):
    """
    merge runtime options into a fault and surface it.

    - the fault is copied with copy.replace(fault, **options), then its
      __trigger__() decides: raise, warn, or print and exit (shell mode).
    - anything without __trigger__/__replace__ is rejected with TypeError.
    """
    if not isinstance(fault, Fault):
        for method in ("__trigger__", "__replace__"):
            if not callable(getattr(fault, method, None)):
                raise TypeError("trigger() needs a fault, got %s" % type(fault).__name__)
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """documentation for a code from __main__.__docs__, or None."""
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() expects a FaultCode, not %s" % type(code).__name__)
    docs = getattr(__import__("__main__"), "__docs__", {})
    return docs.get(code)


__all__ = (
    "FaultCode",
    "Fault",
    "PatternException",
    "LexError",
    "InvalidCharacterError",
    "AngleBracketParameterError",
    "MalformedIdentifierError",
    "ParseError",
    "UnexpectedTokenError",
    "UnterminatedParameterError",
    "CatchAllOptionValueError",
    "InvalidModifierCombinationError",
    "InvalidOptionFormatError",
    "ValidationError",
    "DuplicateCatchAllError",
    "MisplacedCatchAllError",
    "InvalidIdentifierError",
    "UnknownTypeConstraintError",
    "MissingOptionFormError",
    "OptionalBeforeRequiredError",
    "DuplicateParameterError",
    "DuplicateOptionFormError",
    "OptionAfterSeparatorError",
    "DuplicateSeparatorError",
    "PatternWarning",
    "AmbiguousRouteWarning",
    "ConversionError",
    "UnknownConverterError",
    "NoMatchError",
    "trigger",
    "getdoc",
)
