"""
Helmsman route compiler.

compile() runs a pattern through the lexer, the parser and the semantic
rules, and freezes the result into a CompiledRoute: the ordered segments,
a precomputed specificity, and the lookup tables the matcher needs.

Specificity
- Each segment contributes a fixed weight, independent of its position;
  the route's specificity is the sum.

    Literal (including "--")   100
    Required option             50
    Optional option ("?")       25
    Typed parameter             20
    Untyped parameter           10
    Optional parameter           5
    Catch-all                    1

- An option scores as required unless it is explicitly marked "?". Flags
  and repeated options are optional when matching but still score 50.
- A value option adds the score of its value parameter on top.

These constants are part of the public contract: anything that replicates
routing decisions outside the generic resolver must use the same table.
"""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType

from .faults import *
from .parser import Parser
from .segments import Literal, Parameter, CatchAll, Option
from .validation import validate

logger = logging.getLogger("helmsman.compiler")

LITERAL = 100
REQUIRED_OPTION = 50
OPTIONAL_OPTION = 25
TYPED_PARAMETER = 20
UNTYPED_PARAMETER = 10
OPTIONAL_PARAMETER = 5
CATCH_ALL = 1


def score(segment, /):
    """
    specificity weight of one segment.
    """
    match segment:
        case Literal():
            return LITERAL
        case CatchAll():
            return CATCH_ALL
        case Parameter(optional=True):
            return OPTIONAL_PARAMETER
        case Parameter(type=None):
            return UNTYPED_PARAMETER
        case Parameter():
            return TYPED_PARAMETER
        case Option(parameter=parameter):
            weight = OPTIONAL_OPTION if segment.optional else REQUIRED_OPTION
            return weight + (score(parameter) if parameter is not None else 0)
        case _:
            raise TypeError("score() argument must be a segment, not %s" % type(segment).__name__)


def shape(segment, /):
    """
    the name-free structure of a segment, used to detect ambiguous routes.
    """
    match segment:
        case Literal(value=value):
            return ("literal", value)
        case Parameter(type=type, optional=optional):
            return ("parameter", type, optional)
        case CatchAll(type=type):
            return ("catch-all", type)
        case Option():
            return ("option", frozenset(segment.forms), segment.flag, segment.type, segment.required, segment.repeated)


@dataclass(frozen=True, slots=True)
class CompiledRoute:
    """
    Immutable, matching-ready form of one pattern.

    Equality compares the segments and the specificity only: compiling the
    same pattern twice yields equal routes.

    Derived fields
    - options: option form ("--force", "-f") -> Option, for O(1) lookup
    - catchall: the catch-all's name, or None
    - bindings: binding names in pattern order
    - repeated: repeated options, matched before anything else
    - separator: index of the "--" literal in segments, or None
    """
    pattern: str = field(compare=False)
    segments: tuple
    specificity: int
    options: MappingProxyType = field(compare=False, repr=False)
    catchall: str | None = field(compare=False, repr=False)
    bindings: tuple = field(compare=False, repr=False)
    repeated: tuple = field(compare=False, repr=False)
    separator: int | None = field(compare=False, repr=False)

    @classmethod
    def build(cls, pattern, segments, /):
        """
        derive the lookup tables from an already validated segment tuple.
        """
        segments = tuple(segments)
        options = {}
        bindings = []
        catchall = separator = None
        for index, segment in enumerate(segments):
            match segment:
                case Literal(separator=True) if separator is None:
                    separator = index
                case Option():
                    options.update(dict.fromkeys(segment.forms, segment))
                    bindings.append(segment.name)
                case CatchAll(name=name):
                    catchall = name
                    bindings.append(name)
                case Parameter(name=name):
                    bindings.append(name)
        return cls(
            pattern,
            segments,
            sum(map(score, segments)),
            MappingProxyType(options),
            catchall,
            tuple(bindings),
            tuple(segment for segment in segments if isinstance(segment, Option) and segment.repeated),
            separator,
        )

    @property
    def shape(self):
        """
        positional shapes in order plus the set of option shapes; two routes
        with equal shapes accept exactly the same invocations.
        """
        positional = tuple(shape(segment) for segment in self.segments if not isinstance(segment, Option))
        return positional, frozenset(shape(segment) for segment in self.segments if isinstance(segment, Option))

    @property
    def literals(self):
        return tuple(segment.value for segment in self.segments if isinstance(segment, Literal) and not segment.separator)

    def __str__(self):
        return " ".join(map(str, self.segments))


def compile(pattern, /, registry=None, **options):
    """
    compile a pattern into a CompiledRoute.

    parameters
    - pattern: the route pattern ("deploy {env} --force,-f")
    - registry: ConverterRegistry checked for type constraints (built-ins when omitted)
    - options: surfacing policy forwarded to trigger() (shell, fancy, colorful, prog)

    raises
    - the first LexError, ParseError or ValidationError found; in shell mode the
      fault is rendered to stderr and the process exits with status 1 instead.
    """
    try:
        segments = Parser(pattern).parse()
    except PatternException as fault:
        trigger(fault, **options)

    for fault in validate(segments, pattern=pattern, registry=registry):
        trigger(fault, **options)

    route = CompiledRoute.build(pattern, segments)
    logger.debug("compiled %r (specificity %d)", pattern, route.specificity)
    return route


def diagnose(pattern, /, registry=None):
    """
    list every fault of a pattern without raising.

    a lex or parse fault stops the scan, so it is reported alone; otherwise all
    semantic faults are returned in rule order. an empty list means the pattern
    compiles.
    """
    try:
        segments = Parser(pattern).parse()
    except PatternException as fault:
        return [fault]
    return list(validate(segments, pattern=pattern, registry=registry))


__all__ = (
    "LITERAL",
    "REQUIRED_OPTION",
    "OPTIONAL_OPTION",
    "TYPED_PARAMETER",
    "UNTYPED_PARAMETER",
    "OPTIONAL_PARAMETER",
    "CATCH_ALL",
    "score",
    "CompiledRoute",
    "compile",
    "diagnose",
)
