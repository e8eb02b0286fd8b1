"""
Helmsman semantic validation.

Runs over a parsed segment tuple and yields every semantic fault it finds,
in pattern order per rule. compile() raises the first one; diagnose()
reports them all.

Rules
- invalid identifier        parameter/catch-all/value names must be a letter
                            followed by letters, digits or underscores
- unknown type constraint   type names must be known to the converter registry
- missing option form       an option declares a long and/or a short form
- duplicate catch-all       at most one catch-all per route
- misplaced catch-all       the catch-all is the final positional segment
- optional before required  an optional parameter is followed only by other
                            optional parameters, a catch-all, or options
- duplicate parameter       binding names are unique across parameters,
                            catch-all and options
- duplicate option form     "--x"/"-x" spellings are unique per route
- option after separator    options are never declared after "--"
- duplicate separator       "--" appears at most once
"""
from .converters import DEFAULTS
from .faults import *
from .segments import Literal, Parameter, CatchAll, Option
from .utils import identifier


def _span(segment, pattern):
    length = len(str(segment))
    if pattern is not None:
        length = min(length, max(len(pattern) - segment.position, 1))
    return {"pattern": pattern, "position": segment.position, "length": length}


def _named(segments):
    """yield (segment, name, type) for every named value declared by the route."""
    for segment in segments:
        match segment:
            case Parameter() | CatchAll():
                yield segment, segment.name, segment.type
            case Option(parameter=Parameter() as parameter):
                yield segment, parameter.name, parameter.type


def check_identifiers(segments, pattern=None, registry=None):
    for segment, name, _ in _named(segments):
        if not identifier(name):
            yield InvalidIdentifierError(
                "invalid name %r in %s" % (name, segment),
                title="invalid identifier",
                code=FaultCode.INVALID_IDENTIFIER,
                hint="names start with a letter followed by letters, digits or underscores",
                **_span(segment, pattern)
            )


def check_type_constraints(segments, pattern=None, registry=None):
    registry = DEFAULTS if registry is None else registry
    for segment, name, type in _named(segments):
        if type is not None and type not in registry:
            yield UnknownTypeConstraintError(
                "unknown type constraint %r for %r" % (type, name),
                title="unknown type constraint",
                code=FaultCode.UNKNOWN_TYPE_CONSTRAINT,
                hint="register a converter for %r before compiling this pattern" % type,
                constraint=type,
                **_span(segment, pattern)
            )


def check_option_forms(segments, pattern=None, registry=None):
    seen = {}
    for segment in segments:
        if not isinstance(segment, Option):
            continue
        if segment.long is None and segment.short is None:
            yield MissingOptionFormError(
                "option declares neither a long nor a short form",
                title="missing option form",
                code=FaultCode.MISSING_OPTION_FORM,
                hint="declare --long, -s, or both (for example: --force,-f)",
                **_span(segment, pattern)
            )
            continue
        for form in segment.forms:
            if form in seen:
                yield DuplicateOptionFormError(
                    "option form %r is declared twice" % form,
                    title="duplicate option form",
                    code=FaultCode.DUPLICATE_OPTION_FORM,
                    hint="give each option distinct long and short forms",
                    form=form,
                    **_span(segment, pattern)
                )
            seen.setdefault(form, segment)


def check_catch_all(segments, pattern=None, registry=None):
    catchall = None
    misplaced = False
    for segment in segments:
        match segment:
            case CatchAll() if catchall is not None:
                yield DuplicateCatchAllError(
                    "second catch-all %s after %s" % (segment, catchall),
                    title="duplicate catch-all",
                    code=FaultCode.DUPLICATE_CATCH_ALL,
                    hint="a route has at most one catch-all, as its last positional segment",
                    **_span(segment, pattern)
                )
            case CatchAll():
                catchall = segment
            case Literal() | Parameter() if catchall is not None and not misplaced:
                misplaced = True
                yield MisplacedCatchAllError(
                    "catch-all %s must be the last positional segment but %s follows it" % (catchall, segment),
                    title="misplaced catch-all",
                    code=FaultCode.MISPLACED_CATCH_ALL,
                    hint="move %s to the end of the pattern" % catchall,
                    **_span(catchall, pattern)
                )


def check_optional_order(segments, pattern=None, registry=None):
    optional = None
    for segment in segments:
        match segment:
            case Parameter(optional=True):
                optional = optional or segment
            case Parameter() | Literal() if optional is not None:
                yield OptionalBeforeRequiredError(
                    "optional parameter %s is followed by required %s" % (optional, segment),
                    title="optional before required",
                    code=FaultCode.OPTIONAL_BEFORE_REQUIRED,
                    hint="make %s optional too, or move %s to the end" % (segment, optional),
                    **_span(optional, pattern)
                )
                return


def check_duplicate_names(segments, pattern=None, registry=None):
    seen = {}
    for segment in segments:
        match segment:
            case Parameter() | CatchAll() | Option():
                name = segment.name
            case _:
                continue
        if name in seen:
            yield DuplicateParameterError(
                "name %r is bound by both %s and %s" % (name, seen[name], segment),
                title="duplicate parameter",
                code=FaultCode.DUPLICATE_PARAMETER,
                hint="rename one of them",
                name=name,
                **_span(segment, pattern)
            )
        seen.setdefault(name, segment)


def check_separator(segments, pattern=None, registry=None):
    separator = None
    for segment in segments:
        match segment:
            case Literal(separator=True) if separator is None:
                separator = segment
            case Literal(separator=True):
                yield DuplicateSeparatorError(
                    "end-of-options marker '--' is declared again (first at offset %d)" % separator.position,
                    title="duplicate separator",
                    code=FaultCode.DUPLICATE_SEPARATOR,
                    hint="keep a single '--'; every token after it is already positional",
                    **_span(segment, pattern)
                )
            case Option() if separator is not None:
                yield OptionAfterSeparatorError(
                    "option %s is declared after the end-of-options marker '--'" % segment,
                    title="option after separator",
                    code=FaultCode.OPTION_AFTER_SEPARATOR,
                    hint="declare options before '--'; everything after it is positional",
                    **_span(segment, pattern)
                )


RULES = (
    check_identifiers,
    check_type_constraints,
    check_option_forms,
    check_catch_all,
    check_optional_order,
    check_duplicate_names,
    check_separator,
)


def validate(segments, /, pattern=None, registry=None):
    """
    yield every semantic fault of a segment tuple, rule by rule.

    parameters
    - segments: the parser's output (or hand-built segments)
    - pattern: the source pattern, attached to faults for rendering
    - registry: ConverterRegistry used to check type constraints
      (the built-in DEFAULTS when omitted)
    """
    for rule in RULES:
        yield from rule(segments, pattern, registry)


__all__ = (
    "RULES",
    "validate",
)
