"""
Helmsman matcher: one compiled route against one invocation.

Matching never raises for a route that does not fit; it returns a
MatchResult whose viable/exact flags say how far the route got.

Algorithm (in order)
1. Repeated options: every occurrence before the end-of-options marker is
   collected, in command-line order, together with its value token.
2. Other options: each is looked up anywhere in the unconsumed tokens
   before the marker. A value option takes the following token (or an
   inline "--name=value") unless that token is one of the route's own
   option forms. A required option that is absent rejects the route.
3. Positional segments, left to right over the unconsumed tokens:
   - a literal must equal the token;
   - a parameter takes one token; an optional parameter is skipped when
     the input is exhausted or the next token is a declared option;
   - the catch-all takes every remaining positional token and stops at a
     declared option form seen before the marker.
4. The result is exact when every input token was consumed.

Dash-led tokens that are not option forms of the route ("-3", "-x" for a
route without "-x") are ordinary positional values. After the marker "--"
every token is positional. When the route itself has no "--" literal the
marker token is absorbed.
"""
import logging
import shlex
from collections.abc import Iterable
from dataclasses import dataclass, field
from types import MappingProxyType

from .segments import SEPARATOR, Literal, Parameter, CatchAll, Option

logger = logging.getLogger("helmsman.matcher")


@dataclass(frozen=True, slots=True)
class ParsedInput:
    """
    One tokenized invocation.

    - args: the argument strings, in order
    - separator: index of the first "--" token, or None (always derived from args)
    """
    args: tuple
    separator: int | None = field(init=False)

    def __post_init__(self):
        args = tuple(self.args)
        object.__setattr__(self, "args", args)
        object.__setattr__(self, "separator", args.index(SEPARATOR) if SEPARATOR in args else None)

    @classmethod
    def of(cls, argv, /):
        """
        tokenize an invocation.

        - str: split like a POSIX shell (shlex.split)
        - ParsedInput: returned as is
        - Iterable[str]: used token by token
        """
        if isinstance(argv, ParsedInput):
            return argv
        if isinstance(argv, str):
            args = shlex.split(argv)
        elif isinstance(argv, Iterable):
            args = list(argv)
            if not all(isinstance(arg, str) for arg in args):
                raise TypeError("ParsedInput.of() argument must be a string or an iterable of strings")
        else:
            raise TypeError("ParsedInput.of() argument must be a string or an iterable of strings")
        return cls(tuple(args))

    @property
    def limit(self):
        """index where option scanning stops."""
        return len(self.args) if self.separator is None else self.separator

    def __len__(self):
        return len(self.args)

    def __str__(self):
        return shlex.join(self.args)


@dataclass(frozen=True, slots=True)
class MatchResult:
    """
    Outcome of matching one route against one input.

    - viable: every structural rule succeeded
    - exact: viable, and no input token was left over
    - values: raw bound values by binding name
        • parameter: str, or None when an optional one is absent
        • option value: str, or None when absent/valueless
        • flag: True/False
        • repeated option / catch-all: list (in command-line order)
    - consumed: indices of the tokens taken by options (and their values)
    - present: binding names of the options that appeared in the input; it
      tells a valueless "-f" apart from an absent one when both bind None
    - defaults: number of optional segments that were absent
    - reason: why the route was rejected (empty when viable)
    """
    route: object
    viable: bool
    exact: bool = False
    values: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    consumed: frozenset = frozenset()
    defaults: int = 0
    reason: str = ""
    present: frozenset = frozenset()

    def __bool__(self):
        return self.exact


class _Matcher:
    """
    Mutable state of a single match attempt.
    """

    __slots__ = ("route", "input", "fold", "forms", "consumed", "values", "options", "present", "defaults")

    def __init__(self, route, input, case_sensitive):
        self.route = route
        self.input = input
        self.fold = (lambda text: text) if case_sensitive else str.casefold
        self.forms = {self.fold(form): option for form, option in route.options.items()}
        self.consumed = [False] * len(input.args)
        self.values = {}
        self.options = set()
        self.present = set()
        self.defaults = 0
        # the marker token is absorbed when the route does not spell it out
        if input.separator is not None and route.separator is None:
            self.consumed[input.separator] = True

    def reject(self, reason, *args):
        reason = reason % args if args else reason
        logger.debug("route %r rejected: %s", self.route.pattern, reason)
        return MatchResult(self.route, False, reason=reason)

    def declared(self, index):
        """the route's Option spelled by the token at index, if any (before the marker only)."""
        if index >= self.input.limit:
            return None
        token = self.input.args[index]
        if not token.startswith("-") or token == SEPARATOR:
            return None
        return self.forms.get(self.fold(token.partition("=")[0]))

    def hit(self, option, index):
        """
        (True, inline value or None) when the token at index spells option.
        """
        if self.consumed[index] or self.declared(index) is not option:
            return False, None
        token = self.input.args[index]
        form, equals, inline = token.partition("=")
        if equals and option.flag:
            return False, None
        return True, inline if equals else None

    def take(self, index):
        self.consumed[index] = True
        self.options.add(index)

    def value(self, option, index, inline):
        """
        (True, value) for the option found at index, or (False, None) when a
        required value is missing.
        """
        if inline is not None:
            return True, inline
        following = index + 1
        if following < self.input.limit and not self.consumed[following] and self.declared(following) is None:
            self.take(following)
            return True, self.input.args[following]
        return option.value_optional, None

    def repeated(self, option):
        """
        collect every occurrence of a repeated option; return a rejection
        reason or None.
        """
        collected = []
        for index in range(self.input.limit):
            found, inline = self.hit(option, index)
            if not found:
                continue
            self.take(index)
            self.present.add(option.name)
            if option.flag:
                collected.append(True)
                continue
            ok, value = self.value(option, index, inline)
            if not ok:
                return "option %s expects a value" % option
            if value is not None:
                collected.append(value)
        if not collected:
            self.defaults += 1
        self.values[option.name] = collected
        return None

    def single(self, option, after_separator):
        """
        find the first occurrence of a non-repeated option; return a
        rejection reason or None.
        """
        # options declared after "--" are never found
        for index in range(0 if after_separator else self.input.limit):
            found, inline = self.hit(option, index)
            if found:
                break
        else:
            if option.required:
                return "required option %s is missing" % option
            self.defaults += 1
            self.values[option.name] = False if option.flag else None
            return None

        self.take(index)
        self.present.add(option.name)
        if option.flag:
            self.values[option.name] = True
            return None
        ok, value = self.value(option, index, inline)
        if not ok:
            return "option %s expects a value" % option
        self.values[option.name] = value
        return None

    def run(self):
        route, args = self.route, self.input.args

        for option in route.repeated:
            if reason := self.repeated(option):
                return self.reject(reason)

        for position, segment in enumerate(route.segments):
            if isinstance(segment, Option) and not segment.repeated:
                after_separator = route.separator is not None and position > route.separator
                if reason := self.single(segment, after_separator):
                    return self.reject(reason)

        cursor = 0
        for segment in route.segments:
            if isinstance(segment, Option):
                continue
            while cursor < len(args) and self.consumed[cursor]:
                cursor += 1

            match segment:
                case CatchAll(name=name):
                    rest = []
                    while cursor < len(args):
                        if not self.consumed[cursor]:
                            if self.declared(cursor) is not None:
                                break
                            rest.append(args[cursor])
                            self.consumed[cursor] = True
                        cursor += 1
                    self.values[name] = rest
                    continue

                case Parameter(optional=True, name=name) if cursor >= len(args) or self.declared(cursor) is not None:
                    self.defaults += 1
                    self.values[name] = None
                    continue

                case _ if cursor >= len(args):
                    return self.reject("input ends before %s", segment)

                case _ if self.declared(cursor) is not None:
                    return self.reject("expected %s but found option %r", segment, args[cursor])

                case Literal(value=value):
                    if self.fold(args[cursor]) != self.fold(value):
                        return self.reject("literal %r does not match %r", value, args[cursor])

                case Parameter(name=name):
                    self.values[name] = args[cursor]

            self.consumed[cursor] = True
            cursor += 1

        leftover = [args[index] for index, consumed in enumerate(self.consumed) if not consumed]
        if leftover:
            logger.debug("route %r is viable but leaves %s unconsumed", route.pattern, leftover)
        return MatchResult(
            route,
            True,
            not leftover,
            MappingProxyType(self.values),
            frozenset(self.options),
            self.defaults,
            present=frozenset(self.present),
        )


def match(route, input, /, case_sensitive=True):
    """
    match one CompiledRoute against an invocation (a ParsedInput, a string or
    a list of strings) and return a MatchResult.
    """
    return _Matcher(route, ParsedInput.of(input), case_sensitive).run()


__all__ = (
    "ParsedInput",
    "MatchResult",
    "match",
)
