"""
Helmsman resolver and router.

resolve() picks the single best route for an invocation:

1. every route is matched (helmsman.matcher.match);
2. exact matches are ranked by specificity, highest first; equal
   specificity is broken by registration order, earliest first;
3. the raw values of the best candidate are converted through the
   converter registry; a ConversionError rejects that candidate only and
   the next one in rank is tried;
4. the first candidate that binds is returned as a Resolution, or None
   when nothing matches (a normal outcome, not an error).

Router wraps resolve() with registration and dispatch:

    router = Router()

    @router.route("greet {name}")
    def greet(name):
        print("hello", name)

    router.invoke("greet Alice")

Lifecycle
- Build phase: add()/route() and converter registrations, guarded by a lock.
- freeze(): the route list and the converter registry become read-only; the
  first resolve() freezes implicitly. Frozen routers are shared between
  threads without locking.
"""
import copy
import logging
import sys
import threading
from dataclasses import dataclass
from types import MappingProxyType

from .compiler import CompiledRoute, compile
from .converters import ConverterRegistry, DEFAULTS
from .faults import *
from .matcher import ParsedInput, match
from .segments import Parameter, CatchAll, Option
from .utils import Unset, coalesce

logger = logging.getLogger("helmsman.resolver")


@dataclass(frozen=True, slots=True)
class Resolution:
    """
    The selected route with its typed values.

    - route: the winning CompiledRoute
    - values: binding name -> converted value
    - index: registration index of the route in the resolved sequence
    - handler: the callable registered with the route (Router only)
    - present: binding names of the options given on the command line
    """
    route: CompiledRoute
    values: MappingProxyType
    index: int
    handler: object = None
    present: frozenset = frozenset()


def bind(result, /, registry=None):
    """
    convert the raw values of a MatchResult into typed values.

    raises
    - ConversionError (or UnknownConverterError) for the first value that
      does not convert.
    """
    registry = DEFAULTS if registry is None else registry
    raw = result.values
    values = {}
    for segment in result.route.segments:
        match segment:
            case Option(repeated=True) if segment.flag:
                values[segment.name] = list(raw.get(segment.name, []))
            case Option() if segment.flag:
                values[segment.name] = bool(raw.get(segment.name, False))
            case Option(repeated=True) | CatchAll():
                values[segment.name] = [
                    _convert(registry, item, segment.type, segment.name)
                    for item in raw.get(segment.name, [])
                ]
            case Option() | Parameter():
                value = raw.get(segment.name)
                values[segment.name] = None if value is None else _convert(registry, value, segment.type, segment.name)
    return values


def _convert(registry, value, type, name):
    try:
        return registry.convert(value, type)
    except ConversionError as error:
        # attach the binding name for diagnostics
        raise copy.replace(error, target=name) from error.__cause__


def resolve(input, routes, /, registry=None, case_sensitive=True):
    """
    select the best route of a sequence for an invocation.

    parameters
    - input: ParsedInput, shell-like string, or iterable of strings
    - routes: sequence of CompiledRoute, in registration order
    - registry: ConverterRegistry for typed values (built-ins when omitted)
    - case_sensitive: compare literals and option forms exactly

    returns
    - Resolution, or None when no route matches exactly (or every exact
      match fails to convert).

    raises
    - UnknownConverterError when a winning route names a type the registry
      does not know.
    """
    input = ParsedInput.of(input)
    logger.debug("resolving %r against %d routes", str(input), len(routes))

    candidates = []
    for index, route in enumerate(routes):
        result = match(route, input, case_sensitive)
        if result.exact:
            candidates.append((index, result))

    # highest specificity first; earliest registration wins ties
    candidates.sort(key=lambda candidate: (-candidate[1].route.specificity, candidate[0]))

    for index, result in candidates:
        try:
            values = bind(result, registry)
        except UnknownConverterError:
            # unknown type names propagate; only bad values reject a candidate
            raise
        except ConversionError as error:
            logger.debug("route %r rejected: %s", result.route.pattern, error)
            continue
        logger.debug("resolved %r to route %r (specificity %d)", str(input), result.route.pattern, result.route.specificity)
        return Resolution(result.route, MappingProxyType(values), index, present=result.present)

    logger.debug("no route matches %r", str(input))
    return None


class Router:
    """
    Registry of routes with their handlers, plus dispatch.

    Options (keyword-only)
    - case_sensitive: literal and option comparison policy (default True)
    - converters: ConverterRegistry (default: a fresh copy of the built-ins)
    - strict: raise instead of warning when a route repeats the shape of
      an already registered one
    - shell, fancy, colorful: how pattern faults are surfaced (see trigger())
    """

    __slots__ = (
        "_routes",
        "_handlers",
        "_converters",
        "_case_sensitive",
        "_strict",
        "_shell",
        "_fancy",
        "_colorful",
        "_frozen",
        "_lock",
    )

    def __init__(
        self,
        /, *,
        case_sensitive=True,
        converters=Unset,
        strict=False,
        shell=False,
        fancy=False,
        colorful=False,
    ):
        if converters is Unset:
            converters = ConverterRegistry.defaults()
        elif not isinstance(converters, ConverterRegistry):
            raise TypeError("Router() converters must be a ConverterRegistry")
        self._routes = []
        self._handlers = []
        self._converters = converters
        self._case_sensitive = bool(case_sensitive)
        self._strict = bool(strict)
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def routes(self):
        return tuple(self._routes)

    @property
    def converters(self):
        return self._converters

    @property
    def case_sensitive(self):
        return self._case_sensitive

    @property
    def strict(self):
        return self._strict

    @property
    def shell(self):
        return self._shell

    @property
    def fancy(self):
        return self._fancy

    @property
    def colorful(self):
        return self._colorful

    @property
    def frozen(self):
        return self._frozen

    def __len__(self):
        return len(self._routes)

    def __iter__(self):
        return iter(self._routes)

    def __repr__(self):
        return "%s(%d routes%s)" % (type(self).__name__, len(self), ", frozen" * self._frozen)

    def _options(self):
        return {"shell": self._shell, "fancy": self._fancy, "colorful": self._colorful}

    def add(self, pattern, handler=None, /):
        """
        compile and register a pattern with its handler; return the CompiledRoute.

        raises
        - RuntimeError when the router is frozen.
        - PatternException subclasses for invalid patterns (see compile()).
        - AmbiguousRouteWarning is emitted (raised in strict mode) when an
          already registered route has the same shape.
        """
        if handler is not None and not callable(handler):
            raise TypeError("Router.add() handler must be callable")
        route = compile(pattern, self._converters, **self._options())
        with self._lock:
            if self._frozen:
                raise RuntimeError("cannot add routes to a frozen router")
            for other in self._routes:
                if other.shape == route.shape:
                    self._ambiguous(route, other)
            self._routes.append(route)
            self._handlers.append(handler)
        logger.debug("registered route %r as #%d", pattern, len(self._routes))
        return route

    def _ambiguous(self, route, other):
        message = "route %r has the same shape as %r and will never be selected" % (route.pattern, other.pattern)
        options = {
            "title": "ambiguous route",
            "code": FaultCode.AMBIGUOUS_ROUTE,
            "hint": "the earlier registration wins ties; remove or reshape one of them",
            "pattern": route.pattern,
            "position": 0,
            "length": max(len(route.pattern), 1),
        }
        if self._strict:
            trigger(ValidationError(message, **options), **self._options())
        trigger(AmbiguousRouteWarning(message, **options), **self._options())

    def route(self, pattern, /):
        """
        decorator form of add(): @router.route("greet {name}").
        """
        if not isinstance(pattern, str):
            raise TypeError("@route() argument must be a pattern string")

        def wrapper(handler):
            self.add(pattern, handler)
            return handler
        return wrapper

    def freeze(self):
        """
        end the build phase: no more routes, no more converter registrations.
        """
        with self._lock:
            self._frozen = True
            self._converters.freeze()
        return self

    def resolve(self, argv, /):
        """
        resolve an invocation against the registered routes (freezes the router).

        returns a Resolution carrying the route's handler, or None.
        """
        if not self._frozen:
            self.freeze()
        resolution = resolve(argv, self._routes, self._converters, self._case_sensitive)
        if resolution is None:
            return None
        return copy.replace(resolution, handler=self._handlers[resolution.index])

    def invoke(self, argv=Unset, /):
        """
        resolve an invocation and call the winning handler with the bound
        values as keyword arguments; return the handler's result.

        parameters
        - argv:
          • Unset: sys.argv[1:]
          • str: split like a POSIX shell
          • Iterable[str]: used as is

        raises
        - NoMatchError when no route matches (rendered and exit 1 in shell mode).
        - TypeError when the matched route has no handler.
        """
        input = ParsedInput.of(coalesce(argv, sys.argv[1:]))
        resolution = self.resolve(input)
        if resolution is None:
            trigger(NoMatchError(
                "no route matches %r" % str(input),
                title="no match",
                code=FaultCode.NO_MATCH,
                hint="registered routes: %s" % ("; ".join(map(str, self._routes)) or "none"),
            ), **self._options())
            return None
        if resolution.handler is None:
            raise TypeError("route %r has no handler" % resolution.route.pattern)
        return resolution.handler(**resolution.values)


__all__ = (
    "Resolution",
    "bind",
    "resolve",
    "Router",
)
