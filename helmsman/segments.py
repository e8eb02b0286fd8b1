"""
Helmsman segment model.

A compiled pattern is an ordered tuple of segments. Segment is a closed
union of four frozen kinds, each carrying only the fields it needs:

- Literal   fixed text that must match one input token ("deploy", or the
            end-of-options separator "--")
- Parameter named positional value ("{env}", "{port:int}", "{tag?}")
- Option    named switch matched anywhere in the input ("--force,-f",
            "--mode {mode}", "--env {e}*", "-v")
- CatchAll  greedy tail of positional values ("{*args}")

Consumers dispatch with structural pattern matching:

    match segment:
        case Literal(value=value): ...
        case Parameter(name=name, optional=True): ...
        case Option() if segment.flag: ...
        case CatchAll(name=name): ...

Positions are 0-based character offsets into the source pattern; they are
diagnostic only and never take part in equality.
"""
from dataclasses import dataclass, field

from .utils import snakecase

SEPARATOR = "--"


@dataclass(frozen=True, slots=True)
class Literal:
    value: str
    position: int = field(default=0, compare=False)

    @property
    def separator(self):
        """True for the end-of-options marker "--"."""
        return self.value == SEPARATOR

    def __str__(self):
        return self.value


@dataclass(frozen=True, slots=True)
class Parameter:
    name: str
    type: str | None = None
    optional: bool = False
    descr: str | None = None
    position: int = field(default=0, compare=False)

    @property
    def typed(self):
        return self.type is not None

    def __str__(self):
        return "{%s%s%s}" % (self.name, "?" * self.optional, ":" + self.type if self.type else "")


@dataclass(frozen=True, slots=True)
class CatchAll:
    name: str
    type: str | None = None
    descr: str | None = None
    position: int = field(default=0, compare=False)

    @property
    def typed(self):
        return self.type is not None

    def __str__(self):
        return "{*%s%s}" % (self.name, ":" + self.type if self.type else "")


@dataclass(frozen=True, slots=True)
class Option:
    """
    A named switch. At least one of long/short is present; a missing side is
    None, never an empty string.

    - flag: no value parameter; binds True/False.
    - parameter: the value parameter ("--mode {mode}"), possibly optional
      ("--config {path?}").
    - optional: the option itself was marked with "?" ("--mode? {mode}").
    - repeated: every occurrence is collected in command-line order ("{e}*").
    """
    long: str | None = None
    short: str | None = None
    parameter: Parameter | None = None
    optional: bool = False
    repeated: bool = False
    descr: str | None = None
    position: int = field(default=0, compare=False)

    @property
    def flag(self):
        return self.parameter is None

    @property
    def required(self):
        """
        Absence of a required option makes the whole route non-viable.

        Flags and repeated options are never required at match time; a value
        option is required unless marked optional with "?".
        """
        return not (self.optional or self.flag or self.repeated)

    @property
    def value_optional(self):
        return self.parameter is not None and self.parameter.optional

    @property
    def type(self):
        return self.parameter.type if self.parameter is not None else None

    @property
    def name(self):
        """Binding name: the value parameter's name, or the flag's snake_cased name."""
        if self.parameter is not None:
            return self.parameter.name
        return snakecase(self.long if self.long is not None else self.short or "")

    @property
    def forms(self):
        """The declared input spellings, long first ("--force", "-f")."""
        forms = []
        if self.long is not None:
            forms.append(SEPARATOR + self.long)
        if self.short is not None:
            forms.append("-" + self.short)
        return tuple(forms)

    def __str__(self):
        text = ",".join(self.forms) + "?" * self.optional
        if self.parameter is not None:
            text += " " + str(self.parameter)
        return text + "*" * self.repeated


Segment = Literal | Parameter | Option | CatchAll


__all__ = (
    "SEPARATOR",
    "Literal",
    "Parameter",
    "CatchAll",
    "Option",
    "Segment",
)
