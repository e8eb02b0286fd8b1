"""
Helmsman pattern parser.

Consumes the lexer's tokens into an ordered tuple of segments
(Literal / Parameter / Option / CatchAll). Parsing is all-or-nothing:
the first syntax fault is raised and no partial segment tuple is ever
returned. Semantic rules (catch-all placement, identifier syntax, type
constraints, ...) live in helmsman.validation and run on the result.

Grammar (informal)
    pattern    := segment*
    segment    := literal | "--" | parameter | catchall | option
    parameter  := "{" name ["?"] [":" type ["?"]] ["|" text] "}"
    catchall   := "{" "*" name [":" type] ["|" text] "}"
    option     := ("--" long ["," "-" short] | "-" short) ["?"] ["|" text]
                  [parameter] ["*"]

Notes
- A type followed by "?" ("{port:int?}") marks the parameter optional.
- A parameter directly after an option is that option's value.
- The trailing "*" marks an option as repeated.
"""
import logging

from .faults import *
from .lexer import TokenKind, tokenize
from .segments import SEPARATOR, Literal, Parameter, CatchAll, Option
from .utils import ordinal

logger = logging.getLogger("helmsman.parser")


class Parser:
    """
    Recursive descent parser over one token list.

    Usage::

        segments = Parser("deploy {env} --force,-f").parse()
    """

    __slots__ = ("_pattern", "_tokens", "_index")

    def __init__(self, pattern, /, tokens=None):
        self._pattern = pattern
        self._tokens = tokens if tokens is not None else tokenize(pattern)
        self._index = 0

    # ── token helpers ──────────────────────────────────────────────────────

    def _peek(self):
        return self._tokens[self._index]

    def _advance(self):
        token = self._tokens[self._index]
        if token.kind is not TokenKind.END:
            self._index += 1
        return token

    def _check(self, kind):
        return self._peek().kind is kind

    def _match(self, kind):
        if self._check(kind):
            return self._advance()
        return None

    def _fault(self, cls, message, token, /, **options):
        # explicit position/length options override the token span
        return cls(message, **{
            "pattern": self._pattern,
            "position": token.position,
            "length": max(token.length, 1),
        } | options)

    def _unexpected(self, token, expected):
        found = "end of pattern" if token.kind is TokenKind.END else repr(str(token.value))
        return self._fault(
            UnexpectedTokenError,
            "expected %s but found %s at %s character of the pattern" % (expected, found, ordinal(token.position + 1)),
            token,
            title="unexpected token",
            code=FaultCode.UNEXPECTED_TOKEN,
            hint="see the pattern grammar: literals, {param}, {*rest}, --long,-s and '--'",
            expected=expected,
        )

    def _consume(self, kind, expected):
        if self._check(kind):
            return self._advance()
        raise self._unexpected(self._peek(), expected)

    # ── grammar ────────────────────────────────────────────────────────────

    def parse(self):
        """
        parse the whole pattern and return the segments as a tuple.

        raises
        - ParseError subclasses on the first syntax fault.
        """
        self._index = 0
        segments = []
        while not self._check(TokenKind.END):
            segments.append(self._segment())
        logger.debug("parsed %r into %d segments: %s", self._pattern, len(segments), " ".join(map(str, segments)))
        return tuple(segments)

    def _segment(self):
        token = self._peek()
        match token.kind:
            case TokenKind.IDENTIFIER:
                self._advance()
                return Literal(token.value, position=token.position)
            case TokenKind.END_OF_OPTIONS:
                self._advance()
                return Literal(SEPARATOR, position=token.position)
            case TokenKind.LEFT_BRACE:
                return self._parameter()
            case TokenKind.LONG_OPTION | TokenKind.SHORT_OPTION:
                return self._option()
            case _:
                raise self._unexpected(token, "a literal, a parameter or an option")

    def _parameter(self):
        """
        parse "{...}" into a Parameter or a CatchAll.
        """
        brace = self._consume(TokenKind.LEFT_BRACE, "'{'")
        greedy = self._match(TokenKind.ASTERISK) is not None

        if self._check(TokenKind.END):
            raise self._unterminated(brace)
        name = self._consume(TokenKind.IDENTIFIER, "a parameter name")

        optional = self._match(TokenKind.QUESTION)

        type = None
        if self._match(TokenKind.COLON):
            type = self._consume(TokenKind.IDENTIFIER, "a type name after ':'").value
            # nullable shorthand: {port:int?}
            optional = optional or self._match(TokenKind.QUESTION)

        if greedy and optional:
            raise self._fault(
                InvalidModifierCombinationError,
                "catch-all {*%s} at %s character cannot be optional" % (name.value, ordinal(brace.position + 1)),
                optional,
                title="invalid modifier combination",
                code=FaultCode.INVALID_MODIFIER_COMBINATION,
                hint="remove '?': a catch-all already accepts zero values",
            )

        descr = None
        if self._match(TokenKind.PIPE):
            if description := self._match(TokenKind.DESCRIPTION):
                descr = description.value

        if self._check(TokenKind.END):
            raise self._unterminated(brace)
        self._consume(TokenKind.RIGHT_BRACE, "'}'")

        if greedy:
            return CatchAll(name.value, type, descr, position=brace.position)
        return Parameter(name.value, type, optional is not None, descr, position=brace.position)

    def _unterminated(self, brace):
        return self._fault(
            UnterminatedParameterError,
            "parameter opened at %s character is never closed" % ordinal(brace.position + 1),
            brace,
            title="unterminated parameter",
            code=FaultCode.UNTERMINATED_PARAMETER,
            hint="add the closing '}'",
        )

    def _short(self, token):
        if len(token.value) != 1:
            raise self._fault(
                InvalidOptionFormatError,
                "short option '-%s' at %s character must be a single character" % (token.value, ordinal(token.position + 1)),
                token,
                title="invalid option format",
                code=FaultCode.INVALID_OPTION_FORMAT,
                hint="use a long form for names (for example: --%s)" % token.value,
            )
        return token.value

    def _option(self):
        token = self._advance()
        long = short = None

        if token.kind is TokenKind.LONG_OPTION:
            long = token.value
            if self._match(TokenKind.COMMA):
                short = self._short(self._consume(TokenKind.SHORT_OPTION, "a short form after ','"))
        else:
            short = self._short(token)

        optional = self._match(TokenKind.QUESTION) is not None

        descr = None
        if self._match(TokenKind.PIPE):
            if description := self._match(TokenKind.DESCRIPTION):
                descr = description.value

        parameter = None
        if self._check(TokenKind.LEFT_BRACE):
            parameter = self._parameter()
            if isinstance(parameter, CatchAll):
                raise self._fault(
                    CatchAllOptionValueError,
                    "option %r at %s character cannot take a catch-all value" % (token.value, ordinal(token.position + 1)),
                    token,
                    title="catch-all option value",
                    code=FaultCode.CATCH_ALL_OPTION_VALUE,
                    hint="use a repeated option instead (for example: {%s}*)" % parameter.name,
                    position=parameter.position,
                    length=self._tokens[self._index - 1].end - parameter.position,
                )

        repeated = self._match(TokenKind.ASTERISK) is not None

        return Option(long, short, parameter, optional, repeated, descr, position=token.position)


def parse(pattern, /):
    """
    tokenize and parse a pattern into a tuple of segments (no semantic validation).
    """
    return Parser(pattern).parse()


__all__ = (
    "Parser",
    "parse",
)
