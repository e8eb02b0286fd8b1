"""
Helmsman pattern lexer.

Turns a route pattern string into a flat token stream in a single
left-to-right scan (no backtracking).

Tokens
- IDENTIFIER      bare literal runs and names ("deploy", "dry-run", "env")
- LEFT_BRACE      "{"
- RIGHT_BRACE     "}"
- COLON           ":"  type-constraint separator
- QUESTION        "?"  optionality marker
- ASTERISK        "*"  catch-all marker, or repeated-option marker after "}"
- COMMA           ","  separator between an option's long and short form
- PIPE            "|"  start of a description (value carries the raw text)
- DESCRIPTION     raw description text following a PIPE
- LONG_OPTION     "--name" (value carries "name")
- SHORT_OPTION    "-n"     (value carries "n")
- END_OF_OPTIONS  the standalone "--" segment
- END             end of input (always the last token)

Whitespace separates segments and is otherwise ignored.

Failures raise a LexError subclass carrying the pattern and the 0-based
character offset of the offending span:
- InvalidCharacterError    any character outside the grammar
- AngleBracketParameterError  "<name>" used instead of "{name}"
- MalformedIdentifierError "test-", "a--b" (dangling or doubled inner dash)
"""
import logging
from enum import StrEnum
from typing import NamedTuple

from .faults import *
from .utils import ordinal

logger = logging.getLogger("helmsman.lexer")


class TokenKind(StrEnum):
    IDENTIFIER = "identifier"
    LEFT_BRACE = "{"
    RIGHT_BRACE = "}"
    COLON = ":"
    QUESTION = "?"
    ASTERISK = "*"
    COMMA = ","
    PIPE = "|"
    DESCRIPTION = "description"
    LONG_OPTION = "long-option"
    SHORT_OPTION = "short-option"
    END_OF_OPTIONS = "--"
    END = "end"


class Token(NamedTuple):
    kind: TokenKind
    value: str
    position: int
    length: int

    @property
    def end(self):
        return self.position + self.length

    def __str__(self):
        match self.kind:
            case TokenKind.IDENTIFIER | TokenKind.DESCRIPTION:
                return "%s(%r)" % (self.kind, self.value)
            case TokenKind.LONG_OPTION:
                return "--" + self.value
            case TokenKind.SHORT_OPTION:
                return "-" + self.value
            case _:
                return str(self.kind)


_PUNCTUATION = {
    "{": TokenKind.LEFT_BRACE,
    "}": TokenKind.RIGHT_BRACE,
    ":": TokenKind.COLON,
    "?": TokenKind.QUESTION,
    "*": TokenKind.ASTERISK,
    ",": TokenKind.COMMA,
}


def _word(char):
    return char.isalnum() or char == "_"


class Lexer:
    """
    Single-pass scanner over one pattern.

    The lexer tracks brace depth only to decide where a description ends:
    inside braces a description runs to the closing "}", outside braces it
    runs until whitespace followed by "-" or "{" (the start of the next
    option or parameter), or the end of input.
    """

    __slots__ = ("_pattern", "_index", "_depth", "_tokens")

    def __init__(self, pattern, /):
        if not isinstance(pattern, str):
            raise TypeError("pattern must be a string")
        self._pattern = pattern
        self._index = 0
        self._depth = 0
        self._tokens = []

    def _fault(self, cls, message, position, length, /, **options):
        return cls(
            message,
            pattern=self._pattern,
            position=position,
            length=max(length, 1),
            **options
        )

    def _peek(self, offset=0):
        index = self._index + offset
        return self._pattern[index] if index < len(self._pattern) else ""

    def _add(self, kind, value, start):
        self._tokens.append(Token(kind, value, start, self._index - start))

    def tokenize(self):
        self._index = 0
        self._depth = 0
        self._tokens = []

        while self._index < len(self._pattern):
            self._scan()

        self._tokens.append(Token(TokenKind.END, "", len(self._pattern), 0))
        logger.debug("tokenized %r into %d tokens: %s", self._pattern, len(self._tokens), " | ".join(map(str, self._tokens)))
        return self._tokens

    def _scan(self):
        start = self._index
        char = self._pattern[start]

        if char.isspace():
            self._index += 1
            return

        if char in _PUNCTUATION:
            self._index += 1
            self._depth += {"{": 1, "}": -1}.get(char, 0)
            return self._add(_PUNCTUATION[char], char, start)

        if char == "|":
            self._index += 1
            self._add(TokenKind.PIPE, char, start)
            return self._scan_description()

        if char == "-":
            return self._scan_dashes()

        if char == "<":
            return self._scan_angle_bracket()

        if _word(char):
            return self._add(TokenKind.IDENTIFIER, self._scan_identifier(), start)

        raise self._fault(
            InvalidCharacterError,
            "invalid character %r at %s character of the pattern" % (char, ordinal(start + 1)),
            start,
            1,
            title="invalid character",
            code=FaultCode.INVALID_CHARACTER,
            hint="route patterns only use words, '{', '}', ':', '?', '*', ',', '|' and option dashes",
        )

    def _scan_identifier(self):
        """
        scan a word with optional single inner dashes ("no-edit").

        a trailing dash ("test-") or a doubled inner dash ("a--b") is malformed.
        """
        start = self._index
        while self._index < len(self._pattern):
            char = self._peek()
            if _word(char):
                self._index += 1
                continue
            if char != "-":
                break
            following = self._peek(1)
            if _word(following):
                self._index += 1
                continue
            # swallow the rest of the malformed run for a precise span
            while self._peek() == "-" or _word(self._peek()):
                self._index += 1
            text = self._pattern[start:self._index]
            raise self._fault(
                MalformedIdentifierError,
                "malformed name %r at %s character of the pattern" % (text, ordinal(start + 1)),
                start,
                self._index - start,
                title="malformed name",
                code=FaultCode.MALFORMED_IDENTIFIER,
                hint="use single dashes between words (for example: %s)" % "-".join(filter(None, text.split("-"))),
            )
        return self._pattern[start:self._index]

    def _scan_dashes(self):
        start = self._index

        if self._peek(1) == "-":
            self._index += 2
            # standalone "--" is the end-of-options marker
            if not self._peek() or self._peek().isspace():
                return self._add(TokenKind.END_OF_OPTIONS, "--", start)
            if not _word(self._peek()):
                raise self._fault(
                    InvalidCharacterError,
                    "invalid character %r after '--' at %s character of the pattern" % (self._peek(), ordinal(self._index + 1)),
                    self._index,
                    1,
                    title="invalid character",
                    code=FaultCode.INVALID_CHARACTER,
                    hint="option names start with a letter (for example: --force)",
                )
            name = self._scan_identifier()
            return self._add(TokenKind.LONG_OPTION, name, start)

        self._index += 1
        if not _word(self._peek()):
            raise self._fault(
                InvalidCharacterError,
                "dangling '-' at %s character of the pattern" % ordinal(start + 1),
                start,
                1,
                title="invalid character",
                code=FaultCode.INVALID_CHARACTER,
                hint="short options are a single dash and one character (for example: -f)",
            )
        name = self._scan_identifier()
        return self._add(TokenKind.SHORT_OPTION, name, start)

    def _scan_angle_bracket(self):
        start = self._index
        end = self._pattern.find(">", start)
        end = len(self._pattern) if end < 0 else end + 1
        self._index = end
        text = self._pattern[start:end]
        name = text.strip("<>") or "name"
        raise self._fault(
            AngleBracketParameterError,
            "parameter %r at %s character uses angle brackets" % (text, ordinal(start + 1)),
            start,
            end - start,
            title="invalid parameter syntax",
            code=FaultCode.ANGLE_BRACKET_PARAMETER,
            hint="declare parameters with braces (for example: {%s})" % name,
            suggestion="{%s}" % name,
        )

    def _scan_description(self):
        start = self._index
        if self._depth > 0:
            end = self._pattern.find("}", start)
            end = len(self._pattern) if end < 0 else end
        else:
            end = start
            while end < len(self._pattern):
                if self._pattern[end].isspace():
                    following = self._pattern[end:].lstrip()
                    if not following or following[0] in "-{":
                        break
                end += 1
        self._index = end
        text = self._pattern[start:end].strip()
        if text:
            self._tokens.append(Token(TokenKind.DESCRIPTION, text, start, end - start))


def tokenize(pattern, /):
    """
    tokenize a pattern into a list of Token, always terminated by an END token.

    raises
    - LexError (InvalidCharacterError, AngleBracketParameterError,
      MalformedIdentifierError) with the offending offset.
    """
    return Lexer(pattern).tokenize()


__all__ = (
    "TokenKind",
    "Token",
    "Lexer",
    "tokenize",
)
