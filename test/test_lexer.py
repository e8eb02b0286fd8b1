"""
Lexer behavioral tests (token stream, descriptions, lex faults).

Conventions
- Test method names follow CamelCase per project convention.
- Token kinds are compared without the trailing END token unless stated.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import tokenize, TokenKind
from helmsman.faults import (
    InvalidCharacterError,
    AngleBracketParameterError,
    MalformedIdentifierError,
    FaultCode,
)


def kinds(pattern):
    return [token.kind for token in tokenize(pattern)][:-1]


class TestLexerTokens(TestCase):
    """Token stream produced for valid patterns."""

    def testLiteralsAndParameter(self):
        self.assertEqual(kinds("greet {name}"), [
            TokenKind.IDENTIFIER,
            TokenKind.LEFT_BRACE,
            TokenKind.IDENTIFIER,
            TokenKind.RIGHT_BRACE,
        ])

    def testEndTokenAlwaysLast(self):
        tokens = tokenize("")
        self.assertEqual(len(tokens), 1)
        self.assertIs(tokens[0].kind, TokenKind.END)

    def testTypedOptionalParameter(self):
        self.assertEqual(kinds("{port?:int}"), [
            TokenKind.LEFT_BRACE,
            TokenKind.IDENTIFIER,
            TokenKind.QUESTION,
            TokenKind.COLON,
            TokenKind.IDENTIFIER,
            TokenKind.RIGHT_BRACE,
        ])

    def testCatchAll(self):
        self.assertEqual(kinds("{*args}")[:2], [TokenKind.LEFT_BRACE, TokenKind.ASTERISK])

    def testLongAndShortOption(self):
        tokens = tokenize("--force,-f")
        self.assertEqual([token.kind for token in tokens][:-1], [
            TokenKind.LONG_OPTION,
            TokenKind.COMMA,
            TokenKind.SHORT_OPTION,
        ])
        self.assertEqual(tokens[0].value, "force")
        self.assertEqual(tokens[2].value, "f")

    def testEndOfOptionsMarker(self):
        tokens = tokenize("run -- {*cmd}")
        self.assertIs(tokens[1].kind, TokenKind.END_OF_OPTIONS)
        self.assertEqual(tokens[1].position, 4)
        self.assertEqual(tokens[1].length, 2)

    def testTrailingEndOfOptionsMarker(self):
        self.assertEqual(kinds("run --"), [TokenKind.IDENTIFIER, TokenKind.END_OF_OPTIONS])

    def testRepeatedOptionMarker(self):
        self.assertEqual(kinds("--env {e}*")[-1], TokenKind.ASTERISK)

    def testCompoundIdentifiers(self):
        tokens = tokenize("git commit --no-edit dry-run")
        self.assertEqual(tokens[2].value, "no-edit")
        self.assertEqual(tokens[3].value, "dry-run")

    def testPositionsAreCharacterOffsets(self):
        tokens = tokenize("deploy {env}")
        self.assertEqual([token.position for token in tokens], [0, 7, 8, 11, 12])

    def testDescriptionInsideBraces(self):
        tokens = tokenize("{env|Target environment}")
        description = [token for token in tokens if token.kind is TokenKind.DESCRIPTION]
        self.assertEqual(len(description), 1)
        self.assertEqual(description[0].value, "Target environment")

    def testDescriptionAfterOptionStopsAtNextSegment(self):
        tokens = tokenize("--force,-f|Skip confirmation --mode {m}")
        description = [token for token in tokens if token.kind is TokenKind.DESCRIPTION]
        self.assertEqual(description[0].value, "Skip confirmation")
        self.assertIs(tokens[-2].kind, TokenKind.RIGHT_BRACE)


class TestLexerFaults(TestCase):
    """Lex faults carry the offending offset and a code."""

    def testInvalidCharacter(self):
        with self.assertRaises(InvalidCharacterError) as context:
            tokenize("greet @name")
        self.assertEqual(context.exception.position, 6)
        self.assertIs(context.exception.code, FaultCode.INVALID_CHARACTER)
        self.assertEqual(context.exception.pattern, "greet @name")

    def testAngleBracketParameter(self):
        with self.assertRaises(AngleBracketParameterError) as context:
            tokenize("greet <name>")
        self.assertEqual(context.exception.position, 6)
        self.assertEqual(context.exception.length, 6)
        self.assertEqual(context.exception.options["suggestion"], "{name}")

    def testTrailingDashIsMalformed(self):
        with self.assertRaises(MalformedIdentifierError) as context:
            tokenize("run test-")
        self.assertEqual(context.exception.position, 4)

    def testDoubledInnerDashIsMalformed(self):
        with self.assertRaises(MalformedIdentifierError):
            tokenize("a--b")

    def testDanglingDash(self):
        with self.assertRaises(InvalidCharacterError):
            tokenize("run - x")

    def testLexErrorIsNotPartial(self):
        # faults propagate; no token list is returned
        with self.assertRaises(InvalidCharacterError):
            tokenize("ok {x} $")

    def testPatternMustBeString(self):
        with self.assertRaises(TypeError):
            tokenize(None)


if __name__ == "__main__":
    unittest.main()
