"""
Compiler behavioral tests (specificity table, determinism, route metadata).

Conventions
- Test method names follow CamelCase per project convention.
- Specificity expectations are spelled out as sums of the public constants.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import (
    compile,
    score,
    CompiledRoute,
    Literal,
    Parameter,
    CatchAll,
    Option,
    LITERAL,
    REQUIRED_OPTION,
    OPTIONAL_OPTION,
    TYPED_PARAMETER,
    UNTYPED_PARAMETER,
    OPTIONAL_PARAMETER,
    CATCH_ALL,
)


class TestSpecificityTable(TestCase):
    """Each segment kind contributes a fixed weight."""

    def testWeights(self):
        self.assertEqual(
            (LITERAL, REQUIRED_OPTION, OPTIONAL_OPTION, TYPED_PARAMETER, UNTYPED_PARAMETER, OPTIONAL_PARAMETER, CATCH_ALL),
            (100, 50, 25, 20, 10, 5, 1),
        )

    def testSegmentScores(self):
        self.assertEqual(score(Literal("greet")), LITERAL)
        self.assertEqual(score(Parameter("x")), UNTYPED_PARAMETER)
        self.assertEqual(score(Parameter("x", "int")), TYPED_PARAMETER)
        self.assertEqual(score(Parameter("x", "int", True)), OPTIONAL_PARAMETER)
        self.assertEqual(score(CatchAll("rest")), CATCH_ALL)

    def testOptionScores(self):
        self.assertEqual(score(Option("force")), REQUIRED_OPTION)
        self.assertEqual(score(Option("force", optional=True)), OPTIONAL_OPTION)
        self.assertEqual(score(Option("mode", parameter=Parameter("m"))), REQUIRED_OPTION + UNTYPED_PARAMETER)
        self.assertEqual(score(Option("n", parameter=Parameter("n", "int"))), REQUIRED_OPTION + TYPED_PARAMETER)
        self.assertEqual(score(Option("c", parameter=Parameter("c", optional=True))), REQUIRED_OPTION + OPTIONAL_PARAMETER)

    def testScoreRejectsNonSegments(self):
        with self.assertRaises(TypeError):
            score("greet")

    def testSumOverSegments(self):
        self.assertEqual(compile("greet {name}").specificity, LITERAL + UNTYPED_PARAMETER)
        self.assertEqual(compile("exec {*args}").specificity, LITERAL + CATCH_ALL)
        self.assertEqual(
            compile("round {value:double} --mode {mode}").specificity,
            LITERAL + TYPED_PARAMETER + REQUIRED_OPTION + UNTYPED_PARAMETER,
        )
        self.assertEqual(compile("round {value:double}").specificity, LITERAL + TYPED_PARAMETER)

    def testSeparatorCountsAsLiteral(self):
        self.assertEqual(compile("run -- {*cmd}").specificity, 2 * LITERAL + CATCH_ALL)

    def testFlagsAndRepeatedOptionsScoreAsRequired(self):
        self.assertEqual(compile("--verbose").specificity, REQUIRED_OPTION)
        self.assertEqual(compile("--env {e}*").specificity, REQUIRED_OPTION + UNTYPED_PARAMETER)
        self.assertEqual(compile("--verbose?").specificity, OPTIONAL_OPTION)

    def testPositionDoesNotMatter(self):
        self.assertEqual(compile("deploy {env} --force").specificity, compile("--force deploy {env}").specificity)

    def testLiteralsOutrankParameters(self):
        self.assertGreater(compile("git status").specificity, compile("git {command}").specificity)
        self.assertGreater(compile("git {command}").specificity, compile("git {*args}").specificity)


class TestCompiledRoute(TestCase):
    """Derived metadata and immutability."""

    def testDeterminism(self):
        pattern = "deploy {env} {tag?} --force,-f --mode {m:int} {*rest}"
        first, second = compile(pattern), compile(pattern)
        self.assertEqual(first, second)
        self.assertEqual(hash(first), hash(second))
        self.assertEqual(first.specificity, second.specificity)

    def testOptionIndexByForm(self):
        route = compile("deploy {env} --force,-f --mode {m}")
        self.assertIs(route.options["--force"], route.options["-f"])
        self.assertEqual(route.options["--mode"].name, "m")
        self.assertNotIn("", route.options)
        self.assertNotIn("--", route.options)

    def testShortOnlyOptionIndex(self):
        route = compile("list -a")
        self.assertEqual(set(route.options), {"-a"})

    def testOptionIndexIsReadOnly(self):
        route = compile("deploy --force")
        with self.assertRaises(TypeError):
            route.options["--other"] = None

    def testRouteIsFrozen(self):
        route = compile("greet {name}")
        with self.assertRaises(AttributeError):
            route.specificity = 0

    def testMetadata(self):
        route = compile("docker run --env {e}* -- {*cmd}")
        self.assertEqual(route.catchall, "cmd")
        self.assertEqual(route.bindings, ("e", "cmd"))
        self.assertEqual(len(route.repeated), 1)
        self.assertEqual(route.separator, 3)
        self.assertEqual(route.literals, ("docker", "run"))

    def testUsageString(self):
        self.assertEqual(str(compile("deploy  {env}   --force,-f")), "deploy {env} --force,-f")

    def testShapeIgnoresNames(self):
        self.assertEqual(compile("greet {name}").shape, compile("greet {who}").shape)
        self.assertNotEqual(compile("greet {name}").shape, compile("greet {name:int}").shape)

    def testShapeIgnoresOptionOrder(self):
        self.assertEqual(compile("run --a --b").shape, compile("run --b --a").shape)

    def testBuildFromSegments(self):
        route = CompiledRoute.build("greet {name}", (Literal("greet"), Parameter("name")))
        self.assertEqual(route, compile("greet {name}"))


if __name__ == "__main__":
    unittest.main()
