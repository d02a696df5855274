"""
Parsing engine behavioral tests.

Scope
- Command resolution: explicit names, shortnames, global command fallback.
- Option classification: long, short, bundled and positional tokens.
- Registration: occurrence bounds, validators, last value wins.
- Required-argument validation.
- Error locality: every failure points at the index of the offending token.

Conventions
- Test method names follow CamelCase per project convention.
- Tokens always start with the program name, as sys.argv does.
"""
import unittest
from unittest import TestCase

from argot import (
    Argument,
    Command,
    Configuration,
    ErrorCode,
    ErrorType,
    Flag,
    ParseError,
    ParsedArgument,
    ParsedCommand,
    ParsedFlag,
)
from argot.parser import Cursor, Delta, Tally, parse_short
from argot.utils import Unset


def _build():
    return Command(
        "build", "b",
        flags=[Flag("verbose", "v"), Flag("quiet", "q", max=1), Flag("all", "a")],
        arguments=[
            Argument("out", "o", required=True),
            Argument("jobs", "j", validator=str.isdigit),
        ],
    )


class TestExample(TestCase):
    """The reference example: build -v --out=bin."""

    def setUp(self):
        self.configuration = Configuration([
            Command("build", flags=[Flag("verbose", "v")], arguments=[Argument("out", "o", required=True)])
        ])

    def testSuccess(self):
        outcome = self.configuration.parse(["prog", "build", "-v", "--out=bin"])
        self.assertTrue(outcome)
        result = outcome.value
        self.assertEqual(result.program, "prog")
        self.assertEqual(result.command.name, "build")
        self.assertEqual(
            result.command.parameters,
            (ParsedFlag("verbose", 1), ParsedArgument("out", "bin"))
        )
        self.assertEqual(result.parameters, ())

    def testSuccessAsDict(self):
        result = self.configuration.parse(["prog", "build", "-v", "--out=bin"]).value
        self.assertEqual(result.as_dict(), {
            "program": "prog",
            "command": {
                "name": "build",
                "parameters": [
                    {"kind": "flag", "name": "verbose", "occurrence": 1},
                    {"kind": "argument", "name": "out", "value": "bin"},
                ],
            },
            "parameters": [],
        })

    def testRequiredArgumentMissing(self):
        outcome = self.configuration.parse(["prog", "build", "-v"])
        self.assertFalse(outcome)
        self.assertEqual(
            outcome.error,
            ParseError("out", None, ErrorType.ARGUMENT, ErrorCode.REQUIRED_ARGUMENT, 2)
        )
        self.assertEqual(outcome.error.as_dict(), {
            "argument": "out",
            "value": None,
            "type": "argument",
            "code": "required_argument",
            "position": 2,
        })


class TestResolution(TestCase):

    def testLongnameSelectsCommand(self):
        configuration = Configuration([_build(), Command("clean")])
        self.assertEqual(configuration.parse(["prog", "clean"]).value.command.name, "clean")

    def testShortnameSelectsCommand(self):
        configuration = Configuration([_build()])
        result = configuration.parse(["prog", "b", "--out=bin"]).value
        self.assertEqual(result.command.name, "build")

    def testShortnameComparedByCodepoint(self):
        configuration = Configuration([Command("éclair", "é")])
        self.assertEqual(configuration.parse(["prog", "é"]).value.command.name, "éclair")

    def testShortnameWinsOverOneCodepointLongname(self):
        configuration = Configuration([Command("b"), _build()])
        result = configuration.parse(["prog", "b", "--out=bin"]).value
        self.assertEqual(result.command.name, "build")

    def testOneCodepointLongname(self):
        configuration = Configuration([Command("x")])
        self.assertEqual(configuration.parse(["prog", "x"]).value.command.name, "x")

    def testLongnameIsExact(self):
        configuration = Configuration([_build()])
        outcome = configuration.parse(["prog", "buil"])
        self.assertEqual(outcome.error.code, ErrorCode.NO_GLOBAL_COMMAND)

    def testEmptyStreamUsesGlobalCommand(self):
        configuration = Configuration([Command("status")], "status")
        result = configuration.parse(["prog"]).value
        self.assertEqual(result.command, ParsedCommand("status"))

    def testLeadingDashUsesGlobalCommand(self):
        configuration = Configuration([_build()], "build")
        result = configuration.parse(["prog", "-v", "--out=bin"]).value
        self.assertEqual(result.command.name, "build")
        self.assertEqual(result.command.count("verbose"), 1)

    def testUnknownTokenFallsBackToGlobalCommand(self):
        run = Command("run", arguments=[Argument("file", max=1)])
        configuration = Configuration([_build()], run)
        result = configuration.parse(["prog", "script.py"]).value
        self.assertEqual(result.command.name, "run")
        self.assertEqual(result.command.parameters, (ParsedArgument("file", "script.py"),))

    def testNoGlobalCommand(self):
        configuration = Configuration([_build()])
        expected = ParseError("", None, ErrorType.COMMAND, ErrorCode.NO_GLOBAL_COMMAND, 1)
        for tokens in (["prog"], ["prog", "-v"], ["prog", "deploy"]):
            with self.subTest(tokens=tokens):
                self.assertEqual(configuration.parse(tokens).error, expected)

    def testDanglingGlobalCommandName(self):
        configuration = Configuration([_build()], "deploy")
        self.assertEqual(configuration.parse(["prog"]).error.code, ErrorCode.NO_GLOBAL_COMMAND)

    def testMalformedCommandToken(self):
        configuration = Configuration([_build()], "build")
        self.assertEqual(
            configuration.parse(["prog", "\udcff", "--out=bin"]).error,
            ParseError("\udcff", None, ErrorType.NONE, ErrorCode.BAD_STRING, 1)
        )

    def testEmptyCommandToken(self):
        configuration = Configuration([_build()], "build")
        self.assertEqual(
            configuration.parse(["prog", ""]).error,
            ParseError("", None, ErrorType.NONE, ErrorCode.BAD_STRING, 1)
        )


class TestLongOptions(TestCase):

    def setUp(self):
        self.configuration = Configuration([_build()])

    def parse(self, *tokens):
        return self.configuration.parse(["prog", "build", *tokens])

    def testFlagAndArgument(self):
        command = self.parse("--verbose", "--out=bin").value.command
        self.assertEqual(command.count("verbose"), 1)
        self.assertEqual(command.value("out"), "bin")

    def testValueSplitsAtFirstEqual(self):
        self.assertEqual(self.parse("--out=a=b").value.command.value("out"), "a=b")

    def testEmptyValueIsAValue(self):
        self.assertEqual(self.parse("--out=").value.command.value("out"), "")

    def testFlagWithValue(self):
        self.assertEqual(
            self.parse("-v", "--verbose=1").error,
            ParseError("verbose", "1", ErrorType.FLAG, ErrorCode.FLAG_WITH_VALUE, 3)
        )

    def testMissingValue(self):
        self.assertEqual(
            self.parse("--out").error,
            ParseError("out", None, ErrorType.ARGUMENT, ErrorCode.MISSING_VALUE, 2)
        )

    def testUnknownParameter(self):
        self.assertEqual(
            self.parse("--out=bin", "--nope").error,
            ParseError("nope", None, ErrorType.ARGUMENT, ErrorCode.UNKNOWN_PARAMETER, 3)
        )

    def testDoubleDashAloneIsUnknown(self):
        error = self.parse("--").error
        self.assertEqual((error.code, error.argument, error.position), (ErrorCode.UNKNOWN_PARAMETER, "", 2))

    def testFlagLookupComesFirst(self):
        with self.assertWarns(Warning):
            command = Command("build", flags=[Flag("out")], arguments=[Argument("out")])
        outcome = Configuration([command]).parse(["prog", "build", "--out=bin"])
        self.assertEqual(outcome.error.code, ErrorCode.FLAG_WITH_VALUE)

    def testRoundTripOnNames(self):
        command = _build()
        for flag in command.flags:
            with self.subTest(flag=flag.longname):
                for token in ("--" + flag.longname, "-" + chr(flag.shortname)):
                    parsed = self.parse(token, "--out=bin").value.command
                    self.assertEqual(parsed.parameters[0], ParsedFlag(flag.longname, 1))
        for argument in command.arguments:
            required = () if argument.required else ("--out=bin",)
            with self.subTest(argument=argument.longname):
                for tokens in (("--%s=7" % argument.longname,), ("-" + chr(argument.shortname), "7")):
                    parsed = self.parse(*tokens, *required).value.command
                    self.assertIn(ParsedArgument(argument.longname, "7"), parsed.parameters)


class TestShortOptions(TestCase):

    def setUp(self):
        self.configuration = Configuration([_build()])

    def parse(self, *tokens):
        return self.configuration.parse(["prog", "build", *tokens])

    def testArgumentTakesNextToken(self):
        command = self.parse("-o", "bin").value.command
        self.assertEqual(command.parameters, (ParsedArgument("out", "bin"),))

    def testArgumentValueMayLookLikeAnOption(self):
        self.assertEqual(self.parse("-o", "-v").value.command.value("out"), "-v")

    def testMissingValue(self):
        self.assertEqual(
            self.parse("--out=bin", "-o").error,
            ParseError("o", None, ErrorType.ARGUMENT, ErrorCode.MISSING_VALUE, 3)
        )

    def testUnknownShortname(self):
        self.assertEqual(
            self.parse("-z").error,
            ParseError("z", None, ErrorType.ARGUMENT, ErrorCode.UNKNOWN_PARAMETER, 2)
        )

    def testBundleExpandsFlags(self):
        command = self.parse("-vav", "--out=bin").value.command
        self.assertEqual(command.parameters[:2], (ParsedFlag("verbose", 2), ParsedFlag("all", 1)))

    def testRepeatedFlagCounts(self):
        self.assertEqual(self.parse("-vvv", "--out=bin").value.command.count("verbose"), 3)

    def testBundleRejectsUnknownShortname(self):
        self.assertEqual(
            self.parse("--out=bin", "-vaX").error,
            ParseError("vaX", None, ErrorType.FLAG, ErrorCode.UNKNOWN_PARAMETER, 3)
        )

    def testBundleNeverMatchesArguments(self):
        self.assertEqual(self.parse("-vo", "bin").error.code, ErrorCode.UNKNOWN_PARAMETER)

    def testLoneDashIsBadString(self):
        self.assertEqual(
            self.parse("-").error,
            ParseError("", None, ErrorType.FLAG, ErrorCode.BAD_STRING, 2)
        )

    def testMalformedShortname(self):
        self.assertEqual(
            self.parse("-\udcff").error,
            ParseError("\udcff", None, ErrorType.FLAG, ErrorCode.BAD_STRING, 2)
        )

    def testMalformedInsideBundle(self):
        self.assertEqual(
            self.parse("-v\udcff").error,
            ParseError("v\udcff", None, ErrorType.FLAG, ErrorCode.BAD_STRING, 2)
        )

    def testTripleDashIsSyntaxError(self):
        self.assertEqual(
            self.parse("-v", "---x", "--out=bin").error,
            ParseError("---x", None, ErrorType.NONE, ErrorCode.SYNTAX_ERROR, 3)
        )

    def testFailingBundleCommitsNothing(self):
        command = _build()
        tally = Tally(command)
        outcome = parse_short("-vaX", command, Cursor(["-vaX"]))
        self.assertFalse(outcome)
        self.assertEqual(tally.parsed().parameters, ())

    def testBundleDeltaCommitsAtOnce(self):
        command = _build()
        tally = Tally(command)
        delta = parse_short("-va", command, Cursor(["-va"])).value
        self.assertEqual(len(delta), 2)
        self.assertTrue(tally.commit(delta))
        self.assertEqual(tally.parsed().parameters, (ParsedFlag("verbose"), ParsedFlag("all")))


class TestRegistration(TestCase):

    def setUp(self):
        self.configuration = Configuration([
            _build(),
            Command("copy", arguments=[Argument("src", max=1), Argument("dst", max=1)]),
            Command("clean"),
        ])

    def testFlagAboveMaximum(self):
        self.assertEqual(
            self.configuration.parse(["prog", "build", "-q", "--out=bin", "-q"]).error,
            ParseError("quiet", None, ErrorType.FLAG, ErrorCode.OUT_OF_BOUND, 4)
        )

    def testFlagAboveMaximumInsideBundle(self):
        self.assertEqual(
            self.configuration.parse(["prog", "build", "-qq"]).error,
            ParseError("quiet", None, ErrorType.FLAG, ErrorCode.OUT_OF_BOUND, 2)
        )

    def testInvalidValue(self):
        self.assertEqual(
            self.configuration.parse(["prog", "build", "--out=bin", "--jobs=many"]).error,
            ParseError("jobs", "many", ErrorType.ARGUMENT, ErrorCode.INVALID_VALUE, 3)
        )

    def testInvalidValuePointsAtValueToken(self):
        error = self.configuration.parse(["prog", "build", "--out=bin", "-j", "many"]).error
        self.assertEqual((error.code, error.position), (ErrorCode.INVALID_VALUE, 4))

    def testValidatorExceptionBecomesCause(self):
        def port(value):
            if not 0 < int(value) < 65536:
                raise ValueError("port out of range")
            return True

        command = Command("serve", arguments=[Argument("port", validator=port)])
        error = Configuration([command]).parse(["prog", "serve", "--port=http"]).error
        self.assertEqual(error.code, ErrorCode.INVALID_VALUE)
        self.assertIsInstance(error.cause, ValueError)

    def testLastValueWins(self):
        command = self.configuration.parse(["prog", "build", "--out=a", "-v", "-o", "b"]).value.command
        self.assertEqual(command.parameters, (ParsedArgument("out", "b"), ParsedFlag("verbose")))

    def testPositionalInputsFillArgumentsInOrder(self):
        command = self.configuration.parse(["prog", "copy", "a", "b"]).value.command
        self.assertEqual(command.parameters, (ParsedArgument("src", "a"), ParsedArgument("dst", "b")))

    def testPositionalInputAfterArgumentsAreFull(self):
        self.assertEqual(
            self.configuration.parse(["prog", "copy", "a", "b", "c"]).error,
            ParseError("dst", "c", ErrorType.ARGUMENT, ErrorCode.OUT_OF_BOUND, 4)
        )

    def testPositionalInputWithoutArguments(self):
        self.assertEqual(
            self.configuration.parse(["prog", "clean", "x"]).error,
            ParseError("x", None, ErrorType.ARGUMENT, ErrorCode.UNKNOWN_PARAMETER, 2)
        )

    def testPositionalInputSatisfiesRequired(self):
        command = self.configuration.parse(["prog", "build", "bin"]).value.command
        self.assertEqual(command.value("out"), "bin")


class TestRequired(TestCase):

    def setUp(self):
        self.configuration = Configuration([
            Command("deploy", "d", arguments=[
                Argument("env", "e", required=True),
                Argument("tag", "t", required=True),
                Argument("note"),
            ])
        ])

    def testFirstMissingInDeclarationOrder(self):
        self.assertEqual(self.configuration.parse(["prog", "deploy"]).error.argument, "env")
        self.assertEqual(self.configuration.parse(["prog", "deploy", "-e", "prod"]).error.argument, "tag")

    def testSatisfiedByEitherForm(self):
        for tokens in (["--env=prod", "--tag=v1"], ["-e", "prod", "-t", "v1"], ["-t", "v1", "--env=prod"]):
            with self.subTest(tokens=tokens):
                self.assertTrue(self.configuration.parse(["prog", "deploy", *tokens]))

    def testPositionIsStreamStart(self):
        self.assertEqual(self.configuration.parse(["prog", "d", "--tag=v1"]).error.position, 2)


class TestInput(TestCase):

    def setUp(self):
        self.configuration = Configuration([_build()])

    def testSingleStringRejected(self):
        with self.assertRaises(TypeError):
            self.configuration.parse("prog build")

    def testProgramTokenRequired(self):
        with self.assertRaises(ValueError):
            self.configuration.parse([])

    def testNonStringTokenRejected(self):
        with self.assertRaises(TypeError):
            self.configuration.parse(["prog", "build", 1])

    def testParseIsPure(self):
        tokens = ["prog", "build", "-vv", "--out=bin"]
        self.assertEqual(self.configuration.parse(tokens), self.configuration.parse(tuple(tokens)))


class TestCursor(TestCase):

    def testTakeAtEndDoesNotAdvance(self):
        cursor = Cursor(["-o"])
        self.assertIs(cursor.take(), Unset)
        self.assertEqual(cursor.index, 0)

    def testTakeAdvances(self):
        cursor = Cursor(["-o", "bin"])
        self.assertEqual(cursor.take(), "bin")
        self.assertEqual(cursor.index, 1)
        self.assertFalse(cursor.advance())

    def testDeltaInput(self):
        self.assertEqual(Delta.input("x"), Delta.of(Unset, "x"))


if __name__ == "__main__":
    unittest.main()
