"""
Configuration layer tests (Parser builder, Configuration, invoke()).

Conventions
- Test method names follow CamelCase per project convention.
- sys.argv and the stderr console are patched, never touched.
"""
import io
import sys
import unittest
from unittest import TestCase, mock

from rich.console import Console

from argot import (
    Argument,
    CollidingNameWarning,
    Command,
    Configuration,
    ErrorCode,
    Flag,
    ParseFailure,
    ParseResult,
    Parser,
)


def _parser(*options, **kwargs):
    return Parser(*options, **kwargs).command(
        "build", "b",
        flags=[Flag("verbose", "v")],
        arguments=[Argument("out", "o", required=True)],
    )


class TestParser(TestCase):

    def testBuildsConfiguration(self):
        configuration = _parser("tool").set_global_command("build").build()
        self.assertIsInstance(configuration, Configuration)
        self.assertEqual(configuration.program, "tool")
        self.assertEqual([command.longname for command in configuration.commands], ["build"])
        self.assertEqual(configuration.global_command.longname, "build")

    def testCommandsIsSnapshot(self):
        parser = _parser()
        commands = parser.commands
        parser.command("clean")
        self.assertEqual(len(commands), 1)
        self.assertEqual(len(parser.commands), 2)

    def testAddCommandTypeChecked(self):
        with self.assertRaises(TypeError):
            Parser().add_command("build")

    def testGlobalCommandChecked(self):
        with self.assertRaises(ValueError):
            Parser().set_global_command("")
        with self.assertRaises(TypeError):
            Parser().set_global_command(1)

    def testBuildIsRepeatable(self):
        parser = _parser()
        first = parser.build()
        parser.command("clean")
        self.assertEqual(len(first.commands), 1)
        self.assertEqual(len(parser.build().commands), 2)


class TestConfiguration(TestCase):

    def testDefaults(self):
        configuration = Configuration()
        self.assertEqual(configuration.commands, ())
        self.assertIsNone(configuration.fallback)
        self.assertIsNone(configuration.program)
        self.assertIsNone(configuration.global_command)
        self.assertFalse(configuration.shell)
        self.assertFalse(configuration.fancy)
        self.assertTrue(configuration.colorful)

    def testInlineGlobalCommand(self):
        status = Command("status")
        self.assertIs(Configuration((), status).global_command, status)

    def testGlobalCommandResolvedByName(self):
        build = Command("build")
        self.assertIs(Configuration([build], "build").global_command, build)
        self.assertIsNone(Configuration([build], "clean").global_command)

    def testReadOnly(self):
        configuration = Configuration()
        with self.assertRaises(AttributeError):
            configuration.shell = True

    def testCommandsTypeChecked(self):
        with self.assertRaises(TypeError):
            Configuration("build")
        with self.assertRaises(TypeError):
            Configuration([Flag("verbose")])
        with self.assertRaises(TypeError):
            Configuration(program=1)

    def testDuplicateCommandWarns(self):
        with self.assertWarns(CollidingNameWarning):
            Configuration([Command("build"), Command("build")])


class TestInvoke(TestCase):

    def setUp(self):
        self.configuration = _parser("tool").build()

    def testString(self):
        result = self.configuration.invoke("build -v --out=bin")
        self.assertIsInstance(result, ParseResult)
        self.assertEqual(result.program, "tool")
        self.assertEqual(result.command.value("out"), "bin")

    def testStringIsShellSplit(self):
        result = self.configuration.invoke('build --out="my dir"')
        self.assertEqual(result.command.value("out"), "my dir")

    def testIterable(self):
        result = self.configuration.invoke(iter(["b", "-o", "bin"]))
        self.assertEqual(result.command.name, "build")

    def testSysArgv(self):
        with mock.patch.object(sys, "argv", ["/usr/bin/tool", "build", "--out=bin"]):
            result = _parser().build().invoke()
        self.assertEqual(result.program, "/usr/bin/tool")
        self.assertEqual(result.command.value("out"), "bin")

    def testProgramFallsBackToArgv(self):
        with mock.patch.object(sys, "argv", ["/usr/bin/tool"]):
            result = _parser().build().invoke(["build", "--out=bin"])
        self.assertEqual(result.program, "tool")

    def testBadPrompt(self):
        with self.assertRaises(TypeError):
            self.configuration.invoke(5)
        with self.assertRaises(TypeError):
            self.configuration.invoke(["build", 1])

    def testFailureRaises(self):
        with self.assertRaises(ParseFailure) as context:
            self.configuration.invoke(["build", "-v"])
        failure = context.exception
        self.assertEqual(failure.error.code, ErrorCode.REQUIRED_ARGUMENT)
        self.assertEqual(failure.options["program"], "tool")
        self.assertEqual(str(failure), "required argument 'out' was never given")

    def testShellFailureExits(self):
        console = Console(file=io.StringIO(), width=120, color_system=None)
        configuration = _parser("tool", shell=True).build()
        with mock.patch("argot.faults.console", console):
            with self.assertRaises(SystemExit) as context:
                configuration.invoke("build --verbose=yes")
        self.assertEqual(context.exception.code, 1)
        output = console.file.getvalue()
        self.assertIn("[ tool — 11122 | Flag With Value ]", output)
        self.assertIn("flag 'verbose' at second position cannot have an inline value", output)


if __name__ == "__main__":
    unittest.main()
