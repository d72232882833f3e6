"""
Dispatcher behavioral tests (resolution outcomes, validation, fault reporting).

Scope
- Successful dispatch hands options, arguments and trailing positionals to the task.
- Dispatch faults are rendered on the error stream and returned as a falsy Failure.
- Faults raised by task bodies propagate; debugging mode raises dispatch faults.
- Default task swallow policy, dynamic names and the fallback.
- Unknown-option policy modes and class-level arguments.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured with rich consoles writing to io.StringIO.
"""

import io
import os
import unittest
from unittest import TestCase, mock

from rich.console import Console

from thane import CommandSet, Failure, Shell, invoke
from thane.faults import (
    ArityMismatchError,
    CommandFault,
    OptionTypeError,
    RequiredArgumentMissingError,
    RequiredOptionMissingError,
    UndefinedTaskError,
    UnknownOptionError,
)


def capture():
    def console():
        return Console(file=io.StringIO(), width=120, color_system=None, highlight=False)
    return Shell(console(), console(), colorful=False)


def output(shell, stderr=False):
    return (shell.stderr if stderr else shell.stdout).file.getvalue()


def application(**options):
    app = CommandSet("app", basename="app", **options)

    @app.task("hello NAME", "Say hello to NAME")
    @app.option("yell", type="boolean", aliases="-y")
    def hello(context, name):
        greeting = f"hello {name}"
        return greeting.upper() if context.options.get("yell") else greeting

    return app


class TestSuccessfulDispatch(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = application()

    def testReturnsTaskResult(self):
        self.assertEqual(self.app.dispatch(["hello", "bob"], shell=self.shell), "hello bob")

    def testOptionsReachContext(self):
        self.assertEqual(self.app.dispatch(["hello", "-y", "bob"], shell=self.shell), "HELLO BOB")
        self.assertEqual(self.app.dispatch(["hello", "bob", "--yell"], shell=self.shell), "HELLO BOB")

    def testContextCarriesEverything(self):
        @self.app.task("inspect [ARGS...]", "Return the context")
        def inspect(context, *args):
            return context

        context = self.app.dispatch(["inspect", "a", "b"], shell=self.shell)
        self.assertIs(context.commands, self.app)
        self.assertIs(context.shell, self.shell)
        self.assertEqual(context.task.name, "inspect")
        self.assertEqual(context.args, ["a", "b"])
        self.assertEqual(context.options, {})

    def testClassOptionsShared(self):
        self.app.class_option("verbose", type="boolean", aliases="-v")

        @self.app.task("status", "Show status")
        def status(context):
            return context.options["verbose"] if "verbose" in context.options else None

        self.assertIs(self.app.dispatch(["status", "-v"], shell=self.shell), True)
        self.assertEqual(self.app.dispatch(["hello", "bob", "--verbose"], shell=self.shell), "hello bob")

    def testStartSplitsStrings(self):
        self.assertEqual(self.app.start("hello 'big bob'", shell=self.shell), "hello big bob")

    def testInvokeHelper(self):
        self.assertEqual(invoke(self.app, ["hello", "x"], shell=self.shell), "hello x")
        with self.assertRaises(TypeError):
            invoke(object(), ["hello"])

    def testStartRejectsBadPrompt(self):
        with self.assertRaises(TypeError):
            self.app.start(42, shell=self.shell)
        with self.assertRaises(TypeError):
            self.app.start(["hello", 1], shell=self.shell)


class TestReportedFaults(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = application()

    def testUndefinedTaskReportsFailure(self):
        result = self.app.dispatch(["nope"], shell=self.shell)
        self.assertIsInstance(result, Failure)
        self.assertFalse(result)
        self.assertEqual(result.status, 1)
        self.assertIsInstance(result.fault, UndefinedTaskError)
        self.assertIn("could not find task 'nope'", output(self.shell, stderr=True))
        self.assertIn("Undefined Task", output(self.shell, stderr=True))
        self.assertEqual(output(self.shell), "")

    def testUndefinedTaskSuggestion(self):
        result = self.app.dispatch(["helo"], shell=self.shell)
        self.assertIn("did you mean 'hello'?", result.fault.options["hint"])
        self.assertIn("app help", output(self.shell, stderr=True))

    def testArityMismatch(self):
        for tokens in (["hello"], ["hello", "a", "b"]):
            with self.subTest(tokens=tokens):
                result = self.app.dispatch(tokens, shell=self.shell)
                self.assertIsInstance(result.fault, ArityMismatchError)
        self.assertIn("call as 'app hello NAME'", output(self.shell, stderr=True))

    def testTypeErrorInsideTaskPropagates(self):
        @self.app.task("broken", "Fails internally")
        def broken(context):
            return len(42)

        with self.assertRaises(TypeError):
            self.app.dispatch(["broken"], shell=self.shell)

    def testTaskExceptionsPropagate(self):
        @self.app.task("explode", "Raises")
        def explode(context):
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            self.app.dispatch(["explode"], shell=self.shell)

    def testRequiredOptionMissingBeforeExecution(self):
        calls = []

        @self.app.task("deploy", "Deploy")
        @self.app.option("target", type="required")
        def deploy(context):
            calls.append(context)

        result = self.app.dispatch(["deploy"], shell=self.shell)
        self.assertIsInstance(result.fault, RequiredOptionMissingError)
        self.assertEqual(calls, [])
        self.assertIn("call as 'app deploy --target=TARGET'", output(self.shell, stderr=True))

    def testMalformedOptionValue(self):
        @self.app.task("retry", "Retry")
        @self.app.option("times", type="numeric")
        def retry(context):
            return context.options["times"]

        self.assertEqual(self.app.dispatch(["retry", "--times", "2"], shell=self.shell), 2)
        result = self.app.dispatch(["retry", "--times", "two"], shell=self.shell)
        self.assertIsInstance(result.fault, OptionTypeError)

    def testFaultsAreLogged(self):
        with self.assertLogs("thane", level="INFO") as logs:
            self.app.dispatch(["nope"], shell=self.shell)
        self.assertTrue(any("UndefinedTaskError" in line for line in logs.output))

    def testMissingDefaultTask(self):
        self.app.default_task(None)
        result = self.app.dispatch([], shell=self.shell)
        self.assertIsInstance(result.fault, UndefinedTaskError)
        self.assertIn("no task given", result.fault.message)

    def testEmptyTaskNameIsUndefined(self):
        result = self.app.dispatch([""], shell=self.shell)
        self.assertIsInstance(result, Failure)
        self.assertIsInstance(result.fault, UndefinedTaskError)
        self.assertIn("could not find task ''", result.fault.message)

    def testDeclaredTaskWithoutImplementation(self):
        other = CommandSet("other")
        other.desc("deploy", "Deploy")
        other.register(lambda context: None, "deploy")
        self.app.registry.adopt(other.registry)

        result = self.app.dispatch(["deploy"], shell=self.shell)
        self.assertIsInstance(result.fault, UndefinedTaskError)
        self.assertIn("has nothing to run", result.fault.message)


class TestDebugging(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = application(debugging=True)

    def testArityCheckSkipped(self):
        with self.assertRaises(TypeError) as context:
            self.app.dispatch(["hello"], shell=self.shell)
        self.assertNotIsInstance(context.exception, CommandFault)

    def testFaultsRaised(self):
        with self.assertRaises(UndefinedTaskError):
            self.app.dispatch(["nope"], shell=self.shell)
        self.assertEqual(output(self.shell, stderr=True), "")

    def testEnvironmentTurnsDebuggingOn(self):
        with mock.patch.dict(os.environ, {"THANE_DEBUG": "1"}):
            self.assertTrue(CommandSet("app").debugging)
        with mock.patch.dict(os.environ, {"THANE_DEBUG": "0"}):
            self.assertFalse(CommandSet("app").debugging)


class TestDefaultTask(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = CommandSet("app", basename="app")

        @self.app.task("echo [WORDS...]", "Echo WORDS")
        def echo(context, *words):
            return words

    def testSwallowReceivesOriginalArgs(self):
        self.app.default_task("echo", args=True)
        self.assertEqual(self.app.dispatch(["world", "x"], shell=self.shell), ("world", "x"))

    def testWithoutSwallowUnknownNameFails(self):
        self.app.default_task("echo")
        result = self.app.dispatch(["world", "x"], shell=self.shell)
        self.assertIsInstance(result.fault, UndefinedTaskError)
        self.assertEqual(self.app.dispatch([], shell=self.shell), ())

    def testDefaultTaskGetter(self):
        self.assertEqual(self.app.default_task(), "help")
        self.app.default_task("echo")
        self.assertEqual(self.app.default_task(), "echo")


class TestDynamicDispatch(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = CommandSet("app", basename="app")

    def testPublicImplementationRunsDynamically(self):
        def extra(context, *args):
            return context.task, args

        with self.app.no_tasks():
            self.app.register(extra, public=True)

        task, args = self.app.dispatch(["extra", "a"], shell=self.shell)
        self.assertEqual(task.name, "extra")
        self.assertEqual(task.description, "A dynamically-generated task")
        self.assertEqual(args, ("a",))

    def testPrivateHelperIsUndefined(self):
        with self.app.no_tasks():
            self.app.register(lambda context: None, "helper")
        result = self.app.dispatch(["helper"], shell=self.shell)
        self.assertIsInstance(result.fault, UndefinedTaskError)

    def testFallbackReceivesName(self):
        @self.app.fallback
        def method_missing(context, name, *args):
            return name, args

        self.assertEqual(self.app.dispatch(["anything", "x"], shell=self.shell), ("anything", ("x",)))


class TestUnknownOptionPolicy(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = CommandSet("app", basename="app")
        for name in ("strict", "lenient"):
            self.app.desc(name, f"The {name} task")
            self.app.register(lambda context, *args: args, name)

    def testRejectedByDefault(self):
        result = self.app.dispatch(["lenient", "--whatever"], shell=self.shell)
        self.assertIsInstance(result.fault, UnknownOptionError)

    def testOnlyListedTasksCheck(self):
        self.app.check_unknown_options(only=["strict"])
        self.assertEqual(self.app.dispatch(["lenient", "--whatever"], shell=self.shell), ("--whatever",))
        self.assertIsInstance(self.app.dispatch(["strict", "--whatever"], shell=self.shell).fault, UnknownOptionError)

    def testExceptListedTasks(self):
        self.app.check_unknown_options(exclude=["lenient"])
        self.assertEqual(self.app.dispatch(["lenient", "--whatever"], shell=self.shell), ("--whatever",))
        self.assertIsInstance(self.app.dispatch(["strict", "--whatever"], shell=self.shell).fault, UnknownOptionError)

    def testAllowEverywhere(self):
        self.app.allow_unknown_options()
        self.assertEqual(self.app.dispatch(["strict", "-x"], shell=self.shell), ("-x",))

    def testOnlyAndExcludeAreExclusive(self):
        with self.assertRaises(TypeError):
            self.app.check_unknown_options(only=["strict"], exclude=["lenient"])


class TestClassArguments(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = CommandSet("app", basename="app")
        self.app.argument("env")
        self.app.argument("count", "numeric", default=1)

        @self.app.task("deploy", "Deploy")
        def deploy(context, *rest):
            return context.arguments, rest

    def testBoundBeforeTrailingArguments(self):
        arguments, rest = self.app.dispatch(["deploy", "prod", "3", "extra"], shell=self.shell)
        self.assertEqual(arguments, {"env": "prod", "count": 3})
        self.assertEqual(rest, ("extra",))

    def testOptionalArgumentDefaults(self):
        arguments, rest = self.app.dispatch(["deploy", "prod"], shell=self.shell)
        self.assertEqual(arguments, {"env": "prod", "count": 1})
        self.assertEqual(rest, ())

    def testRequiredArgumentMissing(self):
        result = self.app.dispatch(["deploy"], shell=self.shell)
        self.assertIsInstance(result.fault, RequiredArgumentMissingError)

    def testNumericArgumentRejectsText(self):
        result = self.app.dispatch(["deploy", "prod", "many"], shell=self.shell)
        self.assertIsInstance(result.fault, OptionTypeError)

    def testDeclarationRules(self):
        with self.assertRaises(ValueError):
            self.app.argument("env")
        with self.assertRaises(ValueError):
            self.app.argument("region")


class TestContext(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = CommandSet("app", basename="app")

        @self.app.task("shout WORD", "Shout WORD")
        def shout(context, word):
            context.say(word.upper())
            return word.upper()

        @self.app.task("relay WORD", "Relay WORD to shout")
        def relay(context, word):
            return context.invoke("shout", word)

        @self.app.task("refuse", "Always refuses")
        def refuse(context):
            return context.fail(UndefinedTaskError("nothing to refuse"))

    def testInvokeDispatchesThroughSameShell(self):
        self.assertEqual(self.app.dispatch(["relay", "hey"], shell=self.shell), "HEY")
        self.assertIn("HEY", output(self.shell))

    def testFailReportsFault(self):
        result = self.app.dispatch(["refuse"], shell=self.shell)
        self.assertIsInstance(result, Failure)
        self.assertIn("nothing to refuse", output(self.shell, stderr=True))


if __name__ == "__main__":
    unittest.main()
