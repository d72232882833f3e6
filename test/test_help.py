"""
Help and usage rendering tests.

Scope
- formatted_usage: namespaces, parent tokens, class arguments, required options.
- Class help: banner, sorted task table, hidden tasks, composed sets, class options.
- Task help: usage line, option table with defaults/choices, description.
- The built-in help task and its aliases.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured with rich consoles writing to io.StringIO.
"""

import io
import unittest
from unittest import TestCase

from rich.console import Console

from thane import CommandSet, Failure, Shell
from thane.faults import UndefinedTaskError


def capture():
    def console():
        return Console(file=io.StringIO(), width=120, color_system=None, highlight=False)
    return Shell(console(), console(), colorful=False)


def output(shell, stderr=False):
    return (shell.stderr if stderr else shell.stdout).file.getvalue()


def application():
    app = CommandSet("app", basename="app", banner="app - a test tool")

    @app.task("hello NAME", "Say hello")
    def hello(context, name):
        return name

    @app.task("deploy ENV", "Deploy to ENV", long_desc="""
        Deploys the current build to ENV.

        The build is copied to --target first.
    """)
    @app.option("target", type="required", desc="Host to deploy to")
    @app.option("force", type="boolean", aliases="-f", desc="Overwrite a running build")
    @app.option("retries", default=3, desc="Attempts before giving up")
    @app.option("level", choices=("low", "high"))
    def deploy(context, env):
        return env

    @app.task("secret", "Not listed", hide=True)
    def secret(context):
        return "hidden"

    return app


class TestFormattedUsage(TestCase):

    def testRequiredOptionsAppendedSorted(self):
        app = CommandSet("app", basename="app")

        @app.task("deploy ENV", "Deploy")
        @app.option("zeta", type="required")
        @app.option("alpha", type="required")
        @app.option("beta")
        def deploy(context, env):
            pass

        self.assertEqual(app.formatted_usage("deploy"), "deploy ENV --alpha=ALPHA --zeta=ZETA")
        self.assertEqual(app.task_banner("deploy"), "app deploy ENV --alpha=ALPHA --zeta=ZETA")

    def testNamespacePrefix(self):
        tools = CommandSet("tools", basename="app")

        @tools.task("lint", "Lint sources")
        def lint(context):
            pass

        self.assertEqual(tools.formatted_usage("lint"), "lint")
        self.assertEqual(tools.formatted_usage("lint", include_namespace=True), "tools:lint")
        self.assertEqual(tools.formatted_usage("lint", include_namespace=True, subcommand=True), "tools lint")

    def testDefaultNamespaceNeverPrinted(self):
        self.assertEqual(CommandSet().formatted_usage("help", include_namespace=True), "help [TASK]")

    def testClassArgumentsFollowTaskName(self):
        app = CommandSet("app", basename="app")
        app.argument("env")
        app.argument("region", default="eu")

        @app.task("status [SERVICE]", "Show status")
        def status(context, service=None):
            pass

        self.assertEqual(app.formatted_usage("status"), "status ENV [REGION] [SERVICE]")
        self.assertEqual(app.formatted_usage("help"), "help [TASK]")

    def testUnknownTaskRaisesKeyError(self):
        with self.assertRaises(KeyError):
            CommandSet().formatted_usage("nope")


class TestClassHelp(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = application()

    def testBannerAndSortedTasks(self):
        self.app.help(self.shell)
        text = output(self.shell)
        self.assertTrue(text.startswith("app - a test tool"))
        self.assertIn("Tasks:", text)
        deploy = text.index("app deploy ENV --target=TARGET")
        hello = text.index("app hello NAME")
        help = text.index("app help [TASK]")
        self.assertLess(deploy, hello)
        self.assertLess(hello, help)
        self.assertIn("# Say hello", text)
        self.assertNotIn("secret", text)

    def testPrintableTasksSkipsHidden(self):
        rows = self.app.printable_tasks()
        self.assertIn(["app hello NAME", "# Say hello"], rows)
        self.assertFalse(any("secret" in banner for banner, _ in rows))

    def testClassOptionsListed(self):
        self.app.class_option("verbose", type="boolean", aliases="-v", desc="Print more")
        self.app.class_option("color", type="boolean", group="Output", desc="Use colors")
        self.app.help(self.shell)
        text = output(self.shell)
        self.assertIn("Options:", text)
        self.assertIn("-v, [--verbose]", text)
        self.assertIn("# Print more", text)
        self.assertIn("Output:", text)

    def testComposedTasksListedWithNamespace(self):
        tools = CommandSet("tools")

        @tools.task("lint", "Lint sources")
        def lint(context):
            pass

        self.app.compose(tools)
        self.app.help(self.shell)
        self.assertIn("app tools:lint", output(self.shell))


class TestTaskHelp(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = application()

    def testUsageOptionsAndDescription(self):
        self.app.task_help(self.shell, "deploy")
        text = output(self.shell)
        self.assertIn("Usage:", text)
        self.assertIn("  app deploy ENV --target=TARGET", text)
        self.assertIn("--target=TARGET", text)
        self.assertIn("# Host to deploy to", text)
        self.assertIn("-f, [--force]", text)
        self.assertIn("# Default: 3", text)
        self.assertIn("# Possible values: low, high", text)
        self.assertIn("Description:", text)
        self.assertIn("Deploys the current build to ENV.", text)
        self.assertIn("The build is copied to --target first.", text)

    def testShortDescriptionWithoutLongText(self):
        self.app.task_help(self.shell, "hello")
        text = output(self.shell)
        self.assertIn("app hello NAME", text)
        self.assertIn("Say hello", text)
        self.assertNotIn("Description:", text)

    def testClassOptionsIncluded(self):
        self.app.class_option("verbose", type="boolean", desc="Print more")
        self.app.task_help(self.shell, "hello")
        self.assertIn("[--verbose]", output(self.shell))

    def testUnknownTaskRaises(self):
        with self.assertRaises(UndefinedTaskError):
            self.app.task_help(self.shell, "nope")


class TestHelpTask(TestCase):

    def setUp(self):
        self.shell = capture()
        self.app = application()

    def testHelpForOneTask(self):
        self.app.dispatch(["help", "hello"], shell=self.shell)
        self.assertIn("app hello NAME", output(self.shell))

    def testAliasesAndDefault(self):
        for tokens in (["-h"], ["--help"], ["-?"], ["-D"], []):
            with self.subTest(tokens=tokens):
                shell = capture()
                self.app.dispatch(tokens, shell=shell)
                self.assertIn("Tasks:", output(shell))

    def testUnknownTaskReportsFailure(self):
        result = self.app.dispatch(["help", "nope"], shell=self.shell)
        self.assertIsInstance(result, Failure)
        self.assertIn("could not find task 'nope'", output(self.shell, stderr=True))

    def testHelpIgnoresClassArguments(self):
        self.app.argument("env")
        self.app.dispatch(["help"], shell=self.shell)
        self.assertIn("Tasks:", output(self.shell))


class TestShell(TestCase):

    def testPrintTableAlignsColumns(self):
        shell = capture()
        shell.print_table([["a", "# first"], ["longer", "# second"]], indent=2)
        lines = output(shell).splitlines()
        self.assertEqual(lines[0].index("#"), lines[1].index("#"))
        self.assertTrue(lines[0].startswith("  a"))

    def testPrintWrappedCollapsesWhitespace(self):
        shell = capture()
        shell.print_wrapped("one\n   two\n\nthree", indent=2)
        self.assertEqual([line.rstrip() for line in output(shell).splitlines()], ["  one two", "", "  three"])

    def testSayToErrorStream(self):
        shell = capture()
        shell.say("oops", stderr=True)
        self.assertEqual(output(shell), "")
        self.assertEqual(output(shell, stderr=True), "oops\n")


if __name__ == "__main__":
    unittest.main()
