"""
Thane help and usage rendering.

All functions here are pure with respect to the command set: they read its
registry and metadata and write through the given Shell only.

Layout of the class help:

    <banner>                                 (when declared)

    Tasks:
      prog deploy ENV --target=TARGET  # deploy the app to ENV
      prog help [TASK]                 # Describe available tasks or one specific task
      tools:lint                       # lint sources            (composed sets)

    Options:
      [--verbose]  # print more

Layout of a task help:

    Usage:
      prog deploy ENV --target=TARGET

    Options:
      --target=TARGET  # where to deploy
      [--force]        # overwrite

    Description:
      <long description wrapped at indent 2>   (or the one-line description)
"""
import difflib
import re
from collections import defaultdict

from .faults import UndefinedTaskError

HELP_TASK = "help"


def _usage_with_arguments(task, commands):
    arguments = [argument.usage for argument in commands.arguments]
    if not arguments or task.name == HELP_TASK:
        return task.usage
    # class-level arguments follow the task name
    return re.sub(
        rf"^{re.escape(task.name)}(?=\s|$)",
        lambda match: " ".join([match.group(0), *arguments]),
        task.usage,
        count=1,
    )


def formatted_usage(task, commands, /, include_namespace=False, subcommand=False):
    """
    render the usage of `task` as seen from `commands`.

    - namespace prefix ("ns:" or "ns " for subcommand rendering), omitted when
      the namespace is "default" or include_namespace is False;
    - parent command tokens, for command sets mounted as subcommands;
    - the task usage, with class-level argument banners after the task name;
    - required option usages, sorted.
    """
    formatted = ""
    if include_namespace and commands.namespace != "default":
        formatted = commands.namespace + (" " if subcommand else ":")
    formatted += "".join(f"{token} " for token in commands.parent_commands)
    formatted += _usage_with_arguments(task, commands)
    formatted += " " + task.required_options
    return formatted.strip()


def task_banner(task, commands, /, include_namespace=False, subcommand=False):
    return f"{commands.basename} {formatted_usage(task, commands, include_namespace, subcommand)}"


def printable_tasks(commands, /, all=True, subcommand=False, include_namespace=False):
    """
    rows of [banner, "# description"] for every visible task.

    `all` includes tasks inherited from a base command set; otherwise only the
    tasks declared (or redefined) on `commands` itself are listed.
    """
    tasks = list(commands.registry) if all else commands.registry.own()
    return [
        [task_banner(task, commands, include_namespace, subcommand), f"# {task.description}"]
        for task in tasks
        if not task.hidden
    ]


def options_help(shell, options, /, heading="Options"):
    """
    print option tables, one per group; ungrouped options go under `heading`.
    """
    groups = defaultdict(list)
    for option in options:
        if not option.hide:
            groups[option.group or heading].append(option)

    for group, members in groups.items():
        rows = []
        for option in members:
            rows.append([option.usage, f"# {option.desc}" if option.desc else ""])
            if option.show_default:
                rows.append(["", f"# Default: {option.default}"])
            if option.choices:
                rows.append(["", f"# Possible values: {', '.join(map(str, option.choices))}"])
        shell.say(f"{group}:", style="heading")
        shell.print_table(rows, indent=2)
        shell.say()


def undefined_task(commands, name, /):
    """build the UndefinedTaskError for `name`, with a close-match hint."""
    where = f" in {commands.namespace!r} namespace" if commands.namespace != "default" else ""
    candidates = [task.name for task in commands.registry if not task.hidden]
    suggestions = difflib.get_close_matches(str(name).replace("-", "_"), candidates, n=1)
    listing = f"run '{commands.basename} {' '.join([*commands.parent_commands, HELP_TASK])}' to list available tasks"
    return UndefinedTaskError(
        f"could not find task {name!r}{where}",
        hint=f"did you mean {suggestions[0]!r}? {listing}" if suggestions else listing,
    )


def task_help(shell, commands, name, /):
    """print the help of one task; raises UndefinedTaskError for unknown names."""
    task = commands.registry.find(name)
    if task is None:
        raise undefined_task(commands, name)

    shell.say("Usage:", style="heading")
    shell.say(f"  {task_banner(task, commands)}", style="usage")
    shell.say()
    options_help(shell, [*task.options.values(), *commands.class_options])
    if task.long_description:
        shell.say("Description:", style="heading")
        shell.print_wrapped(task.long_description, indent=2)
    else:
        shell.say(task.description)


def class_help(shell, commands, /, subcommand=False):
    """print the banner, the task table (own, inherited and composed) and the shared options."""
    if commands.banner:
        shell.say(commands.banner, style="banner")
        shell.say()

    rows = printable_tasks(commands, all=True, subcommand=subcommand)
    for other in commands.composed:
        rows.extend(printable_tasks(other, all=False, include_namespace=True))
    rows.sort(key=lambda row: row[0])

    shell.say("Tasks:", style="heading")
    shell.print_table(rows, indent=2, truncate=True)
    shell.say()
    options_help(shell, commands.class_options)


__all__ = (
    "HELP_TASK",
    "formatted_usage",
    "task_banner",
    "printable_tasks",
    "options_help",
    "undefined_task",
    "task_help",
    "class_help",
)
