from rich.pretty import pprint

from thane import *
from thane import logs

__prog__ = "deployer"

app = CommandSet("deployer", banner="deployer - ship builds to environments")
app.class_option("verbose", type="boolean", aliases="-v", desc="Print every step")


@app.task("deploy ENV", "Deploy the current build to ENV", long_desc="""
    Deploys the current build to ENV. The target host is taken from
    --target; --force overwrites a build that is already running.
""")
@app.option("target", type="required", desc="Host to deploy to")
@app.option("force", type="boolean", aliases="-f", desc="Overwrite a running build")
@app.option("retries", default=3, desc="Attempts before giving up")
def deploy(context, env):
    context.say(f"deploying to {env} on {context.options['target']} ({context.options['retries']} retries)")
    return env


remote = CommandSet("remote")


@remote.task("add NAME URL", "Add a remote")
def add(context, name, url):
    context.say(f"added {name} -> {url}")


@remote.task("list", "List remotes", name="list")
def list_remotes(context):
    context.say("origin")


app.subcommand("remote", remote, "remote COMMAND", "Manage remotes")


if __name__ == '__main__':
    logs.configure()
    result = app.start()
    if isinstance(result, Failure):
        raise SystemExit(result.status)
    if result is not None:
        pprint(result)
