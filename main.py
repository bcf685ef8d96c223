from rich.pretty import pprint

from optwalker import *

verbose = Slot(0)
jobs = Slot(1)
tags = Slot([])


def remote_add(argv):
    """Register a new remote."""
    pprint({"remote": argv[1:], "verbose": verbose.value})


def build(argv):
    pprint({"targets": argv[1:], "jobs": jobs.value, "tags": tags.value, "verbose": verbose.value})


tool = Command(name="tool", about="a small example tool", shell=True, colorful=True, options=[
    help_option(),
    Option("v", "verbose", flag=verbose, action=FlagAction.INCREMENT, descr="print more details"),
    Option("q", "quiet", flag=verbose, action=FlagAction.SET_FALSE, descr="print less details"),
])
tool.command(build, operands="TARGET...", about="build targets", options=[
    help_option(),
    Option("j", "jobs", "N", type=DataType.UINT, store=jobs, descr="parallel jobs"),
    Option("t", "tags", "TAGS", delimiter=",", store=tags, descr="comma separated build tags"),
    Option(long="release", group=1, descr="optimized build"),
    Option(long="debug", group=1, descr="debug build"),
])
remote = Command(name="remote", parent=tool, about="manage remotes")
remote.command(remote_add, name="add", operands="NAME URL", about="add a remote", options=[help_option()])
Command(help_handler, name="help", parent=tool, operands="[COMMAND...]", about="show help of a command")


if __name__ == '__main__':
    invoke(tool)
