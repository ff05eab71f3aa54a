from rich import print
from rich.pretty import pprint

from cmdtree import *


@command()
def root(cmd):
    cmd.text("This is FileTool, a little example application to demonstrate cmdtree.")
    cmd.text("All operations are no-ops, the filesystem is never modified.")
    cmd.text("")
    cmd.text("Invoke me with one of the sub-commands to perform a dummy-operation.")

    # inherited by every sub-command
    cmd.opt("debug", "Enable debugging", default=False)
    cmd.opt("version", "Print version and exit")

    @cmd.trigger("version")
    def version(path, opts, argv):
        print("Version 1.0")

    @cmd.filter
    def debug(path, opts, argv):
        if opts["debug"]:
            pprint(opts)


parent("file", "Operations on files")
parent("dir", "Operations on directories")


def transfer(kind, verb):
    builder = command(f"{kind} {verb.lower()}")
    builder.desc(f"{verb} a {kind}" if kind == "file" else f"{verb} directory from A to B")
    builder.text(f"{verb} a {'file' if kind == 'file' else 'directory'} from <source> to <dest>")
    builder.text("The destination will not be overwritten unless --force is applied.")
    builder.opt("force", "Force overwrite", default=False)
    builder.params("<source> <dest>")

    @builder.exec
    def handler(path, opts, argv):
        if len(argv) < 2:
            raise HelpNeeded()
        print(f"[bold]{' '.join(path)}[/bold] called with {dict(opts)}, {argv}")

    return handler


for kind in ("file", "dir"):
    for verb in ("Move", "Copy"):
        transfer(kind, verb)


if __name__ == '__main__':
    configure(text_header_usage="Syntax: %0 %command %params")
    run()
