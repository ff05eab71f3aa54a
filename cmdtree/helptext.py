"""
cmdtree help-text assembly.

assemble() turns a Resolution into the ordered directive stream fed to the option
parser. It renders nothing itself; the parser prints the stream in order.

Stream layout
1. the usage line (verbatim) and a blank line
2. free-form text of every visited node, each followed by a blank line
3. the options header, inherited options sorted by name, then the other inherited
   directives (banners, depends, conflicts) in root → leaf order
4. the synthesized help option, unless disabled or declared by the user
5. the command listing, when the resolved command has children
6. a trailing blank line
"""
from .parser import Call


def listing(resolution):
    """
    render the child listing of the resolved command.

    one line per child: the child's full path (padded to the widest entry),
    followed by its one-line description when it has one.
    """
    prefix = " ".join(resolution.path)
    width = max(len(prefix) + len(name) + 1 for name in resolution.subcommands)
    lines = []
    for name in resolution.subcommands:
        line = "  " + f"{prefix} {name}".ljust(width)
        description = resolution.node.children[name].description
        if description is not None:
            line += "   " + description
        lines.append(line + "\n")
    return "".join(lines)


def assemble(resolution, config):
    """
    build the parser directive stream for `resolution`.

    parameters
    - resolution: cmdtree.resolver.Resolution
    - config: cmdtree.config.Configuration

    returns
    - list[Call]
    """
    calls = [
        Call("nowrap", (f"\n{resolution.header}\n",), {}),
        Call("banner", (" ",), {}),
    ]
    for text in resolution.texts:
        calls.append(Call("banner", (text,), {}))
        calls.append(Call("banner", (" ",), {}))

    options = sorted((call for call in resolution.calls if call.action == "opt"), key=lambda call: str(call.args[0]))
    others = [call for call in resolution.calls if call.action != "opt"]
    calls.append(Call("banner", (config["text_header_options"],), {}))
    calls.extend(options)
    calls.extend(others)

    if config["text_help"] is not None and not any(call.args[0] == "help" for call in options):
        calls.append(Call("opt", ("help", config["text_help"]), {}))

    if resolution.subcommands:
        title = config["text_header_subcommands"] if resolution.path else config["text_header_topcommands"]
        calls.append(Call("banner", (f"\n{title}\n{listing(resolution)}",), {}))

    calls.append(Call("banner", (" \n",), {}))
    return calls


__all__ = (
    "listing",
    "assemble",
)
