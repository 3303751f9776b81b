"""
retrace CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import logging

import click

from .commands import conditions, explain, why


@click.group()
@click.version_option(package_name="retrace")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """retrace: explain rule engine sessions.

    Reads a session snapshot exported by a forward-chaining rule engine and
    explains which facts and bindings caused each rule activation.

    \b
    Quick Start:
      retrace explain session.json
      retrace why session.json --type Alert
      retrace conditions session.json
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


main.add_command(explain.explain)
main.add_command(why.why)
main.add_command(conditions.conditions)

if __name__ == "__main__":
    main()
