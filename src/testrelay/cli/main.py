# src/testrelay/cli/main.py

"""
Main CLI entry point for testrelay using Click.
Global logging options are merged into each command's own.
"""

import click

from testrelay import __version__
from testrelay.cli.test_cmds import test_cli
from testrelay.cli.utils import logging_options, print_error


class TestRelayGroup(click.Group):
    """Command group that answers unknown commands with a hint instead of a usage error."""

    def resolve_command(self, ctx: click.Context, args: list[str]):
        cmd_name = args[0] if args else ""
        if (
            cmd_name
            and not cmd_name.startswith("-")
            and not ctx.resilient_parsing
            and self.get_command(ctx, cmd_name) is None
        ):
            print_error(f"Unknown command '{cmd_name}'. Did you mean to run `testrelay test`?")
            print_error("Run `testrelay --help` for a list of available commands.")
            ctx.exit(1)
        return super().resolve_command(ctx, args)


@click.group(cls=TestRelayGroup, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", package_name="testrelay")
@logging_options
def cli(log_level: str | None, log_file: str | None, json_logs: bool | None):
    """
    Testrelay: run your tests on a remote service.

    \b
    EXAMPLES
      $ testrelay test        # Run tests against the current HEAD commit
    """


cli.add_command(test_cli)

if __name__ == "__main__":
    cli()

# 🖥️⚙️
