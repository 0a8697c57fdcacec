#!/usr/bin/env python3
"""SFTP Deploy CLI - Main entry point"""

import functools
import os
import sys

from dotenv import load_dotenv
from rich.console import Console

# Rich-Click: CLI help with colors
import rich_click as click

from sftpdeploy import __version__
from sftpdeploy.commands import deploy, doctor
from sftpdeploy.ui_components import BANNER

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.MAX_WIDTH = 100

# COMMANDS / OPTIONS
click.rich_click.STYLE_COMMAND = "bold cyan"
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"
click.rich_click.STYLE_METAVAR = "bold yellow"

# REQUIRED / DEFAULTS
click.rich_click.STYLE_REQUIRED_SHORT = "bold red"
click.rich_click.STYLE_OPTION_DEFAULT = "dim cyan"

console = Console()


def handle_cli_errors(func):
    """Decorator to handle CLI errors gracefully."""
    from click.exceptions import ClickException

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ClickException as e:
            # Click's built-in exceptions (already formatted)
            e.show()
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\n\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            sys.exit(130)
        except Exception as e:
            console.print(f"\n[bold red]✗ Unexpected error:[/bold red] {e}\n")
            if os.environ.get("DEBUG") or os.environ.get("VERBOSE"):
                import traceback

                console.print("[dim]Traceback:[/dim]")
                traceback.print_exc()
            sys.exit(1)

    return wrapper


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """
    SFTP Deploy - Upload a build directory to a server over SFTP.

    \b
    Quick Start:
      sftp-deploy doctor                       # Check ssh/sftp tools
      sftp-deploy deploy --host h -u deploy    # Deploy ./dist to /var/www/html

    \b
    Every deploy option can also come from the environment
    (SFTP_DEPLOY_HOST, ... or GitHub Action INPUT_HOST, ...).
    A .env file in the working directory is loaded first.
    """
    if ctx.invoked_subcommand is None:
        console.print(BANNER)
        console.print("[yellow]Run 'sftp-deploy --help' for usage[/yellow]\n")


# Register commands
cli.add_command(deploy.deploy)
cli.add_command(doctor.doctor)


@handle_cli_errors
def main():
    """Main entry point with error handling."""
    # Real environment wins over .env
    load_dotenv(override=False)
    cli()


if __name__ == "__main__":
    main()
