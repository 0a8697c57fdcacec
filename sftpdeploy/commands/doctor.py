"""SFTP Deploy CLI - Doctor command"""

import click
from rich.table import Table

from sftpdeploy.base import BaseCommand
from sftpdeploy.constants import KEY_STRATEGY_AGENT, REQUIRED_TOOLS
from sftpdeploy.exceptions import ToolNotFoundError
from sftpdeploy.services import ToolChecker


class DoctorCommand(BaseCommand):
    """Check that the tools a deployment shells out to are installed."""

    def __init__(self, verbose: bool = False, console=None, env=None):
        super().__init__(verbose=verbose, console=console, env=env)
        self.checker = ToolChecker(path=self.env.get("PATH"))
        self.table = Table(
            title="System Health Report", title_justify="left", padding=(0, 1)
        )
        self.table.add_column("Check", style="cyan", no_wrap=True)
        self.table.add_column("Status")
        self.table.add_column("Details", style="dim")

    def check_tools(self) -> list[str]:
        """Check required tools installation. Returns missing tools."""
        missing = []
        for tool, installed in self.checker.status(REQUIRED_TOOLS[KEY_STRATEGY_AGENT]).items():
            if installed:
                self.table.add_row(f"✅ {tool}", "[green]Installed[/green]", "")
            else:
                missing.append(tool)
                self.table.add_row(
                    f"❌ {tool}", "[red]Missing[/red]", "apt-get install openssh-client"
                )
        return missing

    def execute(self) -> None:
        """Execute doctor command."""
        self.show_header(
            title="System Diagnostics",
            subtitle="Checking the OpenSSH client tools used for deployment",
        )

        missing = self.check_tools()
        self.console.print(self.table)

        if missing:
            raise ToolNotFoundError(f"Missing tools: {', '.join(missing)}")
        self.print_success("All tools installed")


@click.command()
def doctor():
    """
    Health check & diagnostics

    Checks that sftp, ssh-agent and ssh-add are on PATH.
    """
    cmd = DoctorCommand(verbose=False)
    cmd.run()
