"""
SFTP Deploy - UI Components
Standardized headers and banner
"""

from rich.console import Console
from rich.markup import escape

LOGO = "sftp-deploy"

# Colors
BRAND_COLOR = "cyan"

BANNER = """
[bold cyan]╔═══════════════════════════════════════════════════════════╗[/bold cyan]
[bold cyan]║[/bold cyan]  [bold white]SFTP Deploy[/bold white] - Ship a build directory over SFTP         [bold cyan]║[/bold cyan]
[bold cyan]╚═══════════════════════════════════════════════════════════╝[/bold cyan]
"""


def show_header(
    title: str,
    subtitle: str = None,
    details: dict = None,
    console: Console = None,
):
    """
    Display a standardized command header.

    Args:
        title: Main title (e.g., "Deploy", "System Diagnostics")
        subtitle: Optional subtitle line
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Deploy",
            details={"Target": "deploy@example.com", "Port": 22}
        )
    """
    if console is None:
        console = Console()

    prefix = f" [bold color(214)]{LOGO}[/bold color(214)] [dim]›[/dim]"

    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {escape(str(key))}: [{BRAND_COLOR}]{escape(str(value))}[/{BRAND_COLOR}]")

    console.print()
