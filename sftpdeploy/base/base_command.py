"""
Base Command Class

Abstract base for all SFTP Deploy CLI commands.
Provides common functionality and structure.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from rich.console import Console
from rich.markup import escape

from sftpdeploy.actions import is_github_actions
from sftpdeploy.exceptions import SFTPDeployError
from sftpdeploy.logger import DeployLogger
from sftpdeploy.ui_components import show_header


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization
    - Header display
    - Error handling and exit codes
    - JSON output support
    """

    def __init__(
        self,
        verbose: bool = False,
        json_output: bool = False,
        console: Optional[Console] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self.verbose = verbose
        self.json_output = json_output
        self.console = console or Console(highlight=False)
        self.env: Dict[str, str] = dict(os.environ if env is None else env)
        self.github_actions = is_github_actions(self.env)
        self.logger: Optional[DeployLogger] = None

    def init_logger(self, log_file: Optional[str] = None) -> DeployLogger:
        """
        Initialize command logger.

        In JSON mode progress goes to stderr so stdout stays parseable.

        Args:
            log_file: Optional path that receives every log line
        """
        console = Console(stderr=True, highlight=False) if self.json_output else self.console
        self.logger = DeployLogger(
            verbose=self.verbose,
            log_path=log_file,
            console=console,
            github_actions=self.github_actions,
        )
        return self.logger

    def output_json(self, data: Dict[str, Any], exit_code: int = 0) -> None:
        """
        Output data as JSON and exit.

        Args:
            data: Data to output as JSON
            exit_code: Exit code (0 for success, non-zero for error)
        """
        self.console.print_json(json.dumps(data))
        if exit_code != 0:
            raise SystemExit(exit_code)

    def output_json_error(
        self, error: str, details: Optional[Dict[str, Any]] = None, exit_code: int = 1
    ) -> None:
        """
        Output error as JSON and exit.

        Args:
            error: Error message
            details: Optional error details
            exit_code: Exit code
        """
        error_data: Dict[str, Any] = {"error": error}
        if details:
            error_data["details"] = details
        self.output_json(error_data, exit_code=exit_code)

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in JSON mode and inside Actions)."""
        if not self.json_output and not self.github_actions:
            show_header(
                title=title,
                subtitle=subtitle,
                details=details,
                console=self.console,
            )

    def print_success(self, message: str) -> None:
        """Print success message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[green]✓ {escape(message)}[/green]")

    def print_error(self, message: str) -> None:
        """Print error message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[red]✗ {escape(message)}[/red]")

    def print_dim(self, message: str) -> None:
        """Print dim message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def handle_error(self, error: Exception, context: Optional[str] = None) -> None:
        """
        Handle error with consistent formatting.

        Args:
            error: Exception object
            context: Optional context message
        """
        if isinstance(error, SFTPDeployError):
            message, context = error.message, context or error.context
        else:
            message = f"{type(error).__name__}: {error}"

        if self.logger:
            self.logger.log_error(message, context=context)
        else:
            self.print_error(message)
            if context:
                self.print_dim(f"Context: {context}")

    def _masked(self, text: str) -> str:
        return self.logger.mask(text) if self.logger else text

    @abstractmethod
    def execute(self, **kwargs) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """
        pass

    def run(self, **kwargs) -> None:
        """
        Run command with error handling.

        Args:
            **kwargs: Command arguments
        """
        try:
            self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            raise SystemExit(130)
        except SystemExit:
            raise
        except SFTPDeployError as e:
            self.handle_error(e)
            if self.json_output:
                self.output_json_error(
                    self._masked(e.message),
                    details={"type": type(e).__name__, "context": self._masked(e.context or "")},
                )
            raise SystemExit(1)
        except Exception as e:
            self.handle_error(e)
            raise SystemExit(1)
        finally:
            if self.logger:
                self.logger.close()
                if self.logger.log_path and not self.json_output:
                    self.console.print(f"[dim]Logs saved to:[/dim] {self.logger.log_path}")
