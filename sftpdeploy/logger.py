"""
Logging system for SFTP Deploy
Leveled console output with secret masking, optional log file and
GitHub Actions workflow commands (groups, masks, annotations)
"""

import re
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, TextIO, Union

from rich.console import Console
from rich.text import Text

from sftpdeploy.constants import LOG_TIME_FORMAT, SECRET_MASK

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")

LEVEL_STYLES = {
    "DEBUG": "dim",
    "INFO": "",
    "WARNING": "yellow",
    "ERROR": "red",
}


class DeployLogger:
    """
    Manages logging for a deployment run
    - Masks every registered secret before anything is written
    - Shows leveled output in the console (debug only when verbose)
    - Optionally mirrors everything into a log file
    - Emits workflow commands when running inside GitHub Actions
    """

    def __init__(
        self,
        verbose: bool = False,
        log_path: Optional[Union[str, Path]] = None,
        console: Optional[Console] = None,
        github_actions: bool = False,
    ):
        """
        Initialize logger

        Args:
            verbose: If True, show debug messages in console
            log_path: Optional file that receives every log line
            console: Rich Console to print to (creates new if None)
            github_actions: Emit ::group::, ::add-mask:: and annotations
        """
        self.verbose = verbose
        self.console = console or Console(highlight=False)
        self.github_actions = github_actions
        self.log_path: Optional[Path] = Path(log_path) if log_path else None
        self.log_file: Optional[TextIO] = None
        self.current_step = ""
        self.has_errors = False
        self._secrets: List[str] = []

        if self.log_path:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            # Line-buffered so the file is readable while the run is live
            self.log_file = open(self.log_path, "w", buffering=1, encoding="utf-8")
            self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
SFTP Deploy Log
{"=" * 80}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self.log_file.write(header)
        self.log_file.flush()

    def add_secret(self, value: Optional[str]) -> None:
        """
        Register a value that must never appear in output.

        Multi-line values are also registered line by line, because process
        output is logged one line at a time.
        """
        if not value:
            return

        candidates = [value, value.strip()]
        candidates.extend(line.strip() for line in value.splitlines())

        for candidate in candidates:
            if candidate and candidate not in self._secrets:
                self._secrets.append(candidate)
                if self.github_actions and "\n" not in candidate:
                    self._emit(f"::add-mask::{candidate}")

        # Longest first so a full key is never partially masked by one line
        self._secrets.sort(key=len, reverse=True)

    def mask(self, text: str) -> str:
        """Replace every registered secret in text."""
        if not text:
            return text
        for secret in self._secrets:
            text = text.replace(secret, SECRET_MASK)
        return text

    def _emit(self, raw: str) -> None:
        """Print a line verbatim (no markup, no wrapping)."""
        self.console.print(raw, markup=False, highlight=False, soft_wrap=True)

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        message = self.mask(str(message))
        timestamp = datetime.now().strftime(LOG_TIME_FORMAT)

        if self.log_file:
            self.log_file.write(f"[{timestamp}] [{level}] {message}\n")
            self.log_file.flush()

        if level == "DEBUG" and not self.verbose:
            return

        if self.github_actions and level in ("ERROR", "WARNING"):
            command = "error" if level == "ERROR" else "warning"
            self._emit(f"::{command}::{message}")
            return

        self.console.print(Text(message, style=LEVEL_STYLES.get(level, "")))

    def debug(self, message: str):
        self.log(message, "DEBUG")

    def info(self, message: str):
        self.log(message, "INFO")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

    def error(self, message: str):
        """Log an error message"""
        self.has_errors = True
        self.log(message, "ERROR")

    def success(self, message: str):
        """Log a success message"""
        self.log(f"✓ {message}", "INFO")

    def log_command(self, command: str):
        """Log a command being executed"""
        self.log(f"Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "stdout"):
        """
        Log captured process output

        Always written to the log file. Shown in the console only when
        verbose, callers decide how to surface it otherwise.

        Args:
            output: Command output (single line or multiline)
            stream: Stream name (stdout, stderr)
        """
        if not output:
            return

        clean_output = ANSI_ESCAPE.sub("", self.mask(output))

        if self.log_file:
            for line in clean_output.splitlines():
                self.log_file.write(f"  [{stream}] {line}\n")
            self.log_file.flush()

        if self.verbose:
            self.console.print(Text(clean_output, style="dim"))

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., command that failed)
        """
        self.has_errors = True
        error = self.mask(str(error))
        context = self.mask(context) if context else None

        if self.log_file:
            error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{error}
"""
            if context:
                error_block += f"\nContext: {context}\n"
            error_block += f"{'!' * 80}\n\n"
            self.log_file.write(error_block)
            self.log_file.flush()

        if self.github_actions:
            self._emit(f"::error::{error}")
        else:
            self.console.print(Text(f"✗ {error}", style="bold red"))
        if context:
            self.console.print(Text(f"  {context}", style="color(208)"))

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        self.current_step = step_name
        if self.log_file:
            timestamp = datetime.now().strftime(LOG_TIME_FORMAT)
            self.log_file.write(f"[{timestamp}] [INFO] Step: {step_name}\n")
            self.log_file.flush()

        if self.github_actions:
            self._emit(f"::group::{step_name}")
        else:
            self.console.print(
                Text.assemble(("▶ ", "color(214)"), (step_name, "bold white"))
            )

    def end_step(self):
        """Close the current step"""
        if self.github_actions:
            self._emit("::endgroup::")
        self.current_step = ""

    @contextmanager
    def group(self, title: str) -> Iterator["DeployLogger"]:
        """Group every message logged inside the block under one title."""
        self.step(title)
        try:
            yield self
        finally:
            self.end_step()

    def close(self):
        """Close log file"""
        if self.log_file:
            footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
            self.log_file.write(footer)
            self.log_file.close()
            self.log_file = None

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb):
        """Context manager exit"""
        if exc_type is not None and exc_type != SystemExit:
            self.log_error(
                str(exc_val) if exc_val else "Operation failed",
                context=f"{exc_type.__name__}",
            )
        self.close()
        return False
