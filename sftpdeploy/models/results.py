"""
Result Models

Dataclass models for process executions and deployment outcomes.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from sftpdeploy.constants import OUTPUT_DEPLOYED_FILES, OUTPUT_DEPLOYMENT_TIME


@dataclass
class ExecutionResult:
    """Result of a command execution (subprocess)."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    command: str = ""
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if execution succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if execution failed."""
        return self.returncode != 0

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def __repr__(self) -> str:
        return f"ExecutionResult(returncode={self.returncode}, command='{self.command[:50]}...')"


@dataclass
class TransferReport:
    """Result of a successful sftp invocation."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    def __repr__(self) -> str:
        return f"TransferReport(returncode={self.returncode}, duration={self.duration_seconds:.2f}s)"


@dataclass(frozen=True)
class DeployResult:
    """Outcome of a successful deployment."""

    files_deployed: int
    completed_at: datetime

    @property
    def completed_at_iso(self) -> str:
        """Completion time as ISO-8601."""
        return self.completed_at.isoformat()

    def as_outputs(self) -> Dict[str, Any]:
        """Action outputs keyed by their published names."""
        return {
            OUTPUT_DEPLOYED_FILES: self.files_deployed,
            OUTPUT_DEPLOYMENT_TIME: self.completed_at_iso,
        }
