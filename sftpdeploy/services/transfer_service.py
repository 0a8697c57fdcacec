"""Transfer service: runs the sftp client against a batch script."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from sftpdeploy.constants import DEFAULT_SFTP_BINARY, ERROR_MARKERS, WARNING_MARKERS
from sftpdeploy.exceptions import TransferError
from sftpdeploy.logger import DeployLogger
from sftpdeploy.models.manifest import BatchScript
from sftpdeploy.models.results import TransferReport
from sftpdeploy.models.ssh import AgentCredential, IdentityFileCredential
from sftpdeploy.services.process_runner import ProcessRunner

Credential = Union[AgentCredential, IdentityFileCredential]


@dataclass
class TransferOptions:
    """Options for one sftp invocation."""

    known_hosts_file: Optional[Path] = None
    timeout: Optional[float] = None
    binary: str = DEFAULT_SFTP_BINARY
    # None means inherit os.environ
    env: Optional[Dict[str, str]] = None


def classify_stderr_line(line: str) -> str:
    """Map an sftp stderr line to a log level. Cosmetic only."""
    if any(marker in line for marker in ERROR_MARKERS):
        return "ERROR"
    if any(marker in line for marker in WARNING_MARKERS):
        return "WARNING"
    return "INFO"


class TransferExecutor:
    """
    Invokes the external sftp client.

    Only the exit status decides success. Stream contents are surfaced
    through the logger for readability.
    """

    def __init__(self, logger: DeployLogger, runner: Optional[ProcessRunner] = None):
        self.logger = logger
        self.runner = runner or ProcessRunner()

    def build_command(
        self,
        credential: Credential,
        host: str,
        port: int,
        username: str,
        script: BatchScript,
        options: TransferOptions,
    ) -> List[str]:
        """Build full sftp command line."""
        if options.known_hosts_file:
            host_key_options = [
                "-o",
                "StrictHostKeyChecking=yes",
                "-o",
                f"UserKnownHostsFile={options.known_hosts_file}",
            ]
        else:
            # Unattended CI run with no host key to pin against
            host_key_options = [
                "-o",
                "StrictHostKeyChecking=no",
                "-o",
                "UserKnownHostsFile=/dev/null",
            ]

        return [
            options.binary,
            *host_key_options,
            "-o",
            "BatchMode=yes",
            *credential.identity_args,
            "-b",
            str(script.path),
            "-P",
            str(port),
            f"{username}@{host}",
        ]

    def run(
        self,
        credential: Credential,
        host: str,
        port: int,
        username: str,
        script: BatchScript,
        options: Optional[TransferOptions] = None,
    ) -> TransferReport:
        """
        Execute the transfer.

        Raises:
            TransferError: If sftp cannot be started, times out or exits non-zero
        """
        options = options or TransferOptions()
        command = self.build_command(credential, host, port, username, script, options)
        self.logger.log_command(" ".join(command))
        self.logger.info("Starting file transfer...")

        env = dict(os.environ if options.env is None else options.env)
        credential.apply_env(env)

        try:
            result = self.runner.run(command, env=env, timeout=options.timeout)
        except TimeoutError as e:
            raise TransferError(
                "SFTP command timed out", context=f"No exit after {options.timeout}s"
            ) from e
        except OSError as e:
            raise TransferError(
                f"SFTP command failed to start: {e.strerror or e}",
                context=f"Executable: {options.binary}",
            ) from e

        self._surface_streams(result.stdout, result.stderr)

        if result.is_failure:
            last_error = self.logger.mask(_last_line(result.stderr))
            raise TransferError(
                f"SFTP command failed with exit code {result.returncode}",
                context=last_error or None,
                returncode=result.returncode,
            )

        self.logger.success("SFTP transfer completed successfully")
        return TransferReport(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
            duration_seconds=result.duration_seconds,
        )

    def _surface_streams(self, stdout: str, stderr: str) -> None:
        self.logger.log_output(stdout, "stdout")
        self.logger.log_output(stderr, "stderr")

        for line in stdout.splitlines():
            if line.strip():
                self.logger.info(line.strip())

        for line in stderr.splitlines():
            if line.strip():
                self.logger.log(line.strip(), classify_stderr_line(line))


def _last_line(text: str) -> str:
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    return lines[-1] if lines else ""
