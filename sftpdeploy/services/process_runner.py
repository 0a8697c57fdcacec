"""Process runner for invoking external executables."""

import subprocess
import time
from typing import List, Mapping, Optional, Union

from sftpdeploy.models.results import ExecutionResult


class ProcessRunner:
    """
    Runs one external command to completion and captures its streams.

    This is the only place the package spawns processes, so the sftp and
    ssh-agent steps can be exercised with a fake runner.
    """

    def run(
        self,
        args: List[str],
        input: Optional[Union[bytes, str]] = None,
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ExecutionResult:
        """
        Execute a command and wait for it.

        Args:
            args: Command and arguments (no shell)
            input: Data written to the process stdin
            env: Full environment for the child process
            timeout: Seconds before the process is killed

        Returns:
            ExecutionResult with exit status and decoded streams

        Raises:
            OSError: If the executable cannot be started
            TimeoutError: If the process outlives the timeout
        """
        if isinstance(input, str):
            input = input.encode("utf-8")

        # Never let a child wait on our stdin (e.g. a passphrase prompt)
        stdin_kwargs = {"input": input} if input is not None else {"stdin": subprocess.DEVNULL}

        command = " ".join(args)
        start_time = time.time()

        try:
            result = subprocess.run(
                args,
                **stdin_kwargs,
                env=dict(env) if env is not None else None,
                capture_output=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            raise TimeoutError(
                f"Command timed out after {timeout}s\nContext: Command: {command}"
            ) from None

        return ExecutionResult(
            returncode=result.returncode,
            stdout=result.stdout.decode("utf-8", errors="replace"),
            stderr=result.stderr.decode("utf-8", errors="replace"),
            command=command,
            duration_seconds=time.time() - start_time,
        )
