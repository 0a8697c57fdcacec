"""
Deployment orchestrator

Sequences tool check, validation, key materialization, enumeration,
batch script creation and transfer. Every resource acquired along the way
is released before control returns to the caller, whatever happened.
"""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

from sftpdeploy.constants import KNOWN_HOSTS_FILE_NAME, SSH_KEY_PERMISSIONS
from sftpdeploy.exceptions import CleanupWarning, CredentialSetupError, SFTPDeployError
from sftpdeploy.logger import DeployLogger
from sftpdeploy.models.config import DeployConfig
from sftpdeploy.models.deployment import DeploymentState
from sftpdeploy.models.manifest import BatchScript
from sftpdeploy.models.results import DeployResult
from sftpdeploy.services.batch_script import TransferScriptBuilder
from sftpdeploy.services.file_enumerator import FileEnumerator
from sftpdeploy.services.key_service import KeyMaterializer, create_key_materializer
from sftpdeploy.services.process_runner import ProcessRunner
from sftpdeploy.services.tool_checker import ToolChecker
from sftpdeploy.services.transfer_service import TransferExecutor, TransferOptions


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DeploymentOrchestrator:
    """
    Runs one deployment as a strict state machine:

        INIT → TOOLS_CHECKED → VALIDATED → CREDENTIAL_ACQUIRED → ENUMERATED
             → SCRIPT_BUILT → TRANSFERRED → CLEANED_UP → DONE

    Any failure moves to FAILED and the original error propagates after
    cleanup. Collaborators are built from the config unless injected.
    """

    def __init__(
        self,
        config: DeployConfig,
        logger: DeployLogger,
        env: Optional[Dict[str, str]] = None,
        runner: Optional[ProcessRunner] = None,
        tool_checker: Optional[ToolChecker] = None,
        key_materializer: Optional[KeyMaterializer] = None,
        enumerator: Optional[FileEnumerator] = None,
        script_builder: Optional[TransferScriptBuilder] = None,
        executor: Optional[TransferExecutor] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.logger = logger
        # Private copy: agent variables must not leak into os.environ
        self.env: Dict[str, str] = dict(os.environ if env is None else env)
        self.runner = runner or ProcessRunner()
        self.temp_dir: Path = config.resolve_temp_dir(self.env)

        self.tool_checker = tool_checker or ToolChecker(path=self.env.get("PATH"))
        self.key_materializer = key_materializer or create_key_materializer(
            config.key_strategy,
            logger,
            self.temp_dir,
            self.env,
            runner=self.runner,
            timeout=config.timeout,
        )
        self.enumerator = enumerator or FileEnumerator(logger, recursive=config.recursive)
        self.script_builder = script_builder or TransferScriptBuilder(self.temp_dir, logger)
        self.executor = executor or TransferExecutor(logger, runner=self.runner)
        self.clock = clock

        self.state = DeploymentState.INIT
        self.history: List[DeploymentState] = [DeploymentState.INIT]
        self.error: Optional[BaseException] = None

    def _transition(self, state: DeploymentState) -> None:
        self.state = state
        self.history.append(state)
        self.logger.debug(f"State: {state.value}")

    def deploy(self) -> DeployResult:
        """
        Run the deployment.

        Returns:
            DeployResult with file count and completion time

        Raises:
            SFTPDeployError: The first failure encountered
        """
        if self.state is not DeploymentState.INIT:
            raise SFTPDeployError("A deployment orchestrator can only run once")

        self.logger.info("🚀 Starting SFTP deployment...")
        credential = None
        script: Optional[BatchScript] = None
        known_hosts: Optional[Path] = None

        try:
            self._check_tools()
            self._validate()

            with self.logger.group("🔐 Setting up SSH credentials"):
                credential = self.key_materializer.acquire(self.config.private_key)
                known_hosts = self._write_known_hosts()
            self._transition(DeploymentState.CREDENTIAL_ACQUIRED)

            with self.logger.group("📂 Collecting files"):
                manifest = self.enumerator.enumerate(self.config.source_dir)
            self._transition(DeploymentState.ENUMERATED)
            if manifest.is_empty:
                self.logger.warning(f"No files found in {self.config.source_dir}")

            with self.logger.group("📝 Preparing SFTP batch file"):
                script = self.script_builder.build(self.config.remote_dir, manifest)
            self._transition(DeploymentState.SCRIPT_BUILT)

            self._transfer(credential, script, known_hosts)
            self._transition(DeploymentState.TRANSFERRED)
        except BaseException as e:
            self.error = e
            self._transition(DeploymentState.FAILED)
            self.logger.error("❌ Deployment failed")
            raise
        finally:
            self._cleanup(credential, script, known_hosts)

        self._transition(DeploymentState.CLEANED_UP)
        result = DeployResult(files_deployed=manifest.file_count, completed_at=self.clock())
        self._transition(DeploymentState.DONE)
        self.logger.success(
            f"Deployed {result.files_deployed} files to "
            f"{self.config.target}:{self.config.remote_dir}"
        )
        return result

    def _check_tools(self) -> None:
        with self.logger.group("🔧 Checking tools"):
            tools = self.tool_checker.required_for(
                self.config.key_strategy, self.config.sftp_binary
            )
            self.tool_checker.ensure(tools)
            self.logger.info(f"Found: {', '.join(tools)}")
        self._transition(DeploymentState.TOOLS_CHECKED)

    def _validate(self) -> None:
        with self.logger.group("📥 Validating inputs"):
            self.config.validate()
            # Registered before anything could echo it
            self.logger.add_secret(self.config.private_key)
            self.logger.info(f"Host: {self.config.host}")
            self.logger.info(f"Username: {self.config.username}")
            self.logger.info(f"Port: {self.config.port}")
            self.logger.info(f"Source directory: {self.config.source_dir}")
            self.logger.info(f"Remote directory: {self.config.remote_dir}")
            self.enumerator.require_source(self.config.source_dir)
        self._transition(DeploymentState.VALIDATED)

    def _write_known_hosts(self) -> Optional[Path]:
        if not self.config.known_hosts:
            self.logger.warning(
                "No known hosts supplied: host key checking is disabled for this run"
            )
            return None

        path = self.temp_dir / KNOWN_HOSTS_FILE_NAME
        content = self.config.known_hosts
        if not content.endswith("\n"):
            content += "\n"
        try:
            path.write_text(content, encoding="utf-8")
            os.chmod(path, SSH_KEY_PERMISSIONS)
        except OSError as e:
            if path.is_file():
                path.unlink()
            raise CredentialSetupError(
                "Failed to write known hosts file", context=f"{path}: {e.strerror}"
            ) from e
        return path

    def _transfer(self, credential, script: BatchScript, known_hosts: Optional[Path]) -> None:
        with self.logger.group("📤 Executing SFTP transfer"):
            options = TransferOptions(
                known_hosts_file=known_hosts,
                timeout=self.config.timeout,
                binary=self.config.sftp_binary,
                env=self.env,
            )
            self.executor.run(
                credential,
                self.config.host,
                self.config.port,
                self.config.username,
                script,
                options,
            )

    def _cleanup(
        self,
        credential,
        script: Optional[BatchScript],
        known_hosts: Optional[Path],
    ) -> None:
        """Release everything that was created. Never raises."""
        if script is None and credential is None and known_hosts is None:
            return

        with self.logger.group("🧹 Cleanup"):
            if script is not None:
                self.script_builder.remove(script)
            if known_hosts is not None:
                try:
                    known_hosts.unlink()
                except OSError as e:
                    self.logger.warning(
                        str(CleanupWarning(f"Failed to delete known hosts file: {e}"))
                    )
            # A materializer that failed mid-acquire has already cleaned up
            self.key_materializer.release(credential)

    def summary(self) -> Dict[str, str]:
        """State and history, for diagnostics."""
        return {
            "state": self.state.value,
            "history": " → ".join(state.value for state in self.history),
        }
