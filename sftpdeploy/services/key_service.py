"""Key materialization: turn the raw private key into something sftp can use."""

import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import MutableMapping, Optional, Union

from sftpdeploy.constants import (
    IDENTITY_FILE_NAME,
    KEY_STRATEGY_AGENT,
    KEY_STRATEGY_FILE,
    SSH_AGENT_PID,
    SSH_AUTH_SOCK,
    SSH_KEY_PERMISSIONS,
)
from sftpdeploy.exceptions import CleanupWarning, ConfigValidationError, CredentialSetupError
from sftpdeploy.logger import DeployLogger
from sftpdeploy.models.config import normalize_key
from sftpdeploy.models.ssh import AgentCredential, IdentityFileCredential
from sftpdeploy.services.process_runner import ProcessRunner

Credential = Union[AgentCredential, IdentityFileCredential]

# ssh-agent -s prints e.g. "SSH_AUTH_SOCK=/tmp/ssh-x/agent.1; export SSH_AUTH_SOCK;"
AGENT_ASSIGNMENT = re.compile(r"(\w+)=([^;\n]*);")


def parse_agent_output(stdout: str) -> AgentCredential:
    """
    Extract the socket path and pid from `ssh-agent -s` output.

    Raises:
        CredentialSetupError: If either value is missing
    """
    values = dict(AGENT_ASSIGNMENT.findall(stdout or ""))
    socket_path = values.get(SSH_AUTH_SOCK, "").strip()
    agent_pid = values.get(SSH_AGENT_PID, "").strip()

    if not socket_path or not agent_pid:
        raise CredentialSetupError(
            "Unexpected ssh-agent output",
            context=f"Expected {SSH_AUTH_SOCK}=...; and {SSH_AGENT_PID}=...; got: "
            f"{(stdout or '').strip()[:200]!r}",
        )
    return AgentCredential(socket_path=socket_path, agent_pid=agent_pid)


class KeyMaterializer(ABC):
    """
    Owns the private key for the length of one deployment.

    acquire() normalizes the key and registers it with the logger as a
    secret before anything else happens. release() tolerates being called
    with nothing acquired or twice, and never raises.
    """

    def __init__(self, logger: DeployLogger):
        self.logger = logger
        self.credential: Optional[Credential] = None

    def acquire(self, raw_key: str) -> Credential:
        """Materialize the key and return the active credential."""
        key = normalize_key(raw_key)
        self.logger.add_secret(raw_key)
        self.logger.add_secret(key)

        self.credential = self._materialize(key)
        return self.credential

    def release(self, credential: Optional[Credential] = None) -> None:
        """Destroy the credential. Problems are logged as warnings."""
        credential = credential or self.credential
        if credential is None:
            return
        try:
            self._destroy(credential)
        except Exception as e:
            self._warn(f"Unexpected cleanup failure: {e}")
        finally:
            if credential is self.credential:
                self.credential = None

    def _warn(self, message: str) -> None:
        self.logger.warning(str(CleanupWarning(message)))

    @abstractmethod
    def _materialize(self, key: str) -> Credential:
        pass

    @abstractmethod
    def _destroy(self, credential: Credential) -> None:
        pass


class FileKeyMaterializer(KeyMaterializer):
    """Writes the key to an owner read/write only file in the temp dir."""

    def __init__(self, logger: DeployLogger, temp_dir: Path):
        super().__init__(logger)
        self.path = Path(temp_dir) / IDENTITY_FILE_NAME

    def _materialize(self, key: str) -> IdentityFileCredential:
        self.logger.info("Writing SSH identity file...")

        try:
            if self.path.exists() or self.path.is_symlink():
                self.path.unlink()
            # O_EXCL: never write through a file or symlink someone else placed
            fd = os.open(
                str(self.path),
                os.O_WRONLY | os.O_CREAT | os.O_EXCL,
                SSH_KEY_PERMISSIONS,
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(key)
            os.chmod(self.path, SSH_KEY_PERMISSIONS)
        except OSError as e:
            self._remove_partial()
            raise CredentialSetupError(
                "Failed to write SSH identity file",
                context=f"{self.path}: {e.strerror or e.__class__.__name__}",
            ) from None

        self.logger.success("SSH identity file created")
        return IdentityFileCredential(path=self.path)

    def _remove_partial(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self._warn(f"Failed to delete partial identity file: {e}")

    def _destroy(self, credential: IdentityFileCredential) -> None:
        try:
            credential.path.unlink()
            self.logger.info("Identity file deleted")
        except FileNotFoundError:
            self._warn(f"Identity file already removed: {credential.path}")
        except OSError as e:
            self._warn(f"Failed to delete identity file: {e}")


class AgentKeyMaterializer(KeyMaterializer):
    """Loads the key into a private ssh-agent started for this run."""

    def __init__(
        self,
        logger: DeployLogger,
        env: MutableMapping[str, str],
        runner: Optional[ProcessRunner] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(logger)
        self.env = env
        self.runner = runner or ProcessRunner()
        self.timeout = timeout

    def _materialize(self, key: str) -> AgentCredential:
        self.logger.info("Starting ssh-agent process...")
        try:
            result = self.runner.run(["ssh-agent", "-s"], env=self.env, timeout=self.timeout)
        except (OSError, TimeoutError) as e:
            raise CredentialSetupError("Failed to start ssh-agent", context=str(e)) from e

        if result.is_failure:
            raise CredentialSetupError(
                f"ssh-agent exited with status {result.returncode}",
                context=self.logger.mask(result.stderr.strip()) or None,
            )

        try:
            credential = parse_agent_output(result.stdout)
        except CredentialSetupError:
            self._kill_unparsed_agent(result.stdout)
            raise
        credential.apply_env(self.env)
        self.logger.info(f"SSH agent started with PID: {credential.agent_pid}")

        self.logger.info("Adding SSH key to agent...")
        try:
            added = self.runner.run(
                ["ssh-add", "-"],
                input=key.encode("utf-8"),
                env=self.env,
                timeout=self.timeout,
            )
        except (OSError, TimeoutError) as e:
            self._destroy(credential)
            raise CredentialSetupError("Failed to run ssh-add", context=str(e)) from e

        if added.is_failure:
            self._destroy(credential)
            raise CredentialSetupError(
                "Failed to add SSH key to agent",
                context=self.logger.mask(added.stderr.strip()) or None,
            )

        self.logger.success("SSH key added successfully")
        return credential

    def _kill_unparsed_agent(self, stdout: str) -> None:
        """Stop an agent whose output gave a pid but no usable socket."""
        values = dict(AGENT_ASSIGNMENT.findall(stdout or ""))
        agent_pid = values.get(SSH_AGENT_PID, "").strip()
        if agent_pid:
            self._destroy(AgentCredential(socket_path="", agent_pid=agent_pid))

    def _destroy(self, credential: AgentCredential) -> None:
        self.logger.info("Terminating SSH agent...")
        env = dict(self.env)
        env.update(credential.env_vars)
        try:
            result = self.runner.run(["ssh-agent", "-k"], env=env, timeout=self.timeout)
            if result.is_failure:
                self._warn(
                    f"Failed to cleanup ssh-agent (exit {result.returncode}): "
                    f"{self.logger.mask(result.stderr.strip())}"
                )
            else:
                self.logger.info("SSH agent terminated")
        except (OSError, TimeoutError) as e:
            self._warn(f"Failed to cleanup ssh-agent: {e}")
        finally:
            for name in credential.env_vars:
                self.env.pop(name, None)


def create_key_materializer(
    strategy: str,
    logger: DeployLogger,
    temp_dir: Path,
    env: MutableMapping[str, str],
    runner: Optional[ProcessRunner] = None,
    timeout: Optional[float] = None,
) -> KeyMaterializer:
    """Build the materializer for a key strategy ("file" or "agent")."""
    if strategy == KEY_STRATEGY_FILE:
        return FileKeyMaterializer(logger, temp_dir)
    if strategy == KEY_STRATEGY_AGENT:
        return AgentKeyMaterializer(logger, env, runner=runner, timeout=timeout)
    raise ConfigValidationError(f"Unknown key strategy: {strategy}")
