"""
SSH Credential Models

The two forms a materialized private key can take. Exactly one is active
per deployment.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, MutableMapping

from sftpdeploy.constants import SSH_AGENT_PID, SSH_AUTH_SOCK


@dataclass(frozen=True)
class AgentCredential:
    """Key loaded into a running ssh-agent."""

    socket_path: str
    agent_pid: str

    @property
    def identity_args(self) -> List[str]:
        """The agent is found through the environment, not an argument."""
        return []

    @property
    def env_vars(self) -> Dict[str, str]:
        return {SSH_AUTH_SOCK: self.socket_path, SSH_AGENT_PID: self.agent_pid}

    def apply_env(self, env: MutableMapping[str, str]) -> None:
        """Export the agent socket and pid into a process environment."""
        env.update(self.env_vars)

    def __repr__(self) -> str:
        return f"AgentCredential(pid={self.agent_pid})"


@dataclass(frozen=True)
class IdentityFileCredential:
    """Key written to an owner-only temporary file."""

    path: Path

    @property
    def identity_args(self) -> List[str]:
        """Get identity arguments for the ssh/sftp command line."""
        return ["-i", str(self.path)]

    @property
    def env_vars(self) -> Dict[str, str]:
        return {}

    def apply_env(self, env: MutableMapping[str, str]) -> None:
        """Identity files need nothing in the environment."""
        return None

    @property
    def exists(self) -> bool:
        """Check if the identity file is still on disk."""
        return self.path.exists()

    def __repr__(self) -> str:
        return f"IdentityFileCredential(path={self.path})"
