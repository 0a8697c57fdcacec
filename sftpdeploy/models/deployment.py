"""
Deployment State Models

Lifecycle states of one deployment run.
"""

from enum import Enum


class DeploymentState(Enum):
    """Status of a deployment in its lifecycle."""

    INIT = "init"
    TOOLS_CHECKED = "tools_checked"
    VALIDATED = "validated"
    CREDENTIAL_ACQUIRED = "credential_acquired"
    ENUMERATED = "enumerated"
    SCRIPT_BUILT = "script_built"
    TRANSFERRED = "transferred"
    CLEANED_UP = "cleaned_up"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible."""
        return self in (DeploymentState.DONE, DeploymentState.FAILED)


# Forward path, in order. FAILED is reachable from any non-terminal state.
DEPLOYMENT_SEQUENCE = [
    DeploymentState.INIT,
    DeploymentState.TOOLS_CHECKED,
    DeploymentState.VALIDATED,
    DeploymentState.CREDENTIAL_ACQUIRED,
    DeploymentState.ENUMERATED,
    DeploymentState.SCRIPT_BUILT,
    DeploymentState.TRANSFERRED,
    DeploymentState.CLEANED_UP,
    DeploymentState.DONE,
]
