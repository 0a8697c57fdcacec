"""
SFTP Deploy Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .config import DeployConfig, normalize_key
from .deployment import DEPLOYMENT_SEQUENCE, DeploymentState
from .manifest import BatchScript, ManifestEntry, TransferManifest
from .results import DeployResult, ExecutionResult, TransferReport
from .ssh import AgentCredential, IdentityFileCredential

__all__ = [
    # Config
    "DeployConfig",
    "normalize_key",
    # Deployment
    "DeploymentState",
    "DEPLOYMENT_SEQUENCE",
    # Manifest
    "BatchScript",
    "ManifestEntry",
    "TransferManifest",
    # Results
    "DeployResult",
    "ExecutionResult",
    "TransferReport",
    # SSH
    "AgentCredential",
    "IdentityFileCredential",
]
