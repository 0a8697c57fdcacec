"""
SFTP Deploy Services Layer

One class per step of a deployment.
"""

from .batch_script import TransferScriptBuilder
from .file_enumerator import FileEnumerator
from .key_service import (
    AgentKeyMaterializer,
    FileKeyMaterializer,
    KeyMaterializer,
    create_key_materializer,
)
from .process_runner import ProcessRunner
from .tool_checker import ToolChecker
from .transfer_service import TransferExecutor, TransferOptions

__all__ = [
    "TransferScriptBuilder",
    "FileEnumerator",
    "KeyMaterializer",
    "FileKeyMaterializer",
    "AgentKeyMaterializer",
    "create_key_materializer",
    "ProcessRunner",
    "ToolChecker",
    "TransferExecutor",
    "TransferOptions",
]
