"""Pre-flight check for the executables a deployment shells out to."""

import shutil
from typing import Dict, List, Optional

from sftpdeploy.constants import REQUIRED_TOOLS
from sftpdeploy.exceptions import ToolNotFoundError


class ToolChecker:
    """Looks up required tools on PATH."""

    def __init__(self, path: Optional[str] = None):
        self.path = path

    def check_tool(self, tool_name: str) -> bool:
        """Check if a tool is installed."""
        return shutil.which(tool_name, path=self.path) is not None

    def status(self, tools: List[str]) -> Dict[str, bool]:
        return {tool: self.check_tool(tool) for tool in tools}

    def required_for(self, key_strategy: str, sftp_binary: str = "sftp") -> List[str]:
        """Tools needed by a key strategy, with the configured sftp binary."""
        tools = list(REQUIRED_TOOLS.get(key_strategy, REQUIRED_TOOLS["file"]))
        return [sftp_binary if tool == "sftp" else tool for tool in tools]

    def ensure(self, tools: List[str]) -> None:
        """
        Raises:
            ToolNotFoundError: Naming every missing tool
        """
        missing = [tool for tool, ok in self.status(tools).items() if not ok]
        if missing:
            raise ToolNotFoundError(
                f"Required tool(s) not found on PATH: {', '.join(missing)}",
                context="Install the OpenSSH client (e.g. apt-get install openssh-client)",
            )
