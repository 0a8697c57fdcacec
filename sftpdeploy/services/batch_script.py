"""sftp batch script rendering."""

import re
from pathlib import Path
from typing import List, Optional

from sftpdeploy.constants import BATCH_FILE_NAME
from sftpdeploy.exceptions import CleanupWarning, SFTPDeployError
from sftpdeploy.logger import DeployLogger
from sftpdeploy.models.config import has_line_break
from sftpdeploy.models.manifest import BatchScript, TransferManifest

NEEDS_QUOTING = re.compile(r'[\s"\'\\#]')
GLOB_CHARS = re.compile(r"([*?\[])")


def quote_argument(value: str, escape_globs: bool = False) -> str:
    """
    Double-quote an argument for the sftp batch grammar.

    sftp expands globs in local paths even inside quotes, so those
    arguments need escape_globs.

    Raises:
        SFTPDeployError: If the value contains a line break
    """
    value = str(value)
    if has_line_break(value):
        raise SFTPDeployError(
            "Line breaks cannot be written to an SFTP batch file", context=repr(value)
        )
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    if escape_globs:
        escaped = GLOB_CHARS.sub(r"\\\1", escaped)
    return f'"{escaped}"'


def quote_if_needed(value: str) -> str:
    """Quote only arguments that would otherwise split or be misread."""
    value = str(value)
    if NEEDS_QUOTING.search(value):
        return quote_argument(value)
    return value


class TransferScriptBuilder:
    """
    Renders a TransferManifest into an `sftp -b` batch script.

    Layout:
        -mkdir <remote_dir>       # "-" makes sftp ignore failure (already exists)
        cd <remote_dir>
        -mkdir <subdir>           # recursive mode only, one per directory
        put "<local>" "<remote>"  # one per manifest entry, in manifest order
    """

    def __init__(self, temp_dir: Path, logger: Optional[DeployLogger] = None):
        self.path = Path(temp_dir) / BATCH_FILE_NAME
        self.logger = logger

    def render(self, remote_dir: str, manifest: TransferManifest) -> str:
        remote = quote_if_needed(remote_dir)
        lines: List[str] = [f"-mkdir {remote}", f"cd {remote}"]

        for directory in manifest.remote_dirs:
            lines.append(f"-mkdir {quote_if_needed(directory)}")

        for entry in manifest.entries:
            lines.append(
                f"put {quote_argument(entry.local_path, escape_globs=True)} "
                f"{quote_argument(entry.remote_name)}"
            )

        return "\n".join(lines) + "\n"

    def build(self, remote_dir: str, manifest: TransferManifest) -> BatchScript:
        """
        Render and write the batch script.

        Raises:
            SFTPDeployError: If the script cannot be written
        """
        content = self.render(remote_dir, manifest)
        try:
            self.path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise SFTPDeployError(
                "Failed to write SFTP batch file", context=f"{self.path}: {e.strerror}"
            ) from e

        if self.logger:
            self.logger.info("SFTP batch file created")
            self.logger.debug(f"Batch file contents:\n{content}")
        return BatchScript(path=self.path, content=content)

    def remove(self, script: Optional[BatchScript] = None) -> None:
        """Delete the batch script. Never raises."""
        path = script.path if script else self.path
        try:
            path.unlink()
            if self.logger:
                self.logger.info("Batch file deleted")
        except FileNotFoundError:
            self._warn(f"Batch file already removed: {path}")
        except OSError as e:
            self._warn(f"Failed to delete batch file: {e}")

    def _warn(self, message: str) -> None:
        if self.logger:
            self.logger.warning(str(CleanupWarning(message)))
