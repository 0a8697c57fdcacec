"""File enumeration for the upload manifest."""

import os
import stat
from pathlib import Path
from typing import List, Optional, Set

from sftpdeploy.exceptions import SourceNotFoundError
from sftpdeploy.logger import DeployLogger
from sftpdeploy.models.config import has_line_break
from sftpdeploy.models.manifest import ManifestEntry, TransferManifest


class FileEnumerator:
    """
    Builds the TransferManifest for a source directory.

    Only regular files are included. Directories are skipped unless
    recursive mode is on. Entries are sorted by name, so identical
    directory contents always give the same manifest.
    """

    def __init__(self, logger: Optional[DeployLogger] = None, recursive: bool = False):
        self.logger = logger
        self.recursive = recursive

    def require_source(self, source_dir: Path) -> None:
        """
        Fail fast when the source directory is missing.

        Raises:
            SourceNotFoundError: If source_dir does not exist or is not a directory
        """
        source_dir = Path(source_dir)
        if not source_dir.exists():
            raise SourceNotFoundError(f"Source directory {source_dir} does not exist")
        if not source_dir.is_dir():
            raise SourceNotFoundError(f"Source path {source_dir} is not a directory")

    def enumerate(self, source_dir: Path) -> TransferManifest:
        """
        List the files to upload.

        Returns:
            TransferManifest with entries in name order

        Raises:
            SourceNotFoundError: If source_dir does not exist
        """
        source_dir = Path(source_dir)
        manifest = TransferManifest()

        try:
            self._scan(source_dir, "", manifest, set())
        except (FileNotFoundError, NotADirectoryError):
            raise SourceNotFoundError(
                f"Source directory {source_dir} does not exist"
            ) from None

        if self.logger:
            self.logger.info(f"Found {manifest.file_count} files to upload")
        return manifest

    def _scan(
        self, directory: Path, prefix: str, manifest: TransferManifest, seen: Set[str]
    ) -> None:
        seen.add(os.path.realpath(directory))
        with os.scandir(directory) as it:
            names: List[str] = sorted(entry.name for entry in it)

        for name in names:
            path = directory / name
            if has_line_break(name):
                if self.logger:
                    self.logger.warning(
                        f"Skipping {str(path)!r}: file names with line breaks cannot be uploaded"
                    )
                continue
            remote_name = f"{prefix}{name}"
            try:
                mode = os.stat(path).st_mode
            except FileNotFoundError:
                # Vanished mid-scan or a dangling symlink
                self._skip(path, "not found")
                continue

            if stat.S_ISREG(mode):
                manifest.entries.append(ManifestEntry(local_path=path, remote_name=remote_name))
            elif stat.S_ISDIR(mode):
                if self.recursive and os.path.realpath(path) in seen:
                    self._skip(path, "symlink loop")
                elif self.recursive:
                    manifest.remote_dirs.append(remote_name)
                    self._scan(path, f"{remote_name}/", manifest, seen)
                else:
                    self._skip(path, "directory")
            else:
                self._skip(path, "not a regular file")

    def _skip(self, path: Path, reason: str) -> None:
        if self.logger:
            self.logger.debug(f"Skipping {path} ({reason})")
