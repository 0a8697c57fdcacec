"""
Transfer Manifest Models

The ordered set of local files one deployment uploads, and the batch
script rendered from it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List


@dataclass(frozen=True)
class ManifestEntry:
    """One local file and the name it gets under the remote directory."""

    local_path: Path
    remote_name: str


@dataclass
class TransferManifest:
    """Files to transfer, in upload order."""

    entries: List[ManifestEntry] = field(default_factory=list)
    # Relative sub-directories to create remotely (recursive mode only)
    remote_dirs: List[str] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"TransferManifest(files={self.file_count}, dirs={len(self.remote_dirs)})"


@dataclass(frozen=True)
class BatchScript:
    """A batch file on disk consumed by `sftp -b`."""

    path: Path
    content: str

    @property
    def exists(self) -> bool:
        return self.path.exists()

    @property
    def lines(self) -> List[str]:
        return self.content.splitlines()
