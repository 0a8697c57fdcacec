"""GitHub Actions runner integration (environment detection and step outputs)."""

from pathlib import Path
from typing import Any, Mapping

from sftpdeploy.constants import GITHUB_ACTIONS_ENV, GITHUB_OUTPUT_ENV


def is_github_actions(env: Mapping[str, str]) -> bool:
    """Check if running inside a GitHub Actions job."""
    return env.get(GITHUB_ACTIONS_ENV, "").lower() == "true"


def write_outputs(outputs: Mapping[str, Any], env: Mapping[str, str]) -> bool:
    """
    Append step outputs to the $GITHUB_OUTPUT file.

    Returns:
        True if outputs were written, False when not running in Actions
    """
    output_path = env.get(GITHUB_OUTPUT_ENV)
    if not output_path:
        return False

    with Path(output_path).open("a", encoding="utf-8") as handle:
        for name, value in outputs.items():
            handle.write(f"{name}={value}\n")
    return True
