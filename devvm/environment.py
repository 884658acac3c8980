"""Host and working-directory checks for devvm."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List, Optional

from devvm.constants import BASE_TOOLS, INSTALL_GUIDANCE, MARKER_NAME, PROVIDER_TOOLS
from devvm.exceptions import PreconditionError
from devvm.utils import is_empty_directory, log


def required_tools(provider: str) -> List[str]:
    return list(BASE_TOOLS) + [PROVIDER_TOOLS[provider]]


def check_dependencies(provider: str) -> None:
    """Fail on the first required executable that is not on PATH."""
    for tool in required_tools(provider):
        if shutil.which(tool) is None:
            guidance = INSTALL_GUIDANCE.get(tool, f"Install '{tool}' and make sure it is on your PATH.")
            raise PreconditionError(f"'{tool}' was not found on PATH.\n{guidance}")
        log("DEBUG", f"Found {tool}")


def check_environment(start: Optional[Path] = None) -> Path:
    """Return the nearest directory at or above ``start`` holding the marker file."""
    current = (start or Path.cwd()).resolve()
    while True:
        if (current / MARKER_NAME).is_file():
            return current
        parent = current.parent
        if parent == current:
            raise PreconditionError(
                f"No {MARKER_NAME} marker found in this directory or any parent.\n"
                "  Run this command from inside an environment created with 'devvm init'."
            )
        current = parent


def require_empty_directory(path: Path) -> None:
    if not is_empty_directory(path):
        raise PreconditionError(
            f"{path} is not empty.\n"
            "  'devvm init' must be run in an empty directory (hidden files count too)."
        )


def write_marker(root: Path) -> Path:
    marker = root / MARKER_NAME
    marker.touch()
    return marker
