# ==============================================================================
# Path Utilities
# ==============================================================================
"""
Project path detection.

Relative paths in the settings (data files, GeoIP database, static pages)
are resolved against the project root returned here.
"""

from pathlib import Path


def get_project_root() -> Path:
    """
    Get the project root directory.

    The directory holding pyproject.toml next to the sitepulse package,
    falling back to the current working directory.

    Returns:
        Path to the project root directory
    """
    current = Path(__file__).parent.parent.parent  # utils/paths.py -> sitepulse -> project
    if (current / "pyproject.toml").exists():
        return current

    return Path.cwd()
