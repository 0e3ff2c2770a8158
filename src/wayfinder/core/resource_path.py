"""Resource path resolution for the shipped config and sample data.

Typical usage:
    from wayfinder.core.resource_path import get_config_path

    settings_file = get_config_path("navigation.yaml")
"""

from pathlib import Path


def get_project_root() -> Path:
    """Get the project root directory.

    Returns:
        Path to the project root (the directory holding ``config/``), found by
        walking up from ``src/wayfinder/core``. This only points at the
        shipped ``config/`` and ``data/`` in a source or editable checkout;
        from an installed wheel the path does not exist and callers fall back
        to built-in defaults.
    """
    return Path(__file__).resolve().parent.parent.parent.parent


def get_resource_path(relative_path: str) -> Path:
    """Get absolute path to a resource file or directory.

    Args:
        relative_path: Relative path from project root (e.g., "config/logging.yaml")

    Returns:
        Absolute path to the resource.
    """
    return get_project_root() / relative_path


def get_config_path(config_file: str) -> Path:
    """Get path to a configuration file.

    Args:
        config_file: Config filename (e.g., "navigation.yaml")

    Returns:
        Absolute path to the config file.

    Examples:
        >>> get_config_path("navigation.yaml").name
        'navigation.yaml'
    """
    return get_resource_path(f"config/{config_file}")
