"""Configuration files (YAML) and the helper that reads them.

`ConfigManager` loads the defaults packaged in this folder and merges them
with user overrides.
"""

from .manager import ConfigManager

__all__ = [
    "ConfigManager",
]
