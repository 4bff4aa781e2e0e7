from __future__ import annotations

from typing import Dict

# Mapping of override field names to environment variable names.
ENV_VARS: Dict[str, str] = {
    "windows": "CONDA_OVERRIDE_WIN",
    "macos": "CONDA_OVERRIDE_OSX",
    "linux": "CONDA_OVERRIDE_LINUX",
}
