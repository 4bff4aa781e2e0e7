from __future__ import annotations

import os
from typing import Mapping

from .config_model import ENV_VARS
from .config_schema import OverrideConfig, validate_overrides


def load_overrides(environ: Mapping[str, str] | None = None) -> OverrideConfig:
    """Return the version overrides currently present in ``environ``.

    ``environ`` defaults to :data:`os.environ`.  The environment is read on
    every call so changes made after import are honoured.
    """
    env = os.environ if environ is None else environ
    data = {field: env.get(var, "") for field, var in ENV_VARS.items()}
    return validate_overrides(data)


def override_for(family: str, environ: Mapping[str, str] | None = None) -> str:
    """Return the override for ``family`` or ``""`` when unset."""
    return load_overrides(environ).for_family(family)
