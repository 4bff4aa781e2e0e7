import pytest

from hostprobe import platform_utils
from hostprobe.config_model import ENV_VARS


@pytest.fixture(autouse=True)
def _clear_overrides(monkeypatch):
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_system(monkeypatch):
    """Pretend to run on the given ``platform.system()`` value."""

    def _set(name):
        monkeypatch.setattr(platform_utils, "system", lambda: name)

    return _set
