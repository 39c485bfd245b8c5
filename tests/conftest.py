import sys
import pytest

from jsi.config.settings import resetSettings
from jsi.defaults import newDefaultRegistry, setDefaultRegistry
from jsi.registry import Registry



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



@pytest.fixture(autouse=True)
def _isolatedDefaults(monkeypatch: pytest.MonkeyPatch):
    """Each test starts from built-in settings and a fresh default registry."""
    monkeypatch.delenv("JSI_SETTINGS", raising=False)
    resetSettings()
    setDefaultRegistry(None)
    yield
    setDefaultRegistry(None)
    resetSettings()



@pytest.fixture
def registry() -> Registry:
    """A registry of its own with the draft meta-schemas available, independent of the default one."""
    return newDefaultRegistry()
