import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional

import pytest

# Ensure project root is on sys.path so `infrastructure.*` imports resolve
_repo_root = Path(__file__).resolve().parents[1]
_repo_root_str = str(_repo_root)
if _repo_root_str not in sys.path:
    sys.path.insert(0, _repo_root_str)


TEST_ACCOUNT = "123456789012"
TEST_REGION = "eu-west-1"


@pytest.fixture(autouse=True)
def cdk_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear ambient CDK account/region so resolution only sees what a test sets."""
    monkeypatch.delenv("CDK_DEFAULT_ACCOUNT", raising=False)
    monkeypatch.delenv("CDK_DEFAULT_REGION", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    yield


@pytest.fixture
def raw_environment() -> Callable[..., Dict[str, Any]]:
    """Build a complete raw environment record with optional overrides."""

    def _build(**overrides: Any) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "account": TEST_ACCOUNT,
            "region": TEST_REGION,
            "serviceName": "orders-api",
            "memory": 1024,
            "fargateCpu": 512,
            "logRetentionDays": 10,
            "desiredInstantCount": 2,
        }
        record.update(overrides)
        return {key: value for key, value in record.items() if value is not None}

    return _build


@pytest.fixture
def make_app_env(raw_environment: Callable[..., Dict[str, Any]]) -> Callable[..., Any]:
    """Resolve an AppEnvironment for ``name`` from a single-entry source."""
    from infrastructure.config.app_environment import resolve_environment

    def _apply(name: str = "dev", *, context: Optional[Dict[str, Any]] = None, **overrides: Any):
        source = {name: raw_environment(**overrides)}
        return resolve_environment(name, source, context or {}, environ={})

    return _apply


def pytest_configure(config):
    """Configure pytest with essential markers."""
    config.addinivalue_line("markers", "unit: unit test")
    config.addinivalue_line("markers", "infrastructure: synthesizes CDK stacks")


def pytest_collection_modifyitems(config, items):
    """Add markers based on file location."""
    rootdir = Path(config.rootdir)

    for item in items:
        rel_path = Path(item.fspath).relative_to(rootdir)

        if "unit" in rel_path.parts:
            item.add_marker(pytest.mark.unit)
        if "infrastructure" in rel_path.parts:
            item.add_marker(pytest.mark.infrastructure)
