import os
import sys
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest


# Ensure project root is on sys.path for flexible imports (tests.fixtures, event_pipeline)
_repo_root = Path(__file__).resolve().parents[1]
_repo_root_str = str(_repo_root)
if _repo_root_str not in sys.path:
    sys.path.insert(0, _repo_root_str)


@pytest.fixture(autouse=True)
def aws_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Ensure default AWS region is set for moto/boto3 clients and clear cross-test env leaks."""
    monkeypatch.setenv("AWS_REGION", os.environ.get("AWS_REGION", "us-east-1"))
    monkeypatch.setenv("AWS_DEFAULT_REGION", os.environ.get("AWS_DEFAULT_REGION", "us-east-1"))
    # Provide dummy credentials so botocore signing doesn't fail under moto
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", os.environ.get("AWS_ACCESS_KEY_ID", "testing"))
    monkeypatch.setenv(
        "AWS_SECRET_ACCESS_KEY",
        os.environ.get("AWS_SECRET_ACCESS_KEY", "testing"),
    )
    monkeypatch.setenv("AWS_SESSION_TOKEN", os.environ.get("AWS_SESSION_TOKEN", "testing"))

    # Presets read these at import time; keep them out of unit tests
    monkeypatch.delenv("ALARM_EMAIL", raising=False)
    yield


@pytest.fixture
def load_module() -> Callable[[str], dict[str, Any]]:
    import runpy

    def _apply(path: str) -> dict[str, Any]:
        return runpy.run_path(str(_repo_root / path))

    return _apply


def pytest_configure(config):
    """Configure pytest with essential markers."""
    config.addinivalue_line("markers", "unit: unit test")
    config.addinivalue_line("markers", "infrastructure: CDK synthesis test")
    config.addinivalue_line("markers", "graph: resource graph builder test")
    config.addinivalue_line("markers", "lambda_test: Lambda handler test")
    config.addinivalue_line("markers", "cli: command line script test")


def pytest_collection_modifyitems(config, items):
    """Add markers based on file location."""
    rootdir = Path(config.rootpath)

    for item in items:
        try:
            rel_path = Path(item.path).relative_to(rootdir)
        except ValueError:
            continue

        if "unit" in rel_path.parts:
            item.add_marker(pytest.mark.unit)
        if "graph" in rel_path.parts:
            item.add_marker(pytest.mark.graph)
        if "lambda" in rel_path.parts:
            item.add_marker(pytest.mark.lambda_test)
        if "infrastructure" in rel_path.parts:
            item.add_marker(pytest.mark.infrastructure)
        if "scripts" in rel_path.parts:
            item.add_marker(pytest.mark.cli)
