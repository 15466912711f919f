import json

import pytest

from jsonsnap import config as config_module
from jsonsnap.config import DEFAULT_TRACKED, ENV_OVERRIDES
from jsonsnap.snapshot.local import LocalSnapshotStore
from jsonsnap.tracked import TrackedFiles


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from ~/.jsonsnap and the caller's JSONSNAP_* variables."""
    for key in ENV_OVERRIDES:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("JSONSNAP_LOG_FILE", str(tmp_path / "home" / "logs.jsonl"))
    monkeypatch.setattr(config_module, "GLOBAL_CONFIG_FILE", tmp_path / "home" / "config.json")


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "public" / "data"
    path.mkdir(parents=True)
    (path / "articles.json").write_text(json.dumps([{"id": 1}]))
    (path / "articlestypes.json").write_text(json.dumps([{"type": "robe"}]))
    (path / "brandInfo.json").write_text(json.dumps({"name": "Maison"}))
    return path


@pytest.fixture
def tracked(data_dir):
    return TrackedFiles(data_dir, DEFAULT_TRACKED)


@pytest.fixture
def store(data_dir, tracked):
    return LocalSnapshotStore(data_dir / "Sauvegarde", tracked=tracked, keep=5)


@pytest.fixture
def log_entries(tmp_path):
    """Read back the audit log written during the test."""
    def read():
        path = tmp_path / "home" / "logs.jsonl"
        if not path.exists():
            return []
        return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]
    return read
