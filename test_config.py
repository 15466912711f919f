import json
from pathlib import Path

import pytest

from jsonsnap import config as config_module
from jsonsnap.config import JSONSNAPCONFIG, find_config, init_config, load_config


def test_defaults_without_any_config(tmp_path):
    config = load_config(tmp_path)

    root = tmp_path.resolve()
    assert config["root"] == str(root)
    assert config["data_dir"] == str(root / "public" / "data")
    assert config["backup_dir"] == str(root / "public" / "data" / "Sauvegarde")
    assert config["keep"] == 5
    assert config["port"] == 5000
    assert set(config["tracked"]) == {"articles", "articlestypes", "brandInfo", "events"}


def test_find_config_walks_up(tmp_path):
    (tmp_path / JSONSNAPCONFIG).write_text("{}")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert find_config(nested) == tmp_path / JSONSNAPCONFIG


def test_project_config_paths_resolve_against_its_directory(tmp_path):
    (tmp_path / JSONSNAPCONFIG).write_text(json.dumps({"data_dir": "data", "backup_dir": "snaps", "keep": 3}))
    nested = tmp_path / "src"
    nested.mkdir()

    config = load_config(nested)

    assert config["data_dir"] == str(tmp_path.resolve() / "data")
    assert config["backup_dir"] == str(tmp_path.resolve() / "snaps")
    assert config["keep"] == 3


def test_merge_order_global_then_project_then_env(tmp_path, monkeypatch):
    global_file = tmp_path / "home" / "config.json"
    global_file.parent.mkdir(parents=True, exist_ok=True)
    global_file.write_text(json.dumps({"keep": 7, "port": 8000, "host": "0.0.0.0"}))
    (tmp_path / JSONSNAPCONFIG).write_text(json.dumps({"keep": 4}))
    monkeypatch.setenv("JSONSNAP_PORT", "9000")

    config = load_config(tmp_path)

    assert config["host"] == "0.0.0.0"
    assert config["keep"] == 4
    assert config["port"] == 9000


def test_dotenv_file_next_to_project_config(tmp_path, monkeypatch):
    (tmp_path / JSONSNAPCONFIG).write_text("{}")
    (tmp_path / ".env").write_text("JSONSNAP_KEEP=2\nJSONSNAP_DATA_DIR=catalog\nUNRELATED=1\n")

    config = load_config(tmp_path)
    assert config["keep"] == 2
    assert config["data_dir"] == str(tmp_path.resolve() / "catalog")

    monkeypatch.setenv("JSONSNAP_KEEP", "8")
    assert load_config(tmp_path)["keep"] == 8


def test_invalid_json_is_reported(tmp_path):
    (tmp_path / JSONSNAPCONFIG).write_text("{nope")
    with pytest.raises(ValueError, match="Invalid JSON"):
        load_config(tmp_path)


@pytest.mark.parametrize("raw", [{"keep": "many"}, {"keep": 0}, {"port": None}, {"tracked": {}}])
def test_invalid_values_are_rejected(tmp_path, raw):
    (tmp_path / JSONSNAPCONFIG).write_text(json.dumps(raw))
    with pytest.raises(ValueError):
        load_config(tmp_path)


def test_unreadable_global_config_is_ignored(tmp_path):
    Path(config_module.GLOBAL_CONFIG_FILE).parent.mkdir(parents=True, exist_ok=True)
    Path(config_module.GLOBAL_CONFIG_FILE).write_text("{oops")
    assert load_config(tmp_path)["keep"] == 5


def test_init_config(tmp_path):
    path = init_config(tmp_path, data_dir="data")
    assert path == tmp_path / JSONSNAPCONFIG
    written = json.loads(path.read_text())
    assert written["data_dir"] == "data"
    assert written["keep"] == 5
    assert load_config(tmp_path)["data_dir"] == str(tmp_path.resolve() / "data")
