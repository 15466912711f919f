import json
import os
from pathlib import Path

from dotenv import dotenv_values

JSONSNAPCONFIG = ".jsonsnapconfig"
GLOBAL_CONFIG_FILE = Path.home() / ".jsonsnap" / "config.json"

DEFAULT_TRACKED = {
    "articles": "articles.json",
    "articlestypes": "articlestypes.json",
    "brandInfo": "brandInfo.json",
    "events": "events.json",
}

DEFAULT_CONFIG = {
    "data_dir": "public/data",
    # None means <data_dir>/Sauvegarde
    "backup_dir": None,
    "keep": 5,
    "host": "127.0.0.1",
    "port": 5000,
    "tracked": DEFAULT_TRACKED,
    "backup_defaults": ["articles", "articlestypes"],
}

# Environment variable -> config key
ENV_OVERRIDES = {
    "JSONSNAP_DATA_DIR": "data_dir",
    "JSONSNAP_BACKUP_DIR": "backup_dir",
    "JSONSNAP_KEEP": "keep",
    "JSONSNAP_HOST": "host",
    "JSONSNAP_PORT": "port",
}

_INT_KEYS = ("keep", "port")


def load_global_config():
    """Load ~/.jsonsnap/config.json, the per-user defaults."""
    if GLOBAL_CONFIG_FILE.exists():
        try:
            return json.loads(GLOBAL_CONFIG_FILE.read_text())
        except (json.JSONDecodeError, OSError):
            pass
    return {}


def find_config(start=None):
    """Walk up from start (default cwd) to find .jsonsnapconfig, like git finds .git."""
    current = Path(start) if start else Path.cwd()
    for parent in [current, *current.parents]:
        config_path = parent / JSONSNAPCONFIG
        if config_path.exists():
            return config_path
    return None


def _env_overrides(root):
    """Collect overrides from <root>/.env and os.environ (os.environ wins)."""
    values = {}
    env_file = root / ".env"
    if env_file.exists():
        for key, value in dotenv_values(env_file).items():
            if key in ENV_OVERRIDES and value:
                values[ENV_OVERRIDES[key]] = value
    for key, config_key in ENV_OVERRIDES.items():
        if os.environ.get(key):
            values[config_key] = os.environ[key]
    return values


def load_config(start=None):
    """Build the effective config.

    Merge order: defaults -> global config -> project .jsonsnapconfig -> env.
    Paths come back absolute, resolved against the project root (the
    directory holding .jsonsnapconfig, else the start directory).
    """
    config = {**DEFAULT_CONFIG, **load_global_config()}

    config_path = find_config(start)
    if config_path:
        try:
            raw = json.loads(config_path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {config_path}: {e}")
        if not isinstance(raw, dict):
            raise ValueError(f"{config_path} must contain a JSON object")
        config.update(raw)
        root = config_path.parent
    else:
        root = Path(start) if start else Path.cwd()

    config.update(_env_overrides(root))

    for key in _INT_KEYS:
        try:
            config[key] = int(config[key])
        except (TypeError, ValueError):
            raise ValueError(f"Config key {key!r} must be an integer, got {config[key]!r}")
    if config["keep"] < 1:
        raise ValueError("Config key 'keep' must be at least 1")

    if not isinstance(config.get("tracked"), dict) or not config["tracked"]:
        raise ValueError("Config key 'tracked' must map logical names to file names")

    root = root.resolve()
    data_dir = root / config["data_dir"]
    backup_dir = root / config["backup_dir"] if config.get("backup_dir") else data_dir / "Sauvegarde"
    config["root"] = str(root)
    config["data_dir"] = str(data_dir)
    config["backup_dir"] = str(backup_dir)
    return config


def init_config(path=None, data_dir=None):
    """Create a .jsonsnapconfig in the given directory."""
    target = Path(path) if path else Path.cwd()
    config_path = target / JSONSNAPCONFIG
    init = {
        "data_dir": data_dir or DEFAULT_CONFIG["data_dir"],
        "keep": DEFAULT_CONFIG["keep"],
        "tracked": dict(DEFAULT_TRACKED),
    }
    config_path.write_text(json.dumps(init, indent=2) + "\n")
    return config_path
