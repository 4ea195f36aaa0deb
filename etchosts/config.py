import json
import logging
import os
from typing import Dict

from etchosts.access import DEFAULT_HOSTS_PATH

logger = logging.getLogger(__name__)

CONFIG_PATH = "config.json"

DEFAULT_CONFIG = {
    "hosts_path": DEFAULT_HOSTS_PATH,
    "writer": "auto",
    "backup": False,
    "verbose": False,
    "log_file": "etchosts.log",
}


def load_config(path: str = CONFIG_PATH) -> Dict:
    """Loads configuration from a JSON file, falling back to defaults."""
    config = dict(DEFAULT_CONFIG)
    if not os.path.exists(path):
        return config

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return config

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return config

    config.update(data)
    return config


def save_config(config: Dict, path: str = CONFIG_PATH):
    """Saves configuration to a JSON file."""
    with open(path, "w") as f:
        json.dump(config, f, indent=4)


def init_config(path: str = CONFIG_PATH) -> Dict:
    """Loads the configuration, writing the defaults first if the file is missing."""
    if not os.path.exists(path):
        try:
            save_config(DEFAULT_CONFIG, path)
            logger.info("Created default config at %s", path)
        except OSError as e:
            logger.warning("Could not create config %s: %s", path, e)
    return load_config(path)
