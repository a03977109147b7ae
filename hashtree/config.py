"""
Hash function configuration loaded from TOML.

Default location: ~/.hashtree/config.toml

    algorithm = "sha3_256"
    backend = "cryptography"
    domain_separation = true

Missing keys fall back to DEFAULT_CONFIG; unknown keys are ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from hashtree.errors import InvalidInput
from hashtree.hashing import DEFAULT_ALGORITHM, HashFunction, get_hasher

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".hashtree" / "config.toml"

DEFAULT_CONFIG: dict[str, Any] = {
    "algorithm": DEFAULT_ALGORITHM,
    "backend": "hashlib",
    "domain_separation": False,
}


def _import_tomllib():
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib
    return tomllib


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load hash configuration from a TOML file, falling back to defaults."""
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.is_file():
        return config

    tomllib = _import_tomllib()
    try:
        with open(path, "rb") as f:
            file_config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        log.warning("Failed to load config from %s: %s", path, e)
        return config

    for key in DEFAULT_CONFIG:
        if key in file_config:
            config[key] = file_config[key]
    return config


def hasher_from_config(config: dict[str, Any]) -> HashFunction:
    """Build the hash function described by a config dict.

    Raises:
        InvalidInput: If a value has the wrong type or names an unknown algorithm.
    """
    algorithm = config.get("algorithm", DEFAULT_CONFIG["algorithm"])
    backend = config.get("backend", DEFAULT_CONFIG["backend"])
    domain_separation = config.get("domain_separation", DEFAULT_CONFIG["domain_separation"])

    if not isinstance(algorithm, str) or not isinstance(backend, str):
        raise InvalidInput("Config 'algorithm' and 'backend' must be strings")
    if not isinstance(domain_separation, bool):
        raise InvalidInput("Config 'domain_separation' must be true or false")

    return get_hasher(algorithm, backend=backend, domain_separation=domain_separation)


def load_hasher(config_path: Path | None = None) -> HashFunction:
    """Hash function from the TOML config at config_path (or the default path)."""
    return hasher_from_config(load_config(config_path))
