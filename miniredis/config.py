"""Server settings read from a YAML file."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

import yaml

_CONFIG_NAMES = ("config.yaml", "config.yml")
_TRUE = {"1", "t", "true"}


@dataclass
class AofConfig:
    """Append-only file settings."""

    aof_file: str = ""
    tmp_file: str = ""
    aof_rewrite_time: int = 0


@dataclass
class EtcdConfig:
    """Service registry settings."""

    dial_time_out: int = 0
    ttl: int = 0
    addresses: list[str] = field(default_factory=list)


@dataclass
class Settings:
    """All settings of the server."""

    aof: AofConfig = field(default_factory=AofConfig)
    etcd: EtcdConfig = field(default_factory=EtcdConfig)
    is_dev: bool = False
    is_cluster: bool = False


def _lower_keys(tree: Any) -> Any:
    if isinstance(tree, dict):
        return {str(key).lower(): _lower_keys(value) for key, value in tree.items()}
    return tree


def _lookup(tree: dict, dotted: str) -> Any:
    node: Any = tree
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def _as_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return int(bool(value))
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE
    return bool(value)


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def _resolve(path: str | os.PathLike) -> str:
    path = os.fspath(path)
    if os.path.isdir(path):
        for name in _CONFIG_NAMES:
            candidate = os.path.join(path, name)
            if os.path.isfile(candidate):
                return candidate
        raise FileNotFoundError(f"no config file found in {path}")
    return path


def load_config(path: str | os.PathLike) -> Settings:
    """Read settings from a YAML file, or from ``config.yaml`` in a directory."""
    with open(_resolve(path), encoding="utf-8") as handle:
        tree = _lower_keys(yaml.safe_load(handle) or {})
    if not isinstance(tree, dict):
        raise ValueError("config file must hold a mapping")
    return Settings(
        aof=AofConfig(
            aof_file=_as_str(_lookup(tree, "persist.aof.aof_file")),
            tmp_file=_as_str(_lookup(tree, "persist.aof.temp_dir")),
            aof_rewrite_time=_as_int(_lookup(tree, "persist.aof.aof_rewrite_time")),
        ),
        etcd=EtcdConfig(
            dial_time_out=_as_int(_lookup(tree, "dial_time_out")),
            ttl=_as_int(_lookup(tree, "ttl")),
            addresses=_as_str_list(_lookup(tree, "etcd_addresses")),
        ),
        is_dev=_as_bool(_lookup(tree, "is_dev")),
    )