"""YAML config loader: parses, interpolates env vars, validates, and emits observer events."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from relia.config.domain.config import ReliaConfig
from relia.config.domain.observer import ConfigObserver
from relia.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)

_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns a ReliaConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> ReliaConfig:
        """
        Load, interpolate, validate, and return a ReliaConfig from a YAML file.

        A relative dataset path is resolved against the config file's directory.

        Raises:
            ConfigLoadError: if the file cannot be read or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} references are unset (all collected first).
            ConfigValidationError: if the schema is violated or the optimizer has no grader.
        """
        raw = _parse_yaml(path=path)
        missing: list[str] = []
        resolved = _substitute_env(raw, missing)
        if missing:
            raise MissingEnvVarsError(missing)
        cfg = _build_config(resolved=resolved)
        cfg = _resolve_dataset_path(cfg=cfg, base_dir=path.parent)
        _check_optimizer(cfg=cfg)
        _emit_warnings(cfg=cfg, observer=self._observer)
        self._observer.config_loaded(name=cfg.name, version=cfg.version)
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigLoadError(path, exc.strerror or str(exc)) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path, f"invalid YAML ({exc})") from exc


def _substitute_env(node: Any, missing: list[str]) -> Any:
    """Replace ${NAME} in every string of the tree; unset names go to `missing`."""
    match node:
        case str():
            return _ENV_REF.sub(lambda m: _env_value(m.group(1), missing), node)
        case list():
            return [_substitute_env(item, missing) for item in node]
        case dict():
            return {key: _substitute_env(value, missing) for key, value in node.items()}
        case _:
            return node


def _env_value(name: str, missing: list[str]) -> str:
    value = os.environ.get(name)
    if value is None:
        if name not in missing:
            missing.append(name)
        return ""
    return value


def _build_config(resolved: Any) -> ReliaConfig:
    try:
        return ReliaConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _resolve_dataset_path(cfg: ReliaConfig, base_dir: Path) -> ReliaConfig:
    if cfg.dataset.path.is_absolute():
        return cfg
    dataset = cfg.dataset.model_copy(update={"path": base_dir / cfg.dataset.path})
    return cfg.model_copy(update={"dataset": dataset})


def _check_optimizer(cfg: ReliaConfig) -> None:
    optimizer = cfg.optimizer
    if optimizer.model is not None and optimizer.max_iterations > 0:
        if cfg.grading.model is None:
            raise ConfigValidationError(
                "optimizer is enabled but no grading model is configured"
            )


def _emit_warnings(cfg: ReliaConfig, observer: ConfigObserver) -> None:
    if cfg.grading.temperature > 0.0:
        observer.config_grading_temperature_warning(cfg.grading.temperature)
