from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from draftflow.application.config_models import EngineConfig
from draftflow.domain.constants import CONFIG_DIRNAME, CONFIG_FILENAME


class ConfigLoadError(Exception):
    def __init__(self, message: str, *, path: Path | None = None, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message}: {self.path}"


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge mapping keys. For non-dict values, overlay wins.
    """
    merged: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k] = _deep_merge(merged[k], v)
        else:
            merged[k] = v
    return merged


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    """
    Load YAML file and ensure root is a mapping. A missing file is empty.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:  # pragma: no cover
        raise ConfigLoadError("Failed to read config file", path=path, cause=e) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigLoadError("Malformed YAML", path=path, cause=e) from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigLoadError("YAML root must be a mapping", path=path)

    return data


def _resolve_drafts_root(cfg: dict[str, Any], base: Path) -> None:
    # Relative drafts_root in a config file is relative to the directory holding .draftflow/
    root = cfg.get("drafts_root")
    if isinstance(root, str) and root and not Path(root).is_absolute():
        cfg["drafts_root"] = str(base / root)


def load_config(*, project_root: Path | None = None, user_home: Path | None = None) -> EngineConfig:
    """
    Load and merge config with precedence (highest wins):
    CLI args (handled in CLI) > project > user > defaults.

    Files:
      - user:    user_home/.draftflow/config.yml
      - project: project_root/.draftflow/config.yml

    Raises:
        ConfigLoadError: If a file is malformed or fails validation
    """
    project_root = project_root or Path.cwd()
    user_home = user_home or Path.home()

    cfg: dict[str, Any] = EngineConfig().model_dump(mode="json")

    user_path = user_home / CONFIG_DIRNAME / CONFIG_FILENAME
    user_cfg = _load_yaml_mapping(user_path)
    _resolve_drafts_root(user_cfg, user_home)
    cfg = _deep_merge(cfg, user_cfg)

    project_path = project_root / CONFIG_DIRNAME / CONFIG_FILENAME
    project_cfg = _load_yaml_mapping(project_path)
    _resolve_drafts_root(project_cfg, project_root)
    cfg = _deep_merge(cfg, project_cfg)

    try:
        return EngineConfig.model_validate(cfg)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid configuration: {e}", cause=e) from e
