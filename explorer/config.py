# explorer/config.py
"""
Configuration loading and validation.

Responsibilities:
- Load YAML configuration
- Validate against JSON Schema
- Expose a normalised config object with defaults filled in

This module does NOT:
- interact with jj
- evaluate queries
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

import json
import yaml
from jsonschema import Draft202012Validator

from explorer.classify import IMMUTABLE_QUERY
from explorer.graph import MAX_NODES


# Default log view of jj, with a deeper ancestry window
DEFAULT_VIEW_QUERY = "present(@) | ancestors(immutable_heads().., 5) | present(trunk())"
DEFAULT_SELECTION_QUERY = "@"
DEFAULT_HISTORY_SIZE = 50


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class QueriesConfig:
    view: str = DEFAULT_VIEW_QUERY
    selection: str = DEFAULT_SELECTION_QUERY
    immutable: str = IMMUTABLE_QUERY


@dataclass(frozen=True)
class ExplorerConfig:
    repository: Path = Path(".")
    jj_command: str = "jj"
    max_nodes: int = MAX_NODES
    history_size: int = DEFAULT_HISTORY_SIZE
    queries: QueriesConfig = field(default_factory=QueriesConfig)
    revset_aliases: Dict[str, str] = field(default_factory=dict)

    def with_overrides(
        self,
        *,
        repository: Optional[Path] = None,
        view: Optional[str] = None,
        selection: Optional[str] = None,
        max_nodes: Optional[int] = None,
    ) -> "ExplorerConfig":
        queries = replace(
            self.queries,
            view=self.queries.view if view is None else view,
            selection=self.queries.selection if selection is None else selection,
        )
        updated = replace(
            self,
            repository=self.repository if repository is None else repository,
            max_nodes=self.max_nodes if max_nodes is None else max_nodes,
            queries=queries,
        )
        _check_semantics(updated)
        return updated


def default_schema_path() -> Path:
    return Path(__file__).resolve().parent / "schema.json"


def _load_schema(schema_path: Path) -> Dict[str, Any]:
    """
    Load JSON Schema from a schema.json file.
    """
    try:
        raw = schema_path.read_text(encoding="utf-8")
    except Exception as e:
        raise ConfigError(f"Failed to read schema file: {schema_path}") from e

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Schema is not valid JSON: {schema_path}") from e

    if not isinstance(parsed, dict):
        raise ConfigError(f"Schema must be a JSON object: {schema_path}")

    return parsed


def _load_yaml(config_path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except Exception as e:
        raise ConfigError(f"Failed to load config: {config_path}") from e

    # An empty file means "all defaults"
    if raw is None:
        return {}

    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a mapping at top level: {config_path}")

    return raw


def load_config(config_path: Optional[Path], schema_path: Optional[Path] = None) -> ExplorerConfig:
    """
    Load and validate configuration. Without a config file, defaults apply.

    Raises ConfigError on validation failure.
    """
    if config_path is None:
        return ExplorerConfig()

    raw_config = _load_yaml(config_path)
    schema = _load_schema(schema_path or default_schema_path())

    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(raw_config), key=lambda e: list(e.path))

    if errors:
        messages = []
        for err in errors:
            path = ".".join(str(p) for p in err.path)
            prefix = path if path else "<root>"
            messages.append(f"{prefix}: {err.message}")
        raise ConfigError("Invalid configuration:\n" + "\n".join(messages))

    raw_queries = raw_config.get("queries") or {}
    queries = QueriesConfig(
        view=str(raw_queries.get("view", DEFAULT_VIEW_QUERY)),
        selection=str(raw_queries.get("selection", DEFAULT_SELECTION_QUERY)),
        immutable=str(raw_queries.get("immutable", IMMUTABLE_QUERY)),
    )

    repository = Path(str(raw_config.get("repository", ".")))
    if not repository.is_absolute():
        # Relative to the config file, not the current directory
        repository = config_path.parent / repository

    cfg = ExplorerConfig(
        repository=repository,
        jj_command=str(raw_config.get("jj_command", "jj")),
        max_nodes=int(raw_config.get("max_nodes", MAX_NODES)),
        history_size=int(raw_config.get("history_size", DEFAULT_HISTORY_SIZE)),
        queries=queries,
        revset_aliases={str(k): str(v) for k, v in (raw_config.get("revset_aliases") or {}).items()},
    )
    _check_semantics(cfg)
    return cfg


def _check_semantics(cfg: ExplorerConfig) -> None:
    if cfg.max_nodes <= 0:
        raise ConfigError("max_nodes must be a positive integer")

    if cfg.history_size <= 0:
        raise ConfigError("history_size must be a positive integer")

    if not cfg.queries.immutable.strip():
        raise ConfigError("queries.immutable must not be empty")

    if not cfg.queries.view.strip():
        raise ConfigError("queries.view must not be empty")
