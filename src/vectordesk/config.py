"""vectordesk configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (VECTORDESK_API_URL, VECTORDESK_BACKEND, VECTORDESK_LOG_LEVEL)
  3. Per-project vectordesk.yaml  (current directory)
  4. Global ~/.vectordesk/config.yaml  (no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use VECTORDESK_API_KEY instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from vectordesk.folder_config import validate_chunking
from vectordesk.upload import DEFAULT_MAX_BYTES

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".vectordesk"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "vectordesk.yaml"

# Fields that suggest a credential; forbidden in global config.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["api", "backend", "folders", "upload", "processing", "logging"]
)

_BACKENDS: frozenset[str] = frozenset(["sqlite", "memory", "http"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class ApiCfg:
    """Remote API settings (vectordesk.yaml: api:)."""

    url: str = "http://localhost:3000"
    timeout: float = 30.0


@dataclass
class BackendCfg:
    """Which transport the CLI composes (vectordesk.yaml: backend:)."""

    kind: str = "sqlite"  # sqlite | memory | http
    db_path: str = ".vectordesk.db"


@dataclass
class FolderDefaultsCfg:
    """Defaults offered when creating a folder (vectordesk.yaml: folders:)."""

    chunk_size: int = 1000
    chunk_overlap: int = 200


@dataclass
class UploadCfg:
    max_bytes: int = DEFAULT_MAX_BYTES


@dataclass
class ProcessingCfg:
    """Simulated processing (vectordesk.yaml: processing:)."""

    delay_seconds: float = 3.0
    failure_rate: float = 0.1
    min_vectors: int = 10
    max_vectors: int = 500


@dataclass
class LoggingCfg:
    level: str = "WARNING"
    file: str | None = None


@dataclass
class VectordeskConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    api: ApiCfg = field(default_factory=ApiCfg)
    backend: BackendCfg = field(default_factory=BackendCfg)
    folders: FolderDefaultsCfg = field(default_factory=FolderDefaultsCfg)
    upload: UploadCfg = field(default_factory=UploadCfg)
    processing: ProcessingCfg = field(default_factory=ProcessingCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export VECTORDESK_API_KEY=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' — ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: VectordeskConfig) -> None:
    if cfg.backend.kind not in _BACKENDS:
        raise ConfigError(
            f"backend.kind must be one of {', '.join(sorted(_BACKENDS))}, "
            f"got '{cfg.backend.kind}'"
        )
    if not 0.0 <= cfg.processing.failure_rate <= 1.0:
        raise ConfigError("processing.failure_rate must be between 0.0 and 1.0")
    if not 1 <= cfg.processing.min_vectors <= cfg.processing.max_vectors:
        raise ConfigError("processing needs 1 <= min_vectors <= max_vectors")
    if cfg.upload.max_bytes <= 0:
        raise ConfigError("upload.max_bytes must be positive")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> VectordeskConfig:
    """Build a *VectordeskConfig* from a merged raw YAML dict."""
    cfg = VectordeskConfig()

    if "api" in data:
        a = data["api"] or {}
        cfg.api = ApiCfg(
            url=str(a.get("url", cfg.api.url)),
            timeout=float(a.get("timeout", cfg.api.timeout)),
        )

    if "backend" in data:
        b = data["backend"] or {}
        cfg.backend = BackendCfg(
            kind=str(b.get("kind", cfg.backend.kind)),
            db_path=str(b.get("db_path", cfg.backend.db_path)),
        )

    if "folders" in data:
        f = data["folders"] or {}
        # Defaults obey the same clamping as user input.
        params = validate_chunking(
            f.get("chunk_size", cfg.folders.chunk_size),
            f.get("chunk_overlap", cfg.folders.chunk_overlap),
        )
        if not params.ok:
            raise ConfigError(f"folders: {params.error}")
        chunking = params.unwrap()
        cfg.folders = FolderDefaultsCfg(
            chunk_size=chunking.size, chunk_overlap=chunking.overlap
        )

    if "upload" in data:
        u = data["upload"] or {}
        cfg.upload = UploadCfg(max_bytes=int(u.get("max_bytes", cfg.upload.max_bytes)))

    if "processing" in data:
        p = data["processing"] or {}
        cfg.processing = ProcessingCfg(
            delay_seconds=float(p.get("delay_seconds", cfg.processing.delay_seconds)),
            failure_rate=float(p.get("failure_rate", cfg.processing.failure_rate)),
            min_vectors=int(p.get("min_vectors", cfg.processing.min_vectors)),
            max_vectors=int(p.get("max_vectors", cfg.processing.max_vectors)),
        )

    if "logging" in data:
        lg = data["logging"] or {}
        cfg.logging = LoggingCfg(
            level=str(lg.get("level", cfg.logging.level)).upper(),
            file=lg.get("file") or cfg.logging.file,
        )

    return cfg


def _apply_env_overrides(cfg: VectordeskConfig) -> VectordeskConfig:
    """Apply VECTORDESK_* environment variable overrides."""
    if url := os.environ.get("VECTORDESK_API_URL"):
        cfg.api.url = url
    if backend := os.environ.get("VECTORDESK_BACKEND"):
        cfg.backend.kind = backend
    if level := os.environ.get("VECTORDESK_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> VectordeskConfig:
    """Load and return a merged *VectordeskConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *vectordesk.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, or a
            value is out of its allowed range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.vectordesk/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# vectordesk global configuration.\n"
            "# NEVER store API keys here — use the environment:\n"
            "#   export VECTORDESK_API_KEY=...\n"
            "\n"
            "api:\n"
            "  url: http://localhost:3000\n"
            "\n"
            "folders:\n"
            "  chunk_size: 1000\n"
            "  chunk_overlap: 200\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
