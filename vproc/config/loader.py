import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from .models import RunConfig

def load_config_data(config_path: Path) -> Dict[str, Any]:
    """Reads a YAML file whose top-level keys are RunConfig fields."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    # Accept the CLI spelling (scale-mode) as well as the field name
    return {str(key).replace("-", "_"): value for key, value in data.items()}

def load_config(config_path: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None) -> RunConfig:
    """Builds RunConfig from an optional YAML file plus CLI overrides (None values ignored)."""
    data: Dict[str, Any] = load_config_data(config_path) if config_path else {}
    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value
    return RunConfig(**data)
