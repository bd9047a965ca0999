"""Generator configuration.

Defaults target the public Chargebee documentation. A YAML file can
override any field, and CLI options override the file.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from chargebee_typegen.errors import ConfigError
from chargebee_typegen.parser.resource import ElaborationLevel
from chargebee_typegen.store import DEFAULT_BASE_URL, DEFAULT_USER_AGENT


class GeneratorConfig(BaseModel):
    """Settings for one generation run."""

    base_url: str = DEFAULT_BASE_URL
    language: str = "node"  # documentation flavour, sent as ?lang=
    provider: str = "chargebee"  # object name used in the code samples
    module_name: str = "chargebee"  # declared module
    root_namespace: str = "Chargebee"
    cache_dir: Path = Path(".cache")
    output: Path = Path("dist/index.d.ts")
    level: ElaborationLevel = ElaborationLevel.METHODS
    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    fixed_namespaces: Path | None = None  # replaces the bundled error/contract tables


def load_config(path: Path | None = None, **overrides) -> GeneratorConfig:
    """Load configuration from an optional YAML file plus non-None overrides."""
    data: dict = {}
    if path is not None:
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read configuration {path}: {exc}") from exc
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(f"Configuration {path} must be a mapping.")
        data.update(loaded or {})

    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return GeneratorConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
