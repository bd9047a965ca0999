from pathlib import Path

import pytest

from chargebee_typegen.config import GeneratorConfig, load_config
from chargebee_typegen.errors import ConfigError
from chargebee_typegen.parser.resource import ElaborationLevel
from chargebee_typegen.store import DEFAULT_BASE_URL


class TestGeneratorConfig:
    def test_defaults(self):
        config = load_config()
        assert config.base_url == DEFAULT_BASE_URL
        assert config.language == "node"
        assert config.provider == "chargebee"
        assert config.cache_dir == Path(".cache")
        assert config.output == Path("dist/index.d.ts")
        assert config.level is ElaborationLevel.METHODS
        assert config.fixed_namespaces is None

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "typegen.yaml"
        path.write_text("level: types\ncache_dir: pages\ntimeout: 5\n", encoding="utf-8")
        config = load_config(path)
        assert config.level is ElaborationLevel.TYPES
        assert config.cache_dir == Path("pages")
        assert config.timeout == 5.0

    def test_overrides_win_and_none_is_ignored(self, tmp_path):
        path = tmp_path / "typegen.yaml"
        path.write_text("level: types\nlanguage: python\n", encoding="utf-8")
        config = load_config(path, level="model", language=None)
        assert config.level is ElaborationLevel.MODEL
        assert config.language == "python"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "typegen.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == GeneratorConfig()

    def test_invalid_level(self):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(level="everything")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "typegen.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(path)

    def test_unreadable_yaml(self, tmp_path):
        path = tmp_path / "typegen.yaml"
        path.write_text("level: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Cannot read configuration"):
            load_config(path)
