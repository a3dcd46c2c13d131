"""Tests for reporter config loading and validation."""

import pytest

from chorus.config import (
    HierarchyType,
    LaunchMode,
    load_config,
    validate_config_yaml,
)


VALID_CONFIG = """
version: 1
endpoint: https://reports.example.com
project: web
api_key: "{{env.CHORUS_API_KEY}}"
hierarchy: scenario
callback_reporting: true
source_root: specs
timeout_ms: 5000
launch:
  name: "Nightly {{env.BUILD}}"
  description: Nightly regression
  mode: DEBUG
  attributes:
    - team:web
    - regression
  rerun: true
  rerun_of: 4f1c
  skipped_issue: false
"""


class TestLoadConfig:
    """Tests for parsing valid configs."""

    def test_full_config(self):
        config, result = validate_config_yaml(
            VALID_CONFIG, env={"CHORUS_API_KEY": "secret", "BUILD": "42"}
        )
        assert result.is_valid, str(result)
        assert config.endpoint == "https://reports.example.com"
        assert config.project == "web"
        assert config.api_key == "secret"
        assert config.hierarchy == HierarchyType.SCENARIO
        assert config.callback_reporting is True
        assert config.source_root == "specs"
        assert config.timeout_ms == 5000
        assert config.launch.name == "Nightly 42"
        assert config.launch.mode == LaunchMode.DEBUG
        assert config.launch.attributes == ["team:web", "regression"]
        assert config.launch.rerun_of == "4f1c"
        assert config.launch.skipped_issue is False

    def test_defaults(self):
        config, result = validate_config_yaml("version: 1\nlaunch:\n  name: smoke\n", env={})
        assert result.is_valid
        assert config.hierarchy == HierarchyType.STEP
        assert config.callback_reporting is False
        assert config.source_root == "src"
        assert config.timeout_ms == 30000
        assert config.launch.mode == LaunchMode.DEFAULT
        assert config.endpoint is None

    def test_unknown_env_variable_left_as_is(self):
        config, _ = validate_config_yaml(
            "version: 1\nlaunch:\n  name: smoke\napi_key: '{{env.MISSING}}'\n", env={}
        )
        assert config.api_key == "{{env.MISSING}}"

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "chorus.yaml"
        path.write_text("version: 1\nlaunch:\n  name: smoke\n")
        config, result = load_config(path, env={})
        assert result.is_valid
        assert config.launch.name == "smoke"

    def test_missing_file(self, tmp_path):
        config, result = load_config(tmp_path / "missing.yaml")
        assert config is None
        assert "File not found" in str(result)


class TestValidation:
    """Tests for validation errors."""

    @pytest.mark.parametrize("yaml_text, path", [
        ("launch:\n  name: x\n", "version"),
        ("version: 1\n", "launch"),
        ("version: 1\nlaunch:\n  name: x\nfoo: 1\n", "foo"),
        ("version: one\nlaunch:\n  name: x\n", "version"),
        ("version: 1\nendpoint: ftp://x\nlaunch:\n  name: x\n", "endpoint"),
        ("version: 1\ntimeout_ms: -1\nlaunch:\n  name: x\n", "timeout_ms"),
        ("version: 1\nlaunch:\n  name: ''\n", "launch.name"),
        ("version: 1\nlaunch:\n  name: x\n  mode: LOUD\n", "launch.mode"),
        ("version: 1\nlaunch:\n  name: x\n  attributes: [ 'key:' ]\n", "launch.attributes[0]"),
        ("version: 1\nlaunch:\n  name: x\n  rerun_of: abc\n", "launch.rerun_of"),
        ("version: 1\nlaunch:\n  name: x\nhierarchy: flat\n", "hierarchy"),
        ("version: 1\nlaunch:\n  name: x\ncallback_reporting: yes please\n", "callback_reporting"),
    ])
    def test_invalid_field(self, yaml_text, path):
        config, result = validate_config_yaml(yaml_text, env={})
        assert config is None
        assert not result.is_valid
        assert path in [e.path for e in result.errors]

    def test_invalid_yaml(self):
        config, result = validate_config_yaml("version: [1\n")
        assert config is None
        assert "Invalid YAML syntax" in str(result)

    def test_not_an_object(self):
        _, result = validate_config_yaml("- 1\n- 2\n")
        assert "must be a YAML object" in str(result)

    def test_error_messages_include_suggestions(self):
        _, result = validate_config_yaml("version: 1\nlaunch:\n  name: x\nhierarchy: flat\n")
        text = str(result)
        assert "❌ hierarchy: Invalid hierarchy type" in text
        assert "💡 Valid hierarchies: scenario, step" in text
