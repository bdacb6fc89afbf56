"""
Unit tests for the common module config loader.
"""

import pytest

from gateway_codegen.configs import load_class_config, parse_document
from gateway_codegen.errors import BadConfig, ConfigError, ParseError


class TestParseDocument:
    """YAML and JSON documents parse into mappings."""

    def test_yaml_document(self):
        """Test a YAML document is parsed with safe_load."""
        document = parse_document(b"name: bar\ntype: http\n", "client-config.yaml")
        assert document == {"name": "bar", "type": "http"}

    def test_json_document(self):
        """Test a .json file is parsed as JSON."""
        document = parse_document(b'{"name": "bar", "type": "http"}', "client-config.json")
        assert document["type"] == "http"

    def test_json_file_rejects_yaml_syntax(self):
        """Test YAML-only syntax in a .json file is a ParseError."""
        with pytest.raises(ParseError, match="Could not parse config data"):
            parse_document(b"name: bar\n", "client-config.json")

    def test_malformed_yaml(self):
        """Test malformed YAML raises ParseError, a ConfigError."""
        with pytest.raises(ConfigError, match="Could not parse config data"):
            parse_document(b"name: [bar\n", "client-config.yaml")

    def test_non_mapping_document(self):
        """Test a list document is rejected."""
        with pytest.raises(ParseError, match="expected a mapping"):
            parse_document(b"- a\n- b\n", "client-config.yaml")


class TestLoadClassConfig:
    """Common fields shared by every module config."""

    def test_full_document(self):
        """Test every common field is read with its camelCase name."""
        config = load_class_config(
            b"""
name: bar
type: http
owner: team@example.com
isExportGenerated: false
selectiveBuilding: true
dependencies:
  client:
    - baz
config:
  anything: goes
""",
            "client-config.yaml",
        )

        assert config.name == "bar"
        assert config.type == "http"
        assert config.owner == "team@example.com"
        assert config.is_export_generated is False
        assert config.selective_building is True
        assert config.dependencies == {"client": ["baz"]}
        assert config.config == {"anything": "goes"}

    def test_defaults(self):
        """Test optional fields default sensibly."""
        config = load_class_config(b"name: bar\ntype: http\ndependencies:\n", "c.yaml")

        assert config.dependencies == {}
        assert config.is_export_generated is None
        assert config.selective_building is False

    def test_missing_name(self):
        """Test an empty name is a BadConfig naming the file."""
        with pytest.raises(BadConfig, match='Error reading instance name from "c.yaml"'):
            load_class_config(b"type: http\n", "c.yaml")

    def test_missing_type(self):
        """Test an empty type is a BadConfig naming the file."""
        with pytest.raises(BadConfig, match='Error reading instance type from "c.yaml"'):
            load_class_config(b"name: bar\n", "c.yaml")
