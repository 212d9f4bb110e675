"""
Tests for CLI formatters
"""

import json

import pytest

from sqlquery.cli.formatters import JSONFormatter, PrettyFormatter, get_formatter

DOCUMENT = {
    "resources": [{"id": "tablename", "alias": "t"}],
    "conditions": [{"resource": "t", "property": "x", "operator": "=", "value": 1}],
    "limit": 500,
    "offset": 0,
}


class TestGetFormatter:
    """Test formatter factory function"""

    def test_get_json_formatter(self):
        assert isinstance(get_formatter("json"), JSONFormatter)

    def test_get_pretty_formatter(self):
        assert isinstance(get_formatter("pretty"), PrettyFormatter)

    def test_unknown_formatter(self):
        """Test error for unknown formatter"""
        with pytest.raises(ValueError, match="Unknown format"):
            get_formatter("unknown")

    def test_names(self):
        assert get_formatter("json").get_name() == "json"
        assert get_formatter("pretty").get_name() == "pretty"


class TestJSONFormatter:
    """Test JSON formatter"""

    def test_format_basic(self):
        output = JSONFormatter().format(DOCUMENT)

        assert json.loads(output) == DOCUMENT
        assert "\n" in output

    def test_format_compact(self):
        output = JSONFormatter().format(DOCUMENT, compact=True)

        assert "\n" not in output
        assert " " not in output
        assert json.loads(output) == DOCUMENT

    def test_format_indent(self):
        output = JSONFormatter().format(DOCUMENT, indent=4)

        assert '\n    "resources"' in output


class TestPrettyFormatter:
    """Test Rich formatter"""

    def test_format_no_color(self):
        output = PrettyFormatter().format(DOCUMENT, no_color=True)

        assert "Query document" in output
        assert "tablename" in output
        assert "\x1b[" not in output

    def test_custom_title(self):
        output = PrettyFormatter().format(DOCUMENT, no_color=True, title="Parsed tree")

        assert "Parsed tree" in output
