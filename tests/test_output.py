"""
Test cases for parsing kde output
"""
import pytest
from kde_panel.connection.output import (
    KdeError,
    KdeOutputError,
    parse_lines,
    parse_status,
)

class TestParseLines:
    def test_splits_on_unix_and_windows_line_breaks(self):
        """Test names separated by \\n and \\r\\n"""
        assert parse_lines("dev\nstaging\r\nprod") == ["dev", "staging", "prod"]

    def test_ignores_blank_lines(self):
        """Test blank and whitespace-only lines are dropped"""
        assert parse_lines("\ndev\n\n   \nprod\n") == ["dev", "prod"]

    def test_empty_output(self):
        """Test empty output yields no names"""
        assert parse_lines("") == []
        assert parse_lines(None) == []

    def test_keeps_order(self):
        """Test order matches kde output"""
        assert parse_lines("b\na\nc") == ["b", "a", "c"]

class TestParseStatus:
    def test_maps_environment_to_status(self):
        """Test each record becomes one mapping entry"""
        output = '[{"environment": "dev", "status": "RUNNING"}, {"environment": "prod", "status": "UNREADY"}]'
        assert parse_status(output) == {"dev": "RUNNING", "prod": "UNREADY"}

    def test_last_record_wins(self):
        """Test a repeated environment keeps its last status"""
        output = '[{"environment": "dev", "status": "UNREADY"}, {"environment": "dev", "status": "RUNNING"}]'
        assert parse_status(output) == {"dev": "RUNNING"}

    def test_skips_records_without_environment(self):
        """Test incomplete records are ignored"""
        output = '[{"status": "RUNNING"}, "junk", {"environment": "dev", "status": "error"}]'
        assert parse_status(output) == {"dev": "error"}

    def test_empty_output(self):
        """Test empty output means no statuses"""
        assert parse_status("") == {}
        assert parse_status("[]") == {}

    def test_invalid_json(self):
        """Test malformed JSON raises KdeOutputError"""
        with pytest.raises(KdeOutputError):
            parse_status("not json")

    def test_non_array_json(self):
        """Test a JSON object is rejected"""
        with pytest.raises(KdeOutputError) as excinfo:
            parse_status('{"environment": "dev"}')
        assert isinstance(excinfo.value, KdeError)
