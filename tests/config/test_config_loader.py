"""
Tests for the YAML configuration loader.

Covers:
- Default configuration file
- Partial files fall back to defaults
- Rejection of unknown keys and bad values, with the dotted key
- Checksum and config trace
"""

from decimal import Decimal

import pytest
import yaml

from stock_config import DEFAULT_CONFIG_PATH, get_active_config
from stock_config.loader import compute_checksum, load_configuration, parse_configuration
from stock_config.schema import StockConfiguration
from stock_kernel.exceptions import InvalidConfigurationError


def _write(tmp_path, data):
    path = tmp_path / "stock.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestDefaultConfiguration:

    def test_loads(self):
        config = get_active_config()

        assert config.valuation.epsilon == Decimal("0.001")
        assert config.valuation.arrival_year_policy == "first_seen"
        assert config.expiry.critical_below_days == 30
        assert config.expiry.warning_max_days == 45
        assert config.reporting.csv_delimiter == ";"
        assert "DAM PECHE SARL" in config.lookups.owners
        assert "Anchois Frais" in config.lookups.products
        assert config.source_path == str(DEFAULT_CONFIG_PATH)
        assert len(config.checksum) == 64

    def test_config_trace_logged(self, captured_logs):
        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "STOCK_CONFIG_TRACE"]
        assert traces[-1]["checksum"] == config.checksum

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")


class TestParsing:

    def test_empty_mapping_gives_defaults(self):
        config = parse_configuration({})

        assert config.valuation == StockConfiguration().valuation
        assert config.lookups.owners == ()

    def test_partial_file(self, tmp_path):
        path = _write(tmp_path, {"expiry": {"critical_below_days": 7, "warning_max_days": 14}})

        config = load_configuration(path)

        assert config.expiry.critical_below_days == 7
        assert config.reporting.value_decimals == 3

    def test_epsilon_as_number_or_text(self):
        assert parse_configuration({"valuation": {"epsilon": "0.01"}}).valuation.epsilon == Decimal("0.01")
        assert parse_configuration({"valuation": {"epsilon": 0}}).valuation.epsilon == Decimal("0")

    def test_label_overrides(self):
        config = parse_configuration(
            {"reporting": {"labels": {"missing_owner": "N/A", "csv_columns": ["A", "B"]}}}
        )

        labels = config.reporting.as_dict()["labels"]
        assert labels["missing_owner"] == "N/A"
        assert labels["csv_columns"] == ("A", "B")

    def test_checksum_is_key_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})


class TestRejection:

    @pytest.mark.parametrize(
        "data, key",
        [
            ({"valuation": {"epsilon": "abc"}}, "valuation.epsilon"),
            ({"valuation": {"epsilon": "-1"}}, "valuation.epsilon"),
            ({"valuation": {"epsilon": True}}, "valuation.epsilon"),
            ({"valuation": {"arrival_year_policy": "latest"}}, "valuation.arrival_year_policy"),
            ({"expiry": {"critical_below_days": "30"}}, "expiry.critical_below_days"),
            ({"expiry": {"critical_below_days": 50}}, "expiry.warning_max_days"),
            ({"expiry": {"warning_max_days": -1}}, "expiry.warning_max_days"),
            ({"reporting": {"csv_delimiter": ";;"}}, "reporting.csv_delimiter"),
            ({"reporting": {"show_values": "yes"}}, "reporting.show_values"),
            ({"reporting": {"quantity_decimals": True}}, "reporting.quantity_decimals"),
            ({"reporting": {"labels": {"title": 3}}}, "reporting.labels.title"),
            ({"reporting": {"labels": "x"}}, "reporting.labels"),
            ({"lookups": {"owners": "ONE"}}, "lookups.owners"),
            ({"lookups": {"suppliers": []}}, "lookups.suppliers"),
            ({"valuation": "fast"}, "valuation"),
            ({"database_url": ""}, "database_url"),
            ({"currency": "EUR"}, "currency"),
        ],
    )
    def test_bad_values_name_the_key(self, data, key):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            parse_configuration(data)
        assert exc_info.value.key == key
        assert exc_info.value.code == "INVALID_CONFIGURATION"

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(InvalidConfigurationError):
            load_configuration(path)
