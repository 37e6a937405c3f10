"""
Tests for aws_discovery: config loading, option parsing and dispatch.
"""

import sys
import os
import json
import pytest
from unittest.mock import patch, MagicMock

# Ensure project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import aws_discovery
from sdp import ErrorType, Item, ItemAttributes, QueryError


def _item(name):
    return Item(
        type="sqs-queue",
        unique_attribute="QueueUrl",
        scope="123456789012.eu-west-1",
        attributes=ItemAttributes({"QueueUrl": name}),
    )


# =========================================================================
# Tests: configuration
# =========================================================================

class TestConfig:

    def test_missing_file(self, tmp_path):
        assert aws_discovery._load_config(tmp_path / "nope.yaml") == {}

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "profile: prod\n"
            "regions: [eu-west-1, us-east-1]\n"
            "max_parallel: 4\n"
            "rate_limits:\n"
            "  ec2:\n"
            "    max_capacity: 20\n"
            "    refill_rate: 5\n"
        )
        cfg = aws_discovery._load_config(path)
        assert cfg["profile"] == "prod"
        assert cfg["regions"] == ["eu-west-1", "us-east-1"]
        assert cfg["rate_limits"]["ec2"]["refill_rate"] == 5

    def test_invalid_yaml_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("regions: [unclosed\n")
        assert aws_discovery._load_config(path) == {}

    def test_non_mapping_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        assert aws_discovery._load_config(path) == {}

    def test_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        monkeypatch.setenv("AWS_DISCOVERY_CONFIG", str(path))
        assert aws_discovery._config_path() == path


# =========================================================================
# Tests: options
# =========================================================================

class TestOptions:

    def test_parse(self):
        args, options = aws_discovery._parse_options([
            "get", "sqs-queue", "q", "--region", "eu-west-1",
            "--region", "us-east-1", "--timeout", "2.5", "--profile", "dev",
        ])
        assert args == ["get", "sqs-queue", "q"]
        assert options["regions"] == ["eu-west-1", "us-east-1"]
        assert options["timeout"] == 2.5
        assert options["profile"] == "dev"

    def test_missing_value(self):
        with pytest.raises(ValueError):
            aws_discovery._parse_options(["list", "sqs-queue", "--region"])

    def test_unknown_option(self):
        with pytest.raises(ValueError):
            aws_discovery._parse_options(["list", "--bogus"])

    def test_flags_override_config(self):
        settings = aws_discovery._merge_settings(
            {"profile": "prod", "regions": "eu-west-1", "timeout": 30},
            {"regions": [], "profile": "dev"},
        )
        assert settings["profile"] == "dev"
        assert settings["regions"] == ["eu-west-1"]
        assert settings["timeout"] == 30


# =========================================================================
# Tests: main
# =========================================================================

class TestMain:

    def test_types(self, capsys):
        with patch.object(sys, "argv", ["aws-discovery", "types"]):
            aws_discovery.main()
        types = {m["type"] for m in json.loads(capsys.readouterr().out)}
        assert "ec2-address" in types
        assert "cloudfront-distribution" in types

    def test_unknown_command_exits(self):
        with patch.object(sys, "argv", ["aws-discovery", "frobnicate"]):
            with pytest.raises(SystemExit) as exc_info:
                aws_discovery.main()
        assert exc_info.value.code == 1

    def test_get_prints_item(self, capsys):
        adapter = MagicMock()
        adapter.scopes.return_value = ["123456789012.eu-west-1"]
        adapter.get.return_value = _item("https://q")

        with patch.object(sys, "argv", ["aws-discovery", "get", "sqs-queue", "https://q"]), \
                patch.object(aws_discovery, "_load_config", return_value={}), \
                patch.object(aws_discovery, "_adapters_for", return_value=[adapter]):
            aws_discovery.main()

        out = json.loads(capsys.readouterr().out)
        assert out[0]["attributes"]["QueueUrl"] == "https://q"

    def test_query_error_exits_1(self, capsys):
        adapter = MagicMock()
        adapter.scopes.return_value = ["123456789012.eu-west-1"]
        adapter.get.side_effect = QueryError(ErrorType.NOTFOUND, "sqs-queue q not found")

        with patch.object(sys, "argv", ["aws-discovery", "get", "sqs-queue", "q"]), \
                patch.object(aws_discovery, "_load_config", return_value={}), \
                patch.object(aws_discovery, "_adapters_for", return_value=[adapter]):
            with pytest.raises(SystemExit) as exc_info:
                aws_discovery.main()

        assert exc_info.value.code == 1
        assert "NOTFOUND" in capsys.readouterr().err

    def test_search_ignores_noscope(self, capsys):
        wrong_region = MagicMock()
        wrong_region.scopes.return_value = ["123456789012.us-east-1"]
        wrong_region.search.side_effect = QueryError(ErrorType.NOSCOPE, "other region")
        right_region = MagicMock()
        right_region.scopes.return_value = ["123456789012.eu-west-1"]
        right_region.search.return_value = [_item("https://q")]

        with patch.object(sys, "argv", ["aws-discovery", "search", "sqs-queue", "arn"]), \
                patch.object(aws_discovery, "_load_config", return_value={}), \
                patch.object(
                    aws_discovery, "_adapters_for", return_value=[wrong_region, right_region],
                ):
            aws_discovery.main()

        assert len(json.loads(capsys.readouterr().out)) == 1
