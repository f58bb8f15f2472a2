"""Tests for the cloudwatchlogs command line."""

from __future__ import annotations

import logging

import pytest
from typer.testing import CliRunner

from cloudwatchlogs import ShipperOptions, UsageError, cli
from cloudwatchlogs.cli import app, configure_logging, resolve_options

runner = CliRunner()


class _DestinationFactory:
    """Stands in for ``CloudWatchLogsDestination`` so no AWS call is made."""

    def __init__(self, destination) -> None:
        self.destination = destination
        self.options: list[ShipperOptions] = []

    def from_options(self, options: ShipperOptions):
        self.options.append(options)
        return self.destination


@pytest.fixture
def factory(monkeypatch, destination) -> _DestinationFactory:
    factory = _DestinationFactory(destination)
    monkeypatch.setattr(cli, "CloudWatchLogsDestination", factory)
    return factory


# =========================================================================
# Usage errors
# =========================================================================


class TestUsage:
    def test_no_flags_prints_usage_and_fails(self, factory):
        result = runner.invoke(app, [], input="hello\n")
        assert result.exit_code == 1
        assert "Usage: cloudwatchlogs" in result.output
        assert factory.options == []

    def test_missing_stream_is_a_usage_error(self, factory):
        result = runner.invoke(app, ["-r", "us-east-1", "-g", "app"], input="hello\n")
        assert result.exit_code == 1
        assert "Usage: cloudwatchlogs" in result.output
        assert factory.options == []

    def test_invalid_batch_size_is_a_usage_error(self, factory):
        result = runner.invoke(app, ["-g", "app", "-t", "web-1", "-b", "0"], input="")
        assert result.exit_code == 1
        assert factory.options == []

    def test_help_lists_flags(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "log-group-name" in result.output


class TestResolveOptions:
    def test_blank_values_do_not_count_as_identity(self):
        with pytest.raises(UsageError):
            resolve_options(region="  ", group_name="")

    def test_full_options(self):
        options = resolve_options(
            region="eu-west-1", group_name="app", stream_name="web-1", batch_size=5, flush_interval=1.5
        )
        config = options.sink_config()
        assert config.group_name == "app"
        assert config.batch_size == 5
        assert config.flush_interval == 1.5
        assert not config.immediate

    def test_endpoint_url_falls_back_to_environment(self, monkeypatch):
        monkeypatch.setenv("CLOUDWATCHLOGS_ENDPOINT_URL", "http://localhost:4566")
        options = resolve_options(group_name="app", stream_name="web-1")
        assert options.endpoint_url == "http://localhost:4566"


# =========================================================================
# Shipping
# =========================================================================


class TestShip:
    def test_lines_are_shipped_in_order(self, factory):
        result = runner.invoke(app, ["-g", "app", "-t", "web-1"], input="a\nb\n\nc\r\n")
        assert result.exit_code == 0
        assert factory.destination.delivered == ["a", "b", "c"]
        assert factory.destination.closed
        assert factory.destination.max_in_flight == 1

    def test_flags_reach_the_options(self, factory):
        result = runner.invoke(
            app,
            ["-a", "AKID", "-s", "secret", "-r", "eu-west-1", "-g", "app", "-t", "web-1", "-b", "10", "-o", "30"],
            input="a\nb\n",
        )
        assert result.exit_code == 0
        (options,) = factory.options
        assert options.access_key_id == "AKID"
        assert options.region == "eu-west-1"
        assert options.batch_size == 10
        assert options.flush_interval == 30.0

    def test_batched_lines_go_out_in_the_final_flush(self, factory):
        result = runner.invoke(app, ["-g", "app", "-t", "web-1", "--bulk-index", "10"], input="a\nb\nc\n")
        assert result.exit_code == 0
        assert [c.messages for c in factory.destination.calls] == [["a", "b", "c"]]

    def test_provisioning_failure_exits_non_zero(self, factory):
        factory.destination.group_error = RuntimeError("denied")
        result = runner.invoke(app, ["-g", "app", "-t", "web-1"], input="a\n")
        assert result.exit_code == 1
        assert factory.destination.calls == []

    def test_flush_failure_is_retried_at_end_of_input(self, factory):
        factory.destination.put_errors = [RuntimeError("throttled")]
        result = runner.invoke(app, ["-g", "app", "-t", "web-1", "-b", "1"], input="a\nb\nc\n")
        assert result.exit_code == 0
        assert factory.destination.delivered == ["a", "b", "c"]

    def test_fail_fast_exits_on_flush_failure(self, factory):
        factory.destination.put_errors = [RuntimeError("throttled")]
        result = runner.invoke(app, ["-g", "app", "-t", "web-1", "--fail-fast"], input="a\n")
        assert result.exit_code == 1

    def test_persistent_flush_failure_exits_non_zero(self, factory):
        factory.destination.put_errors = [RuntimeError("down")] * 10
        result = runner.invoke(app, ["-g", "app", "-t", "web-1", "-b", "5"], input="a\n")
        assert result.exit_code == 1
        assert factory.destination.delivered == []


class TestLogging:
    def test_debug_env_enables_debug_level(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "other,cloudwatchlogs")
        root = logging.getLogger()
        monkeypatch.setattr(root, "handlers", [])
        monkeypatch.setattr(root, "level", logging.WARNING)

        configure_logging(verbose=False)

        assert root.level == logging.DEBUG
