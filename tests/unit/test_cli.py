"""Tests for the offline CLI commands."""

from typer.testing import CliRunner

from nester_engine.cli import app

runner = CliRunner()


class TestDetect:
    def test_supported(self):
        result = runner.invoke(app, ["detect", "https://www.redfin.com/IL/home/1"])
        assert result.exit_code == 0
        assert "redfin" in result.output

    def test_unsupported(self):
        result = runner.invoke(app, ["detect", "https://example.com/listing"])
        assert result.exit_code == 1
        assert "UNSUPPORTED" in result.output

    def test_invalid(self):
        result = runner.invoke(app, ["detect", "not-a-url"])
        assert result.exit_code == 1
        assert "INVALID" in result.output


class TestPlatforms:
    def test_lists_all(self):
        result = runner.invoke(app, ["platforms"])
        assert result.exit_code == 0
        for name in ("zillow", "realtor", "redfin", "homes", "trulia"):
            assert name in result.output
