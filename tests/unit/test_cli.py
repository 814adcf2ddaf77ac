"""Unit tests for prdextract.cli module."""

import io
import re
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner
from rich.console import Console

from prdextract.cli import main

EXCHANGE = "Alice: We should ship the export feature in the next release cycle.\nBob: yeah\n"


class TestCompactCommand:
    """Tests for `prdextract compact`."""

    def test_compacts_to_output_file(self, tmp_path):
        source = tmp_path / "meeting.txt"
        source.write_text(EXCHANGE * 5, encoding="utf-8")
        target = tmp_path / "out.txt"

        result = CliRunner().invoke(
            main, ["compact", str(source), "--target-chars", "350", "--output", str(target)]
        )

        assert result.exit_code == 0, result.output
        content = target.read_text(encoding="utf-8")
        assert content.startswith("[A] We should ship")
        assert "yeah" not in content

    def test_speaker_table_lists_code_then_name(self, tmp_path):
        source = tmp_path / "meeting.txt"
        source.write_text(EXCHANGE * 5, encoding="utf-8")
        recorder = Console(file=io.StringIO(), record=True, width=100)

        with patch("prdextract.cli.console", recorder):
            result = CliRunner().invoke(
                main,
                ["compact", str(source), "--target-chars", "350", "-o", str(tmp_path / "o.txt")],
            )

        assert result.exit_code == 0, result.output
        rows = [
            [cell.strip() for cell in re.split("[│┃]", line) if cell.strip()]
            for line in recorder.export_text().splitlines()
        ]
        assert ["Code", "Speaker"] in rows
        assert ["A", "Alice"] in rows
        assert ["B", "Bob"] in rows

    def test_within_budget_is_copied(self, tmp_path):
        source = tmp_path / "meeting.txt"
        source.write_text(EXCHANGE, encoding="utf-8")
        target = tmp_path / "out.txt"

        result = CliRunner().invoke(main, ["compact", str(source), "-o", str(target)])

        assert result.exit_code == 0, result.output
        assert target.read_text(encoding="utf-8") == EXCHANGE

    def test_over_budget_exits_nonzero(self, tmp_path):
        source = tmp_path / "meeting.txt"
        source.write_text(EXCHANGE * 5, encoding="utf-8")

        result = CliRunner().invoke(
            main, ["compact", str(source), "--target-chars", "10", "-o", str(tmp_path / "o.txt")]
        )

        assert result.exit_code == 1

    def test_rejects_non_positive_budget(self, tmp_path):
        source = tmp_path / "meeting.txt"
        source.write_text(EXCHANGE, encoding="utf-8")

        result = CliRunner().invoke(main, ["compact", str(source), "--target-chars", "0"])

        assert result.exit_code == 2


class TestServeCommand:
    def test_serve_uses_cli_options(self):
        with patch("prdextract.relay.server.ExtractionServer") as server_cls:
            server_cls.return_value.run = AsyncMock()
            result = CliRunner().invoke(main, ["serve", "--host", "0.0.0.0", "--port", "9999"])

        assert result.exit_code == 0, result.output
        settings = server_cls.call_args.kwargs["settings"]
        assert settings.host == "0.0.0.0"
        assert settings.port == 9999
        server_cls.return_value.run.assert_awaited_once()

    def test_serve_reports_missing_key(self):
        with patch(
            "prdextract.relay.server.ExtractionServer", side_effect=ValueError("no key")
        ):
            result = CliRunner().invoke(main, ["serve"])
        assert result.exit_code == 1
