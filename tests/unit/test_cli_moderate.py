"""
Unit tests for the moderation CLI.

Runs main() in-process with injected streams; logging setup is patched out so
the test suite's structlog configuration stays in place.
"""

import io
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from content_moderation.cli.moderate import (
    EXIT_CLEAN,
    EXIT_FLAGGED,
    EXIT_USAGE,
    build_parser,
    main,
    read_submissions,
    write_results,
)
from content_moderation.moderation.engine import ModerationEngine
from content_moderation.moderation.local_filter import local_filter


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("content_moderation.cli.moderate.setup_logging"):
        yield


def run_cli(argv, stdin_text=""):
    stdout = io.StringIO()
    code = main(argv, stdin=io.StringIO(stdin_text), stdout=stdout)
    return code, stdout.getvalue()


class TestMain:
    """Test the CLI entry point."""

    def test_flagged_text(self):
        code, output = run_cli(["I hate you, you racist", "--local-only"])

        assert code == EXIT_FLAGGED
        result = json.loads(output)
        assert result["flagged"] is True
        assert result["category"] == "HATE_SPEECH"
        assert result["severity"] == 0.8
        assert result["source"] == "LOCAL"

    def test_clean_text(self):
        code, output = run_cli(["a peaceful landscape painting", "--local-only"])

        assert code == EXIT_CLEAN
        assert json.loads(output)["flagged"] is False

    def test_stdin(self):
        code, output = run_cli(["--local-only"], stdin_text="check this out discord.gg/abc123")

        assert code == EXIT_FLAGGED
        assert json.loads(output)["category"] == "SPAM"

    def test_lines_mode(self):
        code, output = run_cli(
            ["--lines", "--local-only"],
            stdin_text="hello there\n\nbit.ly/xyz\nnice picture\n",
        )

        lines = output.strip().splitlines()
        assert code == EXIT_FLAGGED
        assert len(lines) == 3
        assert [json.loads(line)["flagged"] for line in lines] == [False, True, False]

    def test_file_input(self, tmp_path):
        path = tmp_path / "description.txt"
        path.write_text("go kill yourself", encoding="utf-8")

        code, output = run_cli(["--file", str(path), "--local-only", "--pretty"])

        assert code == EXIT_FLAGGED
        assert output.startswith("{\n")
        assert json.loads(output)["category"] == "HARASSMENT"

    def test_missing_file(self, tmp_path, capsys):
        code, output = run_cli(["--file", str(tmp_path / "nope.txt"), "--local-only"])

        assert code == EXIT_USAGE
        assert output == ""
        assert "File not found" in capsys.readouterr().err

    def test_non_utf8_file(self, tmp_path, capsys):
        path = tmp_path / "latin1.txt"
        path.write_bytes("caf\xe9 racist".encode("latin-1"))

        code, output = run_cli(["--file", str(path), "--local-only"])

        assert code == EXIT_USAGE
        assert output == ""
        err = capsys.readouterr().err
        assert "is not valid UTF-8" in err
        assert "Traceback" not in err

    def test_text_and_file_conflict(self, tmp_path, capsys):
        path = tmp_path / "a.txt"
        path.write_text("x", encoding="utf-8")

        code, _ = run_cli(["some text", "--file", str(path)])

        assert code == EXIT_USAGE
        assert "not both" in capsys.readouterr().err

    def test_uses_configured_engine(self, failing_primary, flagging_secondary):
        engine = ModerationEngine(primary=failing_primary, secondary=flagging_secondary)

        with patch("content_moderation.cli.moderate.build_engine", return_value=engine) as build:
            code, output = run_cli(["you idiot"])

        build.assert_called_once_with(None)
        assert code == EXIT_FLAGGED
        assert json.loads(output)["source"] == "SECONDARY"
        assert failing_primary.closed is True

    def test_unknown_option_exits_with_usage(self):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(["--bogus"])

        assert exc_info.value.code == EXIT_USAGE


class TestHelpers:
    """Test CLI helper functions."""

    def test_read_submissions_text_wins(self):
        assert read_submissions("a", None, False, io.StringIO("ignored")) == ["a"]

    def test_read_submissions_split_lines_drops_blank(self):
        result = read_submissions("one\n  \ntwo", None, True, io.StringIO())

        assert result == ["one", "two"]

    def test_read_submissions_file(self, tmp_path):
        path = tmp_path / "in.txt"
        path.write_text("line\n", encoding="utf-8")

        assert read_submissions(None, Path(path), False, io.StringIO()) == ["line\n"]

    def test_write_results_list(self):
        out = io.StringIO()

        write_results([local_filter("kys"), local_filter("hi")], out)

        data = json.loads(out.getvalue())
        assert [item["flagged"] for item in data] == [True, False]

    def test_parser_defaults(self):
        args = build_parser().parse_args([])

        assert args.text is None
        assert args.file is None
        assert args.lines is False
        assert args.local_only is False
