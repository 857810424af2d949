"""Tests for the command line entry point that do not start the event loop."""
from __future__ import annotations

import pytest

pytest.importorskip("PySide6.QtWidgets")

from scopeline.main import build_parser, main  # noqa: E402


def test_list_backends(capsys):
    assert main(["--list-backends"]) == 0
    out = capsys.readouterr().out
    assert "simulated" in out
    assert "Simulated" in out


def test_unknown_backend_exits_with_error():
    assert main(["--backend", "does-not-exist"]) == 2


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.backend is None
    assert args.emission_rate is None
    assert args.log_level == "WARNING"


def test_parser_rejects_bad_log_level():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--log-level", "LOUD"])
