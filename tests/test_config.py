"""Tests for TOML config file loading."""

from __future__ import annotations

import argparse
from pathlib import Path

import pytest

from plox.cli import build_parser, load_config, main, resolve_options
from plox.interpreter import DEFAULT_MAX_CALL_DEPTH


def _options(tmp_path: Path, *extra: str):
    doc = tmp_path / "prog.lox"
    doc.write_text("")
    ns = build_parser().parse_args([str(doc), *extra])
    return resolve_options(ns)


class TestLoadConfig:
    def test_missing_config_returns_empty(self, tmp_path: Path) -> None:
        assert load_config(None, tmp_path) == {}

    def test_explicit_path(self, tmp_path: Path) -> None:
        cfg = tmp_path / "custom.toml"
        cfg.write_text("[interpreter]\nmax_call_depth = 64\n")
        result = load_config(cfg, tmp_path)
        assert result["interpreter"] == {"max_call_depth": 64}

    def test_auto_discover_plox_toml(self, tmp_path: Path) -> None:
        cfg = tmp_path / "plox.toml"
        cfg.write_text('[repl]\nprompt = "lox> "\n')
        result = load_config(None, tmp_path)
        assert result["repl"] == {"prompt": "lox> "}

    def test_explicit_missing_path(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "absent.toml", tmp_path) == {}


class TestConfigMerge:
    def test_defaults(self, tmp_path: Path) -> None:
        opts = _options(tmp_path)
        assert opts.max_call_depth == DEFAULT_MAX_CALL_DEPTH
        assert opts.prompt == "> "
        assert opts.debug is False
        assert opts.timing is False

    def test_config_call_depth(self, tmp_path: Path) -> None:
        (tmp_path / "plox.toml").write_text("[interpreter]\nmax_call_depth = 32\n")
        assert _options(tmp_path).max_call_depth == 32

    def test_cli_overrides_config_call_depth(self, tmp_path: Path) -> None:
        (tmp_path / "plox.toml").write_text("[interpreter]\nmax_call_depth = 32\n")
        assert _options(tmp_path, "--max-call-depth", "100").max_call_depth == 100

    def test_config_flags(self, tmp_path: Path) -> None:
        (tmp_path / "plox.toml").write_text("debug = true\ntiming = true\n")
        opts = _options(tmp_path)
        assert opts.debug is True
        assert opts.timing is True

    def test_config_prompt(self, tmp_path: Path) -> None:
        (tmp_path / "plox.toml").write_text('[repl]\nprompt = "$ "\n')
        assert _options(tmp_path).prompt == "$ "

    def test_wrong_types_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "plox.toml").write_text('[interpreter]\nmax_call_depth = "deep"\n')
        assert _options(tmp_path).max_call_depth == DEFAULT_MAX_CALL_DEPTH

    def test_explicit_config_flag(self, tmp_path: Path) -> None:
        cfg = tmp_path / "other.toml"
        cfg.write_text("[interpreter]\nmax_call_depth = 12\n")
        assert _options(tmp_path, "--config", str(cfg)).max_call_depth == 12

    def test_non_positive_depth_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "plox.toml").write_text("[interpreter]\nmax_call_depth = 0\n")
        with pytest.raises(argparse.ArgumentTypeError):
            _options(tmp_path)

    def test_repl_config_from_cwd(self, tmp_path: Path, monkeypatch) -> None:
        (tmp_path / "plox.toml").write_text('[repl]\nprompt = "? "\n')
        monkeypatch.chdir(tmp_path)
        opts = resolve_options(build_parser().parse_args([]))
        assert opts.prompt == "? "


class TestInvalidConfig:
    def test_bad_toml_is_usage_error(self, tmp_path: Path, capsys) -> None:
        (tmp_path / "plox.toml").write_text("this is not toml = = \n")
        doc = tmp_path / "prog.lox"
        doc.write_text("print 1;")
        assert main([str(doc)]) == 64
        assert "invalid config file" in capsys.readouterr().err
