"""CLI parser behaviour tests."""

from __future__ import annotations

import pytest

from jsxlate.cli import _build_parser, main
from tests._fixtures.repo_builder import RepoBuilder


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "update"])
    assert args.verbose is True
    assert args.command == "update"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["update", "--verbose"])
    assert args.verbose is True
    assert args.command == "update"


def test_cli_quiet_and_verbose_are_exclusive() -> None:
    parser = _build_parser()
    args = parser.parse_args(["-q", "hashes"])
    assert args.quiet is True
    assert args.verbose is False
    with pytest.raises(SystemExit):
        parser.parse_args(["hashes", "-q", "-v"])


def test_cli_update_flags() -> None:
    parser = _build_parser()
    args = parser.parse_args(["update", "--dry-run", "--append", "-C", "web"])
    assert args.dry_run is True
    assert args.append is True
    assert args.project == "web"

    args = parser.parse_args(["update"])
    assert args.append is None
    assert args.project == "."


def test_cli_rekey_and_build_arguments() -> None:
    parser = _build_parser()
    args = parser.parse_args(["rekey", "0", "1", "--dry-run"])
    assert (args.old_version, args.new_version, args.dry_run) == (0, 1, True)

    args = parser.parse_args(["build", "src/App.jsx", "src/Menu.jsx", "--out-dir", "dist"])
    assert args.files == ["src/App.jsx", "src/Menu.jsx"]
    assert args.out_dir == "dist"


def test_cli_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


def test_cli_init_then_update(repo_builder: RepoBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    repo_builder.configure(langs=["en"])
    repo_builder.write({"src/App.jsx": "export const App = () => <T>foo</T>;\n"})
    root = str(repo_builder.path())

    main(["init", "-C", root])
    main(["update", "-C", root])
    main(["hashes", "-C", root])

    out = capsys.readouterr().out
    assert "jsxlate-translations.js" in out
    assert "added:   1" in out
    assert "src/App.jsx:1\te5410e122e8c" in out


def test_cli_reports_missing_registry(repo_builder: RepoBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    repo_builder.write({"src/App.jsx": "export const App = () => <T>foo</T>;\n"})

    with pytest.raises(SystemExit) as excinfo:
        main(["update", "-C", str(repo_builder.path())])

    assert excinfo.value.code == 1
    assert "Run `jsxlate init` first." in capsys.readouterr().err


def test_cli_reports_usage_errors(repo_builder: RepoBuilder, capsys: pytest.CaptureFixture[str]) -> None:
    repo_builder.write({"src/App.jsx": "export const App = () => <T>{this.x}</T>;\n"})
    root = str(repo_builder.path())
    main(["init", "-C", root])

    with pytest.raises(SystemExit) as excinfo:
        main(["update", "-C", root])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "jsxlate update failed: at src/App.jsx:1: 'this' is not allowed" in err
    assert "Run with --verbose" in err
