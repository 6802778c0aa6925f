import sys

import pytest

from scroll.cli import build_parser, build_store, main, run_import_command, run_match, run_parse
from scroll.config import Settings, get_settings
from scroll.store import InMemoryStore


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "catechism.txt"
    path.write_text("PART ONE\n1 First.\n2 Second.", encoding="utf-8")
    return path


def test_parse_command(settings, source_file):
    args = build_parser().parse_args(["parse", "--file", str(source_file), "--source-type", "catechism"])
    output = run_parse(args, settings)
    assert output["stats"] == {"total": 3, "structural": 1, "citable": 2}
    assert output["nodes"][0]["level"] == "part"


def test_import_and_match_commands(settings, source_file):
    store = build_store(settings)
    assert isinstance(store, InMemoryStore)
    args = build_parser().parse_args(["import", "--file", str(source_file), "--title", "Catechism"])
    imported = run_import_command(args, settings, store)
    assert imported["stats"]["citable"] == 2
    match_args = build_parser().parse_args(["match", "--text", "see CCC 1"])
    assert run_match(match_args, settings, store) == {"citations": [], "warnings": []}


def test_import_requires_a_source():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["import", "--title", "Catechism"])


def test_match_command_requires_persistent_backend(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("SCROLL_ENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setattr(sys, "argv", ["scroll", "match", "--text", "CCC 1"])
    get_settings.cache_clear()
    try:
        with pytest.raises(SystemExit) as excinfo:
            main()
    finally:
        get_settings.cache_clear()
    assert excinfo.value.code == 2
    assert "storage_backend_required" in capsys.readouterr().err
