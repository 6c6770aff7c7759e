"""Tests for ycard/ycard_cli.py — the command-line host."""

import json

import pytest

from ycard.persist_ycard import STORAGE_KEY
from ycard.session import DEFAULT_YCARD
from ycard.ycard_cli import main

VALID = "people:\n  - uid: u1\n    name: A\n    surname: B\n    email: a@b.com\n"
NO_UID = "people:\n  - name: A\n    surname: B\n    email: a@b.com\n"


@pytest.fixture
def write(tmp_path):
    def _write(name, text):
        p = tmp_path / name
        p.write_text(text, encoding="utf-8")
        return str(p)
    return _write


class TestValidateCommand:
    def test_valid_file(self, write, capsys):
        assert main(["validate", write("c.yaml", VALID)]) == 0
        out = capsys.readouterr().out
        assert "Valid YAML" in out
        assert "1 people found" in out

    def test_invalid_file(self, write, capsys):
        assert main(["validate", write("c.yaml", NO_UID)]) == 1
        assert 'Person 1: "uid" is required' in capsys.readouterr().out

    def test_unparsable_file(self, write, capsys):
        assert main(["validate", write("c.yaml", "people: [unclosed")]) == 1
        assert "Invalid YAML" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["validate", str(tmp_path / "nope.yaml")]) == 2
        assert "ERROR: Cannot read" in capsys.readouterr().err

    def test_show_log(self, write, capsys):
        main(["validate", "--show-log", write("c.yaml", VALID)])
        out = capsys.readouterr().out
        assert "Activity Logs" in out
        assert "Editor initialized successfully" in out
        assert "✓" in out


class TestSaveAndShow:
    def test_save_then_show(self, write, tmp_path, capsys):
        store = str(tmp_path / "store.json")
        assert main(["save", write("c.yaml", DEFAULT_YCARD), "--store", store]) == 0
        assert "Saved Successfully!" in capsys.readouterr().out

        data = json.loads((tmp_path / "store.json").read_text(encoding="utf-8"))
        assert STORAGE_KEY in data["items"]

        assert main(["show", "--store", store]) == 0
        shown = json.loads(capsys.readouterr().out)
        assert [p["name"] for p in shown["people"]] == ["Alice", "Bob"]

    def test_invalid_save_writes_nothing(self, write, tmp_path, capsys):
        store = tmp_path / "store.json"
        assert main(["save", write("c.yaml", NO_UID), "--store", str(store)]) == 1
        assert "Cannot Save" in capsys.readouterr().out
        assert not store.exists()

    def test_unwritable_store(self, write, tmp_path, capsys):
        store = tmp_path / "store.json"
        store.write_text("{broken", encoding="utf-8")
        assert main(["save", write("c.yaml", VALID), "--store", str(store)]) == 2
        assert store.read_text(encoding="utf-8") == "{broken"

    def test_store_path_from_environment(self, write, tmp_path, monkeypatch, capsys):
        store = tmp_path / "env_store.json"
        monkeypatch.setenv("YCARD_STORE_PATH", str(store))
        assert main(["save", write("c.yaml", VALID)]) == 0
        assert store.exists()

    def test_show_empty_store(self, tmp_path, capsys):
        assert main(["show", "--store", str(tmp_path / "store.json")]) == 1
        assert "No yCard data saved" in capsys.readouterr().err

    def test_show_corrupt_store(self, tmp_path, capsys):
        store = tmp_path / "store.json"
        store.write_text(
            json.dumps({"store_version": "x", "items": {STORAGE_KEY: '{"people": 3}'}}),
            encoding="utf-8",
        )
        assert main(["show", "--store", str(store)]) == 2
        assert "ERROR:" in capsys.readouterr().err


class TestDiffCommand:
    def test_no_changes(self, write, capsys):
        a = write("a.yaml", VALID)
        b = write("b.yaml", VALID)
        assert main(["diff", b, "--baseline", a]) == 0
        assert "No changes" in capsys.readouterr().out

    def test_changes(self, write, capsys):
        a = write("a.yaml", VALID)
        b = write("b.yaml", VALID.replace("name: A", "name: Z"))
        assert main(["diff", b, "--baseline", a]) == 1
        out = capsys.readouterr().out
        assert f"--- {a}" in out
        assert "-    name: A" in out
        assert "+    name: Z" in out


class TestMisc:
    def test_example(self, capsys):
        assert main(["example"]) == 0
        assert capsys.readouterr().out == DEFAULT_YCARD

    def test_no_command(self, capsys):
        assert main([]) == 2
