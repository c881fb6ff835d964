"""Integration test for the command-line workflow.

Covers: configuration loading, source parsing, scheduling, rendering and
writing generated files into a temporary Go module.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from struct_mapper.cli import main
from struct_mapper.emit.formatter import CanonicalFormatter

CONFIG = """\
[settings]
style = "pointer"
module = "example.com/shop"

[[mappings]]
source = { name = "User", path = "models/user.go" }
plugins = ["ToMap"]

[[mappings.destination]]
name = "UserDTO"
path = "api/user.go"
ignore = ["Password"]
map = { FullName = "Name" }
"""


# --- Fixtures ---


@pytest.fixture
def project(tmp_project: Path, write_go, monkeypatch) -> Path:
    """A small Go module with a mapping configuration."""
    write_go(
        "models/user.go",
        """\
        package models

        import "time"

        type User struct {
        	ID       int
        	Name     string
        	Password string
        	Created  time.Time
        	internal bool
        }
        """,
    )
    write_go(
        "api/user.go",
        """\
        package api

        import "time"

        type UserDTO struct {
        	ID       int64
        	FullName string
        	Password string
        	Created  time.Time
        }
        """,
    )
    (tmp_project / "mapper.toml").write_text(CONFIG, encoding="utf-8")
    monkeypatch.chdir(tmp_project)
    monkeypatch.setattr("struct_mapper.cli.resolve_formatter", CanonicalFormatter)
    return tmp_project


# --- Tests ---


class TestGenerate:
    def test_writes_one_file_per_directory(self, project: Path, capsys) -> None:
        main(["--config", str(project / "mapper.toml"), "--workers", "2"])

        out = capsys.readouterr().out
        assert "Generated api/mapper_gen.go" in out
        assert "Generated models/mapper_gen.go" in out

        api = (project / "api" / "mapper_gen.go").read_text()
        assert api.startswith("// Code generated by struct-mapper; DO NOT EDIT.\n")
        assert (
            "package api\n"
            "\n"
            "import (\n"
            '\t"example.com/shop/models"\n'
            ")\n"
            "\n"
            "func (dest *UserDTO) FromUser(src models.User) {\n"
            "\tdest.ID = int64(src.ID)\n"
            "\tdest.FullName = src.Name\n"
            "\tdest.Created = src.Created\n"
            "}\n"
        ) in api

        models = (project / "models" / "mapper_gen.go").read_text()
        assert "func (dest *User) ToMap() map[string]any {\n" in models
        assert 'result["internal"]' not in models

    def test_debug_prints_instead_of_writing(self, project: Path, capsys) -> None:
        main(["--config", str(project / "mapper.toml"), "--debug"])

        err = capsys.readouterr().err
        assert "[struct-mapper] INFO api/mapper_gen.go" in err
        assert "func (dest *UserDTO) FromUser(src models.User) {" in err
        assert not (project / "api" / "mapper_gen.go").exists()

    def test_failed_group_is_reported(self, project: Path, capsys) -> None:
        config = CONFIG.replace('name = "UserDTO"', 'name = "Missing"')
        (project / "mapper.toml").write_text(config, encoding="utf-8")

        main(["--config", str(project / "mapper.toml")])

        captured = capsys.readouterr()
        assert "1 group(s) failed" in captured.out
        assert "type(Missing): specified type not found" in captured.err
        assert not (project / "api" / "mapper_gen.go").exists()
        assert (project / "models" / "mapper_gen.go").exists()


class TestErrors:
    def test_missing_config(self, tmp_path: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(tmp_path / "nope.toml")])
        assert exc_info.value.code == 1
        assert "Cannot read configuration" in capsys.readouterr().err

    def test_missing_source_file(self, project: Path, capsys) -> None:
        (project / "api" / "user.go").unlink()
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(project / "mapper.toml")])
        assert exc_info.value.code == 1
        assert "user.go" in capsys.readouterr().err

    def test_rejects_zero_workers(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--workers", "0"])
        assert exc_info.value.code == 2
        assert "must be at least 1" in capsys.readouterr().err


def test_schema(capsys) -> None:
    main(["--schema"])
    schema = json.loads(capsys.readouterr().out)
    assert schema["$schema"].startswith("https://json-schema.org/")
    assert "settings" in schema["properties"]
