"""
Example 01: Generating From a Configuration File

This example writes a tiny Go module, describes the conversions in mapper.toml
and runs the same pipeline the struct-mapper command uses.
"""

from struct_mapper import ArtifactWriter, Engine, Scheduler, load_config
import tempfile
from pathlib import Path


MODELS = """package models

import "time"

type User struct {
\tID       int
\tName     string
\tPassword string
\tCreated  time.Time
}
"""

API = """package api

import "time"

type UserDTO struct {
\tID       int64
\tFullName string
\tPassword string
\tCreated  time.Time
}
"""

CONFIG = """[settings]
style = "pointer"
module = "example.com/shop"

[[mappings]]
source = { name = "User", path = "models/user.go" }
plugins = ["ToMap", "FromMap"]

[[mappings.destination]]
name = "UserDTO"
path = "api/user.go"
ignore = ["Password"]
map = { FullName = "Name" }
"""


def main():
    # Lay out a throwaway Go module
    root = Path(tempfile.mkdtemp())
    (root / "models").mkdir()
    (root / "api").mkdir()
    (root / "models" / "user.go").write_text(MODELS)
    (root / "api" / "user.go").write_text(API)
    (root / "mapper.toml").write_text(CONFIG)

    # Load configuration and sources
    config = load_config(root / "mapper.toml")
    engine = Engine.from_config(config, root)

    print("=== Generating ===\n")

    # One work group per output directory
    result = Scheduler(engine, workers=2).run(engine.groups(config))
    for error in result.errors:
        print(f"failed: {error}")

    for path in ArtifactWriter(root).write_all(result.artifacts):
        print(f"--- {path.relative_to(root)} ---")
        print(path.read_text())

    # Clean up
    for file in sorted(root.rglob("*"), reverse=True):
        file.rmdir() if file.is_dir() else file.unlink()
    root.rmdir()


if __name__ == "__main__":
    main()
