"""Unit tests for Engine."""

from __future__ import annotations

import logging
import re
import textwrap
from datetime import datetime, timezone

import pytest

from struct_mapper.core.config import parse_config
from struct_mapper.core.engine import Engine, GeneratorOptions
from struct_mapper.core.enums import Style
from struct_mapper.core.exceptions import (
    NoWorkError,
    RenderFormatError,
    SourceNotFoundError,
    TypeNotFoundError,
    UnknownPluginError,
    UnsupportedJobShapeError,
)
from struct_mapper.core.jobs import MappingSpec, MapPluginSpec, WorkGroup
from struct_mapper.core.registry import SourceRegistry
from struct_mapper.mapping.conversions import ConversionTable

SAME_PACKAGE = """\
    package p

    type P struct {
    	a int
    	B string
    }

    type K struct {
    	a int
    	B string
    }
"""


def _mapping(source: str, source_path: str, destination: str, destination_path: str, **kwargs) -> MappingSpec:
    return MappingSpec(source, source_path, destination, destination_path, **kwargs)


class TestSamePackage:
    def test_value_style(self, make_engine) -> None:
        engine = make_engine({"p.go": SAME_PACKAGE})
        artifact = engine.process(WorkGroup(".", (_mapping("P", "p.go", "K", "p.go"),)))

        assert artifact.path == "mapper_gen.go"
        assert artifact.warnings == ()
        assert artifact.content.decode() == (
            "package p\n"
            "\n"
            "func (dest K) FromP(src P) K {\n"
            "\tdest.a = src.a\n"
            "\tdest.B = src.B\n"
            "\treturn dest\n"
            "}\n"
        )

    def test_pointer_style(self, make_engine) -> None:
        engine = make_engine({"p.go": SAME_PACKAGE}, style=Style.POINTER)
        text = engine.process(WorkGroup(".", (_mapping("P", "p.go", "K", "p.go"),))).content.decode()
        assert "func (dest *K) FromP(src P) {\n" in text
        assert "return" not in text

    def test_ignore_and_alias(self, make_engine) -> None:
        engine = make_engine(
            {
                "p.go": """\
                    package p

                    type P struct {
                    	A int
                    	B string
                    }

                    type K struct {
                    	A int
                    	B string
                    	C string
                    }
                """
            }
        )
        job = _mapping("P", "p.go", "K", "p.go", ignored_fields=frozenset({"B"}), field_aliases={"C": "B"})
        text = engine.process(WorkGroup(".", (job,))).content.decode()
        assert "\tdest.A = src.A\n\tdest.C = src.B\n\treturn dest\n" in text
        assert "dest.B" not in text

    def test_cast_and_incompatible(self, make_engine) -> None:
        engine = make_engine(
            {
                "p.go": """\
                    package p

                    type P struct {
                    	Count int
                    	Tags  []string
                    }

                    type K struct {
                    	Count int64
                    	Tags  string
                    }
                """
            }
        )
        text = engine.process(WorkGroup(".", (_mapping("P", "p.go", "K", "p.go"),))).content.decode()
        assert "\tdest.Count = int64(src.Count)\n" in text
        assert "Tags" not in text

    def test_custom_conversion_table(self, make_engine) -> None:
        engine = make_engine(
            {
                "p.go": """\
                    package p

                    type P struct{ Count int }
                    type K struct{ Count int64 }
                """
            },
            conversions=ConversionTable.from_mapping({"int64": ["int"]}),
        )
        text = engine.process(WorkGroup(".", (_mapping("P", "p.go", "K", "p.go"),))).content.decode()
        assert "Count" not in text


class TestAcrossPackages:
    SOURCES = {
        "models/user.go": """\
            package models

            type User struct {
            	ID    int
            	Name  string
            	email string
            }
        """,
        "api/dto.go": """\
            package api

            type UserDTO struct {
            	ID    int64
            	Name  string
            	email string
            }
        """,
    }

    def test_qualified_source_and_import(self, make_engine) -> None:
        engine = make_engine(self.SOURCES, module="example.com/shop")
        job = _mapping("User", "models/user.go", "UserDTO", "api/dto.go")
        artifact = engine.process(WorkGroup("api", (job,)))

        assert artifact.path == "api/mapper_gen.go"
        assert artifact.content.decode() == (
            "package api\n"
            "\n"
            "import (\n"
            '\t"example.com/shop/models"\n'
            ")\n"
            "\n"
            "func (dest UserDTO) FromUser(src models.User) UserDTO {\n"
            "\tdest.ID = int64(src.ID)\n"
            "\tdest.Name = src.Name\n"
            "\treturn dest\n"
            "}\n"
        )

    def test_path_from_module(self, make_engine) -> None:
        engine = make_engine(self.SOURCES, module="example.com/shop", path_from_module="backend")
        job = _mapping("User", "models/user.go", "UserDTO", "api/dto.go")
        text = engine.process(WorkGroup("api", (job,))).content.decode()
        assert '\t"example.com/shop/backend/models"\n' in text

    def test_imported_nested_type_is_copied(self, make_engine) -> None:
        engine = make_engine(
            {
                "/bli/p.go": """\
                    package l

                    type MetaData struct {
                    	Value string
                    }

                    type P struct {
                    	Meta MetaData
                    }
                """,
                "/bla/k.go": """\
                    package p

                    import "/bli"

                    type K struct {
                    	Meta l.MetaData
                    }
                """,
            }
        )
        text = engine.process(WorkGroup("/bla", (_mapping("P", "/bli/p.go", "K", "/bla/k.go"),))).content.decode()
        assert "func (dest K) FromP(src l.P) K {\n\tdest.Meta = src.Meta\n" in text

    def test_function_and_interface_fields_are_copied(self, make_engine) -> None:
        engine = make_engine(
            {
                "models/user.go": """\
                    package models

                    import "context"

                    type User struct {
                    	Hook func(ctx context.Context) error
                    	Str  interface{ String() string }
                    }
                """,
                "api/dto.go": """\
                    package api

                    import "context"

                    type UserDTO struct {
                    	Hook func(ctx context.Context) error
                    	Str  interface{ String() string }
                    }
                """,
            },
            module="example.com/shop",
        )
        job = _mapping("User", "models/user.go", "UserDTO", "api/dto.go")
        text = engine.process(WorkGroup("api", (job,))).content.decode()
        assert "\tdest.Hook = src.Hook\n\tdest.Str = src.Str\n" in text

    def test_same_name_from_other_package_is_not_copied(self, make_engine) -> None:
        engine = make_engine(
            {
                "a/a.go": """\
                    package a

                    type Meta struct{ Value string }
                    type A struct{ Meta Meta }
                """,
                "b/b.go": """\
                    package b

                    type B struct{ Meta Meta }
                """,
            },
            module="m",
        )
        text = engine.process(WorkGroup("b", (_mapping("A", "a/a.go", "B", "b/b.go"),))).content.decode()
        assert "dest.Meta" not in text


class TestMapTypes:
    def test_map_source(self, make_engine) -> None:
        engine = make_engine(
            {
                "p.go": """\
                    package p

                    type Bag map[string]any

                    type K struct {
                    	Name string
                    	Age  int
                    }
                """
            }
        )
        job = _mapping("Bag", "p.go", "K", "p.go", field_aliases={"Age": "age"})
        text = engine.process(WorkGroup(".", (job,))).content.decode()
        assert (
            "func (dest K) FromBag(src Bag) K {\n"
            '\tif v, ok := src["Name"].(string); ok {\n'
            "\t\tdest.Name = v\n"
            "\t}\n"
            '\tif v, ok := src["age"].(int); ok {\n'
            "\t\tdest.Age = v\n"
            "\t}\n"
        ) in text

    def test_map_destination(self, make_engine) -> None:
        engine = make_engine(
            {
                "p.go": """\
                    package p

                    type P struct {
                    	Name string
                    	Age  int
                    }

                    type Bag map[string]any
                """
            },
            style=Style.POINTER,
        )
        text = engine.process(WorkGroup(".", (_mapping("P", "p.go", "Bag", "p.go"),))).content.decode()
        assert (
            "func (dest *Bag) FromP(src P) {\n"
            '\t(*dest)["Name"] = src.Name\n'
            '\t(*dest)["Age"] = src.Age\n'
            "}\n"
        ) in text

    def test_map_to_map(self, make_engine) -> None:
        engine = make_engine(
            {
                "p.go": """\
                    package p

                    type Loose map[string]any
                    type Strict map[string]string
                """
            }
        )
        text = engine.process(WorkGroup(".", (_mapping("Loose", "p.go", "Strict", "p.go"),))).content.decode()
        assert "\t\tif t, ok := v.(string); ok {\n\t\t\tdest[k] = t\n" in text


class TestPlugins:
    def test_from_map_imports_field_types(self, make_engine) -> None:
        engine = make_engine(
            {
                "models/user.go": """\
                    package models

                    import "time"

                    type User struct {
                    	Name    string
                    	Created time.Time
                    }
                """
            },
            module="example.com/shop",
        )
        artifact = engine.process(WorkGroup("models", (MapPluginSpec("User", "models/user.go", "FromMap"),)))
        assert artifact.content.decode() == (
            "package models\n"
            "\n"
            "import (\n"
            '\t"time"\n'
            ")\n"
            "\n"
            "func (dest User) FromMap(src map[string]any) User {\n"
            '\tif v, ok := src["Name"].(string); ok {\n'
            "\t\tdest.Name = v\n"
            "\t}\n"
            '\tif v, ok := src["Created"].(time.Time); ok {\n'
            "\t\tdest.Created = v\n"
            "\t}\n"
            "\treturn dest\n"
            "}\n"
        )

    def test_to_map_needs_no_imports(self, make_engine) -> None:
        engine = make_engine(
            {
                "models/user.go": """\
                    package models

                    import "time"

                    type User struct{ Created time.Time }
                """
            }
        )
        text = engine.process(WorkGroup("models", (MapPluginSpec("User", "models/user.go", "ToMap"),))).content.decode()
        assert "import" not in text

    def test_to_map_and_from_map_agree_on_keys_and_types(self, make_engine) -> None:
        engine = make_engine(
            {
                "models/order.go": """\
                    package models

                    import "time"

                    type Order struct {
                    	ID      int64
                    	Tags    []string
                    	Placed  time.Time
                    	Prices  map[string]float64
                    	Note    *string
                    	secret  string
                    	_       int
                    }
                """
            }
        )
        group = WorkGroup(
            "models",
            (
                MapPluginSpec("Order", "models/order.go", "ToMap"),
                MapPluginSpec("Order", "models/order.go", "FromMap"),
            ),
        )
        text = engine.process(group).content.decode()

        written = dict(re.findall(r'result\["(\w+)"\] = dest\.(\w+)', text))
        read = dict(re.findall(r'if v, ok := src\["(\w+)"\]\.\((.+)\); ok \{', text))
        declared = {
            "ID": "int64",
            "Tags": "[]string",
            "Placed": "time.Time",
            "Prices": "map[string]float64",
            "Note": "*string",
        }
        assert written == {name: name for name in declared}
        assert read == declared
        assert '\t"time"\n' in text

    def test_int_keyed_map_plugins_copy_nothing(self, make_engine, caplog) -> None:
        engine = make_engine(
            {
                "ids.go": """\
                    package p

                    import "example.com/x/uuid"

                    type Ids map[uuid.UUID]any
                """
            }
        )
        group = WorkGroup(".", (MapPluginSpec("Ids", "ids.go", "ToMap"), MapPluginSpec("Ids", "ids.go", "FromMap")))
        with caplog.at_level(logging.WARNING, logger="struct_mapper"):
            text = engine.process(group).content.decode()
        assert "range" not in text
        assert "import" not in text
        assert "keys of type uuid.UUID are not strings" in caplog.text

    def test_several_jobs_share_one_file(self, make_engine) -> None:
        engine = make_engine({"p.go": SAME_PACKAGE})
        group = WorkGroup(".", (_mapping("P", "p.go", "K", "p.go"), MapPluginSpec("K", "p.go", "ToMap")))
        text = engine.process(group).content.decode()
        assert text.count("package p\n") == 1
        assert "return dest\n}\n\nfunc (dest K) ToMap() map[string]any {\n" in text


class TestHeader:
    def test_header_lines(self) -> None:
        options = GeneratorOptions(
            version="1.2.3",
            generated_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        )
        assert options.header_lines() == [
            "// Code generated by struct-mapper; DO NOT EDIT.",
            "// Generated at: 2024-01-02T03:04:05Z",
            "// struct-mapper version: 1.2.3",
        ]

    def test_header_is_written_first(self, make_engine) -> None:
        engine = make_engine({"p.go": SAME_PACKAGE}, header=True, version="1.2.3")
        text = engine.process(WorkGroup(".", (_mapping("P", "p.go", "K", "p.go"),))).content.decode()
        assert text.startswith("// Code generated by struct-mapper; DO NOT EDIT.\n")
        assert "// struct-mapper version: 1.2.3\n\npackage p\n" in text


class TestFailures:
    def test_empty_group(self, make_engine) -> None:
        with pytest.raises(NoWorkError):
            make_engine({"p.go": SAME_PACKAGE}).process(WorkGroup("."))

    def test_unknown_job_shape(self, make_engine) -> None:
        with pytest.raises(UnsupportedJobShapeError):
            make_engine({"p.go": SAME_PACKAGE}).process(WorkGroup(".", (object(),)))

    def test_missing_type(self, make_engine) -> None:
        with pytest.raises(TypeNotFoundError, match="Missing"):
            make_engine({"p.go": SAME_PACKAGE}).process(WorkGroup(".", (_mapping("Missing", "p.go", "K", "p.go"),)))

    def test_missing_file(self, make_engine) -> None:
        with pytest.raises(SourceNotFoundError):
            make_engine({"p.go": SAME_PACKAGE}).process(WorkGroup(".", (_mapping("P", "q.go", "K", "p.go"),)))

    def test_unknown_plugin(self, make_engine) -> None:
        with pytest.raises(UnknownPluginError):
            make_engine({"p.go": SAME_PACKAGE}).process(WorkGroup(".", (MapPluginSpec("K", "p.go", "ToYAML"),)))

    def test_format_failure_keeps_unformatted_output(self, caplog) -> None:
        class BrokenFormatter:
            def format(self, source: str) -> str:
                raise RenderFormatError("1:1: expected 'package'")

        registry = SourceRegistry.from_sources({"p.go": textwrap.dedent(SAME_PACKAGE)})
        engine = Engine(registry, GeneratorOptions(header=False), BrokenFormatter())
        with caplog.at_level("WARNING", logger="struct_mapper"):
            artifact = engine.process(WorkGroup(".", (_mapping("P", "p.go", "K", "p.go"),)))

        assert artifact.warnings == ("Invalid Go generated: 1:1: expected 'package'",)
        assert artifact.content.startswith(b"package p\n")
        assert "compile the package" in caplog.text


class TestFromConfig:
    def test_loads_sources_relative_to_root(self, tmp_project, write_go) -> None:
        write_go("db/user.go", SAME_PACKAGE.replace("package p", "package db"))
        config = parse_config(
            {
                "settings": {"module": "example.com/shop", "style": "standalone"},
                "mappings": [
                    {
                        "source": {"name": "P", "path": "db/user.go"},
                        "destination": [{"name": "K", "path": "db/user.go"}],
                    }
                ],
            }
        )
        engine = Engine.from_config(config, tmp_project, header=False)
        [group] = engine.groups(config)
        artifact = engine.process(group)

        assert engine.options.style is Style.STANDALONE
        assert artifact.path == "db/mapper_gen.go"
        assert "func KFromP(dest K, src P) K {\n" in artifact.content.decode()
