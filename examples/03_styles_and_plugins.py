"""
Example 03: Calling Conventions and Map Plugins

This example renders the same conversion in each style, plus ToMap/FromMap
converters for a map-backed type.
"""

from struct_mapper import Engine, GeneratorOptions, MapPluginSpec, MappingSpec, SourceRegistry, Style, WorkGroup


SOURCE = """package catalog

type Product struct {
\tSKU   string
\tPrice float64
\tStock int
}

type ProductView struct {
\tSKU   string
\tPrice string
\tStock int32
}

type Attributes map[string]string
"""


def main():
    registry = SourceRegistry.from_sources({"catalog/product.go": SOURCE})
    group = WorkGroup(
        "catalog",
        (
            MappingSpec("Product", "catalog/product.go", "ProductView", "catalog/product.go"),
            MapPluginSpec("Attributes", "catalog/product.go", "ToMap"),
            MapPluginSpec("Attributes", "catalog/product.go", "FromMap"),
        ),
    )

    for style in Style:
        engine = Engine(registry, GeneratorOptions(style=style, header=False))
        artifact = engine.process(group)
        print(f"=== {style.value} ===\n")
        print(artifact.content.decode())


if __name__ == "__main__":
    main()
