"""
Example 02: Inspecting a Match Plan

This example parses Go source held in memory and prints how every destination
field would be filled, without generating a file.
"""

from struct_mapper import FieldMatcher, SourceRegistry, TypeModelExtractor
from struct_mapper.mapping.plan import ConvertStep, CopyStep


SOURCE = """package shop

type Audit struct {
\tCreatedBy string
\tUpdatedBy string
}

type OrderRow struct {
\tAudit
\tID     int
\tTotal  float64
\tStatus int
\tNotes  []string
}

type Order struct {
\tID        int64
\tTotal     float64
\tStatus    string
\tNotes     string
\tCreatedBy string
\tsecret    bool
}
"""


def main():
    registry = SourceRegistry.from_sources({"shop/order.go": SOURCE})
    extractor = TypeModelExtractor()

    parsed = registry.get("shop/order.go")
    source = extractor.extract(parsed, "OrderRow")
    destination = extractor.extract(parsed, "Order")

    plan = FieldMatcher().plan(source, destination, ignored=["secret"])

    print("=== Order.FromOrderRow ===\n")
    for step in plan.steps:
        if isinstance(step, CopyStep):
            print(f"  {step.destination:<10} <- {step.source}")
        elif isinstance(step, ConvertStep):
            print(f"  {step.destination:<10} <- {step.type}({step.source})")
        else:
            print(f"  {step.destination:<10} skipped ({step.reason.value})")


if __name__ == "__main__":
    main()
