"""Export JSON schemas for extractor outputs and template content."""

import json
from pathlib import Path

from brandkit.documents.registry import TEMPLATES
from brandkit.extractors.registry import definitions


def main() -> None:
    """Export schemas to docs/schemas/."""
    schemas_dir = Path("docs/schemas")
    schemas_dir.mkdir(parents=True, exist_ok=True)

    # One schema per extractor, named after its function
    for definition in definitions():
        path = schemas_dir / f"extractor.{definition.id.value}.schema.json"
        with open(path, "w") as f:
            json.dump(definition.parser.schema, f, indent=2)
        print(f"Exported {definition.parser.function_name} schema to {path}")

    for template in TEMPLATES.values():
        path = schemas_dir / f"template.{template.id.value}.schema.json"
        with open(path, "w") as f:
            json.dump(template.parser.schema, f, indent=2)
        print(f"Exported {template.parser.function_name} schema to {path}")


if __name__ == "__main__":
    main()
