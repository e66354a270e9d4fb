# scripts/gen_schemas.py
"""
Generate JSON Schemas for the Alchemist data contracts.

This script exports JSON Schema files for:
    - Client, Worker, Task (upload records)
    - Rule (tagged union of the five rule variants)
    - ExportDocument (the document handed to the allocation engine)
    - Config (config.yaml)

Output directory: schemas/
"""

import json
from pathlib import Path
from typing import Any

from alchemist.schemas.models import Client, Config, ExportDocument, Task, Worker
from alchemist.schemas.rules import RULE_ADAPTER


def export_schema(schema: dict[str, Any], name: str, out_dir: Path) -> Path:
    """
    @brief
    Writes one JSON schema document.

    @details
    Ensures the output directory exists, writes UTF-8 JSON with a final
    newline and prints the path relative to the working directory.

    @returns
        Path of the written "<name>.schema.json" file.

    @raises
        OSError
            If the schema file cannot be written.
    """
    # (1) Ensure output directory exists
    out_dir.mkdir(parents=True, exist_ok=True)
    schema_path = (out_dir / f"{name}.schema.json").resolve()

    # (2) Serialize with indentation and final newline
    with schema_path.open("w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
        f.write("\n")

    try:
        rel = schema_path.relative_to(Path.cwd())
    except ValueError:
        rel = schema_path
    print(f"✅  Generated {rel}")
    return schema_path


def main() -> None:
    out_dir = Path("schemas").resolve()

    # Export-facing schemas use the canonical (alias) field names
    for model, name in (
        (Client, "client"),
        (Worker, "worker"),
        (Task, "task"),
        (ExportDocument, "export"),
    ):
        export_schema(model.model_json_schema(by_alias=True), name, out_dir)
    export_schema(RULE_ADAPTER.json_schema(by_alias=True), "rule", out_dir)
    export_schema(Config.model_json_schema(), "config", out_dir)


if __name__ == "__main__":
    main()
