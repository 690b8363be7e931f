from __future__ import annotations

import argparse
import json
from pathlib import Path

from backend.app.main import app

DEFAULT_SCHEMA_PATH = Path("openapi") / "video-gateway.json"


def export_schema(schema_path: Path = DEFAULT_SCHEMA_PATH) -> Path:
    schema_path.parent.mkdir(parents=True, exist_ok=True)
    schema_path.write_text(json.dumps(app.openapi(), indent=2), encoding="utf-8")
    return schema_path


def main() -> None:
    parser = argparse.ArgumentParser(description="Write the Video Gateway OpenAPI schema.")
    parser.add_argument("--output", type=Path, default=DEFAULT_SCHEMA_PATH)
    args = parser.parse_args()

    written = export_schema(args.output)
    print(f"Wrote OpenAPI schema to {written}")


if __name__ == "__main__":
    main()
