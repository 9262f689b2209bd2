"""Write the FastAPI OpenAPI schema to openapi.json.

Usage:
    python -m scripts.generate_openapi
"""

import json
from pathlib import Path

from app.main import app


def main() -> None:
    schema = app.openapi()
    output = Path("openapi.json")
    output.write_text(json.dumps(schema, indent=2, ensure_ascii=False) + "\n")
    print(f"Generated {output} ({len(schema['paths'])} endpoints)")


if __name__ == "__main__":
    main()
