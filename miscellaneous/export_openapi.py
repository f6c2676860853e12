#!/usr/bin/env python3
"""
Export the OpenAPI specification of the Theater Booking Platform API.

Usage:
    python miscellaneous/export_openapi.py [output_file]

The default output file is openapi.json in the current directory.
"""

import json
import sys
import os
from collections import defaultdict

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from theater_booking_platform.main import app


def export_openapi_spec(output_file: str = "openapi.json") -> bool:
    """Write the OpenAPI schema to a JSON file and print the routes by tag."""
    try:
        openapi_schema = app.openapi()

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(openapi_schema, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        print(f"❌ Failed to export OpenAPI specification: {e}")
        return False

    info = openapi_schema.get("info", {})
    print(f"✅ OpenAPI specification exported to: {output_file}")
    print(f"🏷️  {info.get('title', 'unknown')} {info.get('version', '')}")

    routes_by_tag = defaultdict(list)
    for path, methods in openapi_schema.get("paths", {}).items():
        for method, operation in methods.items():
            tag = (operation.get("tags") or ["untagged"])[0]
            routes_by_tag[tag].append(f"{method.upper():7} {path}")

    for tag in sorted(routes_by_tag):
        print(f"\n[{tag}]")
        for route in sorted(routes_by_tag[tag], key=lambda r: r.split()[1]):
            print(f"  {route}")

    return True


def main():
    """Main function."""
    output_file = sys.argv[1] if len(sys.argv) > 1 else "openapi.json"
    if not export_openapi_spec(output_file):
        sys.exit(1)


if __name__ == "__main__":
    main()
