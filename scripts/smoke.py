# scripts/smoke.py
"""
Smoke Test Script for dumpview.

Usage
-----
1. Dump a built-in sample with cycles, sharing and a resource:
    $ uv run python scripts/smoke.py

2. Dump a local JSON document and keep the HTML page:
    $ uv run python scripts/smoke.py --file samples/data.json --out dump.html
"""

import argparse
import io
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from dumpview import DumpSession, LazyMode, to_html, to_text
from dumpview.client.dom import parse_html
from dumpview.client.engine import ExpansionEngine

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)


# --------------------------------------------------------------------------- #
# Test Data
# --------------------------------------------------------------------------- #
class Node:
    def __init__(self, label: str) -> None:
        self.label = label
        self.children: list[Node] = []
        self.parent: Node | None = None


def default_sample() -> dict[str, Any]:
    root = Node("root")
    for i in range(8):
        child = Node(f"child-{i}")
        child.parent = root
        root.children.append(child)
    shared = {"x": 1, "y": 2}
    return {
        "tree": root,
        "shared": [shared, shared],
        "numbers": list(range(500)),
        "stream": io.StringIO("payload"),
        "password": "hunter2",
    }


def expanded_text(page: str) -> list[str]:
    """Expand every node of ``page`` and return the text of each dump."""
    root = parse_html(page)
    engine = ExpansionEngine()
    engine.init(root)
    engine.expand_all(root)
    pres = root.query_all(lambda el: el.tag == "pre")
    return [pre.text_content.replace("…", "...") for pre in pres]


def main() -> None:
    """Execute the smoke test workflow."""
    parser = argparse.ArgumentParser(description="Run dumpview Smoke Test")
    parser.add_argument("--file", "-f", type=str, help="Path to a JSON document")
    parser.add_argument("--out", "-o", type=str, help="Where to write the HTML page")
    args = parser.parse_args()

    # 1. Prepare Input Data
    value: Any
    if args.file:
        input_path = Path(args.file)
        if not input_path.exists():
            print(f"❌ File not found: {input_path}")
            return
        print(f"\n📂 Using input file: {input_path}")
        value = json.loads(input_path.read_text(encoding="utf-8"))
    else:
        print("\n📝 Using built-in sample (No --file provided)")
        value = default_sample()

    options: dict[str, Any] = {"location": False, "keys_to_hide": ["password"]}
    expected = to_text(value, **options)
    print("\n" + expected)

    # 2. Lazy modes: every page must expand back to the eager text
    failures = 0
    for lazy in LazyMode:
        got = expanded_text(to_html(value, lazy=lazy, **options))
        ok = got == [expected]
        failures += not ok
        print(f"{'✅' if ok else '❌'} lazy={lazy.value}")

    # 3. Session page: two dumps, one snapshot flush
    session = DumpSession(**options)
    page = session.to_html(value) + session.to_html([value]) + session.meta_tag()
    got = expanded_text(page)
    ok = got[0] == expected
    failures += not ok
    print(f"{'✅' if ok else '❌'} session ({len(page)} bytes)")

    if args.out:
        Path(args.out).write_text(page, encoding="utf-8")
        print(f"\n💾 Page saved to: {args.out}")

    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
