#!/usr/bin/env python3
"""Parse markdown and print its AST, anomalies and highlight ranges."""

import sys
sys.path.insert(0, 'src')

from highlight import highlight  # noqa: E402
from mdast import MarkdownASTPrinter, parse_with_diagnostics  # noqa: E402

# Used when no file is given on the command line
markdown_content = r"""## Developer installation

1. Create and activate a virtual environment:

   ```bash
   python -m venv venv
   source venv/bin/activate
   ```

2. Launch the application with **`python -m cybermd`**.

> See [the README](README.md "Read me") for *more* details.
"""

if len(sys.argv) > 1:
    with open(sys.argv[1], 'r', encoding='utf-8') as f:
        markdown_content = f.read()

result = parse_with_diagnostics(markdown_content)

print(MarkdownASTPrinter().format(result.document))

if result.anomalies:
    print()
    print("Anomalies:")
    for anomaly in result.anomalies:
        print(f"  {anomaly.kind.name} [{anomaly.start}, {anomaly.end}): {anomaly.message}")

print()
print("Highlight ranges:")
for r in highlight(result.document):
    print(f"  {r.style.name:<12} [{r.start}, {r.end}) depth {r.depth} {markdown_content[r.start:r.end]!r}")
