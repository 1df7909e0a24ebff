"""Local memory store.

Layout:
    ~/.lovemap/memories/
    ├── 6f1c…e2.md      # One memory: YAML frontmatter (fields) + body (memo)
    └── …
"""
