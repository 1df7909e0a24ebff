"""LoveMap — geospatial core for a two-person memory map.

Layout:
    lovemap/
    ├── map/          # Marker & cluster lifecycle over a rendering surface
    ├── places/       # Click → place name resolution cascade
    ├── camera/       # Cancelable camera flights
    ├── memory/       # Local markdown-backed memory store
    └── core.py       # Hub wiring the three together
"""
