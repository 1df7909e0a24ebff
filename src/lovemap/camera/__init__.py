"""Camera flights — stepped pan/zoom and fit-to-bounds with a single completion."""
