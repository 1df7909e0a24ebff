"""Place resolution — turn a clicked coordinate into a place name.

Stages, first success wins:
    known name → place details → nearby search → reverse geocode → placeholder
"""
