"""
Paddock: Formula 1 data aggregation backend.

Merges OpenF1 telemetry, Jolpica race results and news feeds, and caches
expensive telemetry aggregates in memory.
"""

__version__ = "1.0.0"
