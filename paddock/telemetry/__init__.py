"""
Telemetry aggregation package.

Derived results computed from several OpenF1 calls:
  - speed_trace     → speed vs distance over a reference lap
  - position_graph  → lap-by-lap position of every driver
  - sector_timings  → fastest-lap sectors of the podium finishers
  - minisectors     → two-driver pace comparison per minisector
  - qualifying      → Q1/Q2/Q3 rankings from results-API times
  - service         → TTL-cached entry points for all of the above
"""
