"""
Grid Simulator — deterministic leveraged grid trading backtests.

Provides:
- Arithmetic and geometric grid level generation
- Per-level position state machine with boundary handling
- Leveraged trade execution with margin-based fees
- Equity curve, performance metrics and profit reconciliation
- Post-run analysis, reports and YAML/JSON preset export
"""

__version__ = "1.0.0"
