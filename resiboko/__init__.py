"""
ResiboKo - Source Package

An expense liquidation helper for field sales agents.
Snap or dictate a receipt, let Gemini read it, review it, save it,
and hand in a clean liquidation report.

DESIGN PRINCIPLES:
1. AI suggests → Human reviews → System saves
2. Only complete records are ever persisted
3. The record list is explicit state, never hidden in a service
4. Every user action is logged
5. Storage and sync backends are swappable
"""

__version__ = "1.0.0"
__author__ = "ResiboKo Team"
