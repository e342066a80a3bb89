"""
SubTrack - Source Package

A personal subscription tracker: what you pay for, when it renews, and
what it costs per month in each currency.

DESIGN PRINCIPLES:
1. Scheduling and aggregation are pure functions
2. Validate at the boundary, reject rather than guess
3. Money stays exact until it is displayed
4. Every change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SubTrack Team"
