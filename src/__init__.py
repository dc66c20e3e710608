"""
Battery Run Time Calculator - Main Package
==========================================

Tools for estimating battery run time, required energy and pack sizing
with nominal values and min/max ranges.

This package provides modules for:
- Run Time Calculator (runtime_calculator): validation, derivation and
  range-aware solving behind the three calculator pages
- User Interface (ui): Tkinter front-end for the calculator pages
"""

__version__ = "0.1.0"
