"""
Battery Run Time Calculator UI Module
=====================================

User interface components for the run time calculator:

- RuntimeCalculatorUI: Notebook window with the Run Time, Required Energy
  and Define By Time pages

Usage:
------
    from src.ui import RuntimeCalculatorUI

    RuntimeCalculatorUI().run()
"""

from .runtime_calculator_ui import RuntimeCalculatorUI

__all__ = [
    "RuntimeCalculatorUI",
]
