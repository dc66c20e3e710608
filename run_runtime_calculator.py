#!/usr/bin/env python3
"""
Battery Run Time Calculator Launcher
====================================

This script launches the Battery Run Time Calculator graphical user
interface.

Pages:
- Run Time: how long a pack lasts under the given loads
- Required Energy: which pack runs the given loads for the given time
- Define By Time: load allowed by a pack, or pack needed by the loads

Usage:
------
    # From the project root directory:
    python run_runtime_calculator.py

Requirements:
------------
- Python 3.8+
- tkinter (usually included with Python)
- numpy
- matplotlib
"""

import sys
from pathlib import Path

# -------------------------------------------------------------------------
# Path Configuration
# -------------------------------------------------------------------------

project_root = Path(__file__).parent.resolve()
sys.path.insert(0, str(project_root))

# -------------------------------------------------------------------------
# Main Entry Point
# -------------------------------------------------------------------------

def main():
    """
    Launch the Run Time Calculator UI.

    Checks that the required dependencies are importable before building
    the window.
    """
    print("=" * 60)
    print("  Battery Run Time Calculator")
    print("=" * 60)
    print()
    print("Initializing...")

    try:
        import numpy
        import matplotlib
        print(f"  [OK] numpy {numpy.__version__}")
        print(f"  [OK] matplotlib {matplotlib.__version__}")
    except ImportError as e:
        print(f"\n[ERROR] Missing required dependency: {e}")
        print("\nPlease install dependencies using:")
        print("    pip install -e .")
        sys.exit(1)

    try:
        import tkinter
        print(f"  [OK] tkinter (Tcl/Tk {tkinter.TclVersion})")
    except ImportError:
        print("\n[ERROR] tkinter is not available")
        print("\nPlease install tkinter:")
        print("  Ubuntu/Debian: sudo apt-get install python3-tk")
        print("  Fedora: sudo dnf install python3-tkinter")
        print("  macOS: brew install python-tk")
        sys.exit(1)

    print()
    print("Launching Run Time Calculator UI...")
    print("-" * 60)

    try:
        from src.ui.runtime_calculator_ui import RuntimeCalculatorUI

        app = RuntimeCalculatorUI()
        app.run()

    except Exception as e:
        print(f"\n[ERROR] Failed to start UI: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
