"""
Runtime Calculator Configuration
================================

Contains configuration settings, physical constants, input limits and default
values for the battery run time calculator.

Units used throughout the engine:
- Cell count: cells
- Capacity: mAh
- Load: W
- Energy: Wh
- Run time: minutes
"""

from dataclasses import dataclass


# =============================================================================
# Physical Constants
# =============================================================================

# Nominal cell voltage (V) used for every pack-energy relation
DEFAULT_NOMINAL_VOLTAGE = 3.6

# mAh -> Ah
MAH_PER_AH = 1000.0

# minutes per hour
MINUTES_PER_HOUR = 60.0


# =============================================================================
# Input Limits
# =============================================================================

# Cells in series (whole number)
CELLS_MIN = 1
CELLS_MAX = 8

# Nominal cell capacity (mAh, whole number)
CAPACITY_MIN_MAH = 100
CAPACITY_MAX_MAH = 8000

# Capacity tolerance band relative to nominal
# Cmin >= ceil(C * 0.5), Cmax <= floor(C * 1.15)
CAPACITY_MIN_FACTOR = 0.5
CAPACITY_MAX_FACTOR = 1.15

# Absolute band for Cmin/Cmax when no valid nominal is present:
# the widest band any valid nominal can produce
CAPACITY_BAND_LOW_MAH = 50      # ceil(100 * 0.5)
CAPACITY_BAND_HIGH_MAH = 9200   # floor(8000 * 1.15)

# Load per card (W)
LOAD_MAX_W = 750.0
LOAD_MIN_W = 0.1

# Loads above this value must be whole watts; at or below, one decimal place
LOAD_WHOLE_NUMBER_THRESHOLD_W = 20.0

# Run time entries (minutes, one decimal place)
TIME_MIN_MIN = 0.5
TIME_MAX_MIN = 100.0


# =============================================================================
# Result Rounding
# =============================================================================

TIME_DECIMALS = 1
LOAD_DECIMALS = 1
ENERGY_DECIMALS = 2

# Decimals kept on the unrounded pack-sizing footnote
FOOTNOTE_DECIMALS = 2

# Digits used to absorb float noise before taking a ceiling
# (7200.000000000001 mAh must not become 7201)
CEILING_GUARD_DIGITS = 9


# =============================================================================
# Session Defaults
# =============================================================================

# Number of load cards a page may hold
MAX_LOAD_CARDS = 5

# Run time page opens with a 7-cell, 2000 mAh pack
DEFAULT_CELLS_TEXT = "7"
DEFAULT_CAPACITY_TEXT = "2000"


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class RuntimeCalculatorConfig:
    """
    Configuration for a calculator session.

    Attributes:
    ----------
    cell_voltage : float
        Nominal voltage per cell (V), the k constant in the pack relations

    max_load_cards : int
        Maximum number of load cards on a page

    default_cells : str
        Default cell count text for the run time page

    default_capacity : str
        Default capacity text (mAh) for the run time page

    trace_enabled : bool
        Keep a per-session trace of the solver and resolver steps of the
        most recent blur (CalculatorSession.debugger)
    """
    cell_voltage: float = DEFAULT_NOMINAL_VOLTAGE
    max_load_cards: int = MAX_LOAD_CARDS
    default_cells: str = DEFAULT_CELLS_TEXT
    default_capacity: str = DEFAULT_CAPACITY_TEXT
    trace_enabled: bool = False

    def validate(self) -> tuple[bool, str]:
        """Validate configuration values."""
        errors = []

        if self.cell_voltage <= 0 or self.cell_voltage > 5.0:
            errors.append("Cell voltage should be between 0 and 5.0V")
        if self.max_load_cards < 1 or self.max_load_cards > MAX_LOAD_CARDS:
            errors.append(f"Load cards must be 1-{MAX_LOAD_CARDS}")

        if errors:
            return False, "; ".join(errors)
        return True, ""
