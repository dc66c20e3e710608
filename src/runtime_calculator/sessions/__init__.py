"""
Calculator Sessions
===================

One session per calculator page, each owning its field store.
"""

from .base import CalculatorSession, BlurResult, GroupSnapshot, FieldSnapshot
from .run_time import RunTimeSession
from .required_energy import RequiredEnergySession
from .define_by_time import DefineByTimeSession

__all__ = [
    "CalculatorSession",
    "BlurResult",
    "GroupSnapshot",
    "FieldSnapshot",
    "RunTimeSession",
    "RequiredEnergySession",
    "DefineByTimeSession",
]
