"""Small helpers"""

from .units import to_micro_xym, to_xym

__all__ = ["to_micro_xym", "to_xym"]
