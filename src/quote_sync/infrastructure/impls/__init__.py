from .system import FixedClock, SystemClock

__all__ = ["FixedClock", "SystemClock"]
