"""Hardware device interfaces

- meter: SwitchBot meter BLE advertisement scanner
"""

from .meter import RadioScanner

__all__ = ["RadioScanner"]
