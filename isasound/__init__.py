"""Models of classic ISA sound chips, a Sound Blaster DSP, and firmware, UART and joystick helpers."""

__version__ = "0.1.0"
__all__ = ["cms", "joystick", "reflash", "saa1099", "sbdsp", "sine", "tandy", "uart"]