"""FabLab CLI -- assemble notebook modules from the terminal."""

__version__ = "0.1.0"
