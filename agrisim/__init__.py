"""Weekly agricultural decision simulation for the farming literacy game."""

__version__ = "0.1.0"
