"""tbuck — count lines of text per fixed-width time bucket."""

__version__ = "0.1.0"
