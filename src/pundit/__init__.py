"""Personal-branding content assistant."""

__version__ = "0.1.0"
