"""sitewarden: discover installed Python packages and validate them against requirement files."""

__version__ = "0.4.0"
