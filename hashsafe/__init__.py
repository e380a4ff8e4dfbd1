"""HashSafe: SHA-256 file hash calculator with desktop and command-line front-ends."""

__version__ = "0.1.0"

__all__ = ["__version__"]
