"""devvm package."""

__version__ = "0.3.0"

__all__ = [
    "cli",
    "commands",
    "config",
    "constants",
    "environment",
    "exceptions",
    "executor",
    "logs",
    "models",
    "patches",
    "utils",
]
