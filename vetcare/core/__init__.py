# Core package initialization
# Configuration, logging, exceptions and HTTP helpers shared by all layers

from . import config, exceptions, logging_config

__all__ = [
    "config",
    "exceptions",
    "logging_config",
]
