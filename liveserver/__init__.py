"""Static file server with live reload for local development."""

from .config import ServeConfig
from .app import create_app

__version__ = "0.3.0"

__all__ = ["ServeConfig", "create_app", "__version__"]
