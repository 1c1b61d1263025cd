"""Viscue — password vault with device-bound key derivation."""
from .version import __version__
from .session import SessionContext, SessionKey

__all__ = ["__version__", "SessionContext", "SessionKey"]
