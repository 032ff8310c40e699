"""KesslerSimdrome live stream engine.

Streams simulation frames from the backend, reconciles them into an
identity-keyed object cache and picks the capacity-bounded visible subset.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
