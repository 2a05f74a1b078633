from __future__ import annotations


class PBKDF2Error(Exception):
    """Base class for every error raised by pbkdf2_mod."""


class InvalidArgument(PBKDF2Error, ValueError):
    """A required input is missing, has the wrong type or is out of range."""


class UnsupportedAlgorithm(PBKDF2Error, ValueError):
    """No keyed-hash/unkeyed-hash pair is available for the requested name."""
