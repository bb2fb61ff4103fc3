"""
Cryptographic helpers for the GDPR lifecycle
Entry checksums and constant-time token comparison
"""

from .hash import HashError, secure_hash, constant_time_equals

__all__ = [
    "HashError",
    "secure_hash",
    "constant_time_equals",
]
