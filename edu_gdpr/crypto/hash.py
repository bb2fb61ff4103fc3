"""
Hashing utilities for the GDPR lifecycle subsystem
Secure hashing and constant-time comparison
"""

import hashlib
import hmac


class HashError(Exception):
    """Base exception for hashing-related errors"""
    pass


def secure_hash(data: bytes, algorithm: str = 'sha256') -> str:
    """
    Create secure hash of data

    Args:
        data: Data to hash
        algorithm: Hash algorithm (sha256, sha512, blake2b)

    Returns:
        Hex-encoded hash string
    """
    if algorithm == 'sha256':
        hasher = hashlib.sha256()
    elif algorithm == 'sha512':
        hasher = hashlib.sha512()
    elif algorithm == 'blake2b':
        hasher = hashlib.blake2b()
    else:
        raise HashError(f"Unsupported hash algorithm: {algorithm}")

    hasher.update(data)
    return hasher.hexdigest()


def constant_time_equals(left: str, right: str) -> bool:
    """Compare two strings without leaking the mismatch position"""
    return hmac.compare_digest(left.encode('utf-8'), right.encode('utf-8'))
