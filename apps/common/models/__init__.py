"""
Common models module.

All models are exported from this module to maintain backward compatibility.
"""
from .rate_limit import RateLimitWindowRecord

__all__ = [
    'RateLimitWindowRecord',
]
