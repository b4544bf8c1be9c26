"""
Membership services module.
"""
from .tier_engine import TierEngine, TierProgress

__all__ = [
    'TierEngine',
    'TierProgress',
]
