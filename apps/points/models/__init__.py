"""
Points models module.
"""
from .account import EcoPointsAccount
from .entry import EcoPointsEntry
from .certificate import SAFCertificate

__all__ = [
    'EcoPointsAccount',
    'EcoPointsEntry',
    'SAFCertificate',
]
