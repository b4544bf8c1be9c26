"""
Points views module.
"""
from .eco_points_views import credit_points, get_balance, get_history, list_tiers
from .saf_views import create_saf_contribution, get_certificate, record_certificate_verification

__all__ = [
    'credit_points',
    'get_balance',
    'get_history',
    'list_tiers',
    'create_saf_contribution',
    'get_certificate',
    'record_certificate_verification',
]
