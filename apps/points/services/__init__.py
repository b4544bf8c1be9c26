"""
Points services module.
"""
from .attribution_calculator import AttributionCalculator, Award, BasePoints
from .ledger_service import Balance, CreditResult, EcoPointsLedger, get_ledger, round_half_up

__all__ = [
    'AttributionCalculator',
    'Award',
    'BasePoints',
    'Balance',
    'CreditResult',
    'EcoPointsLedger',
    'get_ledger',
    'round_half_up',
]
