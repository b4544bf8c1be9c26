"""
Eco-points ledger views: credit, balance, history and tier table.
"""
from rest_framework import status
from rest_framework.decorators import api_view

from apps.common.rate_limit import enforce_rate_limit
from apps.common.utils import offset_page, success_response
from ..serializers import (
    BalanceSerializer, CreditRequestSerializer, CreditResultSerializer,
    HistoryEntrySerializer, HistoryQuerySerializer, TierSerializer
)
from ..services import get_ledger


@api_view(['POST'])
def credit_points(request):
    """Credit eco-points for a sustainable action"""
    enforce_rate_limit(request, 'ecopoints')

    serializer = CreditRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = get_ledger().credit(serializer.validated_data['user_id'], serializer.to_action())
    return success_response(
        data=CreditResultSerializer(result).data,
        message="Points credited",
        status_code=status.HTTP_201_CREATED
    )


@api_view(['GET'])
def get_balance(request, user_id):
    """Get a user's total and progress toward the next tier"""
    balance = get_ledger().peek(user_id)
    data = BalanceSerializer(balance).data
    data['user_id'] = user_id
    return success_response(data=data)


@api_view(['GET'])
def get_history(request, user_id):
    """Get a page of a user's history, most recent first"""
    query = HistoryQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    limit = query.validated_data['limit']
    offset = query.validated_data['offset']

    entries = get_ledger().history(user_id, limit=limit, offset=offset)
    return success_response(
        data=offset_page(HistoryEntrySerializer(entries, many=True).data, limit, offset)
    )


@api_view(['GET'])
def list_tiers(request):
    """Get the Green Tier table"""
    tiers = get_ledger().tier_engine.get_all_tiers()
    return success_response(data=TierSerializer(tiers, many=True).data)
