from django.urls import path
from . import views

app_name = 'points'

urlpatterns = [
    path('eco-points/credit/', views.credit_points, name='credit'),
    path('eco-points/tiers/', views.list_tiers, name='tiers'),
    path('eco-points/<str:user_id>/balance/', views.get_balance, name='balance'),
    path('eco-points/<str:user_id>/history/', views.get_history, name='history'),

    path('saf/contributions/', views.create_saf_contribution, name='saf_contribution'),
    path('saf/certificates/<str:certificate_id>/', views.get_certificate, name='certificate'),
    path(
        'saf/certificates/<str:certificate_id>/verification/',
        views.record_certificate_verification,
        name='certificate_verification'
    ),
]
