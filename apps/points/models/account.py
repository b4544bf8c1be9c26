from django.db import models


class EcoPointsAccount(models.Model):
    """Cumulative eco-points for one user; version is bumped on every commit"""
    user_id = models.CharField(max_length=128, unique=True)
    total_points = models.PositiveBigIntegerField(default=0)
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'eco_points_accounts'
        verbose_name = 'Eco-Points Account'
        verbose_name_plural = 'Eco-Points Accounts'

    def __str__(self):
        return f"{self.user_id} - {self.total_points} points"
