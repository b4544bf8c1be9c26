from django.db import models


class RateLimitWindowRecord(models.Model):
    """Fixed rate-limit window for one client key"""
    key = models.CharField(max_length=255, unique=True)
    count = models.PositiveIntegerField(default=0)
    reset_at_ms = models.BigIntegerField()  # Epoch milliseconds
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'rate_limit_windows'
        indexes = [
            models.Index(fields=['reset_at_ms'], name='rate_limit_reset_at_idx'),
        ]
        verbose_name = 'Rate Limit Window'
        verbose_name_plural = 'Rate Limit Windows'

    def __str__(self):
        return f"{self.key}: {self.count} until {self.reset_at_ms}"
