from django.db import models
from django.utils import timezone

from ..records import CertificateRecord, VerificationStatus


class SAFCertificate(models.Model):
    """Registry row tracking the verification lifecycle of a book-and-claim certificate"""
    STATUS_CHOICES = [
        (VerificationStatus.PENDING.value, 'Pending'),
        (VerificationStatus.VERIFIED.value, 'Verified'),
        (VerificationStatus.REJECTED.value, 'Rejected'),
    ]

    certificate_id = models.CharField(max_length=64, unique=True)
    user_id = models.CharField(max_length=128, db_index=True)
    entry_id = models.CharField(max_length=64)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=VerificationStatus.PENDING.value)
    registry_name = models.CharField(max_length=100)
    provider_name = models.CharField(max_length=100)
    issued_at = models.DateTimeField()
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'saf_certificates'
        verbose_name = 'SAF Certificate'
        verbose_name_plural = 'SAF Certificates'

    def __str__(self):
        return f"{self.certificate_id} ({self.status})"

    def to_record(self):
        return CertificateRecord(
            certificate_id=self.certificate_id,
            user_id=self.user_id,
            entry_id=self.entry_id,
            status=VerificationStatus(self.status),
            registry_name=self.registry_name,
            provider_name=self.provider_name,
            issued_at=self.issued_at,
            updated_at=self.updated_at,
        )
