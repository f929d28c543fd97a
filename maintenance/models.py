import random
import logging

from django.conf import settings
from django.db import models

from .constants import MaintenanceStatus, Location, TERMINAL_STATUSES, MAINTENANCE_NO_PREFIX

logger = logging.getLogger(__name__)


def generate_maintenance_no(count):
    """
    Maintenance number in the format MNT-XXXX-YYY where XXXX is the
    zero-padded running count and YYY a random number (100-999).
    """
    random_part = random.randint(100, 999)
    return f"{MAINTENANCE_NO_PREFIX}-{count + 1:04d}-{random_part}"


class MaintenanceRecord(models.Model):
    """
    A customer item received for repair.

    The status is the item's physical location / readiness. After intake it
    is only changed through the scanner transitions, each change leaving a
    MaintenanceHistory row.
    """

    maint_no = models.CharField(max_length=50, primary_key=True, editable=False)
    item_name = models.CharField(max_length=255)
    customer_name = models.CharField(max_length=255, blank=True)
    customer_phone = models.CharField(max_length=50, blank=True)

    location = models.CharField(max_length=20, choices=Location.choices, default=Location.SHOP)
    company = models.CharField(max_length=255, blank=True)
    serial_no = models.CharField(max_length=255, blank=True)
    problem = models.TextField(blank=True)
    under_warranty = models.BooleanField(default=False)
    date_of_purchase = models.DateField(null=True, blank=True)
    date_of_receive = models.DateField(null=True, blank=True)

    status = models.CharField(
        max_length=100,
        choices=MaintenanceStatus.choices,
        default=MaintenanceStatus.IN_SHOP,
        db_index=True,
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='maintenance_records',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Maintenance Record'
        verbose_name_plural = 'Maintenance Records'

    def __str__(self):
        return f"{self.maint_no} - {self.item_name}"

    def save(self, *args, **kwargs):
        if not self.maint_no:
            self.maint_no = self._next_maintenance_no()
        super().save(*args, **kwargs)

    @classmethod
    def _next_maintenance_no(cls):
        count = cls.objects.count()
        candidate = generate_maintenance_no(count)
        while cls.objects.filter(maint_no=candidate).exists():
            count += 1
            candidate = generate_maintenance_no(count)
        return candidate

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES


class MaintenanceHistory(models.Model):
    """Audit row written for every status change of a maintenance record."""

    maintenance = models.ForeignKey(
        MaintenanceRecord,
        on_delete=models.CASCADE,
        related_name='history',
    )
    status_from = models.CharField(max_length=100, blank=True)
    status_to = models.CharField(max_length=100)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='maintenance_changes',
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = 'Maintenance History'
        verbose_name_plural = 'Maintenance History'

    def __str__(self):
        return f"{self.maintenance_id}: {self.status_from} → {self.status_to}"
