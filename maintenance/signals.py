from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from django.contrib.auth.signals import user_logged_out
from .models import MaintenanceRecord, MaintenanceHistory
from .services.scanner import session_registry_key, sessions
import logging

logger = logging.getLogger(__name__)


# ============================================
# MAINTENANCE RECORD SIGNALS
# ============================================

@receiver(post_save, sender=MaintenanceRecord)
def maintenance_post_save(sender, instance, created, **kwargs):
    """
    Log intake of new maintenance records.

    Status moves are logged by the history signal below, so updates are
    only logged at debug level.
    """
    if created:
        logger.info(
            f"Maintenance record created: {instance.maint_no} - {instance.item_name} "
            f"(Customer: {instance.customer_name or 'N/A'}, Status: {instance.status})"
        )
    else:
        logger.debug(f"Maintenance record updated: {instance.maint_no} (Status: {instance.status})")


# ============================================
# AUDIT TRAIL SIGNALS
# ============================================

@receiver(post_save, sender=MaintenanceHistory)
def create_audit_trail(sender, instance, created, **kwargs):
    """
    Write an audit line for every status change.

    The history table is the durable record; this line goes to
    maintenance.log for quick grepping.
    """
    if created:
        audit_message = (
            f"[STATUS CHANGE] "
            f"Record: {instance.maintenance_id} | "
            f"From: {instance.status_from or 'N/A'} | "
            f"To: {instance.status_to} | "
            f"User: {instance.changed_by.username if instance.changed_by else 'System'} | "
            f"Note: {instance.notes or 'N/A'} | "
            f"Timestamp: {instance.created_at}"
        )
        logger.info(audit_message)


@receiver(post_delete, sender=MaintenanceHistory)
def log_history_deletion(sender, instance, **kwargs):
    """History rows should never be deleted; log any deletion."""
    logger.warning(
        f"[AUDIT ALERT] Maintenance history DELETED: "
        f"ID: {instance.id} | "
        f"Record: {instance.maintenance_id} | "
        f"{instance.status_from} → {instance.status_to}"
    )


# ============================================
# SCANNER SESSION SIGNALS
# ============================================

@receiver(user_logged_out)
def discard_scan_session(sender, request, user, **kwargs):
    """Drop the operator's scanner state (active transition, scan log) on logout."""
    if user is None or request is None or not request.session.session_key:
        return
    if sessions.discard(session_registry_key(user.pk, request.session.session_key)):
        logger.info(f"Scan session of {user.username} discarded on logout")
