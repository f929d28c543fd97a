import logging

from django.db import DatabaseError, transaction

from ..exceptions import IllegalTransitionError, NotFoundError, PersistenceError
from ..models import MaintenanceHistory, MaintenanceRecord

logger = logging.getLogger(__name__)


class MaintenanceRepository:
    """
    Data access used by the scanner.

    fetch_maintenance_record() answers None for an unknown number and lets
    database errors propagate, so callers can tell "no such record" from a
    transport failure. update_maintenance_record() applies the status and
    its history row in a single transaction.
    """

    def fetch_maintenance_record(self, maint_no):
        try:
            return MaintenanceRecord.objects.select_related('created_by').get(maint_no=maint_no)
        except MaintenanceRecord.DoesNotExist:
            return None

    def update_maintenance_record(self, maint_no, status, history_note='', changed_by=None,
                                  expected_status=None):
        """
        Set the record's status and append a history note.

        ``expected_status`` is the status the caller validated against; if
        the row no longer has it the update is refused with
        IllegalTransitionError and nothing is written.
        """
        try:
            with transaction.atomic():
                record = (
                    MaintenanceRecord.objects
                    .select_for_update()
                    .filter(maint_no=maint_no)
                    .first()
                )
                if record is None:
                    raise NotFoundError(maint_no=maint_no)

                old_status = record.status
                if expected_status is not None and old_status != expected_status:
                    raise IllegalTransitionError(old_status, maint_no=maint_no)

                record.status = status
                record.save(update_fields=['status', 'updated_at'])

                # History only records actual changes
                if old_status != status:
                    MaintenanceHistory.objects.create(
                        maintenance=record,
                        status_from=old_status,
                        status_to=status,
                        changed_by=changed_by,
                        notes=history_note or '',
                    )
                return record

        except DatabaseError as e:
            logger.exception(f"Failed to update maintenance record {maint_no}")
            raise PersistenceError(maint_no=maint_no) from e

    def get_history(self, maint_no):
        """History rows of a record, newest first; NotFoundError if unknown."""
        if not MaintenanceRecord.objects.filter(maint_no=maint_no).exists():
            raise NotFoundError(maint_no=maint_no)
        return list(
            MaintenanceHistory.objects
            .filter(maintenance_id=maint_no)
            .select_related('changed_by')
        )
