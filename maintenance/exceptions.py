"""
Error taxonomy of the maintenance scanner.

Every error carries an operator-facing ``message`` (Arabic, shown in the
scan log) besides the developer-facing exception text used in log files.
"""


class ScannerError(Exception):
    """Base class for scanner failures that end up in the scan log."""

    default_message = 'حدث خطأ غير معروف'

    def __init__(self, message=None, *, maint_no=None):
        self.message = message or self.default_message
        self.maint_no = maint_no
        super().__init__(self.message)


class NotFoundError(ScannerError):
    """No maintenance record exists for the scanned number."""

    default_message = 'لم يتم العثور على معاملة بهذا الرقم.'


class IllegalTransitionError(ScannerError):
    """The record's current status is not allowed for the active transition."""

    def __init__(self, current_status, *, maint_no=None, transition_id=None):
        self.current_status = current_status
        self.transition_id = transition_id
        super().__init__(
            f'حالة القطعة غير متوافقة. (الحالة الحالية: {current_status})',
            maint_no=maint_no,
        )


class PersistenceError(ScannerError):
    """The status update failed after validation; the record is unchanged."""

    default_message = 'فشل حفظ الحالة الجديدة. لم يتم تغيير القطعة.'


class CameraAccessError(ScannerError):
    """Camera permission was denied or no usable video device exists."""

    default_message = 'فشل الوصول للكاميرا. تأكد من إعطاء الصلاحيات اللازمة.'


class DecodeNotFound(Exception):
    """
    No barcode in the current video frame.

    Expected on almost every frame; the camera adapter filters it out and
    it never reaches the scan log.
    """
