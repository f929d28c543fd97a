"""
Camera decode adapter.

Continuously decodes barcodes from a video device and hands the first hit to
a callback. The decode loop runs on a worker thread owned by a CancelToken;
cancelling the token stops the loop, releases the device and guarantees the
callback is not invoked afterwards.

The video/decoder backend is pluggable (see opencv_backend.OpenCVVideoBackend):

    backend.list_devices() -> [VideoDevice, ...]
    backend.open(device)   -> frame source with read() / release()
    backend.decode(frame)  -> text, or raises DecodeNotFound
"""

import logging
import threading
from dataclasses import dataclass

from django.conf import settings

from ..exceptions import CameraAccessError, DecodeNotFound
from ..utils.barcode import resolve_maintenance_no
from .scanner import SUCCESS_CUE, InquiryService, ScanDispatcher

logger = logging.getLogger(__name__)

REAR_CAMERA_HINTS = ('back', 'rear', 'environment')


@dataclass(frozen=True)
class VideoDevice:
    id: object
    label: str = ''


def choose_device_index(devices):
    """Index of the first rear-facing camera, else 0."""
    for index, device in enumerate(devices):
        label = (device.label or '').lower()
        if any(hint in label for hint in REAR_CAMERA_HINTS):
            return index
    return 0


class CancelToken:
    """Handle of one running decode loop."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._thread = None

    @property
    def cancelled(self):
        return self._event.is_set()

    def wait(self, timeout):
        """Sleep up to ``timeout`` seconds; True if cancelled meanwhile."""
        return self._event.wait(timeout)

    def cancel(self):
        """
        Stop the loop. When called from another thread this blocks until
        the loop (including a callback already running) has finished.
        """
        with self._lock:
            self._event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def join(self, timeout=None):
        if self._thread is not None:
            self._thread.join(timeout)


class _Source:
    """Frame source wrapper whose release() may be called more than once."""

    def __init__(self, source):
        self._source = source
        self._released = False

    def read(self):
        return self._source.read()

    def release(self):
        if not self._released:
            self._released = True
            self._source.release()


class CameraDecodeAdapter:
    """
    Camera scanning session.

    ``feedback`` receives the success FeedbackCue, ``on_indicator`` the
    decoded text as soon as a code is recognised (before the confirmation
    delay) and ``on_error`` the operator message of camera failures.
    """

    def __init__(self, backend, feedback=None, on_indicator=None, on_error=None,
                 sample_interval=None, confirm_delay=None):
        config = getattr(settings, 'MAINTENANCE_SCANNER', {})
        self.backend = backend
        self.feedback = feedback
        self.on_indicator = on_indicator
        self.on_error = on_error
        self.sample_interval = (
            config.get('CAMERA_SAMPLE_INTERVAL', 0.1) if sample_interval is None else sample_interval
        )
        self.confirm_delay = (
            config.get('CAMERA_CONFIRM_DELAY', 0.8) if confirm_delay is None else confirm_delay
        )

        self.devices = []
        self.current_index = 0
        self.processing = False
        self.scan_success = False
        self.error_message = None
        self._token = None
        self._on_decode = None

    @property
    def is_running(self):
        return self._token is not None and not self._token.cancelled

    @property
    def current_device(self):
        if not self.devices:
            return None
        return self.devices[self.current_index]

    # ---------------------------------------------
    # Lifecycle
    # ---------------------------------------------

    def start(self, on_decode):
        """
        Enumerate devices, prefer a rear camera and start decoding.

        Returns the CancelToken, or None when the camera is unavailable
        (the message is kept in ``error_message`` and sent to on_error).
        """
        self.stop()
        self.error_message = None
        try:
            self.devices = list(self.backend.list_devices())
        except CameraAccessError as e:
            return self._fail(e)
        except Exception as e:
            logger.exception("Camera enumeration failed")
            return self._fail(CameraAccessError(str(e) or None))

        if not self.devices:
            return self._fail(CameraAccessError('لم يتم العثور على أجهزة كاميرا'))

        self.current_index = choose_device_index(self.devices)
        return self._start_current(on_decode)

    def stop(self):
        token, self._token = self._token, None
        if token is not None:
            token.cancel()

    def switch_camera(self):
        """Restart decoding on the next enumerated device."""
        if self._on_decode is None or len(self.devices) < 2:
            return None
        self.stop()
        self.current_index = (self.current_index + 1) % len(self.devices)
        self.error_message = None
        return self._start_current(self._on_decode)

    def _start_current(self, on_decode):
        try:
            token = self.start_decoding(on_decode)
        except CameraAccessError as e:
            return self._fail(e)
        except Exception as e:
            logger.exception(f"Failed to open camera {self.current_device}")
            return self._fail(CameraAccessError(str(e) or None))
        self._token = token
        return token

    def _fail(self, error):
        self.error_message = error.message
        logger.warning(f"Camera unavailable: {error.message}")
        if self.on_error is not None:
            self.on_error(error.message)
        return None

    # ---------------------------------------------
    # Decode loop
    # ---------------------------------------------

    def start_decoding(self, on_decode):
        """Open the current device and run the decode loop on a worker thread."""
        device = self.current_device
        if device is None:
            raise CameraAccessError('لم يتم العثور على أجهزة كاميرا')

        source = _Source(self.backend.open(device))
        self._on_decode = on_decode
        self.processing = False
        self.scan_success = False

        token = CancelToken()
        token._thread = threading.Thread(
            target=self._run,
            args=(token, source, on_decode),
            name=f"camera-decode-{device.id}",
            daemon=True,
        )
        token._thread.start()
        logger.info(f"Camera decoding started on {device.label or device.id}")
        return token

    def cancel(self, token):
        token.cancel()
        if token is self._token:
            self._token = None

    def _run(self, token, source, on_decode):
        try:
            while not token.cancelled:
                frame = source.read()
                if frame is not None and not self.processing:
                    text = self._decode(frame)
                    if text:
                        self._handle_result(token, source, text, on_decode)
                        return
                if token.wait(self.sample_interval):
                    return
        except Exception:
            logger.exception("Camera decode loop stopped")
            self.error_message = CameraAccessError.default_message
            token._event.set()
            if self.on_error is not None:
                self.on_error(CameraAccessError.default_message)
        finally:
            source.release()

    def _decode(self, frame):
        try:
            return self.backend.decode(frame)
        except DecodeNotFound:
            return None
        except Exception:
            logger.warning("Decoding error", exc_info=True)
            return None

    def _handle_result(self, token, source, text, on_decode):
        self.processing = True
        self.scan_success = True

        if self.feedback is not None:
            try:
                self.feedback(SUCCESS_CUE)
            except Exception:
                logger.warning("Camera success cue could not be played", exc_info=True)
        if self.on_indicator is not None:
            self.on_indicator(text)

        # Let the operator see the confirmation
        if token.wait(self.confirm_delay):
            return

        with token._lock:
            if token.cancelled:
                return
            token._event.set()
        source.release()

        on_decode(resolve_maintenance_no(text))


class ScanRouter:
    """
    Sends a decoded value to the dispatcher when the session has an active
    transition, otherwise to the inquiry path. Decided per scan.
    """

    def __init__(self, session, actor=None, dispatcher=None, inquiry=None):
        self.session = session
        self.actor = actor
        self.dispatcher = dispatcher or ScanDispatcher()
        self.inquiry = inquiry or InquiryService()

    def route(self, text):
        if self.session.active_transition is not None:
            return self.dispatcher.dispatch(self.session, text, actor=self.actor)
        return self.inquiry.inquire(text, session=self.session)

    __call__ = route
