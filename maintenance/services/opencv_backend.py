import logging
from pathlib import Path

import cv2

from ..exceptions import CameraAccessError, DecodeNotFound
from .camera import VideoDevice

logger = logging.getLogger(__name__)


class OpenCVFrameSource:

    def __init__(self, capture):
        self.capture = capture

    def read(self):
        ok, frame = self.capture.read()
        return frame if ok else None

    def release(self):
        self.capture.release()


class OpenCVVideoBackend:
    """
    Video capture and barcode decoding with OpenCV.

    Devices are probed by index; on Linux their labels come from
    /sys/class/video4linux so rear/environment cameras can be recognised.
    QR codes (the printed maintenance labels) and 1D barcodes are decoded.
    """

    def __init__(self, max_devices=10, sysfs_root='/sys/class/video4linux'):
        self.max_devices = max_devices
        self.sysfs_root = Path(sysfs_root)
        self.qr_detector = cv2.QRCodeDetector()
        barcode_module = getattr(cv2, 'barcode', None)
        self.barcode_detector = barcode_module.BarcodeDetector() if barcode_module else None

    def _label(self, index):
        name_file = self.sysfs_root / f'video{index}' / 'name'
        try:
            return name_file.read_text(encoding='utf-8').strip()
        except OSError:
            return f'Camera {index}'

    def list_devices(self):
        devices = []
        for index in range(self.max_devices):
            capture = cv2.VideoCapture(index)
            try:
                if capture.isOpened():
                    devices.append(VideoDevice(id=index, label=self._label(index)))
            finally:
                capture.release()
        logger.info(f"Found {len(devices)} video device(s)")
        return devices

    def open(self, device):
        capture = cv2.VideoCapture(device.id)
        if not capture.isOpened():
            capture.release()
            raise CameraAccessError('فشل في التبديل إلى الكاميرا المطلوبة.')
        return OpenCVFrameSource(capture)

    def decode(self, frame):
        text, _points, _straight = self.qr_detector.detectAndDecode(frame)
        if text:
            return text

        if self.barcode_detector is not None:
            ok, decoded_info, _types, _points = self.barcode_detector.detectAndDecodeWithType(frame)
            if ok:
                for value in decoded_info:
                    if value:
                        return value

        raise DecodeNotFound()
