"""
Barcode/maintenance-number input: force Latin output regardless of the
operating system keyboard layout.

HID barcode scanners "type" like a keyboard. When the active layout is
Arabic the same physical keys produce Arabic characters, so keystrokes are
mapped from their physical key code and pasted text is normalized back to
Latin before it is used as a maintenance number.
"""

import math
import re
from dataclasses import dataclass

from django.conf import settings


class ScannerKey:
    """Sentinels returned for the two control keys a scanner sends."""

    ENTER = '\n'
    BACKSPACE = '\b'


# Arabic-Indic digits and the Arabic letters sharing a physical key with a Latin letter
ARABIC_TO_LATIN = {
    '٠': '0', '١': '1', '٢': '2', '٣': '3', '٤': '4',
    '٥': '5', '٦': '6', '٧': '7', '٨': '8', '٩': '9',
    '۰': '0', '۱': '1', '۲': '2', '۳': '3', '۴': '4',
    '۵': '5', '۶': '6', '۷': '7', '۸': '8', '۹': '9',
    'ق': 'q', 'و': 'w', 'ر': 'e', 'ت': 't', 'ي': 'y', 'ى': 'y',
    'ء': 'u', 'ؤ': 'u', 'ئ': 'i', 'أ': 'o', 'إ': 'o', 'آ': 'p', 'ة': 'p',
    'ش': 'a', 'ص': 's', 'ض': 'd', 'ط': 'f', 'ظ': 'g', 'ح': 'h',
    'خ': 'j', 'ج': 'j', 'م': 'k', 'ل': 'l',
    'ز': 'z', 'س': 'x', 'ث': 'c', 'ب': 'b', 'ن': 'n',
}

_TRANSLATION = str.maketrans(ARABIC_TO_LATIN)

MAINTENANCE_URL_PATTERN = re.compile(r'/maintenance/([^/?]+)')

# Punctuation keys: code -> (plain, shifted)
_PUNCTUATION_KEYS = {
    'Space': (' ', ' '),
    'Minus': ('-', '_'),
    'Period': ('.', '.'),
    'Comma': (',', ','),
    'Slash': ('/', '/'),
    'Backslash': ('\\', '\\'),
    'Quote': ("'", '"'),
    'BracketLeft': ('[', '{'),
    'BracketRight': (']', '}'),
    'Semicolon': (';', ':'),
    'Equal': ('=', '+'),
}

_NUMPAD_SYMBOLS = {'Add': '+', 'Subtract': '-', 'Decimal': '.'}


def normalize(raw):
    """
    Canonical maintenance-number text: trimmed, Arabic digits and
    letters mapped to Latin. Non-string input becomes ``''``.
    """
    if not isinstance(raw, str):
        return ''
    return raw.strip().translate(_TRANSLATION)


def extract_from_url_if_present(text):
    """
    Return the ``{id}`` of a ``.../maintenance/{id}`` deep link (as printed
    in QR labels), or ``text`` unchanged when it is not such a link.
    """
    if not text or ('http' not in text and '/maintenance/' not in text):
        return text
    match = MAINTENANCE_URL_PATTERN.search(text)
    if match:
        return match.group(1)
    return text


def resolve_maintenance_no(raw):
    """normalize() followed by deep-link extraction."""
    return extract_from_url_if_present(normalize(raw))


@dataclass(frozen=True)
class KeyEvent:
    """
    A captured browser keyboard or paste event.

    ``timestamp`` is in milliseconds; only differences matter.
    """

    code: str = ''
    key: str = ''
    shift: bool = False
    ctrl: bool = False
    meta: bool = False
    alt: bool = False
    timestamp: float = 0
    type: str = 'keydown'
    text: str = ''

    @classmethod
    def from_dict(cls, data):
        """Build from the JSON the scanner page posts (DOM property names)."""
        try:
            timestamp = float(data.get('t', data.get('timestamp', 0)) or 0)
        except (TypeError, ValueError):
            timestamp = 0
        return cls(
            code=str(data.get('code') or ''),
            key=str(data.get('key') or ''),
            shift=bool(data.get('shiftKey', False)),
            ctrl=bool(data.get('ctrlKey', False)),
            meta=bool(data.get('metaKey', False)),
            alt=bool(data.get('altKey', False)),
            timestamp=timestamp,
            type=str(data.get('type') or 'keydown'),
            text=str(data.get('text') or ''),
        )


def latin_char_from_key_event(event):
    """
    Map a physical key to its Latin character, ignoring the active layout.

    Returns ScannerKey.ENTER / ScannerKey.BACKSPACE for the control keys and
    None for modifier chords or keys a scanner never sends.
    """
    if event.ctrl or event.meta or event.alt:
        return None

    if event.key == 'Enter':
        return ScannerKey.ENTER
    if event.key == 'Backspace':
        return ScannerKey.BACKSPACE

    code = event.code
    if not code:
        return None

    if code.startswith('Digit') and len(code) == 6 and code[5].isdigit():
        return code[5]

    if code.startswith('Numpad') and len(code) >= 7:
        rest = code[6:]
        if len(rest) == 1 and rest.isdigit():
            return rest
        return _NUMPAD_SYMBOLS.get(rest)

    if code.startswith('Key') and len(code) == 4:
        letter = code[3].lower()
        if 'a' <= letter <= 'z':
            return letter.upper() if event.shift else letter

    if code in _PUNCTUATION_KEYS:
        plain, shifted = _PUNCTUATION_KEYS[code]
        return shifted if event.shift else plain

    return None


class ScanBuffer:
    """
    Coalesces a burst of scanner keystrokes into one submission.

    Enter submits at once. Otherwise, once the trimmed buffer holds at least
    ``min_length`` characters, every keystroke re-arms a debounce deadline
    and the buffer is submitted when that deadline passes without another
    keystroke. Time is supplied by the caller so the buffer never sleeps.
    """

    def __init__(self, debounce_ms=300, paste_debounce_ms=80, min_length=3):
        self.debounce_ms = debounce_ms
        self.paste_debounce_ms = paste_debounce_ms
        self.min_length = min_length
        self.text = ''
        self.deadline = None

    @classmethod
    def from_settings(cls):
        config = getattr(settings, 'MAINTENANCE_SCANNER', {})
        return cls(
            debounce_ms=config.get('KEY_DEBOUNCE_MS', 300),
            paste_debounce_ms=config.get('PASTE_DEBOUNCE_MS', 80),
            min_length=config.get('MIN_BUFFER_LENGTH', 3),
        )

    def _arm(self, now, window):
        self.deadline = None
        if len(self.text.strip()) >= self.min_length:
            self.deadline = now + window

    def flush(self):
        """Submit and clear the buffer; returns the scan or None if empty."""
        raw = self.text.strip()
        self.text = ''
        self.deadline = None
        if not raw:
            return None
        return normalize(raw)

    def poll(self, now):
        """Submit the buffer if its debounce deadline has passed."""
        if self.deadline is not None and now >= self.deadline:
            return self.flush()
        return None

    def feed(self, event):
        """
        Process one KeyEvent; returns the scans it completed, oldest first.

        A pending deadline that expired before this event is honoured first,
        exactly as the timer would have fired between the two keystrokes.
        """
        scans = []
        expired = self.poll(event.timestamp)
        if expired:
            scans.append(expired)

        if event.type == 'paste':
            self.text += normalize(event.text)
            self._arm(event.timestamp, self.paste_debounce_ms)
            return scans

        char = latin_char_from_key_event(event)
        if char is None:
            return scans

        if char == ScannerKey.ENTER:
            submitted = self.flush()
            if submitted:
                scans.append(submitted)
            return scans

        if char == ScannerKey.BACKSPACE:
            # Deadline is left as it was
            self.text = self.text[:-1]
            return scans

        self.text += char
        self._arm(event.timestamp, self.debounce_ms)
        return scans

    def replay(self, events):
        """Run a whole timestamped capture; trailing input is submitted if armed."""
        scans = []
        for event in events:
            scans.extend(self.feed(event))
        pending = self.poll(math.inf)
        if pending:
            scans.append(pending)
        return scans
