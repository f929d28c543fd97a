import pytest

from maintenance.utils.barcode import (
    KeyEvent,
    ScanBuffer,
    ScannerKey,
    extract_from_url_if_present,
    latin_char_from_key_event,
    normalize,
    resolve_maintenance_no,
)


def keys(text, start=0, step=10):
    """KeyEvents a US-layout scanner would send for ``text`` (letters, digits, '-')."""
    events = []
    for offset, char in enumerate(text):
        t = start + offset * step
        if char.isdigit():
            events.append(KeyEvent(code=f'Digit{char}', key=char, timestamp=t))
        elif char == '-':
            events.append(KeyEvent(code='Minus', key='-', timestamp=t))
        else:
            events.append(KeyEvent(code=f'Key{char.upper()}', key=char, shift=char.isupper(), timestamp=t))
    return events


def enter(t):
    return KeyEvent(code='Enter', key='Enter', timestamp=t)


# ============================================
# normalize / URL extraction
# ============================================

@pytest.mark.parametrize('raw, expected', [
    ('  MNT-0001-123  ', 'MNT-0001-123'),
    ('', ''),
    ('   ', ''),
    ('١٢٣٤', '1234'),
    ('۱۲۳', '123'),
    ('MNT-٠٠٤٢-٥١٧', 'MNT-0042-517'),
    ('شصض', 'asd'),
])
def test_normalize(raw, expected):
    assert normalize(raw) == expected


def test_normalize_non_string_degrades_to_empty():
    assert normalize(None) == ''
    assert normalize(12345) == ''


@pytest.mark.parametrize('raw', [
    'MNT-0001-123',
    '  ١٢٣ abc ',
    'ق و ر',
    'https://shop.example/maintenance/MAINT-100?ref=qr',
    '\t\n',
    'سلمت للزبون',
])
def test_normalize_is_idempotent(raw):
    once = normalize(raw)
    assert normalize(once) == once


def test_extract_from_url():
    assert extract_from_url_if_present('https://x/maintenance/ABC123?foo=1') == 'ABC123'
    assert extract_from_url_if_present('https://x/admin/maintenance/ABC123/edit') == 'ABC123'
    assert extract_from_url_if_present('/maintenance/MNT-0001-123') == 'MNT-0001-123'


def test_extract_is_noop_without_link():
    assert extract_from_url_if_present('ABC123') == 'ABC123'
    assert extract_from_url_if_present('http://x/products/42') == 'http://x/products/42'
    assert extract_from_url_if_present('') == ''


def test_resolve_maintenance_no():
    assert resolve_maintenance_no(' https://shop.example/maintenance/MAINT-100?ref=qr ') == 'MAINT-100'
    assert resolve_maintenance_no('MNT-٠٠٠١-١٢٣') == 'MNT-0001-123'


# ============================================
# Physical key mapping
# ============================================

def test_letters_follow_physical_key_not_layout():
    # Arabic layout: KeyA produces 'ش' but the scanner meant 'a'
    assert latin_char_from_key_event(KeyEvent(code='KeyA', key='ش')) == 'a'
    assert latin_char_from_key_event(KeyEvent(code='KeyA', key='ِ', shift=True)) == 'A'


def test_digits_numpad_and_punctuation():
    assert latin_char_from_key_event(KeyEvent(code='Digit7', key='٧')) == '7'
    assert latin_char_from_key_event(KeyEvent(code='Digit7', key='&', shift=True)) == '7'
    assert latin_char_from_key_event(KeyEvent(code='Numpad3')) == '3'
    assert latin_char_from_key_event(KeyEvent(code='NumpadSubtract')) == '-'
    assert latin_char_from_key_event(KeyEvent(code='NumpadDecimal')) == '.'
    assert latin_char_from_key_event(KeyEvent(code='Minus')) == '-'
    assert latin_char_from_key_event(KeyEvent(code='Minus', shift=True)) == '_'
    assert latin_char_from_key_event(KeyEvent(code='Slash')) == '/'
    assert latin_char_from_key_event(KeyEvent(code='Semicolon', shift=True)) == ':'


def test_control_keys_return_sentinels():
    assert latin_char_from_key_event(KeyEvent(key='Enter', code='Enter')) == ScannerKey.ENTER
    assert latin_char_from_key_event(KeyEvent(key='Enter', code='NumpadEnter')) == ScannerKey.ENTER
    assert latin_char_from_key_event(KeyEvent(key='Backspace', code='Backspace')) == ScannerKey.BACKSPACE


def test_chords_and_unknown_keys_are_ignored():
    assert latin_char_from_key_event(KeyEvent(code='KeyV', ctrl=True)) is None
    assert latin_char_from_key_event(KeyEvent(code='KeyR', meta=True)) is None
    assert latin_char_from_key_event(KeyEvent(code='ShiftLeft', key='Shift')) is None
    assert latin_char_from_key_event(KeyEvent(code='F5', key='F5')) is None
    assert latin_char_from_key_event(KeyEvent()) is None


def test_key_event_from_dom_dict():
    event = KeyEvent.from_dict({'code': 'KeyQ', 'key': 'ض', 'shiftKey': True, 't': '12.5'})
    assert event == KeyEvent(code='KeyQ', key='ض', shift=True, timestamp=12.5)
    assert KeyEvent.from_dict({'code': 'KeyQ', 't': 'soon'}).timestamp == 0


# ============================================
# Buffering discipline
# ============================================

def test_enter_submits_immediately():
    buffer = ScanBuffer()
    scans = []
    for event in keys('MNT-1') + [enter(45)]:
        scans.extend(buffer.feed(event))
    assert scans == ['MNT-1']
    assert buffer.text == ''


def test_debounce_submits_after_silence():
    buffer = ScanBuffer(debounce_ms=300)
    for event in keys('ABC1', start=0, step=10):
        assert buffer.feed(event) == []

    assert buffer.poll(320) is None
    assert buffer.poll(330) == 'ABC1'
    assert buffer.poll(1000) is None


def test_debounce_is_rearmed_by_every_keystroke():
    buffer = ScanBuffer(debounce_ms=300)
    for event in keys('ABC', step=200):
        assert buffer.feed(event) == []
    # Last key at 400 ms: nothing before 700 ms
    assert buffer.poll(650) is None
    assert buffer.poll(700) == 'ABC'


def test_short_buffer_waits_for_enter():
    buffer = ScanBuffer(min_length=3)
    for event in keys('AB'):
        buffer.feed(event)
    assert buffer.poll(10_000) is None
    assert buffer.feed(enter(10_001)) == ['AB']


def test_backspace_edits_buffer():
    buffer = ScanBuffer()
    events = keys('ABX') + [KeyEvent(code='Backspace', key='Backspace', timestamp=35)] + keys('C', start=40)
    scans = buffer.replay(events + [enter(50)])
    assert scans == ['ABC']


def test_replay_splits_bursts_on_silence():
    events = keys('MNT-0001-123', start=0) + keys('MNT-0002-456', start=2000)
    assert ScanBuffer().replay(events) == ['MNT-0001-123', 'MNT-0002-456']


def test_replay_with_arabic_layout_keys():
    # What a scanner produces under an Arabic layout: layout chars in key, physical codes in code
    events = [
        KeyEvent(code='KeyM', key='ة', shift=True, timestamp=0),
        KeyEvent(code='KeyN', key='ى', shift=True, timestamp=5),
        KeyEvent(code='KeyT', key='ف', shift=True, timestamp=10),
        KeyEvent(code='Minus', key='-', timestamp=15),
        KeyEvent(code='Digit4', key='٤', timestamp=20),
        KeyEvent(code='Digit2', key='٢', timestamp=25),
        enter(30),
    ]
    assert ScanBuffer().replay(events) == ['MNT-42']


def test_paste_is_normalized_and_uses_short_debounce():
    buffer = ScanBuffer(debounce_ms=300, paste_debounce_ms=80)
    assert buffer.feed(KeyEvent(type='paste', text='  MNT-٠٠١٢-٣٤٥ ', timestamp=100)) == []
    assert buffer.poll(170) is None
    assert buffer.poll(180) == 'MNT-0012-345'


def test_expired_deadline_fires_before_next_keystroke():
    buffer = ScanBuffer(debounce_ms=300)
    for event in keys('ABC'):
        buffer.feed(event)
    # Next scan starts long after the first one timed out
    assert buffer.feed(keys('D', start=5000)[0]) == ['ABC']
    assert buffer.text == 'D'


def test_flush_of_blank_buffer_submits_nothing():
    buffer = ScanBuffer()
    buffer.feed(KeyEvent(code='Space', key=' ', timestamp=0))
    assert buffer.feed(enter(5)) == []
