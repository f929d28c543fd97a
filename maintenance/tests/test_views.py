import json

import pytest
from django.urls import reverse

from maintenance.constants import MaintenanceStatus as S
from maintenance.models import MaintenanceHistory, MaintenanceRecord
from maintenance.services.scanner import session_registry_key, sessions

pytestmark = pytest.mark.django_db


@pytest.fixture
def client_in(client, operator):
    client.force_login(operator)
    return client


def post_json(client, name, payload):
    return client.post(reverse(name), data=json.dumps(payload), content_type='application/json')


def select(client, transition_id):
    return post_json(client, 'maintenance:scanner-select-transition', {'transition': transition_id})


def key(code, key, t, shift=False):
    return {'type': 'keydown', 'code': code, 'key': key, 'shiftKey': shift, 't': t}


# ============================================
# Access
# ============================================

def test_scanner_requires_login(client):
    response = client.get(reverse('maintenance:scanner'))
    assert response.status_code == 302
    assert '/admin/login/' in response['Location']


def test_scanner_page_renders(client_in):
    response = client_in.get(reverse('maintenance:scanner'))
    assert response.status_code == 200
    assert 'ترحيل من المحل إلى المخزن' in response.content.decode()


def test_root_redirects_to_scanner(client_in):
    response = client_in.get('/')
    assert response.status_code == 302
    assert response['Location'].endswith(reverse('maintenance:scanner'))


# ============================================
# Transition selection
# ============================================

def test_transition_list(client_in):
    data = client_in.get(reverse('maintenance:scanner-transitions')).json()
    assert len(data['transitions']) == 6
    assert data['active_transition'] is None


def test_select_transition(client_in):
    response = select(client_in, 'send_to_company')

    assert response.status_code == 200
    assert response.json()['active_transition']['id'] == 'send_to_company'
    data = client_in.get(reverse('maintenance:scanner-transitions')).json()
    assert data['active_transition']['id'] == 'send_to_company'


def test_select_unknown_transition_is_rejected(client_in):
    response = select(client_in, 'teleport')
    assert response.status_code == 400
    assert response.json()['status'] == 'error'


def test_select_empty_clears_transition(client_in):
    select(client_in, 'send_to_company')
    response = select(client_in, '')
    assert response.json()['active_transition'] is None


# ============================================
# Scanning
# ============================================

def test_scan_without_transition_is_conflict(client_in, make_record):
    make_record('MAINT-100', S.IN_SHOP)

    response = post_json(client_in, 'maintenance:scanner-scan', {'code': 'MAINT-100'})

    assert response.status_code == 409
    assert MaintenanceRecord.objects.get(pk='MAINT-100').status == S.IN_SHOP


def test_scan_code_moves_record(client_in, make_record, operator):
    make_record('MAINT-100', S.IN_SHOP)
    select(client_in, 'store_to_warehouse')

    response = post_json(client_in, 'maintenance:scanner-scan', {'code': ' MAINT-100 '})

    data = response.json()
    assert data['status'] == 'success'
    assert data['entries'][0]['maint_no'] == 'MAINT-100'
    assert data['entries'][0]['cue']['name'] == 'success'
    assert MaintenanceRecord.objects.get(pk='MAINT-100').status == S.IN_WAREHOUSE
    assert MaintenanceHistory.objects.get().changed_by == operator


def test_scan_form_post(client_in, make_record):
    make_record('MAINT-100', S.IN_SHOP)
    select(client_in, 'send_to_company')

    response = client_in.post(reverse('maintenance:scanner-scan'), {'code': 'MAINT-100'})

    assert response.json()['status'] == 'success'
    assert MaintenanceRecord.objects.get(pk='MAINT-100').status == S.AT_COMPANY


def test_scan_illegal_transition_reports_error(client_in, make_record):
    make_record('MAINT-100', S.IN_SHOP)
    select(client_in, 'deliver_to_customer')

    data = post_json(client_in, 'maintenance:scanner-scan', {'code': 'MAINT-100'}).json()

    assert data['status'] == 'error'
    assert not data['entries'][0]['success']
    assert S.IN_SHOP in data['entries'][0]['message']
    assert MaintenanceRecord.objects.get(pk='MAINT-100').status == S.IN_SHOP


def test_scan_key_capture_under_arabic_layout(client_in, make_record):
    make_record('AB-12', S.IN_SHOP)
    select(client_in, 'store_to_warehouse')
    keys = [
        key('KeyA', 'ِ', 0, shift=True),
        key('KeyB', 'لا', 5, shift=True),
        key('Minus', '-', 10),
        key('Digit1', '١', 15),
        key('Digit2', '٢', 20),
        key('Enter', 'Enter', 25),
    ]

    data = post_json(client_in, 'maintenance:scanner-scan', {'keys': keys}).json()

    assert [entry['maint_no'] for entry in data['entries']] == ['AB-12']
    assert MaintenanceRecord.objects.get(pk='AB-12').status == S.IN_WAREHOUSE


def test_scan_requires_code_or_keys(client_in):
    select(client_in, 'send_to_company')
    response = post_json(client_in, 'maintenance:scanner-scan', {'code': '   '})
    assert response.status_code == 400


def test_scan_rejects_malformed_json(client_in):
    response = client_in.post(
        reverse('maintenance:scanner-scan'), data='{not json', content_type='application/json'
    )
    assert response.status_code == 400


# ============================================
# Inquiry
# ============================================

def test_inquire_found(client_in, make_record):
    make_record('MAINT-100', S.AT_COMPANY)

    response = client_in.get(reverse('maintenance:scanner-inquire'), {'code': 'MAINT-100'})

    data = response.json()
    assert response.status_code == 200
    assert data['record']['status'] == S.AT_COMPANY
    assert data['cue']['frequency'] == 600
    assert not MaintenanceHistory.objects.exists()


def test_inquire_not_found(client_in):
    response = client_in.get(reverse('maintenance:scanner-inquire'), {'code': 'MNT-0000-000'})
    assert response.status_code == 404
    assert response.json()['kind'] == 'not_found'


def test_inquire_needs_code(client_in):
    response = client_in.get(reverse('maintenance:scanner-inquire'))
    assert response.status_code == 400


# ============================================
# Scan log
# ============================================

def test_log_lists_newest_first_and_clears(client_in, make_record):
    make_record('MAINT-100', S.IN_SHOP)
    select(client_in, 'send_to_company')
    post_json(client_in, 'maintenance:scanner-scan', {'code': 'MAINT-100'})
    post_json(client_in, 'maintenance:scanner-scan', {'code': 'MISSING'})

    entries = client_in.get(reverse('maintenance:scanner-log')).json()['entries']
    assert [entry['maint_no'] for entry in entries] == ['MISSING', 'MAINT-100']

    assert client_in.post(reverse('maintenance:scanner-log-clear')).status_code == 200
    assert client_in.get(reverse('maintenance:scanner-log')).json()['entries'] == []


def test_clear_log_requires_post(client_in):
    assert client_in.get(reverse('maintenance:scanner-log-clear')).status_code == 405


# ============================================
# REST API
# ============================================

def test_api_lists_and_filters_records(client_in, make_record):
    make_record('MAINT-100', S.IN_SHOP)
    make_record('MAINT-101', S.DELIVERED)

    response = client_in.get(reverse('maintenance:record-api-list'), {'status': S.DELIVERED})

    data = response.json()
    assert data['count'] == 1
    assert data['results'][0]['maint_no'] == 'MAINT-101'
    assert data['results'][0]['is_terminal'] is True
    assert data['results'][0]['allowed_transitions'] == []


def test_api_requires_authentication(client):
    assert client.get(reverse('maintenance:record-api-list')).status_code in (401, 403)


def test_api_history(client_in, make_record):
    make_record('MAINT-100', S.IN_SHOP)
    select(client_in, 'store_to_warehouse')
    post_json(client_in, 'maintenance:scanner-scan', {'code': 'MAINT-100'})

    response = client_in.get(reverse('maintenance:record-api-history', args=['MAINT-100']))

    assert response.status_code == 200
    assert response.json()[0]['status_to'] == S.IN_WAREHOUSE
    assert response.json()[0]['changed_by_username'] == 'counter1'


# ============================================
# Inquiry key capture and session lifetime
# ============================================

def test_inquire_key_capture_under_arabic_layout(client_in, make_record):
    make_record('MNT-0001-123', S.AT_COMPANY)
    # What an Arabic-layout scanner produces: layout chars in key, physical codes in code
    keys = [
        key('KeyM', '’', 0, shift=True),
        key('KeyN', 'آ', 5, shift=True),
        key('KeyT', 'لإ', 10, shift=True),
        key('Minus', '-', 15),
        key('Digit0', '٠', 20),
        key('Digit0', '٠', 25),
        key('Digit0', '٠', 30),
        key('Digit1', '١', 35),
        key('Minus', '-', 40),
        key('Digit1', '١', 45),
        key('Digit2', '٢', 50),
        key('Digit3', '٣', 55),
        key('Enter', 'Enter', 60),
    ]

    response = post_json(client_in, 'maintenance:scanner-inquire', {'keys': keys})

    assert response.status_code == 200
    assert response.json()['record']['maint_no'] == 'MNT-0001-123'
    assert not MaintenanceHistory.objects.exists()


def test_inquire_post_code_resolves_deep_link(client_in, make_record):
    make_record('MAINT-100', S.IN_SHOP)

    response = post_json(
        client_in, 'maintenance:scanner-inquire',
        {'code': 'https://shop.example/maintenance/MAINT-100?ref=qr'},
    )

    assert response.json()['record']['maint_no'] == 'MAINT-100'


def test_inquire_blank_key_capture_is_rejected(client_in):
    keys = [key('Space', ' ', 0), key('Enter', 'Enter', 5)]
    response = post_json(client_in, 'maintenance:scanner-inquire', {'keys': keys})
    assert response.status_code == 400


def test_logout_discards_scan_session(client, operator):
    before = len(sessions)
    for _ in range(3):
        client.force_login(operator)
        select(client, 'send_to_company')
        registry_key = session_registry_key(operator.pk, client.session.session_key)
        assert registry_key in sessions
        client.logout()
        assert registry_key not in sessions

    assert len(sessions) <= before


def test_new_login_starts_with_empty_log(client, operator, make_record):
    make_record('MAINT-100', S.IN_SHOP)
    client.force_login(operator)
    select(client, 'send_to_company')
    post_json(client, 'maintenance:scanner-scan', {'code': 'MAINT-100'})
    client.logout()

    client.force_login(operator)
    data = client.get(reverse('maintenance:scanner-log')).json()

    assert data['entries'] == []
    assert data['active_transition'] is None
