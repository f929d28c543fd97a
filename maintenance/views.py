import json
import logging

from django.contrib.auth.decorators import login_required
from django.contrib.auth.mixins import LoginRequiredMixin
from django.db.models import Q
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from django.views.generic import TemplateView
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .exceptions import NotFoundError
from .forms import InquiryForm, ScanForm, TransitionSelectForm
from .models import MaintenanceRecord
from .serializers import MaintenanceHistorySerializer, MaintenanceRecordSerializer
from .services.repository import MaintenanceRepository
from .services.scanner import (
    InquiryOutcome,
    InquiryService,
    ScanDispatcher,
    session_registry_key,
    sessions,
)
from .transitions import TRANSITIONS
from .utils.barcode import KeyEvent, ScanBuffer, resolve_maintenance_no

logger = logging.getLogger(__name__)


def get_scan_session(request):
    """The operator's ScanSession (one per user and browser session)."""
    if not request.session.session_key:
        request.session.save()
    return sessions.get(session_registry_key(request.user.pk, request.session.session_key))


def _request_data(request):
    """POST form data, or the decoded JSON body for application/json requests."""
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except (ValueError, UnicodeDecodeError):
            return None
        return data if isinstance(data, dict) else None
    return request.POST


def _scanned_codes(cleaned_data):
    """Maintenance numbers submitted through a ScanForm / InquiryForm."""
    if cleaned_data['keys']:
        events = [KeyEvent.from_dict(item) for item in cleaned_data['keys']]
        raw_codes = ScanBuffer.from_settings().replay(events)
    else:
        raw_codes = [cleaned_data['code']]
    codes = [resolve_maintenance_no(code) for code in raw_codes]
    return [code for code in codes if code]


def _session_state(session):
    transition = session.active_transition
    return {
        'active_transition': transition.as_dict() if transition else None,
        'busy': session.busy,
    }


# ====================================
# REST API VIEWSETS
# ====================================

class MaintenanceRecordViewSet(viewsets.ReadOnlyModelViewSet):
    """API endpoint for maintenance records (read-only; status moves go through the scanner)"""
    queryset = MaintenanceRecord.objects.all()
    serializer_class = MaintenanceRecordSerializer
    search_fields = ['maint_no', 'item_name', 'customer_name', 'serial_no']
    ordering_fields = ['created_at', 'updated_at', 'status']

    def get_queryset(self):
        """Filter records based on query parameters"""
        queryset = MaintenanceRecord.objects.select_related('created_by').all()

        status = self.request.query_params.get('status', None)
        if status:
            queryset = queryset.filter(status=status)

        location = self.request.query_params.get('location', None)
        if location:
            queryset = queryset.filter(location=location)

        customer = self.request.query_params.get('customer', None)
        if customer:
            queryset = queryset.filter(
                Q(customer_name__icontains=customer) |
                Q(customer_phone__icontains=customer)
            )

        return queryset

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        """Status history of one record, newest first"""
        try:
            rows = MaintenanceRepository().get_history(pk)
        except NotFoundError as e:
            return Response({'status': 'error', 'message': e.message}, status=404)
        return Response(MaintenanceHistorySerializer(rows, many=True).data)


# ====================================
# SCANNER PAGE
# ====================================

class ScannerView(LoginRequiredMixin, TemplateView):
    template_name = "maintenance/scanner.html"

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        session = get_scan_session(self.request)
        context['active_transition'] = session.active_transition
        context['scan_log'] = session.log
        return context


@login_required
@require_http_methods(["GET"])
def transition_list(request):
    """The transition catalog and the operator's current selection"""
    session = get_scan_session(request)
    return JsonResponse({
        'status': 'success',
        'transitions': [t.as_dict() for t in TRANSITIONS],
        **_session_state(session),
    })


@login_required
@require_http_methods(["POST"])
def select_transition(request):
    """Activate a transition for subsequent scans (empty value clears it)"""
    data = _request_data(request)
    form = TransitionSelectForm(data)
    if data is None or not form.is_valid():
        return JsonResponse({
            'status': 'error',
            'message': 'Invalid transition',
            'errors': form.errors if data is not None else {},
        }, status=400)

    session = get_scan_session(request)
    session.select_transition(form.cleaned_data['transition'] or None)
    logger.info(
        f"{request.user.username} selected scanner transition "
        f"{session.active_transition_id or '-'}"
    )
    return JsonResponse({'status': 'success', **_session_state(session)})


@login_required
@require_http_methods(["POST"])
def scan(request):
    """
    Dispatch scanned codes through the active transition.

    Accepts ``code`` (already typed text) or ``keys`` (raw key/paste events
    captured by the page); a key capture may contain several scans.
    """
    data = _request_data(request)
    form = ScanForm(data)
    if data is None or not form.is_valid():
        return JsonResponse({
            'status': 'error',
            'message': 'A scanned code is required',
            'errors': form.errors if data is not None else {},
        }, status=400)

    session = get_scan_session(request)
    if session.active_transition is None:
        return JsonResponse({
            'status': 'error',
            'message': 'اختر الإجراء المطلوب أولاً',
            **_session_state(session),
        }, status=409)

    codes = _scanned_codes(form.cleaned_data)

    dispatcher = ScanDispatcher()
    entries = []
    ignored = 0
    for code in codes:
        entry = dispatcher.dispatch(session, code, actor=request.user)
        if entry is None:
            ignored += 1
        else:
            entries.append(entry)

    all_ok = bool(entries) and all(entry.success for entry in entries)
    return JsonResponse({
        'status': 'success' if all_ok else 'error',
        'entries': [entry.as_dict() for entry in entries],
        'ignored': ignored,
        **_session_state(session),
    })


@login_required
@require_http_methods(["GET", "POST"])
def inquire(request):
    """
    Look up a record's current status without changing it.

    GET takes ``code``; POST also accepts a ``keys`` capture, of which the
    last completed scan is looked up.
    """
    data = request.GET if request.method == 'GET' else _request_data(request)
    form = InquiryForm(data)
    codes = _scanned_codes(form.cleaned_data) if data is not None and form.is_valid() else []
    if not codes:
        return JsonResponse({
            'status': 'error',
            'message': 'Search term is required'
        }, status=400)

    session = get_scan_session(request)
    outcome = InquiryService().inquire(codes[-1], session=session)

    if outcome is None:
        return JsonResponse({
            'status': 'error',
            'message': 'Another inquiry is in progress'
        }, status=409)

    if outcome.kind == InquiryOutcome.NOT_FOUND:
        return JsonResponse({
            'status': 'error',
            'kind': outcome.kind,
            'maint_no': outcome.maint_no,
            'message': outcome.message,
        }, status=404)

    if outcome.kind == InquiryOutcome.ERROR:
        return JsonResponse({
            'status': 'error',
            'kind': outcome.kind,
            'maint_no': outcome.maint_no,
            'message': outcome.message,
        }, status=503)

    return JsonResponse({
        'status': 'success',
        'kind': outcome.kind,
        'record': MaintenanceRecordSerializer(outcome.record).data,
        'cue': outcome.cue.as_dict(),
    })


@login_required
@require_http_methods(["GET"])
def scan_log(request):
    session = get_scan_session(request)
    return JsonResponse({
        'status': 'success',
        'entries': [entry.as_dict() for entry in session.log],
        **_session_state(session),
    })


@login_required
@require_http_methods(["POST"])
def clear_scan_log(request):
    session = get_scan_session(request)
    session.clear_log()
    return JsonResponse({'status': 'success', 'message': 'Scan log cleared'})
