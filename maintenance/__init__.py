"""
Maintenance Tracking Application

Tracks customer items sent in for repair through their logistics lifecycle
(shop, warehouse, supplier company, customer) using barcode scanning.

FEATURES:
- Maintenance records with auto-generated numbers (e.g., MNT-0042-517)
- Closed catalog of status transitions validated against the current status
- Quick scanner: hardware scanners, pasted text and camera decoding
- Forced-Latin keystroke mapping for Arabic keyboard layouts
- Status history audit trail for every transition
- Read-only REST API for records and their history

MODELS:
- MaintenanceRecord: one repair item, keyed by maint_no
- MaintenanceHistory: every status change with its note and operator

STATUS LIFECYCLE:
  at company  --receive-->  ready for customer (shop / warehouse)
  in shop     <--move-->    in warehouse
  in shop / in warehouse  --send-->  at company
  ready for customer      --deliver-->  delivered to customer (terminal)

USAGE:
    from maintenance.services.scanner import ScanDispatcher, ScanSession

    session = ScanSession(active_transition_id='store_to_warehouse')
    entry = ScanDispatcher().dispatch(session, 'MNT-0001-123', actor=request.user)
    entry.success   # True when the status moved
"""

__version__ = '1.0.0'
