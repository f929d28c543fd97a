"""
Transition catalog for the maintenance scanner.

The catalog is a closed table of ``(transition, current status) -> next status``.
Each TransitionDefinition is a read-only view over its slice of the table:
its allowed statuses are exactly the keys of that slice, so legality and the
next-status computation can never disagree.
"""

from dataclasses import dataclass
from types import MappingProxyType

from django.core.exceptions import ImproperlyConfigured

from .constants import MaintenanceStatus, TransitionId


S = MaintenanceStatus

TRANSITION_TABLE = {
    # Moving between shop and warehouse keeps "ready for customer" items ready
    (TransitionId.STORE_TO_WAREHOUSE, S.IN_SHOP): S.IN_WAREHOUSE,
    (TransitionId.STORE_TO_WAREHOUSE, S.READY_FROM_SHOP): S.READY_FROM_WAREHOUSE,

    (TransitionId.RECEIVE_COMPANY_STORE, S.AT_COMPANY): S.READY_FROM_SHOP,

    (TransitionId.RECEIVE_COMPANY_WAREHOUSE, S.AT_COMPANY): S.READY_FROM_WAREHOUSE,

    (TransitionId.SEND_TO_COMPANY, S.IN_SHOP): S.AT_COMPANY,
    (TransitionId.SEND_TO_COMPANY, S.IN_WAREHOUSE): S.AT_COMPANY,

    (TransitionId.WAREHOUSE_TO_STORE, S.IN_WAREHOUSE): S.IN_SHOP,
    (TransitionId.WAREHOUSE_TO_STORE, S.READY_FROM_WAREHOUSE): S.READY_FROM_SHOP,

    (TransitionId.DELIVER_TO_CUSTOMER, S.READY_FROM_SHOP): S.DELIVERED,
    (TransitionId.DELIVER_TO_CUSTOMER, S.READY_FROM_WAREHOUSE): S.DELIVERED,
}


@dataclass(frozen=True)
class TransitionDefinition:
    """One operator-selectable action of the scanner."""

    id: str
    label: str
    next_statuses: MappingProxyType

    @property
    def allowed_current_statuses(self) -> frozenset:
        return frozenset(self.next_statuses)

    def is_legal(self, status: str) -> bool:
        return status in self.next_statuses

    def compute_next_status(self, status: str) -> str:
        # KeyError outside the legal set; callers check is_legal() first
        return self.next_statuses[status]

    def as_dict(self):
        return {
            'id': self.id,
            'label': self.label,
            'allowed_current_statuses': sorted(self.allowed_current_statuses),
        }


def _build_catalog(table):
    known_statuses = set(MaintenanceStatus.values)
    slices = {transition_id: {} for transition_id in TransitionId}

    for (transition_id, current), target in table.items():
        if current not in known_statuses or target not in known_statuses:
            raise ImproperlyConfigured(
                f"Transition {transition_id} references unknown status "
                f"{current!r} -> {target!r}"
            )
        slices[TransitionId(transition_id)][str(current)] = str(target)

    catalog = []
    for transition_id, next_statuses in slices.items():
        if not next_statuses:
            raise ImproperlyConfigured(
                f"Transition {transition_id} has no allowed current status"
            )
        catalog.append(TransitionDefinition(
            id=transition_id.value,
            label=transition_id.label,
            next_statuses=MappingProxyType(dict(next_statuses)),
        ))
    return tuple(catalog)


TRANSITIONS = _build_catalog(TRANSITION_TABLE)

_BY_ID = {transition.id: transition for transition in TRANSITIONS}


def get_transition(transition_id):
    """Return the TransitionDefinition for ``transition_id`` or None."""
    if not transition_id:
        return None
    return _BY_ID.get(str(transition_id))


def is_legal(transition, status):
    return transition.is_legal(status)


def compute_next_status(transition, status):
    return transition.compute_next_status(status)
