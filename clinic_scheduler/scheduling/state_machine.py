"""Appointment lifecycle rules.

The rules are a plain lookup table keyed by (current status, action). Each
entry either allows the action, naming the resulting status, or denies it with
the message shown to the caller. ``None`` as the next status means "whatever
status was requested" and only appears for generic status updates.
"""

from dataclasses import dataclass
from enum import Enum

from clinic_scheduler.core.exceptions import BusinessRuleException
from clinic_scheduler.scheduling.entities import CANCELED_STATUSES, AppointmentStatus


class Action(str, Enum):
    RESCHEDULE = "reschedule"
    CANCEL_BY_CLINIC = "cancel_by_clinic"
    CANCEL_BY_PATIENT = "cancel_by_patient"
    UPDATE_STATUS = "update_status"


@dataclass(frozen=True)
class Rule:
    allowed: bool
    next_status: AppointmentStatus | None = None
    reason: str = ""


def allow(next_status: AppointmentStatus | None = None) -> Rule:
    return Rule(allowed=True, next_status=next_status)


def deny(reason: str) -> Rule:
    return Rule(allowed=False, reason=reason)


S = AppointmentStatus

ALREADY_CANCELED = "This appointment was already canceled."
ALREADY_COMPLETED = "Cannot cancel an appointment that was already completed."
STATUS_OF_CANCELED = "Cannot change the status of a canceled appointment."
ALREADY_FINALIZED = "Cannot change the status of an appointment that is already finalized."
CANCEL_VIA_STATUS = "Use the cancel operation to cancel appointments."

TRANSITIONS: dict[tuple[AppointmentStatus, Action], Rule] = {
    # reschedule
    (S.SCHEDULED, Action.RESCHEDULE): allow(S.SCHEDULED),
    (S.CONFIRMED, Action.RESCHEDULE): allow(S.SCHEDULED),
    (S.COMPLETED, Action.RESCHEDULE): deny("Cannot reschedule an appointment that was completed."),
    (S.NO_SHOW, Action.RESCHEDULE): deny("Cannot reschedule an appointment marked as a no-show."),
    (S.CANCELED_BY_CLINIC, Action.RESCHEDULE): deny(
        "Cannot reschedule an appointment that was canceled by the clinic."
    ),
    (S.CANCELED_BY_PATIENT, Action.RESCHEDULE): deny(
        "Cannot reschedule an appointment that was canceled by the patient."
    ),
    # cancel by clinic
    (S.SCHEDULED, Action.CANCEL_BY_CLINIC): allow(S.CANCELED_BY_CLINIC),
    (S.CONFIRMED, Action.CANCEL_BY_CLINIC): allow(S.CANCELED_BY_CLINIC),
    (S.NO_SHOW, Action.CANCEL_BY_CLINIC): allow(S.CANCELED_BY_CLINIC),
    (S.COMPLETED, Action.CANCEL_BY_CLINIC): deny(ALREADY_COMPLETED),
    (S.CANCELED_BY_CLINIC, Action.CANCEL_BY_CLINIC): deny(ALREADY_CANCELED),
    (S.CANCELED_BY_PATIENT, Action.CANCEL_BY_CLINIC): deny(ALREADY_CANCELED),
    # cancel by patient
    (S.SCHEDULED, Action.CANCEL_BY_PATIENT): allow(S.CANCELED_BY_PATIENT),
    (S.CONFIRMED, Action.CANCEL_BY_PATIENT): allow(S.CANCELED_BY_PATIENT),
    (S.NO_SHOW, Action.CANCEL_BY_PATIENT): allow(S.CANCELED_BY_PATIENT),
    (S.COMPLETED, Action.CANCEL_BY_PATIENT): deny(ALREADY_COMPLETED),
    (S.CANCELED_BY_CLINIC, Action.CANCEL_BY_PATIENT): deny(ALREADY_CANCELED),
    (S.CANCELED_BY_PATIENT, Action.CANCEL_BY_PATIENT): deny(ALREADY_CANCELED),
    # generic status update
    (S.SCHEDULED, Action.UPDATE_STATUS): allow(),
    (S.CONFIRMED, Action.UPDATE_STATUS): allow(),
    (S.COMPLETED, Action.UPDATE_STATUS): deny(ALREADY_FINALIZED),
    (S.NO_SHOW, Action.UPDATE_STATUS): deny(ALREADY_FINALIZED),
    (S.CANCELED_BY_CLINIC, Action.UPDATE_STATUS): deny(STATUS_OF_CANCELED),
    (S.CANCELED_BY_PATIENT, Action.UPDATE_STATUS): deny(STATUS_OF_CANCELED),
}


def cancel_action(by_clinic: bool) -> Action:
    return Action.CANCEL_BY_CLINIC if by_clinic else Action.CANCEL_BY_PATIENT


def evaluate(
    current: AppointmentStatus,
    action: Action,
    requested: AppointmentStatus | None = None,
) -> Rule:
    """Resolve the rule for an action, folding in the requested target status."""
    rule = TRANSITIONS[(current, action)]
    if action is not Action.UPDATE_STATUS or not rule.allowed:
        return rule
    if requested is None:
        raise ValueError("A requested status is required for a status update")
    if requested in CANCELED_STATUSES:
        return deny(CANCEL_VIA_STATUS)
    return allow(requested)


def ensure_transition(
    current: AppointmentStatus,
    action: Action,
    requested: AppointmentStatus | None = None,
) -> AppointmentStatus:
    """Return the status after ``action`` or raise ``BusinessRuleException``."""
    rule = evaluate(current, action, requested)
    if not rule.allowed:
        raise BusinessRuleException(rule.reason, context={"status": current.value})
    if rule.next_status is None:
        raise ValueError(f"Rule for {action.value} from {current.value} names no resulting status")
    return rule.next_status


def can_reschedule(status: AppointmentStatus) -> bool:
    return evaluate(status, Action.RESCHEDULE).allowed


def can_cancel(status: AppointmentStatus) -> bool:
    # Both cancel actions share their allow/deny pattern.
    return evaluate(status, Action.CANCEL_BY_CLINIC).allowed


def can_update_status(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    return evaluate(current, Action.UPDATE_STATUS, requested).allowed
