"""
Immunization status engine.

Pure functions over a child's doses and "today". Nothing here touches the
database: callers hand in doses already loaded (model instances or plain
dicts with the same field names) and persist whatever they need afterwards.

Per dose:
    completed   a date given is recorded
    overdue     next visit is before today
    due_soon    next visit 1 to 7 days away
    upcoming    next visit 8 to 30 days away
    scheduled   next visit booked but outside those windows
    pending     neither field set

Per child the buckets are exclusive: overdue beats due_soon beats upcoming.
"""
import datetime
from collections import namedtuple

from django.utils import timezone
from django.utils.dateparse import parse_date

from .schedule import VACCINE_SCHEDULE, schedule_index

COMPLETED = "completed"
SCHEDULED = "scheduled"
OVERDUE = "overdue"
DUE_SOON = "due_soon"
UPCOMING = "upcoming"
PENDING = "pending"
UP_TO_DATE = "up_to_date"

DUE_SOON_DAYS = 7
UPCOMING_DAYS = 30

BUCKETS = (OVERDUE, DUE_SOON, UPCOMING)

DoseStatus = namedtuple("DoseStatus", ["dose", "status", "days_overdue", "days_until"])

ChildStatus = namedtuple("ChildStatus", ["child", "status", "featured", "doses"])


def to_date(value):
    """Accepts a date, an ISO date string (datetime strings are cut to the date) or empty."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime.datetime):
        return timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
    if isinstance(value, datetime.date):
        return value
    parsed = parse_date(str(value)[:10])
    if parsed is None:
        raise ValueError(f"Not a date: {value!r}")
    return parsed


def as_today(now=None):
    if now is None:
        return timezone.localdate()
    return to_date(now)


def _field(dose, name):
    if isinstance(dose, dict):
        return dose.get(name)
    return getattr(dose, name, None)


def classify_dose(dose, today=None):
    today = as_today(today)
    if to_date(_field(dose, "date_given")):
        return DoseStatus(dose, COMPLETED, None, None)

    next_visit = to_date(_field(dose, "next_visit"))
    if next_visit is None:
        return DoseStatus(dose, PENDING, None, None)

    days = (next_visit - today).days
    if days < 0:
        return DoseStatus(dose, OVERDUE, -days, None)
    if 0 < days <= DUE_SOON_DAYS:
        return DoseStatus(dose, DUE_SOON, None, days)
    if DUE_SOON_DAYS < days <= UPCOMING_DAYS:
        return DoseStatus(dose, UPCOMING, None, days)
    return DoseStatus(dose, SCHEDULED, None, days)


def _next_visit_key(dose_status):
    return to_date(_field(dose_status.dose, "next_visit"))


def summarize_child(child, doses, today=None):
    """
    Child-level status and the dose to feature for it.

    The featured dose is the earliest next visit in the winning bucket, that is
    the most overdue or the soonest due; ``min`` keeps the first of equal dates.
    """
    today = as_today(today)
    classified = [classify_dose(dose, today) for dose in doses]

    for bucket in BUCKETS:
        matches = [item for item in classified if item.status == bucket]
        if matches:
            featured = min(matches, key=_next_visit_key)
            return ChildStatus(child, bucket, featured, classified)

    given = {_field(item.dose, "vaccine") for item in classified if item.status == COMPLETED}
    if given.issuperset(VACCINE_SCHEDULE):
        return ChildStatus(child, COMPLETED, None, classified)
    return ChildStatus(child, UP_TO_DATE, None, classified)


def _identity(child):
    if isinstance(child, dict):
        return child.get("id")
    return getattr(child, "pk", None) or id(child)


def build_summary(children, today=None, doses_for=None):
    """
    The summary views: defaulters, due soon, upcoming and every record.

    ``doses_for(child)`` defaults to the child's prefetched ``doses``. A child
    shows up at most once overall and at most in one bucket.
    """
    today = as_today(today)
    if doses_for is None:
        doses_for = _loaded_doses

    summary = {bucket: [] for bucket in BUCKETS}
    summary["records"] = []
    seen = set()
    for child in children:
        identity = _identity(child)
        if identity in seen:
            continue
        seen.add(identity)
        child_status = summarize_child(child, doses_for(child), today)
        summary["records"].append(child_status)
        if child_status.status in BUCKETS:
            summary[child_status.status].append(child_status)

    # Most overdue first, then soonest due; sorted() keeps input order on ties.
    for bucket in BUCKETS:
        summary[bucket] = sorted(summary[bucket], key=lambda item: _next_visit_key(item.featured))
    summary["counts"] = {
        "total": len(summary["records"]),
        "defaulters": len(summary[OVERDUE]),
        "due_soon": len(summary[DUE_SOON]),
        "upcoming": len(summary[UPCOMING]),
    }
    return summary


def _loaded_doses(child):
    return list(child.doses.all())


def is_defaulter(doses, today=None):
    today = as_today(today)
    return any(classify_dose(dose, today).status == OVERDUE for dose in doses)


def update_defaulter_status(child, doses, today=None):
    """Recompute the cached flag on ``child``; the caller saves it."""
    child.is_defaulter = is_defaulter(doses, today)
    return child.is_defaulter


def status_label(dose_status):
    if dose_status.status == OVERDUE:
        days = dose_status.days_overdue
        return f"Overdue ({days} day{'s' if days != 1 else ''})"
    if dose_status.status in (DUE_SOON, UPCOMING):
        days = dose_status.days_until
        return f"Due in {days} day{'s' if days != 1 else ''}"
    return dose_status.status.replace("_", " ").capitalize()


def dose_rows(children, today=None, doses_for=None):
    """``[reg_no, name, vaccine, date_given, next_visit, status]`` rows in schedule order."""
    today = as_today(today)
    if doses_for is None:
        doses_for = _loaded_doses
    rows = []
    for child in children:
        doses = sorted(doses_for(child), key=lambda dose: schedule_index(_field(dose, "vaccine")))
        for dose in doses:
            date_given = to_date(_field(dose, "date_given"))
            next_visit = to_date(_field(dose, "next_visit"))
            rows.append([
                child.reg_no,
                child.name,
                _field(dose, "vaccine"),
                date_given.isoformat() if date_given else "",
                next_visit.isoformat() if next_visit else "",
                status_label(classify_dose(dose, today)),
            ])
    return rows
