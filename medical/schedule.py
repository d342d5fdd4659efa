"""
The national immunization schedule.

Each label carries the vaccine and its nominal age in the text itself, so the
tuple doubles as the list of dosable vaccines and as their display order.
"""
import re

from dateutil.relativedelta import relativedelta

VACCINE_SCHEDULE = (
    # At birth
    "BCG at Birth",
    "OPV0 at Birth",
    "Hepatitis B at Birth",
    # 6 weeks
    "OPV1 at 6 weeks",
    "Penta1 at 6 weeks",
    "PCV1 at 6 weeks",
    "Rota1 at 6 weeks",
    # 10 weeks
    "OPV2 at 10 weeks",
    "Penta2 at 10 weeks",
    "PCV2 at 10 weeks",
    "Rota2 at 10 weeks",
    # 14 weeks
    "OPV3 at 14 weeks",
    "Penta3 at 14 weeks",
    "PCV3 at 14 weeks",
    "IPV1 at 14 weeks",
    "Rota3 at 14 weeks",
    # 6 to 9 months
    "Malaria1 at 6 months",
    "Vitamin A at 6 months",
    "Malaria2 at 7 months",
    "Malaria3 at 9 months",
    "IPV2 at 9 months",
    "Measles Rubella1 at 9 months",
    "Yellow Fever at 9 months",
    # 12 to 18 months
    "Vitamin A at 12 months",
    "Meningitis A at 18 months",
    "Measles Rubella2 at 18 months",
    "Malaria4 at 18 months",
    "Vitamin A at 18 months",
    "LLIN at 18 months",
    # Vitamin A every six months until school age
    "Vitamin A at 24 months",
    "Vitamin A at 30 months",
    "Vitamin A at 36 months",
    "Vitamin A at 48 months",
)

VACCINE_CHOICES = [(label, label) for label in VACCINE_SCHEDULE]

_ORDER = {label: index for index, label in enumerate(VACCINE_SCHEDULE)}

_OFFSET_RE = re.compile(r"\bat\s+(?:(?P<birth>birth)|(?P<count>\d+)\s+(?P<unit>week|month|year)s?)\s*$", re.IGNORECASE)


def is_scheduled_vaccine(label):
    return label in _ORDER


def schedule_index(label):
    """Position of a label in display order; unknown labels sort last."""
    return _ORDER.get(label, len(VACCINE_SCHEDULE))


def schedule_offset(label):
    match = _OFFSET_RE.search(label or "")
    if match is None:
        raise ValueError(f"No age offset in schedule label {label!r}")
    if match.group("birth"):
        return relativedelta()
    count = int(match.group("count"))
    unit = match.group("unit").lower()
    if unit == "week":
        return relativedelta(weeks=count)
    if unit == "month":
        return relativedelta(months=count)
    return relativedelta(years=count)


def nominal_due_date(dob, label):
    """Date the dose is nominally due for a child born on ``dob``."""
    if dob is None:
        return None
    return dob + schedule_offset(label)
