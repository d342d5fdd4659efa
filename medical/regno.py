from django.utils import timezone


def _year_of(value):
    if hasattr(value, "tzinfo") and timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.year


def generate_reg_no(existing_children, now):
    """
    Registration number for the next child: ``NNN/YYYY``.

    The sequence starts after the number of children registered in the year of
    ``now`` and skips any number already taken anywhere in ``existing_children``,
    so a facility's first registration of a new year is ``001/<year>``.
    Call it inside the insert transaction; the result is never cached.
    """
    existing_children = list(existing_children)
    year = _year_of(now)
    taken = {child.reg_no for child in existing_children}
    sequence = sum(1 for child in existing_children if _year_of(child.created_at) == year) + 1

    reg_no = f"{sequence:03d}/{year}"
    while reg_no in taken:
        sequence += 1
        reg_no = f"{sequence:03d}/{year}"
    return reg_no
