from .schedule import VACCINE_SCHEDULE


class UnsavedEditBuffer:
    """
    Dose dates typed into an editing view but not saved yet.

    Keyed by child (registration number + name, stable even before the
    child's database id is loaded into the view) and then by vaccine label.
    Lives in memory only; a successful save or a discard clears it.
    """

    def __init__(self):
        self._edits = {}

    @staticmethod
    def child_key(reg_no, name):
        return f"{reg_no}::{name}"

    def track_edit(self, child_key, vaccine, value):
        self._edits.setdefault(child_key, {})[vaccine] = value or ""

    def get(self, child_key, vaccine, default=None):
        return self._edits.get(child_key, {}).get(vaccine, default)

    def edits_for(self, child_key):
        return dict(self._edits.get(child_key, {}))

    def has_edits(self, child_key):
        return bool(self._edits.get(child_key))

    def discard(self, child_key, vaccine):
        edits = self._edits.get(child_key)
        if edits is not None:
            edits.pop(vaccine, None)
            if not edits:
                del self._edits[child_key]

    def clear(self, child_key):
        self._edits.pop(child_key, None)

    def clear_all(self):
        self._edits.clear()

    def overlay(self, child_key, doses):
        """
        One row per schedule vaccine, persisted values first, then any
        buffered date in place of ``date_given``.
        """
        by_vaccine = {dose.vaccine: dose for dose in doses}
        edits = self._edits.get(child_key, {})
        rows = []
        for vaccine in VACCINE_SCHEDULE:
            dose = by_vaccine.get(vaccine)
            row = {
                "id": dose.pk if dose else None,
                "vaccine": vaccine,
                "date_given": dose.date_given.isoformat() if dose and dose.date_given else "",
                "batch_number": dose.batch_number if dose else "",
                "place_given": dose.place_given if dose else "",
                "remarks": dose.remarks if dose else "",
                "next_visit": dose.next_visit.isoformat() if dose and dose.next_visit else "",
                "status": dose.status if dose else "pending",
                "unsaved": vaccine in edits,
            }
            if vaccine in edits:
                row["date_given"] = edits[vaccine]
            rows.append(row)
        return rows

    def bookable_vaccines(self, child_key, doses):
        """Vaccines a next visit can still be booked for: not given, not being recorded now."""
        given = {dose.vaccine for dose in doses if dose.date_given}
        edits = self._edits.get(child_key, {})
        bookable = []
        for vaccine in VACCINE_SCHEDULE:
            if vaccine in edits:
                if edits[vaccine]:
                    continue
            elif vaccine in given:
                continue
            bookable.append(vaccine)
        return bookable
