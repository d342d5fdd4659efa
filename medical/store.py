"""
Facility-scoped persistence for children and their vaccination doses.

Every write that touches more than one row runs inside a single
``transaction.atomic`` block, and storage failures surface as StorageError
only after that block has rolled back.
"""
import logging

from django.db import DatabaseError, transaction
from django.db.models import Prefetch
from django.utils import timezone

from centers.models import FacilitySession, FacilitySetting, PasswordRecoveryAttempt
from core.exceptions import StorageError, ValidationError
from .models import Backup, Child, VaccinationDose
from .regno import generate_reg_no
from .schedule import is_scheduled_vaccine
from .status import as_today, to_date, update_defaulter_status

logger = logging.getLogger(__name__)

CHILD_EDITABLE_FIELDS = ("name", "dob", "sex", "address", "contact")
SEX_VALUES = {value for value, _ in Child.SEX_CHOICES}


class RecordStore:

    def __init__(self, facility):
        self.facility = facility

    # --- Reads ---

    def children(self):
        return Child.objects.filter(facility=self.facility)

    def get_child(self, child_id):
        return self.children().get(pk=child_id)

    def list_children(self):
        doses = VaccinationDose.objects.filter(facility=self.facility).order_by("id")
        return list(self.children().prefetch_related(Prefetch("doses", queryset=doses)))

    def list_doses_for_child(self, child_id):
        child = self.get_child(child_id)
        return list(VaccinationDose.objects.filter(child=child, facility=self.facility).order_by("id"))

    # --- Children ---

    def create_child(self, name, dob, sex, address, contact="", now=None):
        now = now or timezone.now()
        fields = self._clean_child_fields(
            {"name": name, "dob": dob, "sex": sex, "address": address, "contact": contact},
            today=as_today(now),
        )
        try:
            with transaction.atomic():
                existing = list(self.children().select_for_update().only("name", "reg_no", "created_at"))
                if self._name_taken(fields["name"], existing):
                    raise ValidationError({"name": f"A child named {fields['name']} is already registered."})
                reg_no = generate_reg_no(existing, now)
                child = Child.objects.create(
                    facility=self.facility,
                    reg_no=reg_no,
                    is_defaulter=False,
                    created_at=now,
                    **fields,
                )
        except DatabaseError as exc:
            logger.exception(f"Could not register child {fields['name']!r} at {self.facility.code}")
            raise StorageError("Could not register the child. Please try again.") from exc
        logger.info(f"Registered child {child.reg_no} at {self.facility.code}")
        return child

    def update_child(self, child_id, **fields):
        locked = sorted(set(fields) - set(CHILD_EDITABLE_FIELDS))
        if locked:
            raise ValidationError(f"These fields cannot be changed: {', '.join(locked)}.")
        child = self.get_child(child_id)
        cleaned = self._clean_child_fields(fields, today=as_today(), partial=True)
        if not cleaned:
            return child
        for field, value in cleaned.items():
            setattr(child, field, value)
        try:
            child.save(update_fields=list(cleaned))
        except DatabaseError as exc:
            logger.exception(f"Could not update child {child.reg_no}")
            raise StorageError() from exc
        return child

    def delete_child(self, child_id):
        child = self.get_child(child_id)
        try:
            with transaction.atomic():
                VaccinationDose.objects.filter(child=child, facility=self.facility).delete()
                child.delete()
        except DatabaseError as exc:
            logger.exception(f"Could not delete child {child.reg_no}")
            raise StorageError("Could not delete the child. Please try again.") from exc
        logger.info(f"Deleted child {child.reg_no} at {self.facility.code}")

    # --- Doses ---

    def replace_child_doses(self, child_id, dose_records, booking=None, today=None):
        """
        Save a child's whole immunization card.

        ``dose_records`` is a complete snapshot (every row the user sees, given
        or not); rows with no date given and no next visit are dropped. The old
        rows are deleted and the new ones inserted in one transaction, so a
        failure leaves the previous card untouched. ``booking`` is an optional
        ``{"date": ..., "vaccines": [...]}`` next-visit appointment.
        """
        today = as_today(today)
        child = self.get_child(child_id)
        doses = self._build_doses(child, dose_records, booking, today)

        try:
            with transaction.atomic():
                # Serializes concurrent saves for the same child.
                child = self.children().select_for_update().get(pk=child.pk)
                VaccinationDose.objects.filter(child=child).delete()
                VaccinationDose.objects.bulk_create(doses)
                saved = list(VaccinationDose.objects.filter(child=child).order_by("id"))
                update_defaulter_status(child, saved, today)
                child.save(update_fields=["is_defaulter"])
        except DatabaseError as exc:
            logger.exception(f"Could not save doses for child {child.reg_no}")
            raise StorageError("Could not save vaccination records. Please try again.") from exc
        logger.info(f"Saved {len(saved)} dose records for child {child.reg_no}")
        return saved

    def refresh_defaulters(self, today=None):
        """Recompute every cached defaulter flag of the facility; returns how many changed."""
        today = as_today(today)
        changed = []
        for child in self.list_children():
            before = child.is_defaulter
            if update_defaulter_status(child, child.doses.all(), today) != before:
                changed.append(child)
        if changed:
            try:
                with transaction.atomic():
                    Child.objects.bulk_update(changed, ["is_defaulter"])
            except DatabaseError as exc:
                logger.exception(f"Could not refresh defaulter flags for {self.facility.code}")
                raise StorageError() from exc
        return len(changed)

    # --- Whole facility ---

    def clear_all(self):
        try:
            with transaction.atomic():
                VaccinationDose.objects.filter(facility=self.facility).delete()
                self.children().delete()
        except DatabaseError as exc:
            logger.exception(f"Could not clear data for {self.facility.code}")
            raise StorageError() from exc
        logger.info(f"Cleared all records of {self.facility.code}")

    def purge_facility(self):
        """Delete the facility together with everything it owns."""
        code = self.facility.code
        try:
            with transaction.atomic():
                VaccinationDose.objects.filter(facility=self.facility).delete()
                self.children().delete()
                Backup.objects.filter(facility=self.facility).delete()
                FacilitySetting.objects.filter(facility=self.facility).delete()
                PasswordRecoveryAttempt.objects.filter(facility=self.facility).delete()
                FacilitySession.objects.filter(facility=self.facility).delete()
                self.facility.delete()
        except DatabaseError as exc:
            logger.exception(f"Could not delete facility {code}")
            raise StorageError("Could not delete the facility. Please try again.") from exc
        logger.info(f"Deleted facility {code} and all of its records")

    # --- Validation ---

    @staticmethod
    def _name_taken(name, children):
        # SQLite's LIKE and LOWER only fold ASCII, so compare in Python.
        folded = name.casefold()
        return any(child.name.casefold() == folded for child in children)

    def _clean_child_fields(self, fields, today, partial=False):
        cleaned = {}
        errors = {}
        for field in CHILD_EDITABLE_FIELDS:
            if field not in fields:
                continue
            value = fields[field]
            if field == "dob":
                try:
                    value = to_date(value)
                except ValueError:
                    errors["dob"] = "Enter a valid date of birth."
                    continue
                if value is None:
                    errors["dob"] = "Date of birth is required."
                elif value > today:
                    errors["dob"] = "Date of birth cannot be in the future."
            else:
                value = (value or "").strip()
                if field == "sex" and value not in SEX_VALUES:
                    errors["sex"] = "Sex must be Male or Female."
                elif field != "contact" and not value:
                    errors[field] = "This field is required."
            cleaned[field] = value

        if not partial:
            for field in ("name", "dob", "sex", "address"):
                if field not in fields:
                    errors.setdefault(field, "This field is required.")
        if errors:
            raise ValidationError(errors)
        return cleaned

    def _build_doses(self, child, dose_records, booking, today):
        rows = {}
        for record in dose_records:
            vaccine = record.get("vaccine")
            if not is_scheduled_vaccine(vaccine):
                raise ValidationError(f"Unknown vaccine: {vaccine}.")
            if vaccine in rows:
                raise ValidationError(f"{vaccine} appears more than once.")
            try:
                date_given = to_date(record.get("date_given"))
                next_visit = to_date(record.get("next_visit"))
            except ValueError as exc:
                raise ValidationError(f"{vaccine}: invalid date.") from exc

            row = {
                "vaccine": vaccine,
                "date_given": date_given,
                "batch_number": (record.get("batch_number") or "").strip(),
                "place_given": (record.get("place_given") or "").strip(),
                "remarks": (record.get("remarks") or "").strip(),
                "next_visit": next_visit,
            }
            if date_given:
                if date_given > today:
                    raise ValidationError(f"{vaccine}: date given cannot be in the future.")
                if date_given < child.dob:
                    raise ValidationError(f"{vaccine}: date given is before the date of birth.")
                missing = [label for key, label in (("batch_number", "batch number"),
                                                    ("place_given", "place given"),
                                                    ("remarks", "remarks")) if not row[key]]
                if missing:
                    raise ValidationError(f"{vaccine}: please enter the {', '.join(missing)}.")
            rows[vaccine] = row

        if booking:
            self._apply_booking(rows, booking, today)

        doses = []
        for row in rows.values():
            if row["date_given"]:
                row["next_visit"] = None
                status = VaccinationDose.Status.COMPLETED
            elif row["next_visit"]:
                status = VaccinationDose.Status.SCHEDULED
            else:
                continue
            doses.append(VaccinationDose(child=child, facility=self.facility, status=status, **row))
        return doses

    def _apply_booking(self, rows, booking, today):
        try:
            visit_date = to_date(booking.get("date"))
        except ValueError as exc:
            raise ValidationError("Invalid next visit date.") from exc
        vaccines = list(booking.get("vaccines") or [])
        if visit_date is None or not vaccines:
            raise ValidationError("Choose a next visit date and at least one vaccine.")
        if visit_date < today:
            raise ValidationError("Next visit date cannot be in the past.")
        for vaccine in vaccines:
            if not is_scheduled_vaccine(vaccine):
                raise ValidationError(f"Unknown vaccine: {vaccine}.")
            row = rows.setdefault(vaccine, {
                "vaccine": vaccine,
                "date_given": None,
                "batch_number": "",
                "place_given": "",
                "remarks": "",
                "next_visit": None,
            })
            if row["date_given"]:
                raise ValidationError(f"{vaccine} has already been given; it cannot be booked.")
            row["next_visit"] = visit_date
