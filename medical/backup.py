"""
Whole-facility backup and restore.

A backup is one JSON document::

    {"facility": {...}, "children": [...], "vaccinations": [...], "backupDate": "..."}

Restore validates the entire document first (FormatError, nothing touched),
then swaps the facility's data in a single transaction.
"""
import logging

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from centers.models import FacilitySetting
from core.exceptions import FormatError, StorageError
from .models import Backup, Child, VaccinationDose
from .serializers import ChildRecordSerializer, DoseRecordSerializer, FacilityRecordSerializer
from .status import as_today, update_defaulter_status

logger = logging.getLogger(__name__)

REQUIRED_COLLECTIONS = ("children", "vaccinations")


def build_backup(store, now=None):
    now = now or timezone.now()
    children = store.children().order_by("id")
    doses = VaccinationDose.objects.filter(facility=store.facility).order_by("id")
    return {
        "facility": FacilityRecordSerializer(store.facility).data,
        "children": ChildRecordSerializer(children, many=True).data,
        "vaccinations": DoseRecordSerializer(doses, many=True).data,
        "backupDate": now.isoformat(),
    }


def record_backup(store, document):
    """Keep ``document`` in the backups collection, trimming old copies."""
    keep = getattr(settings, "IMMUNIZATION_BACKUP_HISTORY", 10)
    try:
        with transaction.atomic():
            Backup.objects.create(facility=store.facility, data=_plain(document))
            stale = Backup.objects.filter(facility=store.facility).order_by("-created_at", "-id")[keep:]
            Backup.objects.filter(pk__in=[backup.pk for backup in stale]).delete()
            FacilitySetting.put(store.facility, "last_backup_at", document.get("backupDate"))
    except DatabaseError as exc:
        logger.exception(f"Could not store backup for {store.facility.code}")
        raise StorageError("Could not store the backup. Please try again.") from exc
    logger.info(f"Stored backup for {store.facility.code}")


def validate_backup(document):
    """Parsed children and doses of ``document``; raises FormatError on any problem."""
    if not isinstance(document, dict):
        raise FormatError("The backup file must contain a JSON object.")
    missing = [key for key in REQUIRED_COLLECTIONS if not isinstance(document.get(key), list)]
    if missing:
        raise FormatError(f"The backup file is missing: {', '.join(missing)}.")

    children = ChildRecordSerializer(data=document["children"], many=True)
    if not children.is_valid():
        raise FormatError(f"Invalid child records: {_first_error(children.errors)}")
    doses = DoseRecordSerializer(data=document["vaccinations"], many=True)
    if not doses.is_valid():
        raise FormatError(f"Invalid vaccination records: {_first_error(doses.errors)}")

    child_ids = [child["id"] for child in children.validated_data]
    if len(set(child_ids)) != len(child_ids):
        raise FormatError("Child ids repeat in the backup file.")
    reg_nos = [child["reg_no"] for child in children.validated_data]
    if len(set(reg_nos)) != len(reg_nos):
        raise FormatError("Registration numbers repeat in the backup file.")

    known = set(child_ids)
    pairs = set()
    for dose in doses.validated_data:
        if dose["child_id"] not in known:
            raise FormatError(f"A vaccination record refers to unknown child {dose['child_id']}.")
        pair = (dose["child_id"], dose["vaccine"])
        if pair in pairs:
            raise FormatError(f"{dose['vaccine']} appears twice for child {dose['child_id']}.")
        pairs.add(pair)
    return children.validated_data, doses.validated_data


def restore_backup(store, document, today=None):
    children, doses = validate_backup(document)
    today = as_today(today)
    facility = store.facility

    source = document.get("facility")
    backup_code = source.get("code") if isinstance(source, dict) else None
    if backup_code and backup_code != facility.code:
        logger.warning(f"Restoring a backup of {backup_code} into {facility.code}")

    try:
        with transaction.atomic():
            VaccinationDose.objects.filter(facility=facility).delete()
            store.children().delete()

            restored = {}
            for record in children:
                restored[record["id"]] = Child.objects.create(
                    facility=facility,
                    reg_no=record["reg_no"],
                    name=record["name"],
                    dob=record["dob"],
                    sex=record["sex"],
                    address=record["address"],
                    contact=record.get("contact", ""),
                    created_at=record.get("created_at") or timezone.now(),
                )

            new_doses = []
            for record in doses:
                date_given = record.get("date_given")
                next_visit = None if date_given else record.get("next_visit")
                if not date_given and not next_visit:
                    continue
                new_doses.append(VaccinationDose(
                    child=restored[record["child_id"]],
                    facility=facility,
                    vaccine=record["vaccine"],
                    date_given=date_given,
                    batch_number=record.get("batch_number", ""),
                    place_given=record.get("place_given", ""),
                    remarks=record.get("remarks", ""),
                    next_visit=next_visit,
                    status=VaccinationDose.Status.COMPLETED if date_given else VaccinationDose.Status.SCHEDULED,
                ))
            VaccinationDose.objects.bulk_create(new_doses)

            by_child = {}
            for dose in new_doses:
                by_child.setdefault(dose.child.pk, []).append(dose)
            for child in restored.values():
                update_defaulter_status(child, by_child.get(child.pk, []), today)
            Child.objects.bulk_update(list(restored.values()), ["is_defaulter"])
            FacilitySetting.put(facility, "last_restore_at", timezone.now().isoformat())
    except DatabaseError as exc:
        logger.exception(f"Restore failed for {facility.code}; previous data kept")
        raise StorageError("Restore failed. Your previous data has been kept.") from exc

    logger.info(f"Restored {len(restored)} children and {len(new_doses)} doses into {facility.code}")
    return {"children": len(restored), "vaccinations": len(new_doses)}


def _first_error(errors):
    if isinstance(errors, list):
        for index, item in enumerate(errors):
            if item:
                return f"record {index + 1}: {item}"
    return str(errors)


def _plain(document):
    """ReturnList/ReturnDict and OrderedDicts down to plain JSON types."""
    if isinstance(document, dict):
        return {key: _plain(value) for key, value in document.items()}
    if isinstance(document, list):
        return [_plain(value) for value in document]
    return document
