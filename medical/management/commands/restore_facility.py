import json

from django.core.management.base import BaseCommand, CommandError

from centers.models import Facility, normalize_code
from core.exceptions import FormatError, StorageError
from medical.backup import restore_backup
from medical.store import RecordStore


class Command(BaseCommand):
    help = "Replaces a facility's children and doses with the contents of a backup file"

    def add_arguments(self, parser):
        parser.add_argument('code', help='Facility code')
        parser.add_argument('path', help='Backup JSON file')

    def handle(self, *args, **options):
        facility = Facility.objects.filter(code=normalize_code(options['code'])).first()
        if facility is None:
            raise CommandError(f"Facility {options['code']} not found.")

        try:
            with open(options['path'], 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            raise CommandError(f"Could not read {options['path']}: {e}")

        try:
            counts = restore_backup(RecordStore(facility), document)
        except (FormatError, StorageError) as e:
            raise CommandError(e.message)

        self.stdout.write(self.style.SUCCESS(
            f"Restored {counts['children']} children and {counts['vaccinations']} vaccination records into {facility.code}."
        ))
