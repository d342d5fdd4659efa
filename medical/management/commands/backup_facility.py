import json

from django.core.management.base import BaseCommand, CommandError

from centers.models import Facility, normalize_code
from medical.backup import build_backup, record_backup
from medical.store import RecordStore


class Command(BaseCommand):
    help = 'Writes a facility backup document as JSON (to a file or stdout)'

    def add_arguments(self, parser):
        parser.add_argument('code', help='Facility code')
        parser.add_argument('--output', '-o', help='File to write; stdout when omitted')
        parser.add_argument('--no-store', action='store_true', help='Do not keep a copy in the database')

    def handle(self, *args, **options):
        facility = Facility.objects.filter(code=normalize_code(options['code'])).first()
        if facility is None:
            raise CommandError(f"Facility {options['code']} not found.")

        store = RecordStore(facility)
        document = build_backup(store)
        if not options['no_store']:
            record_backup(store, document)

        payload = json.dumps(document, indent=2, ensure_ascii=False)
        if options['output']:
            with open(options['output'], 'w', encoding='utf-8') as f:
                f.write(payload)
            self.stdout.write(self.style.SUCCESS(
                f"Backed up {len(document['children'])} children to {options['output']}"
            ))
        else:
            self.stdout.write(payload)
