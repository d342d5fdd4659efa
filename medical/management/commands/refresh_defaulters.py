from django.core.management.base import BaseCommand

from centers.models import Facility
from medical.store import RecordStore


class Command(BaseCommand):
    help = 'Recomputes the cached defaulter flag of every child (run daily: "today" moves on)'

    def add_arguments(self, parser):
        parser.add_argument('--code', help='Only this facility code')

    def handle(self, *args, **options):
        facilities = Facility.objects.all()
        if options['code']:
            facilities = facilities.filter(code=options['code'].strip().upper())

        total = 0
        for facility in facilities:
            changed = RecordStore(facility).refresh_defaulters()
            total += changed
            self.stdout.write(f'{facility.code}: {changed} flag(s) changed')

        self.stdout.write(self.style.SUCCESS(f'Defaulter refresh finished, {total} change(s).'))
