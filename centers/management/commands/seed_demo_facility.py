from django.core.management.base import BaseCommand

from centers.models import Facility

DEMO_CODE = "DEMO001"
DEMO_PASSWORD = "demo123"


class Command(BaseCommand):
    help = 'Creates the demo facility (DEMO001 / demo123) if it does not exist yet'

    def handle(self, *args, **options):
        facility = Facility.objects.filter(code=DEMO_CODE).first()
        if facility:
            self.stdout.write(f'Demo facility exists: {facility}')
            return

        facility = Facility(
            code=DEMO_CODE,
            name="Demo Health Center",
            region="Greater Accra",
            district="Accra Metro",
        )
        facility.set_password(DEMO_PASSWORD)
        facility.set_security_questions([
            {"question": "What is your favorite color?", "answer": "blue"},
            {"question": "What is your favorite food?", "answer": "rice"},
        ])
        facility.save()
        self.stdout.write(self.style.SUCCESS(f'Created demo facility {facility}. Login: {DEMO_CODE} / {DEMO_PASSWORD}'))
