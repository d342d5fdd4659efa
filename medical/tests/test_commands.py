import json
import os
import tempfile
from io import StringIO

from django.core.management import CommandError, call_command

from centers.models import Facility
from centers.tests.base import FacilityTestCase
from medical.models import Backup, Child
from medical.store import RecordStore


class CommandTestCase(FacilityTestCase):
    def setUp(self):
        self.facility = self.create_facility(code="CLINIC1")
        self.child = self.create_child(self.facility)
        RecordStore(self.facility).replace_child_doses(
            self.child.pk, [self.booked("OPV1 at 6 weeks", "2024-06-01")], today=self.today,
        )
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def call(self, *args, **kwargs):
        out = StringIO()
        call_command(*args, stdout=out, **kwargs)
        return out.getvalue()


class BackupRestoreCommandTest(CommandTestCase):
    def test_backup_to_stdout(self):
        document = json.loads(self.call("backup_facility", "clinic1"))
        self.assertEqual(document["children"][0]["regNo"], self.child.reg_no)
        self.assertEqual(Backup.objects.filter(facility=self.facility).count(), 1)

    def test_backup_without_storing(self):
        self.call("backup_facility", "CLINIC1", "--no-store")
        self.assertFalse(Backup.objects.exists())

    def test_backup_to_file_then_restore(self):
        path = os.path.join(self.tmp.name, "backup.json")
        self.call("backup_facility", "CLINIC1", "--output", path)
        RecordStore(self.facility).clear_all()

        output = self.call("restore_facility", "CLINIC1", path)
        self.assertIn("Restored 1 children and 1 vaccination records", output)
        self.assertEqual(Child.objects.get(facility=self.facility).reg_no, self.child.reg_no)

    def test_restore_bad_file(self):
        path = os.path.join(self.tmp.name, "broken.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"children": []}, f)
        with self.assertRaisesMessage(CommandError, "vaccinations"):
            self.call("restore_facility", "CLINIC1", path)
        self.assertTrue(Child.objects.filter(pk=self.child.pk).exists())

    def test_unknown_facility(self):
        with self.assertRaises(CommandError):
            self.call("backup_facility", "NOPE")


class RefreshDefaultersCommandTest(CommandTestCase):
    def test_refresh(self):
        Child.objects.filter(pk=self.child.pk).update(is_defaulter=False)
        output = self.call("refresh_defaulters", "--code", "clinic1")
        self.assertIn("CLINIC1: 1 flag(s) changed", output)
        self.child.refresh_from_db()
        self.assertTrue(self.child.is_defaulter)


class SeedDemoFacilityCommandTest(FacilityTestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_demo_facility", stdout=StringIO())
        call_command("seed_demo_facility", stdout=StringIO())
        facility = Facility.objects.get(code="DEMO001")
        self.assertTrue(facility.check_password("demo123"))
        self.assertTrue(facility.check_security_answers(["Blue", "RICE"]))
