import datetime
import threading
from types import SimpleNamespace
from unittest import mock

from django.db import DatabaseError
from django.test import SimpleTestCase

from centers.tests.base import FacilityTestCase
from core.exceptions import AuthError, StorageError
from medical.controller import ImmunizationController
from medical.models import VaccinationDose
from medical.store import RecordStore


class ControllerTest(FacilityTestCase):
    def setUp(self):
        self.facility = self.create_facility(password="secret1")
        self.controller = ImmunizationController()
        self.controller.login(self.facility.code, "secret1")
        self.child = self.controller.create_child(
            name="Ama Mensah", dob=datetime.date(2024, 1, 10), sex="Female", address="Osu",
        )

    def test_records_need_a_facility(self):
        self.controller.logout()
        with self.assertRaises(AuthError):
            self.controller.children()

    def test_start_resumes_last_facility(self):
        fresh = ImmunizationController()
        self.assertEqual(fresh.start(), self.facility)
        self.assertEqual([child.pk for child in fresh.children()], [self.child.pk])

    def test_children_cache_is_refreshed_after_writes(self):
        self.assertEqual(len(self.controller.children()), 1)
        self.controller.create_child(name="Kofi", dob=datetime.date(2024, 2, 1), sex="Male", address="Osu")
        self.assertEqual(len(self.controller.children()), 2)

    def test_tracked_edit_blocks_booking_until_saved(self):
        self.controller.track_edit(self.child.pk, "OPV1 at 6 weeks", "2024-03-01")
        self.assertNotIn("OPV1 at 6 weeks", self.controller.bookable_vaccines(self.child.pk))
        rows = self.controller.display_doses(self.child.pk)
        self.assertTrue(rows[3]["unsaved"])

        self.controller.discard_edits(self.child.pk)
        self.assertIn("OPV1 at 6 weeks", self.controller.bookable_vaccines(self.child.pk))

    def test_save_clears_edits(self):
        self.controller.track_edit(self.child.pk, "BCG at Birth", "2024-01-10")
        self.controller.save_doses(self.child.pk, [self.given("BCG at Birth", "2024-01-10")], today=self.today)
        key = self.controller.child_key(self.child)
        self.assertFalse(self.controller.edits.has_edits(key))
        self.assertNotIn("BCG at Birth", self.controller.bookable_vaccines(self.child.pk))

    def test_failed_save_keeps_edits(self):
        self.controller.track_edit(self.child.pk, "BCG at Birth", "2024-01-10")
        with mock.patch.object(VaccinationDose.objects, "bulk_create", side_effect=DatabaseError("locked")):
            with self.assertRaises(StorageError):
                self.controller.save_doses(
                    self.child.pk, [self.given("BCG at Birth", "2024-01-10")], today=self.today,
                )
        self.assertTrue(self.controller.edits.has_edits(self.controller.child_key(self.child)))

    def test_rename_moves_edits(self):
        self.controller.track_edit(self.child.pk, "BCG at Birth", "2024-01-10")
        child = self.controller.update_child(self.child.pk, name="Ama Owusu")
        self.assertEqual(
            self.controller.edits.edits_for(self.controller.child_key(child)),
            {"BCG at Birth": "2024-01-10"},
        )
        self.assertFalse(self.controller.edits.has_edits(self.controller.child_key(self.child)))

    def test_summary(self):
        self.controller.save_doses(
            self.child.pk,
            [self.booked("OPV1 at 6 weeks", "2024-06-10"), self.booked("Penta1 at 6 weeks", "2024-06-18")],
            today=self.today,
        )
        summary = self.controller.summary(today=self.today)
        self.assertEqual(summary["counts"], {"total": 1, "defaulters": 1, "due_soon": 0, "upcoming": 0})
        self.assertEqual(summary["overdue"][0].featured.days_overdue, 5)

    def test_delete_facility_needs_password(self):
        with self.assertRaises(AuthError):
            self.controller.delete_facility("wrong")
        self.controller.delete_facility("secret1")
        self.assertFalse(self.controller.session.is_logged_in)
        self.assertFalse(type(self.facility).objects.exists())

    def test_restore_clears_edits(self):
        document = self.controller.backup(keep=False)
        self.controller.track_edit(self.child.pk, "BCG at Birth", "2024-01-10")
        self.controller.restore(document)
        self.assertEqual(self.controller.edits.edits_for(self.controller.child_key(self.child)), {})


class SaveOrderingTest(SimpleTestCase):
    """Two saves for one child run one after the other, never interleaved."""

    def setUp(self):
        self.controller = ImmunizationController()
        self.controller.session.facility = SimpleNamespace(pk=1, code="CLINIC1")
        self.child = SimpleNamespace(pk=7, reg_no="001/2024", name="Ama Mensah")
        self.events = []
        self.first_inside = threading.Event()
        self.release_first = threading.Event()

    def fake_replace(self, child_id, dose_records, booking=None, today=None):
        label = dose_records[0]["vaccine"]
        self.events.append(f"start {label}")
        if label == "first":
            self.first_inside.set()
            self.release_first.wait(timeout=5)
        self.events.append(f"end {label}")
        return []

    def test_second_save_waits_for_the_first(self):
        with mock.patch.object(RecordStore, "get_child", return_value=self.child), \
                mock.patch.object(RecordStore, "replace_child_doses", side_effect=self.fake_replace):
            first = threading.Thread(target=self.controller.save_doses, args=(7, [{"vaccine": "first"}]))
            second = threading.Thread(target=self.controller.save_doses, args=(7, [{"vaccine": "second"}]))
            first.start()
            self.assertTrue(self.first_inside.wait(timeout=5))
            second.start()
            second.join(timeout=0.2)
            self.assertTrue(second.is_alive())
            self.assertEqual(self.events, ["start first"])

            self.release_first.set()
            first.join(timeout=5)
            second.join(timeout=5)

        self.assertEqual(self.events, ["start first", "end first", "start second", "end second"])
