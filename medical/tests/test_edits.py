import datetime
from types import SimpleNamespace

from django.test import SimpleTestCase

from medical.edits import UnsavedEditBuffer
from medical.schedule import VACCINE_SCHEDULE

KEY = UnsavedEditBuffer.child_key("001/2024", "Ama Mensah")


def dose(vaccine, date_given=None, next_visit=None, pk=1):
    return SimpleNamespace(
        pk=pk, vaccine=vaccine, date_given=date_given, next_visit=next_visit,
        batch_number="B-1" if date_given else "", place_given="Osu" if date_given else "",
        remarks="ok" if date_given else "", status="completed" if date_given else "scheduled",
    )


class UnsavedEditBufferTest(SimpleTestCase):
    def setUp(self):
        self.buffer = UnsavedEditBuffer()

    def test_child_key(self):
        self.assertEqual(KEY, "001/2024::Ama Mensah")

    def test_track_edit_upserts(self):
        self.buffer.track_edit(KEY, "BCG at Birth", "2024-01-10")
        self.buffer.track_edit(KEY, "BCG at Birth", "2024-01-11")
        self.assertEqual(self.buffer.edits_for(KEY), {"BCG at Birth": "2024-01-11"})
        self.assertTrue(self.buffer.has_edits(KEY))

    def test_clear_removes_child_only(self):
        other = UnsavedEditBuffer.child_key("002/2024", "Kofi")
        self.buffer.track_edit(KEY, "BCG at Birth", "2024-01-10")
        self.buffer.track_edit(other, "BCG at Birth", "2024-02-10")
        self.buffer.clear(KEY)
        self.assertFalse(self.buffer.has_edits(KEY))
        self.assertTrue(self.buffer.has_edits(other))

    def test_discard_single_vaccine(self):
        self.buffer.track_edit(KEY, "BCG at Birth", "2024-01-10")
        self.buffer.discard(KEY, "BCG at Birth")
        self.assertFalse(self.buffer.has_edits(KEY))
        self.assertIsNone(self.buffer.get(KEY, "BCG at Birth"))

    def test_overlay_lists_whole_schedule_with_edits_on_top(self):
        doses = [dose("BCG at Birth", date_given=datetime.date(2024, 1, 10), pk=7)]
        self.buffer.track_edit(KEY, "OPV0 at Birth", "2024-01-12")
        rows = self.buffer.overlay(KEY, doses)

        self.assertEqual([row["vaccine"] for row in rows], list(VACCINE_SCHEDULE))
        self.assertEqual(rows[0]["id"], 7)
        self.assertEqual(rows[0]["date_given"], "2024-01-10")
        self.assertFalse(rows[0]["unsaved"])
        self.assertEqual(rows[1]["date_given"], "2024-01-12")
        self.assertTrue(rows[1]["unsaved"])
        self.assertEqual(rows[2]["status"], "pending")

    def test_tracked_vaccine_is_not_bookable(self):
        self.buffer.track_edit(KEY, "OPV1 at 6 weeks", "2024-03-01")
        bookable = self.buffer.bookable_vaccines(KEY, [])
        self.assertNotIn("OPV1 at 6 weeks", bookable)
        self.assertIn("Penta1 at 6 weeks", bookable)

    def test_clearing_makes_vaccine_bookable_again(self):
        self.buffer.track_edit(KEY, "OPV1 at 6 weeks", "2024-03-01")
        self.buffer.clear(KEY)
        self.assertIn("OPV1 at 6 weeks", self.buffer.bookable_vaccines(KEY, []))

    def test_given_vaccine_is_not_bookable(self):
        doses = [dose("BCG at Birth", date_given=datetime.date(2024, 1, 10))]
        self.assertNotIn("BCG at Birth", self.buffer.bookable_vaccines(KEY, doses))

    def test_booked_but_not_given_vaccine_stays_bookable(self):
        doses = [dose("OPV1 at 6 weeks", next_visit=datetime.date(2024, 7, 1))]
        self.assertIn("OPV1 at 6 weeks", self.buffer.bookable_vaccines(KEY, doses))

    def test_cleared_date_overrides_saved_one(self):
        doses = [dose("BCG at Birth", date_given=datetime.date(2024, 1, 10))]
        self.buffer.track_edit(KEY, "BCG at Birth", "")
        self.assertIn("BCG at Birth", self.buffer.bookable_vaccines(KEY, doses))
        self.assertEqual(self.buffer.overlay(KEY, doses)[0]["date_given"], "")
