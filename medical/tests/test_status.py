import datetime
from types import SimpleNamespace

from django.test import SimpleTestCase

from medical.schedule import VACCINE_SCHEDULE
from medical.status import (
    COMPLETED, DUE_SOON, OVERDUE, PENDING, SCHEDULED, UP_TO_DATE, UPCOMING,
    build_summary, classify_dose, dose_rows, is_defaulter, status_label, summarize_child,
    update_defaulter_status,
)

TODAY = datetime.date(2024, 6, 15)


def visit(days, vaccine="OPV1 at 6 weeks"):
    return {"vaccine": vaccine, "date_given": None, "next_visit": TODAY + datetime.timedelta(days=days)}


def given(vaccine="BCG at Birth"):
    return {"vaccine": vaccine, "date_given": datetime.date(2024, 1, 10), "next_visit": None}


def make_child(pk, name="Kofi", doses=()):
    return SimpleNamespace(pk=pk, id=pk, reg_no=f"{pk:03d}/2024", name=name, doses=list(doses))


def doses_of(child):
    return child.doses


class ClassifyDoseTest(SimpleTestCase):
    def test_given_dose_is_completed(self):
        self.assertEqual(classify_dose(given(), TODAY).status, COMPLETED)

    def test_given_dose_with_stale_next_visit_is_still_completed(self):
        dose = given()
        dose["next_visit"] = TODAY - datetime.timedelta(days=3)
        self.assertEqual(classify_dose(dose, TODAY).status, COMPLETED)

    def test_no_dates_is_pending(self):
        self.assertEqual(classify_dose({"vaccine": "BCG at Birth"}, TODAY).status, PENDING)

    def test_yesterday_is_overdue(self):
        result = classify_dose(visit(-1), TODAY)
        self.assertEqual(result.status, OVERDUE)
        self.assertEqual(result.days_overdue, 1)

    def test_windows(self):
        self.assertEqual(classify_dose(visit(1), TODAY).status, DUE_SOON)
        self.assertEqual(classify_dose(visit(3), TODAY).status, DUE_SOON)
        self.assertEqual(classify_dose(visit(7), TODAY).status, DUE_SOON)
        self.assertEqual(classify_dose(visit(8), TODAY).status, UPCOMING)
        self.assertEqual(classify_dose(visit(15), TODAY).status, UPCOMING)
        self.assertEqual(classify_dose(visit(30), TODAY).status, UPCOMING)
        self.assertEqual(classify_dose(visit(31), TODAY).status, SCHEDULED)
        self.assertEqual(classify_dose(visit(45), TODAY).status, SCHEDULED)

    def test_today_is_in_no_window(self):
        result = classify_dose(visit(0), TODAY)
        self.assertEqual(result.status, SCHEDULED)
        self.assertEqual(result.days_until, 0)

    def test_days_until(self):
        self.assertEqual(classify_dose(visit(3), TODAY).days_until, 3)

    def test_string_dates(self):
        dose = {"vaccine": "BCG at Birth", "date_given": "", "next_visit": "2024-06-10T00:00:00"}
        self.assertEqual(classify_dose(dose, TODAY).days_overdue, 5)

    def test_works_on_objects(self):
        dose = SimpleNamespace(vaccine="BCG at Birth", date_given=None, next_visit=TODAY + datetime.timedelta(days=2))
        self.assertEqual(classify_dose(dose, TODAY).status, DUE_SOON)


class SummarizeChildTest(SimpleTestCase):
    def test_overdue_wins_over_due_soon(self):
        doses = [visit(3, "OPV1 at 6 weeks"), visit(-2, "Penta1 at 6 weeks")]
        result = summarize_child(make_child(1), doses, TODAY)
        self.assertEqual(result.status, OVERDUE)
        self.assertEqual(result.featured.dose["vaccine"], "Penta1 at 6 weeks")

    def test_featured_is_most_overdue(self):
        doses = [visit(-2, "OPV1 at 6 weeks"), visit(-9, "Penta1 at 6 weeks"), visit(-5, "PCV1 at 6 weeks")]
        result = summarize_child(make_child(1), doses, TODAY)
        self.assertEqual(result.featured.dose["vaccine"], "Penta1 at 6 weeks")
        self.assertEqual(result.featured.days_overdue, 9)

    def test_featured_is_soonest_and_first_on_ties(self):
        doses = [visit(10, "OPV1 at 6 weeks"), visit(5, "Penta1 at 6 weeks"), visit(5, "PCV1 at 6 weeks")]
        result = summarize_child(make_child(1), doses, TODAY)
        self.assertEqual(result.status, DUE_SOON)
        self.assertEqual(result.featured.dose["vaccine"], "Penta1 at 6 weeks")

    def test_due_soon_wins_over_upcoming(self):
        doses = [visit(20, "OPV1 at 6 weeks"), visit(2, "Penta1 at 6 weeks")]
        self.assertEqual(summarize_child(make_child(1), doses, TODAY).status, DUE_SOON)

    def test_up_to_date(self):
        result = summarize_child(make_child(1), [given(), visit(45)], TODAY)
        self.assertEqual(result.status, UP_TO_DATE)
        self.assertIsNone(result.featured)

    def test_completed_when_every_vaccine_given(self):
        doses = [given(vaccine) for vaccine in VACCINE_SCHEDULE]
        self.assertEqual(summarize_child(make_child(1), doses, TODAY).status, COMPLETED)


class BuildSummaryTest(SimpleTestCase):
    def test_each_child_in_one_bucket_only(self):
        both = make_child(1, doses=[visit(-1, "OPV1 at 6 weeks"), visit(3, "Penta1 at 6 weeks")])
        summary = build_summary([both], TODAY, doses_for=doses_of)
        self.assertEqual([item.child for item in summary[OVERDUE]], [both])
        self.assertEqual(summary[DUE_SOON], [])
        self.assertEqual(summary[UPCOMING], [])
        self.assertEqual(summary["counts"], {"total": 1, "defaulters": 1, "due_soon": 0, "upcoming": 0})

    def test_child_counted_once_per_bucket(self):
        child = make_child(1, doses=[visit(-1, "OPV1 at 6 weeks"), visit(-4, "Penta1 at 6 weeks")])
        summary = build_summary([child, child], TODAY, doses_for=doses_of)
        self.assertEqual(len(summary[OVERDUE]), 1)
        self.assertEqual(len(summary["records"]), 1)

    def test_buckets(self):
        children = [
            make_child(1, "Overdue", [visit(-1)]),
            make_child(2, "Soon", [visit(3)]),
            make_child(3, "Later", [visit(15)]),
            make_child(4, "Far", [visit(45)]),
            make_child(5, "Done", [given()]),
        ]
        summary = build_summary(children, TODAY, doses_for=doses_of)
        self.assertEqual([item.child.name for item in summary[OVERDUE]], ["Overdue"])
        self.assertEqual([item.child.name for item in summary[DUE_SOON]], ["Soon"])
        self.assertEqual([item.child.name for item in summary[UPCOMING]], ["Later"])
        self.assertEqual(len(summary["records"]), 5)
        self.assertEqual(summary["counts"]["total"], 5)

    def test_buckets_sorted_by_featured_visit(self):
        children = [
            make_child(1, "Two days", [visit(-2)]),
            make_child(2, "Ten days", [visit(-10)]),
            make_child(3, "Five days", [visit(-5)]),
        ]
        summary = build_summary(children, TODAY, doses_for=doses_of)
        self.assertEqual([item.child.name for item in summary[OVERDUE]], ["Ten days", "Five days", "Two days"])

    def test_uses_loaded_doses_by_default(self):
        child = SimpleNamespace(pk=1, doses=SimpleNamespace(all=lambda: [visit(-1)]))
        self.assertEqual(build_summary([child], TODAY)["counts"]["defaulters"], 1)


class DefaulterTest(SimpleTestCase):
    def test_is_defaulter(self):
        self.assertTrue(is_defaulter([given(), visit(-1)], TODAY))
        self.assertFalse(is_defaulter([given(), visit(0), visit(3)], TODAY))
        self.assertFalse(is_defaulter([], TODAY))

    def test_update_defaulter_status_sets_flag(self):
        child = make_child(1)
        child.is_defaulter = False
        self.assertTrue(update_defaulter_status(child, [visit(-1)], TODAY))
        self.assertTrue(child.is_defaulter)
        self.assertFalse(update_defaulter_status(child, [given()], TODAY))
        self.assertFalse(child.is_defaulter)


class ExportRowsTest(SimpleTestCase):
    def test_rows_in_schedule_order(self):
        child = make_child(1, "Kofi", [visit(-3, "OPV1 at 6 weeks"), given("BCG at Birth")])
        rows = dose_rows([child], TODAY, doses_for=doses_of)
        self.assertEqual(rows, [
            ["001/2024", "Kofi", "BCG at Birth", "2024-01-10", "", "Completed"],
            ["001/2024", "Kofi", "OPV1 at 6 weeks", "", "2024-06-12", "Overdue (3 days)"],
        ])

    def test_labels(self):
        self.assertEqual(status_label(classify_dose(visit(-1), TODAY)), "Overdue (1 day)")
        self.assertEqual(status_label(classify_dose(visit(1), TODAY)), "Due in 1 day")
        self.assertEqual(status_label(classify_dose(visit(12), TODAY)), "Due in 12 days")
        self.assertEqual(status_label(classify_dose(visit(40), TODAY)), "Scheduled")
