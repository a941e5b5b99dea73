from datetime import datetime, timedelta, timezone
from decimal import Decimal
from fractions import Fraction
import unittest

from delegacje.diet import DietCalculator, partial_day_multiplier
from delegacje.errors import MissingEndDatetimeError, MixedTimezoneError
from delegacje.models import DietMode, DietRate, TripPeriod

START = datetime(2024, 1, 10, 8, 0)
PLN_45 = DietRate(daily_rate=Decimal("45"), currency="PLN")


def planned(hours: float, start: datetime = START) -> TripPeriod:
    return TripPeriod(start_datetime=start, planned_end_datetime=start + timedelta(hours=hours))


class DietCalculatorTestCase(unittest.TestCase):
    def setUp(self):
        self.calculator = DietCalculator()

    def test_two_days_and_six_hours_with_one_breakfast(self):
        period = TripPeriod(
            start_datetime=datetime(2024, 1, 10, 8, 0),
            planned_end_datetime=datetime(2024, 1, 12, 14, 0),
        )
        rate = DietRate(daily_rate=Decimal("45"), currency="PLN", breakfast_count=1)

        result = self.calculator.calculate(period, rate, DietMode.PLANNED)

        self.assertEqual(result.full_days, 2)
        self.assertEqual(result.partial_hours, Decimal("6.0"))
        self.assertEqual(result.partial_day_multiplier, Fraction(1, 3))
        self.assertEqual(result.total_days, Decimal("2.333"))
        self.assertEqual(result.diet_before_breakfast, Decimal("105.00"))
        self.assertEqual(result.breakfast_deduction, Decimal("11.25"))
        self.assertEqual(result.total_diet, Decimal("93.75"))
        self.assertFalse(result.is_live)
        self.assertIn("TOTAL: 93.75 PLN", result.breakdown)

    def test_itemizes_full_days_and_partial_day(self):
        result = self.calculator.calculate(planned(54), PLN_45)

        rows = result.detailed_breakdown
        self.assertEqual([row.day for row in rows], [1, 2, 3])
        self.assertEqual(rows[0].date.isoformat(), "2024-01-10")
        self.assertEqual(rows[2].date.isoformat(), "2024-01-12")
        self.assertEqual(rows[0].hours, Decimal("24"))
        self.assertEqual(rows[0].amount, Decimal("45.00"))
        self.assertEqual(rows[2].hours, Decimal("6.0"))
        self.assertEqual(rows[2].multiplier, Fraction(1, 3))
        self.assertEqual(rows[2].amount, Decimal("15.00"))

    def test_exactly_eight_hours_is_half_day(self):
        result = self.calculator.calculate(planned(8), PLN_45)
        self.assertEqual(result.partial_day_multiplier, Fraction(1, 2))
        self.assertEqual(result.total_diet, Decimal("22.50"))

    def test_exactly_twelve_hours_is_full_day(self):
        result = self.calculator.calculate(planned(12), PLN_45)
        self.assertEqual(result.partial_day_multiplier, Fraction(1))
        self.assertEqual(result.total_diet, Decimal("45.00"))

    def test_just_under_eight_hours_is_one_third(self):
        period = TripPeriod(
            start_datetime=START,
            planned_end_datetime=START + timedelta(hours=7, minutes=59),
        )
        result = self.calculator.calculate(period, PLN_45)
        self.assertEqual(result.partial_day_multiplier, Fraction(1, 3))
        self.assertEqual(result.total_diet, Decimal("15.00"))

    def test_whole_days_have_no_partial_row(self):
        result = self.calculator.calculate(planned(24), PLN_45)
        self.assertEqual(result.full_days, 1)
        self.assertEqual(result.partial_day_multiplier, 0)
        self.assertEqual(result.total_days, Decimal("1.000"))
        self.assertEqual(len(result.detailed_breakdown), 1)

    def test_one_third_rate_rounds_half_up(self):
        rate = DietRate(daily_rate=Decimal("50"), currency="EUR")
        result = self.calculator.calculate(planned(5), rate)
        self.assertEqual(result.total_diet, Decimal("16.67"))

    def test_end_equal_to_start_is_zero_result(self):
        period = TripPeriod(start_datetime=START, planned_end_datetime=START)
        result = self.calculator.calculate(period, PLN_45)

        self.assertEqual(result.full_days, 0)
        self.assertEqual(result.partial_day_multiplier, 0)
        self.assertEqual(result.total_diet, Decimal("0.00"))
        self.assertEqual(result.diet_before_breakfast, Decimal("0.00"))
        self.assertEqual(result.detailed_breakdown, ())
        self.assertIn("not started", result.breakdown)

    def test_end_before_start_is_zero_result(self):
        result = self.calculator.calculate(planned(-5), PLN_45)
        self.assertEqual(result.total_diet, Decimal("0.00"))

    def test_planned_mode_requires_planned_end(self):
        period = TripPeriod(start_datetime=START)
        with self.assertRaises(MissingEndDatetimeError) as ctx:
            self.calculator.calculate(period, PLN_45, DietMode.PLANNED)
        self.assertIsInstance(ctx.exception, ValueError)
        self.assertEqual(ctx.exception.field_name, "planned_end_datetime")

    def test_closed_mode_requires_actual_end(self):
        with self.assertRaises(MissingEndDatetimeError):
            self.calculator.calculate(planned(30), PLN_45, DietMode.CLOSED)

    def test_closed_mode_uses_actual_end(self):
        period = TripPeriod(
            start_datetime=START,
            planned_end_datetime=START + timedelta(hours=54),
            actual_end_datetime=START + timedelta(hours=24),
        )
        result = self.calculator.calculate(period, PLN_45, DietMode.CLOSED)
        self.assertEqual(result.total_diet, Decimal("45.00"))
        self.assertEqual(result.end_datetime, period.actual_end_datetime)

    def test_mode_defaults_to_period_mode(self):
        period = TripPeriod(
            start_datetime=START,
            actual_end_datetime=START + timedelta(hours=10),
            mode=DietMode.CLOSED,
        )
        result = self.calculator.calculate(period, PLN_45)
        self.assertEqual(result.total_diet, Decimal("22.50"))

    def test_live_mode_measures_until_now(self):
        period = TripPeriod(start_datetime=START)
        now = START + timedelta(hours=30)

        result = self.calculator.calculate(period, PLN_45, DietMode.LIVE, now=now)

        self.assertTrue(result.is_live)
        self.assertEqual(result.end_datetime, now)
        self.assertEqual(result.total_diet, Decimal("60.00"))

    def test_live_mode_without_clock_uses_wall_time(self):
        period = TripPeriod(start_datetime=datetime.now(timezone.utc) - timedelta(hours=25))
        result = self.calculator.calculate(period, PLN_45, DietMode.LIVE)
        self.assertTrue(result.is_live)
        self.assertEqual(result.full_days, 1)

    def test_naive_start_with_aware_clock_is_rejected(self):
        period = TripPeriod(start_datetime=START)
        now = datetime(2024, 1, 11, 8, 0, tzinfo=timezone.utc)

        with self.assertRaises(MixedTimezoneError):
            self.calculator.calculate(period, PLN_45, DietMode.LIVE, now=now)
        with self.assertRaises(ValueError):
            self.calculator.calculate(
                TripPeriod(start_datetime=START, planned_end_datetime=now), PLN_45, DietMode.PLANNED
            )

    def test_aware_start_and_clock_in_different_zones(self):
        start = datetime(2024, 1, 10, 8, 0, tzinfo=timezone.utc)
        now = datetime(2024, 1, 11, 16, 0, tzinfo=timezone(timedelta(hours=2)))

        period = TripPeriod(start_datetime=start)
        result = self.calculator.calculate(period, PLN_45, DietMode.LIVE, now=now)

        self.assertEqual(result.full_days, 1)
        self.assertEqual(result.partial_hours, Decimal("6.0"))
        self.assertEqual(result.total_diet, Decimal("60.00"))

    def test_breakfast_deduction_never_exceeds_gross_diet(self):
        rate = DietRate(daily_rate=Decimal("45"), currency="PLN", breakfast_count=10)
        result = self.calculator.calculate(planned(54), rate)

        self.assertEqual(result.breakfast_deduction, Decimal("105.00"))
        self.assertEqual(result.total_diet, Decimal("0.00"))

    def test_total_diet_is_non_decreasing_in_duration(self):
        rate = DietRate(daily_rate=Decimal("45"), currency="PLN", breakfast_count=1)
        previous = Decimal("0")
        for quarter_hours in range(0, 4 * 80):
            result = self.calculator.calculate(planned(quarter_hours / 4), rate)
            self.assertGreaterEqual(result.total_diet, previous)
            self.assertGreaterEqual(result.total_diet, Decimal("0"))
            previous = result.total_diet

    def test_negative_breakfast_count_is_rejected(self):
        with self.assertRaises(ValueError):
            DietRate(daily_rate=Decimal("45"), currency="PLN", breakfast_count=-1)


class PartialDayMultiplierTestCase(unittest.TestCase):
    def test_closed_ranges(self):
        self.assertEqual(partial_day_multiplier(timedelta(hours=1)), Fraction(1, 3))
        self.assertEqual(partial_day_multiplier(timedelta(hours=7, minutes=59)), Fraction(1, 3))
        self.assertEqual(partial_day_multiplier(timedelta(hours=8)), Fraction(1, 2))
        self.assertEqual(partial_day_multiplier(timedelta(hours=11, minutes=59)), Fraction(1, 2))
        self.assertEqual(partial_day_multiplier(timedelta(hours=12)), Fraction(1))
        self.assertEqual(partial_day_multiplier(timedelta(hours=23)), Fraction(1))


if __name__ == "__main__":
    unittest.main()
