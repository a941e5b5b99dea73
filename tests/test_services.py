from datetime import datetime, timedelta
from decimal import Decimal
import unittest

from delegacje.config import Settings
from delegacje.countries import Country
from delegacje.errors import SnapshotError, UnknownCountryError
from delegacje.models import Advance, Category, ContractType, Transaction, TripStatus
from delegacje.salary import TAX_RATES_2024_2025
from delegacje.services import TripSetupService

START = datetime(2024, 1, 10, 8, 0)


def settings(**overrides):
    s = Settings(**overrides)
    s.init_post_load()
    return s


class TripSetupServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.service = TripSetupService(settings=settings())

    def test_create_trip_freezes_country_rates(self):
        trip = self.service.create_trip(
            "Warsaw",
            START,
            planned_end_datetime=datetime(2024, 1, 12, 14, 0),
            breakfast_count=1,
        )

        self.assertEqual(trip.country_code, "PL")
        self.assertEqual(trip.context.diet_rate.daily_rate, Decimal("45"))
        self.assertEqual(trip.context.diet_rate.currency, "PLN")
        self.assertEqual(trip.context.hotel_limit, Decimal("270"))
        self.assertIs(trip.context.status, TripStatus.ACTIVE)
        self.assertEqual(trip.tax_rates, TAX_RATES_2024_2025)
        self.assertIsNone(trip.salary_result)

    def test_later_table_changes_do_not_touch_existing_trip(self):
        table = {"PL": Country("PL", "Polska", "Poland", "PLN", Decimal("45"), Decimal("270"))}
        service = TripSetupService(settings=settings(), countries=table)
        trip = service.create_trip("Warsaw", START)

        table["PL"] = Country("PL", "Polska", "Poland", "PLN", Decimal("60"), Decimal("400"))

        self.assertEqual(trip.context.diet_rate.daily_rate, Decimal("45"))
        self.assertEqual(trip.context.hotel_limit, Decimal("270"))

    def test_unknown_country(self):
        with self.assertRaises(UnknownCountryError):
            self.service.create_trip("Nowhere", START, country_code="XX")

    def test_salary_snapshot_survives_rate_changes(self):
        trip = self.service.create_trip("Berlin", START, country_code="DE", brutto=Decimal("5000"))
        self.assertEqual(trip.salary_result.netto, Decimal("3835.23"))
        self.assertEqual(trip.country_name, "Niemcy")

        raised = TAX_RATES_2024_2025.model_copy(update={"income_tax_rate": Decimal("0.32")})
        later = TripSetupService(settings=settings(), tax_rates=raised)
        closed = later.close_trip(trip, START + timedelta(days=2))

        self.assertTrue(closed.is_closed)
        self.assertEqual(closed.salary_result.netto, Decimal("3835.23"))
        self.assertEqual(closed.tax_snapshot, trip.tax_snapshot)

    def test_ppk_percentage_defaults_from_settings(self):
        service = TripSetupService(settings=settings(default_ppk_percentage=Decimal("3")))
        trip = service.create_trip("Gdansk", START, brutto=Decimal("5000"), ppk_enabled=True)
        self.assertEqual(trip.salary_result.ppk_employee, Decimal("150.00"))

    def test_b2b_salary_is_flagged_for_manual_accounting(self):
        with self.assertLogs("delegacje.services", level="WARNING"):
            trip = self.service.create_trip(
                "Krakow", START, brutto=Decimal("12000"), contract_type=ContractType.B2B
            )
        self.assertTrue(trip.salary_requires_manual_accounting)
        self.assertIsNone(trip.salary_result)

    def test_breakfast_count_is_mutable_until_closed(self):
        trip = self.service.create_trip("Lodz", START)
        trip = self.service.update_breakfast_count(trip, 2)
        self.assertEqual(trip.context.diet_rate.breakfast_count, 2)

        closed = self.service.close_trip(trip, START + timedelta(hours=30))
        with self.assertRaises(SnapshotError):
            self.service.update_breakfast_count(closed, 3)
        with self.assertRaises(SnapshotError):
            self.service.close_trip(closed, START + timedelta(hours=40))

    def test_balance_for_closed_trip(self):
        trip = self.service.create_trip(
            "Warsaw", START, planned_end_datetime=START + timedelta(hours=10), breakfast_count=1
        )
        closed = self.service.close_trip(trip, datetime(2024, 1, 12, 14, 0))

        balance = self.service.calculate_balance(
            closed,
            [
                Transaction(amount=Decimal("100.00"), category=Category.FOOD),
                Transaction(amount=Decimal("250.00"), category=Category.TRANSPORT),
            ],
            [Advance(amount=Decimal("500.00"))],
        )

        self.assertEqual(balance.diet.total_diet, Decimal("93.75"))
        self.assertEqual(balance.balance, Decimal("243.75"))


if __name__ == "__main__":
    unittest.main()
