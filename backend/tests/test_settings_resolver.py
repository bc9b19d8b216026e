import unittest
from datetime import date, datetime, timedelta
from unittest import mock

from flask import Flask
from sqlalchemy.exc import OperationalError

from clowee.extensions import db
from clowee.errors import NotFoundError, StorageError, ValidationError
from clowee.models import User, Machine, MachineSettingHistory
from clowee.services import machine_settings_service
from clowee.services.machine_settings_service import SettingsResolver, SettingsSnapshot
from clowee.services.counter_service import CounterDeltaResolver
from clowee.time_utils import today


class SettingsResolverTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            TESTING=True,
        )
        db.init_app(cls.app)
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        from clowee import models  # noqa: F401
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(MachineSettingHistory).delete()
        db.session.query(Machine).delete()
        db.session.query(User).delete()
        db.session.commit()

        self.user = User(username="ops", name="Ops")
        db.session.add(self.user)
        db.session.flush()

        self.machine = Machine(
            name="Claw 1",
            location="Jamuna Future Park",
            installation_date=date(2025, 1, 1),
            coin_price=2.0,
            doll_price=5.0,
            electricity_cost=100.0,
            vat_percentage=10.0,
            maintenance_percentage=5.0,
            owner_profit_share_percentage=40.0,
            clowee_profit_share_percentage=60.0,
            duration="full_month",
        )
        db.session.add(self.machine)
        db.session.commit()
        self.resolver = SettingsResolver(db.session)

    def _history(self, field_name, value, effective_date, created_at=None):
        row = MachineSettingHistory(
            machine_id=self.machine.id,
            field_name=field_name,
            field_value=value,
            effective_date=effective_date,
            created_by_user_id=self.user.id,
        )
        if created_at is not None:
            row.created_at = created_at
        db.session.add(row)
        db.session.commit()
        return row

    def test_falls_back_to_machine_column_without_history(self):
        value = self.resolver.resolve_setting(self.machine.id, "coin_price", date(2025, 3, 1))
        self.assertEqual(value, 2.0)
        self.assertIsInstance(value, float)

    def test_latest_effective_row_on_or_before_date_wins(self):
        self._history("coin_price", "3.0", date(2025, 2, 1))
        self._history("coin_price", "4.0", date(2025, 3, 1))
        self._history("coin_price", "9.0", date(2025, 6, 1))

        self.assertEqual(self.resolver.resolve_setting(self.machine.id, "coin_price", "2025-01-15"), 2.0)
        self.assertEqual(self.resolver.resolve_setting(self.machine.id, "coin_price", "2025-02-01"), 3.0)
        self.assertEqual(self.resolver.resolve_setting(self.machine.id, "coin_price", "2025-05-31"), 4.0)
        self.assertEqual(self.resolver.resolve_setting(self.machine.id, "coin_price", "2025-06-01"), 9.0)

    def test_same_effective_date_latest_written_wins(self):
        self._history("doll_price", "6.0", date(2025, 2, 1), created_at=datetime(2025, 2, 1, 9, 0))
        self._history("doll_price", "7.0", date(2025, 2, 1), created_at=datetime(2025, 2, 1, 10, 0))
        self.assertEqual(self.resolver.resolve_setting(self.machine.id, "doll_price", "2025-02-10"), 7.0)

    def test_same_timestamp_falls_back_to_insert_order(self):
        stamp = datetime(2025, 2, 1, 9, 0)
        self._history("doll_price", "6.0", date(2025, 2, 1), created_at=stamp)
        self._history("doll_price", "8.0", date(2025, 2, 1), created_at=stamp)
        self.assertEqual(self.resolver.resolve_setting(self.machine.id, "doll_price", "2025-02-10"), 8.0)

    def test_alias_field_name_resolves_clowee_share(self):
        self._history("clowee_profit_share_percentage", "55.0", date(2025, 2, 1))
        value = self.resolver.resolve_setting(self.machine.id, "profit_share_percentage", "2025-02-02")
        self.assertEqual(value, 55.0)

    def test_resolve_all_settings_snapshot(self):
        self._history("duration", "half_month", date(2025, 2, 1))
        self._history("vat_percentage", "15.0", date(2025, 2, 1))

        snapshot = self.resolver.resolve_all_settings(self.machine.id, date(2025, 2, 15))
        self.assertIsInstance(snapshot, SettingsSnapshot)
        self.assertEqual(snapshot.as_of, date(2025, 2, 15))
        self.assertEqual(snapshot.duration, "half_month")
        self.assertEqual(snapshot.vat_percentage, 15.0)
        self.assertEqual(snapshot.coin_price, 2.0)
        self.assertEqual(snapshot.to_dict()["as_of"], "2025-02-15")
        self.assertEqual(snapshot.formatted()["coin_price"], "৳2.00")

    def test_unknown_machine(self):
        with self.assertRaises(NotFoundError):
            self.resolver.resolve_all_settings(999, date(2025, 1, 1))

    def test_unknown_field(self):
        with self.assertRaises(ValidationError):
            self.resolver.resolve_setting(self.machine.id, "bogus", date(2025, 1, 1))

    def test_bad_date(self):
        with self.assertRaises(ValidationError):
            self.resolver.resolve_all_settings(self.machine.id, "15/02/2025")

    def test_storage_failure_is_not_masked(self):
        session = mock.Mock()
        session.get.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
        with self.assertRaises(StorageError):
            SettingsResolver(session).resolve_all_settings(1, date(2025, 1, 1))

    def _failing_query_session(self):
        session = mock.Mock()
        session.get.return_value = self.machine
        session.query.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))
        return session

    def test_history_lookup_failure_does_not_fall_back_to_columns(self):
        with self.assertRaises(StorageError):
            SettingsResolver(self._failing_query_session()).resolve_all_settings(self.machine.id, date(2025, 1, 1))

    def test_counter_lookup_failure_raises_storage_error(self):
        resolver = CounterDeltaResolver(self._failing_query_session())
        with self.assertRaises(StorageError):
            resolver.resolve_period_delta(self.machine.id, date(2025, 1, 1), date(2025, 1, 31))

    def test_backdated_entry_keeps_current_column_in_force(self):
        machine_settings_service.add_machine_setting(
            self.machine.id, "coin_price", 3, today() - timedelta(days=10), self.user.id
        )
        machine_settings_service.add_machine_setting(
            self.machine.id, "coin_price", 2.5, today() - timedelta(days=20), self.user.id
        )
        db.session.refresh(self.machine)
        self.assertEqual(self.machine.coin_price, 3.0)
        self.assertEqual(self.resolver.resolve_setting(self.machine.id, "coin_price", today()), 3.0)
        self.assertEqual(
            self.resolver.resolve_setting(self.machine.id, "coin_price", today() - timedelta(days=15)), 2.5
        )

    def test_share_check_uses_share_in_force_after_backdated_entry(self):
        machine_settings_service.add_machine_setting(
            self.machine.id, "clowee_profit_share_percentage", 60, today() - timedelta(days=10), self.user.id
        )
        machine_settings_service.add_machine_setting(
            self.machine.id, "clowee_profit_share_percentage", 30, today() - timedelta(days=20), self.user.id
        )
        db.session.refresh(self.machine)
        self.assertEqual(self.machine.clowee_profit_share_percentage, 60.0)
        with self.assertRaises(ValidationError):
            machine_settings_service.add_machine_setting(
                self.machine.id, "owner_profit_share_percentage", 50, today(), self.user.id
            )

    def test_add_setting_records_history_and_patches_machine(self):
        row = machine_settings_service.add_machine_setting(
            self.machine.id, "profit_share_percentage", "50", "2025-04-01", self.user.id
        )
        self.assertEqual(row.field_name, "clowee_profit_share_percentage")
        self.assertEqual(row.field_value, "50.0")
        self.assertEqual(row.effective_date, date(2025, 4, 1))

        db.session.refresh(self.machine)
        self.assertEqual(self.machine.clowee_profit_share_percentage, 50.0)

        # The value in force before the change is kept as a baseline row
        history = machine_settings_service.get_setting_history(self.machine.id, "clowee_profit_share_percentage")
        self.assertEqual([(r.effective_date, r.field_value) for r in history], [
            (date(2025, 4, 1), "50.0"),
            (date(2025, 1, 1), "60.0"),
        ])
        self.assertEqual(self.resolver.resolve_setting(self.machine.id, "clowee_profit_share_percentage", "2025-03-31"), 60.0)
        self.assertEqual(self.resolver.resolve_setting(self.machine.id, "clowee_profit_share_percentage", "2025-04-01"), 50.0)

    def test_future_dated_setting_leaves_current_value(self):
        machine_settings_service.add_machine_setting(
            self.machine.id, "coin_price", 3, "2999-01-01", self.user.id
        )
        db.session.refresh(self.machine)
        self.assertEqual(self.machine.coin_price, 2.0)
        self.assertEqual(self.resolver.resolve_setting(self.machine.id, "coin_price", "2999-01-01"), 3.0)

    def test_second_change_adds_no_extra_baseline(self):
        machine_settings_service.add_machine_setting(self.machine.id, "coin_price", 3, "2025-02-01", self.user.id)
        machine_settings_service.add_machine_setting(self.machine.id, "coin_price", 4, "2025-03-01", self.user.id)
        rows = machine_settings_service.get_setting_history(self.machine.id, "coin_price")
        self.assertEqual([r.field_value for r in rows], ["4.0", "3.0", "2.0"])

    def test_add_setting_rejects_share_overflow(self):
        with self.assertRaises(ValidationError):
            machine_settings_service.add_machine_setting(
                self.machine.id, "owner_profit_share_percentage", 45, "2025-04-01", self.user.id
            )
        self.assertEqual(db.session.query(MachineSettingHistory).count(), 0)

    def test_add_setting_rejects_out_of_range_value(self):
        with self.assertRaises(ValidationError):
            machine_settings_service.add_machine_setting(
                self.machine.id, "vat_percentage", 120, "2025-04-01", self.user.id
            )

    def test_history_listing_newest_first(self):
        self._history("coin_price", "3.0", date(2025, 2, 1))
        self._history("coin_price", "4.0", date(2025, 3, 1))
        self._history("doll_price", "6.0", date(2025, 2, 1))

        rows = machine_settings_service.get_setting_history(self.machine.id, "coin_price")
        self.assertEqual([r.field_value for r in rows], ["4.0", "3.0"])
        self.assertEqual(len(machine_settings_service.get_all_settings_history(self.machine.id)), 3)
