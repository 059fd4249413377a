import io
import json
import os
import sys
import unittest
from contextlib import redirect_stdout
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import django


os.environ['DJANGO_SETTINGS_MODULE'] = 'dvdrentalbi.test_settings'
django.setup()

from django.test import SimpleTestCase, TestCase
from dvdrentalbi.models import Film, Payment
from dvdrentalbi.output import render_table, write_csv, write_rows
from dvdrentalbi.router import DvdRentalRouter
from dvdrentalbi.testing import (
    RentalDataBuilder, setup_rental_databases, teardown_rental_databases
)
from manage import (
    build_parser, check_data_command, list_reports_command, parse_as_of,
    report_command, run_all_command
)


def setUpModule():
    setup_rental_databases()


def tearDownModule():
    teardown_rental_databases()


class TestRouter(SimpleTestCase):
    """Rental models always go to the dvdrental alias"""

    router = DvdRentalRouter()
    other = SimpleNamespace(_meta=SimpleNamespace(app_label='auth'))

    def test_reads_and_writes_use_rental_database(self):
        self.assertEqual(self.router.db_for_read(Film), 'dvdrental')
        self.assertEqual(self.router.db_for_write(Payment), 'dvdrental')
        self.assertEqual(Film.objects.db, 'dvdrental')

    def test_other_apps_are_left_alone(self):
        self.assertIsNone(self.router.db_for_read(self.other))
        self.assertIsNone(self.router.allow_migrate('default', 'auth'))
        self.assertIsNone(self.router.allow_relation(Film(), self.other))

    def test_tables_only_synced_on_rental_database(self):
        self.assertTrue(self.router.allow_migrate('dvdrental', 'dvdrentalbi'))
        self.assertFalse(self.router.allow_migrate('default', 'dvdrentalbi'))


class TestOutput(SimpleTestCase):
    """Text, CSV and JSON rendering of report rows"""

    rows = [
        {'category': 'Action', 'total_revenue': Decimal('4.00'), 'month': date(2005, 5, 1), 'growth': None},
        {'category': 'Sci-Fi', 'total_revenue': Decimal('12.50'), 'month': date(2005, 6, 1), 'growth': Decimal('212.50')},
    ]

    def test_render_table(self):
        lines = render_table(self.rows).splitlines()

        self.assertEqual(len(lines), 3)
        self.assertEqual(lines[0].split(), ['category', 'total_revenue', 'month', 'growth'])
        # missing growth renders as an empty cell
        self.assertEqual(lines[1].split(), ['Action', '4.00', '2005-05-01'])
        self.assertEqual(lines[2].split(), ['Sci-Fi', '12.50', '2005-06-01', '212.50'])

    def test_render_keeps_timestamps_readable(self):
        table = render_table([{'rental_id': 1, 'return_date': datetime(2005, 5, 28, 11, 30)},
                              {'rental_id': 2, 'return_date': None}])

        self.assertIn('2005-05-28 11:30:00', table)
        self.assertNotIn('NaT', table)
        self.assertNotIn('None', table)

    def test_render_empty(self):
        self.assertEqual(render_table([]), '(no rows)')

    def test_write_csv(self):
        stream = io.StringIO()
        write_csv(self.rows, stream)

        lines = stream.getvalue().splitlines()
        self.assertEqual(lines[0], 'category,total_revenue,month,growth')
        self.assertEqual(lines[1], 'Action,4.00,2005-05-01,')

    def test_write_json(self):
        stream = io.StringIO()
        write_rows(self.rows, stream, 'json')

        data = json.loads(stream.getvalue())
        self.assertEqual(data[1]['total_revenue'], '12.50')
        self.assertEqual(data[0]['month'], '2005-05-01')
        self.assertIsNone(data[0]['growth'])

    def test_unknown_format(self):
        with self.assertRaises(ValueError):
            write_rows(self.rows, io.StringIO(), 'xlsx')


class TestArguments(SimpleTestCase):

    def test_report_arguments(self):
        args = build_parser().parse_args(['report', 'top-films', '--as-of', '2005-08-01', '--format', 'csv'])

        self.assertEqual(args.command, 'report')
        self.assertEqual(args.name, 'top-films')
        self.assertEqual(args.as_of, date(2005, 8, 1))
        self.assertEqual(args.fmt, 'csv')

    def test_as_of_must_be_a_date(self):
        self.assertEqual(parse_as_of('2006-02-14'), date(2006, 2, 14))
        with redirect_stdout(io.StringIO()), self.assertRaises(SystemExit):
            build_parser().parse_args(['run-all', '--as-of', 'yesterday'])


class CommandTestCase(TestCase):
    databases = ['default', 'dvdrental']

    def setUp(self):
        self.data = RentalDataBuilder()
        customer = self.data.add_customer()
        film = self.data.add_film('ACADEMY DINOSAUR', copies=2, actors=[('PENELOPE', 'GUINESS')])
        self.data.rent(customer, film, datetime(2005, 5, 25, 11, 30),
                       return_date=datetime(2005, 5, 28, 11, 30), amount='2.99')
        self.data.rent(customer, film, datetime(2005, 6, 14, 9, 0))


class TestCheckDataCommand(CommandTestCase):
    """check-data reports row counts and unpaid rentals"""

    def test_counts(self):
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            counts = check_data_command()

        self.assertEqual(counts['Films'], 1)
        self.assertEqual(counts['Inventory'], 2)
        self.assertEqual(counts['Rentals'], 2)
        self.assertEqual(counts['Payments'], 1)
        self.assertEqual(counts['Unpaid rentals'], 1)
        self.assertEqual(counts['Open rentals'], 1)
        self.assertIn('CHECK PASSED WITH WARNINGS', stdout.getvalue())


class TestReportCommands(CommandTestCase):
    """report, run-all and list-reports"""

    def test_list_reports(self):
        with redirect_stdout(io.StringIO()):
            names = list_reports_command()

        self.assertEqual(len(names), 10)
        self.assertEqual(names[0], 'monthly-revenue')

    def test_report_as_json(self):
        stream = io.StringIO()
        report_command('monthly-revenue', fmt='json', stream=stream)

        data = json.loads(stream.getvalue())
        self.assertEqual(data, [{
            'month': '2005-05-01',
            'total_transactions': 1,
            'monthly_revenue': '2.99',
            'avg_transaction_value': '2.99',
            'prev_month_revenue': None,
            'month_over_month_growth_pct': None,
        }])

    def test_report_as_text(self):
        stream = io.StringIO()
        report_command('late-returns', as_of=date(2005, 7, 1), stream=stream)

        output = stream.getvalue()
        self.assertIn('Late returns and overdue fees', output)
        self.assertIn('late_return_rate_pct', output)

    def test_unknown_report_exits(self):
        with redirect_stdout(io.StringIO()), self.assertRaises(SystemExit) as raised:
            report_command('profit-forecast', stream=io.StringIO())

        self.assertEqual(raised.exception.code, 1)

    def test_run_all(self):
        stream = io.StringIO()
        results = run_all_command(as_of=date(2005, 7, 1), stream=stream)

        self.assertEqual(len(results), 10)
        self.assertIn('QUESTION 10:', stream.getvalue())
        self.assertIn('Completed 10 reports', stream.getvalue())


if __name__ == '__main__':
    result = unittest.main(exit=False, verbosity=2).result
    sys.exit(0 if result.wasSuccessful() else 1)
