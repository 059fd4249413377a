import argparse
import os
import sys
from datetime import date

import django


def check_data_command():
    """Verify the rental database is reachable and summarise its contents"""
    print("Checking rental database")

    try:
        from django.conf import settings
        from django.db import connections
        from dvdrentalbi.models import (
            Film, Category, Actor, Inventory, Store, Staff, Customer, Rental, Payment
        )

        alias = settings.DVDRENTAL_DATABASE
        print(f"Connecting to {alias}")
        rental_conn = connections[alias]
        rental_conn.ensure_connection()
        print(f"Connected to {rental_conn.vendor} database: {rental_conn.settings_dict['NAME']}")

        print()
        print("Row counts")
        counts = {}
        for label, model in [
            ('Films', Film), ('Categories', Category), ('Actors', Actor),
            ('Inventory', Inventory), ('Stores', Store), ('Staff', Staff),
            ('Customers', Customer), ('Rentals', Rental), ('Payments', Payment),
        ]:
            counts[label] = model.objects.count()
            print(f"  {label}: {counts[label]}")

        # Rentals without a payment are left out of every revenue report
        counts['Unpaid rentals'] = Rental.objects.filter(payment__isnull=True).count()
        counts['Open rentals'] = Rental.objects.filter(return_date__isnull=True).count()

        print()
        if counts['Unpaid rentals']:
            print("CHECK PASSED WITH WARNINGS")
            print()
            print("Warnings:")
            print(f"   {counts['Unpaid rentals']} rentals have no matching payment")
        else:
            print("CHECK PASSED")
        print(f"   {counts['Open rentals']} rentals have not been returned")

        return counts

    except Exception as e:
        print(f"Error checking rental database: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


def list_reports_command():
    """Print the report catalogue"""
    from dvdrentalbi.reports import CATALOGUE

    for number, report in enumerate(CATALOGUE, start=1):
        print(f"{number:>2}. {report.name:<24} {report.question}")
    return [report.name for report in CATALOGUE]


def report_command(name, as_of=None, fmt='text', stream=None):
    """Run one report and write its rows to stdout"""
    stream = stream or sys.stdout

    try:
        from dvdrentalbi.output import write_rows
        from dvdrentalbi.reports import get_report, run_report

        report = get_report(name)
        if fmt == 'text':
            print(report.title, file=stream)
            print(report.question, file=stream)
            print(file=stream)

        rows = run_report(name, as_of=as_of)
        write_rows(rows, stream, fmt)
        return rows

    except Exception as e:
        print(f"Error running report {name}: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


def run_all_command(as_of=None, stream=None):
    """Run every report in catalogue order"""
    stream = stream or sys.stdout
    print("Running all reports", file=stream)

    try:
        from dvdrentalbi.output import render_table
        from dvdrentalbi.reports import CATALOGUE, run_all

        results = run_all(as_of=as_of)
        for number, report in enumerate(CATALOGUE, start=1):
            print(file=stream)
            print(f"QUESTION {number}: {report.question}", file=stream)
            print(render_table(results[report.name]), file=stream)

        print(file=stream)
        print(f"Completed {len(results)} reports", file=stream)
        return results

    except Exception as e:
        print(f"Error running reports: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


def parse_as_of(value):
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from None


def build_parser():
    parser = argparse.ArgumentParser(prog='manage.py', description="DVD rental business reports")
    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('check-data', help="verify the rental database")
    commands.add_parser('list-reports', help="list the report catalogue")

    report = commands.add_parser('report', help="run one report")
    report.add_argument('name')
    report.add_argument('--as-of', type=parse_as_of, default=None,
                        help="reference date used as today, default is the current date")
    report.add_argument('--format', dest='fmt', choices=['text', 'csv', 'json'], default='text')

    run_all = commands.add_parser('run-all', help="run every report")
    run_all.add_argument('--as-of', type=parse_as_of, default=None)

    return parser


def main():

    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'dvdrentalbi.settings')

    # Handle custom commands
    if len(sys.argv) > 1 and sys.argv[1] in ('check-data', 'list-reports', 'report', 'run-all'):
        args = build_parser().parse_args(sys.argv[1:])
        django.setup()
        if args.command == 'check-data':
            check_data_command()
        elif args.command == 'list-reports':
            list_reports_command()
        elif args.command == 'report':
            report_command(args.name, as_of=args.as_of, fmt=args.fmt)
        elif args.command == 'run-all':
            run_all_command(as_of=args.as_of)
        return

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django."
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
