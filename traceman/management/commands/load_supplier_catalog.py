"""
Load a department supplier catalog from CSV.

Usage:
    python manage.py load_supplier_catalog DEPT_DATA/Bakery.csv --department BAKERY
    python manage.py load_supplier_catalog DEPT_DATA/Bakery.csv --department 1154 --replace
"""

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from traceman.departments import normalize_department
from traceman.models import SupplierProduct
from traceman.services.suppliers import parse_catalog_csv
from traceman.signals import DATA_UPDATED, production_events


class Command(BaseCommand):
    help = "Loads supplier catalog rows from a department CSV export"

    def add_arguments(self, parser):
        parser.add_argument("csv_path", help="Path to the CSV file")
        parser.add_argument(
            "--department",
            required=True,
            help="Department tag, name or numeric code",
        )
        parser.add_argument(
            "--replace",
            action="store_true",
            help="Delete the department's existing rows first",
        )

    def handle(self, *args, **options):
        department = normalize_department(options["department"])
        try:
            with open(options["csv_path"], newline="", encoding="utf-8-sig") as stream:
                rows = parse_catalog_csv(stream, department)
        except OSError as e:
            raise CommandError(f"Cannot read {options['csv_path']}: {e}") from e

        with transaction.atomic():
            if options["replace"]:
                deleted, _ = SupplierProduct.objects.filter(department=department).delete()
                self.stdout.write(f"Deleted {deleted} existing rows for {department}")
            SupplierProduct.objects.bulk_create([SupplierProduct.from_record(row) for row in rows])

        production_events.publish(DATA_UPDATED, department, reason="supplier catalog loaded")
        self.stdout.write(self.style.SUCCESS(f"Loaded {len(rows)} supplier rows for {department}"))
