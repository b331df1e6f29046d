"""
Re-resolve supplier details on stored audit records.

Usage:
    python manage.py backfill_audit_suppliers
    python manage.py backfill_audit_suppliers --department BAKERY --overwrite
"""

from django.core.management.base import BaseCommand

from traceman.conf import get_store_backend
from traceman.departments import known_departments, normalize_department
from traceman.services.backfill import backfill_audit_suppliers


class Command(BaseCommand):
    help = "Fills in Unknown suppliers of audit records from the supplier catalog"

    def add_arguments(self, parser):
        parser.add_argument(
            "--department",
            help="Only this department (default: every department)",
        )
        parser.add_argument(
            "--overwrite",
            action="store_true",
            help="Re-resolve every ingredient line, not only Unknown ones",
        )

    def handle(self, *args, **options):
        store = get_store_backend()
        departments = (
            [normalize_department(options["department"])] if options["department"] else known_departments()
        )
        catalog = store.fetch_supplier_catalog()

        for department in departments:
            report = backfill_audit_suppliers(store, department, catalog, overwrite=options["overwrite"])
            self.stdout.write(
                f"{department}: scanned {report.audits_scanned}, "
                f"updated {report.audits_updated} audits ({report.lines_updated} lines)"
            )
        self.stdout.write(self.style.SUCCESS("Supplier backfill finished"))
