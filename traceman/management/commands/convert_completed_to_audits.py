"""
Convert completed items left in schedules into audit records.

Usage:
    python manage.py convert_completed_to_audits
    python manage.py convert_completed_to_audits --department HMR
"""

from django.core.management.base import BaseCommand

from traceman.conf import get_store_backend
from traceman.departments import known_departments, normalize_department
from traceman.services.backfill import convert_completed_items


class Command(BaseCommand):
    help = "Builds audit records for completed schedule items and removes them from their schedules"

    def add_arguments(self, parser):
        parser.add_argument(
            "--department",
            help="Only this department (default: every department)",
        )

    def handle(self, *args, **options):
        store = get_store_backend()
        departments = (
            [normalize_department(options["department"])] if options["department"] else known_departments()
        )

        for department in departments:
            report = convert_completed_items(store, department)
            self.stdout.write(
                f"{department}: converted {len(report.converted)}, "
                f"already audited {len(report.skipped_existing)}, "
                f"missing recipe {len(report.skipped_missing_recipe)}"
            )
            for item_id in report.skipped_missing_recipe:
                self.stdout.write(self.style.WARNING(f"  recipe not found for {item_id}"))
        self.stdout.write(self.style.SUCCESS("Conversion finished"))
