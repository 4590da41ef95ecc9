from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction

from booking.models import Hall, Reservation, Table

# Tables per hall: (capacity, shape). Laid out left to right in rows of four.
HALL_LAYOUTS = {
    "white": [(4, "round"), (4, "round"), (2, "square"), (2, "square"), (6, "rectangular"), (6, "rectangular")],
    "bar": [(2, "round"), (2, "round"), (2, "round"), (4, "square")],
    "vaulted": [(4, "square"), (4, "square"), (8, "rectangular")],
    "fourth": [(4, "round"), (4, "round"), (4, "round"), (6, "rectangular")],
    "banquet": [(12, "rectangular"), (20, "rectangular")],
}

PER_ROW = 4
SPACING = 120
MARGIN = 40


class Command(BaseCommand):
    help = 'Seed the database with the restaurant halls and their tables'

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete every table and reservation before seeding.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options["reset"]:
            deleted, _ = Reservation.objects.all().delete()
            tables, _ = Table.objects.all().delete()
            self.stdout.write(self.style.WARNING(f"Removed {deleted} reservations and {tables} tables"))

        number = (Table.objects.order_by("-number").values_list("number", flat=True).first() or 0) + 1
        created = 0
        for position, (slug, name, description) in enumerate(settings.FLOOR_PLAN_HALLS):
            hall, _ = Hall.objects.update_or_create(
                id=slug,
                defaults={"name": name, "description": description, "position": position},
            )
            if hall.tables.exists():
                self.stdout.write(f"Hall {hall.name} already has tables, skipping")
                continue

            for index, (capacity, shape) in enumerate(HALL_LAYOUTS.get(slug, [])):
                row, col = divmod(index, PER_ROW)
                width = 120 if shape == "rectangular" else 60
                Table.objects.create(
                    number=number,
                    hall=hall,
                    capacity=capacity,
                    shape=shape,
                    x=MARGIN + col * (SPACING + 40),
                    y=MARGIN + row * SPACING,
                    width=width,
                    height=60,
                )
                number += 1
                created += 1

        self.stdout.write(self.style.SUCCESS(f'Successfully seeded {len(settings.FLOOR_PLAN_HALLS)} halls and {created} tables'))
