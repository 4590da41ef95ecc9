from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models
from django.utils import timezone

# Floor plan geometry limits shared by the ORM, the API and the editor.
MIN_TABLE_SIZE = 40
DEFAULT_TABLE_SIZE = 60
MIN_CAPACITY = 1
MAX_CAPACITY = 20


# =============================================================================
# === USER & STAFF SYSTEM =====================================================
# =============================================================================

phone_regex = RegexValidator(
    regex=r'^\+?1?\d{9,15}$',
    message="Use international format: +999999999. Up to 15 digits."
)


class CustomUser(AbstractUser):
    class Roles(models.TextChoices):
        ADMIN = 'ADMIN', 'Administrator'
        MANAGER = 'MANAGER', 'Manager'
        HOST = 'HOST', 'Host'
        STAFF = 'STAFF', 'General Staff'

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=Roles.choices, default=Roles.STAFF)
    phone_number = models.CharField(validators=[phone_regex], max_length=17, blank=True)

    def save(self, *args, **kwargs):
        if not self.is_superuser:
            self.is_staff = self.role in [self.Roles.MANAGER, self.Roles.ADMIN]
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.username} ({self.role})"

    @property
    def can_edit_floor_plan(self) -> bool:
        """Only managers and administrators may move or resize tables."""
        return self.is_superuser or self.role in [self.Roles.MANAGER, self.Roles.ADMIN]


# =============================================================================
# === HALLS & TABLES ==========================================================
# =============================================================================

class Hall(models.Model):
    """A named zone of the floor plan, e.g. the bar or the banquet hall."""
    id = models.SlugField(max_length=32, primary_key=True)
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=255, blank=True)
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ["position", "name"]

    def __str__(self):
        return self.name


class Table(models.Model):
    class Status(models.TextChoices):
        AVAILABLE = "available", "Available"
        RESERVED = "reserved", "Reserved"
        OCCUPIED = "occupied", "Occupied"

    class Shape(models.TextChoices):
        ROUND = "round", "Round"
        SQUARE = "square", "Square"
        RECTANGULAR = "rectangular", "Rectangular"

    number = models.PositiveIntegerField(unique=True)
    name = models.CharField(max_length=50, blank=True)
    hall = models.ForeignKey(Hall, on_delete=models.PROTECT, related_name="tables")
    capacity = models.PositiveSmallIntegerField(
        default=2,
        validators=[MinValueValidator(MIN_CAPACITY), MaxValueValidator(MAX_CAPACITY)],
    )

    # Top-left corner and size in floor plan pixels.
    x = models.PositiveIntegerField(default=0)
    y = models.PositiveIntegerField(default=0)
    width = models.PositiveIntegerField(
        default=DEFAULT_TABLE_SIZE, validators=[MinValueValidator(MIN_TABLE_SIZE)]
    )
    height = models.PositiveIntegerField(
        default=DEFAULT_TABLE_SIZE, validators=[MinValueValidator(MIN_TABLE_SIZE)]
    )

    shape = models.CharField(max_length=20, choices=Shape.choices, default=Shape.ROUND)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["hall", "number"]

    def __str__(self):
        return f"Table {self.number} ({self.hall_id})"


# =============================================================================
# === RESERVATIONS ============================================================
# =============================================================================

class ReservationQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=Reservation.Status.ACTIVE)

    def on_date(self, day):
        return self.filter(date=day)


class Reservation(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    table = models.ForeignKey(Table, on_delete=models.CASCADE, related_name="reservations")
    customer_name = models.CharField(max_length=120)
    customer_phone = models.CharField(max_length=30)
    guests = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    date = models.DateField(default=timezone.localdate)
    time = models.TimeField()
    duration = models.PositiveIntegerField(default=120, help_text="Length of the booking in minutes.")
    comment = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    created_by = models.ForeignKey(
        "CustomUser",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="reservations",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        ordering = ["date", "time"]
        indexes = [
            models.Index(fields=["table", "date"], name="booking_res_table_date_idx"),
        ]

    def __str__(self):
        return f"{self.customer_name} @ table {self.table.number} ({self.date} {self.time:%H:%M})"
