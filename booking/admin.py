# booking/admin.py
from django import forms
from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html

from . import services
from .models import CustomUser, Hall, Reservation, Table
from .permissions import RoleRestrictedAdmin


# =============================================================================
# === GLOBAL UTILITIES ========================================================
# =============================================================================

@admin.action(description="Mark selected tables as available")
def mark_available(modeladmin, request, queryset):
    # Save one by one so the floor plan gets a table_update for each.
    for table in queryset:
        table.status = Table.Status.AVAILABLE
        table.save(update_fields=["status", "updated_at"])


@admin.action(description="Cancel selected reservations")
def cancel_reservations(modeladmin, request, queryset):
    for reservation in queryset.filter(status=Reservation.Status.ACTIVE):
        reservation.status = Reservation.Status.CANCELLED
        reservation.save(update_fields=["status"])


# =============================================================================
# === USER ADMIN ==============================================================
# =============================================================================

@admin.register(CustomUser)
class CustomUserAdmin(admin.ModelAdmin):
    list_display = ("username", "email", "role", "is_active", "is_staff")
    list_filter = ("role", "is_active")
    search_fields = ("username", "email", "phone_number")
    readonly_fields = ("last_login", "date_joined")
    list_editable = ("is_active",)
    ordering = ("-date_joined",)


# =============================================================================
# === HALL & TABLE ADMIN ======================================================
# =============================================================================

class TableInline(admin.TabularInline):
    model = Table
    extra = 0
    fields = ("number", "name", "capacity", "x", "y", "width", "height", "shape", "status")


@admin.register(Hall)
class HallAdmin(RoleRestrictedAdmin):
    list_display = ("name", "id", "position", "table_count")
    ordering = ("position", "name")
    inlines = [TableInline]

    def table_count(self, obj):
        return obj.tables.count()
    table_count.short_description = "Tables"


@admin.register(Table)
class TableAdmin(RoleRestrictedAdmin):
    list_display = ("number", "hall", "capacity", "status_badge", "x", "y", "width", "height", "updated_at")
    list_filter = ("hall", "status", "shape")
    search_fields = ("number", "name")
    readonly_fields = ("created_at", "updated_at")
    actions = [mark_available]
    ordering = ("hall", "number")

    def status_badge(self, obj):
        colors = {
            Table.Status.AVAILABLE: "#16a34a",
            Table.Status.RESERVED: "#d97706",
            Table.Status.OCCUPIED: "#dc2626",
        }
        return format_html('<b style="color:{}">{}</b>', colors.get(obj.status, "#6b7280"), obj.get_status_display())
    status_badge.short_description = "Status"


# =============================================================================
# === RESERVATION ADMIN =======================================================
# =============================================================================

class UpcomingFilter(admin.SimpleListFilter):
    title = "when"
    parameter_name = "when"

    def lookups(self, request, model_admin):
        return (("today", "Today"), ("upcoming", "Upcoming"), ("past", "Past"))

    def queryset(self, request, queryset):
        today = timezone.localdate()
        if self.value() == "today":
            return queryset.filter(date=today)
        if self.value() == "upcoming":
            return queryset.filter(date__gte=today)
        if self.value() == "past":
            return queryset.filter(date__lt=today)
        return queryset


class ReservationAdminForm(forms.ModelForm):
    """Same slot rule as the API: one active reservation per table, date and time."""

    class Meta:
        model = Reservation
        fields = ["table", "customer_name", "customer_phone", "guests", "date", "time", "duration", "comment", "status"]

    def clean(self):
        cleaned = super().clean()
        table, day, at = cleaned.get("table"), cleaned.get("date"), cleaned.get("time")
        if cleaned.get("status") == Reservation.Status.ACTIVE and table and day and at:
            if services.find_conflict(table, day, at, exclude_id=self.instance.pk):
                raise forms.ValidationError("Time slot not available")
        return cleaned


@admin.register(Reservation)
class ReservationAdmin(RoleRestrictedAdmin):
    form = ReservationAdminForm
    list_display = ("customer_name", "table", "date", "time", "guests", "status", "created_by")
    list_filter = (UpcomingFilter, "status", "table__hall")
    search_fields = ("customer_name", "customer_phone", "table__number")
    readonly_fields = ("created_by", "created_at")
    autocomplete_fields = ["table"]
    actions = [cancel_reservations]
    date_hierarchy = "date"
    ordering = ("-date", "time")

    def save_model(self, request, obj, form, change):
        if not change and obj.created_by_id is None:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)
