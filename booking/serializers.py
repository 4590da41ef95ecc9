# booking/serializers.py

from django.utils import timezone
from rest_framework import serializers

from .models import MAX_CAPACITY, MIN_CAPACITY, MIN_TABLE_SIZE, CustomUser, Hall, Reservation, Table


# ==============================================================================
# CustomUser Serializer
# ==============================================================================

class CustomUserSerializer(serializers.ModelSerializer):
    """Serializer for the CustomUser model."""

    full_name = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = CustomUser
        fields = [
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'full_name',
            'role',
            'phone_number',
        ]
        read_only_fields = ['id', 'email']

    def get_fields(self):
        fields = super().get_fields()
        # Roles grant floor plan rights, so only staff may hand them out.
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        if not (user and (user.is_staff or user.is_superuser)):
            fields['role'].read_only = True
        return fields

    def get_full_name(self, obj):
        """Return full name derived from first and last names."""
        return f"{obj.first_name} {obj.last_name}".strip() or obj.username


# ==============================================================================
# Hall & Table Serializers
# ==============================================================================

class HallSerializer(serializers.ModelSerializer):
    class Meta:
        model = Hall
        fields = ['id', 'name', 'description']


class TableSerializer(serializers.ModelSerializer):
    """Full table record, as returned by every read and write of the API."""

    class Meta:
        model = Table
        fields = [
            'id',
            'number',
            'name',
            'hall',
            'capacity',
            'x',
            'y',
            'width',
            'height',
            'shape',
            'status',
            'updated_at',
        ]
        read_only_fields = ['id', 'updated_at']


class TableUpdateSerializer(serializers.ModelSerializer):
    """
    Partial update of the positional and lifecycle fields of a table.

    Values are expected to be clamped by the editor already; anything out of
    range is rejected rather than silently corrected.
    """

    x = serializers.IntegerField(min_value=0, required=False)
    y = serializers.IntegerField(min_value=0, required=False)
    width = serializers.IntegerField(min_value=MIN_TABLE_SIZE, required=False)
    height = serializers.IntegerField(min_value=MIN_TABLE_SIZE, required=False)
    capacity = serializers.IntegerField(min_value=MIN_CAPACITY, max_value=MAX_CAPACITY, required=False)

    class Meta:
        model = Table
        fields = ['x', 'y', 'width', 'height', 'capacity', 'status', 'shape', 'name']

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No table fields to update.")
        return attrs


class TableStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Table.Status.choices)


# ==============================================================================
# Reservation Serializers
# ==============================================================================

class ReservationSerializer(serializers.ModelSerializer):
    table_number = serializers.IntegerField(source='table.number', read_only=True)
    created_by = serializers.StringRelatedField(read_only=True)
    time = serializers.TimeField(format='%H:%M')

    class Meta:
        model = Reservation
        fields = [
            'id',
            'table',
            'table_number',
            'customer_name',
            'customer_phone',
            'guests',
            'date',
            'time',
            'duration',
            'comment',
            'status',
            'created_by',
            'created_at',
        ]
        read_only_fields = ['id', 'created_by', 'created_at']

    def validate_customer_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Customer name is required.")
        return value

    def validate(self, attrs):
        table = attrs.get('table') or getattr(self.instance, 'table', None)
        guests = attrs.get('guests')
        if table is not None and guests is not None and guests > table.capacity:
            raise serializers.ValidationError(
                {'guests': f"Table {table.number} seats at most {table.capacity} guests."}
            )
        return attrs


class TableWithReservationsSerializer(TableSerializer):
    """
    Table record enriched with the reservations of one day.

    The day comes from ``context['date']`` (defaults to today); the current
    reservation is the first active one of that day.
    """

    today_reservations = serializers.SerializerMethodField()
    current_reservation = serializers.SerializerMethodField()

    class Meta(TableSerializer.Meta):
        fields = TableSerializer.Meta.fields + ['today_reservations', 'current_reservation']

    def _reservations(self, obj):
        day = self.context.get('date') or timezone.localdate()
        # Prefetched by services.list_tables; filter in Python to reuse the cache.
        return [r for r in obj.reservations.all() if r.date == day]

    def get_today_reservations(self, obj):
        return ReservationSerializer(self._reservations(obj), many=True).data

    def get_current_reservation(self, obj):
        for reservation in self._reservations(obj):
            if reservation.status == Reservation.Status.ACTIVE:
                return ReservationSerializer(reservation).data
        return None
