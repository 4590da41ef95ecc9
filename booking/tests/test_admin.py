from datetime import date, time

from django.test import TestCase

from booking.admin import ReservationAdminForm
from booking.models import Hall, Reservation, Table


class ReservationAdminFormTests(TestCase):
    def setUp(self):
        hall = Hall.objects.create(id="white", name="White hall")
        self.table = Table.objects.create(number=1, hall=hall, capacity=4)
        self.booked = Reservation.objects.create(
            table=self.table, customer_name="Anna", customer_phone="+79990000000",
            guests=2, date=date(2026, 3, 14), time=time(19, 0),
        )

    def form_data(self, **extra):
        data = {
            "table": self.table.pk,
            "customer_name": "Boris",
            "customer_phone": "+79990000001",
            "guests": 2,
            "date": "2026-03-14",
            "time": "19:00",
            "duration": 120,
            "comment": "",
            "status": Reservation.Status.ACTIVE,
        }
        data.update(extra)
        return data

    def test_booked_slot_is_rejected(self):
        form = ReservationAdminForm(data=self.form_data())
        self.assertFalse(form.is_valid())
        self.assertIn("Time slot not available", form.non_field_errors())

    def test_cancelled_booking_on_booked_slot_is_allowed(self):
        form = ReservationAdminForm(data=self.form_data(status=Reservation.Status.CANCELLED))
        self.assertTrue(form.is_valid(), form.errors)

    def test_editing_the_booking_itself(self):
        form = ReservationAdminForm(data=self.form_data(customer_name="Anna", guests=3), instance=self.booked)
        self.assertTrue(form.is_valid(), form.errors)

    def test_other_time_is_free(self):
        form = ReservationAdminForm(data=self.form_data(time="20:00"))
        self.assertTrue(form.is_valid(), form.errors)
