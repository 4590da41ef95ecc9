from datetime import date

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from booking.models import Hall, Reservation, Table

User = get_user_model()


class ApiTestCase(APITestCase):
    def setUp(self):
        self.hall = Hall.objects.create(id="white", name="White hall", description="Main hall")
        self.bar = Hall.objects.create(id="bar", name="Bar hall", position=1)
        self.table = Table.objects.create(number=1, hall=self.hall, capacity=4, x=50, y=80)
        self.bar_table = Table.objects.create(number=7, hall=self.bar, capacity=2)

        self.manager = User.objects.create_user(
            username='manager', email='manager@example.com', password='password123',
            role=User.Roles.MANAGER,
        )
        self.host = User.objects.create_user(
            username='host', email='host@example.com', password='password123', role=User.Roles.HOST,
        )
        self.client.force_authenticate(self.manager)


class HallApiTests(ApiTestCase):
    def test_halls_in_display_order(self):
        response = self.client.get("/api/halls/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([h["id"] for h in response.data], ["white", "bar"])

    def test_requires_authentication(self):
        self.client.force_authenticate(None)
        response = self.client.get("/api/halls/")
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertIn("error", response.data)


class TableApiTests(ApiTestCase):
    def test_list_filters_by_hall(self):
        response = self.client.get("/api/tables/", {"hall": "bar"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t["number"] for t in response.data], [7])

    def test_list_includes_reservations_of_the_day(self):
        day = date(2026, 3, 14)
        Reservation.objects.create(
            table=self.table, customer_name="Anna", customer_phone="+79990000000",
            guests=2, date=day, time="19:00",
        )
        response = self.client.get("/api/tables/", {"hall": "white", "date": "2026-03-14"})
        table = response.data[0]
        self.assertEqual(len(table["today_reservations"]), 1)
        self.assertEqual(table["current_reservation"]["customer_name"], "Anna")

        response = self.client.get("/api/tables/", {"hall": "white", "date": "2026-03-15"})
        self.assertEqual(response.data[0]["today_reservations"], [])
        self.assertIsNone(response.data[0]["current_reservation"])

    def test_invalid_date(self):
        response = self.client.get("/api/tables/", {"date": "tomorrow"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_position(self):
        response = self.client.patch(f"/api/tables/{self.table.pk}/", {"x": 80, "y": 70}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual((response.data["x"], response.data["y"]), (80, 70))
        self.table.refresh_from_db()
        self.assertEqual((self.table.x, self.table.y), (80, 70))

    def test_patch_unknown_table(self):
        response = self.client.patch("/api/tables/999/", {"x": 1}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"error": "Table not found"})

    def test_patch_rejects_too_small_size(self):
        response = self.client.patch(f"/api/tables/{self.table.pk}/", {"width": 10}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Invalid data")
        self.assertIn("width", response.data["fields"])

    def test_host_cannot_move_tables(self):
        self.client.force_authenticate(self.host)
        response = self.client.patch(f"/api/tables/{self.table.pk}/", {"x": 0}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn("error", response.data)

    def test_host_can_read_tables(self):
        self.client.force_authenticate(self.host)
        response = self.client.get(f"/api/tables/{self.table.pk}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["number"], 1)

    def test_create_table(self):
        response = self.client.post(
            "/api/tables/", {"number": 12, "hall": "bar", "capacity": 6, "x": 10, "y": 10}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["width"], 60)
        self.assertTrue(Table.objects.filter(number=12, hall=self.bar).exists())

    def test_tables_cannot_be_deleted(self):
        response = self.client.delete(f"/api/tables/{self.table.pk}/")
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_host_sets_status(self):
        self.client.force_authenticate(self.host)
        response = self.client.patch(f"/api/tables/{self.table.pk}/status/", {"status": "occupied"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.table.refresh_from_db()
        self.assertEqual(self.table.status, Table.Status.OCCUPIED)

    def test_invalid_status(self):
        response = self.client.patch(f"/api/tables/{self.table.pk}/status/", {"status": "dirty"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ReservationApiTests(ApiTestCase):
    def payload(self, **extra):
        data = {
            "table": self.table.pk,
            "customer_name": "Anna",
            "customer_phone": "+79990000000",
            "guests": 2,
            "date": "2026-03-14",
            "time": "19:00",
        }
        data.update(extra)
        return data

    def test_create(self):
        response = self.client.post("/api/reservations/", self.payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["time"], "19:00")
        self.assertEqual(response.data["table_number"], 1)
        self.assertEqual(Reservation.objects.get().created_by, self.manager)

    def test_same_slot_is_a_conflict(self):
        self.client.post("/api/reservations/", self.payload(), format="json")
        response = self.client.post("/api/reservations/", self.payload(customer_name="Boris"), format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data, {"error": "Time slot not available"})

    def test_unknown_table(self):
        response = self.client.post("/api/reservations/", self.payload(table=999), format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_missing_table_is_a_field_error(self):
        payload = self.payload()
        del payload["table"]
        response = self.client.post("/api/reservations/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("table", response.data["fields"])

    def test_non_object_body(self):
        response = self.client.post("/api/reservations/", [self.payload()], format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "Invalid data")

    def test_too_many_guests(self):
        response = self.client.post("/api/reservations/", self.payload(guests=9), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("guests", response.data["fields"])

    def test_blank_name(self):
        response = self.client.post("/api/reservations/", self.payload(customer_name="  "), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_by_date(self):
        self.client.post("/api/reservations/", self.payload(), format="json")
        self.client.post("/api/reservations/", self.payload(date="2026-03-15"), format="json")

        response = self.client.get("/api/reservations/", {"date": "2026-03-14"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["date"], "2026-03-14")

    def test_cancel_and_delete(self):
        created = self.client.post("/api/reservations/", self.payload(), format="json").data
        url = f"/api/reservations/{created['id']}/"

        response = self.client.patch(url, {"status": "cancelled"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "cancelled")

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Reservation.objects.exists())


class UserApiTests(ApiTestCase):
    def test_staff_sees_everyone(self):
        response = self.client.get("/api/users/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_host_sees_only_themselves(self):
        self.client.force_authenticate(self.host)
        response = self.client.get("/api/users/")
        self.assertEqual([u["username"] for u in response.data], ["host"])

    def test_host_cannot_promote_themselves(self):
        self.client.force_authenticate(self.host)
        response = self.client.patch(
            f"/api/users/{self.host.pk}/", {"role": "ADMIN", "phone_number": "+79990000001"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["role"], User.Roles.HOST)
        self.host.refresh_from_db()
        self.assertEqual(self.host.role, User.Roles.HOST)
        self.assertEqual(self.host.phone_number, "+79990000001")
        self.assertFalse(self.host.is_staff)
        self.assertFalse(self.host.can_edit_floor_plan)

    def test_manager_assigns_roles(self):
        response = self.client.patch(f"/api/users/{self.host.pk}/", {"role": "MANAGER"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.host.refresh_from_db()
        self.assertEqual(self.host.role, User.Roles.MANAGER)
        self.assertTrue(self.host.can_edit_floor_plan)
