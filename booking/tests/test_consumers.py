from channels.db import database_sync_to_async
from channels.testing import WebsocketCommunicator
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import TransactionTestCase

from booking.consumers import FloorPlanConsumer
from booking.models import Hall, Table

User = get_user_model()


class FloorPlanConsumerTests(TransactionTestCase):
    def setUp(self):
        hall = Hall.objects.create(id="white", name="White hall")
        bar = Hall.objects.create(id="bar", name="Bar hall", position=1)
        self.table = Table.objects.create(number=1, hall=hall, capacity=4, x=50, y=80)
        Table.objects.create(number=2, hall=bar, capacity=2)
        self.manager = User.objects.create_user(
            username='manager', email='manager@example.com', password='password123',
            role=User.Roles.MANAGER,
        )
        self.host = User.objects.create_user(
            username='host', email='host@example.com', password='password123', role=User.Roles.HOST,
        )

    async def connect(self, user, path="/ws/floor-plan/?hall=white"):
        communicator = WebsocketCommunicator(FloorPlanConsumer.as_asgi(), path)
        communicator.scope["user"] = user
        connected, _ = await communicator.connect()
        self.assertTrue(connected)
        return communicator

    async def receive_until(self, communicator, event_type, limit=10):
        for _ in range(limit):
            message = await communicator.receive_json_from(timeout=2)
            if message["type"] == event_type:
                return message
        self.fail(f"No {event_type} event received")

    async def test_anonymous_user_is_refused(self):
        communicator = WebsocketCommunicator(FloorPlanConsumer.as_asgi(), "/ws/floor-plan/")
        communicator.scope["user"] = AnonymousUser()
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, 4001)

    async def test_snapshot_of_requested_hall(self):
        communicator = await self.connect(self.host)

        message = await communicator.receive_json_from()

        self.assertEqual(message["type"], "snapshot")
        self.assertEqual(message["data"]["hall"], "white")
        self.assertEqual([t["number"] for t in message["data"]["tables"]], [1])
        await communicator.disconnect()

    async def test_drag_is_committed_to_the_database(self):
        communicator = await self.connect(self.manager)
        await self.receive_until(communicator, "snapshot")

        await communicator.send_json_to({"action": "toggle_edit"})
        message = await self.receive_until(communicator, "edit_mode")
        self.assertTrue(message["data"]["edit_mode"])

        table_id = self.table.pk
        await communicator.send_json_to(
            {"action": "pointerdown", "table_id": table_id, "pointer_id": 1, "x": 100, "y": 100}
        )
        await communicator.send_json_to({"action": "pointermove", "pointer_id": 1, "x": 130, "y": 90})
        moved = await self.receive_until(communicator, "table_moved")
        self.assertEqual(moved["data"], {"id": table_id, "x": 80, "y": 70})

        await communicator.send_json_to({"action": "pointerup", "pointer_id": 1})
        committed = await self.receive_until(communicator, "table_committed")
        self.assertEqual((committed["data"]["x"], committed["data"]["y"]), (80, 70))
        await communicator.disconnect()

        table = await database_sync_to_async(Table.objects.get)(pk=table_id)
        self.assertEqual((table.x, table.y), (80, 70))

    async def test_host_cannot_enter_edit_mode(self):
        communicator = await self.connect(self.host)
        await self.receive_until(communicator, "snapshot")

        await communicator.send_json_to({"action": "toggle_edit"})

        message = await communicator.receive_json_from()
        self.assertEqual(message["type"], "error")
        await communicator.disconnect()

    async def test_malformed_payload_keeps_connection(self):
        communicator = await self.connect(self.host)
        await self.receive_until(communicator, "snapshot")

        await communicator.send_to(text_data="not json")
        message = await communicator.receive_json_from()
        self.assertEqual(message, {"type": "error", "data": {"message": "Invalid payload"}})

        await communicator.send_json_to({"action": "fly"})
        message = await communicator.receive_json_from()
        self.assertEqual(message["type"], "error")

        await communicator.send_json_to({"action": "refresh"})
        message = await communicator.receive_json_from()
        self.assertEqual(message["type"], "snapshot")
        await communicator.disconnect()

    async def test_unknown_table(self):
        communicator = await self.connect(self.manager)
        await self.receive_until(communicator, "snapshot")

        await communicator.send_json_to(
            {"action": "pointerdown", "table_id": 999, "pointer_id": 1, "x": 0, "y": 0}
        )

        message = await communicator.receive_json_from()
        self.assertEqual(message["type"], "error")
        await communicator.disconnect()
