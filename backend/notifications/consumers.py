import json
import logging
from channels.generic.websocket import AsyncWebsocketConsumer

from core_backend.config import engine_settings

logger = logging.getLogger(__name__)


class KitchenConsumer(AsyncWebsocketConsumer):
    """
    WebSocket consumer for kitchen display screens.
    Staff sessions join the kitchen group and receive order alerts pushed by
    KitchenNotificationService.
    """

    async def connect(self):
        user = self.scope.get("user")

        if user is None or not user.is_authenticated or not user.is_staff:
            logger.warning("KitchenConsumer: Unauthenticated or non-staff connection. Closing.")
            await self.close(code=4003)  # Forbidden
            return

        self.kitchen_group = engine_settings.KITCHEN_GROUP
        await self.channel_layer.group_add(self.kitchen_group, self.channel_name)
        await self.accept()

        logger.info(f"Kitchen screen connected for user {user.pk}")

        await self.send(
            text_data=json.dumps(
                {
                    "type": "connection_established",
                    "group": self.kitchen_group,
                    "timestamp": self.get_timestamp(),
                }
            )
        )

    async def disconnect(self, close_code):
        if hasattr(self, "kitchen_group"):
            await self.channel_layer.group_discard(self.kitchen_group, self.channel_name)
            logger.info(f"Kitchen screen disconnected ({close_code})")

    async def receive(self, text_data):
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            logger.error("Invalid JSON received from kitchen screen")
            return

        message_type = data.get("type")
        if message_type == "ping":
            await self.send(text_data=json.dumps({"type": "pong", "timestamp": self.get_timestamp()}))
        elif message_type == "notification_acknowledged":
            logger.info(f"Kitchen acknowledged order {data.get('order_id')}")
        else:
            logger.warning(f"Unknown message type from kitchen screen: {message_type}")

    # Channel layer event handlers

    async def kitchen_notification(self, event):
        await self.send(
            text_data=json.dumps(
                {"type": event["message_type"], "data": event["data"]}
            )
        )

    def get_timestamp(self):
        from datetime import datetime

        return datetime.now().isoformat()
