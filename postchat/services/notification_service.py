import asyncio
import logging
from typing import Iterable, List, Optional
from ..models import Notification
from ..websocket import manager
from .fcm_service import FCMService

logger = logging.getLogger(__name__)

# Giữ tham chiếu tới các task push đang chạy để không bị thu hồi giữa chừng
_background_tasks = set()


class NotificationService:
    """
    Service phát thông báo tới thành viên: lưu Notification, gửi socket và push.
    """

    @staticmethod
    async def create_notification(
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        metadata: dict = None
    ) -> Notification:
        """Lưu một thông báo cho một người nhận."""
        metadata = metadata or {}
        notification = Notification(
            userId=user_id,
            type=notification_type,
            groupId=metadata.get("groupId"),
            title=title,
            message=message,
            metadata=metadata
        )
        await notification.save()
        return notification

    @staticmethod
    async def notify_users(
        user_ids: Iterable[str],
        notification_type: str,
        title: str,
        message: str,
        metadata: Optional[dict] = None
    ) -> List[Notification]:
        """
        Gửi một sự kiện tới nhiều người dùng.
        Thông báo được lưu cho từng người, socket và push chạy theo kiểu best-effort.
        """
        recipients = list(dict.fromkeys(user_ids))
        if not recipients:
            return []

        results = await asyncio.gather(*[
            NotificationService.create_notification(
                user_id=uid,
                notification_type=notification_type,
                title=title,
                message=message,
                metadata=metadata
            )
            for uid in recipients
        ], return_exceptions=True)
        notifications = []
        for uid, result in zip(recipients, results):
            if isinstance(result, Exception):
                logger.warning(f"Saving notification '{notification_type}' for {uid} failed: {result}")
            else:
                notifications.append(result)

        await manager.broadcast_to_users(
            recipients,
            notification_type,
            {"title": title, "message": message, **(metadata or {})}
        )

        # Gửi push trong background (không block response)
        async def send_push_notifications():
            try:
                await FCMService.send_to_users(
                    recipients,
                    title=title,
                    body=message,
                    data={"type": notification_type, **(metadata or {})}
                )
            except Exception as e:
                logger.warning(f"Push notification '{notification_type}' failed: {e}")

        task = asyncio.create_task(send_push_notifications())
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

        return notifications
