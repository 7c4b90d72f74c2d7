import logging
import httpx
from typing import List, Optional, Dict, Any
from google.oauth2 import service_account
import google.auth.exceptions
import google.auth.transport.requests
from ..configs import get_firebase_service_account
from ..models import User
from ..utils import parse_object_id

logger = logging.getLogger(__name__)


class FCMService:
    """Service để gửi push notification qua Firebase Cloud Messaging"""

    FCM_SCOPES = ['https://www.googleapis.com/auth/firebase.messaging']
    _credentials = None

    @staticmethod
    def _load_service_account() -> Optional[service_account.Credentials]:
        info = get_firebase_service_account()
        if info is None:
            logger.warning("Firebase service account credentials not found in environment")
            return None
        try:
            return service_account.Credentials.from_service_account_info(info, scopes=FCMService.FCM_SCOPES)
        except ValueError as e:
            logger.warning(f"Invalid Firebase service account: {e}")
            return None

    @staticmethod
    async def _get_access_token() -> Optional[str]:
        """
        Lấy access token từ Firebase service account (OAuth2).
        Token được cache và refresh khi hết hạn.
        """
        try:
            if not FCMService._credentials:
                FCMService._credentials = FCMService._load_service_account()
                if not FCMService._credentials:
                    return None

            if not FCMService._credentials.valid:
                request = google.auth.transport.requests.Request()
                FCMService._credentials.refresh(request)

            return FCMService._credentials.token
        except google.auth.exceptions.RefreshError as e:
            logger.warning(f"Error getting FCM access token: {e}")
            return None

    @staticmethod
    async def send_notification(
        device_tokens: List[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        token_to_user_map: Optional[Dict[str, User]] = None,
    ) -> tuple[List[str], List[str]]:
        """
        Gửi push notification (data-only) tới danh sách device tokens.

        Returns:
            (các token gửi thành công, các token gửi thất bại)
        """
        if not device_tokens:
            return [], []

        access_token = await FCMService._get_access_token()
        if not access_token:
            return [], []

        project_id = FCMService._credentials.project_id if FCMService._credentials else None
        if not project_id:
            return [], []

        fcm_url = f"https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        }

        successful_tokens = []
        failed_tokens = []

        async with httpx.AsyncClient(timeout=10.0) as client:
            for token in device_tokens:
                message_payload = {
                    "message": {
                        "token": token,
                        "data": {
                            "title": title,
                            "body": body,
                            **{str(k): str(v) for k, v in (data or {}).items()}
                        },
                        "android": {"priority": "high"},
                        "apns": {
                            "headers": {"apns-priority": "10"},
                            "payload": {"aps": {"content-available": 1, "sound": "default"}},
                        }
                    }
                }

                try:
                    response = await client.post(fcm_url, headers=headers, json=message_payload)
                except httpx.HTTPError as e:
                    logger.warning(f"FCM request failed: {e}")
                    failed_tokens.append(token)
                    continue

                if response.status_code == 200:
                    successful_tokens.append(token)
                    continue

                failed_tokens.append(token)
                # 400/404: token không còn hợp lệ, gỡ khỏi người dùng
                if response.status_code in (400, 404) and token_to_user_map and token in token_to_user_map:
                    await User.get_motor_collection().update_one(
                        {"_id": token_to_user_map[token].id},
                        {"$pull": {"deviceTokens": token}}
                    )

        return successful_tokens, failed_tokens

    @staticmethod
    async def send_to_users(
        user_ids: List[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None
    ) -> int:
        """
        Gửi push notification tới tất cả thiết bị của các người dùng.

        Returns:
            Số lượng notifications đã gửi thành công
        """
        object_ids = [oid for oid in (parse_object_id(uid) for uid in user_ids) if oid]
        if not object_ids:
            return 0

        users = await User.find({"_id": {"$in": object_ids}}).to_list()

        # Lưu mapping token -> user để xóa token không hợp lệ sau này
        token_to_user_map = {}
        for user in users:
            for token in user.deviceTokens:
                token_to_user_map[token] = user

        if not token_to_user_map:
            return 0

        successful_tokens, _ = await FCMService.send_notification(
            device_tokens=list(token_to_user_map.keys()),
            title=title,
            body=body,
            data=data,
            token_to_user_map=token_to_user_map
        )
        return len(successful_tokens)
