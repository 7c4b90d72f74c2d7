from .jwt_service import create_access_token, decode_access_token
from .chat_service import ChatContext, ChatService
from .chat_request_service import ChatRequestService
from .group_service import GroupService
from .message_service import MessageService
from .deletion_service import DeletionService
from .media_classifier import MediaClassifier, ClassifiedUpload, get_media_classifier
from .notification_service import NotificationService
from .fcm_service import FCMService

__all__ = [
    "create_access_token",
    "decode_access_token",
    "ChatContext",
    "ChatService",
    "ChatRequestService",
    "GroupService",
    "MessageService",
    "DeletionService",
    "MediaClassifier",
    "ClassifiedUpload",
    "get_media_classifier",
    "NotificationService",
    "FCMService"
]
