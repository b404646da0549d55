import logging
import time
from typing import List, Optional

from bibliogest.database import Store, create_document
from bibliogest.schemas import ChatMessage, User

logger = logging.getLogger(__name__)


def send_message(store: Store, user: User, chat_id: str, text: str, timestamp: Optional[int] = None) -> ChatMessage:
    message = ChatMessage(chat_id=chat_id, user=user.id, client_name=user.id, text=text)
    if timestamp is not None:
        message.timestamp = timestamp
    message.id = create_document(store.chat_messages, message)
    return message


def get_messages(store: Store, chat_id: str) -> List[ChatMessage]:
    cursor = store.chat_messages.find({"chat_id": chat_id}).sort("timestamp", 1)
    return [ChatMessage.from_document(doc) for doc in cursor]


def delete_past_messages(store: Store, current_user: User, now: Optional[int] = None) -> int:
    """Delete the user's messages stamped strictly before ``now`` (epoch seconds)."""
    if now is None:
        now = int(time.time())
    res = store.chat_messages.delete_many({"user": current_user.id, "timestamp": {"$lt": now}})
    logger.debug("Deleted %d past messages for %s", res.deleted_count, current_user.id)
    return res.deleted_count
