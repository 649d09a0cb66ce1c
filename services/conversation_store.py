# FILE: services/conversation_store.py
"""
Conversation persistence.

The core only needs add_message / get_messages. Two stores:
- InMemoryConversationStore: default, process-local
- PrismaConversationStore: used when DATABASE_URL is set (see schema.prisma)
"""

import asyncio
import itertools
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from models.message import Conversation, Message
from models.task import utc_now

logger = logging.getLogger("conversation_store")


class ConversationStore(ABC):
    @abstractmethod
    async def create_conversation(self, user_id: str, title: Optional[str] = None) -> Conversation:
        pass

    @abstractmethod
    async def list_conversations(self, user_id: str) -> List[Conversation]:
        pass

    @abstractmethod
    async def add_message(
        self,
        conversation_id: str,
        user_id: str,
        author: str,
        content: str,
        image_url: Optional[str] = None,
        image_prompt: Optional[str] = None,
    ) -> Message:
        pass

    @abstractmethod
    async def get_messages(self, conversation_id: str) -> List[Message]:
        """Messages in chronological order."""

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        return None


# ---------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------
class InMemoryConversationStore(ConversationStore):
    def __init__(self):
        self._lock = asyncio.Lock()
        self._conversations: Dict[str, Conversation] = {}
        self._messages: Dict[str, List[Message]] = {}
        self._ids = itertools.count(1)

    async def create_conversation(self, user_id: str, title: Optional[str] = None) -> Conversation:
        async with self._lock:
            conversation = Conversation(id=str(uuid.uuid4()), user_id=user_id, title=title)
            self._conversations[conversation.id] = conversation
            self._messages[conversation.id] = []
            return conversation

    async def list_conversations(self, user_id: str) -> List[Conversation]:
        async with self._lock:
            owned = [c for c in self._conversations.values() if c.user_id == user_id]
        return sorted(owned, key=lambda c: c.updated_at, reverse=True)

    async def add_message(
        self,
        conversation_id: str,
        user_id: str,
        author: str,
        content: str,
        image_url: Optional[str] = None,
        image_prompt: Optional[str] = None,
    ) -> Message:
        async with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                # First message opens the conversation
                conversation = Conversation(id=conversation_id, user_id=user_id, title=content[:60])
                self._messages[conversation_id] = []

            message = Message(
                id=f"msg-{next(self._ids)}",
                conversation_id=conversation_id,
                user_id=user_id,
                author=author,
                content=content,
                image_url=image_url,
                image_prompt=image_prompt,
            )
            self._messages[conversation_id].append(message)
            self._conversations[conversation_id] = conversation.model_copy(update={"updated_at": utc_now()})
            return message

    async def get_messages(self, conversation_id: str) -> List[Message]:
        async with self._lock:
            return list(self._messages.get(conversation_id, []))


# ---------------------------------------------------------------------
# Prisma
# ---------------------------------------------------------------------
class PrismaConversationStore(ConversationStore):
    """
    Requires a generated Prisma client (`prisma generate`) for schema.prisma.
    """

    def __init__(self, db=None):
        if db is None:
            from prisma import Prisma

            db = Prisma()
        self.db = db

    async def connect(self) -> None:
        await self.db.connect()
        logger.info("✅ Prisma DB connected")

    async def disconnect(self) -> None:
        await self.db.disconnect()
        logger.info("✅ Prisma DB disconnected")

    async def create_conversation(self, user_id: str, title: Optional[str] = None) -> Conversation:
        row = await self.db.conversation.create(data={"userId": user_id, "title": title})
        return _conversation_from_row(row)

    async def list_conversations(self, user_id: str) -> List[Conversation]:
        rows = await self.db.conversation.find_many(
            where={"userId": user_id},
            order={"updatedAt": "desc"},
        )
        return [_conversation_from_row(r) for r in rows]

    async def add_message(
        self,
        conversation_id: str,
        user_id: str,
        author: str,
        content: str,
        image_url: Optional[str] = None,
        image_prompt: Optional[str] = None,
    ) -> Message:
        await self.db.conversation.upsert(
            where={"id": conversation_id},
            data={
                "create": {"id": conversation_id, "userId": user_id, "title": content[:60]},
                "update": {"updatedAt": utc_now()},
            },
        )
        row = await self.db.message.create(
            data={
                "conversationId": conversation_id,
                "userId": user_id,
                "type": author,
                "content": content,
                "imageUrl": image_url,
                "imagePrompt": image_prompt,
            }
        )
        return _message_from_row(row)

    async def get_messages(self, conversation_id: str) -> List[Message]:
        rows = await self.db.message.find_many(
            where={"conversationId": conversation_id},
            order={"createdAt": "asc"},
        )
        return [_message_from_row(r) for r in rows]


def _conversation_from_row(row) -> Conversation:
    return Conversation(
        id=row.id,
        user_id=row.userId,
        title=row.title,
        created_at=row.createdAt,
        updated_at=row.updatedAt,
    )


def _message_from_row(row) -> Message:
    return Message(
        id=row.id,
        conversation_id=row.conversationId,
        user_id=row.userId,
        author=row.type,
        content=row.content,
        image_url=row.imageUrl,
        image_prompt=row.imagePrompt,
        created_at=row.createdAt,
    )
