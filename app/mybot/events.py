# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/3 14:00
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Platform-neutral inbound events and the outbound gateway contract
"""
import asyncio
from enum import Enum
from typing import Any, AsyncIterator, List, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field

AUDIO_CONTENT_TYPE_PREFIX = "audio/"


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    url: str
    size: int = 0
    content_type: str | None = None

    @property
    def is_audio(self) -> bool:
        return bool(self.content_type and self.content_type.startswith(AUDIO_CONTENT_TYPE_PREFIX))


class InboundMessage(BaseModel):
    """A message as seen by the router. ``raw`` carries the platform object for the gateway."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    channel_id: str
    guild_id: str | None = None
    author_id: str
    author_name: str
    display_name: str = ""
    author_avatar_url: str | None = None
    author_is_bot: bool = False
    content: str = ""
    attachments: List[Attachment] = Field(default_factory=list)
    is_direct_message: bool = False
    is_public_channel: bool = False
    channel_name: str = ""
    input_project: str | None = None
    """Label of the project when the channel is a project input channel"""
    reference_message_id: str | None = None
    created_at_ms: int = 0
    raw: Any = Field(default=None, exclude=True, repr=False)

    @property
    def audio_attachments(self) -> List[Attachment]:
        return [a for a in self.attachments if a.is_audio]

    @property
    def file_attachments(self) -> List[Attachment]:
        return [a for a in self.attachments if not a.is_audio]

    @property
    def has_audio(self) -> bool:
        return any(a.is_audio for a in self.attachments)


class OutboundFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    data: bytes


class ConfirmationChoice(str, Enum):
    CONFIRM = "confirm"
    CANCEL = "cancel"
    TIMEOUT = "timeout"


class MessageGateway(Protocol):
    """Outbound capabilities the router needs from the chat platform."""

    async def download_attachment(self, attachment: Attachment) -> bytes: ...

    async def delete_message(self, message: InboundMessage) -> bool: ...

    async def send(
        self,
        message: InboundMessage,
        content: str | None = None,
        *,
        files: Sequence[OutboundFile] = (),
        keep_reference: bool = False,
    ) -> Any: ...

    async def send_embed(
        self,
        message: InboundMessage,
        description: str,
        *,
        thumbnail_url: str | None = None,
        keep_reference: bool = False,
    ) -> Any: ...

    async def reply(self, message: InboundMessage, content: str) -> Any: ...

    async def edit(self, handle: Any, content: str) -> None: ...

    async def trigger_typing(self, message: InboundMessage) -> None: ...

    async def send_direct_message(self, user_id: str, content: str) -> None: ...

    async def confirm(
        self, message: InboundMessage, content: str, *, edit: Any = None, timeout: float = 60.0
    ) -> tuple[Any, ConfirmationChoice]:
        """Show confirm / cancel buttons to the author. Returns the message handle and choice."""
        ...


_CLOSED = object()


class QueueEventSource:
    """Inbound events, pushed by the platform client and pulled through async iteration."""

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, event: InboundMessage) -> None:
        if self._closed:
            return
        self._queue.put_nowait(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[InboundMessage]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[InboundMessage]:
        while True:
            event = await self._queue.get()
            if event is _CLOSED:
                return
            yield event
