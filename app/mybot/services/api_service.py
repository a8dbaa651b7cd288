# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/3 11:20
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : HTTP clients of the message database and the Q&A backend
"""
from httpx import AsyncBaseTransport, AsyncClient, HTTPError
from loguru import logger

from models import AskQuestionResponse, DiscordMessageRecord
from mybot.errors import BackendRequestError, PersistenceFailure
from settings import Settings

QA_AGENT_NAME = "Lana"


class BackendClient:
    def __init__(
        self,
        hasura_base_url: str = "",
        hasura_admin_secret: str = "",
        backend_base_url: str = "",
        *,
        timeout: float = 30.0,
        transport: AsyncBaseTransport | None = None,
    ):
        self.hasura_base_url = hasura_base_url.rstrip("/")
        self.backend_base_url = backend_base_url.rstrip("/")
        self._hasura_headers = {"x-hasura-admin-secret": hasura_admin_secret}
        self._client = AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackendClient":
        return cls(
            hasura_base_url=settings.HASURA_BASE_URL,
            hasura_admin_secret=settings.HASURA_ADMIN_SECRET.get_secret_value(),
            backend_base_url=settings.BACKEND_BASE_URL,
            timeout=settings.HTTP_REQUEST_TIMEOUT,
        )

    async def aclose(self):
        await self._client.aclose()

    async def save_discord_message(self, record: DiscordMessageRecord) -> bool:
        """Persist one message. Failures are logged and swallowed, never retried."""
        try:
            await self._post_message(record)
        except Exception as e:
            logger.error(f"Failed to save Discord message {record.message_id}: {e}")
            return False
        return True

    async def _post_message(self, record: DiscordMessageRecord):
        try:
            response = await self._client.post(
                f"{self.hasura_base_url}/api/rest/message",
                json=record.model_dump(mode="json"),
                headers=self._hasura_headers,
            )
            response.raise_for_status()
        except HTTPError as e:
            body = getattr(getattr(e, "response", None), "text", "")
            raise PersistenceFailure(f"{e} {body}".strip()) from e

    async def ask_question(
        self, question: str, user: str, channel_id: str, channel_name: str | None = None
    ) -> AskQuestionResponse:
        payload = {
            "agent": QA_AGENT_NAME,
            "question": question,
            "channel_id": channel_id,
            "channel_name": channel_name,
            "user": user,
        }
        try:
            response = await self._client.post(f"{self.backend_base_url}/answer", json=payload)
            response.raise_for_status()
            return AskQuestionResponse.model_validate(response.json())
        except (HTTPError, ValueError) as e:
            logger.warning(f"Failed to get answer from API: {e}")
            raise BackendRequestError(f"API request failed: {e}") from e

    async def update_project_context(self, project: str, context: str):
        try:
            response = await self._client.put(
                f"{self.hasura_base_url}/api/rest/summary",
                json={"project": project, "context": context},
                headers=self._hasura_headers,
            )
            response.raise_for_status()
        except HTTPError as e:
            logger.warning(f"Failed to update project context: {e}")
            raise BackendRequestError(f"Project context update failed: {e}") from e
