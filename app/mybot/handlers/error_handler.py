# -*- coding: utf-8 -*-
"""
@Time    : 2025/9/3 15:10
@Author  : QIN2DIM
@GitHub  : https://github.com/QIN2DIM
@Desc    : Universal fallback when a message cannot be translated
"""
from typing import List, Sequence, Tuple

from loguru import logger

from mybot.errors import (
    ProviderAuthFailed,
    ProviderRateLimited,
    ProviderServerError,
    ProviderUnavailable,
    classify_provider_error,
    describe_failure,
    extract_status_code,
)
from mybot.events import Attachment, InboundMessage, MessageGateway, OutboundFile

FALLBACK_TEMPLATE = "❌ **Translation failed** - {display_name} said:\n\n{content}"

DM_NOTICE_TEMPLATE = (
    "⚠️ Your message couldn't be translated due to {category}. "
    "Your original message has been posted back to the channel."
)


def format_display_name(message: InboundMessage) -> str:
    name = message.display_name or message.author_name
    return f"{name} (<@{message.author_id}>)"


async def collect_files(
    attachments: Sequence[Attachment], gateway: MessageGateway
) -> List[OutboundFile]:
    """Download attachments so they survive the deletion of the original"""
    files = []
    for attachment in attachments:
        data = await gateway.download_attachment(attachment)
        files.append(OutboundFile(filename=attachment.filename, data=data))
    return files


async def salvage_files(
    message: InboundMessage, gateway: MessageGateway
) -> Tuple[List[OutboundFile], bool]:
    """
    Best-effort download of every attachment, audio included.

    Returns the files and whether all of them could be fetched.
    """
    files = []
    complete = True
    for attachment in message.attachments:
        try:
            data = await gateway.download_attachment(attachment)
        except Exception as e:
            logger.warning(f"Could not download attachment {attachment.filename}: {e}")
            complete = False
            continue
        files.append(OutboundFile(filename=attachment.filename, data=data))
    return files, complete


async def notify_user_about_error(
    message: InboundMessage,
    error: BaseException,
    gateway: MessageGateway,
    *,
    files: List[OutboundFile] | None = None,
    original_deleted: bool = False,
) -> None:
    """
    Repost the original content with its attachments, delete the original and tell the
    author privately what kind of failure happened. Never raises.

    `files` are attachments downloaded earlier. When the original is already gone they are
    the only copy left, so nothing is downloaded again.
    """
    fallback = FALLBACK_TEMPLATE.format(
        display_name=format_display_name(message), content=message.content
    )

    complete = True
    if files is None:
        files, complete = await salvage_files(message, gateway)

    try:
        await gateway.send(message, fallback, files=files)
    except Exception as e:
        if not files:
            logger.exception(f"Failed to handle translation error: {e}")
            return
        logger.warning(f"Reposting attachments failed, reposting the text only: {e}")
        complete = False
        try:
            await gateway.send(message, fallback, files=[])
        except Exception as e:
            logger.exception(f"Failed to handle translation error: {e}")
            return

    # Only delete once the content and every attachment are visible again
    if not original_deleted and complete:
        try:
            await gateway.delete_message(message)
        except Exception as e:
            logger.warning(f"Could not delete message {message.id} after fallback: {e}")

    try:
        notice = DM_NOTICE_TEMPLATE.format(category=describe_failure(error))
        await gateway.send_direct_message(message.author_id, notice)
    except Exception as e:
        logger.warning(f"Could not send error notification DM to user: {e}")


def log_error_details(error: BaseException) -> None:
    classified = classify_provider_error(error)
    status = extract_status_code(error)

    if isinstance(classified, ProviderRateLimited):
        # No stack trace, rate limits are expected under load
        logger.warning("Rate limit exceeded - OpenAI API tokens may be exhausted")
        return

    if isinstance(classified, ProviderUnavailable):
        logger.warning("Translation service temporarily unavailable")
    elif isinstance(classified, ProviderAuthFailed):
        logger.error("Authentication failed - API key may be invalid or expired")
    elif isinstance(classified, ProviderServerError):
        logger.error(f"Server error ({status}): {error}")
    else:
        logger.error(f"Translation error ({status or 'unknown'}): {error}")

    logger.opt(exception=error).debug("Translation failure stack trace")
