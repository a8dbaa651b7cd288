# -*- coding: utf-8 -*-

from .error_handler import log_error_details, notify_user_about_error
from .message_handler import MessageRouter

__all__ = ["MessageRouter", "log_error_details", "notify_user_about_error"]
