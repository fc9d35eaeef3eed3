"""
Transient user-facing status messages.

Messages are advisory only: showing one never blocks input, and each message
expires on its own after a fixed duration.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from ..core import constants


@dataclass(frozen=True)
class FeedbackMessage:
    """A status message with success or error styling."""

    text: str
    is_error: bool
    expires_at: float

    @property
    def style(self) -> str:
        return "error" if self.is_error else "success"


class FeedbackChannel:
    """Holds at most one auto-clearing status message."""

    def __init__(
        self,
        duration: float = constants.FEEDBACK_DURATION,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None
    ):
        self.duration = duration
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self._message: Optional[FeedbackMessage] = None

    def show(self, text: str, is_error: bool = False, duration: Optional[float] = None) -> FeedbackMessage:
        """Replace the current message with a new one."""
        lifetime = self.duration if duration is None else duration
        self._message = FeedbackMessage(text=text, is_error=is_error, expires_at=self.clock() + lifetime)
        if is_error:
            self.logger.warning(text)
        else:
            self.logger.info(text)
        return self._message

    def success(self, text: str) -> FeedbackMessage:
        return self.show(text, is_error=False)

    def error(self, text: str) -> FeedbackMessage:
        return self.show(text, is_error=True)

    @property
    def current(self) -> Optional[FeedbackMessage]:
        """The visible message, or None once it has expired."""
        if self._message is not None and self.clock() >= self._message.expires_at:
            self._message = None
        return self._message

    @property
    def text(self) -> str:
        message = self.current
        return message.text if message else ""

    def clear(self) -> None:
        self._message = None
