# Interfaces for the announcement (speech) side effect

from abc import ABC, abstractmethod
from typing import List

from checkout_client.logger import get_logger

logger = get_logger(__name__)


class BaseAnnouncer(ABC):
    """
    Interface to whatever speaks or displays a new instruction
    (speech synthesis, kiosk banner, ...).
    """

    @abstractmethod
    def announce(self, text: str) -> None:
        """
        Announce a new instruction. Called only when the instruction changed.
        """
        raise NotImplementedError


class NoOpAnnouncer(BaseAnnouncer):
    """
    Silent implementation, for headless runs.
    """

    def announce(self, text: str) -> None:
        pass


class LoggingAnnouncer(BaseAnnouncer):
    """
    Writes announcements to the log instead of speaking them.
    """

    def announce(self, text: str) -> None:
        logger.info(f"Announce: {text}")


class RecordingAnnouncer(BaseAnnouncer):
    """
    Keeps every announcement in order. Handy for tests and replays.
    """

    def __init__(self):
        self.announcements: List[str] = []

    def announce(self, text: str) -> None:
        self.announcements.append(text)
