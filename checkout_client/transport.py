# Socket.IO connection to the detection backend

from typing import Dict, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from checkout_client.config import ConnectionConfig
from checkout_client.exceptions import TransportConnectionError
from checkout_client.logger import get_logger
from checkout_client.session import CheckoutSession

logger = get_logger(__name__)


class SocketIOTransport:
    """
    Delivers backend events to a CheckoutSession and sends ignore commands.

    Handlers run on the socket.io client's background thread; the session
    serialises them. Reconnects are left to the socket.io client itself.
    """

    def __init__(self, config: ConnectionConfig, session: CheckoutSession):
        self.config = config
        self.session = session
        self.client = socketio.Client(
            reconnection=config.reconnection,
            ssl_verify=config.verify_tls,
        )

        self.client.on("connect", self._on_connect)
        self.client.on("disconnect", self._on_disconnect)
        self.client.on(config.detection_event, self._on_detection_results)
        self.client.on(config.ignore_ack_event, self._on_ignore_ack)

        session.zones.set_emitter(self.emit_ignore)

    def connect(self) -> None:
        logger.info(f"Connecting to {self.config.backend_url}")
        try:
            self.client.connect(self.config.backend_url, transports=["websocket"])
        except SocketIOConnectionError as e:
            raise TransportConnectionError(
                f"Could not connect to {self.config.backend_url}: {e}",
                backend_url=self.config.backend_url,
            ) from e

    def disconnect(self) -> None:
        if self.client.connected:
            self.client.disconnect()

    @property
    def connected(self) -> bool:
        return self.client.connected

    def emit_ignore(self, payload: Dict[str, str]) -> None:
        self.client.emit(self.config.ignore_event, payload)

    # --- handlers ---

    def _on_connect(self) -> None:
        logger.info("Connected to detection backend")

    def _on_disconnect(self, reason: Optional[str] = None) -> None:
        logger.warning(f"Disconnected from detection backend ({reason or 'unknown reason'})")

    def _on_detection_results(self, data) -> None:
        self.session.handle_detection_results(data)

    def _on_ignore_ack(self, data) -> None:
        self.session.handle_ignore_ack(data)
