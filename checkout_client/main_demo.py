# End-to-end self-checkout demo script

import argparse
import time

import cv2

from checkout_client.announcer import LoggingAnnouncer
from checkout_client.config import PipelineConfig, load_config
from checkout_client.data_types import AdjustmentStatus
from checkout_client.exceptions import CheckoutClientError
from checkout_client.logger import configure_logging, get_logger
from checkout_client.overlay import decode_frame, draw_session
from checkout_client.session import CheckoutSession
from checkout_client.transport import SocketIOTransport

logger = get_logger(__name__)

KEY_QUIT = (27, ord("q"))      # ESC or q
KEY_IGNORE = ord("i")          # ignore the first open unstable zone
KEY_REMOVE = ord("-")          # remove one of the last cart line


def _handle_key(key: int, session: CheckoutSession) -> None:
    view = session.view

    if key == KEY_IGNORE and view.open_zones:
        session.request_ignore(view.open_zones[0].zone_key)

    elif key == KEY_REMOVE and view.cart:
        name, line = list(view.cart.items())[-1]
        result = session.adjust_quantity(name, max(0, line.quantity - 1))
        if result.status is AdjustmentStatus.ESCALATED:
            # the assistance workflow lives outside this client
            logger.warning(f"Assistance requested: {result.escalation}")


def run_demo(config: PipelineConfig) -> None:
    """
    End-to-end demo:
      socket.io event -> session -> overlay -> display
    """
    session = CheckoutSession(config, announcer=LoggingAnnouncer())
    transport = SocketIOTransport(config.connection, session)
    transport.connect()

    last_frame = None
    try:
        while True:
            view = session.view
            if view.frame is not None and view.frame is not last_frame:
                last_frame = view.frame
                frame = decode_frame(view.frame)
                if frame is not None and config.display.show:
                    canvas = draw_session(frame, view, config.display.cart_panel_width)
                    cv2.imshow(config.display.window_name, canvas)

            if not config.display.show:
                time.sleep(0.03)
                continue

            key = cv2.waitKey(30) & 0xFF
            if key in KEY_QUIT:
                break
            _handle_key(key, session)
    finally:
        transport.disconnect()
        cv2.destroyAllWindows()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Self-checkout live detection client")
    parser.add_argument(
        "--backend",
        type=str,
        default=None,
        help="Backend URL (overrides CHECKOUT_BACKEND_URL and the config file)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Optional YAML config file",
    )
    parser.add_argument(
        "--no-display",
        action="store_true",
        help="Run headless, only log instructions",
    )
    args = parser.parse_args()

    try:
        cfg = load_config(args.config)
    except CheckoutClientError as e:
        parser.error(str(e))

    if args.backend is not None:
        cfg.connection.backend_url = args.backend
    if args.no_display:
        cfg.display.show = False

    configure_logging(cfg.logging)
    run_demo(cfg)
