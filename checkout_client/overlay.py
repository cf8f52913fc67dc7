# Decoding frames and drawing boxes, instruction and cart onto them

from typing import Optional

import cv2
import numpy as np

from checkout_client.data_types import SessionView, TrackedObject
from checkout_client.logger import get_logger

logger = get_logger(__name__)

# BGR
GREEN = (0, 255, 0)
YELLOW = (0, 255, 255)
RED = (0, 0, 255)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def decode_frame(payload: Optional[bytes]) -> Optional[np.ndarray]:
    """
    Decode the JPEG bytes of a detection_results event.
    Returns None (and logs) on anything undecodable.
    """
    if not payload:
        return None
    buf = np.frombuffer(payload, dtype=np.uint8)
    frame = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if frame is None:
        logger.warning(f"Could not decode frame payload ({len(payload)} bytes)")
    return frame


def draw_tracked_object(frame: np.ndarray, obj: TrackedObject) -> None:
    """
    Box + label for one object. Undetermined objects also get a
    confirmation progress bar under the box.
    """
    h, w = frame.shape[:2]
    x1, y1 = int(obj.bbox.x1), int(obj.bbox.y1)
    x2, y2 = int(obj.bbox.x2), int(obj.bbox.y2)
    color = GREEN if obj.is_confirmed else YELLOW

    cv2.rectangle(frame, (x1, y1), (x2, y2), color, 2)

    label = f"ID:{obj.id} {obj.class_name} {obj.confidence * 100:.1f}% {obj.status}"
    (text_w, text_h), _ = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 0.5, 1)

    # keep the label inside the frame
    text_x = x1
    text_y = y1 - 5
    if text_y < 20:
        text_y = y2 + 20
    if text_x + text_w > w:
        text_x = max(0, w - text_w - 5)

    cv2.rectangle(frame, (text_x, text_y - text_h - 4), (text_x + text_w + 4, text_y + 4), color, -1)
    cv2.putText(frame, label, (text_x + 2, text_y), cv2.FONT_HERSHEY_SIMPLEX, 0.5, BLACK, 1, cv2.LINE_AA)

    if not obj.is_confirmed:
        bar_y = min(h - 1, y2 + 5)
        bar_h = 5
        filled = int((x2 - x1) * (obj.progress / 100.0))
        cv2.rectangle(frame, (x1, bar_y), (x2, bar_y + bar_h), RED, -1)
        if filled > 0:
            cv2.rectangle(frame, (x1, bar_y), (x1 + filled, bar_y + bar_h), GREEN, -1)


def draw_session(frame: np.ndarray, view: SessionView, panel_width: int = 360) -> np.ndarray:
    """
    Draw tracked objects on the frame and append a cart panel on the right.

    frame: numpy array (BGR), modified in place
    view: derived session state for this frame

    Returns:
        New image: frame + cart panel side by side.
    """
    h = frame.shape[0]

    # ----- Draw tracked objects -----
    for obj in view.tracked_objects:
        draw_tracked_object(frame, obj)

    # ----- Instruction and FPS -----
    cv2.putText(frame, view.instruction, (10, 25), cv2.FONT_HERSHEY_SIMPLEX, 0.6, YELLOW, 2, cv2.LINE_AA)
    cv2.putText(frame, f"FPS: {view.fps}", (10, h - 10), cv2.FONT_HERSHEY_SIMPLEX, 0.6, WHITE, 1, cv2.LINE_AA)

    # ----- Cart panel -----
    panel = np.full((h, panel_width, 3), 40, dtype=np.uint8)
    y = 30
    cv2.putText(panel, "Shopping Cart", (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, WHITE, 2, cv2.LINE_AA)
    y += 30
    for name, line in view.cart.items():
        price = "N/A" if line.unit_price is None else f"${line.unit_price:.2f}"
        marker = "*" if line.manually_adjusted else ""
        txt = f"{name}{marker} x{line.quantity} @ {price} = ${line.line_total:.2f}"
        cv2.putText(panel, txt, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.5, WHITE, 1, cv2.LINE_AA)
        y += 25

    cv2.putText(
        panel, f"Total: ${view.total_price:.2f}", (10, h - 50),
        cv2.FONT_HERSHEY_SIMPLEX, 0.7, WHITE, 2, cv2.LINE_AA,
    )
    checkout = "Checkout: ready" if view.checkout_enabled else "Checkout: waiting"
    cv2.putText(
        panel, checkout, (10, h - 20),
        cv2.FONT_HERSHEY_SIMPLEX, 0.6, GREEN if view.checkout_enabled else RED, 1, cv2.LINE_AA,
    )

    return np.hstack([frame, panel])
