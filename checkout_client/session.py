# Wires normalizer -> tracker -> cart / instructions for one checkout session

import threading
import time
from typing import Any, Callable, Optional

from checkout_client.announcer import BaseAnnouncer
from checkout_client.cart import CartReconciler
from checkout_client.config import PipelineConfig
from checkout_client.data_types import AdjustmentResult, FrameSnapshot, SessionView
from checkout_client.instructions import InstructionClassifier
from checkout_client.logger import get_logger
from checkout_client.normalizer import normalize_snapshot
from checkout_client.tracker import LifecycleTracker
from checkout_client.zones import IgnoreEmitter, ZoneIgnoreCoordinator

logger = get_logger(__name__)


class FpsCounter:
    """
    Counts events and publishes the count once per elapsed second.
    """

    def __init__(self):
        self.fps: int = 0
        self._count: int = 0
        self._window_start: Optional[float] = None

    def tick(self, now: float) -> int:
        if self._window_start is None:
            self._window_start = now
        self._count += 1
        if now - self._window_start >= 1.0:
            self.fps = self._count
            self._count = 0
            self._window_start = now
        return self.fps


class CheckoutSession:
    """
    One self-checkout session.

    Each inbound event is applied atomically under a single lock:
      detection_results -> normalize -> tracker -> zones -> cart -> instruction
    Manual adjustments and ignore acknowledgements take the same lock, so a
    published SessionView never shows a half-applied change.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        announcer: Optional[BaseAnnouncer] = None,
        emit_ignore: Optional[IgnoreEmitter] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or PipelineConfig()
        self.clock = clock

        self.tracker = LifecycleTracker()
        self.cart = CartReconciler(self.config.cart.escalation_threshold)
        self.classifier = InstructionClassifier(self.config.instructions, announcer)
        self.zones = ZoneIgnoreCoordinator(emit_ignore)
        self.fps = FpsCounter()

        self._lock = threading.Lock()
        self._last_snapshot = FrameSnapshot()
        self._view = SessionView()

    @property
    def view(self) -> SessionView:
        return self._view

    # --- inbound events ---

    def handle_detection_results(self, raw: Any) -> SessionView:
        """
        Process one detection_results payload and return the new view.
        """
        snapshot = normalize_snapshot(raw)

        with self._lock:
            now = self.clock()
            self.tracker.update(snapshot, now)
            open_zones = self.zones.sync(snapshot.unstable_zones)
            self.cart.update(snapshot)
            self.classifier.classify(snapshot, self.tracker, open_zones, now)
            self.fps.tick(now)
            self._last_snapshot = snapshot
            self._view = self._build_view()

        logger.debug(
            f"Frame: {len(snapshot.tracked_objects)} objects, "
            f"{len(snapshot.confirmed_in_frame)} confirmed, "
            f"instruction={self._view.instruction!r}"
        )
        return self._view

    def handle_ignore_ack(self, raw: Any) -> bool:
        with self._lock:
            closed = self.zones.handle_ack(raw)
            if closed:
                self._view = self._build_view()
        return closed

    # --- user actions ---

    def request_ignore(self, zone_key: str) -> bool:
        """Send the ignore command; the zone stays open until acknowledged."""
        return self.zones.request_ignore(zone_key)

    def adjust_quantity(self, item_name: str, new_quantity: int) -> AdjustmentResult:
        with self._lock:
            result = self.cart.adjust_quantity(item_name, new_quantity)
            if result.applied:
                self._view = self._build_view()
        return result

    def reset_override(self, item_name: str) -> bool:
        with self._lock:
            cleared = self.cart.reset_override(item_name)
            if cleared:
                self._view = self._build_view()
        return cleared

    def reset(self) -> None:
        """Start over for the next customer."""
        with self._lock:
            self.tracker.reset()
            self.cart = CartReconciler(self.config.cart.escalation_threshold)
            self.classifier.reset()
            self.zones.reset()
            self.fps = FpsCounter()
            self._last_snapshot = FrameSnapshot()
            self._view = SessionView()
        logger.info("Session reset")

    # --- derived state ---

    def asset_url(self, image_path: str) -> str:
        """URL of a cart line's product image on the backend."""
        name = image_path.replace("\\", "/").split("/")[-1]
        return f"{self.config.connection.backend_url.rstrip('/')}/Assets/{name}"

    def _build_view(self) -> SessionView:
        snapshot = self._last_snapshot
        lines = self.cart.snapshot_lines()
        waiting = snapshot.undetermined_objects or snapshot.pending_in_frame
        checkout_enabled = bool(lines) and not waiting

        return SessionView(
            tracked_objects=snapshot.tracked_objects,
            cart=lines,
            total_price=self.cart.total_price,
            instruction=self.classifier.current,
            open_zones=self.zones.open_zones(),
            fps=self.fps.fps,
            checkout_enabled=checkout_enabled,
            frame=snapshot.frame,
        )
