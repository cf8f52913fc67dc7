# Core data structures (boxes, tracked objects, zones, cart lines, session view)

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Dict, Optional, Tuple, Union

STATUS_CONFIRMED = "confirmed"
STATUS_UNDETERMINED = "undetermined"


# box coordinates
@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned bounding box in image pixel coordinates.
    (x1, y1) = top-left, (x2, y2) = bottom-right
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return max(0.0, self.x2 - self.x1)

    @property
    def height(self) -> float:
        return max(0.0, self.y2 - self.y1)


@dataclass(frozen=True)
class TrackedObject:
    """
    One candidate item reported by the backend for the current frame.

    history_length is the number of consecutive frames this id has been seen;
    location_hash / unstable_duration tie the object to an unstable zone.
    """
    id: Union[int, str]
    class_name: str
    bbox: BoundingBox
    confidence: float = 0.0
    status: str = STATUS_UNDETERMINED
    progress: float = 0.0
    stability: Optional[float] = None
    is_valid: bool = True
    history_length: int = 0
    location_hash: Optional[str] = None
    unstable_duration: float = 0.0

    @property
    def is_confirmed(self) -> bool:
        return self.status == STATUS_CONFIRMED

    @property
    def is_pending(self) -> bool:
        """Undetermined but valid, i.e. still waiting for confirmation."""
        return self.status == STATUS_UNDETERMINED and self.is_valid


@dataclass(frozen=True)
class FrameStatus:
    is_empty: bool = True
    empty_confidence: float = 1.0


@dataclass(frozen=True)
class UnstableZone:
    """
    A location the backend cannot consistently classify.
    classes maps candidate class name -> occurrences seen at that location.
    """
    zone_key: str
    classes: Dict[str, int] = field(default_factory=dict)
    unstable_duration: float = 0.0


@dataclass(frozen=True)
class CartSeed:
    """
    Partial cart line sent by the backend in confirmed_objects.
    Only used to enrich price / image of lines the client already owns.
    """
    item_name: str
    unit_price: Optional[Decimal] = None
    image_path: Optional[str] = None
    quantity: Optional[int] = None


@dataclass(frozen=True)
class FrameSnapshot:
    """
    Canonical form of one detection_results event.
    """
    frame: Optional[bytes] = None
    tracked_objects: Tuple[TrackedObject, ...] = ()
    confirmed_objects: Dict[str, CartSeed] = field(default_factory=dict)
    undetermined_objects: Tuple[TrackedObject, ...] = ()
    frame_status: FrameStatus = field(default_factory=FrameStatus)
    unstable_zones: Tuple[UnstableZone, ...] = ()

    @property
    def confirmed_in_frame(self) -> List[TrackedObject]:
        return [obj for obj in self.tracked_objects if obj.is_confirmed]

    @property
    def pending_in_frame(self) -> List[TrackedObject]:
        return [obj for obj in self.tracked_objects if obj.is_pending]


@dataclass
class CartLine:
    """
    One row of the shopping cart, keyed by item_name (= detected class).
    unit_price None means the backend has not priced the item yet.
    """
    item_name: str
    quantity: int = 0
    unit_price: Optional[Decimal] = None
    image_path: str = ""
    manually_adjusted: bool = False
    previous_quantity: Optional[int] = None

    @property
    def price(self) -> Decimal:
        return self.unit_price if self.unit_price is not None else Decimal("0")

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class IgnoreAck:
    status: str
    zone_key: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


@dataclass(frozen=True)
class EscalationRecord:
    """
    A manual decrease refused by the self-service flow and handed to staff.
    """
    item_name: str
    current_quantity: int
    requested_quantity: int
    unit_price: Decimal
    decrease_amount: Decimal
    threshold_exceeded: bool = True


class AdjustmentStatus(Enum):
    APPLIED = "applied"
    ESCALATED = "escalated"
    NOT_FOUND = "not_found"
    INVALID = "invalid"


@dataclass(frozen=True)
class AdjustmentResult:
    status: AdjustmentStatus
    line: Optional[CartLine] = None
    escalation: Optional[EscalationRecord] = None

    @property
    def applied(self) -> bool:
        return self.status is AdjustmentStatus.APPLIED


@dataclass(frozen=True)
class SessionView:
    """
    Everything the rendering side needs after one event was processed.
    cart holds copies, so later mutations never leak into a published view.
    """
    tracked_objects: Tuple[TrackedObject, ...] = ()
    cart: Dict[str, CartLine] = field(default_factory=dict)
    total_price: Decimal = Decimal("0")
    instruction: str = ""
    open_zones: Tuple[UnstableZone, ...] = ()
    fps: int = 0
    checkout_enabled: bool = False
    frame: Optional[bytes] = None
