"""Free-hand signature capture with validity heuristics and PNG export.

The pad keeps stroke geometry separate from the drawing surface. The host
(tkinter window, test harness, ...) feeds pointer events in and tells the pad
when its surface changes size; the pad snapshots the strokes, rebuilds the
surface and replays them once resizing has settled.

A signature is valid when it has at least MIN_POINTS points and the drawn
pixels span at least MIN_BBOX_WIDTH x MIN_BBOX_HEIGHT on the native-size
raster. A single tap or a flat flick does not pass.
"""

import enum
import io
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from PIL import Image, ImageDraw

LOGGER = logging.getLogger(__name__)

MIN_POINTS = 10
MIN_BBOX_WIDTH = 40
MIN_BBOX_HEIGHT = 15

RESIZE_DEBOUNCE_MS = 150

STROKE_WIDTH = 2
STROKE_COLOR = (0, 0, 0, 255)
TRANSPARENT = (0, 0, 0, 0)


class SurfaceUnavailable(RuntimeError):
    """The drawing surface could not be built at the requested size."""


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    x: float
    y: float
    pressure: Optional[float] = None
    time: Optional[float] = None


@dataclass(frozen=True)
class Stroke:
    points: tuple

    def __len__(self):
        return len(self.points)


@dataclass(frozen=True)
class SignatureExport:
    png: bytes
    width: int
    height: int

    def image(self) -> Image.Image:
        return Image.open(io.BytesIO(self.png))


class PadState(enum.Enum):
    EMPTY = "empty"
    DRAWING = "drawing"
    NON_EMPTY = "non_empty"


class Scheduler(Protocol):
    def schedule(self, delay_ms: int, callback: Callable[[], None]): ...

    def cancel(self, token) -> None: ...


# ---------------------------------------------------------------------------
# Raster helpers
# ---------------------------------------------------------------------------

def new_surface(width: int, height: int) -> Image.Image:
    if width <= 0 or height <= 0:
        raise SurfaceUnavailable(f"Cannot build a {width}x{height} surface")
    return Image.new("RGBA", (width, height), TRANSPARENT)


def draw_stroke(draw: ImageDraw.ImageDraw, points) -> None:
    """Paint one stroke. A lone point becomes a dot."""
    if not points:
        return
    if len(points) == 1:
        p = points[0]
        r = STROKE_WIDTH / 2
        draw.ellipse([(p.x - r, p.y - r), (p.x + r, p.y + r)], fill=STROKE_COLOR)
        return
    for a, b in zip(points, points[1:]):
        draw.line([(a.x, a.y), (b.x, b.y)], fill=STROKE_COLOR, width=STROKE_WIDTH)


def alpha_bbox(image: Image.Image):
    """Bounding box (left, top, right, bottom) of non-transparent pixels, or None."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return image.getchannel("A").getbbox()


def rasterize(strokes, width: int, height: int) -> Image.Image:
    image = new_surface(width, height)
    draw = ImageDraw.Draw(image)
    for stroke in strokes:
        draw_stroke(draw, stroke.points)
    return image


# ---------------------------------------------------------------------------
# Signature pad
# ---------------------------------------------------------------------------

class SignatureCapture:
    """Stroke recorder bound to a fixed-size drawing surface."""

    def __init__(self, width: int = 600, height: int = 200,
                 scheduler: Optional[Scheduler] = None):
        self.width = width
        self.height = height
        self.scheduler = scheduler
        self.state = PadState.EMPTY

        self._recording = []
        self._open_points = None
        self._listeners = []

        self._snapshot = None
        self._replay_token = None

        try:
            self.surface = new_surface(width, height)
        except SurfaceUnavailable:
            LOGGER.warning("Signature surface unavailable at %sx%s", width, height)
            self.surface = None

    # --- observers -------------------------------------------------------

    def subscribe(self, listener: Callable[[bool], None]) -> None:
        self._listeners.append(listener)

    def _notify(self):
        empty = self.is_empty()
        for listener in list(self._listeners):
            listener(empty)

    # --- pointer events --------------------------------------------------

    def begin_stroke(self, point: Point) -> None:
        if self.state is PadState.DRAWING:
            # Stale gesture (lost pointer-up): drop it and start over.
            LOGGER.debug("Discarding unfinished stroke of %d points", len(self._open_points))
            self._open_points = None
            self._redraw_surface()
        self._open_points = [point]
        self.state = PadState.DRAWING
        self._paint([point])

    def extend_stroke(self, point: Point) -> None:
        if self.state is not PadState.DRAWING:
            return
        last = self._open_points[-1]
        self._open_points.append(point)
        self._paint([last, point])

    def end_stroke(self) -> None:
        if self.state is not PadState.DRAWING:
            return
        self._recording.append(Stroke(tuple(self._open_points)))
        self._open_points = None
        self.state = PadState.NON_EMPTY
        self._notify()

    def clear(self) -> None:
        self._cancel_replay()
        self._recording = []
        self._open_points = None
        self.state = PadState.EMPTY
        if self.surface is not None:
            self.surface = new_surface(self.width, self.height)
        self._notify()

    # --- queries ---------------------------------------------------------

    @property
    def strokes(self):
        return tuple(self._recording)

    @property
    def open_points(self):
        """Points of the stroke still being drawn; empty when the pen is up."""
        return tuple(self._open_points or ())

    def visible_strokes(self):
        """Everything a host surface should show: committed strokes plus the open one."""
        if self._open_points:
            return self.strokes + (Stroke(self.open_points),)
        return self.strokes

    @property
    def replay_pending(self) -> bool:
        return self._snapshot is not None

    def point_count(self) -> int:
        return sum(len(s) for s in self._recording)

    def is_empty(self) -> bool:
        return not self._recording

    def is_valid(self) -> bool:
        if self.is_empty():
            return False
        if self.point_count() < MIN_POINTS:
            return False
        try:
            image = rasterize(self._recording, self.width, self.height)
        except SurfaceUnavailable:
            return False
        bbox = alpha_bbox(image)
        if bbox is None:
            return False
        left, top, right, bottom = bbox
        return (right - left) >= MIN_BBOX_WIDTH and (bottom - top) >= MIN_BBOX_HEIGHT

    def to_export(self) -> SignatureExport:
        image = rasterize(self._recording, self.width, self.height)
        buf = io.BytesIO()
        image.save(buf, "PNG")
        return SignatureExport(png=buf.getvalue(), width=self.width, height=self.height)

    # --- resize handling -------------------------------------------------

    def resize(self, width: int, height: int) -> None:
        """The host surface changed size; rebuild it and replay strokes later."""
        if self._snapshot is None:
            strokes = list(self._recording)
            if self._open_points:
                strokes.append(Stroke(tuple(self._open_points)))
            self._snapshot = (tuple(strokes), len(self._recording))

        self.width = width
        self.height = height
        try:
            self.surface = new_surface(width, height)
        except SurfaceUnavailable:
            LOGGER.warning("Signature surface unavailable at %sx%s", width, height)
            self.surface = None

        self._cancel_token()
        if self.scheduler is None:
            self._replay()
        else:
            self._replay_token = self.scheduler.schedule(RESIZE_DEBOUNCE_MS, self._replay)

    def _replay(self):
        self._replay_token = None
        if self._snapshot is None:
            return
        snapshot, committed = self._snapshot
        self._snapshot = None

        # A stroke that was open at resize time is either still open or has
        # been committed since, with its full point list, after `committed`.
        self._recording = list(snapshot[:committed]) + self._recording[committed:]
        if self._recording and self.state is PadState.EMPTY:
            self.state = PadState.NON_EMPTY

        self._redraw_surface()
        LOGGER.debug("Replayed %d strokes onto %sx%s surface",
                     len(self._recording), self.width, self.height)
        self._notify()

    def _cancel_token(self):
        if self._replay_token is not None and self.scheduler is not None:
            self.scheduler.cancel(self._replay_token)
        self._replay_token = None

    def _cancel_replay(self):
        self._cancel_token()
        self._snapshot = None

    # --- surface ---------------------------------------------------------

    def _paint(self, points):
        if self.surface is None:
            return
        draw_stroke(ImageDraw.Draw(self.surface), points)

    def _redraw_surface(self):
        try:
            strokes = list(self._recording)
            if self.state is PadState.DRAWING and self._open_points:
                strokes.append(Stroke(tuple(self._open_points)))
            self.surface = rasterize(strokes, self.width, self.height)
        except SurfaceUnavailable:
            self.surface = None


def replay_strokes(pad: SignatureCapture, strokes) -> SignatureCapture:
    """Feed recorded [[x, y], ...] point lists through the pad as gestures."""
    for stroke in strokes:
        if not stroke:
            continue
        first, *rest = stroke
        pad.begin_stroke(Point(*first))
        for xy in rest:
            pad.extend_stroke(Point(*xy))
        pad.end_stroke()
    return pad


def dump_recording(pad: SignatureCapture) -> dict:
    """Serializable form of the pad's strokes: {"width", "height", "strokes"}."""
    return {
        "width": pad.width,
        "height": pad.height,
        "strokes": [[[p.x, p.y] for p in stroke.points] for stroke in pad.strokes],
    }


def load_recording(data: dict, scheduler: Optional[Scheduler] = None) -> SignatureCapture:
    pad = SignatureCapture(int(data.get("width", 600)), int(data.get("height", 200)),
                           scheduler=scheduler)
    return replay_strokes(pad, data.get("strokes", []))
