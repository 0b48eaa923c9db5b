"""Render-side slot scene: boxes, tooltips, room bounds, and highlighting.

The scene turns a `DataModel` into plain geometry a 3D front end can draw.
Highlight state lives in a side table keyed by the integer id assigned to
each slot when the scene is built; the table is dropped on every rebuild.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass

from .models import DataModel, SlotGeometry
from .normalize import layout_geometry

BASE_COLOR = 0x6FA8DC
HIGHLIGHT_COLOR = 0xFFD166
HIGHLIGHT_SCALE = 1.05

# Minimum room extents so a sparse layout still sits in a sensible volume.
_MIN_ROOM_X = 10.0
_MIN_ROOM_Y = 12.0
_MIN_ROOM_Z = 3.0


@dataclass(frozen=True, slots=True)
class SlotStyle:
    """Visual style of one slot."""

    color: int = BASE_COLOR
    scale: float = 1.0


BASE_STYLE = SlotStyle()
HIGHLIGHT_STYLE = SlotStyle(color=HIGHLIGHT_COLOR, scale=HIGHLIGHT_SCALE)


@dataclass(frozen=True, slots=True)
class SceneSlot:
    """One drawable box bound to a layout row."""

    slot_id: int
    geometry: SlotGeometry
    tooltip: str

    @property
    def location(self) -> str:
        """Return the slot's LOCATION (empty when the layout row had none)."""

        return self.geometry.location

    @property
    def center(self) -> tuple[float, float, float]:
        """Return the box center in scene axes (x, up, depth)."""

        g = self.geometry
        return (g.x + g.width / 2, g.z + g.height / 2, g.y + g.depth / 2)


@dataclass(frozen=True, slots=True)
class RoomBounds:
    """Axis-aligned bounds of the wireframe room enclosing every slot."""

    xmin: float
    xmax: float
    ymin: float
    ymax: float
    zmin: float
    zmax: float


def slot_tooltip(geometry: SlotGeometry, model: DataModel) -> str:
    """Build the hover text for a slot from its inventory row."""

    inventory = model.inventory_by_location.get(geometry.location) if geometry.location else None
    if inventory is None:
        return f"{geometry.location}\n(no inventory row)"
    lines = [geometry.location, *(f"{name}: {value}" for name, value in inventory.items())]
    return "\n".join(lines)


def room_bounds(geometries: Collection[SlotGeometry]) -> RoomBounds:
    """Return room bounds covering every box plus the minimum extents."""

    return RoomBounds(
        xmin=min([0.0, *(g.x for g in geometries)]),
        xmax=max([_MIN_ROOM_X, *(g.x + g.width for g in geometries)]),
        ymin=min([0.0, *(g.y for g in geometries)]),
        ymax=max([_MIN_ROOM_Y, *(g.y + g.depth for g in geometries)]),
        zmin=0.0,
        zmax=max([_MIN_ROOM_Z, *(g.z + g.height for g in geometries)]),
    )


class SlotScene:
    """Drawable slots for the current model plus their highlight state."""

    def __init__(self) -> None:
        self._slots: list[SceneSlot] = []
        self._styles: dict[int, SlotStyle] = {}
        self._saved_styles: dict[int, SlotStyle] = {}
        self._next_id = 1
        self.bounds = room_bounds([])
        self.focus: SceneSlot | None = None

    @property
    def slots(self) -> tuple[SceneSlot, ...]:
        """Return the slots in layout order."""

        return tuple(self._slots)

    def rebuild(self, model: DataModel) -> None:
        """Replace every slot with fresh ones built from `model`."""

        slots: list[SceneSlot] = []
        for row in model.layout:
            geometry = layout_geometry(row)
            slots.append(SceneSlot(slot_id=self._next_id, geometry=geometry, tooltip=slot_tooltip(geometry, model)))
            self._next_id += 1

        self._slots = slots
        self._styles = {slot.slot_id: BASE_STYLE for slot in slots}
        self._saved_styles = {}
        self.bounds = room_bounds([slot.geometry for slot in slots])
        self.focus = None

    def style_of(self, slot_id: int) -> SlotStyle:
        """Return the current style of a slot."""

        return self._styles[slot_id]

    def highlighted(self) -> list[SceneSlot]:
        """Return slots currently carrying a saved original style."""

        return [slot for slot in self._slots if slot.slot_id in self._saved_styles]

    def clear_highlights(self) -> None:
        """Restore every highlighted slot to its saved style."""

        for slot_id, style in self._saved_styles.items():
            self._styles[slot_id] = style
        self._saved_styles = {}
        self.focus = None

    def highlight(self, locations: Collection[str]) -> list[SceneSlot]:
        """Highlight slots whose LOCATION is in `locations`.

        Returns the highlighted slots in layout order; the first one becomes
        the camera focus.
        """

        self.clear_highlights()
        targets: list[SceneSlot] = []
        for slot in self._slots:
            if slot.location and slot.location in locations:
                self._saved_styles.setdefault(slot.slot_id, self._styles[slot.slot_id])
                self._styles[slot.slot_id] = HIGHLIGHT_STYLE
                targets.append(slot)

        self.focus = targets[0] if targets else None
        return targets
