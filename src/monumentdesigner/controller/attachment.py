"""
Surface Attachment Controller
=============================
Keeps every decoration glued to the surface of its host while the host moves,
while the user drags the decoration, and while assets are still loading.

Why is this file needed?
------------------------
1. State machine: Each tracked decoration is DETACHED (no host),
   ATTACHED_IDLE or ATTACHED_DRAGGING. Host-driven pose updates are suspended
   while the user drags.
2. Deferral: Anything that needs the host (its transform, its bounding box)
   waits for `HostAssetProvider.when_ready` and is retried on the next frame
   while the host is still unusable. Nothing here raises for that.
3. Write-back: Local poses go to the store through the `request_pose_update`
   command, at most once per decoration per frame. The `pose_updated` echo of
   our own write is swallowed by a one-shot suppression token.

Frame order (`on_frame`):
    deferred initialisation / drag release / node sync  ->  flush writes
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from typing import Dict, Optional, Sequence, TYPE_CHECKING
import logging

from PySide6.QtCore import QObject, Signal

from monumentdesigner.config import (
    DEFAULT_TEXT_ANCHOR_Y,
    PLACEHOLDER_RASTER_COLOR,
    PLACEHOLDER_RASTER_SIZE,
    ROUND_TRIP_TOLERANCE,
    WRITE_BACK_EPSILON,
)
from monumentdesigner.controller import region_fill
from monumentdesigner.controller.coordinate_sync import default_surface_offset, is_consistent, to_local, to_world
from monumentdesigner.controller.fonts import FontResolver, resolve_line_family
from monumentdesigner.controller.region_fill import FillMode, FillResult, FillSpec, FillTarget
from monumentdesigner.controller.text_layout import GlyphRun, TextLayoutParams, layout_text
from monumentdesigner.model.decoration import ArtPayload, Decoration, FinishVariant, TextPayload
from monumentdesigner.model.geometry_primitives import Pose, Vector, WorldPose
from monumentdesigner.model.raster import RasterBuffer

if TYPE_CHECKING:
    from monumentdesigner.app.host_provider import HostAssetProvider
    from monumentdesigner.app.state import DesignStore
    from monumentdesigner.view.scene_nodes import RenderNode

logger = logging.getLogger(__name__)


class AttachmentState(StrEnum):
    DETACHED = "detached"
    ATTACHED_IDLE = "attached_idle"
    ATTACHED_DRAGGING = "attached_dragging"


@dataclass(frozen=True)
class PendingWrite:
    """The single in-flight store write of one decoration."""
    pose: Pose
    replace_history: bool = False


@dataclass
class TrackedDecoration:
    decoration_id: str
    node: RenderNode
    host_id: Optional[str]
    state: AttachmentState
    initialized: bool = False
    last_finish: Optional[FinishVariant] = None
    pending: Optional[PendingWrite] = None
    suppress_echo: bool = False
    # Work waiting for a usable host
    needs_init: bool = False
    needs_sync: bool = False
    needs_release: bool = False
    needs_finish_sync: bool = False
    # Thickness the local Z was last derived from
    host_thickness: Optional[float] = None


class SurfaceAttachmentController(QObject):
    # Emitted when a decoration's visual content (raster, glyphs) must be rebuilt
    redisplay_requested = Signal(str)
    # (decoration id, new state)
    state_changed = Signal(str, str)

    def __init__(
        self,
        store: DesignStore,
        hosts: HostAssetProvider,
        fonts: Optional[FontResolver] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.store = store
        self.hosts = hosts
        self.fonts = fonts or FontResolver(notify=store.post_notice)
        self._tracked: Dict[str, TrackedDecoration] = {}
        self._aspect_applied: set[str] = set()
        self._closed = False

        self.store.pose_updated.connect(self._on_pose_updated)
        self.store.properties_changed.connect(self._on_properties_changed)
        self.store.decoration_removed.connect(self._on_decoration_removed)
        self.store.selection_changed.connect(self.on_selection_changed)
        self.hosts.transform_changed.connect(self._on_host_transform_changed)
        self.hosts.host_removed.connect(self._on_host_removed)

    # ------------------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------------------

    def attach_decoration(self, decoration_id: str, node: RenderNode) -> TrackedDecoration:
        """Start managing the render node of a decoration held by the store."""
        decoration = self.store.get(decoration_id)
        if decoration.host_id is None:
            rec = TrackedDecoration(decoration_id, node, None, AttachmentState.DETACHED)
            self._tracked[decoration_id] = rec
            world = to_world(decoration.local_pose, None)
            if world is not None:
                node.set_world_pose(world)
            return rec

        rec = TrackedDecoration(
            decoration_id,
            node,
            decoration.host_id,
            AttachmentState.ATTACHED_IDLE,
            initialized=not decoration.has_default_position(),
            last_finish=self._finish_of(decoration),
            needs_init=decoration.has_default_position(),
            needs_sync=True,
        )
        self._tracked[decoration_id] = rec
        self.hosts.when_ready(decoration.host_id, partial(self._process_id, decoration_id))
        return rec

    def detach(self, decoration_id: str) -> None:
        """Stop managing a decoration. A queued write is dropped."""
        self._tracked.pop(decoration_id, None)

    def tracked(self, decoration_id: str) -> Optional[TrackedDecoration]:
        return self._tracked.get(decoration_id)

    def state_of(self, decoration_id: str) -> Optional[AttachmentState]:
        rec = self._tracked.get(decoration_id)
        return rec.state if rec is not None else None

    def close(self) -> None:
        """Tear down; results arriving afterwards are discarded."""
        self._closed = True
        self._tracked.clear()

    # ------------------------------------------------------------------------------
    # Drag gesture
    # ------------------------------------------------------------------------------

    def begin_drag(self, decoration_id: str) -> bool:
        rec = self._tracked.get(decoration_id)
        if rec is None or rec.state != AttachmentState.ATTACHED_IDLE:
            return False
        self._set_state(rec, AttachmentState.ATTACHED_DRAGGING)
        return True

    def drag_to(self, decoration_id: str, world: WorldPose) -> None:
        """Move the node of a decoration being dragged."""
        rec = self._tracked.get(decoration_id)
        if rec is None or rec.state != AttachmentState.ATTACHED_DRAGGING:
            return
        rec.node.set_world_pose(world)

    def end_drag(self, decoration_id: str) -> None:
        rec = self._tracked.get(decoration_id)
        if rec is None or rec.state != AttachmentState.ATTACHED_DRAGGING:
            return
        rec.needs_release = True
        self._try_release(rec)

    def cancel_drag(self, decoration_id: str) -> None:
        """Drop the gesture without writing back the partial pose."""
        rec = self._tracked.get(decoration_id)
        if rec is None or rec.state != AttachmentState.ATTACHED_DRAGGING:
            return
        rec.needs_release = False
        self._set_state(rec, AttachmentState.ATTACHED_IDLE)
        rec.needs_sync = True
        self._try_sync(rec)
        logger.debug(f"Drag of '{decoration_id}' cancelled.")

    def on_selection_changed(self, selected_id: Optional[str]) -> None:
        """A new selection cancels every drag of another decoration."""
        for rec in list(self._tracked.values()):
            if rec.decoration_id != selected_id and rec.state == AttachmentState.ATTACHED_DRAGGING:
                self.cancel_drag(rec.decoration_id)

    # ------------------------------------------------------------------------------
    # Frame clock
    # ------------------------------------------------------------------------------

    def on_frame(self) -> None:
        """Retry deferred work, then flush at most one write per decoration."""
        if self._closed:
            return
        for rec in list(self._tracked.values()):
            self._process(rec)
        for rec in list(self._tracked.values()):
            self._flush(rec)

    def _process_id(self, decoration_id: str) -> None:
        rec = self._tracked.get(decoration_id)
        if rec is not None and not self._closed:
            self._process(rec)

    def _process(self, rec: TrackedDecoration) -> None:
        if rec.state == AttachmentState.DETACHED or not self.hosts.is_ready(rec.host_id):
            return
        self._note_host_thickness(rec)
        if rec.needs_init:
            self._try_initialize(rec)
        if rec.needs_release:
            self._try_release(rec)
        if rec.needs_finish_sync:
            self._try_finish_sync(rec)
        if rec.needs_sync:
            self._try_sync(rec)

    # ------------------------------------------------------------------------------
    # Pose derivation
    # ------------------------------------------------------------------------------

    def _local_pose(self, rec: TrackedDecoration, decoration: Decoration) -> Pose:
        return rec.pending.pose if rec.pending is not None else decoration.local_pose

    def _try_sync(self, rec: TrackedDecoration) -> None:
        """Project the (pending or stored) local pose onto the node. No write-back."""
        if rec.state != AttachmentState.ATTACHED_IDLE:
            return
        decoration = self.store.find(rec.decoration_id)
        host = self.hosts.get_world_transform(rec.host_id)
        if decoration is None or host is None:
            return
        if host.is_degenerate():
            logger.debug(f"Host '{rec.host_id}' transform degenerate, '{rec.decoration_id}' waits.")
            return

        rec.needs_sync = False
        local = self._local_pose(rec, decoration)
        world = to_world(local, host)
        if world is None:
            logger.error(f"Non-finite world pose for '{rec.decoration_id}', keeping the previous one.")
            return
        rec.node.set_world_pose(world)

    def _try_initialize(self, rec: TrackedDecoration) -> None:
        """Put a freshly created decoration on the host's front plane, once."""
        if rec.state != AttachmentState.ATTACHED_IDLE:
            return
        decoration = self.store.find(rec.decoration_id)
        surface = self.hosts.get_surface(rec.host_id)
        if decoration is None or surface is None:
            return

        finish = self._finish_of(decoration)
        offset = default_surface_offset(surface.thickness, finish)
        if offset is None:
            logger.debug(f"Host '{rec.host_id}' has no usable thickness yet, '{rec.decoration_id}' waits.")
            return

        anchor_y = DEFAULT_TEXT_ANCHOR_Y if isinstance(decoration.payload, TextPayload) else 0.0
        rec.needs_init = False
        rec.initialized = True
        rec.last_finish = finish
        pose = Pose(position=Vector(0.0, anchor_y, offset), rotation=decoration.rotation)
        self._queue_write(rec, pose, replace_history=True)
        logger.debug(f"Initialised '{rec.decoration_id}' at local z={offset:.4f}.")

    def _try_release(self, rec: TrackedDecoration) -> None:
        """Convert the dragged node pose back into a local pose and queue it."""
        host = self.hosts.get_world_transform(rec.host_id)
        if host is None or host.is_degenerate():
            logger.debug(f"Drag release of '{rec.decoration_id}' deferred, host not usable.")
            return

        rec.needs_release = False
        self._set_state(rec, AttachmentState.ATTACHED_IDLE)
        world = rec.node.world_pose()
        local = to_local(world, host) if world is not None else None
        if local is None or not is_consistent(local, world, host, ROUND_TRIP_TOLERANCE):
            logger.error(f"Drag of '{rec.decoration_id}' produced an invalid pose, keeping the previous one.")
            rec.needs_sync = True
            self._try_sync(rec)
            return
        self._queue_write(rec, local)

    def _try_finish_sync(self, rec: TrackedDecoration) -> None:
        """Move only the local Z to the standoff of the current finish."""
        if rec.state != AttachmentState.ATTACHED_IDLE:
            return
        decoration = self.store.find(rec.decoration_id)
        surface = self.hosts.get_surface(rec.host_id)
        if decoration is None or surface is None:
            return
        offset = default_surface_offset(surface.thickness, self._finish_of(decoration))
        if offset is None:
            return

        rec.needs_finish_sync = False
        local = self._local_pose(rec, decoration)
        if abs(offset - local.position.z) <= WRITE_BACK_EPSILON:
            return
        self._queue_write(rec, Pose(position=local.position.with_z(offset), rotation=local.rotation))

    def _note_host_thickness(self, rec: TrackedDecoration) -> None:
        """Schedule a Z re-anchor when the host got thicker or thinner."""
        surface = self.hosts.get_surface(rec.host_id)
        if surface is None or default_surface_offset(surface.thickness) is None:
            return
        previous = rec.host_thickness
        rec.host_thickness = surface.thickness
        if rec.initialized and previous is not None and abs(surface.thickness - previous) > WRITE_BACK_EPSILON:
            rec.needs_finish_sync = True
            logger.debug(
                f"Host '{rec.host_id}' resized ({previous:.4f} -> {surface.thickness:.4f}), "
                f"re-anchoring '{rec.decoration_id}'."
            )

    # ------------------------------------------------------------------------------
    # Write-back
    # ------------------------------------------------------------------------------

    def _queue_write(self, rec: TrackedDecoration, pose: Pose, replace_history: bool = False) -> None:
        """Collapse into the decoration's single pending write and show it right away."""
        if rec.pending is not None:
            replace_history = replace_history and rec.pending.replace_history
        rec.pending = PendingWrite(pose, replace_history)
        rec.needs_sync = True
        self._try_sync(rec)

    def _flush(self, rec: TrackedDecoration) -> None:
        pending = rec.pending
        if pending is None:
            return
        rec.pending = None
        rec.suppress_echo = True
        try:
            self.store.request_pose_update(
                rec.decoration_id,
                pending.pose.position,
                pending.pose.rotation,
                replace_history=pending.replace_history,
            )
        finally:
            rec.suppress_echo = False

    # ------------------------------------------------------------------------------
    # Store / host events
    # ------------------------------------------------------------------------------

    def _on_pose_updated(self, decoration_id: str, replace_history: bool) -> None:
        rec = self._tracked.get(decoration_id)
        if rec is None or self._closed:
            return
        if rec.suppress_echo:
            rec.suppress_echo = False
            return
        decoration = self.store.find(decoration_id)
        if decoration is None:
            return
        if rec.state == AttachmentState.DETACHED:
            world = to_world(decoration.local_pose, None)
            if world is not None:
                rec.node.set_world_pose(world)
            return
        if rec.state == AttachmentState.ATTACHED_IDLE:
            # An external write (undo, property panel) wins over ours
            rec.pending = None
            rec.needs_sync = True
            self._try_sync(rec)

    def _on_properties_changed(self, decoration_id: str) -> None:
        rec = self._tracked.get(decoration_id)
        decoration = self.store.find(decoration_id)
        if rec is not None and decoration is not None and rec.state != AttachmentState.DETACHED:
            finish = self._finish_of(decoration)
            if finish != rec.last_finish:
                rec.last_finish = finish
                if rec.initialized:
                    rec.needs_finish_sync = True
                    self._try_finish_sync(rec)
        self.redisplay_requested.emit(decoration_id)

    def _on_decoration_removed(self, decoration_id: str) -> None:
        self._tracked.pop(decoration_id, None)
        self._aspect_applied.discard(decoration_id)

    def _on_host_transform_changed(self, host_id: str) -> None:
        if self._closed:
            return
        for rec in list(self._tracked.values()):
            if rec.host_id != host_id or rec.state == AttachmentState.DETACHED:
                continue
            self._note_host_thickness(rec)
            if rec.state == AttachmentState.ATTACHED_IDLE:
                rec.needs_sync = True
                self._process(rec)

    def _on_host_removed(self, host_id: str) -> None:
        for rec in self._tracked.values():
            if rec.host_id == host_id:
                rec.needs_sync = True
                self.hosts.when_ready(host_id, partial(self._process_id, rec.decoration_id))

    # ------------------------------------------------------------------------------
    # Art rasters
    # ------------------------------------------------------------------------------

    def on_raster_loaded(self, decoration_id: str, buffer: RasterBuffer) -> None:
        """
        Merge an asynchronously loaded raster into its decoration.

        The decoration gets its own `current`; a raster snapshot already held
        by the store (restored design, undo) is re-applied on top.
        """
        decoration = self.store.find(decoration_id)
        if self._closed or decoration is None:
            logger.debug(f"Late raster for '{decoration_id}' discarded.")
            return
        if not isinstance(decoration.payload, ArtPayload):
            logger.warning(f"Raster loaded for non-art decoration '{decoration_id}', ignored.")
            return

        raster = buffer.clone()
        snapshot = self.store.raster_snapshot(decoration_id)
        if snapshot is not None and snapshot.shape == raster.current.shape:
            raster.restore(snapshot)
        decoration.payload.raster = raster

        if decoration_id not in self._aspect_applied:
            self._aspect_applied.add(decoration_id)
            self._adopt_aspect_ratio(decoration, raster.aspect_ratio)
        self.redisplay_requested.emit(decoration_id)

    def on_raster_failed(self, decoration_id: str, message: str) -> None:
        """Report the failure and show a blank placeholder so the decoration stays editable."""
        decoration = self.store.find(decoration_id)
        if self._closed or decoration is None:
            return
        self.store.post_notice(message)
        if isinstance(decoration.payload, ArtPayload) and decoration.payload.raster is None:
            placeholder = RasterBuffer.blank(
                PLACEHOLDER_RASTER_SIZE, PLACEHOLDER_RASTER_SIZE, PLACEHOLDER_RASTER_COLOR
            )
            self.on_raster_loaded(decoration_id, placeholder)

    def _adopt_aspect_ratio(self, decoration: Decoration, aspect: float) -> None:
        """Give the art plane the image's proportions, keeping width and mirroring."""
        if aspect <= 0.0:
            return
        scale = decoration.scale
        sign_x = -1.0 if scale.x < 0 else 1.0
        sign_y = -1.0 if scale.y < 0 else 1.0
        base = abs(scale.x)
        self.store.set_decoration_scale(
            decoration.id,
            Vector(base * sign_x, base / aspect * sign_y, scale.z),
            replace_history=True,
        )

    def apply_fill(
        self,
        decoration_id: str,
        fill: FillSpec,
        mode: FillMode = FillMode.GLOBAL,
        seed: Optional[Sequence[int]] = None,
        target: FillTarget = FillTarget.ALL,
    ) -> FillResult:
        """Recolor an art decoration's raster and hand the result to the store."""
        decoration = self.store.get(decoration_id)
        if not isinstance(decoration.payload, ArtPayload) or decoration.payload.raster is None:
            logger.debug(f"'{decoration_id}' has no raster to fill yet.")
            return FillResult.NO_OP

        raster = decoration.payload.raster
        result = region_fill.apply_fill(raster, fill, mode, seed, target)
        if result.needs_redisplay:
            self.store.set_decoration_raster(decoration_id, raster.snapshot())
            self.redisplay_requested.emit(decoration_id)
        return result

    # ------------------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------------------

    def glyph_run(self, decoration_id: str) -> GlyphRun:
        """
        Lay out an inscription with the advances of its resolved fonts.

        Each display line uses the family that has glyphs for its script, so a
        Latin inscription with a Hangul line measures that line in a Hangul font.
        """
        payload = self._text_payload(decoration_id)
        line_widths = [
            self.fonts.resolve_glyph_widths(resolve_line_family(payload.font_id, line), set(line))
            for line in payload.display_lines()
        ]
        return layout_text(TextLayoutParams.from_payload(payload, line_widths=line_widths))

    def _text_payload(self, decoration_id: str) -> TextPayload:
        decoration = self.store.get(decoration_id)
        if not isinstance(decoration.payload, TextPayload):
            raise ValueError(f"Decoration '{decoration_id}' is not a text decoration.")
        return decoration.payload

    # ------------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------------

    @staticmethod
    def _finish_of(decoration: Decoration) -> FinishVariant:
        if isinstance(decoration.payload, TextPayload):
            return decoration.payload.finish
        return FinishVariant.ENGRAVED

    def _set_state(self, rec: TrackedDecoration, state: AttachmentState) -> None:
        if rec.state == state:
            return
        rec.state = state
        self.state_changed.emit(rec.decoration_id, state.value)
