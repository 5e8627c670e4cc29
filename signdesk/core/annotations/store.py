"""
Page-keyed annotation storage with a single live page and its undo history.
"""
import logging
from enum import Enum
from typing import Dict, List, Mapping, Optional

from signdesk.core.errors import PageOutOfRange

from .models import AnnotationScene
from .undo_redo import UndoHistory

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle of the editing session's live page."""
    IDLE = "idle"        # nothing live
    LOADING = "loading"  # waiting for a page raster
    LIVE = "live"        # one scene is mutable


class AnnotationStore:
    """
    Maps 1-based page numbers to serialized scene snapshots.

    Exactly one page is live at a time. Switching pages serializes the
    live scene before another page is restored; restores are matched to
    the switch that requested them by a generation token so a late page
    render never lands on a different page.
    """

    def __init__(self, total_pages: int, undo_limit: int = 50):
        self.total_pages = total_pages
        self.state = SessionState.IDLE
        self.live_scene: Optional[AnnotationScene] = None
        self.pending_page: Optional[int] = None
        self.generation = 0
        self.history = UndoHistory(undo_limit)
        self._snapshots: Dict[int, str] = {}

    @property
    def live_page(self) -> Optional[int]:
        if self.state is SessionState.LIVE and self.live_scene is not None:
            return self.live_scene.page_number
        return None

    def validate_page(self, page_number: int) -> None:
        if not 1 <= page_number <= self.total_pages:
            raise PageOutOfRange(page_number, self.total_pages)

    # ------------------------------------------------------------------
    # Page switching
    # ------------------------------------------------------------------

    def begin_switch(self, page_number: int) -> int:
        """
        Save the live page and start loading ``page_number``.

        Raises:
            PageOutOfRange: Target is outside ``[1, total_pages]``; nothing changes

        Returns:
            Generation token to pass to :meth:`complete_switch`
        """
        self.validate_page(page_number)

        self._save_live()
        self.live_scene = None
        self.history.reset()

        self.state = SessionState.LOADING
        self.pending_page = page_number
        self.generation += 1
        return self.generation

    def is_current(self, token: int) -> bool:
        return token == self.generation and self.state is SessionState.LOADING

    def complete_switch(self, token: int, width: int, height: int) -> Optional[AnnotationScene]:
        """
        Make the pending page live, sized to its raster.

        Returns:
            The live scene, or None when ``token`` belongs to a superseded switch
        """
        if not self.is_current(token):
            logger.debug("Discarding stale page load (token %s, current %s)", token, self.generation)
            return None

        scene = self._restore(self.pending_page, width, height)
        self.live_scene = scene
        self.pending_page = None
        self.state = SessionState.LIVE
        self.history.reset(scene.serialize())
        return scene

    def switch_to(self, page_number: int, width: int, height: int) -> AnnotationScene:
        """Synchronous save-then-restore for callers that already have the raster size."""
        token = self.begin_switch(page_number)
        return self.complete_switch(token, width, height)

    def close(self) -> None:
        """Invalidate in-flight loads and drop the live scene. Stored pages are kept."""
        self._save_live()
        self.generation += 1
        self.live_scene = None
        self.pending_page = None
        self.state = SessionState.IDLE
        self.history.reset()

    def _save_live(self) -> None:
        if self.state is SessionState.LIVE and self.live_scene is not None:
            self._snapshots[self.live_scene.page_number] = self.live_scene.serialize()

    def _restore(self, page_number: int, width: int, height: int) -> AnnotationScene:
        payload = self._snapshots.get(page_number)
        if payload is None:
            return AnnotationScene(page_number, width, height)

        stored = AnnotationScene.deserialize(payload)
        stored.page_number = page_number
        return stored.rescaled(width, height)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def record(self) -> None:
        """Append the live scene's current state to the undo history."""
        if self.live_scene is None:
            return
        self.history.push(self.live_scene.serialize())

    def can_undo(self) -> bool:
        return self.state is SessionState.LIVE and self.history.can_undo()

    def undo(self) -> Optional[AnnotationScene]:
        """
        Step the live scene back one entry.

        Undoing at the base entry leaves the scene unchanged; an empty
        history yields an empty scene.
        """
        if self.live_scene is None:
            return None

        snapshot = self.history.undo()
        if snapshot is None:
            self.live_scene.clear()
        else:
            self.live_scene.objects = AnnotationScene.deserialize(snapshot).objects
        return self.live_scene

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def commit(self) -> None:
        """Write the live scene into the store without leaving the page."""
        self._save_live()

    def snapshots(self) -> Dict[int, str]:
        """Committed copy of every stored page snapshot."""
        self.commit()
        return dict(self._snapshots)

    def load_snapshots(self, snapshots: Mapping[int, str]) -> None:
        """Replace stored (non-live) pages, e.g. from a saved draft."""
        for page_number in snapshots:
            self.validate_page(page_number)
        live = self.live_page
        self._snapshots = {
            page: payload for page, payload in snapshots.items() if page != live
        }

    def scene_for(self, page_number: int) -> Optional[AnnotationScene]:
        if page_number == self.live_page:
            return self.live_scene
        payload = self._snapshots.get(page_number)
        return AnnotationScene.deserialize(payload) if payload is not None else None

    def scenes_with_markup(self) -> List[AnnotationScene]:
        """Every stored scene holding at least one object, in page order."""
        scenes = []
        for page_number, payload in sorted(self.snapshots().items()):
            scene = AnnotationScene.deserialize(payload)
            if not scene.is_empty:
                scenes.append(scene)
        return scenes

    def has_markup(self) -> bool:
        return bool(self.scenes_with_markup())
