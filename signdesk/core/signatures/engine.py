"""
Click-to-place signer marks with drag-to-move and default layout.
"""
import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from signdesk.config import Settings, get_settings
from signdesk.core.errors import InputError

from .models import (
    SIGNATURE_SCHEMA_VERSION,
    RenderMode,
    SignatureMark,
    SignaturePosition,
    Signer,
    validate_signer_orders,
)

logger = logging.getLogger(__name__)


def _migrate_positions(data: Dict[str, Any]) -> Dict[str, Any]:
    version = data.get('version', SIGNATURE_SCHEMA_VERSION)
    if version != SIGNATURE_SCHEMA_VERSION:
        raise ValueError(f"Unsupported signature layout version: {version}")
    return data


class SignaturePositionEngine:
    """
    Ordered signer marks for one document.

    Every position references a signer in the document's signer list;
    removing a signer removes its positions. A signer may own several
    positions (e.g. one per page).
    """

    def __init__(self, signers: Sequence[Signer] = (),
                 positions: Sequence[SignaturePosition] = (),
                 settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._signers: Dict[int, Signer] = {}
        self._positions: List[SignaturePosition] = []
        self.pending_order: Optional[int] = None
        self.edit_mode = False

        self.set_signers(signers)
        for position in positions:
            self._require_signer(position.signer_order)
            self._positions.append(position)

    # ------------------------------------------------------------------
    # Signers
    # ------------------------------------------------------------------

    @property
    def signers(self) -> List[Signer]:
        return [self._signers[order] for order in sorted(self._signers)]

    def set_signers(self, signers: Sequence[Signer]) -> None:
        """Replace the signer list, dropping positions of signers no longer present."""
        validate_signer_orders(signers)
        self._signers = {s.order: s for s in signers}
        self._positions = [p for p in self._positions if p.signer_order in self._signers]
        if self.pending_order not in self._signers:
            self.pending_order = None

    def remove_signer(self, order: int) -> None:
        self._require_signer(order)
        del self._signers[order]
        self._positions = [p for p in self._positions if p.signer_order != order]
        if self.pending_order == order:
            self.pending_order = None

    def _require_signer(self, order: int) -> Signer:
        signer = self._signers.get(order)
        if signer is None:
            raise InputError(f"No signer with order {order}")
        return signer

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    @property
    def positions(self) -> List[SignaturePosition]:
        return list(self._positions)

    def positions_for(self, order: int) -> List[SignaturePosition]:
        return [p for p in self._positions if p.signer_order == order]

    def select_signer(self, order: int) -> None:
        """Arm placement for the signer with ``order``."""
        self._require_signer(order)
        self.pending_order = order

    def clear_selection(self) -> None:
        self.pending_order = None

    def place_at(self, x: float, y: float, page: int = 1) -> SignaturePosition:
        """
        Append a position for the selected signer and clear the selection.

        Raises:
            InputError: If no signer slot is selected
        """
        if self.pending_order is None:
            raise InputError("Select a signer before placing a signature")
        if page < 1:
            raise InputError(f"Invalid page {page}")

        signer = self._require_signer(self.pending_order)
        position = SignaturePosition(
            id=uuid.uuid4().hex,
            signer_id=signer.user_id,
            signer_name=signer.name,
            signer_role=signer.role,
            signer_order=signer.order,
            x=float(x),
            y=float(y),
            page=page,
        )
        self._positions.append(position)
        self.pending_order = None
        logger.debug("Placed signer %d at (%.1f, %.1f) on page %d", signer.order, x, y, page)
        return position

    def set_edit_mode(self, enabled: bool) -> None:
        self.edit_mode = enabled

    def move(self, position_id: str, x: float, y: float) -> List[SignaturePosition]:
        """
        Move one position. Order and every other field are untouched.

        Returns:
            The updated position list

        Raises:
            InputError: Outside edit mode, or for an unknown position id
        """
        if not self.edit_mode:
            raise InputError("Positions can only be moved in edit mode")

        for position in self._positions:
            if position.id == position_id:
                position.x, position.y = float(x), float(y)
                return self.positions
        raise InputError(f"Unknown signature position {position_id}")

    def reset(self) -> List[SignaturePosition]:
        """
        Lay every position out on one row in signer order.

        ``x = base_x + index * step_x`` at a fixed ``y``; ties within one
        signer keep their placement order.
        """
        base_x = self.settings.signature_base_x
        step_x = self.settings.signature_step_x
        base_y = self.settings.signature_base_y

        ranked = sorted(
            enumerate(self._positions),
            key=lambda item: (item[1].signer_order, item[0]),
        )
        for index, (_, position) in enumerate(ranked):
            position.x = base_x + index * step_x
            position.y = base_y
        self._positions = [position for _, position in ranked]
        return self.positions

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, mode: RenderMode = RenderMode.STATIC, page: Optional[int] = None) -> List[SignatureMark]:
        """Build mark views for every position, optionally limited to one page."""
        draggable = mode is RenderMode.EDITABLE
        return [
            SignatureMark(
                position_id=p.id,
                signer_order=p.signer_order,
                page=p.page,
                x=p.x,
                y=p.y,
                width=self.settings.signature_box_width,
                height=self.settings.signature_box_height,
                label=f"{p.signer_role}\n{p.signer_name}",
                draggable=draggable,
            )
            for p in self._positions
            if page is None or p.page == page
        ]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': SIGNATURE_SCHEMA_VERSION,
            'signers': [s.to_dict() for s in self.signers],
            'positions': [p.to_dict() for p in self._positions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], settings: Optional[Settings] = None) -> "SignaturePositionEngine":
        """
        Raises:
            ValueError: On an unsupported version
            InputError: If a position references a missing signer
        """
        data = _migrate_positions(data)
        return cls(
            signers=[Signer.from_dict(s) for s in data.get('signers', [])],
            positions=[SignaturePosition.from_dict(p) for p in data.get('positions', [])],
            settings=settings,
        )

    def serialize(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)
