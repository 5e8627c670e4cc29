"""
Data models for signers and signature positions.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Sequence

from signdesk.core.errors import InputError

SIGNATURE_SCHEMA_VERSION = 1


class RenderMode(Enum):
    """How signature marks are presented."""
    EDITABLE = "editable"  # drag handles exposed
    STATIC = "static"      # read-only preview


@dataclass
class Signer:
    """One rank in a document's approval chain."""
    order: int  # 1-based turn rank
    user_id: str
    name: str
    role: str
    mandatory: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': SIGNATURE_SCHEMA_VERSION,
            'order': self.order,
            'user_id': self.user_id,
            'name': self.name,
            'role': self.role,
            'mandatory': self.mandatory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Signer":
        version = data.get('version', SIGNATURE_SCHEMA_VERSION)
        if version != SIGNATURE_SCHEMA_VERSION:
            raise ValueError(f"Unsupported signer version: {version}")
        return cls(
            order=int(data['order']),
            user_id=str(data['user_id']),
            name=data.get('name', ''),
            role=data.get('role', ''),
            mandatory=bool(data.get('mandatory', True)),
        )


@dataclass
class SignaturePosition:
    """Where one signer's mark goes, in page pixel coordinates."""
    id: str
    signer_id: str
    signer_name: str
    signer_role: str
    signer_order: int
    x: float
    y: float
    page: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'signer_id': self.signer_id,
            'signer_name': self.signer_name,
            'signer_role': self.signer_role,
            'signer_order': self.signer_order,
            'x': self.x,
            'y': self.y,
            'page': self.page,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignaturePosition":
        return cls(
            id=str(data['id']),
            signer_id=str(data['signer_id']),
            signer_name=data.get('signer_name', ''),
            signer_role=data.get('signer_role', ''),
            signer_order=int(data['signer_order']),
            x=float(data['x']),
            y=float(data['y']),
            page=int(data.get('page', 1)),
        )


@dataclass(frozen=True)
class SignatureMark:
    """Render view of a position. Identical in shape for both render modes."""
    position_id: str
    signer_order: int
    page: int
    x: float
    y: float
    width: float
    height: float
    label: str
    draggable: bool


def validate_signer_orders(signers: Sequence[Signer]) -> None:
    """
    Check that signer orders are unique positive integers.

    Gaps are allowed; an omitted order is a signer left out of this document.

    Raises:
        InputError: On a duplicate or non-positive order
    """
    seen = set()
    for signer in signers:
        if signer.order < 1:
            raise InputError(f"Signer order must be at least 1, got {signer.order}")
        if signer.order in seen:
            raise InputError(f"Duplicate signer order {signer.order}")
        seen.add(signer.order)


def select_signers(candidates: Iterable[Signer], enabled_orders: Iterable[int] = ()) -> List[Signer]:
    """
    Build a document's signer list from the candidate chain.

    Mandatory signers are always kept; optional ones only when their order
    is in ``enabled_orders``.
    """
    enabled = set(enabled_orders)
    chosen = [s for s in candidates if s.mandatory or s.order in enabled]
    chosen.sort(key=lambda s: s.order)
    validate_signer_orders(chosen)
    return chosen
