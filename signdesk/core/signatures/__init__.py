from .engine import SignaturePositionEngine
from .models import (
    RenderMode,
    SignatureMark,
    SignaturePosition,
    Signer,
    select_signers,
    validate_signer_orders,
)

__all__ = [
    'SignaturePositionEngine',
    'RenderMode',
    'SignatureMark',
    'SignaturePosition',
    'Signer',
    'select_signers',
    'validate_signer_orders',
]
