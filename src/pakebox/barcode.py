"""QR-code rendering for sharing pairing codes out of band."""

from io import BytesIO

import qrcode
from qrcode.constants import (
    ERROR_CORRECT_H,
    ERROR_CORRECT_L,
    ERROR_CORRECT_M,
    ERROR_CORRECT_Q,
)
from qrcode.exceptions import DataOverflowError

_ERROR_CORRECTION = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


def encode_barcode(
    text: str,
    error_correction: str = "L",
    box_size: int = 10,
    border: int = 4,
) -> bytes:
    """
    Render text as a QR code PNG.

    Args:
        text: Text to encode (e.g. a URL carrying a pairing message).
        error_correction: One of "L", "M", "Q", "H".
        box_size: Pixels per module.
        border: Quiet-zone width in modules.

    Returns:
        PNG image bytes.

    Raises:
        ValueError: If the error correction level is unknown or the text
            does not fit in a QR code.
    """
    level = _ERROR_CORRECTION.get(error_correction.upper())
    if level is None:
        raise ValueError(f"Unknown error correction level: {error_correction}")

    qr = qrcode.QRCode(
        version=None,
        error_correction=level,
        box_size=box_size,
        border=border,
    )
    qr.add_data(text)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        raise ValueError(f"Text too long for a QR code: {len(text)} characters") from e

    img = qr.make_image(fill_color="black", back_color="white")
    out = BytesIO()
    img.save(out)
    return out.getvalue()
