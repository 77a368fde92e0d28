"""Raster rendering of attendance tokens for the web client and emails."""

import base64
import io
from typing import Union

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from campus_attendance.schemas.qr import QRToken
from campus_attendance.services.qr.qr_signing import serialize_qr_token

BRAND_COLOR = "#154CB3"
BACKGROUND_COLOR = "#FFFFFF"


def render_qr_png(token: Union[QRToken, dict], box_size: int = 8) -> bytes:
    """Render the serialized token as PNG bytes."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=box_size,
        border=1,
    )
    qr.add_data(serialize_qr_token(token))
    qr.make(fit=True)

    img = qr.make_image(fill_color=BRAND_COLOR, back_color=BACKGROUND_COLOR)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_data_url(token: Union[QRToken, dict]) -> str:
    encoded = base64.b64encode(render_qr_png(token)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
