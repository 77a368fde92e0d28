import base64

from campus_attendance.services.qr.qr_image import render_qr_data_url, render_qr_png
from campus_attendance.services.qr.qr_signing import mint_qr_token

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_render_png():
    token = mint_qr_token("reg_img", "evt_img", "img@christuniversity.in")
    assert render_qr_png(token).startswith(PNG_SIGNATURE)


def test_render_data_url_from_stored_dict():
    token = mint_qr_token("reg_img", "evt_img", "img@christuniversity.in")

    data_url = render_qr_data_url(token.model_dump())

    prefix = "data:image/png;base64,"
    assert data_url.startswith(prefix)
    assert base64.b64decode(data_url[len(prefix):]).startswith(PNG_SIGNATURE)
