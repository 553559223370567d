import base64
import io

import qrcode


def make_qr_bytes(data: str) -> bytes:
    """Return QR PNG bytes for the provided string."""
    qr = qrcode.QRCode(box_size=6, border=2)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_qr_data_uri(data: str) -> str:
    png = make_qr_bytes(data)
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
