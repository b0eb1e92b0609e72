# =======================================================================================
# qrcheckin/services/token_renderer.py - QR Image Rendering
# =======================================================================================
import base64
import io
import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q

ERROR_CORRECTION_LEVELS = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}


class TokenRenderer:
    """Renders token strings as black-on-white PNG QR codes."""

    def __init__(self, error_correction: str = "H", box_size: int = 8, border: int = 4):
        level = error_correction.strip().upper()
        if level not in ERROR_CORRECTION_LEVELS:
            raise ValueError(f"Unknown QR error correction level: {error_correction!r}")
        self.error_correction = ERROR_CORRECTION_LEVELS[level]
        self.box_size = box_size
        self.border = border

    def render_png(self, token: str) -> bytes:
        qr = qrcode.QRCode(
            version=None,
            error_correction=self.error_correction,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(token)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    @staticmethod
    def to_data_url(png: bytes) -> str:
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
