"""QR code rendering for attendance session tokens."""
import base64
import io

import qrcode
from qrcode.constants import ERROR_CORRECT_H

PNG_DATA_URL_PREFIX = 'data:image/png;base64,'


class QRService:
    """Turns an opaque token into a scannable image; nothing else is encoded."""

    box_size = 10
    border = 4

    @classmethod
    def render(cls, token: str) -> str:
        """Encode ``token`` into a PNG QR code returned as a data URL."""
        code = qrcode.QRCode(
            version=None,  # smallest version that fits the token
            error_correction=ERROR_CORRECT_H,
            box_size=cls.box_size,
            border=cls.border,
        )
        code.add_data(token)
        code.make(fit=True)

        image = code.make_image(fill_color="black", back_color="white")
        return cls._to_data_url(image)

    @staticmethod
    def _to_data_url(image) -> str:
        with io.BytesIO() as png:
            image.save(png, format="PNG")
            encoded = base64.b64encode(png.getvalue()).decode('ascii')
        return PNG_DATA_URL_PREFIX + encoded
