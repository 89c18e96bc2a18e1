import base64
import io
import secrets

import qrcode
from flask import current_app
from PIL import Image
from qrcode.constants import ERROR_CORRECT_M

QR_CODE_ID_LENGTH = 12
QR_CODE_ID_ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-'

QR_IMAGE_SIZE = 512
QR_BORDER = 2
QR_DARK = '#0f172a'
QR_LIGHT = '#ffffff'


def generate_qr_code_id() -> str:
    """Random 12-character URL-safe id used in the public patient link."""
    return ''.join(secrets.choice(QR_CODE_ID_ALPHABET) for _ in range(QR_CODE_ID_LENGTH))


def patient_page_url(qr_code_id: str) -> str:
    base_url = current_app.config['PUBLIC_BASE_URL'].rstrip('/')
    return f"{base_url}/patient/{qr_code_id}"


def render_qr_png(url: str) -> bytes:
    """PNG of a QR code for `url`, QR_IMAGE_SIZE pixels square."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, border=QR_BORDER)
    qr.add_data(url)
    qr.make(fit=True)

    img = qr.make_image(fill_color=QR_DARK, back_color=QR_LIGHT).get_image()
    img = img.convert('RGB').resize((QR_IMAGE_SIZE, QR_IMAGE_SIZE), resample=Image.NEAREST)

    out = io.BytesIO()
    img.save(out, format='PNG')
    return out.getvalue()


def qr_data_url(url: str) -> str:
    encoded = base64.b64encode(render_qr_png(url)).decode('ascii')
    return f"data:image/png;base64,{encoded}"
