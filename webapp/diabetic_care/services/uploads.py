"""
Upload pipeline for identity document photos.

Every uploaded image is decoded with Pillow, rotated according to its EXIF
orientation, shrunk to at most ``UPLOAD_MAX_WIDTH`` pixels wide and stored as
a JPEG under ``UPLOAD_FOLDER``. The stored file is served from ``/uploads``.
"""

import io
import os
import time

from flask import current_app
from PIL import Image, ImageOps, UnidentifiedImageError
from werkzeug.utils import secure_filename

UPLOAD_URL_PREFIX = '/uploads/'

# Field name -> filename prefix
PHOTO_PREFIXES = {
    'national_id_photo': 'nid',
    'birth_certificate_photo': 'bc',
}


class UploadError(Exception):
    """The uploaded file is not a readable image."""


def resize_image(data: bytes, max_width: int, quality: int) -> bytes:
    """Return `data` re-encoded as JPEG, no wider than `max_width` pixels."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            if img.width > max_width:
                height = round(img.height * max_width / img.width)
                img = img.resize((max_width, height), Image.LANCZOS)
            if img.mode != 'RGB':
                img = img.convert('RGB')

            out = io.BytesIO()
            img.save(out, format='JPEG', quality=quality, optimize=True)
            return out.getvalue()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise UploadError('فایل ارسال‌شده تصویر معتبر نیست') from e


def _stored_filename(original_name: str, prefix: str) -> str:
    stem = os.path.splitext(secure_filename(original_name or ''))[0] or 'image'
    return f"{prefix}-{int(time.time() * 1000)}-{stem}.jpg"


def save_upload(file_storage, prefix: str):
    """
    Resize and store an uploaded photo; returns its public URL.

    Returns None when no file was chosen (browsers submit an empty part).
    """
    if file_storage is None or not file_storage.filename:
        return None
    data = file_storage.read()
    if not data:
        return None

    config = current_app.config
    jpeg = resize_image(data, config['UPLOAD_MAX_WIDTH'], config['UPLOAD_JPEG_QUALITY'])

    upload_dir = config['UPLOAD_FOLDER']
    os.makedirs(upload_dir, exist_ok=True)
    filename = _stored_filename(file_storage.filename, prefix)
    with open(os.path.join(upload_dir, filename), 'wb') as f:
        f.write(jpeg)
    return UPLOAD_URL_PREFIX + filename


def delete_upload(url) -> bool:
    """Remove a locally stored upload. Foreign URLs and missing files are ignored."""
    if not url or not url.startswith(UPLOAD_URL_PREFIX):
        return False
    filename = secure_filename(url[len(UPLOAD_URL_PREFIX):])
    if not filename:
        return False
    path = os.path.join(current_app.config['UPLOAD_FOLDER'], filename)
    if not os.path.exists(path):
        return False
    os.remove(path)
    return True
