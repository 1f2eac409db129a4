"""Turning uploaded files into image payloads."""

import base64
import mimetypes

from loguru import logger

from imagekeeper.domain.image import NewImage
from imagekeeper.errors import UnsupportedMediaError


def display_name_from_filename(filename: str) -> str:
    """Strip the last extension from a filename.

    A leading dot does not count as an extension separator, so ".hidden" stays as is.
    """
    last_dot = filename.rfind(".")
    return filename[:last_dot] if last_dot > 0 else filename


def to_data_url(content: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(content).decode()
    return f"data:{mime_type};base64,{encoded}"


def build_image_payload(
    filename: str, content: bytes, content_type: str | None = None
) -> NewImage:
    """Build the payload for a newly uploaded image.

    The image content is embedded in the source reference as a data URL.

    Args:
        filename: Name of the uploaded file.
        content: Raw file bytes.
        content_type: MIME type reported by the client. Guessed from the filename if missing.

    Raises:
        UnsupportedMediaError: If the file is not an image.
    """
    mime_type = content_type
    if not mime_type or mime_type == "application/octet-stream":
        mime_type = mimetypes.guess_type(filename)[0]
    if not mime_type or not mime_type.startswith("image/"):
        logger.warning(f"Not an image or unknown type: {filename} ({mime_type})")
        raise UnsupportedMediaError(f"{filename} is not an image")

    return NewImage(
        name=display_name_from_filename(filename),
        url=to_data_url(content, mime_type),
        description="",
        collections=[],
        file_size=len(content),
        file_type=mime_type,
    )
