from __future__ import annotations

import io
import json
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Optional

import qrcode
from PIL import Image, UnidentifiedImageError

from ..common.datetime_utils import now_utc, to_iso
from ..core.constants import QR_BORDER, QR_BOX_SIZE
from ..core.exceptions import ValidationError
from ..core.messages import INVALID_QR
from ..users.model import Profile


@dataclass(frozen=True)
class QRPayload:
    """What a student's attendance QR code carries."""

    event_id: Optional[str] = None
    user_id: Optional[str] = None
    roll_number: Optional[str] = None
    name: Optional[str] = None
    timestamp: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "eventId": self.event_id,
            "userId": self.user_id,
            "rollNumber": self.roll_number,
            "name": self.name,
            "timestamp": self.timestamp,
        }


def build_qr_payload(event_id: str, profile: Profile, now: Optional[datetime] = None) -> str:
    payload = QRPayload(
        event_id=event_id,
        user_id=profile.id,
        roll_number=profile.roll_number,
        name=profile.name,
        timestamp=to_iso(now or now_utc()),
    )
    return json.dumps(payload.to_dict())


def _optional_text(raw: dict, *keys: str) -> Optional[str]:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def parse_qr_payload(raw: str) -> QRPayload:
    """Parse scanned QR text; raises ``ValidationError`` on anything unusable."""

    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(INVALID_QR) from exc
    if not isinstance(data, dict):
        raise ValidationError(INVALID_QR)

    payload = QRPayload(
        event_id=_optional_text(data, "eventId"),
        user_id=_optional_text(data, "userId", "id"),
        roll_number=_optional_text(data, "rollNumber"),
        name=_optional_text(data, "name"),
        timestamp=_optional_text(data, "timestamp"),
    )
    if not payload.user_id and not payload.roll_number:
        raise ValidationError(INVALID_QR)
    return payload


def render_qr_png(text: str) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(text)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode_qr_image(stream: BinaryIO) -> str:
    """Return the text of the first QR code found in an uploaded image."""

    try:
        img = Image.open(stream).convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationError("Uploaded file is not an image") from exc

    # pyzbar loads the native zbar library on import.
    from pyzbar.pyzbar import decode as pyzbar_decode

    decoded = pyzbar_decode(img)
    if not decoded:
        raise ValidationError("No QR code found in the image")
    return decoded[0].data.decode("utf-8").strip()
