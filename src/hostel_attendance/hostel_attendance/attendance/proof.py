"""Proof-of-presence payload: encode, decode and QR rendering.

The payload carries only the session id, JSON encoded as ``{"sessionId": "42"}``.
It is shown to every participant, so it must never include participant data.
It is also not signed or time-bound; anyone holding it can attempt a check-in
while the session is open.
"""

from __future__ import annotations

import base64
import io
import json
from typing import Any, BinaryIO, Union

import qrcode
from PIL import Image

from ..core.exceptions import InvalidProofError

PROOF_KEY = "sessionId"


def encode_proof(session_id: int) -> str:
    return json.dumps({PROOF_KEY: str(int(session_id))})


def decode_proof(payload: Union[str, bytes, dict, Any]) -> int:
    """Return the session id carried by a proof payload.

    Accepts the JSON text produced by `encode_proof` or an already-parsed dict
    (JSON request bodies may send the object itself).
    """
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidProofError("Invalid QR data")

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except ValueError:
            raise InvalidProofError("Invalid QR data")

    if not isinstance(payload, dict):
        raise InvalidProofError("Invalid QR data")

    raw = payload.get(PROOF_KEY)
    if raw is None or isinstance(raw, bool):
        raise InvalidProofError("Invalid QR code format")
    try:
        session_id = int(str(raw).strip())
    except ValueError:
        raise InvalidProofError("Invalid QR code format")
    if session_id <= 0:
        raise InvalidProofError("Invalid QR code format")
    return session_id


def render_qr_png(payload: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_qr_data_url(payload: str) -> str:
    encoded = base64.b64encode(render_qr_png(payload)).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def decode_qr_image(stream: BinaryIO) -> str:
    """Read the first QR code found in an uploaded picture."""
    # pyzbar loads the native zbar library at import time.
    from pyzbar.pyzbar import decode as pyzbar_decode

    try:
        img = Image.open(stream).convert("RGB")
    except (OSError, ValueError):
        raise InvalidProofError("Uploaded file is not a readable image")

    decoded = pyzbar_decode(img)
    if not decoded:
        raise InvalidProofError("No QR code detected in image")
    try:
        return decoded[0].data.decode("utf-8").strip()
    except UnicodeDecodeError:
        raise InvalidProofError("Invalid QR data")
