"""
QR code rendering and UPI payment links.
"""

import base64
import io
from decimal import Decimal
from typing import Optional
from urllib.parse import quote, urlencode

import qrcode


def qr_data_url(data: str, box_size: int = 10, border: int = 4) -> str:
    """Render ``data`` as a PNG QR code and return it as a data URL."""
    qr = qrcode.QRCode(version=1, box_size=box_size, border=border)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode()
    return f"data:image/png;base64,{encoded}"


def build_upi_url(
    upi_id: str,
    payee_name: str,
    amount: Optional[Decimal] = None,
    reference: Optional[str] = None,
    note: Optional[str] = None,
    currency: str = "INR",
) -> str:
    """``upi://pay`` deep link understood by UPI apps."""
    params = {"pa": upi_id, "pn": payee_name}
    if reference:
        params["tr"] = reference
    if amount is not None:
        params["am"] = f"{Decimal(amount):.2f}"
    params["cu"] = currency
    if note:
        params["tn"] = note
    return "upi://pay?" + urlencode(params, quote_via=quote, safe="@")
