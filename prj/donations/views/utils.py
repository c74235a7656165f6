"""
donations/views/utils.py
────────────────────────
UPI payment QR codes shown on the donation page.
Nothing here imports from other view modules (no circular imports).
"""

import base64
import io
from urllib.parse import urlencode

import qrcode


def build_upi_uri(upi_id, payee_name, amount=None, note=''):
    """
    ``upi://pay`` deep link understood by Indian UPI apps.  The transfer
    happens entirely inside the donor's app; nothing reports back here.
    """
    params = {'pa': upi_id, 'pn': payee_name, 'cu': 'INR'}
    if amount is not None:
        params['am'] = f'{amount:.2f}'
    if note:
        params['tn'] = note[:60]
    return 'upi://pay?' + urlencode(params)


def generate_upi_qr(upi_id, payee_name, amount=None, note='', box_size=7):
    """Build a UPI QR code and return it as a base64-encoded PNG string."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=4,
    )
    qr.add_data(build_upi_uri(upi_id, payee_name, amount, note))
    qr.make(fit=True)

    img = qr.make_image(fill_color='#1a1a2e', back_color='white')
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return base64.b64encode(buf.getvalue()).decode('utf-8')
