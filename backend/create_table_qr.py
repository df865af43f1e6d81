#!/usr/bin/env python3
"""
Script to generate the QR code placed on a table.
The QR code contains: {FRONTEND_URL}?table={table_number}
"""
import sys
from pathlib import Path

import qrcode

from core.config import settings


def table_link(table_number: int, frontend_url: str | None = None) -> str:
    base_url = (frontend_url or settings.FRONTEND_URL).rstrip("/")
    return f"{base_url}/?table={table_number}"


def generate_qr_code(table_number: int, output_dir: str | Path = "qr_codes", frontend_url: str | None = None) -> Path:
    """
    Generate a QR code linking to the ordering page for a table.

    Returns:
        Path to the saved QR code image
    """
    link = table_link(table_number, frontend_url)
    print(f"Generating QR code for: {link}")

    qr_dir = Path(output_dir)
    qr_dir.mkdir(parents=True, exist_ok=True)

    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(link)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    output_path = qr_dir / f"table_{table_number}_qr.png"
    img.save(output_path)

    print(f"✓ QR code saved to: {output_path}")
    return output_path


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Generate QR codes for restaurant tables")
    parser.add_argument(
        "tables",
        type=int,
        nargs="+",
        help="Table numbers (e.g. 1 2 3)"
    )
    parser.add_argument(
        "--frontend-url",
        type=str,
        default=None,
        help=f"Ordering page URL (default: {settings.FRONTEND_URL})"
    )
    parser.add_argument("--output-dir", type=str, default="qr_codes")

    args = parser.parse_args()

    for table_number in args.tables:
        if table_number < 1:
            print(f"✗ Error: table number must be at least 1, got {table_number}")
            sys.exit(1)
        generate_qr_code(table_number, args.output_dir, args.frontend_url)


if __name__ == "__main__":
    main()
