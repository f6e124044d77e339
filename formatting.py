"""Format dan parsing angka Rupiah serta tanggal dari form."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional


def _kelompokkan(bulat: int) -> str:
    return f"{bulat:,}".replace(",", ".")


def format_angka(value, presisi: Optional[int] = 2) -> str:
    """Format angka gaya Indonesia: '1.500.000' atau '1.500.000,50'.

    ``presisi=None`` menulis semua digit desimal apa adanya (tanpa pembulatan),
    dipakai untuk mengisi ulang form supaya jumlah tersimpan tidak berubah.
    """
    try:
        value = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "0"
    if not value.is_finite():
        return "0"

    tanda = "-" if value < 0 else ""
    value = abs(value)
    if value == value.to_integral_value():
        formatted = _kelompokkan(int(value))
    elif presisi is None:
        bulat, pecahan = format(value.normalize(), "f").split(".")
        formatted = f"{_kelompokkan(int(bulat))},{pecahan}"
    else:
        # Ribuan pakai titik, desimal pakai koma
        formatted = f"{value.quantize(Decimal(1).scaleb(-presisi)):,.{presisi}f}"
        formatted = formatted.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{tanda}{formatted}"


def format_rupiah(value) -> str:
    """Format angka menjadi string Rupiah 'Rp 1.000.000'."""
    return f"Rp {format_angka(value)}"


def parse_jumlah(text) -> Decimal:
    """Ubah input jumlah gaya Indonesia ('1.500.000,50') menjadi Decimal."""
    if text is None:
        raise ValueError("Jumlah wajib diisi.")
    cleaned = str(text).strip().replace("Rp", "").replace(" ", "")
    if not cleaned:
        raise ValueError("Jumlah wajib diisi.")
    cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        jumlah = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Jumlah tidak valid: {text}") from None
    if not jumlah.is_finite():
        raise ValueError(f"Jumlah tidak valid: {text}")
    return jumlah


def parse_tanggal(text) -> date:
    if not text or not str(text).strip():
        raise ValueError("Tanggal wajib diisi.")
    try:
        return datetime.strptime(str(text).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Format tanggal tidak valid: {text}") from None
