"""Ekspor laporan keuangan ke PDF (reportlab) dan CSV (pandas)."""

from __future__ import annotations

import io
import logging
from datetime import date
from typing import Optional

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from formatting import format_rupiah
from ledger import LedgerSummary

logger = logging.getLogger(__name__)

JUDUL_LAPORAN = "Laporan Keuangan UMKM"
JUDUL_RIWAYAT = "Riwayat Transaksi UMKM"

MARGIN_L, MARGIN_R, MARGIN_T, MARGIN_B = 32, 32, 36, 36


def nama_file_laporan(mulai: date, akhir: date, ext: str) -> str:
    return f"Laporan-Keuangan-{mulai.isoformat()}-sd-{akhir.isoformat()}.{ext}"


def _potong(teks: str, lebar: float, font: str = "Helvetica", ukuran: int = 9) -> str:
    """Potong teks supaya lebar cetaknya muat di kolom ``lebar`` poin."""
    teks = teks or "-"
    if stringWidth(teks, font, ukuran) <= lebar:
        return teks
    while teks and stringWidth(teks + "...", font, ukuran) > lebar:
        teks = teks[:-1]
    return teks + "..."


def build_laporan_pdf(
    summary: LedgerSummary,
    judul: str = JUDUL_LAPORAN,
    mulai: Optional[date] = None,
    akhir: Optional[date] = None,
    tampilkan_saldo: bool = False,
    dicetak: Optional[str] = None,
) -> bytes:
    """Gambar tabel transaksi + ringkasan total ke PDF A4, kembalikan bytes-nya.

    ``tampilkan_saldo`` menambah kolom saldo berjalan (dipakai untuk riwayat
    di dashboard).
    """
    bio = io.BytesIO()
    c = canvas.Canvas(bio, pagesize=A4)
    w, h = A4

    cols = ["No", "Tanggal", "Tipe", "Catatan", "Jumlah"]
    widths = [30, 70, 80, 201, 150]
    if tampilkan_saldo:
        cols.append("Saldo")
        widths = [30, 66, 72, 153, 105, 105]

    def page_header():
        c.setFont("Helvetica-Bold", 16)
        c.drawString(MARGIN_L, h - MARGIN_T, judul)
        y = h - MARGIN_T - 18
        c.setFont("Helvetica", 10)
        if mulai and akhir:
            c.drawString(MARGIN_L, y, f"Periode: {mulai.isoformat()} s.d. {akhir.isoformat()}")
        if dicetak:
            c.drawRightString(w - MARGIN_R, y, f"Dicetak: {dicetak}")
        return y - 22

    def table_header(y):
        c.setFillColorRGB(0.90, 0.91, 0.93)
        c.rect(MARGIN_L, y - 4, sum(widths), 16, fill=1, stroke=0)
        c.setFillColor(colors.black)
        c.setFont("Helvetica-Bold", 9)
        x = MARGIN_L
        for col, wcol in zip(cols, widths):
            c.drawString(x + 2, y, col)
            x += wcol
        return y - 14

    def table_row(y, no, tx, saldo):
        if no % 2 == 0:
            c.setFillColorRGB(0.98, 0.98, 0.985)
            c.rect(MARGIN_L, y - 3, sum(widths), 12, fill=1, stroke=0)
        c.setFillColor(colors.black)
        c.setFont("Helvetica", 9)
        values = [
            str(no),
            tx.occurred_on.isoformat(),
            tx.kind.label,
            _potong(tx.note, widths[3] - 4),
            format_rupiah(tx.amount),
        ]
        if tampilkan_saldo:
            values.append(format_rupiah(saldo))
        x = MARGIN_L
        for value, wcol in zip(values, widths):
            c.drawString(x + 2, y, value)
            x += wcol
        return y - 12

    def page_footer():
        c.setFont("Helvetica", 8)
        c.setFillColor(colors.grey)
        c.drawRightString(w - MARGIN_R, MARGIN_B - 10, f"Halaman {c.getPageNumber()}")
        c.setFillColor(colors.black)

    y = table_header(page_header())
    for no, (tx, saldo) in enumerate(summary.rows, start=1):
        if y < MARGIN_B + 24:
            page_footer()
            c.showPage()
            y = table_header(page_header())
        y = table_row(y, no, tx, saldo)

    if summary.is_empty:
        c.setFont("Helvetica-Oblique", 9)
        c.drawString(MARGIN_L + 2, y, "Tidak ada transaksi.")
        y -= 12

    # Ringkasan total butuh 3 baris
    if y < MARGIN_B + 48:
        page_footer()
        c.showPage()
        y = page_header()
    y -= 10
    c.setFont("Helvetica", 10)
    c.drawString(MARGIN_L, y, f"Total Pemasukan: {format_rupiah(summary.total_income)}")
    c.drawString(MARGIN_L, y - 14, f"Total Pengeluaran: {format_rupiah(summary.total_expense)}")
    c.setFont("Helvetica-Bold", 10)
    c.drawString(MARGIN_L, y - 28, f"Sisa Saldo: {format_rupiah(summary.net_balance)}")

    page_footer()
    c.save()
    logger.info("PDF '%s' dibuat: %d transaksi", judul, len(summary.sorted_transactions))
    return bio.getvalue()


def laporan_dataframe(summary: LedgerSummary) -> pd.DataFrame:
    records = [
        {
            "No": no,
            "Tanggal": tx.occurred_on.isoformat(),
            "Tipe": tx.kind.label,
            "Catatan": tx.note or "",
            "Jumlah": str(tx.amount),
            "Saldo": str(saldo),
        }
        for no, (tx, saldo) in enumerate(summary.rows, start=1)
    ]
    return pd.DataFrame(records, columns=["No", "Tanggal", "Tipe", "Catatan", "Jumlah", "Saldo"])


def build_laporan_csv(summary: LedgerSummary) -> str:
    """Tabel laporan + saldo berjalan sebagai CSV (angka tanpa pembulatan)."""
    return laporan_dataframe(summary).to_csv(index=False)
