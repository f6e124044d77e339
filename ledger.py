"""Perhitungan buku kas: saldo berjalan, total pemasukan/pengeluaran, dan filter periode.

Semua fungsi di sini murni: tidak ada I/O, tidak membaca jam sistem, dan tidak
mengubah data masukan. Uang dihitung dengan ``Decimal``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

NOL = Decimal("0")


class InvalidRecord(ValueError):
    """Data transaksi tidak valid (jumlah negatif, tipe tidak dikenal, dst)."""


class Kind(str, Enum):
    INCOME = "pemasukan"
    EXPENSE = "pengeluaran"

    @property
    def label(self) -> str:
        return "Pemasukan" if self is Kind.INCOME else "Pengeluaran"


class Bucket(str, Enum):
    ALL = "semua"
    TODAY = "hari_ini"
    THIS_WEEK = "minggu_ini"
    THIS_MONTH = "bulan_ini"
    THIS_YEAR = "tahun_ini"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Bucket":
        """Ubah nilai query string (``?periode=``) menjadi Bucket."""

        if value is None or not str(value).strip():
            return cls.ALL
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Periode tidak dikenal: {value!r}") from None

    @property
    def label(self) -> str:
        return {
            Bucket.ALL: "Semua",
            Bucket.TODAY: "Hari Ini",
            Bucket.THIS_WEEK: "Minggu Ini",
            Bucket.THIS_MONTH: "Bulan Ini",
            Bucket.THIS_YEAR: "Tahun Ini",
        }[self]


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidRecord(f"Jumlah tidak valid: {value!r}")
    if isinstance(value, (int, float, str)):
        try:
            # float lewat str() supaya 0.1 tetap 0.1, bukan 0.1000000000000000055...
            return Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidRecord(f"Jumlah tidak valid: {value!r}") from None
    raise InvalidRecord(f"Jumlah tidak valid: {value!r}")


def _to_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidRecord(f"Tanggal tidak valid: {value!r}")


@dataclass(frozen=True)
class Transaction:
    """Satu baris transaksi milik seorang pengguna."""

    id: object
    owner_id: object
    kind: Kind
    amount: Decimal
    occurred_on: date
    note: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            kind = Kind(self.kind.strip().lower()) if isinstance(self.kind, str) else Kind(self.kind)
        except ValueError:
            raise InvalidRecord(f"Tipe transaksi tidak dikenal: {self.kind!r}") from None
        amount = _to_decimal(self.amount)
        if not amount.is_finite():
            raise InvalidRecord(f"Jumlah harus angka terhingga: {self.amount!r}")
        if amount < 0:
            raise InvalidRecord(f"Jumlah tidak boleh negatif: {self.amount!r}")
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "occurred_on", _to_date(self.occurred_on))

    @property
    def is_income(self) -> bool:
        return self.kind is Kind.INCOME

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.is_income else -self.amount


@dataclass(frozen=True)
class LedgerSummary:
    sorted_transactions: Tuple[Transaction, ...] = ()
    running_balance: Tuple[Decimal, ...] = ()
    total_income: Decimal = NOL
    total_expense: Decimal = NOL
    net_balance: Decimal = NOL

    @property
    def rows(self) -> List[Tuple[Transaction, Decimal]]:
        return list(zip(self.sorted_transactions, self.running_balance))

    @property
    def is_empty(self) -> bool:
        return not self.sorted_transactions

    def chart_data(self) -> List[dict]:
        """Data grafik pie: pemasukan vs pengeluaran."""

        return [
            {"name": Kind.INCOME.label, "value": self.total_income},
            {"name": Kind.EXPENSE.label, "value": self.total_expense},
        ]


# ---------------- Filter Periode ----------------

def filter_by_range(
    transactions: Iterable[Transaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Transaction]:
    """Ambil transaksi dengan ``start <= occurred_on <= end`` (batas opsional)."""

    start = _to_date(start) if start is not None else None
    end = _to_date(end) if end is not None else None
    return [
        tx
        for tx in transactions
        if (start is None or tx.occurred_on >= start)
        and (end is None or tx.occurred_on <= end)
    ]


def bucket_window(
    bucket: Bucket, reference_now, week_start: int = 0
) -> Tuple[Optional[date], Optional[date]]:
    """Kembalikan rentang tanggal (inklusif) untuk sebuah bucket.

    ``week_start`` memakai penomoran ``date.weekday()``: 0 = Senin, 6 = Minggu.
    """

    bucket = Bucket(bucket)
    if not 0 <= week_start <= 6:
        raise ValueError(f"week_start harus 0..6, bukan {week_start!r}")
    today = _to_date(reference_now)

    if bucket is Bucket.ALL:
        return None, None
    if bucket is Bucket.TODAY:
        return today, today
    if bucket is Bucket.THIS_WEEK:
        awal = today - timedelta(days=(today.weekday() - week_start) % 7)
        return awal, awal + timedelta(days=6)
    if bucket is Bucket.THIS_MONTH:
        awal = today.replace(day=1)
        bulan_depan = (awal + timedelta(days=32)).replace(day=1)
        return awal, bulan_depan - timedelta(days=1)
    return today.replace(month=1, day=1), today.replace(month=12, day=31)


def filter_by_bucket(
    transactions: Iterable[Transaction],
    bucket: Bucket,
    reference_now,
    week_start: int = 0,
) -> List[Transaction]:
    start, end = bucket_window(bucket, reference_now, week_start=week_start)
    return filter_by_range(transactions, start, end)


# ---------------- Agregasi ----------------

def aggregate(transactions: Iterable[Transaction]) -> LedgerSummary:
    """Urutkan transaksi per tanggal lalu hitung total dan saldo berjalan.

    Urutan dijaga stabil: transaksi bertanggal sama tetap pada urutan masukan.
    """

    ordered = sorted(transactions, key=lambda tx: tx.occurred_on)

    total_income = sum((tx.amount for tx in ordered if tx.is_income), NOL)
    total_expense = sum((tx.amount for tx in ordered if not tx.is_income), NOL)

    saldo = NOL
    running: List[Decimal] = []
    for tx in ordered:
        saldo += tx.signed_amount
        running.append(saldo)

    return LedgerSummary(
        sorted_transactions=tuple(ordered),
        running_balance=tuple(running),
        total_income=total_income,
        total_expense=total_expense,
        net_balance=total_income - total_expense,
    )


# ---------------- Konversi Baris Supabase ----------------

def _parse_tanggal(value, row_id) -> date:
    if isinstance(value, (date, datetime)):
        return _to_date(value)
    if not isinstance(value, str) or len(value) < 10:
        raise InvalidRecord(f"Tanggal tidak valid pada transaksi {row_id}: {value!r}")
    try:
        # 'YYYY-MM-DD' atau timestamp 'YYYY-MM-DDTHH:MM:SS+00:00'
        return date.fromisoformat(value[:10])
    except ValueError:
        raise InvalidRecord(f"Tanggal tidak valid pada transaksi {row_id}: {value!r}") from None


def transaction_from_row(row: dict) -> Transaction:
    """Ubah satu baris tabel ``transactions`` menjadi Transaction."""

    row_id = row.get("id")
    tanggal = _parse_tanggal(row.get("tanggal"), row_id)
    try:
        return Transaction(
            id=row_id,
            owner_id=row.get("user_id"),
            kind=row.get("tipe"),
            amount=row.get("jumlah"),
            occurred_on=tanggal,
            note=row.get("catatan") or None,
        )
    except InvalidRecord as e:
        raise InvalidRecord(f"Transaksi {row_id}: {e}") from None


def transactions_from_rows(rows: Sequence[dict]) -> List[Transaction]:
    transactions = [transaction_from_row(row) for row in rows]
    logger.debug("Memuat %d transaksi", len(transactions))
    return transactions
