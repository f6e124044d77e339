"""Konfigurasi aplikasi dari environment variable (dan file .env bila ada)."""

import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} harus berupa angka, bukan {raw!r}") from None


class Config:
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
    SECRET_KEY = os.getenv("SECRET_KEY", "kunci-rahasia-lokal-ganti-di-produksi")

    KAS_TABLE = os.getenv("KAS_TABLE", "transactions")
    # 0 = Senin (default, sesuai locale id_ID), 6 = Minggu
    KAS_WEEK_START = _int_env("KAS_WEEK_START", 0)
    KAS_LOG_LEVEL = os.getenv("KAS_LOG_LEVEL", "INFO").upper()
