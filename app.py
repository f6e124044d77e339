import io
import logging
from datetime import date, datetime
from functools import wraps

from supabase import create_client, Client

# Impor library Flask
from flask import (
    Flask,
    render_template_string,
    request,
    redirect,
    url_for,
    session,
    flash,
    g,
    send_file,
)

from config import Config
from ekspor import (
    JUDUL_LAPORAN,
    JUDUL_RIWAYAT,
    build_laporan_csv,
    build_laporan_pdf,
    nama_file_laporan,
)
from formatting import format_angka, format_rupiah, parse_jumlah, parse_tanggal
from ledger import (
    Bucket,
    Kind,
    aggregate,
    filter_by_bucket,
    filter_by_range,
    transactions_from_rows,
)

logging.basicConfig(
    level=Config.KAS_LOG_LEVEL,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.from_object(Config)

app.jinja_env.filters['rupiah'] = format_rupiah
app.jinja_env.filters['angka'] = format_angka


# --- KONEKSI KE SUPABASE ---
# Satu client per request (disimpan di flask.g): set_session menempelkan JWT
# pengguna ke client, jadi client tidak boleh dipakai bersama antar-thread.
def get_supabase() -> Client:
    if 'supabase' not in g:
        url = app.config.get("SUPABASE_URL")
        key = app.config.get("SUPABASE_KEY")
        if not url or not key:
            raise RuntimeError("SUPABASE_URL dan SUPABASE_KEY belum diatur (lihat file .env).")
        g.supabase = create_client(url, key)
        logger.debug("Client Supabase dibuat untuk request: %s", url)
    return g.supabase
# --- Akhir Koneksi ---


# ---------------- Helper Functions ----------------
# Semua query dibatasi .eq("user_id", ...) supaya user hanya melihat datanya sendiri

def _tabel():
    return app.config["KAS_TABLE"]


def load_transactions(user_id):
    """Mengambil semua transaksi user dari Supabase sebagai list Transaction."""
    try:
        response = (
            get_supabase().from_(_tabel())
            .select("*")
            .eq("user_id", user_id)
            .order("tanggal")
            .execute()
        )
    except Exception:
        logger.exception("Gagal mengambil transaksi user %s", user_id)
        raise
    return transactions_from_rows(response.data or [])


def get_transaction(user_id, tx_id):
    try:
        response = (
            get_supabase().from_(_tabel())
            .select("*")
            .eq("id", tx_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
    except Exception:
        logger.exception("Gagal mengambil transaksi %s", tx_id)
        raise
    return response.data[0] if response.data else None


def insert_transaction(user_id, data):
    """Menyimpan satu transaksi baru ke Supabase."""
    data = dict(data, user_id=user_id)
    try:
        response = get_supabase().from_(_tabel()).insert(data).execute()
    except Exception:
        logger.exception("Gagal menyimpan transaksi user %s", user_id)
        raise
    row_id = response.data[0].get("id") if response.data else None
    logger.info("Transaksi %s disimpan untuk user %s", row_id, user_id)
    return row_id


def update_transaction(user_id, tx_id, data):
    try:
        get_supabase().from_(_tabel()).update(data).eq("id", tx_id).eq("user_id", user_id).execute()
    except Exception:
        logger.exception("Gagal mengubah transaksi %s", tx_id)
        raise
    logger.info("Transaksi %s diubah oleh user %s", tx_id, user_id)


def delete_transaction(user_id, tx_id):
    try:
        get_supabase().from_(_tabel()).delete().eq("id", tx_id).eq("user_id", user_id).execute()
    except Exception:
        logger.exception("Gagal menghapus transaksi %s", tx_id)
        raise
    logger.info("Transaksi %s dihapus oleh user %s", tx_id, user_id)


def baca_form_transaksi(form):
    """Validasi input form transaksi, kembalikan dict siap disimpan ke DB."""
    tanggal_str = form.get("tanggal", "").strip()
    jumlah_str = form.get("jumlah", "").strip()
    if not tanggal_str or not jumlah_str:
        raise ValueError("Tanggal dan jumlah wajib diisi.")

    tanggal = parse_tanggal(tanggal_str)
    jumlah = parse_jumlah(jumlah_str)
    if jumlah <= 0:
        raise ValueError("Jumlah harus lebih dari 0.")
    try:
        tipe = Kind(form.get("tipe", ""))
    except ValueError:
        raise ValueError("Tipe transaksi tidak valid.") from None

    return {
        "tipe": tipe.value,
        # numeric di Postgres; dikirim sebagai string agar tidak lewat float
        "jumlah": str(jumlah),
        "catatan": form.get("catatan", "").strip(),
        "tanggal": tanggal.isoformat(),
    }


def ringkasan_periode(user_id, bucket):
    """Ambil data terbaru lalu hitung ulang ringkasan untuk bucket tertentu."""
    transaksi = load_transactions(user_id)
    terfilter = filter_by_bucket(
        transaksi, bucket, date.today(), week_start=app.config["KAS_WEEK_START"]
    )
    return aggregate(terfilter)


def baca_periode(args):
    mulai_str = args.get("mulai", "").strip()
    akhir_str = args.get("akhir", "").strip()
    if not mulai_str or not akhir_str:
        raise ValueError("Pilih tanggal mulai dan akhir terlebih dahulu")
    return parse_tanggal(mulai_str), parse_tanggal(akhir_str)


def ringkasan_laporan(user_id, mulai, akhir):
    return aggregate(filter_by_range(load_transactions(user_id), mulai, akhir))
# --- Akhir Helper Functions ---


# ---------------- Decorator ----------------
def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'access_token' not in session:
            session.clear()
            flash("Sesi tidak valid. Harap login ulang.", "danger")
            return redirect(url_for('login_page'))

        try:
            supabase = get_supabase()
            supabase.auth.set_session(
                session['access_token'],
                session.get('refresh_token')
            )
            response = supabase.auth.get_user()

            if not response or not response.user:
                raise RuntimeError("Token tidak valid atau sudah kedaluwarsa.")

            session['user_id'] = response.user.id
            if 'email' not in session:
                session['email'] = response.user.email
            session['logged_in'] = True

        except Exception as e:
            logger.warning("Gagal memulihkan sesi Supabase: %s", e)
            session.clear()
            flash("Sesi Anda telah berakhir. Harap login ulang.", "danger")
            return redirect(url_for('login_page'))

        return f(*args, **kwargs)
    return decorated_function
# --- Akhir Decorator ---


# ---------------- KUMPULAN TEMPLATE HTML ----------------

HTML_LAYOUT = """
<!DOCTYPE html>
<html lang="id">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ title }} - Keuangan UMKM</title>
    <script src="https://cdn.tailwindcss.com"></script>
    <script src="https://cdn.jsdelivr.net/npm/chart.js"></script>
    <style>
        body { font-family: 'Inter', sans-serif; }
    </style>
</head>
<body class="bg-gray-100 min-h-screen">
    <nav class="bg-white shadow-md">
        <div class="max-w-5xl mx-auto px-4 sm:px-6 lg:px-8">
            <div class="flex justify-between h-16">
                <a href="{{ url_for('dashboard_page') }}" class="flex items-center text-xl font-bold text-purple-600">
                    Keuangan UMKM
                </a>
                <div class="flex items-center space-x-1">
                    {% if session.logged_in %}
                        <span class="text-gray-700 mr-4 hidden sm:inline">Halo, <b>{{ session.email }}</b></span>
                        <a href="{{ url_for('dashboard_page') }}" class="px-3 py-2 rounded-md text-sm font-medium text-gray-700 hover:bg-gray-100">Dashboard</a>
                        <a href="{{ url_for('laporan_page') }}" class="px-3 py-2 rounded-md text-sm font-medium text-gray-700 hover:bg-gray-100">Laporan</a>
                        <a href="{{ url_for('logout_page') }}" class="ml-4 px-3 py-2 rounded-md text-sm font-medium text-white bg-red-600 hover:bg-red-700">Logout</a>
                    {% else %}
                        <a href="{{ url_for('login_page') }}" class="px-3 py-2 rounded-md text-sm font-medium text-purple-600 bg-purple-100 hover:bg-purple-200">Login</a>
                    {% endif %}
                </div>
            </div>
        </div>
    </nav>

    <main>
        <div class="max-w-5xl mx-auto py-6 px-4 sm:px-6 lg:px-8">
            {% with messages = get_flashed_messages(with_categories=true) %}
              {% if messages %}
                {% for category, message in messages %}
                  <div class="{% if category == 'success' %}bg-green-100 border-green-400 text-green-700{% else %}bg-red-100 border-red-400 text-red-700{% endif %} border px-4 py-3 rounded-md mb-4" role="alert">
                    {{ message }}
                  </div>
                {% endfor %}
              {% endif %}
            {% endwith %}

            {% block content %}{% endblock %}
        </div>
    </main>

    <script>
        // Titik sebagai pemisah ribuan saat mengetik jumlah
        function formatRupiah(element) {
            let value = element.value.replace(/[^,\\d]/g, '').toString();
            let split = value.split(',');
            let sisa = split[0].length % 3;
            let rupiah = split[0].substr(0, sisa);
            let ribuan = split[0].substr(sisa).match(/\\d{3}/gi);

            if (ribuan) {
                let separator = sisa ? '.' : '';
                rupiah += separator + ribuan.join('.');
            }
            rupiah = split[1] != undefined ? rupiah + ',' + split[1] : rupiah;
            element.value = rupiah;
        }
    </script>
</body>
</html>
"""

HTML_LOGIN = """
<div class="flex items-center justify-center py-12">
    <div class="max-w-sm w-full bg-white p-8 rounded-xl shadow-lg">
        <h2 class="text-center text-2xl font-bold text-purple-600 mb-6">Login atau Daftar Akun</h2>
        <form action="{{ url_for('login_page') }}" method="POST" class="space-y-4">
            <input name="email" type="email" autocomplete="email" required
                   class="w-full border px-3 py-2 rounded" placeholder="Email aktif">
            <input name="password" type="password" autocomplete="current-password" required
                   class="w-full border px-3 py-2 rounded" placeholder="Password (min. 6 karakter)">

            <div class="flex items-center justify-around text-sm">
                <label><input name="mode" type="radio" value="Login" checked class="mr-1"> Login</label>
                <label><input name="mode" type="radio" value="Daftar" class="mr-1"> Daftar</label>
            </div>

            <button type="submit" class="w-full py-2 rounded text-white bg-purple-600 hover:bg-purple-700">Kirim</button>
        </form>
    </div>
</div>
"""

HTML_DASHBOARD = """
<div class="bg-white shadow p-6 rounded-lg space-y-6">
    <h1 class="text-2xl font-bold text-purple-600 text-center">Dashboard Keuangan UMKM</h1>

    <form method="GET" action="{{ url_for('dashboard_page') }}" class="flex items-center gap-2 text-sm">
        <label for="periode" class="font-medium">Periode:</label>
        <select id="periode" name="periode" onchange="this.form.submit()" class="border px-2 py-1 rounded">
            {% for b in buckets %}
            <option value="{{ b.value }}" {% if b == bucket %}selected{% endif %}>{{ b.label }}</option>
            {% endfor %}
        </select>
    </form>

    <div>
        <h2 class="text-lg font-semibold mb-2">Grafik Keuangan</h2>
        <div class="max-w-xs mx-auto">
            <canvas id="grafik-keuangan"></canvas>
        </div>
        <script>
            const grafik = {{ grafik | tojson }};
            new Chart(document.getElementById('grafik-keuangan'), {
                type: 'pie',
                data: {
                    labels: grafik.map(g => g.name),
                    datasets: [{ data: grafik.map(g => g.value), backgroundColor: ['#10B981', '#EF4444'] }]
                },
                options: { plugins: { legend: { position: 'bottom' } } }
            });
        </script>
    </div>

    <form action="{{ url_for('tambah_transaksi_page') }}" method="POST" class="grid sm:grid-cols-2 gap-4">
        <input type="date" name="tanggal" value="{{ today }}" required class="border px-3 py-2 rounded">
        <select name="tipe" class="border px-3 py-2 rounded">
            {% for k in kinds %}
            <option value="{{ k.value }}">{{ k.label }}</option>
            {% endfor %}
        </select>
        <input type="text" name="jumlah" placeholder="Jumlah (Rp)" onkeyup="formatRupiah(this)" required class="border px-3 py-2 rounded">
        <input type="text" name="catatan" placeholder="Catatan" class="border px-3 py-2 rounded">
        <div class="sm:col-span-2">
            <button type="submit" class="bg-purple-600 text-white w-full py-2 rounded hover:bg-purple-700">Simpan Transaksi</button>
        </div>
    </form>

    <div class="flex justify-between items-center">
        <h2 class="text-lg font-semibold">Riwayat Transaksi</h2>
        <div class="flex items-center gap-3">
            <div class="px-3 py-1 rounded text-sm font-medium {% if summary.net_balance >= 0 %}bg-green-100 text-green-800{% else %}bg-red-100 text-red-800{% endif %}">
                Sisa Saldo: {{ summary.net_balance | rupiah }}
            </div>
            <a href="{{ url_for('riwayat_pdf', periode=bucket.value) }}" class="bg-blue-600 text-white px-3 py-1 rounded text-sm hover:bg-blue-700">Download PDF</a>
        </div>
    </div>

    <div class="overflow-x-auto">
        <table class="w-full text-sm border border-collapse">
            <thead class="bg-gray-200">
                <tr>
                    <th class="p-2 border">Tanggal</th>
                    <th class="p-2 border">Tipe</th>
                    <th class="p-2 border">Catatan</th>
                    <th class="p-2 border">Jumlah</th>
                    <th class="p-2 border">Saldo</th>
                    <th class="p-2 border">Aksi</th>
                </tr>
            </thead>
            <tbody>
                {% for tx, saldo in summary.rows %}
                <tr>
                    <td class="p-2 border">{{ tx.occurred_on.isoformat() }}</td>
                    <td class="p-2 border">{{ tx.kind.label }}</td>
                    <td class="p-2 border">{{ tx.note or '-' }}</td>
                    <td class="p-2 border">{{ tx.amount | rupiah }}</td>
                    <td class="p-2 border">{{ saldo | rupiah }}</td>
                    <td class="p-2 border whitespace-nowrap">
                        <a href="{{ url_for('edit_transaksi_page', tx_id=tx.id) }}" class="text-blue-600 hover:underline">Ubah</a>
                        <form action="{{ url_for('hapus_transaksi_page', tx_id=tx.id) }}" method="POST" class="inline" onsubmit="return confirm('Hapus transaksi ini?');">
                            <button type="submit" class="text-red-600 hover:underline ml-2">Hapus</button>
                        </form>
                    </td>
                </tr>
                {% else %}
                <tr><td colspan="6" class="p-2 border text-center text-gray-500">Belum ada transaksi.</td></tr>
                {% endfor %}
            </tbody>
        </table>
    </div>
</div>
"""

HTML_EDIT = """
<div class="bg-white p-8 rounded-xl shadow-lg max-w-xl mx-auto">
    <h2 class="text-2xl font-bold text-gray-900 mb-6">Ubah Transaksi</h2>
    <form action="{{ url_for('edit_transaksi_page', tx_id=tx.id) }}" method="POST" class="space-y-4">
        <input type="date" name="tanggal" value="{{ tx.occurred_on.isoformat() }}" required class="w-full border px-3 py-2 rounded">
        <select name="tipe" class="w-full border px-3 py-2 rounded">
            {% for k in kinds %}
            <option value="{{ k.value }}" {% if k == tx.kind %}selected{% endif %}>{{ k.label }}</option>
            {% endfor %}
        </select>
        <input type="text" name="jumlah" value="{{ tx.amount | angka(presisi=none) }}" onkeyup="formatRupiah(this)" required class="w-full border px-3 py-2 rounded">
        <input type="text" name="catatan" value="{{ tx.note or '' }}" placeholder="Catatan" class="w-full border px-3 py-2 rounded">
        <div class="flex gap-3">
            <button type="submit" class="flex-1 bg-purple-600 text-white py-2 rounded hover:bg-purple-700">Simpan Perubahan</button>
            <a href="{{ url_for('dashboard_page') }}" class="flex-1 text-center bg-gray-200 py-2 rounded hover:bg-gray-300">Batal</a>
        </div>
    </form>
</div>
"""

HTML_LAPORAN = """
<div class="bg-white shadow-md rounded-lg p-6">
    <h1 class="text-2xl font-bold text-purple-600 mb-4 text-center">Laporan Keuangan UMKM</h1>

    <form method="GET" action="{{ url_for('laporan_page') }}">
        <div class="grid grid-cols-1 sm:grid-cols-2 gap-4 mb-4">
            <div>
                <label class="block text-sm font-medium">Tanggal Mulai</label>
                <input type="date" name="mulai" value="{{ filter.mulai }}" class="w-full border px-3 py-2 rounded-md">
            </div>
            <div>
                <label class="block text-sm font-medium">Tanggal Akhir</label>
                <input type="date" name="akhir" value="{{ filter.akhir }}" class="w-full border px-3 py-2 rounded-md">
            </div>
        </div>
        <div class="flex gap-3 mb-4">
            <button type="submit" class="bg-blue-600 text-white px-4 py-2 rounded-md hover:bg-blue-700">Tampilkan Data</button>
            {% if summary is not none %}
            <a href="{{ url_for('laporan_pdf', mulai=filter.mulai, akhir=filter.akhir) }}" class="bg-green-600 text-white px-4 py-2 rounded-md hover:bg-green-700">Download PDF</a>
            <a href="{{ url_for('laporan_csv', mulai=filter.mulai, akhir=filter.akhir) }}" class="bg-gray-700 text-white px-4 py-2 rounded-md hover:bg-gray-800">Download CSV</a>
            {% endif %}
        </div>
    </form>

    {% if summary is not none %}
    <table class="w-full text-sm mt-4 border">
        <thead>
            <tr class="bg-gray-200">
                <th class="p-2 border">No</th>
                <th class="p-2 border">Tanggal</th>
                <th class="p-2 border">Tipe</th>
                <th class="p-2 border">Catatan</th>
                <th class="p-2 border">Jumlah</th>
            </tr>
        </thead>
        <tbody>
            {% for tx in summary.sorted_transactions %}
            <tr class="text-center">
                <td class="p-2 border">{{ loop.index }}</td>
                <td class="p-2 border">{{ tx.occurred_on.isoformat() }}</td>
                <td class="p-2 border">{{ tx.kind.label }}</td>
                <td class="p-2 border">{{ tx.note or '-' }}</td>
                <td class="p-2 border">{{ tx.amount | rupiah }}</td>
            </tr>
            {% else %}
            <tr><td colspan="5" class="p-2 border text-center text-gray-500">Tidak ada transaksi pada periode ini.</td></tr>
            {% endfor %}
        </tbody>
    </table>

    <div class="mt-4 text-sm text-gray-800">
        <p>Total Pemasukan: <strong class="text-green-600">{{ summary.total_income | rupiah }}</strong></p>
        <p>Total Pengeluaran: <strong class="text-red-600">{{ summary.total_expense | rupiah }}</strong></p>
        <p>Sisa Saldo: <strong class="text-purple-600">{{ summary.net_balance | rupiah }}</strong></p>
    </div>
    {% endif %}
</div>
"""


def render_page(konten, title, **context):
    full_html = HTML_LAYOUT.replace('{% block content %}{% endblock %}', konten)
    return render_template_string(full_html, title=title, **context)


# ---------------- RUTE FLASK ----------------

@app.route("/login", methods=["GET", "POST"])
def login_page():
    if session.get('logged_in'):
        return redirect(url_for('dashboard_page'))

    if request.method == "POST":
        email = request.form.get("email", "").strip()
        password = request.form.get("password", "").strip()
        mode = request.form.get("mode", "Login")

        if not email or not password:
            flash("Email dan password tidak boleh kosong.", "danger")
            return redirect(url_for('login_page'))

        if mode == "Daftar":
            try:
                get_supabase().auth.sign_up({"email": email, "password": password})
                logger.info("Akun baru didaftarkan: %s", email)
                flash("Daftar berhasil. Silakan cek email untuk verifikasi akun sebelum login.", "success")
            except Exception as e:
                logger.warning("Gagal mendaftar %s: %s", email, e)
                flash(f"Gagal mendaftar: {e}", "danger")
            return redirect(url_for('login_page'))

        try:
            response = get_supabase().auth.sign_in_with_password({
                "email": email,
                "password": password
            })
        except Exception as e:
            logger.warning("Gagal login %s: %s", email, e)
            flash(f"Gagal login: {e}", "danger")
            return redirect(url_for('login_page'))

        session['logged_in'] = True
        session['email'] = response.user.email
        session['user_id'] = response.user.id
        session['access_token'] = response.session.access_token
        session['refresh_token'] = response.session.refresh_token
        logger.info("User %s login", response.user.id)

        flash(f"Login berhasil! Selamat datang, {response.user.email}.", "success")
        return redirect(url_for('dashboard_page'))

    return render_page(HTML_LOGIN, "Login")


@app.route("/logout")
def logout_page():
    try:
        get_supabase().auth.sign_out()
    except Exception as e:
        logger.warning("Error saat logout Supabase: %s", e)

    session.clear()
    flash("Anda telah berhasil logout.", "success")
    return redirect(url_for('login_page'))


@app.route("/")
@login_required
def dashboard_page():
    user_id = session['user_id']
    try:
        bucket = Bucket.parse(request.args.get("periode"))
    except ValueError as e:
        flash(str(e), "danger")
        bucket = Bucket.ALL

    try:
        summary = ringkasan_periode(user_id, bucket)
    except Exception as e:
        flash(f"Gagal mengambil data: {e}", "danger")
        summary = aggregate([])

    # Chart.js hanya butuh angka untuk digambar; perhitungan tetap Decimal
    grafik = [{"name": g["name"], "value": float(g["value"])} for g in summary.chart_data()]
    return render_page(
        HTML_DASHBOARD, "Dashboard",
        summary=summary, grafik=grafik, bucket=bucket, buckets=list(Bucket),
        kinds=list(Kind), today=date.today().isoformat(),
    )


@app.route("/transaksi", methods=["POST"])
@login_required
def tambah_transaksi_page():
    user_id = session['user_id']
    try:
        data = baca_form_transaksi(request.form)
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for('dashboard_page'))

    try:
        insert_transaction(user_id, data)
    except Exception as e:
        flash(f"Gagal menyimpan: {e}", "danger")
        return redirect(url_for('dashboard_page'))

    flash("Transaksi berhasil disimpan.", "success")
    return redirect(url_for('dashboard_page'))


@app.route("/transaksi/<tx_id>/edit", methods=["GET", "POST"])
@login_required
def edit_transaksi_page(tx_id):
    user_id = session['user_id']
    try:
        row = get_transaction(user_id, tx_id)
    except Exception as e:
        flash(f"Gagal mengambil data: {e}", "danger")
        return redirect(url_for('dashboard_page'))
    if row is None:
        flash("Transaksi tidak ditemukan.", "danger")
        return redirect(url_for('dashboard_page'))

    if request.method == "POST":
        try:
            data = baca_form_transaksi(request.form)
        except ValueError as e:
            flash(str(e), "danger")
            return redirect(url_for('edit_transaksi_page', tx_id=tx_id))
        try:
            update_transaction(user_id, tx_id, data)
        except Exception as e:
            flash(f"Gagal mengubah: {e}", "danger")
            return redirect(url_for('edit_transaksi_page', tx_id=tx_id))
        flash("Transaksi berhasil diubah.", "success")
        return redirect(url_for('dashboard_page'))

    try:
        tx = transactions_from_rows([row])[0]
    except ValueError as e:
        flash(f"Data transaksi rusak: {e}", "danger")
        return redirect(url_for('dashboard_page'))
    return render_page(HTML_EDIT, "Ubah Transaksi", tx=tx, kinds=list(Kind))


@app.route("/transaksi/<tx_id>/hapus", methods=["POST"])
@login_required
def hapus_transaksi_page(tx_id):
    user_id = session['user_id']
    try:
        delete_transaction(user_id, tx_id)
    except Exception as e:
        flash(f"Gagal menghapus: {e}", "danger")
        return redirect(url_for('dashboard_page'))
    flash("Transaksi berhasil dihapus.", "success")
    return redirect(url_for('dashboard_page'))


@app.route("/riwayat.pdf")
@login_required
def riwayat_pdf():
    user_id = session['user_id']
    try:
        bucket = Bucket.parse(request.args.get("periode"))
        summary = ringkasan_periode(user_id, bucket)
    except Exception as e:
        flash(f"Gagal membuat PDF: {e}", "danger")
        return redirect(url_for('dashboard_page'))

    pdf = build_laporan_pdf(
        summary, judul=JUDUL_RIWAYAT, tampilkan_saldo=True,
        dicetak=datetime.now().strftime("%d/%m/%Y %H:%M"),
    )
    return send_file(
        io.BytesIO(pdf),
        as_attachment=True,
        download_name="riwayat-transaksi.pdf",
        mimetype="application/pdf",
    )


@app.route("/laporan")
@login_required
def laporan_page():
    user_id = session['user_id']
    filter_tanggal = {
        "mulai": request.args.get("mulai", ""),
        "akhir": request.args.get("akhir", ""),
    }
    summary = None

    if filter_tanggal["mulai"] or filter_tanggal["akhir"]:
        try:
            mulai, akhir = baca_periode(request.args)
        except ValueError as e:
            flash(str(e), "danger")
        else:
            try:
                summary = ringkasan_laporan(user_id, mulai, akhir)
            except Exception as e:
                flash(f"Gagal mengambil data: {e}", "danger")

    return render_page(HTML_LAPORAN, "Laporan", filter=filter_tanggal, summary=summary)


def _unduh_laporan(ext):
    user_id = session['user_id']
    try:
        mulai, akhir = baca_periode(request.args)
    except ValueError as e:
        flash(str(e), "danger")
        return redirect(url_for('laporan_page'))
    try:
        summary = ringkasan_laporan(user_id, mulai, akhir)
    except Exception as e:
        flash(f"Gagal mengambil data: {e}", "danger")
        return redirect(url_for('laporan_page'))

    if ext == "pdf":
        isi = build_laporan_pdf(summary, judul=JUDUL_LAPORAN, mulai=mulai, akhir=akhir)
        mimetype = "application/pdf"
    else:
        isi = build_laporan_csv(summary).encode("utf-8")
        mimetype = "text/csv"
    return send_file(
        io.BytesIO(isi),
        as_attachment=True,
        download_name=nama_file_laporan(mulai, akhir, ext),
        mimetype=mimetype,
    )


@app.route("/laporan.pdf")
@login_required
def laporan_pdf():
    return _unduh_laporan("pdf")


@app.route("/laporan.csv")
@login_required
def laporan_csv():
    return _unduh_laporan("csv")


# ---------------- Menjalankan Aplikasi (LOKAL) ----------------
if __name__ == "__main__":
    app.run(debug=True, port=5001)
