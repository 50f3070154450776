"""
SQLite storage for scraped listings.

Two tables: `listings` is the temporary store (rows expire after a TTL and
are purged lazily), `permanent_listings` holds what a user chose to keep.
Both are keyed by product_link.
"""
import json
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from .models import DateBoundary, EnrichedListing
from .utils import to_iso, utcnow

DEFAULT_TTL_HOURS = 48

DDL_LISTINGS = """
CREATE TABLE IF NOT EXISTS listings (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  product_link TEXT NOT NULL UNIQUE,
  title TEXT,
  price TEXT,
  image TEXT,
  posted_date TEXT,
  site_name TEXT,
  seller_name TEXT,
  seller_profile TEXT,
  seller_email TEXT,
  seller_contact TEXT,
  description TEXT,
  meta_json TEXT,
  error TEXT,
  scraped_at TEXT,
  expires_at TEXT
);
"""

DDL_PERMANENT = """
CREATE TABLE IF NOT EXISTS permanent_listings (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  product_link TEXT NOT NULL UNIQUE,
  title TEXT NOT NULL,
  price TEXT,
  image TEXT,
  site_name TEXT,
  seller_name TEXT,
  seller_profile TEXT,
  seller_email TEXT,
  seller_contact TEXT,
  description TEXT,
  scraped_at TEXT,
  created_at TEXT
);
"""

DDL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_listings_expires_at ON listings(expires_at);",
    "CREATE INDEX IF NOT EXISTS idx_listings_scraped_at ON listings(scraped_at);",
    "CREATE INDEX IF NOT EXISTS idx_permanent_scraped_at ON permanent_listings(scraped_at);",
]

LISTING_FIELDS = [
    "title", "price", "image", "posted_date", "site_name", "seller_name",
    "seller_profile", "seller_email", "seller_contact", "description",
]
PERMANENT_FIELDS = [
    "title", "price", "image", "site_name", "seller_name", "seller_profile",
    "seller_email", "seller_contact", "description",
]

Record = Union[EnrichedListing, Dict[str, Any]]


def db_connect(path: str) -> sqlite3.Connection:
    """Create database connection with optimized settings."""
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def db_init(conn: sqlite3.Connection):
    """Initialize database schema with tables and indexes."""
    conn.execute(DDL_LISTINGS)
    conn.execute(DDL_PERMANENT)
    for ddl in DDL_INDEXES:
        conn.execute(ddl)
    conn.commit()


def row_to_dict(cur, row) -> Dict[str, Any]:
    return {desc[0]: row[i] for i, desc in enumerate(cur.description)}


def _as_record(item: Record) -> Dict[str, Any]:
    if isinstance(item, EnrichedListing):
        return item.to_record()
    return dict(item)


def _fetch_all(conn: sqlite3.Connection, sql: str, params=()) -> List[Dict[str, Any]]:
    cur = conn.execute(sql, params)
    rows = [row_to_dict(cur, r) for r in cur.fetchall()]
    for r in rows:
        if "meta_json" in r:
            r["meta"] = json.loads(r.pop("meta_json") or "{}")
    return rows


# --- temporary store ------------------------------------------------------

def purge_expired(conn: sqlite3.Connection, now: Optional[datetime] = None) -> int:
    """Delete temporary rows whose expiry has passed; return how many."""
    cur = conn.execute("DELETE FROM listings WHERE expires_at <= ?", (to_iso(now or utcnow()),))
    conn.commit()
    return cur.rowcount


def db_get_listing(conn: sqlite3.Connection, product_link: str) -> Optional[Dict[str, Any]]:
    """Retrieve existing temporary listing by product_link."""
    rows = _fetch_all(conn, "SELECT * FROM listings WHERE product_link = ?", (product_link,))
    return rows[0] if rows else None


def db_insert_listing(conn: sqlite3.Connection, rec: Dict[str, Any], scraped_at: str, expires_at: str):
    cols = ["product_link"] + LISTING_FIELDS + ["meta_json", "error", "scraped_at", "expires_at"]
    values = [rec["product_link"]] + [rec.get(f) for f in LISTING_FIELDS] + [
        json.dumps(rec.get("meta") or {}, ensure_ascii=False), rec.get("error"), scraped_at, expires_at,
    ]
    conn.execute(
        f"INSERT INTO listings ({','.join(cols)}) VALUES ({','.join('?' * len(cols))})",
        values,
    )


def db_update_listing(conn: sqlite3.Connection, rec: Dict[str, Any], scraped_at: str, expires_at: str):
    sets = ", ".join(f"{f}=?" for f in LISTING_FIELDS)
    values = [rec.get(f) for f in LISTING_FIELDS] + [
        json.dumps(rec.get("meta") or {}, ensure_ascii=False), rec.get("error"),
        scraped_at, expires_at, rec["product_link"],
    ]
    conn.execute(
        f"UPDATE listings SET {sets}, meta_json=?, error=?, scraped_at=?, expires_at=? WHERE product_link=?",
        values,
    )


def upsert_listing(conn: sqlite3.Connection, item: Record, scraped_at: str, expires_at: str) -> bool:
    """Insert or refresh one temporary listing. Returns True when it was new."""
    rec = _as_record(item)
    if not rec.get("product_link"):
        raise ValueError("product_link is required")
    existing = db_get_listing(conn, rec["product_link"])
    if existing is None:
        db_insert_listing(conn, rec, scraped_at, expires_at)
        return True
    db_update_listing(conn, rec, scraped_at, expires_at)
    return False


def ingest_listings(
    conn: sqlite3.Connection,
    listings: Iterable[Record],
    ttl_hours: float = DEFAULT_TTL_HOURS,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """
    Store one scrape's output in the temporary store.

    Every row gets scraped_at = now and expires_at = now + ttl. Expired rows
    are purged first; re-scraped links are updated in place.
    """
    now = now or utcnow()
    scraped_at = to_iso(now)
    expires_at = to_iso(now + timedelta(hours=ttl_hours))
    stats = {"purged": purge_expired(conn, now), "inserted": 0, "updated": 0, "skipped": 0}
    for item in listings:
        rec = _as_record(item)
        if not rec.get("product_link"):
            stats["skipped"] += 1
            continue
        if upsert_listing(conn, rec, scraped_at, expires_at):
            stats["inserted"] += 1
        else:
            stats["updated"] += 1
    conn.commit()
    return stats


def list_listings(conn: sqlite3.Connection, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Unexpired temporary listings, newest first."""
    return _fetch_all(
        conn,
        "SELECT * FROM listings WHERE expires_at > ? ORDER BY scraped_at DESC, id DESC",
        (to_iso(now or utcnow()),),
    )


def get_listing(conn: sqlite3.Connection, listing_id: int) -> Optional[Dict[str, Any]]:
    rows = _fetch_all(conn, "SELECT * FROM listings WHERE id = ?", (listing_id,))
    return rows[0] if rows else None


def delete_listing(conn: sqlite3.Connection, listing_id: int) -> bool:
    cur = conn.execute("DELETE FROM listings WHERE id = ?", (listing_id,))
    conn.commit()
    return cur.rowcount > 0


# --- permanent store ------------------------------------------------------

def db_get_permanent(conn: sqlite3.Connection, product_link: str) -> Optional[Dict[str, Any]]:
    rows = _fetch_all(conn, "SELECT * FROM permanent_listings WHERE product_link = ?", (product_link,))
    return rows[0] if rows else None


def _insert_permanent(conn: sqlite3.Connection, rec: Dict[str, Any], now: str):
    cols = ["product_link"] + PERMANENT_FIELDS + ["scraped_at", "created_at"]
    values = [rec["product_link"]] + [rec.get(f) for f in PERMANENT_FIELDS] + [
        rec.get("scraped_at") or now, now,
    ]
    conn.execute(
        f"INSERT INTO permanent_listings ({','.join(cols)}) VALUES ({','.join('?' * len(cols))})",
        values,
    )


def _check_promotable(rec: Dict[str, Any]):
    if not rec.get("title") or not rec.get("product_link"):
        raise ValueError("title and product_link are required")


def promote_listing(conn: sqlite3.Connection, item: Record) -> str:
    """
    Copy one listing into the permanent store.

    Returns "created", or "exists" when the link is already permanent.
    """
    rec = _as_record(item)
    _check_promotable(rec)
    if db_get_permanent(conn, rec["product_link"]) is not None:
        return "exists"
    _insert_permanent(conn, rec, to_iso(utcnow()))
    conn.commit()
    return "created"


def promote_many(conn: sqlite3.Connection, items: Iterable[Record]) -> int:
    """Bulk promote; links already permanent are left alone. Returns count saved."""
    recs = [_as_record(i) for i in items]
    for rec in recs:
        _check_promotable(rec)
    now = to_iso(utcnow())
    saved = 0
    seen = set()
    for rec in recs:
        link = rec["product_link"]
        if link in seen or db_get_permanent(conn, link) is not None:
            continue
        seen.add(link)
        _insert_permanent(conn, rec, now)
        saved += 1
    conn.commit()
    return saved


def list_permanent(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    return _fetch_all(conn, "SELECT * FROM permanent_listings ORDER BY scraped_at DESC, id DESC")


def delete_permanent(conn: sqlite3.Connection, listing_id: int) -> bool:
    cur = conn.execute("DELETE FROM permanent_listings WHERE id = ?", (listing_id,))
    conn.commit()
    return cur.rowcount > 0


# --- overview -------------------------------------------------------------

def get_overview(
    conn: sqlite3.Connection,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """
    Record counts for the dashboard, optionally within a scraped_at range.

    Bad dates raise ScrapeInputError (from DateBoundary).
    """
    purge_expired(conn, now)
    window = DateBoundary.parse(date_from, date_to, timezone.utc)
    where, params = "", []
    if window is not None:
        clauses = []
        if window.start is not None:
            clauses.append("scraped_at >= ?")
            params.append(to_iso(window.start))
        if window.end is not None:
            clauses.append("scraped_at <= ?")
            params.append(to_iso(window.end))
        where = " WHERE " + " AND ".join(clauses)

    temp_count = conn.execute(f"SELECT COUNT(*) FROM listings{where}", params).fetchone()[0]
    perm_count = conn.execute(f"SELECT COUNT(*) FROM permanent_listings{where}", params).fetchone()[0]
    return {"temp_count": temp_count, "perm_count": perm_count, "exported_count": perm_count}
