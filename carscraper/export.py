"""
Export utilities: scrape results and stored tables to CSV / Excel.
"""
import json
import sqlite3
from typing import Iterable, List

import pandas as pd

from .models import EnrichedListing
from .utils import parse_price

EXPORT_COLUMNS = [
    "title", "price", "product_link", "site_name", "posted_date",
    "seller_name", "seller_contact", "seller_email", "seller_profile",
    "image", "description", "scraped_at",
]

STORE_TABLES = {
    "temporary": "listings",
    "permanent": "permanent_listings",
}


def listings_to_frame(listings: Iterable[EnrichedListing]) -> pd.DataFrame:
    """One row per listing; numeric price split out, meta flattened into JSON."""
    rows = []
    for x in listings:
        row = {c: getattr(x, c) for c in EXPORT_COLUMNS}
        row["price_value"], row["currency"] = parse_price(x.price)
        row["meta_json"] = json.dumps(x.meta, ensure_ascii=False) if x.meta else ""
        row["error"] = x.error or ""
        rows.append(row)
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS + ["price_value", "currency", "meta_json", "error"])


def export_store(conn: sqlite3.Connection, store: str = "temporary") -> pd.DataFrame:
    """Whole temporary or permanent table, newest first."""
    table = STORE_TABLES.get(store)
    if table is None:
        raise ValueError(f"Unknown store {store!r}; expected one of {sorted(STORE_TABLES)}")
    q = f"SELECT * FROM {table} ORDER BY scraped_at DESC, id DESC"
    return pd.read_sql_query(q, conn)


def save_frame(df: pd.DataFrame, out_path: str):
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)


def save_output_rows(listings: List[EnrichedListing], out_path: str, logger=None):
    """Save listings to CSV or Excel file."""
    df = listings_to_frame(listings)
    save_frame(df, out_path)

    if logger:
        logger.info(f">>> Saved {len(df)} rows to {out_path}")
    else:
        print(f">>> Saved {len(df)} rows to {out_path}")
