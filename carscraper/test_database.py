#!/usr/bin/env python3
"""
Tests for the SQLite temporary/permanent stores and exports.
"""
from datetime import datetime, timedelta, timezone

import pytest

from carscraper.database import (
    db_connect,
    db_init,
    delete_listing,
    delete_permanent,
    get_overview,
    ingest_listings,
    list_listings,
    list_permanent,
    promote_listing,
    promote_many,
    purge_expired,
)
from carscraper.export import export_store, listings_to_frame, save_output_rows
from carscraper.models import EnrichedListing
from carscraper.errors import ScrapeInputError

NOW = datetime(2025, 10, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def conn():
    c = db_connect(":memory:")
    db_init(c)
    yield c
    c.close()


def make_listing(n: int, **fields) -> EnrichedListing:
    base = dict(
        title=f"Car {n}",
        product_link=f"https://cars.example.test/item/{n}",
        price=f"${n},000",
        image="",
        posted_date="",
        site_name="Hemmings",
    )
    base.update(fields)
    return EnrichedListing(**base)


def test_ingest_is_keyed_by_link(conn):
    """Test ingesting the same link twice leaves one row with the newer data."""
    first = ingest_listings(conn, [make_listing(1)], now=NOW)
    second = ingest_listings(conn, [make_listing(1, price="$900")], now=NOW + timedelta(hours=1))

    assert first["inserted"] == 1
    assert second["inserted"] == 0 and second["updated"] == 1
    rows = list_listings(conn, now=NOW + timedelta(hours=1))
    assert len(rows) == 1
    assert rows[0]["price"] == "$900"


def test_ingest_sets_expiry_and_meta(conn):
    """Test scraped_at/expires_at follow the TTL and meta survives storage."""
    ingest_listings(conn, [make_listing(1, meta={"mileage": "42,000"})], ttl_hours=48, now=NOW)
    row = list_listings(conn, now=NOW)[0]
    assert row["scraped_at"] == "2025-10-20T12:00:00+00:00"
    assert row["expires_at"] == "2025-10-22T12:00:00+00:00"
    assert row["meta"] == {"mileage": "42,000"}


def test_ingest_skips_rows_without_link(conn):
    """Test records without a product link are counted as skipped."""
    stats = ingest_listings(conn, [{"title": "No link"}, make_listing(2)], now=NOW)
    assert stats["skipped"] == 1
    assert stats["inserted"] == 1


def test_expired_rows_purged(conn):
    """Test rows past their TTL disappear on the next ingest or read."""
    ingest_listings(conn, [make_listing(1)], ttl_hours=1, now=NOW)
    later = NOW + timedelta(hours=2)

    assert list_listings(conn, now=later) == []
    assert purge_expired(conn, later) == 1
    stats = ingest_listings(conn, [make_listing(2)], now=later)
    assert stats["purged"] == 0
    assert [r["title"] for r in list_listings(conn, now=later)] == ["Car 2"]


def test_delete_listing(conn):
    """Test deleting a temporary row by id."""
    ingest_listings(conn, [make_listing(1)], now=NOW)
    row_id = list_listings(conn, now=NOW)[0]["id"]
    assert delete_listing(conn, row_id) is True
    assert delete_listing(conn, row_id) is False


def test_promote_is_idempotent(conn):
    """Test promoting a link twice reports it already exists."""
    listing = make_listing(1, seller_contact="312-555-0199")
    assert promote_listing(conn, listing) == "created"
    assert promote_listing(conn, listing.to_record()) == "exists"
    rows = list_permanent(conn)
    assert len(rows) == 1
    assert rows[0]["seller_contact"] == "312-555-0199"
    assert rows[0]["created_at"]


def test_promote_requires_title_and_link(conn):
    """Test incomplete records are rejected."""
    with pytest.raises(ValueError):
        promote_listing(conn, {"product_link": "https://cars.example.test/item/1"})
    with pytest.raises(ValueError):
        promote_many(conn, [make_listing(1), {"title": "No link"}])
    assert list_permanent(conn) == []


def test_promote_many_counts_new_links(conn):
    """Test bulk promote skips links already stored and repeated in the batch."""
    promote_listing(conn, make_listing(1))
    saved = promote_many(conn, [make_listing(1), make_listing(2), make_listing(3), make_listing(2)])
    assert saved == 2
    assert len(list_permanent(conn)) == 3


def test_delete_permanent(conn):
    promote_listing(conn, make_listing(1))
    row_id = list_permanent(conn)[0]["id"]
    assert delete_permanent(conn, row_id) is True
    assert delete_permanent(conn, row_id) is False


def test_overview_counts(conn):
    """Test overview counts and scraped_at range filtering."""
    ingest_listings(conn, [make_listing(1), make_listing(2)], now=NOW)
    promote_listing(conn, make_listing(1, scraped_at="2025-10-20T12:00:00+00:00"))
    promote_listing(conn, make_listing(3, scraped_at="2025-09-01T12:00:00+00:00"))

    assert get_overview(conn, now=NOW) == {"temp_count": 2, "perm_count": 2, "exported_count": 2}
    assert get_overview(conn, "2025-10-01", None, now=NOW) == {"temp_count": 2, "perm_count": 1, "exported_count": 1}
    assert get_overview(conn, None, "2025-09-30", now=NOW)["temp_count"] == 0


def test_overview_rejects_bad_dates(conn):
    with pytest.raises(ScrapeInputError):
        get_overview(conn, "last week", None, now=NOW)


def test_export_store(conn, tmp_path):
    """Test table export and run export."""
    ingest_listings(conn, [make_listing(1), make_listing(2)], now=NOW)
    df = export_store(conn, "temporary")
    assert len(df) == 2
    assert "product_link" in df.columns
    assert export_store(conn, "permanent").empty
    with pytest.raises(ValueError):
        export_store(conn, "archive")

    out = tmp_path / "run.csv"
    save_output_rows([make_listing(1, meta={"vin": "X"})], str(out))
    assert out.read_text(encoding="utf-8").splitlines()[0].startswith("title,price,product_link")


def test_listings_to_frame_columns():
    df = listings_to_frame([make_listing(1, error="cancelled")])
    assert list(df["error"]) == ["cancelled"]
    assert list(df["meta_json"]) == [""]
    assert list(df["price_value"]) == [1000.0]
    assert list(df["currency"]) == ["USD"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
