#!/usr/bin/env python3
"""
Tests for the site registry and per-site card rules.
"""
from datetime import datetime, timezone

import pytest

from carscraper.errors import ScrapeInputError, UnknownSiteError
from carscraper.models import ListingStub, RunContext
from carscraper.sites import ADAPTERS, adapter_class, get_adapter, site_names
from carscraper.sites import craigslist, ebay, hemmings, privatepartycars
from carscraper.sites.bestcarfinder import BestCarFinderAdapter
from carscraper.sites.craigslist import CraigslistAdapter, search_page_url
from carscraper.sites.ebay import EbayAdapter
from carscraper.sites.hemmings import HemmingsAdapter, clean_price
from carscraper.sites.karkiosk import KarkioskAdapter
from carscraper.sites.privatepartycars import PrivatePartyCarsAdapter


@pytest.mark.parametrize("name,expected", [
    ("eBay (US)", EbayAdapter),
    ("ebay (aus)", EbayAdapter),
    ("  eBay (UK) ", EbayAdapter),
    ("Hemming", HemmingsAdapter),
    ("Hemmings", HemmingsAdapter),
    ("Craigslist (NewYork)", CraigslistAdapter),
    ("Karkis", KarkioskAdapter),
    ("privatepartycars", PrivatePartyCarsAdapter),
])
def test_registry_aliases(name, expected):
    """Test display names, aliases and slugs resolve to the same adapter."""
    assert adapter_class(name) is expected


def test_unknown_site():
    """Test an unsupported name is an input error."""
    with pytest.raises(UnknownSiteError):
        get_adapter("Gumtree")
    assert issubclass(UnknownSiteError, ScrapeInputError)


def test_site_names_cover_every_adapter():
    """Test the picker offers at least one name per adapter, all resolvable."""
    names = site_names()
    assert {adapter_class(n) for n in names} == set(ADAPTERS)
    assert "eBay (US)" in names
    assert "Craigslist (Chicago)" in names


def test_ebay_card_rules(fast_config):
    """Test eBay title prefix, tracking params and year-less dates."""
    now = datetime(2025, 1, 5, 12, 0, tzinfo=timezone.utc)
    adapter = EbayAdapter(cfg=fast_config, clock=lambda: now)

    stub = adapter.to_stub({
        "title": "New Listing 1967 Ford Mustang",
        "link": "https://www.ebay.com/itm/123456?hash=abc&_trkparms=x",
        "posted": "Dec-30 10:00",
    }, "https://www.ebay.com/sch/i.html")

    assert stub.title == "1967 Ford Mustang"
    assert stub.link == "https://www.ebay.com/itm/123456"
    assert stub.posted_at == datetime(2024, 12, 30, 10, 0, tzinfo=timezone.utc)
    assert adapter.to_stub({"title": "Shop on eBay", "link": "/itm/1"}, "https://www.ebay.com/") is None


def test_ebay_page_urls(fast_config):
    """Test eBay pages through _pgn."""
    adapter = EbayAdapter(cfg=fast_config)
    url = adapter.page_url("https://www.ebay.com/sch/i.html?_nkw=mustang&_pgn=1", 3)
    assert url == "https://www.ebay.com/sch/i.html?_nkw=mustang&_pgn=3"


def test_craigslist_hash_paging():
    """Test Craigslist pages through the list-view hash."""
    url = "https://chicago.craigslist.org/search/cta?query=civic#search=1~gallery~0~0"
    assert search_page_url(url, 1) == "https://chicago.craigslist.org/search/cta?query=civic#search=1~list~0~0"
    assert search_page_url(url, 3).endswith("#search=1~list~2~0")


def test_hemmings_price_cleanup():
    """Test Hemmings prices keep digits and a leading dollar sign."""
    assert clean_price("Price: 24,500 USD") == "$24,500"
    assert clean_price("$18,900") == "$18,900"
    assert clean_price("Call for price") == ""


@pytest.mark.asyncio
async def test_hemmings_stops_after_last_page(fast_config):
    """Test no page past the last numbered pager link is requested."""
    adapter = HemmingsAdapter(cfg=fast_config)
    ctx = RunContext(session=None, site_name="Hemmings", state={"last_page": 2})
    assert await adapter.advance(ctx, page=None, search_url="https://www.hemmings.com/classifieds", index=3) is None


def test_hemmings_requires_full_numbers(fast_config):
    """Test Hemmings ignores short numeric ids."""
    adapter = HemmingsAdapter(cfg=fast_config)
    assert adapter.extractor.phone("Listing 555-0199") is None
    assert adapter.extractor.phone("Call 312-555-0199") == "312-555-0199"


def test_karkiosk_has_no_card_dates(fast_config):
    """Test Karkiosk cards never carry a parsed date."""
    adapter = KarkioskAdapter(cfg=fast_config)
    assert adapter.parse_posted_date("2025-10-01") is None


def test_privatepartycars_skips_site_phone(fast_config):
    """Test the site's own switchboard number is never a seller contact."""
    adapter = PrivatePartyCarsAdapter(cfg=fast_config)
    text = (
        "Questions? Call PrivatePartyCars at 775-323-4478 during business hours. "
        "Owner contact: mobile 312-555-0199 evenings only."
    )
    assert adapter.phone_near_contact_words(text) == "312-555-0199"
    assert adapter.phone_near_contact_words("Stock 312-555-0199") is None


@pytest.mark.asyncio
async def test_hemmings_pager_and_profile_visit(site, site_adapter, node):
    """Test Hemmings reads its last page from the pager and prefers profile contacts."""
    adapter = site_adapter(HemmingsAdapter)
    search = "https://www.hemmings.com/classifieds/cars-for-sale/chevrolet/camaro"

    def card(n):
        return node(children={
            "h3": [node(f"1969 Camaro #{n}")],
            "a[href*='/classifieds/listing']": [node(attrs={"href": f"/classifieds/listing/{n}"})],
            ".heading-label + span": [node("45,000")],
        })

    pager = [node("1"), node("2"), node("Next")]
    site.dom[search] = node(children={hemmings.PAGER_LINKS: pager, hemmings.CARD_SELECTOR: [card(1)]})
    site.dom[adapter.page_url(search, 2)] = node(children={hemmings.CARD_SELECTOR: [card(2)]})

    profile = "https://www.hemmings.com/profiles/classic-motors"
    site.dom["https://www.hemmings.com/classifieds/listing/1"] = node("1969 Camaro #1 Call 312-555-0199", children={
        ".seller-info .seller-name": [node("Classic Motors")],
        "a[href*='/profiles/']": [node(attrs={"href": "/profiles/classic-motors"})],
        "#description": [node("Matching numbers 396.")],
    })
    site.dom[profile] = node("Classic Motors. Call 773-619-5872 or write sales@classicmotors.example.com")
    site.dom["https://www.hemmings.com/classifieds/listing/2"] = node("Call 630-943-7111")

    results = await adapter.scrape(search, max_pages=5)

    assert [r.title for r in results] == ["1969 Camaro #1", "1969 Camaro #2"]
    assert results[0].price == "$45,000"
    assert results[0].seller_name == "Classic Motors"
    assert results[0].description == "Matching numbers 396."
    assert results[0].seller_profile == profile
    assert results[0].seller_contact == "773-619-5872"
    assert results[0].seller_email == "sales@classicmotors.example.com"
    assert results[1].seller_contact == "630-943-7111"
    assert results[1].seller_profile is None
    assert adapter.page_url(search, 3) not in site.visits
    assert site.open_tabs == 0
    assert site.peak_tabs <= adapter.detail_concurrency


@pytest.mark.asyncio
async def test_privatepartycars_inquire_modal(site, site_adapter, node):
    """Test the inquire dialog is opened for the owner's name and phone."""
    adapter = site_adapter(PrivatePartyCarsAdapter)
    search = "https://www.privatepartycars.com/search?make=chevrolet"

    def card(n, title, details):
        return node(attrs={"href": f"https://www.privatepartycars.com/for-sale/{n}"}, children={
            ".results_title": [node(title)],
            ".results_price": [node("$38,500")],
            ".results_details": [node(details)],
        })

    site.dom[search] = node(children={privatepartycars.CARD_SELECTOR: [
        card(1, "1972 Chevelle SS", "V8 automatic"),
        card(2, "1985 Chevy K10", "4x4, 98k miles"),
    ]})
    trigger = node(reveals={
        "#inquireform_main": [node("Name: Jane Smith Phone: 312-555-0199")],
        privatepartycars.INQUIRE_NAME_BLOCK: [node("Name: Jane Smith")],
    })
    site.dom["https://www.privatepartycars.com/for-sale/1"] = node(
        "Questions? Call PrivatePartyCars at 775-323-4478", children={"#ask-owner": [trigger]},
    )
    site.dom["https://www.privatepartycars.com/for-sale/2"] = node(
        "Great truck. Questions? Call PrivatePartyCars at 775-323-4478. "
        "Owner contact: mobile 773-619-5872"
    )

    results = await adapter.scrape(search, max_pages=3)

    assert [r.title for r in results] == ["1972 Chevelle SS", "1985 Chevy K10"]
    assert trigger.clicks == 1
    assert results[0].seller_name == "Jane Smith"
    assert results[0].seller_contact == "312-555-0199"
    assert results[1].seller_name == "unknown"
    assert results[1].seller_contact == "773-619-5872"
    assert all(r.error is None for r in results)


@pytest.mark.asyncio
async def test_ebay_description_fallbacks(site, site_adapter, node):
    """Test eBay descriptions come from the iframe, then the page block, then body text."""
    adapter = site_adapter(EbayAdapter)
    search = "https://www.ebay.com/sch/i.html?_nkw=mustang"

    def card(n, title):
        return node(children={
            ".s-item__title": [node(title)],
            "a.s-item__link": [node(attrs={"href": f"https://www.ebay.com/itm/{n}?_trkparms=abc"})],
            ".s-item__price": [node("$25,000")],
        })

    site.dom[search] = node(children={ebay.CARD_SELECTOR: [
        card(101, "New Listing 1967 Ford Mustang"),
        card(102, "1968 Ford Mustang"),
        card(103, "1969 Ford Mustang"),
    ]})
    description_frame = node(frame=node(children={"body": [node("Numbers matching 289 V8.")]}))
    site.dom["https://www.ebay.com/itm/101"] = node("Seller feedback 99.8%. Call 312-555-0199", children={
        ebay.DESCRIPTION_FRAME: [description_frame],
        ebay.DESCRIPTION_SELECTORS[0]: [node("Item specifics")],
        ebay.SELLER_NAME_SELECTORS[0]: [node("classic_cars_dan")],
        ebay.SELLER_LINK_SELECTORS[0]: [node(attrs={"href": "https://www.ebay.com/str/classiccarsdan"})],
        ebay.IMAGE_SELECTORS[0]: [node(attrs={"src": "https://i.ebayimg.com/101.jpg"})],
    })
    site.dom["https://www.ebay.com/itm/102"] = node("One owner, garage kept. Reach me at 630-943-7111", children={
        ebay.DESCRIPTION_SELECTORS[0]: [node("One owner, garage kept.")],
    })
    site.dom["https://www.ebay.com/itm/103"] = node("1969 Mustang fastback, restored")

    results = await adapter.scrape(search, max_pages=1)

    assert [r.product_link for r in results] == [f"https://www.ebay.com/itm/{n}" for n in (101, 102, 103)]
    assert results[0].title == "1967 Ford Mustang"
    assert results[0].description == "Numbers matching 289 V8."
    assert results[0].seller_name == "classic_cars_dan"
    assert results[0].seller_profile == "https://www.ebay.com/str/classiccarsdan"
    assert results[0].image == "https://i.ebayimg.com/101.jpg"
    assert results[0].seller_contact == "312-555-0199"
    assert results[1].description == "One owner, garage kept."
    assert results[1].seller_contact == "630-943-7111"
    assert results[2].description == "1969 Mustang fastback, restored"
    assert results[2].seller_contact is None
    # eBay store pages are linked, not visited
    assert "https://www.ebay.com/str/classiccarsdan" not in site.visits


@pytest.mark.asyncio
async def test_bestcarfinder_call_button_and_email(site, site_adapter, node, fake_session):
    """Test the call button's dialog supplies the phone and #youremail the address."""
    adapter = site_adapter(BestCarFinderAdapter)
    link = "https://www.bestcarfinder.com/owner/123"
    call = node(reveals={".vex-content": [node("Seller phone: (312) 555-0199")]})
    site.dom[link] = node("Owner listing", children={
        "#btnCallSellerTop": [call],
        "#youremail": [node(attrs={"value": "owner@example.com"})],
        "#car_description": [node("Clean title, new tires")],
        ".seller_name": [node("Mike")],
    })
    stub = ListingStub(title="2014 Jeep Wrangler", link=link)
    ctx = RunContext(session=fake_session, site_name="BestCarFinder")

    async with fake_session.new_page() as page:
        await page.goto(link)
        listing = await adapter.fetch_detail(page, stub, ctx)

    assert call.clicks == 1
    assert listing.seller_contact == "312-555-0199"
    assert listing.seller_email == "owner@example.com"
    assert listing.seller_name == "Mike"
    assert listing.description == "Clean title, new tires"


@pytest.mark.asyncio
async def test_craigslist_reply_and_detail_dates(site, site_adapter, node):
    """Test Craigslist windows on the posting date and reads the reply panel."""
    adapter = site_adapter(CraigslistAdapter)
    search = "https://chicago.craigslist.org/search/cta?query=civic"

    def card(n):
        return node(children={
            ".title": [node(f"2012 Honda Civic #{n}")],
            "a": [node(attrs={"href": f"https://chicago.craigslist.org/cto/d/civic/{n}.html"})],
            ".price": [node("$6,500")],
        })

    def posting(stamp):
        reply = node(reveals={".reply-tel-number": [node("call or text (773) 619-5872")]})
        return node(children={
            "#postingbody": [node("QR Code Link to This Post\nRuns great, new tires.")],
            "time[datetime]": [node(attrs={"datetime": stamp})],
            "button.reply-button": [reply],
        })

    site.dom[search] = node(children={craigslist.CARD_SELECTOR: [card(1), card(2), card(3)]})
    site.dom["https://chicago.craigslist.org/cto/d/civic/1.html"] = posting("2025-10-20T09:00:00-0500")
    site.dom["https://chicago.craigslist.org/cto/d/civic/2.html"] = posting("2025-10-12T09:00:00-0500")
    site.dom["https://chicago.craigslist.org/cto/d/civic/3.html"] = posting("2025-09-20T09:00:00-0500")

    results = await adapter.scrape(search, max_pages=3, from_date="2025-10-01", to_date="2025-10-15")

    assert [r.title for r in results] == ["2012 Honda Civic #2"]
    listing = results[0]
    assert listing.posted_date == "2025-10-12T14:00:00+00:00"
    assert listing.description == "Runs great, new tires."
    assert listing.seller_contact == "773-619-5872"
    assert listing.seller_name == "Private Seller"
    assert search_page_url(search, 2) in site.visits


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
