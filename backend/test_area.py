import asyncio

import httpx

from area import AreaClassifier, address_text, classify_address, classify_by_region
from conftest import BANDRA
from models import AreaType

DELHI = (28.6139, 77.2090)


def classify(provider, lat, lng):
    return asyncio.run(AreaClassifier(provider, spacing=0).classify(lat, lng))


def test_address_text_skips_empty_fields():
    address = {"freeformAddress": "Sector 5", "street": "", "streetName": None,
               "municipality": "Noida", "country": "India"}
    assert address_text(address) == "sector 5 noida"


def test_commercial_keywords_take_priority():
    assert classify_address("phoenix mall, housing society") is AreaType.COMMERCIAL
    assert classify_address("shanti nagar colony") is AreaType.RESIDENTIAL
    assert classify_address("somewhere quiet") is None
    assert classify_address("") is None


def test_region_fallback():
    assert classify_by_region(*BANDRA) is AreaType.COMMERCIAL
    assert classify_by_region(*DELHI) is AreaType.MIXED


def test_keyword_match_from_reverse_geocode(fake, provider):
    fake.set("reverse", 200, {"addresses": [{"address": {
        "streetName": "Vasant Vihar", "municipality": "New Delhi"}}]})
    assert classify(provider, *DELHI) is AreaType.RESIDENTIAL


def test_no_keyword_falls_back_to_region(fake, provider):
    fake.set("reverse", 200, {"addresses": [{"address": {"municipality": "New Delhi"}}]})
    assert classify(provider, *DELHI) is AreaType.MIXED


def test_empty_addresses_fall_back(fake, provider):
    fake.set("reverse", 200, {"addresses": []})
    assert classify(provider, *BANDRA) is AreaType.COMMERCIAL


def test_provider_failures_never_raise(fake, provider):
    fake.set("reverse", 429, {})
    assert classify(provider, *DELHI) is AreaType.MIXED
    fake.set("reverse", error=httpx.ConnectError("down"))
    assert classify(provider, *BANDRA) is AreaType.COMMERCIAL
    fake.responses["reverse"] = httpx.Response(200, content=b"not json")
    assert classify(provider, *DELHI) is AreaType.MIXED
