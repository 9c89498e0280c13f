"""Pytest configuration and shared fixtures."""

import json

import pytest

from sellerscraper.scrapers.base import FetchResponse


EMBEDDED_SELLER = {
    "__typename": "Seller",
    "id": "1000",
    "name": "TechCo B.V.",
    "state": "ACTIVE",
    "rating": {"average": 4.6, "outOf": 5, "count": 128},
    "contact": {
        "email": "sales@techco.nl",
        "phone": "+31 20 123 4567",
        "fax": None,
        "serviceHours": "Ma-Vr 09:00-17:00",
    },
    "legal": {
        "imprint": "TechCo B.V.<br>KvK: 12345678<br>BTW: NL 123456789B01",
        "generalTermsUrl": "https://techco.nl/terms",
        "hasConsent": True,
        "hasDataProtection": False,
    },
    "shippingTerms": [
        {
            "country": "NL",
            "shippingType": "STANDARD",
            "freeShippingThreshold": {"amount": 50, "currency": "EUR"},
        },
        {"country": "BE", "shippingType": "EXPRESS"},
    ],
}


def embed_state(seller: dict) -> str:
    """Wrap a seller object in the page framework's state blob."""
    state = {"apollo": {"ROOT_QUERY": {"seller": {"__ref": "Seller:1000"}}}}
    return (
        "<script>window.__PRELOADED_STATE__ = "
        + json.dumps(state)[:-1]
        + ', "Seller:1000": '
        + json.dumps(seller)
        + "};</script>"
    )


# Full seller page: embedded data, labeled pairs and a star widget
SELLER_PAGE_HTML = (
    "<html><head><title>TechCo</title>"
    + embed_state(EMBEDDED_SELLER)
    + """
</head><body>
<h1>TechCo Shop</h1>
<div class="stars" aria-label="Beoordeling: 4,5 van de 5 sterren op basis van 1.234 recensies"></div>
<dl>
  <dt>Officiële bedrijfsnaam</dt><dd>TechCo Holding B.V.</dd>
  <dt>Kantooradres</dt><dd>Damrak 1</dd>
  <dt>Postcode</dt><dd>1012 LG</dd>
  <dt>Plaats:</dt><dd>Amsterdam</dd>
  <dt>E-mailadres</dt><dd>info@techco.nl</dd>
</dl>
</body></html>
"""
)

# No embedded data; every field has to come from the fallbacks
FALLBACK_PAGE_HTML = """
<html><head>
<script>Sentry.init({dsn: "https://abc123@o123.ingest.sentry.io/42"});</script>
<script>var meta = {"contact": "\\u003cservice@fallback.nl\\u003e"};</script>
</head><body>
<h1>  Direct &amp; Co  </h1>
<a href="tel:undefined">Bel ons</a>
<a href="tel:+31 10 765 4321">+31 10 765 4321</a>
<p>Mail ons: contact@shop-direct.nl</p>
<dl>
  <dt>Juridische informatie</dt>
  <dd>Direct &amp; Co, Handelsregister HRB 98765, USt-IdNr.: DE 123456789</dd>
</dl>
</body></html>
"""

# Page that loaded fine but carries no seller
EMPTY_PAGE_HTML = "<html><body><p>Deze verkoper bestaat niet.</p></body></html>"

# Embedded object cut off mid-value
TRUNCATED_PAGE_HTML = (
    '<html><body><script>{"__typename":"Seller","id":"5","name":"Cut Off",'
    '"rating":{"average":4</script></body></html>'
)


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
def seller_page_html() -> str:
    return SELLER_PAGE_HTML


@pytest.fixture
def fallback_page_html() -> str:
    return FALLBACK_PAGE_HTML


@pytest.fixture
def empty_page_html() -> str:
    return EMPTY_PAGE_HTML


@pytest.fixture
def truncated_page_html() -> str:
    return TRUNCATED_PAGE_HTML


@pytest.fixture
def sleeps():
    """Records every requested sleep instead of waiting."""
    calls = []

    async def fake_sleep(seconds: float) -> None:
        calls.append(seconds)

    fake_sleep.calls = calls
    return fake_sleep


def page(text: str, status_code: int = 200) -> FetchResponse:
    return FetchResponse(status_code=status_code, text=text, url="https://example.test/seller")
