# tests/fakes.py
"""Records and test doubles shared by the test modules."""


# Compact records as written by `pipeline preprocess`, cheapest first
COMPACT_RECORDS = [
    {
        "id": "a1",
        "t": "Bright 2-room flat",
        "lat": 48.1351,
        "lng": 11.5820,
        "l": "Leopoldstr. 1",
        "pc": "80802",
        "c": "München",
        "p": 320000,
        "s": 55,
        "r": 2,
        "imgs": ["https://img.example/a1.jpg"],
    },
    {
        "id": "a2",
        "t": "Family flat with balcony",
        "lat": 48.1500,
        "lng": 11.5600,
        "l": "Schleißheimer Str. 20",
        "pc": "80797",
        "c": "München",
        "p": 480000,
        "s": 75,
        "r": 3,
        "imgs": [],
    },
    {
        "id": "a3",
        "t": "Penthouse near the park",
        "lat": 48.1600,
        "lng": 11.6000,
        "l": "Ungererstr. 5",
        "pc": "80805",
        "c": "München",
        "p": 650000,
        "s": 95,
        "r": 4,
        "imgs": [],
    },
    {
        "id": "a4",
        "t": "Townhouse",
        "lat": 48.1000,
        "lng": 11.5000,
        "l": "Fürstenrieder Str. 100",
        "pc": "81377",
        "c": "München",
        "p": 990000,
        "s": 140,
        "r": 5,
        "imgs": [],
    },
]


# Raw aggregator search result (flat shape)
EXTERNAL_RECORD = {
    "id": "ti-1",
    "title": "Garching 3-room apartment",
    "buyingPrice": 410000,
    "squareMeter": 82,
    "rooms": 3,
    "floor": 2,
    "address": {
        "lat": 48.2490,
        "lon": 11.6510,
        "street": "Mühlfeldweg 3",
        "postcode": "85748",
        "city": "Garching",
    },
    "images": [{"originalUrl": "https://img.example/ti-1.jpg"}],
}


class FakeListingClient:
    """Stands in for ThinkImmoListingClient; answers per location."""

    def __init__(self, responses=None, error=None):
        self.responses = dict(responses or {})
        self.error = error
        self.calls = []

    def search(self, *, location, query):
        self.calls.append(location)
        if self.error is not None:
            raise self.error
        items = list(self.responses.get(location, []))
        return items, len(items)


class FakeGateway:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def fetch_max_buying_power(self, income, equity, debts):
        self.calls.append((income, equity, debts))
        if self.error is not None:
            raise self.error
        return self.result


class FakeSender:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send(self, *, to_email, to_name, subject, html):
        if self.error is not None:
            raise self.error
        self.sent.append({"to_email": to_email, "to_name": to_name, "subject": subject, "html": html})
        return {"messageId": f"<fake-{len(self.sent)}@brevo>"}


class FakeMinter:
    def __init__(self, secret="ek_test_secret", error=None):
        self.secret = secret
        self.error = error
        self.calls = []

    def create_session(self, *, instructions=None, tools=None):
        self.calls.append({"instructions": instructions, "tools": tools})
        if self.error is not None:
            raise self.error
        return self.secret


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON")
        return self._payload


class FakeSession:
    """requests.Session stand-in recording every post()."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.posts = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response

