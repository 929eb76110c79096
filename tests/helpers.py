import httpx


class Network:
    """httpx request hook: records calls, raises ConnectError while down
    (or, with ``down_for``, only for the listed HTTP methods)."""

    def __init__(self):
        self.calls = []
        self.down = False
        self.down_for = set()

    def __call__(self, request: httpx.Request):
        self.calls.append(f"{request.method} {request.url.path}")
        if self.down or request.method in self.down_for:
            raise httpx.ConnectError("All connection attempts failed", request=request)


def draft(name="Drink water", category="Health", points=1):
    return {"name": name, "category": category, "points": points}


def stub_client(status_code, json=None, content=None):
    """An httpx client that answers every request with the same response."""
    def handler(request):
        if json is not None:
            return httpx.Response(status_code, json=json)
        return httpx.Response(status_code, content=content or b"")

    return httpx.Client(transport=httpx.MockTransport(handler), base_url="http://habits.test")
