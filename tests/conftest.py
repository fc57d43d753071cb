from __future__ import annotations

from typing import Dict, List, Tuple, Union

import pytest
import requests


class FakeResponse:
    def __init__(self, status_code: int, body: Union[bytes, Exception]):
        self.status_code = status_code
        self._body = body
        self.closed = False

    @property
    def content(self) -> bytes:
        if isinstance(self._body, Exception):
            raise self._body
        return self._body

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class FakeClient:
    """
    Serves canned responses keyed by URL. Unknown URLs answer 404.

    A route may map to ``(status, body)`` or to an exception raised on GET.
    """

    def __init__(self, routes: Dict[str, Union[Tuple[int, Union[str, bytes, Exception]], Exception]]):
        self.routes = routes
        self.calls: List[str] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.calls.append(url)
        route = self.routes.get(url, (404, b"not found"))
        if isinstance(route, Exception):
            raise route
        status, body = route
        if isinstance(body, str):
            body = body.encode("utf-8")
        return FakeResponse(status, body)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        pass


def page(*hrefs: str, text: str = "") -> str:
    anchors = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return f"<html><body>{text}{anchors}</body></html>"


@pytest.fixture
def conn_error():
    return requests.ConnectionError("connection refused")
