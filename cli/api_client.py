"""REST API client for fillbox server."""

import requests


class FillboxAPIClient:
    """Client for communicating with the fillbox REST API."""

    def __init__(self, base_url: str = "http://localhost:8000"):
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()

    def _request(self, method: str, endpoint: str, data: dict = None) -> dict:
        response = self.session.request(method, f"{self.base_url}{endpoint}", json=data)
        response.raise_for_status()
        return response.json()

    def _get(self, endpoint: str) -> dict:
        """Make a GET request."""
        return self._request('GET', endpoint)

    def _post(self, endpoint: str, data: dict = None) -> dict:
        """Make a POST request."""
        return self._request('POST', endpoint, data)

    def health_check(self) -> dict:
        """Check if the server is running."""
        return self._get("/")

    def get_state(self) -> dict:
        return self._get("/api/state")

    def get_lists(self) -> list[dict]:
        return self._get("/api/lists")['lists']

    def select_list(self, list_id: str) -> dict:
        return self._post(f"/api/lists/{list_id}/select")

    def update_config(self, **updates) -> dict:
        return self._request('PATCH', "/api/config", updates)

    def start_round(self) -> dict:
        return self._post("/api/round")['round']

    def clear_round(self) -> None:
        self._request('DELETE', "/api/round")

    def update_entry(self, box_id: str, value: str) -> dict | None:
        return self._request('PUT', f"/api/round/boxes/{box_id}", {'value': value})['round']

    def validate_box(self, box_id: str) -> tuple[bool, dict | None]:
        result = self._post(f"/api/round/boxes/{box_id}/validate")
        return result['correct'], result['round']

    def get_achievements(self) -> list[dict]:
        return self._get("/api/achievements")['achievements']


def error_detail(error: requests.HTTPError) -> str:
    """Extract the server's error message from a failed response."""
    try:
        return error.response.json()['detail']
    except (ValueError, KeyError, TypeError, AttributeError):
        return str(error)
