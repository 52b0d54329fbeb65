"""
Tests for the main module.
"""


def test_read_root(client):
    """Test the root endpoint returns the expected response."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "JobFinder summary service"}


def test_correlation_id_is_echoed(client):
    response = client.get("/", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


def test_oversized_correlation_id_is_replaced(client):
    response = client.get("/", headers={"X-Correlation-ID": "x" * 200})
    assert response.headers["X-Correlation-ID"] != "x" * 200
    assert len(response.headers["X-Correlation-ID"]) == 36


def test_docs_are_served_under_api_prefix(client):
    assert client.get("/api/v1/docs").status_code == 200
