import pytest

from services.ai import exceptions


def test_exception_error_codes_and_messages():
    # Ensure each domain exception sets the correct error_code and message
    e = exceptions.FetchFailed()
    assert isinstance(e, exceptions.SummaryServiceError)
    assert e.error_code == "fetch_failed"
    assert "Could not fetch" in e.message

    e2 = exceptions.ListingNotFound("Listing not found: abc")
    assert e2.error_code == "not_found"
    assert e2.message == "Listing not found: abc"
    assert str(e2).startswith("not_found:")

    assert exceptions.NotConfigured().error_code == "not_configured"
    assert exceptions.UnsupportedFormat().error_code == "unsupported_format"
    assert exceptions.EmptyInput().error_code == "empty_input"
    assert exceptions.InvalidComparisonRequest().error_code == "invalid_comparison"
    assert exceptions.RateLimited().error_code == "rate_limited"
    assert exceptions.TransientBackendError().error_code == "backend_error"
    assert exceptions.PersistenceError().error_code == "persistence_failed"


@pytest.mark.parametrize(
    "code,cls",
    [
        ("not_configured", exceptions.NotConfigured),
        ("not_found", exceptions.ListingNotFound),
        ("rate_limited", exceptions.RateLimited),
        ("persistence_failed", exceptions.PersistenceError),
    ],
)
def test_error_from_code_rebuilds_domain_error(code, cls):
    err = exceptions.error_from_code(code, "custom message")
    assert isinstance(err, cls)
    assert err.message == "custom message"


def test_error_from_code_unknown_code_is_backend_error_with_default_message():
    err = exceptions.error_from_code("something_new")
    assert isinstance(err, exceptions.TransientBackendError)
    assert err.message == "Operation failed. Please try again."
