"""Basic unit tests for the alfred-nest package."""

from alfred_nest import (
    ApiError,
    AuthorizationInProgress,
    CacheManager,
    Context,
    DecodeError,
    DeviceNotFound,
    NestError,
    NestSession,
    NetworkError,
    NotAuthorized,
    PersistenceError,
    SyncInProgress,
    TokenStore,
    TooManyRedirects,
    __version__,
)


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert NestSession is not None
    assert CacheManager is not None
    assert TokenStore is not None
    assert Context is not None


def test_error_hierarchy():
    for cls in (
        NotAuthorized, NetworkError, ApiError, TooManyRedirects, DecodeError,
        PersistenceError, AuthorizationInProgress, SyncInProgress, DeviceNotFound,
    ):
        assert issubclass(cls, NestError)


def test_error_attributes():
    err = NestError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    api = ApiError(404, "404 Not Found", body="nope")
    assert api.code == "api_error"
    assert api.status_code == 404
    assert str(api) == "404 Not Found"
    assert api.details == {"status_code": 404, "body": "nope"}

    assert NotAuthorized().code == "not_authorized"
    assert "authorize" in str(NotAuthorized())
