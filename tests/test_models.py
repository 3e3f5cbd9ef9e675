from weblattice.models import ApiResponse, EncryptionKeyPair, RequestContext


def test_failure_defaults():
    result = ApiResponse.failure(None)
    assert result.success is False
    assert result.error == "An unknown error occurred"
    assert result.status_code == 500
    assert result.error_code == "ERR_UNKNOWN"


def test_failure_with_status():
    result = ApiResponse.failure("Request failed with status code 403", 403, data={"x": 1})
    assert result.status_code == 403
    assert result.error_code == "ERR_403"
    assert result.data == {"x": 1}


def test_ok():
    result = ApiResponse.ok({"id": 1}, 201, {"etag": "abc"})
    assert result.success is True
    assert result.data == {"id": 1}
    assert result.status_code == 201
    assert result.error is None
    assert result.error_code is None


def test_request_contexts_are_independent():
    first = RequestContext(method="GET", url="/a")
    second = RequestContext(method="GET", url="/b")
    first.headers["x"] = "1"
    first.key_pair = EncryptionKeyPair(aes_key="a" * 32, iv="b" * 32)

    assert second.headers == {}
    assert second.key_pair is None
