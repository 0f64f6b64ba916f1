import errno
import os

import pytest

from netwire.errors import TaggedError, UnixError, check_system_call, not_null


def test_tagged_error_message_and_code():
    err = TaggedError("getaddrinfo(x, 1)", 5, "lookup failed")
    assert str(err) == "getaddrinfo(x, 1): lookup failed"
    assert err.error_code == 5
    assert err.attempt == "getaddrinfo(x, 1)"


def test_tagged_error_is_an_oserror():
    err = TaggedError("attempt", 1, "failure")
    assert isinstance(err, OSError)
    assert err.error_code == 1
    assert str(err) == "attempt: failure"


def test_check_system_call_error_caught_as_oserror():
    with pytest.raises(OSError) as info:
        check_system_call("poll", -errno.EINTR)
    assert info.value.error_code == errno.EINTR
    assert str(info.value) == "poll: " + os.strerror(errno.EINTR)


def test_unix_error_uses_strerror():
    err = UnixError("open", errno.ENOENT)
    assert str(err) == "open: " + os.strerror(errno.ENOENT)
    assert err.error_code == errno.ENOENT
    assert err.errno == errno.ENOENT


def test_unix_error_is_tagged_error():
    with pytest.raises(TaggedError) as info:
        raise UnixError("close", errno.EBADF)
    assert info.value.attempt == "close"
    assert info.value.error_code == errno.EBADF


@pytest.mark.parametrize("value", [0, 1, 42])
def test_check_system_call_passes_non_negative(value):
    assert check_system_call("poll", value) == value


def test_check_system_call_raises_on_negative():
    with pytest.raises(UnixError) as info:
        check_system_call("read", -errno.EAGAIN)
    assert info.value.error_code == errno.EAGAIN
    assert str(info.value).startswith("read: ")


def test_not_null_returns_value():
    sentinel = object()
    assert not_null("ctx", sentinel) is sentinel
    assert not_null("ctx", 0) == 0


def test_not_null_raises_on_none():
    with pytest.raises(ValueError, match="ctx: returned null pointer"):
        not_null("ctx", None)