import errno
import os
import struct
from unittest import mock

import pytest

from netwire.errors import UnixError
from netwire.tun import IFF_NO_PI, IFF_TAP, IFF_TUN, TUNSETIFF, TapFD, TunFD, _ifreq


def _flags(request):
    return struct.unpack_from("h", request, 16)[0]


def test_ifreq_layout_for_tun():
    request = _ifreq("tun144", True)
    assert len(request) == 40
    assert request[:16] == b"tun144" + bytes(10)
    assert _flags(request) == IFF_TUN | IFF_NO_PI


def test_ifreq_truncates_long_name_and_terminates():
    request = _ifreq("x" * 20, False)
    assert request[:16] == b"x" * 15 + b"\0"
    assert _flags(request) == IFF_TAP | IFF_NO_PI


def test_open_failure_raises_unix_error():
    with mock.patch("netwire.tun.os.open", side_effect=OSError(errno.ENOENT, "missing")):
        with pytest.raises(UnixError) as info:
            TunFD("tun144")
    assert info.value.attempt == "open"
    assert info.value.error_code == errno.ENOENT


def test_tap_issues_tunsetiff_ioctl():
    read_end, write_end = os.pipe()
    with mock.patch("netwire.tun.os.open", return_value=read_end), mock.patch(
        "netwire.tun.fcntl.ioctl"
    ) as ioctl:
        tap = TapFD("tap0")
    assert tap.fd_num() == read_end
    ioctl.assert_called_once_with(read_end, TUNSETIFF, _ifreq("tap0", False))
    tap.close()
    os.close(write_end)


def test_tun_requests_tun_mode():
    read_end, write_end = os.pipe()
    with mock.patch("netwire.tun.os.open", return_value=read_end), mock.patch(
        "netwire.tun.fcntl.ioctl"
    ) as ioctl:
        tun = TunFD("tun0")
    assert tun.fd_num() == read_end
    request = ioctl.call_args.args[2]
    assert request == _ifreq("tun0", True)
    assert _flags(request) == IFF_TUN | IFF_NO_PI
    tun.close()
    os.close(write_end)


def test_ioctl_failure_closes_and_raises():
    read_end, write_end = os.pipe()
    with mock.patch("netwire.tun.os.open", return_value=read_end), mock.patch(
        "netwire.tun.fcntl.ioctl", side_effect=OSError(errno.EPERM, "denied")
    ):
        with pytest.raises(UnixError) as info:
            TunFD("tun0")
    assert info.value.attempt == "ioctl"
    assert info.value.error_code == errno.EPERM
    with pytest.raises(OSError):
        os.fstat(read_end)
    os.close(write_end)