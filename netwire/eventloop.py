"""A poll-based event loop running callbacks for ready file descriptors."""

from __future__ import annotations

import errno
import select
import socket
import sys
import weakref
from collections.abc import Callable
from enum import Enum, IntEnum, auto

from netwire.errors import UnixError
from netwire.file_descriptor import FileDescriptor

MAX_CATEGORIES = 64
_BUSY_WAIT_LIMIT = 128


class Direction(IntEnum):
    """Whether a rule waits for its descriptor to be readable or writable."""

    IN = select.POLLIN
    OUT = select.POLLOUT


class EventLoopResult(Enum):
    SUCCESS = auto()  # a rule was served
    TIMEOUT = auto()  # nothing became ready before the timeout
    EXIT = auto()  # no rule is left that is interested in anything


def _always() -> bool:
    return True


def _nothing() -> None:
    return None


class _Rule:
    __slots__ = ("category_id", "interest", "callback", "cancel_requested", "__weakref__")

    def __init__(self, category_id: int, interest: Callable[[], bool], callback: Callable[[], object]) -> None:
        self.category_id = category_id
        self.interest = interest
        self.callback = callback
        self.cancel_requested = False


class _FDRule(_Rule):
    __slots__ = ("fd", "direction", "on_cancel", "on_error")

    def __init__(
        self,
        category_id: int,
        interest: Callable[[], bool],
        callback: Callable[[], object],
        fd: FileDescriptor,
        direction: Direction,
        on_cancel: Callable[[], object],
        on_error: Callable[[], object],
    ) -> None:
        super().__init__(category_id, interest, callback)
        self.fd = fd
        self.direction = direction
        self.on_cancel = on_cancel
        self.on_error = on_error

    def service_count(self) -> int:
        """How often the descriptor has been read or written, as fits the direction."""
        return self.fd.read_count() if self.direction is Direction.IN else self.fd.write_count()


class RuleHandle:
    """A handle that can cancel a rule without keeping it alive."""

    def __init__(self, rule: _Rule) -> None:
        self._rule = weakref.ref(rule)

    def cancel(self) -> None:
        """Ask for the rule to be dropped; its cancel callback is not called."""
        rule = self._rule()
        if rule is not None:
            rule.cancel_requested = True


def _pending_socket_error(fd: int) -> int | None:
    """The pending SO_ERROR of a socket, or None if ``fd`` is not a socket."""
    try:
        sock = socket.socket(fileno=fd)
    except OSError as exc:
        if exc.errno == errno.ENOTSOCK:
            return None
        raise UnixError("getsockopt", exc.errno or 0) from exc
    try:
        return sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
    except OSError as exc:
        raise UnixError("getsockopt", exc.errno or 0) from exc
    finally:
        sock.detach()


class EventLoop:
    """Runs at most one rule's callback per call to ``wait_next_event``.

    Rules without a descriptor run whenever they are interested; rules with a
    descriptor run when it is ready for their direction.
    """

    def __init__(self) -> None:
        self._categories: list[str] = []
        self._fd_rules: list[_FDRule] = []
        self._rules: list[_Rule] = []

    def add_category(self, name: str) -> int:
        if len(self._categories) >= MAX_CATEGORIES:
            raise RuntimeError("maximum categories reached")
        self._categories.append(name)
        return len(self._categories) - 1

    def _category_id(self, category: int | str) -> int:
        if isinstance(category, str):
            return self.add_category(category)
        if not 0 <= category < len(self._categories):
            raise IndexError("bad category_id")
        return category

    def add_rule(
        self,
        category: int | str,
        callback: Callable[[], object],
        interest: Callable[[], bool] = _always,
    ) -> RuleHandle:
        """Add a rule run whenever ``interest()`` is true.

        ``category`` is an id from ``add_category`` or a name for a new category.
        """
        rule = _Rule(self._category_id(category), interest, callback)
        self._rules.append(rule)
        return RuleHandle(rule)

    def add_fd_rule(
        self,
        category: int | str,
        fd: FileDescriptor,
        direction: Direction,
        callback: Callable[[], object],
        interest: Callable[[], bool] = _always,
        cancel: Callable[[], object] = _nothing,
        error: Callable[[], object] = _nothing,
    ) -> RuleHandle:
        """Add a rule run when ``fd`` is ready for ``direction`` and ``interest()`` is true.

        ``cancel`` runs when the rule ends on EOF, close or hangup; ``error``
        runs first when the descriptor reports an error.
        """
        rule = _FDRule(
            self._category_id(category), interest, callback, fd.duplicate(), Direction(direction), cancel, error
        )
        self._fd_rules.append(rule)
        return RuleHandle(rule)

    def _name(self, rule: _Rule) -> str:
        return self._categories[rule.category_id]

    def _run_plain_rules(self) -> bool:
        for rule in list(self._rules):
            if rule.cancel_requested:
                self._rules.remove(rule)
                continue
            fired = False
            iterations = 0
            while rule.interest():
                if iterations >= _BUSY_WAIT_LIMIT:
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        f"is still interested after {iterations + 1} iterations"
                    )
                iterations += 1
                fired = True
                rule.callback()
            if fired:
                return True
        return False

    def _report_poll_error(self, rule: _FDRule, fd: int) -> None:
        socket_error = _pending_socket_error(fd)
        if socket_error is None:
            print(f'error on polled file descriptor for rule "{self._name(rule)}"', file=sys.stderr)
        elif socket_error:
            print(
                f'error on polled socket for rule "{self._name(rule)}": {socket.errno.errorcode.get(socket_error, socket_error)}'
                if False
                else f'error on polled socket for rule "{self._name(rule)}": {_strerror(socket_error)}',
                file=sys.stderr,
            )

    def wait_next_event(self, timeout_ms: int) -> EventLoopResult:
        """Serve one rule, waiting up to ``timeout_ms`` (negative: forever) for a descriptor."""
        if self._run_plain_rules():
            return EventLoopResult.SUCCESS

        polled: list[tuple[_FDRule, int, int]] = []
        something_to_poll = False
        for rule in list(self._fd_rules):
            if rule.cancel_requested:
                self._fd_rules.remove(rule)
                continue
            if (rule.direction is Direction.IN and rule.fd.eof()) or rule.fd.closed():
                rule.on_cancel()
                self._fd_rules.remove(rule)
                continue
            if rule.interest():
                events = int(rule.direction)
                something_to_poll = True
            else:
                events = 0  # still registered, so that errors are seen
            polled.append((rule, rule.fd.fd_num(), events))

        if not something_to_poll:
            return EventLoopResult.EXIT

        masks: dict[int, int] = {}
        for _rule, fd, events in polled:
            masks[fd] = masks.get(fd, 0) | events
        poller = select.poll()
        for fd, mask in masks.items():
            poller.register(fd, mask)
        try:
            ready = poller.poll(timeout_ms)
        except OSError as exc:
            raise UnixError("poll", exc.errno or 0) from exc
        if not ready:
            return EventLoopResult.TIMEOUT
        revents_by_fd = dict(ready)

        for rule, fd, events in polled:
            revents = revents_by_fd.get(fd, 0)

            if revents & (select.POLLERR | select.POLLNVAL):
                self._report_poll_error(rule, fd)
                rule.on_error()
                rule.on_cancel()
                self._fd_rules.remove(rule)
                continue

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and ((events and not poll_ready) or rule.direction is Direction.OUT):
                # only a hangup: nothing more will ever be read or written here
                rule.on_cancel()
                self._fd_rules.remove(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if count_before == rule.service_count() and not rule.fd.closed() and rule.interest():
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        "did not read/write fd and is still interested"
                    )
                return EventLoopResult.SUCCESS

        return EventLoopResult.SUCCESS


def _strerror(code: int) -> str:
    import os

    return os.strerror(code)