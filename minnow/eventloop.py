"""An event loop that polls file descriptors and runs callbacks for ready ones."""

from __future__ import annotations

import errno
import os
import select
import socket
import sys
import weakref
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, Union

from minnow.errors import UnixError
from minnow.file_descriptor import FileDescriptor

Callback = Callable[[], None]
Interest = Callable[[], bool]
Category = Union[int, str]

_ALWAYS_REPORTED = select.POLLERR | select.POLLHUP | select.POLLNVAL
_MAX_ITERATIONS = 128


def _always() -> bool:
    return True


class Direction(Enum):
    """Whether a rule waits for its descriptor to be readable or writable."""

    IN = auto()
    OUT = auto()


class Result(Enum):
    """Outcome of one call to EventLoop.wait_next_event."""

    SUCCESS = auto()
    TIMEOUT = auto()
    EXIT = auto()


@dataclass(eq=False)
class _BasicRule:
    category_id: int
    interest: Interest
    callback: Callback
    cancel_requested: bool = False


@dataclass(eq=False)
class _FDRule:
    category_id: int
    interest: Interest
    callback: Callback
    fd: FileDescriptor
    direction: Direction
    cancel: Optional[Callback]
    error: Optional[Callback]
    cancel_requested: bool = False

    def service_count(self) -> int:
        return self.fd.read_count if self.direction is Direction.IN else self.fd.write_count

    def poll_events(self) -> int:
        return select.POLLIN if self.direction is Direction.IN else select.POLLOUT

    def notify_cancel(self) -> None:
        if self.cancel is not None:
            self.cancel()

    def notify_error(self) -> None:
        if self.error is not None:
            self.error()


class RuleHandle:
    """A weak handle that can cancel a rule while the loop still holds it."""

    def __init__(self, rule: _BasicRule | _FDRule) -> None:
        self._rule = weakref.ref(rule)

    def cancel(self) -> None:
        """Ask the loop to drop the rule; its cancel callback is not called."""
        rule = self._rule()
        if rule is not None:
            rule.cancel_requested = True


class EventLoop:
    """Waits for events on file descriptors and runs the matching callbacks."""

    MAX_CATEGORIES = 64

    def __init__(self) -> None:
        self._categories: list[str] = []
        self._fd_rules: list[_FDRule] = []
        self._rules: list[_BasicRule] = []

    def add_category(self, name: str) -> int:
        """Register a rule category and return its id."""
        if len(self._categories) >= self.MAX_CATEGORIES:
            raise RuntimeError("maximum categories reached")
        self._categories.append(name)
        return len(self._categories) - 1

    def _category_id(self, category: Category) -> int:
        if isinstance(category, str):
            return self.add_category(category)
        if not 0 <= category < len(self._categories):
            raise IndexError("bad category_id")
        return category

    def add_rule(
        self, category: Category, callback: Callback, interest: Interest = _always
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` while ``interest()`` is true.

        ``category`` is a category id, or a name for which a new category is made.
        """
        rule = _BasicRule(self._category_id(category), interest, callback)
        self._rules.append(rule)
        return RuleHandle(rule)

    def add_fd_rule(
        self,
        category: Category,
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Interest = _always,
        cancel: Optional[Callback] = None,
        error: Optional[Callback] = None,
    ) -> RuleHandle:
        """Add a rule that runs ``callback`` when ``fd`` is ready in ``direction``.

        ``cancel`` runs when the loop drops the rule (end of file, hangup, close);
        ``error`` runs first when the descriptor reports an error.
        """
        rule = _FDRule(
            self._category_id(category),
            interest,
            callback,
            fd.duplicate(),
            direction,
            cancel,
            error,
        )
        self._fd_rules.append(rule)
        return RuleHandle(rule)

    def _name(self, rule: _BasicRule | _FDRule) -> str:
        return self._categories[rule.category_id]

    def _drop(self, rule: _FDRule) -> None:
        if rule in self._fd_rules:
            self._fd_rules.remove(rule)

    def _serve_plain_rules(self) -> bool:
        self._rules = [rule for rule in self._rules if not rule.cancel_requested]
        for rule in list(self._rules):
            iterations = 0
            fired = False
            while rule.interest():
                iterations += 1
                if iterations > _MAX_ITERATIONS:
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" is still '
                        f"interested after {iterations} iterations"
                    )
                fired = True
                rule.callback()
            if fired:
                return True
        return False

    def _prepare_fd_rules(self) -> list[tuple[_FDRule, int]]:
        polled: list[tuple[_FDRule, int]] = []
        for rule in list(self._fd_rules):
            if rule.cancel_requested:
                self._drop(rule)
                continue
            if (rule.direction is Direction.IN and rule.fd.eof) or rule.fd.closed:
                rule.notify_cancel()
                self._drop(rule)
                continue
            # an uninterested rule is still polled so that errors are noticed
            polled.append((rule, rule.poll_events() if rule.interest() else 0))
        return polled

    def _report_poll_error(self, rule: _FDRule) -> None:
        name = self._name(rule)
        try:
            sock = socket.socket(fileno=rule.fd.fileno())
        except OSError as exc:
            if exc.errno == errno.ENOTSOCK:
                sys.stderr.write(f'error on polled file descriptor for rule "{name}"\n')
                return
            raise UnixError("getsockopt", exc.errno) from exc
        try:
            socket_error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as exc:
            raise UnixError("getsockopt", exc.errno) from exc
        finally:
            sock.detach()
        if socket_error:
            sys.stderr.write(
                f'error on polled socket for rule "{name}": {os.strerror(socket_error)}\n'
            )

    def wait_next_event(self, timeout_ms: int) -> Result:
        """Serve at most one ready rule, waiting up to ``timeout_ms`` (negative: forever)."""
        if self._serve_plain_rules():
            return Result.SUCCESS

        polled = self._prepare_fd_rules()
        if not any(events for _rule, events in polled):
            return Result.EXIT

        combined: dict[int, int] = {}
        for rule, events in polled:
            fd_num = rule.fd.fileno()
            combined[fd_num] = combined.get(fd_num, 0) | events
        poller = select.poll()
        for fd_num, events in combined.items():
            poller.register(fd_num, events)

        try:
            ready = poller.poll(timeout_ms)
        except OSError as exc:
            raise UnixError("poll", exc.errno) from exc
        if not ready:
            return Result.TIMEOUT
        revents_by_fd = dict(ready)

        for rule, events in polled:
            revents = revents_by_fd.get(rule.fd.fileno(), 0) & (events | _ALWAYS_REPORTED)

            if revents & (select.POLLERR | select.POLLNVAL):
                self._report_poll_error(rule)
                rule.notify_error()
                rule.notify_cancel()
                self._drop(rule)
                continue

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and ((events and not poll_ready) or rule.direction is Direction.OUT):
                # only a hangup: this descriptor will never become ready again
                rule.notify_cancel()
                self._drop(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if (
                    count_before == rule.service_count()
                    and not rule.fd.closed
                    and rule.interest()
                ):
                    raise RuntimeError(
                        f'EventLoop: busy wait detected: rule "{self._name(rule)}" '
                        "did not read/write fd and is still interested"
                    )
                return Result.SUCCESS

        return Result.SUCCESS