"""Bookkeeping for the standalone listener: total clients and per-IP counts."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["ClientLaunch", "ConnectionTracker", "hash_ip", "hash_pid"]

_UINT_MASK = 0xFFFFFFFF


def hash_ip(buckets: int, raw_addr: bytes) -> int:
    """Bucket for a raw IP address, folding its bytes into 32 bits."""
    value = 0
    shift = 24
    for byte in raw_addr:
        value ^= (byte << shift) & _UINT_MASK
        shift -= 8
        if shift < 0:
            shift = 24
    return value % buckets


def hash_pid(buckets: int, pid: int) -> int:
    """Bucket for a process id."""
    return (pid & _UINT_MASK) % buckets


@dataclass(frozen=True)
class ClientLaunch:
    """Counts handed to a newly launched client session."""

    num_children: int
    num_this_ip: int


class ConnectionTracker:
    """Tracks live child sessions and how many come from each address."""

    def __init__(self) -> None:
        self._children = 0
        self._ip_counts: dict[bytes, int] = {}
        self._pid_ips: dict[int, bytes] = {}

    def accept(self, raw_addr: bytes) -> ClientLaunch:
        """Account a newly accepted connection from ``raw_addr``."""
        key = bytes(raw_addr)
        self._children += 1
        count = self._ip_counts.get(key, 0) + 1
        self._ip_counts[key] = count
        return ClientLaunch(num_children=self._children, num_this_ip=count)

    def child_started(self, pid: int, raw_addr: bytes) -> None:
        """Remember which address the child process ``pid`` serves."""
        self._pid_ips[pid] = bytes(raw_addr)

    def fork_failed(self, raw_addr: bytes) -> None:
        """Undo the accounting of :meth:`accept` when no child was started."""
        self._drop_ip_count(bytes(raw_addr))
        self._children -= 1

    def child_exited(self, pid: int) -> None:
        """Account a reaped child process."""
        try:
            raw_addr = self._pid_ips[pid]
        except KeyError:
            raise LookupError("IP address missing from hash") from None
        self._children -= 1
        self._drop_ip_count(raw_addr)
        del self._pid_ips[pid]

    def count_for(self, raw_addr: bytes) -> int:
        """Number of live sessions from ``raw_addr``."""
        return self._ip_counts.get(bytes(raw_addr), 0)

    def children(self) -> int:
        """Number of live sessions in total."""
        return self._children

    def _drop_ip_count(self, raw_addr: bytes) -> None:
        count = self._ip_counts.get(raw_addr)
        if count is None:
            raise LookupError("IP address missing from hash")
        if count == 0:
            raise RuntimeError("zero count for IP address")
        count -= 1
        if count:
            self._ip_counts[raw_addr] = count
        else:
            del self._ip_counts[raw_addr]