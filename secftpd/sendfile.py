"""Copy a byte range from one file descriptor to another.

The kernel ``sendfile`` call is used when it is enabled and works at run
time; otherwise the data goes through a read/write loop with a fixed-size
buffer. The transfer is split into chunks of at most ``max_chunk`` bytes,
and the input position is kept in step with the offset before every chunk.
"""

from __future__ import annotations

import errno
import os
from dataclasses import dataclass

__all__ = ["sendfile", "DATA_BUFSIZE", "INT_MAX"]

DATA_BUFSIZE = 65536
INT_MAX = 2**31 - 1

_FALLBACK_ERRNOS = frozenset(
    code
    for code in (
        errno.EINVAL,
        getattr(errno, "EOPNOTSUPP", None),
        getattr(errno, "ENOTSUP", None),
    )
    if code is not None
)


@dataclass
class _SendfileProbe:
    """Whether the kernel call has been tried, and whether it is usable."""

    checked: bool = False
    works: bool = False


_probe = _SendfileProbe()


def _write_all(fd: int, data: bytes) -> int:
    """Write ``data`` fully; returns the count written, short only if write gives 0."""
    view = memoryview(data)
    written = 0
    while written < len(view):
        count = os.write(fd, view[written:])
        if count == 0:
            break
        written += count
    return written


def _kernel_sendfile(out_fd: int, in_fd: int, count: int, offset: int) -> int | None:
    """Try the kernel call; None means fall back to copying by hand."""
    native = getattr(os, "sendfile", None)
    if native is None:
        return None
    if _probe.checked and not _probe.works:
        return None
    try:
        sent = native(out_fd, in_fd, offset, count)
    except OSError as exc:
        if not _probe.checked:
            _probe.checked = True
            _probe.works = exc.errno != errno.ENOSYS
        if _probe.works and exc.errno not in _FALLBACK_ERRNOS:
            raise
        return None
    if not _probe.checked:
        _probe.checked = True
        _probe.works = True
    return sent


def _copy_chunk(out_fd: int, in_fd: int, count: int) -> int:
    """Copy ``count`` bytes from the current input position by read and write."""
    total = 0
    remaining = count
    while True:
        data = os.read(in_fd, min(DATA_BUFSIZE, remaining))
        if not data:
            raise EOFError("input ended before the requested byte count")
        written = _write_all(out_fd, data)
        total += written
        if written != len(data):
            return written
        remaining -= written
        if remaining == 0:
            return total


def _send_chunk(
    out_fd: int, in_fd: int, count: int, offset: int, use_sendfile: bool
) -> int:
    if use_sendfile:
        sent = _kernel_sendfile(out_fd, in_fd, count, offset)
        if sent is not None:
            return sent
    return _copy_chunk(out_fd, in_fd, count)


def sendfile(
    out_fd: int,
    in_fd: int,
    offset: int,
    count: int,
    max_chunk: int = 0,
    use_sendfile: bool = True,
) -> int:
    """Send ``count`` bytes of ``in_fd`` starting at ``offset`` to ``out_fd``.

    ``max_chunk`` of 0 means no chunk limit beyond ``INT_MAX``. Returns the
    offset reached: the end of the range, or earlier if the kernel call
    reported that nothing more could be sent. Raises ValueError for a
    negative offset or count, EOFError when the input runs out while copying
    by hand, and OSError for I/O failures.
    """
    if offset < 0 or count < 0:
        raise ValueError("invalid offset or send count in sendfile")
    if max_chunk == 0:
        max_chunk = INT_MAX
    remaining = count
    while remaining > 0:
        this_time = min(remaining, max_chunk)
        os.lseek(in_fd, offset, os.SEEK_SET)
        sent = _send_chunk(out_fd, in_fd, this_time, offset, use_sendfile)
        if sent == 0:
            return offset
        remaining -= sent
        offset += sent
    return offset