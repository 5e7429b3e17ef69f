import os
import socket

import pytest

from secftpd.sendfile import DATA_BUFSIZE, sendfile


@pytest.fixture
def source(tmp_path):
    data = bytes(range(256)) * 40
    path = tmp_path / "source.bin"
    path.write_bytes(data)
    fd = os.open(path, os.O_RDONLY)
    yield fd, data
    os.close(fd)


@pytest.fixture
def target(tmp_path):
    path = tmp_path / "target.bin"
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    yield fd, path
    os.close(fd)


def test_copy_whole_file_without_kernel_call(source, target):
    in_fd, data = source
    out_fd, path = target
    end = sendfile(out_fd, in_fd, 0, len(data), 0, False)
    assert end == len(data)
    assert path.read_bytes() == data


def test_copy_range_from_offset(source, target):
    in_fd, data = source
    out_fd, path = target
    end = sendfile(out_fd, in_fd, 100, 500, 0, False)
    assert end == 600
    assert path.read_bytes() == data[100:600]


def test_small_chunks_copy_everything(source, target):
    in_fd, data = source
    out_fd, path = target
    end = sendfile(out_fd, in_fd, 3, 1000, 7, False)
    assert end == 1003
    assert path.read_bytes() == data[3:1003]


def test_zero_count_sends_nothing(source, target):
    in_fd, _ = source
    out_fd, path = target
    assert sendfile(out_fd, in_fd, 42, 0, 0, False) == 42
    assert path.read_bytes() == b""


@pytest.mark.parametrize("offset,count", [(-1, 10), (0, -5)])
def test_negative_arguments_rejected(source, target, offset, count):
    in_fd, _ = source
    out_fd, _ = target
    with pytest.raises(ValueError):
        sendfile(out_fd, in_fd, offset, count, 0, False)


def test_reading_past_end_raises_eof(source, target):
    in_fd, data = source
    out_fd, _ = target
    with pytest.raises(EOFError):
        sendfile(out_fd, in_fd, 0, len(data) + 1, 0, False)


def test_large_copy_spans_several_buffers(tmp_path, target):
    data = os.urandom(DATA_BUFSIZE * 3 + 17)
    path = tmp_path / "large.bin"
    path.write_bytes(data)
    out_fd, out_path = target
    in_fd = os.open(path, os.O_RDONLY)
    try:
        end = sendfile(out_fd, in_fd, 0, len(data), 0, False)
    finally:
        os.close(in_fd)
    assert end == len(data)
    assert out_path.read_bytes() == data


def test_kernel_call_to_socket(source):
    in_fd, data = source
    chunk = data[10:1010]
    left, right = socket.socketpair()
    with left, right:
        end = sendfile(left.fileno(), in_fd, 10, len(chunk), 0, True)
        left.shutdown(socket.SHUT_WR)
        received = b""
        while True:
            part = right.recv(4096)
            if not part:
                break
            received += part
    assert end == 10 + len(chunk)
    assert received == chunk


def test_input_position_follows_offset(source, target):
    in_fd, data = source
    out_fd, _ = target
    sendfile(out_fd, in_fd, 20, 30, 0, False)
    assert os.read(in_fd, 5) == data[50:55]