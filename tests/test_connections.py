import pytest

from secftpd.connections import ClientLaunch, ConnectionTracker, hash_ip, hash_pid

ADDR_A = bytes([10, 0, 0, 1])
ADDR_B = bytes([10, 0, 0, 2])


def test_hash_ip_pinned_value():
    assert hash_ip(256, bytes([1, 2, 3, 4])) == 4


@pytest.mark.parametrize("size", [4, 16])
def test_hash_ip_within_buckets(size):
    addr = bytes(range(200, 200 + size))
    assert 0 <= hash_ip(256, addr) < 256
    assert 0 <= hash_ip(7, addr) < 7


def test_hash_ip_wraps_shift_every_four_bytes():
    four = bytes([9, 8, 7, 6])
    assert hash_ip(1009, four + four) == hash_ip(1009, bytes(8))


def test_hash_pid_is_modular():
    assert hash_pid(256, 256 + 7) == hash_pid(256, 7)
    assert hash_pid(256, 7) == 7


def test_accept_counts_children_and_ip():
    tracker = ConnectionTracker()
    assert tracker.accept(ADDR_A) == ClientLaunch(num_children=1, num_this_ip=1)
    assert tracker.accept(ADDR_A) == ClientLaunch(num_children=2, num_this_ip=2)
    assert tracker.accept(ADDR_B) == ClientLaunch(num_children=3, num_this_ip=1)
    assert tracker.children() == 3
    assert tracker.count_for(ADDR_A) == 2


def test_child_exit_releases_counts():
    tracker = ConnectionTracker()
    tracker.accept(ADDR_A)
    tracker.child_started(100, ADDR_A)
    tracker.accept(ADDR_A)
    tracker.child_started(101, ADDR_A)
    tracker.child_exited(100)
    assert tracker.children() == 1
    assert tracker.count_for(ADDR_A) == 1
    tracker.child_exited(101)
    assert tracker.children() == 0
    assert tracker.count_for(ADDR_A) == 0


def test_fork_failed_undoes_accept():
    tracker = ConnectionTracker()
    tracker.accept(ADDR_B)
    tracker.fork_failed(ADDR_B)
    assert tracker.children() == 0
    assert tracker.count_for(ADDR_B) == 0
    assert tracker.accept(ADDR_B).num_this_ip == 1


def test_unknown_pid_raises():
    tracker = ConnectionTracker()
    with pytest.raises(LookupError):
        tracker.child_exited(42)


def test_fork_failed_for_unknown_address_raises():
    tracker = ConnectionTracker()
    with pytest.raises(LookupError):
        tracker.fork_failed(ADDR_A)


def test_pid_cannot_exit_twice():
    tracker = ConnectionTracker()
    tracker.accept(ADDR_A)
    tracker.child_started(5, ADDR_A)
    tracker.child_exited(5)
    with pytest.raises(LookupError):
        tracker.child_exited(5)