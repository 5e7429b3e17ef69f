"""Seccomp filter policy for the FTP session processes.

A policy is an ordered list of syscall rules. Each rule names a syscall and,
optionally, up to three 32-bit argument checks. The policy compiles to a
classic BPF program that allows (or fails with an errno) the listed calls and
kills the process on anything else. Only the x86-64 syscall table is used.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

__all__ = [
    "SandboxConfig",
    "BpfInstruction",
    "SyscallRule",
    "SeccompPolicy",
    "MAX_SYSCALLS",
    "AUDIT_ARCH_X86_64",
    "SECCOMP_RET_KILL",
    "SECCOMP_RET_ALLOW",
    "SECCOMP_RET_ERRNO",
]

MAX_SYSCALLS = 100

# x86-64 syscall numbers.
NR_READ = 0
NR_WRITE = 1
NR_OPEN = 2
NR_CLOSE = 3
NR_STAT = 4
NR_FSTAT = 5
NR_LSTAT = 6
NR_LSEEK = 8
NR_MMAP = 9
NR_MPROTECT = 10
NR_MUNMAP = 11
NR_BRK = 12
NR_RT_SIGACTION = 13
NR_RT_SIGRETURN = 15
NR_SELECT = 23
NR_MREMAP = 25
NR_NANOSLEEP = 35
NR_ALARM = 37
NR_GETPID = 39
NR_SENDFILE = 40
NR_SOCKET = 41
NR_CONNECT = 42
NR_ACCEPT = 43
NR_SENDTO = 44
NR_RECVFROM = 45
NR_SENDMSG = 46
NR_RECVMSG = 47
NR_SHUTDOWN = 48
NR_BIND = 49
NR_LISTEN = 50
NR_SETSOCKOPT = 54
NR_GETSOCKOPT = 55
NR_FCNTL = 72
NR_FTRUNCATE = 77
NR_GETDENTS = 78
NR_GETCWD = 79
NR_CHDIR = 80
NR_RENAME = 82
NR_MKDIR = 83
NR_RMDIR = 84
NR_UNLINK = 87
NR_READLINK = 89
NR_CHMOD = 90
NR_FCHMOD = 91
NR_FCHOWN = 93
NR_UMASK = 95
NR_GETTIMEOFDAY = 96
NR_UTIME = 132
NR_RESTART_SYSCALL = 219
NR_EXIT_GROUP = 231
NR_UTIMES = 235
NR_OPENAT = 257

# Linux constants used as argument values.
PF_INET = 2
PF_INET6 = 10
SOCK_STREAM = 1
IPPROTO_IP = 0
IPPROTO_TCP = 6
SOL_SOCKET = 1
SO_REUSEADDR = 2
SO_ERROR = 4
SO_KEEPALIVE = 9
SO_LINGER = 13
IP_TOS = 1
TCP_NODELAY = 1
MSG_PEEK = 2
F_GETFL = 3
F_SETFL = 4
F_SETLK = 6
F_SETLKW = 7
F_SETOWN = 8
O_ACCMODE = 0o3
O_RDONLY = 0
O_RDWR = 0o2
O_CREAT = 0o100
O_EXCL = 0o200
O_APPEND = 0o2000
O_NONBLOCK = 0o4000
O_LARGEFILE = 0o100000
O_DIRECTORY = 0o200000
O_CLOEXEC = 0o2000000
PROT_READ = 1
PROT_WRITE = 2
MAP_SHARED = 1
MAP_PRIVATE = 2
MAP_ANON = 0x20
EACCES = 13
ENOSYS = 38

OPEN_FLAGS = (
    O_CREAT | O_EXCL | O_APPEND | O_NONBLOCK | O_DIRECTORY | O_CLOEXEC | O_LARGEFILE
)

# Classic BPF opcodes.
BPF_LD_W_ABS = 0x20
BPF_JMP_JEQ_K = 0x15
BPF_JMP_JSET_K = 0x45
BPF_RET_K = 0x06

AUDIT_ARCH_X86_64 = 0xC000003E
SECCOMP_RET_KILL = 0x00000000
SECCOMP_RET_ALLOW = 0x7FFF0000
SECCOMP_RET_ERRNO = 0x00050000

_U32 = 0xFFFFFFFF
_SECCOMP_DATA_ARCH = 4
_SECCOMP_DATA_NR = 0
_SECCOMP_DATA_ARGS = 16


def _arg_offset(arg: int) -> int:
    return _SECCOMP_DATA_ARGS + (arg - 1) * 8


@dataclass(frozen=True)
class SandboxConfig:
    """The configuration switches that shape the syscall policy."""

    port_enable: bool = False
    pasv_enable: bool = False
    idle_session_timeout: int = 0
    data_connection_timeout: int = 0
    xferlog_enable: bool = False
    dual_log_enable: bool = False
    ssl_enable: bool = False
    syslog_enable: bool = False
    write_enable: bool = False
    lock_upload_files: bool = False
    async_abor_enable: bool = False
    use_sendfile: bool = False
    one_process_model: bool = False
    chown_uploads: bool = False
    text_userdb_names: bool = False
    anon_mkdir_write_enable: bool = False
    anon_other_write_enable: bool = False
    delete_failed_uploads: bool = False
    mdtm_write: bool = False
    chmod_enable: bool = False


@dataclass(frozen=True)
class BpfInstruction:
    """One ``struct sock_filter`` entry."""

    code: int
    jt: int = 0
    jf: int = 0
    k: int = 0

    def pack(self) -> bytes:
        """The native-order wire form: u16 code, u8 jt, u8 jf, u32 k."""
        return struct.pack("=HBBI", self.code, self.jt, self.jf, self.k & _U32)


@dataclass(frozen=True)
class SyscallRule:
    """A syscall to allow or fail, with optional argument checks.

    An argument number of 0 means no check. When ``mask1`` is set, the first
    check passes if the argument has no bits outside ``val1``.
    """

    nr: int
    errno: int = 0
    arg1: int = 0
    val1: int = 0
    mask1: bool = False
    arg2: int = 0
    val2: int = 0
    arg3: int = 0
    val3: int = 0

    @property
    def block_size(self) -> int:
        if self.arg3:
            return 8
        if self.arg2:
            return 6
        if self.arg1:
            return 4
        return 1


class SeccompPolicy:
    """An ordered set of syscall rules that compiles to a BPF filter."""

    def __init__(self) -> None:
        self._rules: list[SyscallRule] = []

    @property
    def rules(self) -> tuple[SyscallRule, ...]:
        return tuple(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def _add(self, rule: SyscallRule) -> None:
        if len(self._rules) >= MAX_SYSCALLS:
            raise OverflowError("out of syscall space")
        if rule.nr < 0:
            raise ValueError("negative syscall")
        self._rules.append(rule)

    @staticmethod
    def _check_arg(arg: int, name: str) -> None:
        if arg < 1 or arg > 6:
            raise ValueError(f"{name} out of range")

    def allow(self, nr: int) -> None:
        """Allow syscall ``nr`` unconditionally."""
        self._add(SyscallRule(nr))

    def reject(self, nr: int, errcode: int) -> None:
        """Make syscall ``nr`` fail with ``errcode`` instead of killing."""
        if len(self._rules) >= MAX_SYSCALLS:
            raise OverflowError("out of syscall space")
        if nr < 0:
            raise ValueError("negative syscall")
        if errcode < 0 or errcode > 255:
            raise ValueError("bad errcode")
        self._add(SyscallRule(nr, errno=errcode))

    def allow_1_arg_match(self, nr: int, arg: int, val: int) -> None:
        """Allow ``nr`` when argument ``arg`` equals ``val``."""
        self._check_arg(arg, "arg")
        self._add(SyscallRule(nr, arg1=arg, val1=val))

    def allow_1_arg_mask(self, nr: int, arg: int, val: int) -> None:
        """Allow ``nr`` when argument ``arg`` has no bits outside ``val``."""
        self._check_arg(arg, "arg")
        self._add(SyscallRule(nr, arg1=arg, val1=val, mask1=True))

    def allow_2_arg_match(
        self, nr: int, arg1: int, val1: int, arg2: int, val2: int
    ) -> None:
        """Allow ``nr`` when both arguments equal their values."""
        self._check_arg(arg1, "arg1")
        self._check_arg(arg2, "arg2")
        self._add(SyscallRule(nr, arg1=arg1, val1=val1, arg2=arg2, val2=val2))

    def allow_2_arg_mask_match(
        self, nr: int, arg1: int, val1: int, arg2: int, val2: int
    ) -> None:
        """Allow ``nr`` when ``arg1`` fits mask ``val1`` and ``arg2`` equals ``val2``."""
        self._check_arg(arg1, "arg1")
        self._check_arg(arg2, "arg2")
        self._add(
            SyscallRule(nr, arg1=arg1, val1=val1, mask1=True, arg2=arg2, val2=val2)
        )

    def allow_3_arg_match(
        self,
        nr: int,
        arg1: int,
        val1: int,
        arg2: int,
        val2: int,
        arg3: int,
        val3: int,
    ) -> None:
        """Allow ``nr`` when all three arguments equal their values."""
        self._check_arg(arg1, "arg1")
        self._check_arg(arg2, "arg2")
        self._check_arg(arg3, "arg3")
        self._add(
            SyscallRule(
                nr, arg1=arg1, val1=val1, arg2=arg2, val2=val2, arg3=arg3, val3=val3
            )
        )

    def _setup_data_connections(self, config: SandboxConfig) -> None:
        self.allow_3_arg_match(NR_SOCKET, 1, PF_INET, 2, SOCK_STREAM, 3, IPPROTO_TCP)
        self.allow_3_arg_match(NR_SOCKET, 1, PF_INET6, 2, SOCK_STREAM, 3, IPPROTO_TCP)
        self.allow(NR_BIND)
        self.allow(NR_SELECT)
        if config.port_enable:
            self.allow(NR_CONNECT)
            self.allow_2_arg_match(NR_GETSOCKOPT, 2, SOL_SOCKET, 3, SO_ERROR)
            self.allow_2_arg_match(NR_SETSOCKOPT, 2, SOL_SOCKET, 3, SO_REUSEADDR)
            self.allow_1_arg_match(NR_FCNTL, 2, F_GETFL)
            self.allow_2_arg_match(NR_FCNTL, 2, F_SETFL, 3, O_RDWR | O_NONBLOCK)
            self.allow_2_arg_match(NR_FCNTL, 2, F_SETFL, 3, O_RDWR)
        if config.pasv_enable:
            self.allow(NR_LISTEN)
            self.allow(NR_ACCEPT)

    def _setup_base(self) -> None:
        self.allow(NR_READ)
        self.allow(NR_WRITE)
        self.allow_2_arg_match(
            NR_MMAP, 3, PROT_READ | PROT_WRITE, 4, MAP_PRIVATE | MAP_ANON
        )
        self.allow_1_arg_mask(NR_MPROTECT, 3, PROT_READ)
        self.allow(NR_MUNMAP)
        self.allow(NR_BRK)
        # The allocator copes when mremap() fails during realloc().
        self.reject(NR_MREMAP, ENOSYS)
        self.allow(NR_GETTIMEOFDAY)
        self.allow(NR_RT_SIGRETURN)
        self.allow(NR_RESTART_SYSCALL)
        self.allow(NR_CLOSE)
        self.allow(NR_EXIT_GROUP)

    def setup_prelogin(self, config: SandboxConfig) -> None:
        """Add the rules needed before a user has logged in."""
        self._setup_base()
        self.allow_1_arg_match(NR_RECVFROM, 4, MSG_PEEK)
        self.allow(NR_NANOSLEEP)
        self.allow(NR_GETPID)
        self.allow(NR_SHUTDOWN)
        self.allow_1_arg_match(NR_FCNTL, 2, F_GETFL)
        self.allow_2_arg_mask_match(NR_FCNTL, 3, OPEN_FLAGS | O_ACCMODE, 2, F_SETFL)
        if config.idle_session_timeout > 0:
            self.allow(NR_RT_SIGACTION)
            self.allow(NR_ALARM)
        if config.xferlog_enable or config.dual_log_enable:
            self.allow_1_arg_match(NR_FCNTL, 2, F_SETLKW)
            self.allow_1_arg_match(NR_FCNTL, 2, F_SETLK)
        if config.ssl_enable:
            self.allow_1_arg_match(NR_RECVMSG, 3, 0)
            self.allow_2_arg_match(NR_SETSOCKOPT, 2, IPPROTO_TCP, 3, TCP_NODELAY)
        if config.syslog_enable:
            self.reject(NR_SOCKET, EACCES)

    def setup_postlogin(
        self, config: SandboxConfig, is_anonymous: bool, pid: int
    ) -> None:
        """Add the rules for a logged-in session process with id ``pid``."""
        open_flag = OPEN_FLAGS
        if config.write_enable:
            open_flag |= O_ACCMODE

        # lstat() is hot during large listings and rules are scanned in order.
        self.allow(NR_LSTAT)
        self.setup_prelogin(config)

        if config.xferlog_enable or config.dual_log_enable or config.lock_upload_files:
            self.allow_1_arg_match(NR_FCNTL, 2, F_SETLKW)
            self.allow_1_arg_match(NR_FCNTL, 2, F_SETLK)
        if config.async_abor_enable:
            self.allow_2_arg_match(NR_FCNTL, 2, F_SETOWN, 3, pid)
        self.allow_2_arg_match(NR_SETSOCKOPT, 2, SOL_SOCKET, 3, SO_KEEPALIVE)
        self.allow_2_arg_match(NR_SETSOCKOPT, 2, SOL_SOCKET, 3, SO_LINGER)
        self.allow_2_arg_match(NR_SETSOCKOPT, 2, IPPROTO_IP, 3, IP_TOS)
        self.allow(NR_FSTAT)
        self.allow(NR_LSEEK)
        self.allow_1_arg_mask(NR_OPEN, 2, open_flag)
        self.allow_1_arg_mask(NR_OPENAT, 3, open_flag)
        self.allow(NR_STAT)
        self.allow(NR_READLINK)
        self.allow(NR_GETCWD)
        self.allow(NR_CHDIR)
        self.allow(NR_GETDENTS)
        self.allow(NR_UMASK)

        if config.use_sendfile:
            self.allow(NR_SENDFILE)
        if (
            config.idle_session_timeout > 0
            or config.data_connection_timeout > 0
            or config.async_abor_enable
        ):
            self.allow(NR_RT_SIGACTION)
        if config.idle_session_timeout > 0 or config.data_connection_timeout > 0:
            self.allow(NR_ALARM)

        if config.one_process_model:
            self._setup_data_connections(config)
            if is_anonymous and config.chown_uploads:
                self.allow(NR_FCHMOD)
                self.allow(NR_FCHOWN)
        else:
            self.allow_1_arg_match(NR_RECVMSG, 3, 0)
            if (is_anonymous and config.chown_uploads) or config.ssl_enable:
                self.allow_1_arg_match(NR_SENDMSG, 3, 0)

        if config.syslog_enable:
            # Only the 32-bit socklen argument is checked, and it must be 0.
            self.allow_1_arg_match(NR_SENDTO, 6, 0)

        if config.text_userdb_names:
            self.reject(NR_SOCKET, EACCES)
            self.allow_2_arg_match(NR_MMAP, 3, PROT_READ, 4, MAP_SHARED)

        if config.write_enable:
            if not is_anonymous or config.anon_mkdir_write_enable:
                self.allow(NR_MKDIR)
            if (
                not is_anonymous
                or config.anon_other_write_enable
                or config.delete_failed_uploads
            ):
                self.allow(NR_UNLINK)
            if not is_anonymous or config.anon_other_write_enable:
                self.allow(NR_RMDIR)
                self.allow(NR_RENAME)
                self.allow(NR_FTRUNCATE)
                if config.mdtm_write:
                    self.allow(NR_UTIME)
                    self.allow(NR_UTIMES)
            if not is_anonymous and config.chmod_enable:
                self.allow(NR_CHMOD)

    def setup_postlogin_broker(self, config: SandboxConfig) -> None:
        """Add the rules for the privileged broker after login."""
        self._setup_base()
        self._setup_data_connections(config)
        self.allow_1_arg_match(NR_SENDMSG, 3, 0)

    def compile(self) -> list[BpfInstruction]:
        """Build the BPF program for the current rules."""
        program = [
            BpfInstruction(BPF_LD_W_ABS, k=_SECCOMP_DATA_ARCH),
            BpfInstruction(BPF_JMP_JEQ_K, jt=1, jf=0, k=AUDIT_ARCH_X86_64),
            BpfInstruction(BPF_RET_K, k=SECCOMP_RET_KILL),
            BpfInstruction(BPF_LD_W_ABS, k=_SECCOMP_DATA_NR),
        ]
        for rule in self._rules:
            program.append(
                BpfInstruction(BPF_JMP_JEQ_K, jt=0, jf=rule.block_size, k=rule.nr)
            )
            if rule.arg3:
                program.append(BpfInstruction(BPF_LD_W_ABS, k=_arg_offset(rule.arg3)))
                program.append(
                    BpfInstruction(BPF_JMP_JEQ_K, jt=0, jf=5, k=rule.val3 & _U32)
                )
            if rule.arg2:
                program.append(BpfInstruction(BPF_LD_W_ABS, k=_arg_offset(rule.arg2)))
                program.append(
                    BpfInstruction(BPF_JMP_JEQ_K, jt=0, jf=3, k=rule.val2 & _U32)
                )
            if rule.arg1:
                program.append(BpfInstruction(BPF_LD_W_ABS, k=_arg_offset(rule.arg1)))
                if rule.mask1:
                    program.append(
                        BpfInstruction(
                            BPF_JMP_JSET_K, jt=1, jf=0, k=~rule.val1 & _U32
                        )
                    )
                else:
                    program.append(
                        BpfInstruction(BPF_JMP_JEQ_K, jt=0, jf=1, k=rule.val1 & _U32)
                    )
            verdict = SECCOMP_RET_ERRNO + rule.errno if rule.errno else SECCOMP_RET_ALLOW
            program.append(BpfInstruction(BPF_RET_K, k=verdict))
            if rule.arg1:
                # The argument loads replaced the syscall number; reload it.
                program.append(BpfInstruction(BPF_LD_W_ABS, k=_SECCOMP_DATA_NR))
        program.append(BpfInstruction(BPF_RET_K, k=SECCOMP_RET_KILL))
        return program

    def pack(self) -> bytes:
        """The compiled program as a contiguous ``sock_filter`` array."""
        return b"".join(instruction.pack() for instruction in self.compile())