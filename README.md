# secftpd

Building blocks for a security-minded FTP server. The package has no
dependencies beyond the Python standard library (3.10 or later).

## Modules

### `secftpd.textbuf`

String helpers with fixed edge-case behaviour:

- `split_text(value, sep)` / `split_text_reverse(value, sep)` split at the
  first / last `sep` and return `(left, right)`; when `sep` is absent the
  whole value is the left part and the right part is `""`.
- `locate_text`, `locate_text_reverse` return an index or `None` (an empty
  search text is never found); `locate_chars(value, chars)` returns
  `(index, char)` for the first character that is one of `chars`, or `None`.
- `replace_text(value, old, new)` replaces every `old` (an empty `old`
  changes nothing).
- `compare(first, second)` is a three-way, character-wise comparison in
  which a prefix sorts before the longer string.
- `lpad`, `rpad` pad with spaces to a width.
- `contains_space`, `all_space`, `contains_unprintable`,
  `replace_unprintable` classify or clean characters.
- `iter_lines(value)` yields `\n`-delimited lines without terminators;
  `contains_line(value, line)` checks for a whole line.
- `alloc_alt_term(value, term)` returns the text before `term` and raises
  `ValueError` if it is missing.
- `left`, `right`, `mid_to_end` raise `ValueError` and `char_at` raises
  `IndexError` when the count or index is out of range.

### `secftpd.strlist`

`StringList` holds strings with optional sort keys. `add(value, sort_key)`
appends; `sort(reverse)` orders by the sort key, or by the text when the
key is empty. It supports `len()`, `in`, indexing and iteration, and raises
`MemoryError` if it would grow beyond ten million entries.

### `secftpd.connections`

`ConnectionTracker` counts running child sessions in total and per client
address (raw address bytes):

- `accept(raw_addr)` counts a new connection and returns a `ClientLaunch`
  with `num_children` and `num_this_ip`.
- `child_started(pid, raw_addr)` records which address a child serves.
- `fork_failed(raw_addr)` undoes `accept` when no child was started.
- `child_exited(pid)` accounts a reaped child; an unknown pid raises
  `LookupError`.
- `count_for(raw_addr)` and `children()` report the current counts.

`hash_ip(buckets, raw_addr)` and `hash_pid(buckets, pid)` give bucket
numbers for addresses and process ids.

### `secftpd.seccomp`

`SeccompPolicy` builds an ordered x86-64 syscall allow list of at most
100 rules (`MAX_SYSCALLS`). Rules are added with `allow`, `reject`
(fail with an errno instead of killing), `allow_1_arg_match`,
`allow_1_arg_mask`, `allow_2_arg_match`, `allow_2_arg_mask_match` and
`allow_3_arg_match`, or in sets shaped by a `SandboxConfig` with
`setup_prelogin(config)`, `setup_postlogin(config, is_anonymous, pid)` and
`setup_postlogin_broker(config)`. `compile()` returns the classic BPF
program as a list of `BpfInstruction` records (checking the architecture
first and killing on any unlisted call); `pack()` returns it as a
contiguous `sock_filter` byte array.

### `secftpd.proctitle`

`ProcTitle(space)` formats process titles for a title area of `space`
bytes. `set_prefix(prefix)` sets text shown before each title;
`format(text)` gives `"<prefix>: <text>"` (or `text` alone);
`render(text)` adds the `"secftpd: "` program prefix and cuts the title to
`space - 1` characters, or returns `""` when the area is under 32 bytes.
`ProcTitle.from_argv(argv, environ)` sizes the area from the arguments and
environment.

### `secftpd.sendfile`

`sendfile(out_fd, in_fd, offset, count, max_chunk=0, use_sendfile=True)`
copies `count` bytes of `in_fd` from `offset` to `out_fd` in chunks of at
most `max_chunk` bytes (0 means no limit below `INT_MAX`). It uses
`os.sendfile` where available and working, and otherwise a read/write loop
with a 64 KiB buffer. It returns the offset reached. A negative offset or
count raises `ValueError`; input that ends early during the read/write loop
raises `EOFError`.

## Example

```python
from secftpd.textbuf import split_text
from secftpd.connections import ConnectionTracker
from secftpd.seccomp import SandboxConfig, SeccompPolicy

head, tail = split_text("USER anonymous", " ")
assert (head, tail) == ("USER", "anonymous")

tracker = ConnectionTracker()
launch = tracker.accept(b"\x7f\x00\x00\x01")
print(launch.num_children, launch.num_this_ip)  # 1 1

policy = SeccompPolicy()
policy.setup_prelogin(SandboxConfig(idle_session_timeout=300))
filter_bytes = policy.pack()
```

## What this package does not do

It is a library only: there is no command, no listening server and no FTP
protocol handling. `ConnectionTracker` only keeps counts; it does not
accept sockets or start processes. `SeccompPolicy` produces the filter
program but does not install it in the kernel. `ProcTitle` computes title
text but does not change the running process's title.

## Tests

```
pip install -e ".[test]"
pytest
```