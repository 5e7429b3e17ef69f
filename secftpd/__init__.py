"""Building blocks for a security-minded FTP server: text helpers, string
lists, connection accounting, seccomp policies, process titles and sendfile."""

__version__ = "0.1.0"