[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "secftpd"
version = "0.1.0"
description = "Building blocks for a security-minded FTP server: text helpers, connection accounting, seccomp policies, process titles and file transfer"
requires-python = ">=3.10"
dependencies = []
keywords = ["ftp", "server", "seccomp", "bpf", "sandbox", "sendfile"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: File Transfer Protocol (FTP)",
    "Topic :: Security",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["secftpd"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
