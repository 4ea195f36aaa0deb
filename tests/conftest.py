from typing import List

import pytest

from etchosts.access import ReadError, WriteError

SAMPLE_HOSTS = (
    "##\n"
    "# Host Database\n"
    "##\n"
    "127.0.0.1\tlocalhost\n"
    "255.255.255.255\tbroadcasthost\n"
    "::1             localhost\n"
    "\n"
    "# 10.0.0.1 blocked.example.com\n"
    "0.0.0.0 ads.example.com tracker.example.com\n"
)


class MemoryHostsFile:
    """In-memory stand-in for the hosts file, usable as reader and writer."""

    def __init__(self, content: str = ""):
        self.path = "memory://hosts"
        self.content = content
        self.writes: List[str] = []

    def read(self) -> str:
        return self.content

    def write(self, content: str) -> None:
        self.writes.append(content)
        self.content = content


class FailingWriter:
    def __init__(self, error: Exception = None):
        self.error = error or WriteError("disk full")
        self.attempts = 0

    def write(self, content: str) -> None:
        self.attempts += 1
        raise self.error


@pytest.fixture
def hosts_file():
    return MemoryHostsFile(SAMPLE_HOSTS)


class BrokenReader:
    path = "/missing/hosts"

    def read(self) -> str:
        raise ReadError("Hosts file not found at /missing/hosts")
