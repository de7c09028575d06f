import io
import tarfile
from contextlib import contextmanager
from pathlib import Path

import pytest

from gitcache.config import Settings
from gitcache.util.git_cmd import GitError

COMMIT_A = "a" * 40
COMMIT_B = "b" * 40


def make_tar(entries, mtime=1_700_000_000, comment=None):
    """
    Build an uncompressed tar the way `git archive` lays one out.

    entries: list of (name, payload) where payload is bytes for a file,
    None for a directory, or ("symlink", target) / ("hardlink", target).
    """
    buf = io.BytesIO()
    pax = {"comment": comment} if comment else {}
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.PAX_FORMAT, pax_headers=pax) as tf:
        for name, payload in entries:
            info = tarfile.TarInfo(name)
            info.mtime = mtime
            info.uname = "root"
            info.gname = "root"
            if payload is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o775
                tf.addfile(info)
            elif isinstance(payload, tuple):
                info.type = tarfile.SYMTYPE if payload[0] == "symlink" else tarfile.LNKTYPE
                info.linkname = payload[1]
                info.mode = 0o777
                tf.addfile(info)
            else:
                info.size = len(payload)
                info.mode = 0o755 if name.endswith(".sh") else 0o664
                tf.addfile(info, io.BytesIO(payload))
    return buf.getvalue()


SAMPLE_ENTRIES = [
    ("README.md", b"# sample\n"),
    ("src/", None),
    ("src/main.py", b"print('hello')\n" * 100),
    ("src/run.sh", b"#!/bin/sh\nexec python main.py\n"),
    ("src/link", ("symlink", "main.py")),
    ("docs/" + "very-long-directory-name/" * 5 + "page.txt", b"long path entry\n"),
    ("empty.txt", b""),
]


def read_tar(data):
    """[(TarInfo, payload-or-None), ...] in archive order."""
    out = []
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:") as tf:
        for member in tf:
            f = tf.extractfile(member) if member.isreg() else None
            out.append((member, f.read() if f is not None else None))
    return out


def link_with_payload(name="link", target="README.md"):
    """A symlink header that declares data, which no tar writer produces."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.PAX_FORMAT) as tf:
        tf.addfile(tarfile.TarInfo("first.txt"), io.BytesIO(b""))
        info = tarfile.TarInfo(name)
        info.type = tarfile.SYMTYPE
        info.linkname = target
        info.size = 5
        tf.addfile(info)
    return buf.getvalue()


class FakeVcs:
    """
    In-memory stand-in for the git capability.

    `local` holds the archives a mirror can already export (treeish -> tar
    bytes); `upstream` holds what becomes exportable after a fetch.
    """

    def __init__(self):
        self.calls = []
        self.local = {}
        self.upstream = {}
        self.tips = {}
        self.fail_init = False
        self.fail_fetch = False
        self.fail_rev_parse = False

    def names(self):
        return [c[0] for c in self.calls]

    def init_bare(self, git_dir: Path) -> None:
        self.calls.append(("init_bare", git_dir))
        if self.fail_init:
            raise GitError("fatal: cannot mkdir")
        (Path(git_dir) / "HEAD").write_text("ref: refs/heads/master\n")

    def fetch(self, git_dir: Path, repo: str, branch: str) -> None:
        self.calls.append(("fetch", git_dir, repo, branch))
        if self.fail_fetch:
            raise GitError(f"fatal: unable to access '{repo}': Could not resolve host")
        self.local.update(self.upstream)

    def rev_parse(self, git_dir: Path, ref: str) -> str:
        self.calls.append(("rev_parse", git_dir, ref))
        if self.fail_rev_parse or ref not in self.tips:
            raise GitError(f"fatal: Needed a single revision: {ref}")
        return self.tips[ref] + "\n"

    @contextmanager
    def archive(self, git_dir: Path, treeish: str):
        self.calls.append(("archive", git_dir, treeish))
        data = self.local.get(treeish)
        if data is None:
            yield io.BytesIO(b"")
            raise GitError(f"fatal: not a valid object name: {treeish}")
        yield io.BytesIO(data)


@pytest.fixture
def fake_vcs():
    return FakeVcs()


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def settings(cache_dir):
    return Settings(cache_dir=cache_dir)
