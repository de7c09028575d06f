# src/gitcache/services/normalizer.py
"""
Deterministic re-encoding of an uncompressed tar stream.

`git archive` stamps every entry with the commit time, so two exports of an
identical tree can differ byte-for-byte. `normalize_tar` relays the stream
entry by entry and rewrites exactly one field on the way through: the
modification time, which becomes `EPOCH`. Names, modes, sizes, types, link
targets, owners and payload bytes are passed on unchanged and in order.

The rewrite is a generator so the HTTP layer can send blocks as soon as
they are produced:

    AwaitEntry -> HaveHeader -> Copying -> AwaitEntry ...
    AwaitEntry --(clean end of input)--> Done      (end-of-archive marker)
    any read/parse error or short payload --> Failed (NormalizeError)

A Failed stream never emits a partial header and never emits the
end-of-archive marker, so a consumer cannot mistake it for a complete
archive.
"""
from __future__ import annotations

import logging
import tarfile
from typing import BinaryIO, Dict, Iterator

from ..errors import NormalizeError

logger = logging.getLogger(__name__)

EPOCH = 0
CHUNK_SIZE = 64 * 1024

BLOCKSIZE = tarfile.BLOCKSIZE
RECORDSIZE = tarfile.RECORDSIZE
NUL = b"\0"


class _StrictTarInfo(tarfile.TarInfo):
    """
    tarfile treats a corrupt header after the first entry as end of archive.
    Turn that into a read error; a stream that simply stops at a block
    boundary is still a clean end.
    """

    @classmethod
    def fromtarfile(cls, tarfile_):
        try:
            return super().fromtarfile(tarfile_)
        except (tarfile.InvalidHeaderError, tarfile.TruncatedHeaderError) as e:
            raise tarfile.ReadError(f"malformed header: {e}") from None


def _global_records(tar_in: tarfile.TarFile) -> Dict[str, str]:
    return {k: v for k, v in tar_in.pax_headers.items() if k != "mtime"}


def _normalized_header(member: tarfile.TarInfo, global_headers: Dict[str, str], encoding: str) -> bytes:
    member.mtime = EPOCH
    # tarfile merges the global records into every entry. Keep only the ones
    # that differ; a record equal to the global one in effect is dropped too,
    # which a pax reader resolves to the same value.
    member.pax_headers = {
        k: v
        for k, v in member.pax_headers.items()
        if k != "mtime" and global_headers.get(k) != v
    }
    return member.tobuf(tarfile.PAX_FORMAT, encoding, "surrogateescape")


def _fail(what: str, e: Exception) -> NormalizeError:
    logger.error("Unexpected error %s: %s", what, e)
    return NormalizeError(str(e))


def normalize_tar(source: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """
    Yield the normalized tar stream read from `source`.

    Raises NormalizeError on malformed input or on a payload shorter than
    its header declares (verified by counting, not trusted).
    """
    try:
        tar_in = tarfile.open(fileobj=source, mode="r|", tarinfo=_StrictTarInfo)
    except tarfile.TarError as e:
        raise _fail("reading tar", e) from e

    written = 0
    sent_globals: Dict[str, str] = {}

    while True:
        # AwaitEntry
        try:
            member = tar_in.next()
        except (tarfile.TarError, OSError) as e:
            raise _fail("reading tar", e) from e
        if member is None:
            break
        # stream mode keeps every header read so far
        tar_in.members.clear()

        # HaveHeader
        if _global_records(tar_in) != sent_globals:
            sent_globals = _global_records(tar_in)
            buf = tarfile.TarInfo.create_pax_global_header(dict(sent_globals))
            written += len(buf)
            yield buf

        name = member.name
        size = member.size
        try:
            buf = _normalized_header(member, tar_in.pax_headers, tar_in.encoding)
        except (tarfile.TarError, ValueError) as e:
            raise _fail(f"writing header for {name}", e) from e
        written += len(buf)
        yield buf

        # Copying; links and directories carry no data
        copied = 0
        try:
            payload = tar_in.extractfile(member) if size else None
            while payload is not None and copied < size:
                chunk = payload.read(min(chunk_size, size - copied))
                if not chunk:
                    break
                copied += len(chunk)
                written += len(chunk)
                yield chunk
        except (tarfile.TarError, OSError) as e:
            raise _fail(f"copying tar data for {name}", e) from e

        if copied != size:
            logger.error("Error copying tar data for %s: %d of %d bytes", name, copied, size)
            raise NormalizeError(f"short copy for {name}: {copied} of {size} bytes")

        remainder = size % BLOCKSIZE
        if remainder:
            pad = NUL * (BLOCKSIZE - remainder)
            written += len(pad)
            yield pad

    # Done
    if _global_records(tar_in) != sent_globals:
        buf = tarfile.TarInfo.create_pax_global_header(_global_records(tar_in))
        written += len(buf)
        yield buf

    trailer = NUL * (BLOCKSIZE * 2)
    written += len(trailer)
    remainder = written % RECORDSIZE
    if remainder:
        trailer += NUL * (RECORDSIZE - remainder)
    yield trailer
