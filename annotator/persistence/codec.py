"""
Record file codec.

FORMAT:
-------
- UTF-8 text, one JSON object per record, no enclosing array
- Written one compact object per line; read as any whitespace-separated
  stream of objects (an object may span lines)
- A path ending in .gz is gzip-compressed (best compression on write)
- Entry order is load order is record index

GUARANTEES:
-----------
- Writes go to a temp file in the destination directory, are flushed and
  fsynced, then renamed over the destination with os.replace
- On any encode or write failure the temp file is removed and the
  destination is left byte-identical
- Malformed input fails loudly with the entry number and offset

NOT PROVIDED:
-------------
- Schema migration
- Partial loads
- Healing of corrupt files
"""

import gzip
import json
import logging
import os
import re
import tempfile
import zlib
from pathlib import Path
from typing import Any, List, Sequence, Union

from pydantic import ValidationError

from annotator.models import Record
from .errors import DecodeError, EncodeError, StorageIOError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

COMPRESSED_SUFFIX = ".gz"

# JSON insignificant whitespace between entries
_WHITESPACE = re.compile(r"[ \t\n\r]*")

# Record keys written only when set
_OPTIONAL_TAGS = ("id", "type", "method")


def is_compressed(path: PathLike) -> bool:
    """Check whether records at path are stored gzip-compressed."""
    return Path(path).suffix == COMPRESSED_SUFFIX


def encode_record(record: Record) -> str:
    """
    Serialise one record to a single line of JSON (no trailing newline).

    Only optional fields are omitted: an unanswered record has no "golden"
    key, an unrestricted one no "controlaccess" key, and unset id/type/method
    tags are left out. "candidates" and every candidate's "distance" are
    always written.
    """
    data = record.model_dump(mode="json", by_alias=True)
    for key in _OPTIONAL_TAGS:
        if data.get(key) is None:
            data.pop(key, None)
    if not data.get("golden"):
        data.pop("golden", None)
    if not data.get("controlaccess"):
        data.pop("controlaccess", None)
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def decode_record(obj: Any) -> Record:
    """Validate one decoded JSON value as a Record."""
    return Record.model_validate(obj)


def _read_text(path: Path) -> str:
    try:
        if is_compressed(path):
            with gzip.open(path, "rt", encoding="utf-8-sig") as f:
                return f.read()
        with open(path, "r", encoding="utf-8-sig") as f:
            return f.read()
    except gzip.BadGzipFile as e:
        raise DecodeError(str(path), 0, None, f"corrupt gzip stream: {e}") from e
    except EOFError as e:
        raise DecodeError(str(path), 0, None, f"truncated gzip stream: {e}") from e
    except zlib.error as e:
        raise DecodeError(str(path), 0, None, f"corrupt gzip data: {e}") from e
    except UnicodeDecodeError as e:
        raise DecodeError(str(path), 0, e.start, f"invalid UTF-8: {e.reason}") from e
    except OSError as e:
        raise StorageIOError(str(path), e.strerror or str(e)) from e


def load_records(path: PathLike) -> List[Record]:
    """
    Load every record stored at path.

    Args:
        path: Record file, gzip-compressed if it ends in .gz

    Returns:
        Records in file order

    Raises:
        StorageIOError: If the file is missing or unreadable
        DecodeError: If any entry is malformed
    """
    path = Path(path)
    text = _read_text(path)

    decoder = json.JSONDecoder()
    records: List[Record] = []
    pos = 0
    end = len(text)

    while True:
        pos = _WHITESPACE.match(text, pos).end()
        if pos >= end:
            break

        entry = len(records)
        try:
            obj, next_pos = decoder.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise DecodeError(str(path), entry, e.pos, e.msg) from e

        try:
            records.append(decode_record(obj))
        except ValidationError as e:
            raise DecodeError(str(path), entry, pos, str(e)) from e

        pos = next_pos

    logger.info(f"[Codec] Loaded {len(records)} records from {path}")
    return records


def _write_records(out, path: Path, records: Sequence[Record]) -> None:
    for index, record in enumerate(records):
        try:
            line = encode_record(record)
        except (TypeError, ValueError) as e:
            raise EncodeError(str(path), index, str(e)) from e
        out.write(line.encode("utf-8"))
        out.write(b"\n")


def _discard(tmp_path: Path) -> None:
    try:
        tmp_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"[Codec] Could not remove temp file {tmp_path}: {e}")


def save_records(path: PathLike, records: Sequence[Record]) -> None:
    """
    Atomically replace the file at path with the given records.

    Args:
        path: Destination, gzip-compressed if it ends in .gz
        records: Records to write, in index order

    Raises:
        EncodeError: If a record cannot be serialised
        StorageIOError: If the temp file cannot be written or renamed
    """
    path = Path(path)
    directory = path.parent

    try:
        fd, tmp_name = tempfile.mkstemp(
            dir=directory, prefix=".annotator-", suffix=".tmp"
        )
    except OSError as e:
        raise StorageIOError(str(path), e.strerror or str(e)) from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as raw:
            if is_compressed(path):
                with gzip.GzipFile(fileobj=raw, mode="wb", compresslevel=9) as out:
                    _write_records(out, path, records)
            else:
                _write_records(raw, path, records)
            raw.flush()
            os.fsync(raw.fileno())

        # Keep the permissions of the file being replaced
        if path.exists():
            os.chmod(tmp_path, path.stat().st_mode & 0o7777)

        os.replace(tmp_path, path)
    except OSError as e:
        _discard(tmp_path)
        raise StorageIOError(str(path), e.strerror or str(e)) from e
    except BaseException:
        _discard(tmp_path)
        raise

    logger.info(f"[Codec] Saved {len(records)} records to {path}")
