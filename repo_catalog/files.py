"""
files.py

Atomic file replacement shared by the enrichment report and README writers.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from repo_catalog.errors import OutputWriteError


def _default_file_mode() -> int:
    # os.umask can only be read by setting it.
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_text_atomic(path: str | Path, text: str) -> None:
    """
    Write `text` to a temporary file next to the destination and move it into
    place, so readers never see a half-written file.

    The replaced file keeps the destination's permission bits; a new file gets
    the umask default instead of the private mode of temporary files.
    """
    dst = Path(path)
    tmp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="\n",
            dir=dst.parent,
            prefix=f".{dst.name}.",
            suffix=".tmp",
            delete=False,
        ) as fh:
            tmp_name = fh.name
            fh.write(text)
        if dst.exists():
            shutil.copymode(dst, tmp_name)
        else:
            os.chmod(tmp_name, _default_file_mode())
        os.replace(tmp_name, dst)
        tmp_name = None
    except (OSError, UnicodeError) as e:
        raise OutputWriteError(f"Cannot write {dst}: {e}") from e
    finally:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
