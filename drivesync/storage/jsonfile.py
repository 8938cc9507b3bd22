"""
Atomic JSON file writes shared by the stores.
"""

import json
import os
import tempfile
from pathlib import Path


def write_json_atomic(path: Path, data, indent: int = 2):
    """
    Write data as JSON to path, replacing any existing file in one step.

    The document goes to a temp file in the same directory first, so an
    interrupted write leaves the previous file intact. The temp file is
    created owner read/write only (mkstemp).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=indent)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
