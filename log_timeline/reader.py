"""Glob expansion and size/type checks for files before ingestion."""

import glob
import logging
import os

from log_timeline.config import UploadConfig

logger = logging.getLogger(__name__)


def expand_paths(raw_paths: list[str]) -> list[str]:
    """Resolve CLI arguments to an ordered, duplicate-free list of files.

    Arguments containing glob characters expand to their sorted matches;
    anything else must name an existing file. Raises FileNotFoundError for
    a missing plain path, or when nothing at all is found.
    """
    found: dict[str, None] = {}
    for raw in raw_paths:
        if glob.escape(raw) != raw:
            found.update(dict.fromkeys(sorted(glob.glob(raw))))
        elif os.path.isfile(raw):
            found[raw] = None
        else:
            raise FileNotFoundError(f"File not found: {raw}")

    if not found:
        raise FileNotFoundError("No log files found matching the given paths")
    return list(found)


def select_uploads(paths: list[str], upload: UploadConfig) -> list[str]:
    """Keep files with an accepted extension and size, at most max_entries of them."""
    selected = []
    for path in paths:
        if not upload.accepts(path):
            logger.warning("Skipping %s: extension not in %s", path, ", ".join(upload.accepted_extensions))
            continue
        size = os.path.getsize(path)
        if size > upload.max_file_size:
            logger.warning("Skipping %s: %d bytes exceeds limit of %d", path, size, upload.max_file_size)
            continue
        selected.append(path)

    if len(selected) > upload.max_entries:
        logger.warning("Only the first %d of %d files will be loaded", upload.max_entries, len(selected))
        selected = selected[:upload.max_entries]
    return selected


def read_upload(path: str) -> bytes:
    """Read a whole file; decoding is left to the parser."""
    with open(path, "rb") as f:
        return f.read()
