import datetime
import logging
import math
import os
from dataclasses import dataclass, field

log = logging.getLogger(__name__)

_SIZE_UNITS = "KMGTPE"
_RECENT = datetime.timedelta(days=182)


class EmptyBatch(Exception):
    """Upload request without a single usable file part."""


class MissingFilename(Exception):
    pass


class ListingError(Exception):
    def __init__(self, message, output=""):
        super().__init__(message)
        self.output = output


@dataclass
class BatchResult:
    stored: list = field(default_factory=list)
    skipped: list = field(default_factory=list)

    @property
    def uploaded(self) -> int:
        return len(self.stored)


def safe_name(name) -> str:
    """
    Return a filename stripped of any path components to prevent
    directory-traversal attacks, or "" when nothing usable is left.
    """
    base = os.path.basename(str(name or "").replace("\\", "/"))
    if base in ("", ".", ".."):
        return ""
    return base


def human_size(size: int) -> str:
    if size < 1024:
        return str(size)
    value = float(size)
    for unit in _SIZE_UNITS:
        value /= 1024
        if value < 10:
            rounded = math.ceil(value * 10) / 10
            if rounded < 10:
                return f"{rounded:.1f}{unit}"
            value = rounded
        rounded = math.ceil(value)
        if rounded < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{rounded}{unit}"
    return str(size)


def listing_line(name: str, stat: os.stat_result, now: datetime.datetime) -> str:
    modified = datetime.datetime.fromtimestamp(stat.st_mtime)
    if now - _RECENT <= modified <= now:
        last = modified.strftime("%H:%M")
    else:
        last = str(modified.year)
    return f"{human_size(stat.st_size)} {modified.strftime('%b')} {modified.day} {last} {name}"


class FileStore:
    """Filename-validated operations over a single flat upload directory."""

    def __init__(self, upload_dir: str):
        self.upload_dir = upload_dir

    def path_for(self, name: str) -> str:
        return os.path.join(self.upload_dir, name)

    def save_batch(self, files) -> BatchResult:
        result = BatchResult()
        accepted = []
        for storage in files:
            name = safe_name(storage.filename)
            if not name:
                result.skipped.append((storage.filename or "", "invalid filename"))
                log.warning("Skipping upload entry with invalid filename %r", storage.filename)
                continue
            accepted.append((name, storage))

        if not accepted:
            raise EmptyBatch("No files found")

        for name, storage in accepted:
            try:
                storage.save(self.path_for(name))
            except (OSError, ValueError) as error:
                result.skipped.append((name, str(error)))
                log.error("Unable to save %s: %s", name, error)
                continue
            result.stored.append(name)
            log.info("Stored file %s", name)
        return result

    def listing(self, now=None) -> str:
        now = now or datetime.datetime.now()
        lines = []
        try:
            with os.scandir(self.upload_dir) as entries:
                names = sorted(entry.name for entry in entries if not entry.name.startswith("."))
        except OSError as error:
            raise ListingError(f"Unable to list directory: {error}") from error

        for name in names:
            try:
                stat = os.lstat(self.path_for(name))
            except FileNotFoundError:
                continue
            except OSError as error:
                partial = "".join(line + "\n" for line in lines)
                raise ListingError(f"Unable to read {name}: {error}", partial) from error
            lines.append(listing_line(name, stat, now))
        return "".join(line + "\n" for line in lines)

    def delete(self, filename) -> str:
        if not filename:
            raise MissingFilename("No filename given")
        name = safe_name(filename)
        if not name or not os.path.isfile(self.path_for(name)):
            raise FileNotFoundError(name or filename)
        os.remove(self.path_for(name))
        log.info("Deleted file %s", name)
        return name
