"""
Key-space conventions shared by every stage.

    staged upload       <namespace>/<repo>/<uuid>.<ext>
    resized variant     <directory>/<filename>_<breakpoint><extension>
    image metadata      _meta/<directory>/<filename>.json
    directory index     <directory without _meta/>/index.json
"""
from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass

from coral.gallery.constants import INDEX_FILENAME, META_PREFIX

_META_RE = re.compile(rf"^{META_PREFIX}/", re.IGNORECASE)


def _join(directory: str, name: str) -> str:
    return f"{directory}/{name}" if directory else name


@dataclass(frozen=True)
class FileDescriptor:
    directory: str
    filename: str
    extension: str

    @classmethod
    def from_key(cls, key: str) -> FileDescriptor:
        directory, base = posixpath.split(key)
        filename, extension = posixpath.splitext(base)
        return cls(directory=directory, filename=filename, extension=extension)

    def variant_key(self, breakpoint: int) -> str:
        return _join(self.directory, f"{self.filename}_{breakpoint}{self.extension}")

    def metadata_key(self) -> str:
        return _join(_join(META_PREFIX, self.directory), f"{self.filename}.json")


def staged_key(namespace: str, repo: str, name: str) -> str:
    return f"{namespace}/{repo}/{name}"


def is_metadata_key(key: str) -> bool:
    return bool(_META_RE.match(key))


def public_directory(directory: str) -> str:
    """Strip the leading metadata namespace from a directory."""
    return _META_RE.sub("", directory + "/").rstrip("/")


def index_key(directory: str) -> str:
    return _join(public_directory(directory), INDEX_FILENAME)


def is_variant_key(key: str, breakpoints: tuple[int, ...]) -> bool:
    """True for keys this pipeline derived itself (variants and indexes)."""
    descriptor = FileDescriptor.from_key(key)
    if f"{descriptor.filename}{descriptor.extension}" == INDEX_FILENAME:
        return True
    stem, _, suffix = descriptor.filename.rpartition("_")
    return bool(stem) and suffix.isdigit() and int(suffix) in breakpoints


def asset_id(key: str) -> str:
    """Filename stem of a key, e.g. ``galleries/demo/abc.jpg`` -> ``abc``."""
    return posixpath.splitext(posixpath.basename(key))[0]
