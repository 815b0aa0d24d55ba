"""
Resource packing for genqrc.

Packs (virtual path, content) pairs into a single blob and parses such blobs
back. The blob is a ZIP archive written with fixed member metadata so the
same input always produces the same bytes.
"""

from __future__ import annotations

import io
import zipfile
import zlib
from typing import BinaryIO, Iterable, Iterator

from .config import PACK_DATE_TIME, ResourceEntry


class ResourceError(Exception):
    """Error while packing, parsing or loading resources."""

    pass


class ResourcesPacker:
    """
    Collects resources and packs them into a single blob.

    Resources are packed in the order they were added.
    """

    def __init__(self, compress: bool = False):
        """
        Initialize the packer.

        Args:
            compress: DEFLATE-compress members instead of storing them
        """
        self.compress = compress
        self._items: dict[str, bytes] = {}

    def add(self, path: str, data: bytes) -> None:
        """
        Add a resource under a virtual path, stored exactly as given.

        Raises:
            ResourceError: If the path is empty or already added.
        """
        if not path:
            raise ResourceError("resource path must not be empty")
        if path in self._items:
            raise ResourceError(f"duplicate resource path: {path}")
        self._items[path] = bytes(data)

    def __len__(self) -> int:
        return len(self._items)

    def pack(self) -> Resources:
        """Pack all added resources."""
        compress_type = zipfile.ZIP_DEFLATED if self.compress else zipfile.ZIP_STORED
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            for path, data in self._items.items():
                info = zipfile.ZipInfo(path, date_time=PACK_DATE_TIME)
                info.compress_type = compress_type
                # Unix host, rw-r--r--; independent of the packing machine
                info.create_system = 3
                info.external_attr = 0o100644 << 16
                archive.writestr(info, data)
        return Resources(buffer.getvalue())


class Resources:
    """
    A parsed resource pack.

    Resources are looked up by virtual path; a leading slash is ignored.
    """

    def __init__(self, data: bytes):
        """
        Parse and verify a packed blob.

        Raises:
            ResourceError: If the data is not a valid resource pack.
        """
        self._data = bytes(data)
        try:
            self._archive = zipfile.ZipFile(io.BytesIO(self._data))
            bad_member = self._archive.testzip()
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, ValueError) as e:
            raise ResourceError(f"invalid resource pack: {e}") from e
        if bad_member is not None:
            raise ResourceError(f"invalid resource pack: corrupt member {bad_member}")

        self._names: dict[str, str] = {}
        for name in self._archive.namelist():
            if name.endswith("/"):
                continue
            self._names.setdefault(name.lstrip("/"), name)

    def bytes(self) -> bytes:
        """Return the packed blob."""
        return self._data

    def paths(self) -> list[str]:
        """Return the virtual paths in pack order."""
        return list(self._names)

    def _lookup(self, path: str) -> str:
        key = path.lstrip("/")
        try:
            return self._names[key]
        except KeyError:
            raise KeyError(f"resource not found: {path}") from None

    def read(self, path: str) -> bytes:
        """
        Read a resource's content.

        Raises:
            KeyError: If no resource exists under `path`.
        """
        return self._archive.read(self._lookup(path))

    def open(self, path: str) -> BinaryIO:
        """Open a resource as a binary file object."""
        return io.BytesIO(self.read(path))

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        return path.lstrip("/") in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)


def parse_resources(data: bytes | bytearray | memoryview | str) -> Resources:
    """
    Parse a packed resource blob.

    String input is treated as a byte string (each character one byte).

    Raises:
        ResourceError: If the data is not a valid resource pack.
    """
    if isinstance(data, str):
        try:
            data = data.encode("latin-1")
        except UnicodeEncodeError as e:
            raise ResourceError(f"invalid resource pack: {e}") from e
    return Resources(bytes(data))


def pack_entries(entries: Iterable[ResourceEntry], compress: bool = False) -> Resources:
    """Pack scanned entries, in order, under their virtual paths."""
    packer = ResourcesPacker(compress=compress)
    for entry in entries:
        packer.add(entry.virtual_path, entry.data)
    return packer.pack()
