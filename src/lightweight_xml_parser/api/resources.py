"""External resource loading for DOCTYPE subsets.

The tree builder asks a :class:`ResourceLoader` for the bytes of an external
DTD, first by public identifier and then by system identifier. A loader
returns None when it has nothing for an identifier. Any exception a loader
raises is logged as a warning and the parse goes on without that subset.
"""

from pathlib import Path, PurePosixPath
from typing import (
    Dict, List, Mapping, Optional, Protocol, Tuple, Union, runtime_checkable,
)

from lightweight_xml_parser.shared import get_logger


@runtime_checkable
class ResourceLoader(Protocol):
    """Source of external DTD content."""

    def load(self, uri: str) -> Optional[bytes]:
        """Return the bytes for a system identifier, or None."""

    def load_public(self, public_id: str) -> Optional[bytes]:
        """Return the bytes for a public identifier, or None."""


class MappingResourceLoader:
    """Serves canned byte buffers keyed by identifier.

    Examples:
        >>> loader = MappingResourceLoader(system={"font.dtd": b"<!ELEMENT font (glyph*)>"})
        >>> loader.load("font.dtd")
        b'<!ELEMENT font (glyph*)>'
    """

    def __init__(self, system: Optional[Mapping[str, Union[bytes, str]]] = None,
                 public: Optional[Mapping[str, Union[bytes, str]]] = None) -> None:
        self.system: Dict[str, bytes] = {k: _as_bytes(v) for k, v in (system or {}).items()}
        self.public: Dict[str, bytes] = {k: _as_bytes(v) for k, v in (public or {}).items()}
        self.requests: List[Tuple[str, str]] = []

    def load(self, uri: str) -> Optional[bytes]:
        self.requests.append(("system", uri))
        return self.system.get(uri)

    def load_public(self, public_id: str) -> Optional[bytes]:
        self.requests.append(("public", public_id))
        return self.public.get(public_id)


class FileResourceLoader:
    """Resolves identifiers to files below a base directory.

    System identifiers are treated as paths relative to ``base_dir``; URL
    prefixes are ignored and only the final path component is used for
    ``http(s)://`` identifiers. Public identifiers are looked up in
    ``public_map`` (public id -> relative file name). Paths that escape the
    base directory are refused with ``ValueError``.
    """

    def __init__(self, base_dir: Union[str, Path] = ".",
                 public_map: Optional[Mapping[str, str]] = None,
                 correlation_id: Optional[str] = None) -> None:
        self.base_dir = Path(base_dir)
        self.public_map: Dict[str, str] = dict(public_map or {})
        self.logger = get_logger(__name__, correlation_id, "resource_loader")

    def resolve(self, uri: str) -> Path:
        """Map an identifier to a path inside the base directory.

        Raises:
            ValueError: If the identifier resolves outside the base directory
        """
        if uri.startswith("file://"):
            uri = uri[len("file://"):]
        elif "://" in uri:
            uri = PurePosixPath(uri.split("://", 1)[1]).name

        base = self.base_dir.resolve()
        candidate = (base / uri.lstrip("/")).resolve()
        if candidate != base and base not in candidate.parents:
            raise ValueError(f"Resource {uri!r} is outside {base}")
        return candidate

    def load(self, uri: str) -> Optional[bytes]:
        path = self.resolve(uri)
        if not path.is_file():
            self.logger.debug("Resource not found", extra={"uri": uri, "path": str(path)})
            return None
        data = path.read_bytes()
        self.logger.debug("Resource loaded", extra={"uri": uri, "byte_count": len(data)})
        return data

    def load_public(self, public_id: str) -> Optional[bytes]:
        file_name = self.public_map.get(public_id)
        if file_name is None:
            return None
        return self.load(file_name)


def _as_bytes(value: Union[bytes, str]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)
