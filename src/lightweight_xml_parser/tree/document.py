"""Root document container."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, TextIO, Union

from lightweight_xml_parser.shared import ParserConfig, get_logger

from .doctype import DocType
from .nodes import XMLElement, count_elements

if TYPE_CHECKING:
    from lightweight_xml_parser.api.resources import ResourceLoader

DEFAULT_VERSION = "1.0"
DEFAULT_ENCODING = "utf-8"


@dataclass(eq=False)
class XMLDocument(XMLElement):
    """An element with an empty name that holds the top-level nodes.

    Carries the ``<?xml?>`` declaration values, the DOCTYPE and the error
    list of the most recent parse.
    """

    name: str = ""
    version: str = ""
    encoding: str = ""
    doctype: DocType = field(default_factory=DocType)
    errors: List[str] = field(default_factory=list)
    resource_loader: Optional["ResourceLoader"] = field(default=None, repr=False)
    config: ParserConfig = field(default_factory=ParserConfig, repr=False)

    def __post_init__(self) -> None:
        if self.name:
            raise ValueError("The document container has no name")
        self._adopt_children()
        self.logger = get_logger(__name__, self.config.correlation_id, "xml_document")

    # Parsing

    def set_resource_loader(self, loader: Optional["ResourceLoader"]) -> None:
        """Set the collaborator used to fetch external DTD subsets."""
        self.resource_loader = loader

    def parse(self, data: Union[bytes, bytearray, str]) -> bool:
        """Replace the content of this document by parsing ``data``.

        Returns:
            True on success; on failure :attr:`errors` describes the problem
            and the document has no children
        """
        from .builder import XMLTreeBuilder

        builder = XMLTreeBuilder(
            self,
            config=self.config,
            resource_loader=self.resource_loader,
        )
        return builder.parse(data).success

    def parse_dtd(self, data: Union[bytes, bytearray]) -> bool:
        """Register the element declarations of a stand-alone DTD buffer."""
        from .dtd import DTDParser

        parser = DTDParser(self.doctype, self.config.correlation_id)
        if parser.parse(data):
            return True
        self.errors.extend(parser.errors)
        return False

    def error(self, message: str) -> None:
        self.errors.append(message)
        self.logger.debug("Document error recorded", extra={"error": message})

    def get_error_string(self) -> str:
        """All recorded errors, one per line."""
        return "\n".join(self.errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def discard_content(self) -> None:
        """Drop content, declaration values and DOCTYPE but keep the errors."""
        for child in self.children:
            child.parent = None
        self.children.clear()
        self.attributes.clear()
        self.doctype.clear()
        self.version = ""
        self.encoding = ""

    def clear(self) -> None:
        """Drop content, declaration values, DOCTYPE and errors."""
        self.discard_content()
        self.errors.clear()

    # Queries

    def get_root_element(self) -> Optional[XMLElement]:
        """First top-level element."""
        return next(self.iter_elements(), None)

    @property
    def root(self) -> Optional[XMLElement]:
        return self.get_root_element()

    def element_count(self) -> int:
        return count_elements(self)

    def is_element_an_array(self, parent: str, child: str) -> bool:
        """Whether the DOCTYPE lets ``child`` repeat inside ``parent``."""
        return self.doctype.is_element_an_array(parent, child)

    # Serialization

    def _write(self, stream: TextIO, depth: int, pretty: bool) -> None:
        for child in self.children:
            child._write(stream, depth, pretty)

    def to_string(self, indent: int = 0, declaration: bool = False) -> str:
        """Serialize the top-level nodes, optionally behind an ``<?xml?>`` line."""
        text = super().to_string(indent)
        if not declaration:
            return text
        version = self.version or DEFAULT_VERSION
        encoding = self.encoding or DEFAULT_ENCODING
        return f'<?xml version="{version}" encoding="{encoding}"?>\n{text}'

    def to_dict(self) -> dict:
        result = {
            "version": self.version,
            "encoding": self.encoding,
            "doctype": self.doctype.to_dict(),
            "children": [child.to_dict() for child in self.children],
        }
        if self.errors:
            result["errors"] = list(self.errors)
        return result
