"""Diagnostic and metric types shared by every parsing layer."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Lenient cases that were skipped
    ERROR = auto()      # Structural or grammar errors
    CRITICAL = auto()   # Unexpected failures inside the parser


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    @property
    def is_error(self) -> bool:
        """Check whether this entry reports a failure."""
        return self.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)

    def __str__(self) -> str:
        if self.position and "line" in self.position:
            return (
                f"{self.severity.name} [{self.component}] line {self.position['line']}, "
                f"column {self.position.get('column', 0)}: {self.message}"
            )
        return f"{self.severity.name} [{self.component}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entry to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.position:
            result["position"] = dict(self.position)
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Performance metrics for parsing operations."""

    processing_time_ms: float = 0.0
    bytes_processed: int = 0
    characters_processed: int = 0
    tokens_generated: int = 0
    elements_created: int = 0
    dtd_resources_loaded: int = 0

    def _per_second(self, count: int) -> float:
        if self.processing_time_ms <= 0:
            return 0.0
        return count * 1000.0 / self.processing_time_ms

    @property
    def characters_per_second(self) -> float:
        return self._per_second(self.characters_processed)

    @property
    def tokens_per_second(self) -> float:
        return self._per_second(self.tokens_generated)

    @property
    def bytes_per_second(self) -> float:
        return self._per_second(self.bytes_processed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processing_time_ms": self.processing_time_ms,
            "bytes_processed": self.bytes_processed,
            "characters_processed": self.characters_processed,
            "tokens_generated": self.tokens_generated,
            "elements_created": self.elements_created,
            "dtd_resources_loaded": self.dtd_resources_loaded,
        }
