"""Stage-by-stage profiling of the parsing pipeline.

Runs BOM detection, tokenization and tree building separately and records
wall time and resident memory (via psutil) for each stage.

Examples:
    >>> profiler = ParseProfiler()
    >>> report = profiler.profile(b'<font><glyph/></font>')
    >>> [stage.name for stage in report.stages]
    ['bom_detection', 'tokenization', 'tree_building']
"""

import json
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import psutil

from lightweight_xml_parser.character import ByteReader
from lightweight_xml_parser.shared import ParserConfig, get_logger
from lightweight_xml_parser.tokenization import XMLTokenizer
from lightweight_xml_parser.tree import XMLDocument, XMLTreeBuilder

BYTES_PER_MB = 1024 * 1024


@dataclass
class StagePerformance:
    """Timing and memory figures for one pipeline stage."""

    name: str
    start_time: float
    end_time: float = 0.0
    memory_start: int = 0  # bytes
    memory_end: int = 0  # bytes
    item_count: int = 0

    @property
    def duration_ms(self) -> float:
        """Processing duration in milliseconds."""
        return (self.end_time - self.start_time) * 1000

    @property
    def memory_delta(self) -> int:
        """Resident memory change in bytes."""
        return self.memory_end - self.memory_start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "duration_ms": self.duration_ms,
            "memory_delta": self.memory_delta,
            "item_count": self.item_count,
        }


@dataclass
class ProfilingReport:
    """Profile of one parse."""

    session_id: str
    input_size: int
    stages: List[StagePerformance] = field(default_factory=list)
    success: bool = True
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_duration_ms(self) -> float:
        return sum(stage.duration_ms for stage in self.stages)

    @property
    def throughput_mb_per_s(self) -> float:
        """Processing throughput in MB/s."""
        duration_s = self.total_duration_ms / 1000
        if duration_s <= 0:
            return 0.0
        return (self.input_size / BYTES_PER_MB) / duration_s

    def get_stage(self, name: str) -> Optional[StagePerformance]:
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "input_size": self.input_size,
            "success": self.success,
            "errors": list(self.errors),
            "total_duration_ms": self.total_duration_ms,
            "throughput_mb_per_s": self.throughput_mb_per_s,
            "stages": [stage.to_dict() for stage in self.stages],
            "metadata": dict(self.metadata),
        }


class _StageProfiler:
    """Context manager that appends one stage to a report."""

    def __init__(self, profiler: "ParseProfiler", report: ProfilingReport, name: str) -> None:
        self.profiler = profiler
        self.report = report
        self.stage = StagePerformance(name=name, start_time=0.0)

    def __enter__(self) -> StagePerformance:
        self.stage.memory_start = self.profiler.resident_memory()
        self.stage.start_time = time.perf_counter()
        return self.stage

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stage.end_time = time.perf_counter()
        self.stage.memory_end = self.profiler.resident_memory()
        self.report.stages.append(self.stage)


class ParseProfiler:
    """Profiles the pipeline one stage at a time.

    Args:
        config: Parser configuration used for tree building
        enable_memory_tracking: Sample resident memory with psutil around each stage
        correlation_id: Optional correlation ID for request tracking
    """

    def __init__(self, config: Optional[ParserConfig] = None,
                 enable_memory_tracking: bool = True,
                 correlation_id: Optional[str] = None) -> None:
        self.config = config or ParserConfig.standalone()
        self.enable_memory_tracking = enable_memory_tracking
        self.correlation_id = correlation_id
        self.reports: List[ProfilingReport] = []
        self.logger = get_logger(__name__, correlation_id, "parse_profiler")
        self._process = psutil.Process() if enable_memory_tracking else None

    def resident_memory(self) -> int:
        if self._process is None:
            return 0
        return self._process.memory_info().rss

    def profile(self, data: Union[bytes, bytearray, str],
                session_id: Optional[str] = None) -> ProfilingReport:
        """Parse ``data`` stage by stage and return the profile."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        report = ProfilingReport(
            session_id=session_id or uuid.uuid4().hex[:12],
            input_size=len(data),
        )

        with _StageProfiler(self, report, "bom_detection") as stage:
            reader = ByteReader(data)
            stage.item_count = reader.detection.bom_length
        report.metadata["encoding"] = reader.encoding.label

        with _StageProfiler(self, report, "tokenization") as stage:
            tokenization = XMLTokenizer(correlation_id=self.correlation_id).tokenize(reader)
            stage.item_count = tokenization.token_count

        if not tokenization.success:
            report.success = False
            report.errors.extend(tokenization.errors)
        else:
            with _StageProfiler(self, report, "tree_building") as stage:
                document = XMLDocument(config=self.config)
                builder = XMLTreeBuilder(
                    document, config=self.config, correlation_id=self.correlation_id
                )
                result = builder.build(tokenization)
                stage.item_count = result.performance.elements_created
            report.success = result.success
            report.errors.extend(result.errors)

        self.reports.append(report)
        self.logger.info(
            "Profiled parse",
            extra={
                "session_id": report.session_id,
                "input_size": report.input_size,
                "total_duration_ms": report.total_duration_ms,
                "success": report.success,
            }
        )
        return report

    def profile_file(self, path: Union[str, Path]) -> ProfilingReport:
        """Profile a file; read errors propagate as ``OSError``."""
        path_obj = Path(path)
        report = self.profile(path_obj.read_bytes(), session_id=path_obj.name)
        report.metadata["file_path"] = str(path_obj)
        return report

    def save_report(self, report: ProfilingReport, output_path: Union[str, Path]) -> None:
        """Write a report as JSON."""
        Path(output_path).write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")

    def clear(self) -> None:
        self.reports.clear()
