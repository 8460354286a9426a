"""Logger built on logfire with composable output sinks."""

from __future__ import annotations

import contextlib
import os
from abc import abstractmethod
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from pydantic import Field, PrivateAttr, model_validator

from mergejudge.core.base import BaseConfig

_current_logger: Logger | None = None


class _LoggerProxy:
    """Forwards attribute access to the logger set up by setup_logger().

    Until a logger exists every call is a silent no-op, so modules can
    log at import time or from library code used without a CLI.
    """

    def __getattr__(self, name):
        if _current_logger is None:
            def _noop(*args, **kwargs):  # noqa: ARG001
                pass
            return _noop
        return getattr(_current_logger, name)

    def __enter__(self):
        if _current_logger is None:
            return self
        return _current_logger.__enter__()

    def __exit__(self, *args):
        if _current_logger is None:
            return False
        return _current_logger.__exit__(*args)


# Imported everywhere as `from mergejudge.core.log import logger`
logger = _LoggerProxy()


class LevelFilteringExporter(SpanExporter):
    """Drops spans below a minimum level before forwarding them."""

    # Level names to OpenTelemetry severity numbers
    _level_thresholds = {
        'spew': logs_pb2.SEVERITY_NUMBER_TRACE,
        'trace': logs_pb2.SEVERITY_NUMBER_TRACE3,
        'debug': logs_pb2.SEVERITY_NUMBER_DEBUG,
        'info': logs_pb2.SEVERITY_NUMBER_INFO,
        'warn': logs_pb2.SEVERITY_NUMBER_WARN,
        'error': logs_pb2.SEVERITY_NUMBER_ERROR,
        'fatal': logs_pb2.SEVERITY_NUMBER_FATAL,
    }

    def __init__(self, exporter: SpanExporter, min_level: str | None):
        self._exporter = exporter
        self._min_severity = self._level_thresholds.get(
            (min_level or 'info').lower(), logs_pb2.SEVERITY_NUMBER_INFO
        )

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        """Forward the spans whose severity is at or above the minimum."""
        kept = [
            span for span in spans
            if (span.attributes or {}).get(
                'logfire.level_num', logs_pb2.SEVERITY_NUMBER_INFO
            ) >= self._min_severity
        ]
        if kept:
            return self._exporter.export(kept)
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._exporter.force_flush(timeout_millis)


# Attributes logfire adds on its own; anything else was passed by the
# caller and is appended to the formatted line.
_INTERNAL_KEYS = frozenset({
    'code.filepath', 'code.lineno', 'code.function',
    'logfire.msg', 'logfire.level_num', 'logfire.span_type',
    'logfire.msg_template', 'logfire.json_schema',
})
_INTERNAL_PREFIXES = ('otel.', 'telemetry.', 'service.', 'process.')


def level_name(level_num: int) -> str:
    """Map an OpenTelemetry severity number back to our level name."""
    for name in ('fatal', 'error', 'warn', 'info', 'debug', 'trace', 'spew'):
        if level_num >= LevelFilteringExporter._level_thresholds[name]:
            return name
    return "unknown"


class Sink(BaseConfig):
    """One log output destination.

    Sinks are BaseConfig models, so Logger.close() reaches them through
    the close cascade.
    """

    enabled: bool = Field(default=True, description="Enable this sink")
    level: str | None = Field(
        default=None,
        description=(
            "Log level for this sink; inherits Logger.level when unset. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )
    escape_special_characters: bool = Field(
        default=False,
        description="Escape newlines/tabs in output"
    )
    format_template: str | None = Field(
        default=None,
        description="Format template string (None writes span JSON)"
    )

    _processor: Any = PrivateAttr(default=None)

    @staticmethod
    def _escape_special_chars(text: str) -> str:
        return (text
            .replace('\\', '\\\\')
            .replace('\n', '\\n')
            .replace('\r', '\\r')
            .replace('\t', '\\t')
        )

    @staticmethod
    def _extract_span_data(span) -> dict:
        """Pull the template fields out of a span."""
        attrs = span.attributes or {}
        filepath = attrs.get("code.filepath", "")
        lineno = attrs.get("code.lineno", "")
        return {
            'timestamp': datetime.fromtimestamp(
                span.start_time / 1e9, tz=UTC
            ),
            'level': level_name(attrs.get(
                "logfire.level_num", logs_pb2.SEVERITY_NUMBER_INFO
            )),
            'message': attrs.get("logfire.msg", span.name),
            'filepath': filepath,
            'lineno': lineno,
            'location': f"{filepath}:{lineno}" if filepath else "",
            'function': attrs.get("code.function", ""),
        }

    def _format_span(self, span) -> str:
        if not self.format_template:
            return span.to_json() + os.linesep

        data = self._extract_span_data(span)
        if self.escape_special_characters:
            data['message'] = self._escape_special_chars(data['message'])

        try:
            formatted = self.format_template.format(**data)
        except KeyError as e:
            return f"ERROR: Invalid template field {e}\n"

        custom = {
            key: value
            for key, value in (span.attributes or {}).items()
            if key not in _INTERNAL_KEYS
            and not key.startswith(_INTERNAL_PREFIXES)
        }
        if custom:
            extras = ' '.join(
                f"{k}={v!r}" for k, v in sorted(custom.items())
            )
            formatted = f"{formatted} │ {extras}"

        return formatted + '\n'

    @abstractmethod
    def create_processor(self, log_root: Path, run_name: str):
        """Return a span processor for this sink, or None."""

    def close(self):
        if self._processor:
            with contextlib.suppress(Exception):
                self._processor.shutdown()


class ConsoleSink(Sink):
    """Console output, rendered by logfire itself."""

    verbose: bool = Field(
        default=False,
        description="Show full span details"
    )
    colors: str = Field(
        default="auto",
        description="Color mode: auto, always, never"
    )

    def create_processor(self, log_root: Path, run_name: str):
        return None


class FileSink(Sink):
    """Plain-text log file, one formatted line per span."""

    enabled: bool = Field(
        default=False,
        description="Enable file logging"
    )
    path: str = Field(
        default="{log_root}/{run_name}/mergejudge.log",
        description="Log file path template"
    )
    format_template: str | None = Field(
        default="{timestamp:%Y-%m-%d %H:%M:%S} {level:<5} {message}",
        description="Format template string (None writes span JSON)"
    )

    _file: Any = PrivateAttr(default=None)

    def create_processor(self, log_root: Path, run_name: str):
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
        )

        log_path = Path(
            self.path.format(log_root=log_root, run_name=run_name)
        )
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Line buffered; stays open until close()
        self._file = open(log_path, "a", buffering=1, encoding="utf-8")  # noqa: SIM115

        exporter = ConsoleSpanExporter(
            out=self._file,
            formatter=self._format_span
        )
        return BatchSpanProcessor(
            LevelFilteringExporter(exporter, self.level)
        )

    def close(self):
        # The processor flushes into the file, so it goes first
        super().close()
        if self._file and not self._file.closed:
            with contextlib.suppress(OSError):
                self._file.flush()
                self._file.close()


class LogfireSink(Sink):
    """logfire.dev cloud export."""

    enabled: bool = Field(
        default=False,
        description="Send telemetry to logfire.dev"
    )
    token: str | None = Field(
        default=None,
        description="API token (or use LOGFIRE_TOKEN env var)"
    )

    def create_processor(self, log_root: Path, run_name: str):
        return None


class Logger(BaseConfig):
    """Logger configuration plus the logging calls themselves.

    close() walks the sinks through the BaseCloseable cascade.
    """

    level: str = Field(
        default="info",
        description=(
            "Default log level for all sinks. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )
    console: ConsoleSink = Field(
        default_factory=ConsoleSink,
        description="Console output configuration"
    )
    file: FileSink = Field(
        default_factory=FileSink,
        description="File logging configuration"
    )
    logfire: LogfireSink = Field(
        default_factory=LogfireSink,
        description="logfire.dev cloud configuration"
    )

    @model_validator(mode='after')
    def _cascade_level_to_sinks(self) -> 'Logger':
        for sink in (self.console, self.file):
            if sink.level is None:
                sink.level = self.level
        return self

    def setup(self, log_root: Path, run_name: str):
        """Create sink processors and configure logfire."""
        import logfire
        from logfire import ConsoleOptions

        for sink in (self.console, self.file, self.logfire):
            if sink.enabled:
                sink._processor = sink.create_processor(log_root, run_name)

        processors = [
            self.file._processor
        ] if self.file.enabled and self.file._processor else None

        # logfire's console has no level below trace
        console_level = self.console.level or self.level
        if console_level == 'spew':
            console_level = 'trace'

        console_config = (
            ConsoleOptions(
                min_log_level=console_level,
                verbose=self.console.verbose,
                colors=self.console.colors,
                include_timestamps=True,
            )
            if self.console.enabled
            else False
        )

        logfire.configure(
            service_name=f"mergejudge-{run_name}",
            send_to_logfire=self.logfire.enabled,
            token=self.logfire.token if self.logfire.enabled else None,
            console=console_config,
            additional_span_processors=processors,
        )

    def info(self, msg: str, **kwargs):
        import logfire
        logfire.info(msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        import logfire
        logfire.debug(msg, **kwargs)

    def trace(self, msg: str, **kwargs):
        import logfire
        logfire.log(
            level=LevelFilteringExporter._level_thresholds['trace'],
            msg_template=msg,
            attributes=kwargs or None,
        )

    def spew(self, msg: str, **kwargs):
        """Below trace; per-rule scoring chatter goes here."""
        import logfire
        logfire.log(
            level=LevelFilteringExporter._level_thresholds['spew'],
            msg_template=msg,
            attributes=kwargs or None,
        )

    def warn(self, msg: str, **kwargs):
        import logfire
        logfire.warn(msg, **kwargs)

    def warning(self, msg: str, **kwargs):
        self.warn(msg, **kwargs)

    def error(self, msg: str, **kwargs):
        import logfire
        logfire.error(msg, **kwargs)

    def span(self, msg: str, **kwargs):
        """Span context manager: `with logger.span("resolve"): ...`"""
        import logfire
        return logfire.span(msg, **kwargs)

    def log(self, level: str, msg: str, **kwargs):
        import logfire
        logfire.log(level, msg, attributes=kwargs or None)

    def __getattr__(self, name):
        import logfire
        return getattr(logfire, name)


def setup_logger(
    log_root: Path,
    run_name: str,
    level: str = "info",
    console: ConsoleSink | None = None,
    file: FileSink | None = None,
    logfire: LogfireSink | None = None,
) -> Logger:
    """Create the global logger and configure its sinks.

    Config calls this once its YAML has loaded; tests call it directly.
    """
    global _current_logger

    _current_logger = Logger(
        level=level,
        console=console or ConsoleSink(),
        file=file or FileSink(),
        logfire=logfire or LogfireSink(),
    )
    _current_logger.setup(log_root, run_name)
    return _current_logger
