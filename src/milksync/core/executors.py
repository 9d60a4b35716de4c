"""Capabilities the sync orchestrator depends on.

Each has one process-backed implementation in milksync.infra.postgres; tests
substitute in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Protocol

from milksync.infra.postgres import (
    ConnectionSpec,
    DumpRequest,
    DumpResult,
    ImportResult,
    ProbeResult,
)
from milksync.utils.console_like import ConsoleLike


class Probe(Protocol):
    def probe(self, spec: ConnectionSpec) -> ProbeResult: ...


class DumpExecutor(Protocol):
    def dump(self, request: DumpRequest) -> DumpResult: ...


class ImportExecutor(Protocol):
    def import_dump(
        self, target: ConnectionSpec, input_path: Path, flags: Sequence[str]
    ) -> ImportResult: ...


class Rotator(Protocol):
    def rotate(self, directory: Path, keep: int) -> int: ...


TunnelFactory = Callable[
    [ConnectionSpec, ConsoleLike], AbstractContextManager[ConnectionSpec]
]
