"""Pipeline orchestration: sniff, parse, resolve, map and embed per binary."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO

from .config import DEFAULT_SECTION_NAME, ConfigError, SourceLynkConfig
from .git.resolver import RepositoryResolver
from .logging import get_logger
from .magic import (
    ContainerFormat,
    FormatKind,
    SniffError,
    is_possible_symbol_file,
    sniff_file,
)
from .mapper import RemoteUrlMapper
from .providers import discover_providers
from .models import SourceLinkDocument
from .patcher import ObjcopyPatcher, PatchError
from .symbols import (
    DebugSymbolParser,
    DwarfSourceParser,
    MissingDebugSymbols,
    SymbolParseError,
    UnrecognizedFileFormat,
)
from .walker import iter_files


class FileStatus(Enum):
    SKIPPED = "skipped"
    PREVIEWED = "previewed"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass
class FileOutcome:
    """Result of running one candidate file through the pipeline."""

    path: Path
    status: FileStatus
    reason: str = ""
    document: Optional[SourceLinkDocument] = None


@dataclass
class RunSummary:
    outcomes: List[FileOutcome] = field(default_factory=list)

    def count(self, status: FileStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)


class Pipeline:
    """Processes candidate binaries one at a time; per-file errors never abort a run."""

    def __init__(
        self,
        *,
        parser: DebugSymbolParser | None = None,
        resolver: RepositoryResolver | None = None,
        mapper: RemoteUrlMapper | None = None,
        patcher: ObjcopyPatcher | None = None,
        sniffer: Callable[[Path], ContainerFormat] = sniff_file,
        section_name: str = DEFAULT_SECTION_NAME,
        exclude_paths: Sequence[str] = (),
        logger: logging.Logger | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.logger = logger or get_logger("pipeline")
        self.parser = parser or DwarfSourceParser()
        self.resolver = resolver or RepositoryResolver(logger=self.logger.getChild("resolver"))
        self.mapper = mapper or RemoteUrlMapper(logger=self.logger.getChild("mapper"))
        self.patcher = patcher or ObjcopyPatcher()
        self.sniffer = sniffer
        self.section_name = section_name
        self.exclude_paths = list(exclude_paths)
        self._out = out

    @classmethod
    def from_config(cls, config: SourceLynkConfig, **overrides) -> "Pipeline":
        """Build a pipeline from loaded settings.

        Raises:
            ConfigError: if the configured provider names are unknown.
        """
        logger = overrides.pop("logger", None) or get_logger("pipeline")
        if "mapper" not in overrides:
            try:
                providers = discover_providers(config.providers)
            except ValueError as exc:
                raise ConfigError(str(exc)) from exc
            overrides["mapper"] = RemoteUrlMapper(
                providers, remote_name=config.remote, logger=logger.getChild("mapper")
            )
        overrides.setdefault("patcher", ObjcopyPatcher(objcopy=config.objcopy))
        overrides.setdefault("section_name", config.section_name)
        overrides.setdefault("exclude_paths", config.exclude_paths)
        return cls(logger=logger, **overrides)

    def run(self, root: Path | str, *, dry_run: bool = False) -> RunSummary:
        """Process every file under ``root``.

        Raises:
            FileNotFoundError, NotADirectoryError: if ``root`` cannot be searched.
        """
        summary = RunSummary()
        for path in iter_files(root, self.exclude_paths, logger=self.logger.getChild("walker")):
            try:
                outcome = self.process_file(path, dry_run=dry_run)
            except Exception as exc:  # pragma: no cover - defensive guard
                self.logger.warning("Unexpected error processing %s: %s", path, exc)
                self.logger.debug("Traceback for %s", path, exc_info=True)
                outcome = FileOutcome(path, FileStatus.FAILED, f"unexpected error: {exc}")
            summary.outcomes.append(outcome)
        self.logger.info(
            "Processed %d files: %d updated, %d previewed, %d failed",
            len(summary.outcomes),
            summary.count(FileStatus.UPDATED),
            summary.count(FileStatus.PREVIEWED),
            summary.count(FileStatus.FAILED),
        )
        return summary

    def process_file(self, path: Path, *, dry_run: bool = False) -> FileOutcome:
        try:
            container = self.sniffer(path)
        except SniffError as exc:
            self.logger.warning("Failed to open %s due to %s", path, exc)
            return FileOutcome(path, FileStatus.SKIPPED, "unreadable")
        if not is_possible_symbol_file(container):
            self.logger.debug("File type %s not usable for %s", container, path)
            return FileOutcome(path, FileStatus.SKIPPED, "not a symbol file")

        self.logger.debug("Checking %s for embedded sources", path)
        try:
            with open(path, "rb") as handle:
                source_files = self.parser.parse(handle)
        except MissingDebugSymbols:
            self.logger.debug("%s is missing debug symbols", path)
            return FileOutcome(path, FileStatus.SKIPPED, "no debug symbols")
        except UnrecognizedFileFormat:
            self.logger.debug("%s is an unrecognized format", path)
            return FileOutcome(path, FileStatus.SKIPPED, "unrecognized format")
        except (SymbolParseError, OSError) as exc:
            self.logger.warning('Unexpected parsing error of known file "%s": %s', path, exc)
            return FileOutcome(path, FileStatus.SKIPPED, "parse error")

        if not source_files:
            self.logger.warning("%s was parsed but contained no source files", path)
            return FileOutcome(path, FileStatus.SKIPPED, "no source files")
        self.logger.debug("%s contains %d source files", path, len(source_files))

        repos = self.resolver.resolve(source_files)
        self.logger.debug("Found %d repos for %s", len(repos), path)
        mapping = self.mapper.map(repos)
        if not mapping:
            return FileOutcome(path, FileStatus.SKIPPED, "no mappable repositories")

        document = SourceLinkDocument(documents=mapping)
        if dry_run:
            self._print(f"Would update {path}")
            self._print(json.dumps(document.to_dict(), indent=2))
            self._print("")
            return FileOutcome(path, FileStatus.PREVIEWED, document=document)

        if container.kind is FormatKind.PROGRAM_DATABASE:
            self.logger.warning("Embedding into program databases is not supported: %s", path)
            return FileOutcome(path, FileStatus.SKIPPED, "unsupported container", document)

        display = path.resolve()
        try:
            self.patcher.embed(path, document, section_name=self.section_name)
        except PatchError as exc:
            self._print(f"Failed to update {display}")
            self.logger.debug("%s: %s", exc, exc.stderr)
            return FileOutcome(path, FileStatus.FAILED, str(exc), document)
        except OSError as exc:
            self._print(f"Failed to update {display}")
            self.logger.warning("Unable to replace %s: %s", path, exc)
            return FileOutcome(path, FileStatus.FAILED, str(exc), document)

        self._print(f"Updated {display}")
        return FileOutcome(path, FileStatus.UPDATED, document=document)

    def _print(self, message: str) -> None:
        print(message, file=self._out)


__all__ = ["FileOutcome", "FileStatus", "Pipeline", "RunSummary"]
