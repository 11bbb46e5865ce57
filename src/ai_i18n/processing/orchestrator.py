"""
Run orchestration of the extraction and translation pipeline.

The Orchestrator owns the state of one run and drives every work unit
through its state machine:

    Scanned -> ContentRead -> Extracted -> KeysResolved -> Transformed
            -> Validated -> Written            (or Failed from any state)

Units are processed by a bounded pool of asyncio workers pulling from a
shared queue. A failing unit is recorded in ProcessingStats.failed_units and
never affects its siblings. Once every unit is done, the aggregate store is
written as the primary locale file, optionally translated batch by batch
into the display language, and the response cache is flushed.

Example:
    >>> config = load_config()
    >>> orchestrator = Orchestrator.from_config(config)
    >>> stats = asyncio.run(orchestrator.process_all())
    >>> print(f"{stats.units_processed} files, {stats.texts_extracted} texts")

Author: ai-i18n contributors
License: MIT
"""

import asyncio
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..config.logging_config import get_logger
from ..config.schema import I18nConfig
from ..core.errors import I18nError, ValidationFailure
from ..core.models import (
    ExtractionRecord,
    ProcessingStats,
    ScannedFile,
    UnitResult,
    UnitState,
    WorkUnit,
)
from ..llm.cache import ResponseCache
from ..llm.client import BatchResult, CallClient
from ..llm.prompts import build_extraction_prompt
from ..llm.providers import create_provider
from ..utils.progress import ProgressTracker
from .file_system import LocalFileSystem
from .file_writer import FileWriter
from .key_generator import KeyGenerator
from .scanner import FileScanner
from .store import AggregateTextStore
from .transformer import TransformStage
from .validator import SyntaxValidator

# Module-level logger for consistent logging.
logger = get_logger(__name__)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class Orchestrator:
    """
    Drives a complete pipeline run.

    Collaborators not passed explicitly are built from the configuration.
    The cache, key generator and store are single instances shared by every
    unit of the run.

    Args:
        config: Validated run configuration.
        client: CallClient used for extraction and translation.
        cache: Response cache behind the client, flushed at run end.
        key_generator: Shared key generator.
        store: Shared aggregate key -> text store.
        scanner: Source file scanner.
        file_system: Asynchronous file-system access.
        writer: Output placement for units and locale files.
        validator: Syntax validator of rewritten content.
        tracker: Optional progress tracker notified of unit transitions.
    """

    def __init__(
        self,
        config: I18nConfig,
        client: CallClient,
        cache: Optional[ResponseCache] = None,
        key_generator: Optional[KeyGenerator] = None,
        store: Optional[AggregateTextStore] = None,
        scanner: Optional[FileScanner] = None,
        file_system: Optional[LocalFileSystem] = None,
        writer: Optional[FileWriter] = None,
        validator: Optional[SyntaxValidator] = None,
        tracker: Optional[ProgressTracker] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.cache = cache if cache is not None else client.cache
        self.key_generator = key_generator or KeyGenerator.from_config(config.key_generation)
        self.store = store if store is not None else AggregateTextStore()
        self.scanner = scanner or FileScanner(
            root_dir=config.root_dir,
            include=config.include,
            exclude=config.exclude,
            categories=config.categories,
        )
        self.file_system = file_system or LocalFileSystem()
        self.writer = writer or FileWriter(
            file_system=self.file_system,
            output_dir=Path(config.root_dir) / config.output.output_dir,
            locale_file_pattern=config.output.locale_file_pattern,
            pretty_json=config.output.pretty_json,
            temp_dir=config.temp_dir,
        )
        self.transformer = TransformStage(self.key_generator, validator)
        self.tracker = tracker
        self.stats = ProcessingStats()
        self.unit_results: List[UnitResult] = []

    @classmethod
    def from_config(
        cls,
        config: I18nConfig,
        tracker: Optional[ProgressTracker] = None,
    ) -> "Orchestrator":
        """
        Build an orchestrator and all of its collaborators from a config.

        Raises:
            ConfigurationError: If a provider cannot be created.
        """
        cache = ResponseCache.from_config(config.cache)
        client = CallClient(
            provider=create_provider(config.llm, "extraction"),
            translation_provider=create_provider(config.llm, "translation"),
            cache=cache,
            max_retries=config.llm.retry_count,
            retry_base_delay=config.llm.retry_base_delay,
            timeout=config.llm.timeout,
        )
        return cls(config, client, cache=cache, tracker=tracker)

    # =========================================================================
    # RUN
    # =========================================================================

    async def process_all(self, translate: bool = True) -> ProcessingStats:
        """
        Process every processable file, write locale files and flush the cache.

        Args:
            translate: Run the translation phase after extraction.

        Returns:
            ProcessingStats: Tallies of the run. Unit failures are listed in
            ``failed_units``; they never abort the run.
        """
        started = time.perf_counter()
        self.stats = ProcessingStats()
        self.unit_results = []

        if self.config.key_generation.load_existing:
            await self._load_existing_entries()

        scanned = await self.scanner.scan_async()
        categories = {category.lower() for category in self.config.categories}
        files = [item for item in scanned if item.category in categories]
        logger.info(f"Processing {len(files)} files with concurrency {self.config.concurrency}")

        if self.tracker is not None:
            self.tracker.add_units(item.relative_path for item in files)

        self.unit_results = await self._run_pool(files)
        self._tally(self.unit_results)

        if len(self.store):
            await self._write_locale(self.config.locale, self.store.snapshot())
            if translate:
                await self._translate_store()
        else:
            logger.info("No texts extracted; locale files left untouched")

        if self.cache is not None:
            await self.cache.persist()

        self.stats.duration_ms = _elapsed_ms(started)
        logger.info(
            f"Run finished: {self.stats.units_processed} written, "
            f"{len(self.stats.failed_units)} failed, "
            f"{self.stats.texts_extracted} texts extracted, "
            f"{self.stats.texts_translated} translated in {self.stats.duration_ms:.0f}ms"
        )
        return self.stats

    async def _run_pool(self, files: List[ScannedFile]) -> List[UnitResult]:
        """
        Process files with at most ``concurrency`` units in flight.

        Workers pull from a shared queue; each outcome is appended to the
        result list, and no failure cancels a sibling worker.
        """
        queue: asyncio.Queue = asyncio.Queue()
        for item in files:
            queue.put_nowait(item)

        results: List[UnitResult] = []

        async def worker() -> None:
            while True:
                try:
                    item = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                results.append(await self.process_unit(item))

        worker_count = min(self.config.concurrency, len(files))
        outcomes = await asyncio.gather(
            *(worker() for _ in range(worker_count)),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                logger.error(f"Worker stopped unexpectedly: {outcome!r}")
        return results

    def _tally(self, results: List[UnitResult]) -> None:
        for result in results:
            if result.succeeded:
                self.stats.units_processed += 1
                self.stats.texts_extracted += result.extracted_count
            else:
                self.stats.failed_units.append(result.path)
        self.stats.failed_units.sort()
        self.stats.warnings.extend(self.store.warnings)

    # =========================================================================
    # WORK UNIT STATE MACHINE
    # =========================================================================

    async def process_unit(self, scanned: ScannedFile) -> UnitResult:
        """
        Drive one file through the state machine.

        Never raises: every failure ends in a FAILED result that records the
        state the unit had reached.

        Args:
            scanned: File reported by the scanner.

        Returns:
            UnitResult: WRITTEN on success, FAILED otherwise.
        """
        started = time.perf_counter()
        name = scanned.relative_path
        state = UnitState.SCANNED
        if self.tracker is not None:
            self.tracker.start_unit(name)

        try:
            content = await self.file_system.read(scanned.path)
            unit = WorkUnit(
                path=scanned.path,
                relative_path=name,
                category=scanned.category,
                content=content,
            )
            state = self._advance(name, UnitState.CONTENT_READ)

            if unit.content.strip():
                prompt = build_extraction_prompt(
                    content=unit.content,
                    relative_path=name,
                    category=unit.category,
                    locale=self.config.locale,
                    function_name=self.config.function_name,
                )
                extraction = await self.client.extract(prompt)
                if not extraction.ok:
                    return self._failed(name, state, f"Extraction failed: {extraction.message}", started)
                record = extraction.value
            else:
                # Blank files have nothing to extract.
                record = ExtractionRecord(placeholder_text={}, transformed_content=unit.content)
            state = self._advance(name, UnitState.EXTRACTED)

            mapping = self.transformer.resolve_keys(record)
            state = self._advance(name, UnitState.KEYS_RESOLVED)

            output = self.transformer.apply(record, mapping)
            state = self._advance(name, UnitState.TRANSFORMED)

            report = self.transformer.validate(output.content, unit.category)
            if not report.valid:
                failure = ValidationFailure(name, report.errors, report.warnings)
                return self._failed(
                    name, state, failure.message, started,
                    diagnostics=report.errors + report.warnings,
                )
            state = self._advance(name, UnitState.VALIDATED)

            # Sources are only rewritten when something changed; a separate
            # output tree always receives every unit.
            if output.content != unit.content or self.writer.temp_dir is not None:
                await self.writer.write_unit(unit, output.content)
            state = self._advance(name, UnitState.WRITTEN)

            merge = self.store.merge(output.pairs, source=name)

        except (OSError, I18nError) as e:
            return self._failed(name, state, str(e), started)
        except Exception as e:
            logger.exception(f"Unexpected error processing {name}")
            return self._failed(name, state, f"Unexpected error: {e!r}", started)

        count = len(record.placeholder_text)
        if self.tracker is not None:
            self.tracker.complete_unit(name, count)
        logger.info(f"Processed {name}: {count} texts")
        return UnitResult(
            path=name,
            state=UnitState.WRITTEN,
            extracted_count=count,
            diagnostics=report.warnings + merge.conflicts,
            duration_ms=_elapsed_ms(started),
        )

    def _advance(self, name: str, state: UnitState) -> UnitState:
        logger.debug(f"{name}: {state.value}")
        if self.tracker is not None:
            self.tracker.set_stage(name, state.value)
        return state

    def _failed(
        self,
        name: str,
        reached: UnitState,
        error: str,
        started: float,
        diagnostics: Optional[List[str]] = None,
    ) -> UnitResult:
        logger.error(f"Failed {name} after state '{reached.value}': {error}")
        if self.tracker is not None:
            self.tracker.fail_unit(name, error)
        return UnitResult(
            path=name,
            state=UnitState.FAILED,
            error=error,
            diagnostics=list(diagnostics or []),
            duration_ms=_elapsed_ms(started),
        )

    # =========================================================================
    # LOCALE FILES AND TRANSLATION
    # =========================================================================

    async def _load_existing_entries(self) -> None:
        """Seed the key generator and store from an existing primary locale file."""
        existing = await self.writer.read_locale_file(self.config.locale)
        if not existing:
            return
        self.key_generator.load_existing_mapping(existing)
        self.store.merge(existing, source=str(self.writer.locale_file_path(self.config.locale)))

    async def _write_locale(self, locale: str, data: Dict[str, str]) -> bool:
        """Write a locale file; a failure is recorded as a run warning."""
        try:
            await self.writer.write_locale_file(locale, data)
        except I18nError as e:
            logger.error(str(e))
            self.stats.warnings.append(str(e))
            return False
        return True

    async def _translate_store(self) -> None:
        """
        Translate the store into the display language and write that file.

        Entries already present in an existing display-language file are
        kept and not sent again.
        """
        source_locale = self.config.locale
        target_locale = self.config.display_language
        if target_locale == source_locale:
            logger.info("Display language equals source locale; skipping translation")
            return

        texts = self.store.snapshot()
        existing = await self.writer.read_locale_file(target_locale)
        pending = {key: text for key, text in texts.items() if key not in existing}

        result = await self.client.batch_translate(
            pending, source_locale, target_locale, self.config.llm.translation_batch_size
        )
        self.stats.texts_translated += len(pending) - len(result.degraded_keys)
        self.stats.texts_degraded += len(result.degraded_keys)
        if result.failed_batches:
            self.stats.warnings.append(
                f"{result.failed_batches} translation batches failed; "
                f"{len(result.degraded_keys)} texts kept their source text"
            )

        translated = {
            key: result.values.get(key, existing.get(key, text))
            for key, text in texts.items()
        }
        await self._write_locale(target_locale, translated)

    async def translate_locale_file(
        self,
        source: Union[str, Path],
        target_locale: str,
        output: Optional[Union[str, Path]] = None,
        source_locale: Optional[str] = None,
    ) -> BatchResult:
        """
        Translate an existing locale file into another locale.

        Args:
            source: Path of the locale file to translate.
            target_locale: Locale to translate into.
            output: Output path; defaults to the locale file pattern.
            source_locale: Locale of the source file; defaults to the
                configured locale.

        Returns:
            BatchResult: Translated values and degraded keys.

        Raises:
            I18nError: If the source file does not exist.
            WriteError: If the output cannot be written.
        """
        if not await self.file_system.exists(source):
            raise I18nError(f"Locale file not found: {source}", {"path": str(source)})

        texts = await self.writer.read_locale_file(path=source)
        result = await self.client.batch_translate(
            texts,
            source_locale or self.config.locale,
            target_locale,
            self.config.llm.translation_batch_size,
        )
        await self.writer.write_locale_file(target_locale, result.values, path=output)
        if self.cache is not None:
            await self.cache.persist()
        return result

    # =========================================================================
    # MAINTENANCE
    # =========================================================================

    def cache_stats(self) -> Dict[str, Any]:
        """Return the response cache statistics (empty without a cache)."""
        return self.cache.stats() if self.cache is not None else {}

    async def cleanup_cache(self) -> int:
        """Drop expired cache entries and save the cache. Returns the count."""
        if self.cache is None:
            return 0
        removed = self.cache.cleanup()
        await self.cache.persist()
        return removed

    async def clear_cache(self) -> None:
        """Remove every cache entry and save the empty cache."""
        if self.cache is None:
            return
        self.cache.clear()
        await self.cache.persist()
        logger.info("Response cache cleared")

    def clear(self) -> None:
        """Reset the run state: store, keys, results and statistics."""
        self.store.clear()
        self.key_generator.clear()
        self.unit_results = []
        self.stats = ProcessingStats()
