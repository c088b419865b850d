import asyncio
import logging
import os
import stat
from pathlib import Path

from astdex.config import CollectOptions, ParseOptions
from astdex.core.ast import parse_source
from astdex.core.flatten import IdFactory, flatten, new_node_id
from astdex.core.languages import SUPPORTED_EXTENSIONS, normalize_language, resolve_language
from astdex.core.syntax import profile_for_language
from astdex.errors import IOFailureError, ParseFailureError, SourceError
from astdex.models import Corpus, ErrorPolicy, FlatNode, SkippedFile

logger = logging.getLogger(__name__)


def _io_failure(path: Path, exc: OSError) -> IOFailureError:
    return IOFailureError(str(path), exc.strerror or str(exc))


def _list_directory(directory: Path) -> list[tuple[str, bool]]:
    with os.scandir(directory) as entries:
        return [(entry.name, entry.is_dir(follow_symlinks=False)) for entry in entries]


async def is_directory(path: Path) -> bool:
    """True when ``path`` itself is a directory; symlinks count as files."""
    try:
        result = await asyncio.to_thread(path.lstat)
    except OSError as exc:
        raise _io_failure(path, exc) from exc
    return stat.S_ISDIR(result.st_mode)


def flatten_source(
    source: str | bytes,
    language: str,
    options: ParseOptions | None = None,
    id_factory: IdFactory | None = None,
) -> list[FlatNode]:
    """Parse and flatten in-memory source text."""
    options = options or ParseOptions()
    resolved = normalize_language(language)
    source_bytes = source.encode("utf-8") if isinstance(source, str) else source
    root = parse_source(
        source_bytes,
        resolved,
        error_recovery=options.error_recovery,
        filename=options.source_filename,
    )
    return flatten(root, profile_for_language(resolved), id_factory)


async def parse_path(path: Path, options: ParseOptions, id_factory: IdFactory) -> list[FlatNode]:
    """Read, parse and flatten a single file."""
    try:
        language = resolve_language(options.language, path)
    except ValueError as exc:
        raise ParseFailureError(str(path), str(exc)) from exc

    try:
        source_bytes = await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        raise _io_failure(path, exc) from exc

    root = parse_source(source_bytes, language, error_recovery=options.error_recovery, filename=str(path))
    return flatten(root, profile_for_language(language), id_factory)


def _wants(path: Path, options: CollectOptions) -> bool:
    suffix = path.suffix.lower()
    if options.extensions is not None:
        return suffix in options.extensions
    return options.parse.language is not None or suffix in SUPPORTED_EXTENSIONS


def _handle_failure(corpus: Corpus, error: SourceError) -> None:
    if corpus.policy is ErrorPolicy.FAIL_FAST:
        raise error
    logger.warning("Skipping %s (%s failure): %s", error.path, error.reason, error.detail)
    corpus.skipped.append(SkippedFile(path=error.path, reason=error.reason, error=error.detail))


async def _collect_directory(directory: Path, corpus: Corpus, options: CollectOptions, id_factory: IdFactory) -> None:
    try:
        entries = await asyncio.to_thread(_list_directory, directory)
    except OSError as exc:
        raise _io_failure(directory, exc) from exc

    for name, entry_is_dir in entries:
        subpath = directory / name
        try:
            if entry_is_dir:
                await _collect_directory(subpath, corpus, options, id_factory)
            elif _wants(subpath, options):
                corpus.extend(str(subpath), await parse_path(subpath, options.parse, id_factory))
            else:
                logger.debug("Ignoring %s: no parser for its extension", subpath)
        except SourceError as exc:
            _handle_failure(corpus, exc)


async def collect(
    path: str | Path,
    options: CollectOptions | None = None,
    *,
    id_factory: IdFactory | None = None,
) -> Corpus:
    """Flatten a file, or every parseable file below a directory, into one corpus.

    Directory entries are processed one at a time in listing order. A single id
    factory serves the whole run so node ids never collide across files.
    """
    options = options or CollectOptions()
    next_id = id_factory or new_node_id
    root = Path(path)
    corpus = Corpus(policy=options.on_error)

    try:
        if await is_directory(root):
            await _collect_directory(root, corpus, options, next_id)
        else:
            corpus.extend(str(root), await parse_path(root, options.parse, next_id))
    except SourceError as exc:
        _handle_failure(corpus, exc)

    logger.info(
        "Collected %d nodes from %d file(s) under %s (%d skipped, policy %s)",
        len(corpus.nodes),
        len(corpus.files),
        root,
        len(corpus.skipped),
        corpus.policy.value,
    )
    return corpus
