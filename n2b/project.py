"""
Project — the set of source files a conversion run works on.

Files can come from:
  • a raw source-code string (stored as ``n2b-source.ts``)
  • file paths, directories and glob patterns (``src/**/*.ts``,
    ``!src/**/*.spec.ts`` excludes)
  • a ``tsconfig.json`` (``files``, ``include``, ``exclude``)

Guards:
  • Missing and binary files are skipped with a warning
  • ``node_modules`` and VCS/build directories are never scanned
  • A file is only added once, in first-seen order
"""

import os
import re
import glob
import json
import logging
from typing import Dict, Iterable, List, Optional, Union

from n2b.options import ProjectOptions
from n2b.source_file import SourceFile

logger = logging.getLogger(__name__)

SOURCE_CODE_FILE_NAME = "n2b-source.ts"

# File extensions picked up from directories and glob patterns
_SOURCE_EXTENSIONS = {".ts", ".tsx", ".js", ".jsx", ".mts", ".cts", ".mjs", ".cjs"}

_SKIP_DIRS = {".git", "node_modules", "dist", "build", "coverage", ".vscode", ".idea"}

# tsconfig.json allows comments and trailing commas
_JSONC_COMMENT = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.S)
_JSONC_TRAILING_COMMA = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')


def _has_magic(pattern: str) -> bool:
    return any(c in pattern for c in "*?[")


def _is_source(path: str) -> bool:
    if path.endswith(".d.ts"):
        return False
    return os.path.splitext(path)[1].lower() in _SOURCE_EXTENSIONS


def _in_skipped_dir(path: str) -> bool:
    parts = os.path.normpath(path).split(os.sep)
    return any(part in _SKIP_DIRS for part in parts[:-1])


def _discover_dir(directory: str) -> List[str]:
    """Find all source files below ``directory``."""
    files = []
    for root, dirs, filenames in os.walk(directory):
        dirs[:] = [d for d in dirs if d not in _SKIP_DIRS]
        for fname in filenames:
            if _is_source(fname):
                files.append(os.path.abspath(os.path.join(root, fname)))
    return sorted(files)


def expand_pattern(pattern: str) -> List[str]:
    """Expand a path, directory or glob pattern into absolute file paths."""
    if _has_magic(pattern):
        files = []
        for match in sorted(glob.glob(pattern, recursive=True)):
            if _in_skipped_dir(match):
                continue
            if os.path.isdir(match):
                files.extend(_discover_dir(match))
            elif _is_source(match):
                files.append(os.path.abspath(match))
        return files
    if os.path.isdir(pattern):
        return _discover_dir(pattern)
    # Explicit file: taken as-is, whatever its extension
    return [os.path.abspath(pattern)]


def load_tsconfig(path: str) -> Optional[dict]:
    """Read a tsconfig.json, tolerating comments and trailing commas."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError:
        logger.error("tsconfig not found: %s", path)
        return None
    except UnicodeDecodeError:
        logger.error("Cannot read %s — file may be binary", path)
        return None

    text = _JSONC_COMMENT.sub(lambda m: m.group(1) or "", text)
    text = _JSONC_TRAILING_COMMA.sub(lambda m: m.group(1) or m.group(2), text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.error("Unrecognised tsconfig format in %s", path)
        return None
    return data


class Project:
    """An ordered, de-duplicated collection of parsed source files."""

    def __init__(self):
        self._files: Dict[str, SourceFile] = {}

    @classmethod
    def from_options(cls, options: ProjectOptions) -> "Project":
        project = cls()
        if options.source_code:
            project.add_source_code(options.source_code)
        if options.source:
            project.add_files_at_paths(options.source)
        if options.source_tsconfig:
            project.add_files_from_tsconfig(options.source_tsconfig)
        logger.info("Project: %d source file(s)", len(project))
        return project

    def __len__(self):
        return len(self._files)

    def get_source_files(self) -> List[SourceFile]:
        return list(self._files.values())

    def get_source_file(self, path: str) -> Optional[SourceFile]:
        return self._files.get(path) or self._files.get(os.path.abspath(path))

    # ────────────────────────────────────────────────────────────────
    #  Adding files
    # ────────────────────────────────────────────────────────────────

    def add_source_code(self, code: str, file_name: str = SOURCE_CODE_FILE_NAME) -> SourceFile:
        source_file = SourceFile(file_name, code)
        source_file.in_memory = True
        self._files[file_name] = source_file
        return source_file

    def add_files_at_paths(self, patterns: Union[str, Iterable[str]]) -> List[SourceFile]:
        """Add files matching paths/globs; patterns starting with ``!`` exclude."""
        if isinstance(patterns, str):
            patterns = [patterns]
        patterns = list(patterns)
        includes = [p for p in patterns if not p.startswith("!")]
        excludes = [p[1:] for p in patterns if p.startswith("!")]

        excluded = set()
        for pattern in excludes:
            excluded.update(expand_pattern(pattern))

        candidates = []
        for pattern in includes:
            matches = expand_pattern(pattern)
            if not matches:
                logger.warning("No source files match %s", pattern)
            candidates.extend(matches)

        return self._add_paths(p for p in candidates if p not in excluded)

    def add_files_from_tsconfig(self, tsconfig_path: str) -> List[SourceFile]:
        """Add the files a tsconfig.json compiles.

        ``files`` entries are taken literally; ``include`` defaults to
        everything below the config's directory unless ``files`` is given.
        ``extends`` is not followed.
        """
        config = load_tsconfig(tsconfig_path)
        if config is None:
            return []
        base = os.path.dirname(os.path.abspath(tsconfig_path))

        def _under_base(entries):
            return [os.path.join(base, e) for e in entries if isinstance(e, str)]

        files = _under_base(config.get("files", []))
        default_include = [] if "files" in config else ["**/*"]
        include = _under_base(config.get("include", default_include))
        exclude = _under_base(config.get("exclude", []))

        excluded = set()
        for pattern in exclude:
            excluded.update(expand_pattern(pattern))

        candidates = [os.path.abspath(f) for f in files]
        for pattern in include:
            candidates.extend(expand_pattern(pattern))

        added = self._add_paths(p for p in candidates if p not in excluded)
        logger.info("tsconfig %s: %d file(s) added", tsconfig_path, len(added))
        return added

    def _add_paths(self, paths: Iterable[str]) -> List[SourceFile]:
        added = []
        for path in paths:
            if path in self._files:
                continue
            source_file = SourceFile.from_path(path)
            if source_file is None:
                continue
            self._files[path] = source_file
            added.append(source_file)
        return added
