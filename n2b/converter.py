"""
Converter — runs the tree walker over every file of a project.

For each file, in project order:
  1. walk the tree and queue the rewrites
  2. commit the edits (re-parse)
  3. hand the file to the ``on_converted`` callback (default: save to disk)

Callbacks may return awaitables.  Each one is awaited before the
next file is touched, so side effects such as writes happen in file order.
An unsupported operator aborts the run; the file being converted is left
unchanged.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

from n2b.context_resolver import CalleeResolver
from n2b.errors import ConversionError
from n2b.options import ConversionOptions, ProjectOptions
from n2b.project import SOURCE_CODE_FILE_NAME, Project
from n2b.source_file import Diagnostic, SourceFile
from n2b.walker import TreeWalker

logger = logging.getLogger(__name__)

OnConverted = Callable[[SourceFile], Union[None, Awaitable[None]]]


def save_file(source_file: SourceFile):
    """Default callback: write files that came from disk back in place."""
    if not source_file.in_memory:
        source_file.save()


def keep_in_memory(source_file: SourceFile):
    """Callback that leaves every file untouched on disk."""


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


async def _wait_for(awaitable: Awaitable[None]):
    await awaitable


class Converter:
    """Converts the numeric expressions of a whole project to big.js."""

    def __init__(
        self,
        options: Union[ProjectOptions, ConversionOptions],
        project: Optional[Project] = None,
        callee_resolver: Optional[CalleeResolver] = None,
    ):
        if project is None:
            project = Project.from_options(options) if isinstance(options, ProjectOptions) else Project()
        if isinstance(options, ProjectOptions):
            options = options.conversion_options()
        self.options = options
        self.project = project
        self.walker = TreeWalker(options, callee_resolver)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return [d for f in self.project.get_source_files() for d in f.diagnostics]

    def _convert_file(self, source_file: SourceFile):
        try:
            self.walker.walk(source_file)
        except ConversionError:
            source_file.discard_edits()
            raise
        source_file.commit()

    def convert(self, on_converted: Optional[OnConverted] = None) -> List[SourceFile]:
        """Convert every file, blocking on callbacks that return awaitables.

        Inside a running event loop an awaitable result can't be waited on;
        ``convert_async`` has to be used there.
        """
        callback = on_converted or save_file
        files = self.project.get_source_files()
        for source_file in files:
            self._convert_file(source_file)
            result = callback(source_file)
            if inspect.isawaitable(result):
                if _loop_running():
                    if inspect.iscoroutine(result):
                        result.close()
                    raise ConversionError(
                        "on_converted returned an awaitable inside a running event loop; "
                        "use convert_async() instead"
                    )
                asyncio.run(_wait_for(result))
        logger.info("Converted %d file(s)", len(files))
        return files

    async def convert_async(self, on_converted: Optional[OnConverted] = None) -> List[SourceFile]:
        callback = on_converted or save_file
        files = self.project.get_source_files()
        for source_file in files:
            self._convert_file(source_file)
            result = callback(source_file)
            if inspect.isawaitable(result):
                await result
        logger.info("Converted %d file(s)", len(files))
        return files


def convert(options: ProjectOptions, on_converted: Optional[OnConverted] = None):
    """Convert the files described by ``options``.

    Returns the converted files, or a coroutine producing them when
    ``on_converted`` is a coroutine function.
    """
    converter = Converter(options)
    if on_converted is not None and inspect.iscoroutinefunction(on_converted):
        return converter.convert_async(on_converted)
    return converter.convert(on_converted)


def convert_code(
    code: str,
    options: Optional[ConversionOptions] = None,
    file_name: str = SOURCE_CODE_FILE_NAME,
) -> str:
    """Convert a snippet of source code and return the new text."""
    project = Project()
    source_file = project.add_source_code(code, file_name)
    Converter(options or ConversionOptions(), project).convert(keep_in_memory)
    return source_file.get_full_text()
