"""
Conversion configuration.

``ConversionOptions`` is what the rewriting core sees; ``ProjectOptions``
adds the file sources a run is built from.  Both are frozen for the length of
a run.  Field names are snake_case in Python; config files may use the
camelCase names of the original tool (``prependNew``, ``sourceTsConfig``...).
"""

import logging
from typing import FrozenSet, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class ConversionOptions(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    # Emit `new Big(...)` instead of `Big(...)`
    prepend_new: bool = False
    # Append `.toNumber()` to every outermost chain
    append_to_number: bool = False
    # Variables whose sole numeric initializer gets wrapped (`let total = 0`)
    variables: FrozenSet[str] = frozenset()


class ProjectOptions(ConversionOptions):
    # Source file paths or glob patterns
    source: Optional[Union[str, List[str]]] = None
    # Raw source code, stored in a dummy file named `n2b-source.ts`
    source_code: Optional[str] = None
    # tsconfig.json to import source files from
    source_tsconfig: Optional[str] = Field(default=None, alias="sourceTsConfig")

    @classmethod
    def from_file(cls, path: str, **overrides) -> "ProjectOptions":
        """Load options from a JSON config file; keyword overrides win."""
        with open(path, "r", encoding="utf-8") as f:
            loaded = cls.model_validate_json(f.read())
        logger.info("Loaded options from %s", path)
        if overrides:
            return loaded.model_copy(update=overrides)
        return loaded

    def conversion_options(self) -> ConversionOptions:
        return ConversionOptions(
            prepend_new=self.prepend_new,
            append_to_number=self.append_to_number,
            variables=self.variables,
        )
