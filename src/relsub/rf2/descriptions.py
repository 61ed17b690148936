"""
Description index.

Caches the fully specified name of each concept from an RF2 description
file so diagnostics can print `id|term|`. Never used for matching.
"""

from pathlib import Path
from typing import Dict, Optional, Union

from relsub.core.config import Settings
from relsub.core.exceptions import RF2FormatError
from relsub.core.logging import logger
from relsub.rf2.reader import open_input, undecodable_input


class DescriptionIndex:
    """Concept id to fully specified name."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.fsn_type_id = str(self.settings.get("descriptions.fsn_type_id", 900000000000003001))
        self.columns: Dict[str, int] = self.settings.get(
            "descriptions.columns", {"active": 2, "concept_id": 4, "type_id": 6, "term": 7}
        )
        self.delimiter: str = self.settings.get("rf2.delimiter", "\t")
        self.encoding: str = self.settings.get("rf2.encoding", "utf-8")
        self.active_flag: str = self.settings.get("rf2.active_flag", "1")
        self._terms: Dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, concept_id: object) -> bool:
        return concept_id in self._terms

    def add(self, concept_id: int, term: str) -> None:
        self._terms[concept_id] = term

    def load(self, path: Union[str, Path]) -> "DescriptionIndex":
        """Read active FSN rows from an RF2 description file; the header row is skipped."""
        width = max(self.columns.values()) + 1
        line_number = 0
        with open_input(path, self.encoding) as handle:
            try:
                for line_number, line in enumerate(handle, start=1):
                    if line_number == 1:
                        continue
                    line = line.rstrip("\r\n")
                    if not line:
                        continue
                    fields = line.split(self.delimiter)
                    if len(fields) < width:
                        raise RF2FormatError(
                            f"{path}:{line_number}: expected at least {width} fields, found {len(fields)}",
                            context={"path": str(path), "line": line_number},
                        )
                    if fields[self.columns["active"]] != self.active_flag:
                        continue
                    if fields[self.columns["type_id"]] != self.fsn_type_id:
                        continue
                    try:
                        concept_id = int(fields[self.columns["concept_id"]])
                    except ValueError as e:
                        raise RF2FormatError(
                            f"{path}:{line_number}: concept id is not numeric", cause=e
                        ) from e
                    self._terms[concept_id] = fields[self.columns["term"]]
            except UnicodeDecodeError as e:
                raise undecodable_input(path, line_number, self.encoding, e) from e

        logger.info("Loaded {count} fully specified names", count=len(self._terms))
        return self

    def term(self, concept_id: int) -> Optional[str]:
        return self._terms.get(concept_id)

    def format_concept(self, concept_id: int) -> str:
        """`id|term|` when the term is known, otherwise the bare id."""
        term = self._terms.get(concept_id)
        if term is None:
            return str(concept_id)
        return f"{concept_id}|{term}|"

    __call__ = format_concept
