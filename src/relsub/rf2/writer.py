"""
RF2 relationship file writer.

Emits the substitution feed: each stated relationship that needed replacing
is written inactive, immediately followed by its replacement written active
and re-stamped as a stated relationship.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

from relsub.core.config import RF2_COLUMNS, Settings
from relsub.core.exceptions import OutputFileError
from relsub.core.logging import logger
from relsub.graph.registry import GraphRegistry
from relsub.models.relationship import Relationship

HEADER_NAMES = {
    "id": "id",
    "effective_time": "effectiveTime",
    "active": "active",
    "module_id": "moduleId",
    "source_id": "sourceId",
    "destination_id": "destinationId",
    "group": "relationshipGroup",
    "type_id": "typeId",
    "characteristic_type_id": "characteristicTypeId",
    "modifier_id": "modifierId",
}


class RF2RelationshipWriter:
    """Writer for the substitution delta."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.delimiter: str = self.settings.get("rf2.delimiter", "\t")
        self.line_terminator: str = self.settings.get("rf2.line_terminator", "\r\n")
        self.encoding: str = self.settings.get("rf2.encoding", "utf-8")
        self.active_flag: str = self.settings.get("rf2.active_flag", "1")
        self.inactive_flag: str = self.settings.get("rf2.inactive_flag", "0")
        self.stated_characteristic_id: int = self.settings.require("rf2.stated_characteristic_id")
        self.columns: Dict[str, int] = self.settings.require("rf2.columns")
        self._width = max(self.columns[name] for name in RF2_COLUMNS) + 1

    def _line(self, values: Dict[str, str]) -> str:
        fields = [""] * self._width
        for name in RF2_COLUMNS:
            fields[self.columns[name]] = values[name]
        return self.delimiter.join(fields) + self.line_terminator

    def header(self) -> str:
        return self._line(HEADER_NAMES)

    def format_row(
        self, relationship: Relationship, effective_time: str, active: bool, characteristic_id: int
    ) -> str:
        """One RF2 row for `relationship` with the given status, time and characteristic."""
        return self._line(
            {
                "id": str(relationship.relationship_id),
                "effective_time": effective_time,
                "active": self.active_flag if active else self.inactive_flag,
                "module_id": str(relationship.module_id),
                "source_id": str(relationship.source_id),
                "destination_id": str(relationship.destination_id),
                "group": str(relationship.group),
                "type_id": str(relationship.type_id),
                "characteristic_type_id": str(characteristic_id),
                "modifier_id": str(relationship.modifier_id),
            }
        )

    def rows(self, stated: GraphRegistry, effective_time: str) -> List[str]:
        """Rows of the feed in stable (source, type, destination, group) order."""
        rows: List[str] = []
        for relationship in stated.relationships():
            if relationship.needs_replaced:
                rows.append(
                    self.format_row(
                        relationship, effective_time, False, self.stated_characteristic_id
                    )
                )
            if relationship.replacement is not None:
                rows.append(
                    self.format_row(
                        relationship.replacement,
                        effective_time,
                        True,
                        self.stated_characteristic_id,
                    )
                )
        return rows

    def write(self, path: Union[str, Path], stated: GraphRegistry, effective_time: str) -> int:
        """
        Write the feed to `path`.

        Returns:
            Number of data rows written

        Raises:
            OutputFileError: If the file cannot be written
        """
        rows = self.rows(stated, effective_time)
        output = Path(path)
        try:
            with open(output, "w", encoding=self.encoding, newline="") as handle:
                handle.write(self.header())
                handle.writelines(rows)
        except OSError as e:
            logger.error("Unable to write output file {path}", path=str(output))
            raise OutputFileError(
                f"Unable to write output file {output}: {e}",
                context={"path": str(output)},
                cause=e,
            ) from e

        logger.info("Wrote {count} rows to {path}", count=len(rows), path=str(output))
        return len(rows)
