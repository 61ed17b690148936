"""
RF2 relationship file reader.

Loads the active rows of a tab-delimited RF2 relationship file into a
`GraphRegistry`. Only the field positions are checked; the file is not
otherwise validated.
"""

from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from relsub.core.config import RF2_COLUMNS, Settings
from relsub.core.exceptions import InputFileError, RF2FormatError
from relsub.core.logging import logger, perf_logger
from relsub.graph.registry import GraphRegistry
from relsub.models.relationship import Characteristic, Relationship

INTEGER_COLUMNS = ("id", "module_id", "source_id", "destination_id", "group", "type_id", "modifier_id")


def open_input(path: Union[str, Path], encoding: str = "utf-8"):
    """
    Open an input file for reading.

    Raises:
        InputFileError: If the path is missing, a directory, or unreadable
    """
    file_path = Path(path)
    if not file_path.exists() or file_path.is_dir():
        error = InputFileError(f"Unable to read file {file_path}", context={"path": str(file_path)})
        error.add_suggestion("Pass the path of an RF2 file, not a directory")
        raise error
    try:
        return open(file_path, encoding=encoding, newline="")
    except OSError as e:
        raise InputFileError(f"Unable to read file {file_path}: {e}", cause=e) from e


def undecodable_input(path: Union[str, Path], last_line: int, encoding: str, cause: Exception) -> InputFileError:
    """
    Error for input that is not valid text in the configured encoding.

    Decoding is buffered, so only the last line read before the failure
    is known.
    """
    error = InputFileError(
        f"{path}: not valid {encoding} text after line {last_line}",
        context={"path": str(path), "last_line": last_line, "encoding": encoding},
        cause=cause,
    )
    error.add_suggestion("Set rf2.encoding to the encoding of the release files")
    return error


class RF2RelationshipReader:
    """Reader for RF2 relationship files (full, snapshot or delta)."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.delimiter: str = self.settings.get("rf2.delimiter", "\t")
        self.encoding: str = self.settings.get("rf2.encoding", "utf-8")
        self.active_flag: str = self.settings.get("rf2.active_flag", "1")
        self.columns: Dict[str, int] = self.settings.require("rf2.columns")
        self.is_a_type_id: int = self.settings.require("hierarchy.is_a_type_id")
        self.characteristic_ids: Dict[Characteristic, str] = {
            Characteristic.STATED: str(self.settings.require("rf2.stated_characteristic_id")),
            Characteristic.INFERRED: str(self.settings.require("rf2.inferred_characteristic_id")),
        }
        self.characteristic_mismatches = 0
        self._min_fields = max(self.columns[name] for name in RF2_COLUMNS) + 1

    def iter_relationships(
        self, path: Union[str, Path], characteristic: Characteristic
    ) -> Iterator[Relationship]:
        """
        Yield the active relationships of a file; the header row is skipped.

        The view is taken from `characteristic`. Rows stamped with another
        characteristic type id are still yielded and counted in
        `characteristic_mismatches`.
        """
        expected_id = self.characteristic_ids[characteristic]
        self.characteristic_mismatches = 0
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
                    if len(fields) < self._min_fields:
                        raise RF2FormatError(
                            f"{path}:{line_number}: expected at least {self._min_fields} fields, "
                            f"found {len(fields)}",
                            context={"path": str(path), "line": line_number},
                        )
                    if fields[self.columns["active"]] != self.active_flag:
                        continue
                    if fields[self.columns["characteristic_type_id"]] != expected_id:
                        self.characteristic_mismatches += 1

                    yield self._parse(fields, characteristic, path, line_number)
            except UnicodeDecodeError as e:
                raise undecodable_input(path, line_number, self.encoding, e) from e

    def _parse(
        self, fields: List[str], characteristic: Characteristic, path: Union[str, Path], line_number: int
    ) -> Relationship:
        values: Dict[str, int] = {}
        for name in INTEGER_COLUMNS:
            raw = fields[self.columns[name]]
            try:
                values[name] = int(raw)
            except ValueError as e:
                raise RF2FormatError(
                    f"{path}:{line_number}: field '{name}' is not numeric: {raw!r}",
                    context={"path": str(path), "line": line_number, "field": name},
                    cause=e,
                ) from e

        try:
            return Relationship(
                relationship_id=values["id"],
                effective_time=fields[self.columns["effective_time"]],
                module_id=values["module_id"],
                source_id=values["source_id"],
                destination_id=values["destination_id"],
                group=values["group"],
                type_id=values["type_id"],
                characteristic=characteristic,
                modifier_id=values["modifier_id"],
            )
        except PydanticValidationError as e:
            problem = e.errors()[0]
            field = ".".join(str(part) for part in problem["loc"])
            raise RF2FormatError(
                f"{path}:{line_number}: invalid '{field}': {problem['msg']}",
                context={"path": str(path), "line": line_number, "field": field},
                cause=e,
            ) from e

    def load(self, path: Union[str, Path], characteristic: Characteristic) -> GraphRegistry:
        """Build the registry of one view from a file."""
        logger.debug("Loading {view} file: {path}", view=characteristic.value, path=str(path))
        registry = GraphRegistry(characteristic, is_a_type_id=self.is_a_type_id)
        with perf_logger.measure(f"load_{characteristic.value}", path=str(path)):
            for relationship in self.iter_relationships(path, characteristic):
                registry.add(relationship)
        if self.characteristic_mismatches:
            logger.warning(
                "{count} rows in {path} are not stamped as {view} relationships",
                count=self.characteristic_mismatches,
                path=str(path),
                view=characteristic.value,
            )
        logger.info(
            "Loaded {count} active {view} relationships",
            count=len(registry),
            view=characteristic.value,
        )
        return registry
