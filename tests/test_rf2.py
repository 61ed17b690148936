import pytest

from relsub.core.exceptions import InputFileError, OutputFileError, RF2FormatError
from relsub.matching.engine import MatchingEngine
from relsub.models.relationship import Characteristic, RelationshipKey
from relsub.rf2.descriptions import DescriptionIndex
from relsub.rf2.reader import RF2RelationshipReader
from relsub.rf2.writer import RF2RelationshipWriter

from conftest import (
    FINDING_SITE,
    GENERAL,
    HEART,
    IS_A,
    LUNG,
    MODIFIER,
    MODULE,
    RF2_HEADER,
    SOURCE,
    SPECIFIC,
    STATED_CHARACTERISTIC,
    rf2_line,
)


def test_reader_loads_active_rows_only(builder, tmp_path):
    builder.stated(SOURCE, FINDING_SITE, HEART, 1)
    stated_path, _ = builder.write_files(tmp_path)

    registry = RF2RelationshipReader().load(stated_path, Characteristic.STATED)

    assert len(registry) == len(builder.edges(Characteristic.STATED))
    assert registry.contains(RelationshipKey(SOURCE, FINDING_SITE, HEART, 1))
    assert not registry.contains(RelationshipKey(SOURCE, IS_A, LUNG, 0))
    relationship = registry.get(RelationshipKey(SOURCE, FINDING_SITE, HEART, 1))
    assert relationship.characteristic is Characteristic.STATED
    assert relationship.effective_time == "20220731"
    assert relationship.module_id == MODULE


def test_reader_accepts_lf_and_blank_lines(tmp_path):
    path = tmp_path / "rels.txt"
    path.write_text(
        RF2_HEADER + "\n" + rf2_line(1, (SOURCE, IS_A, GENERAL, 0), STATED_CHARACTERISTIC) + "\n\n",
        encoding="utf-8",
    )

    registry = RF2RelationshipReader().load(path, Characteristic.STATED)

    assert len(registry) == 1


def test_reader_rejects_short_row(tmp_path):
    path = tmp_path / "rels.txt"
    path.write_text(RF2_HEADER + "\r\n1\t20220731\t1\r\n", encoding="utf-8", newline="")

    with pytest.raises(RF2FormatError) as exc_info:
        RF2RelationshipReader().load(path, Characteristic.STATED)

    assert exc_info.value.context["line"] == 2


def test_reader_rejects_non_numeric_id(tmp_path):
    path = tmp_path / "rels.txt"
    line = rf2_line(1, (SOURCE, IS_A, GENERAL, 0), STATED_CHARACTERISTIC).replace(str(SOURCE), "abc", 1)
    path.write_text(RF2_HEADER + "\r\n" + line + "\r\n", encoding="utf-8", newline="")

    with pytest.raises(RF2FormatError) as exc_info:
        RF2RelationshipReader().load(path, Characteristic.STATED)

    assert exc_info.value.context["field"] == "source_id"


def test_reader_wraps_negative_group(tmp_path):
    path = tmp_path / "rels.txt"
    line = rf2_line(1, (SOURCE, FINDING_SITE, HEART, -1), STATED_CHARACTERISTIC)
    path.write_text(RF2_HEADER + "\r\n" + line + "\r\n", encoding="utf-8", newline="")

    with pytest.raises(RF2FormatError) as exc_info:
        RF2RelationshipReader().load(path, Characteristic.STATED)

    assert exc_info.value.context["line"] == 2
    assert exc_info.value.context["field"] == "group"
    assert str(exc_info.value).startswith(f"{path}:2:")


def test_reader_rejects_invalid_utf8(tmp_path):
    path = tmp_path / "rels.txt"
    line = rf2_line(1, (SOURCE, IS_A, GENERAL, 0), STATED_CHARACTERISTIC)
    path.write_bytes((RF2_HEADER + "\r\n" + line + "\r\n").encode("utf-8") + b"\xff\xfe\r\n")

    with pytest.raises(InputFileError) as exc_info:
        RF2RelationshipReader().load(path, Characteristic.STATED)

    assert exc_info.value.context["encoding"] == "utf-8"
    assert exc_info.value.suggestions


def test_reader_counts_rows_stamped_with_other_view(builder, tmp_path):
    _, inferred_path = builder.write_files(tmp_path)
    reader = RF2RelationshipReader()

    registry = reader.load(inferred_path, Characteristic.STATED)

    assert registry.characteristic is Characteristic.STATED
    assert reader.characteristic_mismatches == len(builder.edges(Characteristic.INFERRED))

    reader.load(inferred_path, Characteristic.INFERRED)
    assert reader.characteristic_mismatches == 0


@pytest.mark.parametrize("name", ["missing.txt", "."])
def test_reader_rejects_missing_file_or_directory(tmp_path, name):
    with pytest.raises(InputFileError):
        RF2RelationshipReader().load(tmp_path / name, Characteristic.STATED)


def test_writer_emits_inactive_then_replacement(builder, tmp_path):
    builder.stated(SOURCE, IS_A, GENERAL).inferred(SOURCE, IS_A, SPECIFIC)
    stated, inferred = builder.build()
    MatchingEngine().run(stated, inferred)
    output = tmp_path / "sct2_Relationship_Delta_INT_20230131.txt"

    rows = RF2RelationshipWriter().write(output, stated, "20230131")

    content = output.read_bytes().decode("utf-8")
    lines = content.split("\r\n")
    assert rows == 2
    assert content.endswith("\r\n")
    assert lines[0] == RF2_HEADER
    inactive = lines[1].split("\t")
    active = lines[2].split("\t")
    assert inactive == [
        "1021", "20230131", "0", str(MODULE), str(SOURCE), str(GENERAL), "0", str(IS_A),
        str(STATED_CHARACTERISTIC), str(MODIFIER),
    ]
    assert active == [
        "5021", "20230131", "1", str(MODULE), str(SOURCE), str(SPECIFIC), "0", str(IS_A),
        str(STATED_CHARACTERISTIC), str(MODIFIER),
    ]


def test_writer_emits_unresolved_as_inactive_only(builder):
    builder.stated(SOURCE, FINDING_SITE, LUNG, 1)
    stated, inferred = builder.build()
    MatchingEngine().run(stated, inferred)

    rows = RF2RelationshipWriter().rows(stated, "20230131")

    assert len(rows) == 1
    assert rows[0].split("\t")[2] == "0"


def test_writer_reports_unwritable_path(builder, tmp_path):
    stated, _ = builder.build()

    with pytest.raises(OutputFileError):
        RF2RelationshipWriter().write(tmp_path / "missing" / "out_20230131.txt", stated, "20230131")


def test_description_index_keeps_active_fsn_only(tmp_path):
    path = tmp_path / "sct2_Description_Snapshot-en_INT_20220731.txt"
    rows = [
        "id\teffectiveTime\tactive\tmoduleId\tconceptId\tlanguageCode\ttypeId\tterm\tcaseSignificanceId",
        f"1\t20220731\t1\t{MODULE}\t{HEART}\ten\t900000000000003001\tHeart structure (body structure)\t0",
        f"2\t20220731\t1\t{MODULE}\t{HEART}\ten\t900000000000013009\tHeart\t0",
        f"3\t20220731\t0\t{MODULE}\t{LUNG}\ten\t900000000000003001\tRetired (body structure)\t0",
    ]
    path.write_text("\r\n".join(rows) + "\r\n", encoding="utf-8", newline="")

    index = DescriptionIndex().load(path)

    assert len(index) == 1
    assert index.term(HEART) == "Heart structure (body structure)"
    assert index.format_concept(HEART) == f"{HEART}|Heart structure (body structure)|"
    assert index(LUNG) == str(LUNG)


def test_description_index_rejects_invalid_encoding(tmp_path):
    path = tmp_path / "sct2_Description_Snapshot-en_INT_20220731.txt"
    path.write_bytes(b"id\teffectiveTime\tactive\r\n1\t20220731\t1\t\xe9\r\n")

    with pytest.raises(InputFileError):
        DescriptionIndex().load(path)
