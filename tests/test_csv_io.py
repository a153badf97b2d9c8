"""
Tests for the CSV import normalizer and export.
"""

from datetime import date

import pytest

from conftest import TODAY, make_op
from regjournal.csv_io import (
    CSVFormatError,
    ImportRowError,
    canonical_field,
    decode_upload,
    export_csv,
    export_filename,
    normalize_header,
    normalize_rows,
    read_csv,
)

PT_CSV = (
    "Nro. da Operação;Ativo;Lado;Data;Lotes;Preço de Entrada;Preço de Saída;Pontos;Resultado;Status;Região;Estrutura;Gatilho\n"
).replace(";", ",")


def test_normalize_header():
    assert normalize_header("Entry_Price") == "entryprice"
    assert normalize_header(" Preço de Saída ") == "preçodesaída"


@pytest.mark.parametrize("header,field", [
    ("Op#", "op_number"),
    ("op_number", "op_number"),
    ("Nro. da Operação", "op_number"),
    ("ATIVO", "asset"),
    ("Entrada", "entry_price"),
    ("exit_price", "exit_price"),
    ("Valor por Ponto", "point_value"),
    ("Gatilho", "trigger"),
    ("notes", None),
    ("id", None),
])
def test_aliases(header, field):
    assert canonical_field(header) == field


def test_read_csv_requires_header():
    with pytest.raises(CSVFormatError):
        read_csv("")


def test_read_csv_reports_parser_errors():
    with pytest.raises(CSVFormatError):
        read_csv('asset,lots\n"WIN"x,1\n')


def test_read_csv_skips_blank_lines_and_bom():
    rows = read_csv("\ufeffasset,lots\nWIN,1\n\nWDO,2\n")
    assert rows == [{"asset": "WIN", "lots": "1"}, {"asset": "WDO", "lots": "2"}]


def test_portuguese_file():
    text = PT_CSV + '1,WINFUT,Sell,2024-05-10,2,"125.350,5","125.300",50,20,Gain,Cara,A-B-C,2-2-1\n'
    (op,) = normalize_rows(read_csv(text), first_id=7, today=TODAY)
    assert op.id == 7
    assert op.op_number == 1
    assert op.side == "Sell"
    assert op.entry_price == pytest.approx(125350.5)
    # single dot, no comma: a decimal fraction
    assert op.exit_price == pytest.approx(125.3)
    assert op.points == 50
    assert op.result == 20
    assert op.status == "Gain"
    assert op.point_value == pytest.approx(0.2)
    assert (op.region, op.structure, op.trigger) == ("Cara", "A-B-C", "2-2-1")


def test_defaults_for_missing_or_invalid_values():
    rows = [{"Op#": "3", "Lots": "1", "Side": "long", "Status": "Won", "Date": "10/05/2024"}]
    (op,) = normalize_rows(rows, first_id=1, today=TODAY)
    assert op.side == "Buy"
    assert op.status == "Break-even"
    assert op.date == "2024-05-15"
    assert op.asset == ""
    assert op.entry_price == 0.0
    assert op.point_value == 10.0


def test_status_always_follows_result():
    rows = [{"op#": "1", "lots": "1", "result": "-15", "status": "Gain"}]
    (op,) = normalize_rows(rows, first_id=1, today=TODAY)
    assert op.status == "Loss"


def test_ids_are_offset_by_row_index():
    rows = [{"op#": str(n), "lots": "1"} for n in (1, 2, 3)]
    ops = normalize_rows(rows, first_id=40, today=TODAY)
    assert [op.id for op in ops] == [40, 41, 42]


def test_bad_op_number_names_the_row_after_the_header():
    rows = [{"op#": "1", "lots": "1"}, {"op#": "abc", "lots": "1"}]
    with pytest.raises(ImportRowError) as exc:
        normalize_rows(rows, first_id=1, today=TODAY)
    assert exc.value.row_number == 3
    assert str(exc.value) == "Invalid number in row 3."


def test_bad_lots_fail_the_row():
    with pytest.raises(ImportRowError) as exc:
        normalize_rows([{"op#": "1", "lots": "x"}], first_id=1, today=TODAY)
    assert exc.value.row_number == 2


def test_export_dumps_every_field():
    ops = [make_op(op_id=1, op_number=1), make_op(op_id=2, op_number=2, side="Sell")]
    lines = export_csv(ops).splitlines()
    assert lines[0] == (
        "id,op_number,asset,side,date,lots,entry_price,exit_price,point_value,"
        "points,result,region,structure,trigger,status"
    )
    assert len(lines) == 3


def test_export_then_import_round_trip():
    ops = [
        make_op(op_id=1, op_number=1, asset="WINFUT", side="Buy", day="2024-05-10",
                lots=2, entry=125350.5, exit=125400, point_value=0.2,
                region="Barata", structure="A-B-C", trigger="Cadeado (Alta)"),
        make_op(op_id=2, op_number=2, asset="WDOFUT", side="Sell", day="2024-05-11",
                lots=1, entry=5123.5, exit=5130, point_value=10,
                region="Cara", structure="", trigger="2-2-1"),
        make_op(op_id=3, op_number=3, asset="PETR4", side="Buy", day="2024-05-12",
                lots=3, entry=38.7, exit=38.7, point_value=1),
    ]
    back = normalize_rows(read_csv(export_csv(ops)), first_id=100, today=TODAY)
    assert len(back) == len(ops)
    keys = ("asset", "side", "date", "lots", "entry_price", "exit_price",
            "region", "structure", "trigger", "point_value", "status")
    for original, restored in zip(ops, back):
        for key in keys:
            assert getattr(restored, key) == getattr(original, key), key
        assert restored.result == pytest.approx(original.result)


def test_export_filename():
    assert export_filename(date(2024, 5, 7)) == "Diario_Trade_07-05-2024.csv"


@pytest.mark.parametrize("row", [
    {"op#": "1", "lots": "0"},
    {"op#": "1", "lots": "-2"},
    {"op#": "1", "asset": "WINFUT"},
])
def test_non_positive_lots_get_their_own_message(row):
    with pytest.raises(ImportRowError) as exc:
        normalize_rows([row], first_id=1, today=TODAY)
    assert exc.value.row_number == 2
    assert str(exc.value) == "Lots must be a positive number in row 2."


def test_decode_upload_prefers_utf8():
    assert decode_upload("Região\n".encode("utf-8")) == "Região\n"


def test_decode_upload_falls_back_to_windows_1252():
    text = "Preço de Saída,Região\n"
    assert decode_upload(text.encode("cp1252")) == text


def test_decode_upload_rejects_undecodable_bytes():
    with pytest.raises(CSVFormatError):
        decode_upload(b"op#\x81\n")
