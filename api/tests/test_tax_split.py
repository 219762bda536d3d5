import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from gstbill.engine.enums import TaxType
from gstbill.engine.tax_split import TaxSplit, is_standard_slab, resolve_split
from gstbill.errors import UnsupportedTaxTypeError, ValidationError


@pytest.mark.parametrize("taxable,rate,cess", [
    ("200", "12", "0"),
    ("999.50", "18", "0"),
    ("333.33", "5", "1"),
    ("0.01", "28", "12"),
])
def test_split_components_add_up_to_full_tax(taxable, rate, cess):
    expected = Decimal(taxable) * (Decimal(rate) + Decimal(cess)) / 100
    for mode in (TaxType.CGST_SGST, TaxType.IGST):
        split = resolve_split(taxable, rate, cess, mode)
        assert split.total == expected


def test_cgst_sgst_halves_are_equal():
    split = resolve_split("333.33", 5, 0, "CGST_SGST")
    assert split.cgst == split.sgst
    assert split.igst == 0
    assert split.cgst + split.sgst == Decimal("333.33") * 5 / 100


def test_igst_takes_full_gst():
    split = resolve_split("999.50", 18, 0, TaxType.IGST)
    assert split.igst == Decimal("179.91")
    assert split.cgst == split.sgst == 0


def test_cess_is_added_once_on_top_of_gst():
    split = resolve_split(1000, 28, 12, TaxType.CGST_SGST)
    assert split.cgst == split.sgst == Decimal("140")
    assert split.cess == Decimal("120")
    assert split.total == Decimal("400")


def test_cess_mode_suppresses_gst():
    split = resolve_split(1000, 12, 5, TaxType.CESS, manual_cess_rate=1)
    assert split == TaxSplit(cess=Decimal("10"))
    assert split.gst == 0


def test_tax_type_is_case_insensitive():
    assert resolve_split(100, 18, 0, "igst").igst == Decimal("18")


def test_unknown_tax_type_rejected():
    with pytest.raises(UnsupportedTaxTypeError):
        resolve_split(100, 18, 0, "VAT")


@pytest.mark.parametrize("field", ["taxable", "rate", "cess"])
def test_negative_inputs_rejected(field):
    args = {"taxable": 100, "rate": 18, "cess": 0}
    args[field] = -1
    with pytest.raises(ValidationError):
        resolve_split(args["taxable"], args["rate"], args["cess"], TaxType.IGST)


def test_tax_split_addition():
    a = TaxSplit(cgst=Decimal("1"), sgst=Decimal("1"))
    b = TaxSplit(igst=Decimal("2"), cess=Decimal("0.5"))
    total = a + b
    assert total.total == Decimal("4.5")
    assert total.to_dict()["cess"] == 0.5


def test_standard_slabs():
    assert is_standard_slab(18)
    assert is_standard_slab("0")
    assert not is_standard_slab(7.5)
