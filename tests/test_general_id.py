from __future__ import annotations

import numpy as np
import pytest  # type: ignore[import]

from link_position_interface.core.contracts import GeneralId


def test_int_and_string_ids_are_distinct():
    assert GeneralId(1) != GeneralId("1")
    assert len({GeneralId(1), GeneralId("1")}) == 2
    assert GeneralId(1) == GeneralId(1)
    assert GeneralId("tool") == GeneralId("tool")


def test_default_id_is_integer_zero():
    default = GeneralId.default_id()
    assert default.is_valid()
    assert default.is_int()
    assert default.to_int() == 0
    assert default != GeneralId("0")


@pytest.mark.parametrize("value", [None, -1, "", True, False, 1.5])
def test_invalid_ids(value):
    assert not GeneralId(value).is_valid()


def test_default_constructed_id_is_invalid():
    id = GeneralId()
    assert not id.is_valid()
    assert id.label == ""
    assert id.to_int() == -1
    assert id.to_string() == ""


def test_labels_and_conversions():
    assert GeneralId(5).label == "5"
    assert GeneralId("custom").label == "custom"
    assert GeneralId("custom").to_string() == "custom"
    assert GeneralId("custom").to_int() == -1
    assert GeneralId(np.int64(3)) == GeneralId(3)
    assert GeneralId(GeneralId("a")) == GeneralId("a")


def test_comparison_with_other_types():
    assert GeneralId(1) != 1
    assert GeneralId("a") != "a"
