import pytest

from app.utils.converter import binary_converter, role_mask, roles_intersect


def test_binary_converter_is_msb_first():
    assert binary_converter(5, 4) == [0, 1, 0, 1]
    assert binary_converter(0, 2) == [0, 0]
    assert binary_converter(3, 2) == [1, 1]


def test_role_mask_ors_indicator_bits():
    assert role_mask([1], 2) == 0b01
    assert role_mask([2], 2) == 0b10
    assert role_mask([1, 2], 2) == 0b11
    assert role_mask([1, 1], 2) == 0b01
    assert role_mask([3], 2) == 0


@pytest.mark.parametrize("expected,role,allowed", [
    ([2], 2, True),
    ([2], 1, False),
    ([1, 2], 1, True),
    ([1, 2], 2, True),
    ([1], 2, False),
])
def test_roles_intersect_two_roles(expected, role, allowed):
    assert roles_intersect(expected, role, width=2) is allowed


def test_or_of_roles_is_not_a_sum():
    # 1 + 2 == 3 but admitting customers and admins must not admit role 3.
    assert roles_intersect([1, 2], 3, width=3) is False
    assert roles_intersect([3], 3, width=3) is True


def test_unknown_role_is_denied():
    assert roles_intersect([1, 2], 5, width=2) is False
    assert roles_intersect([1, 2], 0, width=2) is False
