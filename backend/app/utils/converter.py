from typing import Iterable, List


def binary_converter(number: int, bits: int) -> List[int]:
    """Return ``number`` as a ``bits``-wide list of 0/1, most significant bit first."""
    result = [0] * bits
    for i in range(bits - 1, -1, -1):
        result[i] = number % 2
        number //= 2
    return result


def role_mask(role_ids: Iterable[int], width: int) -> int:
    """OR together the indicator bit of every role id.

    Role ``k`` owns bit ``k - 1``; ids outside ``1..width`` set nothing.
    """
    mask = 0
    for role_id in role_ids:
        if 1 <= role_id <= width:
            mask |= 1 << (role_id - 1)
    return mask


def roles_intersect(expected_role_ids: Iterable[int], user_role_id: int, width: int) -> bool:
    """True when the caller's role vector shares a set bit with the expected roles."""
    expected = binary_converter(role_mask(expected_role_ids, width), width)
    actual = binary_converter(role_mask([user_role_id], width), width)
    return any(e == 1 and a == 1 for e, a in zip(expected, actual))
