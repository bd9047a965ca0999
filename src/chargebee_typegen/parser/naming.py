"""Identifier conversions shared by the extractor and the builder."""

import re

UNBILLED_CHARGE_CORRECTION = ("UnbilledCharge", "UnbilledChargeEstimate")

LIST_OF_PREFIX = "list of "


def to_pascal_case(snake_case: str) -> str:
    """``unbilled_charge`` -> ``UnbilledCharge``."""
    return "".join(segment[:1].upper() + segment[1:] for segment in snake_case.split("_"))


def reference_type(token: str) -> tuple[str, bool]:
    """Resolve a reference definition token to ``(type_name, is_array)``.

    ``list of addon`` -> ``("Addon", True)``. The documentation lists
    estimate line items as ``list of unbilled_charge`` although the objects
    returned are unbilled charge estimates; that one name is corrected.
    """
    token = token.strip()
    is_array = token.startswith(LIST_OF_PREFIX)
    if is_array:
        token = token[len(LIST_OF_PREFIX):].strip()
    type_name = to_pascal_case(token)
    wrong, right = UNBILLED_CHARGE_CORRECTION
    if is_array and type_name == wrong:
        type_name = right
    return type_name, is_array


def is_identifier(name: str) -> bool:
    return re.fullmatch(r"[A-Za-z_$][A-Za-z0-9_$]*", name) is not None
