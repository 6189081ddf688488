"""Evaluation of STIX-style comparison expressions over playbook variables.

An expression has exactly three space-separated parts, ``<lhs> <operator> <rhs>``,
where the left-hand side refers to a variable as ``<name>:value``. The variable's
declared type decides how both sides are parsed and compared. Malformed
expressions, unparsable operands and operators a type does not support raise
``ValueError``.
"""

from __future__ import annotations

import ipaddress
import logging
import math
import operator
import re
import uuid
from enum import Enum
from typing import Callable, Optional

from cacaokit.models import Variable, Variables, VariableType

log = logging.getLogger(__name__)


class Operator(str, Enum):
    """Comparison operators of a STIX comparison expression."""

    EQUAL = "="
    NOT_EQUAL = "!="
    GREATER = ">"
    LESS = "<"
    LESS_OR_EQUAL = "<="
    GREATER_OR_EQUAL = ">="
    IN = "IN"
    LIKE = "LIKE"
    MATCHES = "MATCHES"
    IS_SUBSET = "ISSUBSET"
    IS_SUPERSET = "ISSUPERSET"


_ORDERING: dict[Operator, Callable[[object, object], bool]] = {
    Operator.EQUAL: operator.eq,
    Operator.NOT_EQUAL: operator.ne,
    Operator.GREATER: operator.gt,
    Operator.LESS: operator.lt,
    Operator.LESS_OR_EQUAL: operator.le,
    Operator.GREATER_OR_EQUAL: operator.ge,
}
_EQUALITY = frozenset({Operator.EQUAL, Operator.NOT_EQUAL})

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1

_DECIMAL_FLOAT = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_HEX_FLOAT = re.compile(
    r"[+-]?0[xX](?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)[pP][+-]?[0-9]+"
)
_SPECIAL_FLOAT = re.compile(r"[+-]?inf(?:inity)?|nan", re.IGNORECASE)

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_HEX_PAIR = re.compile(r"[0-9a-fA-F]{2}")
_HEX_QUAD = re.compile(r"[0-9a-fA-F]{4}")
_MAC_LENGTHS = frozenset({6, 8, 20})

_CIDR_PATTERN = re.compile(r"([^/]+)/([0-9]+)")
_V4_IN_V6_PREFIX = b"\x00" * 10 + b"\xff\xff"

_SCHEME_PATTERN = re.compile(r"([A-Za-z][A-Za-z0-9+.\-]*):")
_BAD_ESCAPE = re.compile(r"%(?![0-9a-fA-F]{2})")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

_HEX32 = re.compile(r"[0-9a-fA-F]{32}")


def _operator(text: str, allowed) -> Operator:
    try:
        found = Operator(text)
    except ValueError:
        found = None
    if found not in allowed:
        raise ValueError(f"operator: {text} not valid or implemented")
    return found


def _find_variable(lhs: str, variables: Variables) -> Variable:
    for name, variable in variables.items():
        if f"{name}:value" in lhs:
            return variable
    return Variable()


def _string_compare(lhs: str, comparator: str, rhs: str) -> bool:
    op = _operator(comparator, set(_ORDERING) | {Operator.IN})
    if op is Operator.IN:
        return rhs in lhs
    return _ORDERING[op](lhs, rhs)


def _parse_int(text: str) -> int:
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f'invalid integer "{text}": invalid syntax')
    value = int(text)
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f'invalid integer "{text}": value out of range')
    return value


def _number_compare(lhs: str, comparator: str, rhs: str) -> bool:
    left = _parse_int(lhs)
    right = _parse_int(rhs)
    return _ORDERING[_operator(comparator, _ORDERING)](left, right)


def _parse_float(text: str) -> float:
    if _SPECIAL_FLOAT.fullmatch(text):
        return float(text)
    if _HEX_FLOAT.fullmatch(text):
        value = float.fromhex(text)
    elif _DECIMAL_FLOAT.fullmatch(text):
        value = float(text)
    else:
        raise ValueError(f'invalid float "{text}": invalid syntax')
    if math.isinf(value):
        raise ValueError(f'invalid float "{text}": value out of range')
    return value


def _float_compare(lhs: str, comparator: str, rhs: str) -> bool:
    left = _parse_float(lhs)
    right = _parse_float(rhs)
    return _ORDERING[_operator(comparator, _ORDERING)](left, right)


def _parse_bool(text: str) -> bool:
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise ValueError(f'invalid boolean "{text}": invalid syntax')


def _bool_compare(lhs: str, comparator: str, rhs: str) -> bool:
    left = _parse_bool(lhs)
    right = _parse_bool(rhs)
    return _ORDERING[_operator(comparator, _EQUALITY)](left, right)


def _ip_bytes(text: str) -> Optional[bytes]:
    """Sixteen-byte form of an IP address, or None when *text* is not one."""
    if "%" in text:
        return None
    try:
        address = ipaddress.ip_address(text)
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv4Address):
        return _V4_IN_V6_PREFIX + address.packed
    return address.packed


def _parse_cidr(text: str):
    match = _CIDR_PATTERN.fullmatch(text)
    if not match or "%" in text:
        raise ValueError(f"invalid CIDR address: {text}")
    try:
        return ipaddress.ip_network(text, strict=False)
    except ValueError as error:
        raise ValueError(f"invalid CIDR address: {text}") from error


def _network_contains(network, address: Optional[bytes]) -> bool:
    if address is None:
        return False
    if isinstance(network, ipaddress.IPv4Network):
        if not address.startswith(_V4_IN_V6_PREFIX):
            return False
        return ipaddress.IPv4Address(address[12:]) in network
    return ipaddress.IPv6Address(address) in network


def _compare_ip(lhs: str, comparator: str, rhs: str) -> bool:
    left = _ip_bytes(lhs)
    right = _ip_bytes(rhs)
    op = _operator(comparator, _EQUALITY | {Operator.IN})
    if op is Operator.EQUAL:
        return left == right
    if op is Operator.NOT_EQUAL:
        return left != right
    return _network_contains(_parse_cidr(rhs), left)


def _parse_mac(text: str) -> str:
    """Normalise a hardware address to lower-case, colon-separated hex."""
    error = ValueError(f"address {text}: invalid MAC address")
    if len(text) < 14:
        raise error
    if text[2] in ":-":
        if (len(text) + 1) % 3:
            raise error
        count = (len(text) + 1) // 3
        groups = text.split(text[2])
        if count not in _MAC_LENGTHS or len(groups) != count:
            raise error
        if not all(_HEX_PAIR.fullmatch(group) for group in groups):
            raise error
        octets = [int(group, 16) for group in groups]
    elif text[4] == ".":
        if (len(text) + 1) % 5:
            raise error
        count = 2 * (len(text) + 1) // 5
        groups = text.split(".")
        if count not in _MAC_LENGTHS or len(groups) * 2 != count:
            raise error
        if not all(_HEX_QUAD.fullmatch(group) for group in groups):
            raise error
        octets = [int(group[i : i + 2], 16) for group in groups for i in (0, 2)]
    else:
        raise error
    return ":".join(f"{octet:02x}" for octet in octets)


def _compare_mac(lhs: str, comparator: str, rhs: str) -> bool:
    return _string_compare(_parse_mac(lhs), comparator, _parse_mac(rhs))


_HASH_KINDS = {32: "MD5", 40: "SHA1", 56: "SHA224", 64: "SHA256", 96: "SHA384", 128: "SHA512"}


def _compare_hash(lhs: str, comparator: str, rhs: str) -> bool:
    if len(lhs) != len(rhs):
        log.warning("hash lengths do not match")
    kind = _HASH_KINDS.get(len(lhs))
    if kind is None:
        log.warning("unknown hash length of: %d", len(lhs))
    else:
        log.debug("%s type hash", kind)
    return _string_compare(lhs, comparator, rhs)


def _parse_uri(text: str) -> str:
    if _CONTROL_CHARS.search(text):
        raise ValueError(f"parse {text!r}: invalid control character in URL")
    if _BAD_ESCAPE.search(text.split("#", 1)[0]):
        raise ValueError(f"parse {text!r}: invalid URL escape")
    if text.startswith(":"):
        raise ValueError(f"parse {text!r}: missing protocol scheme")
    match = _SCHEME_PATTERN.match(text)
    if match:
        scheme = match.group(1)
        return scheme.lower() + text[len(scheme):]
    first_segment = text.split("/", 1)[0].split("?", 1)[0].split("#", 1)[0]
    if ":" in first_segment:
        raise ValueError(f"parse {text!r}: first path segment in URL cannot contain colon")
    return text


def _compare_uri(lhs: str, comparator: str, rhs: str) -> bool:
    left = _parse_uri(lhs)
    right = _parse_uri(rhs)
    return _ORDERING[_operator(comparator, _EQUALITY)](left, right)


def _parse_uuid(text: str) -> uuid.UUID:
    error = ValueError(f"invalid UUID: {text}")
    candidate = text
    if len(candidate) == 45:
        if candidate[:9].lower() != "urn:uuid:":
            raise error
        candidate = candidate[9:]
    elif len(candidate) == 38:
        if candidate[0] != "{" or candidate[-1] != "}":
            raise error
        candidate = candidate[1:-1]
    if len(candidate) == 36:
        if any(candidate[i] != "-" for i in (8, 13, 18, 23)):
            raise error
        candidate = candidate.replace("-", "")
    if not _HEX32.fullmatch(candidate):
        raise error
    return uuid.UUID(hex=candidate)


def _compare_uuid(lhs: str, comparator: str, rhs: str) -> bool:
    left = _parse_uuid(lhs)
    right = _parse_uuid(rhs)
    return _ORDERING[_operator(comparator, _EQUALITY)](left, right)


_HANDLERS: dict[str, Callable[[str, str, str], bool]] = {
    VariableType.BOOL.value: _bool_compare,
    VariableType.STRING.value: _string_compare,
    VariableType.INT.value: _number_compare,
    VariableType.LONG.value: _number_compare,
    VariableType.FLOAT.value: _float_compare,
    VariableType.IPV4_ADDRESS.value: _compare_ip,
    VariableType.IPV6_ADDRESS.value: _compare_ip,
    VariableType.MAC_ADDRESS.value: _compare_mac,
    VariableType.HASH.value: _compare_hash,
    VariableType.MD5_HASH.value: _compare_hash,
    VariableType.SHA256.value: _compare_hash,
    VariableType.HEX_STRING.value: _string_compare,
    VariableType.URI.value: _compare_uri,
    VariableType.UUID.value: _compare_uuid,
}


class Comparison:
    """Evaluates a single STIX comparison expression."""

    def evaluate(self, expression: str, variables: Variables) -> bool:
        """Return the truth of *expression* with its variable interpolated."""
        parts = expression.split(" ")
        if len(parts) != 3:
            raise ValueError("comparisons can only contain 3 parts as per STIX specification")
        lhs, comparator, rhs = parts
        used = _find_variable(lhs, variables)
        lhs = variables.interpolate(lhs)
        log.debug("the interpolated expression is: %s %s %s", lhs, comparator, rhs)

        handler = _HANDLERS.get(used.type)
        if handler is None:
            raise ValueError("variable type is not a cacao variable type")
        return handler(lhs, comparator, rhs)