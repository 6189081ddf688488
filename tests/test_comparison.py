import pytest

from cacaokit.comparison import Comparison, Operator
from cacaokit.models import Variable, Variables, VariableType

THREE_PARTS = "comparisons can only contain 3 parts as per STIX specification"


def make_vars(*variables):
    return Variables(*variables)


@pytest.fixture
def stix():
    return Comparison()


def test_operator_values():
    assert Operator("IN") is Operator.IN
    assert Operator(">=") is Operator.GREATER_OR_EQUAL


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("__var1__:value = a", True),
        ("__var1__:value = b", False),
        ("__var1__:value = 1", False),
        ("__var1__:value > b", False),
        ("__var1__:value < b", True),
        ("__var1__:value <= b", True),
        ("__var1__:value >= b", False),
        ("__var1__:value != b", True),
        ("__var1__:value IN a", True),
    ],
)
def test_string_compare(stix, expression, expected):
    variables = make_vars(Variable(type=VariableType.STRING.value, name="__var1__", value="a"))
    assert stix.evaluate(expression, variables) is expected


@pytest.mark.parametrize("expression", ["a =  b", "a = b c"])
def test_string_wrong_part_count(stix, expression):
    variables = make_vars(Variable(type=VariableType.STRING.value, name="__var1__", value="a"))
    with pytest.raises(ValueError, match=THREE_PARTS):
        stix.evaluate(expression, variables)


def test_string_unknown_operator(stix):
    variables = make_vars(Variable(type=VariableType.STRING.value, name="__var1__", value="a"))
    with pytest.raises(ValueError, match="operator: LIKE not valid or implemented"):
        stix.evaluate("__var1__:value LIKE a", variables)


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("__var1__:value = 1000", True),
        ("__var1__:value = 9999", False),
        ("__var1__:value = 10000", False),
        ("__var1__:value > 999", True),
        ("__var1__:value < 1001", True),
        ("__var1__:value <= 1000", True),
        ("__var1__:value >= 1000", True),
    ],
)
def test_long_compare(stix, expression, expected):
    variables = make_vars(Variable(type=VariableType.LONG.value, name="__var1__", value="1000"))
    assert stix.evaluate(expression, variables) is expected


def test_long_invalid_operand(stix):
    variables = make_vars(Variable(type=VariableType.LONG.value, name="__var1__", value="1000"))
    with pytest.raises(ValueError):
        stix.evaluate("__var1__:value >= a", variables)


@pytest.mark.parametrize("expression", ["a =  b", "a = b c"])
def test_long_wrong_part_count(stix, expression):
    variables = make_vars(Variable(type=VariableType.LONG.value, name="__var1__", value="1000"))
    with pytest.raises(ValueError, match=THREE_PARTS):
        stix.evaluate(expression, variables)


def test_integer_type_and_range(stix):
    variables = make_vars(Variable(type=VariableType.INT.value, name="__n__", value="-5"))
    assert stix.evaluate("__n__:value < +3", variables) is True
    with pytest.raises(ValueError, match="out of range"):
        stix.evaluate("__n__:value < 9223372036854775808", variables)
    with pytest.raises(ValueError, match="operator: IN not valid or implemented"):
        stix.evaluate("__n__:value IN 3", variables)


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("__var1__:value = 1000.0", True),
        ("__var1__:value = 1000.000000000000000000001", True),
        ("__var1__:value = 1000.000001", False),
        ("__var1__:value = 9999", False),
        ("__var1__:value = 10000", False),
        ("__var1__:value > 999", True),
        ("__var1__:value < 1001", True),
        ("__var1__:value <= 1000", True),
        ("__var1__:value >= 1000", True),
    ],
)
def test_float_compare(stix, expression, expected):
    variables = make_vars(Variable(type=VariableType.FLOAT.value, name="__var1__", value="1000.0"))
    assert stix.evaluate(expression, variables) is expected


def test_float_invalid_operand(stix):
    variables = make_vars(Variable(type=VariableType.FLOAT.value, name="__var1__", value="1000.0"))
    with pytest.raises(ValueError):
        stix.evaluate("__var1__:value >= a", variables)
    with pytest.raises(ValueError, match="out of range"):
        stix.evaluate("__var1__:value >= 1e400", variables)


@pytest.mark.parametrize("expression", ["a =  b", "a = b c"])
def test_float_wrong_part_count(stix, expression):
    variables = make_vars(Variable(type=VariableType.FLOAT.value, name="__var1__", value="1000.0"))
    with pytest.raises(ValueError, match=THREE_PARTS):
        stix.evaluate(expression, variables)


def test_bool_compare(stix):
    variables = make_vars(Variable(type=VariableType.BOOL.value, name="__b__", value="true"))
    assert stix.evaluate("__b__:value = 1", variables) is True
    assert stix.evaluate("__b__:value != F", variables) is True
    assert stix.evaluate("__b__:value = false", variables) is False
    with pytest.raises(ValueError, match="operator: > not valid or implemented"):
        stix.evaluate("__b__:value > false", variables)
    with pytest.raises(ValueError):
        stix.evaluate("__b__:value = yes", variables)


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("__var1__:value = 10.0.0.30", True),
        ("__var1__:value IN 10.0.0.0/8", True),
        ("__var1__:value IN 10.30.0.0/16", False),
        ("__var1__:value != 10.0.0.31", True),
        ("__var1__:value IN 2001:db8::/32", False),
    ],
)
def test_ipv4_compare(stix, expression, expected):
    variables = make_vars(
        Variable(type=VariableType.IPV4_ADDRESS.value, name="__var1__", value="10.0.0.30")
    )
    assert stix.evaluate(expression, variables) is expected


def test_ipv4_bad_cidr(stix):
    variables = make_vars(
        Variable(type=VariableType.IPV4_ADDRESS.value, name="__var1__", value="10.0.0.30")
    )
    with pytest.raises(ValueError, match="invalid CIDR address"):
        stix.evaluate("__var1__:value IN 10.0.0.0", variables)


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("__var1__:value = 2001:db8::1", True),
        ("__var1__:value IN 2001:db8::1/64", True),
        ("__var1__:value IN 2001:db81::1/64", False),
        ("__var1__:value != 2001:db8::2", True),
    ],
)
def test_ipv6_compare(stix, expression, expected):
    variables = make_vars(
        Variable(type=VariableType.IPV6_ADDRESS.value, name="__var1__", value="2001:db8::1")
    )
    assert stix.evaluate(expression, variables) is expected


def test_mac_compare(stix):
    variables = make_vars(
        Variable(type=VariableType.MAC_ADDRESS.value, name="__var1__", value="02-00-00-00-00-01")
    )
    assert stix.evaluate("__var1__:value = 02-00-00-00-00-01", variables) is True

    variables2 = make_vars(
        Variable(type=VariableType.MAC_ADDRESS.value, name="__var2__", value="02:00:00:00:00:01")
    )
    assert stix.evaluate("__var2__:value = 02:00:00:00:00:01", variables2) is True

    assert stix.evaluate("__var1__:value = 02:00:00:00:00:01", variables) is True
    assert stix.evaluate("__var1__:value > 02:00:00:00:00:00", variables) is True
    assert stix.evaluate("__var1__:value < 02:00:00:00:00:02", variables) is True
    assert stix.evaluate("__var1__:value = 0200.0000.0001", variables) is True


def test_mac_invalid(stix):
    variables = make_vars(
        Variable(type=VariableType.MAC_ADDRESS.value, name="__var1__", value="02-00-00-00-00-01")
    )
    with pytest.raises(ValueError, match="invalid MAC address"):
        stix.evaluate("__var1__:value = 02:00-00:00:00:01", variables)
    with pytest.raises(ValueError, match="invalid MAC address"):
        stix.evaluate("__var1__:value = zz:00:00:00:00:01", variables)


HASHES = [
    ("__md5__", VariableType.MD5_HASH, "d41d8cd98f00b204e9800998ecf8427e"),
    ("__sha1__", VariableType.MD5_HASH, "da39a3ee5e6b4b0d3255bfef95601890afd80709"),
    ("__sha224__", VariableType.HASH, "d14a028c2a3a2bc9476102bb288234c415a2b01f828ea62ac5b3e42f"),
    (
        "__sha256__",
        VariableType.SHA256,
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855",
    ),
    (
        "__sha384__",
        VariableType.HASH,
        "38b060a751ac96384cd9327eb1b1e36a21fdb71114be07434c0cc7bf63f6e1da"
        "274edebfe76f65fbd51ad2f14898b95b",
    ),
    (
        "__sha512__",
        VariableType.HASH,
        "cf83e1357eefb8bdf1542850d66d8007d620e4050b5715dc83f4a921d36ce9ce"
        "47d0d13c5d85f2b0ff8318d2877eec2f63b931bd47417a81a538327af927da3e",
    ),
]


@pytest.mark.parametrize("name, kind, digest", HASHES)
def test_hash_equals(stix, name, kind, digest):
    variables = make_vars(*(Variable(type=k.value, name=n, value=d) for n, k, d in HASHES))
    assert stix.evaluate(f"{name}:value = {digest}", variables) is True
    assert stix.evaluate(f"{name}:value != {digest}", variables) is False


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("__var1__:value = https://google.com", True),
        ("__var1__:value = https://example.com", False),
        ("__var1__:value != https://example.com", True),
    ],
)
def test_uri_compare(stix, expression, expected):
    variables = make_vars(
        Variable(type=VariableType.URI.value, name="__var1__", value="https://google.com")
    )
    assert stix.evaluate(expression, variables) is expected


def test_uri_unsupported_operator(stix):
    variables = make_vars(
        Variable(type=VariableType.URI.value, name="__var1__", value="https://google.com")
    )
    with pytest.raises(ValueError, match="^operator: > not valid or implemented$"):
        stix.evaluate("__var1__:value > https://example.com", variables)


def test_uri_invalid_escape(stix):
    variables = make_vars(
        Variable(type=VariableType.URI.value, name="__var1__", value="https://google.com")
    )
    with pytest.raises(ValueError, match="invalid URL escape"):
        stix.evaluate("__var1__:value = https://example.com/%zz", variables)


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("__var1__:value = ec887691-9a21-4ccf-8fae-360c13a819d1", True),
        ("__var1__:value = ec887691-9a21-4ccf-8fae-360c13a819d2", False),
        ("__var1__:value != ec887691-9a21-4ccf-8fae-360c13a819d2", True),
        ("__var1__:value = {EC887691-9A21-4CCF-8FAE-360C13A819D1}", True),
        ("__var1__:value = urn:uuid:ec887691-9a21-4ccf-8fae-360c13a819d1", True),
    ],
)
def test_uuid_compare(stix, expression, expected):
    variables = make_vars(
        Variable(
            type=VariableType.UUID.value,
            name="__var1__",
            value="ec887691-9a21-4ccf-8fae-360c13a819d1",
        )
    )
    assert stix.evaluate(expression, variables) is expected


def test_uuid_errors(stix):
    variables = make_vars(
        Variable(
            type=VariableType.UUID.value,
            name="__var1__",
            value="ec887691-9a21-4ccf-8fae-360c13a819d1",
        )
    )
    with pytest.raises(ValueError, match="^operator: > not valid or implemented$"):
        stix.evaluate("__var1__:value > ec887691-9a21-4ccf-8fae-360c13a819d2", variables)
    with pytest.raises(ValueError, match="invalid UUID"):
        stix.evaluate("__var1__:value = not-a-uuid", variables)


def test_unknown_variable_is_not_a_typed_variable(stix):
    variables = make_vars(Variable(type=VariableType.STRING.value, name="__var1__", value="a"))
    with pytest.raises(ValueError, match="variable type is not a cacao variable type"):
        stix.evaluate("__other__:value = a", variables)


def test_dictionary_type_is_rejected(stix):
    variables = make_vars(Variable(type=VariableType.DICTIONARY.value, name="__d__", value="{}"))
    with pytest.raises(ValueError, match="variable type is not a cacao variable type"):
        stix.evaluate("__d__:value = {}", variables)