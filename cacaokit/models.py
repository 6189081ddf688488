"""Playbook data objects: commands, agent targets, authentication and variables."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class VariableType(str, Enum):
    """Types a playbook variable may declare."""

    BOOL = "bool"
    DICTIONARY = "dictionary"
    FLOAT = "float"
    HEX_STRING = "hexstring"
    INT = "integer"
    LONG = "long"
    IPV4_ADDRESS = "ipv4-addr"
    IPV6_ADDRESS = "ipv6-addr"
    MAC_ADDRESS = "mac-addr"
    HASH = "hash"
    MD5_HASH = "md5-hash"
    SHA256 = "sha256-hash"
    STRING = "string"
    URI = "uri"
    UUID = "uuid"


class AuthInfoType(str, Enum):
    """Kinds of authentication information."""

    HTTP_BASIC = "http-basic"
    OAUTH2 = "oauth2"
    USER_AUTH = "user-auth"
    IDENTITY_FILE = "private-key"


@dataclass
class Command:
    """A command to run on a target, e.g. an HTTP request line with headers and body."""

    type: str = ""
    command: str = ""
    description: str = ""
    version: str = ""
    content: str = ""
    content_b64: str = ""
    headers: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class AgentTarget:
    """An agent or target a command is sent to."""

    id: str = ""
    type: str = ""
    name: str = ""
    description: str = ""
    category: list[str] = field(default_factory=list)
    address: dict[str, list[str]] = field(default_factory=dict)
    port: str = ""
    auth_info_identifier: str = ""


@dataclass
class AuthenticationInformation:
    """Credentials referenced by an agent target."""

    id: str = ""
    type: str = ""
    name: str = ""
    description: str = ""
    user_id: str = ""
    username: str = ""
    password: str = ""
    private_key: str = ""
    token: str = ""
    kms: bool = False
    kms_key_identifier: str = ""

    def is_empty(self) -> bool:
        """True when no field differs from its default."""
        return self == AuthenticationInformation()


@dataclass
class Variable:
    """A named, typed playbook variable."""

    type: str = ""
    name: str = ""
    description: str = ""
    value: str = ""
    constant: bool = False
    external: bool = False


class Variables(dict):
    """Variables keyed by name."""

    def __init__(self, *variables: Variable) -> None:
        super().__init__((variable.name, variable) for variable in variables)

    def find(self, name: str) -> Optional[Variable]:
        """Return the variable called *name*, or None."""
        return self.get(name)

    def interpolate(self, text: str) -> str:
        """Replace every ``<name>:value`` in *text* with that variable's value."""
        for name, variable in self.items():
            text = text.replace(f"{name}:value", variable.value)
        return text