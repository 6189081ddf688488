"""HTTP requests described by a command, an agent target and authentication.

Invalid options raise ``ValueError``. A response outside the 2xx range raises
``RuntimeError`` carrying the response body. Network failures surface as ``OSError``.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Optional
from urllib.parse import SplitResult, quote, urlsplit

from cacaokit.models import AgentTarget, AuthenticationInformation, AuthInfoType, Command

log = logging.getLogger(__name__)

_IPV4_PATTERN = re.compile(r"(((25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)(\.|\Z)){4})")
_DOMAIN_PATTERN = re.compile(
    r"(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z0-9][a-z0-9-]{0,61}[a-z0-9]"
)
_PORT_PATTERN = re.compile(r"[+-]?[0-9]+")
_PATH_SAFE = "/$&+,:;=@"


def _command_field(command: Optional[Command], index: int) -> str:
    if command is None:
        raise ValueError("command pointer is empty")
    if not 0 <= index <= 2:
        raise ValueError("invalid index")
    parts = command.command.split()
    if len(parts) != 3:
        raise ValueError("invalid request format")
    return parts[index]


def get_method_from(command: Optional[Command]) -> str:
    """Return the method of an ``METHOD PATH VERSION`` command line."""
    return _command_field(command, 0)


def get_path_from(command: Optional[Command]) -> str:
    """Return the path of an ``METHOD PATH VERSION`` command line."""
    return _command_field(command, 1)


def get_version_from(command: Optional[Command]) -> str:
    """Return the HTTP version of an ``METHOD PATH VERSION`` command line."""
    return _command_field(command, 2)


def _validate_port(port: str) -> None:
    if not _PORT_PATTERN.fullmatch(port):
        raise ValueError("could not parse string to port number")
    if not 1 <= int(port) <= 65535:
        raise ValueError("port must be in the range 1-65535")


def _parse_path_based_url(url: str) -> SplitResult:
    if not url:
        raise ValueError("empty url")
    parts = urlsplit(url)
    if not parts.scheme and not url.startswith("/"):
        raise ValueError(f"parse {url!r}: invalid URI for request")
    if not parts.hostname:
        raise ValueError("no domain name")
    return parts


def _first(target: AgentTarget, kind: str) -> Optional[str]:
    values = target.address.get(kind) or []
    return values[0] if values else None


def _extract_hostname(target: AgentTarget) -> str:
    dname = _first(target, "dname")
    if dname is not None:
        if not _DOMAIN_PATTERN.fullmatch(dname):
            raise ValueError("failed regex rule for domain name")
        return dname
    ipv4 = _first(target, "ipv4")
    if ipv4 is not None:
        if not _IPV4_PATTERN.match(ipv4):
            raise ValueError("failed regex rule for domain name")
        return ipv4
    url = _first(target, "url")
    if url is not None:
        _parse_path_based_url(url)
        return url
    raise ValueError("unsupported target address type")


def _remove_suffix(text: str, suffix: str) -> str:
    return text[: -len(suffix)] if suffix and text.endswith(suffix) else text


def _build_scheme_and_hostname(path: str, target: AgentTarget) -> str:
    port = target.port or "80"
    scheme = "http" if port in ("80", "8080") else "https"
    hostname = _extract_hostname(target)

    only_url = bool(target.address.get("url")) and not any(
        target.address.get(kind) for kind in ("dname", "ipv4", "ipv6")
    )
    if only_url:
        # Scheme and port come from the URL itself.
        base = _remove_suffix(hostname, "/")
        if len(path) > 1 and not path.startswith("/"):
            path = "/" + path
        return _remove_suffix(base + path, "/")

    escaped = quote(path, safe=_PATH_SAFE)
    if escaped and not escaped.startswith("/"):
        escaped = "/" + escaped
    return f"{scheme}://{hostname}:{port}{escaped}"


def _verify_auth_matches_target(target: AgentTarget, auth: AuthenticationInformation) -> None:
    if not target.auth_info_identifier or not auth.id:
        raise ValueError("target auth info identifier or auth info id is empty")
    if target.auth_info_identifier != auth.id:
        raise ValueError("target auth info Id does not match auth info object's")


@dataclass
class HttpOptions:
    """Everything needed to build one HTTP request."""

    target: Optional[AgentTarget] = None
    command: Optional[Command] = None
    auth: Optional[AuthenticationInformation] = None

    def extract_url(self) -> str:
        """Compose the request URL from the target address, port and command path."""
        if self.command is None or self.target is None:
            raise ValueError("not enough http options supplied, nil found")
        path = get_path_from(self.command)
        target = self.target
        if not target.address:
            raise ValueError(
                "agent target does not contain enough information to build a proper query path"
            )
        if target.port:
            _validate_port(target.port)

        url = _first(target, "url")
        if url:
            parts = _parse_path_based_url(url)
            if parts.path not in ("", "/") and parts.path == path:
                log.warning(
                    "possible http api invocation path duplication: "
                    "agent-target url has same path of http-api command path"
                )
        return _build_scheme_and_hostname(path, target)

    def _body(self) -> bytes:
        assert self.command is not None
        if self.command.content:
            log.debug("using the content field")
            return self.command.content.encode()
        if self.command.content_b64:
            log.debug("using base64 content")
            try:
                return base64.b64decode(self.command.content_b64, validate=True)
            except (binascii.Error, ValueError) as error:
                log.error("error decoding base64: %s", error)
        return b""

    def _authorization(self) -> Optional[str]:
        auth = self.auth
        if auth is None or auth.is_empty():
            return None
        assert self.target is not None
        try:
            _verify_auth_matches_target(self.target, auth)
        except ValueError as error:
            raise ValueError("auth info does not match target Id") from error

        if auth.type == AuthInfoType.HTTP_BASIC.value:
            credentials = f"{auth.user_id}:{auth.password}".encode()
            return "Basic " + base64.b64encode(credentials).decode("ascii")
        if auth.type == AuthInfoType.OAUTH2.value:
            return f"Bearer {auth.token}"
        if auth.type == "":
            return None
        raise ValueError(f"unsupported authentication type: {auth.type}")

    def _build_request(self) -> urllib.request.Request:
        url = self.extract_url()
        method = get_method_from(self.command)
        body = self._body()
        assert self.command is not None

        headers: dict[str, list[str]] = {}
        for name, values in self.command.headers.items():
            headers.setdefault(name.capitalize(), []).extend(values)
        authorization = self._authorization()
        if authorization is not None:
            headers.setdefault("Authorization", []).append(authorization)

        request = urllib.request.Request(url, data=body or None, method=method)
        for name, values in headers.items():
            if values:
                request.add_header(name, ", ".join(values))
        return request


@dataclass
class HttpRequest:
    """Sends requests described by :class:`HttpOptions`."""

    skip_certificate_validation: bool = False

    def _opener(self) -> urllib.request.OpenerDirector:
        context = ssl.create_default_context()
        if self.skip_certificate_validation:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return urllib.request.build_opener(
            urllib.request.ProxyHandler({}),
            urllib.request.HTTPSHandler(context=context),
        )

    def request(self, options: HttpOptions) -> bytes:
        """Send the request and return the response body of a 2xx response."""
        try:
            prepared = options._build_request()
        except ValueError as error:
            log.error("%s", error)
            raise
        log.debug("%s %s", prepared.get_method(), prepared.full_url)
        try:
            with self._opener().open(prepared) as response:
                body = response.read()
                status = response.status
        except urllib.error.HTTPError as error:
            body = error.read()
            log.debug("status %s: %r", error.code, body)
            raise RuntimeError(body.decode("utf-8", errors="replace")) from error
        except OSError as error:
            log.error("%s", error)
            raise
        log.debug("status %s: %r", status, body)
        if not 200 <= status <= 299:
            raise RuntimeError(body.decode("utf-8", errors="replace"))
        return body