# cacaokit

Small, dependency-free building blocks for working with CACAO security
playbook steps.

- **`cacaokit.models`** – the data types a step works with: `Command`,
  `AgentTarget`, `AuthenticationInformation` (with `is_empty()`),
  `Variable` and `Variables`, plus the `VariableType` and `AuthInfoType`
  enumerations. `Variables` is a `dict` of name to `Variable`; it is built
  from any number of variables, `find(name)` returns a variable or `None`,
  and `interpolate(text)` replaces every `<name>:value` in a string with that
  variable's value.
- **`cacaokit.http_request`** – turns an `http-api` command and its agent
  target into a URL (`HttpOptions.extract_url`) and performs the request
  (`HttpRequest.request`), adding the command's headers, its body (`content`,
  or `content_b64` decoded from base64) and HTTP basic or OAuth2 bearer
  authentication. `get_method_from`, `get_path_from` and `get_version_from`
  split a `"METHOD /path HTTP/1.1"` command line.
- **`cacaokit.comparison`** – `Comparison.evaluate` decides three-part STIX
  comparison expressions such as `__var1__:value = a` or
  `__ip__:value IN 10.0.0.0/8` against a set of variables, with type-aware
  semantics for strings, hex strings, integers, floats, booleans, IPv4 and
  IPv6 addresses, MAC addresses, hashes, URIs and UUIDs. The `Operator`
  enumeration lists the operators.
- **`cacaokit.clock`** – a `Clock` with `now()` and `sleep(duration)`
  (a `timedelta` or seconds; non-positive durations return at once) that can
  be swapped for a fake in tests.
- **`cacaokit.env`** – `get_env(key, fallback)` reads an environment variable
  with a default.

## Installation

```
pip install cacaokit
```

Python 3.10 or later is required; there are no third-party dependencies.

## Evaluating a condition

```python
from cacaokit.models import Variable, Variables, VariableType
from cacaokit.comparison import Comparison

variables = Variables(
    Variable(name="__ip__", type=VariableType.IPV4_ADDRESS.value, value="10.0.0.30")
)

comparison = Comparison()
comparison.evaluate("__ip__:value IN 10.0.0.0/8", variables)   # True
comparison.evaluate("__ip__:value = 10.0.0.31", variables)     # False
```

An expression must consist of exactly three space-separated parts. A wrong
number of parts, an operand that cannot be parsed for the variable's type,
an operator the type does not support, or a variable whose type is not one
of the known types raises `ValueError`.

## Building an HTTP request

```python
from cacaokit.models import AgentTarget, Command
from cacaokit.http_request import HttpOptions, HttpRequest

target = AgentTarget(address={"dname": ["api.example.com"]}, port="8080")
command = Command(type="http-api", command="GET /status HTTP/1.1",
                  headers={"accept": ["application/json"]})

options = HttpOptions(command=command, target=target)
options.extract_url()                 # 'http://api.example.com:8080/status'

body = HttpRequest().request(options) # response body as bytes
```

The scheme is `http` for ports 80 and 8080 (80 is assumed when none is set)
and `https` otherwise. When the target gives only a `url` address, that URL
is used as it stands and the command path is appended to it.

Invalid options (a malformed command line, a bad domain name, IPv4 address
or port, authentication that does not match the target) raise `ValueError`.
A response status outside the 2xx range raises `RuntimeError` carrying the
response body; network failures raise `OSError`. Certificate checking can be
switched off with `HttpRequest(skip_certificate_validation=True)`.

## What this package does not do

It provides the pieces a playbook step needs, not a playbook runner: there is
no workflow executor, no playbook parsing or validation, no storage, no
server and no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```