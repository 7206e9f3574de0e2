# mockserve

`mockserve` is an HTTP mock server built on aiohttp. You register mocks,
each made of a set of request requirements and a canned response.
Incoming requests are matched against the mocks in order of their ids, and
the first mock that matches serves its response. Requests are recorded, and
you can later ask which recorded request came closest to a given set of
requirements, and why it did not match.

## Installation

```
pip install .
pip install ".[test]"   # with pytest and pytest-asyncio for the test suite
```

## What a mock can require

A request matches a mock only when all of the mock's requirements hold.
Requirements that are left out are ignored.

- **path**: the exact path (compared without regard to case), substrings
  the path must contain, or regular expressions the path must match
- **method**: the HTTP method, compared without regard to case
- **headers**: name/value pairs (name compared without regard to case,
  value exactly), or header names that must be present
- **cookies**: name/value pairs taken from the `Cookie` header, or cookie
  names that must be present
- **query parameters**: exact name/value pairs, or names that must be present
- **body**: the exact text (compared without regard to case), substrings,
  regular expressions, an exact JSON document, or JSON fragments the body
  must include (extra object keys and trailing array items are allowed)
- **form body**: `x-www-form-urlencoded` name/value pairs, or keys that
  must be present
- **custom matchers**: Python callables in `RequestRequirements.matchers`
  that receive the `HttpMockRequest` and return true or false

A mock may not require a body together with the `GET` or `HEAD` method.
`mockserve.handlers.add_new_mock` rejects it with `MockValidationError`.

## Running a server

`mockserve.standalone.start_standalone_server` starts a server and, when
given a directory, first loads static mocks from it:

```python
import asyncio
from pathlib import Path

from mockserve.standalone import start_standalone_server


async def run() -> None:
    stop = asyncio.Event()
    await start_standalone_server(
        port=5000,
        expose=False,               # True binds to 0.0.0.0 instead of 127.0.0.1
        static_mock_dir_path=Path("mocks"),
        print_access_log=True,
        shutdown=stop.wait(),       # the server stops when this completes
    )


asyncio.run(run())
```

Without `shutdown` the server runs until it is cancelled. For more control,
build a `mockserve.state.MockServerState` yourself and pass it to
`mockserve.server.start_server(port, expose, state, print_access_log,
shutdown, on_bound)`; `on_bound` is called with the `(host, port)` actually
bound, which is useful with port `0`.

The access log and other messages go through the standard `logging`
module (access lines at INFO level on the `mockserve.server` logger), so
configure logging to see them. Requests to `/__httpmock__/...` are not
written to the access log.

### Static mock files

Every file in the directory whose extension is `.yaml` or `.yml`, or that
has no extension, is read in name order. Each holds one mock with a `when`
section (the requirements) and a `then` section (the response):

```yaml
when:
  method: POST
  path: /users
  header:
    - name: Content-Type
      value: application/json
  json_body_partial:
    - name: Fred
  query_param_exists:
    - verbose
then:
  status: 201
  header:
    - name: Content-Type
      value: application/json
  body: '{"id": 1}'
  delay: 50          # milliseconds
```

Keys under `when`: `path`, `path_contains`, `path_matches`, `method`,
`header`, `header_exists`, `cookie`, `cookie_exists`, `body`, `json_body`,
`json_body_partial`, `body_contains`, `body_matches`,
`query_param_exists`, `query_param`, `x_www_form_urlencoded_key_exists`,
`x_www_form_urlencoded_tuple`. `method` must be an upper-case HTTP method
name.

Keys under `then`: `status`, `header`, `body`, `delay`.

`mockserve.standalone.read_static_mocks` and
`mockserve.standalone.map_to_mock_definition` perform the two loading steps
on their own, and raise `ValueError` for malformed definitions. Mocks loaded
this way are static: they survive `DELETE /__httpmock__/mocks`, and deleting
one by id answers `500`.

## Management API

Paths under `/__httpmock__` are reserved:

| Method   | Path                       | Effect                                              |
|----------|----------------------------|-----------------------------------------------------|
| `GET`    | `/__httpmock__/ping`       | health check, answers `200`                         |
| `POST`   | `/__httpmock__/mocks`      | add a mock; answers `201` with `{"mock_id": id}`    |
| `DELETE` | `/__httpmock__/mocks`      | delete all mocks that are not static, `202`         |
| `GET`    | `/__httpmock__/mocks/{id}` | read one mock as JSON, or `404`                     |
| `DELETE` | `/__httpmock__/mocks/{id}` | delete one mock (`202`), `404` if unknown           |
| `POST`   | `/__httpmock__/verify`     | closest recorded request to the given requirements  |
| `DELETE` | `/__httpmock__/history`    | clear the recorded request history, `202`           |

A mock is posted as `{"request": {...}, "response": {...}}`. The request
part uses the field names of `RequestRequirements` (for example `path`,
`method`, `headers`, `query_param`, `body_contains`, `path_matches`), with
name/value pairs written as two-element lists. The response part has
`status`, `headers`, `body` (a string or a list of byte values) and
`delay` (milliseconds, or `{"secs": ..., "nanos": ...}`). Invalid input
answers `500` with `{"message": ...}`.

Every other request is matched against the mocks. A matching mock's
response is sent after its delay, with status `200` when none is set. A
request that matches no mock gets `404` with a JSON error message.

The server keeps roughly the last hundred requests; older ones are dropped.

## Verification

`POST /__httpmock__/verify` takes request requirements as JSON. Among the
recorded requests that do *not* meet them it picks the one with the
smallest weighted distance (path differences weigh most, then the method)
and answers with that request, its index among the non-matching requests,
and a list of mismatches. Each mismatch has a title and, where it applies,
the expected and actual values, the comparison used, and a line diff. If
every recorded request matches, or none is recorded, the answer is `404`.

## Using it in-process

The parts work without a network:

- `mockserve.state.MockServerState` holds mocks, history and matchers.
- `mockserve.handlers` adds, reads, deletes and finds mocks
  (`add_new_mock`, `read_one_mock`, `delete_one_mock`, `delete_all_mocks`,
  `delete_history`, `find_mock`).
- `mockserve.state.request_matches` and `mockserve.state.verify` check
  requests against requirements.
- `mockserve.routes` and `mockserve.server.route_request` produce the
  responses of the management API and of mock serving.
- `mockserve.models` holds the data types (`HttpMockRequest`,
  `RequestRequirements`, `MockServerHttpResponse`, `MockDefinition`,
  `ActiveMock`, `Mismatch`, `Reason`, `ClosestMatch`).

## What it does not do

There is no command-line program; a server is started from Python as shown
above. There is no client library for registering mocks or verifying
requests from a test: talk to the management API over HTTP, or use the
in-process functions. Mocks and history live in memory only and are lost
when the process ends.