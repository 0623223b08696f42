# wechaty-puppet

Building blocks for chatbots that talk through a *puppet*: a backend that
owns the connection to a chat service and hands out contacts, rooms,
messages and friendship requests as plain payloads.

## Modules

- `wechaty_puppet.schemas` — enums (`MessageType`, `ContactGender`,
  `ScanStatus`, `PayloadType`, `PuppetEventName`, …) and dataclasses for
  payloads, events and query filters. `MiniProgramPayload.to_json()` and
  `UrlLinkPayload.to_json()` serialise with camelCase keys;
  `RoomQueryFilter.is_empty()` / `is_all()` report which fields are set;
  `event_names()` lists every event name except `UNKNOWN`.
- `wechaty_puppet.filebox` — `FileBox`, a uniform handle for files built
  with `from_base64`, `from_url`, `from_file`, `from_qrcode` (renders a PNG
  QR code), `from_stream` or `from_uuid`. Boxes offer `open()`,
  `to_bytes()`, `to_base64()`, `to_data_url()`, `to_file()`, `to_uuid()`
  and, for base64, URL, QR code and UUID boxes, `to_json()`, which
  `from_json()` reads back. UUID boxes need `set_uuid_loader()` and
  `set_uuid_saver()`. Missing input raises a `FileBoxError` subclass
  (`NoBase64DataError`, `NoUrlError`, `NoPathError`, `NoQRCodeError`,
  `NoUuidError`).
- `wechaty_puppet.events` — `EventEmitter`, a synchronous, thread-safe
  emitter (`on`, `once`, `emit`, `listeners`, `listener_count`,
  `remove_listener`, `remove_all_listeners`, `clear`, `max_listeners`).
- `wechaty_puppet.messages` — `adapt_message()` normalises payloads:
  mini-program XML in messages of unknown type (`fix_unknown_message`,
  `parse_mini_app`) and revoke XML in recalled messages
  (`parse_recalled_id`).
- `wechaty_puppet.memory_card` and `wechaty_puppet.storage` — `MemoryCard`,
  a key/value store saved through a `Storage`: `FileStorage` writes
  `<name>.memory-card.json`, `NopStorage` keeps nothing.
- `wechaty_puppet.helper` — `Async` (runs tasks on a bounded thread pool and
  collects `AsyncResult`s in order), `base64_orig_length`, `file_exists`,
  `http_get`.
- `wechaty_puppet.config` — `PuppetOption` and `service_token_from_env()` /
  `service_endpoint_from_env()`.
- `wechaty_puppet.log` — `get_logger()` and `resolve_level()`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

File boxes:

```python
from wechaty_puppet.filebox import from_base64, from_json

box = from_base64("RmlsZUJveEJhc2U2NAo=", name="test.txt")
text = box.to_json()
same = from_json(text)
print(same.to_bytes())
```

Events:

```python
from wechaty_puppet.events import EventEmitter

emitter = EventEmitter()
emitter.on("message", lambda text: print("got", text))
emitter.once("message", lambda text: print("first only", text))
emitter.emit("message", "hello")
emitter.emit("message", "again")
```

Memory card:

```python
from wechaty_puppet.memory_card import MemoryCard

card = MemoryCard("bot")          # stored in ./bot.memory-card.json
card.set_int("counter", 1)
card.save()

restored = MemoryCard("bot")
restored.load()
print(restored.get_int("counter"))
```

## Configuration

Logging follows the `WECHATY_LOG` environment variable: `silent`, `silly`,
`verbose`, or a level name such as `info`, `debug` or `trace`; anything else
gives `info`. `service_token_from_env()` reads
`WECHATY_PUPPET_SERVICE_TOKEN`, falling back with a warning to
`WECHATY_PUPPET_HOSTIE_TOKEN`; `service_endpoint_from_env()` reads
`WECHATY_PUPPET_SERVICE_ENDPOINT` only.

## What this package does not do

It has no puppet class: there is no payload cache, no contact, room or
message search and no dirty-payload handling. It does not connect to a
puppet service, send or receive messages, or provide a command-line
program; the options and environment lookups above are only there for code
that does.