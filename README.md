# darkfactory

Building blocks for a daemon that works through a queue of Markdown prompt
files: reading and numbering prompt files, reporting status, answering API
requests and watching the queue directory for changes.

## Installation

```
pip install darkfactory
```

## Prompt files

Prompts are Markdown files with an optional frontmatter block:

```
---
status: queued
container: worker-001
started: 2026-03-01T12:00:00Z
---
# Title of the prompt
```

`darkfactory.prompts.PromptManager(queue_dir)` works on such files:

- `read_frontmatter(path)` returns a `Frontmatter` with `status`,
  `container`, `started` and `completed` (empty strings when absent).
- `set_status(path, status)` writes the `status` field, adding a
  frontmatter block if the file has none. `status` is a `PromptStatus`
  (`QUEUED`, `EXECUTING`, `COMPLETED`) or a plain string.
- `title(path)` returns the first `# ` heading of the body and raises
  `ValueError` when there is none.
- `list_queued()` returns a `Prompt` for every `.md` file in the queue
  directory whose status is `queued` or empty, in filename order.
- `has_executing()` tells whether any prompt there is `executing`.
- `normalize_filenames(directory)` gives every `.md` file without an `NNN-`
  prefix the next free three-digit number and returns a `Rename` for each
  file it moved.

## Status

`darkfactory.status.Checker` collects a `Status` from the queue, completed,
ideas and log directories:

```python
from darkfactory.prompts import PromptManager
from darkfactory.status import Checker
from darkfactory.formatter import format_status

manager = PromptManager("prompts/queue")
checker = Checker("prompts/queue", "prompts/completed", "prompts/ideas", manager)
print(format_status(checker.get_status()))
```

`Checker` also takes `log_dir` (default `prompts/log`) and `server_port`
(default `8080`). It offers:

- `get_status()`: the executing prompt and how long it has run, the queued
  prompt names and count, the number of completed and idea files (a missing
  directory counts as zero) and the most recently modified `.log` file with
  its size.
- `get_queued_prompts()`: a `QueuedPrompt` (name, title, size) per queued
  prompt; the file name stands in for a missing title.
- `get_completed_prompts(limit)`: `CompletedPrompt` entries, most recent
  first, using the frontmatter `completed` timestamp or else the file's
  modification time; at most `limit` when it is positive.

`Status`, `QueuedPrompt` and `CompletedPrompt` convert to and from JSON-ready
dictionaries with `to_dict()` and `from_dict()`. `format_duration` renders
durations such as `45s`, `2m30s` or `1h15m20s`.

`darkfactory.formatter.format_status(status)` renders the text block shown
above, and `format_bytes(size)` renders sizes such as `512 B`, `1.5 KB` or
`2.0 MB`.

## HTTP handlers

A handler is a callable that takes a `darkfactory.web.Request` and returns a
`darkfactory.web.Response`. `handle_errors` wraps a handler so that an
`HttpError` becomes a response with its status code and any other exception
becomes a 500.

```python
from darkfactory.handlers import completed_handler
from darkfactory.web import Request, handle_errors

handler = handle_errors(completed_handler(checker))
response = handler(Request("GET", "/api/v1/completed?limit=5"))
print(response.status, response.json())
```

Available handlers, each answering other methods with 405:

- `darkfactory.web.health_handler()`: GET, returns `{"status":"ok"}`.
- `darkfactory.handlers.status_handler(checker)`: GET, the status.
- `darkfactory.handlers.queue_handler(checker)`: GET, the queued prompts.
- `darkfactory.handlers.completed_handler(checker)`: GET, completed prompts;
  the `limit` query parameter defaults to 10 and is capped at 1000.
- `darkfactory.handlers.inbox_handler(inbox_dir)`: GET, the `.md` files in
  the inbox as `{"files": [{"name": ...}]}`.
- `darkfactory.queueing.queue_action_handler(inbox_dir, queue_dir, manager)`:
  POST with a body like `{"file": "idea.md"}` moves that inbox file into the
  queue, marks it queued and numbers it, answering
  `{"queued": [{"old": ..., "new": ...}]}`; a path ending in `/all` queues
  every `.md` file in the inbox. A missing or unparsable `file` gives 400,
  a file not in the inbox gives 404.

The same moves are available directly as `queue_single_file`,
`queue_all_files` and `move_to_queue` in `darkfactory.queueing`.

## Watching the queue

`darkfactory.watcher.Watcher` watches the queue directory. When a `.md` file
is created, modified or moved in, it waits for the debounce interval (per
file, restarted on every change), calls `normalize_filenames` on the queue
directory and puts a signal on the `ready` queue without blocking.
Normalization errors are logged and watching continues.

```python
import queue
import threading

from darkfactory.watcher import Watcher

ready = queue.Queue(maxsize=1)
stop = threading.Event()
watcher = Watcher("prompts/queue", manager, ready, debounce=0.5)
threading.Thread(target=watcher.watch, args=(stop,)).start()
# ... later
stop.set()
```

`watch` raises `FileNotFoundError` if the directory does not exist.

## What this package does not do

- It has no command-line program and starts no daemon or prompt executor.
- It does not open a network socket: `darkfactory.web.Server` only runs the
  serve function it is given, and routing requests to the handlers is left
  to the caller.
- It does not detect a running daemon or container: `Status.daemon` is
  always `not running` and `container_running` is always false.

## Running the tests

```
pip install -e ".[test]"
pytest
```