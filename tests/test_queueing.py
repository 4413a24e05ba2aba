import json

import pytest

from darkfactory.prompts import PromptManager, Rename
from darkfactory.queueing import (
    QueuedFile,
    move_to_queue,
    queue_action_handler,
    queue_all_files,
    queue_single_file,
)
from darkfactory.web import Request, handle_errors


class RecordingManager:
    """Sets status for real but reports a fixed list of renames."""

    def __init__(self, queue_dir, renames=()):
        self._real = PromptManager(queue_dir)
        self.renames = list(renames)
        self.normalized = []

    def set_status(self, path, status):
        self._real.set_status(path, status)

    def normalize_filenames(self, directory):
        self.normalized.append(directory)
        return list(self.renames)


@pytest.fixture
def dirs(tmp_path):
    inbox = tmp_path / "inbox"
    queue = tmp_path / "queue"
    inbox.mkdir()
    queue.mkdir()
    return inbox, queue


def _post(handler, target, payload=None, raw=None):
    body = raw if raw is not None else (json.dumps(payload).encode() if payload is not None else b"")
    return handle_errors(handler)(Request("POST", target, body))


def test_queues_single_file(dirs):
    inbox, queue = dirs
    (inbox / "test.md").write_text("# Test Prompt")
    manager = RecordingManager(str(queue))
    handler = queue_action_handler(str(inbox), str(queue), manager)
    response = _post(handler, "/api/v1/queue/action", {"file": "test.md"})
    assert response.status == 200
    assert response.headers["Content-Type"] == "application/json"
    assert response.json() == {"queued": [{"old": "test.md", "new": "test.md"}]}
    assert not (inbox / "test.md").exists()
    assert (queue / "test.md").exists()
    assert "status: queued" in (queue / "test.md").read_text()
    assert manager.normalized == [str(queue)]


def test_nonexistent_file_gives_404(dirs):
    inbox, queue = dirs
    handler = queue_action_handler(str(inbox), str(queue), RecordingManager(str(queue)))
    assert _post(handler, "/api/v1/queue/action", {"file": "nonexistent.md"}).status == 404


def test_missing_file_parameter_gives_400(dirs):
    inbox, queue = dirs
    handler = queue_action_handler(str(inbox), str(queue), RecordingManager(str(queue)))
    assert _post(handler, "/api/v1/queue/action", {"file": ""}).status == 400


def test_invalid_json_gives_400(dirs):
    inbox, queue = dirs
    handler = queue_action_handler(str(inbox), str(queue), RecordingManager(str(queue)))
    assert _post(handler, "/api/v1/queue/action", raw=b"invalid json").status == 400


def test_dotdot_filename_gives_400(dirs):
    inbox, queue = dirs
    handler = queue_action_handler(str(inbox), str(queue), RecordingManager(str(queue)))
    assert _post(handler, "/api/v1/queue/action", {"file": ".."}).status == 400


def test_path_traversal_is_reduced_to_base_name(dirs, tmp_path):
    inbox, queue = dirs
    (tmp_path / "outside.md").write_text("# Outside")
    handler = queue_action_handler(str(inbox), str(queue), RecordingManager(str(queue)))
    response = _post(handler, "/api/v1/queue/action", {"file": "../outside.md"})
    assert response.status == 404
    assert (tmp_path / "outside.md").exists()


def test_get_not_allowed(dirs):
    inbox, queue = dirs
    handler = handle_errors(queue_action_handler(str(inbox), str(queue), RecordingManager(str(queue))))
    assert handler(Request("GET", "/api/v1/queue/action")).status == 405
    assert handler(Request("GET", "/api/v1/queue/action/all")).status == 405


def test_reports_normalized_filename(dirs):
    inbox, queue = dirs
    (inbox / "test.md").write_text("# Test Prompt")
    manager = RecordingManager(
        str(queue),
        [Rename(old_path=str(queue / "test.md"), new_path=str(queue / "001-test.md"))],
    )
    handler = queue_action_handler(str(inbox), str(queue), manager)
    response = _post(handler, "/api/v1/queue/action", {"file": "test.md"})
    assert response.status == 200
    assert response.json()["queued"] == [{"old": "test.md", "new": "001-test.md"}]


def test_real_manager_numbers_file(dirs):
    inbox, queue = dirs
    (inbox / "test.md").write_text("# Test Prompt")
    handler = queue_action_handler(str(inbox), str(queue), PromptManager(str(queue)))
    response = _post(handler, "/api/v1/queue/action", {"file": "test.md"})
    assert response.json()["queued"] == [{"old": "test.md", "new": "001-test.md"}]
    assert (queue / "001-test.md").exists()


def test_queues_all_md_files(dirs):
    inbox, queue = dirs
    (inbox / "test1.md").write_text("# Test 1")
    (inbox / "test2.md").write_text("# Test 2")
    handler = queue_action_handler(str(inbox), str(queue), RecordingManager(str(queue)))
    response = _post(handler, "/api/v1/queue/action/all")
    assert response.status == 200
    assert response.headers["Content-Type"] == "application/json"
    assert len(response.json()["queued"]) == 2
    assert not (inbox / "test1.md").exists()
    assert not (inbox / "test2.md").exists()


def test_queue_all_skips_non_md(dirs):
    inbox, queue = dirs
    (inbox / "test.md").write_text("# Test")
    (inbox / "test.txt").write_text("text")
    handler = queue_action_handler(str(inbox), str(queue), RecordingManager(str(queue)))
    response = _post(handler, "/api/v1/queue/action/all")
    assert response.json()["queued"] == [{"old": "test.md", "new": "test.md"}]
    assert (inbox / "test.txt").exists()


def test_queue_all_empty_inbox(dirs):
    inbox, queue = dirs
    handler = queue_action_handler(str(inbox), str(queue), RecordingManager(str(queue)))
    response = _post(handler, "/api/v1/queue/action/all")
    assert response.status == 200
    assert response.json() == {"queued": []}


def test_queue_single_file_missing_raises(dirs):
    inbox, queue = dirs
    with pytest.raises(FileNotFoundError):
        queue_single_file(str(inbox), str(queue), RecordingManager(str(queue)), "absent.md")


def test_queue_single_file_returns_queued_file(dirs):
    inbox, queue = dirs
    (inbox / "a.md").write_text("# A")
    result = queue_single_file(str(inbox), str(queue), RecordingManager(str(queue)), "a.md")
    assert result == QueuedFile(old="a.md", new="a.md")


def test_move_to_queue_ignores_unrelated_renames(dirs):
    inbox, queue = dirs
    (inbox / "b.md").write_text("# B")
    manager = RecordingManager(
        str(queue),
        [Rename(old_path=str(queue / "other.md"), new_path=str(queue / "001-other.md"))],
    )
    assert move_to_queue(str(inbox), str(queue), manager, "b.md") == "b.md"


def test_queue_all_files_order(dirs):
    inbox, queue = dirs
    (inbox / "b.md").write_text("# B")
    (inbox / "a.md").write_text("# A")
    result = queue_all_files(str(inbox), str(queue), RecordingManager(str(queue)))
    assert [item.old for item in result] == ["a.md", "b.md"]


def test_queued_file_to_dict():
    assert QueuedFile(old="x.md", new="001-x.md").to_dict() == {"old": "x.md", "new": "001-x.md"}