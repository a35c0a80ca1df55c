import pytest

from solver import cp_isolate


class _FakeQueue:
    def __init__(self, item=None):
        self.item = item

    def get(self, timeout=None):
        if self.item is None:
            raise TimeoutError("empty")
        return self.item


class _FakeProcess:
    def __init__(self, alive=False, exitcode=0):
        self._alive = alive
        self.exitcode = exitcode
        self.daemon = False
        self.terminated = False

    def start(self):
        pass

    def join(self, timeout=None):
        pass

    def is_alive(self):
        return self._alive

    def terminate(self):
        self.terminated = True
        self._alive = False


class _FakeContext:
    def __init__(self, queue, process):
        self._queue = queue
        self._process = process

    def Queue(self):
        return self._queue

    def Process(self, target=None, args=()):
        return self._process


def _patch_context(monkeypatch, queue, process):
    monkeypatch.setattr(cp_isolate.mp, "get_context", lambda method: _FakeContext(queue, process))


def test_isolated_run_returns_child_result(monkeypatch):
    _patch_context(monkeypatch, _FakeQueue(("ok", True, ["s"], None)), _FakeProcess())
    assert cp_isolate.run_cp_sat_isolated(31, 1, 1.0) == (True, ["s"], None, None)


def test_isolated_run_kills_hung_child(monkeypatch):
    proc = _FakeProcess(alive=True)
    _patch_context(monkeypatch, _FakeQueue(None), proc)
    ok, solutions, reason, note = cp_isolate.run_cp_sat_isolated(31, 1, 0.1)
    assert not ok and solutions == []
    assert "timebox" in reason
    assert note == "killed: timeout"
    assert proc.terminated


def test_isolated_run_reports_child_crash(monkeypatch):
    _patch_context(monkeypatch, _FakeQueue(None), _FakeProcess(alive=False, exitcode=-11))
    ok, _solutions, reason, note = cp_isolate.run_cp_sat_isolated(31, 1, 0.1)
    assert not ok
    assert "child exit -11" in reason
    assert note == "child crashed"


def test_isolated_run_passes_child_exception_reason(monkeypatch):
    _patch_context(monkeypatch, _FakeQueue(("exc", False, [], "boom")), _FakeProcess())
    assert cp_isolate.run_cp_sat_isolated(31, 1, 1.0) == (False, [], "boom", None)
