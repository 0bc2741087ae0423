"""Test doubles for catalog tests: a controllable clock and a scripted transport."""

import threading
from typing import Any, Dict, List, Optional

from src.catalog.outcomes import FetchErrorCode, FetchOutcome


HOUR = 60 * 60
DAY = 24 * HOUR


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """Records every upstream call and replies with queued or default outcomes.

    Replies are queued per endpoint in `*_replies`; when a queue is empty the
    endpoint's default outcome is used. Setting `gate` makes every call block
    until the gate is set, so concurrency tests can overlap callers.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.search_replies: List[FetchOutcome] = []
        self.detail_replies: List[FetchOutcome] = []
        self.batch_replies: List[FetchOutcome] = []
        self.default_search = FetchOutcome.success({"foods": []})
        self.default_detail = FetchOutcome.not_found("no such food")
        self.default_batch = FetchOutcome.success([])
        self.gate: Optional[threading.Event] = None
        self.entered = threading.Event()
        self._lock = threading.Lock()

    def search_foods(self, body: Dict[str, Any]) -> FetchOutcome:
        return self._reply(("search", body), self.search_replies, self.default_search)

    def get_food(self, fdc_id: int) -> FetchOutcome:
        return self._reply(("detail", fdc_id), self.detail_replies, self.default_detail)

    def get_foods(self, fdc_ids: List[int]) -> FetchOutcome:
        return self._reply(("batch", list(fdc_ids)), self.batch_replies, self.default_batch)

    def _reply(self, call: tuple, queue: List[FetchOutcome], default: FetchOutcome) -> FetchOutcome:
        with self._lock:
            self.calls.append(call)
            reply = queue.pop(0) if queue else default
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        return reply

    def calls_to(self, endpoint: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == endpoint]


def search_response(*foods: Dict[str, Any]) -> FetchOutcome:
    return FetchOutcome.success({
        "totalHits": len(foods),
        "currentPage": 1,
        "totalPages": 1,
        "foods": list(foods),
    })


def food(fdc_id: int, description: str = "Test Food", **extra: Any) -> Dict[str, Any]:
    record = {"fdcId": fdc_id, "description": description, "dataType": "Foundation"}
    record.update(extra)
    return record


def transient(code: FetchErrorCode = FetchErrorCode.API_ERROR) -> FetchOutcome:
    return FetchOutcome.transient(code, "simulated failure")


