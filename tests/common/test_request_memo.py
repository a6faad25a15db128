import threading
from decimal import Decimal

from flask import Flask

from conftest import InMemoryStatuses
from src.course_attendance.course_attendance.common.request_cache import RequestMemo
from src.course_attendance.course_attendance.statuses.model import Status
from src.course_attendance.course_attendance.statuses.service import StatusCatalog


def _counting_loader(calls):
    def load():
        calls.append(1)
        return len(calls)

    return load


def test_each_request_starts_with_an_empty_memo():
    app = Flask(__name__)
    memo = RequestMemo("demo")
    calls = []

    with app.test_request_context():
        assert memo.get_or_load("k", _counting_loader(calls)) == 1
        assert memo.get_or_load("k", _counting_loader(calls)) == 1
    with app.test_request_context():
        assert memo.get_or_load("k", _counting_loader(calls)) == 2


def test_threads_do_not_share_entries():
    memo = RequestMemo("demo")
    calls = []
    memo.get_or_load("k", _counting_loader(calls))

    seen = []

    def other_thread():
        seen.append(memo.get_or_load("k", _counting_loader(calls)))
        memo.clear()

    worker = threading.Thread(target=other_thread)
    worker.start()
    worker.join()

    assert seen == [2]
    assert memo.get_or_load("k", _counting_loader(calls)) == 1


def test_catalog_clear_in_another_thread_keeps_this_listing(statuses):
    repo = InMemoryStatuses(statuses)
    catalog = StatusCatalog(repo)
    assert catalog.highest(1).acronym == "P"

    repo.by_id[5] = Status(5, 1, "E", "Excused", Decimal("5"))
    worker = threading.Thread(target=catalog.clear_cache)
    worker.start()
    worker.join()

    assert catalog.highest(1).acronym == "P"
