from __future__ import annotations

import asyncio
import json
from pathlib import Path
import sys
from typing import Any

import pytest

from bible_models import BookRecord, VersesData, build_chapter, save_verses_data
from delivery import DeliveryEngine
from errors import DeliveryAbortedError, PayloadLimitError
import publish_bible as pub


def _sample_bible() -> VersesData:
    def book(name: str, chapters: int) -> BookRecord:
        return BookRecord(
            name=name,
            chapters=tuple(
                build_chapter(f"{name} {c}", [f"{name} {c}:{v}" for v in range(1, 4)])
                for c in range(1, chapters + 1)
            ),
        )

    return VersesData(
        version="esv",
        ot=(book("Genesis", 2), book("Exodus", 1)),
        nt=(book("Matthew", 2),),
    )


class RecordingNotion:
    def __init__(self) -> None:
        self.bodies: list[dict[str, Any]] = []

    async def create_page(self, body: dict[str, Any]) -> dict[str, Any]:
        self.bodies.append(body)
        return {"id": str(len(self.bodies))}


async def _no_sleep(_seconds: float) -> None:
    return None


def test_process_bible_delivers_books_in_order() -> None:
    client = RecordingNotion()
    engine = DeliveryEngine(client, sleep=_no_sleep)

    created = asyncio.run(pub.process_bible(_sample_bible(), engine=engine, database_id="db"))

    assert created == 5
    props = [b["properties"] for b in client.bodies]
    assert [p["Name"]["title"][0]["text"]["content"] for p in props] == [
        "Genesis 1",
        "Genesis 2",
        "Exodus 1",
        "Matthew 1",
        "Matthew 2",
    ]
    assert [p["Book Index"]["number"] for p in props] == [1, 1, 2, 3, 3]
    assert [p["Testament"]["select"]["name"] for p in props] == ["OT", "OT", "OT", "NT", "NT"]
    assert props[3]["Book"]["select"]["color"] == "yellow"


def test_request_sequence_is_deterministic() -> None:
    first = [r.to_notion() for r in pub.build_bible_requests(_sample_bible(), "db")]
    second = [r.to_notion() for r in pub.build_bible_requests(_sample_bible(), "db")]
    assert first == second
    assert len(first) == 5


def _write_bible(tmp_path: Path) -> Path:
    save_verses_data(_sample_bible(), tmp_path / "esv" / "versesData.json")
    return tmp_path


def test_print_requests_only_sends_nothing(monkeypatch, tmp_path: Path, capsys) -> None:
    data_dir = _write_bible(tmp_path)

    async def fail_publish(*args, **kwargs):  # noqa: ARG001
        raise AssertionError("publish must not run in print-only mode")

    monkeypatch.setattr(pub, "publish", fail_publish)
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "publish_bible.py",
            "esv",
            "--data-dir",
            str(data_dir),
            "--database-id",
            "db-9",
            "--print-requests-only",
        ],
    )

    pub.main()

    out = capsys.readouterr().out
    # log lines may share stdout with the JSON dump
    printed = json.loads(out[out.index("[\n"):])
    assert len(printed) == 5
    assert printed[0]["parent"] == {"database_id": "db-9"}


def test_schema_violation_aborts_before_delivery(monkeypatch, tmp_path: Path) -> None:
    path = tmp_path / "esv" / "versesData.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"version": "esv", "ot": []}), encoding="utf-8")

    async def fail_publish(*args, **kwargs):  # noqa: ARG001
        raise AssertionError("publish must not run for invalid data")

    monkeypatch.setattr(pub, "publish", fail_publish)
    monkeypatch.setattr(pub.settings, "notion_token", "TOKEN123")
    monkeypatch.setattr(
        sys, "argv", ["publish_bible.py", "esv", "--data-dir", str(tmp_path), "--database-id", "db"]
    )

    with pytest.raises(SystemExit) as excinfo:
        pub.main()
    assert excinfo.value.code == 1


def test_aborted_delivery_exits_non_zero(monkeypatch, tmp_path: Path) -> None:
    data_dir = _write_bible(tmp_path)

    async def aborting_publish(data, **kwargs):  # noqa: ARG001
        raise DeliveryAbortedError("Genesis 2", 10, RuntimeError("502"))

    monkeypatch.setattr(pub, "publish", aborting_publish)
    monkeypatch.setattr(pub.settings, "notion_token", "TOKEN123")
    monkeypatch.setattr(
        sys, "argv", ["publish_bible.py", "esv", "--data-dir", str(data_dir), "--database-id", "db"]
    )

    with pytest.raises(SystemExit) as excinfo:
        pub.main()
    assert excinfo.value.code == 1


def _bible_with_oversize_exodus() -> VersesData:
    return VersesData(
        version="esv",
        ot=(
            BookRecord(name="Genesis", chapters=(build_chapter("Genesis 1", ["ok"]),)),
            BookRecord(name="Exodus", chapters=(build_chapter("Exodus 1", ["x" * 2001]),)),
        ),
        nt=(),
    )


def test_oversize_span_stops_run_before_any_page_is_sent() -> None:
    client = RecordingNotion()
    engine = DeliveryEngine(client, sleep=_no_sleep)

    with pytest.raises(PayloadLimitError):
        asyncio.run(
            pub.process_bible(_bible_with_oversize_exodus(), engine=engine, database_id="db")
        )

    assert client.bodies == []


def test_oversize_span_exits_non_zero(monkeypatch, tmp_path: Path) -> None:
    save_verses_data(_bible_with_oversize_exodus(), tmp_path / "esv" / "versesData.json")
    client = RecordingNotion()

    class FakeClient:
        def __init__(self, token: str, **kwargs: Any) -> None:
            pass

        async def __aenter__(self) -> RecordingNotion:
            return client

        async def __aexit__(self, *exc_info: object) -> None:
            return None

    monkeypatch.setattr(pub, "NotionClient", FakeClient)
    monkeypatch.setattr(pub, "DeliveryEngine", lambda c: DeliveryEngine(c, sleep=_no_sleep))
    monkeypatch.setattr(pub.settings, "notion_token", "TOKEN123")
    monkeypatch.setattr(
        sys, "argv", ["publish_bible.py", "esv", "--data-dir", str(tmp_path), "--database-id", "db"]
    )

    with pytest.raises(SystemExit) as excinfo:
        pub.main()
    assert excinfo.value.code == 1
    assert client.bodies == []


def test_publish_uses_configured_client(monkeypatch) -> None:
    created_with: dict[str, Any] = {}
    client = RecordingNotion()

    class FakeClient:
        def __init__(self, token: str, **kwargs: Any) -> None:
            created_with.update(token=token, **kwargs)

        async def __aenter__(self) -> RecordingNotion:
            return client

        async def __aexit__(self, *exc_info: object) -> None:
            return None

    monkeypatch.setattr(pub, "NotionClient", FakeClient)
    monkeypatch.setattr(pub, "DeliveryEngine", lambda c: DeliveryEngine(c, sleep=_no_sleep))

    created = asyncio.run(
        pub.publish(
            _sample_bible(),
            token="TOKEN123",
            database_id="db",
            base_url="https://notion.test",
            notion_version="2022-06-28",
        )
    )

    assert created == 5
    assert created_with == {
        "token": "TOKEN123",
        "base_url": "https://notion.test",
        "notion_version": "2022-06-28",
    }
    assert len(client.bodies) == 5
