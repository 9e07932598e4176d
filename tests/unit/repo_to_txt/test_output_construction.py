from __future__ import annotations

import io
import zipfile

import pytest
from conftest import FakeClient, blob

from repo_to_txt.config import ContentPayload
from repo_to_txt.exceptions import (
    NoFilesSelectedError,
    NotFoundError,
    RateLimitedError,
    TransportFailureError,
    UnknownPathError,
)
from repo_to_txt.output_construction import (
    AggregatedOutput,
    FileSection,
    aggregate_text,
    build_archive,
    decode_payload,
)
from repo_to_txt.tree import materialize, sort_entries


def _root(client: FakeClient):
    return materialize(sort_entries(client.listing)).root


@pytest.mark.unit
def test_decode_payload_base64_with_line_breaks() -> None:
    payload = ContentPayload(content="aGVsbG8g\nd29ybGQ=\n", encoding="base64")

    assert decode_payload(payload) == "hello world"


@pytest.mark.unit
def test_decode_payload_plain_text_passes_through() -> None:
    assert decode_payload(ContentPayload(content="as is", encoding="utf-8")) == "as is"
    assert decode_payload(ContentPayload(content="untagged")) == "untagged"


@pytest.mark.unit
def test_decode_payload_replaces_invalid_utf8() -> None:
    payload = ContentPayload(content="/w==", encoding="base64")

    assert decode_payload(payload) == "�"


@pytest.mark.unit
def test_decode_payload_rejects_unknown_encoding() -> None:
    with pytest.raises(TransportFailureError) as exc_info:
        decode_payload(ContentPayload(content="x", encoding="rot13"), "a.py")

    assert exc_info.value.target == "a.py"


@pytest.mark.unit
def test_aggregated_output_text_format() -> None:
    output = AggregatedOutput(sections=[FileSection(path="a.py", content="x"), FileSection(path="dir/c.ts", content="y")])

    assert output.text == "// --- a.py ---\nx\n\n// --- dir/c.ts ---\ny"


@pytest.mark.unit
def test_aggregate_text_concatenates_in_selection_order(fake_client: FakeClient) -> None:
    output = aggregate_text(["a.py", "dir/c.ts"], _root(fake_client), fake_client)

    assert output.text == "// --- a.py ---\nx\n\n// --- dir/c.ts ---\ny"
    assert [s.path for s in output.sections] == ["a.py", "dir/c.ts"]


@pytest.mark.unit
def test_aggregate_text_follows_insertion_not_tree_order(fake_client: FakeClient) -> None:
    output = aggregate_text(["dir/c.ts", "a.py"], _root(fake_client), fake_client, workers=2)

    assert output.text == "// --- dir/c.ts ---\ny\n\n// --- a.py ---\nx"


@pytest.mark.unit
def test_aggregate_text_forwards_token(fake_client: FakeClient) -> None:
    aggregate_text(["a.py"], _root(fake_client), fake_client, token="secret")

    assert fake_client.calls == [("a.py", "secret")]


@pytest.mark.unit
def test_empty_selection_fails_without_retrieval(fake_client: FakeClient) -> None:
    root = _root(fake_client)

    with pytest.raises(NoFilesSelectedError):
        aggregate_text([], root, fake_client)
    with pytest.raises(NoFilesSelectedError):
        build_archive([], root, fake_client)

    assert fake_client.calls == []
    assert str(NoFilesSelectedError()) == "No files selected."


@pytest.mark.unit
def test_unknown_path_fails_before_any_retrieval(fake_client: FakeClient) -> None:
    with pytest.raises(UnknownPathError) as exc_info:
        aggregate_text(["a.py", "gone.py"], _root(fake_client), fake_client)

    assert exc_info.value.path == "gone.py"
    assert fake_client.calls == []


@pytest.mark.unit
@pytest.mark.parametrize("workers", [1, 3])
def test_failure_on_second_path_aborts_and_names_it(workers: int) -> None:
    client = FakeClient(
        {
            "one.py": "1",
            "two.py": NotFoundError(target="https://api.github.test/blobs/two.py"),
            "three.py": "3",
        },
    )

    with pytest.raises(TransportFailureError) as exc_info:
        aggregate_text(["one.py", "two.py", "three.py"], _root(client), client, workers=workers)

    assert exc_info.value.target == "two.py"
    assert "two.py" in str(exc_info.value)
    if workers == 1:
        assert [c[0] for c in client.calls] == ["one.py", "two.py"]


@pytest.mark.unit
def test_rate_limit_propagates_unchanged() -> None:
    client = FakeClient({"a.py": RateLimitedError(target="blob")})

    with pytest.raises(RateLimitedError):
        aggregate_text(["a.py"], _root(client), client)


@pytest.mark.unit
def test_build_archive_preserves_paths_and_total_size() -> None:
    payloads = {"a.py": b"print(1)\n", "dir/sub/img.png": bytes(range(256)), "dir/c.ts": b""}
    client = FakeClient(payloads)
    selected = ["dir/sub/img.png", "a.py", "dir/c.ts"]

    result = build_archive(selected, _root(client), client, workers=2)

    assert result.total_size == sum(len(b) for b in payloads.values())
    assert result.file_count == 3
    with zipfile.ZipFile(io.BytesIO(result.data)) as zf:
        assert zf.namelist() == selected
        assert zf.read("dir/sub/img.png") == bytes(range(256))
    assert result.size_label == f"ZIP: {result.total_size / 1024:.2f} KB"


@pytest.mark.unit
def test_build_archive_failure_produces_nothing() -> None:
    client = FakeClient({"a.py": b"a", "b.py": TransportFailureError(target="b", reason="reset"), "c.py": b"c"})

    with pytest.raises(TransportFailureError) as exc_info:
        build_archive(["a.py", "b.py", "c.py"], _root(client), client)

    assert exc_info.value.target == "b.py"
