# tests/unit/test_documents.py
"""
针对 `deepl_hub.documents.DocumentTranslator` 的单元测试。

所有 HTTP 交互都由 FakeApi 按脚本应答，等待由 RecordingSleep 记录而不真正休眠。
"""

import asyncio
import io
from pathlib import Path

import httpx
import pydantic
import pytest
from structlog.testing import capture_logs

from conftest import FakeApi, RecordingSleep
from deepl_hub.core.exceptions import (
    ApiError,
    AuthorizationError,
    DocumentNotReadyError,
    DocumentTranslationError,
    ValidationError,
)
from deepl_hub.core.types import DocumentHandle, DocumentState, DocumentTranslateOptions
from deepl_hub.documents import DocumentTranslator
from deepl_hub.transport import HttpxRestClient

UPLOAD = "/v2/document/"
STATUS = "/v2/document/doc-1"
RESULT = "/v2/document/doc-1/result"
DOCUMENT_KEY = "very-secret-document-key"
HANDLE_JSON = {"document_id": "doc-1", "document_key": DOCUMENT_KEY}


@pytest.fixture
def translator(
    rest_client: HttpxRestClient, recording_sleep: RecordingSleep
) -> DocumentTranslator:
    return DocumentTranslator(rest_client, sleep=recording_sleep)


@pytest.fixture
def handle() -> DocumentHandle:
    return DocumentHandle.model_validate(HANDLE_JSON)


def script_successful_job(fake_api: FakeApi, result: bytes = b"Hallo Welt") -> None:
    """上传成功 → 排队 → 翻译中 (剩余 10 秒) → 完成 → 下载。"""
    fake_api.add("POST", UPLOAD, json=HANDLE_JSON)
    fake_api.add("POST", STATUS, json={"document_id": "doc-1", "status": "queued"})
    fake_api.add(
        "POST",
        STATUS,
        json={"document_id": "doc-1", "status": "translating", "seconds_remaining": 10},
    )
    fake_api.add(
        "POST",
        STATUS,
        json={"document_id": "doc-1", "status": "done", "billed_characters": 42},
    )
    fake_api.add("POST", RESULT, content=result)


# --- 上传 ---


@pytest.mark.asyncio
async def test_upload_sends_file_and_params(
    translator: DocumentTranslator, fake_api: FakeApi
) -> None:
    fake_api.add("POST", UPLOAD, json=HANDLE_JSON)

    handle = await translator.upload(
        b"Hello world",
        "hello.txt",
        "de",
        source_lang="EN",
        options=DocumentTranslateOptions(glossary_id="g-1"),
    )

    assert handle.document_id == "doc-1"
    assert handle.document_key.get_secret_value() == DOCUMENT_KEY
    (request,) = fake_api.requests
    body = request.content
    assert b'filename="hello.txt"' in body
    assert b"Hello world" in body
    assert b'name="target_lang"' in body
    assert b'name="source_lang"' in body
    assert b'name="glossary_id"' in body


@pytest.mark.asyncio
async def test_upload_validation_happens_before_any_request(
    translator: DocumentTranslator, fake_api: FakeApi
) -> None:
    with pytest.raises(ValidationError):
        await translator.upload(b"x", "a.txt", "en")
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_upload_file_uses_file_name(
    translator: DocumentTranslator, fake_api: FakeApi, tmp_path: Path
) -> None:
    input_path = tmp_path / "report.docx"
    input_path.write_bytes(b"docx-bytes")
    fake_api.add("POST", UPLOAD, json=HANDLE_JSON)

    await translator.upload_file(input_path, "de")

    assert b'filename="report.docx"' in fake_api.requests[0].content


@pytest.mark.asyncio
async def test_upload_response_without_document_key_raises_api_error(
    translator: DocumentTranslator, fake_api: FakeApi
) -> None:
    fake_api.add("POST", UPLOAD, json={"document_id": "doc-1"})

    with pytest.raises(ApiError, match="响应格式无效") as excinfo:
        await translator.upload(b"x", "a.txt", "de")

    assert excinfo.value.status_code == 200


def test_handle_repr_hides_document_key(handle: DocumentHandle) -> None:
    assert DOCUMENT_KEY not in repr(handle)
    assert DOCUMENT_KEY not in str(handle)


# --- 状态与等待 ---


@pytest.mark.asyncio
async def test_get_status_sends_document_key(
    translator: DocumentTranslator, fake_api: FakeApi, handle: DocumentHandle
) -> None:
    fake_api.add(
        "POST", STATUS, json={"status": "translating", "seconds_remaining": 5}
    )
    status = await translator.get_status(handle)

    assert status.status is DocumentState.TRANSLATING
    assert status.seconds_remaining == 5
    assert fake_api.form(fake_api.requests[0]) == [("document_key", DOCUMENT_KEY)]


@pytest.mark.asyncio
async def test_wait_until_done_backs_off_between_polls(
    translator: DocumentTranslator,
    fake_api: FakeApi,
    recording_sleep: RecordingSleep,
    handle: DocumentHandle,
) -> None:
    """测试三次查询后成功，且两次等待分别为无提示的 1 秒与 10/2+1 秒。"""
    script_successful_job(fake_api)

    status = await translator.wait_until_done(handle)

    assert status.done
    assert status.billed_characters == 42
    assert len(fake_api.calls("POST", STATUS)) == 3
    assert recording_sleep.calls == [1.0, 6.0]


@pytest.mark.asyncio
async def test_wait_until_done_with_flag_form_statuses(
    translator: DocumentTranslator,
    fake_api: FakeApi,
    recording_sleep: RecordingSleep,
    handle: DocumentHandle,
) -> None:
    """测试 ok/done 形式的状态序列：剩余 10 秒、剩余 0 秒、完成，共查询三次。"""
    fake_api.add("POST", STATUS, json={"ok": True, "done": False, "seconds_remaining": 10})
    fake_api.add("POST", STATUS, json={"ok": True, "done": False, "seconds_remaining": 0})
    fake_api.add("POST", STATUS, json={"ok": True, "done": True})

    status = await translator.wait_until_done(handle)

    assert status.done
    assert len(fake_api.calls("POST", STATUS)) == 3
    assert recording_sleep.calls == [6.0, 1.0]


@pytest.mark.asyncio
async def test_wait_until_done_stops_at_first_failure(
    translator: DocumentTranslator,
    fake_api: FakeApi,
    recording_sleep: RecordingSleep,
    handle: DocumentHandle,
) -> None:
    """测试 ok 为 False 的状态立即终止等待，并以服务端的错误信息抛出 ApiError。"""
    fake_api.add(
        "POST", STATUS, json={"status": "error", "error_message": "quota exceeded"}
    )

    with pytest.raises(ApiError) as excinfo:
        await translator.wait_until_done(handle)

    assert "quota exceeded" in str(excinfo.value)
    assert len(fake_api.calls("POST", STATUS)) == 1
    assert recording_sleep.calls == []


@pytest.mark.asyncio
async def test_wait_until_done_failure_without_message(
    translator: DocumentTranslator, fake_api: FakeApi, handle: DocumentHandle
) -> None:
    fake_api.add("POST", STATUS, json={"ok": False, "done": False})
    with pytest.raises(ApiError, match="Unknown error"):
        await translator.wait_until_done(handle)


@pytest.mark.asyncio
async def test_unknown_status_value_raises_api_error(
    translator: DocumentTranslator,
    fake_api: FakeApi,
    recording_sleep: RecordingSleep,
    handle: DocumentHandle,
) -> None:
    """测试无法识别的状态值以 ApiError 报告，而不是泄漏 pydantic 的校验异常。"""
    fake_api.add("POST", STATUS, json={"status": "pending"})
    fake_api.add("POST", STATUS, json={"status": "pending"})

    with pytest.raises(ApiError, match="响应格式无效") as excinfo:
        await translator.get_status(handle)
    assert isinstance(excinfo.value.__cause__, pydantic.ValidationError)

    with pytest.raises(ApiError, match="响应格式无效"):
        await translator.wait_until_done(handle)
    assert recording_sleep.calls == []


@pytest.mark.asyncio
async def test_status_body_that_is_not_json_raises_api_error(
    translator: DocumentTranslator, fake_api: FakeApi, handle: DocumentHandle
) -> None:
    fake_api.add("POST", STATUS, content=b"<html>bad gateway</html>")
    with pytest.raises(ApiError, match="响应格式无效"):
        await translator.get_status(handle)


@pytest.mark.asyncio
async def test_wait_until_done_propagates_cancellation(
    rest_client: HttpxRestClient, fake_api: FakeApi, handle: DocumentHandle
) -> None:
    """测试在等待期间取消任务时，CancelledError 直接向上传播而不被包装。"""
    sleeping = asyncio.Event()

    async def blocking_sleep(seconds: float) -> None:
        sleeping.set()
        await asyncio.Event().wait()

    fake_api.add("POST", STATUS, json={"status": "translating"})
    translator = DocumentTranslator(rest_client, sleep=blocking_sleep)

    task = asyncio.create_task(translator.wait_until_done(handle))
    await sleeping.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


# --- 下载 ---


@pytest.mark.asyncio
async def test_download_streams_into_sink(
    translator: DocumentTranslator, fake_api: FakeApi, handle: DocumentHandle
) -> None:
    fake_api.add("POST", RESULT, content=b"translated bytes")
    sink = io.BytesIO()

    await translator.download(handle, sink)

    assert sink.getvalue() == b"translated bytes"
    assert fake_api.form(fake_api.requests[0]) == [("document_key", DOCUMENT_KEY)]


@pytest.mark.asyncio
async def test_download_before_done_raises_not_ready(
    translator: DocumentTranslator, fake_api: FakeApi, handle: DocumentHandle
) -> None:
    fake_api.add("POST", RESULT, 503, json={"message": "Document not ready"})
    sink = io.BytesIO()

    with pytest.raises(DocumentNotReadyError):
        await translator.download(handle, sink)
    assert sink.getvalue() == b""


@pytest.mark.asyncio
async def test_download_to_file_removes_partial_output(
    translator: DocumentTranslator,
    fake_api: FakeApi,
    handle: DocumentHandle,
    tmp_path: Path,
) -> None:
    output_path = tmp_path / "out.txt"
    fake_api.add("POST", RESULT, 503)

    with pytest.raises(DocumentNotReadyError):
        await translator.download_to_file(handle, output_path)
    assert not output_path.exists()


# --- 组合流水线 ---


@pytest.mark.asyncio
async def test_translate_runs_all_stages(
    translator: DocumentTranslator,
    fake_api: FakeApi,
    recording_sleep: RecordingSleep,
) -> None:
    script_successful_job(fake_api)
    sink = io.BytesIO()

    await translator.translate(b"Hello world", "hello.txt", sink, "de")

    assert sink.getvalue() == b"Hallo Welt"
    assert [r.url.path for r in fake_api.requests] == [
        UPLOAD,
        STATUS,
        STATUS,
        STATUS,
        RESULT,
    ]
    assert recording_sleep.calls == [1.0, 6.0]


@pytest.mark.asyncio
async def test_translate_upload_failure_has_no_handle(
    translator: DocumentTranslator, fake_api: FakeApi
) -> None:
    """测试上传失败时，错误中不携带句柄，原始异常可通过 cause 取得。"""
    fake_api.add("POST", UPLOAD, 403, json={"message": "Wrong key"})

    with pytest.raises(DocumentTranslationError) as excinfo:
        await translator.translate(b"x", "a.txt", io.BytesIO(), "de")

    error = excinfo.value
    assert error.document_handle is None
    assert isinstance(error.cause, AuthorizationError)
    assert error.__cause__ is error.cause


@pytest.mark.asyncio
async def test_translate_validation_failure_is_wrapped_without_handle(
    translator: DocumentTranslator, fake_api: FakeApi
) -> None:
    with pytest.raises(DocumentTranslationError) as excinfo:
        await translator.translate(b"x", "a.txt", io.BytesIO(), "pt")

    assert excinfo.value.document_handle is None
    assert isinstance(excinfo.value.cause, ValidationError)
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_translate_failure_after_upload_carries_handle(
    translator: DocumentTranslator, fake_api: FakeApi
) -> None:
    """测试上传后翻译失败时，错误携带上传返回的句柄，且不会尝试下载。"""
    fake_api.add("POST", UPLOAD, json=HANDLE_JSON)
    fake_api.add(
        "POST", STATUS, json={"status": "error", "error_message": "quota exceeded"}
    )

    with pytest.raises(DocumentTranslationError) as excinfo:
        await translator.translate(b"x", "a.txt", io.BytesIO(), "de")

    error = excinfo.value
    assert error.document_handle is not None
    assert error.document_handle.document_id == "doc-1"
    assert error.document_handle.document_key.get_secret_value() == DOCUMENT_KEY
    assert isinstance(error.cause, ApiError)
    assert "quota exceeded" in str(error.cause)
    assert fake_api.calls("POST", RESULT) == []


@pytest.mark.asyncio
async def test_translate_download_failure_carries_handle(
    translator: DocumentTranslator, fake_api: FakeApi
) -> None:
    fake_api.add("POST", UPLOAD, json=HANDLE_JSON)
    fake_api.add("POST", STATUS, json={"status": "done"})
    fake_api.add("POST", RESULT, error=httpx.ReadError("connection reset"))

    with pytest.raises(DocumentTranslationError) as excinfo:
        await translator.translate(b"x", "a.txt", io.BytesIO(), "de")

    assert excinfo.value.document_handle is not None
    assert excinfo.value.document_handle.document_id == "doc-1"


@pytest.mark.asyncio
async def test_translate_cancellation_is_wrapped_with_handle(
    rest_client: HttpxRestClient, fake_api: FakeApi
) -> None:
    """测试组合操作被取消时，取消被包装为 DocumentTranslationError 并携带句柄。"""
    sleeping = asyncio.Event()

    async def blocking_sleep(seconds: float) -> None:
        sleeping.set()
        await asyncio.Event().wait()

    fake_api.add("POST", UPLOAD, json=HANDLE_JSON)
    fake_api.add("POST", STATUS, json={"status": "queued"})
    translator = DocumentTranslator(rest_client, sleep=blocking_sleep)

    task = asyncio.create_task(
        translator.translate(b"x", "a.txt", io.BytesIO(), "de")
    )
    await sleeping.wait()
    task.cancel()

    with pytest.raises(DocumentTranslationError) as excinfo:
        await task

    assert isinstance(excinfo.value.cause, asyncio.CancelledError)
    assert excinfo.value.document_handle is not None
    assert excinfo.value.document_handle.document_id == "doc-1"


@pytest.mark.asyncio
async def test_concurrent_translations_are_independent(
    translator: DocumentTranslator, fake_api: FakeApi
) -> None:
    """测试同一实例上并发的两个任务各自持有自己的句柄与结果。"""

    def upload_reply(request: httpx.Request) -> httpx.Response:
        doc_id = "doc-a" if b'filename="a.txt"' in request.content else "doc-b"
        return httpx.Response(
            200, json={"document_id": doc_id, "document_key": f"key-{doc_id}"}
        )

    fake_api.add("POST", UPLOAD, handler=upload_reply)
    fake_api.add("POST", UPLOAD, handler=upload_reply)
    for doc_id in ("doc-a", "doc-b"):
        fake_api.add("POST", f"/v2/document/{doc_id}", json={"status": "done"})
        fake_api.add(
            "POST", f"/v2/document/{doc_id}/result", content=f"result-{doc_id}".encode()
        )

    sink_a, sink_b = io.BytesIO(), io.BytesIO()
    await asyncio.gather(
        translator.translate(b"A", "a.txt", sink_a, "de"),
        translator.translate(b"B", "b.txt", sink_b, "fr"),
    )

    assert sink_a.getvalue() == b"result-doc-a"
    assert sink_b.getvalue() == b"result-doc-b"


@pytest.mark.asyncio
async def test_document_key_never_logged(
    translator: DocumentTranslator, fake_api: FakeApi
) -> None:
    script_successful_job(fake_api)

    with capture_logs() as logs:
        await translator.translate(b"x", "a.txt", io.BytesIO(), "de")

    assert logs, "流水线应当输出日志"
    assert DOCUMENT_KEY not in repr(logs)
    assert any(entry.get("document_id") == "doc-1" for entry in logs)


# --- 文件路径变体 ---


@pytest.mark.asyncio
async def test_translate_file_writes_output(
    translator: DocumentTranslator, fake_api: FakeApi, tmp_path: Path
) -> None:
    input_path = tmp_path / "in.txt"
    input_path.write_bytes(b"Hello world")
    output_path = tmp_path / "out.txt"
    script_successful_job(fake_api)

    await translator.translate_file(input_path, output_path, "de")

    assert output_path.read_bytes() == b"Hallo Welt"


@pytest.mark.asyncio
async def test_translate_file_removes_output_on_failure(
    translator: DocumentTranslator, fake_api: FakeApi, tmp_path: Path
) -> None:
    input_path = tmp_path / "in.txt"
    input_path.write_bytes(b"Hello world")
    output_path = tmp_path / "out.txt"
    fake_api.add("POST", UPLOAD, json=HANDLE_JSON)
    fake_api.add("POST", STATUS, json={"status": "error", "error_message": "boom"})

    with pytest.raises(DocumentTranslationError) as excinfo:
        await translator.translate_file(input_path, str(output_path), "de")

    assert excinfo.value.document_handle is not None
    assert not output_path.exists()


@pytest.mark.asyncio
async def test_translate_file_refuses_existing_output(
    translator: DocumentTranslator, fake_api: FakeApi, tmp_path: Path
) -> None:
    """测试输出文件已存在时抛出 FileExistsError，且既不上传也不触碰原文件。"""
    input_path = tmp_path / "in.txt"
    input_path.write_bytes(b"Hello world")
    output_path = tmp_path / "out.txt"
    output_path.write_bytes(b"keep me")

    with pytest.raises(FileExistsError):
        await translator.translate_file(input_path, output_path, "de")

    assert output_path.read_bytes() == b"keep me"
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_translate_file_missing_input(
    translator: DocumentTranslator, tmp_path: Path
) -> None:
    output_path = tmp_path / "out.txt"
    with pytest.raises(FileNotFoundError):
        await translator.translate_file(tmp_path / "missing.txt", output_path, "de")
    assert not output_path.exists()
