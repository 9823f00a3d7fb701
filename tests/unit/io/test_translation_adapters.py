"""Unit tests for the Document Translation REST client and simulated service."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import httpx
import pytest

from doctr_core.naming import ResourceNamer
from doctr_core.ports.translation import (
    TranslationBackendProtocol,
    TranslationErrorCode,
    TranslationServiceError,
)
from doctr_io import (
    DocumentTranslationClient,
    InMemoryStorageBackend,
    InMemoryTranslationBackend,
)
from doctr_schemas.jobs import JobRequest, SourceSpec, TargetSpec
from doctr_schemas.primitives import AccessLevel

ENDPOINT = "https://doctr.cognitiveservices.azure.com/"
BATCH_URL = "https://doctr.cognitiveservices.azure.com/translator/text/batch/v1.1"
JOB_URL = f"{BATCH_URL}/batches/job-1"
EXPIRY = datetime(2026, 3, 1, tzinfo=UTC)


def _request(
    source: str = "https://s.test/src", target: str = "https://s.test/t"
) -> JobRequest:
    return JobRequest(
        source=SourceSpec(source_url=source),
        targets=[TargetSpec(target_url=target, language="de")],
    )


def _client(
    transport: httpx.MockTransport, *, region: str | None = None
) -> tuple[DocumentTranslationClient, httpx.AsyncClient]:
    http_client = httpx.AsyncClient(transport=transport)
    client = DocumentTranslationClient(
        ENDPOINT, "secret-key", region=region, http_client=http_client
    )
    return client, http_client


@pytest.mark.unit
@pytest.mark.asyncio
async def test_submit_posts_inputs_and_returns_operation_location() -> None:
    """The job is posted as a one-element input list."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202, headers={"Operation-Location": JOB_URL})

    client, http_client = _client(httpx.MockTransport(handler), region="westeurope")
    async with http_client:
        handle = await client.submit_job(_request())

    assert handle == JOB_URL
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == f"{BATCH_URL}/batches"
    assert request.headers["Ocp-Apim-Subscription-Key"] == "secret-key"
    assert request.headers["Ocp-Apim-Subscription-Region"] == "westeurope"
    body = json.loads(request.content)
    assert body == {
        "inputs": [
            {
                "storageType": "folder",
                "source": {"sourceUrl": "https://s.test/src"},
                "targets": [
                    {
                        "targetUrl": "https://s.test/t",
                        "language": "de",
                        "glossaries": [],
                    }
                ],
            }
        ]
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_region_header_is_omitted_when_unset() -> None:
    """Only the key header is sent without a region."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202, headers={"Operation-Location": JOB_URL})

    client, http_client = _client(httpx.MockTransport(handler))
    async with http_client:
        await client.submit_job(_request())

    assert "Ocp-Apim-Subscription-Region" not in seen[0].headers


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rejection_surfaces_service_error_payload() -> None:
    """The structured service error is carried by the exception."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "error": {
                    "code": "InvalidRequest",
                    "message": "Target container is not writable",
                    "target": "TargetUrl",
                    "innerError": {"code": "Denied", "message": "No write access"},
                }
            },
        )

    client, http_client = _client(httpx.MockTransport(handler))
    async with http_client:
        with pytest.raises(TranslationServiceError) as exc_info:
            await client.submit_job(_request())

    error = exc_info.value.error
    assert exc_info.value.status_code == 400
    assert exc_info.value.code == TranslationErrorCode.REQUEST_FAILED
    assert error.code == "InvalidRequest"
    assert error.target == "TargetUrl"
    assert error.inner_error is not None
    assert error.inner_error.code == "Denied"
    assert error.to_error_response().message == (
        "Target container is not writable (No write access)"
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unstructured_error_body_falls_back_to_http_code() -> None:
    """Errors without a JSON payload keep the HTTP status as the code."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="Service Unavailable")

    client, http_client = _client(httpx.MockTransport(handler))
    async with http_client:
        with pytest.raises(TranslationServiceError) as exc_info:
            await client.check_status(JOB_URL)

    assert exc_info.value.error.code == "HTTP503"
    assert exc_info.value.error.message == "Service Unavailable"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_transport_errors_hide_url_query() -> None:
    """Network failures do not echo signed query strings."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client, http_client = _client(httpx.MockTransport(handler))
    async with http_client:
        with pytest.raises(TranslationServiceError) as exc_info:
            await client.check_status(f"{JOB_URL}?sig=abc")

    assert exc_info.value.error.code == "RequestFailed"
    assert "sig=abc" not in exc_info.value.error.message


@pytest.mark.unit
@pytest.mark.asyncio
async def test_check_status_parses_camel_case_snapshot() -> None:
    """Status payloads populate the snapshot and its counters."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == JOB_URL
        return httpx.Response(
            200,
            json={
                "id": "job-1",
                "createdDateTimeUtc": "2026-01-01T00:00:00Z",
                "lastActionDateTimeUtc": "2026-01-01T00:00:05Z",
                "status": "Running",
                "summary": {
                    "total": 3,
                    "failed": 0,
                    "success": 1,
                    "inProgress": 2,
                    "notYetStarted": 0,
                    "cancelled": 0,
                    "totalCharacterCharged": 120,
                },
            },
        )

    client, http_client = _client(httpx.MockTransport(handler))
    async with http_client:
        snapshot = await client.check_status(JOB_URL)

    assert snapshot.status == "Running"
    assert snapshot.last_action_date_time_utc == "2026-01-01T00:00:05Z"
    assert snapshot.summary.in_progress == 2
    assert snapshot.summary.total_character_charged == 120


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_status_payload_is_invalid_response() -> None:
    """A body that is not a snapshot is reported as an invalid response."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    client, http_client = _client(httpx.MockTransport(handler))
    async with http_client:
        with pytest.raises(TranslationServiceError) as exc_info:
            await client.check_status(JOB_URL)

    assert exc_info.value.code == TranslationErrorCode.INVALID_RESPONSE


@pytest.mark.unit
@pytest.mark.asyncio
async def test_formats_are_read_from_value_list() -> None:
    """Document and glossary formats come from their own endpoints."""
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(
            200,
            json={
                "value": [
                    {
                        "format": "PlainText",
                        "fileExtensions": [".txt"],
                        "contentTypes": ["text/plain"],
                        "versions": [],
                    }
                ]
            },
        )

    client, http_client = _client(httpx.MockTransport(handler))
    async with http_client:
        documents = await client.get_document_formats()
        glossaries = await client.get_glossary_formats()

    assert documents[0].file_extensions == [".txt"]
    assert glossaries[0].format == "PlainText"
    assert paths == [
        "/translator/text/batch/v1.1/documents/formats",
        "/translator/text/batch/v1.1/glossaries/formats",
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_formats_without_value_list_are_invalid() -> None:
    """A formats body missing ``value`` is an invalid response."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"formats": []})

    client, http_client = _client(httpx.MockTransport(handler))
    async with http_client:
        with pytest.raises(TranslationServiceError) as exc_info:
            await client.get_document_formats()

    assert exc_info.value.code == TranslationErrorCode.INVALID_RESPONSE


@pytest.mark.unit
@pytest.mark.asyncio
async def test_languages_are_read_without_credentials() -> None:
    """The public languages endpoint is called without the key header."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "translation": {
                    "de": {"name": "German", "nativeName": "Deutsch", "dir": "ltr"},
                    "fr": {"name": "French", "nativeName": "Français", "dir": "ltr"},
                }
            },
        )

    client, http_client = _client(httpx.MockTransport(handler))
    async with http_client:
        languages = await client.get_languages()

    assert [language.code for language in languages] == ["de", "fr"]
    assert languages[0].native_name == "Deutsch"
    assert "Ocp-Apim-Subscription-Key" not in seen[0].headers
    assert seen[0].url.params["scope"] == "translation"


@pytest.mark.unit
def test_backends_satisfy_translation_protocol() -> None:
    """Both translation backends implement the translation port."""
    storage = InMemoryStorageBackend()
    assert isinstance(
        DocumentTranslationClient(ENDPOINT, "key"), TranslationBackendProtocol
    )
    assert isinstance(InMemoryTranslationBackend(storage), TranslationBackendProtocol)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_simulated_job_progresses_and_copies_documents() -> None:
    """The simulated service moves through its statuses and fills the target."""
    storage = InMemoryStorageBackend()
    names = ResourceNamer("doctr").generate()
    for name in names.all():
        await storage.create_container_if_absent(name)
    await storage.upload_object(names.source, "a.txt", b"hello")
    service = InMemoryTranslationBackend(
        storage, running_polls=2, transform=bytes.upper
    )
    request = _request(
        storage.generate_container_url(names.source, AccessLevel.FULL, EXPIRY),
        storage.generate_container_url(names.target, AccessLevel.FULL, EXPIRY),
    )

    handle = await service.submit_job(request)
    statuses = [(await service.check_status(handle)).status for _ in range(5)]

    assert statuses == ["NotStarted", "Running", "Running", "Succeeded", "Succeeded"]
    assert storage.blobs(names.target) == {"a.txt": b"HELLO"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_simulated_job_without_documents_fails_validation() -> None:
    """An empty source container ends in ValidationFailed with an error."""
    storage = InMemoryStorageBackend()
    storage.add_container("src")
    storage.add_container("tgt")
    service = InMemoryTranslationBackend(storage)
    handle = await service.submit_job(_request("memory://src", "memory://tgt"))

    snapshot = await service.check_status(handle)

    assert snapshot.status == "ValidationFailed"
    assert snapshot.is_failure
    assert snapshot.error is not None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_simulated_service_rejects_missing_containers_and_handles() -> None:
    """Unknown containers and job handles are service errors."""
    service = InMemoryTranslationBackend(InMemoryStorageBackend())

    with pytest.raises(TranslationServiceError) as rejected:
        await service.submit_job(_request("memory://src", "memory://tgt"))
    with pytest.raises(TranslationServiceError) as unknown:
        await service.check_status("memory://jobs/unknown")

    assert rejected.value.status_code == 400
    assert unknown.value.status_code == 404
