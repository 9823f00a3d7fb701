"""REST client for the Azure batch Document Translation service."""

from __future__ import annotations

from collections.abc import Mapping

import httpx
from pydantic import ValidationError

from doctr_core.ports.translation import (
    TranslationBackendProtocol,
    TranslationErrorCode,
    TranslationServiceError,
)
from doctr_schemas.config import DEFAULT_API_PATH, DEFAULT_LANGUAGES_URL
from doctr_schemas.jobs import (
    DocumentFormat,
    JobRequest,
    JobStatusSnapshot,
    LanguageInfo,
    ServiceError,
)

SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"
SUBSCRIPTION_REGION_HEADER = "Ocp-Apim-Subscription-Region"
OPERATION_LOCATION_HEADER = "Operation-Location"


class DocumentTranslationClient(TranslationBackendProtocol):
    """Translation backend calling the Document Translation REST API."""

    def __init__(
        self,
        endpoint: str,
        key: str,
        *,
        region: str | None = None,
        api_path: str = DEFAULT_API_PATH,
        languages_url: str = DEFAULT_LANGUAGES_URL,
        timeout_s: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: Translator resource endpoint, e.g.
                ``https://<name>.cognitiveservices.azure.com``.
            key: Translator resource subscription key.
            region: Translator resource region, sent when set.
            api_path: Batch API path below the endpoint.
            languages_url: URL listing the supported languages.
            timeout_s: Request timeout in seconds.
            http_client: Optional pre-configured HTTP client. If None, a
                client is created per request.
        """
        self._base_url = f"{endpoint.rstrip('/')}/{api_path.strip('/')}"
        self._key = key
        self._region = region
        self._languages_url = languages_url
        self._timeout_s = timeout_s
        self._http_client = http_client

    async def submit_job(self, request: JobRequest) -> str:
        """Submit a batch job.

        Returns:
            str: ``Operation-Location`` URL of the accepted job.

        Raises:
            TranslationServiceError: If the service rejects the request.
        """
        response = await self._send(
            "POST",
            f"{self._base_url}/batches",
            json={"inputs": [request.to_wire()]},
        )
        return response.headers.get(OPERATION_LOCATION_HEADER, "")

    async def check_status(self, handle: str) -> JobStatusSnapshot:
        """Read a job's status from its operation location.

        Raises:
            TranslationServiceError: If the call fails or the body is invalid.
        """
        response = await self._send("GET", handle)
        return _parse_status(response)

    async def get_document_formats(self) -> list[DocumentFormat]:
        """List the document formats the service translates.

        Raises:
            TranslationServiceError: If the call fails or the body is invalid.
        """
        return await self._get_formats(f"{self._base_url}/documents/formats")

    async def get_glossary_formats(self) -> list[DocumentFormat]:
        """List the glossary formats the service accepts.

        Raises:
            TranslationServiceError: If the call fails or the body is invalid.
        """
        return await self._get_formats(f"{self._base_url}/glossaries/formats")

    async def get_languages(self) -> list[LanguageInfo]:
        """List the languages available for translation.

        Raises:
            TranslationServiceError: If the call fails or the body is invalid.
        """
        response = await self._send("GET", self._languages_url, authenticate=False)
        payload = _json_body(response)
        translation = payload.get("translation") if isinstance(payload, dict) else None
        if not isinstance(translation, Mapping):
            raise _invalid_response("Languages response has no translation scope")
        try:
            return [
                LanguageInfo.model_validate({"code": code, **details})
                for code, details in translation.items()
            ]
        except (TypeError, ValidationError) as exc:
            raise _invalid_response(f"Invalid language entry: {exc}") from exc

    async def _get_formats(self, url: str) -> list[DocumentFormat]:
        response = await self._send("GET", url)
        payload = _json_body(response)
        values = payload.get("value") if isinstance(payload, dict) else None
        if not isinstance(values, list):
            raise _invalid_response("Formats response has no value list")
        try:
            return [DocumentFormat.model_validate(item) for item in values]
        except ValidationError as exc:
            raise _invalid_response(f"Invalid format entry: {exc}") from exc

    async def _send(
        self,
        method: str,
        url: str,
        *,
        json: object | None = None,
        authenticate: bool = True,
    ) -> httpx.Response:
        headers = self._headers() if authenticate else {}
        try:
            if self._http_client is not None:
                response = await self._http_client.request(
                    method, url, json=json, headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                    response = await client.request(
                        method, url, json=json, headers=headers
                    )
        except httpx.HTTPError as exc:
            raise TranslationServiceError(
                ServiceError(
                    code="RequestFailed",
                    message=f"{method} {_redact_url(url)} failed: {exc}",
                )
            ) from exc
        if response.is_error:
            raise TranslationServiceError(
                _service_error(response), status_code=response.status_code
            )
        return response

    def _headers(self) -> dict[str, str]:
        headers = {SUBSCRIPTION_KEY_HEADER: self._key}
        if self._region:
            headers[SUBSCRIPTION_REGION_HEADER] = self._region
        return headers


def _parse_status(response: httpx.Response) -> JobStatusSnapshot:
    try:
        return JobStatusSnapshot.model_validate_json(response.content)
    except ValidationError as exc:
        raise _invalid_response(f"Invalid job status payload: {exc}") from exc


def _json_body(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError as exc:
        raise _invalid_response(f"Response is not JSON: {exc}") from exc


def _service_error(response: httpx.Response) -> ServiceError:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("code") and error.get("message"):
        try:
            return ServiceError.model_validate(error)
        except ValidationError:
            return ServiceError(code=str(error["code"]), message=str(error["message"]))
    message = response.text.strip() or response.reason_phrase or "Request failed"
    return ServiceError(code=f"HTTP{response.status_code}", message=message)


def _invalid_response(message: str) -> TranslationServiceError:
    return TranslationServiceError(
        ServiceError(code="InvalidResponse", message=message),
        code=TranslationErrorCode.INVALID_RESPONSE,
    )


def _redact_url(url: str) -> str:
    return url.split("?", 1)[0]
