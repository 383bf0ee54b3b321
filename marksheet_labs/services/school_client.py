"""
School API Client for Marksheet Labs
=====================================

HTTP client for the school management API that owns students, subjects,
tests, marks, classes, key sets and saved marksheet templates.

Every call returns an ApiResult. Transport failures and non-2xx responses
are logged and reported through `error`; they never raise.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

from ..config import SCHOOL_API_BASE_URL
from ..models.document_models import TemplatePayload

logger = logging.getLogger(__name__)


class ApiResult(BaseModel):
    """Outcome of one API call."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None


class SchoolApiClient:
    """
    Async client for the school management REST API.

    Endpoints used:
    - GET /api/students, /api/subjects, /api/tests, /api/marks, /api/classes
    - GET /api/data-field-keys?custom=true (saved key sets)
    - GET/POST/PUT /api/marksheet-templates
    - POST /api/marksheet-ai (template generation from a prompt)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or SCHOOL_API_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None
    ) -> ApiResult:
        params = {key: value for key, value in (params or {}).items() if value is not None}
        logger.info(f"[SCHOOL-CLIENT] {method} {path} params={params}")

        try:
            client = await self._get_client()
            response = await client.request(method, path, params=params or None, json=json)
        except httpx.TimeoutException:
            logger.error(f"[SCHOOL-CLIENT-TIMEOUT] {method} {path} timed out")
            return ApiResult(success=False, error="Request timed out")
        except httpx.HTTPError as e:
            logger.error(f"[SCHOOL-CLIENT-ERROR] {method} {path}: {type(e).__name__}: {e}")
            return ApiResult(success=False, error=f"Network error: {e}")

        if response.is_error:
            message = self._error_message(response)
            logger.error(f"[SCHOOL-CLIENT-ERROR] HTTP {response.status_code} from {path}: {message}")
            return ApiResult(success=False, error=message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            logger.error(f"[SCHOOL-CLIENT-ERROR] Invalid JSON from {path}")
            return ApiResult(success=False, error="Invalid JSON response", status_code=response.status_code)

        return ApiResult(success=True, data=data, status_code=response.status_code)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """The API's own `error` field when present, else status and body."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"HTTP {response.status_code}: {response.text[:200]}"

    @staticmethod
    def _field(result: ApiResult, key: str, default: Any) -> ApiResult:
        """Narrow a successful result to one field of the response body."""
        if not result.success:
            return result
        data = result.data.get(key) if isinstance(result.data, dict) else None
        return ApiResult(
            success=True,
            data=default if data is None else data,
            status_code=result.status_code,
        )

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def fetch_students(self, class_id: Optional[str] = None, batch: Optional[str] = None) -> ApiResult:
        result = await self._request("GET", "/api/students", params={"classId": class_id, "batch": batch})
        return self._field(result, "students", [])

    async def fetch_subjects(self, class_id: Optional[str] = None) -> ApiResult:
        """Subjects, deduplicated by name (first occurrence wins)."""
        result = self._field(
            await self._request("GET", "/api/subjects", params={"classId": class_id}),
            "subjects", [],
        )
        if not result.success:
            return result

        seen = set()
        unique: List[Dict[str, Any]] = []
        for subject in result.data:
            name = subject.get("name") or subject.get("subjectName") or ""
            if name and name not in seen:
                seen.add(name)
                unique.append(subject)
        return ApiResult(success=True, data=unique, status_code=result.status_code)

    async def fetch_tests(self, class_id: Optional[str] = None) -> ApiResult:
        result = await self._request("GET", "/api/tests", params={"classId": class_id})
        return self._field(result, "tests", [])

    async def fetch_marks(self, class_id: Optional[str] = None, test_id: Optional[str] = None) -> ApiResult:
        result = await self._request("GET", "/api/marks", params={"classId": class_id, "testId": test_id})
        return self._field(result, "marks", [])

    async def fetch_classes(self) -> ApiResult:
        result = await self._request("GET", "/api/classes")
        return self._field(result, "classes", [])

    async def fetch_key_sets(self) -> ApiResult:
        """Saved placeholder key sets."""
        result = await self._request("GET", "/api/data-field-keys", params={"custom": "true"})
        return self._field(result, "savedKeys", [])

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    async def load_template(self, template_id: str) -> ApiResult:
        result = await self._request("GET", "/api/marksheet-templates", params={"templateId": template_id})
        result = self._field(result, "template", None)
        if result.success and not isinstance(result.data, dict):
            return ApiResult(success=False, error="Template not found", status_code=result.status_code)
        return result

    async def save_template(self, payload: TemplatePayload) -> ApiResult:
        """
        Persist a template.

        Creates with POST when the payload has no template id, otherwise
        updates with PUT.

        Returns:
            ApiResult whose data is the saved template dict
        """
        method = "PUT" if payload.template_id else "POST"
        result = await self._request(method, "/api/marksheet-templates", json=payload.to_wire())
        return self._field(result, "template", {})

    async def generate_template(self, prompt: str) -> ApiResult:
        """Ask the API to lay out a template; data has elements and templateName."""
        result = await self._request("POST", "/api/marksheet-ai", json={"prompt": prompt})
        if result.success and not isinstance(result.data, dict):
            return ApiResult(success=False, error="Unexpected response", status_code=result.status_code)
        return result
