"""HTTP client for the remote quick action endpoint (POST /action)."""

import logging

import httpx

from src.actions.models import ActionIntent, ActionResult
from src.chat.store_client import DEFAULT_BASE_URL
from src.copilot.i18n import Translator, translate as default_translate
from src.copilot.models import CopilotFixInput
from src.errors import MissingAIConfigError, QuickActionError
from src.utils.redaction import sanitize_error_message

logger = logging.getLogger(__name__)

MISSING_AI_ENV_CODE = "MISSING_AI_ENV"


class QuickActionClient:
    """Runs quick actions on the workbench server."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        timeout: float | None = 60.0,
        translate: Translator | None = None,
    ):
        self._base_url = base_url
        self._api_key = (api_key or "").strip()
        self._timeout = timeout
        self._t = translate or default_translate
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "QuickActionClient":
        headers = {}
        if self._api_key:
            headers["X-API-Key"] = self._api_key
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=headers,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client:
            await self._client.aclose()

    def _raise_for_status(self, resp: httpx.Response) -> None:
        """Raise QuickActionError on non-2xx responses.

        The message comes from a JSON body's ``message``, else the plain
        text body, else the localized fallback. A missing-AI-configuration
        code raises MissingAIConfigError.
        """
        if resp.status_code < 400:
            return
        message = ""
        server_code = None
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = str(body.get("message") or "")
            server_code = body.get("code")
        else:
            message = sanitize_error_message(resp.text.strip()) or ""
        message = message or self._t("Copilot.Errors.ActionFailed")
        if server_code == MISSING_AI_ENV_CODE:
            raise MissingAIConfigError(message, server_code=server_code, status_code=resp.status_code)
        raise QuickActionError(message, server_code=server_code, status_code=resp.status_code)

    async def run(self, intent: str | ActionIntent, fix_input: CopilotFixInput) -> ActionResult:
        """Run a quick action via POST /action.

        Args:
            intent: Registered intent.
            fix_input: Last execution of the editor tab.

        Returns:
            The server's proposed change.

        Raises:
            QuickActionError: On network failure or a non-2xx response.
        """
        if self._client is None:
            raise RuntimeError("QuickActionClient must be used as an async context manager")
        name = intent.value if isinstance(intent, ActionIntent) else intent
        try:
            resp = await self._client.post(
                "/action",
                json={"intent": name, "input": fix_input.model_dump(by_alias=True, mode="json")},
            )
        except httpx.HTTPError as exc:
            logger.warning("Quick action %s request failed: %s", name, exc)
            raise QuickActionError(self._t("Copilot.Errors.ActionFailed")) from exc
        self._raise_for_status(resp)
        return ActionResult.model_validate(resp.json())
