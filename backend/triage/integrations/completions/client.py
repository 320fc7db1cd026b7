"""Client for an OpenAI-compatible chat completions endpoint."""

import requests

DEFAULT_URL = "https://api.openai.com/v1/chat/completions"


class CompletionError(RuntimeError):
    pass


class CompletionTimeout(CompletionError):
    pass


class CompletionClient:
    def __init__(
        self,
        api_key: str | None,
        *,
        url: str = DEFAULT_URL,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        http: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.url = url
        self.model = model
        self.timeout = timeout
        self.http = http or requests.Session()

    @classmethod
    def from_config(cls, config) -> "CompletionClient":
        return cls(
            config.get("AI_API_KEY"),
            url=config.get("AI_GATEWAY_URL") or DEFAULT_URL,
            model=config.get("AI_MODEL") or "gpt-4o-mini",
            timeout=float(config.get("MATCHING_TIMEOUT_SECONDS") or 30),
        )

    def complete(self, messages: list[dict]) -> str:
        """Send ``messages`` and return the first choice's text.

        Raises CompletionTimeout when the request exceeds ``timeout`` and
        CompletionError for every other failure (missing key, transport
        error, non-2xx status, undecodable body).
        """
        if not self.api_key:
            raise CompletionError("Completion backend is not configured")
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        body = {"model": self.model, "messages": messages}
        try:
            resp = self.http.post(self.url, json=body, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise CompletionTimeout(f"Completion request timed out after {self.timeout:g}s") from e
        except requests.RequestException as e:
            raise CompletionError(f"Completion request failed: {e}") from e
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:  # Surface provider error details to caller
            try:
                err = resp.json().get("error") or {}
                if isinstance(err, dict):
                    details = f"Completion API error ({err.get('type')} code={err.get('code')}): {err.get('message') or e}"
                else:
                    details = f"Completion API error: {err}"
            except (ValueError, AttributeError):
                details = f"HTTP {resp.status_code}: {resp.text[:500]}"
            raise CompletionError(details) from e
        try:
            payload = resp.json()
        except ValueError as e:
            raise CompletionError("Completion response is not JSON") from e
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        return content or "[]"
