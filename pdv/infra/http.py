"""
Cliente HTTP da API da loja (requests).

``ApiClient.request`` funciona como um ``fetch``: devolve o corpo JSON já
decodificado ou levanta:
- ``TransportError`` quando não houve resposta (rede, timeout);
- ``ApiError`` para status >= 400, com ``status_code`` e a mensagem do backend.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import requests

from pdv.config import API_BASE_URL, API_TOKEN, DEFAULTS
from pdv.domain.errors import ApiError, TransportError
from pdv.infra.logger import log_api_call


class ApiClient:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token: Optional[str] = API_TOKEN,
        timeout: float = DEFAULTS.request_timeout,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token or ""
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, with_body: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if with_body:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        url = self.url(path)
        params = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        started = time.monotonic()
        try:
            response = self.session.request(
                method=method.upper(),
                url=url,
                headers=self._headers(json is not None),
                params=params or None,
                json=json,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            log_api_call(method, url, None, (time.monotonic() - started) * 1000, error=str(exc))
            raise TransportError(f"Falha de comunicação com {url}: {exc}") from exc

        log_api_call(method, url, response.status_code, (time.monotonic() - started) * 1000)

        if response.status_code == 204 or not response.content:
            body: Any = None
        else:
            try:
                body = response.json()
            except ValueError:
                body = {"message": response.text}

        if response.status_code >= 400:
            message = ""
            if isinstance(body, dict):
                message = body.get("message") or body.get("error") or ""
            raise ApiError(
                message or f"Erro {response.status_code} em {method.upper()} {path}",
                status_code=response.status_code,
                payload=body,
            )
        return body

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None) -> Any:
        return self.request("POST", path, json=json if json is not None else {})
