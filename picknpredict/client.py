"""
picknpredict/client.py

Thin JSON client for the processing service. Every call either returns the
decoded payload or raises ``RemoteFailure`` with one displayable message.
No retries and no caching; callers keep at most one request in flight.
"""
from __future__ import annotations
import logging
import os
from typing import Any, Dict, Mapping, Optional, Sequence

import requests

from picknpredict import config
from picknpredict.errors import RemoteFailure

logger = logging.getLogger(__name__)

UNREACHABLE_MESSAGE = "Could not reach the processing service. Is it running?"
GENERIC_MESSAGE = "Something went wrong with the connection!"


def _detail_message(detail: Any) -> Optional[str]:
    if isinstance(detail, str):
        return detail or None
    # FastAPI validation errors: [{"loc": [...], "msg": "...", ...}, ...]
    if isinstance(detail, list):
        msgs = [str(d.get("msg")) for d in detail if isinstance(d, dict) and d.get("msg")]
        return "; ".join(msgs) or None
    if detail is not None:
        return str(detail)
    return None


def error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        msg = _detail_message(body.get("detail"))
        if msg:
            return msg
    return f"Server Error: {response.status_code}"


class RemoteArtifactClient:
    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        timeout: Optional[float] = config.REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug("POST %s", url)
        try:
            response = self.session.post(url, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.warning("POST %s unreachable: %s", url, exc)
            raise RemoteFailure(UNREACHABLE_MESSAGE) from exc
        except requests.RequestException as exc:
            logger.warning("POST %s failed: %s", url, exc)
            raise RemoteFailure(GENERIC_MESSAGE) from exc

        if not response.ok:
            message = error_message(response)
            logger.warning("POST %s -> %s: %s", url, response.status_code, message)
            raise RemoteFailure(message)

        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteFailure(f"Malformed response from {path}") from exc
        if not isinstance(payload, dict):
            raise RemoteFailure(f"Malformed response from {path}")
        return payload

    # ---- operations -----------------------------------------------------

    def upload(self, path: str) -> Dict[str, Any]:
        name = os.path.basename(path)
        with open(path, "rb") as fh:
            return self._post("/upload", files={"file": (name, fh)})

    def preprocess(
        self,
        file_id: str,
        selected_columns: Sequence[str],
        scaler_type: str,
        encoding_type: str,
    ) -> Dict[str, Any]:
        return self._post("/preprocess", json={
            "file_id": file_id,
            "numeric_columns": list(selected_columns),
            "scaler_type": scaler_type,
            "encoding_type": encoding_type,
        })

    def split(
        self,
        file_id: str,
        target_column: str,
        test_size: float,
        selected_columns: Sequence[str],
    ) -> Dict[str, Any]:
        return self._post("/split", json={
            "file_id": file_id,
            "target_column": target_column,
            "test_size": test_size,
            "selected_columns": list(selected_columns),
        })

    def train(
        self,
        file_id: str,
        model_type: str,
        target_column: str,
        test_size: float,
        selected_columns: Sequence[str],
    ) -> Dict[str, Any]:
        return self._post("/train", json={
            "file_id": file_id,
            "model_type": model_type,
            "target_column": target_column,
            "test_size": test_size,
            "selected_columns": list(selected_columns),
        })

    def predict(self, file_id: str, inputs: Mapping[str, str]) -> Dict[str, Any]:
        return self._post("/predict", json={"file_id": file_id, "inputs": dict(inputs)})
