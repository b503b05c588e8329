"""AI insight client - sends a debt summary out and gets coaching tips back"""

import asyncio
import logging
from typing import Any, Dict, List

import httpx

from debtplan_gateway.config import settings
from debtplan_gateway.domain.exceptions import InsightAPIError
from debtplan_gateway.infrastructure.observability.metrics import (
    insight_failure_counter,
    insight_latency_histogram,
)

logger = logging.getLogger(__name__)


class InsightClient:
    """Client for the third-party coaching service"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
    ):
        self.base_url = base_url or settings.insight_api_base
        self.api_key = api_key if api_key is not None else settings.insight_api_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = max_retries or settings.insight_max_retries
        self.backoff_base = settings.insight_backoff_base if backoff_base is None else backoff_base

    async def request_tips(self, user_id: str, summary: Dict[str, Any]) -> List[str]:
        """
        Ask the insight service for coaching tips.

        Context travels with every call; the client keeps no conversation state.

        Retry strategy:
        - Exponential backoff: base * 2^(attempt - 1)
        - Retries on 5xx errors and network failures; 4xx fails immediately

        Raises:
            InsightAPIError: service unavailable after retries, or bad response
        """
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload = {"user_id": user_id, "summary": summary}

        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while True:
                try:
                    with insight_latency_histogram.time():
                        response = await client.post(
                            f"{self.base_url}/insights/tips",
                            json=payload,
                            headers=headers,
                        )
                        response.raise_for_status()
                    return self._parse_tips(response.json())

                except httpx.HTTPStatusError as e:
                    insight_failure_counter.inc()
                    if e.response.status_code < 500:
                        raise InsightAPIError(f"Insight API rejected request: {e.response.status_code}") from e
                    error: Exception = e
                except httpx.RequestError as e:
                    insight_failure_counter.inc()
                    error = e

                attempt += 1
                if attempt >= self.max_retries:
                    raise InsightAPIError(f"Insight API unavailable after {attempt} attempts") from error

                backoff = self.backoff_base * (2 ** (attempt - 1))
                logger.warning(
                    "Insight request failed, retrying",
                    extra={"user_id": user_id, "attempt": attempt, "backoff_seconds": backoff},
                )
                await asyncio.sleep(backoff)

    @staticmethod
    def _parse_tips(data: Any) -> List[str]:
        try:
            tips = data["tips"]
            if not isinstance(tips, list):
                raise TypeError("tips must be a list")
            return [str(tip) for tip in tips]
        except (KeyError, TypeError) as e:
            raise InsightAPIError(f"Invalid response from insight service: {e}") from e
