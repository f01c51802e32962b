"""Nominatim-compatible reverse geocoder."""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from triage.config import Settings
from triage.models import GeocodeResult
from triage.utils.logging import get_logger


logger = get_logger(__name__)


class NominatimGeocoder:
    """Reverse-geocode coordinates into place descriptions."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings or Settings()
        self._client = client

    def reverse(self, lat: float, lng: float) -> Optional[GeocodeResult]:
        """Return the place at (lat, lng), or None on no match or failure."""
        url = f"{self.settings.geocoder_base_url.rstrip('/')}/reverse"
        params: dict[str, str | float | int] = {
            "lat": lat,
            "lon": lng,
            "format": "jsonv2",
            "addressdetails": 1,
        }

        try:
            if self._client is not None:
                response = _get_with_retry(
                    self._client,
                    url,
                    params=params,
                    retries=self.settings.geocoder_max_retries,
                )
            else:
                with httpx.Client(
                    timeout=self.settings.geocoder_timeout_seconds,
                    headers={"User-Agent": self.settings.geocoder_user_agent},
                ) as client:
                    response = _get_with_retry(
                        client,
                        url,
                        params=params,
                        retries=self.settings.geocoder_max_retries,
                    )
            response.raise_for_status()
            payload = response.json()
        except Exception as exc:
            logger.warning("geocode.reverse.failed", extra={"error": str(exc)})
            return None

        if not isinstance(payload, dict) or not payload or "error" in payload:
            logger.info("geocode.reverse.no_match")
            return None

        return _to_geocode_result(payload)


def _to_geocode_result(payload: dict[str, Any]) -> GeocodeResult:
    """Convert a reverse payload into GeocodeResult with attached payload."""
    address = payload.get("address")
    return GeocodeResult.model_validate(
        {
            "display_name": payload.get("display_name"),
            "class": payload.get("category") or payload.get("class"),
            "type": payload.get("type"),
            "address": address if isinstance(address, dict) else {},
            "payload": payload,
        }
    )


def _get_with_retry(
    client: httpx.Client,
    url: str,
    params: Optional[dict] = None,
    retries: int = 1,
) -> httpx.Response:
    """GET with simple retry and backoff."""
    attempt = 0
    while True:
        try:
            response = client.get(url, params=params)
            if response.status_code >= 500 and attempt < retries:
                attempt += 1
                time.sleep(min(2**attempt, 8))
                continue
            return response
        except httpx.RequestError:
            attempt += 1
            if attempt > retries:
                raise
            time.sleep(min(2**attempt, 8))
