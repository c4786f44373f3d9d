"""
Govee OpenAPI client.

GET  {GOVEE_API_BASE_URL}/user/devices   -> {"code": 200, "data": [{"device", "sku", "deviceName"}]}
POST {GOVEE_API_BASE_URL}/device/state   -> {"code": 200, "payload": {"capabilities": [...]}}

Thermo-hygrometers report sensorTemperature in °F, sensorHumidity in %, and
battery in %. The client returns raw vendor values; callers convert units.
"""
import logging
import uuid
from typing import Optional

import httpx

from garden_logbook.core.config import settings

logger = logging.getLogger(__name__)

_CAPABILITY_FIELDS = {
    "sensorTemperature": "temperature_f",
    "sensorHumidity": "humidity",
    "battery": "battery",
}


class GoveeAPIError(Exception):
    pass


def parse_capabilities(capabilities: list[dict]) -> dict:
    """Pull temperature/humidity/battery out of a device state payload. Missing or non-numeric values are None."""
    values: dict = {field: None for field in _CAPABILITY_FIELDS.values()}
    for cap in capabilities or []:
        field = _CAPABILITY_FIELDS.get(cap.get("instance"))
        if field is None:
            continue
        raw = (cap.get("state") or {}).get("value")
        try:
            number = float(raw)
        except (TypeError, ValueError):
            continue
        values[field] = int(number) if field == "battery" else number
    return values


class GoveeClient:
    def __init__(self, api_key: str, client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self._client = client

    def _headers(self) -> dict:
        return {"Govee-API-Key": self.api_key, "Content-Type": "application/json"}

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{settings.GOVEE_API_BASE_URL}{path}"
        if self._client is not None:
            resp = await self._client.request(method, url, headers=self._headers(), **kwargs)
        else:
            async with httpx.AsyncClient(timeout=15.0) as client:
                resp = await client.request(method, url, headers=self._headers(), **kwargs)

        try:
            data = resp.json()
        except ValueError:
            raise GoveeAPIError(f"Govee API returned HTTP {resp.status_code} with a non-JSON body")
        if resp.status_code != 200 or data.get("code") != 200:
            message = data.get("msg") or data.get("message") or f"HTTP {resp.status_code}"
            raise GoveeAPIError(f"Govee API error: {message}")
        return data

    async def list_devices(self) -> list[dict]:
        """Return [{"device_id", "sku", "name"}] for every device on the account."""
        data = await self._request("GET", "/user/devices")
        devices = data.get("data")
        if not isinstance(devices, list):
            raise GoveeAPIError("Unexpected response from Govee API")
        return [
            {"device_id": d["device"], "sku": d.get("sku", ""), "name": d.get("deviceName") or d["device"]}
            for d in devices
        ]

    async def get_device_state(self, sku: str, device_id: str) -> dict:
        """Return parsed readings plus the raw ``capabilities`` list."""
        body = {"requestId": str(uuid.uuid4()), "payload": {"sku": sku, "device": device_id}}
        data = await self._request("POST", "/device/state", json=body)
        payload = data.get("payload")
        if not payload:
            raise GoveeAPIError(f"No state returned for device {device_id}")
        capabilities = payload.get("capabilities") or []
        return {**parse_capabilities(capabilities), "capabilities": capabilities}
