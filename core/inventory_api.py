"""
Remote inventory API client for the Linen RFID Dashboard.

Wraps the linen REST backend: linen lookup by EPC, customer/room
masters, and the workflow submit endpoints. Every request carries the
operator's bearer token.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from .models import Customer, LinenRecord, Room, UnregisteredLinen

logger = logging.getLogger(__name__)

LINEN_RFID_PATH = "/Process/linen_rfid"
CUSTOMER_PATH = "/Master/customer"
ROOM_PATH = "/Master/room"
UNREGISTERED_LINEN_PATH = "/Master/linen-unregistered"
DELIVERY_PATH = "/Process/Delivery"
REGISTER_RFID_PATH = "/Process/register_rfid"
LINEN_CLEAN_PATH = "/Process/linen_clean"


class InventoryAPIError(Exception):
    """Raised when an inventory API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _matches(search: str, *values: str) -> bool:
    term = search.strip().lower()
    return any(term in (v or "").lower() for v in values)


class InventoryAPI:
    """
    Client for the linen inventory REST API.

    Responses use the envelope ``{"success": bool, "message": str,
    "data": ...}``. Transport failures and non-2xx responses raise
    InventoryAPIError.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout_s: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_s = timeout_s
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, api_settings) -> "InventoryAPI":
        return cls(
            api_settings.base_url,
            token=api_settings.resolve_token(),
            timeout_s=api_settings.timeout_s,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise InventoryAPIError(f"{method} {path} failed: {e}") from e

        if not response.ok:
            raise InventoryAPIError(
                f"Request failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise InventoryAPIError(
                f"Invalid JSON from {path}", status_code=response.status_code
            ) from e

    def _get_data(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict]:
        return self._request("GET", path, params=params).get("data") or []

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_linen_by_epc(self, epc: str) -> List[LinenRecord]:
        """
        Look up the linen registered to an EPC.

        Returns an empty list when the API answers but knows no linen
        for the tag (including ``success: false``).
        """
        result = self._request("GET", LINEN_RFID_PATH, params={"epc": epc})
        if not result.get("success"):
            logger.debug("EPC %s: API reported no success (%s)", epc, result.get("message"))
            return []
        return [LinenRecord.from_api(item) for item in result.get("data") or []]

    def get_linens_by_customer(self, customer_id: str) -> List[LinenRecord]:
        data = self._get_data(LINEN_RFID_PATH, params={"customerId": customer_id})
        return [LinenRecord.from_api(item) for item in data]

    def get_customers(self, search: str = "") -> List[Customer]:
        customers = [Customer.from_api(item) for item in self._get_data(CUSTOMER_PATH)]
        if search.strip():
            customers = [
                c for c in customers
                if _matches(search, c.customer_name, c.customer_id)
            ]
        return customers

    def get_rooms(self, customer_id: str, search: str = "") -> List[Room]:
        if not customer_id:
            return []
        rooms = [
            Room.from_api(item)
            for item in self._get_data(ROOM_PATH, params={"customerId": customer_id})
        ]
        if search.strip():
            rooms = [r for r in rooms if _matches(search, r.room_name, r.room_id)]
        return rooms

    def get_unregistered_linens(self, search: str = "") -> List[UnregisteredLinen]:
        linens = [
            UnregisteredLinen.from_api(item)
            for item in self._get_data(UNREGISTERED_LINEN_PATH)
        ]
        if search.strip():
            linens = [l for l in linens if _matches(search, l.linen_name, l.linen_id)]
        return linens

    # ------------------------------------------------------------------
    # Submits
    # ------------------------------------------------------------------

    def submit_delivery(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", DELIVERY_PATH, payload=payload)

    def register_rfid(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", REGISTER_RFID_PATH, payload=payload)

    def submit_linen_clean(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", LINEN_CLEAN_PATH, payload=payload)
