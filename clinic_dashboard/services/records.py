"""
Record Source Client

Fetches the patient, vital, lab result and consultation collections from
the clinic records REST API.
"""
from typing import Any, Dict, List, Optional

import requests

from clinic_dashboard.config import Settings, get_settings
from clinic_dashboard.utils import get_logger

logger = get_logger(__name__)

# collection name -> (endpoint path, response envelope key)
COLLECTION_ENDPOINTS = {
    "consultations": ("/consultations/", "consultations"),
    "results": ("/results/all", "results"),
    "vitals": ("/vitals/", "vitals"),
    "patients": ("/patients/", "patients"),
}


class RecordSourceClient:
    """
    Read-only client for the clinic records API.

    A collection that cannot be fetched is logged and returned as an empty
    list so the dashboard still renders from whatever else is available.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.base_url = (base_url or settings.records_api_base_url).rstrip("/")
        self.token = token if token is not None else settings.records_api_token
        self.timeout = timeout if timeout is not None else settings.records_request_timeout
        # None: each fetch is a standalone requests.get, no Session is shared
        # across the fetch threads
        self.session = session

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def fetch_collection(self, collection: str) -> List[Dict[str, Any]]:
        """
        Fetch one named collection.

        Args:
            collection: One of consultations, results, vitals, patients

        Returns:
            List of record dicts, empty if the request failed
        """
        path, envelope_key = COLLECTION_ENDPOINTS[collection]
        url = f"{self.base_url}{path}"
        try:
            http = self.session or requests
            response = http.get(url, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"Error fetching {collection} from {url}: {e}")
            return []
        except ValueError as e:
            logger.error(f"Invalid JSON in {collection} response from {url}: {e}")
            return []

        records = payload.get(envelope_key) if isinstance(payload, dict) else None
        if not isinstance(records, list):
            logger.warning(f"No '{envelope_key}' list in {collection} response, treating as empty")
            return []

        records = [record for record in records if isinstance(record, dict)]
        logger.info(f"Fetched {len(records)} {collection}")
        return records

    def fetch_consultations(self) -> List[Dict[str, Any]]:
        return self.fetch_collection("consultations")

    def fetch_results(self) -> List[Dict[str, Any]]:
        return self.fetch_collection("results")

    def fetch_vitals(self) -> List[Dict[str, Any]]:
        return self.fetch_collection("vitals")

    def fetch_patients(self) -> List[Dict[str, Any]]:
        return self.fetch_collection("patients")

    def close(self) -> None:
        if self.session is not None:
            self.session.close()
