
import pytest
import requests
from unittest.mock import MagicMock

from clinic_dashboard.core.inference import RiskLevel, RiskRules, RiskThresholds
from clinic_dashboard.services.dashboard import DashboardService
from clinic_dashboard.services.records import RecordSourceClient


def _session_returning(payload):
    response = MagicMock()
    response.json.return_value = payload
    session = MagicMock()
    session.get.return_value = response
    return session


def _client(session, token=""):
    return RecordSourceClient(base_url="http://records.local/api/", token=token, timeout=5, session=session)


def test_fetch_collection_unwraps_envelope():
    """Records come from the collection's envelope key."""
    session = _session_returning({"vitals": [{"user_uuid": "a", "bmi": "31"}, "junk"]})
    client = _client(session)

    vitals = client.fetch_vitals()

    assert vitals == [{"user_uuid": "a", "bmi": "31"}]
    url = session.get.call_args.args[0]
    assert url == "http://records.local/api/vitals/"
    assert session.get.call_args.kwargs["timeout"] == 5


def test_fetch_results_endpoint():
    session = _session_returning({"results": []})
    _client(session).fetch_results()
    assert session.get.call_args.args[0] == "http://records.local/api/results/all"


def test_bearer_token_sent_when_configured():
    session = _session_returning({"patients": []})
    _client(session, token="secret").fetch_patients()
    assert session.get.call_args.kwargs["headers"]["Authorization"] == "Bearer secret"


def test_no_auth_header_without_token():
    session = _session_returning({"patients": []})
    _client(session).fetch_patients()
    assert "Authorization" not in session.get.call_args.kwargs["headers"]


def test_connection_error_returns_empty():
    """An unreachable records API yields an empty collection."""
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("connection refused")
    assert _client(session).fetch_consultations() == []


def test_http_error_returns_empty():
    session = _session_returning({"consultations": [{"uuid": "a"}]})
    session.get.return_value.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    assert _client(session).fetch_consultations() == []


def test_invalid_json_returns_empty():
    session = MagicMock()
    session.get.return_value.json.side_effect = ValueError("Expecting value")
    assert _client(session).fetch_patients() == []


@pytest.mark.parametrize("payload", [
    {"data": []},
    {"vitals": None},
    {"vitals": {"user_uuid": "a"}},
    [{"user_uuid": "a"}],
])
def test_missing_envelope_returns_empty(payload):
    assert _client(_session_returning(payload)).fetch_vitals() == []


def test_close_closes_session():
    session = MagicMock()
    _client(session).close()
    session.close.assert_called_once()


@pytest.mark.asyncio
async def test_get_dashboard_builds_from_fetched_records():
    """The service fetches all four collections before building analytics."""
    source = MagicMock()
    source.fetch_consultations.return_value = [
        {"uuid": "a", "date_of_check": "2024-02-01", "medical_clearance": "At Risk", "chronic_risk_factor": "Smoking"},
    ]
    source.fetch_results.return_value = [{"user_uuid": "b", "created_at": "2024-02-02", "ldl": "170"}]
    source.fetch_vitals.return_value = [{"user_uuid": "a", "date_of_check": "2024-02-01", "blood_pressure": "120/80"}]
    source.fetch_patients.return_value = [
        {"uuid": "a", "name": "Ana Cruz", "department": "Nursing"},
        {"uuid": "b", "name": "Ben Ortiz", "department": "Nursing"},
    ]
    service = DashboardService(record_source=source)

    analytics = await service.get_dashboard()

    assert analytics.patient_risk_map == {"a": RiskLevel.AT_RISK, "b": RiskLevel.CRITICAL}
    assert [e.uuid for e in analytics.at_risk_cohort] == ["b", "a"]
    assert analytics.department_risk_mix[0].to_dict() == {
        "department": "Nursing", "green": 0.0, "yellow": 0.5, "red": 0.5,
    }
    source.fetch_patients.assert_called_once()


@pytest.mark.asyncio
async def test_get_dashboard_with_unreachable_source():
    source = MagicMock()
    for fetch in (source.fetch_consultations, source.fetch_results, source.fetch_vitals, source.fetch_patients):
        fetch.return_value = []
    service = DashboardService(record_source=source)

    analytics = await service.get_dashboard()

    assert analytics.at_risk_cohort == []
    assert [b.value for b in analytics.risk_stratification] == [0, 0, 0]


def test_service_uses_injected_rules():
    rules = RiskRules(RiskThresholds(hba1c_at_risk=5.5, hba1c_critical=6.0))
    service = DashboardService(record_source=MagicMock(), rules=rules)

    assessment = service.assess_patient(result={"hba1c": "6.2"})

    assert assessment.risk == RiskLevel.CRITICAL
    assert assessment.factors == ["HbA1c: 6.2"]


def test_fetch_without_session_uses_requests_get(monkeypatch):
    """Each fetch is its own requests.get call when no session is injected."""
    response = MagicMock()
    response.json.return_value = {"consultations": [{"uuid": "a"}]}
    get = MagicMock(return_value=response)
    monkeypatch.setattr(requests, "get", get)
    client = RecordSourceClient(base_url="http://records.local/api", token="", timeout=3)

    assert client.fetch_consultations() == [{"uuid": "a"}]
    assert get.call_args.args[0] == "http://records.local/api/consultations/"
    assert get.call_args.kwargs["timeout"] == 3
    client.close()
