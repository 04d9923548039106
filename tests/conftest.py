"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core import config, zoho_client  # noqa: E402
from core.database import connection, init_schema  # noqa: E402
from core.sessions import CredentialRecord, session_store  # noqa: E402

API_DOMAIN = "https://www.zohoapis.com"


def make_deal(
    deal_id: str,
    name: str = "Concierto",
    artist_id: str | None = "A1",
    account_id: str | None = "P1",
    stage: str = "Confirmado",
) -> dict:
    """Raw Zoho deal record as returned by the Deals module."""
    return {
        "id": deal_id,
        "Deal_Name": name,
        "Fecha_Inicio_Evento": "2025-07-01T20:00:00-05:00",
        "Fecha_Fin_Evento": "2025-07-01T23:30:00-05:00",
        "Artista": {"id": artist_id, "name": "Los Artistas"} if artist_id else None,
        "Ciudad": "Bogota",
        "Recinto": {"id": "V1", "name": "Teatro Colon"},
        "Cach": 1500,
        "Account_Name": {"id": account_id, "name": "Promo SAS"} if account_id else None,
        "Stage": stage,
    }


class FakeZoho:
    """In-memory stand-in for the Zoho accounts server and CRM API."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.deals: list[dict] = []
        self.artists: dict[str, dict] = {"A1": {"id": "A1", "Tipo_de_Eventos": "Concierto"}}
        self.accounts: dict[str, dict] = {
            "P1": {
                "id": "P1",
                "Tel_fono_Contratacion": "+57 300 0000000",
                "Correo_Contratacion": "booking@promo.co",
            }
        }
        self.lookups: dict[str, list[dict]] = {
            "Artistas": [{"id": "A1", "Name": "Los Artistas"}],
            "Accounts": [{"id": "P1", "Account_Name": "Promo SAS"}],
            "Recintos": [{"id": "V1", "Name": "Teatro Colon", "Localidad": "Bogota"}],
        }
        # path -> HTTP status to fail with
        self.failures: dict[str, int] = {}
        # path -> raw 200 body that is not a JSON object
        self.malformed: dict[str, str] = {}
        self.token_response: dict = {
            "access_token": "access-1",
            "refresh_token": "refresh-1",
            "expires_in": 3600,
            "api_domain": API_DOMAIN,
            "token_type": "Bearer",
        }
        self.refresh_response: dict = {"access_token": "access-2", "expires_in": 3600}
        self.task_result: dict = {
            "code": "SUCCESS",
            "details": {"id": "T1"},
            "message": "record added",
            "status": "success",
        }
        self.tasks: list[dict] = []

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.failures:
            return httpx.Response(self.failures[path], json={"code": "NO_PERMISSION"})
        if path in self.malformed:
            return httpx.Response(200, text=self.malformed[path])

        if path == "/oauth/v2/token":
            if request.url.params.get("grant_type") == "refresh_token":
                return httpx.Response(200, json=self.refresh_response)
            return httpx.Response(200, json=self.token_response)
        if path == "/oauth/v2/token/revoke":
            return httpx.Response(200, json={"status": "success"})

        if not path.startswith("/crm/v8/"):
            return httpx.Response(404)
        module_path = path[len("/crm/v8/"):]

        if module_path in ("Deals", "Deals/search"):
            if not self.deals:
                return httpx.Response(204)
            return httpx.Response(200, json={"data": self.deals})
        if module_path.startswith("Deals/"):
            deal_id = module_path.split("/", 1)[1]
            found = [d for d in self.deals if d["id"] == deal_id]
            if not found:
                return httpx.Response(204)
            return httpx.Response(200, json={"data": found})
        if module_path == "Tasks":
            self.tasks.append(request)
            return httpx.Response(201, json={"data": [self.task_result]})
        if module_path.startswith("Artistas/"):
            return self._record(self.artists, module_path)
        if module_path.startswith("Accounts/"):
            return self._record(self.accounts, module_path)
        if module_path in self.lookups:
            return httpx.Response(200, json={"data": self.lookups[module_path]})
        return httpx.Response(404)

    @staticmethod
    def _record(records: dict[str, dict], module_path: str) -> httpx.Response:
        record = records.get(module_path.split("/", 1)[1])
        if record is None:
            return httpx.Response(204)
        return httpx.Response(200, json={"data": [record]})


@pytest.fixture(autouse=True)
def db_path(tmp_path, monkeypatch):
    """Point the store at a fresh database for every test."""
    path = tmp_path / "test.db"
    monkeypatch.setattr(config, "DB_PATH", path)
    with connection() as conn:
        init_schema(conn)
    return path


@pytest.fixture(autouse=True)
def clear_sessions():
    session_store.clear()
    yield
    session_store.clear()


@pytest.fixture
def zoho(monkeypatch):
    """Fake Zoho behind the shared HTTP client."""
    fake = FakeZoho()
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake.handler))
    monkeypatch.setattr(zoho_client, "_http_client", client)
    return fake


@pytest.fixture
def credentials():
    return CredentialRecord(
        access_token="access-1",
        refresh_token="refresh-1",
        expires_in=3600,
        issued_at=1_700_000_000.0,
        api_domain=API_DOMAIN,
    )


@pytest.fixture
def sample_event_body():
    """Valid body for POST /api/event, minus the status id."""
    return {
        "start_date": "2030-05-01",
        "start_time": "2030-05-01T20:00:00Z",
        "end_date": "2030-05-01",
        "end_time": "2030-05-01T23:00:00Z",
        "event_name": "Festival",
        "artist_name": "Banda",
        "artist_type": "Concierto",
        "city": "Medellin",
        "venue": "Estadio",
        "artist_amount": 2500,
        "promoter_name": "Promo SAS",
        "promoter_phone": "123",
        "promoter_email": "p@example.com",
    }
