"""Probe all configured integrations on startup and report status."""

import httpx
from streamtracker.config import Settings


async def probe_all(settings: Settings) -> dict:
    """Check reachability of the catalog API and the account store. Returns status dict."""
    results = {}

    async with httpx.AsyncClient(timeout=5.0) as client:
        # TVMaze
        results["tvmaze"] = await _probe(client, f"{settings.tvmaze_url}/shows/1")

        # Firebase
        if settings.has_firebase:
            params = {"shallow": "true"}
            if settings.firebase_auth_token:
                params["auth"] = settings.firebase_auth_token
            results["firebase"] = await _probe(
                client, f"{settings.firebase_database_url.rstrip('/')}/.json", params=params,
            )
        else:
            results["firebase"] = {"status": "not_configured"}

    return results


async def _probe(client: httpx.AsyncClient, url: str, params: dict | None = None) -> dict:
    """Probe a single endpoint."""
    try:
        resp = await client.get(url, params=params)
        return {
            "status": "ok" if resp.status_code < 400 else "error",
            "code": resp.status_code,
        }
    except httpx.ConnectError:
        return {"status": "unreachable"}
    except httpx.HTTPError as e:
        return {"status": "error", "detail": str(e)[:200]}
