from typing import Any, Protocol

import requests

from ..config import Config
from ..errors import ErrorClass, TransportError
from ..sync.models import RemoteBlueprint, RemoteHierarchy, UpdateOutcome

API_PREFIX = "/api/v1"
BLUEPRINT_PREFIXES = ("bp_", "usr_")
HIERARCHY_PREFIX = "ha_"


class BlueprintApi(Protocol):
    """Catalog operations the sync coordinator depends on.

    Every method raises ``TransportError`` on failure.
    """

    def get_blueprint(self, blueprint_id: str) -> RemoteBlueprint:
        ...  # pragma: no cover

    def get_hierarchy(self, hierarchy_id: str) -> RemoteHierarchy:
        ...  # pragma: no cover

    def update_blueprint(
        self, blueprint_id: str, content: str, expected_checksum: str | None
    ) -> UpdateOutcome:
        ...  # pragma: no cover


def normalize_blueprint_id(blueprint_id: str) -> str:
    """Return *blueprint_id* with its ``bp_`` prefix."""
    if blueprint_id.startswith(BLUEPRINT_PREFIXES):
        return blueprint_id
    return f"bp_{blueprint_id}"


def normalize_hierarchy_id(hierarchy_id: str) -> str:
    """Return *hierarchy_id* with its ``ha_`` prefix."""
    if hierarchy_id.startswith(HIERARCHY_PREFIX):
        return hierarchy_id
    return f"{HIERARCHY_PREFIX}{hierarchy_id}"


class BlueprintClient:
    def __init__(self, config: Config):
        self.config = config
        self.base_url = f"{config.api_url.rstrip('/')}{API_PREFIX}"
        self._session: requests.Session | None = None

    @property
    def session(self) -> requests.Session:
        """Lazily created session carrying auth and TLS settings."""
        if self._session is None:
            self._session = self._create_session()
        return self._session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers["Authorization"] = f"Bearer {self.config.token}"
        session.headers["Content-Type"] = "application/json"
        session.verify = not self.config.insecure
        return session

    def _request(
        self,
        method: str,
        endpoint: str,
        payload: dict | None = None,
        allow_status: tuple[int, ...] = (),
    ) -> tuple[int, dict[str, Any]]:
        """
        Send a request to the catalog and decode the JSON body.

        Statuses in *allow_status* are returned to the caller instead of
        being raised.
        """
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(
                method, url, json=payload, timeout=self.config.timeout
            )
        except requests.Timeout as exc:
            raise TransportError(
                f"{method} {endpoint} timed out after {self.config.timeout}s",
                error_class=ErrorClass.OTHER,
            ) from exc
        except requests.RequestException as exc:
            raise TransportError(
                f"{method} {endpoint} failed: {exc}",
                error_class=ErrorClass.OTHER,
            ) from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.ok or response.status_code in allow_status:
            return response.status_code, data

        message = data.get("message") or data.get("error") or "Request failed"
        raise TransportError(message, status_code=response.status_code)

    def get_blueprint(self, blueprint_id: str) -> RemoteBlueprint:
        """
        Fetch one blueprint including its content.
        """
        _, data = self._request(
            "GET", f"/blueprints/{normalize_blueprint_id(blueprint_id)}"
        )
        return RemoteBlueprint.model_validate(data.get("blueprint", data))

    def get_hierarchy(self, hierarchy_id: str) -> RemoteHierarchy:
        """
        Fetch a hierarchy and its flat blueprint list.
        """
        _, data = self._request(
            "GET", f"/hierarchies/{normalize_hierarchy_id(hierarchy_id)}"
        )
        header = data.get("hierarchy") or {}
        return RemoteHierarchy(
            id=header.get("id", normalize_hierarchy_id(hierarchy_id)),
            name=header.get("name") or "",
            repository_root=header.get("repository_root") or "",
            blueprints=[
                RemoteBlueprint.model_validate(bp)
                for bp in data.get("blueprints") or []
            ],
        )

    def update_blueprint(
        self, blueprint_id: str, content: str, expected_checksum: str | None
    ) -> UpdateOutcome:
        """
        Replace a blueprint's content under optimistic locking.

        Returns:
            ``UpdateOutcome`` with the new checksum, or with
            ``conflict=True`` and the catalog's current checksum if
            *expected_checksum* was stale (HTTP 409).
        """
        payload: dict[str, Any] = {"content": content}
        if expected_checksum is not None:
            payload["expected_checksum"] = expected_checksum
        status, data = self._request(
            "PUT",
            f"/blueprints/{normalize_blueprint_id(blueprint_id)}",
            payload,
            allow_status=(409,),
        )
        if status == 409:
            current = data.get("current_checksum") or (
                data.get("blueprint") or {}
            ).get("content_checksum")
            return UpdateOutcome(conflict=True, checksum=current)
        blueprint = data.get("blueprint") or {}
        return UpdateOutcome(checksum=blueprint.get("content_checksum"))
