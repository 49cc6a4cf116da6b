# ABOUTME: ConfigHub API client wrapper with retry logic and error handling
# ABOUTME: Provides async interface to the ConfigHub REST API with typed entities

"""
ConfigHub API client with retry logic and structured error handling.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module provides the HTTP client the command handlers use to talk to the
ConfigHub REST API. It handles:

1. HTTP COMMUNICATION: Making requests to ConfigHub endpoints
2. AUTHENTICATION: Attaching the Bearer token to requests
3. ERROR HANDLING: Converting HTTP errors to HubError
4. RETRY LOGIC: Retrying requests that time out
5. TYPED ENTITIES: Turning PascalCase JSON into small dataclasses

=============================================================================
CONFIGHUB REST API OVERVIEW
=============================================================================

Everything lives under a Space:

    GET    /space/{space_id}/unit                   - List units
    GET    /space/{space_id}/unit/{unit_id}         - Get (extended) unit
    POST   /space/{space_id}/unit                   - Create unit
    PUT    /space/{space_id}/unit/{unit_id}         - Replace unit
    PATCH  /space/{space_id}/unit/{unit_id}         - Merge-patch unit
    POST   /space/{space_id}/unit/{unit_id}/apply   - Queue an apply
    GET    /space/{space_id}/unit/{unit_id}/unit_event - Operation progress
    POST   /space/{space_id}/link                   - Create link
    POST   /space/{space_id}/function/invoke        - Invoke functions

Bulk operations live at the organization level (PATCH /unit?where=... and
POST /unit/{action}?where=...) and answer 200 when every entity succeeded
or 207 with a per-entity result list.

Errors carry a JSON body {"Message": "..."} and an X-Request-Id header.

=============================================================================
ENTITIES AND APPLY GATES
=============================================================================

After a mutation the server may still be running TRIGGERS (validation and
mutation functions) on the unit. While they run, the unit's ApplyGates map
contains the key "awaiting/triggers". The waiting engine in waiting.py polls
get_unit() until that key disappears.
"""

# =============================================================================
# IMPORTS
# =============================================================================

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

if TYPE_CHECKING:
    from confighub_cli.config import HubSettings

logger = structlog.get_logger(__name__)

# Action statuses after which a queued operation is finished
TERMINAL_STATUSES = frozenset(["Completed", "Canceled", "Failed"])

MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"


def is_uuid(value: str) -> bool:
    """Return True if value parses as a UUID."""
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


# =============================================================================
# HUB ERROR CLASS
# =============================================================================


class HubError(Exception):
    """
    Structured ConfigHub API error.

    Preserves the HTTP status code, the server message and the request ID the
    server assigned, so a failed command can be matched with server logs.

    USAGE:
    ------
    try:
        unit = await client.get_unit(space_id, unit_id)
    except HubError as e:
        print(e)  # HTTP 404 for req 7f3c...: unit not found
    """

    def __init__(self, code: int, message: str, request_id: str | None = None) -> None:
        """
        Initialize ConfigHub error.

        Args:
            code: HTTP status code (e.g., 404, 500)
            message: Error message from ConfigHub
            request_id: Value of the X-Request-Id response header, if any
        """
        self.code = code
        self.message = message
        self.request_id = request_id
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.request_id:
            return f"HTTP {self.code} for req {self.request_id}: {self.message}"
        return f"HTTP {self.code}: {self.message}"


# =============================================================================
# ENTITY DATA CLASSES
# =============================================================================


@dataclass
class Space:
    """ConfigHub Space: tenancy boundary that owns units and links."""

    space_id: str
    slug: str
    display_name: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Space:
        """Create Space from API response."""
        return cls(
            space_id=data.get("SpaceID", ""),
            slug=data.get("Slug", ""),
            display_name=data.get("DisplayName", ""),
            labels=data.get("Labels") or {},
            raw=data,
        )


@dataclass
class Unit:
    """
    ConfigHub Unit representation.

    FIELDS EXPLAINED:
    -----------------
    - unit_id / space_id / organization_id: UUIDs identifying the unit
    - slug: URL-friendly name, unique within the space
    - toolchain_type: Config format, e.g. "Kubernetes/YAML"
    - apply_gates: Outstanding conditions blocking apply. None or a map
      without "awaiting/triggers" means no trigger is pending.
    - head_revision_num / live_revision_num: Latest and applied revisions
    - data: Base64-encoded configuration data
    - raw: Untouched JSON for --json output
    """

    unit_id: str
    space_id: str
    slug: str
    organization_id: str = ""
    display_name: str = ""
    toolchain_type: str = ""
    apply_gates: dict[str, bool] | None = None
    labels: dict[str, str] = field(default_factory=dict)
    head_revision_num: int = 0
    live_revision_num: int = 0
    last_change_description: str = ""
    data: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Unit:
        """
        Create Unit from API response.

        Missing keys fall back to empty values. ApplyGates keeps the
        None-vs-empty distinction the server reports.
        """
        return cls(
            unit_id=data.get("UnitID", ""),
            space_id=data.get("SpaceID", ""),
            slug=data.get("Slug", ""),
            organization_id=data.get("OrganizationID", ""),
            display_name=data.get("DisplayName", ""),
            toolchain_type=data.get("ToolchainType", ""),
            apply_gates=data.get("ApplyGates"),
            labels=data.get("Labels") or {},
            head_revision_num=data.get("HeadRevisionNum", 0),
            live_revision_num=data.get("LiveRevisionNum", 0),
            last_change_description=data.get("LastChangeDescription", ""),
            data=data.get("Data", ""),
            raw=data,
        )


@dataclass
class UnitEvent:
    """
    Progress record of a queued operation on a unit.

    `action` and `status` are normalised to "None" when the server omits them.
    """

    unit_event_id: str
    unit_id: str
    space_id: str
    queued_operation_id: str
    action: str
    status: str
    result: str = ""
    message: str = ""
    created_at: str = ""
    terminated_at: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_terminal(self) -> bool:
        """True once the operation completed, was canceled, or failed."""
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> UnitEvent:
        """Create UnitEvent from API response."""
        return cls(
            unit_event_id=data.get("UnitEventID", ""),
            unit_id=data.get("UnitID", ""),
            space_id=data.get("SpaceID", ""),
            queued_operation_id=data.get("QueuedOperationID", ""),
            action=data.get("Action") or "None",
            status=data.get("Status") or "None",
            result=data.get("Result") or "",
            message=data.get("Message", ""),
            created_at=data.get("CreatedAt", ""),
            terminated_at=data.get("TerminatedAt", ""),
            raw=data,
        )


@dataclass
class ExtendedUnit:
    """Unit plus its space and the latest unit event, as returned by GET unit."""

    unit: Unit
    space: Space | None = None
    latest_unit_event: UnitEvent | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ExtendedUnit:
        """
        Create ExtendedUnit from API response.

        Accepts both the extended shape {"Unit": {...}, ...} and a bare unit.
        """
        unit_data = data.get("Unit")
        if unit_data is None:
            return cls(unit=Unit.from_api_response(data))

        space_data = data.get("Space")
        event_data = data.get("LatestUnitEvent")
        return cls(
            unit=Unit.from_api_response(unit_data),
            space=Space.from_api_response(space_data) if space_data else None,
            latest_unit_event=UnitEvent.from_api_response(event_data) if event_data else None,
        )


@dataclass
class QueuedOperation:
    """Server handle for an asynchronous apply, refresh, destroy or import."""

    queued_operation_id: str
    unit_id: str
    space_id: str
    action: str
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> QueuedOperation:
        """Create QueuedOperation from API response."""
        return cls(
            queued_operation_id=data.get("QueuedOperationID", ""),
            unit_id=data.get("UnitID", ""),
            space_id=data.get("SpaceID", ""),
            action=data.get("Action") or "None",
            raw=data,
        )


@dataclass
class Link:
    """Dependency link from one unit to another, possibly in another space."""

    link_id: str
    space_id: str
    slug: str
    from_unit_id: str
    to_unit_id: str
    to_space_id: str
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> Link:
        """Create Link from API response."""
        return cls(
            link_id=data.get("LinkID", ""),
            space_id=data.get("SpaceID", ""),
            slug=data.get("Slug", ""),
            from_unit_id=data.get("FromUnitID", ""),
            to_unit_id=data.get("ToUnitID", ""),
            to_space_id=data.get("ToSpaceID", ""),
            raw=data,
        )


@dataclass
class BulkUnitResult:
    """Per-unit outcome of a bulk call: exactly one of unit or error is set."""

    unit: Unit | None = None
    error: str | None = None

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> BulkUnitResult:
        """Create BulkUnitResult from one element of a bulk response."""
        error = data.get("Error")
        if error:
            message = error.get("Message", "") if isinstance(error, dict) else str(error)
            return cls(error=message or "unknown error")
        unit_data = data.get("Unit")
        return cls(unit=Unit.from_api_response(unit_data) if unit_data else None)


@dataclass
class BulkOperationResult:
    """
    Per-unit outcome of a bulk action call.

    Exactly one of operation or error is set. entity_id names the unit that
    failed when the server reports it.
    """

    operation: QueuedOperation | None = None
    error: str | None = None
    entity_id: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> BulkOperationResult:
        """Create BulkOperationResult from one element of a bulk response."""
        error = data.get("Error")
        if error:
            if not isinstance(error, dict):
                return cls(error=str(error), raw=data)
            metadata = error.get("ErrorMetadata") or {}
            return cls(
                error=error.get("Message") or "unknown error",
                entity_id=metadata.get("EntityID", ""),
                raw=data,
            )
        action = data.get("Action")
        return cls(
            operation=QueuedOperation.from_api_response(action) if action else None,
            raw=data,
        )


@dataclass
class FunctionInvocationResult:
    """Result of invoking functions on one unit."""

    unit_id: str
    space_id: str
    success: bool
    error_messages: list[str] = field(default_factory=list)
    output: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> FunctionInvocationResult:
        """Create FunctionInvocationResult from API response."""
        return cls(
            unit_id=data.get("UnitID", ""),
            space_id=data.get("SpaceID", ""),
            success=bool(data.get("Success", False)),
            error_messages=list(data.get("ErrorMessages") or []),
            output=data.get("Output", ""),
            raw=data,
        )


# =============================================================================
# CONFIGHUB CLIENT
# =============================================================================


class HubClient:
    """
    Async ConfigHub API client with retry logic.

    ALWAYS use the context manager pattern:
        async with HubClient(settings) as client:
            unit = await client.get_unit(space_id, unit_id)

    RETRY LOGIC:
    ------------
    Only timeouts are retried (3 attempts, exponential 1s..10s). API errors
    (4xx, 5xx) are raised as HubError immediately.
    """

    def __init__(
        self,
        settings: HubSettings,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize ConfigHub client.

        The HTTP connection pool is created in __aenter__.

        Args:
            settings: Connection settings (URL, token, TLS)
            timeout: HTTP request timeout in seconds; defaults to
                     settings.request_timeout.
        """
        self._settings = settings
        self._timeout = timeout if timeout is not None else settings.request_timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> HubClient:
        """Enter async context and create the HTTP client."""
        headers = {"Content-Type": "application/json"}
        token = self._settings.token.get_secret_value()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self._settings.url,
            headers=headers,
            timeout=self._timeout,
            verify=not self._settings.insecure,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context and close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception_type(httpx.TimeoutException),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        content_type: str | None = None,
    ) -> Any:
        """
        Make HTTP request to the ConfigHub API.

        All other methods go through here.

        Args:
            method: HTTP method ("GET", "POST", "PUT", "PATCH", "DELETE")
            path: API path relative to the base URL
            params: URL query parameters (optional)
            json_data: JSON request body (optional)
            content_type: Override for the Content-Type header, used for
                          merge-patch bodies.

        Returns:
            Parsed JSON (dict or list), or None for an empty body.

        Raises:
            HubError: On API error (4xx, 5xx)
            httpx.TimeoutException: On request timeout (after retries)
            RuntimeError: If client not initialized (forgot async with)
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        log = logger.bind(method=method, path=path)
        log.debug("Making ConfigHub API request")

        if content_type is not None:
            response = await self._client.request(
                method,
                path,
                params=params,
                content=json.dumps(json_data).encode(),
                headers={"Content-Type": content_type},
            )
        else:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=json_data,
            )

        if response.status_code >= 400:
            error_body = response.text
            log.warning("ConfigHub API error", status=response.status_code, body=error_body[:200])

            message = error_body[:200] if error_body else f"HTTP {response.status_code}"
            try:
                error_json = response.json()
                if isinstance(error_json, dict):
                    message = error_json.get("Message") or error_json.get("message") or message
            except ValueError:
                pass

            raise HubError(
                code=response.status_code,
                message=message,
                request_id=response.headers.get("X-Request-Id"),
            )

        return response.json() if response.content else None

    # =========================================================================
    # SPACE OPERATIONS
    # =========================================================================

    async def list_spaces(self, where: str | None = None) -> list[Space]:
        """List spaces, optionally filtered. API: GET /space"""
        params = {"where": where} if where else None
        data = await self._request("GET", "/space", params=params)
        return [Space.from_api_response(item) for item in data or []]

    async def get_space(self, space_id: str) -> Space:
        """Get space by ID. API: GET /space/{space_id}"""
        data = await self._request("GET", f"/space/{space_id}")
        return Space.from_api_response(data or {})

    async def resolve_space(self, slug_or_id: str) -> Space:
        """
        Find a space by UUID or slug.

        Raises:
            HubError: 404 if no space has that slug.
        """
        if is_uuid(slug_or_id):
            return await self.get_space(slug_or_id)
        for space in await self.list_spaces(where=f"Slug = '{slug_or_id}'"):
            if space.slug == slug_or_id:
                return space
        raise HubError(404, f"space {slug_or_id} not found")

    # =========================================================================
    # UNIT OPERATIONS
    # =========================================================================

    async def list_units(self, space_id: str, where: str | None = None) -> list[Unit]:
        """List units in a space. API: GET /space/{space_id}/unit"""
        params = {"where": where} if where else None
        data = await self._request("GET", f"/space/{space_id}/unit", params=params)
        return [ExtendedUnit.from_api_response(item).unit for item in data or []]

    async def get_extended_unit(self, space_id: str, unit_id: str) -> ExtendedUnit:
        """
        Get unit with its space and latest event.

        API: GET /space/{space_id}/unit/{unit_id}

        Raises:
            HubError: If the unit does not exist, or the server returned a
                      unit that belongs to a different space.
        """
        data = await self._request("GET", f"/space/{space_id}/unit/{unit_id}")
        extended = ExtendedUnit.from_api_response(data or {})
        if extended.unit.space_id and extended.unit.space_id != space_id:
            raise HubError(404, f"unit {unit_id} not found in space {space_id}")
        return extended

    async def get_unit(self, space_id: str, unit_id: str) -> Unit:
        """Get unit by space and ID. This is the awaiting engine's fetch."""
        extended = await self.get_extended_unit(space_id, unit_id)
        return extended.unit

    async def resolve_unit(self, space_id: str, slug_or_id: str) -> Unit:
        """
        Find a unit in a space by UUID or slug.

        Raises:
            HubError: 404 if no unit has that slug.
        """
        if is_uuid(slug_or_id):
            return await self.get_unit(space_id, slug_or_id)
        for unit in await self.list_units(space_id, where=f"Slug = '{slug_or_id}'"):
            if unit.slug == slug_or_id:
                return unit
        raise HubError(404, f"unit {slug_or_id} not found in space {space_id}")

    async def create_unit(
        self,
        space_id: str,
        body: dict[str, Any],
    ) -> Unit:
        """Create a unit. API: POST /space/{space_id}/unit"""
        data = await self._request("POST", f"/space/{space_id}/unit", json_data=body)
        return Unit.from_api_response(data or {})

    async def update_unit(
        self,
        space_id: str,
        unit_id: str,
        body: dict[str, Any],
    ) -> Unit:
        """Replace a unit. API: PUT /space/{space_id}/unit/{unit_id}"""
        data = await self._request("PUT", f"/space/{space_id}/unit/{unit_id}", json_data=body)
        return Unit.from_api_response(data or {})

    async def patch_unit(
        self,
        space_id: str,
        unit_id: str,
        patch: dict[str, Any],
    ) -> Unit:
        """
        Merge-patch a unit.

        API: PATCH /space/{space_id}/unit/{unit_id}
        Content-Type: application/merge-patch+json
        """
        data = await self._request(
            "PATCH",
            f"/space/{space_id}/unit/{unit_id}",
            json_data=patch,
            content_type=MERGE_PATCH_CONTENT_TYPE,
        )
        return Unit.from_api_response(data or {})

    async def bulk_patch_units(
        self,
        where: str,
        patch: dict[str, Any],
    ) -> list[BulkUnitResult]:
        """
        Merge-patch every unit matching a filter.

        API: PATCH /unit?where=...

        The server answers 200 when all units were updated and 207 with
        mixed results; both come back as a list of per-unit outcomes.
        """
        data = await self._request(
            "PATCH",
            "/unit",
            params={"where": where},
            json_data=patch,
            content_type=MERGE_PATCH_CONTENT_TYPE,
        )
        return [BulkUnitResult.from_api_response(item) for item in data or []]

    async def delete_unit(self, space_id: str, unit_id: str) -> None:
        """Delete a unit. API: DELETE /space/{space_id}/unit/{unit_id}"""
        await self._request("DELETE", f"/space/{space_id}/unit/{unit_id}")

    # =========================================================================
    # QUEUED OPERATIONS
    # =========================================================================

    async def _queue_operation(self, space_id: str, unit_id: str, action: str) -> QueuedOperation | None:
        data = await self._request("POST", f"/space/{space_id}/unit/{unit_id}/{action}")
        if not data:
            return None
        return QueuedOperation.from_api_response(data)

    async def apply_unit(self, space_id: str, unit_id: str) -> QueuedOperation | None:
        """Queue an apply of the unit to its target."""
        return await self._queue_operation(space_id, unit_id, "apply")

    async def refresh_unit(self, space_id: str, unit_id: str) -> QueuedOperation | None:
        """Queue a refresh of the unit from its target."""
        return await self._queue_operation(space_id, unit_id, "refresh")

    async def destroy_unit(self, space_id: str, unit_id: str) -> QueuedOperation | None:
        """Queue removal of the unit's resources from its target."""
        return await self._queue_operation(space_id, unit_id, "destroy")

    async def import_unit(self, space_id: str, unit_id: str) -> QueuedOperation | None:
        """Queue an import of live resources into the unit."""
        return await self._queue_operation(space_id, unit_id, "import")

    async def _bulk_queue_operation(self, action: str, where: str) -> list[BulkOperationResult]:
        """
        Queue an action on every unit matching a filter.

        API: POST /unit/{action}?where=...

        Like bulk patch, the server answers 200 or 207 with one entry per unit.
        """
        data = await self._request("POST", f"/unit/{action}", params={"where": where})
        return [BulkOperationResult.from_api_response(item) for item in data or []]

    async def bulk_apply_units(self, where: str) -> list[BulkOperationResult]:
        """Queue an apply on every unit matching where."""
        return await self._bulk_queue_operation("apply", where)

    async def bulk_refresh_units(self, where: str) -> list[BulkOperationResult]:
        """Queue a refresh on every unit matching where."""
        return await self._bulk_queue_operation("refresh", where)

    async def bulk_destroy_units(self, where: str) -> list[BulkOperationResult]:
        """Queue a destroy on every unit matching where."""
        return await self._bulk_queue_operation("destroy", where)

    async def bulk_import_units(self, where: str) -> list[BulkOperationResult]:
        """Queue an import on every unit matching where."""
        return await self._bulk_queue_operation("import", where)

    async def list_unit_events(
        self,
        space_id: str,
        unit_id: str,
        where: str | None = None,
    ) -> list[UnitEvent]:
        """
        List events recorded for a unit.

        API: GET /space/{space_id}/unit/{unit_id}/unit_event

        Filter by operation with where="QueuedOperationID='<id>'".
        """
        params = {"where": where} if where else None
        data = await self._request(
            "GET",
            f"/space/{space_id}/unit/{unit_id}/unit_event",
            params=params,
        )
        return [UnitEvent.from_api_response(item) for item in data or []]

    # =========================================================================
    # LINK OPERATIONS
    # =========================================================================

    async def list_links(self, space_id: str, where: str | None = None) -> list[Link]:
        """List links in a space. API: GET /space/{space_id}/link"""
        params = {"where": where} if where else None
        data = await self._request("GET", f"/space/{space_id}/link", params=params)
        return [Link.from_api_response(item) for item in data or []]

    async def get_link(self, space_id: str, link_id: str) -> Link:
        """Get link by ID. API: GET /space/{space_id}/link/{link_id}"""
        data = await self._request("GET", f"/space/{space_id}/link/{link_id}")
        return Link.from_api_response(data or {})

    async def resolve_link(self, space_id: str, slug_or_id: str) -> Link:
        """Find a link in a space by UUID or slug."""
        if is_uuid(slug_or_id):
            return await self.get_link(space_id, slug_or_id)
        for link in await self.list_links(space_id, where=f"Slug = '{slug_or_id}'"):
            if link.slug == slug_or_id:
                return link
        raise HubError(404, f"link {slug_or_id} not found in space {space_id}")

    async def create_link(self, space_id: str, body: dict[str, Any]) -> Link:
        """Create a link. API: POST /space/{space_id}/link"""
        data = await self._request("POST", f"/space/{space_id}/link", json_data=body)
        return Link.from_api_response(data or {})

    async def delete_link(self, space_id: str, link_id: str) -> None:
        """Delete a link. API: DELETE /space/{space_id}/link/{link_id}"""
        await self._request("DELETE", f"/space/{space_id}/link/{link_id}")

    # =========================================================================
    # FUNCTION OPERATIONS
    # =========================================================================

    async def invoke_functions(
        self,
        space_id: str,
        request: dict[str, Any],
        where: str | None = None,
    ) -> list[FunctionInvocationResult]:
        """
        Invoke functions on units of a space.

        API: POST /space/{space_id}/function/invoke

        Args:
            space_id: Space whose units are targeted
            request: FunctionInvocationsRequest body
            where: Optional unit filter

        Returns:
            One result per unit the functions ran on.
        """
        params = {"where": where} if where else None
        data = await self._request(
            "POST",
            f"/space/{space_id}/function/invoke",
            params=params,
            json_data=request,
        )
        return [FunctionInvocationResult.from_api_response(item) for item in data or []]
