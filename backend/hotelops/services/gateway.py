"""
Supabase Gateway
Rows and remote procedures through PostgREST, objects through Storage.

Every service talks to the backend through this class. Rows come back as
plain JSON; callers validate them with ``parse_row``/``parse_rows`` so that a
shape mismatch surfaces as ``GatewayResponseError`` at this edge.
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Type, TypeVar
import logging
import re

import httpx
from pydantic import BaseModel, ValidationError

from hotelops.errors import GatewayError, GatewayResponseError, RecordNotFound

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SINGLE_OBJECT = "application/vnd.pgrst.object+json"
NO_ROWS_CODE = "PGRST116"


class Filter(NamedTuple):
    column: str
    op: str
    value: Any


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def in_(column: str, values: Iterable[Any]) -> Filter:
    return Filter(column, "in", list(values))


def not_is(column: str, value: Any) -> Filter:
    return Filter(column, "not.is", value)


def any_ilike(columns: Sequence[str], term: str) -> Filter:
    """Case-insensitive substring match on any of ``columns``."""
    return Filter(",".join(columns), "or_ilike", term)


def any_eq(conditions: Dict[str, Any]) -> Filter:
    """Exact match on any one of several columns, e.g. ``{"email": e, "phone": p}``."""
    return Filter(",".join(conditions), "or_eq", list(conditions.values()))


def _encode_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _quote_list_item(value: Any) -> str:
    text = _encode_value(value)
    if re.search(r'[,()"]', text):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def encode_filter(f: Filter) -> tuple:
    """Render a filter as a PostgREST query parameter pair."""
    if f.op == "in":
        return f.column, "in.(" + ",".join(_quote_list_item(v) for v in f.value) + ")"
    if f.op == "or_ilike":
        term = _encode_value(f.value)
        parts = [f"{column}.ilike.*{term}*" for column in f.column.split(",")]
        return "or", "(" + ",".join(parts) + ")"
    if f.op == "or_eq":
        parts = [f"{column}.eq.{_quote_list_item(value)}" for column, value in zip(f.column.split(","), f.value)]
        return "or", "(" + ",".join(parts) + ")"
    return f.column, f"{f.op}.{_encode_value(f.value)}"


def _jsonable(values: Any) -> Any:
    if isinstance(values, BaseModel):
        return values.model_dump(mode="json", exclude_unset=True)
    if isinstance(values, dict):
        return {k: _jsonable(v) for k, v in values.items()}
    if isinstance(values, list):
        return [_jsonable(v) for v in values]
    if isinstance(values, (date, datetime)):
        return values.isoformat()
    if isinstance(values, Enum):
        return values.value
    if isinstance(values, Decimal):
        return float(values)
    return values


def parse_row(model: Type[ModelT], data: Any) -> ModelT:
    """Validate one backend row into ``model``, failing closed on mismatch."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.error("Unexpected %s payload from backend: %s", model.__name__, exc)
        raise GatewayResponseError(
            f"Backend returned an invalid {model.__name__}",
            code="invalid_response",
            details=exc.errors(include_url=False),
        ) from exc


def parse_rows(model: Type[ModelT], data: Any) -> List[ModelT]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise GatewayResponseError(
            f"Expected a list of {model.__name__} rows", code="invalid_response",
        )
    return [parse_row(model, row) for row in data]


class SupabaseGateway:
    """Async client for one Supabase project, acting with the caller's access token."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    @staticmethod
    def _error_from(response: httpx.Response) -> GatewayError:
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}
        if not isinstance(body, dict):
            body = {"message": str(body)}

        message = body.get("message") or body.get("error") or response.reason_phrase
        code = body.get("code") or body.get("error")
        details = body.get("details") or body.get("hint")

        if code == NO_ROWS_CODE:
            return RecordNotFound(message, status_code=response.status_code, code=code, details=details)
        return GatewayError(message, status_code=response.status_code, code=code, details=details)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[List[tuple]] = None,
        json: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        try:
            response = await self.client.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=json,
                content=content,
                headers=self._headers(headers),
            )
        except httpx.HTTPError as exc:
            logger.error("Backend request %s %s failed: %s", method, path, exc)
            raise GatewayError(f"Backend unreachable: {exc}") from exc

        if response.is_error:
            raise self._error_from(response)
        return response

    # ============== Rows ==============

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
        single: bool = False,
    ) -> Any:
        """
        Read rows from a table.

        Args:
            table: Table or view name
            columns: PostgREST select list, embedded relations included
            filters: Row predicates
            order: Column to order by
            ascending: Order direction
            limit: Maximum rows
            single: Expect exactly one row; raises RecordNotFound otherwise

        Returns:
            A row dict when ``single`` is set, a list of row dicts otherwise
        """
        params = [("select", columns)]
        params.extend(encode_filter(f) for f in filters)
        if order:
            params.append(("order", f"{order}.{'asc' if ascending else 'desc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))

        headers = {"Accept": SINGLE_OBJECT} if single else None
        response = await self._request("GET", f"/rest/v1/{table}", params=params, headers=headers)
        return response.json()

    async def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        """Exact row count, without fetching rows."""
        params = [("select", "id")]
        params.extend(encode_filter(f) for f in filters)
        response = await self._request(
            "HEAD", f"/rest/v1/{table}", params=params, headers={"Prefer": "count=exact"},
        )
        content_range = response.headers.get("content-range", "")
        try:
            return int(content_range.rsplit("/", 1)[1])
        except (IndexError, ValueError) as exc:
            raise GatewayResponseError(
                f"Missing row count for {table}", code="invalid_response",
            ) from exc

    async def insert(self, table: str, values: Any, single: bool = True) -> Any:
        headers = {"Prefer": "return=representation"}
        if single:
            headers["Accept"] = SINGLE_OBJECT
        response = await self._request(
            "POST", f"/rest/v1/{table}", params=[("select", "*")], json=_jsonable(values), headers=headers,
        )
        return response.json()

    async def update(
        self,
        table: str,
        values: Any,
        filters: Sequence[Filter],
        columns: str = "*",
        single: bool = False,
    ) -> Any:
        headers = {"Prefer": "return=representation"}
        if single:
            headers["Accept"] = SINGLE_OBJECT
        params = [("select", columns)]
        params.extend(encode_filter(f) for f in filters)
        response = await self._request(
            "PATCH", f"/rest/v1/{table}", params=params, json=_jsonable(values), headers=headers,
        )
        return response.json()

    async def delete(self, table: str, filters: Sequence[Filter]) -> None:
        params = [encode_filter(f) for f in filters]
        await self._request("DELETE", f"/rest/v1/{table}", params=params, headers={"Prefer": "return=minimal"})

    async def rpc(self, function: str, params: Dict[str, Any]) -> Any:
        response = await self._request("POST", f"/rest/v1/rpc/{function}", json=_jsonable(params))
        return response.json()

    # ============== Storage ==============

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: Optional[str] = None,
        cache_control: str = "3600",
        upsert: bool = False,
    ) -> str:
        """Store an object and return its key."""
        headers = {
            "Content-Type": content_type or "application/octet-stream",
            "cache-control": f"max-age={cache_control}",
            "x-upsert": "true" if upsert else "false",
        }
        response = await self._request(
            "POST", f"/storage/v1/object/{bucket}/{path}", content=content, headers=headers,
        )
        return response.json().get("Key", f"{bucket}/{path}")

    async def remove(self, bucket: str, paths: Sequence[str]) -> None:
        await self._request("DELETE", f"/storage/v1/object/{bucket}", json={"prefixes": list(paths)})

    async def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        response = await self._request(
            "POST", f"/storage/v1/object/sign/{bucket}/{path}", json={"expiresIn": expires_in},
        )
        signed = response.json().get("signedURL")
        if not signed:
            raise GatewayResponseError("Storage did not return a signed URL", code="invalid_response")
        return f"{self.base_url}/storage/v1{signed}"

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{path}"
