"""ASGI application for Larder."""
# mypy: ignore-errors

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Optional
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field, model_validator

from larder import __version__, metrics
from larder.config import Settings, get_settings
from larder.errors import EntryNotFound, ItemNotActive, NotAuthenticated, StoreUnavailable
from larder.logging_utils import configure_logging as configure_app_logging
from larder.models.inventory import InventoryItem, StorageLocation
from larder.models.prediction import PredictionRecord, RestockRecommendation
from larder.models.scan import ScanEvent
from larder.models.shopping import ShoppingListEntry
from larder.server import deps

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Convert non-serializable values into JSON-safe representations."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value.hex()
    if isinstance(value, (list, tuple)):
        return [_json_safe(entry) for entry in value]
    if isinstance(value, dict):
        return {key: _json_safe(sub_value) for key, sub_value in value.items()}
    return repr(value)


def _normalize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{key: _json_safe(value) for key, value in error.items()} for error in errors]


def _configure_logging(settings: Settings) -> None:
    configure_app_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


def _log_extra(request: Request) -> dict[str, Any]:
    extra: dict[str, Any] = {}
    if request_id := getattr(request.state, "request_id", None):
        extra["request_id"] = request_id
    if user_id := getattr(request.state, "user_id", None):
        extra["user_id"] = user_id
    return extra


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="Larder Grocery Tracker", version=__version__)
    logger.debug("Application created with log level %s", settings.log_level)

    if settings.log_requests:
        access_logger = logging.getLogger("larder.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log request/response details without leaking sensitive data."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            start = perf_counter()
            path = request.url.path
            method = request.method
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.exception(
                    "HTTP %s %s status=500 duration_ms=%.2f",
                    method,
                    path,
                    duration_ms,
                    extra=_log_extra(request),
                )
                metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
                metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                    duration_ms / 1000.0
                )
                raise

            duration_ms = (perf_counter() - start) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                path,
                response.status_code,
                duration_ms,
                extra=_log_extra(request),
            )
            metrics.REQUEST_COUNT.labels(
                method=method,
                path=path,
                status=str(response.status_code),
            ).inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
            return response

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        body_preview: str | None = None
        raw_body = await request.body()
        if raw_body:
            decoded = raw_body.decode("utf-8", errors="replace")
            if len(decoded) > 2048:
                decoded = decoded[:2048] + "...(truncated)"
            body_preview = decoded

        logger.warning(
            "Validation error on %s %s: %s | body=%s",
            request.method,
            request.url.path,
            exc.errors(),
            body_preview,
            extra=_log_extra(request),
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": _normalize_validation_errors(exc.errors())},
        )

    @application.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        logger.error(
            "Store unavailable on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            extra=_log_extra(request),
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Temporarily unavailable, please try again"},
        )

    @application.exception_handler(NotAuthenticated)
    async def not_authenticated_handler(request: Request, exc: NotAuthenticated):
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)})

    @application.exception_handler(EntryNotFound)
    async def entry_not_found_handler(request: Request, exc: EntryNotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @application.exception_handler(ItemNotActive)
    async def item_not_active_handler(request: Request, exc: ItemNotActive):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @application.post(
        "/scan-in",
        response_model=InventoryItem,
        status_code=status.HTTP_201_CREATED,
        summary="Scan an item into inventory",
    )
    def scan_in_endpoint(
        payload: ScanInRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        user_id: str = Depends(deps.get_user_id),
        recorder: deps.ScanInRecorder = Depends(deps.get_scan_in_recorder),
    ) -> InventoryItem:
        try:
            return recorder(user_id, payload.model_dump(exclude_none=True))
        except EntryNotFound:
            raise
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    @application.post(
        "/scan-out",
        response_model=InventoryItem,
        summary="Scan an item out of inventory",
    )
    def scan_out_endpoint(
        payload: ScanOutRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        user_id: str = Depends(deps.get_user_id),
        recorder: deps.ScanOutRecorder = Depends(deps.get_scan_out_recorder),
    ) -> InventoryItem:
        return recorder(user_id, payload.item_id, payload.identity, payload.add_to_list)

    @application.get(
        "/inventory",
        response_model=list[InventoryItem],
        summary="List active inventory",
    )
    def inventory_list(
        search: Optional[str] = Query(default=None, max_length=255),
        category: Optional[str] = Query(default=None, max_length=128),
        user_id: str = Depends(deps.get_user_id),
        provider: deps.InventoryProvider = Depends(deps.get_inventory_provider),
    ) -> list[InventoryItem]:
        return provider(user_id, search, category)

    @application.get(
        "/inventory/categories",
        response_model=list[str],
        summary="List categories in active inventory",
    )
    def inventory_categories(
        user_id: str = Depends(deps.get_user_id),
        provider: deps.CategoryProvider = Depends(deps.get_category_provider),
    ) -> list[str]:
        return provider(user_id)

    @application.get(
        "/inventory/lookup/{identity}",
        response_model=InventoryItem,
        summary="Find an active item by barcode",
    )
    def inventory_lookup(
        identity: str,
        user_id: str = Depends(deps.get_user_id),
        lookup: deps.InventoryLookup = Depends(deps.get_inventory_lookup),
    ) -> InventoryItem:
        item = lookup(user_id, identity)
        if item is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found in inventory")
        return item

    @application.put(
        "/inventory/{item_id}",
        response_model=InventoryItem,
        summary="Edit an active inventory item",
    )
    def inventory_update(
        item_id: int,
        payload: InventoryUpdateRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        user_id: str = Depends(deps.get_user_id),
        updater: deps.InventoryUpdater = Depends(deps.get_inventory_updater),
    ) -> InventoryItem:
        update_payload = payload.model_dump(exclude_unset=True)
        if not update_payload:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields provided for update",
            )
        logger.debug("Updating inventory item %s with payload=%s", item_id, update_payload)
        try:
            return updater(user_id, item_id, update_payload)
        except EntryNotFound:
            raise
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    @application.get(
        "/scan-events",
        response_model=list[ScanEvent],
        summary="List scan history",
    )
    def scan_events_list(
        identity: Optional[str] = Query(default=None, max_length=255),
        user_id: str = Depends(deps.get_user_id),
        provider: deps.ScanEventProvider = Depends(deps.get_scan_event_provider),
    ) -> list[ScanEvent]:
        return provider(user_id, identity)

    @application.get(
        "/locations",
        response_model=list[StorageLocation],
        summary="List storage locations",
    )
    def locations_list(
        user_id: str = Depends(deps.get_user_id),
        provider: deps.LocationProvider = Depends(deps.get_location_provider),
    ) -> list[StorageLocation]:
        return provider(user_id)

    @application.post(
        "/locations",
        response_model=StorageLocation,
        status_code=status.HTTP_201_CREATED,
        summary="Add a storage location",
    )
    def locations_create(
        payload: LocationCreateRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        user_id: str = Depends(deps.get_user_id),
        creator: deps.LocationCreator = Depends(deps.get_location_creator),
    ) -> StorageLocation:
        try:
            return creator(user_id, payload.name)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    @application.get(
        "/predictions",
        response_model=list[PredictionRecord],
        summary="Consumption predictions",
    )
    def predictions_list(
        user_id: str = Depends(deps.get_user_id),
        provider: deps.PredictionProvider = Depends(deps.get_prediction_provider),
    ) -> list[PredictionRecord]:
        return provider(user_id)

    @application.get(
        "/recommendations",
        response_model=list[RestockRecommendation],
        summary="Items needing attention, most urgent first",
    )
    def recommendations_list(
        user_id: str = Depends(deps.get_user_id),
        provider: deps.RecommendationProvider = Depends(deps.get_recommendation_provider),
    ) -> list[RestockRecommendation]:
        return provider(user_id)

    @application.get(
        "/shopping-list",
        response_model=list[ShoppingListEntry],
        summary="List the shopping list (reconciled with predictions)",
    )
    def shopping_list_list(
        refresh: bool = Query(default=True),
        user_id: str = Depends(deps.get_user_id),
        provider: deps.ShoppingListProvider = Depends(deps.get_shopping_list_provider),
    ) -> list[ShoppingListEntry]:
        return provider(user_id, refresh)

    @application.post(
        "/shopping-list",
        response_model=ShoppingListEntry,
        status_code=status.HTTP_201_CREATED,
        summary="Add a definite shopping list entry",
    )
    def shopping_list_create(
        payload: ShoppingListCreateRequest = Body(...),
        auth: None = Depends(deps.require_api_token),
        user_id: str = Depends(deps.get_user_id),
        creator: deps.ShoppingListCreator = Depends(deps.get_shopping_list_creator),
    ) -> ShoppingListEntry:
        try:
            return creator(user_id, payload.model_dump())
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    @application.post(
        "/shopping-list/reconcile",
        response_model=list[ShoppingListEntry],
        summary="Refresh restock suggestions",
    )
    def shopping_list_reconcile(
        auth: None = Depends(deps.require_api_token),
        user_id: str = Depends(deps.get_user_id),
        reconciler: deps.ShoppingListReconciler = Depends(deps.get_shopping_list_reconciler),
    ) -> list[ShoppingListEntry]:
        return reconciler(user_id)

    @application.post(
        "/shopping-list/{entry_id}/confirm",
        response_model=ShoppingListEntry,
        summary="Promote a suggestion to a definite entry",
    )
    def shopping_list_confirm(
        entry_id: int,
        auth: None = Depends(deps.require_api_token),
        user_id: str = Depends(deps.get_user_id),
        promoter: deps.ShoppingListPromoter = Depends(deps.get_shopping_list_promoter),
    ) -> ShoppingListEntry:
        return promoter(user_id, entry_id)

    @application.post(
        "/shopping-list/{entry_id}/purchase",
        response_model=ShoppingListEntry,
        summary="Mark an entry as purchased",
    )
    def shopping_list_purchase(
        entry_id: int,
        auth: None = Depends(deps.require_api_token),
        user_id: str = Depends(deps.get_user_id),
        purchaser: deps.ShoppingListPurchaser = Depends(deps.get_shopping_list_purchaser),
    ) -> ShoppingListEntry:
        return purchaser(user_id, entry_id)

    @application.delete(
        "/shopping-list/{entry_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Remove a shopping list entry",
    )
    def shopping_list_delete(
        entry_id: int,
        auth: None = Depends(deps.require_api_token),
        user_id: str = Depends(deps.get_user_id),
        deleter: deps.ShoppingListDeleter = Depends(deps.get_shopping_list_deleter),
    ) -> None:
        deleter(user_id, entry_id)

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return application


class ScanInRequest(BaseModel):
    identity: str = Field(min_length=1, max_length=255)
    name: Optional[str] = Field(default=None, max_length=255)
    category: Optional[str] = Field(default=None, max_length=128)
    location: Optional[str] = Field(default=None, max_length=128)
    quantity: int = Field(default=1, ge=1)
    unit: str = Field(default="count", min_length=1, max_length=64)
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)


class ScanOutRequest(BaseModel):
    item_id: Optional[int] = Field(default=None, ge=1)
    identity: Optional[str] = Field(default=None, min_length=1, max_length=255)
    add_to_list: bool = Field(default=False)

    @model_validator(mode="after")
    def require_target(self) -> "ScanOutRequest":
        if self.item_id is None and self.identity is None:
            raise ValueError("Either item_id or identity is required")
        return self


class InventoryUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = Field(default=None, min_length=1, max_length=64)
    low_stock_threshold: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, max_length=128)
    location: Optional[str] = Field(default=None, max_length=128)


class LocationCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)


class ShoppingListCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    identity: Optional[str] = Field(default=None, max_length=255)
    category: Optional[str] = Field(default=None, max_length=128)
    quantity: int = Field(default=1, ge=1)


app = create_app()

__all__ = ["app", "create_app"]
