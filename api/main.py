"""FastAPI server for the economy engine."""

from __future__ import annotations

import os
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Header, Depends
from pydantic import BaseModel, Field

from economy import (
    CostType,
    EconomyError,
    GlobalRateConfig,
    InvalidCostBasis,
    Project,
    SQLiteStorage,
    ShopItem,
    aggregate_for_users,
    quote_base_price,
    recalculate_fixed_prices,
    resolve_project_hours,
    sample_price,
)


def _get_api_key() -> Optional[str]:
    return os.getenv("ECONOMY_API_KEY")


def _require_api_key(x_api_key: Optional[str] = Header(default=None)) -> None:
    api_key = _get_api_key()
    if api_key and x_api_key != api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")


def _storage() -> SQLiteStorage:
    db_path = os.getenv("ECONOMY_DB_PATH", "economy.db")
    return SQLiteStorage(db_path=db_path)


def _rate_config(storage: SQLiteStorage) -> GlobalRateConfig:
    try:
        return storage.get_rate_config()
    except EconomyError as exc:
        raise HTTPException(status_code=500, detail=f"Stored rate config is invalid: {exc}") from exc


app = FastAPI(title="Economy Engine API", version="1.0.0")


class LinkModel(BaseModel):
    id: str
    raw_hours: Optional[float] = 0.0
    hours_override: Optional[float] = None


class ProjectModel(BaseModel):
    id: str
    user_id: str = ""
    shipped: bool = False
    viral: bool = False
    links: List[LinkModel] = Field(default_factory=list)
    approved_hours: Optional[float] = None


class ItemModel(BaseModel):
    id: str
    usd_cost: float = 0.0
    cost_type: CostType = CostType.FIXED
    config: Optional[Dict[str, Any]] = None
    use_randomized_pricing: bool = True
    base_price: int = Field(0, ge=0)


class ApprovedHoursRequest(BaseModel):
    projects_by_user: Dict[str, List[ProjectModel]]


class BasePriceRequest(BaseModel):
    item: ItemModel
    dollars_per_hour: Optional[float] = Field(None, gt=0)


class SampleRequest(BaseModel):
    item: ItemModel
    user_id: str = Field(..., min_length=1)
    at: Optional[datetime] = None


class ConfigRequest(BaseModel):
    dollars_per_hour: Optional[float] = Field(None, gt=0)
    price_random_min_percent: Optional[float] = Field(None, ge=0)
    price_random_max_percent: Optional[float] = Field(None, ge=0)


class RecalculateRequest(BaseModel):
    dollars_per_hour: float = Field(..., gt=0)


def _project(model: ProjectModel, user_id: str = "") -> Project:
    return Project.from_dict(model.model_dump(), user_id=model.user_id or user_id)


def _item(model: ItemModel) -> ShopItem:
    return ShopItem.from_dict(model.model_dump())


def _recalculate(storage: SQLiteStorage, rate: float) -> Dict[str, Any]:
    result = recalculate_fixed_prices(
        storage.list_items(),
        rate,
        persist=storage.update_base_price,
    )
    return {
        "recalculated": True,
        **result.summary(),
        "prices": result.prices,
        "errors": {item_id: str(error) for item_id, error in result.errors.items()},
    }


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/hours/project", dependencies=[Depends(_require_api_key)])
def project_hours(req: ProjectModel) -> Dict[str, Any]:
    return {"project_id": req.id, "effective_hours": resolve_project_hours(_project(req))}


@app.post("/approved-hours", dependencies=[Depends(_require_api_key)])
def approved_hours(req: ApprovedHoursRequest) -> Dict[str, Any]:
    batch = aggregate_for_users({
        user_id: [_project(p, user_id) for p in projects]
        for user_id, projects in req.projects_by_user.items()
    })
    return {
        "hours": batch.hours,
        "errors": {user_id: str(error) for user_id, error in batch.errors.items()},
    }


@app.post("/prices/base", dependencies=[Depends(_require_api_key)])
def base_price(req: BasePriceRequest) -> Dict[str, Any]:
    storage = _storage()
    try:
        rates = _rate_config(storage)
    finally:
        storage.close()
    rate = req.dollars_per_hour or rates.dollars_per_hour

    try:
        quote = quote_base_price(_item(req.item), rate)
    except InvalidCostBasis as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "item_id": quote.item_id,
        "price": quote.price,
        "mode": quote.mode.value,
        "hours": quote.hours,
    }


@app.post("/prices/sample", dependencies=[Depends(_require_api_key)])
def sample(req: SampleRequest) -> Dict[str, Any]:
    storage = _storage()
    try:
        rates = _rate_config(storage)
    finally:
        storage.close()

    at = req.at or datetime.now(UTC)
    try:
        price = sample_price(_item(req.item), req.user_id, at, rates)
    except InvalidCostBasis as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"item_id": req.item.id, "user_id": req.user_id, "price": price}


@app.get("/config", dependencies=[Depends(_require_api_key)])
def get_config() -> Dict[str, Any]:
    storage = _storage()
    try:
        return {"config": _rate_config(storage).to_mapping()}
    finally:
        storage.close()


@app.put("/config", dependencies=[Depends(_require_api_key)])
def update_config(req: ConfigRequest) -> Dict[str, Any]:
    storage = _storage()
    try:
        current = _rate_config(storage)
        updated = GlobalRateConfig(
            dollars_per_hour=req.dollars_per_hour or current.dollars_per_hour,
            price_random_min_percent=(
                req.price_random_min_percent
                if req.price_random_min_percent is not None
                else current.price_random_min_percent
            ),
            price_random_max_percent=(
                req.price_random_max_percent
                if req.price_random_max_percent is not None
                else current.price_random_max_percent
            ),
        )
        try:
            updated.validate()
        except EconomyError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        for key, value in updated.to_mapping().items():
            storage.set_config_value(key, value)

        # Stored prices only move when the rate actually changed
        recalculation: Dict[str, Any] = {"recalculated": False}
        if updated.dollars_per_hour != current.dollars_per_hour:
            recalculation = _recalculate(storage, updated.dollars_per_hour)

        return {"config": updated.to_mapping(), "recalculation": recalculation}
    finally:
        storage.close()


@app.post("/prices/recalculate", dependencies=[Depends(_require_api_key)])
def recalculate(req: RecalculateRequest) -> Dict[str, Any]:
    storage = _storage()
    try:
        storage.set_config_value("dollars_per_hour", str(req.dollars_per_hour))
        return _recalculate(storage, req.dollars_per_hour)
    finally:
        storage.close()
