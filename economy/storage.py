"""Storage backends for shop items and global config."""

from __future__ import annotations

from dataclasses import asdict, replace
from typing import Dict, List, Optional, Protocol
import json
import sqlite3

from economy.models import CostType, GlobalRateConfig, ShopItem


class StorageBackend(Protocol):
    """Storage backend interface."""

    def save_item(self, item: ShopItem) -> ShopItem:
        ...

    def get_item(self, item_id: str) -> Optional[ShopItem]:
        ...

    def list_items(self) -> List[ShopItem]:
        ...

    def remove_item(self, item_id: str) -> bool:
        ...

    def update_base_price(self, item_id: str, price: int) -> None:
        ...

    def get_config(self) -> Dict[str, str]:
        ...

    def set_config_value(self, key: str, value: str) -> None:
        ...


class InMemoryStorage:
    """In-memory storage backend (default)."""

    def __init__(self):
        self._items: Dict[str, ShopItem] = {}
        self._config: Dict[str, str] = {}

    def save_item(self, item: ShopItem) -> ShopItem:
        self._items[item.id] = item
        return item

    def get_item(self, item_id: str) -> Optional[ShopItem]:
        return self._items.get(item_id)

    def list_items(self) -> List[ShopItem]:
        return list(self._items.values())

    def remove_item(self, item_id: str) -> bool:
        if item_id in self._items:
            del self._items[item_id]
            return True
        return False

    def update_base_price(self, item_id: str, price: int) -> None:
        item = self._items.get(item_id)
        if item is None:
            raise KeyError(f"Unknown shop item: {item_id}")
        self._items[item_id] = replace(item, base_price=price)

    def get_config(self) -> Dict[str, str]:
        return dict(self._config)

    def set_config_value(self, key: str, value: str) -> None:
        self._config[key] = value

    def get_rate_config(self) -> GlobalRateConfig:
        return GlobalRateConfig.from_mapping(self._config)


class SQLiteStorage:
    """SQLite-backed storage backend."""

    def __init__(self, db_path: str = "economy.db"):
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS shop_items (
                id TEXT PRIMARY KEY,
                name TEXT,
                usd_cost REAL NOT NULL DEFAULT 0,
                cost_type TEXT NOT NULL DEFAULT 'fixed',
                config TEXT,
                use_randomized_pricing INTEGER NOT NULL DEFAULT 1,
                base_price INTEGER NOT NULL DEFAULT 0,
                active INTEGER NOT NULL DEFAULT 1
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS global_config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        self._conn.commit()

    def save_item(self, item: ShopItem) -> ShopItem:
        self._conn.execute(
            """
            INSERT INTO shop_items (id, name, usd_cost, cost_type, config, use_randomized_pricing, base_price, active)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                usd_cost=excluded.usd_cost,
                cost_type=excluded.cost_type,
                config=excluded.config,
                use_randomized_pricing=excluded.use_randomized_pricing,
                base_price=excluded.base_price,
                active=excluded.active
            """,
            (
                item.id,
                item.name,
                item.usd_cost,
                CostType(item.cost_type).value,
                json.dumps(item.config) if item.config is not None else None,
                1 if item.use_randomized_pricing else 0,
                item.base_price,
                1 if item.active else 0,
            ),
        )
        self._conn.commit()
        return item

    def _row_to_item(self, row: sqlite3.Row) -> ShopItem:
        return ShopItem(
            id=row["id"],
            name=row["name"],
            usd_cost=row["usd_cost"],
            cost_type=CostType(row["cost_type"]),
            config=json.loads(row["config"]) if row["config"] else None,
            use_randomized_pricing=bool(row["use_randomized_pricing"]),
            base_price=row["base_price"],
            active=bool(row["active"]),
        )

    def get_item(self, item_id: str) -> Optional[ShopItem]:
        row = self._conn.execute(
            "SELECT * FROM shop_items WHERE id = ?",
            (item_id,),
        ).fetchone()
        if not row:
            return None
        return self._row_to_item(row)

    def list_items(self) -> List[ShopItem]:
        rows = self._conn.execute("SELECT * FROM shop_items ORDER BY id ASC").fetchall()
        return [self._row_to_item(row) for row in rows]

    def remove_item(self, item_id: str) -> bool:
        cur = self._conn.execute("DELETE FROM shop_items WHERE id = ?", (item_id,))
        self._conn.commit()
        return cur.rowcount > 0

    def update_base_price(self, item_id: str, price: int) -> None:
        cur = self._conn.execute(
            "UPDATE shop_items SET base_price = ? WHERE id = ?",
            (price, item_id),
        )
        self._conn.commit()
        if cur.rowcount == 0:
            raise KeyError(f"Unknown shop item: {item_id}")

    def get_config(self) -> Dict[str, str]:
        rows = self._conn.execute("SELECT key, value FROM global_config").fetchall()
        return {row["key"]: row["value"] for row in rows}

    def set_config_value(self, key: str, value: str) -> None:
        self._conn.execute(
            """
            INSERT INTO global_config (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
            (key, str(value)),
        )
        self._conn.commit()

    def get_rate_config(self) -> GlobalRateConfig:
        return GlobalRateConfig.from_mapping(self.get_config())

    def export_items(self) -> List[Dict[str, object]]:
        return [asdict(item) for item in self.list_items()]

    def close(self) -> None:
        self._conn.close()
