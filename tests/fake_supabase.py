"""
Double en mémoire du client Supabase (query builder PostgREST).
Couvre ce que les repositories utilisent: table().select/insert/update/delete
.eq/.in_/.order/.limit puis .execute() -> objet avec .data.

- Les comparaisons eq/in_ se font sur str(valeur), comme PostgREST qui reçoit tout en texte.
- fail(table, op): la prochaine exécution de cette opération lève une erreur (simule une panne).
- on_next(table, op, hook): hook exécuté juste avant la prochaine opération (simule un écrivain concurrent).
"""
from copy import deepcopy
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Tuple


class FakeStoreError(RuntimeError):
    pass


class FakeQuery:
    def __init__(self, db: "FakeClient", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[Callable[[dict], bool]] = []
        self.order_by: Optional[Tuple[str, bool]] = None
        self.max_rows: Optional[int] = None

    def select(self, columns: str = "*", **kwargs):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, values: Dict[str, Any]):
        self.op = "update"
        self.payload = values
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any):
        self.filters.append(lambda row: str(row.get(column)) == str(value))
        return self

    def in_(self, column: str, values):
        wanted = {str(v) for v in values}
        self.filters.append(lambda row: str(row.get(column)) in wanted)
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def limit(self, n: int):
        self.max_rows = n
        return self

    def execute(self):
        return self.db._execute(self)


class FakeClient:
    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None):
        self.tables: Dict[str, List[dict]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self.calls: List[Tuple[str, str]] = []
        self._failures: Dict[Tuple[str, str], Exception] = {}
        self._hooks: Dict[Tuple[str, str], Callable[["FakeClient"], None]] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    # API utilisée par le code applicatif
    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    # Outils de test
    def rows(self, table: str) -> List[dict]:
        return self.tables.setdefault(table, [])

    def row(self, table: str, row_id: Any) -> Optional[dict]:
        return next((r for r in self.rows(table) if str(r.get("id")) == str(row_id)), None)

    def fail(self, table: str, op: str, exc: Optional[Exception] = None) -> None:
        self._failures[(table, op)] = exc or FakeStoreError(f"{op} {table} indisponible")

    def on_next(self, table: str, op: str, hook: Callable[["FakeClient"], None]) -> None:
        self._hooks[(table, op)] = hook

    def count(self, table: str, op: str) -> int:
        return self.calls.count((table, op))

    def _next_id(self, table: str) -> int:
        ids = [r.get("id") for r in self.rows(table) if isinstance(r.get("id"), int)]
        return max(ids, default=0) + 1

    def _tick(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def _execute(self, q: FakeQuery):
        key = (q.table, q.op)
        self.calls.append(key)
        hook = self._hooks.pop(key, None)
        if hook:
            hook(self)
        failure = self._failures.pop(key, None)
        if failure:
            raise failure

        table = self.rows(q.table)
        if q.op == "insert":
            payloads = q.payload if isinstance(q.payload, list) else [q.payload]
            created = []
            for payload in payloads:
                row = dict(payload)
                row.setdefault("id", self._next_id(q.table))
                row.setdefault("created_at", self._tick())
                table.append(row)
                created.append(deepcopy(row))
            return SimpleNamespace(data=created)

        matched = [r for r in table if all(f(r) for f in q.filters)]
        if q.op == "update":
            for r in matched:
                r.update(q.payload)
            return SimpleNamespace(data=deepcopy(matched))
        if q.op == "delete":
            for r in matched:
                table.remove(r)
            return SimpleNamespace(data=deepcopy(matched))

        if q.order_by:
            column, desc = q.order_by
            matched = sorted(matched, key=lambda r: (r.get(column) is None, r.get(column) or 0), reverse=desc)
        if q.max_rows is not None:
            matched = matched[: q.max_rows]
        return SimpleNamespace(data=deepcopy(matched))
