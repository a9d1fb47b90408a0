"""
flatsql HTTP console - FastAPI server.
Accepts program text over HTTP, runs it against the configured database
file and returns the statement output. Every response includes engine logs.
"""

import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from flatsql.api import FlatSQL
from flatsql.config import settings
from flatsql.errors import FlatSQLError, TableNotFoundError
from flatsql.log import LogLevel, set_global_level


# ── Database connection ──────────────────────────────────────────

# One connection per server process; runs are applied one at a time
_db: Optional[FlatSQL] = None
_db_lock = threading.Lock()


def get_db() -> FlatSQL:
    """Open the configured database file on first use."""
    global _db
    if _db is None:
        try:
            _db = FlatSQL(settings.DATABASE_FILE)
        except FlatSQLError as e:
            raise HTTPException(status_code=503, detail=f"Error opening database: {e}")
    return _db


def close_db() -> None:
    global _db
    if _db is not None:
        _db.close()
        _db = None


# ── Lifespan ─────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    yield
    close_db()


# ── FastAPI app ──────────────────────────────────────────────────

app = FastAPI(title="flatsql console", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET"],
    allow_headers=["Content-Type"],
)


# ── Log capture ──────────────────────────────────────────────────


class LogCaptureHandler(logging.Handler):
    """
    Temporary logging handler that buffers log records.
    Attach to flatsql.* loggers during execute() to capture engine logs.
    """

    def __init__(self):
        super().__init__()
        self.records: List[Dict[str, str]] = []

    def emit(self, record: logging.LogRecord):
        self.records.append(
            {
                "level": record.levelname,
                "component": record.name.replace("flatsql.", ""),
                "message": record.getMessage(),
                "timestamp": self.format(record),
            }
        )


def capture_logs(func):
    """
    Run a function while capturing all flatsql.* log output.
    Returns (result, logs).
    """
    handler = LogCaptureHandler()
    formatter = logging.Formatter("%(asctime)s", datefmt="%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)

    # Attach to the root flatsql logger so we capture all components
    handler.setLevel(logging.INFO)
    flatsql_logger = logging.getLogger("flatsql")
    previous_level = set_global_level(LogLevel.INFO)
    flatsql_logger.addHandler(handler)

    try:
        result = func()
    finally:
        flatsql_logger.removeHandler(handler)
        set_global_level(previous_level)

    return result, handler.records


# ── Request / Response models ────────────────────────────────────


class ExecuteRequest(BaseModel):
    sql: str


class SelectResult(BaseModel):
    table: str
    columns: List[str]
    rows: List[Dict[str, Any]]


class ExecuteResponse(BaseModel):
    messages: List[str]
    results: List[SelectResult]
    executed: int
    error: Optional[str] = None
    error_kind: Optional[str] = None
    logs: List[Dict[str, str]]


class TablesResponse(BaseModel):
    tables: List[str]


class TableSchemaResponse(BaseModel):
    name: str
    columns: Dict[str, str]
    row_count: int


def result_columns(rows: List[Dict[str, Any]]) -> List[str]:
    """Union of row keys in first-seen order."""
    columns: Dict[str, None] = {}
    for row in rows:
        for name in row:
            columns.setdefault(name, None)
    return list(columns)


# ── Routes ───────────────────────────────────────────────────────


@app.post("/api/v1/execute", response_model=ExecuteResponse)
def execute_sql(req: ExecuteRequest):
    """Run a program against the database and save it afterwards."""
    with _db_lock:
        db = get_db()
        result, logs = capture_logs(lambda: db.execute(req.sql))

    selections = [
        SelectResult(
            table=selection.statement.table,
            columns=result_columns(selection.rows),
            rows=selection.rows,
        )
        for selection in result.selections
    ]
    return ExecuteResponse(
        messages=result.messages,
        results=selections,
        executed=len(result.results),
        error=str(result.error) if result.error is not None else None,
        error_kind=result.error_kind.value if result.error_kind is not None else None,
        logs=logs,
    )


@app.get("/api/v1/tables", response_model=TablesResponse)
def list_tables():
    """List all tables in the database."""
    with _db_lock:
        return TablesResponse(tables=get_db().get_table_names())


@app.get("/api/v1/tables/{name}", response_model=TableSchemaResponse)
def describe_table(name: str):
    """Show one table's columns and row count."""
    with _db_lock:
        db = get_db()
        try:
            table = db.db.get_table(name.upper())
        except TableNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return TableSchemaResponse(
            name=table.name, columns=dict(table.schema), row_count=len(table.rows)
        )


@app.get("/api/v1/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


def run() -> None:
    """Serve the console with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
