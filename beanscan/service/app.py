"""FastAPI application entrypoint for beanscan service mode."""

from __future__ import annotations

import asyncio
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..document import render_document
from ..errors import BeanScanError, UnresolvedClassError
from ..indices import DerivedIndices
from ..logging import get_logger
from ..session import ScanResult, ScanSession, open_session

_LOGGER = get_logger("service")

SessionFactory = Callable[[Path, Path], ScanSession]


class ScanRequest(BaseModel):
    root: str
    snapshot: str
    target: str
    method: Optional[str] = None
    timeout: Optional[float] = None


class BeanModel(BaseModel):
    id: str
    origin: str
    class_name: Optional[str] = None
    fragment: str


class ScanResponse(BaseModel):
    status: str
    target: str
    beans: List[BeanModel]
    skipped: List[str]
    from_cache: bool
    document: str


class RefreshRequest(BaseModel):
    root: str
    snapshot: str


class RefreshResponse(BaseModel):
    status: str
    configuration_classes: int
    declarations: int
    mapper_namespaces: int


class HealthResponse(BaseModel):
    status: str


class _SessionPool:
    """One session per ``(root, snapshot)``, shared across requests."""

    def __init__(self, factory: SessionFactory) -> None:
        self._factory = factory
        self._sessions: Dict[Tuple[str, str], ScanSession] = {}
        self._lock = threading.Lock()

    def get(self, root: str, snapshot: str) -> ScanSession:
        root_path = Path(root).expanduser().resolve()
        snapshot_path = Path(snapshot).expanduser().resolve()
        key = (str(root_path), str(snapshot_path))
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = self._factory(root_path, snapshot_path)
                self._sessions[key] = session
            return session

    def close(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()


def create_app(session_factory: SessionFactory = open_session) -> FastAPI:
    """Create the FastAPI application exposing beanscan operations."""

    pool = _SessionPool(session_factory)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        pool.close()

    app = FastAPI(title="BeanScan Service", version="0.1.0", lifespan=lifespan)

    async def _in_executor(func: Callable[[], Any]) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/scan", response_model=ScanResponse)
    async def scan(payload: ScanRequest) -> ScanResponse:
        def _run_scan() -> ScanResult:
            session = pool.get(payload.root, payload.snapshot)
            return session.scan(
                payload.target, target_method=payload.method, timeout=payload.timeout
            )

        result = await _in_executor(_run_scan)
        label = payload.target if not payload.method else f"{payload.target}#{payload.method}"
        return ScanResponse(
            status=result.status.value,
            target=result.target,
            beans=[
                BeanModel(
                    id=definition.bean_id,
                    origin=definition.origin.value,
                    class_name=definition.class_name,
                    fragment=definition.fragment,
                )
                for definition in result.definitions
            ],
            skipped=list(result.skipped),
            from_cache=result.from_cache,
            document=render_document(result.definitions, target=label),
        )

    @app.post("/refresh", response_model=RefreshResponse)
    async def refresh(payload: RefreshRequest) -> RefreshResponse:
        def _run_refresh() -> DerivedIndices:
            return pool.get(payload.root, payload.snapshot).refresh()

        indices = await _in_executor(_run_refresh)
        return RefreshResponse(
            status="ok",
            configuration_classes=len(indices.configuration_classes),
            declarations=len(indices.declarations),
            mapper_namespaces=len(indices.mapper_namespaces),
        )

    @app.exception_handler(UnresolvedClassError)
    async def unresolved_handler(_: Any, exc: UnresolvedClassError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(BeanScanError)
    async def scan_error_handler(_: Any, exc: BeanScanError) -> JSONResponse:
        _LOGGER.warning("Request failed: %s", exc)
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover
    uvicorn.run(create_app(), host=host, port=port)
