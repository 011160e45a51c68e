from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import psutil
from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from bot_orchestrator import __version__
from bot_orchestrator.core.models import (
    DeleteResult,
    DeploymentRecord,
    LogicalBot,
    MetricsView,
    RuntimeRef,
    StatusReport,
)
from bot_orchestrator.errors import OrchestratorError
from bot_orchestrator.services.bot_service import BotService, build_service
from bot_orchestrator.utils.logger import logger

# OrchestratorError.kind -> HTTP status
STATUS_BY_KIND = {
    "not_found": 404,
    "conflict": 409,
    "precondition_failed": 400,
    "invalid": 422,
    "runtime_unavailable": 503,
    "persistence_unavailable": 503,
    "provisioning_failed": 500,
}

# -------- Schemas --------

class BotCreate(BaseModel):
    bot_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    token: str = Field(..., min_length=1, description="Secret injected as SECRET_TOKEN")
    owner_id: str = Field(..., min_length=1)
    description: Optional[str] = None
    auto_restart: bool = True
    settings: Dict[str, str] = Field(default_factory=dict)


class SettingsBody(BaseModel):
    settings: Dict[str, str]


class BotView(BaseModel):
    bot_id: str
    name: str
    owner_id: str
    description: Optional[str] = None
    auto_restart: bool
    status: str
    runtime_instance_id: Optional[str] = None
    runtime_instance_name: Optional[str] = None
    settings: Dict[str, str] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    container_status: Optional[StatusReport] = None


class BotsResponse(BaseModel):
    bots: List[BotView]


class ActionResponse(BaseModel):
    message: str


class LogsResponse(BaseModel):
    logs: str


class StatsResponse(BaseModel):
    stats: MetricsView


class DeploymentsResponse(BaseModel):
    deployments: List[DeploymentRecord]


def _bot_view(bot: LogicalBot, report: Optional[StatusReport] = None) -> BotView:
    return BotView(
        bot_id=bot.bot_id,
        name=bot.name,
        owner_id=bot.owner_id,
        description=bot.description,
        auto_restart=bot.auto_restart,
        status=bot.status.value,
        runtime_instance_id=bot.runtime_instance_id,
        runtime_instance_name=bot.runtime_instance_name,
        settings=bot.settings_dict(),
        created_at=bot.created_at,
        updated_at=bot.updated_at,
        container_status=report,
    )


def create_app(service: Optional[BotService] = None) -> FastAPI:
    """
    Build the HTTP API.

    Args:
        service: BotService to serve. Built from the environment on first use if None.
    """
    app = FastAPI(title="Bot Orchestrator API", version=__version__)
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(OrchestratorError)
    async def orchestrator_error_handler(request: Request, exc: OrchestratorError):
        status_code = STATUS_BY_KIND.get(exc.kind, 500)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=status_code, content={"error": exc.kind, "detail": exc.message})

    def get_service() -> BotService:
        if app.state.service is None:
            app.state.service = build_service()
        return app.state.service

    # -------- Health --------

    @app.get("/health")
    def health():
        """Basic health check - just returns OK if the service is running"""
        return {"status": "OK"}

    @app.get("/health/detailed")
    def health_detailed(svc: BotService = Depends(get_service)):
        """Detailed health check - validates all system components"""
        health_status: Dict[str, Any] = {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": {},
        }

        try:
            svc.manager.ping()
            health_status["components"]["docker"] = {"status": "OK", "message": "Connected"}
        except OrchestratorError as e:
            health_status["components"]["docker"] = {"status": "ERROR", "message": str(e)}
            health_status["status"] = "DEGRADED"

        if getattr(svc.store, "enabled", False):
            health_status["components"]["postgresql"] = {"status": "OK", "message": "Connected"}
        else:
            health_status["components"]["postgresql"] = {"status": "ERROR", "message": "Disabled"}
            health_status["status"] = "DEGRADED"

        memory = psutil.virtual_memory()
        health_status["components"]["system_resources"] = {
            "status": "OK",
            "cpu_usage": f"{psutil.cpu_percent(interval=0.1):.1f}%",
            "memory_usage": f"{memory.percent:.1f}%",
        }
        return health_status

    # -------- Bots --------

    @app.get("/bots", response_model=BotsResponse)
    def list_bots(owner_id: Optional[str] = Query(None), svc: BotService = Depends(get_service)):
        return {"bots": [_bot_view(b) for b in svc.list_bots(owner_id=owner_id)]}

    @app.post("/bots", response_model=BotView, status_code=201)
    def create_bot(body: BotCreate, svc: BotService = Depends(get_service)):
        bot = svc.create_bot(
            body.bot_id,
            body.name,
            body.token,
            body.owner_id,
            auto_restart=body.auto_restart,
            description=body.description,
            settings=body.settings,
        )
        return _bot_view(bot)

    @app.get("/bots/{bot_id}", response_model=BotView)
    def get_bot(bot_id: str, svc: BotService = Depends(get_service)):
        bot = svc.get_bot(bot_id)
        report = svc.bot_status(bot_id) if bot.deployed else None
        return _bot_view(bot, report)

    @app.delete("/bots/{bot_id}", response_model=DeleteResult)
    def delete_bot(
        bot_id: str,
        purge_volume: bool = Query(False, description="Also remove the bot's data volume"),
        svc: BotService = Depends(get_service),
    ):
        return svc.delete_bot(bot_id, purge_volume=purge_volume)

    @app.get("/bots/{bot_id}/status", response_model=StatusReport)
    def bot_status(bot_id: str, svc: BotService = Depends(get_service)):
        return svc.bot_status(bot_id)

    @app.post("/bots/{bot_id}/deploy", response_model=RuntimeRef)
    def deploy_bot(
        bot_id: str,
        x_user_id: Optional[str] = Header(None),
        svc: BotService = Depends(get_service),
    ):
        return svc.deploy_bot(bot_id, triggered_by=x_user_id)

    @app.post("/bots/{bot_id}/start", response_model=ActionResponse)
    def start_bot(bot_id: str, svc: BotService = Depends(get_service)):
        svc.start_bot(bot_id)
        return {"message": "Bot started successfully"}

    @app.post("/bots/{bot_id}/stop", response_model=ActionResponse)
    def stop_bot(bot_id: str, svc: BotService = Depends(get_service)):
        svc.stop_bot(bot_id)
        return {"message": "Bot stopped successfully"}

    @app.post("/bots/{bot_id}/restart", response_model=ActionResponse)
    def restart_bot(bot_id: str, svc: BotService = Depends(get_service)):
        svc.restart_bot(bot_id)
        return {"message": "Bot restarted successfully"}

    @app.get("/bots/{bot_id}/logs", response_model=LogsResponse)
    def bot_logs(bot_id: str, tail: int = Query(100, ge=1, le=10000), svc: BotService = Depends(get_service)):
        return {"logs": svc.bot_logs(bot_id, tail=tail)}

    @app.get("/bots/{bot_id}/stats", response_model=StatsResponse)
    def bot_stats(bot_id: str, svc: BotService = Depends(get_service)):
        return {"stats": svc.bot_stats(bot_id)}

    @app.put("/bots/{bot_id}/settings", response_model=BotView)
    def put_settings(bot_id: str, body: SettingsBody, svc: BotService = Depends(get_service)):
        return _bot_view(svc.update_settings(bot_id, body.settings))

    @app.get("/bots/{bot_id}/deployments", response_model=DeploymentsResponse)
    def deployments(bot_id: str, limit: int = Query(50, ge=1, le=500), svc: BotService = Depends(get_service)):
        return {"deployments": svc.deployment_history(bot_id, limit=limit)}

    @app.get("/events")
    def events(
        bot_id: Optional[str] = Query(None),
        limit: int = Query(100, ge=1, le=1000),
        svc: BotService = Depends(get_service),
    ):
        return {"events": svc.list_events(bot_id=bot_id, limit=limit)}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("bot_orchestrator.api.app:app", host="0.0.0.0", port=8000)
