"""HTTP surface for a presentation layer: pool state and clause building."""
from __future__ import annotations

from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .coordinator import PoolCoordinator
from .errors import PoolNotReadyError, VoteValidationError
from .ledger import clauses_to_wire


class DepositRequest(BaseModel):
    b3tr: int = 0
    vot3: int = 0


class WithdrawRequest(BaseModel):
    b3tr: int = 0
    vot3: int = 0
    recipient: Optional[str] = None


class SupportRequest(BaseModel):
    appIds: List[str]
    percentages: List[float]


class AccountRequest(BaseModel):
    account: Optional[str] = None


def create_app(coordinator: PoolCoordinator) -> FastAPI:
    app = FastAPI()

    def clauses_response(clauses):
        return JSONResponse({"clauses": clauses_to_wire(clauses)})

    @app.get("/pool")
    def pool():
        return JSONResponse(coordinator.snapshot())

    @app.post("/account")
    async def account(req: AccountRequest):
        await coordinator.set_account(req.account)
        return JSONResponse(coordinator.snapshot())

    @app.post("/refetch")
    async def refetch():
        await coordinator.refetch()
        return JSONResponse(coordinator.snapshot())

    @app.post("/clauses/deposit")
    async def deposit(req: DepositRequest):
        try:
            clauses = await coordinator.build_deposit_clauses(req.b3tr, req.vot3)
        except PoolNotReadyError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return clauses_response(clauses)

    @app.post("/clauses/withdraw")
    async def withdraw(req: WithdrawRequest):
        recipient = req.recipient or coordinator.account
        if not recipient:
            raise HTTPException(status_code=409, detail="no recipient and no connected account")
        try:
            clauses = await coordinator.build_withdraw_clauses(req.b3tr, req.vot3, recipient)
        except PoolNotReadyError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return clauses_response(clauses)

    @app.post("/clauses/support")
    async def support(req: SupportRequest):
        try:
            clauses = await coordinator.build_support_clauses(req.appIds, req.percentages)
        except VoteValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except PoolNotReadyError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return clauses_response(clauses)

    return app


def build_default_app() -> FastAPI:
    """App factory for `uvicorn vedelegate.server:build_default_app --factory`."""
    from .authorization import LocalSigner
    from .config import load_settings
    from .context import PoolContext
    from .ledger import ThorClient

    settings = load_settings()
    ctx = PoolContext(
        ledger=ThorClient(settings.node_url, timeout=settings.http_timeout),
        addresses=settings.contract_addresses(),
        sign=LocalSigner(settings.private_key) if settings.private_key else None,
    )
    return create_app(PoolCoordinator(ctx))
