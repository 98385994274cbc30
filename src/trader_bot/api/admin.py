"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel

from trader_bot.domain.errors import StorageUnavailable

if TYPE_CHECKING:
    from trader_bot.containers import AppContainer
    from trader_bot.domain.traders import TraderRecord

router = APIRouter(prefix="/admin", tags=["admin"])


class TraderCreate(BaseModel):
    """Payload for registering a trader."""

    telegram_user_id: int
    username: str | None = None
    name: str | None = None


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/traders", dependencies=[Depends(require_admin)])
async def list_traders(request: Request) -> dict[str, object]:
    """Return every registered trader."""
    container: AppContainer = request.app.state.container
    return {
        "traders": [
            _serialize_trader(trader)
            for trader in container.trader_service.list_traders()
        ]
    }


@router.post(
    "/traders",
    dependencies=[Depends(require_admin)],
    status_code=status.HTTP_201_CREATED,
)
async def add_trader(payload: TraderCreate, request: Request) -> dict[str, object]:
    """Register a trader or renew their subscription."""
    container: AppContainer = request.app.state.container
    trader = container.trader_service.add_trader(
        payload.telegram_user_id, username=payload.username, name=payload.name
    )
    return _serialize_trader(trader)


@router.delete("/traders/{telegram_user_id}", dependencies=[Depends(require_admin)])
async def remove_trader(telegram_user_id: int, request: Request) -> dict[str, str]:
    """Remove a trader from the registry."""
    container: AppContainer = request.app.state.container
    if not container.trader_service.remove_trader(telegram_user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"status": "removed"}


@router.get(
    "/traders/{telegram_user_id}/operations", dependencies=[Depends(require_admin)]
)
async def trader_operations(
    telegram_user_id: int,
    request: Request,
    kind: str | None = None,
    page: int = 1,
) -> dict[str, object]:
    """Return one page of a trader's operation log."""
    container: AppContainer = request.app.state.container
    try:
        result = container.operation_log_service.query(
            telegram_user_id, kind=kind, page=page
        )
    except StorageUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return {
        "page": result.page,
        "total_pages": result.total_pages,
        "total_items": result.total_items,
        "stats": result.stats,
        "items": [
            {
                **asdict(item),
                "timestamp": item.timestamp.isoformat() if item.timestamp else None,
            }
            for item in result.items
        ],
    }


def _serialize_trader(trader: TraderRecord) -> dict[str, object]:
    return {
        "telegram_user_id": trader.telegram_user_id,
        "username": trader.username,
        "name": trader.name,
        "added_at": trader.added_at.isoformat(),
        "expires_at": trader.expires_at.isoformat() if trader.expires_at else None,
        "added_by": trader.added_by,
    }
