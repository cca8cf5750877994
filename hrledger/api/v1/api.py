"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from hrledger.api.v1.endpoints import (attendance, auth, leave, notifications,
                                       system, users)

api_router = APIRouter()

# Auth (login, refresh, own profile)
api_router.include_router(auth.router)

# User administration
api_router.include_router(users.router)

# Time ledger
api_router.include_router(attendance.router)

# Leave requests, approvals, balances
api_router.include_router(leave.router)

# In-app notifications
api_router.include_router(notifications.router)

# Health, status
api_router.include_router(system.router)
