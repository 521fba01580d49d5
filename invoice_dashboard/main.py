# main.py - FastAPI Application Entry Point
# ============================================================================

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Cookie, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from invoice_dashboard.core.cache import view_cache
from invoice_dashboard.core.config import settings
from invoice_dashboard.core.database import get_db, init_db
from invoice_dashboard.models.user import User
from invoice_dashboard.schemas.auth import SignInState
from invoice_dashboard.schemas.invoice import FormState, InvoiceListItem
from invoice_dashboard.services.auth import AuthService
from invoice_dashboard.services.invoice import InvoiceService

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DELETED_MESSAGE = "Deleted invoice."

@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database init failed: {e}")
    yield

app = FastAPI(
    title="Invoice Dashboard API",
    description="Invoice form handling and sign-in",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

async def get_current_user(
    access_token: Optional[str] = Cookie(default=None, alias=settings.ACCESS_TOKEN_COOKIE),
    db: AsyncSession = Depends(get_db)
) -> User:
    user = await AuthService(db).get_current_user(access_token) if access_token else None
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def form_state_response(state: FormState) -> JSONResponse:
    # Field errors mean the input was rejected before touching the database
    if state.errors:
        status_code = 422
    else:
        status_code = 500
    return JSONResponse(status_code=status_code, content=state.to_response_body())


async def read_form(request: Request) -> dict:
    form = await request.form()
    return dict(form.items())

# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/health")
async def health():
    return {"status": "healthy"}

@app.get("/dashboard/invoices", response_model=List[InvoiceListItem])
async def list_invoices(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = InvoiceService(db)
    return await view_cache.get_or_render(settings.INVOICES_PATH, service.fetch_invoice_listing)

@app.post("/dashboard/invoices/create")
async def create_invoice(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await InvoiceService(db).create_invoice(await read_form(request))
    if isinstance(result, FormState):
        return form_state_response(result)
    return result

@app.post("/dashboard/invoices/{invoice_id}/edit")
async def update_invoice(
    invoice_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await InvoiceService(db).update_invoice(invoice_id, await read_form(request))
    if isinstance(result, FormState):
        return form_state_response(result)
    return result

@app.post("/dashboard/invoices/{invoice_id}/delete")
async def delete_invoice(
    invoice_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    state = await InvoiceService(db).delete_invoice(invoice_id)
    if state is not None:
        return form_state_response(state)
    return {"message": DELETED_MESSAGE}

@app.post("/login")
async def login(request: Request, db: AsyncSession = Depends(get_db)):
    result = await AuthService(db).authenticate(await read_form(request))
    if isinstance(result, str):
        return JSONResponse(status_code=401, content=SignInState(message=result).model_dump())
    return result

@app.get("/")
async def root():
    return {"message": "Invoice Dashboard API", "version": "1.0.0"}
