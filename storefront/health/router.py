from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from storefront.health.service import health_supabase_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/supabase")
def health_supabase(request: Request):
    return JSONResponse(health_supabase_info(getattr(request.app.state, "supabase", None)))
