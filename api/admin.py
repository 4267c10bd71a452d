# api/admin.py
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/kb")


@router.post("/rebuild")
async def rebuild(request: Request):
    knowledge = request.app.state.services.knowledge
    report = await knowledge.rebuild()
    if report.status == "busy":
        return JSONResponse(status_code=409, content=report.as_dict())
    return report.as_dict()


@router.get("/status")
async def status(request: Request):
    return request.app.state.services.knowledge.status()
