from fastapi import APIRouter, Request, HTTPException
from pydantic import BaseModel
from typing import Optional

from controllers.case_controller import create_case, delete_case, list_cases, update_case
from models.case_record import CaseRecord

router = APIRouter()


class CasePayload(BaseModel):
    name: str = ""
    prompt: str = ""
    timestamp: Optional[str] = None

    def to_record(self) -> CaseRecord:
        return CaseRecord(name=self.name.strip(), prompt=self.prompt.strip(), timestamp=self.timestamp)


@router.get("/cases")
async def get_cases(request: Request):
    """Return all cases."""
    try:
        return await list_cases(request)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to retrieve cases: {exc}")


@router.post("/cases", status_code=201)
async def post_case(request: Request, payload: CasePayload):
    """Create a new case."""
    try:
        return await create_case(request, payload.to_record())
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to create case: {exc}")


@router.put("/cases/{name}")
async def put_case(request: Request, name: str, payload: CasePayload):
    """Update a case by name."""
    try:
        return await update_case(request, name, payload.to_record())
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to update case: {exc}")


@router.delete("/cases/{name}")
async def remove_case(request: Request, name: str):
    """Delete a case by name."""
    try:
        return await delete_case(request, name)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to delete case: {exc}")
