from fastapi import Request
from typing import Any, Dict, List

from dal.case_dal import CaseDAL
from models.case_record import CaseRecord
from models.errors import TrainerError
from utils.http_errors import to_http_exception


async def list_cases(request: Request) -> List[Dict[str, Any]]:
    """Return every stored case."""
    dal: CaseDAL = request.app.state.case_dal
    try:
        cases = await dal.list_cases()
    except TrainerError as exc:
        raise to_http_exception(exc) from exc
    return [case.to_dict() for case in cases]


async def create_case(request: Request, record: CaseRecord) -> Dict[str, Any]:
    """Store a new case.

    Raises:
        HTTPException(400) when name or prompt is missing,
        HTTPException(409) when the name is already used.
    """
    dal: CaseDAL = request.app.state.case_dal
    try:
        created = await dal.create_case(record)
    except TrainerError as exc:
        raise to_http_exception(exc) from exc
    return created.to_dict()


async def update_case(request: Request, name: str, record: CaseRecord) -> Dict[str, Any]:
    """Replace the case called `name`; past sessions keep their own prompt copy."""
    dal: CaseDAL = request.app.state.case_dal
    try:
        updated = await dal.update_case(name, record)
    except TrainerError as exc:
        raise to_http_exception(exc) from exc
    return updated.to_dict()


async def delete_case(request: Request, name: str) -> Dict[str, Any]:
    """Delete the case called `name`."""
    dal: CaseDAL = request.app.state.case_dal
    try:
        await dal.delete_case(name)
    except TrainerError as exc:
        raise to_http_exception(exc) from exc
    return {"message": "Case deleted successfully"}
