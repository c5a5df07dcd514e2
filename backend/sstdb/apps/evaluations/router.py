# backend/sstdb/apps/evaluations/router.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from sstdb.database import get_read_db, get_write_db

from . import schemas, services

router = APIRouter(prefix="/evaluations", tags=["evaluations"])

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
}


def _no_store(response: Response) -> None:
    response.headers.update(NO_STORE_HEADERS)


@router.get("/pending", response_model=schemas.PendingEvaluationsResponse)
def get_pending_evaluations(
    response: Response,
    employee_id: str = Query(..., alias="employeeId"),
    training_scope_id: Optional[str] = Query(None, alias="trainingScopeId"),
    year: Optional[int] = Query(None),
    db: Session = Depends(get_read_db),
):
    _no_store(response)
    try:
        pending = services.list_pending_evaluations(
            db,
            employee_id=employee_id,
            year=year,
            training_scope_id=training_scope_id,
        )
    except services.InvalidEvaluationRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return schemas.PendingEvaluationsResponse(pending=pending)


@router.get("/templates/{template_id}", response_model=schemas.TemplateExpansionResponse)
def get_template_with_questions(
    template_id: str,
    response: Response,
    db: Session = Depends(get_read_db),
):
    # Shuffled templates differ per call, so nothing downstream may cache this.
    _no_store(response)
    try:
        return services.assemble_template(db, template_id=template_id)
    except services.InvalidEvaluationRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except services.TemplateNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")


@router.post(
    "/submissions",
    response_model=schemas.SubmissionResult,
    status_code=status.HTTP_201_CREATED,
)
def submit_evaluation(
    payload: schemas.SubmissionCreate,
    db: Session = Depends(get_write_db),
):
    try:
        return services.record_submission(db, payload=payload)
    except services.InvalidEvaluationRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post("/check-batch", response_model=schemas.BatchCompletionResponse)
def check_batch(
    payload: schemas.BatchCompletionRequest,
    response: Response,
    db: Session = Depends(get_read_db),
):
    _no_store(response)
    try:
        return services.check_batch_completion(
            db,
            employee_ids=payload.employee_ids,
            training_scope_ids=payload.training_scope_ids,
            year=payload.year,
        )
    except services.InvalidEvaluationRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
