"""Quiz submission and retake routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from auth.dependencies import get_current_claims, get_retake_gate, require_self_or_admin
from auth.schemas import ApiResponse
from retakes.gate import RetakeGate
from retakes.schemas import StartRetakeRequest, SubmissionRequest

router = APIRouter()


@router.post("/responses", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def submit_response(
    payload: SubmissionRequest,
    claims: dict = Depends(get_current_claims),
    gate: RetakeGate = Depends(get_retake_gate),
) -> ApiResponse:
    record = await gate.record_submission(claims["sub"], payload.quiz_id, payload.score)
    return ApiResponse(
        success=True,
        message="Response recorded",
        data={
            "quiz_id": payload.quiz_id,
            "score": payload.score,
            "retake": record.to_dict() if record else None,
        },
    )


@router.get(
    "/users/{email}/quizzes/{quiz_id}/retake-status",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
)
async def retake_status(
    email: str,
    quiz_id: str,
    claims: dict = Depends(get_current_claims),
    gate: RetakeGate = Depends(get_retake_gate),
) -> ApiResponse:
    email = require_self_or_admin(email, claims)
    record = await gate.status(email, quiz_id)
    return ApiResponse(success=True, message="Retake status retrieved", data=record.to_dict())


@router.post(
    "/users/{email}/quizzes/{quiz_id}/start-retake",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
)
async def start_retake(
    email: str,
    quiz_id: str,
    payload: StartRetakeRequest,
    claims: dict = Depends(get_current_claims),
    gate: RetakeGate = Depends(get_retake_gate),
) -> ApiResponse:
    email = require_self_or_admin(email, claims)
    record = await gate.start_retake(email, quiz_id, payload.score)
    return ApiResponse(
        success=True,
        message="Retake cooldown started",
        data={
            "cooldown_until": record.to_dict()["cooldown_until"],
            "attempts_remaining": record.attempts_remaining,
        },
    )


@router.post(
    "/users/{email}/quizzes/{quiz_id}/complete-retake",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
)
async def complete_retake(
    email: str,
    quiz_id: str,
    claims: dict = Depends(get_current_claims),
    gate: RetakeGate = Depends(get_retake_gate),
) -> ApiResponse:
    email = require_self_or_admin(email, claims)
    await gate.complete_retake(email, quiz_id)
    return ApiResponse(success=True, message="Retake marked as completed", data={})
