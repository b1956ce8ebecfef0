"""Invitation endpoints."""

from fastapi import APIRouter, HTTPException, status

from assessment.core.invitations import Invitation
from assessment.web.schemas import (
    AcceptRequest,
    InvitationListResponse,
    InvitationResponse,
    InviteRequest,
    InviteResponse,
)
from assessment.web.services import get_service

router = APIRouter(prefix="/api/invitations", tags=["invitations"])


def _invitation_response(invitation: Invitation) -> InvitationResponse:
    return InvitationResponse(**invitation.to_dict())


@router.get("", response_model=InvitationListResponse)
def list_invitations(quiz_id: str) -> InvitationListResponse:
    """List the invitations of a quiz."""
    invitations = [_invitation_response(i) for i in get_service().store.load_invitations(quiz_id)]
    return InvitationListResponse(invitations=invitations, count=len(invitations))


@router.post("", response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
def invite(request: InviteRequest) -> InviteResponse:
    """Invite students by email. Already invited emails are skipped."""
    result = get_service().invite(request.quiz_id, request.emails)
    return InviteResponse(
        created=[_invitation_response(i) for i in result.created],
        skipped=result.skipped,
        invalid=result.invalid,
    )


@router.post("/accept", response_model=InvitationResponse)
def accept_invitation(request: AcceptRequest) -> InvitationResponse:
    """Accept an invitation; no effect once accepted or completed."""
    invitation = get_service().accept_invitation(request.quiz_id, request.email)
    if invitation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No invitation for '{request.email}' in quiz '{request.quiz_id}'",
        )
    return _invitation_response(invitation)


@router.delete("/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_invitation(invitation_id: str) -> None:
    """Delete a pending invitation (409 once accepted or completed)."""
    get_service().remove_invitation(invitation_id)
