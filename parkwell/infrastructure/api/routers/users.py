from fastapi import APIRouter, Depends

from parkwell.application.services.auth_service import AuthService
from parkwell.infrastructure.api.dependencies import CurrentUser, get_auth_service, require_permission
from parkwell.infrastructure.api.schemas.auth import ProfileUpdateRequest, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdateRequest,
    current_user: CurrentUser = Depends(require_permission("manage_own_profile")),
    service: AuthService = Depends(get_auth_service),
):
    return await service.update_profile(
        current_user.id,
        first_name=data.first_name,
        last_name=data.last_name,
        current_password=data.current_password,
        new_password=data.new_password,
    )
